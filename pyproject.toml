[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "isingmarket"
version = "0.1.0"
description = "An in-memory marketplace for user-submitted Ising jobs: solver registration, job proposals, solution scoring and reward settlement."
requires-python = ">=3.10"
dependencies = []
keywords = ["ising", "marketplace", "optimization", "rewards", "quantum", "solvers"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["isingmarket"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
