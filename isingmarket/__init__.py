"""In-memory marketplace for Ising optimisation jobs: solvers, orders, scoring and payouts."""

__version__ = "0.1.0"