"""Free and reserved balances of accounts."""

from __future__ import annotations

from typing import Any, Mapping, Optional


class InsufficientBalance(Exception):
    """Raised when an account has too little free balance for an operation."""

    def __init__(self, who: Any, needed: int, available: int) -> None:
        super().__init__(
            f"account {who!r} needs {needed} but has {available} free"
        )
        self.who = who
        self.needed = needed
        self.available = available


def _check_amount(amount: int) -> int:
    if amount < 0:
        raise ValueError(f"amount must not be negative, got {amount}")
    return amount


class Balances:
    """A ledger with free and reserved balances per account."""

    def __init__(self, initial: Optional[Mapping[Any, int]] = None) -> None:
        self._free: dict[Any, int] = {}
        self._reserved: dict[Any, int] = {}
        for who, amount in (initial or {}).items():
            self.set_balance(who, amount)

    def free_balance(self, who: Any) -> int:
        return self._free.get(who, 0)

    def reserved_balance(self, who: Any) -> int:
        return self._reserved.get(who, 0)

    def set_balance(self, who: Any, amount: int) -> None:
        """Set the free balance of ``who`` outright."""
        self._free[who] = _check_amount(amount)

    def _take_free(self, who: Any, amount: int) -> None:
        available = self.free_balance(who)
        if available < amount:
            raise InsufficientBalance(who, amount, available)
        self._free[who] = available - amount

    def reserve(self, who: Any, amount: int) -> None:
        """Move ``amount`` from free to reserved balance."""
        _check_amount(amount)
        self._take_free(who, amount)
        self._reserved[who] = self.reserved_balance(who) + amount

    def unreserve(self, who: Any, amount: int) -> int:
        """Move up to ``amount`` back to free; return the part not unreserved."""
        _check_amount(amount)
        moved = min(self.reserved_balance(who), amount)
        self._reserved[who] = self.reserved_balance(who) - moved
        self._free[who] = self.free_balance(who) + moved
        return amount - moved

    def transfer(self, source: Any, dest: Any, amount: int) -> None:
        """Move ``amount`` of free balance from ``source`` to ``dest``."""
        _check_amount(amount)
        self._take_free(source, amount)
        self._free[dest] = self.free_balance(dest) + amount