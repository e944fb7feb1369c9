"""Rules that tie result delivery modes to job modes."""

from __future__ import annotations

from .types import DeliveryKind, JobMode, ResultDelivery


def validate_delivery_mode(delivery: ResultDelivery, mode: JobMode) -> bool:
    """Return whether ``delivery`` is allowed for ``mode``."""
    if delivery.kind is DeliveryKind.ON_CHAIN_ONLY:
        return True
    if delivery.kind is DeliveryKind.CALLBACK:
        if not mode.is_bid:
            return True
        return mode.miners is None and mode.miner_types is not None
    if delivery.kind is DeliveryKind.CALLBACK_WITH_POLL:
        return mode.is_bid and mode.miners is not None and mode.miner_types is None
    return False