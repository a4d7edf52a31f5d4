from __future__ import annotations

# parcel_tracker/domain/lifecycle.py
from typing import Optional

from ..errors import ParcelStatusError
from ..models import ParcelStatus

# registered -> sent -> delivered, forward only
_NEXT = {
    ParcelStatus.REGISTERED: ParcelStatus.SENT,
    ParcelStatus.SENT: ParcelStatus.DELIVERED,
    ParcelStatus.DELIVERED: None,
}


def parse_status(value: str) -> ParcelStatus:
    try:
        return ParcelStatus(value)
    except ValueError:
        raise ParcelStatusError(f"unknown_status: {value!r}") from None


def next_status(current: str) -> Optional[ParcelStatus]:
    """Following status, or None when ``current`` is terminal."""
    return _NEXT[parse_status(current)]


def is_valid_transition(current: str, new: str) -> bool:
    try:
        nxt = next_status(current)
        return nxt is not None and nxt == parse_status(new)
    except ParcelStatusError:
        return False


def is_editable(status: str) -> bool:
    """Address changes and deletion are only allowed before dispatch."""
    return status == ParcelStatus.REGISTERED
