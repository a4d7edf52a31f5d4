from __future__ import annotations


class ParcelNotFound(LookupError):
    """No parcel row with the requested number (never existed or deleted)."""

    def __init__(self, number: int):
        super().__init__(f"parcel_not_found: {number}")
        self.number = number


class ParcelStatusError(ValueError):
    """Unknown status value, or an operation the current status does not allow."""
