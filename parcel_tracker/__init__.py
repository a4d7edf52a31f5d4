"""Parcel tracker: SQLite persistence for shipments and their lifecycle."""
from __future__ import annotations

from .errors import ParcelNotFound, ParcelStatusError
from .models import Parcel, ParcelStatus
from .repository.parcel_repo import ParcelStore

__all__ = ["Parcel", "ParcelStatus", "ParcelStore", "ParcelNotFound", "ParcelStatusError"]
