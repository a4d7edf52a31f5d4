"""SQLite access for parcels: ParcelStore and the parcel table schema."""
from __future__ import annotations
