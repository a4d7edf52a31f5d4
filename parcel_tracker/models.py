from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, field_validator


class ParcelStatus(str, Enum):
    REGISTERED = "registered"
    SENT = "sent"
    DELIVERED = "delivered"


class Parcel(BaseModel):
    """
    One shipment row.

    ``Parcel()`` is the empty value: number 0, client 0, blank strings.
    ``status`` stays a plain str so the store can persist whatever it is given.
    """
    number: int = 0
    client: int = 0
    status: str = ""
    address: str = ""
    created_at: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _plain_status(cls, v):
        return v.value if isinstance(v, ParcelStatus) else v

    @classmethod
    def from_row(cls, row) -> "Parcel":
        number, client, status, address, created_at = row
        return cls(number=number, client=client, status=status, address=address, created_at=created_at)
