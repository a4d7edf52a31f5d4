from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ..db import get_conn
from ..domain.lifecycle import is_editable, next_status
from ..errors import ParcelStatusError
from ..logs import LogContext, list_audit
from ..models import Parcel, ParcelStatus
from ..repository import parcel_repo
from ..repository.parcel_repo import ParcelStore

logger = logging.getLogger(__name__)

def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def ensure_parcel_schema():
    with get_conn() as conn:
        parcel_repo.ensure_schema(conn)
        conn.commit()


def register_parcel(client: int, address: str, log: LogContext | None = None) -> Parcel:
    parcel = Parcel(
        client=client,
        status=ParcelStatus.REGISTERED,
        address=address,
        created_at=_now_rfc3339(),
    )
    with get_conn() as conn:
        parcel.number = ParcelStore(conn).add(parcel)
        conn.commit()
    logger.info(f"parcel {parcel.number} to {address!r} registered for client {client} at {parcel.created_at}")
    if log:
        log.set_parcel(parcel.number, client)
        log.record(after=parcel.model_dump(), payload={"client": client, "address": address})
    return parcel


def list_client_parcels(client: int) -> list[dict[str, Any]]:
    with get_conn() as conn:
        parcels = ParcelStore(conn).get_by_client(client)
    return [p.model_dump() for p in parcels]


def next_parcel_status(number: int, log: LogContext | None = None) -> Parcel:
    """
    Advance one step along registered -> sent -> delivered.
    A delivered parcel is returned as is, nothing is written.
    """
    if log:
        log.set_parcel(number)
    with get_conn() as conn:
        store = ParcelStore(conn)
        before = store.get(number)
        nxt = next_status(before.status)
        if nxt is None:
            logger.debug(f"parcel {number} already {before.status}, status unchanged")
            after = before
        else:
            store.set_status(number, nxt)
            conn.commit()
            after = before.model_copy(update={"status": nxt.value})
            logger.info(f"parcel {number} new status: {nxt.value}")
    if log:
        log.record(before=before.model_dump(), after=after.model_dump())
    return after


def change_parcel_address(number: int, address: str, log: LogContext | None = None) -> Parcel:
    if log:
        log.set_parcel(number)
        log.record(payload={"address": address})
    with get_conn() as conn:
        store = ParcelStore(conn)
        before = store.get(number)
        if log:
            log.record(before=before.model_dump())
        if not is_editable(before.status):
            logger.warning(f"address change refused for parcel {number} ({before.status})")
            raise ParcelStatusError(f"address_locked: parcel {number} is {before.status}")
        store.set_address(number, address)
        conn.commit()
    after = before.model_copy(update={"address": address})
    logger.info(f"parcel {number} address changed to {address!r}")
    if log:
        log.record(after=after.model_dump())
    return after


def delete_parcel(number: int, log: LogContext | None = None) -> None:
    if log:
        log.set_parcel(number)
    with get_conn() as conn:
        store = ParcelStore(conn)
        before = store.get(number)
        if log:
            log.record(before=before.model_dump())
        if not is_editable(before.status):
            logger.warning(f"delete refused for parcel {number} ({before.status})")
            raise ParcelStatusError(f"delete_locked: parcel {number} is {before.status}")
        store.delete(number)
        conn.commit()
    logger.info(f"parcel {number} deleted")


def parcel_history(number: int) -> list[dict[str, Any]]:
    """Audit entries for this parcel, oldest first (kept after deletion)."""
    return list_audit(parcel_number=number)


def client_history(client: int) -> list[dict[str, Any]]:
    return list_audit(client=client)
