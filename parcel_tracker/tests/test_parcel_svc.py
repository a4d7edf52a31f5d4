from __future__ import annotations

import logging
import re

import pytest

from parcel_tracker.errors import ParcelNotFound, ParcelStatusError
from parcel_tracker.logs import LogContext
from parcel_tracker.models import ParcelStatus
from parcel_tracker.services import parcel_svc


def test_register_parcel():
    p = parcel_svc.register_parcel(1000, "Lenina 1")
    assert p.number > 0
    assert p.status == ParcelStatus.REGISTERED
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", p.created_at)

    items = parcel_svc.list_client_parcels(1000)
    assert items == [p.model_dump()]


def test_next_status_walks_lifecycle():
    p = parcel_svc.register_parcel(1, "a")
    assert parcel_svc.next_parcel_status(p.number).status == "sent"
    assert parcel_svc.next_parcel_status(p.number).status == "delivered"
    # terminal: unchanged
    assert parcel_svc.next_parcel_status(p.number).status == "delivered"
    assert parcel_svc.list_client_parcels(1)[0]["status"] == "delivered"


def test_change_address_only_while_registered():
    p = parcel_svc.register_parcel(2, "old")
    changed = parcel_svc.change_parcel_address(p.number, "new")
    assert changed.address == "new"
    assert parcel_svc.list_client_parcels(2)[0]["address"] == "new"

    parcel_svc.next_parcel_status(p.number)
    with pytest.raises(ParcelStatusError):
        parcel_svc.change_parcel_address(p.number, "newer")
    assert parcel_svc.list_client_parcels(2)[0]["address"] == "new"


def test_delete_only_while_registered():
    kept = parcel_svc.register_parcel(3, "x")
    gone = parcel_svc.register_parcel(3, "y")
    parcel_svc.next_parcel_status(kept.number)

    with pytest.raises(ParcelStatusError):
        parcel_svc.delete_parcel(kept.number)
    parcel_svc.delete_parcel(gone.number)

    assert [it["number"] for it in parcel_svc.list_client_parcels(3)] == [kept.number]
    with pytest.raises(ParcelNotFound):
        parcel_svc.next_parcel_status(gone.number)


def test_missing_parcel_raises_not_found():
    with pytest.raises(ParcelNotFound):
        parcel_svc.change_parcel_address(123456, "z")
    with pytest.raises(ParcelNotFound):
        parcel_svc.delete_parcel(123456)


def test_audit_trail_records_workflow():
    with LogContext("PARCEL_REGISTER") as log:
        p = parcel_svc.register_parcel(4, "audit street", log=log)
    with LogContext("PARCEL_NEXT_STATUS") as log:
        parcel_svc.next_parcel_status(p.number, log=log)
    with pytest.raises(ParcelStatusError):
        with LogContext("PARCEL_DELETE") as log:
            parcel_svc.delete_parcel(p.number, log=log)

    history = parcel_svc.parcel_history(p.number)
    assert [h["action"] for h in history] == ["PARCEL_REGISTER", "PARCEL_NEXT_STATUS", "PARCEL_DELETE"]
    assert [h["result"] for h in history] == ["OK", "OK", "ERROR"]
    assert "delete_locked" in history[2]["err_msg"]
    assert history[1]["before"]["status"] == "registered"
    assert history[1]["after"]["status"] == "sent"
    assert history[2]["before"]["status"] == "sent"
    assert all(h["client"] == 4 for h in history)

    assert [h["parcel_number"] for h in parcel_svc.client_history(4)] == [p.number] * 3
    assert parcel_svc.client_history(5) == []


def test_service_logs_status_change(caplog):
    p = parcel_svc.register_parcel(5, "b")
    with caplog.at_level(logging.INFO, logger="parcel_tracker.services.parcel_svc"):
        parcel_svc.next_parcel_status(p.number)
    assert f"parcel {p.number} new status: sent" in caplog.text
