"""
Parcel audit trail.

Every workflow action can be recorded as one ``parcel_audit`` row: who did
what to which parcel, the parcel before and after, and how it ended.
Rows outlive the parcel itself, so a deleted parcel keeps its history.
"""
from __future__ import annotations

import json
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from .db import get_conn

AUDIT_DDL = """
CREATE TABLE IF NOT EXISTS parcel_audit (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  actor TEXT NOT NULL,
  action TEXT NOT NULL,
  parcel_number INTEGER,
  client INTEGER,
  request_id TEXT NOT NULL,
  before_json TEXT,
  after_json TEXT,
  payload_json TEXT,
  result TEXT NOT NULL,
  err_msg TEXT,
  latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_audit_parcel ON parcel_audit(parcel_number);
CREATE INDEX IF NOT EXISTS idx_audit_client ON parcel_audit(client);
"""


def ensure_log_schema():
    with get_conn() as conn:
        conn.executescript(AUDIT_DDL)
        conn.commit()


def _to_json(obj) -> Optional[str]:
    return None if obj is None else json.dumps(obj, ensure_ascii=False)


class LogContext:
    """
    Collects one audit entry while a service call runs.

    Use as ``with LogContext("PARCEL_REGISTER") as log: ...``; on exit the
    entry is written with result OK, or ERROR plus the exception text.
    Exceptions are never suppressed.
    """

    def __init__(self, action: str, actor: str = "operator"):
        self.action = action
        self.actor = actor
        self.request_id = uuid.uuid4().hex
        self.parcel_number: int | None = None
        self.client: int | None = None
        self.before: dict | None = None
        self.after: dict | None = None
        self.payload: dict | None = None
        self._t0 = time.perf_counter()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc is None:
            self.write("OK")
        else:
            self.write("ERROR", str(exc))
        return False

    def set_parcel(self, number: int, client: int | None = None):
        self.parcel_number = number
        if client is not None:
            self.client = client

    def record(self, before: dict | None = None, after: dict | None = None, payload: dict | None = None):
        if before is not None:
            self.before = before
        if after is not None:
            self.after = after
        if payload is not None:
            self.payload = payload
        # client is known once any snapshot is
        snap = after or before
        if self.client is None and snap:
            self.client = snap.get("client")

    def write(self, result: str = "OK", err: str | None = None):
        with get_conn() as conn:
            conn.execute(
                "INSERT INTO parcel_audit(ts, actor, action, parcel_number, client, request_id, "
                "before_json, after_json, payload_json, result, err_msg, latency_ms) "
                "VALUES(?,?,?,?,?,?,?,?,?,?,?,?)",
                (
                    datetime.now(timezone.utc).isoformat(),
                    self.actor,
                    self.action,
                    self.parcel_number,
                    self.client,
                    self.request_id,
                    _to_json(self.before),
                    _to_json(self.after),
                    _to_json(self.payload),
                    result,
                    err,
                    int((time.perf_counter() - self._t0) * 1000),
                ),
            )
            conn.commit()


def _decode(row) -> dict[str, Any]:
    out = dict(row)
    for k in ("before_json", "after_json", "payload_json"):
        raw = out.pop(k)
        out[k[: -len("_json")]] = json.loads(raw) if raw else None
    return out


def list_audit(
    parcel_number: int | None = None,
    client: int | None = None,
    action: str | None = None,
    result: str | None = None,
) -> list[dict[str, Any]]:
    """Audit entries matching every given filter, oldest first."""
    where, params = [], []
    for col, val in (("parcel_number", parcel_number), ("client", client), ("action", action), ("result", result)):
        if val is not None:
            where.append(f"{col}=?")
            params.append(val)
    sql = "SELECT * FROM parcel_audit"
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY id ASC"
    with get_conn() as conn:
        return [_decode(r) for r in conn.execute(sql, params).fetchall()]
