"""
Parcel data access.

ParcelStore wraps an already-open handle and runs exactly one statement per
call. It never commits, opens or closes the connection; storage errors
(sqlite3.Error or whatever the handle raises) propagate unchanged.
"""
from __future__ import annotations

from typing import Any, Protocol, Sequence

from ..errors import ParcelNotFound
from ..models import Parcel, ParcelStatus

DDL = """
CREATE TABLE IF NOT EXISTS parcel (
  number INTEGER PRIMARY KEY AUTOINCREMENT,
  client INTEGER NOT NULL,
  status TEXT NOT NULL,
  address TEXT NOT NULL,
  created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_parcel_client ON parcel(client);
"""

_COLUMNS = "number, client, status, address, created_at"


def _status_value(status) -> str:
    return status.value if isinstance(status, ParcelStatus) else status


class Cursor(Protocol):
    lastrowid: Any

    def fetchone(self) -> Any: ...

    def fetchall(self) -> list[Any]: ...


class DBHandle(Protocol):
    """The slice of sqlite3.Connection the store relies on."""

    def execute(self, sql: str, parameters: Sequence[Any] = ...) -> Cursor: ...


def ensure_schema(conn):
    conn.executescript(DDL)


class ParcelStore:
    def __init__(self, db: DBHandle):
        self.db = db

    def add(self, parcel: Parcel) -> int:
        """Insert ``parcel`` (its number is ignored) and return the assigned number."""
        cur = self.db.execute(
            "INSERT INTO parcel(client, status, address, created_at) VALUES(?,?,?,?)",
            (parcel.client, _status_value(parcel.status), parcel.address, parcel.created_at),
        )
        return int(cur.lastrowid)

    def get(self, number: int) -> Parcel:
        row = self.db.execute(
            f"SELECT {_COLUMNS} FROM parcel WHERE number=?", (number,)
        ).fetchone()
        if row is None:
            raise ParcelNotFound(number)
        return Parcel.from_row(row)

    def get_by_client(self, client: int) -> list[Parcel]:
        rows = self.db.execute(
            f"SELECT {_COLUMNS} FROM parcel WHERE client=? ORDER BY number",
            (client,),
        ).fetchall()
        return [Parcel.from_row(r) for r in rows]

    def set_address(self, number: int, address: str) -> None:
        # zero rows updated is not an error
        self.db.execute("UPDATE parcel SET address=? WHERE number=?", (address, number))

    def set_status(self, number: int, status: str) -> None:
        # persisted as given; transitions are checked by callers
        self.db.execute("UPDATE parcel SET status=? WHERE number=?", (_status_value(status), number))

    def delete(self, number: int) -> None:
        self.db.execute("DELETE FROM parcel WHERE number=?", (number,))
