import os
import sqlite3
import pytest


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "tracker_test.db"
    # Point the package at this temp DB
    os.environ["TRACKER_DB_PATH"] = str(path)
    from parcel_tracker.logs import ensure_log_schema
    from parcel_tracker.services.parcel_svc import ensure_parcel_schema
    ensure_parcel_schema()
    ensure_log_schema()
    return str(path)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Clean tables before each test for isolation
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("TRACKER_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in ("parcel", "parcel_audit"):
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield
