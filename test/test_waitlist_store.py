# test/test_waitlist_store.py

"""
Tests for services/waitlist_store.py

Covers the on-disk behaviour the service relies on: the JSON layout,
refusing to clobber a corrupt file, and atomic insert-if-absent.
"""

import json
import sqlite3
import threading

import pytest

from services.waitlist_store import (
    JsonFileWaitlistStore,
    SignupRecord,
    SqliteWaitlistStore,
    StoreError,
)


@pytest.fixture(params=["file", "sqlite"])
def store(request, tmp_path):
    if request.param == "file":
        return JsonFileWaitlistStore(tmp_path / "data" / "waitlist.json")
    s = SqliteWaitlistStore(tmp_path / "waitlist.db")
    s.init_db()
    return s


def test_empty_store(store):
    assert store.count() == 0
    assert store.exists("a@b.co") is False


def test_insert_if_absent_returns_total(store):
    assert store.insert_if_absent(SignupRecord(email="a@b.co")) == 1
    assert store.insert_if_absent(SignupRecord(email="a@b.co")) is None
    assert store.insert_if_absent(SignupRecord(email="c@d.co")) == 2
    assert store.exists("a@b.co") is True
    assert store.count() == 2


def test_concurrent_insert_of_same_email(store):
    barrier = threading.Barrier(6)
    results = []

    def worker():
        barrier.wait()
        results.append(store.insert_if_absent(SignupRecord(email="race@rink.io")))

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(1) == 1
    assert results.count(None) == 5
    assert store.count() == 1


def test_records_keep_metadata(store):
    store.insert_if_absent(SignupRecord(email="a@b.co", source_ip="1.2.3.4", user_agent="curl"))
    [record] = store.all()
    assert record.email == "a@b.co"
    assert record.source_ip == "1.2.3.4"
    assert record.user_agent == "curl"


def test_json_layout(tmp_path):
    path = tmp_path / "data" / "waitlist.json"
    store = JsonFileWaitlistStore(path)
    record = SignupRecord(email="a@b.co", source_ip="1.2.3.4", user_agent="curl")
    store.insert_if_absent(record)

    rows = json.loads(path.read_text(encoding="utf-8"))
    assert rows == [
        {
            "id": record.id,
            "email": "a@b.co",
            "timestamp": record.created_at,
            "ip": "1.2.3.4",
            "userAgent": "curl",
        }
    ]


def test_json_store_reads_existing_file(tmp_path):
    path = tmp_path / "waitlist.json"
    path.write_text(
        json.dumps([{"id": "1700000000000", "email": "old@rink.io", "timestamp": "2025-01-01T00:00:00.000Z",
                     "ip": "unknown", "userAgent": "unknown"}]),
        encoding="utf-8",
    )
    store = JsonFileWaitlistStore(path)

    assert store.count() == 1
    assert store.exists("old@rink.io")
    assert store.insert_if_absent(SignupRecord(email="old@rink.io")) is None


@pytest.mark.parametrize(
    "content",
    ["{not json", '{"email": "a@b.co"}', '["old@rink.io"]', '[{"email": "a@b.co"}, 7]'],
)
def test_corrupt_file_is_error_and_left_untouched(tmp_path, content):
    path = tmp_path / "waitlist.json"
    path.write_text(content, encoding="utf-8")
    store = JsonFileWaitlistStore(path)

    with pytest.raises(StoreError):
        store.count()
    with pytest.raises(StoreError):
        store.insert_if_absent(SignupRecord(email="a@b.co"))

    assert path.read_text(encoding="utf-8") == content


def test_failed_write_leaves_previous_file(tmp_path, monkeypatch):
    path = tmp_path / "waitlist.json"
    store = JsonFileWaitlistStore(path)
    store.insert_if_absent(SignupRecord(email="first@rink.io"))
    before = path.read_text(encoding="utf-8")

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("services.waitlist_store.os.replace", boom)

    with pytest.raises(StoreError):
        store.insert_if_absent(SignupRecord(email="second@rink.io"))

    assert path.read_text(encoding="utf-8") == before
    assert [p.name for p in tmp_path.iterdir()] == ["waitlist.json"]


def test_stores_on_same_path_share_lock(tmp_path):
    a = JsonFileWaitlistStore(tmp_path / "w.json")
    b = JsonFileWaitlistStore(tmp_path / "w.json")
    assert a._lock is b._lock


def test_sqlite_store_without_table_raises_store_error(tmp_path):
    store = SqliteWaitlistStore(tmp_path / "missing.db")
    with pytest.raises(StoreError):
        store.count()


def test_created_at_is_utc_with_z_suffix():
    record = SignupRecord(email="a@b.co")
    assert record.created_at.endswith("Z")
    assert "+00:00" not in record.created_at


class _TrackingConnection(sqlite3.Connection):
    closed = []

    def close(self):
        _TrackingConnection.closed.append(self)
        super().close()


def test_sqlite_store_closes_every_connection(tmp_path, monkeypatch):
    store = SqliteWaitlistStore(tmp_path / "waitlist.db")
    opened = []

    def tracking_connect():
        conn = sqlite3.connect(store.db_path, timeout=10, factory=_TrackingConnection)
        conn.row_factory = sqlite3.Row
        opened.append(conn)
        return conn

    monkeypatch.setattr(store, "_connect", tracking_connect)
    _TrackingConnection.closed = []

    store.init_db()
    store.insert_if_absent(SignupRecord(email="a@b.co"))
    store.insert_if_absent(SignupRecord(email="a@b.co"))
    store.exists("a@b.co")
    store.count()
    store.all()

    assert len(opened) == 6
    assert _TrackingConnection.closed == opened
