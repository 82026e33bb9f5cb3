# services/waitlist_store.py

"""
Persistence for waitlist signups.

Every store offers the same three operations:

    count()                   -> number of stored signups
    exists(email)             -> True if the (normalized) email is stored
    insert_if_absent(record)  -> total after storing, or None if the email was taken

insert_if_absent is atomic per store: two concurrent calls with the same
email never both succeed, and the returned total is read under the same
lock or transaction as the insert.
"""

from __future__ import annotations

import json
import os
import sqlite3
import tempfile
import threading
import uuid
from contextlib import closing
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


class StoreError(Exception):
    """Raised when stored signups cannot be read or written."""


def _utc_iso_z() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class SignupRecord:
    email: str
    source_ip: str = "unknown"
    user_agent: str = "unknown"
    id: str = field(default_factory=_new_id)
    created_at: str = field(default_factory=_utc_iso_z)

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "email": self.email,
            "timestamp": self.created_at,
            "ip": self.source_ip,
            "userAgent": self.user_agent,
        }

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "SignupRecord":
        return cls(
            id=str(row.get("id") or ""),
            email=str(row.get("email") or ""),
            created_at=str(row.get("timestamp") or ""),
            source_ip=str(row.get("ip") or "unknown"),
            user_agent=str(row.get("userAgent") or "unknown"),
        )


# --------------------------------------------------
# In-memory
# --------------------------------------------------

class MemoryWaitlistStore:
    """Dict-backed store, used by tests and local experiments."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: Dict[str, SignupRecord] = {}

    def count(self) -> int:
        with self._lock:
            return len(self._rows)

    def exists(self, email: str) -> bool:
        with self._lock:
            return email in self._rows

    def insert_if_absent(self, record: SignupRecord) -> Optional[int]:
        with self._lock:
            if record.email in self._rows:
                return None
            self._rows[record.email] = record
            return len(self._rows)

    def all(self) -> List[SignupRecord]:
        with self._lock:
            return list(self._rows.values())


# --------------------------------------------------
# JSON file
# --------------------------------------------------

# One lock per resolved file path, shared by every store in the process.
_FILE_LOCKS: Dict[str, threading.Lock] = {}
_FILE_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _FILE_LOCKS_GUARD:
        lock = _FILE_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _FILE_LOCKS[key] = lock
        return lock


class JsonFileWaitlistStore:
    """
    Stores the waitlist as one JSON array, rewritten in full on each insert.

    A missing file is an empty waitlist. An unreadable or malformed file
    (not an array, or an array holding anything but objects) is a StoreError
    and is never overwritten.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def _load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read waitlist file {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StoreError(f"Waitlist file {self.path} does not hold a JSON array")
        for i, row in enumerate(data):
            if not isinstance(row, dict):
                raise StoreError(f"Waitlist file {self.path} has a non-object entry at index {i}")
        return data

    def _save(self, rows: List[Dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=".waitlist-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(rows, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StoreError(f"Cannot write waitlist file {self.path}: {e}") from e

    def count(self) -> int:
        with self._lock:
            return len(self._load())

    def exists(self, email: str) -> bool:
        with self._lock:
            return any(r.get("email") == email for r in self._load())

    def insert_if_absent(self, record: SignupRecord) -> Optional[int]:
        with self._lock:
            rows = self._load()
            if any(r.get("email") == record.email for r in rows):
                return None
            rows.append(record.to_dict())
            self._save(rows)
            return len(rows)

    def all(self) -> List[SignupRecord]:
        with self._lock:
            return [SignupRecord.from_dict(r) for r in self._load()]


# --------------------------------------------------
# SQLite
# --------------------------------------------------

class SqliteWaitlistStore:
    """Stores signups in a table whose email column is UNIQUE."""

    def __init__(self, db_path: str | os.PathLike) -> None:
        self.db_path = str(db_path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS waitlist_signups (
                        id TEXT PRIMARY KEY,
                        email TEXT NOT NULL UNIQUE,
                        created_at TEXT NOT NULL,
                        ip TEXT,
                        user_agent TEXT
                    )
                    """
                )
        except sqlite3.Error as e:
            raise StoreError(f"Cannot initialise waitlist db {self.db_path}: {e}") from e

    def count(self) -> int:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute("SELECT COUNT(*) AS n FROM waitlist_signups").fetchone()
                return int(row["n"])
        except sqlite3.Error as e:
            raise StoreError(f"Cannot count waitlist signups: {e}") from e

    def exists(self, email: str) -> bool:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    "SELECT 1 FROM waitlist_signups WHERE email = ?",
                    (email,),
                ).fetchone()
                return row is not None
        except sqlite3.Error as e:
            raise StoreError(f"Cannot look up waitlist email: {e}") from e

    def insert_if_absent(self, record: SignupRecord) -> Optional[int]:
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    """
                    INSERT INTO waitlist_signups (id, email, created_at, ip, user_agent)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.email,
                        record.created_at,
                        record.source_ip,
                        record.user_agent,
                    ),
                )
                # same transaction as the insert; committed together
                row = conn.execute("SELECT COUNT(*) AS n FROM waitlist_signups").fetchone()
                return int(row["n"])
        except sqlite3.IntegrityError:
            return None
        except sqlite3.Error as e:
            raise StoreError(f"Cannot insert waitlist signup: {e}") from e

    def all(self) -> List[SignupRecord]:
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(
                    "SELECT * FROM waitlist_signups ORDER BY created_at"
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot list waitlist signups: {e}") from e
        return [
            SignupRecord(
                id=r["id"],
                email=r["email"],
                created_at=r["created_at"],
                source_ip=r["ip"] or "unknown",
                user_agent=r["user_agent"] or "unknown",
            )
            for r in rows
        ]
