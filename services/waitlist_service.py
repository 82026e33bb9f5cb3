# services/waitlist_service.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import config
from config import logger
from logic.validation import validate_email
from services.waitlist_store import (
    JsonFileWaitlistStore,
    SignupRecord,
    SqliteWaitlistStore,
)

EMPTY_MESSAGE = "No signups yet - be the first!"
DUPLICATE_MESSAGE = "This email is already on the waitlist!"
GENERIC_ERROR_MESSAGE = "Oops! Something went wrong. Please try again."


class WaitlistError(Exception):
    code = "WAITLIST_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WaitlistError):
    code = "INVALID_EMAIL"


class ConflictError(WaitlistError):
    code = "ALREADY_ON_WAITLIST"


class InternalError(WaitlistError):
    code = "INTERNAL"


class WaitlistStore(Protocol):
    def count(self) -> int: ...

    def exists(self, email: str) -> bool: ...

    def insert_if_absent(self, record: SignupRecord) -> Optional[int]: ...


@dataclass(frozen=True)
class SignupResult:
    message: str
    total: int
    record: SignupRecord


class WaitlistService:
    """
    Validates, dedupes and stores waitlist signups.

    The store is injected so the same rules apply to the JSON file,
    the SQLite table and the in-memory store used in tests.
    """

    def __init__(
        self,
        store: WaitlistStore,
        product_name: str = "RinkBuddy",
        noun: str = "skater",
        noun_plural: str = "skaters",
    ):
        self.store = store
        self.product_name = product_name
        self.noun = noun
        self.noun_plural = noun_plural

    def _count_message(self, count: int) -> str:
        if count <= 0:
            return EMPTY_MESSAGE
        noun = self.noun if count == 1 else self.noun_plural
        return f"{count} {noun} on the {self.product_name} waitlist! 🎉"

    def get_count(self) -> Dict[str, Any]:
        try:
            count = self.store.count()
        except Exception:
            logger.exception("[waitlist] failed to read signup count")
            raise InternalError("Internal server error")
        return {"count": count, "message": self._count_message(count)}

    def submit(
        self,
        email: Optional[str],
        source_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SignupResult:
        try:
            clean_email = validate_email(email or "")
        except ValueError as e:
            raise ValidationError(str(e))

        try:
            if self.store.exists(clean_email):
                raise ConflictError(DUPLICATE_MESSAGE)

            record = SignupRecord(
                email=clean_email,
                source_ip=source_ip or "unknown",
                user_agent=user_agent or "unknown",
            )
            total = self.store.insert_if_absent(record)
            if total is None:
                raise ConflictError(DUPLICATE_MESSAGE)
        except WaitlistError:
            raise
        except Exception:
            logger.exception("[waitlist] failed to store signup")
            raise InternalError(GENERIC_ERROR_MESSAGE)

        logger.info(f"[waitlist] new {self.product_name} signup: {clean_email} (Total: {total})")
        return SignupResult(
            message=f"Welcome to {self.product_name}! 🎉",
            total=total,
            record=record,
        )


def build_store(backend: str, path: str, db_path: str) -> WaitlistStore:
    backend = (backend or "").strip().lower()
    if backend == "sqlite":
        store = SqliteWaitlistStore(db_path)
        store.init_db()
        return store
    if backend == "file":
        return JsonFileWaitlistStore(path)
    raise ValueError(f"Unknown WAITLIST_BACKEND: {backend!r} (expected 'file' or 'sqlite')")


_SERVICE: Optional[WaitlistService] = None


def get_waitlist_service() -> WaitlistService:
    """
    Return the process-wide service built from config.

    Used as a FastAPI dependency; tests override it.
    """
    global _SERVICE
    if _SERVICE is None:
        store = build_store(config.WAITLIST_BACKEND, config.WAITLIST_PATH, config.WAITLIST_DB_PATH)
        _SERVICE = WaitlistService(
            store,
            product_name=config.PRODUCT_NAME,
            noun=config.SIGNUP_NOUN,
            noun_plural=config.SIGNUP_NOUN_PLURAL,
        )
        logger.info(f"[waitlist] using {config.WAITLIST_BACKEND} store")
    return _SERVICE
