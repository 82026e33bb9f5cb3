"""
client/waitlist_form.py

State machine behind the landing page signup form.

    idle -> loading -> success -> (2s) -> idle
                    -> error   -> (3s) -> idle

Only one request is ever in flight: submit() is ignored while loading or
showing success. Delayed resets run through a scheduler so they can be
cancelled when the user submits again, and so tests can drive time by hand.
"""

import threading
from enum import Enum
from typing import Callable, List, Optional

import requests

import config
from config import logger

GENERIC_ERROR = "There was an error submitting the form"
TRANSPORT_ERROR = "There was an error while submitting the form"


class FormState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


BUTTON_COPY = {
    FormState.IDLE: "Join waitlist",
    FormState.LOADING: "Joining...",
    FormState.SUCCESS: "Welcome! 🎉",
    FormState.ERROR: "Join waitlist",
}


class TimerScheduler:
    """Runs callbacks after a delay on threading.Timer threads."""

    def schedule(self, delay: float, callback: Callable[[], None]):
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class WaitlistForm:
    def __init__(
        self,
        api,
        scheduler=None,
        success_reset_seconds: float = config.FORM_SUCCESS_RESET_SECONDS,
        error_reset_seconds: float = config.FORM_ERROR_RESET_SECONDS,
    ):
        self.api = api
        self.scheduler = scheduler or TimerScheduler()
        self.success_reset_seconds = success_reset_seconds
        self.error_reset_seconds = error_reset_seconds

        self.state = FormState.IDLE
        self.error: Optional[str] = None
        self.value = ""

        self._lock = threading.RLock()
        self._pending = None
        self._listeners: List[Callable[["WaitlistForm"], None]] = []

    # --------------------------------------------------
    # Render helpers
    # --------------------------------------------------

    @property
    def button_label(self) -> str:
        return BUTTON_COPY[self.state]

    @property
    def input_disabled(self) -> bool:
        return self.state == FormState.LOADING

    @property
    def can_submit(self) -> bool:
        return self.state not in (FormState.LOADING, FormState.SUCCESS) and bool(self.value.strip())

    def subscribe(self, listener: Callable[["WaitlistForm"], None]) -> None:
        self._listeners.append(listener)

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # --------------------------------------------------
    # Transitions
    # --------------------------------------------------

    def set_value(self, value: str) -> None:
        with self._lock:
            self.value = value or ""
        self._emit()

    def _set(self, state: FormState, error: Optional[str] = None) -> None:
        with self._lock:
            self.state = state
            self.error = error
        self._emit()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule_reset(self, delay: float) -> None:
        handle = None

        def _reset() -> None:
            with self._lock:
                # superseded by a newer transition
                if self._pending is not handle:
                    return
                self._pending = None
            self._set(FormState.IDLE)

        with self._lock:
            self._cancel_pending()
            handle = self.scheduler.schedule(delay, _reset)
            self._pending = handle

    def submit(self) -> bool:
        """
        Submit the current value. Returns False when the submit was ignored.
        """
        with self._lock:
            if self.state in (FormState.LOADING, FormState.SUCCESS):
                return False
            if not self.value.strip():
                return False
            if self._pending is not None:
                self._cancel_pending()
                self.state = FormState.IDLE
                self.error = None
            email = self.value
            self.state = FormState.LOADING
            self.error = None
        self._emit()

        try:
            resp = self.api.join(email)
        except requests.RequestException as e:
            logger.warning(f"[waitlist-form] request failed: {e}")
            self._set(FormState.ERROR, TRANSPORT_ERROR)
            self._schedule_reset(self.error_reset_seconds)
            return True

        if resp.ok:
            with self._lock:
                self.value = ""
            self._set(FormState.SUCCESS)
            self._schedule_reset(self.success_reset_seconds)
        else:
            self._set(FormState.ERROR, resp.data.get("error") or GENERIC_ERROR)
            self._schedule_reset(self.error_reset_seconds)
        return True

    def fetch_count(self) -> Optional[dict]:
        """
        Current {count, message} for the social-proof line, or None if the
        API could not be reached.
        """
        try:
            resp = self.api.get_count()
        except requests.RequestException as e:
            logger.warning(f"[waitlist-form] count request failed: {e}")
            return None
        return resp.data if resp.ok else None

    def close(self) -> None:
        with self._lock:
            self._cancel_pending()
