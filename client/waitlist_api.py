"""
client/waitlist_api.py
Thin HTTP client for the waitlist endpoints.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

import requests

import config

DEFAULT_TIMEOUT_SECONDS = 10


@dataclass
class ApiResponse:
    ok: bool
    status_code: int
    data: Dict[str, Any] = field(default_factory=dict)


class WaitlistApi:
    def __init__(self, base_url: str = config.WAITLIST_API_URL, session=None, timeout=DEFAULT_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}/api/waitlist"

    @staticmethod
    def _wrap(resp) -> ApiResponse:
        # works for requests and httpx responses alike
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        return ApiResponse(ok=resp.status_code < 400, status_code=resp.status_code, data=data)

    def get_count(self) -> ApiResponse:
        """
        GET /api/waitlist

        Raises:
            requests.RequestException on transport failure.
        """
        resp = self.session.get(self.url, timeout=self.timeout)
        return self._wrap(resp)

    def join(self, email: str) -> ApiResponse:
        """
        POST /api/waitlist with {"email": ...}

        Non-2xx answers are returned, not raised; only transport
        failures raise requests.RequestException.
        """
        resp = self.session.post(self.url, json={"email": email}, timeout=self.timeout)
        return self._wrap(resp)
