"""Async HTTP client for the guest account issuing endpoint.

One call to :meth:`AccountIssuerClient.issue` is exactly one
``GET {base_url}{path}?prefix=<name>`` exchange. There is no retry and no
per-request timeout override: unit latency stays bounded by the shared
transport's own timeout, which keeps progress reporting predictable.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ..observability.metrics import ISSUER_REQUEST_DURATION_SECONDS
from ..provisioning.errors import (
    IssuerTransportError,
    MalformedResponseError,
    UnitIssuerError,
)
from ..provisioning.units import ACCOUNT_INFO_FIELD, has_account_info

logger = logging.getLogger(__name__)

DEFAULT_ISSUER_BASE_URL = "https://ff-account-register.vercel.app"
DEFAULT_ISSUER_PATH = "/genuidpw/"

__all__ = [
    "AccountIssuerClient",
    "IssuerTransportError",
    "MalformedResponseError",
    "UnitIssuerError",
]


# ── Module-level shared client ───────────────────────────────────

_shared_async_client: httpx.AsyncClient | None = None


def _get_shared_async_client() -> httpx.AsyncClient:
    global _shared_async_client
    if _shared_async_client is None:
        _shared_async_client = httpx.AsyncClient()
    return _shared_async_client


def _reset_shared_async_client_for_tests() -> None:
    global _shared_async_client
    _shared_async_client = None


# ── Client ───────────────────────────────────────────────────────


class AccountIssuerClient:
    """Request guest accounts from the external issuer, one per call."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_ISSUER_BASE_URL,
        path: str = DEFAULT_ISSUER_PATH,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
        self._client = http_client or _get_shared_async_client()

    @property
    def url(self) -> str:
        return self._url

    async def issue(self, name: str) -> dict[str, Any]:
        """Issue one guest account named after *name*.

        Returns the decoded issuer payload, guaranteed to be an object
        carrying a non-empty ``guest_account_info`` field.

        Raises:
            IssuerTransportError: Network failure or HTTP status >= 400.
            MalformedResponseError: Body is not a JSON object with
                account info.
        """
        started = time.perf_counter()
        try:
            resp = await self._client.request(
                "GET",
                self._url,
                params={"prefix": name},
            )
        except httpx.HTTPError as exc:
            raise IssuerTransportError(f"{type(exc).__name__}: {exc}") from exc
        finally:
            ISSUER_REQUEST_DURATION_SECONDS.observe(time.perf_counter() - started)

        if resp.status_code >= 400:
            raise IssuerTransportError(
                f"HTTP {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise MalformedResponseError(
                "response body is not JSON",
                status_code=resp.status_code,
            ) from exc

        if not has_account_info(payload):
            raise MalformedResponseError(
                f"response has no {ACCOUNT_INFO_FIELD!r} field",
                status_code=resp.status_code,
            )

        logger.debug("Guest account issued: prefix=%s", name, extra={"prefix": name})
        return payload
