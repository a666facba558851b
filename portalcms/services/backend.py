"""
portalcms.services.backend — CMS REST Boundary Adapter
========================================================

Every call to the CMS backend goes through :class:`BackendClient`, which
turns the backend's loose conventions into one :class:`ApiResult`:

- network / timeout / JSON failures never raise; they come back as
  ``success=False`` with a ``"Failed to <verb> <entity>"`` message;
- non-2xx responses are passed through with the backend's own message;
- delete and bulk-delete are successful only when the message contains
  "success" (case-insensitive), the convention the backend relies on.

The check lives here once instead of at every call site.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from portalcms.config import DEFAULT_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

__all__ = ["ApiResult", "BackendClient", "SuccessRule", "is_success_message"]


class SuccessRule(enum.StrEnum):
    """How a response is judged successful."""
    STATUS = "status"    # any 2xx
    MESSAGE = "message"  # 2xx and "success" in message


def is_success_message(message: str | None) -> bool:
    return bool(message) and "success" in message.lower()


@dataclass(slots=True)
class ApiResult:
    """Uniform outcome of one backend call.

    ``data`` is the decoded JSON body (dict or list) when there was one.
    Callers must only rely on ``success`` and ``message`` on failure.
    """

    success: bool
    message: str = ""
    data: Any = None
    status_code: int | None = None

    def get(self, key: str, default: Any = None) -> Any:
        """Read *key* from a dict body; *default* for anything else."""
        if isinstance(self.data, dict):
            return self.data.get(key, default)
        return default


class BackendClient:
    """Thin async wrapper around :class:`httpx.AsyncClient`.

    Parameters
    ----------
    base_url:
        CMS API root, e.g. ``http://localhost:5000/api``.
    timeout:
        Per-request timeout in seconds; a request that never resolves
        fails with a timeout instead of hanging the caller.
    transport:
        Optional transport (tests pass an ``httpx.ASGITransport``).
    retries:
        Connection retries for the default transport.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        retries: int = 1,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retries = retries
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def http(self) -> httpx.AsyncClient:
        """Shared client (created lazily, closed by :meth:`aclose`)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport or httpx.AsyncHTTPTransport(retries=self.retries),
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        verb: str,
        label: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        rule: SuccessRule = SuccessRule.STATUS,
        default_message: str | None = None,
    ) -> ApiResult:
        """Send one request and classify the outcome.

        *verb* and *label* build the fallback failure message
        (``"Failed to update banner"``).  *default_message* is used when a
        successful response carries no message of its own.
        """
        fallback = f"Failed to {verb} {label}"
        try:
            resp = await self.http.request(method, self.url(path), json=json, params=params)
        except httpx.TimeoutException:
            logger.warning("%s %s timed out after %.1fs", method, path, self.timeout)
            return ApiResult(success=False, message=fallback)
        except httpx.HTTPError:
            logger.exception("%s %s failed", method, path)
            return ApiResult(success=False, message=fallback)

        try:
            body = resp.json()
        except ValueError:
            logger.warning("%s %s returned a non-JSON body (HTTP %d)", method, path, resp.status_code)
            return ApiResult(success=False, message=fallback, status_code=resp.status_code)

        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, str):
            message = ""

        if not resp.is_success:
            logger.info("%s %s rejected (HTTP %d): %s", method, path, resp.status_code, message)
            return ApiResult(
                success=False,
                message=message or fallback,
                data=body,
                status_code=resp.status_code,
            )

        if not message and default_message:
            message = default_message

        if rule is SuccessRule.MESSAGE:
            success = is_success_message(message)
        else:
            success = "failed" not in message.lower()

        return ApiResult(success=success, message=message, data=body, status_code=resp.status_code)
