"""Outbound HTTP calls made by ``external_api`` steps."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from .constants import DEFAULT_EXTERNAL_METHOD, DEFAULT_EXTERNAL_TIMEOUT
from .exceptions import ExternalCallError

logger = logging.getLogger(__name__)


class ExternalApiCaller(Protocol):
    """Protocol for clients issuing external API calls."""

    async def call(
        self, url: str, method: str = DEFAULT_EXTERNAL_METHOD, payload: Any = None
    ) -> Any:
        """Send ``payload`` to ``url`` and return the decoded response."""


class HttpxExternalCaller:
    """External API caller backed by ``httpx.AsyncClient``.

    GET and DELETE requests send the payload as query parameters when it is a
    mapping; other methods send it as a JSON body. JSON responses are decoded,
    anything else is returned as text.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_EXTERNAL_TIMEOUT,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._headers = headers or {}
        self._transport = transport

    async def call(
        self, url: str, method: str = DEFAULT_EXTERNAL_METHOD, payload: Any = None
    ) -> Any:
        method = method.upper()
        request_kwargs: Dict[str, Any] = {}
        if method in ("GET", "DELETE"):
            if isinstance(payload, dict):
                request_kwargs["params"] = payload
        elif payload is not None:
            request_kwargs["json"] = payload

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                response = await client.request(method, url, **request_kwargs)
        except httpx.HTTPError as exc:
            raise ExternalCallError(f"{method} {url} failed: {exc}") from exc

        if not response.is_success:
            raise ExternalCallError(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug(f"{method} {url} returned {response.status_code}")
        if "json" in response.headers.get("content-type", ""):
            try:
                return response.json()
            except ValueError as exc:
                raise ExternalCallError(f"{method} {url} returned invalid JSON") from exc
        return response.text
