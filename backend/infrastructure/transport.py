"""Authenticated HTTP/WebDAV transport shared by every upstream client."""
from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import httpx

from backend.core.errors import TransportError, UpstreamRateLimitError
from backend.domain.records import RawPayload

logger = logging.getLogger(__name__)

BasicAuth = tuple[str, str]


class HttpTransport:
    """Blocking GET/PROPFIND with a hard timeout.

    Every failure mode (connection error, timeout, non-2xx status) is raised as
    :class:`TransportError`; HTTP 429 as :class:`UpstreamRateLimitError`.
    Retry policy belongs to the caller.
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        verify_tls: bool = False,
        user_agent: str = "Dashboard-API/1.0",
        http_client: httpx.Client | None = None,
    ) -> None:
        self._timeout = timeout
        self._user_agent = user_agent
        self._client = http_client or httpx.Client(timeout=timeout, verify=verify_tls)
        self._owns_client = http_client is None

    @property
    def timeout(self) -> float:
        return self._timeout

    def _headers(self, headers: Mapping[str, str] | None) -> dict[str, str]:
        merged = {"Accept": "*/*", "User-Agent": self._user_agent}
        if headers:
            merged.update(headers)
        return merged

    def _send(
        self,
        method: str,
        url: str,
        *,
        auth: BasicAuth | None,
        headers: Mapping[str, str] | None,
        params: Mapping[str, Any] | None,
        timeout: float | None,
    ) -> httpx.Response:
        started = time.monotonic()
        try:
            response = self._client.request(
                method,
                url,
                auth=auth,
                headers=self._headers(headers),
                params=params,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request timed out: {exc}", url=url) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request failed: {exc}", url=url) from exc

        logger.info(
            "%s %s -> %s",
            method,
            url,
            response.status_code,
            extra={
                "ctx_status": response.status_code,
                "ctx_duration_ms": round((time.monotonic() - started) * 1000, 2),
                "ctx_bytes": len(response.content),
            },
        )
        if response.status_code == 429:
            raise UpstreamRateLimitError("Upstream rate limit exceeded", status=429, url=url)
        if not response.is_success:
            raise TransportError(
                f"API request failed with status: {response.status_code}",
                status=response.status_code,
                url=url,
            )
        return response

    def fetch(
        self,
        url: str,
        *,
        auth: BasicAuth | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> RawPayload:
        response = self._send("GET", url, auth=auth, headers=headers, params=params, timeout=timeout)
        return RawPayload(
            content=response.content,
            content_type=response.headers.get("content-type", ""),
            source_path=url,
            status_code=response.status_code,
        )

    def propfind(
        self,
        url: str,
        *,
        auth: BasicAuth | None = None,
        depth: str = "0",
        timeout: float | None = None,
    ) -> int:
        """Issue a WebDAV PROPFIND and return the status code (207 on success)."""

        response = self._send(
            "PROPFIND",
            url,
            auth=auth,
            headers={"Depth": depth, "Content-Type": "text/xml"},
            params=None,
            timeout=timeout,
        )
        return response.status_code

    def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            self._client.close()


__all__ = ["BasicAuth", "HttpTransport"]
