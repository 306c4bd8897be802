"""Guarded execution of confirmed ``fetch`` tool calls."""

from __future__ import annotations

import asyncio
import logging

import httpx

from .config import Settings
from .errors import FetchTimeout, PolicyViolation
from .network_guard import is_private_destination, resolve_and_check
from .schemas import ProposedAction

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "... (truncated)"
ALLOWED_SCHEMES = ("http", "https")


def truncate_response(text: str, limit: int) -> str:
    """Cap ``text`` at ``limit`` characters, appending the truncation marker.

    Applying it again at the same limit returns the input unchanged.
    """
    if len(text) <= limit:
        return text
    if len(text) == limit + len(TRUNCATION_MARKER) and text.endswith(TRUNCATION_MARKER):
        return text
    return text[:limit] + TRUNCATION_MARKER


async def _read_bounded(response: httpx.Response, limit: int) -> str:
    parts: list[str] = []
    size = 0
    async for piece in response.aiter_text():
        parts.append(piece)
        size += len(piece)
        if size > limit:
            break
    return "".join(parts)


class GuardedFetcher:
    """Performs one outbound HTTP request per call, refusing private destinations."""

    def __init__(
        self,
        *,
        timeout: float = 5.0,
        max_response_chars: int = 3750,
        resolve_hostnames: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_response_chars = max_response_chars
        self.resolve_hostnames = resolve_hostnames
        self._transport = transport
        self.requests_sent = 0

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "GuardedFetcher":
        return cls(
            timeout=settings.fetch_timeout_seconds,
            max_response_chars=settings.fetch_max_response_chars,
            resolve_hostnames=settings.resolve_hostnames,
            transport=transport,
        )

    async def check_destination(self, raw_url: str) -> httpx.URL:
        """Parse ``raw_url`` and raise PolicyViolation unless it may be fetched."""
        try:
            url = httpx.URL(raw_url)
        except (httpx.InvalidURL, TypeError) as exc:
            raise PolicyViolation(f"Invalid URL: {raw_url}", identifier="invalid_url", cause=exc) from exc

        if url.scheme not in ALLOWED_SCHEMES or not url.host:
            raise PolicyViolation(f"Unsupported URL: {raw_url}", identifier="invalid_url")

        if self.resolve_hostnames:
            private = await resolve_and_check(url.host)
        else:
            private = is_private_destination(url.host)
        if private:
            logger.warning("Blocked request to private destination %s", url.host)
            raise PolicyViolation(
                f"Requests to private or internal addresses are not allowed: {url.host}"
            )
        return url

    async def execute(self, action: ProposedAction) -> str:
        """Run ``action`` and return its response body as guarded text."""
        # The deadline also covers the destination check, which may resolve DNS.
        try:
            text = await asyncio.wait_for(self._check_and_send(action), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("Request to %s timed out after %ss", action.url, self.timeout)
            raise FetchTimeout(
                f"The request to {action.url} timed out after {self.timeout:g} seconds", cause=exc
            ) from exc
        return truncate_response(text, self.max_response_chars)

    async def _check_and_send(self, action: ProposedAction) -> str:
        url = await self.check_destination(action.url)
        return await self._send(action, url)

    async def _send(self, action: ProposedAction, url: httpx.URL) -> str:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport, follow_redirects=False
        ) as client:
            request = client.build_request(
                action.method,
                url,
                headers=action.headers,
                content=action.body.encode() if action.body is not None else None,
            )
            logger.info("Fetching %s %s", action.method, url)
            self.requests_sent += 1
            response = await client.send(request, stream=True)
            try:
                text = await _read_bounded(response, self.max_response_chars)
            finally:
                await response.aclose()
        logger.info("Fetched %s %s -> %s (%d chars)", action.method, url.host, response.status_code, len(text))
        return text


__all__ = [
    "ALLOWED_SCHEMES",
    "GuardedFetcher",
    "TRUNCATION_MARKER",
    "truncate_response",
]
