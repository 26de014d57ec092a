"""
Base client for external literature data sources.

Provides: aiohttp session lifecycle, a single-attempt GET returning raw text,
XML ingestion with labeled parse errors, and structured request logging.

Requests are single-attempt and uncached; callers pace them
(see ``pubmed_navigator.utils.pacing``).
"""

import asyncio
import logging
import time
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from typing import Any

import aiohttp
from pydantic import BaseModel

from pubmed_navigator.config import get_settings
from pubmed_navigator.parsers.xml_tree import Element, parse_xml

logger = logging.getLogger("pubmed_navigator.data_sources")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ClientConfig(BaseModel):
    """Per-client HTTP settings."""

    timeout_seconds: float | None = None  # None -> settings.request_timeout_seconds


# ---------------------------------------------------------------------------
# Request context (for structured logging)
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Metadata attached to every outgoing request for logging."""

    source: str  # e.g. "pubmed"
    method: str  # e.g. "search"
    params: dict[str, Any] = {}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DataSourceError(Exception):
    """Base exception for data source failures."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        self.source = source
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")

    def relabel(self, label: str) -> "DataSourceError":
        """Same failure, message prefixed with the operation that hit it."""
        return DataSourceError(
            self.source, f"{label}: {self.message}", status_code=self.status_code
        )


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------


class BaseClient(ABC):
    """
    Abstract base for literature clients.

    Subclasses implement `_source_name` and their own typed methods that
    call `_rest_get_text()` / `_rest_get_xml()`.
    """

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier for this data source, e.g. 'pubmed'."""
        ...

    @property
    def timeout_seconds(self) -> float:
        if self.config.timeout_seconds is not None:
            return self.config.timeout_seconds
        return get_settings().request_timeout_seconds

    # -- Session management --------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # -- Core request ---------------------------------------------------------

    async def _request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> str:
        """
        Issue one GET and return the response body as text.

        Raises
        ------
        DataSourceError
            On any non-2xx status, timeout, or connection failure.
        """
        ctx = context or RequestContext(source=self._source_name, method="unknown")
        start = time.monotonic()

        logger.info("Request [%s.%s] url=%s", ctx.source, ctx.method, url)

        try:
            session = await self._get_session()
            resp = await session.get(url, params=params)
            body = await resp.text()
        except asyncio.TimeoutError:
            elapsed = time.monotonic() - start
            logger.warning(
                "Timeout [%s.%s] elapsed=%.1fs", ctx.source, ctx.method, elapsed
            )
            raise DataSourceError(ctx.source, f"Timeout after {elapsed:.1f}s")
        except aiohttp.ClientError as e:
            logger.warning("Connection error [%s.%s]: %s", ctx.source, ctx.method, e)
            raise DataSourceError(ctx.source, f"Connection error: {e}") from e
        except UnicodeDecodeError as e:
            logger.warning("Undecodable body [%s.%s]: %s", ctx.source, ctx.method, e)
            raise DataSourceError(ctx.source, f"Failed to decode response: {e}") from e

        if resp.status >= 400:
            logger.warning(
                "HTTP %d from %s.%s: %s",
                resp.status,
                ctx.source,
                ctx.method,
                body[:200],
            )
            raise DataSourceError(
                ctx.source,
                f"HTTP error! status: {resp.status}",
                status_code=resp.status,
            )

        logger.info(
            "Success [%s.%s] elapsed=%.2fs",
            ctx.source,
            ctx.method,
            time.monotonic() - start,
        )
        return body

    # -- Convenience methods for subclasses ----------------------------------

    async def _rest_get_text(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        *,
        context: RequestContext | None = None,
    ) -> str:
        """GET returning the raw body (RIS export, or XML to be parsed later)."""
        return await self._request(url, params=params, context=context)

    async def _rest_get_xml(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        *,
        context: RequestContext | None = None,
    ) -> Element:
        """GET and parse the body into the tagged XML tree."""
        xml_text = await self._request(url, params=params, context=context)
        return self._parse_xml(xml_text)

    def _parse_xml(self, xml_text: str) -> Element:
        try:
            return parse_xml(xml_text)
        except ET.ParseError as e:
            raise DataSourceError(self._source_name, f"Failed to parse XML: {e}")
