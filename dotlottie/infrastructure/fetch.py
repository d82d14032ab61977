"""Fetch remote animation documents and containers over HTTP."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import json
import logging
from typing import Any, Callable, Optional
import urllib.error
import urllib.request

from dotlottie import __version__
from dotlottie.errors import FetchFailed, UnresolvedSource

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class FetchResponse:
    url: str
    body: bytes
    content_type: Optional[str] = None

    @property
    def media_type(self) -> Optional[str]:
        """Content type without parameters, lower-cased."""
        if not self.content_type:
            return None
        return self.content_type.split(";", 1)[0].strip().lower()

    def json(self) -> Any:
        try:
            return json.loads(self.body)
        except (UnicodeDecodeError, ValueError) as exc:
            raise UnresolvedSource(f"Invalid JSON returned from {self.url}: {exc}") from exc


Fetcher = Callable[[str], FetchResponse]


class UrllibFetcher:
    """Blocking fetcher backed by urllib."""

    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT, useragent: Optional[str] = None):
        self._timeout = timeout
        self._useragent = useragent or f"dotlottie-py/{__version__}"

    def __call__(self, url: str) -> FetchResponse:
        request = urllib.request.Request(url, headers={"User-Agent": self._useragent})
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as resp:
                body = resp.read()
                content_type = resp.headers.get("Content-Type")
        except urllib.error.HTTPError as exc:
            logger.debug("HTTP error %s for %s: %s", exc.code, url, exc)
            raise FetchFailed(url, f"HTTP {exc.code}") from exc
        except urllib.error.URLError as exc:
            logger.warning("Request failed for %s: %s", url, exc)
            raise FetchFailed(url, str(exc.reason)) from exc
        except (TimeoutError, OSError) as exc:
            logger.warning("Request failed for %s: %s", url, exc)
            raise FetchFailed(url, str(exc)) from exc
        logger.debug("Fetched %s (%d bytes, %s)", url, len(body), content_type)
        return FetchResponse(url=url, body=body, content_type=content_type)


async def fetch_async(url: str, fetcher: Optional[Fetcher] = None) -> FetchResponse:
    """Run a blocking fetcher in the default executor."""
    fetcher = fetcher or UrllibFetcher()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, fetcher, url)
