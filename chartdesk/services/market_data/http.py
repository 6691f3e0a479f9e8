"""
Shared HTTP plumbing for exchange adapters.

Wraps an aiohttp session so that every transport failure becomes a
TransportError tagged with the source name, and provides the row-parsing
and ordering helpers all adapters use.
"""

import asyncio
from typing import Any, Callable, Iterable, Optional

import aiohttp
from pydantic import ValidationError

from chartdesk.schemas.market import Kline
from chartdesk.services.base import SourceDataError, TransportError


class JsonHttpClient:
    """
    Minimal JSON-over-HTTP GET client for one data source.

    The session is created lazily and reused; pass `session` to share one
    (or to substitute a fake in tests).
    """

    def __init__(
        self,
        source: str,
        base_url: str,
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.source = source
        self.base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        """GET `path` and decode the JSON body."""
        url = f"{self.base_url}{path}"
        session = await self._ensure_session()

        try:
            async with session.get(url, params=params) as resp:
                if not 200 <= resp.status < 300:
                    body = await resp.text()
                    raise TransportError(
                        self.source,
                        f"HTTP {resp.status} from {path}",
                        details={"status": resp.status, "body": body[:500]},
                    )
                return await resp.json(content_type=None)
        except TransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(self.source, f"request to {path} failed: {e!r}") from e
        except ValueError as e:
            raise TransportError(self.source, f"invalid JSON from {path}: {e}") from e


def parse_rows(
    source: str, rows: Iterable[Any], parse_row: Callable[[Any], Kline]
) -> list[Kline]:
    """Parse raw kline rows; any malformed row fails the whole payload."""
    try:
        return [parse_row(row) for row in rows]
    except (IndexError, KeyError, TypeError, ValueError, ValidationError) as e:
        raise SourceDataError(source, f"malformed kline row: {e}") from e


def normalize_klines(klines: list[Kline]) -> list[Kline]:
    """Sort ascending by time and drop repeated timestamps (first one wins)."""
    ordered = sorted(klines, key=lambda k: k.time)
    result: list[Kline] = []
    for kline in ordered:
        if result and result[-1].time == kline.time:
            continue
        result.append(kline)
    return result


def to_float(value: Any, default: float = 0.0) -> float:
    """Parse an exchange numeric string, treating null/empty as `default`."""
    if value is None or value == "":
        return default
    return float(value)
