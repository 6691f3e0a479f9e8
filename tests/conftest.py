"""Shared test fixtures: kline builders, fake HTTP session, fake adapters, fake clock."""

import json
from typing import Any, Optional

import pytest

from chartdesk.schemas.market import Kline, MarketSnapshot, TimeFrame
from chartdesk.services.base import SourceDataError, TransportError

BASE_TIME = 1_700_000_000


def make_klines(closes, start=BASE_TIME, step=3600, spread=1.0, volume=100.0) -> list[Kline]:
    """Klines whose open is the previous close and high/low sit `spread` around the body."""
    klines = []
    prev = closes[0]
    for i, close in enumerate(closes):
        open_ = prev
        klines.append(
            Kline(
                time=start + i * step,
                open=open_,
                high=max(open_, close) + spread,
                low=max(min(open_, close) - spread, 0.01),
                close=close,
                volume=volume,
            )
        )
        prev = close
    return klines


def make_snapshot(source="okx", symbol="BTCUSDT", price=100.0) -> MarketSnapshot:
    return MarketSnapshot(
        symbol=symbol,
        price=price,
        change_24h=1.0,
        change_percent_24h=1.0,
        high_24h=price + 5,
        low_24h=price - 5,
        volume_24h=1000.0,
        data_source=source,
    )


# ── Fake aiohttp session ───────────────────────────────────────────

class FakeResponse:
    def __init__(self, payload: Any = None, status: int = 200, text: Optional[str] = None):
        self.status = status
        self._payload = payload
        self._text = text if text is not None else json.dumps(payload)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def text(self) -> str:
        return self._text

    async def json(self, content_type=None):
        return json.loads(self._text)


class FakeSession:
    """Returns queued responses keyed by URL path suffix; records every call."""

    def __init__(self, routes: Optional[dict] = None, error: Optional[Exception] = None):
        self.routes = routes or {}
        self.error = error
        self.calls: list[tuple[str, Optional[dict]]] = []
        self.closed = False

    def get(self, url: str, params: Optional[dict] = None):
        self.calls.append((url, params))
        if self.error is not None:
            raise self.error
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                return response
        return FakeResponse(status=404, text="not found")

    async def close(self):
        self.closed = True


# ── Fake adapters ──────────────────────────────────────────────────

class FakeAdapter:
    """In-memory ExchangeAdapter that can be told to fail."""

    def __init__(
        self,
        name: str,
        klines: Optional[list[Kline]] = None,
        symbols: Optional[list[str]] = None,
        fail: bool = False,
        timeframes=tuple(TimeFrame),
    ):
        self.name = name
        self.klines = klines if klines is not None else make_klines([100.0, 101.0, 102.0])
        self.symbols = symbols or []
        self.fail = fail
        self.timeframes = set(timeframes)
        self.kline_calls = 0
        self.snapshot_calls = 0
        self.symbol_calls = 0
        self.closed = False

    def supports(self, timeframe: TimeFrame) -> bool:
        return timeframe in self.timeframes

    async def fetch_klines(self, symbol, timeframe, limit):
        self.kline_calls += 1
        if self.fail:
            raise TransportError(self.name, "connection refused")
        return self.klines[-limit:]

    async def fetch_snapshot(self, symbol):
        self.snapshot_calls += 1
        if self.fail:
            raise SourceDataError(self.name, "no ticker")
        return make_snapshot(self.name, symbol)

    async def fetch_symbols(self):
        self.symbol_calls += 1
        if self.fail:
            raise TransportError(self.name, "timeout")
        return list(self.symbols)

    async def close(self):
        self.closed = True


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rising_klines():
    """60 strictly rising closes."""
    return make_klines([100.0 + i for i in range(60)])


@pytest.fixture
def wavy_klines():
    """250 closes oscillating around 100 with a slow drift."""
    closes = [100.0 + 10 * ((i % 20) - 10) / 10 + i * 0.05 for i in range(250)]
    return make_klines(closes)
