"""Tests for the aggregator fallback chain, symbol cache and search ranking."""

import pytest

from chartdesk.schemas.market import POPULAR_SYMBOLS, TimeFrame
from chartdesk.services.base import AllSourcesExhausted, TransportError
from chartdesk.services.market_data import (
    BinanceAdapter,
    GateAdapter,
    MarketDataAggregator,
    MexcAdapter,
    OkxAdapter,
    SymbolUniverseCache,
    build_adapters,
)
from chartdesk.services.market_data.symbol_search import filter_symbols, rank_symbols
from tests.conftest import FakeAdapter, make_klines


def aggregator_of(*adapters, clock=None):
    cache = SymbolUniverseCache(ttl_seconds=300, clock=clock) if clock else SymbolUniverseCache()
    return MarketDataAggregator(list(adapters), cache)


# ── Fallback chain ──────────────────────────────────────────────────

class TestFallback:
    async def test_first_source_wins(self):
        a, b = FakeAdapter("okx"), FakeAdapter("binance")
        result = await aggregator_of(a, b).fetch_klines("BTCUSDT", TimeFrame.H1, 200)
        assert result.data_source == "okx"
        assert b.kline_calls == 0

    async def test_falls_through_in_order(self):
        second_klines = make_klines([50.0, 51.0])
        a = FakeAdapter("okx", fail=True)
        b = FakeAdapter("binance", klines=second_klines)
        c = FakeAdapter("gate")
        result = await aggregator_of(a, b, c).fetch_klines("btc-usdt", TimeFrame.H1, 200)

        assert result.data_source == "binance"
        assert result.symbol == "BTCUSDT"
        assert result.klines == second_klines
        assert a.kline_calls == 1
        assert c.kline_calls == 0

    async def test_exhaustion_names_every_source(self):
        adapters = [FakeAdapter(n, fail=True) for n in ("okx", "binance", "gate", "mexc")]
        with pytest.raises(AllSourcesExhausted) as exc:
            await aggregator_of(*adapters).fetch_klines("BTCUSDT", TimeFrame.H1, 200)

        assert exc.value.sources == ["okx", "binance", "gate", "mexc"]
        assert "tried sources: okx, binance, gate, mexc" in str(exc.value)
        assert all(a.kline_calls == 1 for a in adapters)

    async def test_unsupported_timeframe_skipped(self):
        a = FakeAdapter("okx", timeframes=[TimeFrame.H1])
        b = FakeAdapter("binance")
        result = await aggregator_of(a, b).fetch_klines("BTCUSDT", TimeFrame.W1, 10)
        assert result.data_source == "binance"
        assert a.kline_calls == 0

    async def test_unsupported_timeframe_counts_as_attempt(self):
        a = FakeAdapter("okx", timeframes=[])
        with pytest.raises(AllSourcesExhausted) as exc:
            await aggregator_of(a).fetch_klines("BTCUSDT", TimeFrame.M1, 10)
        assert exc.value.attempts[0][0] == "okx"
        assert "not supported" in exc.value.attempts[0][1]

    async def test_snapshot_fallback(self):
        a = FakeAdapter("okx", fail=True)
        b = FakeAdapter("binance")
        snapshot = await aggregator_of(a, b).fetch_market_snapshot("BTCUSDT")
        assert snapshot.data_source == "binance"

    async def test_non_source_errors_propagate(self):
        class Broken(FakeAdapter):
            async def fetch_klines(self, symbol, timeframe, limit):
                raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await aggregator_of(Broken("okx"), FakeAdapter("binance")).fetch_klines(
                "BTCUSDT", TimeFrame.H1, 10
            )

    def test_requires_adapters(self):
        with pytest.raises(ValueError):
            MarketDataAggregator([])


class TestBuildAdapters:
    def test_default_order(self):
        adapters = build_adapters(["okx", "binance", "gate", "mexc"])
        assert [type(a) for a in adapters] == [OkxAdapter, BinanceAdapter, GateAdapter, MexcAdapter]

    def test_custom_order(self):
        assert [a.name for a in build_adapters(["MEXC", "okx"])] == ["mexc", "okx"]

    def test_unknown_source(self):
        with pytest.raises(ValueError, match="kraken"):
            build_adapters(["kraken"])

    async def test_close_closes_adapters(self):
        a, b = FakeAdapter("okx"), FakeAdapter("binance")
        await aggregator_of(a, b).close()
        assert a.closed and b.closed


# ── Symbol cache ────────────────────────────────────────────────────

class TestSymbolUniverseCache:
    def test_stale_until_refreshed(self, clock):
        cache = SymbolUniverseCache(ttl_seconds=300, clock=clock)
        assert cache.is_stale()
        assert cache.age() is None
        cache.refresh({"okx": ["BTCUSDT"]})
        assert not cache.is_stale()

    def test_ttl(self, clock):
        cache = SymbolUniverseCache(ttl_seconds=300, clock=clock)
        cache.refresh({"okx": ["BTCUSDT"]})
        clock.advance(299)
        assert not cache.is_stale()
        clock.advance(1)
        assert cache.is_stale()
        assert cache.age() == 300

    def test_failed_source_keeps_previous_list(self, clock):
        cache = SymbolUniverseCache(clock=clock)
        cache.refresh({"okx": ["AAAUSDT"], "gate": ["BBBUSDT"]})
        cache.refresh({"okx": TransportError("okx", "timeout"), "gate": ["CCCUSDT"]})
        assert cache.get() == ["AAAUSDT", "CCCUSDT"]

    def test_union_deduplicated_and_ranked(self, clock):
        cache = SymbolUniverseCache(clock=clock)
        cache.refresh({"okx": ["ZZZUSDT", "ETHUSDT"], "binance": ["BTCUSDT", "ETHUSDT", "AAAUSDT"]})
        assert cache.get() == ["BTCUSDT", "ETHUSDT", "AAAUSDT", "ZZZUSDT"]

    def test_empty_union_is_stale(self, clock):
        cache = SymbolUniverseCache(clock=clock)
        cache.refresh({"okx": TransportError("okx", "down")})
        assert cache.is_stale()


class TestSearch:
    async def test_single_fan_out_within_ttl(self, clock):
        a = FakeAdapter("okx", symbols=["BTCUSDT", "SOLUSDT"])
        b = FakeAdapter("binance", symbols=["BTCUSDT", "PEPEUSDT"])
        aggregator = aggregator_of(a, b, clock=clock)

        await aggregator.search_symbols("BTC")
        clock.advance(100)
        await aggregator.search_symbols("SOL")
        assert (a.symbol_calls, b.symbol_calls) == (1, 1)

        clock.advance(300)
        await aggregator.search_symbols("SOL")
        assert (a.symbol_calls, b.symbol_calls) == (2, 2)

    async def test_partial_failure_still_serves(self, clock):
        a = FakeAdapter("okx", fail=True)
        b = FakeAdapter("binance", symbols=["PEPEUSDT"])
        results = await aggregator_of(a, b, clock=clock).search_symbols("pepe")
        assert results == ["PEPEUSDT"]

    async def test_falls_back_to_popular(self, clock):
        a = FakeAdapter("okx", fail=True)
        results = await aggregator_of(a, clock=clock).search_symbols("")
        assert results == POPULAR_SYMBOLS[:30]

    async def test_exact_match_first(self, clock):
        a = FakeAdapter("okx", symbols=["ETHUSDT", "ETHFIUSDT", "ETHBTC"])
        results = await aggregator_of(a, clock=clock).search_symbols("ethbtc")
        assert results[0] == "ETHBTC"

    def test_rank_popular_first(self):
        ranked = rank_symbols(["ZECUSDT", "ETHUSDT", "AAVEUSDT", "BTCUSDT"])
        assert ranked == ["BTCUSDT", "ETHUSDT", "AAVEUSDT", "ZECUSDT"]

    def test_filter_case_insensitive_with_limit(self):
        ranked = ["BTCUSDT", "ETHUSDT", "SOLUSDT", "SOLVUSDT"]
        assert filter_symbols(ranked, "sol", limit=1) == ["SOLUSDT"]
        assert filter_symbols(ranked, "usdt", limit=2) == ["BTCUSDT", "ETHUSDT"]
