"""Tests for the exchange adapters — wire formats, ordering and error mapping."""

import aiohttp
import pytest
from pydantic import ValidationError

from chartdesk.schemas.market import Kline, TimeFrame
from chartdesk.services.base import SourceDataError, TransportError
from chartdesk.services.market_data import (
    BinanceAdapter,
    ExchangeAdapter,
    GateAdapter,
    MexcAdapter,
    OkxAdapter,
)
from chartdesk.services.market_data import binance_adapter, gate_adapter, mexc_adapter, okx_adapter
from chartdesk.services.market_data.gate_adapter import from_gate_symbol, to_gate_symbol
from chartdesk.services.market_data.http import normalize_klines
from chartdesk.services.market_data.interface import split_symbol
from chartdesk.services.market_data.okx_adapter import from_okx_symbol, to_okx_symbol
from tests.conftest import FakeResponse, FakeSession, make_klines

T0_MS = 1_700_000_000_000
HOUR_MS = 3_600_000


def okx(payload, status=200):
    return FakeResponse({"code": "0", "msg": "", "data": payload}, status=status)


def binance_rows(n=3):
    return [
        [T0_MS + i * HOUR_MS, "100", "110", "90", str(101 + i), "5", T0_MS + (i + 1) * HOUR_MS - 1, "500"]
        for i in range(n)
    ]


def assert_ascending_unique(klines):
    times = [k.time for k in klines]
    assert times == sorted(set(times))


# ── Contract ────────────────────────────────────────────────────────

class TestContract:
    @pytest.mark.parametrize("adapter_cls", [OkxAdapter, BinanceAdapter, GateAdapter, MexcAdapter])
    def test_structural_protocol(self, adapter_cls):
        assert isinstance(adapter_cls(session=FakeSession()), ExchangeAdapter)

    @pytest.mark.parametrize("module", [okx_adapter, binance_adapter, gate_adapter, mexc_adapter])
    def test_interval_map_is_total(self, module):
        assert set(module.INTERVAL_MAP) == set(TimeFrame)

    def test_source_specific_tokens(self):
        assert okx_adapter.INTERVAL_MAP[TimeFrame.H1] == "1H"
        assert binance_adapter.INTERVAL_MAP[TimeFrame.W1] == "1w"
        assert gate_adapter.INTERVAL_MAP[TimeFrame.W1] == "7d"
        assert mexc_adapter.INTERVAL_MAP[TimeFrame.H1] == "60m"
        assert mexc_adapter.INTERVAL_MAP[TimeFrame.W1] == "1W"


class TestSymbolMapping:
    def test_split(self):
        assert split_symbol("BTCUSDT") == ("BTC", "USDT")
        assert split_symbol("ETHBTC") == ("ETH", "BTC")
        assert split_symbol("BTCFDUSD") == ("BTC", "FDUSD")
        assert split_symbol("USDT") is None
        assert split_symbol("FOO") is None

    def test_okx_round_trip(self):
        assert to_okx_symbol("btcusdt") == "BTC-USDT"
        assert from_okx_symbol("BTC-USDT") == "BTCUSDT"

    def test_gate_round_trip(self):
        assert to_gate_symbol("BTC/USDT") == "BTC_USDT"
        assert from_gate_symbol("btc_usdt") == "BTCUSDT"

    async def test_unmappable_symbol_is_source_error(self):
        session = FakeSession()
        with pytest.raises(SourceDataError):
            await OkxAdapter(session=session).fetch_klines("FOO", TimeFrame.H1, 10)
        assert session.calls == []


class TestNormalize:
    def test_sorts_and_dedupes(self):
        a, b, c = make_klines([1.0, 2.0, 3.0])
        dup = b.model_copy(update={"close": 9.0})
        result = normalize_klines([c, b, dup, a])
        assert [k.time for k in result] == [a.time, b.time, c.time]
        assert result[1].close == 2.0

    def test_kline_range_enforced(self):
        with pytest.raises(ValidationError):
            Kline(time=1, open=100, high=50, low=200, close=300, volume=1)
        flat = Kline(time=1, open=5, high=5, low=5, close=5, volume=0)
        assert flat.high == flat.low


# ── OKX ─────────────────────────────────────────────────────────────

class TestOkx:
    async def test_klines_reversed_to_ascending(self):
        rows = [
            [str(T0_MS + i * HOUR_MS), "100", "110", "90", str(100 + i), "5", "500", "500", "1"]
            for i in reversed(range(4))
        ]
        session = FakeSession({"/market/candles": okx(rows)})
        klines = await OkxAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 500)

        assert_ascending_unique(klines)
        assert klines[0].time == T0_MS // 1000
        assert [k.close for k in klines] == [100.0, 101.0, 102.0, 103.0]

        url, params = session.calls[0]
        assert url.endswith("/market/candles")
        assert params == {"instId": "BTC-USDT", "bar": "1H", "limit": 300}

    async def test_error_envelope(self):
        session = FakeSession({"/market/candles": FakeResponse({"code": "51001", "msg": "Instrument ID does not exist", "data": []})})
        with pytest.raises(SourceDataError, match="Instrument ID"):
            await OkxAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 10)

    async def test_empty_data(self):
        session = FakeSession({"/market/candles": okx([])})
        with pytest.raises(SourceDataError):
            await OkxAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 10)

    async def test_snapshot_change_from_open(self):
        ticker = {"last": "110", "open24h": "100", "high24h": "115", "low24h": "95", "vol24h": "1234"}
        session = FakeSession({"/market/ticker": okx([ticker])})
        snapshot = await OkxAdapter(session=session).fetch_snapshot("BTCUSDT")
        assert snapshot.data_source == "okx"
        assert snapshot.change_24h == pytest.approx(10.0)
        assert snapshot.change_percent_24h == pytest.approx(10.0)
        assert snapshot.volume_24h == 1234.0

    async def test_symbols_filtered(self):
        instruments = [
            {"instId": "BTC-USDT", "quoteCcy": "USDT", "state": "live"},
            {"instId": "ETH-USDC", "quoteCcy": "USDC", "state": "live"},
            {"instId": "OLD-USDT", "quoteCcy": "USDT", "state": "suspend"},
        ]
        session = FakeSession({"/public/instruments": okx(instruments)})
        assert await OkxAdapter(session=session).fetch_symbols() == ["BTCUSDT"]

    async def test_symbols_non_object_rows(self):
        session = FakeSession({"/public/instruments": okx(["BTC-USDT"])})
        with pytest.raises(SourceDataError, match="malformed instruments"):
            await OkxAdapter(session=session).fetch_symbols()


# ── Binance ─────────────────────────────────────────────────────────

class TestBinance:
    async def test_klines(self):
        session = FakeSession({"/klines": FakeResponse(binance_rows())})
        klines = await BinanceAdapter(session=session).fetch_klines("BTC-USDT", TimeFrame.D1, 3)
        assert_ascending_unique(klines)
        assert klines[-1].close == 103.0
        assert session.calls[0][1] == {"symbol": "BTCUSDT", "interval": "1d", "limit": 3}

    async def test_error_envelope(self):
        session = FakeSession({"/klines": FakeResponse({"code": -1121, "msg": "Invalid symbol."})})
        with pytest.raises(SourceDataError, match="Invalid symbol"):
            await BinanceAdapter(session=session).fetch_klines("XYZUSDT", TimeFrame.H1, 10)

    async def test_non_2xx_is_transport_error(self):
        session = FakeSession({"/klines": FakeResponse(status=451, text="restricted location")})
        with pytest.raises(TransportError) as exc:
            await BinanceAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 10)
        assert exc.value.details["status"] == 451
        assert exc.value.source == "binance"

    async def test_connection_error_is_transport_error(self):
        session = FakeSession(error=aiohttp.ClientConnectionError("refused"))
        with pytest.raises(TransportError):
            await BinanceAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 10)

    async def test_invalid_json_is_transport_error(self):
        session = FakeSession({"/klines": FakeResponse(text="<html>oops</html>")})
        with pytest.raises(TransportError):
            await BinanceAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 10)

    async def test_malformed_row(self):
        session = FakeSession({"/klines": FakeResponse([[T0_MS, "100"]])})
        with pytest.raises(SourceDataError):
            await BinanceAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 10)

    async def test_snapshot(self):
        ticker = {
            "lastPrice": "101", "priceChange": "1", "priceChangePercent": "1.0",
            "highPrice": "105", "lowPrice": "95", "volume": "10",
        }
        session = FakeSession({"/ticker/24hr": FakeResponse(ticker)})
        snapshot = await BinanceAdapter(session=session).fetch_snapshot("btcusdt")
        assert snapshot.symbol == "BTCUSDT"
        assert snapshot.price == 101.0
        assert snapshot.data_source == "binance"

    async def test_symbols_non_object_rows(self):
        session = FakeSession({"/exchangeInfo": FakeResponse({"symbols": [["BTCUSDT", "TRADING"]]})})
        with pytest.raises(SourceDataError):
            await BinanceAdapter(session=session).fetch_symbols()

    async def test_injected_session_not_closed(self):
        session = FakeSession()
        await BinanceAdapter(session=session).close()
        assert session.closed is False


# ── Gate ────────────────────────────────────────────────────────────

class TestGate:
    async def test_row_permutation(self):
        # [t, quote_volume, close, high, low, open, base_amount, closed]
        rows = [
            ["1700000000", "5000", "102", "110", "90", "100", "50", "true"],
            ["1700003600", "6000", "103", "111", "91", "102", "60", "false"],
        ]
        session = FakeSession({"/spot/candlesticks": FakeResponse(rows)})
        klines = await GateAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.W1, 2)

        first = klines[0]
        assert (first.time, first.open, first.high, first.low, first.close, first.volume) == (
            1700000000, 100.0, 110.0, 90.0, 102.0, 50.0,
        )
        assert_ascending_unique(klines)
        assert session.calls[0][1]["currency_pair"] == "BTC_USDT"
        assert session.calls[0][1]["interval"] == "7d"

    async def test_inconsistent_candle_rejected(self):
        # high below low and below the body
        rows = [["1700000000", "10", "300", "50", "200", "100", "1", "true"]]
        session = FakeSession({"/spot/candlesticks": FakeResponse(rows)})
        with pytest.raises(SourceDataError, match="malformed kline row"):
            await GateAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 10)

    async def test_error_envelope(self):
        body = {"label": "INVALID_CURRENCY_PAIR", "message": "Invalid currency pair"}
        session = FakeSession({"/spot/candlesticks": FakeResponse(body)})
        with pytest.raises(SourceDataError, match="Invalid currency pair"):
            await GateAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 10)

    async def test_empty_payload(self):
        session = FakeSession({"/spot/candlesticks": FakeResponse([])})
        with pytest.raises(SourceDataError):
            await GateAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 10)

    async def test_snapshot_change_from_percentage(self):
        ticker = {"last": "110", "change_percentage": "10", "high_24h": "111", "low_24h": "99", "base_volume": "7"}
        session = FakeSession({"/spot/tickers": FakeResponse([ticker])})
        snapshot = await GateAdapter(session=session).fetch_snapshot("BTCUSDT")
        assert snapshot.change_percent_24h == 10.0
        assert snapshot.change_24h == pytest.approx(10.0)
        assert snapshot.volume_24h == 7.0

    async def test_symbols_filtered(self):
        pairs = [
            {"id": "BTC_USDT", "quote": "USDT", "trade_status": "tradable"},
            {"id": "DEAD_USDT", "quote": "USDT", "trade_status": "untradable"},
            {"id": "ETH_BTC", "quote": "BTC", "trade_status": "tradable"},
        ]
        session = FakeSession({"/spot/currency_pairs": FakeResponse(pairs)})
        assert await GateAdapter(session=session).fetch_symbols() == ["BTCUSDT"]

    async def test_symbols_non_object_rows(self):
        session = FakeSession({"/spot/currency_pairs": FakeResponse(["BTC_USDT"])})
        with pytest.raises(SourceDataError):
            await GateAdapter(session=session).fetch_symbols()


# ── MEXC ────────────────────────────────────────────────────────────

class TestMexc:
    async def test_klines_interval_token(self):
        session = FakeSession({"/klines": FakeResponse(binance_rows(2))})
        klines = await MexcAdapter(session=session).fetch_klines("BTCUSDT", TimeFrame.H1, 2)
        assert len(klines) == 2
        assert session.calls[0][1]["interval"] == "60m"

    async def test_snapshot_percent_from_open(self):
        ticker = {
            "lastPrice": "110", "openPrice": "100", "priceChange": "10",
            "priceChangePercent": "0.1", "highPrice": "112", "lowPrice": "98", "volume": "3",
        }
        session = FakeSession({"/ticker/24hr": FakeResponse(ticker)})
        snapshot = await MexcAdapter(session=session).fetch_snapshot("BTCUSDT")
        assert snapshot.change_percent_24h == pytest.approx(10.0)
        assert snapshot.data_source == "mexc"

    async def test_symbols_online_only(self):
        info = {
            "symbols": [
                {"symbol": "BTCUSDT", "quoteAsset": "USDT", "status": "1", "isSpotTradingAllowed": True},
                {"symbol": "ETHUSDT", "quoteAsset": "USDT", "status": "2", "isSpotTradingAllowed": True},
                {"symbol": "SOLUSDT", "quoteAsset": "USDT", "status": "ENABLED", "isSpotTradingAllowed": False},
            ]
        }
        session = FakeSession({"/exchangeInfo": FakeResponse(info)})
        assert await MexcAdapter(session=session).fetch_symbols() == ["BTCUSDT"]

    async def test_symbols_non_object_rows(self):
        session = FakeSession({"/exchangeInfo": FakeResponse({"symbols": ["BTCUSDT"]})})
        with pytest.raises(SourceDataError):
            await MexcAdapter(session=session).fetch_symbols()
