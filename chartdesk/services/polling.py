"""
Dashboard poller.

Re-fetches klines and the 24h snapshot for one symbol/timeframe on a fixed
interval and recomputes indicators. Every tick runs as its own task, so a
slow poll never delays the next one; results are applied last-writer-wins
by sequence number.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from chartdesk.core.config import settings
from chartdesk.schemas.indicators import IndicatorValues
from chartdesk.schemas.market import KlineResult, MarketSnapshot, TimeFrame
from chartdesk.services.base import ServiceError
from chartdesk.services.indicators import get_indicator_service
from chartdesk.services.market_data.aggregator import MarketDataAggregator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardState:
    """One complete poll result. Replaced as a whole, never patched."""

    sequence: int
    klines: KlineResult
    snapshot: MarketSnapshot
    indicators: IndicatorValues


class LatestResultGate:
    """
    Applies a result only if it is newer than everything applied so far.

    Usage:
        gate = LatestResultGate()
        seq = gate.next_sequence()
        ...
        if gate.offer(seq, result):
            render(gate.latest)
    """

    def __init__(self):
        self._issued = 0
        self._applied = 0
        self.latest = None
        self.stale_discarded = 0

    @property
    def applied_sequence(self) -> int:
        return self._applied

    def next_sequence(self) -> int:
        self._issued += 1
        return self._issued

    def offer(self, sequence: int, result) -> bool:
        """Apply ``result`` if ``sequence`` beats the last applied one."""
        if sequence <= self._applied:
            self.stale_discarded += 1
            logger.debug(
                f"Discarding stale poll #{sequence} (applied #{self._applied})"
            )
            return False
        self._applied = sequence
        self.latest = result
        return True


class DashboardPoller:
    """
    Periodic klines + snapshot + indicators refresh for one chart.

    Usage:
        poller = DashboardPoller(aggregator, "BTCUSDT", TimeFrame.H1)
        await poller.start()
        state = poller.state
        await poller.stop()
    """

    def __init__(
        self,
        aggregator: MarketDataAggregator,
        symbol: str,
        timeframe: TimeFrame,
        interval: Optional[float] = None,
        limit: Optional[int] = None,
        on_update: Optional[Callable[[DashboardState], None]] = None,
    ):
        self.aggregator = aggregator
        self.symbol = symbol
        self.timeframe = timeframe
        self.interval = interval if interval is not None else settings.poll_interval_seconds
        self.limit = limit or settings.default_kline_limit
        self.gate = LatestResultGate()
        self._on_update = on_update
        self._loop_task: Optional[asyncio.Task] = None
        self._inflight: set[asyncio.Task] = set()
        self._running = False
        self.failures = 0

    @property
    def state(self) -> Optional[DashboardState]:
        return self.gate.latest

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_once(self) -> Optional[DashboardState]:
        """
        One poll. Returns the new state if it was applied, None if the poll
        failed or was overtaken by a newer one.
        """
        sequence = self.gate.next_sequence()
        try:
            klines, snapshot = await asyncio.gather(
                self.aggregator.fetch_klines(self.symbol, self.timeframe, self.limit),
                self.aggregator.fetch_market_snapshot(self.symbol),
            )
        except ServiceError as e:
            self.failures += 1
            logger.warning(
                f"Poll #{sequence} for {self.symbol} {self.timeframe.value} failed: {e.message}"
            )
            return None

        indicators = get_indicator_service().calculate_indicators(klines.klines)
        state = DashboardState(
            sequence=sequence,
            klines=klines,
            snapshot=snapshot,
            indicators=indicators,
        )
        if not self.gate.offer(sequence, state):
            return None

        if self._on_update is not None:
            self._on_update(state)
        return state

    def tick(self) -> asyncio.Task:
        """Start one poll as an independent task."""
        task = asyncio.create_task(self.run_once())
        self._inflight.add(task)
        task.add_done_callback(self._poll_done)
        return task

    def _poll_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Poll for {self.symbol} crashed: {error!r}", exc_info=error)

    async def start(self) -> None:
        """Start polling; the first poll fires immediately."""
        if self._running:
            logger.warning(f"Poller for {self.symbol} already running")
            return
        self._running = True
        self._loop_task = asyncio.create_task(self._loop())
        logger.info(
            f"Polling {self.symbol} {self.timeframe.value} every {self.interval}s"
        )

    async def stop(self) -> None:
        """Stop polling and cancel polls still in flight."""
        self._running = False
        tasks = list(self._inflight)
        if self._loop_task:
            tasks.append(self._loop_task)
            self._loop_task = None

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        logger.info(f"Stopped polling {self.symbol}")

    async def _loop(self) -> None:
        while self._running:
            self.tick()
            await asyncio.sleep(self.interval)
