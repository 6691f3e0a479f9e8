"""
Redis cache client for generated analysis reports.

One report is kept per symbol, shared across timeframes, so switching the
chart timeframe does not hide the last report.
"""

import logging
import time
from typing import Dict, Optional, Tuple

import redis.asyncio as redis

from chartdesk.core.config import settings
from chartdesk.schemas.analysis import AnalysisRecord
from chartdesk.schemas.market import canonical_symbol

logger = logging.getLogger(__name__)

# Global Redis connection pool
_redis_pool: Optional[redis.Redis] = None


async def init_redis() -> Optional[redis.Redis]:
    """
    Initialize Redis connection pool.
    Called on application startup.
    """
    global _redis_pool

    if _redis_pool is not None:
        return _redis_pool

    try:
        _redis_pool = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        # Test connection
        await _redis_pool.ping()
        logger.info(f"Redis connected: {settings.redis_url}")
        return _redis_pool
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Using in-memory fallback.")
        _redis_pool = None
        return None


async def close_redis() -> None:
    """Close Redis connection pool."""
    global _redis_pool
    if _redis_pool:
        await _redis_pool.aclose()
        _redis_pool = None
        logger.info("Redis connection closed")


def get_redis() -> Optional[redis.Redis]:
    """Get the Redis connection pool."""
    return _redis_pool


class AnalysisCache:
    """
    Latest analysis report per symbol.

    Keys:
    - analysis:{symbol} → JSON AnalysisRecord

    Falls back to process memory when Redis is unavailable.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self._redis = redis_client
        self.ttl_seconds = ttl_seconds or settings.analysis_cache_ttl_seconds
        self._memory_cache: Dict[str, Tuple[float, str]] = {}

    @property
    def redis(self) -> Optional[redis.Redis]:
        return self._redis or _redis_pool

    @staticmethod
    def _key(symbol: str) -> str:
        return f"analysis:{canonical_symbol(symbol)}"

    def _memory_get(self, key: str) -> Optional[str]:
        entry = self._memory_cache.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._memory_cache[key]
            return None
        return value

    def _memory_set(self, key: str, value: str) -> None:
        self._memory_cache[key] = (time.monotonic() + self.ttl_seconds, value)

    async def set_analysis(self, record: AnalysisRecord) -> bool:
        """Store the report, replacing any previous one for the symbol."""
        key = self._key(record.symbol)
        value = record.model_dump_json(by_alias=True)

        if self.redis:
            try:
                await self.redis.set(key, value, ex=self.ttl_seconds)
                return True
            except Exception as e:
                logger.debug(f"Redis set_analysis failed: {e}")

        self._memory_set(key, value)
        return True

    async def get_analysis(self, symbol: str) -> Optional[AnalysisRecord]:
        """Cached report for the symbol, or None."""
        key = self._key(symbol)
        value = None

        if self.redis:
            try:
                value = await self.redis.get(key)
            except Exception as e:
                logger.debug(f"Redis get_analysis failed: {e}")

        # Reports written while Redis was failing live only in memory
        if not value:
            value = self._memory_get(key)

        if not value:
            return None
        return AnalysisRecord.model_validate_json(value)


# Singleton instance
_analysis_cache: Optional[AnalysisCache] = None


def get_analysis_cache() -> AnalysisCache:
    """Get the analysis cache singleton."""
    global _analysis_cache
    if _analysis_cache is None:
        _analysis_cache = AnalysisCache()
    return _analysis_cache
