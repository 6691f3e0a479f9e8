"""
Cache module for ChartDesk.

Provides Redis caching for generated analysis reports.
"""

from chartdesk.services.cache.redis_client import (
    AnalysisCache,
    get_analysis_cache,
    init_redis,
    close_redis,
)

__all__ = [
    "AnalysisCache",
    "get_analysis_cache",
    "init_redis",
    "close_redis",
]
