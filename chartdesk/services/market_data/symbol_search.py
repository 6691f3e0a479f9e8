"""
Symbol ranking and search for autocomplete.
"""

from typing import Iterable

from chartdesk.schemas.market import POPULAR_SYMBOLS, canonical_symbol

DEFAULT_SEARCH_LIMIT = 30

_POPULAR_RANK = {symbol: i for i, symbol in enumerate(POPULAR_SYMBOLS)}


def rank_symbols(symbols: Iterable[str]) -> list[str]:
    """Deduplicate, then popular symbols first (in allow-list order), rest alphabetical."""
    unique = set(symbols)
    return sorted(
        unique,
        key=lambda s: (0, _POPULAR_RANK[s], s) if s in _POPULAR_RANK else (1, 0, s),
    )


def filter_symbols(
    ranked: list[str], query: str, limit: int = DEFAULT_SEARCH_LIMIT
) -> list[str]:
    """
    Case-insensitive substring match over an already ranked list.

    An exact match is moved to the front; otherwise ranking is preserved.
    An empty query returns the head of the ranked list.
    """
    query = canonical_symbol(query)
    if not query:
        return ranked[:limit]

    results = []

    # Exact symbol match first
    if query in ranked:
        results.append(query)

    # Substring match
    for symbol in ranked:
        if query in symbol and symbol != query:
            results.append(symbol)

    return results[:limit]
