"""
LLM Prompt Templates

Prompt for the per-symbol analysis report.

CRITICAL RULES (enforced in the prompt):
- LLM does NO math - all numbers come from kline and indicator data
- Only high-probability scenarios with explicit triggers, never certainty
- Always include risks
- Output is a single JSON object matching TechnicalAnalysis
"""

import json
from datetime import datetime, timezone
from typing import Optional, Sequence

from chartdesk.schemas.indicators import IndicatorValues
from chartdesk.schemas.market import Kline, TimeFrame

# Number of most recent klines serialized into the prompt
PROMPT_KLINE_COUNT = 30

NOT_AVAILABLE = "N/A"


# =============================================================================
# ANALYSIS REPORT PROMPT
# =============================================================================

ANALYSIS_SYSTEM_PROMPT = """You are a senior crypto quantitative trader and technical analyst with more than ten years of experience.

YOUR ROLE:
- Read the price action and indicator values you are given
- Describe the market in plain, concrete terms
- Lay out bull, bear and neutral scenarios with probabilities and triggers
- List the risks that would invalidate the read

CRITICAL RULES:
1. NEVER do math beyond reading the numbers provided. Do not invent indicator values.
2. NEVER say price "will definitely" rise or fall. Give high-probability scenarios only.
3. Scenario probabilities should add up to roughly 100.
4. ALWAYS include risks.
5. Respond with ONE JSON object and nothing else.

REMEMBER: You are providing analysis, not financial advice."""

ANALYSIS_USER_PROMPT_TEMPLATE = """Pair: {symbol}
Timeframe: {timeframe}
Current price: {current_price}
Recent high: {recent_high}
Recent low: {recent_low}

TECHNICAL INDICATORS:
- MA7: {ma7}
- MA21: {ma21}
- MA50: {ma50}
- MA200: {ma200}
- EMA12: {ema12}, EMA26: {ema26}
- RSI(14): {rsi}
- RSI(13): {rsi13}, RSI(42): {rsi42}
- MACD: DIF={macd}, DEA={macd_signal}, Histogram={macd_histogram}
- Bollinger: Upper={bb_upper}, Middle={bb_middle}, Lower={bb_lower}
- KDJ: K={kdj_k}, D={kdj_d}, J={kdj_j}
- Williams %R(14): {williams_r}

LAST {kline_count} KLINES:
{kline_data}

Respond strictly in this JSON format:
{{
  "snapshot": "1-7 day market snapshot: price action, volume change, key support and resistance",
  "patterns": "candlestick and chart patterns, if any",
  "indicators": "reading of moving averages, MACD, RSI, Bollinger Bands, KDJ and volume",
  "timeframes": "multi-timeframe resonance: strong signals or divergence warnings",
  "resonance": {{"rating": "strong/medium/weak", "strongestSignal": "the single strongest signal"}},
  "scenarios": [
    {{"type": "bull", "probability": 40, "trigger": "break above X", "target": <number>, "stopLoss": <number>, "rrr": "1:2", "description": "..."}},
    {{"type": "bear", "probability": 35, "trigger": "break below Y", "target": <number>, "stopLoss": <number>, "rrr": "1:2", "description": "..."}},
    {{"type": "neutral", "probability": 25, "trigger": "range between X and Y", "target": <number>, "stopLoss": <number>, "rrr": "1:1", "description": "..."}}
  ],
  "invalidSignal": "what would invalidate this analysis",
  "risks": ["risk 1", "risk 2", "risk 3"],
  "summary": {{"stance": "aggressive/stable/wait", "position": <0-100 suggested position %>, "advice": "one-sentence recommendation"}}
}}"""


def format_value(value: Optional[float], decimals: int = 2) -> str:
    """Format a nullable number for the prompt."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.{decimals}f}"


def _kline_rows(klines: Sequence[Kline]) -> str:
    rows = [
        {
            "time": datetime.fromtimestamp(k.time, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M"),
            "o": f"{k.open:.2f}",
            "h": f"{k.high:.2f}",
            "l": f"{k.low:.2f}",
            "c": f"{k.close:.2f}",
            "v": f"{k.volume / 1e6:.2f}M",
        }
        for k in klines
    ]
    return json.dumps(rows, indent=2)


def build_analysis_prompt(
    symbol: str,
    timeframe: TimeFrame,
    klines: Sequence[Kline],
    values: IndicatorValues,
) -> str:
    """
    Format the analysis prompt from klines and the latest indicator values.

    Only the last PROMPT_KLINE_COUNT klines are serialized. Missing indicator
    values render as N/A.
    """
    if not klines:
        raise ValueError("Cannot build an analysis prompt without klines")

    recent = list(klines)[-PROMPT_KLINE_COUNT:]
    macd = values.macd
    bb = values.bollinger_bands
    kdj = values.kdj

    return ANALYSIS_USER_PROMPT_TEMPLATE.format(
        symbol=symbol,
        timeframe=timeframe.value,
        current_price=klines[-1].close,
        recent_high=max(k.high for k in recent),
        recent_low=min(k.low for k in recent),
        ma7=format_value(values.ma7),
        ma21=format_value(values.ma21),
        ma50=format_value(values.ma50),
        ma200=format_value(values.ma200),
        ema12=format_value(values.ema12),
        ema26=format_value(values.ema26),
        rsi=format_value(values.rsi, 1),
        rsi13=format_value(values.rsi13, 1),
        rsi42=format_value(values.rsi42, 1),
        macd=format_value(macd.macd if macd else None),
        macd_signal=format_value(macd.signal if macd else None),
        macd_histogram=format_value(macd.histogram if macd else None),
        bb_upper=format_value(bb.upper if bb else None),
        bb_middle=format_value(bb.middle if bb else None),
        bb_lower=format_value(bb.lower if bb else None),
        kdj_k=format_value(kdj.k if kdj else None, 1),
        kdj_d=format_value(kdj.d if kdj else None, 1),
        kdj_j=format_value(kdj.j if kdj else None, 1),
        williams_r=format_value(values.williams_r, 1),
        kline_count=len(recent),
        kline_data=_kline_rows(recent),
    )
