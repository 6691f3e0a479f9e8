"""
CONTRACT 3: Analysis Report

Output of the language model, validated before it reaches the dashboard.
The model interprets numbers from the Indicator Engine; it never computes them.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ScenarioType(str, Enum):
    BULL = "bull"
    BEAR = "bear"
    NEUTRAL = "neutral"


class Stance(str, Enum):
    AGGRESSIVE = "aggressive"
    STABLE = "stable"
    WAIT = "wait"


class AnalysisScenario(BaseModel):
    type: ScenarioType
    probability: float = Field(..., ge=0, le=100)
    trigger: str
    target: float
    stop_loss: float = Field(..., alias="stopLoss")
    rrr: Optional[str] = None
    description: str

    model_config = ConfigDict(populate_by_name=True)


class ResonanceRating(BaseModel):
    rating: str
    strongest_signal: str = Field(..., alias="strongestSignal")

    model_config = ConfigDict(populate_by_name=True)


class AnalysisSummary(BaseModel):
    stance: Stance
    position: float = Field(..., ge=0, le=100, description="Suggested position size in %")
    advice: str


class TechnicalAnalysis(BaseModel):
    """Narrative trade-idea report for one symbol."""

    snapshot: str
    patterns: Optional[str] = None
    indicators: str
    timeframes: str = ""
    resonance: Optional[ResonanceRating] = None
    scenarios: list[AnalysisScenario] = Field(..., min_length=1)
    invalid_signal: Optional[str] = Field(default=None, alias="invalidSignal")
    risks: list[str] = Field(default_factory=list)
    summary: AnalysisSummary

    model_config = ConfigDict(populate_by_name=True)


class AnalysisRecord(BaseModel):
    """A generated report as stored in the cache."""

    symbol: str
    timeframe: str
    generated_at: datetime
    model: str
    analysis: TechnicalAnalysis
