"""
Analysis Report API Endpoints

Generate and fetch LLM trade-idea reports.
"""

from fastapi import APIRouter, Depends, HTTPException

from chartdesk.schemas.analysis import AnalysisRecord
from chartdesk.schemas.market import TimeFrame
from chartdesk.services.base import AllSourcesExhausted, LLMUnavailableError
from chartdesk.services.llm import AnalysisService, get_analysis_service
from chartdesk.api.v1.endpoints.market import sources_exhausted

router = APIRouter()


@router.post("/{symbol}", response_model=AnalysisRecord)
async def generate_analysis(
    symbol: str,
    timeframe: TimeFrame = TimeFrame.H4,
    service: AnalysisService = Depends(get_analysis_service),
):
    """
    Generate a fresh report from current klines and indicators.

    Replaces the cached report for the symbol.
    """
    try:
        return await service.generate_analysis(symbol, timeframe)
    except AllSourcesExhausted as e:
        raise sources_exhausted(e)
    except LLMUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.message)


@router.get("/{symbol}", response_model=AnalysisRecord)
async def get_analysis(
    symbol: str,
    service: AnalysisService = Depends(get_analysis_service),
):
    """Latest cached report for the symbol, whatever timeframe produced it."""
    record = await service.get_cached_analysis(symbol)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No analysis for {symbol}")
    return record
