"""
LLM Analysis Report Service

CONTRACT:
    Input:  symbol + TimeFrame
    Output: AnalysisRecord (TechnicalAnalysis + metadata)

RESPONSIBILITIES:
    - Serialize the last 30 klines and latest IndicatorValues into a prompt
    - Call the primary provider, fall back to the secondary on failure
    - Validate the model's JSON into TechnicalAnalysis
    - Cache the latest report per symbol

LLM USAGE:
    - Primary: any OpenAI-compatible chat endpoint (openai SDK, base_url)
    - Fallback: Anthropic Claude

CRITICAL RULES:
    - LLM does NO math - all numbers come from the Indicator Engine
    - Reports must include scenarios and risks
    - Invalid model output is rejected, never patched up
"""

from chartdesk.services.llm.client import (
    LLMClient,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    get_llm_client,
)
from chartdesk.services.llm.prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt
from chartdesk.services.llm.parser import parse_analysis_response
from chartdesk.services.llm.analysis import AnalysisService, get_analysis_service

__all__ = [
    # Client
    "LLMClient",
    "LLMConfig",
    "LLMProvider",
    "LLMResponse",
    "get_llm_client",
    # Prompt
    "ANALYSIS_SYSTEM_PROMPT",
    "build_analysis_prompt",
    "parse_analysis_response",
    # Service
    "AnalysisService",
    "get_analysis_service",
]
