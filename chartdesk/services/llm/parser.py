"""
Parse model output into a TechnicalAnalysis.
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from chartdesk.schemas.analysis import TechnicalAnalysis

logger = logging.getLogger(__name__)


def extract_json_object(text: str) -> Optional[dict]:
    """
    Return the first JSON object embedded in ``text``.

    Handles markdown code fences and prose before or after the object.
    """
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(obj, dict):
            return obj
        start = text.find("{", start + 1)
    return None


def parse_analysis_response(text: str) -> Optional[TechnicalAnalysis]:
    """Validate model output; None when unparsable or missing required fields."""
    if not text:
        return None

    data = extract_json_object(text)
    if data is None:
        logger.error(f"No JSON object in LLM response: {text[:200]}")
        return None

    try:
        return TechnicalAnalysis.model_validate(data)
    except ValidationError as e:
        logger.error(f"LLM response failed validation: {e.error_count()} error(s)")
        return None
