from models.candidate import Candidate
from models.evaluation import AIEvaluation, EventType
from utils.errors import EvaluationParseError
from typing import Any, Optional
import json
import logging
import math
import re

logger = logging.getLogger(__name__)

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")


def clamp_score(value: Any) -> float:
    """Coerce a model score into [0, 1]; anything non-numeric becomes 0"""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return max(0.0, min(1.0, number))


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_START.sub("", text)
        text = _FENCE_END.sub("", text)
    return text.strip()


def parse_evaluation(raw_text: str, candidate: Candidate) -> AIEvaluation:
    """Parse the model's JSON reply into a validated AIEvaluation.

    Args:
        raw_text: The model's text response, optionally wrapped in a code fence
        candidate: The candidate being evaluated; its claimed values fill missing strings

    Returns:
        AIEvaluation with every score clamped to [0, 1]

    Raises:
        EvaluationParseError: if the reply is not a JSON object
    """
    json_text = strip_code_fences(raw_text or "")
    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse evaluator response: {json_text[:200]}")
        raise EvaluationParseError(f"Evaluator returned invalid JSON: {e}", raw_text=raw_text)

    if not isinstance(parsed, dict):
        raise EvaluationParseError("Evaluator response is not a JSON object", raw_text=raw_text)

    return AIEvaluation(
        is_real_event=_as_bool(parsed.get("is_real_event", False)),
        is_relevant=_as_bool(parsed.get("is_relevant", False)),
        relevance_score=clamp_score(parsed.get("relevance_score")),
        impact_score=clamp_score(parsed.get("impact_score")),
        suggested_ev=clamp_score(parsed.get("suggested_ev")),
        suggested_friction=clamp_score(parsed.get("suggested_friction")),
        event_type=EventType.coerce(parsed.get("event_type")),
        clean_title=_as_text(parsed.get("clean_title")) or candidate.title,
        clean_description=_as_text(parsed.get("clean_description")) or candidate.description or "",
        event_date=_as_text(parsed.get("event_date")),
        event_end_date=_as_text(parsed.get("event_end_date")),
        event_time=_as_text(parsed.get("event_time")),
        location=_as_text(parsed.get("location")) or candidate.location,
        organization=_as_text(parsed.get("organization")),
        is_online=_as_bool(parsed.get("is_online", False)),
        duplicate_of=_as_text(parsed.get("duplicate_of")),
        reasoning=_as_text(parsed.get("reasoning")) or "",
    )
