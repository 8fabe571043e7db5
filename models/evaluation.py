from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class EventType(str, Enum):
    CONFERENCE = "conference"
    MEETUP = "meetup"
    HACKATHON = "hackathon"
    WORKSHOP = "workshop"
    TALK = "talk"
    SOCIAL = "social"
    COURSE = "course"
    FELLOWSHIP = "fellowship"
    PROGRAM = "program"
    OTHER = "other"

    @classmethod
    def coerce(cls, value) -> "EventType":
        """Map model output onto the closed set; anything unknown becomes OTHER"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.OTHER
        return cls.OTHER


class AIEvaluation(BaseModel):
    """Validated evaluator response. Scores are already clamped to [0, 1]."""
    is_real_event: bool = False
    is_relevant: bool = False
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)
    impact_score: float = Field(default=0.0, ge=0.0, le=1.0)
    suggested_ev: float = Field(default=0.0, ge=0.0, le=1.0)
    suggested_friction: float = Field(default=0.0, ge=0.0, le=1.0)
    event_type: EventType = EventType.OTHER
    clean_title: str
    clean_description: str = ""
    event_date: Optional[str] = None
    event_end_date: Optional[str] = None
    event_time: Optional[str] = None
    location: Optional[str] = None
    organization: Optional[str] = None
    is_online: bool = False
    duplicate_of: Optional[str] = None
    reasoning: str = ""

    @classmethod
    def from_candidate(cls, candidate) -> "AIEvaluation":
        """Rebuild an evaluation from a candidate's stored ai_* columns (manual promotion)"""
        return cls(
            is_real_event=bool(candidate.ai_is_real_event),
            is_relevant=bool(candidate.ai_is_relevant),
            relevance_score=candidate.ai_relevance_score or 0.0,
            impact_score=candidate.ai_impact_score or 0.0,
            suggested_ev=candidate.ai_suggested_ev or 0.0,
            suggested_friction=candidate.ai_suggested_friction or 0.0,
            event_type=EventType.coerce(candidate.ai_event_type),
            clean_title=candidate.title,
            clean_description=candidate.ai_summary or candidate.description or "",
            event_date=candidate.event_date,
            event_end_date=candidate.event_end_date,
            event_time=candidate.event_time,
            location=candidate.location,
            organization=candidate.ai_organization,
            is_online=bool(candidate.ai_is_online),
            duplicate_of=candidate.duplicate_of,
            reasoning=candidate.ai_reasoning or "",
        )
