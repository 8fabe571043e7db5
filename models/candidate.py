from pydantic import BaseModel
from typing import Optional, Dict, FrozenSet
from datetime import datetime
from enum import Enum

from utils.errors import InvalidStatusTransition


class CandidateStatus(str, Enum):
    PENDING = "pending"
    EVALUATED = "evaluated"  # borderline score, awaiting human review
    PROMOTED = "promoted"
    REJECTED = "rejected"


# Moves allowed without an operator override
_TRANSITIONS: Dict[CandidateStatus, FrozenSet[CandidateStatus]] = {
    CandidateStatus.PENDING: frozenset({
        CandidateStatus.EVALUATED, CandidateStatus.PROMOTED, CandidateStatus.REJECTED,
    }),
    CandidateStatus.EVALUATED: frozenset({
        CandidateStatus.EVALUATED, CandidateStatus.PROMOTED, CandidateStatus.REJECTED,
    }),
    CandidateStatus.REJECTED: frozenset(),
    CandidateStatus.PROMOTED: frozenset(),
}

# Additional moves an operator may force (re-evaluation, unpromote, requeue)
_FORCED_TRANSITIONS: Dict[CandidateStatus, FrozenSet[CandidateStatus]] = {
    CandidateStatus.PENDING: frozenset(),
    CandidateStatus.EVALUATED: frozenset({CandidateStatus.PENDING}),
    CandidateStatus.REJECTED: frozenset({
        CandidateStatus.EVALUATED, CandidateStatus.PROMOTED, CandidateStatus.REJECTED,
        CandidateStatus.PENDING,
    }),
    CandidateStatus.PROMOTED: frozenset({CandidateStatus.EVALUATED, CandidateStatus.PENDING}),
}

# Statuses the evaluator picks up on a forced run
FORCED_EVALUATION_STATUSES = (
    CandidateStatus.PENDING, CandidateStatus.EVALUATED, CandidateStatus.REJECTED,
)


def transition(current: CandidateStatus, target: CandidateStatus, force: bool = False) -> CandidateStatus:
    """Validate a status change and return the new status.

    Raises:
        InvalidStatusTransition: if the lifecycle does not allow the move
    """
    current = CandidateStatus(current)
    target = CandidateStatus(target)

    if target in _TRANSITIONS[current]:
        return target
    if force and target in _FORCED_TRANSITIONS[current]:
        return target

    hint = "" if force or target not in _FORCED_TRANSITIONS[current] else " without force"
    raise InvalidStatusTransition(f"Cannot move candidate from {current.value} to {target.value}{hint}")


def is_evaluable(status: CandidateStatus, force: bool = False) -> bool:
    """Whether the evaluator should process a candidate in this status"""
    status = CandidateStatus(status)
    if status == CandidateStatus.PENDING:
        return True
    return force and status in FORCED_EVALUATION_STATUSES


class RawEventRecord(BaseModel):
    """One upstream item as a connector sees it, before normalization"""
    source: str
    source_id: str
    title: Optional[str] = None
    url: str
    description: Optional[str] = None
    source_org: Optional[str] = None
    location: Optional[str] = None  # explicit structured location, if any
    is_online: bool = False
    is_global: bool = False
    start: Optional[str] = None  # upstream date/datetime string
    end: Optional[str] = None
    submitted_by: Optional[str] = None


class GatheredEvent(BaseModel):
    """Normalized candidate-shaped record, ready for the Candidate Store Gateway"""
    candidate_id: Optional[str] = None  # preassigned store id, generated by the gateway when unset
    title: str
    url: str
    source: str
    source_id: str
    description: Optional[str] = None
    source_org: Optional[str] = None
    location: Optional[str] = None
    event_date: Optional[str] = None
    event_end_date: Optional[str] = None
    event_time: Optional[str] = None
    submitted_by: Optional[str] = None


class Candidate(BaseModel):
    id: str
    title: str
    url: str
    source: str
    source_id: Optional[str] = None
    description: Optional[str] = None
    source_org: Optional[str] = None
    location: Optional[str] = None
    event_date: Optional[str] = None
    event_end_date: Optional[str] = None
    event_time: Optional[str] = None
    submitted_by: Optional[str] = None

    # Cached page context, written once
    scraped_text: Optional[str] = None

    # AI evaluation block
    ai_is_real_event: Optional[bool] = None
    ai_is_relevant: Optional[bool] = None
    ai_relevance_score: Optional[float] = None
    ai_impact_score: Optional[float] = None
    ai_suggested_ev: Optional[float] = None
    ai_suggested_friction: Optional[float] = None
    ai_event_type: Optional[str] = None
    ai_summary: Optional[str] = None
    ai_reasoning: Optional[str] = None
    ai_organization: Optional[str] = None
    ai_is_online: Optional[bool] = None
    duplicate_of: Optional[str] = None

    status: CandidateStatus = CandidateStatus.PENDING
    processed_at: Optional[datetime] = None
    promoted_at: Optional[datetime] = None
    promoted_resource_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
