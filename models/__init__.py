# Models module - Pydantic models for the event_candidates and resources tables
from models.candidate import (
    CandidateStatus,
    Candidate,
    RawEventRecord,
    GatheredEvent,
    transition,
    is_evaluable,
)
from models.resource import Resource, ExistingEvent, DedupWindow
from models.evaluation import AIEvaluation, EventType
from models.results import (
    InsertResult,
    RejectedEvent,
    PreFilterResult,
    EvaluationOutcome,
    BatchReport,
    ConnectorReport,
    GatherReport,
)

__all__ = [
    "CandidateStatus",
    "Candidate",
    "RawEventRecord",
    "GatheredEvent",
    "transition",
    "is_evaluable",
    "Resource",
    "ExistingEvent",
    "DedupWindow",
    "AIEvaluation",
    "EventType",
    "InsertResult",
    "RejectedEvent",
    "PreFilterResult",
    "EvaluationOutcome",
    "BatchReport",
    "ConnectorReport",
    "GatherReport",
]
