from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from enum import Enum

from models.candidate import GatheredEvent


class InsertResult(BaseModel):
    inserted: int = 0
    skipped: int = 0
    errors: int = 0
    inserted_ids: List[str] = Field(default_factory=list)


class RejectedEvent(BaseModel):
    event: GatheredEvent
    reason: str


class PreFilterResult(BaseModel):
    kept: List[GatheredEvent] = Field(default_factory=list)
    rejected: List[RejectedEvent] = Field(default_factory=list)


class EvaluationOutcome(str, Enum):
    PROMOTED = "promoted"
    REJECTED = "rejected"
    EVALUATED = "evaluated"  # needs human review
    SKIPPED = "skipped"
    ERROR = "error"


class BatchReport(BaseModel):
    """Tally printed at the end of every evaluation batch"""
    total: int = 0
    pre_filtered: int = 0
    promoted: int = 0
    rejected: int = 0
    evaluated: int = 0
    skipped: int = 0
    errors: int = 0

    def record(self, outcome: EvaluationOutcome) -> None:
        if outcome == EvaluationOutcome.PROMOTED:
            self.promoted += 1
        elif outcome == EvaluationOutcome.REJECTED:
            self.rejected += 1
        elif outcome == EvaluationOutcome.EVALUATED:
            self.evaluated += 1
        elif outcome == EvaluationOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1

    def summary(self) -> str:
        return (
            f"{self.promoted} promoted, {self.rejected} rejected, "
            f"{self.evaluated} need review, {self.skipped} skipped, "
            f"{self.errors} errors, {self.pre_filtered} pre-filtered"
        )


class ConnectorReport(BaseModel):
    source: str
    fetched: int = 0
    kept: int = 0
    pre_filtered: int = 0
    inserted: int = 0
    skipped: int = 0
    errors: int = 0
    failed: bool = False
    error_message: Optional[str] = None


class GatherReport(BaseModel):
    connectors: List[ConnectorReport] = Field(default_factory=list)

    @property
    def inserted(self) -> int:
        return sum(c.inserted for c in self.connectors)

    @property
    def failed_sources(self) -> List[str]:
        return [c.source for c in self.connectors if c.failed]

    def as_dict(self) -> Dict[str, Dict]:
        return {c.source: c.model_dump() for c in self.connectors}
