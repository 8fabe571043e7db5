from models.evaluation import AIEvaluation
from config import settings
from enum import Enum


class Decision(str, Enum):
    DUPLICATE = "duplicate"
    REJECT = "reject"
    PROMOTE = "promote"
    REVIEW = "review"


class Classifier:
    """Maps an evaluation onto the candidate's fate. First matching rule wins:

    1. duplicate_of set -> duplicate (rejected)
    2. not real, not relevant, or relevance below the reject threshold -> reject
    3. real, relevant and relevance at or above the promote threshold -> promote
    4. anything else -> review
    """

    def __init__(self, promote_threshold: float = None, reject_threshold: float = None):
        self.promote_threshold = settings.PROMOTE_THRESHOLD if promote_threshold is None else promote_threshold
        self.reject_threshold = settings.REJECT_THRESHOLD if reject_threshold is None else reject_threshold

    def classify(self, evaluation: AIEvaluation) -> Decision:
        if evaluation.duplicate_of:
            return Decision.DUPLICATE

        if (
            not evaluation.is_real_event
            or not evaluation.is_relevant
            or evaluation.relevance_score < self.reject_threshold
        ):
            return Decision.REJECT

        if evaluation.relevance_score >= self.promote_threshold:
            return Decision.PROMOTE

        return Decision.REVIEW
