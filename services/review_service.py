"""
ReviewService: operator actions on evaluated candidates

Covers the human side of the lifecycle: promoting borderline candidates,
rejecting, taking a listed event back down (unpromote) and sending a
candidate back through evaluation (requeue). Every status change goes
through models.candidate.transition.
"""

from services.database import DatabaseService
from services.promotion import PromotionWriter
from models.candidate import Candidate, CandidateStatus, transition
from models.evaluation import AIEvaluation
from utils.errors import InvalidStatusTransition, PersistenceError
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class CandidateNotFound(LookupError):
    pass


class ReviewService:
    """Handles manual review actions on event candidates"""

    def __init__(self, db: DatabaseService = None, promotion_writer: PromotionWriter = None):
        self.db = db or DatabaseService()
        self.promotion_writer = promotion_writer or PromotionWriter(self.db)

    def _get(self, candidate_id: str) -> Candidate:
        candidate = self.db.get_candidate(candidate_id)
        if not candidate:
            raise CandidateNotFound(f"Candidate {candidate_id} not found")
        return candidate

    def list_candidates(self, status: Optional[CandidateStatus] = None, limit: int = 100) -> List[Candidate]:
        return self.db.list_candidates(status=status, limit=limit)

    def promote(self, candidate_id: str) -> Dict:
        """
        Manually promote a candidate using its stored evaluation

        Args:
            candidate_id: Candidate to list

        Returns:
            Dictionary with success flag and the new resource id
        """
        candidate = self._get(candidate_id)
        # Validates the move before any write; rejected candidates need the override
        transition(candidate.status, CandidateStatus.PROMOTED, force=True)

        evaluation = AIEvaluation.from_candidate(candidate)
        resource_id = self.promotion_writer.promote(candidate, evaluation, force=True)
        if not resource_id:
            return {'success': False, 'candidate_id': candidate_id, 'error': 'promotion write failed'}

        logger.info(f"✅ Manually promoted \"{candidate.title}\" as {resource_id}")
        return {'success': True, 'candidate_id': candidate_id, 'resource_id': resource_id}

    def reject(self, candidate_id: str) -> Dict:
        candidate = self._get(candidate_id)
        status = transition(candidate.status, CandidateStatus.REJECTED, force=True)
        self.db.update_candidate(candidate_id, {"status": status.value})
        logger.info(f"❌ Manually rejected \"{candidate.title}\"")
        return {'success': True, 'candidate_id': candidate_id}

    def unpromote(self, candidate_id: str) -> Dict:
        """
        Take a promoted event off the listing and send the candidate back to review

        The resource row is kept but disabled (enabled=false, status=rejected) so
        its source/source_id still suppress re-gathering.
        """
        candidate = self._get(candidate_id)
        if candidate.status != CandidateStatus.PROMOTED:
            raise InvalidStatusTransition(f"Only promoted candidates can be unpromoted (status: {candidate.status.value})")
        status = transition(candidate.status, CandidateStatus.EVALUATED, force=True)

        resource_id = candidate.promoted_resource_id
        if resource_id:
            self.db.update_resource(resource_id, {"enabled": False, "status": "rejected"})

        try:
            self.db.update_candidate(candidate_id, {
                "status": status.value,
                "promoted_resource_id": None,
                "promoted_at": None,
            })
        except PersistenceError:
            # Keep the listing consistent with the candidate that still points at it
            if resource_id:
                self.db.update_resource(resource_id, {"enabled": True, "status": "approved"})
            raise

        logger.info(f"Unpromoted \"{candidate.title}\" (resource {resource_id} disabled)")
        return {'success': True, 'candidate_id': candidate_id, 'disabled_resource_id': resource_id}

    def requeue(self, candidate_id: str) -> Dict:
        """Send a candidate back to pending so the next queue run evaluates it again"""
        candidate = self._get(candidate_id)
        if candidate.status == CandidateStatus.PROMOTED:
            # A listed event is taken down first so no enabled resource is orphaned
            self.unpromote(candidate_id)
            candidate = self._get(candidate_id)

        if candidate.status == CandidateStatus.PENDING:
            return {'success': True, 'candidate_id': candidate_id}

        status = transition(candidate.status, CandidateStatus.PENDING, force=True)
        self.db.update_candidate(candidate_id, {"status": status.value})
        logger.info(f"Requeued \"{candidate.title}\"")
        return {'success': True, 'candidate_id': candidate_id}
