from services.database import DatabaseService, EVENTS_CATEGORY
from models.candidate import Candidate, CandidateStatus, transition
from models.evaluation import AIEvaluation
from models.resource import ExistingEvent
from utils.errors import PersistenceError
from utils.ids import generate_id
from datetime import datetime
from typing import Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_MIN_MINUTES = 60
FRESH_ACTIVITY_SCORE = 0.9


class PromotionWriter:
    """Materializes an approved candidate as a listed event resource"""

    def __init__(self, db: DatabaseService = None):
        self.db = db or DatabaseService()

    def build_resource_row(self, candidate: Candidate, evaluation: AIEvaluation, resource_id: str) -> dict:
        return {
            "id": resource_id,
            "title": evaluation.clean_title or candidate.title,
            "description": evaluation.clean_description or candidate.description,
            "url": candidate.url,
            "source_org": evaluation.organization or candidate.source_org or candidate.source,
            "category": EVENTS_CATEGORY,
            "location": evaluation.location or candidate.location or "Global",
            "min_minutes": DEFAULT_MIN_MINUTES,
            "ev_general": evaluation.suggested_ev,
            "friction": evaluation.suggested_friction,
            "enabled": True,
            "status": "approved",
            "event_date": evaluation.event_date or candidate.event_date,
            "event_end_date": evaluation.event_end_date or candidate.event_end_date,
            "event_time": evaluation.event_time or candidate.event_time,
            "event_type": evaluation.event_type.value,
            "is_online": evaluation.is_online,
            "activity_score": FRESH_ACTIVITY_SCORE,
            "url_status": "reachable",
            "source": candidate.source,
            "source_id": candidate.source_id,
            "created_at": datetime.utcnow().isoformat(),
        }

    def promote(self, candidate: Candidate, evaluation: AIEvaluation, force: bool = False) -> Optional[str]:
        """Create the Resource and mark the candidate promoted.

        Args:
            candidate: Candidate to promote
            evaluation: Its evaluation block (fresh or rebuilt from stored ai_* columns)
            force: Allow promotion out of a terminal status (manual review)

        Returns:
            The new resource id, or None if either write failed. On failure the
            candidate keeps its status and no resource is left behind.
        """
        transition(candidate.status, CandidateStatus.PROMOTED, force=force)

        resource_id = generate_id("eval", candidate.source)
        row = self.build_resource_row(candidate, evaluation, resource_id)

        try:
            self.db.insert_resource(row)
        except PersistenceError as e:
            logger.error(f"Failed to promote \"{row['title']}\": {e}")
            return None

        try:
            self.db.update_candidate(candidate.id, {
                "status": CandidateStatus.PROMOTED.value,
                "promoted_at": datetime.utcnow().isoformat(),
                "promoted_resource_id": resource_id,
            })
        except PersistenceError as e:
            logger.error(f"Failed to mark \"{candidate.title}\" promoted, removing resource {resource_id}: {e}")
            try:
                self.db.delete_resource(resource_id)
            except PersistenceError as cleanup_error:
                logger.critical(f"Orphaned resource {resource_id} for candidate {candidate.id}: {cleanup_error}")
            return None

        logger.info(f"Promoted \"{row['title']}\" as {resource_id}")
        return resource_id

    @staticmethod
    def projection(resource_id: str, candidate: Candidate, evaluation: AIEvaluation) -> ExistingEvent:
        """Dedup-window projection of a just-promoted event"""
        return ExistingEvent(
            id=resource_id,
            title=evaluation.clean_title or candidate.title,
            date=evaluation.event_date or candidate.event_date,
            location=evaluation.location or candidate.location,
            organization=evaluation.organization or candidate.source_org,
            url=candidate.url,
        )
