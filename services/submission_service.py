from services.database import DatabaseService
from services.candidate_gateway import CandidateGateway
from processors.normalizer import parse_event_date
from models.candidate import GatheredEvent
from utils.errors import SubmissionError
from utils.ids import generate_id
from config import settings
from pydantic import BaseModel
from typing import Optional
from datetime import datetime, timedelta
import logging

logger = logging.getLogger(__name__)

SUBMISSION_SOURCE = "submission"
MAX_TITLE_CHARS = 200
MAX_DESCRIPTION_CHARS = 1000


class SubmissionRequest(BaseModel):
    title: str
    url: str
    submitted_by: str
    description: Optional[str] = None
    source_org: Optional[str] = None
    location: Optional[str] = None
    event_date: Optional[str] = None


class SubmissionService:
    """Public event submissions. Accepted events enter the queue as pending candidates."""

    def __init__(self, db: DatabaseService = None, gateway: CandidateGateway = None):
        self.db = db or DatabaseService()
        self.gateway = gateway or CandidateGateway(self.db)

    def _validate(self, request: SubmissionRequest):
        if not request.title.strip() or not request.url.strip() or not request.submitted_by.strip():
            raise SubmissionError("Title, URL, and your name are required.")
        if len(request.title) > MAX_TITLE_CHARS or len(request.description or "") > MAX_DESCRIPTION_CHARS:
            raise SubmissionError("Title or description too long.")
        if not request.url.strip().lower().startswith(("http://", "https://")):
            raise SubmissionError("URL must start with http:// or https://.")

    def _check_rate_limit(self):
        since = datetime.utcnow() - timedelta(hours=1)
        recent = self.db.count_candidates_since(SUBMISSION_SOURCE, since)
        if recent >= settings.SUBMISSION_RATE_LIMIT_PER_HOUR:
            logger.warning(f"Submission rate limit hit ({recent} in the last hour)")
            raise SubmissionError("Too many recent submissions. Please try again later.")

    def submit(self, request: SubmissionRequest) -> str:
        """Validate, rate limit and queue a submission

        Returns:
            The new candidate id

        Raises:
            SubmissionError: invalid input, rate limit, or the event is already known
        """
        self._validate(request)
        self._check_rate_limit()

        candidate_id = generate_id("cand", SUBMISSION_SOURCE)
        event = GatheredEvent(
            candidate_id=candidate_id,
            title=request.title.strip(),
            description=(request.description or "").strip() or None,
            url=request.url.strip(),
            source=SUBMISSION_SOURCE,
            source_id=candidate_id,
            source_org=(request.source_org or "").strip() or None,
            location=(request.location or "").strip() or "Global",
            event_date=parse_event_date(request.event_date),
            submitted_by=request.submitted_by.strip(),
        )

        result = self.gateway.insert([event])
        if result.skipped:
            raise SubmissionError("This event has already been submitted.")
        if not result.inserted:
            raise SubmissionError("Could not save your submission. Please try again later.")

        logger.info(f"New submission \"{event.title}\" from {event.submitted_by} ({candidate_id})")
        return candidate_id
