from services.database import DatabaseService
from services.candidate_gateway import CandidateGateway
from services.scraper import PageScraper, ScrapedPage
from services.llm_service import LLMService
from services.promotion import PromotionWriter
from processors.pre_filter import PreFilter
from processors.evaluation_parser import parse_evaluation
from processors.classifier import Classifier, Decision
from processors.normalizer import parse_event_date
from prompts.prompt_manager import PromptManager, prompt_manager as default_prompt_manager
from models.candidate import (
    Candidate,
    CandidateStatus,
    GatheredEvent,
    FORCED_EVALUATION_STATUSES,
    is_evaluable,
    transition,
)
from models.evaluation import AIEvaluation
from models.resource import DedupWindow, ExistingEvent
from models.results import EvaluationOutcome, BatchReport
from utils.errors import EvaluationParseError, LLMServiceError, PersistenceError
from utils.urls import normalize_url
from config import settings
from datetime import datetime
from typing import Optional, Tuple
import logging
import time

logger = logging.getLogger(__name__)

PLACEHOLDER_TITLE = "Unknown (pending scrape)"
MANUAL_SOURCE = "manual"


class EventEvaluator:
    """Moves candidates from pending to promoted, rejected or needs-review.

    Per candidate: scrape (or reuse cached page text), build the duplicate
    window, ask the model for a structured evaluation, persist it, then
    classify. Candidates are processed one at a time.
    """

    def __init__(
        self,
        db: DatabaseService = None,
        scraper: PageScraper = None,
        llm: LLMService = None,
        prompts: PromptManager = None,
        promotion_writer: PromotionWriter = None,
        gateway: CandidateGateway = None,
        pre_filter: PreFilter = None,
        classifier: Classifier = None,
        delay_seconds: float = None,
    ):
        self.db = db or DatabaseService()
        self.scraper = scraper or PageScraper()
        self.llm = llm or LLMService()
        self.prompts = prompts or default_prompt_manager
        self.promotion_writer = promotion_writer or PromotionWriter(self.db)
        self.gateway = gateway or CandidateGateway(self.db)
        self.pre_filter = pre_filter or PreFilter()
        self.classifier = classifier or Classifier()
        self.delay_seconds = settings.LLM_CALL_DELAY_SECONDS if delay_seconds is None else delay_seconds

        logger.info("EventEvaluator initialized")

    # Dedup window
    def load_window(self, size: int = None) -> DedupWindow:
        """Recent listed events plus evaluated/promoted candidates, listed events first"""
        size = size or settings.DEDUP_WINDOW_SIZE
        window = DedupWindow(
            ExistingEvent.from_resource_row(row) for row in self.db.get_dedup_resources(size)
        )
        for row in self.db.get_dedup_candidates(size):
            window.append(ExistingEvent.from_candidate_row(row))
        logger.info(f"📦 Loaded {len(window)} existing events for duplicate detection")
        return window

    # Single candidate
    def evaluate_candidate(
        self, candidate_id: str, force: bool = False, window: Optional[DedupWindow] = None
    ) -> EvaluationOutcome:
        """Run one candidate through scrape, LLM call, persistence and classification

        Args:
            candidate_id: event_candidates id
            force: Also accept evaluated and rejected candidates
            window: Shared dedup window for the batch; loaded on demand when None.
                A successful promotion is appended to it.

        Returns:
            The candidate's outcome. Failures are reported as ERROR, never raised.
        """
        try:
            candidate = self.db.get_candidate(candidate_id)
        except PersistenceError as e:
            logger.error(f"💥 Could not load candidate {candidate_id}: {e}")
            return EvaluationOutcome.ERROR
        if not candidate:
            logger.error(f"Could not fetch candidate {candidate_id}")
            return EvaluationOutcome.ERROR

        if not is_evaluable(candidate.status, force):
            logger.debug(f"Skipping \"{candidate.title}\" ({candidate.status.value})")
            return EvaluationOutcome.SKIPPED

        logger.info(f"Evaluating: \"{candidate.title}\"")

        scraped_text, page = self._page_context(candidate)

        if window is None:
            try:
                window = self.load_window()
            except PersistenceError as e:
                logger.error(f"💥 Could not load existing events for \"{candidate.title}\": {e}")
                return EvaluationOutcome.ERROR

        display_title = None
        if candidate.title == PLACEHOLDER_TITLE and page and page.title:
            display_title = page.title

        try:
            system_prompt, user_message = self.prompts.build_evaluation_prompt(
                candidate,
                scraped_text,
                window.without(candidate.id),
                page_hints=self._page_hints(page),
                display_title=display_title,
            )
            raw_text = self.llm.complete(system_prompt, user_message)
            evaluation = parse_evaluation(raw_text, candidate)
        except (LLMServiceError, EvaluationParseError) as e:
            logger.error(f"💥 AI evaluation failed for \"{candidate.title}\": {e}")
            return EvaluationOutcome.ERROR

        if display_title and evaluation.clean_title == PLACEHOLDER_TITLE:
            evaluation.clean_title = display_title
        if evaluation.duplicate_of == candidate.id:
            evaluation.duplicate_of = None

        try:
            candidate = self._store_evaluation(candidate, evaluation)
            return self._apply_decision(candidate, evaluation, force, window)
        except PersistenceError as e:
            logger.error(f"💥 Could not save evaluation for \"{candidate.title}\": {e}")
            return EvaluationOutcome.ERROR

    def _page_context(self, candidate: Candidate) -> Tuple[str, Optional[ScrapedPage]]:
        """Cached scraped_text, or a fresh scrape that is cached when it yields text"""
        if candidate.scraped_text:
            return candidate.scraped_text, None

        page = self.scraper.scrape(candidate.url)
        if page.error:
            logger.info(f"Page could not be scraped for \"{candidate.title}\": {page.error}")
            return "", page

        if page.text:
            try:
                self.db.update_candidate(candidate.id, {"scraped_text": page.text})
            except PersistenceError as e:
                logger.warning(f"Could not cache scraped text for \"{candidate.title}\": {e}")
        return page.text, page

    @staticmethod
    def _page_hints(page: Optional[ScrapedPage]) -> dict:
        if not page or page.error:
            return {}
        return {
            "title": page.title,
            "date": page.date,
            "location": page.location,
            "description": page.description,
        }

    def _store_evaluation(self, candidate: Candidate, evaluation: AIEvaluation) -> Candidate:
        """Persist the evaluation block before any status change; returns the updated candidate"""
        updates = {
            "ai_is_real_event": evaluation.is_real_event,
            "ai_is_relevant": evaluation.is_relevant,
            "ai_relevance_score": evaluation.relevance_score,
            "ai_impact_score": evaluation.impact_score,
            "ai_suggested_ev": evaluation.suggested_ev,
            "ai_suggested_friction": evaluation.suggested_friction,
            "ai_event_type": evaluation.event_type.value,
            "ai_summary": evaluation.clean_description,
            "ai_reasoning": evaluation.reasoning,
            "ai_organization": evaluation.organization,
            "ai_is_online": evaluation.is_online,
            "duplicate_of": evaluation.duplicate_of,
            "processed_at": datetime.utcnow().isoformat(),
        }

        # Model's standardized values win whenever it supplied them
        if evaluation.event_date:
            updates["event_date"] = evaluation.event_date
        if evaluation.event_end_date:
            updates["event_end_date"] = evaluation.event_end_date
        if evaluation.event_time:
            updates["event_time"] = evaluation.event_time
        if evaluation.location:
            updates["location"] = evaluation.location
        if candidate.title == PLACEHOLDER_TITLE and evaluation.clean_title != PLACEHOLDER_TITLE:
            updates["title"] = evaluation.clean_title

        self.db.update_candidate(candidate.id, updates)
        return candidate.model_copy(update=updates)

    def _set_status(self, candidate: Candidate, target: CandidateStatus, force: bool, extra: dict = None):
        status = transition(candidate.status, target, force=force)
        self.db.update_candidate(candidate.id, {**(extra or {}), "status": status.value})

    def _apply_decision(
        self, candidate: Candidate, evaluation: AIEvaluation, force: bool, window: DedupWindow
    ) -> EvaluationOutcome:
        decision = self.classifier.classify(evaluation)

        if decision == Decision.DUPLICATE:
            self._set_status(candidate, CandidateStatus.REJECTED, force, {
                "ai_reasoning": f"Duplicate of {evaluation.duplicate_of}. {evaluation.reasoning}",
            })
            logger.info(f"🔁 Duplicate: \"{candidate.title}\" → duplicate of {evaluation.duplicate_of}")
            return EvaluationOutcome.REJECTED

        if decision == Decision.REJECT:
            self._set_status(candidate, CandidateStatus.REJECTED, force)
            logger.info(
                f"❌ Rejected: \"{candidate.title}\" (real={evaluation.is_real_event}, "
                f"relevant={evaluation.is_relevant}, score={evaluation.relevance_score:.2f})"
            )
            return EvaluationOutcome.REJECTED

        if decision == Decision.PROMOTE:
            resource_id = self.promotion_writer.promote(candidate, evaluation, force=force)
            if not resource_id:
                return EvaluationOutcome.ERROR
            window.append(PromotionWriter.projection(resource_id, candidate, evaluation))
            logger.info(
                f"✅ Promoted: \"{evaluation.clean_title}\" (ev={evaluation.suggested_ev:.2f}, "
                f"relevance={evaluation.relevance_score:.2f})"
            )
            return EvaluationOutcome.PROMOTED

        self._set_status(candidate, CandidateStatus.EVALUATED, force)
        logger.info(f"🟡 Needs review: \"{candidate.title}\" (relevance={evaluation.relevance_score:.2f})")
        return EvaluationOutcome.EVALUATED

    # Batch
    def process_queue(self, force: bool = False) -> BatchReport:
        """Evaluate every pending candidate, oldest first

        Args:
            force: Also re-evaluate evaluated and rejected candidates

        Returns:
            BatchReport tally
        """
        report = BatchReport()
        statuses = FORCED_EVALUATION_STATUSES if force else (CandidateStatus.PENDING,)
        candidates = self.db.get_candidates_by_status(statuses)
        report.total = len(candidates)

        if not candidates:
            logger.info("📭 No pending candidates to evaluate")
            return report

        to_evaluate = []
        for candidate in candidates:
            passed, reason = self.pre_filter.check(candidate.title, candidate.description, candidate.source_org)
            if passed:
                to_evaluate.append(candidate)
                continue
            try:
                self._set_status(candidate, CandidateStatus.REJECTED, force, {
                    "ai_reasoning": f"Pre-filter: {reason}",
                })
                report.pre_filtered += 1
            except PersistenceError as e:
                logger.error(f"Could not reject \"{candidate.title}\": {e}")
                report.errors += 1

        if report.pre_filtered:
            logger.info(f"🚫 Pre-filter auto-rejected {report.pre_filtered} obviously irrelevant candidates")
        logger.info(f"📋 Processing {len(to_evaluate)} candidates ({report.pre_filtered} pre-filtered)")

        try:
            window = self.load_window()
        except PersistenceError as e:
            logger.error(f"💥 Could not load existing events, skipping {len(to_evaluate)} candidates: {e}")
            report.errors += len(to_evaluate)
            return report

        for index, candidate in enumerate(to_evaluate):
            report.record(self.evaluate_candidate(candidate.id, force=force, window=window))
            if self.delay_seconds and index < len(to_evaluate) - 1:
                time.sleep(self.delay_seconds)

        logger.info(f"📊 Queue processing complete: {report.summary()}")
        return report

    # Operator entry points
    def evaluate_url(self, url: str) -> Tuple[Optional[str], EvaluationOutcome]:
        """Force re-evaluate the candidate for this URL, creating a manual one if none exists

        Returns:
            (candidate_id, outcome); candidate_id is None when the URL is already listed
        """
        key = normalize_url(url)
        existing = self.db.find_candidate_by_url(key) if key else None
        if existing:
            logger.info(f"Found existing candidate \"{existing.title}\" (status: {existing.status.value}), re-evaluating")
            return existing.id, self.evaluate_candidate(existing.id, force=True)

        stamp = int(time.time() * 1000)
        result = self.gateway.insert([
            GatheredEvent(
                title=PLACEHOLDER_TITLE,
                url=url,
                source=MANUAL_SOURCE,
                source_id=f"manual-{stamp}",
            )
        ])
        if not result.inserted_ids:
            logger.warning(f"No candidate created for {url} (already listed or insert failed)")
            return None, EvaluationOutcome.SKIPPED if result.skipped else EvaluationOutcome.ERROR

        candidate_id = result.inserted_ids[0]
        return candidate_id, self.evaluate_candidate(candidate_id, force=True)

    def evaluate_description(
        self, title: str, description: Optional[str] = None, date: Optional[str] = None
    ) -> Tuple[Optional[str], EvaluationOutcome]:
        """Evaluate an event known only by title and description"""
        stamp = int(time.time() * 1000)
        result = self.gateway.insert([
            GatheredEvent(
                title=title,
                description=description,
                url=f"manual://{stamp}",
                source=MANUAL_SOURCE,
                source_id=f"manual-{stamp}",
                event_date=parse_event_date(date),
            )
        ])
        if not result.inserted_ids:
            logger.error(f"Failed to insert candidate \"{title}\"")
            return None, EvaluationOutcome.ERROR

        candidate_id = result.inserted_ids[0]
        return candidate_id, self.evaluate_candidate(candidate_id, force=True)
