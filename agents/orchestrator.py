from connectors.base import SourceConnector
from connectors.registry import build_connectors
from services.candidate_gateway import CandidateGateway
from processors.normalizer import Normalizer
from processors.pre_filter import PreFilter
from models.candidate import GatheredEvent
from models.results import BatchReport, ConnectorReport, GatherReport
from utils.errors import PersistenceError
from typing import Callable, List, Optional
from datetime import datetime
import logging
import time

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Gather phase (connectors -> normalizer -> pre-filter -> gateway), then evaluate phase.

    Connectors run one after another; a failing connector is logged and the
    run continues with the next one.
    """

    def __init__(
        self,
        connectors: List[SourceConnector] = None,
        gateway: CandidateGateway = None,
        normalizer: Normalizer = None,
        pre_filter: PreFilter = None,
        evaluator_factory: Callable = None,
    ):
        self.connectors = connectors if connectors is not None else build_connectors()
        self._gateway = gateway
        self.normalizer = normalizer or Normalizer()
        self.pre_filter = pre_filter or PreFilter()
        self._evaluator_factory = evaluator_factory

    @property
    def gateway(self) -> CandidateGateway:
        # Built on first write so dry runs never need store credentials
        if self._gateway is None:
            self._gateway = CandidateGateway()
        return self._gateway

    def _make_evaluator(self):
        if self._evaluator_factory:
            return self._evaluator_factory()
        from agents.evaluator import EventEvaluator
        return EventEvaluator()

    def gather_source(self, connector: SourceConnector, dry_run: bool = False) -> ConnectorReport:
        """Run one connector through normalize, pre-filter and insert"""
        report = ConnectorReport(source=connector.source)
        logger.info(f"📡 Gathering from {connector.name}...")

        try:
            records = connector.gather()
        except Exception as e:
            logger.error(f"{connector.name} connector failed, continuing: {e}", exc_info=True)
            report.failed = True
            report.error_message = str(e)
            return report

        report.fetched = len(records)
        events = self.normalizer.normalize_all(records)

        filtered = self.pre_filter.filter(events)
        report.kept = len(filtered.kept)
        report.pre_filtered = len(filtered.rejected)
        if filtered.rejected:
            logger.info(f"🚫 {connector.name}: pre-filter rejected {len(filtered.rejected)} events")
            if not connector.curated:
                for rejected in filtered.rejected:
                    logger.info(f"   ✗ \"{rejected.event.title}\" ({rejected.reason})")

        if dry_run:
            for event in filtered.kept:
                self._print_event(event)
            return report

        try:
            result = self.gateway.insert(filtered.kept)
        except PersistenceError as e:
            logger.error(f"{connector.name}: could not store candidates, continuing: {e}")
            report.failed = True
            report.error_message = str(e)
            return report

        report.inserted = result.inserted
        report.skipped = result.skipped
        report.errors = result.errors
        logger.info(
            f"✅ {connector.name}: {result.inserted} new candidates, "
            f"{result.skipped} skipped, {result.errors} errors"
        )
        return report

    @staticmethod
    def _print_event(event: GatheredEvent):
        print(f"  [{event.source}] {event.event_date or 'no-date'} | {event.title} | {event.location} | {event.url}")

    def gather(self, dry_run: bool = False) -> GatherReport:
        report = GatherReport()
        for connector in self.connectors:
            report.connectors.append(self.gather_source(connector, dry_run=dry_run))
        if report.failed_sources:
            logger.warning(f"Connectors failed this run: {', '.join(report.failed_sources)}")
        return report

    def run(
        self,
        skip_gather: bool = False,
        skip_evaluate: bool = False,
        dry_run: bool = False,
        force: bool = False,
    ) -> dict:
        """Full pipeline run

        Args:
            skip_gather: Only evaluate the pending queue
            skip_evaluate: Only gather
            dry_run: Gather and print, write nothing, skip evaluation
            force: Re-evaluate evaluated and rejected candidates too

        Returns:
            Dict with 'gather' and 'evaluate' reports (None for skipped phases)
        """
        start_time = time.time()
        logger.info(f"Event pipeline started at {datetime.utcnow().isoformat()}")

        gather_report: Optional[GatherReport] = None
        batch_report: Optional[BatchReport] = None

        if skip_gather:
            logger.info("Skipping gather phase")
        else:
            gather_report = self.gather(dry_run=dry_run)

        if skip_evaluate or dry_run:
            logger.info("Skipping evaluate phase")
        else:
            batch_report = self._make_evaluator().process_queue(force=force)

        elapsed = time.time() - start_time
        logger.info(f"Pipeline complete in {elapsed:.1f}s")

        return {
            "gather": gather_report,
            "evaluate": batch_report,
            "elapsed_seconds": round(elapsed, 1),
        }
