"""
Nightly Pipeline Scheduler

Runs the full event pipeline once a day:
- Gather from every connector into the candidate queue
- Evaluate pending candidates and promote/reject them
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from agents.orchestrator import PipelineOrchestrator
from config import settings
import logging
import sys

logger = logging.getLogger(__name__)


def run_nightly_pipeline(orchestrator: PipelineOrchestrator = None):
    """
    Runs gather + evaluate.

    Called automatically at PIPELINE_CRON_HOUR:PIPELINE_CRON_MINUTE daily.
    """
    logger.info("=" * 60)
    logger.info("Starting nightly event pipeline")
    logger.info("=" * 60)

    try:
        settings.require_credentials()
        orchestrator = orchestrator or PipelineOrchestrator()
        result = orchestrator.run()

        gather_report = result["gather"]
        batch_report = result["evaluate"]

        logger.info("Nightly pipeline complete:")
        if gather_report:
            logger.info(f"  - New candidates: {gather_report.inserted}")
            if gather_report.failed_sources:
                logger.info(f"  - Failed sources: {', '.join(gather_report.failed_sources)}")
        if batch_report:
            logger.info(f"  - Evaluation: {batch_report.summary()}")
        logger.info(f"  - Processing time: {result['elapsed_seconds']:.1f}s")
        logger.info("=" * 60)

        return {
            'status': 'success',
            'gather': gather_report.as_dict() if gather_report else None,
            'evaluate': batch_report.model_dump() if batch_report else None,
            'elapsed_seconds': result['elapsed_seconds'],
        }

    except Exception as e:
        logger.error(f"Nightly pipeline failed: {e}", exc_info=True)
        # Don't raise - we don't want to crash the scheduler
        return {
            'status': 'error',
            'error': str(e)
        }


def start_scheduler(run_immediately: bool = False):
    """
    Start the background scheduler for the nightly pipeline.

    Args:
        run_immediately: If True, run once immediately for testing

    Returns:
        APScheduler BackgroundScheduler instance
    """
    scheduler = BackgroundScheduler()

    scheduler.add_job(
        run_nightly_pipeline,
        trigger=CronTrigger(hour=settings.PIPELINE_CRON_HOUR, minute=settings.PIPELINE_CRON_MINUTE),
        id='nightly_pipeline',
        name='Nightly Event Pipeline (gather + evaluate)',
        replace_existing=True
    )

    scheduler.start()
    logger.info(
        f"Nightly pipeline scheduler started (runs at "
        f"{settings.PIPELINE_CRON_HOUR:02d}:{settings.PIPELINE_CRON_MINUTE:02d} daily)"
    )

    if run_immediately:
        logger.info("Running nightly pipeline immediately (test mode)")
        run_nightly_pipeline()

    return scheduler


def stop_scheduler(scheduler):
    """
    Stop the background scheduler.

    Args:
        scheduler: APScheduler BackgroundScheduler instance
    """
    scheduler.shutdown()
    logger.info("Nightly pipeline scheduler stopped")


if __name__ == '__main__':
    """
    Run this module directly to test the nightly job.

    Usage:
        python schedulers/nightly_pipeline.py
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    print("\n" + "=" * 60)
    print("Nightly Pipeline Test")
    print("=" * 60 + "\n")

    result = run_nightly_pipeline()

    if result.get('status') == 'error':
        print(f"\n❌ Pipeline failed: {result.get('error')}")
        sys.exit(1)
    else:
        print("\n✅ Pipeline successful!")
        print(f"  Processing time: {result['elapsed_seconds']:.1f}s")
        print("\n" + "=" * 60)
