from fastapi import FastAPI, HTTPException, Header, BackgroundTasks
from typing import Optional
from config import settings
from agents.evaluator import EventEvaluator
from agents.orchestrator import PipelineOrchestrator
from models.candidate import CandidateStatus
from services.review_service import ReviewService, CandidateNotFound
from services.submission_service import SubmissionService, SubmissionRequest
from utils.errors import ConfigurationError, InvalidStatusTransition, SubmissionError, PersistenceError
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="AI Safety Events Pipeline",
    version="0.1.0",
    description="Gathers AI-safety events from public sources, evaluates them with an LLM and promotes the good ones"
)

# Services are created on first use so the app imports without credentials
_services = {}


def get_evaluator() -> EventEvaluator:
    if "evaluator" not in _services:
        _services["evaluator"] = EventEvaluator()
    return _services["evaluator"]


def get_orchestrator() -> PipelineOrchestrator:
    if "orchestrator" not in _services:
        _services["orchestrator"] = PipelineOrchestrator(evaluator_factory=get_evaluator)
    return _services["orchestrator"]


def get_review_service() -> ReviewService:
    if "review" not in _services:
        _services["review"] = ReviewService()
    return _services["review"]


def get_submission_service() -> SubmissionService:
    if "submission" not in _services:
        _services["submission"] = SubmissionService()
    return _services["submission"]


def _require_key(provided: Optional[str], expected: str):
    if provided != expected:
        logger.warning(f"Unauthorized request with key: {provided[:8] if provided else 'None'}...")
        raise HTTPException(status_code=401, detail="Unauthorized")


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "service": "AI Safety Events Pipeline",
        "missing_credentials": settings.missing_credentials(),
    }


def _run_pipeline_job(skip_gather: bool, skip_evaluate: bool, force: bool):
    try:
        result = get_orchestrator().run(skip_gather=skip_gather, skip_evaluate=skip_evaluate, force=force)
        if result["evaluate"]:
            logger.info(f"Background pipeline run finished: {result['evaluate'].summary()}")
    except Exception as e:
        logger.error(f"Background pipeline run failed: {e}", exc_info=True)


@app.post("/pipeline/run")
async def trigger_pipeline(
    background_tasks: BackgroundTasks,
    skip_gather: bool = False,
    skip_evaluate: bool = False,
    force: bool = False,
    x_api_key: str = Header(None, alias="X-API-Key"),
):
    """Trigger a full pipeline run via external scheduler (e.g., cron)

    Requires API key authentication via X-API-Key header. The run happens
    in the background; this returns immediately.
    """
    _require_key(x_api_key, settings.CRON_API_KEY)
    try:
        settings.require_credentials()
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))

    logger.info("External trigger for pipeline run received")
    background_tasks.add_task(_run_pipeline_job, skip_gather, skip_evaluate, force)
    return {"status": "accepted"}


@app.post("/evaluate/queue")
async def evaluate_queue(force: bool = False, x_api_key: str = Header(None, alias="X-API-Key")):
    """Evaluate all pending candidates (all non-promoted with force=true)

    Returns:
        Batch tally
    """
    _require_key(x_api_key, settings.ADMIN_API_KEY)
    try:
        report = get_evaluator().process_queue(force=force)
        return {"status": "success", "report": report.model_dump()}
    except Exception as e:
        logger.error(f"Error processing queue: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/evaluate/candidates/{candidate_id}")
async def evaluate_single_candidate(
    candidate_id: str, force: bool = False, x_api_key: str = Header(None, alias="X-API-Key")
):
    """Evaluate one candidate by ID"""
    _require_key(x_api_key, settings.ADMIN_API_KEY)
    try:
        outcome = get_evaluator().evaluate_candidate(candidate_id, force=force)
        return {"candidate_id": candidate_id, "outcome": outcome.value}
    except Exception as e:
        logger.error(f"Error evaluating candidate {candidate_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/submissions", status_code=201)
async def submit_event(request: SubmissionRequest):
    """Public event submission. Queues the event as a pending candidate."""
    try:
        candidate_id = get_submission_service().submit(request)
        return {"status": "success", "candidate_id": candidate_id}
    except SubmissionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        logger.error(f"Error saving submission: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Could not save your submission")


@app.get("/candidates")
async def list_candidates(
    status: Optional[CandidateStatus] = None,
    limit: int = 100,
    x_api_key: str = Header(None, alias="X-API-Key"),
):
    """List candidates newest first, optionally by status"""
    _require_key(x_api_key, settings.ADMIN_API_KEY)
    candidates = get_review_service().list_candidates(status=status, limit=limit)
    return {"count": len(candidates), "candidates": [c.model_dump(mode="json") for c in candidates]}


REVIEW_ACTIONS = ("promote", "reject", "unpromote", "requeue")


@app.post("/candidates/{candidate_id}/{action}")
async def review_candidate(candidate_id: str, action: str, x_api_key: str = Header(None, alias="X-API-Key")):
    """Manual review action: promote, reject, unpromote or requeue"""
    _require_key(x_api_key, settings.ADMIN_API_KEY)
    if action not in REVIEW_ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown action: {action}")

    try:
        logger.info(f"Review action '{action}' on candidate {candidate_id}")
        result = getattr(get_review_service(), action)(candidate_id)
    except CandidateNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        logger.error(f"Error applying {action} to {candidate_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    if not result.get('success'):
        raise HTTPException(status_code=500, detail=result.get('error', 'Unknown error'))
    return result


@app.on_event("startup")
async def startup_event():
    """Start the nightly scheduler in production"""
    logger.info("Starting AI Safety Events Pipeline")

    missing = settings.missing_credentials()
    if missing:
        logger.warning(f"Missing credentials: {', '.join(missing)}. Pipeline endpoints will fail until set.")

    if settings.ENABLE_SCHEDULER and settings.ENVIRONMENT == "production":
        from schedulers.nightly_pipeline import start_scheduler
        _services["scheduler"] = start_scheduler()
    else:
        logger.info("Development mode - scheduler not started. Use /pipeline/run manually.")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on server shutdown"""
    logger.info("Shutting down AI Safety Events Pipeline")
    scheduler = _services.pop("scheduler", None)
    if scheduler:
        from schedulers.nightly_pipeline import stop_scheduler
        stop_scheduler(scheduler)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
