"""Tests for the nightly pipeline job"""
from unittest.mock import MagicMock, patch
from models.results import BatchReport, ConnectorReport, GatherReport
from schedulers.nightly_pipeline import run_nightly_pipeline
from utils.errors import ConfigurationError


def make_orchestrator():
    orchestrator = MagicMock()
    orchestrator.run.return_value = {
        "gather": GatherReport(connectors=[
            ConnectorReport(source="luma", fetched=3, kept=2, inserted=2),
            ConnectorReport(source="meetup", failed=True, error_message="HTTP 503"),
        ]),
        "evaluate": BatchReport(total=2, promoted=1, evaluated=1),
        "elapsed_seconds": 4.2,
    }
    return orchestrator


@patch("config.Settings.require_credentials")
def test_successful_run_returns_reports(mock_require):
    result = run_nightly_pipeline(make_orchestrator())

    assert result["status"] == "success"
    assert result["gather"]["luma"]["inserted"] == 2
    assert result["gather"]["meetup"]["failed"] is True
    assert result["evaluate"]["promoted"] == 1
    assert result["elapsed_seconds"] == 4.2


@patch("config.Settings.require_credentials", side_effect=ConfigurationError("Missing required settings: ANTHROPIC_API_KEY"))
def test_missing_credentials_reported_not_raised(mock_require):
    orchestrator = make_orchestrator()
    result = run_nightly_pipeline(orchestrator)

    assert result["status"] == "error"
    assert "ANTHROPIC_API_KEY" in result["error"]
    orchestrator.run.assert_not_called()


@patch("config.Settings.require_credentials")
def test_pipeline_crash_is_contained(mock_require):
    orchestrator = MagicMock()
    orchestrator.run.side_effect = RuntimeError("store unreachable")

    result = run_nightly_pipeline(orchestrator)

    assert result == {"status": "error", "error": "store unreachable"}
