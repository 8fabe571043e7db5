"""Tests for PromptManager message assembly and hot reload"""
import os
import pytest
from models.candidate import Candidate
from models.resource import DedupWindow, ExistingEvent
from prompts.prompt_manager import PromptManager


@pytest.fixture
def candidate():
    return Candidate(
        id="cand-luma-1",
        title="AI Safety Unconference",
        url="https://lu.ma/aisafety2026",
        source="luma",
        source_id="evt-abc",
        status="pending",
        event_date="2026-03-14",
    )


def test_user_message_blocks(candidate):
    manager = PromptManager()
    window = DedupWindow([ExistingEvent(id="eval-luma-9", title="EAG London")])

    system, user = manager.build_evaluation_prompt(
        candidate,
        "Two days of talks.",
        window,
        page_hints={"title": "AISU 2026", "date": None},
    )

    assert system
    assert "<event>" in user and "</event>" in user
    assert "Claimed date: 2026-03-14" in user
    assert "Page title: AISU 2026" in user
    assert "<scraped_page_content>\nTwo days of talks.\n</scraped_page_content>" in user
    assert "<existing_events>" in user
    assert "eval-luma-9" in user


def test_empty_window_and_unscraped_page(candidate):
    _, user = PromptManager().build_evaluation_prompt(candidate, "", DedupWindow())
    assert "[Page could not be scraped]" in user
    assert "<existing_events>" not in user


def test_display_title_replaces_placeholder(candidate):
    _, user = PromptManager().build_evaluation_prompt(
        candidate, "", DedupWindow(), display_title="(no title; infer from page)"
    )
    assert "Title: (no title; infer from page)" in user


def test_hot_reload(tmp_path):
    prompt_file = tmp_path / "sample.yaml"
    prompt_file.write_text("system_prompt: first\n")
    manager = PromptManager(prompts_dir=tmp_path)

    assert manager.get_prompt_config("sample")["system_prompt"] == "first"

    prompt_file.write_text("system_prompt: second\n")
    mtime = os.path.getmtime(prompt_file) + 10
    os.utime(prompt_file, (mtime, mtime))

    assert manager.get_prompt_config("sample")["system_prompt"] == "second"


def test_missing_prompt_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        PromptManager(prompts_dir=tmp_path).get_prompt_config("nope")
