"""Tests for Classifier threshold rules"""
import pytest
from models.evaluation import AIEvaluation
from processors.classifier import Classifier, Decision


def make_evaluation(**overrides) -> AIEvaluation:
    data = {
        "is_real_event": True,
        "is_relevant": True,
        "relevance_score": 0.8,
        "clean_title": "AI Safety Meetup",
    }
    data.update(overrides)
    return AIEvaluation(**data)


@pytest.fixture
def classifier():
    return Classifier(promote_threshold=0.6, reject_threshold=0.3)


@pytest.mark.parametrize("score,expected", [
    (0.59, Decision.REVIEW),
    (0.6, Decision.PROMOTE),
    (0.29, Decision.REJECT),
    (0.3, Decision.REVIEW),
    (1.0, Decision.PROMOTE),
    (0.0, Decision.REJECT),
])
def test_threshold_boundaries(classifier, score, expected):
    assert classifier.classify(make_evaluation(relevance_score=score)) == expected


def test_duplicate_wins_over_high_score(classifier):
    evaluation = make_evaluation(relevance_score=0.95, duplicate_of="eval-luma-1-abcd")
    assert classifier.classify(evaluation) == Decision.DUPLICATE


def test_not_real_is_rejected_regardless_of_score(classifier):
    assert classifier.classify(make_evaluation(is_real_event=False, relevance_score=0.9)) == Decision.REJECT


def test_not_relevant_is_rejected_regardless_of_score(classifier):
    assert classifier.classify(make_evaluation(is_relevant=False, relevance_score=0.9)) == Decision.REJECT


def test_defaults_come_from_settings():
    from config import settings
    classifier = Classifier()
    assert classifier.promote_threshold == settings.PROMOTE_THRESHOLD
    assert classifier.reject_threshold == settings.REJECT_THRESHOLD
