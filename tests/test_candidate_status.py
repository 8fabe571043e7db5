"""Tests for the candidate status lifecycle"""
import pytest
from models.candidate import CandidateStatus, transition, is_evaluable
from utils.errors import InvalidStatusTransition

PENDING = CandidateStatus.PENDING
EVALUATED = CandidateStatus.EVALUATED
PROMOTED = CandidateStatus.PROMOTED
REJECTED = CandidateStatus.REJECTED


@pytest.mark.parametrize("current,target", [
    (PENDING, EVALUATED),
    (PENDING, PROMOTED),
    (PENDING, REJECTED),
    (EVALUATED, EVALUATED),
    (EVALUATED, PROMOTED),
    (EVALUATED, REJECTED),
])
def test_normal_moves(current, target):
    assert transition(current, target) == target


@pytest.mark.parametrize("current,target", [
    (REJECTED, EVALUATED),
    (REJECTED, PROMOTED),
    (PROMOTED, EVALUATED),
    (PROMOTED, REJECTED),
    (EVALUATED, PENDING),
])
def test_terminal_and_backward_moves_need_force(current, target):
    with pytest.raises(InvalidStatusTransition):
        transition(current, target)


@pytest.mark.parametrize("current,target", [
    (REJECTED, EVALUATED),
    (REJECTED, PROMOTED),
    (REJECTED, PENDING),
    (PROMOTED, EVALUATED),
    (PROMOTED, PENDING),
    (EVALUATED, PENDING),
])
def test_forced_moves(current, target):
    assert transition(current, target, force=True) == target


def test_promoted_cannot_be_rejected_even_when_forced():
    """Unpromote goes through evaluated"""
    with pytest.raises(InvalidStatusTransition):
        transition(PROMOTED, REJECTED, force=True)


def test_transition_accepts_plain_strings():
    assert transition("pending", "promoted") == PROMOTED


def test_is_evaluable():
    assert is_evaluable(PENDING) is True
    assert is_evaluable(EVALUATED) is False
    assert is_evaluable(EVALUATED, force=True) is True
    assert is_evaluable(REJECTED, force=True) is True
    assert is_evaluable(PROMOTED, force=True) is False
