"""
Lifecycle state machine for plans, challenges and submissions.

All functions are pure: they take current statuses and return the next one,
raising InvalidTransition for moves the lifecycle does not allow.

    Plan:        active -> completed (all challenges passed) | archived
    Challenge:   pending -> in_progress -> passed | failed
                 failed  -> in_progress | passed | failed   (resubmission)
    Submission:  pending -> evaluating -> passed | failed

Plan completion is derived by scanning challenge statuses every time rather
than tracked with a counter, so repeated or concurrent scans agree.
"""
from __future__ import annotations

from collections.abc import Iterable

from src.engine.errors import InvalidTransition
from src.engine.models import ChallengeStatus, PlanStatus, SubmissionStatus

CHALLENGE_TRANSITIONS: dict[ChallengeStatus, frozenset[ChallengeStatus]] = {
    ChallengeStatus.PENDING: frozenset({ChallengeStatus.IN_PROGRESS}),
    ChallengeStatus.IN_PROGRESS: frozenset({ChallengeStatus.PASSED, ChallengeStatus.FAILED}),
    ChallengeStatus.FAILED: frozenset(
        {ChallengeStatus.IN_PROGRESS, ChallengeStatus.PASSED, ChallengeStatus.FAILED}
    ),
    ChallengeStatus.PASSED: frozenset(),
}

SUBMISSION_TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.PENDING: frozenset({SubmissionStatus.EVALUATING}),
    SubmissionStatus.EVALUATING: frozenset({SubmissionStatus.PASSED, SubmissionStatus.FAILED}),
    SubmissionStatus.PASSED: frozenset(),
    SubmissionStatus.FAILED: frozenset(),
}

PLAN_TRANSITIONS: dict[PlanStatus, frozenset[PlanStatus]] = {
    PlanStatus.ACTIVE: frozenset({PlanStatus.COMPLETED, PlanStatus.ARCHIVED}),
    # New challenges appended by recompute reopen a completed plan
    PlanStatus.COMPLETED: frozenset({PlanStatus.ACTIVE, PlanStatus.ARCHIVED}),
    PlanStatus.ARCHIVED: frozenset(),
}

COMPLETED_CHALLENGE_STATES = frozenset({ChallengeStatus.PASSED, ChallengeStatus.FAILED})
OPEN_CHALLENGE_STATES = frozenset({ChallengeStatus.PENDING, ChallengeStatus.IN_PROGRESS})


def transition_challenge(current: ChallengeStatus, target: ChallengeStatus) -> ChallengeStatus:
    if target not in CHALLENGE_TRANSITIONS[current]:
        raise InvalidTransition("challenge", current.value, target.value)
    return target


def transition_submission(current: SubmissionStatus, target: SubmissionStatus) -> SubmissionStatus:
    if target not in SUBMISSION_TRANSITIONS[current]:
        raise InvalidTransition("submission", current.value, target.value)
    return target


def transition_plan(current: PlanStatus, target: PlanStatus) -> PlanStatus:
    if target == current:
        return current
    if target not in PLAN_TRANSITIONS[current]:
        raise InvalidTransition("plan", current.value, target.value)
    return target


def engage_challenge(current: ChallengeStatus) -> ChallengeStatus:
    """Status after a learner views or submits to a challenge.

    Only pending moves; every other status is left as is.
    """
    if current == ChallengeStatus.PENDING:
        return transition_challenge(current, ChallengeStatus.IN_PROGRESS)
    return current


def challenge_status_after_evaluation(current: ChallengeStatus, passed: bool) -> ChallengeStatus:
    """Status after an evaluated submission.

    A passed challenge stays passed whatever later attempts score.
    """
    if current == ChallengeStatus.PASSED:
        return current
    current = engage_challenge(current)
    target = ChallengeStatus.PASSED if passed else ChallengeStatus.FAILED
    return transition_challenge(current, target)


def submission_status_for(passed: bool) -> SubmissionStatus:
    return SubmissionStatus.PASSED if passed else SubmissionStatus.FAILED


def is_plan_complete(statuses: Iterable[ChallengeStatus]) -> bool:
    """True when there is at least one challenge and all of them passed."""
    statuses = list(statuses)
    return bool(statuses) and all(s == ChallengeStatus.PASSED for s in statuses)


def derive_plan_status(current: PlanStatus, statuses: Iterable[ChallengeStatus]) -> PlanStatus:
    """Recompute a plan's status from its challenges. Archived plans stay archived."""
    if current == PlanStatus.ARCHIVED:
        return current
    return PlanStatus.COMPLETED if is_plan_complete(statuses) else PlanStatus.ACTIVE
