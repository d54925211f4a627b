"""
Lesson Workflow.

Request-level orchestration around the challenge engine: ownership checks,
persistence ordering and lifecycle updates. Each public method is one unit of
work for the HTTP and CLI layers.

Ordering guarantees:
- A submission is committed in ``evaluating`` state before the model call, so
  a crash mid-evaluation leaves an auditable record.
- Model calls never run inside an open transaction.
- If challenge insertion fails after the plan row was committed, the plan is
  deleted again before the error propagates.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import contextmanager
from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import Settings, get_settings
from src.db.database import new_session
from src.db.repository import LessonRepository
from src.engine.errors import Forbidden, InvalidInput, LessonEngineError, NotFound
from src.engine.evaluator import normalize_submission
from src.engine.lifecycle import (
    challenge_status_after_evaluation,
    derive_plan_status,
    engage_challenge,
    submission_status_for,
    transition_plan,
    transition_submission,
)
from src.engine.models import (
    Challenge,
    ChallengeStatus,
    Difficulty,
    Evaluation,
    Plan,
    PlanStatus,
    RecomputeResult,
    Submission,
    SubmissionStatus,
)
from src.engine.service import LessonEngine


def calculate_progress(completed: int, total: int) -> int:
    """Percentage of completed work, rounded; 0 for an empty plan."""
    if total == 0:
        return 0
    return round(completed / total * 100)


@dataclass
class PlanView:
    """A plan with its ordered challenges."""

    plan: Plan
    challenges: list[Challenge] = field(default_factory=list)

    @property
    def passed_count(self) -> int:
        return sum(1 for c in self.challenges if c.status == ChallengeStatus.PASSED)

    @property
    def progress(self) -> int:
        return calculate_progress(self.passed_count, len(self.challenges))


@dataclass
class SubmissionOutcome:
    submission: Submission
    evaluation: Evaluation
    challenge_status: ChallengeStatus
    plan_status: PlanStatus
    new_challenges: list[Challenge] = field(default_factory=list)


@dataclass
class RecomputeOutcome:
    result: RecomputeResult
    plan_status: PlanStatus
    new_challenges: list[Challenge] = field(default_factory=list)


class LessonWorkflow:
    """Runs engine operations against storage on behalf of one user."""

    def __init__(
        self,
        engine: LessonEngine,
        session_factory: Callable[[], Session] = new_session,
        auto_recompute: bool = True,
    ):
        self.engine = engine
        self.session_factory = session_factory
        self.auto_recompute = auto_recompute

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> LessonWorkflow:
        settings = settings or get_settings()
        return cls(LessonEngine.from_settings(settings), auto_recompute=settings.auto_recompute)

    @contextmanager
    def _repository(self) -> Generator[LessonRepository, None, None]:
        session = self.session_factory()
        try:
            yield LessonRepository(session)
            session.commit()
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            session.rollback()
            raise
        finally:
            session.close()

    # =========================================================================
    # Ownership
    # =========================================================================

    @staticmethod
    def _owned_plan(repo: LessonRepository, user_id: str, plan_id: str) -> Plan:
        plan = repo.get_plan(plan_id)
        if plan is None or plan.user_id != user_id:
            raise NotFound("Plan not found")
        return plan

    @staticmethod
    def _owned_challenge(
        repo: LessonRepository, user_id: str, challenge_id: str
    ) -> tuple[Challenge, Plan]:
        challenge = repo.get_challenge(challenge_id)
        if challenge is None:
            raise NotFound("Challenge not found")
        plan = repo.get_plan(challenge.plan_id)
        if plan is None:
            raise NotFound("Challenge not found")
        if plan.user_id != user_id:
            raise Forbidden("Challenge belongs to another user")
        return challenge, plan

    @staticmethod
    def _refresh_plan_status(repo: LessonRepository, plan: Plan) -> PlanStatus:
        """Rescan challenge statuses and store the derived plan status."""
        statuses = [c.status for c in repo.list_challenges(plan.id)]
        current = repo.get_plan(plan.id).status
        derived = derive_plan_status(current, statuses)
        if derived != current:
            repo.set_plan_status(plan.id, transition_plan(current, derived))
            logger.info(f"Plan {plan.id} is now {derived.value}")
        return derived

    # =========================================================================
    # Plans
    # =========================================================================

    def create_plan(
        self,
        user_id: str,
        topic: str,
        context: str | None = None,
        difficulty: Difficulty | str | None = None,
        num_challenges: int | None = None,
    ) -> PlanView:
        """Generate a plan and store it with its challenges."""
        draft = self.engine.generate_plan(topic, context, difficulty, num_challenges)

        with self._repository() as repo:
            plan = repo.create_plan(user_id, draft)

        try:
            with self._repository() as repo:
                challenges = repo.add_challenges(plan.id, draft.challenges)
        except SQLAlchemyError:
            logger.error(f"Failed to store challenges for plan {plan.id}; removing plan")
            with self._repository() as repo:
                repo.delete_plan(plan.id)
            raise

        logger.info(f"Created plan {plan.id} '{plan.topic}' with {len(challenges)} challenges")
        return PlanView(plan=plan, challenges=challenges)

    def list_plans(self, user_id: str, status: PlanStatus | None = None) -> list[PlanView]:
        with self._repository() as repo:
            plans = repo.list_plans(user_id, status)
            return [PlanView(plan=p, challenges=repo.list_challenges(p.id)) for p in plans]

    def get_plan(self, user_id: str, plan_id: str) -> PlanView:
        with self._repository() as repo:
            plan = self._owned_plan(repo, user_id, plan_id)
            return PlanView(plan=plan, challenges=repo.list_challenges(plan.id))

    def archive_plan(self, user_id: str, plan_id: str) -> Plan:
        with self._repository() as repo:
            plan = self._owned_plan(repo, user_id, plan_id)
            repo.set_plan_status(plan.id, transition_plan(plan.status, PlanStatus.ARCHIVED))
            return repo.get_plan(plan.id)

    # =========================================================================
    # Challenges & Submissions
    # =========================================================================

    def start_challenge(self, user_id: str, challenge_id: str) -> Challenge:
        """Mark a challenge in progress on first view."""
        with self._repository() as repo:
            challenge, _ = self._owned_challenge(repo, user_id, challenge_id)
            repo.set_challenge_status(challenge.id, engage_challenge(challenge.status))
            return repo.get_challenge(challenge.id)

    def submit(self, user_id: str, challenge_id: str, content: str) -> SubmissionOutcome:
        """
        Record, evaluate and apply a learner submission.

        Raises:
            InvalidInput: Blank content or archived plan (before any model call)
            NotFound / Forbidden: Unknown challenge or another user's plan
            GatewayUnavailable / GatewayRejected / ContractViolation: Evaluation failed;
                the submission stays in ``evaluating``
        """
        text = normalize_submission(content)

        with self._repository() as repo:
            challenge, plan = self._owned_challenge(repo, user_id, challenge_id)
            if plan.status == PlanStatus.ARCHIVED:
                raise InvalidInput("Plan is archived")
            repo.set_challenge_status(challenge.id, engage_challenge(challenge.status))
            submission = repo.create_submission(
                challenge.id, user_id, text, status=SubmissionStatus.EVALUATING
            )

        evaluation = self.engine.evaluate_submission(challenge, text)

        with self._repository() as repo:
            status = transition_submission(submission.status, submission_status_for(evaluation.passed))
            submission = repo.record_evaluation(submission.id, status, evaluation)
            current = repo.get_challenge(challenge.id).status
            challenge_status = challenge_status_after_evaluation(current, evaluation.passed)
            repo.set_challenge_status(challenge.id, challenge_status)
            plan_status = self._refresh_plan_status(repo, plan)

        outcome = SubmissionOutcome(
            submission=submission,
            evaluation=evaluation,
            challenge_status=challenge_status,
            plan_status=plan_status,
        )

        if self.auto_recompute and plan_status == PlanStatus.ACTIVE:
            try:
                recomputed = self.recompute(user_id, plan.id)
            except (LessonEngineError, SQLAlchemyError) as e:
                logger.warning(f"Recompute after evaluation failed for plan {plan.id}: {e}")
            else:
                outcome.new_challenges = recomputed.new_challenges
                outcome.plan_status = recomputed.plan_status

        return outcome

    # =========================================================================
    # Adaptation
    # =========================================================================

    def recompute(self, user_id: str, plan_id: str) -> RecomputeOutcome:
        """Append adapted challenges to a plan when it runs low on work."""
        with self._repository() as repo:
            plan = self._owned_plan(repo, user_id, plan_id)
            if plan.status == PlanStatus.ARCHIVED:
                raise InvalidInput("Plan is archived")
            challenges = repo.list_challenges(plan.id)
            submissions = repo.list_submissions(user_id, [c.id for c in challenges])

        result = self.engine.recompute_plan(plan.topic, challenges, submissions)
        if not result.generated or not result.new_challenges:
            return RecomputeOutcome(result=result, plan_status=plan.status)

        with self._repository() as repo:
            added = repo.add_challenges(plan.id, result.new_challenges)
            repo.touch_plan(plan.id)
            plan_status = self._refresh_plan_status(repo, plan)

        return RecomputeOutcome(result=result, plan_status=plan_status, new_challenges=added)
