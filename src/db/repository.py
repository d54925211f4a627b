"""
Lesson repository.

Thin data-access layer over the lesson ORM models. Returns domain dataclasses
so callers never hold ORM rows outside a session. Commits are the caller's
responsibility.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.db.models.lessons import ChallengeRecord, PlanRecord, SubmissionRecord
from src.engine.models import (
    Challenge,
    ChallengeStatus,
    Evaluation,
    NewChallenge,
    Plan,
    PlanDraft,
    PlanStatus,
    Submission,
    SubmissionStatus,
    utcnow,
)


class LessonRepository:
    """CRUD for plans, challenges and submissions within one session."""

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # Plans
    # =========================================================================

    def create_plan(self, user_id: str, draft: PlanDraft) -> Plan:
        record = PlanRecord(
            user_id=user_id,
            topic=draft.topic,
            description=draft.description,
            prompt_used=draft.prompt_used,
            metadata_json=draft.metadata.to_dict(),
            status=PlanStatus.ACTIVE.value,
        )
        self.session.add(record)
        self.session.flush()
        return record.to_domain()

    def get_plan(self, plan_id: str) -> Plan | None:
        record = self.session.get(PlanRecord, plan_id)
        return record.to_domain() if record else None

    def list_plans(self, user_id: str, status: PlanStatus | None = None) -> list[Plan]:
        stmt = select(PlanRecord).where(PlanRecord.user_id == user_id)
        if status is not None:
            stmt = stmt.where(PlanRecord.status == status.value)
        stmt = stmt.order_by(PlanRecord.created_at.desc())
        return [r.to_domain() for r in self.session.scalars(stmt)]

    def delete_plan(self, plan_id: str) -> None:
        record = self.session.get(PlanRecord, plan_id)
        if record is not None:
            self.session.delete(record)
            self.session.flush()

    def set_plan_status(self, plan_id: str, status: PlanStatus) -> None:
        record = self._plan_record(plan_id)
        record.status = status.value
        record.updated_at = utcnow()
        self.session.flush()

    def touch_plan(self, plan_id: str) -> None:
        record = self._plan_record(plan_id)
        record.updated_at = utcnow()
        self.session.flush()

    def _plan_record(self, plan_id: str) -> PlanRecord:
        record = self.session.get(PlanRecord, plan_id)
        if record is None:
            raise LookupError(f"Plan {plan_id} does not exist")
        return record

    # =========================================================================
    # Challenges
    # =========================================================================

    def add_challenges(self, plan_id: str, challenges: Sequence[NewChallenge]) -> list[Challenge]:
        records = [
            ChallengeRecord(
                plan_id=plan_id,
                order_index=c.order_index,
                title=c.title,
                description=c.description,
                success_criteria=c.success_criteria,
                hints=list(c.hints),
                status=ChallengeStatus.PENDING.value,
            )
            for c in challenges
        ]
        self.session.add_all(records)
        self.session.flush()
        return sorted((r.to_domain() for r in records), key=lambda c: c.order_index)

    def list_challenges(self, plan_id: str) -> list[Challenge]:
        stmt = (
            select(ChallengeRecord)
            .where(ChallengeRecord.plan_id == plan_id)
            .order_by(ChallengeRecord.order_index)
        )
        return [r.to_domain() for r in self.session.scalars(stmt)]

    def get_challenge(self, challenge_id: str) -> Challenge | None:
        record = self.session.get(ChallengeRecord, challenge_id)
        return record.to_domain() if record else None

    def set_challenge_status(self, challenge_id: str, status: ChallengeStatus) -> None:
        record = self.session.get(ChallengeRecord, challenge_id)
        if record is None:
            raise LookupError(f"Challenge {challenge_id} does not exist")
        if record.status != status.value:
            record.status = status.value
            record.updated_at = utcnow()
            self.session.flush()

    # =========================================================================
    # Submissions
    # =========================================================================

    def create_submission(
        self,
        challenge_id: str,
        user_id: str,
        content: str,
        status: SubmissionStatus = SubmissionStatus.EVALUATING,
    ) -> Submission:
        record = SubmissionRecord(
            challenge_id=challenge_id,
            user_id=user_id,
            content=content,
            status=status.value,
        )
        self.session.add(record)
        self.session.flush()
        return record.to_domain()

    def record_evaluation(
        self, submission_id: str, status: SubmissionStatus, evaluation: Evaluation
    ) -> Submission:
        record = self.session.get(SubmissionRecord, submission_id)
        if record is None:
            raise LookupError(f"Submission {submission_id} does not exist")
        record.status = status.value
        record.feedback = evaluation.feedback
        record.score = evaluation.score
        self.session.flush()
        return record.to_domain()

    def list_submissions(
        self,
        user_id: str,
        challenge_ids: Sequence[str] | None = None,
    ) -> list[Submission]:
        stmt = select(SubmissionRecord).where(SubmissionRecord.user_id == user_id)
        if challenge_ids is not None:
            if not challenge_ids:
                return []
            stmt = stmt.where(SubmissionRecord.challenge_id.in_(list(challenge_ids)))
        stmt = stmt.order_by(SubmissionRecord.created_at)
        return [r.to_domain() for r in self.session.scalars(stmt)]
