"""
Lesson storage models.

SQLAlchemy models for plans, their challenges and learner submissions:
- A plan owns its challenges (cascade delete)
- order_index is unique within a plan
- Submissions reference a challenge and its owning user
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.engine.models import (
    Challenge,
    ChallengeStatus,
    Plan,
    PlanMetadata,
    PlanStatus,
    Submission,
    SubmissionStatus,
    utcnow,
)

from .base import Base


def _uuid() -> str:
    return str(uuid4())


class PlanRecord(Base):
    """A topic-scoped learning plan owned by one user."""

    __tablename__ = "plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    topic: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    prompt_used: Mapped[str] = mapped_column(Text, nullable=False, default="")
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=PlanStatus.ACTIVE.value
    )  # 'active', 'completed', 'archived'

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    challenges: Mapped[list[ChallengeRecord]] = relationship(
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="ChallengeRecord.order_index",
    )

    __table_args__ = (Index("idx_plans_user_status", "user_id", "status"),)

    def __repr__(self) -> str:
        return f"<PlanRecord id={self.id} topic={self.topic!r} status={self.status}>"

    def to_domain(self) -> Plan:
        return Plan(
            id=self.id,
            user_id=self.user_id,
            topic=self.topic,
            description=self.description,
            prompt_used=self.prompt_used,
            metadata=PlanMetadata.from_dict(self.metadata_json),
            status=PlanStatus(self.status),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class ChallengeRecord(Base):
    """One unit of work within a plan."""

    __tablename__ = "challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    plan_id: Mapped[str] = mapped_column(
        ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    success_criteria: Mapped[str] = mapped_column(Text, nullable=False)
    hints: Mapped[list[str]] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=ChallengeStatus.PENDING.value
    )  # 'pending', 'in_progress', 'passed', 'failed'

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    plan: Mapped[PlanRecord] = relationship(back_populates="challenges")

    __table_args__ = (UniqueConstraint("plan_id", "order_index", name="uq_plan_order_index"),)

    def __repr__(self) -> str:
        return f"<ChallengeRecord id={self.id} plan={self.plan_id} #{self.order_index} status={self.status}>"

    def to_domain(self) -> Challenge:
        return Challenge(
            id=self.id,
            plan_id=self.plan_id,
            order_index=self.order_index,
            title=self.title,
            description=self.description,
            success_criteria=self.success_criteria,
            hints=list(self.hints or []),
            status=ChallengeStatus(self.status),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class SubmissionRecord(Base):
    """One learner attempt at a challenge."""

    __tablename__ = "submissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    challenge_id: Mapped[str] = mapped_column(
        ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=SubmissionStatus.PENDING.value
    )  # 'pending', 'evaluating', 'passed', 'failed'
    feedback: Mapped[str | None] = mapped_column(Text)
    score: Mapped[int | None] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (Index("idx_submissions_user_challenge", "user_id", "challenge_id"),)

    def __repr__(self) -> str:
        return f"<SubmissionRecord id={self.id} challenge={self.challenge_id} status={self.status}>"

    def to_domain(self) -> Submission:
        return Submission(
            id=self.id,
            challenge_id=self.challenge_id,
            user_id=self.user_id,
            content=self.content,
            status=SubmissionStatus(self.status),
            feedback=self.feedback,
            score=self.score,
            created_at=self.created_at,
        )
