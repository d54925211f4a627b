"""
Domain types for plans, challenges and submissions.

These are plain dataclasses shared by the engine, the persistence layer and
the HTTP/CLI surfaces. Storage rows convert to and from them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlanStatus(str, Enum):
    """Status of a plan."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class ChallengeStatus(str, Enum):
    """Status of a challenge."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    FAILED = "failed"  # Non-terminal: the learner may resubmit


class SubmissionStatus(str, Enum):
    """Status of a submission."""

    PENDING = "pending"
    EVALUATING = "evaluating"
    PASSED = "passed"
    FAILED = "failed"


class Difficulty(str, Enum):
    """Requested difficulty of a generated plan."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass
class ChallengeSpec:
    """A generated challenge before it is placed in a plan."""

    title: str
    description: str
    success_criteria: str
    hints: list[str] = field(default_factory=list)

    def at(self, order_index: int) -> NewChallenge:
        """Place this spec at a position within a plan."""
        return NewChallenge(
            order_index=order_index,
            title=self.title,
            description=self.description,
            success_criteria=self.success_criteria,
            hints=list(self.hints),
        )


@dataclass
class NewChallenge:
    """A challenge spec with its order_index, ready to be stored."""

    order_index: int
    title: str
    description: str
    success_criteria: str
    hints: list[str] = field(default_factory=list)


@dataclass
class PlanContent:
    """Output of the plan generator in initial mode."""

    description: str
    challenges: list[ChallengeSpec] = field(default_factory=list)


@dataclass
class PlanMetadata:
    """Metadata stored alongside a plan."""

    difficulty: Difficulty = Difficulty.BEGINNER
    tags: list[str] = field(default_factory=list)
    model_used: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "difficulty": self.difficulty.value,
            "tags": list(self.tags),
            "model_used": self.model_used,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PlanMetadata:
        data = data or {}
        return cls(
            difficulty=Difficulty(data.get("difficulty") or Difficulty.BEGINNER.value),
            tags=list(data.get("tags") or []),
            model_used=data.get("model_used"),
        )


@dataclass
class PlanDraft:
    """A generated plan that has not been stored yet."""

    topic: str
    description: str
    prompt_used: str
    metadata: PlanMetadata
    challenges: list[NewChallenge] = field(default_factory=list)


@dataclass
class Plan:
    id: str
    user_id: str
    topic: str
    description: str
    prompt_used: str
    metadata: PlanMetadata = field(default_factory=PlanMetadata)
    status: PlanStatus = PlanStatus.ACTIVE
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Challenge:
    id: str
    plan_id: str
    order_index: int
    title: str
    description: str
    success_criteria: str
    hints: list[str] = field(default_factory=list)
    status: ChallengeStatus = ChallengeStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Submission:
    id: str
    challenge_id: str
    user_id: str
    content: str
    status: SubmissionStatus = SubmissionStatus.PENDING
    feedback: str | None = None
    score: int | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Evaluation:
    """Verdict returned by the submission evaluator."""

    passed: bool
    feedback: str
    score: int


@dataclass
class RecomputeResult:
    """Outcome of an adaptive recompute.

    ``generated`` is False for a no-op; ``reason`` then says why.
    """

    generated: bool
    new_challenges: list[NewChallenge] = field(default_factory=list)
    average_score: float | None = None
    requested: int = 0
    reason: str | None = None

    @classmethod
    def noop(cls, reason: str, average_score: float | None = None) -> RecomputeResult:
        return cls(generated=False, reason=reason, average_score=average_score)
