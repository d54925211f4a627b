"""
Adaptive Recompute Engine.

Decides whether a plan needs more challenges and, if so, asks the plan
generator for them in adaptation mode:

1. No completed (passed/failed) challenge -> no-op
2. At least ``runway`` pending/in-progress challenges -> no-op
3. Average the scores of passed submissions on completed challenges
   (DEFAULT_AVERAGE_SCORE when there are none)
4. Request ``runway - pending`` new challenges
5. Number them after the current maximum order_index

Repeating the call while enough work is pending is always a no-op.
"""
from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from src.engine.lifecycle import COMPLETED_CHALLENGE_STATES, OPEN_CHALLENGE_STATES
from src.engine.models import Challenge, RecomputeResult, Submission, SubmissionStatus
from src.engine.plan_generator import PlanGenerator

# Neutral midpoint between the "scaffold" (<60) and "harder" (>85) branches.
# Tunable, not derived.
DEFAULT_AVERAGE_SCORE = 70.0
DEFAULT_RUNWAY = 3

NO_COMPLETED = "no_completed"
ENOUGH_PENDING = "enough_pending"


def completed_challenges(challenges: Sequence[Challenge]) -> list[Challenge]:
    return [c for c in challenges if c.status in COMPLETED_CHALLENGE_STATES]


def pending_challenges(challenges: Sequence[Challenge]) -> list[Challenge]:
    return [c for c in challenges if c.status in OPEN_CHALLENGE_STATES]


def average_score(
    submissions: Sequence[Submission],
    challenge_ids: set[str] | None = None,
    default: float = DEFAULT_AVERAGE_SCORE,
) -> float:
    """Mean score of passed, scored submissions.

    Args:
        submissions: Candidate submissions
        challenge_ids: If given, only submissions to these challenges count
        default: Returned when nothing qualifies
    """
    scores = [
        s.score
        for s in submissions
        if s.status == SubmissionStatus.PASSED
        and s.score is not None
        and (challenge_ids is None or s.challenge_id in challenge_ids)
    ]
    if not scores:
        return default
    return sum(scores) / len(scores)


def next_order_index(challenges: Sequence[Challenge]) -> int:
    if not challenges:
        return 0
    return max(c.order_index for c in challenges) + 1


class AdaptiveRecomputeEngine:
    """Generates follow-up challenges from observed performance."""

    def __init__(
        self,
        generator: PlanGenerator,
        runway: int = DEFAULT_RUNWAY,
        default_average: float = DEFAULT_AVERAGE_SCORE,
    ):
        self.generator = generator
        self.runway = runway
        self.default_average = default_average

    def plan_request_count(self, challenges: Sequence[Challenge]) -> int:
        """How many challenges a recompute would ask for (0 = no-op)."""
        if not completed_challenges(challenges):
            return 0
        return max(0, min(self.runway - len(pending_challenges(challenges)), self.runway))

    def recompute(
        self,
        topic: str,
        challenges: Sequence[Challenge],
        submissions: Sequence[Submission],
    ) -> RecomputeResult:
        """
        Recompute a plan's upcoming challenges.

        Args:
            topic: Plan topic
            challenges: Every challenge currently in the plan
            submissions: The plan owner's submissions

        Returns:
            RecomputeResult; ``generated`` is False on a no-op
        """
        completed = completed_challenges(challenges)
        if not completed:
            logger.info(f"Recompute '{topic}': no completed challenges, nothing to adapt")
            return RecomputeResult.noop(NO_COMPLETED)

        pending = pending_challenges(challenges)
        if len(pending) >= self.runway:
            logger.info(f"Recompute '{topic}': {len(pending)} challenges pending, nothing to add")
            return RecomputeResult.noop(ENOUGH_PENDING)

        average = average_score(
            submissions,
            challenge_ids={c.id for c in completed},
            default=self.default_average,
        )
        count = self.plan_request_count(challenges)

        specs = self.generator.adapt(topic, completed, average, count)
        start = next_order_index(challenges)
        new_challenges = [spec.at(start + i) for i, spec in enumerate(specs)]

        logger.info(
            f"Recompute '{topic}': added {len(new_challenges)} challenges "
            f"from index {start} (average {average:.1f})"
        )
        return RecomputeResult(
            generated=True,
            new_challenges=new_challenges,
            average_score=average,
            requested=count,
        )
