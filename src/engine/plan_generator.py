"""
Plan Generator.

Two modes sharing one challenge contract:

1. Initial mode (``generate``): topic/context/difficulty/count -> plan
   description plus challenge specs in generation order.
2. Adaptation mode (``adapt``): completed challenges and an average score ->
   new challenge specs only.

The generator accepts whatever number of challenges the model returns;
callers needing an exact count re-check the length. Gateway and contract
errors propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from src.engine.contract import AdaptationContract, PlanContract, extract
from src.engine.errors import InvalidInput
from src.engine.gateway import GenerationOptions, TextGenerator
from src.engine.models import Challenge, ChallengeSpec, Difficulty, PlanContent
from src.engine.prompts import (
    build_adaptation_messages,
    build_plan_messages,
    build_prompt_used,
)

MIN_CHALLENGES = 3
MAX_CHALLENGES = 10
DEFAULT_CHALLENGES = 5
GENERATION_TEMPERATURE = 0.7


def clamp_challenge_count(value: int | None) -> int:
    """Clamp a requested challenge count into [3, 10] (default 5)."""
    if value is None:
        return DEFAULT_CHALLENGES
    return min(max(int(value), MIN_CHALLENGES), MAX_CHALLENGES)


def parse_difficulty(value: Difficulty | str | None) -> Difficulty:
    if value is None or (isinstance(value, str) and not value.strip()):
        return Difficulty.BEGINNER
    if isinstance(value, Difficulty):
        return value
    try:
        return Difficulty(value.strip().lower())
    except ValueError as e:
        allowed = ", ".join(d.value for d in Difficulty)
        raise InvalidInput(f"difficulty must be one of: {allowed}") from e


@dataclass(frozen=True)
class PlanRequest:
    """Normalized initial-mode request."""

    topic: str
    context: str | None = None
    difficulty: Difficulty = Difficulty.BEGINNER
    num_challenges: int = DEFAULT_CHALLENGES

    @classmethod
    def create(
        cls,
        topic: str | None,
        context: str | None = None,
        difficulty: Difficulty | str | None = None,
        num_challenges: int | None = None,
    ) -> PlanRequest:
        """Trim, default and clamp raw caller input.

        Raises:
            InvalidInput: Blank topic or unknown difficulty
        """
        if not isinstance(topic, str) or not topic.strip():
            raise InvalidInput("Topic is required")
        context = context.strip() if isinstance(context, str) else None
        return cls(
            topic=topic.strip(),
            context=context or None,
            difficulty=parse_difficulty(difficulty),
            num_challenges=clamp_challenge_count(num_challenges),
        )

    @property
    def prompt_used(self) -> str:
        return build_prompt_used(self.topic, self.context, self.difficulty, self.num_challenges)


class PlanGenerator:
    """Builds generation prompts, calls the model and validates the result."""

    def __init__(
        self,
        gateway: TextGenerator,
        model: str | None = None,
        temperature: float = GENERATION_TEMPERATURE,
        max_tokens: int = 4096,
    ):
        self.gateway = gateway
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def options(self) -> GenerationOptions:
        return GenerationOptions(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    def generate(self, request: PlanRequest) -> PlanContent:
        """Generate the initial plan description and challenges."""
        logger.info(
            f"Generating plan for '{request.topic}' "
            f"({request.difficulty.value}, {request.num_challenges} challenges)"
        )
        messages = build_plan_messages(
            request.topic, request.context, request.difficulty, request.num_challenges
        )
        raw = self.gateway.generate(messages, self.options)
        contract = extract(raw, PlanContract)

        challenges = [c.to_spec() for c in contract.challenges]
        if len(challenges) != request.num_challenges:
            logger.warning(
                f"Model returned {len(challenges)} challenges, {request.num_challenges} requested"
            )
        return PlanContent(description=contract.description, challenges=challenges)

    def adapt(
        self,
        topic: str,
        completed: Sequence[Challenge],
        average_score: float,
        num_challenges: int,
    ) -> list[ChallengeSpec]:
        """Generate follow-up challenges tuned to the learner's average score."""
        if num_challenges <= 0:
            raise InvalidInput("num_challenges must be positive")
        logger.info(
            f"Adapting '{topic}': {num_challenges} new challenges "
            f"(average score {average_score:.1f}, {len(completed)} completed)"
        )
        messages = build_adaptation_messages(topic, completed, average_score, num_challenges)
        raw = self.gateway.generate(messages, self.options)
        contract = extract(raw, AdaptationContract)
        return [c.to_spec() for c in contract.challenges]
