"""
Challenge engine facade.

Exposes the three operations callers use:

- generate_plan: topic -> plan description + exactly N challenges
- evaluate_submission: challenge + text -> passed/feedback/score
- recompute_plan: history -> new challenges or a no-op

Storage, ownership and HTTP concerns live with the caller (see
src.lessons.workflow).
"""
from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from config import Settings, get_settings
from src.engine.errors import ContractViolation
from src.engine.evaluator import SubmissionEvaluator
from src.engine.gateway import GatewayConfig, ModelGateway, TextGenerator
from src.engine.models import (
    Challenge,
    Difficulty,
    Evaluation,
    PlanDraft,
    PlanMetadata,
    RecomputeResult,
    Submission,
)
from src.engine.plan_generator import PlanGenerator, PlanRequest
from src.engine.recompute import AdaptiveRecomputeEngine


class LessonEngine:
    """Wires generator, evaluator and recompute engine around one gateway."""

    def __init__(
        self,
        generator: PlanGenerator,
        evaluator: SubmissionEvaluator,
        recompute_engine: AdaptiveRecomputeEngine,
        model_name: str | None = None,
    ):
        self.generator = generator
        self.evaluator = evaluator
        self.recompute_engine = recompute_engine
        self.model_name = model_name

    @classmethod
    def from_gateway(
        cls,
        gateway: TextGenerator,
        settings: Settings | None = None,
    ) -> LessonEngine:
        settings = settings or get_settings()
        generator = PlanGenerator(
            gateway,
            model=settings.ai_model,
            temperature=settings.generation_temperature,
            max_tokens=settings.max_output_tokens,
        )
        evaluator = SubmissionEvaluator(
            gateway,
            model=settings.ai_model,
            temperature=settings.evaluation_temperature,
            max_tokens=settings.max_output_tokens,
        )
        recompute_engine = AdaptiveRecomputeEngine(
            generator,
            runway=settings.adaptation_runway,
            default_average=settings.adaptation_default_score,
        )
        return cls(generator, evaluator, recompute_engine, model_name=settings.ai_model)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> LessonEngine:
        settings = settings or get_settings()
        return cls.from_gateway(ModelGateway(GatewayConfig.from_settings(settings)), settings)

    def generate_plan(
        self,
        topic: str,
        context: str | None = None,
        difficulty: Difficulty | str | None = None,
        num_challenges: int | None = None,
    ) -> PlanDraft:
        """
        Generate a plan draft with exactly the requested number of challenges.

        Raises:
            InvalidInput: Blank topic or unknown difficulty
            GatewayUnavailable / GatewayRejected: Model call failed
            ContractViolation: Unparseable output or wrong challenge count
        """
        request = PlanRequest.create(topic, context, difficulty, num_challenges)
        content = self.generator.generate(request)

        if len(content.challenges) != request.num_challenges:
            raise ContractViolation(
                f"Expected {request.num_challenges} challenges, "
                f"model returned {len(content.challenges)}"
            )

        return PlanDraft(
            topic=request.topic,
            description=content.description,
            prompt_used=request.prompt_used,
            metadata=PlanMetadata(
                difficulty=request.difficulty,
                tags=[request.topic.lower()],
                model_used=self.model_name,
            ),
            challenges=[spec.at(i) for i, spec in enumerate(content.challenges)],
        )

    def evaluate_submission(self, challenge: Challenge, submission_text: str) -> Evaluation:
        """Grade a submission. Blank text fails before any model call."""
        return self.evaluator.evaluate(challenge, submission_text)

    def recompute_plan(
        self,
        topic: str,
        challenges: Sequence[Challenge],
        submissions: Sequence[Submission],
    ) -> RecomputeResult:
        """Append adapted challenges when the plan is running low on work."""
        result = self.recompute_engine.recompute(topic, challenges, submissions)
        if not result.generated:
            logger.debug(f"Recompute skipped: {result.reason}")
        return result
