"""
Submission Evaluator.

Grades one free-text submission against a challenge's success criteria. The
model's ``passed`` verdict is authoritative: no score threshold is re-derived
here, so ``passed`` and ``score`` may disagree.
"""

from __future__ import annotations

from loguru import logger

from src.engine.contract import EvaluationContract, extract
from src.engine.errors import InvalidInput
from src.engine.gateway import GenerationOptions, TextGenerator
from src.engine.models import Challenge, Evaluation
from src.engine.prompts import build_evaluation_messages

EVALUATION_TEMPERATURE = 0.3


def normalize_submission(text: str | None) -> str:
    """Trim submission text.

    Raises:
        InvalidInput: Text is missing or blank
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidInput("Submission content is required")
    return text.strip()


class SubmissionEvaluator:
    """Grades submissions with a low-temperature model call."""

    def __init__(
        self,
        gateway: TextGenerator,
        model: str | None = None,
        temperature: float = EVALUATION_TEMPERATURE,
        max_tokens: int = 4096,
    ):
        self.gateway = gateway
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def evaluate(self, challenge: Challenge, submission_text: str) -> Evaluation:
        """
        Evaluate a submission.

        Args:
            challenge: Challenge being attempted (title, description, criteria)
            submission_text: Learner's answer; validated before any model call

        Returns:
            Evaluation with coerced ``passed``, clamped ``score`` and feedback
        """
        content = normalize_submission(submission_text)
        messages = build_evaluation_messages(
            challenge.title,
            challenge.description,
            challenge.success_criteria,
            content,
        )
        raw = self.gateway.generate(
            messages,
            GenerationOptions(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            ),
        )
        evaluation = extract(raw, EvaluationContract).to_evaluation()
        logger.info(
            f"Evaluated submission for '{challenge.title}': "
            f"{'passed' if evaluation.passed else 'failed'} ({evaluation.score})"
        )
        return evaluation
