"""
Contract Parser.

Model output is untrusted input. Every response is passed through ``extract``
which finds the embedded JSON object, decodes it and validates it against a
pydantic contract model:

- Structure problems (no object, bad JSON, missing or mistyped field) raise
  ContractViolation.
- Out-of-range bounded numbers are clamped, never rejected.
- Boolean fields accept textual variants ("yes", "Passed", "0", ...).
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterator
from typing import Annotated, Any, TypeVar

from loguru import logger
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator

from src.engine.errors import ContractViolation
from src.engine.models import ChallengeSpec, Evaluation

M = TypeVar("M", bound=BaseModel)

TRUE_WORDS = frozenset({"true", "yes", "y", "1", "pass", "passed", "correct"})
FALSE_WORDS = frozenset({"false", "no", "n", "0", "fail", "failed", "incorrect", ""})

DEFAULT_FEEDBACK = "No feedback provided"


# =============================================================================
# JSON span location
# =============================================================================


def _match_brace(text: str, start: int) -> int | None:
    """Return the index of the brace closing ``text[start]``, or None."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def iter_balanced_spans(text: str) -> Iterator[str]:
    """Yield balanced ``{...}`` spans in order of appearance.

    Braces inside JSON string literals do not count towards depth.
    """
    start = text.find("{")
    while start != -1:
        end = _match_brace(text, start)
        if end is None:
            start = text.find("{", start + 1)
            continue
        yield text[start : end + 1]
        start = text.find("{", end + 1)


def find_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` span, or None."""
    return next(iter_balanced_spans(text), None)


# =============================================================================
# Coercion helpers
# =============================================================================


def coerce_bool(value: Any) -> bool:
    """Map truthy/falsy variants onto a bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in TRUE_WORDS:
            return True
        if word in FALSE_WORDS:
            return False
    raise ValueError(f"cannot interpret {value!r} as a boolean")


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, int):
        try:
            number = float(value)
        except OverflowError:
            number = math.inf if value > 0 else -math.inf
    elif isinstance(value, float):
        number = value
    elif isinstance(value, str):
        number = float(value.strip().rstrip("%").strip())
    else:
        raise ValueError(f"cannot interpret {value!r} as a number")
    if math.isnan(number):
        raise ValueError("NaN is not a score")
    return number


def clamp(value: Any, low: int, high: int) -> int:
    """Round a numeric value and clamp it into [low, high]."""
    number = _to_number(value)
    if math.isinf(number):
        return high if number > 0 else low
    return int(min(high, max(low, round(number))))


def bounded_int(low: int, high: int):
    """Annotated int that clamps into [low, high] instead of failing."""
    return Annotated[int, BeforeValidator(lambda v: clamp(v, low, high))]


Score = bounded_int(0, 100)
LenientBool = Annotated[bool, BeforeValidator(coerce_bool)]


# =============================================================================
# Contracts
# =============================================================================


class ChallengeContract(BaseModel):
    """One challenge as the model must return it."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    success_criteria: str = Field(min_length=1)
    hints: list[str] = Field(default_factory=list)

    @field_validator("hints", mode="before")
    @classmethod
    def _null_hints(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_spec(self) -> ChallengeSpec:
        return ChallengeSpec(
            title=self.title,
            description=self.description,
            success_criteria=self.success_criteria,
            hints=[h for h in self.hints if h],
        )


class PlanContract(BaseModel):
    """Initial-mode generation output."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    description: str = Field(min_length=1)
    challenges: list[ChallengeContract]


class AdaptationContract(BaseModel):
    """Adaptation-mode generation output (no plan description)."""

    model_config = ConfigDict(extra="ignore")

    challenges: list[ChallengeContract]


class EvaluationContract(BaseModel):
    """Grading output."""

    model_config = ConfigDict(extra="ignore")

    passed: LenientBool
    score: Score
    feedback: str = DEFAULT_FEEDBACK

    @field_validator("feedback", mode="before")
    @classmethod
    def _default_feedback(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_FEEDBACK
        return value.strip() if isinstance(value, str) else value

    def to_evaluation(self) -> Evaluation:
        return Evaluation(passed=self.passed, feedback=self.feedback, score=self.score)


# =============================================================================
# Extraction
# =============================================================================


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def extract(raw: str, shape: type[M]) -> M:
    """
    Extract the JSON object embedded in ``raw`` and validate it as ``shape``.

    The first balanced span that decodes to a JSON object is used, so stray
    braces in surrounding prose do not hide the payload.

    Raises:
        ContractViolation: No object found, undecodable JSON, or shape mismatch
    """
    raw = raw or ""
    data: Any = None
    decode_error: str | None = None

    for span in iter_balanced_spans(raw):
        try:
            candidate = json.loads(span)
        except json.JSONDecodeError as e:
            decode_error = decode_error or str(e)
            continue
        if isinstance(candidate, dict):
            data = candidate
            break

    if data is None:
        reason = (
            f"Model output is not valid JSON: {decode_error}"
            if decode_error
            else "No JSON object found in model output"
        )
        logger.warning(f"Contract violation ({shape.__name__}): {reason}")
        logger.debug(f"Raw model output: {raw!r}")
        raise ContractViolation(reason, raw=raw)

    try:
        return shape.model_validate(data)
    except ValidationError as e:
        reason = f"Model output does not match {shape.__name__}: {_describe(e)}"
        logger.warning(f"Contract violation: {reason}")
        logger.debug(f"Raw model output: {raw!r}")
        raise ContractViolation(reason, raw=raw) from e
