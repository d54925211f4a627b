"""
Error taxonomy for the challenge engine.

Nothing here is recovered inside the engine; every error propagates to the
caller that triggered the request.
"""
from __future__ import annotations


class LessonEngineError(Exception):
    """Base class for all engine errors."""


class InvalidInput(LessonEngineError):
    """Caller-supplied data violates a precondition (4xx, not retried)."""


class InvalidTransition(InvalidInput):
    """A status change is not allowed by the lifecycle."""

    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"{entity} cannot move from {current} to {target}")


class NotFound(LessonEngineError):
    """A plan, challenge or submission does not exist."""


class Forbidden(LessonEngineError):
    """The acting user does not own the requested record."""


class GatewayUnavailable(LessonEngineError):
    """Credential missing or the model endpoint could not be reached (safe to retry later)."""


class GatewayRejected(LessonEngineError):
    """The upstream model API answered with a non-success result."""

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        self.status_code = status_code
        prefix = f"Model API error ({status_code})" if status_code else "Model API error"
        super().__init__(f"{prefix}: {detail}")


class ContractViolation(LessonEngineError):
    """Model output could not be parsed into the required shape.

    ``raw`` keeps the offending text for logs. It must never reach end users.
    """

    def __init__(self, reason: str, raw: str = ""):
        self.reason = reason
        self.raw = raw
        super().__init__(reason)
