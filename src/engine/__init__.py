"""
Adaptive Challenge Engine.

Components:
- ModelGateway: Calls the chat-completions API
- Contract parsing: Validates model JSON against pydantic contracts
- PlanGenerator: Initial plans and adapted follow-up challenges
- SubmissionEvaluator: Grades free-text submissions
- AdaptiveRecomputeEngine: Decides when and how to add challenges
- Lifecycle: Status transitions for plans, challenges and submissions
- LessonEngine: Facade exposing the three external operations
"""
from src.engine.errors import (
    ContractViolation,
    Forbidden,
    GatewayRejected,
    GatewayUnavailable,
    InvalidInput,
    InvalidTransition,
    LessonEngineError,
    NotFound,
)
from src.engine.evaluator import SubmissionEvaluator
from src.engine.gateway import GatewayConfig, GenerationOptions, Message, ModelGateway
from src.engine.models import (
    Challenge,
    ChallengeSpec,
    ChallengeStatus,
    Difficulty,
    Evaluation,
    NewChallenge,
    Plan,
    PlanContent,
    PlanDraft,
    PlanMetadata,
    PlanStatus,
    RecomputeResult,
    Submission,
    SubmissionStatus,
)
from src.engine.plan_generator import PlanGenerator, PlanRequest
from src.engine.recompute import AdaptiveRecomputeEngine
from src.engine.service import LessonEngine

__all__ = [
    # Facade
    "LessonEngine",
    # Components
    "AdaptiveRecomputeEngine",
    "GatewayConfig",
    "GenerationOptions",
    "Message",
    "ModelGateway",
    "PlanGenerator",
    "PlanRequest",
    "SubmissionEvaluator",
    # Models
    "Challenge",
    "ChallengeSpec",
    "ChallengeStatus",
    "Difficulty",
    "Evaluation",
    "NewChallenge",
    "Plan",
    "PlanContent",
    "PlanDraft",
    "PlanMetadata",
    "PlanStatus",
    "RecomputeResult",
    "Submission",
    "SubmissionStatus",
    # Errors
    "ContractViolation",
    "Forbidden",
    "GatewayRejected",
    "GatewayUnavailable",
    "InvalidInput",
    "InvalidTransition",
    "LessonEngineError",
    "NotFound",
]
