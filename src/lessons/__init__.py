"""Request-level lesson workflow over the challenge engine and storage."""
from src.lessons.workflow import (
    LessonWorkflow,
    PlanView,
    RecomputeOutcome,
    SubmissionOutcome,
    calculate_progress,
)

__all__ = [
    "LessonWorkflow",
    "PlanView",
    "RecomputeOutcome",
    "SubmissionOutcome",
    "calculate_progress",
]
