# SQLAlchemy models
from .base import Base
from .lessons import ChallengeRecord, PlanRecord, SubmissionRecord

__all__ = [
    "Base",
    "ChallengeRecord",
    "PlanRecord",
    "SubmissionRecord",
]
