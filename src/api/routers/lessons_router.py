"""
Lessons API Router.

Endpoints for the adaptive challenge engine:
- Plan generation, listing, detail and archival
- Challenge start (first view)
- Submission evaluation
- Adaptive recompute

The caller's identity arrives in the ``X-User-Id`` header; authentication
happens upstream.
"""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, Field

from src.engine.errors import (
    ContractViolation,
    Forbidden,
    GatewayRejected,
    GatewayUnavailable,
    InvalidInput,
    LessonEngineError,
    NotFound,
)
from src.engine.models import Challenge, Plan, PlanStatus, Submission
from src.lessons.workflow import LessonWorkflow, PlanView

router = APIRouter()


# ========================================
# Dependencies
# ========================================


@lru_cache(maxsize=1)
def get_workflow() -> LessonWorkflow:
    """Workflow bound to the configured model and database."""
    return LessonWorkflow.from_settings()


def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id.strip()


WorkflowDep = Annotated[LessonWorkflow, Depends(get_workflow)]
UserDep = Annotated[str, Depends(get_user_id)]


def to_http_error(exc: LessonEngineError) -> HTTPException:
    """Map engine errors onto HTTP status codes."""
    if isinstance(exc, InvalidInput):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, Forbidden):
        return HTTPException(status_code=403, detail="Unauthorized")
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, GatewayUnavailable):
        return HTTPException(status_code=503, detail="Model service unavailable, try again later")
    if isinstance(exc, GatewayRejected):
        return HTTPException(status_code=502, detail=exc.detail)
    if isinstance(exc, ContractViolation):
        logger.error(f"Unusable model output: {exc.reason}")
        return HTTPException(status_code=502, detail="The AI returned an invalid response")
    return HTTPException(status_code=500, detail=str(exc))


# ========================================
# Request/Response Models
# ========================================


class GeneratePlanRequest(BaseModel):
    """Request model for generating a plan."""

    topic: str = Field(..., description="What the learner wants to learn")
    context: str | None = Field(None, description="Free-text background from the learner")
    difficulty: str | None = Field(None, description="beginner, intermediate or advanced (defaults to beginner)")
    num_challenges: int = Field(5, description="Requested challenges (clamped to 3-10)")


class RecomputePlanRequest(BaseModel):
    plan_id: str = Field(..., description="Plan UUID")


class EvaluateSubmissionRequest(BaseModel):
    challenge_id: str = Field(..., description="Challenge UUID")
    content: str = Field(..., description="Learner's answer")


class ChallengeResponse(BaseModel):
    id: str
    plan_id: str
    order_index: int
    title: str
    description: str
    success_criteria: str
    hints: list[str]
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, challenge: Challenge) -> ChallengeResponse:
        return cls(
            id=challenge.id,
            plan_id=challenge.plan_id,
            order_index=challenge.order_index,
            title=challenge.title,
            description=challenge.description,
            success_criteria=challenge.success_criteria,
            hints=challenge.hints,
            status=challenge.status.value,
            created_at=challenge.created_at,
            updated_at=challenge.updated_at,
        )


class PlanResponse(BaseModel):
    id: str
    user_id: str
    topic: str
    description: str
    prompt_used: str
    metadata: dict
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, plan: Plan) -> PlanResponse:
        return cls(
            id=plan.id,
            user_id=plan.user_id,
            topic=plan.topic,
            description=plan.description,
            prompt_used=plan.prompt_used,
            metadata=plan.metadata.to_dict(),
            status=plan.status.value,
            created_at=plan.created_at,
            updated_at=plan.updated_at,
        )


class PlanDetailResponse(BaseModel):
    plan: PlanResponse
    challenges: list[ChallengeResponse]
    progress: int = Field(..., description="Percent of challenges passed")

    @classmethod
    def from_view(cls, view: PlanView) -> PlanDetailResponse:
        return cls(
            plan=PlanResponse.from_domain(view.plan),
            challenges=[ChallengeResponse.from_domain(c) for c in view.challenges],
            progress=view.progress,
        )


class SubmissionResponse(BaseModel):
    id: str
    challenge_id: str
    user_id: str
    content: str
    status: str
    feedback: str | None
    score: int | None
    created_at: datetime

    @classmethod
    def from_domain(cls, submission: Submission) -> SubmissionResponse:
        return cls(
            id=submission.id,
            challenge_id=submission.challenge_id,
            user_id=submission.user_id,
            content=submission.content,
            status=submission.status.value,
            feedback=submission.feedback,
            score=submission.score,
            created_at=submission.created_at,
        )


class EvaluateSubmissionResponse(BaseModel):
    submission: SubmissionResponse
    passed: bool
    feedback: str
    score: int
    plan_status: str
    new_challenges: list[ChallengeResponse] = Field(default_factory=list)


class RecomputePlanResponse(BaseModel):
    message: str
    updated_challenges: list[ChallengeResponse]
    average_score: int | None = None


# ========================================
# Endpoints
# ========================================


@router.post("/plans/generate", response_model=PlanDetailResponse)
def generate_plan(
    request: GeneratePlanRequest, workflow: WorkflowDep, user_id: UserDep
) -> PlanDetailResponse:
    """Generate a plan and its initial challenges."""
    try:
        view = workflow.create_plan(
            user_id,
            request.topic,
            context=request.context,
            difficulty=request.difficulty,
            num_challenges=request.num_challenges,
        )
    except LessonEngineError as exc:
        raise to_http_error(exc) from exc
    return PlanDetailResponse.from_view(view)


@router.get("/plans", response_model=list[PlanDetailResponse])
def list_plans(
    workflow: WorkflowDep,
    user_id: UserDep,
    status: Annotated[PlanStatus | None, Query(description="Filter by plan status")] = None,
) -> list[PlanDetailResponse]:
    return [PlanDetailResponse.from_view(v) for v in workflow.list_plans(user_id, status)]


@router.post("/plans/recompute", response_model=RecomputePlanResponse)
def recompute_plan(
    request: RecomputePlanRequest, workflow: WorkflowDep, user_id: UserDep
) -> RecomputePlanResponse:
    """Append adapted challenges if the plan is running low on work."""
    try:
        outcome = workflow.recompute(user_id, request.plan_id)
    except LessonEngineError as exc:
        raise to_http_error(exc) from exc

    result = outcome.result
    if not result.generated:
        message = (
            "No completed challenges to adapt from"
            if result.reason == "no_completed"
            else "Enough pending challenges exist"
        )
    else:
        message = "Plan recomputed successfully"
    return RecomputePlanResponse(
        message=message,
        updated_challenges=[ChallengeResponse.from_domain(c) for c in outcome.new_challenges],
        average_score=round(result.average_score) if result.average_score is not None else None,
    )


@router.get("/plans/{plan_id}", response_model=PlanDetailResponse)
def get_plan(plan_id: str, workflow: WorkflowDep, user_id: UserDep) -> PlanDetailResponse:
    try:
        view = workflow.get_plan(user_id, plan_id)
    except LessonEngineError as exc:
        raise to_http_error(exc) from exc
    return PlanDetailResponse.from_view(view)


@router.post("/plans/{plan_id}/archive", response_model=PlanResponse)
def archive_plan(plan_id: str, workflow: WorkflowDep, user_id: UserDep) -> PlanResponse:
    try:
        plan = workflow.archive_plan(user_id, plan_id)
    except LessonEngineError as exc:
        raise to_http_error(exc) from exc
    return PlanResponse.from_domain(plan)


@router.post("/challenges/{challenge_id}/start", response_model=ChallengeResponse)
def start_challenge(
    challenge_id: str, workflow: WorkflowDep, user_id: UserDep
) -> ChallengeResponse:
    try:
        challenge = workflow.start_challenge(user_id, challenge_id)
    except LessonEngineError as exc:
        raise to_http_error(exc) from exc
    return ChallengeResponse.from_domain(challenge)


@router.post("/submissions/evaluate", response_model=EvaluateSubmissionResponse)
def evaluate_submission(
    request: EvaluateSubmissionRequest, workflow: WorkflowDep, user_id: UserDep
) -> EvaluateSubmissionResponse:
    """Record a submission, grade it and update challenge and plan status."""
    try:
        outcome = workflow.submit(user_id, request.challenge_id, request.content)
    except LessonEngineError as exc:
        raise to_http_error(exc) from exc

    return EvaluateSubmissionResponse(
        submission=SubmissionResponse.from_domain(outcome.submission),
        passed=outcome.evaluation.passed,
        feedback=outcome.evaluation.feedback,
        score=outcome.evaluation.score,
        plan_status=outcome.plan_status.value,
        new_challenges=[ChallengeResponse.from_domain(c) for c in outcome.new_challenges],
    )
