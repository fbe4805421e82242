from fastapi import APIRouter, Depends, Request

from focusflow.config import settings
from focusflow.dependencies import get_current_user
from focusflow.models.user import User
from focusflow.schemas.assistant import (
    TaskAnalysisRequest,
    TaskAnalysisResponse,
    TaskBreakdownResponse,
    TaskGroupRequest,
    TaskGroupResponse,
)
from focusflow.services import assistant_service

router = APIRouter(prefix="/assistant", tags=["assistant"])


@router.post("/analyze", response_model=TaskAnalysisResponse)
async def analyze_task(
    data: TaskAnalysisRequest,
    req: Request,
    user: User = Depends(get_current_user),
):
    """Categorize a task and estimate its priority and duration."""
    provider = assistant_service.create_provider(settings)
    redis_client = getattr(req.app.state, "redis", None)
    return await assistant_service.analyze_task(
        user.id, data.title, data.description, provider, redis_client,
        daily_limit=settings.AI_DAILY_LIMIT,
    )


@router.post("/group", response_model=TaskGroupResponse)
async def group_tasks(
    data: TaskGroupRequest,
    req: Request,
    user: User = Depends(get_current_user),
):
    """Suggest groupings of related tasks to limit context switching."""
    provider = assistant_service.create_provider(settings)
    redis_client = getattr(req.app.state, "redis", None)
    return await assistant_service.suggest_task_groups(
        user.id, [t.model_dump() for t in data.tasks], provider, redis_client,
        daily_limit=settings.AI_DAILY_LIMIT,
    )


@router.post("/breakdown", response_model=TaskBreakdownResponse)
async def breakdown_task(
    data: TaskAnalysisRequest,
    req: Request,
    user: User = Depends(get_current_user),
):
    """Break a large task into small, concrete steps."""
    provider = assistant_service.create_provider(settings)
    redis_client = getattr(req.app.state, "redis", None)
    return await assistant_service.break_down_task(
        user.id, data.title, data.description, provider, redis_client,
        daily_limit=settings.AI_DAILY_LIMIT,
    )
