from typing import Literal

from pydantic import BaseModel, Field


class TaskAnalysisRequest(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=5000)


class TaskAnalysisResponse(BaseModel):
    category: Literal["academic", "personal", "work", "health"]
    priority: Literal["urgent", "medium", "low"]
    estimated_minutes: int
    subtasks: list[str]
    reasoning: str
    is_ai_generated: bool


class GroupableTask(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    priority: str = "medium"


class TaskGroupRequest(BaseModel):
    tasks: list[GroupableTask] = Field(max_length=100)


class TaskGroup(BaseModel):
    group_name: str
    tasks: list[str]
    reasoning: str
    estimated_total_minutes: int


class TaskGroupResponse(BaseModel):
    groups: list[TaskGroup]
    is_ai_generated: bool


class TaskBreakdownResponse(BaseModel):
    steps: list[str]
    is_ai_generated: bool
