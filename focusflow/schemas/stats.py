from datetime import date

from pydantic import BaseModel


class DailyBreakdown(BaseModel):
    date: date
    focus_minutes: int
    session_count: int


class StatsResponse(BaseModel):
    period: str  # daily, weekly, monthly
    focus_minutes: int
    focus_session_count: int
    break_session_count: int
    tasks_created: int
    tasks_completed: int
    total_focus_time: int  # lifetime counter from the user profile
    current_streak: int
    daily_breakdown: list[DailyBreakdown]
