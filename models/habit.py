from pydantic import BaseModel, Field, field_serializer
from typing import Optional, List, Literal
import datetime as dt
from models.common import PyObjectId
from core.time_utils import get_current_time

Frequency = Literal["daily", "weekly"]

class ProgressEntry(BaseModel):
    """Cumulative units logged on one calendar day (reference timezone)."""
    date: dt.date
    count: int = Field(0, ge=0)

    @field_serializer("date")
    def serialize_day(self, day: dt.date, _info):
        return day.isoformat()

class FreezeDay(BaseModel):
    date: dt.date

    @field_serializer("date")
    def serialize_day(self, day: dt.date, _info):
        return day.isoformat()

class HabitMetrics(BaseModel):
    streak: int = 0
    longest_streak: int = 0
    xp: int = 0

class LearningHabit(BaseModel):
    """
    A learning habit tracked per day or per ISO week.

    Attributes:
    - target: units needed within one period (day or Monday-Sunday week)
      for that period to count as completed.
    - progress: at most one entry per calendar day; repeated logs add up.
    - freezes: protected days (daily habits only).
    - streak / longest_streak / xp: derived by core.streaks.recalculate
      and persisted alongside the history.
    - version: bumped on every write, used for optimistic concurrency.
    """
    id: Optional[PyObjectId] = Field(default_factory=PyObjectId, alias="_id")
    user_id: Optional[str] = None
    title: str = Field(..., max_length=100)
    category: str = "General"
    frequency: Frequency
    target: int = Field(..., ge=1)

    progress: List[ProgressEntry] = []
    freezes: List[FreezeDay] = []

    streak: int = 0
    longest_streak: int = 0
    xp: int = 0

    version: int = 0
    created_at: dt.datetime = Field(default_factory=get_current_time)
    updated_at: dt.datetime = Field(default_factory=get_current_time)

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True

class HabitCreate(BaseModel):
    title: str = Field(..., max_length=100)
    category: str = "General"
    frequency: Frequency
    target: int = Field(..., ge=1)

class HabitUpdate(BaseModel):
    # frequency is fixed at creation
    title: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = None
    target: Optional[int] = Field(None, ge=1)

class ProgressIn(BaseModel):
    date: Optional[str] = None  # ISO day or timestamp; defaults to today
    count: int = Field(1, ge=0)

class DayIn(BaseModel):
    date: Optional[str] = None

class HabitOut(LearningHabit):
    progress_percent: float = 0.0
