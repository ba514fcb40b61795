from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional
from core.database import get_habit_store
from core.habit_store import HabitStore
from core.security import get_current_user_id
from core.streaks import progress_percent
from core.time_utils import get_current_time
from models.habit import DayIn, HabitCreate, HabitOut, HabitUpdate, LearningHabit, ProgressIn

router = APIRouter(prefix="/habits", tags=["Habits"])

def _out(habit: Optional[LearningHabit], store: HabitStore) -> HabitOut:
    if habit is None:
        raise HTTPException(status_code=404, detail="Habit not found")
    return HabitOut(
        **habit.model_dump(),
        progress_percent=progress_percent(habit, store.tz),
    )

def _day_or_today(day: Optional[str], store: HabitStore):
    return day if day else get_current_time(store.tz)

@router.post("/", response_model=HabitOut)
async def create_habit(habit_in: HabitCreate,
                       user_id: str = Depends(get_current_user_id),
                       store: HabitStore = Depends(get_habit_store)):
    habit = await store.create(user_id, habit_in)
    return _out(habit, store)

@router.get("/", response_model=List[HabitOut])
async def get_habits(user_id: str = Depends(get_current_user_id),
                     store: HabitStore = Depends(get_habit_store)):
    habits = await store.list_for_user(user_id)
    return [_out(h, store) for h in habits]

@router.patch("/{habit_id}", response_model=HabitOut)
async def update_habit(habit_id: str, patch: HabitUpdate,
                       user_id: str = Depends(get_current_user_id),
                       store: HabitStore = Depends(get_habit_store)):
    return _out(await store.update_details(habit_id, user_id, patch), store)

@router.delete("/{habit_id}")
async def delete_habit(habit_id: str,
                       user_id: str = Depends(get_current_user_id),
                       store: HabitStore = Depends(get_habit_store)):
    if not await store.delete(habit_id, user_id):
        raise HTTPException(status_code=404, detail="Habit not found")
    return {"message": "Habit deleted"}

@router.post("/{habit_id}/progress", response_model=HabitOut)
async def log_progress(habit_id: str, progress: ProgressIn,
                       user_id: str = Depends(get_current_user_id),
                       store: HabitStore = Depends(get_habit_store)):
    """
    Log progress for a day (today when no date is sent).

    Repeated logs on the same day add up. Frozen days are rejected (409).
    """
    day = _day_or_today(progress.date, store)
    return _out(await store.add_progress(habit_id, user_id, day, progress.count), store)

@router.delete("/{habit_id}/progress/{day}", response_model=HabitOut)
async def delete_progress(habit_id: str, day: str,
                          user_id: str = Depends(get_current_user_id),
                          store: HabitStore = Depends(get_habit_store)):
    return _out(await store.remove_progress(habit_id, user_id, day), store)

@router.post("/{habit_id}/unmark", response_model=HabitOut)
async def unmark_day(habit_id: str, body: DayIn,
                     user_id: str = Depends(get_current_user_id),
                     store: HabitStore = Depends(get_habit_store)):
    """Clear a day's progress, or its freeze if it has no progress."""
    day = _day_or_today(body.date, store)
    return _out(await store.unmark(habit_id, user_id, day), store)

@router.post("/{habit_id}/freeze", response_model=HabitOut)
async def freeze_day(habit_id: str, body: DayIn,
                     user_id: str = Depends(get_current_user_id),
                     store: HabitStore = Depends(get_habit_store)):
    """
    Freeze a day to protect the streak.

    Daily habits only (422 for weekly). A day that already meets the target
    or is already frozen gives 409; an exhausted monthly quota gives 429.
    """
    day = _day_or_today(body.date, store)
    return _out(await store.add_freeze(habit_id, user_id, day), store)

@router.delete("/{habit_id}/freeze/{day}", response_model=HabitOut)
async def unfreeze_day(habit_id: str, day: str,
                       user_id: str = Depends(get_current_user_id),
                       store: HabitStore = Depends(get_habit_store)):
    return _out(await store.remove_freeze(habit_id, user_id, day), store)
