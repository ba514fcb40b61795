from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from core.config import settings
from core.database import get_habit_store
from core.habit_store import HabitStore
from core.scheduler import recalc_all_habits

router = APIRouter(prefix="/cron", tags=["Cron"])

@router.get("/recalc-habits")
async def recalc_habits(secret: Optional[str] = None, store: HabitStore = Depends(get_habit_store)):
    """Manual/external trigger for the daily habit recalculation."""
    if settings.CRON_SECRET and secret != settings.CRON_SECRET:
        raise HTTPException(status_code=401, detail="Unauthorized")

    summary = await recalc_all_habits(store)
    return {"success": True, "message": "Habits recalculated", **summary}
