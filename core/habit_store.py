import logging
from datetime import datetime
from typing import AsyncIterator, Callable, List, Optional
from zoneinfo import ZoneInfo

from bson import ObjectId

from core import habits as ops
from core.config import settings
from core.exceptions import ConcurrentUpdateError
from core.time_utils import DayLike, get_current_time
from models.habit import HabitCreate, HabitUpdate, LearningHabit

log = logging.getLogger(__name__)

Mutation = Callable[[LearningHabit, datetime], LearningHabit]

def _object_id(habit_id) -> Optional[ObjectId]:
    if isinstance(habit_id, ObjectId):
        return habit_id
    if isinstance(habit_id, str) and ObjectId.is_valid(habit_id):
        return ObjectId(habit_id)
    return None

class HabitStore:
    """
    Persists learning habits and keeps their metrics current.

    Every mutation is a read-modify-write cycle: fetch the document,
    run the pure helper from core.habits, then write back only if
    `version` is unchanged. A lost race is retried from a fresh read.
    Lookups for unknown (or malformed) ids return None.
    """

    def __init__(self, collection, tz: ZoneInfo, retries: Optional[int] = None):
        self.collection = collection
        self.tz = tz
        self.retries = retries if retries is not None else settings.HABIT_UPDATE_RETRIES

    async def create(self, user_id: str, data: HabitCreate) -> LearningHabit:
        habit = LearningHabit(user_id=user_id, **data.model_dump())
        await self.collection.insert_one(habit.model_dump(by_alias=True))
        log.info("Created habit %s for user %s", habit.id, user_id)
        return habit

    async def list_for_user(self, user_id: str) -> List[LearningHabit]:
        cursor = self.collection.find({"user_id": user_id}).sort("created_at", -1)
        docs = await cursor.to_list(length=None)
        return [LearningHabit(**d) for d in docs]

    async def get(self, habit_id, user_id: Optional[str] = None) -> Optional[LearningHabit]:
        oid = _object_id(habit_id)
        if oid is None:
            return None
        query = {"_id": oid}
        if user_id is not None:
            query["user_id"] = user_id
        doc = await self.collection.find_one(query)
        return LearningHabit(**doc) if doc else None

    async def delete(self, habit_id, user_id: str) -> bool:
        oid = _object_id(habit_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid, "user_id": user_id})
        return result.deleted_count > 0

    async def habit_ids(self) -> AsyncIterator[ObjectId]:
        async for doc in self.collection.find({}, {"_id": 1}):
            yield doc["_id"]

    # --- Mutations ---

    async def update_details(self, habit_id, user_id: str, patch: HabitUpdate) -> Optional[LearningHabit]:
        return await self._apply(habit_id, user_id, lambda h, now: ops.change_details(h, patch, self.tz, now))

    async def add_progress(self, habit_id, user_id: str, day: DayLike, count: int) -> Optional[LearningHabit]:
        return await self._apply(habit_id, user_id, lambda h, now: ops.add_progress(h, day, count, self.tz, now))

    async def remove_progress(self, habit_id, user_id: str, day: DayLike) -> Optional[LearningHabit]:
        return await self._apply(habit_id, user_id, lambda h, now: ops.remove_progress(h, day, self.tz, now))

    async def add_freeze(self, habit_id, user_id: str, day: DayLike) -> Optional[LearningHabit]:
        return await self._apply(habit_id, user_id, lambda h, now: ops.add_freeze(h, day, self.tz, now))

    async def remove_freeze(self, habit_id, user_id: str, day: DayLike) -> Optional[LearningHabit]:
        return await self._apply(habit_id, user_id, lambda h, now: ops.remove_freeze(h, day, self.tz, now))

    async def unmark(self, habit_id, user_id: str, day: DayLike) -> Optional[LearningHabit]:
        return await self._apply(habit_id, user_id, lambda h, now: ops.unmark_day(h, day, self.tz, now))

    async def recompute(self, habit_id) -> Optional[LearningHabit]:
        """Re-derives metrics without changing history (used by the daily sweep)."""
        return await self._apply(habit_id, None, lambda h, now: ops.apply_metrics(h, self.tz, now))

    async def _apply(self, habit_id, user_id: Optional[str], mutate: Mutation) -> Optional[LearningHabit]:
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            current = await self.get(habit_id, user_id)
            if current is None:
                return None

            now = get_current_time(self.tz)
            updated = mutate(current, now)
            updated = updated.model_copy(update={"version": current.version + 1, "updated_at": now})

            doc = updated.model_dump(by_alias=True, exclude={"id", "user_id", "created_at"})
            result = await self.collection.update_one(
                {"_id": current.id, "version": current.version},
                {"$set": doc},
            )
            if result.matched_count == 1:
                return updated

            log.info("Habit %s changed during update (attempt %d/%d), retrying",
                     current.id, attempt, attempts)

        raise ConcurrentUpdateError(f"Habit {habit_id} kept changing, gave up after {attempts} attempts")
