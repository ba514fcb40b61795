from motor.motor_asyncio import AsyncIOMotorClient
from core.config import settings
from core.habit_store import HabitStore
from core.time_utils import get_reference_timezone

# URI Provided
URI = settings.MONGO_URI

client = AsyncIOMotorClient(URI)
db = client[settings.DB_NAME]

def get_habit_store() -> HabitStore:
    return HabitStore(db.learning_habits, get_reference_timezone())
