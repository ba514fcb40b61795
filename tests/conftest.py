"""Shared fixtures: reference timezone, habit factory and an in-memory collection."""

import copy
from datetime import date, datetime, timedelta
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from models.habit import FreezeDay, LearningHabit, ProgressEntry

TZ = ZoneInfo("Asia/Kolkata")

# Wednesday; the ISO week runs Mon 2024-03-04 .. Sun 2024-03-10
TODAY = date(2024, 3, 6)


def at_noon(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, 12, 0, tzinfo=TZ)


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


def make_habit(frequency="daily", target=1, progress=None, freezes=None, **extra) -> LearningHabit:
    """progress: {date: count}; freezes: iterable of dates."""
    return LearningHabit(
        title="Read",
        user_id="user-1",
        frequency=frequency,
        target=target,
        progress=[ProgressEntry(date=d, count=c) for d, c in sorted((progress or {}).items())],
        freezes=[FreezeDay(date=d) for d in sorted(freezes or [])],
        **extra,
    )


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda d: d.get(key), reverse=direction == -1)
        return self

    async def to_list(self, length=None):
        return self._docs if length is None else self._docs[:length]

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """Just enough of a Motor collection for HabitStore: equality filters and $set."""

    def __init__(self):
        self.docs = []
        self.before_update = None  # hook to simulate a concurrent writer

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(k) == v for k, v in query.items())

    async def insert_one(self, doc):
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query):
        for doc in self.docs:
            if self._matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query, projection=None):
        found = [copy.deepcopy(d) for d in self.docs if self._matches(d, query)]
        if projection:
            found = [{k: d[k] for k in projection if k in d} for d in found]
        return FakeCursor(found)

    async def update_one(self, query, update):
        if self.before_update:
            hook, self.before_update = self.before_update, None
            await hook(self)
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(copy.deepcopy(update["$set"]))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if self._matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


@pytest.fixture
def tz():
    return TZ


@pytest.fixture
def now():
    return at_noon(TODAY)


@pytest.fixture
def collection():
    return FakeCollection()
