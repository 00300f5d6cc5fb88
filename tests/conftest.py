from datetime import datetime, timedelta, timezone

import pytest

from gote.config import SupabaseSettings
from gote.memory_store import InMemoryStore
from gote.service import SupabaseService

EMAIL = "test@te.st"
PASSWORD = "1234"


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock):
    s = InMemoryStore(clock=clock)
    s.add_user(EMAIL, PASSWORD)
    return s


@pytest.fixture
def service(store, clock):
    settings = SupabaseSettings(email=EMAIL, backend="memory", timezone="Asia/Tokyo")
    return SupabaseService(settings, store=store, clock=clock)
