import sys
import os
from datetime import date, datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient

# --- path to backend ---
BASE_DIR = os.path.dirname(os.path.dirname(__file__))
BACKEND_DIR = os.path.join(BASE_DIR, "backend")
sys.path.insert(0, BACKEND_DIR)

from clock import Clock
from grid import TIMEZONE
from main import create_app
from settings import Settings
from store import BookingStore

DAY = date(2026, 3, 14)


class FixedClock(Clock):
    def __init__(self, current: datetime):
        super().__init__()
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set_day(self, day: date, at: time = time(10, 30)):
        self.current = datetime.combine(day, at, tzinfo=TIMEZONE)

    def advance(self, days: int = 1):
        self.current = self.current + timedelta(days=days)


# ------------------ fixtures ------------------
@pytest.fixture
def clock():
    return FixedClock(datetime.combine(DAY, time(10, 30), tzinfo=TIMEZONE))


@pytest.fixture
def store(tmp_path, clock):
    s = BookingStore(f"sqlite:///{tmp_path / 'bookings.db'}", clock=clock, pool_size=10)
    s.open()
    yield s
    s.close()


@pytest.fixture
def client(store):
    settings = Settings(DATABASE_URL="sqlite://", ROLLOVER_ENABLED=False)
    app = create_app(settings, store=store)
    with TestClient(app) as c:
        yield c


def booking(section_id=1, slot_number=1, full_name="A", place="P", mobile="9876543210"):
    return {
        "section_id": section_id,
        "slot_number": slot_number,
        "full_name": full_name,
        "place": place,
        "mobile": mobile,
    }
