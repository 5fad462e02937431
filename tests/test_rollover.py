import threading
from datetime import date, datetime, time, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import DAY
from errors import StoreUnavailable
from grid import TIMEZONE
from models import ArchivedBooking, Booking
from scheduler import RolloverScheduler, seconds_until_next_midnight


def book(store, section_id, slot_number, full_name="A", place="P", mobile="9876543210"):
    return store.create_booking(section_id, slot_number, full_name, place, mobile)


def archived(store):
    with store._sessions() as db:
        return db.scalars(select(ArchivedBooking).order_by(ArchivedBooking.id)).all()


def active(store):
    with store._sessions() as db:
        return db.scalars(select(Booking).order_by(Booking.id)).all()


# ------------------ reset ------------------
def test_reset_moves_yesterday_into_archive(store, clock):
    clock.advance(-1)
    book(store, 1, 1, full_name="Old", place="Veraval", mobile="9111111111")
    clock.advance()
    book(store, 2, 2, full_name="New")

    moved = store.reset_daily_bookings()

    assert moved == 1
    rows = archived(store)
    assert len(rows) == 1
    row = rows[0]
    assert (row.section_id, row.slot_number) == (1, 1)
    assert row.full_name == "Old"
    assert row.place == "Veraval"
    assert row.mobile == "9111111111"
    assert row.booking_date == date(2026, 3, 13)
    assert row.archived_at.replace(tzinfo=None) == clock.now().replace(tzinfo=None)

    assert [(b.section_id, b.slot_number, b.booking_date) for b in active(store)] == [(2, 2, DAY)]
    assert store.list_today() == {(2, 2)}


def test_reset_twice_is_noop(store, clock):
    clock.advance(-1)
    book(store, 3, 3)
    clock.advance()
    book(store, 4, 4)

    assert store.reset_daily_bookings() == 1
    after_first = [(b.id, b.section_id, b.slot_number) for b in active(store)]

    assert store.reset_daily_bookings() == 0
    assert [(b.id, b.section_id, b.slot_number) for b in active(store)] == after_first
    assert len(archived(store)) == 1


def test_reset_catches_up_on_skipped_days(store, clock):
    clock.advance(-3)
    book(store, 1, 1)
    clock.advance()
    book(store, 1, 1)
    clock.advance(2)

    assert store.reset_daily_bookings() == 2
    assert active(store) == []
    assert [r.booking_date for r in archived(store)] == [date(2026, 3, 11), date(2026, 3, 12)]


def test_reset_keeps_todays_rows(store):
    book(store, 5, 1)
    assert store.reset_daily_bookings() == 0
    assert store.list_today() == {(5, 1)}
    assert archived(store) == []


def test_reset_is_atomic(store, clock, monkeypatch):
    clock.advance(-1)
    book(store, 2, 5)
    clock.advance()

    def fail(db, ids):
        # archive rows already written inside the transaction
        db.flush()
        raise OperationalError("DELETE FROM bookings", {}, Exception("disk I/O error"))

    monkeypatch.setattr(store, "_delete", fail)
    with pytest.raises(StoreUnavailable):
        store.reset_daily_bookings()

    assert archived(store) == []
    assert len(active(store)) == 1

    monkeypatch.undo()
    assert store.reset_daily_bookings() == 1
    assert len(archived(store)) == 1
    assert active(store) == []


# ------------------ scheduler ------------------
@pytest.mark.parametrize("now, expected", [
    (datetime(2026, 3, 14, 23, 0, tzinfo=TIMEZONE), 3600),
    (datetime(2026, 3, 14, 0, 0, tzinfo=TIMEZONE), 86400),
    (datetime(2026, 3, 14, 23, 59, 30, tzinfo=TIMEZONE), 30),
    # 18:00 UTC is 23:30 in IST
    (datetime(2026, 3, 14, 18, 0, tzinfo=timezone.utc), 1800),
])
def test_seconds_until_next_midnight(now, expected):
    assert seconds_until_next_midnight(now) == expected


class BrokenStore:
    def reset_daily_bookings(self):
        raise StoreUnavailable()


def test_run_once_never_raises(clock, caplog):
    scheduler = RolloverScheduler(BrokenStore(), clock)
    assert scheduler.run_once() == 0
    assert "Reset error" in caplog.text


def test_run_once_returns_archived_count(store, clock):
    clock.advance(-1)
    book(store, 1, 2)
    clock.advance()

    assert RolloverScheduler(store).run_once() == 1


def test_start_and_stop(store):
    scheduler = RolloverScheduler(store)
    scheduler.start()
    assert scheduler.running
    scheduler.stop()
    assert not scheduler.running


class CountingStore:
    def __init__(self):
        self.fired = threading.Event()
        self.calls = 0

    def reset_daily_bookings(self):
        self.calls += 1
        self.fired.set()
        return 0


def test_scheduler_fires_at_midnight(clock):
    clock.current = datetime.combine(DAY, time(23, 59, 59, 950000), tzinfo=TIMEZONE)
    fake = CountingStore()
    scheduler = RolloverScheduler(fake, clock)

    scheduler.start()
    try:
        assert fake.fired.wait(5)
    finally:
        scheduler.stop()
    assert fake.calls >= 1
