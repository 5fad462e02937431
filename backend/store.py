"""
Booking store: the only code that touches the bookings tables.

One slot per section per day is enforced by the ``unique_booking`` constraint.
The existence check before the insert is only a fast path; an insert that races
past it is rejected by the database and reported as ``SlotTaken`` too.
"""

import logging
import time
from contextlib import contextmanager
from typing import List, Set, Tuple

from sqlalchemy import create_engine, delete, func, select, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clock import Clock
from errors import BookingError, InternalError, InvalidInput, SlotTaken, StoreUnavailable
from grid import CAPACITY, MAX_TEXT_LENGTH, MOBILE_PATTERN, SECTIONS, SLOTS_PER_SECTION
from models import ArchivedBooking, Base, Booking
from schemas import AdminBooking, BookingReceipt, Health, SectionCount, Stats

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)


def _in_range(value, upper: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= upper


def validate_booking(section_id, slot_number, full_name, place, mobile) -> Tuple[str, str]:
    """Check a booking request and return the cleaned ``(full_name, place)``."""
    for value in (full_name, place, mobile):
        if not isinstance(value, str) or not value.strip():
            raise InvalidInput("All fields required")
    if not _in_range(section_id, SECTIONS) or not _in_range(slot_number, SLOTS_PER_SECTION):
        raise InvalidInput("Invalid section/slot")
    if not MOBILE_PATTERN.fullmatch(mobile):
        raise InvalidInput("Invalid mobile")
    full_name, place = full_name.strip(), place.strip()
    if len(full_name) > MAX_TEXT_LENGTH or len(place) > MAX_TEXT_LENGTH:
        raise InvalidInput(f"Name and place must be at most {MAX_TEXT_LENGTH} characters")
    return full_name, place


class BookingStore:
    def __init__(self, url: str, clock: Clock = None, pool_size: int = 10, pool_timeout: float = 30):
        self.url = url
        self.clock = clock or Clock()
        self.pool_size = pool_size
        self.pool_timeout = pool_timeout
        self.engine = None
        self._sessions = None

    # ================== LIFECYCLE ==================
    def _engine_options(self) -> dict:
        url = make_url(self.url)
        options = {}
        if url.get_backend_name() == "sqlite":
            options["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                options["poolclass"] = StaticPool
                return options
        options.update(
            pool_size=self.pool_size,
            max_overflow=0,
            pool_timeout=self.pool_timeout,
            pool_pre_ping=True,
        )
        return options

    def open(self) -> "BookingStore":
        if self.engine is not None:
            return self
        self.engine = create_engine(self.url, **self._engine_options())
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError:
            # keep serving; health reports the outage and operations answer StoreUnavailable
            logger.exception("Could not create booking tables")
        else:
            logger.info("Booking store ready (pool size %d)", self.pool_size)
        return self

    def close(self):
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self._sessions = None
        logger.info("Booking store closed")

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc_info):
        self.close()

    def _session(self):
        if self._sessions is None:
            raise StoreUnavailable("Booking store is not open")
        return self._sessions()

    @contextmanager
    def _guard(self, operation: str):
        try:
            yield
        except BookingError:
            raise
        except TRANSIENT_ERRORS as exc:
            logger.exception("%s: store unavailable", operation)
            raise StoreUnavailable() from exc
        except SQLAlchemyError as exc:
            logger.exception("%s failed", operation)
            raise InternalError() from exc

    # ================== HEALTH ==================
    def health(self) -> Health:
        if self.engine is None:
            return Health(ok=False)
        started = time.perf_counter()
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Health check failed", exc_info=True)
            return Health(ok=False)
        return Health(ok=True, latency_ms=round((time.perf_counter() - started) * 1000, 2))

    # ================== BOOKINGS ==================
    def list_today(self) -> Set[Tuple[int, int]]:
        today = self.clock.today()
        with self._guard("list_today"), self._session() as db:
            rows = db.execute(
                select(Booking.section_id, Booking.slot_number).where(Booking.booking_date == today)
            ).all()
        return {(row.section_id, row.slot_number) for row in rows}

    def _find(self, db, section_id: int, slot_number: int, day):
        return db.execute(
            select(Booking.id).where(
                Booking.section_id == section_id,
                Booking.slot_number == slot_number,
                Booking.booking_date == day,
            )
        ).first()

    def create_booking(self, section_id: int, slot_number: int, full_name: str, place: str,
                       mobile: str) -> BookingReceipt:
        full_name, place = validate_booking(section_id, slot_number, full_name, place, mobile)
        now = self.clock.now()
        today = now.date()

        with self._guard("create_booking"), self._session() as db:
            if self._find(db, section_id, slot_number, today) is not None:
                logger.info("Slot taken: S%s Slot%s on %s", section_id, slot_number, today)
                raise SlotTaken()

            booking = Booking(
                section_id=section_id,
                slot_number=slot_number,
                full_name=full_name,
                place=place,
                mobile=mobile,
                booking_date=today,
                created_at=now,
            )
            db.add(booking)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info("Slot taken by a concurrent request: S%s Slot%s on %s",
                            section_id, slot_number, today)
                raise SlotTaken()

        logger.info("Booked: S%s Slot%s", section_id, slot_number)
        return BookingReceipt(id=booking.id, section_id=section_id, slot_number=slot_number)

    def stats(self) -> Stats:
        today = self.clock.today()
        with self._guard("stats"), self._session() as db:
            rows = db.execute(
                select(Booking.section_id, func.count(Booking.id).label("booked"))
                .where(Booking.booking_date == today)
                .group_by(Booking.section_id)
                .order_by(Booking.section_id)
            ).all()
        by_section = [SectionCount(section_id=row.section_id, booked=row.booked) for row in rows]
        total = sum(item.booked for item in by_section)
        return Stats(by_section=by_section, total=total, available=CAPACITY - total)

    def list_for_admin(self) -> List[AdminBooking]:
        today = self.clock.today()
        with self._guard("list_for_admin"), self._session() as db:
            rows = db.scalars(
                select(Booking)
                .where(Booking.booking_date == today)
                .order_by(Booking.section_id, Booking.slot_number)
            ).all()
        return [AdminBooking.model_validate(row) for row in rows]

    # ================== ROLLOVER ==================
    def _archive(self, db, expired: List[Booking], archived_at):
        db.add_all([
            ArchivedBooking(
                section_id=b.section_id,
                slot_number=b.slot_number,
                full_name=b.full_name,
                place=b.place,
                mobile=b.mobile,
                booking_date=b.booking_date,
                archived_at=archived_at,
            )
            for b in expired
        ])

    def _delete(self, db, ids: List[int]):
        if ids:
            db.execute(delete(Booking).where(Booking.id.in_(ids)))

    def reset_daily_bookings(self) -> int:
        """Archive every booking dated before today and remove it from ``bookings``.

        Copy and delete share one transaction and one reading of the clock, so
        a crash in between leaves both tables untouched. Returns the number of
        archived rows; a second run on the same day archives nothing.
        """
        now = self.clock.now()
        today = now.date()

        with self._guard("reset_daily_bookings"), self._session() as db, db.begin():
            expired = db.scalars(
                select(Booking).where(Booking.booking_date < today).order_by(Booking.id)
            ).all()
            self._archive(db, expired, now)
            self._delete(db, [b.id for b in expired])

        logger.info("Daily reset done: %d booking(s) before %s archived", len(expired), today)
        return len(expired)
