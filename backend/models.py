from sqlalchemy import Column, Integer, String, Date, DateTime, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # The database, not the application, guarantees one booking per slot per day
        UniqueConstraint("section_id", "slot_number", "booking_date", name="unique_booking"),
        Index("idx_booking_date", "booking_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    section_id = Column(Integer, nullable=False)
    slot_number = Column(Integer, nullable=False)
    full_name = Column(String(255), nullable=False)
    place = Column(String(255), nullable=False)
    mobile = Column(String(15), nullable=False)
    booking_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, S{self.section_id} Slot{self.slot_number}, date={self.booking_date})>"


class ArchivedBooking(Base):
    __tablename__ = "archived_bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    section_id = Column(Integer, nullable=False)
    slot_number = Column(Integer, nullable=False)
    full_name = Column(String(255), nullable=False)
    place = Column(String(255), nullable=False)
    mobile = Column(String(15), nullable=False)
    booking_date = Column(Date, nullable=False)
    archived_at = Column(DateTime(timezone=True), nullable=False)
