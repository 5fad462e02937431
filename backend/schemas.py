"""
Request/response shapes shared by the store and the HTTP layer.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, StrictInt


class BookingCreate(BaseModel):
    section_id: StrictInt
    slot_number: StrictInt
    full_name: str
    place: str
    mobile: str

    # a JSON number such as 9876543210 is read as its digits
    model_config = {"coerce_numbers_to_str": True}


class BookingReceipt(BaseModel):
    id: int
    section_id: int
    slot_number: int


class SlotRef(BaseModel):
    section_id: int
    slot_number: int


class SectionCount(BaseModel):
    section_id: int
    booked: int


class Stats(BaseModel):
    by_section: List[SectionCount]
    total: int
    available: int


class AdminBooking(BaseModel):
    id: int
    section_id: int
    slot_number: int
    full_name: str
    place: str
    mobile: str
    booking_date: date
    created_at: datetime

    model_config = {"from_attributes": True}


class Health(BaseModel):
    ok: bool
    latency_ms: Optional[float] = None
