import re
from zoneinfo import ZoneInfo

# ================== GRID ==================
SECTIONS = 5
SLOTS_PER_SECTION = 5

# 5 sections x 5 slots, fixed per day
CAPACITY = SECTIONS * SLOTS_PER_SECTION

MOBILE_PATTERN = re.compile(r"[0-9]{10}")

# full_name and place columns are VARCHAR(255)
MAX_TEXT_LENGTH = 255

# ================== TIME ==================
# Rollover and "today" always follow Indian Standard Time, never the server locale
TIMEZONE = ZoneInfo("Asia/Kolkata")


def section_label(section_id: int) -> str:
    return f"S{section_id}"


def slot_label(slot_number: int) -> str:
    return f"Slot {slot_number}"
