from datetime import date, datetime

from grid import TIMEZONE


class Clock:
    """Source of "now" for the store and the scheduler.

    Operations read it once and carry the value through, so a single call never
    straddles midnight.
    """

    def __init__(self, tz=TIMEZONE):
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()
