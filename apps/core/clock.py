import datetime
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone


class StoreClock:
    """
    Supplies the current instant and resolves date-only bounds in the
    store time zone, independent of the server locale.
    """

    def __init__(self, time_zone: str | None = None):
        self.zone = ZoneInfo(time_zone or settings.STORE_TIME_ZONE)

    def now(self) -> datetime.datetime:
        return timezone.now()

    def local_date(self, moment=None) -> datetime.date:
        return timezone.localtime(moment or self.now(), self.zone).date()

    def start_of_day(self, day: datetime.date) -> datetime.datetime:
        return datetime.datetime.combine(day, datetime.time.min, tzinfo=self.zone)

    def end_of_day(self, day: datetime.date) -> datetime.datetime:
        return datetime.datetime.combine(day, datetime.time.max, tzinfo=self.zone)

    def within(self, start_date, end_date, moment=None) -> bool:
        """True when ``moment`` falls inside [start 00:00, end 23:59:59]."""
        moment = moment or self.now()
        if start_date is not None and moment < self.start_of_day(start_date):
            return False
        if end_date is not None and moment > self.end_of_day(end_date):
            return False
        return True


class FrozenClock(StoreClock):
    """A clock pinned to one instant, for sweeps replayed at a given time."""

    def __init__(self, moment: datetime.datetime, time_zone: str | None = None):
        super().__init__(time_zone)
        self.moment = moment

    def now(self) -> datetime.datetime:
        return self.moment
