import datetime
from zoneinfo import ZoneInfo

LIMA = ZoneInfo("America/Lima")


def lima(year, month, day, hour=12, minute=0, second=0):
    return datetime.datetime(year, month, day, hour, minute, second, tzinfo=LIMA)
