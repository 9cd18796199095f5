import datetime


class DateTools:
    """Date and time helpers shared by the store and the dashboard."""

    WEEKDAYS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
    MS_PER_HOUR: int = 60 * 60 * 1000
    MS_PER_MINUTE: int = 60 * 1000

    @staticmethod
    def normalize(value: datetime.datetime | datetime.date) -> datetime.datetime:
        """Return ``value`` as a naive local datetime with second precision."""
        if not isinstance(value, datetime.datetime):
            value = datetime.datetime.combine(value, datetime.time())
        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        return value.replace(microsecond=0)

    @classmethod
    def to_storage(cls, value: datetime.datetime | datetime.date | None) -> str | None:
        if value is None:
            return None
        return cls.normalize(value).isoformat()

    @staticmethod
    def from_storage(value: str | None) -> datetime.datetime | None:
        if value is None:
            return None
        return datetime.datetime.fromisoformat(value)

    @staticmethod
    def midnight(now: datetime.datetime, days_ago: int = 0) -> datetime.datetime:
        """Return local midnight of the day ``days_ago`` days before ``now``."""
        day = now.date() - datetime.timedelta(days=days_ago)
        return datetime.datetime.combine(day, datetime.time())

    @classmethod
    def day_window(
        cls, now: datetime.datetime, days_ago: int = 0
    ) -> tuple[datetime.datetime, datetime.datetime]:
        """Return the half-open window [midnight, next midnight) for a day."""
        start = cls.midnight(now, days_ago)
        return start, start + datetime.timedelta(days=1)

    @classmethod
    def time_until(cls, start: datetime.datetime, now: datetime.datetime) -> str:
        """Format the gap between ``now`` and ``start`` as ``"{h}h {m}m"``.

        Hours and minutes use integer floor division of the millisecond
        difference.
        """
        diff_ms = (start - now) // datetime.timedelta(milliseconds=1)
        hours = diff_ms // cls.MS_PER_HOUR
        minutes = (diff_ms % cls.MS_PER_HOUR) // cls.MS_PER_MINUTE
        return f"{hours}h {minutes}m"

    @staticmethod
    def clock(value: datetime.datetime) -> str:
        """Return a 12-hour clock string such as ``"5:30 PM"``."""
        hour = value.hour % 12 or 12
        suffix = "AM" if value.hour < 12 else "PM"
        return f"{hour}:{value.minute:02d} {suffix}"

    @classmethod
    def weekday(cls, value: datetime.date) -> str:
        return cls.WEEKDAYS[value.weekday()]
