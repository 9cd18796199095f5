import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from tools import DateTools


class DateToolsTestCase(unittest.TestCase):
    def test_constants(self) -> None:
        self.assertEqual(DateTools.MS_PER_HOUR, 3_600_000)
        self.assertEqual(DateTools.MS_PER_MINUTE, 60_000)
        self.assertEqual(len(DateTools.WEEKDAYS), 7)

    def test_normalize(self) -> None:
        self.assertEqual(
            DateTools.normalize(datetime.date(2024, 5, 15)),
            datetime.datetime(2024, 5, 15),
        )
        self.assertEqual(
            DateTools.normalize(datetime.datetime(2024, 5, 15, 8, 30, 1, 999)),
            datetime.datetime(2024, 5, 15, 8, 30, 1),
        )
        aware = datetime.datetime(2024, 5, 15, 8, 0, tzinfo=datetime.timezone.utc)
        self.assertIsNone(DateTools.normalize(aware).tzinfo)

    def test_storage_round_trip(self) -> None:
        value = datetime.datetime(2024, 5, 15, 17, 30)
        self.assertEqual(DateTools.to_storage(value), "2024-05-15T17:30:00")
        self.assertEqual(DateTools.from_storage("2024-05-15T17:30:00"), value)
        self.assertIsNone(DateTools.to_storage(None))
        self.assertIsNone(DateTools.from_storage(None))

    def test_day_window(self) -> None:
        now = datetime.datetime(2024, 5, 15, 12, 45)
        start, end = DateTools.day_window(now, 1)
        self.assertEqual(start, datetime.datetime(2024, 5, 14))
        self.assertEqual(end, datetime.datetime(2024, 5, 15))
        self.assertEqual(DateTools.midnight(now), datetime.datetime(2024, 5, 15))

    def test_time_until_floors(self) -> None:
        now = datetime.datetime(2024, 5, 15, 12, 0)
        self.assertEqual(
            DateTools.time_until(now + datetime.timedelta(hours=2, minutes=30, seconds=59), now),
            "2h 30m",
        )
        self.assertEqual(DateTools.time_until(now + datetime.timedelta(days=1), now), "24h 0m")
        self.assertEqual(DateTools.time_until(now, now), "0h 0m")

    def test_clock(self) -> None:
        self.assertEqual(DateTools.clock(datetime.datetime(2024, 5, 15, 17, 30)), "5:30 PM")
        self.assertEqual(DateTools.clock(datetime.datetime(2024, 5, 15, 0, 5)), "12:05 AM")
        self.assertEqual(DateTools.clock(datetime.datetime(2024, 5, 15, 12, 0)), "12:00 PM")

    def test_weekday(self) -> None:
        self.assertEqual(DateTools.weekday(datetime.date(2024, 5, 15)), "Wed")
        self.assertEqual(DateTools.weekday(datetime.date(2024, 5, 19)), "Sun")


if __name__ == "__main__":
    unittest.main()
