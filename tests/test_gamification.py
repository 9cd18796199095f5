import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import EntityStore
from gamification_service import GamificationService


class GamificationTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = EntityStore()
        self.service = GamificationService(self.store.users, self.store.progress)
        self.now = datetime.datetime(2024, 5, 15, 12, 0)

    def tearDown(self) -> None:
        self.store.close()

    def _user(self, username: str, role: str = "user", city: str | None = None) -> int:
        return self.store.users.create(
            username, "x", f"{username}@example.com", username.title(), city, role
        )["id"]

    def _log(self, user_id: int, days_ago: int, completed: bool, minutes: int | None = None) -> None:
        self.store.progress.create(
            user_id,
            self.now.replace(hour=8) - datetime.timedelta(days=days_ago),
            workout_completed=completed,
            workout_duration=minutes,
        )

    def test_single_member_among_trainers(self) -> None:
        member = self._user("ananya", city="Bangalore")
        self._user("priya", "trainer")
        self._user("rahul", "trainer")
        self._log(member, 1, True, 45)
        self._log(member, 2, True, 60)
        rows = self.service.leaderboard()
        self.assertEqual(
            rows,
            [
                {
                    "id": member,
                    "name": "Ananya",
                    "city": "Bangalore",
                    "workouts": 2,
                    "minutes": 105,
                    "points": 205,
                }
            ],
        )

    def test_points_use_entire_history(self) -> None:
        member = self._user("a")
        self._log(member, 400, True, 30)
        self._log(member, 30, False, 20)
        self._log(member, 0, True, None)
        row = self.service.leaderboard()[0]
        self.assertEqual(row["workouts"], 2)
        self.assertEqual(row["minutes"], 50)
        self.assertEqual(row["points"], 2 * 50 + 50)

    def test_sorted_descending_with_stable_ties(self) -> None:
        first = self._user("first")
        second = self._user("second")
        third = self._user("third")
        self._log(second, 1, True, 10)
        self._log(first, 1, False, 5)
        self._log(third, 1, False, 5)
        rows = self.service.leaderboard()
        self.assertEqual([r["id"] for r in rows], [second, first, third])
        self.assertEqual([r["points"] for r in rows], [60, 5, 5])

    def test_missing_city_defaults_to_unknown(self) -> None:
        self._user("a")
        self.assertEqual(self.service.leaderboard()[0]["city"], "Unknown")

    def test_streak_stops_at_first_gap(self) -> None:
        member = self._user("a")
        for days in (1, 2, 3):
            self._log(member, days, True, 30)
        self._log(member, 4, False)
        self._log(member, 5, True, 30)
        self.assertEqual(self.service.workout_streak(member, self.now), 3)

    def test_streak_ignores_today_and_missing_days(self) -> None:
        member = self._user("a")
        self._log(member, 0, True, 30)
        self._log(member, 2, True, 30)
        self.assertEqual(self.service.workout_streak(member, self.now), 0)

    def test_streak_capped_at_seven_days(self) -> None:
        member = self._user("a")
        for days in range(1, 11):
            self._log(member, days, True, 30)
        self.assertEqual(self.service.workout_streak(member, self.now), 7)

    def test_record_for_day_takes_first_match(self) -> None:
        member = self._user("a")
        self._log(member, 1, False)
        self.store.progress.create(
            member,
            self.now.replace(hour=20) - datetime.timedelta(days=1),
            workout_completed=True,
        )
        records = self.store.progress.fetch_for_user(member)
        record = GamificationService.record_for_day(records, self.now, 1)
        self.assertFalse(record["workout_completed"])
        self.assertIsNone(GamificationService.record_for_day(records, self.now, 2))
        self.assertEqual(self.service.workout_streak(member, self.now), 0)


if __name__ == "__main__":
    unittest.main()
