import datetime

from db import ProgressRepository, UserRepository
from tools import DateTools


class GamificationService:
    """Compute workout streaks and the community leaderboard."""

    POINTS_PER_WORKOUT = 50
    STREAK_WINDOW_DAYS = 7

    def __init__(self, user_repo: UserRepository, progress_repo: ProgressRepository) -> None:
        self.users = user_repo
        self.progress = progress_repo

    @staticmethod
    def record_for_day(
        records: list[dict], now: datetime.datetime, days_ago: int
    ) -> dict | None:
        """Return the first record dated within the given day, if any.

        ``records`` must be ordered by date. Several records on the same day
        are not merged; the earliest one wins.
        """
        start, end = DateTools.day_window(now, days_ago)
        return next((r for r in records if start <= r["date"] < end), None)

    def workout_streak(self, user_id: int, now: datetime.datetime | None = None) -> int:
        """Count consecutive completed-workout days ending yesterday.

        Today is excluded and at most ``STREAK_WINDOW_DAYS`` days are walked.
        """
        now = now or datetime.datetime.now()
        records = self.progress.fetch_for_user(
            user_id, start=DateTools.midnight(now, self.STREAK_WINDOW_DAYS)
        )
        streak = 0
        for days_ago in range(1, self.STREAK_WINDOW_DAYS + 1):
            record = self.record_for_day(records, now, days_ago)
            if record is None or not record["workout_completed"]:
                break
            streak += 1
        return streak

    def leaderboard(self) -> list[dict]:
        """Rank every member by points over their whole progress history.

        Points are ``workouts * 50 + minutes``. Trainers are excluded and ties
        keep the order in which users registered.
        """
        rows = []
        for user in self.users.fetch_all_users():
            if user["role"] != "user":
                continue
            records = self.progress.fetch_for_user(user["id"])
            workouts = sum(1 for r in records if r["workout_completed"])
            minutes = sum(r["workout_duration"] or 0 for r in records)
            rows.append(
                {
                    "id": user["id"],
                    "name": user["full_name"],
                    "city": user["city"] or "Unknown",
                    "workouts": workouts,
                    "minutes": minutes,
                    "points": workouts * self.POINTS_PER_WORKOUT + minutes,
                }
            )
        return sorted(rows, key=lambda r: r["points"], reverse=True)
