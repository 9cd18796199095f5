import datetime

from db import (
    UserRepository,
    ProgressRepository,
    ClassRepository,
    EnrollmentRepository,
    WorkoutRepository,
    MealRepository,
)
from errors import NotFoundError
from gamification_service import GamificationService
from tools import DateTools


class DashboardService:
    """Assemble the per-user dashboard snapshot."""

    UPCOMING_LIMIT = 3
    WEEK_DAYS = 7
    MEAL_PLAN_TYPES = ("breakfast", "lunch", "dinner")
    # fixed targets; only calories track today's record
    NUTRITION_TARGETS = {
        "protein": {"current": 78, "goal": 120},
        "carbs": {"current": 105, "goal": 250},
        "fats": {"current": 48, "goal": 60},
    }
    CALORIE_GOAL = 1800

    def __init__(
        self,
        user_repo: UserRepository,
        progress_repo: ProgressRepository,
        class_repo: ClassRepository,
        enrollment_repo: EnrollmentRepository,
        workout_repo: WorkoutRepository,
        meal_repo: MealRepository,
        gamification: GamificationService,
    ) -> None:
        self.users = user_repo
        self.progress = progress_repo
        self.classes = class_repo
        self.enrollments = enrollment_repo
        self.workouts = workout_repo
        self.meals = meal_repo
        self.gamification = gamification

    def snapshot(self, user_id: int, now: datetime.datetime | None = None) -> dict:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        now = now or datetime.datetime.now()

        recent = self.progress.fetch_for_user(
            user_id, start=DateTools.midnight(now, self.WEEK_DAYS)
        )
        today = self.gamification.record_for_day(recent, now, 0) or {}
        calories_consumed = today.get("calories_consumed") or 0

        upcoming = self.upcoming_classes(user_id, now)
        nutrition = {k: dict(v) for k, v in self.NUTRITION_TARGETS.items()}
        nutrition["calories"] = {"current": calories_consumed, "goal": self.CALORIE_GOAL}

        return {
            "user": user,
            "today_stats": {
                "calories_consumed": calories_consumed,
                "water_intake": today.get("water_intake") or 0,
                "workout_streak": self.gamification.workout_streak(user_id, now),
                "next_session": self.next_session(upcoming, now),
            },
            "weekly_activity": self.weekly_activity(recent, now),
            "nutrition_breakdown": nutrition,
            "today_workout": self.today_workout(),
            "meal_plan": self.meal_plan(),
            "upcoming_classes": upcoming,
        }

    def upcoming_classes(self, user_id: int, now: datetime.datetime) -> list[dict]:
        enrolled = {e["class_id"] for e in self.enrollments.fetch_all_enrollments(user_id=user_id)}
        future = [c for c in self.classes.fetch_all_classes(start=now) if c["start_time"] >= now]
        result = []
        for cls in future[: self.UPCOMING_LIMIT]:
            trainer = self.users.get(cls["trainer_id"])
            result.append(
                {
                    **cls,
                    "enrolled": cls["id"] in enrolled,
                    "trainer_name": trainer["full_name"] if trainer else "Unknown",
                }
            )
        return result

    @staticmethod
    def next_session(upcoming: list[dict], now: datetime.datetime) -> dict | None:
        nxt = next((c for c in upcoming if c["enrolled"]), None)
        if nxt is None:
            return None
        return {
            "time_until": DateTools.time_until(nxt["start_time"], now),
            "class_name": nxt["name"],
            "trainer_name": nxt["trainer_name"],
            "time": DateTools.clock(nxt["start_time"]),
        }

    def weekly_activity(self, records: list[dict], now: datetime.datetime) -> list[dict]:
        """Return seven daily entries, oldest first, ending today."""
        week = []
        for days_ago in range(self.WEEK_DAYS - 1, -1, -1):
            day = DateTools.midnight(now, days_ago).date()
            record = self.gamification.record_for_day(records, now, days_ago) or {}
            week.append(
                {
                    "day": DateTools.weekday(day),
                    "date": day,
                    "workout_duration": record.get("workout_duration") or 0,
                    "calories_burned": record.get("calories_burned") or 0,
                }
            )
        return week

    def today_workout(self) -> dict | None:
        # placeholder selection: first catalog entry, not personalised
        workouts = self.workouts.fetch_all_workouts()
        return workouts[0] if workouts else None

    def meal_plan(self) -> dict:
        meals = self.meals.fetch_all_meals()
        return {
            meal_type: next((m for m in meals if m["type"] == meal_type), None)
            for meal_type in self.MEAL_PLAN_TYPES
        }
