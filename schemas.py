"""Request and response models for the REST API.

Fields are snake_case in Python and camelCase on the wire; requests accept
either spelling.
"""

import datetime
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Role = Literal["user", "trainer"]
MealType = Literal["breakfast", "lunch", "dinner", "snack"]
Timestamp = Union[datetime.datetime, datetime.date]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --------- Requests ---------
class LoginIn(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterIn(CamelModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    city: Optional[str] = None
    role: Role = "user"


class ExerciseIn(CamelModel):
    name: str
    sets: Optional[int] = Field(None, ge=0)
    reps: Optional[int] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=0, description="Seconds")
    rest: Optional[int] = Field(None, ge=0, description="Seconds")


class WorkoutIn(CamelModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: str = Field(..., min_length=1)
    equipment_needed: List[str] = Field(default_factory=list)
    exercises: List[ExerciseIn]


class MealIn(CamelModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: MealType
    calories: int = Field(..., ge=0)
    protein: float = Field(..., ge=0)
    carbs: float = Field(..., ge=0)
    fats: float = Field(..., ge=0)
    image: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)


class ProgressIn(CamelModel):
    date: Optional[Timestamp] = None
    workout_completed: Optional[bool] = None
    workout_id: Optional[int] = None
    workout_duration: Optional[int] = Field(None, ge=0, description="Minutes")
    calories_burned: Optional[int] = Field(None, ge=0)
    calories_consumed: Optional[int] = Field(None, ge=0)
    water_intake: Optional[float] = Field(None, ge=0, description="Litres")
    weight: Optional[float] = Field(None, gt=0, description="Kilograms")
    notes: Optional[str] = None


class ClassIn(CamelModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_time: datetime.datetime
    duration: int = Field(..., gt=0, description="Minutes")
    max_participants: Optional[int] = Field(None, gt=0)
    type: str = Field(..., min_length=1)


class EnrollmentIn(CamelModel):
    class_id: int


class MessageIn(CamelModel):
    receiver_id: int
    content: str = Field(..., min_length=1)


# --------- Responses ---------
class UserOut(CamelModel):
    id: int
    username: str
    email: str
    full_name: str
    city: Optional[str] = None
    role: Role
    created_at: datetime.datetime


class UserEnvelope(CamelModel):
    user: UserOut


class StatusMessage(CamelModel):
    message: str


class WorkoutOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    type: str
    equipment_needed: List[str]
    exercises: List[dict[str, Any]]
    created_at: datetime.datetime


class MealOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    type: MealType
    calories: int
    protein: float
    carbs: float
    fats: float
    image: Optional[str] = None
    ingredients: List[str]
    created_at: datetime.datetime


class ProgressOut(CamelModel):
    id: int
    user_id: int
    date: datetime.datetime
    workout_completed: Optional[bool] = None
    workout_id: Optional[int] = None
    workout_duration: Optional[int] = None
    calories_burned: Optional[int] = None
    calories_consumed: Optional[int] = None
    water_intake: Optional[float] = None
    weight: Optional[float] = None
    notes: Optional[str] = None


class ClassOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    trainer_id: int
    start_time: datetime.datetime
    duration: int
    max_participants: Optional[int] = None
    current_participants: int
    type: str
    created_at: datetime.datetime


class EnrollmentOut(CamelModel):
    id: int
    class_id: int
    user_id: int
    enrolled_at: datetime.datetime


class MessageOut(CamelModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str
    read: bool
    sent_at: datetime.datetime


class LeaderboardRow(CamelModel):
    id: int
    name: str
    city: str
    workouts: int
    minutes: int
    points: int


class UpcomingClassOut(ClassOut):
    enrolled: bool
    trainer_name: str


class NextSessionOut(CamelModel):
    time_until: str
    class_name: str
    trainer_name: str
    time: str


class TodayStatsOut(CamelModel):
    calories_consumed: int
    water_intake: float
    workout_streak: int
    next_session: Optional[NextSessionOut] = None


class DayActivityOut(CamelModel):
    day: str
    date: datetime.date
    workout_duration: int
    calories_burned: int


class MacroOut(CamelModel):
    current: Union[int, float]
    goal: Union[int, float]


class NutritionOut(CamelModel):
    protein: MacroOut
    carbs: MacroOut
    fats: MacroOut
    calories: MacroOut


class MealPlanOut(CamelModel):
    breakfast: Optional[MealOut] = None
    lunch: Optional[MealOut] = None
    dinner: Optional[MealOut] = None


class DashboardOut(CamelModel):
    user: UserOut
    today_stats: TodayStatsOut
    weekly_activity: List[DayActivityOut]
    nutrition_breakdown: NutritionOut
    today_workout: Optional[WorkoutOut] = None
    meal_plan: MealPlanOut
    upcoming_classes: List[UpcomingClassOut]
