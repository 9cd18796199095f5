import datetime
import logging
import time
from typing import List, Optional
from fastapi import (
    FastAPI,
    APIRouter,
    Depends,
    Query,
    Request,
    Response,
)
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config import APP_VERSION, configure_logging
from db import EntityStore
from errors import FitLifeError, NotFoundError
from settings_schema import SettingsSchema, load_settings
from auth_service import AuthService
from schedule_service import ScheduleService
from messaging_service import MessagingService
from gamification_service import GamificationService
from dashboard_service import DashboardService
from seed_sample_data import seed
from schemas import (
    Timestamp,
    LoginIn,
    RegisterIn,
    WorkoutIn,
    MealIn,
    ProgressIn,
    ClassIn,
    EnrollmentIn,
    MessageIn,
    UserOut,
    UserEnvelope,
    StatusMessage,
    WorkoutOut,
    MealOut,
    ProgressOut,
    ClassOut,
    EnrollmentOut,
    MessageOut,
    LeaderboardRow,
    DashboardOut,
)

logger = logging.getLogger(__name__)


class RateLimiter:
    """Simple in-memory rate limiter."""

    def __init__(self, limit: int = 60, window: int = 60) -> None:
        self.limit = limit
        self.window = window
        self.requests: dict[str, list[float]] = {}

    async def __call__(self, request: Request, call_next):
        ip = request.client.host if request.client else "anon"
        now = time.time()
        history = [t for t in self.requests.get(ip, []) if now - t < self.window]
        if len(history) >= self.limit:
            return JSONResponse({"detail": "rate limit exceeded"}, status_code=429)
        history.append(now)
        self.requests[ip] = history
        return await call_next(request)


class FitnessAPI:
    """Provides the REST endpoints of the fitness tracker."""

    def __init__(
        self,
        db_path: str = ":memory:",
        yaml_path: str = "settings.yaml",
        *,
        store: EntityStore | None = None,
        settings: SettingsSchema | None = None,
        seed_data: bool | None = None,
        rate_limit: int | None = None,
        rate_window: int | None = None,
    ) -> None:
        self.settings = settings or load_settings(yaml_path)
        configure_logging(self.settings.log_level)
        self.store = store or EntityStore(db_path)
        if self.settings.seed_demo_data if seed_data is None else seed_data:
            seed(self.store)
        self.auth = AuthService(self.store.users, self.store.sessions, self.settings)
        self.schedule = ScheduleService(self.store.classes, self.store.enrollments)
        self.messaging = MessagingService(self.store.messages, self.store.users)
        self.gamification = GamificationService(self.store.users, self.store.progress)
        self.dashboard = DashboardService(
            self.store.users,
            self.store.progress,
            self.store.classes,
            self.store.enrollments,
            self.store.workouts,
            self.store.meals,
            self.gamification,
        )
        self.app = FastAPI(
            title="FitLife API",
            description="REST API for workouts, meals, progress, classes and messaging",
            version=APP_VERSION,
        )
        rate_limit = rate_limit if rate_limit is not None else self.settings.rate_limit
        if rate_limit is not None:
            limiter = RateLimiter(
                limit=rate_limit, window=rate_window or self.settings.rate_window
            )
            self.app.middleware("http")(limiter)
        self._setup_error_handlers()
        self._setup_routes()

    def _set_session_cookie(self, response: Response, user_id: int) -> None:
        response.set_cookie(
            self.settings.session_cookie_name,
            self.auth.start_session(user_id),
            max_age=self.settings.session_max_age,
            httponly=True,
            secure=self.settings.cookie_secure,
            samesite="lax",
        )

    def _current_user(self, request: Request) -> dict:
        return self.auth.resolve_session(
            request.cookies.get(self.settings.session_cookie_name)
        )

    def _setup_error_handlers(self) -> None:
        @self.app.exception_handler(FitLifeError)
        async def fitlife_error(request: Request, exc: FitLifeError):
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

        @self.app.exception_handler(RequestValidationError)
        async def validation_error(request: Request, exc: RequestValidationError):
            return JSONResponse(
                status_code=400,
                content={"detail": "Invalid input", "errors": jsonable_encoder(exc.errors())},
            )

        @self.app.exception_handler(Exception)
        async def unhandled_error(request: Request, exc: Exception):
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    def _setup_routes(self) -> None:
        auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])
        workouts_router = APIRouter(prefix="/api/workouts", tags=["Workouts"])
        meals_router = APIRouter(prefix="/api/meals", tags=["Meals"])
        classes_router = APIRouter(prefix="/api/classes", tags=["Classes"])
        enrollments_router = APIRouter(prefix="/api/enrollments", tags=["Enrollments"])
        messages_router = APIRouter(prefix="/api/messages", tags=["Messages"])
        current_user = self._current_user

        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and store connectivity.",
        )
        def health():
            """Return API and store status."""
            self.store.users.fetch_one("SELECT 1;")
            return {"status": "ok"}

        @auth_router.post("/login", response_model=UserEnvelope)
        def login(data: LoginIn, response: Response):
            user = self.auth.authenticate(data.username, data.password)
            self._set_session_cookie(response, user["id"])
            logger.info("User %s logged in", user["id"])
            return {"user": user}

        @auth_router.post("/register", response_model=UserEnvelope, status_code=201)
        def register(data: RegisterIn, response: Response):
            user = self.auth.register(
                data.username,
                data.email,
                data.password,
                data.full_name,
                data.city,
                data.role,
            )
            self._set_session_cookie(response, user["id"])
            return {"user": user}

        @auth_router.get("/user", response_model=UserEnvelope)
        def auth_user(user: dict = Depends(current_user)):
            return {"user": user}

        @auth_router.post("/logout", response_model=StatusMessage)
        def logout(request: Request, response: Response):
            self.auth.end_session(request.cookies.get(self.settings.session_cookie_name))
            response.delete_cookie(self.settings.session_cookie_name)
            return {"message": "Logged out successfully"}

        @self.app.get("/api/users", response_model=List[UserOut], tags=["Users"])
        def list_users(role: Optional[str] = None, user: dict = Depends(current_user)):
            return self.store.users.fetch_all_users(role)

        @workouts_router.get("", response_model=List[WorkoutOut])
        def list_workouts(type: Optional[str] = None, equipment: Optional[str] = None):
            items = [e for e in equipment.split(",") if e] if equipment else None
            return self.store.workouts.fetch_all_workouts(type, items)

        @workouts_router.get("/{workout_id}", response_model=WorkoutOut)
        def get_workout(workout_id: int):
            workout = self.store.workouts.get(workout_id)
            if workout is None:
                raise NotFoundError("Workout not found")
            return workout

        @workouts_router.post("", response_model=WorkoutOut, status_code=201)
        def create_workout(data: WorkoutIn, user: dict = Depends(current_user)):
            return self.store.workouts.create(
                data.name,
                data.type,
                [e.model_dump(exclude_none=True) for e in data.exercises],
                data.equipment_needed,
                data.description,
            )

        @meals_router.get("", response_model=List[MealOut])
        def list_meals(type: Optional[str] = None):
            return self.store.meals.fetch_all_meals(type)

        @meals_router.get("/{meal_id}", response_model=MealOut)
        def get_meal(meal_id: int):
            meal = self.store.meals.get(meal_id)
            if meal is None:
                raise NotFoundError("Meal not found")
            return meal

        @meals_router.post("", response_model=MealOut, status_code=201)
        def create_meal(data: MealIn, user: dict = Depends(current_user)):
            return self.store.meals.create(
                data.name,
                data.type,
                data.calories,
                data.protein,
                data.carbs,
                data.fats,
                data.ingredients,
                data.description,
                data.image,
            )

        @self.app.get(
            "/api/user-progress", response_model=List[ProgressOut], tags=["Progress"]
        )
        def list_progress(
            start_date: Optional[Timestamp] = Query(None, alias="startDate"),
            end_date: Optional[Timestamp] = Query(None, alias="endDate"),
            user: dict = Depends(current_user),
        ):
            return self.store.progress.fetch_for_user(user["id"], start_date, end_date)

        @self.app.post(
            "/api/user-progress",
            response_model=ProgressOut,
            status_code=201,
            tags=["Progress"],
        )
        def create_progress(data: ProgressIn, user: dict = Depends(current_user)):
            return self.store.progress.create(user["id"], **data.model_dump())

        @classes_router.get("", response_model=List[ClassOut])
        def list_classes(
            type: Optional[str] = None,
            start_date: Optional[Timestamp] = Query(None, alias="startDate"),
            end_date: Optional[Timestamp] = Query(None, alias="endDate"),
        ):
            return self.store.classes.fetch_all_classes(type, start_date, end_date)

        @classes_router.get("/{class_id}", response_model=ClassOut)
        def get_class(class_id: int):
            class_data = self.store.classes.get(class_id)
            if class_data is None:
                raise NotFoundError("Class not found")
            return class_data

        @classes_router.post("", response_model=ClassOut, status_code=201)
        def create_class(data: ClassIn, user: dict = Depends(current_user)):
            return self.schedule.create_class(user, **data.model_dump())

        @enrollments_router.get("", response_model=List[EnrollmentOut])
        def list_enrollments(user: dict = Depends(current_user)):
            return self.schedule.enrollments_for(user["id"])

        @enrollments_router.post("", response_model=EnrollmentOut, status_code=201)
        def enroll(data: EnrollmentIn, user: dict = Depends(current_user)):
            return self.schedule.enroll(user["id"], data.class_id)

        @enrollments_router.delete("/{class_id}", response_model=StatusMessage)
        def cancel_enrollment(class_id: int, user: dict = Depends(current_user)):
            self.schedule.cancel(user["id"], class_id)
            return {"message": "Enrollment canceled successfully"}

        @messages_router.get("", response_model=List[MessageOut])
        def list_messages(user: dict = Depends(current_user)):
            return self.messaging.inbox(user["id"])

        @messages_router.post("", response_model=MessageOut, status_code=201)
        def send_message(data: MessageIn, user: dict = Depends(current_user)):
            return self.messaging.send(user["id"], data.receiver_id, data.content)

        @messages_router.put("/{message_id}/read", response_model=StatusMessage)
        def mark_message_read(message_id: int, user: dict = Depends(current_user)):
            self.messaging.mark_read(message_id)
            return {"message": "Message marked as read"}

        @self.app.get("/api/dashboard", response_model=DashboardOut, tags=["Dashboard"])
        def dashboard(user: dict = Depends(current_user)):
            return self.dashboard.snapshot(user["id"], datetime.datetime.now())

        @self.app.get(
            "/api/leaderboard", response_model=List[LeaderboardRow], tags=["Dashboard"]
        )
        def leaderboard():
            return self.gamification.leaderboard()

        self.app.include_router(auth_router)
        self.app.include_router(workouts_router)
        self.app.include_router(meals_router)
        self.app.include_router(classes_router)
        self.app.include_router(enrollments_router)
        self.app.include_router(messages_router)


api = FitnessAPI()
app = api.app

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app)
