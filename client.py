import requests
from typing import Optional


class FitLifeClient:
    """Simple REST client for the FitLife API.

    A ``requests.Session`` keeps the login cookie between calls.
    """

    MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _get(self, path: str, **params):
        resp = self.session.get(
            f"{self.base_url}{path}",
            params={k: v for k, v in params.items() if v is not None},
        )
        resp.raise_for_status()
        return resp.json()

    def _post(self, path: str, payload: dict):
        resp = self.session.post(f"{self.base_url}{path}", json=payload)
        resp.raise_for_status()
        return resp.json()

    def login(self, username: str, password: str) -> dict:
        return self._post("/api/auth/login", {"username": username, "password": password})["user"]

    def register(self, username: str, email: str, password: str, full_name: str, **extra) -> dict:
        payload = {
            "username": username,
            "email": email,
            "password": password,
            "fullName": full_name,
            **extra,
        }
        return self._post("/api/auth/register", payload)["user"]

    def logout(self) -> None:
        self._post("/api/auth/logout", {})

    def list_workouts(self, type: Optional[str] = None, equipment: Optional[list[str]] = None):
        return self._get(
            "/api/workouts",
            type=type,
            equipment=",".join(equipment) if equipment else None,
        )

    def list_meals(self, type: Optional[str] = None):
        return self._get("/api/meals", type=type)

    def meals_by_type(self) -> dict[str, list[dict]]:
        """Group the meal catalog by meal type for the diet planner view."""
        grouped: dict[str, list[dict]] = {t: [] for t in self.MEAL_TYPES}
        for meal in self.list_meals():
            grouped.setdefault(meal["type"], []).append(meal)
        return grouped

    def log_progress(self, **fields) -> dict:
        return self._post("/api/user-progress", fields)

    def list_classes(self, type: Optional[str] = None):
        return self._get("/api/classes", type=type)

    def enroll(self, class_id: int) -> dict:
        return self._post("/api/enrollments", {"classId": class_id})

    def cancel_enrollment(self, class_id: int) -> None:
        resp = self.session.delete(f"{self.base_url}/api/enrollments/{class_id}")
        resp.raise_for_status()

    def send_message(self, receiver_id: int, content: str) -> dict:
        return self._post("/api/messages", {"receiverId": receiver_id, "content": content})

    def messages(self):
        return self._get("/api/messages")

    def dashboard(self) -> dict:
        return self._get("/api/dashboard")

    def leaderboard(self):
        return self._get("/api/leaderboard")
