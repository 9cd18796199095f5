import datetime
import logging
import threading

from db import ClassRepository, EnrollmentRepository
from errors import AuthorizationError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class ScheduleService:
    """Create classes and manage enrollments with capacity accounting.

    Enrollment and cancellation run their read-check-write sequence under a
    single lock so one process never overbooks a class.
    """

    def __init__(
        self,
        class_repo: ClassRepository,
        enrollment_repo: EnrollmentRepository,
    ) -> None:
        self.classes = class_repo
        self.enrollments = enrollment_repo
        self._lock = threading.Lock()

    def create_class(
        self,
        user: dict,
        name: str,
        start_time: datetime.datetime,
        duration: int,
        type: str,
        max_participants: int | None = None,
        description: str | None = None,
    ) -> dict:
        if user["role"] != "trainer":
            raise AuthorizationError("Only trainers can create classes")
        created = self.classes.create(
            name,
            user["id"],
            start_time,
            duration,
            type,
            max_participants,
            description,
        )
        logger.info("Trainer %s created class %s (%s)", user["id"], created["id"], name)
        return created

    def enroll(self, user_id: int, class_id: int) -> dict:
        with self._lock:
            if self.enrollments.fetch_all_enrollments(class_id, user_id):
                raise ConflictError("Already enrolled in this class")
            class_data = self.classes.get(class_id)
            if class_data is None:
                raise NotFoundError("Class not found")
            max_participants = class_data["max_participants"]
            if max_participants is not None and class_data["current_participants"] >= max_participants:
                logger.warning("User %s rejected from full class %s", user_id, class_id)
                raise ConflictError("Class is full")
            enrollment = self.enrollments.create(class_id, user_id)
            self.classes.update_participants(class_id, True)
        logger.info("User %s enrolled in class %s", user_id, class_id)
        return enrollment

    def cancel(self, user_id: int, class_id: int) -> None:
        with self._lock:
            if not self.enrollments.delete(class_id, user_id):
                raise NotFoundError("Enrollment not found")
            self.classes.update_participants(class_id, False)
        logger.info("User %s left class %s", user_id, class_id)

    def enrollments_for(self, user_id: int) -> list[dict]:
        return self.enrollments.fetch_all_enrollments(user_id=user_id)
