import sqlite3
import json
import datetime
import threading
from contextlib import contextmanager
from typing import List, Optional, Tuple, Iterable

from errors import ConflictError
from tools import DateTools


class Database:
    """Provides SQLite connection management and schema initialization.

    The default path ``:memory:`` keeps every record for the lifetime of the
    process only. A single connection is shared between threads and guarded
    by a re-entrant lock.
    """

    _TABLE_DEFINITIONS = {
        "users": (
            """CREATE TABLE users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL UNIQUE,
                    password TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    full_name TEXT NOT NULL,
                    city TEXT,
                    role TEXT NOT NULL DEFAULT 'user',
                    created_at TEXT NOT NULL
                );""",
            [
                "id",
                "username",
                "password",
                "email",
                "full_name",
                "city",
                "role",
                "created_at",
            ],
        ),
        "workouts": (
            """CREATE TABLE workouts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT,
                    type TEXT NOT NULL,
                    equipment_needed TEXT NOT NULL DEFAULT '[]',
                    exercises TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );""",
            [
                "id",
                "name",
                "description",
                "type",
                "equipment_needed",
                "exercises",
                "created_at",
            ],
        ),
        "meals": (
            """CREATE TABLE meals (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT,
                    type TEXT NOT NULL,
                    calories INTEGER NOT NULL,
                    protein REAL NOT NULL,
                    carbs REAL NOT NULL,
                    fats REAL NOT NULL,
                    image TEXT,
                    ingredients TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );""",
            [
                "id",
                "name",
                "description",
                "type",
                "calories",
                "protein",
                "carbs",
                "fats",
                "image",
                "ingredients",
                "created_at",
            ],
        ),
        "user_progress": (
            """CREATE TABLE user_progress (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    date TEXT NOT NULL,
                    workout_completed INTEGER,
                    workout_id INTEGER,
                    workout_duration INTEGER,
                    calories_burned INTEGER,
                    calories_consumed INTEGER,
                    water_intake REAL,
                    weight REAL,
                    notes TEXT
                );""",
            [
                "id",
                "user_id",
                "date",
                "workout_completed",
                "workout_id",
                "workout_duration",
                "calories_burned",
                "calories_consumed",
                "water_intake",
                "weight",
                "notes",
            ],
        ),
        "classes": (
            """CREATE TABLE classes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT,
                    trainer_id INTEGER NOT NULL,
                    start_time TEXT NOT NULL,
                    duration INTEGER NOT NULL,
                    max_participants INTEGER,
                    current_participants INTEGER NOT NULL DEFAULT 0,
                    type TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );""",
            [
                "id",
                "name",
                "description",
                "trainer_id",
                "start_time",
                "duration",
                "max_participants",
                "current_participants",
                "type",
                "created_at",
            ],
        ),
        "class_enrollments": (
            """CREATE TABLE class_enrollments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    class_id INTEGER NOT NULL,
                    user_id INTEGER NOT NULL,
                    enrolled_at TEXT NOT NULL
                );""",
            ["id", "class_id", "user_id", "enrolled_at"],
        ),
        "messages": (
            """CREATE TABLE messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    sender_id INTEGER NOT NULL,
                    receiver_id INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    read INTEGER NOT NULL DEFAULT 0,
                    sent_at TEXT NOT NULL
                );""",
            ["id", "sender_id", "receiver_id", "content", "read", "sent_at"],
        ),
        "sessions": (
            """CREATE TABLE sessions (
                    id TEXT PRIMARY KEY,
                    user_id INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL
                );""",
            ["id", "user_id", "created_at", "expires_at"],
        ),
    }

    # backfilled with the current time when added to an existing table
    _TIMESTAMP_COLUMNS = {
        "created_at",
        "date",
        "start_time",
        "enrolled_at",
        "sent_at",
        "expires_at",
    }

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    @contextmanager
    def _connection(self):
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = {row[1] for row in cur.fetchall()}
        for column in columns:
            if column in existing_cols:
                continue
            definition = self._column_definition(sql, column)
            if "DEFAULT" not in definition:
                # sqlite cannot add NOT NULL or UNIQUE columns without a default
                definition = " ".join(
                    definition.replace("NOT NULL", "").replace("UNIQUE", "").split()
                )
            conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition};")
            if column in self._TIMESTAMP_COLUMNS:
                conn.execute(
                    f"UPDATE {table} SET {column} = ? WHERE {column} IS NULL;",
                    (_now(),),
                )

    @staticmethod
    def _column_definition(sql: str, column: str) -> str:
        """Return the type and constraints declared for ``column`` in ``sql``."""
        for line in sql.splitlines():
            parts = line.strip().rstrip(",").split(None, 1)
            if len(parts) == 2 and parts[0] == column:
                return parts[1]
        raise KeyError(f"{column} is not declared in the table definition")

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class BaseRepository:
    """Base repository providing helper methods."""

    table: str = ""

    def __init__(self, db: Database) -> None:
        self.db = db

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self.db._connection() as conn:
            cursor = conn.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[sqlite3.Row]:
        with self.db._connection() as conn:
            return conn.execute(query, params).fetchall()

    def fetch_one(self, query: str, params: Tuple = ()) -> Optional[sqlite3.Row]:
        rows = self.fetch_all(query, params)
        return rows[0] if rows else None

    def _row(self, row: sqlite3.Row) -> dict:
        return dict(row)

    def get(self, entity_id: int) -> dict | None:
        row = self.fetch_one(f"SELECT * FROM {self.table} WHERE id = ?;", (entity_id,))
        return self._row(row) if row is not None else None

    def dump(self) -> list[dict]:
        return [self._row(r) for r in self.fetch_all(f"SELECT * FROM {self.table} ORDER BY id;")]


def _now() -> str:
    return DateTools.to_storage(datetime.datetime.now())


def _optional_bool(value: int | None) -> bool | None:
    return None if value is None else bool(value)


def _optional_int(value: bool | None) -> int | None:
    return None if value is None else int(value)


class UserRepository(BaseRepository):
    """Repository for user accounts."""

    table = "users"

    def create(
        self,
        username: str,
        password: str,
        email: str,
        full_name: str,
        city: str | None = None,
        role: str = "user",
    ) -> dict:
        try:
            uid = self.execute(
                "INSERT INTO users (username, password, email, full_name, city, role, created_at) VALUES (?, ?, ?, ?, ?, ?, ?);",
                (username, password, email, full_name, city, role, _now()),
            )
        except sqlite3.IntegrityError as e:
            raise ConflictError("Username or email already exists") from e
        return self.get(uid)

    def get_by_username(self, username: str) -> dict | None:
        row = self.fetch_one("SELECT * FROM users WHERE username = ?;", (username,))
        return self._row(row) if row is not None else None

    def get_by_email(self, email: str) -> dict | None:
        row = self.fetch_one("SELECT * FROM users WHERE email = ?;", (email,))
        return self._row(row) if row is not None else None

    def fetch_all_users(self, role: Optional[str] = None) -> list[dict]:
        query = "SELECT * FROM users"
        params: list[str] = []
        if role:
            query += " WHERE role = ?"
            params.append(role)
        query += " ORDER BY id;"
        return [self._row(r) for r in self.fetch_all(query, tuple(params))]


class WorkoutRepository(BaseRepository):
    """Repository for the workout catalog."""

    table = "workouts"

    def _row(self, row: sqlite3.Row) -> dict:
        data = dict(row)
        data["equipment_needed"] = json.loads(data["equipment_needed"])
        data["exercises"] = json.loads(data["exercises"])
        return data

    def create(
        self,
        name: str,
        type: str,
        exercises: list[dict],
        equipment_needed: Iterable[str] = (),
        description: str | None = None,
    ) -> dict:
        wid = self.execute(
            "INSERT INTO workouts (name, description, type, equipment_needed, exercises, created_at) VALUES (?, ?, ?, ?, ?, ?);",
            (
                name,
                description,
                type,
                json.dumps(list(equipment_needed)),
                json.dumps(exercises),
                _now(),
            ),
        )
        return self.get(wid)

    def fetch_all_workouts(
        self,
        type: Optional[str] = None,
        equipment: Optional[list[str]] = None,
    ) -> list[dict]:
        query = "SELECT * FROM workouts"
        params: list[str] = []
        if type:
            query += " WHERE type = ?"
            params.append(type)
        query += " ORDER BY id;"
        workouts = [self._row(r) for r in self.fetch_all(query, tuple(params))]
        if equipment:
            workouts = [
                w for w in workouts if any(eq in w["equipment_needed"] for eq in equipment)
            ]
        return workouts


class MealRepository(BaseRepository):
    """Repository for the meal catalog."""

    table = "meals"

    def _row(self, row: sqlite3.Row) -> dict:
        data = dict(row)
        data["ingredients"] = json.loads(data["ingredients"])
        return data

    def create(
        self,
        name: str,
        type: str,
        calories: int,
        protein: float,
        carbs: float,
        fats: float,
        ingredients: Iterable[str] = (),
        description: str | None = None,
        image: str | None = None,
    ) -> dict:
        mid = self.execute(
            "INSERT INTO meals (name, description, type, calories, protein, carbs, fats, image, ingredients, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);",
            (
                name,
                description,
                type,
                calories,
                protein,
                carbs,
                fats,
                image,
                json.dumps(list(ingredients)),
                _now(),
            ),
        )
        return self.get(mid)

    def fetch_all_meals(self, type: Optional[str] = None) -> list[dict]:
        query = "SELECT * FROM meals"
        params: list[str] = []
        if type:
            query += " WHERE type = ?"
            params.append(type)
        query += " ORDER BY id;"
        return [self._row(r) for r in self.fetch_all(query, tuple(params))]


class ProgressRepository(BaseRepository):
    """Repository for daily progress records."""

    table = "user_progress"

    def _row(self, row: sqlite3.Row) -> dict:
        data = dict(row)
        data["workout_completed"] = _optional_bool(data["workout_completed"])
        data["date"] = DateTools.from_storage(data["date"])
        return data

    def create(
        self,
        user_id: int,
        date: datetime.datetime | None = None,
        workout_completed: bool | None = None,
        workout_id: int | None = None,
        workout_duration: int | None = None,
        calories_burned: int | None = None,
        calories_consumed: int | None = None,
        water_intake: float | None = None,
        weight: float | None = None,
        notes: str | None = None,
    ) -> dict:
        pid = self.execute(
            "INSERT INTO user_progress (user_id, date, workout_completed, workout_id, workout_duration, calories_burned, calories_consumed, water_intake, weight, notes) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);",
            (
                user_id,
                DateTools.to_storage(date) if date is not None else _now(),
                _optional_int(workout_completed),
                workout_id,
                workout_duration,
                calories_burned,
                calories_consumed,
                water_intake,
                weight,
                notes,
            ),
        )
        return self.get(pid)

    def fetch_for_user(
        self,
        user_id: int,
        start: datetime.datetime | None = None,
        end: datetime.datetime | None = None,
    ) -> list[dict]:
        """Return the user's records within inclusive bounds, oldest first."""
        query = "SELECT * FROM user_progress WHERE user_id = ?"
        params: list[int | str] = [user_id]
        if start is not None:
            query += " AND date >= ?"
            params.append(DateTools.to_storage(start))
        if end is not None:
            query += " AND date <= ?"
            params.append(DateTools.to_storage(end))
        query += " ORDER BY date, id;"
        return [self._row(r) for r in self.fetch_all(query, tuple(params))]


class ClassRepository(BaseRepository):
    """Repository for scheduled classes."""

    table = "classes"

    def _row(self, row: sqlite3.Row) -> dict:
        data = dict(row)
        data["start_time"] = DateTools.from_storage(data["start_time"])
        return data

    def create(
        self,
        name: str,
        trainer_id: int,
        start_time: datetime.datetime,
        duration: int,
        type: str,
        max_participants: int | None = None,
        description: str | None = None,
    ) -> dict:
        cid = self.execute(
            "INSERT INTO classes (name, description, trainer_id, start_time, duration, max_participants, current_participants, type, created_at) VALUES (?, ?, ?, ?, ?, ?, 0, ?, ?);",
            (
                name,
                description,
                trainer_id,
                DateTools.to_storage(start_time),
                duration,
                max_participants,
                type,
                _now(),
            ),
        )
        return self.get(cid)

    def fetch_all_classes(
        self,
        type: Optional[str] = None,
        start: datetime.datetime | None = None,
        end: datetime.datetime | None = None,
    ) -> list[dict]:
        """Return classes within inclusive bounds, earliest start first."""
        query = "SELECT * FROM classes"
        params: list[str] = []
        where_clauses: list[str] = []
        if type:
            where_clauses.append("type = ?")
            params.append(type)
        if start is not None:
            where_clauses.append("start_time >= ?")
            params.append(DateTools.to_storage(start))
        if end is not None:
            where_clauses.append("start_time <= ?")
            params.append(DateTools.to_storage(end))
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY start_time, id;"
        return [self._row(r) for r in self.fetch_all(query, tuple(params))]

    def update_participants(self, class_id: int, increment: bool) -> dict | None:
        """Adjust the participant count by one.

        Raises ``ConflictError`` when incrementing a class already at
        ``max_participants``. Decrementing never goes below zero.
        """
        with self.db._connection() as conn:
            row = conn.execute(
                "SELECT max_participants, current_participants FROM classes WHERE id = ?;",
                (class_id,),
            ).fetchone()
            if row is None:
                return None
            max_participants, current = row
            if increment:
                if max_participants is not None and current >= max_participants:
                    raise ConflictError("Class is full")
                conn.execute(
                    "UPDATE classes SET current_participants = current_participants + 1 WHERE id = ?;",
                    (class_id,),
                )
            else:
                conn.execute(
                    "UPDATE classes SET current_participants = MAX(current_participants - 1, 0) WHERE id = ?;",
                    (class_id,),
                )
        return self.get(class_id)


class EnrollmentRepository(BaseRepository):
    """Repository for class enrollments."""

    table = "class_enrollments"

    def create(self, class_id: int, user_id: int) -> dict:
        eid = self.execute(
            "INSERT INTO class_enrollments (class_id, user_id, enrolled_at) VALUES (?, ?, ?);",
            (class_id, user_id, _now()),
        )
        return self.get(eid)

    def fetch_all_enrollments(
        self, class_id: Optional[int] = None, user_id: Optional[int] = None
    ) -> list[dict]:
        query = "SELECT * FROM class_enrollments"
        params: list[int] = []
        where_clauses: list[str] = []
        if class_id is not None:
            where_clauses.append("class_id = ?")
            params.append(class_id)
        if user_id is not None:
            where_clauses.append("user_id = ?")
            params.append(user_id)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY id;"
        return [self._row(r) for r in self.fetch_all(query, tuple(params))]

    def delete(self, class_id: int, user_id: int) -> bool:
        row = self.fetch_one(
            "SELECT id FROM class_enrollments WHERE class_id = ? AND user_id = ? ORDER BY id;",
            (class_id, user_id),
        )
        if row is None:
            return False
        self.execute("DELETE FROM class_enrollments WHERE id = ?;", (row["id"],))
        return True


class MessageRepository(BaseRepository):
    """Repository for direct messages between users."""

    table = "messages"

    def _row(self, row: sqlite3.Row) -> dict:
        data = dict(row)
        data["read"] = bool(data["read"])
        data["sent_at"] = DateTools.from_storage(data["sent_at"])
        return data

    def create(self, sender_id: int, receiver_id: int, content: str) -> dict:
        mid = self.execute(
            "INSERT INTO messages (sender_id, receiver_id, content, read, sent_at) VALUES (?, ?, ?, 0, ?);",
            (sender_id, receiver_id, content, _now()),
        )
        return self.get(mid)

    def fetch_all_messages(
        self, sender_id: Optional[int] = None, receiver_id: Optional[int] = None
    ) -> list[dict]:
        """Return matching messages, oldest first."""
        query = "SELECT * FROM messages"
        params: list[int] = []
        where_clauses: list[str] = []
        if sender_id is not None:
            where_clauses.append("sender_id = ?")
            params.append(sender_id)
        if receiver_id is not None:
            where_clauses.append("receiver_id = ?")
            params.append(receiver_id)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY sent_at, id;"
        return [self._row(r) for r in self.fetch_all(query, tuple(params))]

    def mark_read(self, message_id: int) -> bool:
        if self.get(message_id) is None:
            return False
        self.execute("UPDATE messages SET read = 1 WHERE id = ?;", (message_id,))
        return True


class SessionRepository(BaseRepository):
    """Repository for server-side login sessions."""

    table = "sessions"

    def _row(self, row: sqlite3.Row) -> dict:
        data = dict(row)
        data["created_at"] = DateTools.from_storage(data["created_at"])
        data["expires_at"] = DateTools.from_storage(data["expires_at"])
        return data

    def create(self, token: str, user_id: int, max_age: int) -> dict:
        now = datetime.datetime.now()
        self.execute(
            "INSERT INTO sessions (id, user_id, created_at, expires_at) VALUES (?, ?, ?, ?);",
            (
                token,
                user_id,
                DateTools.to_storage(now),
                DateTools.to_storage(now + datetime.timedelta(seconds=max_age)),
            ),
        )
        return self.get(token)

    def get(self, token: str) -> dict | None:
        row = self.fetch_one("SELECT * FROM sessions WHERE id = ?;", (token,))
        return self._row(row) if row is not None else None

    def delete(self, token: str) -> None:
        self.execute("DELETE FROM sessions WHERE id = ?;", (token,))

    def purge_expired(self, now: datetime.datetime | None = None) -> None:
        now = now or datetime.datetime.now()
        self.execute(
            "DELETE FROM sessions WHERE expires_at <= ?;", (DateTools.to_storage(now),)
        )


class EntityStore:
    """Owns the database and one repository per entity type."""

    def __init__(self, db_path: str = ":memory:") -> None:
        self.db = Database(db_path)
        self.users = UserRepository(self.db)
        self.workouts = WorkoutRepository(self.db)
        self.meals = MealRepository(self.db)
        self.progress = ProgressRepository(self.db)
        self.classes = ClassRepository(self.db)
        self.enrollments = EnrollmentRepository(self.db)
        self.messages = MessageRepository(self.db)
        self.sessions = SessionRepository(self.db)

    def export(self) -> dict[str, list[dict]]:
        """Return every entity collection keyed by table name."""
        repos = [
            self.users,
            self.workouts,
            self.meals,
            self.progress,
            self.classes,
            self.enrollments,
            self.messages,
        ]
        return {repo.table: repo.dump() for repo in repos}

    def close(self) -> None:
        self.db.close()
