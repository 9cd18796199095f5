import hashlib
import hmac
import logging
import secrets
import datetime

from db import UserRepository, SessionRepository
from errors import AuthenticationError, ConflictError
from settings_schema import SettingsSchema

logger = logging.getLogger(__name__)


class AuthService:
    """Manage user registration, credentials and login sessions."""

    HASH_ITERATIONS = 200_000

    def __init__(
        self,
        user_repo: UserRepository,
        session_repo: SessionRepository,
        settings: SettingsSchema,
    ) -> None:
        self.users = user_repo
        self.sessions = session_repo
        self.settings = settings

    @classmethod
    def hash_password(cls, password: str, salt: bytes | None = None) -> str:
        """Return ``salt$hash`` using PBKDF2-SHA256."""
        salt = salt or secrets.token_bytes(16)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, cls.HASH_ITERATIONS)
        return f"{salt.hex()}${digest.hex()}"

    @classmethod
    def verify_password(cls, password: str, stored: str) -> bool:
        try:
            salt_hex, _digest = stored.split("$", 1)
            salt = bytes.fromhex(salt_hex)
        except ValueError:
            return False
        return hmac.compare_digest(cls.hash_password(password, salt), stored)

    def register(
        self,
        username: str,
        email: str,
        password: str,
        full_name: str,
        city: str | None = None,
        role: str = "user",
    ) -> dict:
        if self.users.get_by_username(username) is not None:
            raise ConflictError("Username already exists")
        if self.users.get_by_email(email) is not None:
            raise ConflictError("Email already exists")
        user = self.users.create(
            username,
            self.hash_password(password),
            email,
            full_name,
            city,
            role,
        )
        logger.info("Registered user %s (id=%s, role=%s)", username, user["id"], role)
        return user

    def authenticate(self, username: str, password: str) -> dict:
        user = self.users.get_by_username(username)
        if user is None or not self.verify_password(password, user["password"]):
            logger.warning("Failed login attempt for %s", username)
            raise AuthenticationError("Invalid username or password")
        return user

    def _sign(self, token: str) -> str:
        return hmac.new(
            self.settings.session_secret.encode(), token.encode(), hashlib.sha256
        ).hexdigest()

    def start_session(self, user_id: int) -> str:
        """Create a session and return the signed cookie value."""
        token = secrets.token_urlsafe(32)
        self.sessions.create(token, user_id, self.settings.session_max_age)
        logger.info("Started session for user %s", user_id)
        return f"{token}.{self._sign(token)}"

    def _token(self, cookie: str | None) -> str | None:
        if not cookie or "." not in cookie:
            return None
        token, signature = cookie.rsplit(".", 1)
        if not hmac.compare_digest(self._sign(token), signature):
            return None
        return token

    def resolve_session(self, cookie: str | None) -> dict:
        """Return the logged-in user for ``cookie`` or raise ``AuthenticationError``."""
        token = self._token(cookie)
        if token is None:
            raise AuthenticationError("Unauthorized")
        session = self.sessions.get(token)
        if session is None:
            raise AuthenticationError("Unauthorized")
        if session["expires_at"] <= datetime.datetime.now():
            self.sessions.delete(token)
            raise AuthenticationError("Session expired")
        user = self.users.get(session["user_id"])
        if user is None:
            self.sessions.delete(token)
            raise AuthenticationError("Unauthorized")
        return user

    def end_session(self, cookie: str | None) -> None:
        token = self._token(cookie)
        if token is not None:
            self.sessions.delete(token)
            logger.info("Ended session")
        self.sessions.purge_expired()
