import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from auth_service import AuthService
from db import EntityStore
from errors import AuthenticationError, ConflictError
from settings_schema import SettingsSchema


class AuthServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = EntityStore()
        self.settings = SettingsSchema(session_secret="test-secret")
        self.auth = AuthService(self.store.users, self.store.sessions, self.settings)
        self.user = self.auth.register("ananya", "ananya@example.com", "secret", "Ananya Sharma")

    def tearDown(self) -> None:
        self.store.close()

    def test_password_is_hashed(self) -> None:
        stored = self.store.users.get(self.user["id"])["password"]
        self.assertNotEqual(stored, "secret")
        self.assertIn("$", stored)
        self.assertTrue(AuthService.verify_password("secret", stored))
        self.assertFalse(AuthService.verify_password("wrong", stored))
        self.assertFalse(AuthService.verify_password("secret", "not-a-hash"))

    def test_register_rejects_duplicates(self) -> None:
        with self.assertRaisesRegex(ConflictError, "Username already exists"):
            self.auth.register("ananya", "new@example.com", "x", "Other")
        with self.assertRaisesRegex(ConflictError, "Email already exists"):
            self.auth.register("other", "ananya@example.com", "x", "Other")
        self.assertEqual(len(self.store.users.fetch_all_users()), 1)

    def test_authenticate(self) -> None:
        self.assertEqual(self.auth.authenticate("ananya", "secret")["id"], self.user["id"])
        with self.assertRaises(AuthenticationError):
            self.auth.authenticate("ananya", "wrong")
        with self.assertRaises(AuthenticationError):
            self.auth.authenticate("nobody", "secret")

    def test_session_round_trip(self) -> None:
        cookie = self.auth.start_session(self.user["id"])
        self.assertEqual(self.auth.resolve_session(cookie)["username"], "ananya")
        self.auth.end_session(cookie)
        with self.assertRaises(AuthenticationError):
            self.auth.resolve_session(cookie)

    def test_tampered_cookie_rejected(self) -> None:
        cookie = self.auth.start_session(self.user["id"])
        token, _signature = cookie.rsplit(".", 1)
        for value in (None, "", token, f"{token}.deadbeef"):
            with self.assertRaises(AuthenticationError):
                self.auth.resolve_session(value)
        other = AuthService(
            self.store.users, self.store.sessions, SettingsSchema(session_secret="other")
        )
        with self.assertRaises(AuthenticationError):
            other.resolve_session(cookie)

    def test_expired_session_removed(self) -> None:
        cookie = self.auth.start_session(self.user["id"])
        token = cookie.rsplit(".", 1)[0]
        past = datetime.datetime.now() - datetime.timedelta(minutes=1)
        self.store.sessions.execute(
            "UPDATE sessions SET expires_at = ? WHERE id = ?;",
            (past.isoformat(timespec="seconds"), token),
        )
        with self.assertRaisesRegex(AuthenticationError, "Session expired"):
            self.auth.resolve_session(cookie)
        self.assertIsNone(self.store.sessions.get(token))


if __name__ == "__main__":
    unittest.main()
