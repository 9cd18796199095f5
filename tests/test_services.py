import os
import sys
import datetime
import threading
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import EntityStore
from errors import AuthorizationError, ConflictError, NotFoundError
from messaging_service import MessagingService
from schedule_service import ScheduleService


class ScheduleServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = EntityStore()
        self.service = ScheduleService(self.store.classes, self.store.enrollments)
        self.trainer = self.store.users.create("priya", "x", "p@example.com", "Priya", None, "trainer")
        self.member = self.store.users.create("ananya", "x", "a@example.com", "Ananya")
        self.start = datetime.datetime(2030, 1, 1, 7, 0)

    def tearDown(self) -> None:
        self.store.close()

    def test_only_trainers_create(self) -> None:
        with self.assertRaises(AuthorizationError):
            self.service.create_class(self.member, "Yoga", self.start, 45, "yoga")
        created = self.service.create_class(self.trainer, "Yoga", self.start, 45, "yoga", 10)
        self.assertEqual(created["trainer_id"], self.trainer["id"])
        self.assertEqual(created["current_participants"], 0)

    def test_enroll_checks_in_order(self) -> None:
        with self.assertRaisesRegex(NotFoundError, "Class not found"):
            self.service.enroll(self.member["id"], 99)
        cls = self.service.create_class(self.trainer, "Yoga", self.start, 45, "yoga", 1)
        self.service.enroll(self.member["id"], cls["id"])
        with self.assertRaisesRegex(ConflictError, "Already enrolled"):
            self.service.enroll(self.member["id"], cls["id"])
        with self.assertRaisesRegex(ConflictError, "Class is full"):
            self.service.enroll(self.trainer["id"], cls["id"])
        self.assertEqual(self.store.classes.get(cls["id"])["current_participants"], 1)

    def test_cancel(self) -> None:
        cls = self.service.create_class(self.trainer, "Yoga", self.start, 45, "yoga")
        self.service.enroll(self.member["id"], cls["id"])
        self.assertEqual(len(self.service.enrollments_for(self.member["id"])), 1)
        self.service.cancel(self.member["id"], cls["id"])
        self.assertEqual(self.store.classes.get(cls["id"])["current_participants"], 0)
        with self.assertRaises(NotFoundError):
            self.service.cancel(self.member["id"], cls["id"])

    def test_concurrent_enrollments_never_overbook(self) -> None:
        cls = self.service.create_class(self.trainer, "HIIT", self.start, 30, "hiit", 3)
        users = [
            self.store.users.create(f"u{i}", "x", f"u{i}@example.com", f"User {i}")["id"]
            for i in range(10)
        ]
        results: list[str] = []

        def attempt(user_id: int) -> None:
            try:
                self.service.enroll(user_id, cls["id"])
                results.append("ok")
            except ConflictError:
                results.append("full")

        threads = [threading.Thread(target=attempt, args=(u,)) for u in users]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(results.count("ok"), 3)
        self.assertEqual(self.store.classes.get(cls["id"])["current_participants"], 3)
        self.assertEqual(len(self.store.enrollments.fetch_all_enrollments(cls["id"])), 3)


class MessagingServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = EntityStore()
        self.service = MessagingService(self.store.messages, self.store.users)
        self.a = self.store.users.create("a", "x", "a@example.com", "A")["id"]
        self.b = self.store.users.create("b", "x", "b@example.com", "B")["id"]

    def tearDown(self) -> None:
        self.store.close()

    def test_unknown_receiver(self) -> None:
        with self.assertRaisesRegex(NotFoundError, "Receiver not found"):
            self.service.send(self.a, 42, "hi")
        self.assertEqual(self.store.messages.fetch_all_messages(), [])

    def test_inbox_newest_first_without_duplicates(self) -> None:
        first = self.service.send(self.a, self.b, "one")
        second = self.service.send(self.b, self.a, "two")
        note = self.service.send(self.a, self.a, "note to self")
        inbox = self.service.inbox(self.a)
        self.assertEqual([m["id"] for m in inbox], [note["id"], second["id"], first["id"]])
        self.assertEqual([m["id"] for m in self.service.inbox(self.b)], [second["id"], first["id"]])

    def test_mark_read(self) -> None:
        msg = self.service.send(self.a, self.b, "hi")
        self.service.mark_read(msg["id"])
        self.assertTrue(self.store.messages.get(msg["id"])["read"])
        with self.assertRaises(NotFoundError):
            self.service.mark_read(123)


if __name__ == "__main__":
    unittest.main()
