import os
import sys
import unittest
from fastapi.testclient import TestClient

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from client import FitLifeClient
from rest_api import FitnessAPI
from seed_sample_data import DEMO_PASSWORD
from settings_schema import SettingsSchema


class ClientTest(unittest.TestCase):
    def setUp(self) -> None:
        self.api = FitnessAPI(settings=SettingsSchema(), seed_data=True)
        self.client = FitLifeClient(
            base_url="http://testserver", session=TestClient(self.api.app)
        )

    def tearDown(self) -> None:
        self.api.store.close()

    def test_catalogs_are_public(self) -> None:
        self.assertEqual(len(self.client.list_workouts()), 3)
        cardio = self.client.list_workouts(type="cardio")
        self.assertEqual([w["name"] for w in cardio], ["HIIT Cardio"])
        barbell = self.client.list_workouts(equipment=["barbell"])
        self.assertEqual([w["name"] for w in barbell], ["Lower Body Power"])
        grouped = self.client.meals_by_type()
        self.assertEqual(len(grouped["breakfast"]), 1)
        self.assertEqual(grouped["snack"], [])
        self.assertEqual(len(self.client.list_classes(type="yoga")), 1)

    def test_member_flow(self) -> None:
        user = self.client.login("ananya", DEMO_PASSWORD)
        self.assertEqual(user["fullName"], "Ananya Sharma")

        hiit = self.client.list_classes(type="hiit")[0]
        enrollment = self.client.enroll(hiit["id"])
        self.assertEqual(enrollment["userId"], user["id"])
        self.client.cancel_enrollment(hiit["id"])

        logged = self.client.log_progress(workoutCompleted=True, workoutDuration=20)
        self.assertEqual(logged["workoutDuration"], 20)

        sent = self.client.send_message(2, "See you at yoga")
        self.assertEqual(self.client.messages()[0]["id"], sent["id"])

        self.assertIn("todayStats", self.client.dashboard())
        self.assertEqual(self.client.leaderboard()[0]["name"], "Ananya Sharma")

        self.client.logout()
        with self.assertRaises(Exception):
            self.client.dashboard()

    def test_register(self) -> None:
        user = self.client.register(
            "meera", "meera@example.com", "pw", "Meera Rao", city="Pune"
        )
        self.assertEqual(user["city"], "Pune")
        self.assertEqual(self.client.dashboard()["user"]["username"], "meera")


if __name__ == "__main__":
    unittest.main()
