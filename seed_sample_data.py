import datetime
import logging

from auth_service import AuthService
from db import EntityStore

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"


def seed(store: EntityStore, now: datetime.datetime | None = None) -> bool:
    """Populate an empty store with demo data. Return ``False`` if not empty."""
    if store.users.fetch_all_users():
        logger.info("Store already contains users; skipping seed")
        return False
    now = now or datetime.datetime.now()
    midnight = datetime.datetime.combine(now.date(), datetime.time())

    users = [
        ("ananya", "ananya@example.com", "Ananya Sharma", "Bangalore", "user"),
        ("priya", "priya@example.com", "Priya Patel", "Mumbai", "trainer"),
        ("rahul", "rahul@example.com", "Rahul Kumar", "Delhi", "trainer"),
        ("arjun", "arjun@example.com", "Arjun Patel", "Mumbai", "user"),
        ("diya", "diya@example.com", "Diya Sharma", "Delhi", "user"),
    ]
    ids = {}
    for username, email, full_name, city, role in users:
        user = store.users.create(
            username,
            AuthService.hash_password(DEMO_PASSWORD),
            email,
            full_name,
            city,
            role,
        )
        ids[username] = user["id"]

    store.workouts.create(
        "Upper Body Strength",
        "strength",
        [
            {"name": "Bench Press", "sets": 3, "reps": 12, "weight": 45},
            {"name": "Pull-ups", "sets": 3, "reps": 8},
            {"name": "Shoulder Press", "sets": 3, "reps": 10, "weight": 27.5},
        ],
        ["dumbbells", "bench"],
        "A workout focused on building upper body strength",
    )
    store.workouts.create(
        "Lower Body Power",
        "strength",
        [
            {"name": "Squats", "sets": 4, "reps": 10, "weight": 60},
            {"name": "Deadlifts", "sets": 3, "reps": 8, "weight": 80},
            {"name": "Lunges", "sets": 3, "reps": 12, "weight": 20},
        ],
        ["barbell", "squat rack"],
        "A workout focused on building lower body power",
    )
    store.workouts.create(
        "HIIT Cardio",
        "cardio",
        [
            {"name": "Jumping Jacks", "duration": 45, "rest": 15},
            {"name": "Burpees", "duration": 45, "rest": 15},
            {"name": "Mountain Climbers", "duration": 45, "rest": 15},
            {"name": "High Knees", "duration": 45, "rest": 15},
        ],
        [],
        "High-intensity interval training for cardiovascular fitness",
    )

    store.meals.create(
        "Masala Oats with Vegetables",
        "breakfast",
        420,
        28,
        55,
        10,
        ["oats", "mixed vegetables", "olive oil", "spices"],
        "Nutritious breakfast option packed with protein and fiber",
        "https://images.unsplash.com/photo-1525351484163-7529414344d8",
    )
    store.meals.create(
        "Paneer Salad with Mixed Greens",
        "lunch",
        580,
        32,
        30,
        35,
        ["paneer", "mixed greens", "cherry tomatoes", "cucumber", "olive oil", "lemon juice"],
        "Protein-rich lunch option with fresh vegetables",
        "https://images.unsplash.com/photo-1512621776951-a57141f2eefd",
    )
    store.meals.create(
        "Dal Tadka with Brown Rice",
        "dinner",
        520,
        18,
        70,
        15,
        ["lentils", "brown rice", "spices", "ghee"],
        "Traditional Indian dinner rich in protein and complex carbs",
        "https://images.unsplash.com/photo-1547592180-85f173990554",
    )

    days_to_wednesday = (2 - now.weekday()) % 7
    yoga = store.classes.create(
        "Yoga with Priya",
        ids["priya"],
        midnight.replace(hour=17, minute=30),
        45,
        "yoga",
        20,
        "A calming yoga session to improve flexibility and reduce stress",
    )
    store.classes.create(
        "HIIT with Rahul",
        ids["rahul"],
        midnight + datetime.timedelta(days=1, hours=7),
        30,
        "hiit",
        15,
        "High-intensity interval training for maximum calorie burn",
    )
    store.classes.create(
        "Strength Training",
        ids["rahul"],
        midnight + datetime.timedelta(days=days_to_wednesday, hours=18),
        60,
        "strength",
        12,
        "Build muscle and improve overall strength",
    )
    store.enrollments.create(yoga["id"], ids["ananya"])
    store.classes.update_participants(yoga["id"], True)

    history = [
        (6, True, 1, 45, 350, 1800, 2.0),
        (5, True, 2, 60, 420, 1750, 2.2),
        (4, False, None, None, None, 1900, 1.8),
        (3, True, 3, 30, 280, 1820, 1.5),
        (2, True, 1, 75, 510, 1700, 2.5),
        (1, True, 2, 90, 650, 1770, 2.0),
        (0, False, None, None, None, 1245, 1.5),
    ]
    for days_ago, completed, workout_id, duration, burned, consumed, water in history:
        store.progress.create(
            ids["ananya"],
            midnight - datetime.timedelta(days=days_ago),
            workout_completed=completed,
            workout_id=workout_id,
            workout_duration=duration,
            calories_burned=burned,
            calories_consumed=consumed,
            water_intake=water,
        )

    store.messages.create(
        ids["priya"], ids["ananya"], "Hi Ananya, are you ready for our yoga session today?"
    )
    store.messages.create(ids["ananya"], ids["priya"], "Yes, I'm looking forward to it!")
    store.messages.create(
        ids["rahul"], ids["ananya"], "Don't forget to bring a yoga mat to class today!"
    )
    logger.info("Seeded demo data: %d users", len(users))
    return True


if __name__ == "__main__":
    import sys

    path = sys.argv[1] if len(sys.argv) > 1 else "fitlife.db"
    if seed(EntityStore(path)):
        print("Seed data inserted")
    else:
        print("Store already contains users")
