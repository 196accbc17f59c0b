"""Pytest configuration and fixtures."""

import json
import re
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from fitness_coach.config import Settings
from fitness_coach.database import Database
from fitness_coach.exercise_library import ExerciseLibrary
from fitness_coach.gateway import Completion, ModelGateway
from fitness_coach.main import create_app
from fitness_coach.models import TokenUsage, UserProfile
from fitness_coach.store import CoachStore

PROFILE = {
    "name": "Alex",
    "age": 29,
    "weight": 82.5,
    "height": 180,
    "gender": "other",
    "experienceLevel": "intermediate",
    "trainingDays": 4,
    "trainingSplit": "ppl",
    "goal": "muscle_gain",
    "targetCalories": 2800,
    "macros": {"protein": 180, "carbs": 320, "fats": 85},
    "equipment": ["barbell", "dumbbell", "cable"],
    "injuries": ["left shoulder"],
    "foodPreferences": {"vegetarian": False, "vegan": False, "allergies": ["peanuts"], "dislikedFoods": ["olives"]},
}

EXERCISE_NAMES = [
    "Bench Press",
    "Incline Dumbbell Press",
    "Overhead Press",
    "Lateral Raise",
    "Cable Fly",
    "Triceps Pushdown",
]

_DAY_IN_PROMPT = re.compile(r"Generate the (.+?) workout plan\.")


def workout_document(day_name="Push Day"):
    return {
        "dayName": day_name,
        "exercises": [
            {
                "exerciseName": name,
                "muscleGroup": "Chest",
                "sets": [{"setNumber": n, "reps": 8, "weight": 60, "completed": False} for n in (1, 2, 3)],
                "notes": "Controlled tempo",
            }
            for name in EXERCISE_NAMES
        ],
        "estimatedDuration": 60,
        "aiInsight": "Fresh start: moderate loads to set a baseline.",
    }


def meal_document():
    return {
        "meals": [
            {"name": "Oats", "mealType": "breakfast", "calories": 700, "protein": 45, "carbs": 90, "fats": 18,
             "ingredients": ["oats", "whey"], "instructions": "Mix."},
            {"name": "Chicken Rice", "mealType": "lunch", "calories": 900, "protein": 60, "carbs": 110, "fats": 25},
            {"name": "Salmon Potatoes", "mealType": "dinner", "calories": 900, "protein": 55, "carbs": 90, "fats": 32},
            {"name": "Yogurt", "mealType": "snack", "calories": 300, "protein": 20, "carbs": 30, "fats": 10},
        ],
        "totalCalories": 2800,
        "totalProtein": 180,
        "totalCarbs": 320,
        "totalFats": 85,
    }


def fake_completion(system_prompt, messages, max_tokens=2000):
    """Answer workout prompts with a fenced workout for the requested day, others with a meal plan."""
    prompt = messages[-1].content
    match = _DAY_IN_PROMPT.search(prompt)
    if match:
        content = "```json\n" + json.dumps(workout_document(match.group(1))) + "\n```"
    else:
        content = json.dumps(meal_document())
    return Completion(content=content, usage=TokenUsage(input_tokens=1200, output_tokens=800))


@pytest.fixture
def fake_gateway():
    gateway = MagicMock(spec=ModelGateway)
    gateway.complete = AsyncMock(side_effect=fake_completion)
    return gateway


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'coach.db'}",
        jwt_secret_key="test-secret-key-with-at-least-32-bytes!",
        openai_api_key="",
        exercise_dataset_path=None,
    )


@pytest.fixture
def client(settings, fake_gateway):
    app = create_app(settings, gateway=fake_gateway, exercise_library=ExerciseLibrary())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def store(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'store.db'}")
    database.create_all()
    yield CoachStore(database)
    database.dispose()


@pytest.fixture
def onboarded_user(store):
    """An account id with a saved ppl profile."""
    account = store.create_account("lifter@example.com", "not-a-real-hash")
    store.save_profile(account.id, UserProfile.model_validate(PROFILE))
    return account.id


def register(client, email="alex@example.com", password="secret123"):
    resp = client.post("/api/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def onboard(client, headers, **overrides):
    profile = {**PROFILE, **overrides}
    resp = client.put("/api/profile", json=profile, headers=headers)
    assert resp.status_code == 200, resp.text
    return profile
