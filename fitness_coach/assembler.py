"""Map parsed model output onto persistable plan records."""

import logging
import re
import uuid
from datetime import date as date_cls, datetime, timedelta
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .errors import IncompletePlanError
from .models import MealPlan, MealPlanIn, WorkoutPlan, WorkoutPlanIn, utcnow
from .store import CoachStore

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

MEAL_TOTALS = {
    "totalCalories": ("total_calories", "calories"),
    "totalProtein": ("total_protein", "protein"),
    "totalCarbs": ("total_carbs", "carbs"),
    "totalFats": ("total_fats", "fats"),
}


def today_string(today: Optional[date_cls] = None) -> str:
    return (today or date_cls.today()).isoformat()


def tomorrow_string(today: Optional[date_cls] = None) -> str:
    return ((today or date_cls.today()) + timedelta(days=1)).isoformat()


def slugify_exercise_name(name: str) -> str:
    """'Incline  Bench Press' -> 'incline-bench-press'."""
    return _WHITESPACE.sub("-", name.strip().lower())


def _require_list(doc: Any, key: str, kind: str) -> list:
    if not isinstance(doc, dict) or not isinstance(doc.get(key), list):
        raise IncompletePlanError(f"Generated {kind} plan is missing '{key}'", field=key)
    return doc[key]


def _number_sets(raw_sets: Any) -> list:
    """Fill in a missing setNumber from the set's 1-based position."""
    if not isinstance(raw_sets, list):
        return raw_sets or []
    numbered = []
    for position, s in enumerate(raw_sets, start=1):
        if isinstance(s, dict) and s.get("setNumber") is None:
            s = {**s, "setNumber": position}
        numbered.append(s)
    return numbered


def assemble_workout_plan(
    doc: Any,
    date: Optional[str] = None,
    day_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> WorkoutPlanIn:
    """Build a workout plan: fresh ids, slugs, 1-based order, not completed."""
    raw_exercises = _require_list(doc, "exercises", "workout")

    exercises = []
    for index, ex in enumerate(raw_exercises):
        name = ex.get("exerciseName") if isinstance(ex, dict) else None
        if not name:
            raise IncompletePlanError(f"Exercise {index + 1} has no name", field="exerciseName")
        exercises.append({
            "id": str(uuid.uuid4()),
            "exerciseId": slugify_exercise_name(name),
            "exerciseName": name,
            "muscleGroup": ex.get("muscleGroup"),
            "sets": _number_sets(ex.get("sets")),
            "notes": ex.get("notes"),
            "order": index + 1,
        })

    try:
        return WorkoutPlanIn.model_validate({
            "date": date or tomorrow_string(),
            "dayName": doc.get("dayName") or day_name,
            "exercises": exercises,
            "estimatedDuration": doc.get("estimatedDuration"),
            "completed": False,
            "aiInsight": doc.get("aiInsight"),
            "generatedAt": now or utcnow(),
        })
    except ValidationError as e:
        raise IncompletePlanError(f"Generated workout plan is not usable: {e}") from e


def assemble_meal_plan(
    doc: Any,
    date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> MealPlanIn:
    """Build a meal plan: fresh ids per meal, not logged.

    Totals supplied by the model are kept as-is; a missing total falls back to
    the sum over the meals.
    """
    raw_meals = _require_list(doc, "meals", "meal")
    meals = [{**meal, "id": str(uuid.uuid4())} if isinstance(meal, dict) else meal for meal in raw_meals]
    supplied = {key: doc[key] for key in MEAL_TOTALS if doc.get(key) is not None}

    try:
        plan = MealPlanIn.model_validate({
            "date": date or tomorrow_string(),
            "meals": meals,
            **supplied,
            "logged": False,
            "generatedAt": now or utcnow(),
        })
    except ValidationError as e:
        raise IncompletePlanError(f"Generated meal plan is not usable: {e}") from e

    # missing totals come from the validated meals
    missing: Dict[str, float] = {
        field: sum(getattr(m, meal_field) for m in plan.meals)
        for key, (field, meal_field) in MEAL_TOTALS.items()
        if key not in supplied
    }
    return plan.model_copy(update=missing) if missing else plan


class PlanAssembler:
    """Assembles parsed documents and persists them, one save per plan."""

    def __init__(self, store: CoachStore) -> None:
        self.store = store

    def save_workout(
        self,
        user_id: int,
        doc: Any,
        date: Optional[str] = None,
        day_name: Optional[str] = None,
    ) -> WorkoutPlan:
        plan = assemble_workout_plan(doc, date=date, day_name=day_name)
        saved = self.store.save_workout(user_id, plan)
        logger.info("Workout plan saved: %s (%s, %s)", saved.id, saved.date, saved.day_name)
        return saved

    def save_meal(self, user_id: int, doc: Any, date: Optional[str] = None) -> MealPlan:
        plan = assemble_meal_plan(doc, date=date)
        saved = self.store.save_meal(user_id, plan)
        logger.info("Meal plan saved: %s (%s)", saved.id, saved.date)
        return saved
