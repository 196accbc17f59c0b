"""Turn stored history into text blocks for prompt injection."""

from typing import List, Optional

from .models import DailyCheckIn, WorkoutPlan, WorkoutSet

NO_CHECK_INS = "No recent check-ins available."
NO_WORKOUTS = "No recent workouts available."


def _num(value: float) -> str:
    """80.0 -> '80', 82.5 -> '82.5'."""
    return f"{value:g}"


def build_checkin_context(check_ins: List[DailyCheckIn]) -> str:
    """One paragraph per check-in, newest first as given."""
    if not check_ins:
        return NO_CHECK_INS

    paragraphs = []
    for c in check_ins:
        lines = [
            f"Date: {c.date}",
            f"- Workout: {c.workout_completed}",
            f"- Nutrition: {c.nutrition_status}",
            f"- Sleep Quality: {c.sleep_quality}/5",
            f"- Soreness: {c.soreness_level}",
            f"- Energy: {c.energy_level}/5",
        ]
        if c.weight is not None:
            lines.append(f"- Weight: {_num(c.weight)} kg")
        if c.notes:
            lines.append(f"- Notes: {c.notes}")
        paragraphs.append("\n".join(lines))
    return "\n\n".join(paragraphs)


def _load(weight: Optional[float], reps: Optional[int]) -> str:
    """82.5, 6 -> '82.5kg x 6'; a missing weight is bodyweight."""
    load = f"{_num(weight)}kg" if weight is not None else "bodyweight"
    return f"{load} x {reps}" if reps is not None else load


def _format_set(s: WorkoutSet) -> str:
    planned = f"Planned: {_load(s.weight, s.reps)}"
    if s.actual_weight is None and s.actual_reps is None:
        return planned
    weight = s.actual_weight if s.actual_weight is not None else s.weight
    reps = s.actual_reps if s.actual_reps is not None else s.reps
    return f"{planned} → Actual: {_load(weight, reps)}"


def build_workout_context(workouts: List[WorkoutPlan]) -> str:
    """Per-set planned vs actual comparison for each recent workout."""
    if not workouts:
        return NO_WORKOUTS

    sections = []
    for w in workouts:
        status = "Completed" if w.completed else "Skipped"
        lines = [f"{w.date} - {w.day_name} ({status})"]
        for ex in w.exercises:
            sets_info = "; ".join(_format_set(s) for s in ex.sets)
            lines.append(f"  • {ex.exercise_name}: {sets_info}")
        sections.append("\n".join(lines))
    return "\n\n".join(sections)
