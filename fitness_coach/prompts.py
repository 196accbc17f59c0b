"""Prompt assembly for workout and meal generation.

Everything here is plain string building: same inputs, same prompt, no I/O.
"""

import json
from typing import Dict, List, Optional

from .models import Macros, UserProfile

SPLIT_DAYS: Dict[str, List[str]] = {
    "ppl": ["Push Day", "Pull Day", "Legs Day"],
    "upper_lower": ["Upper Body", "Lower Body"],
    "full_body": ["Full Body Workout"],
}

GENERATION_INSTRUCTIONS = [
    "Generate plans based on progressive overload principles",
    "Ensure adequate recovery between muscle groups",
    "Provide variety in exercises and meals",
    "Be specific with sets, reps, and weights",
    "Consider the user's experience level and limitations",
    "Return ONLY valid JSON with no markdown formatting or code blocks",
]


def _listed(items: List[str]) -> str:
    return ", ".join(items) if items else "None"


def _food_flags(profile: UserProfile) -> str:
    prefs = profile.food_preferences
    flags = [label for label, on in (("Vegetarian", prefs.vegetarian), ("Vegan", prefs.vegan)) if on]
    return _listed(flags)


def build_system_prompt(profile: UserProfile) -> str:
    """Persona, full profile and standing instructions."""
    m = profile.macros
    instructions = "\n".join(f"- {line}" for line in GENERATION_INSTRUCTIONS)
    return f"""You are an expert personal trainer and nutritionist AI. You generate personalized workout and meal plans.

USER PROFILE:
- Name: {profile.name}
- Age: {profile.age}, Gender: {profile.gender}
- Weight: {profile.weight:g} kg, Height: {profile.height:g} cm
- Experience: {profile.experience_level}
- Training Split: {profile.training_split.upper()} ({profile.training_days} days/week)
- Goal: {profile.goal.replace('_', ' ')}
- Available Equipment: {_listed(profile.equipment)}
- Injuries/Limitations: {_listed(profile.injuries)}

NUTRITION TARGETS:
- Daily Calories: {profile.target_calories}
- Macros: {m.protein:g}g protein, {m.carbs:g}g carbs, {m.fats:g}g fats
- Food Preferences: {_food_flags(profile)}
- Allergies: {_listed(profile.food_preferences.allergies)}
- Dislikes: {_listed(profile.food_preferences.disliked_foods)}

INSTRUCTIONS:
{instructions}"""


def get_next_day_name(split: str, last_day_name: Optional[str] = None) -> str:
    """Advance one step through the split's day rotation, wrapping at the end.

    Unknown splits fall back to push/pull/legs; an unknown or missing last
    day starts the rotation from the top.
    """
    days = SPLIT_DAYS.get(split, SPLIT_DAYS["ppl"])
    if not last_day_name or last_day_name not in days:
        return days[0]
    return days[(days.index(last_day_name) + 1) % len(days)]


def _workout_example(day_name: str) -> str:
    example = {
        "dayName": day_name,
        "exercises": [
            {
                "exerciseName": "Bench Press",
                "muscleGroup": "Chest",
                "sets": [
                    {"setNumber": n, "reps": 8, "weight": 80, "completed": False}
                    for n in (1, 2, 3)
                ],
                "notes": "Focus on controlled eccentric",
            }
        ],
        "estimatedDuration": 60,
        "aiInsight": "Last push day was strong. Adding 2.5kg to bench press.",
    }
    return json.dumps(example, indent=2)


def workout_plan_prompt(day_name: str, workout_context: str, checkin_context: str) -> str:
    return f"""Generate the {day_name} workout plan.

RECENT WORKOUTS:
{workout_context}

RECENT CHECK-INS:
{checkin_context}

REQUIREMENTS:
- Select 5-7 exercises appropriate for {day_name}
- Include warm-up recommendations
- Provide specific sets, reps, and weight recommendations (in kg)
- Use the ACTUAL weights from recent workouts (not planned weights) as the baseline for progressive overload
- If the user completed all reps at the actual weight, increase weight by 1-2.5kg
- If the user did fewer reps than planned, keep the same weight or reduce slightly
- Adjust based on reported soreness and energy levels
- Include 1-2 sentence coaching insight referencing actual performance

Return a JSON object with this EXACT structure (field types: dayName string, exerciseName string, muscleGroup string, setNumber integer, reps integer, weight number in kg, completed boolean, notes string, estimatedDuration integer minutes, aiInsight string):
{_workout_example(day_name)}"""


def _meal_example(target_calories: int, macros: Macros) -> str:
    example = {
        "meals": [
            {
                "name": "Protein Oatmeal Bowl",
                "mealType": "breakfast",
                "calories": 450,
                "protein": 35,
                "carbs": 55,
                "fats": 10,
                "ingredients": ["1 cup oats", "1 scoop protein powder", "1/2 banana", "1 tbsp peanut butter"],
                "instructions": "Cook oats, mix in protein powder, top with banana and peanut butter",
            }
        ],
        "totalCalories": target_calories,
        "totalProtein": macros.protein,
        "totalCarbs": macros.carbs,
        "totalFats": macros.fats,
    }
    return json.dumps(example, indent=2)


def meal_plan_prompt(target_calories: int, macros: Macros, checkin_context: str) -> str:
    return f"""Generate the meal plan.

NUTRITION TARGETS:
- Calories: {target_calories}
- Protein: {macros.protein:g}g
- Carbs: {macros.carbs:g}g
- Fats: {macros.fats:g}g

RECENT CHECK-INS:
{checkin_context}

REQUIREMENTS:
- Create 3 main meals (breakfast, lunch, dinner) and 1-2 snacks
- Meals should be realistic and easy to prepare
- Include specific ingredients and portions
- Hit macro targets within 5% accuracy
- Provide variety from previous days
- Consider reported nutrition status

Return a JSON object with this EXACT structure (field types: name string, mealType one of breakfast/lunch/dinner/snack, calories/protein/carbs/fats numbers, ingredients list of strings, instructions string, totals numbers):
{_meal_example(target_calories, macros)}"""
