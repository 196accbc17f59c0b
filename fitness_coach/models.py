from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- profile ---

class Macros(CamelModel):
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fats: float = Field(ge=0)


class FoodPreferences(CamelModel):
    vegetarian: bool = False
    vegan: bool = False
    allergies: List[str] = Field(default_factory=list)
    disliked_foods: List[str] = Field(default_factory=list)


class UserProfile(CamelModel):
    name: str = ""
    age: int = Field(ge=13, le=100)
    weight: float = Field(gt=0, description="kg")
    height: float = Field(gt=0, description="cm")
    gender: Literal["male", "female", "other"]
    experience_level: Literal["beginner", "intermediate", "advanced"]
    training_days: int = Field(ge=1, le=7)
    training_split: Literal["ppl", "upper_lower", "full_body"]
    goal: Literal["muscle_gain", "strength", "maintenance"]
    target_calories: int = Field(gt=0)
    macros: Macros
    equipment: List[str] = Field(default_factory=list)
    injuries: List[str] = Field(default_factory=list)
    food_preferences: FoodPreferences = Field(default_factory=FoodPreferences)


class ProfileOut(UserProfile):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- workouts ---

class WorkoutSet(CamelModel):
    set_number: int = Field(ge=1)
    reps: Optional[int] = Field(default=None, ge=0)
    weight: Optional[float] = Field(default=None, ge=0, description="kg; None for bodyweight")
    actual_weight: Optional[float] = None
    actual_reps: Optional[int] = None
    rpe: Optional[float] = Field(default=None, ge=1, le=10)
    completed: bool = False


class WorkoutExercise(CamelModel):
    id: str
    exercise_id: str
    exercise_name: str
    muscle_group: Optional[str] = None
    sets: List[WorkoutSet] = Field(default_factory=list)
    notes: Optional[str] = None
    order: int = Field(ge=1)

    @model_validator(mode="after")
    def _unique_set_numbers(self) -> "WorkoutExercise":
        numbers = [s.set_number for s in self.sets]
        if len(numbers) != len(set(numbers)):
            raise ValueError(f"set numbers must be unique within exercise '{self.exercise_name}'")
        return self


class WorkoutPlanIn(CamelModel):
    date: str = Field(pattern=DATE_PATTERN)
    day_name: str
    exercises: List[WorkoutExercise] = Field(default_factory=list)
    estimated_duration: Optional[int] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    ai_insight: Optional[str] = None
    generated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _unique_order(self) -> "WorkoutPlanIn":
        orders = [e.order for e in self.exercises]
        if len(orders) != len(set(orders)):
            raise ValueError("exercise order values must be unique within a plan")
        return self


class WorkoutPlan(WorkoutPlanIn):
    id: int


class SetActuals(CamelModel):
    set_number: int
    actual_weight: Optional[float] = None
    actual_reps: Optional[int] = None


class ExerciseActuals(CamelModel):
    exercise_index: int = Field(ge=0)
    sets: List[SetActuals] = Field(default_factory=list)


class ActualWeightsUpdate(CamelModel):
    exercises: List[ExerciseActuals]


# --- meals ---

class Meal(CamelModel):
    id: str
    name: str
    meal_type: Literal["breakfast", "lunch", "dinner", "snack"]
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fats: float = 0
    ingredients: List[str] = Field(default_factory=list)
    instructions: Optional[str] = None

    @field_validator("calories", "protein", "carbs", "fats", mode="before")
    @classmethod
    def _null_is_zero(cls, value):
        return 0 if value is None else value


class MealPlanIn(CamelModel):
    date: str = Field(pattern=DATE_PATTERN)
    meals: List[Meal] = Field(default_factory=list)
    total_calories: float = 0
    total_protein: float = 0
    total_carbs: float = 0
    total_fats: float = 0
    logged: bool = False
    generated_at: datetime = Field(default_factory=utcnow)


class MealPlan(MealPlanIn):
    id: int


class GroceryItem(CamelModel):
    name: str
    meal_types: List[str] = Field(default_factory=list)


# --- check-ins ---

class DailyCheckInIn(CamelModel):
    date: str = Field(pattern=DATE_PATTERN)
    workout_completed: Literal["completed", "partial", "skipped"]
    nutrition_status: Literal["on_track", "under", "over"]
    actual_calories: Optional[int] = None
    weight: Optional[float] = None
    sleep_quality: int = Field(ge=1, le=5)
    soreness_level: Literal["low", "medium", "high"]
    energy_level: int = Field(ge=1, le=5)
    notes: Optional[str] = None
    submitted_at: datetime = Field(default_factory=utcnow)


class DailyCheckIn(DailyCheckInIn):
    id: int


# --- accounts ---

class Credentials(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AccountOut(CamelModel):
    id: int
    email: str
    onboarded: bool = False


class AccountDetail(AccountOut):
    profile: Optional[UserProfile] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    token: str
    user: AccountOut


# --- model proxy ---

class ChatMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(CamelModel):
    system_prompt: Optional[str] = None
    messages: List[ChatMessage] = Field(default_factory=list)
    max_tokens: int = Field(default=2000, ge=1, le=8192)


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class ChatResponse(BaseModel):
    content: str
    usage: TokenUsage


# --- generation ---

class GeneratePlansRequest(CamelModel):
    date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    kind: Literal["both", "workout", "meal"] = "both"


class GeneratedPlans(CamelModel):
    workout_plan: Optional[WorkoutPlan] = None
    meal_plan: Optional[MealPlan] = None


# --- exercise library ---

class Exercise(CamelModel):
    id: str
    name: str
    muscle_group: Optional[str] = None
    equipment: Optional[str] = None
    difficulty: Optional[str] = None
