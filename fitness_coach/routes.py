from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from .auth import CurrentUser, get_current_user
from .deps import get_exercise_library, get_gateway, get_planner, get_store
from .errors import NotFoundError, RequestValidationFailed
from .exercise_library import ExerciseLibrary
from .gateway import ModelGateway
from .groceries import build_grocery_list
from .models import (
    ActualWeightsUpdate,
    ChatRequest,
    ChatResponse,
    DailyCheckIn,
    DailyCheckInIn,
    Exercise,
    GeneratedPlans,
    GeneratePlansRequest,
    GroceryItem,
    MealPlan,
    MealPlanIn,
    ProfileOut,
    UserProfile,
    WorkoutPlan,
    WorkoutPlanIn,
)
from .planner import Planner
from .store import CoachStore

DEFAULT_RECENT = 7
MAX_RECENT = 100

# --- profile ---
profile_router = APIRouter(prefix="/api/profile", tags=["profile"])


@profile_router.get("", response_model=Optional[ProfileOut])
def get_profile(user: CurrentUser = Depends(get_current_user), store: CoachStore = Depends(get_store)):
    return store.get_profile(user.user_id)


@profile_router.put("")
def put_profile(
    profile: UserProfile,
    user: CurrentUser = Depends(get_current_user),
    store: CoachStore = Depends(get_store),
):
    store.save_profile(user.user_id, profile)
    return {"success": True}


# --- workouts ---
workouts_router = APIRouter(prefix="/api/workouts", tags=["workouts"])


@workouts_router.get("/date/{date}", response_model=Optional[WorkoutPlan])
def get_workout_by_date(date: str, user: CurrentUser = Depends(get_current_user), store: CoachStore = Depends(get_store)):
    return store.get_workout_by_date(user.user_id, date)


@workouts_router.post("", status_code=201, response_model=WorkoutPlan)
def save_workout(plan: WorkoutPlanIn, user: CurrentUser = Depends(get_current_user), store: CoachStore = Depends(get_store)):
    return store.save_workout(user.user_id, plan)


@workouts_router.patch("/{plan_id}/complete", response_model=WorkoutPlan)
def complete_workout(plan_id: int, user: CurrentUser = Depends(get_current_user), store: CoachStore = Depends(get_store)):
    return store.mark_workout_complete(user.user_id, plan_id)


@workouts_router.patch("/{plan_id}/actual-weights", response_model=WorkoutPlan)
def update_actual_weights(
    plan_id: int,
    update: ActualWeightsUpdate,
    user: CurrentUser = Depends(get_current_user),
    store: CoachStore = Depends(get_store),
):
    return store.update_actual_weights(user.user_id, plan_id, update)


@workouts_router.get("/recent", response_model=List[WorkoutPlan])
def recent_workouts(
    limit: int = Query(DEFAULT_RECENT, ge=1, le=MAX_RECENT),
    user: CurrentUser = Depends(get_current_user),
    store: CoachStore = Depends(get_store),
):
    return store.recent_workouts(user.user_id, limit)


# --- meals ---
meals_router = APIRouter(prefix="/api/meals", tags=["meals"])


@meals_router.get("/date/{date}", response_model=Optional[MealPlan])
def get_meal_by_date(date: str, user: CurrentUser = Depends(get_current_user), store: CoachStore = Depends(get_store)):
    return store.get_meal_by_date(user.user_id, date)


@meals_router.post("", status_code=201, response_model=MealPlan)
def save_meal(plan: MealPlanIn, user: CurrentUser = Depends(get_current_user), store: CoachStore = Depends(get_store)):
    return store.save_meal(user.user_id, plan)


@meals_router.patch("/{plan_id}/logged", response_model=MealPlan)
def log_meal_plan(plan_id: int, user: CurrentUser = Depends(get_current_user), store: CoachStore = Depends(get_store)):
    return store.mark_meal_logged(user.user_id, plan_id)


@meals_router.get("/{plan_id}/groceries", response_model=List[GroceryItem])
def meal_plan_groceries(plan_id: int, user: CurrentUser = Depends(get_current_user), store: CoachStore = Depends(get_store)):
    return build_grocery_list(store.get_meal(user.user_id, plan_id))


@meals_router.get("/recent", response_model=List[MealPlan])
def recent_meals(
    limit: int = Query(DEFAULT_RECENT, ge=1, le=MAX_RECENT),
    user: CurrentUser = Depends(get_current_user),
    store: CoachStore = Depends(get_store),
):
    return store.recent_meals(user.user_id, limit)


# --- check-ins ---
checkins_router = APIRouter(prefix="/api/checkins", tags=["checkins"])


@checkins_router.post("", status_code=201, response_model=DailyCheckIn)
def save_check_in(
    check_in: DailyCheckInIn,
    user: CurrentUser = Depends(get_current_user),
    store: CoachStore = Depends(get_store),
):
    return store.save_check_in(user.user_id, check_in)


@checkins_router.get("/recent", response_model=List[DailyCheckIn])
def recent_check_ins(
    limit: int = Query(DEFAULT_RECENT, ge=1, le=MAX_RECENT),
    user: CurrentUser = Depends(get_current_user),
    store: CoachStore = Depends(get_store),
):
    return store.recent_check_ins(user.user_id, limit)


# --- model proxy ---
ai_router = APIRouter(prefix="/api/ai", tags=["ai"])


@ai_router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    user: CurrentUser = Depends(get_current_user),
    gateway: ModelGateway = Depends(get_gateway),
):
    if not body.system_prompt or not body.messages:
        raise RequestValidationFailed("systemPrompt and messages are required")
    completion = await gateway.complete(body.system_prompt, body.messages, max_tokens=body.max_tokens)
    return ChatResponse(content=completion.content, usage=completion.usage)


# --- generation ---
plans_router = APIRouter(prefix="/api/plans", tags=["plans"])


@plans_router.post("/generate", status_code=201, response_model=GeneratedPlans, response_model_exclude_none=True)
async def generate_plans(
    body: GeneratePlansRequest,
    user: CurrentUser = Depends(get_current_user),
    planner: Planner = Depends(get_planner),
):
    if body.kind == "workout":
        return GeneratedPlans(workout_plan=await planner.generate_workout_plan(user.user_id, body.date))
    if body.kind == "meal":
        return GeneratedPlans(meal_plan=await planner.generate_meal_plan(user.user_id, body.date))
    return await planner.generate_both(user.user_id, body.date)


@plans_router.post("/today", status_code=201, response_model=GeneratedPlans)
async def generate_today(user: CurrentUser = Depends(get_current_user), planner: Planner = Depends(get_planner)):
    return await planner.generate_today(user.user_id)


@plans_router.post("/tomorrow", status_code=201, response_model=GeneratedPlans)
async def generate_tomorrow(user: CurrentUser = Depends(get_current_user), planner: Planner = Depends(get_planner)):
    return await planner.generate_tomorrow(user.user_id)


# --- exercise library ---
exercises_router = APIRouter(prefix="/api/exercises", tags=["exercises"])


@exercises_router.get("", response_model=List[Exercise])
def search_exercises(
    muscle_group: Optional[str] = Query(None, alias="muscleGroup"),
    equipment: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
    library: ExerciseLibrary = Depends(get_exercise_library),
):
    return library.search(muscle_group=muscle_group, equipment=equipment)


@exercises_router.get("/{exercise_id}", response_model=Exercise)
def get_exercise(
    exercise_id: str,
    user: CurrentUser = Depends(get_current_user),
    library: ExerciseLibrary = Depends(get_exercise_library),
):
    exercise = library.get(exercise_id)
    if exercise is None:
        raise NotFoundError("Exercise not found")
    return exercise


ROUTERS = [
    profile_router,
    workouts_router,
    meals_router,
    checkins_router,
    ai_router,
    plans_router,
    exercises_router,
]
