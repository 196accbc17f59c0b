"""Tests for the generation pipeline."""

import asyncio
import threading
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from fitness_coach.assembler import PlanAssembler, assemble_workout_plan, tomorrow_string
from fitness_coach.errors import (
    GatewayError,
    GenerationInProgressError,
    IncompletePlanError,
    MalformedPlanError,
    ProfileMissingError,
)
from fitness_coach.gateway import Completion, ModelGateway
from fitness_coach.models import DailyCheckInIn
from fitness_coach.planner import GENERATION_MAX_TOKENS, Planner

from conftest import fake_completion, meal_document, workout_document


def make_planner(store, side_effect=fake_completion):
    gateway = MagicMock(spec=ModelGateway)
    gateway.complete = AsyncMock(side_effect=side_effect)
    return Planner(store, gateway, PlanAssembler(store)), gateway


def test_first_workout_starts_the_split(store, onboarded_user):
    planner, gateway = make_planner(store)
    plan = asyncio.run(planner.generate_workout_plan(onboarded_user, "2026-10-20"))

    assert plan.day_name == "Push Day"
    assert 5 <= len(plan.exercises) <= 7
    assert store.get_workout_by_date(onboarded_user, "2026-10-20") == plan

    system_prompt, messages = gateway.complete.call_args.args
    assert "USER PROFILE:" in system_prompt
    assert "No recent workouts available." in messages[0].content
    assert "No recent check-ins available." in messages[0].content
    assert gateway.complete.call_args.kwargs["max_tokens"] == GENERATION_MAX_TOKENS


def test_day_rotation_follows_previous_plan(store, onboarded_user):
    store.save_workout(onboarded_user, assemble_workout_plan(workout_document("Pull Day"), date="2026-10-19"))
    planner, gateway = make_planner(store)

    plan = asyncio.run(planner.generate_workout_plan(onboarded_user, "2026-10-20"))

    assert plan.day_name == "Legs Day"
    assert "2026-10-19 - Pull Day" in gateway.complete.call_args.args[1][0].content


def test_regenerating_a_day_does_not_advance_the_split(store, onboarded_user):
    planner, _ = make_planner(store)
    first = asyncio.run(planner.generate_workout_plan(onboarded_user, "2026-10-20"))
    again = asyncio.run(planner.generate_workout_plan(onboarded_user, "2026-10-20"))

    assert first.day_name == again.day_name == "Push Day"
    # upserted by date
    assert again.id == first.id
    assert len(store.recent_workouts(onboarded_user, 10)) == 1


def test_check_ins_feed_the_prompt(store, onboarded_user):
    store.save_check_in(onboarded_user, DailyCheckInIn.model_validate({
        "date": "2026-10-19", "workoutCompleted": "partial", "nutritionStatus": "under",
        "sleepQuality": 2, "sorenessLevel": "high", "energyLevel": 2, "notes": "Slept badly",
    }))
    planner, gateway = make_planner(store)
    asyncio.run(planner.generate_meal_plan(onboarded_user, "2026-10-20"))

    prompt = gateway.complete.call_args.args[1][0].content
    assert "- Nutrition: under" in prompt
    assert "- Notes: Slept badly" in prompt
    assert "- Calories: 2800" in prompt


def test_default_date_is_tomorrow(store, onboarded_user):
    planner, _ = make_planner(store)
    plan = asyncio.run(planner.generate_meal_plan(onboarded_user))
    assert plan.date == tomorrow_string()


def test_missing_profile(store):
    account = store.create_account("new@example.com", "hash")
    planner, gateway = make_planner(store)

    with pytest.raises(ProfileMissingError):
        asyncio.run(planner.generate_workout_plan(account.id, "2026-10-20"))
    gateway.complete.assert_not_called()


def test_generate_both_returns_both_plans(store, onboarded_user):
    planner, gateway = make_planner(store)
    result = asyncio.run(planner.generate_both(onboarded_user, "2026-10-20"))

    assert result.workout_plan.date == result.meal_plan.date == "2026-10-20"
    assert result.meal_plan.total_calories == 2800
    assert gateway.complete.await_count == 2


def test_generate_both_fails_fast_but_sibling_still_saves(store, onboarded_user):
    async def slow_workout_failing_meal(system_prompt, messages, max_tokens=2000):
        if "workout plan" in messages[0].content:
            await asyncio.sleep(0.1)
            return fake_completion(system_prompt, messages, max_tokens)
        raise GatewayError("Model API error: Rate limit reached")

    planner, _ = make_planner(store, slow_workout_failing_meal)

    async def scenario():
        with pytest.raises(GatewayError):
            await planner.generate_both(onboarded_user, "2026-10-20")
        # the in-flight workout call is not cancelled
        assert store.get_workout_by_date(onboarded_user, "2026-10-20") is None
        await asyncio.sleep(0.5)

    asyncio.run(scenario())
    assert store.get_workout_by_date(onboarded_user, "2026-10-20") is not None
    assert store.get_meal_by_date(onboarded_user, "2026-10-20") is None


def test_malformed_and_incomplete_output_are_distinguished(store, onboarded_user):
    planner, _ = make_planner(store, lambda *a, **kw: Completion(content="I cannot do that."))
    with pytest.raises(MalformedPlanError) as excinfo:
        asyncio.run(planner.generate_workout_plan(onboarded_user, "2026-10-20"))
    assert excinfo.value.raw_text == "I cannot do that."

    planner, _ = make_planner(store, lambda *a, **kw: Completion(content=json.dumps({"dayName": "Push Day"})))
    with pytest.raises(IncompletePlanError):
        asyncio.run(planner.generate_workout_plan(onboarded_user, "2026-10-20"))
    assert store.get_workout_by_date(onboarded_user, "2026-10-20") is None


def test_duplicate_generation_is_rejected_while_in_flight(store, onboarded_user):
    async def slow(system_prompt, messages, max_tokens=2000):
        await asyncio.sleep(0.05)
        return Completion(content=json.dumps(meal_document()))

    planner, gateway = make_planner(store, slow)

    async def scenario():
        first = asyncio.ensure_future(planner.generate_meal_plan(onboarded_user, "2026-10-20"))
        await asyncio.sleep(0)
        with pytest.raises(GenerationInProgressError):
            await planner.generate_meal_plan(onboarded_user, "2026-10-20")
        return await first

    plan = asyncio.run(scenario())
    assert plan.date == "2026-10-20"
    assert gateway.complete.await_count == 1
    # released afterwards
    asyncio.run(planner.generate_meal_plan(onboarded_user, "2026-10-20"))


def test_store_work_runs_off_the_event_loop_thread(store, onboarded_user, monkeypatch):
    planner, _ = make_planner(store)
    threads = {}

    def recording(name, fn):
        def wrapper(*args, **kwargs):
            threads[name] = threading.get_ident()
            return fn(*args, **kwargs)
        return wrapper

    monkeypatch.setattr(store, "recent_workouts", recording("history", store.recent_workouts))
    monkeypatch.setattr(store, "save_workout", recording("save", store.save_workout))

    async def scenario():
        loop_thread = threading.get_ident()
        await planner.generate_workout_plan(onboarded_user, "2026-10-20")
        return loop_thread

    loop_thread = asyncio.run(scenario())
    assert set(threads) == {"history", "save"}
    assert loop_thread not in threads.values()
