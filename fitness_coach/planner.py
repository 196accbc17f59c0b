from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Set, Tuple

from .assembler import PlanAssembler, today_string, tomorrow_string
from .context import build_checkin_context, build_workout_context
from .errors import GenerationInProgressError, ProfileMissingError
from .gateway import ModelGateway
from .models import ChatMessage, DailyCheckIn, GeneratedPlans, MealPlan, ProfileOut, WorkoutPlan
from .parser import parse_plan_document
from .prompts import build_system_prompt, get_next_day_name, meal_plan_prompt, workout_plan_prompt
from .store import CoachStore

logger = logging.getLogger(__name__)

RECENT_CHECK_INS = 7
RECENT_WORKOUTS = 5
GENERATION_MAX_TOKENS = 3000


class Planner:
    """Runs the generation pipeline: history -> prompts -> model -> plan -> save.

    Holds no state between runs apart from the set of generations currently
    in flight, which turns a duplicate request into GenerationInProgressError.
    """

    def __init__(self, store: CoachStore, gateway: ModelGateway, assembler: PlanAssembler) -> None:
        self.store = store
        self.gateway = gateway
        self.assembler = assembler
        self._in_flight: Set[Tuple[int, str, str]] = set()

    async def generate_workout_plan(self, user_id: int, date: Optional[str] = None) -> WorkoutPlan:
        target = date or tomorrow_string()
        with self._guard(user_id, target, "workout"):
            profile, check_ins, workouts = await asyncio.to_thread(self._workout_history, user_id, target)

            last_day = workouts[0].day_name if workouts else None
            day_name = get_next_day_name(profile.training_split, last_day)
            prompt = workout_plan_prompt(day_name, build_workout_context(workouts), build_checkin_context(check_ins))

            logger.info("Generating %s workout for user %s on %s", day_name, user_id, target)
            doc = await self._ask(profile, prompt)
            return await asyncio.to_thread(
                self.assembler.save_workout, user_id, doc, date=target, day_name=day_name
            )

    async def generate_meal_plan(self, user_id: int, date: Optional[str] = None) -> MealPlan:
        target = date or tomorrow_string()
        with self._guard(user_id, target, "meal"):
            profile, check_ins = await asyncio.to_thread(self._meal_history, user_id)
            prompt = meal_plan_prompt(profile.target_calories, profile.macros, build_checkin_context(check_ins))

            logger.info("Generating meal plan for user %s on %s", user_id, target)
            doc = await self._ask(profile, prompt)
            return await asyncio.to_thread(self.assembler.save_meal, user_id, doc, date=target)

    async def generate_both(self, user_id: int, date: Optional[str] = None) -> GeneratedPlans:
        """Workout and meal generation run concurrently.

        The first failure is raised; the sibling call is not cancelled and
        still finishes (and saves) in the background.
        """
        target = date or tomorrow_string()
        logger.info("Generating both plans for user %s on %s", user_id, target)
        workout_plan, meal_plan = await asyncio.gather(
            self.generate_workout_plan(user_id, target),
            self.generate_meal_plan(user_id, target),
        )
        return GeneratedPlans(workout_plan=workout_plan, meal_plan=meal_plan)

    async def generate_today(self, user_id: int) -> GeneratedPlans:
        return await self.generate_both(user_id, today_string())

    async def generate_tomorrow(self, user_id: int) -> GeneratedPlans:
        return await self.generate_both(user_id, tomorrow_string())

    # --- internals ---
    # Store calls are blocking; they run in worker threads via asyncio.to_thread.
    def _workout_history(
        self, user_id: int, target: str
    ) -> Tuple[ProfileOut, List[DailyCheckIn], List[WorkoutPlan]]:
        profile = self._require_profile(user_id)
        check_ins = self.store.recent_check_ins(user_id, RECENT_CHECK_INS)
        # plans for the target day itself are about to be replaced
        workouts = self.store.recent_workouts(user_id, RECENT_WORKOUTS, before=target)
        return profile, check_ins, workouts

    def _meal_history(self, user_id: int) -> Tuple[ProfileOut, List[DailyCheckIn]]:
        profile = self._require_profile(user_id)
        return profile, self.store.recent_check_ins(user_id, RECENT_CHECK_INS)

    def _require_profile(self, user_id: int) -> ProfileOut:
        profile = self.store.get_profile(user_id)
        if profile is None:
            raise ProfileMissingError()
        return profile

    async def _ask(self, profile: ProfileOut, prompt: str):
        completion = await self.gateway.complete(
            build_system_prompt(profile),
            [ChatMessage(role="user", content=prompt)],
            max_tokens=GENERATION_MAX_TOKENS,
        )
        logger.debug(
            "Model usage: %s in / %s out tokens",
            completion.usage.input_tokens,
            completion.usage.output_tokens,
        )
        return parse_plan_document(completion.content)

    @contextmanager
    def _guard(self, user_id: int, date: str, kind: str) -> Iterator[None]:
        key = (user_id, date, kind)
        if key in self._in_flight:
            raise GenerationInProgressError(f"A {kind} plan for {date} is already being generated")
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)
