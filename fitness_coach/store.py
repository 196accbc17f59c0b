"""Data access for accounts, plans and check-ins.

Every method opens its own session and returns pydantic models, so callers
never hold on to ORM objects past the session that loaded them.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .database import Database
from .errors import ConflictError, NotFoundError
from .models import (
    AccountDetail,
    AccountOut,
    ActualWeightsUpdate,
    DailyCheckIn,
    DailyCheckInIn,
    MealPlan,
    MealPlanIn,
    ProfileOut,
    UserProfile,
    WorkoutPlan,
    WorkoutPlanIn,
    utcnow,
)
from .orm import Account, CheckInRecord, MealPlanRecord, WorkoutPlanRecord

logger = logging.getLogger(__name__)


def _commit(s: Session, record) -> None:
    s.commit()
    s.refresh(record)


class CoachStore:
    def __init__(self, database: Database) -> None:
        self.db = database

    # --- accounts ---

    def create_account(self, email: str, password_hash: str) -> AccountOut:
        with self.db.session() as s:
            if s.query(Account).filter_by(email=email).first() is not None:
                raise ConflictError("Email already registered")
            account = Account(email=email, password_hash=password_hash)
            s.add(account)
            try:
                _commit(s, account)
            except IntegrityError:
                raise ConflictError("Email already registered")
            return AccountOut(id=account.id, email=account.email, onboarded=account.onboarded)

    def find_credentials(self, email: str) -> Optional[Tuple[AccountOut, str]]:
        """Return the account and its password hash, or None."""
        with self.db.session() as s:
            account = s.query(Account).filter_by(email=email).first()
            if account is None:
                return None
            return (
                AccountOut(id=account.id, email=account.email, onboarded=account.onboarded),
                account.password_hash,
            )

    def get_account(self, user_id: int) -> Optional[AccountDetail]:
        with self.db.session() as s:
            account = s.get(Account, user_id)
            if account is None:
                return None
            return AccountDetail(
                id=account.id,
                email=account.email,
                onboarded=account.onboarded,
                profile=UserProfile.model_validate(account.profile) if account.profile else None,
                created_at=account.created_at,
                updated_at=account.updated_at,
            )

    # --- profile ---

    def get_profile(self, user_id: int) -> Optional[ProfileOut]:
        """The onboarded profile, or None when onboarding has not happened."""
        with self.db.session() as s:
            account = s.get(Account, user_id)
            if account is None or not account.onboarded or not account.profile:
                return None
            return ProfileOut(
                id=account.id,
                created_at=account.created_at,
                updated_at=account.updated_at,
                **UserProfile.model_validate(account.profile).model_dump(),
            )

    def save_profile(self, user_id: int, profile: UserProfile) -> None:
        with self.db.session() as s:
            account = s.get(Account, user_id)
            if account is None:
                raise NotFoundError("User not found")
            account.profile = profile.model_dump(mode="json")
            account.onboarded = True
            account.updated_at = utcnow()

    # --- workout plans ---

    def get_workout_by_date(self, user_id: int, date: str) -> Optional[WorkoutPlan]:
        with self.db.session() as s:
            record = (
                s.query(WorkoutPlanRecord)
                .filter_by(user_id=user_id, date=date)
                .order_by(WorkoutPlanRecord.id.desc())
                .first()
            )
            return WorkoutPlan.model_validate(record.to_dict()) if record else None

    def save_workout(self, user_id: int, plan: WorkoutPlanIn) -> WorkoutPlan:
        """Insert the plan, or replace the plan already stored for that date."""
        data = plan.model_dump(mode="python")
        data["exercises"] = [e.model_dump(mode="json") for e in plan.exercises]
        with self.db.session() as s:
            record = (
                s.query(WorkoutPlanRecord)
                .filter_by(user_id=user_id, date=plan.date)
                .order_by(WorkoutPlanRecord.id.desc())
                .first()
            )
            if record is None:
                record = WorkoutPlanRecord(user_id=user_id)
                s.add(record)
            else:
                logger.info("Replacing workout plan %s for %s", record.id, plan.date)
            for key, value in data.items():
                setattr(record, key, value)
            _commit(s, record)
            return WorkoutPlan.model_validate(record.to_dict())

    def _owned_workout(self, s: Session, user_id: int, plan_id: int) -> WorkoutPlanRecord:
        record = s.query(WorkoutPlanRecord).filter_by(id=plan_id, user_id=user_id).first()
        if record is None:
            raise NotFoundError("Plan not found")
        return record

    def mark_workout_complete(self, user_id: int, plan_id: int) -> WorkoutPlan:
        with self.db.session() as s:
            record = self._owned_workout(s, user_id, plan_id)
            record.completed = True
            record.completed_at = utcnow()
            _commit(s, record)
            return WorkoutPlan.model_validate(record.to_dict())

    def update_actual_weights(self, user_id: int, plan_id: int, update: ActualWeightsUpdate) -> WorkoutPlan:
        """Merge logged weights/reps into existing sets, matched by set number."""
        with self.db.session() as s:
            record = self._owned_workout(s, user_id, plan_id)
            plan = WorkoutPlan.model_validate(record.to_dict())
            for entry in update.exercises:
                if entry.exercise_index >= len(plan.exercises):
                    continue
                exercise = plan.exercises[entry.exercise_index]
                by_number = {workout_set.set_number: workout_set for workout_set in exercise.sets}
                for actuals in entry.sets:
                    workout_set = by_number.get(actuals.set_number)
                    if workout_set is None:
                        continue
                    if actuals.actual_weight is not None:
                        workout_set.actual_weight = actuals.actual_weight
                    if actuals.actual_reps is not None:
                        workout_set.actual_reps = actuals.actual_reps
                    workout_set.completed = True
            # reassign so the JSON column is flagged dirty
            record.exercises = [e.model_dump(mode="json") for e in plan.exercises]
            _commit(s, record)
            return WorkoutPlan.model_validate(record.to_dict())

    def recent_workouts(self, user_id: int, limit: int = 7, before: Optional[str] = None) -> List[WorkoutPlan]:
        """Newest first; ``before`` keeps only plans dated strictly earlier."""
        with self.db.session() as s:
            query = s.query(WorkoutPlanRecord).filter_by(user_id=user_id)
            if before is not None:
                query = query.filter(WorkoutPlanRecord.date < before)
            records = query.order_by(WorkoutPlanRecord.date.desc(), WorkoutPlanRecord.id.desc()).limit(limit).all()
            return [WorkoutPlan.model_validate(r.to_dict()) for r in records]

    # --- meal plans ---

    def get_meal_by_date(self, user_id: int, date: str) -> Optional[MealPlan]:
        with self.db.session() as s:
            record = (
                s.query(MealPlanRecord)
                .filter_by(user_id=user_id, date=date)
                .order_by(MealPlanRecord.id.desc())
                .first()
            )
            return MealPlan.model_validate(record.to_dict()) if record else None

    def save_meal(self, user_id: int, plan: MealPlanIn) -> MealPlan:
        """Insert the plan, or replace the plan already stored for that date."""
        data = plan.model_dump(mode="python")
        data["meals"] = [m.model_dump(mode="json") for m in plan.meals]
        with self.db.session() as s:
            record = (
                s.query(MealPlanRecord)
                .filter_by(user_id=user_id, date=plan.date)
                .order_by(MealPlanRecord.id.desc())
                .first()
            )
            if record is None:
                record = MealPlanRecord(user_id=user_id)
                s.add(record)
            else:
                logger.info("Replacing meal plan %s for %s", record.id, plan.date)
            for key, value in data.items():
                setattr(record, key, value)
            _commit(s, record)
            return MealPlan.model_validate(record.to_dict())

    def get_meal(self, user_id: int, plan_id: int) -> MealPlan:
        with self.db.session() as s:
            record = s.query(MealPlanRecord).filter_by(id=plan_id, user_id=user_id).first()
            if record is None:
                raise NotFoundError("Plan not found")
            return MealPlan.model_validate(record.to_dict())

    def mark_meal_logged(self, user_id: int, plan_id: int) -> MealPlan:
        with self.db.session() as s:
            record = s.query(MealPlanRecord).filter_by(id=plan_id, user_id=user_id).first()
            if record is None:
                raise NotFoundError("Plan not found")
            record.logged = True
            _commit(s, record)
            return MealPlan.model_validate(record.to_dict())

    def recent_meals(self, user_id: int, limit: int = 7) -> List[MealPlan]:
        with self.db.session() as s:
            records = (
                s.query(MealPlanRecord)
                .filter_by(user_id=user_id)
                .order_by(MealPlanRecord.date.desc(), MealPlanRecord.id.desc())
                .limit(limit)
                .all()
            )
            return [MealPlan.model_validate(r.to_dict()) for r in records]

    # --- check-ins ---

    def save_check_in(self, user_id: int, check_in: DailyCheckInIn) -> DailyCheckIn:
        with self.db.session() as s:
            record = CheckInRecord(user_id=user_id, **check_in.model_dump(mode="python"))
            s.add(record)
            _commit(s, record)
            return DailyCheckIn.model_validate(record.to_dict())

    def recent_check_ins(self, user_id: int, limit: int = 7) -> List[DailyCheckIn]:
        with self.db.session() as s:
            records = (
                s.query(CheckInRecord)
                .filter_by(user_id=user_id)
                .order_by(CheckInRecord.date.desc(), CheckInRecord.submitted_at.desc())
                .limit(limit)
                .all()
            )
            return [DailyCheckIn.model_validate(r.to_dict()) for r in records]
