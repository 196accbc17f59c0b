# orm.py
from datetime import timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from .database import Base
from .models import utcnow


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes, also on backends (SQLite) that drop the offset."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)

    # onboarding profile, stored as a document
    profile = Column(JSON, nullable=True)
    onboarded = Column(Boolean, nullable=False, default=False)

    created_at = Column(UTCDateTime(), default=utcnow)
    updated_at = Column(UTCDateTime(), default=utcnow, onupdate=utcnow)

    workout_plans = relationship("WorkoutPlanRecord", back_populates="account")
    meal_plans = relationship("MealPlanRecord", back_populates="account")
    check_ins = relationship("CheckInRecord", back_populates="account")


class WorkoutPlanRecord(Base):
    __tablename__ = "workout_plans"
    __table_args__ = (Index("ix_workout_plans_user_date", "user_id", "date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)

    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    day_name = Column(String, nullable=False)
    exercises = Column(JSON, nullable=False, default=list)
    estimated_duration = Column(Integer, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(UTCDateTime(), nullable=True)
    ai_insight = Column(Text, nullable=True)
    generated_at = Column(UTCDateTime(), default=utcnow)

    account = relationship("Account", back_populates="workout_plans")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "day_name": self.day_name,
            "exercises": self.exercises or [],
            "estimated_duration": self.estimated_duration,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "ai_insight": self.ai_insight,
            "generated_at": self.generated_at,
        }


class MealPlanRecord(Base):
    __tablename__ = "meal_plans"
    __table_args__ = (Index("ix_meal_plans_user_date", "user_id", "date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)

    date = Column(String(10), nullable=False)
    meals = Column(JSON, nullable=False, default=list)
    # as supplied by the generator, not recomputed
    total_calories = Column(Float, nullable=False, default=0)
    total_protein = Column(Float, nullable=False, default=0)
    total_carbs = Column(Float, nullable=False, default=0)
    total_fats = Column(Float, nullable=False, default=0)
    logged = Column(Boolean, nullable=False, default=False)
    generated_at = Column(UTCDateTime(), default=utcnow)

    account = relationship("Account", back_populates="meal_plans")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "meals": self.meals or [],
            "total_calories": self.total_calories,
            "total_protein": self.total_protein,
            "total_carbs": self.total_carbs,
            "total_fats": self.total_fats,
            "logged": self.logged,
            "generated_at": self.generated_at,
        }


class CheckInRecord(Base):
    __tablename__ = "check_ins"
    __table_args__ = (Index("ix_check_ins_user_date", "user_id", "date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)

    date = Column(String(10), nullable=False)
    workout_completed = Column(String, nullable=False)   # completed / partial / skipped
    nutrition_status = Column(String, nullable=False)    # on_track / under / over
    actual_calories = Column(Integer, nullable=True)
    weight = Column(Float, nullable=True)
    sleep_quality = Column(Integer, nullable=False)      # 1-5
    soreness_level = Column(String, nullable=False)      # low / medium / high
    energy_level = Column(Integer, nullable=False)       # 1-5
    notes = Column(Text, nullable=True)
    submitted_at = Column(UTCDateTime(), default=utcnow)

    account = relationship("Account", back_populates="check_ins")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "workout_completed": self.workout_completed,
            "nutrition_status": self.nutrition_status,
            "actual_calories": self.actual_calories,
            "weight": self.weight,
            "sleep_quality": self.sleep_quality,
            "soreness_level": self.soreness_level,
            "energy_level": self.energy_level,
            "notes": self.notes,
            "submitted_at": self.submitted_at,
        }
