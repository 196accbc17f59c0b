from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional

import pandas as pd

from .assembler import slugify_exercise_name
from .models import Exercise

logger = logging.getLogger(__name__)


def _first(row: pd.Series, colnames: List[str]) -> Optional[str]:
    for c in colnames:
        if c in row and pd.notna(row[c]) and str(row[c]).strip() != "":
            return str(row[c]).strip()
    return None


def exercise_from_row(row: pd.Series) -> Optional[Exercise]:
    name = _first(row, ["Title", "title", "Exercise Name", "name"])
    if name is None:
        return None
    level = _first(row, ["Level", "level", "Difficulty", "difficulty"])
    return Exercise(
        id=slugify_exercise_name(name),
        name=name,
        muscle_group=_first(row, ["BodyPart", "body_part", "Body Part", "muscleGroup", "target", "muscle"]),
        equipment=_first(row, ["Equipment", "equipment"]),
        difficulty=level.lower() if level else None,
    )


class ExerciseLibrary:
    """Exercise lookup keyed by the same slug generated plans carry in exerciseId."""

    def __init__(self, exercises: Optional[List[Exercise]] = None) -> None:
        self._by_id: Dict[str, Exercise] = {}
        for e in exercises or []:
            # first occurrence wins on duplicate titles
            self._by_id.setdefault(e.id, e)

    @classmethod
    def from_csv(cls, path: Optional[str]) -> "ExerciseLibrary":
        """Load a CSV dataset; a missing path gives an empty library."""
        if not path or not os.path.exists(path):
            if path:
                logger.warning("Exercise dataset not found at %s; library is empty", path)
            return cls()
        df = pd.read_csv(path)
        # Normalize columns for safer access
        df.columns = [str(c).strip() for c in df.columns]
        exercises = [e for e in (exercise_from_row(r) for _, r in df.iterrows()) if e is not None]
        logger.info("Loaded %d exercises from %s", len(exercises), path)
        return cls(exercises)

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, exercise_id: str) -> Optional[Exercise]:
        return self._by_id.get(exercise_id)

    def search(self, muscle_group: Optional[str] = None, equipment: Optional[str] = None) -> List[Exercise]:
        def matches(value: Optional[str], wanted: Optional[str]) -> bool:
            return wanted is None or (value or "").lower() == wanted.lower()

        return [
            e for e in self._by_id.values()
            if matches(e.muscle_group, muscle_group) and matches(e.equipment, equipment)
        ]
