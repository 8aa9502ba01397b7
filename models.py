"""
models.py — Lift Log data models
Exercises, workouts, workout slots and logged sets, plus the conversion
between dataclasses and the flat records the gateway stores.
"""

from dataclasses import dataclass, field, asdict, fields
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

# ─────────────────────────────────────────────
# Vocabulary
# ─────────────────────────────────────────────

MUSCLE_GROUPS = [
    "Chest", "Back", "Shoulders", "Biceps", "Triceps",
    "Legs", "Glutes", "Abs", "Forearms",
]

WEIGHT_TYPES = {
    "bodyweight": "Bodyweight",
    "assisted": "Assisted",
    "additional": "Added weight",
}

# Order matters: it is the default pick order for the generator.
EXERCISE_TYPES = ["main", "auxiliary", "isolated"]

WORKOUT_STATUSES = ["planned", "active", "completed"]

# Used for bodyweight and assisted volume, same unit as logged weights.
ASSUMED_BODY_WEIGHT = 70

# Collection names in the record store
EXERCISES = "exercises"
WORKOUTS = "workouts"
WORKOUT_EXERCISES = "workout_exercises"
WORKOUT_SETS = "workout_sets"
EXERCISE_PROGRESS = "exercise_progress"


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def from_iso(value) -> Optional[datetime]:
    """Parse a stored timestamp. Empty cells come back from sheets as ''."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_bool(value) -> bool:
    # Sheets hands back TRUE/FALSE strings for checkbox-like cells
    if isinstance(value, str):
        return value.strip().upper() in ("TRUE", "1", "YES")
    return bool(value)


def _as_number(value, cast=float):
    if value in (None, ""):
        return cast(0)
    return cast(value)


# ─────────────────────────────────────────────
# Entities
# ─────────────────────────────────────────────

class Record:
    """Shared record <-> dataclass conversion."""

    _datetime_fields: tuple = ()
    _int_fields: tuple = ()
    _float_fields: tuple = ()
    _bool_fields: tuple = ()

    def to_record(self) -> dict:
        data = asdict(self)
        for name in self._datetime_fields:
            data[name] = to_iso(data[name])
        return data

    @classmethod
    def from_record(cls, record: dict):
        names = {f.name for f in fields(cls)}
        data = {k: v for k, v in record.items() if k in names}
        for name in cls._datetime_fields:
            if name in data:
                data[name] = from_iso(data[name])
        for name in cls._int_fields:
            if name in data:
                data[name] = _as_number(data[name], int)
        for name in cls._float_fields:
            if name in data:
                data[name] = _as_number(data[name], float)
        for name in cls._bool_fields:
            if name in data:
                data[name] = _as_bool(data[name])
        for name in ("id", "user_id", "exercise_id", "workout_id", "workout_exercise_id"):
            if name in data and data[name] is not None:
                data[name] = str(data[name])
        return cls(**data)


@dataclass
class Exercise(Record):
    id: str
    user_id: str
    name: str
    muscle_group: str
    weight_type: str = "bodyweight"   # "bodyweight", "assisted", "additional"
    exercise_type: str = "main"       # "main", "auxiliary", "isolated"
    technique: str = ""
    equipment_name: str = ""
    equipment_photo: str = ""         # URL
    equipment_setup: str = ""         # seat height, pin position, ...
    sets: int = 3
    reps: int = 10
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    _datetime_fields = ("created_at", "updated_at")
    _int_fields = ("sets", "reps")


@dataclass
class Workout(Record):
    id: str
    user_id: str
    name: str
    muscle_group: str
    status: str = "planned"
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    total_time: int = 0         # seconds
    total_weight: float = 0.0

    _datetime_fields = ("created_at", "started_at", "completed_at")
    _int_fields = ("total_time",)
    _float_fields = ("total_weight",)


@dataclass
class WorkoutExercise(Record):
    """One slot of a workout. `order` is 1-based and defines traversal."""
    id: str
    workout_id: str
    exercise_id: str
    sets: int
    reps: int
    weight: float = 0.0
    completed: bool = False
    order: int = 1
    # Joined on load, never stored
    exercise: Optional[Exercise] = field(default=None, compare=False)

    _int_fields = ("sets", "reps", "order")
    _float_fields = ("weight",)
    _bool_fields = ("completed",)

    def to_record(self) -> dict:
        data = super().to_record()
        data.pop("exercise", None)
        return data


@dataclass
class WorkoutSet(Record):
    id: str
    workout_exercise_id: str
    set_number: int
    reps: int
    weight: float = 0.0
    completed: bool = False

    _int_fields = ("set_number", "reps")
    _float_fields = ("weight",)
    _bool_fields = ("completed",)


@dataclass
class ExerciseProgress(Record):
    """Last logged weight for an exercise, shown as a hint next session."""
    id: str
    exercise_id: str
    user_id: str
    last_weight: float = 0.0
    last_completed: int = 0     # completed sets last time
    updated_at: Optional[datetime] = None

    _datetime_fields = ("updated_at",)
    _int_fields = ("last_completed",)
    _float_fields = ("last_weight",)


# Header row for each collection, in column order
COLLECTION_FIELDS = {
    EXERCISES: [f.name for f in fields(Exercise)],
    WORKOUTS: [f.name for f in fields(Workout)],
    WORKOUT_EXERCISES: [f.name for f in fields(WorkoutExercise) if f.name != "exercise"],
    WORKOUT_SETS: [f.name for f in fields(WorkoutSet)],
    EXERCISE_PROGRESS: [f.name for f in fields(ExerciseProgress)],
}
