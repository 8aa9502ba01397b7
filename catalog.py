"""
catalog.py — The user's exercise catalog.
Plain CRUD over the exercises collection with input checks up front.
"""

from typing import Optional

import structlog

from errors import ValidationError
from gateway import Gateway
from models import (
    EXERCISES, EXERCISE_TYPES, MUSCLE_GROUPS, WEIGHT_TYPES,
    Exercise, new_id, to_iso, utcnow,
)

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = (
    "name", "muscle_group", "weight_type", "exercise_type", "technique",
    "equipment_name", "equipment_photo", "equipment_setup", "sets", "reps",
)


def validate_exercise_fields(fields: dict, partial: bool = False) -> dict:
    """Check and normalise exercise fields. With partial=True only the
    supplied keys are checked (used for edits)."""
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown exercise fields: {', '.join(sorted(unknown))}")

    cleaned = dict(fields)
    if not partial or "name" in cleaned:
        name = (cleaned.get("name") or "").strip()
        if not name:
            raise ValidationError("Exercise name is required")
        cleaned["name"] = name
    if not partial or "muscle_group" in cleaned:
        if cleaned.get("muscle_group") not in MUSCLE_GROUPS:
            raise ValidationError("Pick a muscle group")
    if "weight_type" in cleaned and cleaned["weight_type"] not in WEIGHT_TYPES:
        raise ValidationError(f"Unknown weight type: {cleaned['weight_type']}")
    if "exercise_type" in cleaned and cleaned["exercise_type"] not in EXERCISE_TYPES:
        raise ValidationError(f"Unknown exercise type: {cleaned['exercise_type']}")
    for key in ("sets", "reps"):
        if key in cleaned:
            try:
                cleaned[key] = int(cleaned[key])
            except (TypeError, ValueError):
                raise ValidationError(f"{key.capitalize()} must be a whole number") from None
            if cleaned[key] < 1:
                raise ValidationError(f"{key.capitalize()} must be at least 1")
    return cleaned


def list_exercises(gateway: Gateway, user_id: str, muscle_group: Optional[str] = None,
                   exercise_type: Optional[str] = None) -> list[Exercise]:
    """User's exercises, newest first."""
    where = {"user_id": user_id}
    if muscle_group:
        where["muscle_group"] = muscle_group
    if exercise_type:
        where["exercise_type"] = exercise_type
    records = gateway.list(EXERCISES, where=where, order_by={"created_at": "desc"})
    return [Exercise.from_record(r) for r in records]


def get_exercise(gateway: Gateway, exercise_id: str) -> Optional[Exercise]:
    records = gateway.list(EXERCISES, where={"id": exercise_id}, limit=1)
    return Exercise.from_record(records[0]) if records else None


def create_exercise(gateway: Gateway, user_id: str, **fields) -> Exercise:
    cleaned = validate_exercise_fields(fields)
    now = utcnow()
    exercise = Exercise(
        id=new_id("exercise"),
        user_id=user_id,
        created_at=now,
        updated_at=now,
        **cleaned,
    )
    gateway.create(EXERCISES, exercise.to_record())
    logger.info("catalog.exercise_created", exercise_id=exercise.id, name=exercise.name)
    return exercise


def update_exercise(gateway: Gateway, exercise_id: str, **fields) -> Exercise:
    cleaned = validate_exercise_fields(fields, partial=True)
    cleaned["updated_at"] = to_iso(utcnow())
    record = gateway.update(EXERCISES, exercise_id, cleaned)
    logger.info("catalog.exercise_updated", exercise_id=exercise_id, fields=sorted(fields))
    return Exercise.from_record(record)


def delete_exercise(gateway: Gateway, exercise_id: str) -> None:
    gateway.delete(EXERCISES, exercise_id)
    logger.info("catalog.exercise_deleted", exercise_id=exercise_id)
