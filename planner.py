"""
planner.py — Saved workouts: persist a generated plan, list, start, delete.
"""

from datetime import datetime
from typing import Optional

import structlog

from errors import ValidationError
from gateway import Gateway
from models import (
    WORKOUTS, WORKOUT_EXERCISES, WORKOUT_SETS,
    Workout, WorkoutExercise, new_id, to_iso, utcnow,
)

logger = structlog.get_logger(__name__)


def save_workout(gateway: Gateway, user_id: str, name: str, muscle_group: str,
                 drafts: list[WorkoutExercise], now: Optional[datetime] = None) -> Workout:
    """Write the workout row first, then one row per draft slot."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Give the workout a name")
    if not drafts:
        raise ValidationError("Generate a workout first")

    workout = Workout(
        id=new_id("workout"),
        user_id=user_id,
        name=name,
        muscle_group=muscle_group,
        status="planned",
        created_at=now or utcnow(),
    )
    gateway.create(WORKOUTS, workout.to_record())

    for draft in drafts:
        slot = WorkoutExercise(
            id=new_id("we"),
            workout_id=workout.id,
            exercise_id=draft.exercise_id,
            sets=draft.sets,
            reps=draft.reps,
            weight=draft.weight,
            completed=False,
            order=draft.order,
        )
        gateway.create(WORKOUT_EXERCISES, slot.to_record())

    logger.info("planner.workout_saved", workout_id=workout.id, slots=len(drafts))
    return workout


def list_workouts(gateway: Gateway, user_id: str, status: Optional[str] = None) -> list[Workout]:
    """User's workouts, newest first."""
    where = {"user_id": user_id}
    if status:
        where["status"] = status
    records = gateway.list(WORKOUTS, where=where, order_by={"created_at": "desc"})
    return [Workout.from_record(r) for r in records]


def get_workout(gateway: Gateway, workout_id: str) -> Optional[Workout]:
    records = gateway.list(WORKOUTS, where={"id": workout_id}, limit=1)
    return Workout.from_record(records[0]) if records else None


def start_workout(gateway: Gateway, user_id: str, workout_id: str,
                  now: Optional[datetime] = None) -> Workout:
    """planned -> active. Only one workout may be active at a time."""
    workout = get_workout(gateway, workout_id)
    if workout is None:
        raise ValidationError("That workout no longer exists")
    if workout.status != "planned":
        raise ValidationError(f'"{workout.name}" is already {workout.status}')

    active = gateway.list(WORKOUTS, where={"user_id": user_id, "status": "active"}, limit=1)
    if active:
        raise ValidationError(f'Finish "{active[0]["name"]}" before starting another workout')

    started_at = now or utcnow()
    record = gateway.update(WORKOUTS, workout_id, {"status": "active", "started_at": to_iso(started_at)})
    logger.info("planner.workout_started", workout_id=workout_id)
    return Workout.from_record(record)


def delete_workout(gateway: Gateway, workout_id: str) -> None:
    """Remove the workout with its slots and their logged sets."""
    slots = gateway.list(WORKOUT_EXERCISES, where={"workout_id": workout_id})
    for slot in slots:
        for logged in gateway.list(WORKOUT_SETS, where={"workout_exercise_id": slot["id"]}):
            gateway.delete(WORKOUT_SETS, logged["id"])
        gateway.delete(WORKOUT_EXERCISES, slot["id"])
    gateway.delete(WORKOUTS, workout_id)
    logger.info("planner.workout_deleted", workout_id=workout_id, slots=len(slots))
