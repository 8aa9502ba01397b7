"""
fitness_logic.py — The Lift Log brain
Workout generator, smart swap, and the volume / progress arithmetic the
session uses.
"""

import random
from datetime import date
from typing import Iterable, Optional

from errors import EmptyCandidatePool, NoReplacementAvailable, ValidationError
from models import (
    ASSUMED_BODY_WEIGHT, EXERCISE_TYPES,
    Exercise, WorkoutExercise, new_id,
)

MIN_EXERCISES = 1
MAX_EXERCISES = 10

# ─────────────────────────────────────────────
# Generator Engine
# ─────────────────────────────────────────────


def make_draft(exercise: Exercise, order: int) -> WorkoutExercise:
    """A not-yet-saved slot with the exercise's default sets and reps."""
    return WorkoutExercise(
        id=new_id("we"),
        workout_id="",
        exercise_id=exercise.id,
        sets=exercise.sets,
        reps=exercise.reps,
        weight=0.0,
        completed=False,
        order=order,
        exercise=exercise,
    )


def validate_request(muscle_group: str, count: int, exercise_types: Iterable[str]) -> list[str]:
    if not muscle_group:
        raise ValidationError("Pick a muscle group")
    types = list(dict.fromkeys(exercise_types))  # dedupe, keep order
    if not types:
        raise ValidationError("Pick at least one exercise type")
    unknown = [t for t in types if t not in EXERCISE_TYPES]
    if unknown:
        raise ValidationError(f"Unknown exercise type: {', '.join(unknown)}")
    if not MIN_EXERCISES <= count <= MAX_EXERCISES:
        raise ValidationError(f"Exercise count must be between {MIN_EXERCISES} and {MAX_EXERCISES}")
    return types


def generate_workout(
    exercises: list[Exercise],
    muscle_group: str,
    count: int,
    exercise_types: Iterable[str],
    rng: Optional[random.Random] = None,
) -> list[WorkoutExercise]:
    """
    Draft up to `count` exercises for one muscle group.
    First one random pick per requested type (in the order given), then
    random picks from whatever is left. Fewer drafts than asked is fine.
    """
    rng = rng or random.Random()
    types = validate_request(muscle_group, count, exercise_types)

    pool = [e for e in exercises if e.muscle_group == muscle_group and e.exercise_type in types]
    if not pool:
        raise EmptyCandidatePool(muscle_group, types)

    by_type = {t: [e for e in pool if e.exercise_type == t] for t in types}

    drafts: list[WorkoutExercise] = []
    for t in types:
        if len(drafts) >= count:
            break
        if by_type[t]:
            drafts.append(make_draft(rng.choice(by_type[t]), len(drafts) + 1))

    while len(drafts) < count:
        used = {d.exercise_id for d in drafts}
        remaining = [e for e in pool if e.id not in used]
        if not remaining:
            break
        drafts.append(make_draft(rng.choice(remaining), len(drafts) + 1))

    return drafts


def suggest_workout_name(muscle_group: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{muscle_group} workout - {today.isoformat()}"


# ─────────────────────────────────────────────
# Smart Swap
# ─────────────────────────────────────────────

def _slot_exercise(slot: WorkoutExercise, exercises: list[Exercise]) -> Optional[Exercise]:
    if slot.exercise is not None:
        return slot.exercise
    return next((e for e in exercises if e.id == slot.exercise_id), None)


def replacement_pool(exercises: list[Exercise], slots: list[WorkoutExercise], index: int) -> list[Exercise]:
    """
    Exercises that could take slot `index`: same muscle group and type as
    what is there now, and not already used anywhere in the list.
    """
    current = _slot_exercise(slots[index], exercises)
    if current is None:
        return []
    used_ids = {s.exercise_id for s in slots}
    return [
        e for e in exercises
        if e.muscle_group == current.muscle_group
        and e.exercise_type == current.exercise_type
        and e.id not in used_ids
    ]


def assign_exercise(slot: WorkoutExercise, exercise: Exercise) -> None:
    """Point a slot at a new exercise. id and order stay put."""
    slot.exercise_id = exercise.id
    slot.sets = exercise.sets
    slot.reps = exercise.reps
    slot.exercise = exercise


def smart_swap(
    exercises: list[Exercise],
    drafts: list[WorkoutExercise],
    index: int,
    rng: Optional[random.Random] = None,
) -> Exercise:
    """
    Swap draft `index` for a random eligible exercise, in place.
    Returns the new exercise; raises NoReplacementAvailable otherwise.
    """
    rng = rng or random.Random()
    candidates = replacement_pool(exercises, drafts, index)
    if not candidates:
        current = _slot_exercise(drafts[index], exercises)
        raise NoReplacementAvailable(current.exercise_type if current else "unknown")
    replacement = rng.choice(candidates)
    assign_exercise(drafts[index], replacement)
    return replacement


# ─────────────────────────────────────────────
# Volume & Progress
# ─────────────────────────────────────────────

def set_volume(weight: float, reps: int, weight_type: str) -> float:
    """Weight moved in one set. Bodyweight adds the body, assisted subtracts
    the counterweight from it."""
    if weight_type == "bodyweight":
        return (weight + ASSUMED_BODY_WEIGHT) * reps
    if weight_type == "assisted":
        return max(0, ASSUMED_BODY_WEIGHT - weight) * reps
    return weight * reps


def progress_percent(cursor: int, completed_sets: int, planned_sets: int, total_exercises: int) -> float:
    """
    Whole-workout progress. Not clamped: logging more sets than planned
    pushes it past the current slot, and past 100 on the last one.
    """
    if total_exercises <= 0:
        return 0.0
    planned_sets = planned_sets or 1
    return ((cursor + completed_sets / planned_sets) / total_exercises) * 100


def format_time(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"
