"""
workout_session.py — Running an active workout.
Tracks which slot the user is on, the sets logged for it, and the workout's
lifecycle (no-active-workout -> active -> completed). Every mutation goes to
the store first and local state is re-read afterwards, so a failed call never
leaves the screen showing something the store doesn't have.
"""

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import structlog

import planner
from catalog import get_exercise, list_exercises
from errors import NoReplacementAvailable, ValidationError
from fitness_logic import assign_exercise, progress_percent, replacement_pool, set_volume
from gateway import Gateway
from models import (
    EXERCISE_PROGRESS, WORKOUTS, WORKOUT_EXERCISES, WORKOUT_SETS,
    Exercise, ExerciseProgress, Workout, WorkoutExercise, WorkoutSet,
    new_id, to_iso, utcnow,
)

logger = structlog.get_logger(__name__)

NO_ACTIVE_WORKOUT = "no-active-workout"
ACTIVE = "active"


@dataclass
class SessionContext:
    """Who is training and on which workout. Passed in, never global."""
    user_id: str
    workout_id: Optional[str] = None


@dataclass
class CompletionSummary:
    workout_id: str
    total_time: int         # seconds
    total_weight: float
    completed_at: datetime


class ActiveWorkoutSession:
    def __init__(self, gateway: Gateway, context: SessionContext,
                 clock: Callable[[], datetime] = utcnow,
                 rng: Optional[random.Random] = None):
        self.gateway = gateway
        self.context = context
        self.clock = clock
        self.rng = rng or random.Random()
        self._clear()

    def _clear(self):
        self.workout: Optional[Workout] = None
        self.exercises: list[WorkoutExercise] = []
        self.cursor = 0
        self.sets: list[WorkoutSet] = []
        self.pending_weight = 0.0
        self.context.workout_id = None

    # ─────────────────────────────────────────────
    # Loading
    # ─────────────────────────────────────────────

    @property
    def state(self) -> str:
        return ACTIVE if self.workout is not None else NO_ACTIVE_WORKOUT

    def load(self) -> bool:
        """
        Pick up the user's active workout, if any. Should several be active
        (another device, a manual sheet edit) the most recently started wins.
        Only the first slot's sets are fetched; the rest load on navigation.
        """
        records = self.gateway.list(
            WORKOUTS,
            where={"user_id": self.context.user_id, "status": "active"},
            order_by={"started_at": "desc"},
            limit=1,
        )
        if not records:
            self._clear()
            return False

        workout = Workout.from_record(records[0])
        slots = [
            WorkoutExercise.from_record(r)
            for r in self.gateway.list(
                WORKOUT_EXERCISES, where={"workout_id": workout.id}, order_by={"order": "asc"}
            )
        ]
        for slot in slots:
            slot.exercise = get_exercise(self.gateway, slot.exercise_id)
        sets = self._fetch_sets(slots[0].id) if slots else []

        self.workout = workout
        self.context.workout_id = workout.id
        self.exercises = slots
        self.cursor = 0
        self.sets = sets
        self.pending_weight = 0.0
        logger.info("session.loaded", workout_id=workout.id, slots=len(slots))
        return True

    def start(self, workout_id: str) -> Workout:
        """Activate a planned workout and load it."""
        workout = planner.start_workout(self.gateway, self.context.user_id, workout_id, now=self.clock())
        self.load()
        return workout

    def _fetch_sets(self, workout_exercise_id: str) -> list[WorkoutSet]:
        records = self.gateway.list(
            WORKOUT_SETS,
            where={"workout_exercise_id": workout_exercise_id},
            order_by={"set_number": "asc"},
        )
        return [WorkoutSet.from_record(r) for r in records]

    def _reload_sets(self):
        self.sets = self._fetch_sets(self.current_exercise.id)

    def _require_current(self) -> WorkoutExercise:
        slot = self.current_exercise
        if slot is None:
            raise ValidationError("No active workout")
        return slot

    # ─────────────────────────────────────────────
    # Cursor
    # ─────────────────────────────────────────────

    @property
    def current_exercise(self) -> Optional[WorkoutExercise]:
        if not self.exercises:
            return None
        return self.exercises[self.cursor]

    def _move_to(self, index: int):
        sets = self._fetch_sets(self.exercises[index].id)
        self.cursor = index
        self.sets = sets
        self.pending_weight = 0.0

    def next_exercise(self) -> bool:
        if not self.exercises or self.cursor >= len(self.exercises) - 1:
            return False
        self._move_to(self.cursor + 1)
        return True

    def prev_exercise(self) -> bool:
        if not self.exercises or self.cursor <= 0:
            return False
        self._move_to(self.cursor - 1)
        return True

    def go_to(self, index: int) -> bool:
        """Jump straight to a slot. Out-of-range indexes are clamped."""
        if not self.exercises:
            return False
        index = max(0, min(index, len(self.exercises) - 1))
        if index == self.cursor:
            return False
        self._move_to(index)
        return True

    def suggested_weight(self) -> Optional[float]:
        """Weight used for the current exercise last time it was finished."""
        slot = self.current_exercise
        if slot is None:
            return None
        records = self.gateway.list(
            EXERCISE_PROGRESS,
            where={"user_id": self.context.user_id, "exercise_id": slot.exercise_id},
            limit=1,
        )
        return ExerciseProgress.from_record(records[0]).last_weight if records else None

    # ─────────────────────────────────────────────
    # Set logging
    # ─────────────────────────────────────────────

    def add_set(self) -> WorkoutSet:
        slot = self._require_current()
        new_set = WorkoutSet(
            id=new_id("set"),
            workout_exercise_id=slot.id,
            set_number=len(self.sets) + 1,
            reps=slot.reps,
            weight=self.pending_weight or 0.0,
            completed=False,
        )
        self.gateway.create(WORKOUT_SETS, new_set.to_record())
        self._reload_sets()
        return new_set

    def _find_set(self, set_id: str) -> WorkoutSet:
        for logged in self.sets:
            if logged.id == set_id:
                return logged
        raise ValidationError("That set is not part of the current exercise")

    def update_set_weight(self, set_id: str, weight: float):
        self._find_set(set_id)
        if weight < 0:
            raise ValidationError("Weight can't be negative")
        self.gateway.update(WORKOUT_SETS, set_id, {"weight": float(weight)})
        self._reload_sets()

    def update_set_reps(self, set_id: str, reps: int):
        self._find_set(set_id)
        if reps < 0:
            raise ValidationError("Reps can't be negative")
        self.gateway.update(WORKOUT_SETS, set_id, {"reps": int(reps)})
        self._reload_sets()

    def toggle_set(self, set_id: str) -> bool:
        """Flip a set's completed flag. True means it was just completed."""
        completed = not self._find_set(set_id).completed
        self.gateway.update(WORKOUT_SETS, set_id, {"completed": completed})
        self._reload_sets()
        return completed

    @property
    def completed_set_count(self) -> int:
        return sum(1 for s in self.sets if s.completed)

    @property
    def progress(self) -> float:
        slot = self.current_exercise
        if slot is None:
            return 0.0
        return progress_percent(self.cursor, self.completed_set_count, slot.sets, len(self.exercises))

    def elapsed_seconds(self, now: Optional[datetime] = None) -> int:
        if self.workout is None or self.workout.started_at is None:
            return 0
        now = now or self.clock()
        return max(0, int((now - self.workout.started_at).total_seconds()))

    # ─────────────────────────────────────────────
    # Swapping the current exercise
    # ─────────────────────────────────────────────

    def replacement_candidates(self) -> list[Exercise]:
        slot = self._require_current()
        if slot.exercise is None:
            return []
        catalog = list_exercises(
            self.gateway, self.context.user_id,
            muscle_group=slot.exercise.muscle_group,
            exercise_type=slot.exercise.exercise_type,
        )
        return replacement_pool(catalog, self.exercises, self.cursor)

    def replace_current_exercise(self, exercise_id: Optional[str] = None) -> Exercise:
        """
        Put another exercise in the current slot: the one asked for, or a
        random eligible one. Sets already logged for the slot are deleted.
        """
        slot = self._require_current()
        candidates = self.replacement_candidates()
        if not candidates:
            raise NoReplacementAvailable(slot.exercise.exercise_type if slot.exercise else "unknown")
        if exercise_id is None:
            replacement = self.rng.choice(candidates)
        else:
            replacement = next((e for e in candidates if e.id == exercise_id), None)
            if replacement is None:
                raise ValidationError("That exercise can't replace the current one")

        # Displayed sets must match the store whichever call fails.
        try:
            for logged in self._fetch_sets(slot.id):
                self.gateway.delete(WORKOUT_SETS, logged.id)
            self.gateway.update(
                WORKOUT_EXERCISES, slot.id,
                {"exercise_id": replacement.id, "sets": replacement.sets, "reps": replacement.reps},
            )
            assign_exercise(slot, replacement)
        finally:
            self._reload_sets()
        self.pending_weight = 0.0
        logger.info("session.exercise_replaced", workout_exercise_id=slot.id, exercise_id=replacement.id)
        return replacement

    # ─────────────────────────────────────────────
    # Finishing
    # ─────────────────────────────────────────────

    def _record_progress(self, slot: WorkoutExercise, done: list[WorkoutSet], now: datetime):
        last = max(done, key=lambda s: s.set_number)
        changes = {"last_weight": last.weight, "last_completed": len(done), "updated_at": to_iso(now)}
        existing = self.gateway.list(
            EXERCISE_PROGRESS,
            where={"user_id": self.context.user_id, "exercise_id": slot.exercise_id},
            limit=1,
        )
        if existing:
            self.gateway.update(EXERCISE_PROGRESS, existing[0]["id"], changes)
        else:
            progress = ExerciseProgress(
                id=new_id("progress"),
                exercise_id=slot.exercise_id,
                user_id=self.context.user_id,
                last_weight=last.weight,
                last_completed=len(done),
                updated_at=now,
            )
            self.gateway.create(EXERCISE_PROGRESS, progress.to_record())

    def complete(self) -> CompletionSummary:
        """
        Total up completed sets, close the workout, and drop back to
        no-active-workout. Nothing is cleared unless the store accepted the
        final update.
        """
        if self.workout is None:
            raise ValidationError("No active workout")

        now = self.clock()
        total_weight = 0.0
        for slot in self.exercises:
            done = [
                WorkoutSet.from_record(r)
                for r in self.gateway.list(
                    WORKOUT_SETS, where={"workout_exercise_id": slot.id, "completed": True}
                )
            ]
            weight_type = slot.exercise.weight_type if slot.exercise else "additional"
            total_weight += sum(set_volume(s.weight, s.reps, weight_type) for s in done)
            if done:
                self._record_progress(slot, done, now)

        total_time = self.elapsed_seconds(now)
        self.gateway.update(WORKOUTS, self.workout.id, {
            "status": "completed",
            "completed_at": to_iso(now),
            "total_time": total_time,
            "total_weight": total_weight,
        })
        summary = CompletionSummary(
            workout_id=self.workout.id,
            total_time=total_time,
            total_weight=total_weight,
            completed_at=now,
        )
        logger.info("session.completed", workout_id=summary.workout_id,
                    total_time=total_time, total_weight=total_weight)
        self._clear()
        return summary
