from unittest.mock import patch

import pytest

from conftest import USER_ID
from errors import ValidationError
from fitness_logic import generate_workout
from models import WORKOUTS, WORKOUT_EXERCISES, WORKOUT_SETS, WorkoutSet
from planner import delete_workout, get_workout, list_workouts, save_workout, start_workout


@pytest.fixture
def drafts(chest_catalog, rng):
    return generate_workout(chest_catalog, "Chest", 3, ["main", "isolated"], rng=rng)


def test_save_writes_workout_before_its_slots(gateway, drafts, clock):
    with patch.object(gateway, "create", wraps=gateway.create) as spy:
        workout = save_workout(gateway, USER_ID, "  Push day ", "Chest", drafts, now=clock.now)

    collections = [c.args[0] for c in spy.call_args_list]
    assert collections == [WORKOUTS] + [WORKOUT_EXERCISES] * 3
    assert workout.name == "Push day"
    assert workout.status == "planned"
    assert workout.created_at == clock.now

    slots = gateway.list(WORKOUT_EXERCISES, where={"workout_id": workout.id}, order_by={"order": "asc"})
    assert [s["exercise_id"] for s in slots] == [d.exercise_id for d in drafts]
    assert [s["order"] for s in slots] == [1, 2, 3]
    assert all(s["weight"] == 0 and s["completed"] is False for s in slots)


@pytest.mark.parametrize("name, use_drafts", [("", True), ("   ", True), ("Push day", False)])
def test_save_validates_before_writing(gateway, drafts, name, use_drafts):
    with patch.object(gateway, "create", wraps=gateway.create) as spy:
        with pytest.raises(ValidationError):
            save_workout(gateway, USER_ID, name, "Chest", drafts if use_drafts else [])

    assert spy.call_count == 0


def test_list_workouts_newest_first(gateway, drafts, clock):
    save_workout(gateway, USER_ID, "First", "Chest", drafts, now=clock.now)
    clock.advance(3600)
    save_workout(gateway, USER_ID, "Second", "Chest", drafts, now=clock.now)
    save_workout(gateway, "someone-else", "Theirs", "Chest", drafts, now=clock.now)

    assert [w.name for w in list_workouts(gateway, USER_ID)] == ["Second", "First"]
    assert list_workouts(gateway, USER_ID, status="active") == []


def test_start_moves_planned_to_active(gateway, drafts, clock):
    workout = save_workout(gateway, USER_ID, "Push day", "Chest", drafts)

    started = start_workout(gateway, USER_ID, workout.id, now=clock.now)

    assert started.status == "active"
    assert started.started_at == clock.now
    assert get_workout(gateway, workout.id).status == "active"


def test_start_refuses_non_planned_and_missing(gateway, drafts):
    workout = save_workout(gateway, USER_ID, "Push day", "Chest", drafts)
    start_workout(gateway, USER_ID, workout.id)

    with pytest.raises(ValidationError):
        start_workout(gateway, USER_ID, workout.id)
    with pytest.raises(ValidationError):
        start_workout(gateway, USER_ID, "workout_missing")


def test_only_one_active_workout_per_user(gateway, drafts):
    first = save_workout(gateway, USER_ID, "One", "Chest", drafts)
    second = save_workout(gateway, USER_ID, "Two", "Chest", drafts)
    start_workout(gateway, USER_ID, first.id)

    with pytest.raises(ValidationError, match="One"):
        start_workout(gateway, USER_ID, second.id)

    assert get_workout(gateway, second.id).status == "planned"


def test_delete_removes_slots_and_sets(gateway, drafts):
    keep = save_workout(gateway, USER_ID, "Keep", "Chest", drafts)
    doomed = save_workout(gateway, USER_ID, "Doomed", "Chest", drafts)
    slot = gateway.list(WORKOUT_EXERCISES, where={"workout_id": doomed.id})[0]
    gateway.create(WORKOUT_SETS, WorkoutSet("set_1", slot["id"], 1, 10).to_record())

    delete_workout(gateway, doomed.id)

    assert get_workout(gateway, doomed.id) is None
    assert gateway.list(WORKOUT_EXERCISES, where={"workout_id": doomed.id}) == []
    assert gateway.list(WORKOUT_SETS) == []
    assert len(gateway.list(WORKOUT_EXERCISES, where={"workout_id": keep.id})) == 3
