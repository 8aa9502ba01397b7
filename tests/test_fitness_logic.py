import random
from datetime import date

import pytest

from errors import EmptyCandidatePool, NoReplacementAvailable, ValidationError
from fitness_logic import (
    format_time, generate_workout, progress_percent, replacement_pool,
    set_volume, smart_swap, suggest_workout_name,
)


@pytest.mark.parametrize("seed", range(20))
def test_generate_returns_exactly_n_unique_drafts_of_requested_types(chest_catalog, seed):
    drafts = generate_workout(chest_catalog, "Chest", 4, ["main", "isolated"], rng=random.Random(seed))

    assert len(drafts) == 4
    assert len({d.exercise_id for d in drafts}) == 4
    assert all(d.exercise.exercise_type in {"main", "isolated"} for d in drafts)
    assert all(d.exercise.muscle_group == "Chest" for d in drafts)


def test_generate_fills_draft_fields(chest_catalog, rng):
    drafts = generate_workout(chest_catalog, "Chest", 3, ["main", "auxiliary"], rng=rng)

    assert [d.order for d in drafts] == [1, 2, 3]
    assert len({d.id for d in drafts}) == 3
    for d in drafts:
        assert d.weight == 0
        assert d.completed is False
        assert d.workout_id == ""
        assert (d.sets, d.reps) == (d.exercise.sets, d.exercise.reps)


@pytest.mark.parametrize("seed", range(10))
def test_first_round_covers_each_type_once_in_requested_order(chest_catalog, seed):
    types = ["isolated", "main", "auxiliary"]
    drafts = generate_workout(chest_catalog, "Chest", 5, types, rng=random.Random(seed))

    assert [d.exercise.exercise_type for d in drafts[:3]] == types


def test_first_round_stops_at_requested_count(chest_catalog, rng):
    drafts = generate_workout(chest_catalog, "Chest", 2, ["main", "auxiliary", "isolated"], rng=rng)

    assert [d.exercise.exercise_type for d in drafts] == ["main", "auxiliary"]


def test_first_round_skips_types_without_candidates(make_exercise, rng):
    catalog = [make_exercise("Squat", muscle_group="Legs"), make_exercise("Leg Curl", muscle_group="Legs",
                                                                          exercise_type="isolated")]
    drafts = generate_workout(catalog, "Legs", 2, ["auxiliary", "isolated", "main"], rng=rng)

    assert [d.exercise.name for d in drafts] == ["Leg Curl", "Squat"]


def test_generate_returns_fewer_drafts_when_pool_runs_out(chest_catalog, rng):
    drafts = generate_workout(chest_catalog, "Chest", 10, ["main"], rng=rng)

    assert sorted(d.exercise.name for d in drafts) == ["Bench Press", "Dips", "Incline Press"]


def test_empty_pool_signals_empty_candidate_pool(chest_catalog, rng):
    with pytest.raises(EmptyCandidatePool) as exc_info:
        generate_workout(chest_catalog, "Legs", 3, ["main"], rng=rng)

    assert exc_info.value.muscle_group == "Legs"

    with pytest.raises(EmptyCandidatePool):
        generate_workout(chest_catalog, "Back", 3, ["isolated"], rng=rng)


@pytest.mark.parametrize("muscle_group, count, types", [
    ("", 3, ["main"]),
    ("Chest", 3, []),
    ("Chest", 0, ["main"]),
    ("Chest", 11, ["main"]),
    ("Chest", 3, ["cardio"]),
])
def test_invalid_requests_are_rejected(chest_catalog, muscle_group, count, types):
    with pytest.raises(ValidationError):
        generate_workout(chest_catalog, muscle_group, count, types)


def test_single_bench_press_scenario(make_exercise, rng):
    bench = make_exercise("Bench Press", sets=3, reps=10)

    drafts = generate_workout([bench], "Chest", 1, ["main"], rng=rng)

    assert len(drafts) == 1
    draft = drafts[0]
    assert draft.exercise_id == bench.id
    assert draft.exercise.name == "Bench Press"
    assert (draft.sets, draft.reps, draft.weight, draft.completed, draft.order) == (3, 10, 0, False, 1)


@pytest.mark.parametrize("seed", range(10))
def test_swap_never_duplicates_an_exercise(chest_catalog, seed):
    rng = random.Random(seed)
    drafts = generate_workout(chest_catalog, "Chest", 2, ["main"], rng=rng)
    slot_id, order = drafts[0].id, drafts[0].order
    before = drafts[0].exercise_id

    new_ex = smart_swap(chest_catalog, drafts, 0, rng=rng)

    assert new_ex.id != before
    assert new_ex.exercise_type == "main"
    assert drafts[0].exercise_id == new_ex.id
    assert (drafts[0].id, drafts[0].order) == (slot_id, order)
    assert len({d.exercise_id for d in drafts}) == 2


def test_swap_copies_defaults_from_the_new_exercise(make_exercise, rng):
    catalog = [make_exercise("Curl", muscle_group="Biceps", exercise_type="isolated", sets=3, reps=12),
               make_exercise("Hammer Curl", muscle_group="Biceps", exercise_type="isolated", sets=4, reps=8)]
    drafts = generate_workout(catalog[:1], "Biceps", 1, ["isolated"], rng=rng)

    smart_swap(catalog, drafts, 0, rng=rng)

    assert (drafts[0].exercise.name, drafts[0].sets, drafts[0].reps) == ("Hammer Curl", 4, 8)


def test_swap_without_candidates_leaves_draft_alone(chest_catalog, rng):
    drafts = generate_workout(chest_catalog, "Chest", 3, ["main"], rng=rng)
    before = [d.exercise_id for d in drafts]

    with pytest.raises(NoReplacementAvailable):
        smart_swap(chest_catalog, drafts, 1, rng=rng)

    assert [d.exercise_id for d in drafts] == before


def test_replacement_pool_matches_group_and_type(chest_catalog, rng):
    drafts = generate_workout(chest_catalog, "Chest", 1, ["auxiliary"], rng=rng)

    pool = replacement_pool(chest_catalog, drafts, 0)

    assert len(pool) == 1
    assert pool[0].exercise_type == "auxiliary"
    assert pool[0].id != drafts[0].exercise_id


@pytest.mark.parametrize("weight, reps, weight_type, expected", [
    (50, 10, "additional", 500),
    (50, 10, "bodyweight", 1200),
    (20, 10, "assisted", 500),
    (80, 10, "assisted", 0),
    (0, 12, "bodyweight", 840),
])
def test_set_volume(weight, reps, weight_type, expected):
    assert set_volume(weight, reps, weight_type) == expected


def test_progress_percent():
    assert progress_percent(0, 2, 4, 2) == 25
    assert progress_percent(1, 0, 3, 2) == 50
    assert progress_percent(0, 0, 3, 0) == 0


def test_progress_can_overshoot_when_extra_sets_are_done():
    assert progress_percent(1, 5, 4, 2) == pytest.approx(112.5)


def test_format_time():
    assert format_time(0) == "00:00"
    assert format_time(75) == "01:15"
    assert format_time(3600) == "60:00"


def test_suggest_workout_name():
    assert suggest_workout_name("Chest", date(2024, 5, 1)) == "Chest workout - 2024-05-01"
