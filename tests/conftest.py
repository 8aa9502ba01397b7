import random
from datetime import datetime, timedelta, timezone

import pytest

from gateway import Auth, InMemoryGateway
from models import EXERCISES, Exercise

USER_ID = "athlete"


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def gateway():
    return InMemoryGateway(Auth(USER_ID))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def make_exercise(gateway):
    """Factory that builds an Exercise and stores it in the gateway."""
    counter = {"n": 0}

    def _make(name, muscle_group="Chest", exercise_type="main", weight_type="additional",
              sets=3, reps=10, user_id=USER_ID, store=True):
        counter["n"] += 1
        exercise = Exercise(
            id=f"ex_{counter['n']}",
            user_id=user_id,
            name=name,
            muscle_group=muscle_group,
            weight_type=weight_type,
            exercise_type=exercise_type,
            sets=sets,
            reps=reps,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=counter["n"]),
        )
        if store:
            gateway.create(EXERCISES, exercise.to_record())
        return exercise

    return _make


@pytest.fixture
def chest_catalog(make_exercise):
    return [
        make_exercise("Bench Press", exercise_type="main"),
        make_exercise("Incline Press", exercise_type="main"),
        make_exercise("Dips", exercise_type="main", weight_type="bodyweight"),
        make_exercise("Dumbbell Press", exercise_type="auxiliary"),
        make_exercise("Machine Press", exercise_type="auxiliary"),
        make_exercise("Cable Fly", exercise_type="isolated"),
        make_exercise("Pec Deck", exercise_type="isolated"),
        make_exercise("Deadlift", muscle_group="Back", exercise_type="main"),
    ]
