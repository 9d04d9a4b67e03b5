"""
Shared fixtures: a throwaway SQLite database per test and a clock the
tests move by hand.
"""

from datetime import datetime, timedelta, timezone

import pytest

from database import build_engine, build_session_factory, init_schema
from services import ProgressTracker, RestTimer, StorageService, WorkoutSessionManager
from services.models import TemplateExercise, UserProfile, WorkoutTemplate


class FakeClock:
    def __init__(self, start=datetime(2024, 3, 4, 18, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'tracker.db'}")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def storage(engine):
    return StorageService(build_session_factory(engine))


@pytest.fixture
def profile():
    return UserProfile(bodyweight=180)


@pytest.fixture
def tracker(storage, profile, clock):
    return ProgressTracker(storage, profile, clock=clock)


@pytest.fixture
def rest_timer(storage, clock):
    return RestTimer(storage, clock=clock)


@pytest.fixture
def manager(storage, tracker, clock):
    manager = WorkoutSessionManager(storage, tracker, clock=clock)
    yield manager
    manager.close()


@pytest.fixture
def template():
    return WorkoutTemplate(
        id="push-day",
        title="Push Day",
        exercises=[
            TemplateExercise("bench-press-barbell", sets=3, reps="8-12"),
            TemplateExercise("push-ups", sets=2, reps="15", bodyweight=True),
        ],
    )


@pytest.fixture
def bench_template():
    return WorkoutTemplate(
        id="bench-only",
        title="Bench",
        exercises=[TemplateExercise("bench-press-barbell", sets=3, reps="8")],
    )
