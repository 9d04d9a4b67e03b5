from datetime import datetime, timedelta, timezone
import threading

import pytest
from sqlalchemy.exc import OperationalError

from services import OrderedWriter, PersistenceFailure
from services.models import (
    ExerciseProgress,
    ExerciseSession,
    HistoricalLift,
    RestTimerState,
    SetRecord,
    UserProfile,
    WeightUnit,
    WorkoutSession,
)


def make_session(started_at):
    return WorkoutSession(
        id="session_1",
        workout_id="legs",
        title="Legs",
        exercises=[
            ExerciseSession(
                exercise_id="squat-barbell",
                target_sets=3,
                target_reps="5",
                completed_sets=[
                    SetRecord(1, 225, 5, WeightUnit.LBS, True, started_at + timedelta(minutes=3)),
                ],
            )
        ],
        started_at=started_at,
    )


def test_active_session_round_trip_keeps_exact_timestamps(storage):
    started = datetime(2024, 3, 4, 18, 0, 12, 345678, tzinfo=timezone.utc)
    session = make_session(started)

    storage.save_active_session(session)
    loaded = storage.load_active_session()

    assert loaded == session
    assert loaded.started_at == started
    assert loaded.exercises[0].completed_sets[0].rest_started_at == started + timedelta(minutes=3)


def test_clear_active_session(storage):
    storage.save_active_session(make_session(datetime.now(timezone.utc)))
    storage.clear_active_session()
    assert storage.load_active_session() is None


def test_completed_session_is_never_loaded_as_active(storage):
    session = make_session(datetime.now(timezone.utc))
    session.is_completed = True
    storage.save_active_session(session)
    assert storage.load_active_session() is None


def test_save_overwrites_single_slot(storage):
    storage.save_rest_timer(RestTimerState(datetime(2024, 1, 1, tzinfo=timezone.utc), 60))
    storage.save_rest_timer(RestTimerState(datetime(2024, 1, 2, tzinfo=timezone.utc), 120))
    assert storage.load_rest_timer().duration_seconds == 120


def test_lift_history_is_per_exercise_and_chronological(storage):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    storage.append_historical_lift(HistoricalLift("s2", "squat-barbell", 235, 5, recorded_at=base + timedelta(days=7)))
    storage.append_historical_lift(HistoricalLift("s1", "squat-barbell", 225, 5, recorded_at=base))
    storage.append_historical_lift(HistoricalLift("s1", "deadlift-barbell", 315, 3, recorded_at=base))

    lifts = storage.load_lift_history("squat-barbell")

    assert [l.weight for l in lifts] == [225, 235]
    assert lifts[0].recorded_at == base


def test_profile_and_progress_round_trip(storage):
    assert storage.load_user_profile() is None
    profile = UserProfile(bodyweight=82, bodyweight_unit=WeightUnit.KG, age=34)
    storage.save_user_profile(profile)
    assert storage.load_user_profile() == profile

    progress = ExerciseProgress("squat-barbell", 262.5, 46, datetime(2024, 1, 1, tzinfo=timezone.utc), "C")
    storage.save_exercise_progress(progress)
    assert storage.load_exercise_progress("squat-barbell") == progress
    assert storage.load_exercise_progress("deadlift-barbell") is None


def test_transaction_rolls_back_everything(storage):
    lift = HistoricalLift("s1", "squat-barbell", 225, 5)

    with pytest.raises(RuntimeError):
        with storage.transaction():
            storage.append_historical_lift(lift)
            storage.save_user_profile(UserProfile(bodyweight=200))
            raise RuntimeError("boom")

    assert storage.load_lift_history("squat-barbell") == []
    assert storage.load_user_profile() is None


def test_database_errors_surface_as_persistence_failure(storage, engine):
    with engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE kv_store")

    with pytest.raises(PersistenceFailure) as exc_info:
        storage.load_user_profile()
    assert isinstance(exc_info.value.__cause__, OperationalError)


def test_ordered_writer_runs_writes_in_submission_order():
    writer = OrderedWriter()
    seen = []
    gate = threading.Event()

    writer.submit(gate.wait, 5)
    for i in range(20):
        writer.submit(seen.append, i)
    gate.set()
    writer.flush()
    writer.shutdown()

    assert seen == list(range(20))


def test_ordered_writer_reports_failures():
    errors = []
    writer = OrderedWriter(on_error=errors.append)

    def fail():
        raise PersistenceFailure("disk full")

    writer.submit(fail)
    writer.flush()
    writer.shutdown()

    assert len(errors) == 1
    assert isinstance(errors[0], PersistenceFailure)
