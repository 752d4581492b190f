"""
Tests for the TrainingLog service and the JSONL set store.
"""

import json
from datetime import date, datetime, timedelta, timezone

import pytest

from liftlog.core.models import ExerciseProgressionConfig, InvalidInputError, LoggedSet
from liftlog.core.repository import InMemorySetRepository, RepositoryError
from liftlog.core.service import TrainingLog
from liftlog.io.serializers import ValidationError, parse_sets_string
from liftlog.io.set_store import SetStore, get_default_data_dir

EXERCISE = "bench_press"


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class BrokenRepository:
    """Repository whose storage is unavailable."""

    def load_sets(self, exercise_id):
        raise RepositoryError("disk on fire")

    def save(self, logged_set):
        raise RepositoryError("disk on fire")

    def delete(self, set_id):
        raise RepositoryError("disk on fire")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return SetStore(tmp_path / "data")


@pytest.fixture
def log(store, clock):
    return TrainingLog(store, clock=clock)


def _config(**overrides) -> ExerciseProgressionConfig:
    values = dict(exercise_id=EXERCISE, target_rep_min=8, target_rep_max=12, category="Chest")
    values.update(overrides)
    return ExerciseProgressionConfig(**values)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class TestSetStore:
    def test_missing_file_reads_empty(self, store):
        assert store.exists() is False
        assert store.load_sets(EXERCISE) == []

    def test_save_and_reload(self, store):
        logged = LoggedSet(
            exercise_id=EXERCISE,
            date=datetime(2026, 3, 2, 18, 30, tzinfo=timezone.utc),
            weight=102.5,
            reps=8,
            order=0,
            rpe=8.5,
            rir=2,
            created_at=datetime(2026, 3, 2, 18, 31, tzinfo=timezone.utc),
        )
        store.save(logged)

        assert store.exists()
        assert store.load_sets(EXERCISE) == [logged]
        assert store.load_sets("squat") == []

    def test_save_replaces_same_id(self, store):
        logged = LoggedSet(exercise_id=EXERCISE, date=datetime(2026, 3, 2, 18), weight=100, reps=8)
        store.save(logged)
        logged.reps = 9
        store.save(logged)

        loaded = store.load_sets(EXERCISE)
        assert len(loaded) == 1
        assert loaded[0].reps == 9

    def test_file_is_chronological(self, store):
        later = LoggedSet(exercise_id=EXERCISE, date=datetime(2026, 3, 4, 18), weight=100, reps=8)
        earlier = LoggedSet(exercise_id=EXERCISE, date=datetime(2026, 3, 2, 18), weight=100, reps=8)
        store.save(later)
        store.save(earlier)

        lines = store.sets_path.read_text(encoding="utf-8").splitlines()
        assert [json.loads(line)["id"] for line in lines] == [earlier.id, later.id]

    def test_malformed_line_reported_with_line_number(self, store):
        store.init()
        store.sets_path.write_text("{not json}\n", encoding="utf-8")

        with pytest.raises(ValidationError, match="line 1"):
            store.load_all()
        with pytest.raises(RepositoryError):
            store.load_sets(EXERCISE)

    @pytest.mark.parametrize(
        "fields, message",
        [
            ('"weight":NaN,"reps":8', "weight must be finite"),
            ('"weight":Infinity,"reps":8', "weight must be finite"),
            ('"weight":"100","reps":8', "weight must be a number"),
            ('"weight":100,"reps":8.5', "reps must be a whole number"),
            ('"weight":100,"reps":8,"rpe":NaN', "rpe must be finite"),
        ],
    )
    def test_bad_numbers_rejected(self, store, fields, message):
        store.init()
        line = '{"id":"a","exercise_id":"%s","date":"2026-03-02T18:00:00",%s}\n' % (EXERCISE, fields)
        store.sets_path.write_text(line, encoding="utf-8")

        with pytest.raises(ValidationError, match=message):
            store.load_all()
        with pytest.raises(RepositoryError):
            store.load_sets(EXERCISE)

    def test_non_finite_config_rejected(self, store):
        store.data_dir.mkdir(parents=True)
        store.exercises_path.write_text(
            '{"%s": {"exercise_id": "%s", "increment_value": NaN}}' % (EXERCISE, EXERCISE),
            encoding="utf-8",
        )
        with pytest.raises(ValidationError, match="finite"):
            store.load_configs()

    def test_delete(self, store):
        logged = LoggedSet(exercise_id=EXERCISE, date=datetime(2026, 3, 2, 18), weight=100, reps=8)
        store.save(logged)

        assert store.delete(logged.id) == logged
        assert store.delete(logged.id) is None
        assert store.load_sets(EXERCISE) == []

    def test_config_defaults_and_round_trip(self, store):
        assert store.load_config(EXERCISE) == ExerciseProgressionConfig(exercise_id=EXERCISE)

        config = _config(auto_progress=True, default_weight=100, rest_seconds=120)
        store.save_config(config)
        store.save_config(ExerciseProgressionConfig(exercise_id="squat", unit="lbs"))

        assert store.load_config(EXERCISE) == config
        assert store.load_config("squat").unit == "lbs"

    def test_invalid_config_file(self, store):
        store.data_dir.mkdir(parents=True)
        store.exercises_path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValidationError):
            store.load_configs()

    def test_default_data_dir_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LIFTLOG_HOME", str(tmp_path / "custom"))
        assert get_default_data_dir() == tmp_path / "custom"


# ---------------------------------------------------------------------------
# Service: set operations
# ---------------------------------------------------------------------------


class TestLogSet:
    def test_order_is_dense_per_day(self, log, clock):
        a = log.log_set(EXERCISE, 100, 8)
        b = log.log_set(EXERCISE, 100, 8)
        log.log_set("squat", 140, 5)
        clock.advance(days=2)
        c = log.log_set(EXERCISE, 100, 9)

        assert (a.order, b.order, c.order) == (0, 1, 0)
        assert a.created_at == clock.now - timedelta(days=2)

    def test_back_dated_set(self, log):
        when = datetime(2026, 2, 20, 12, tzinfo=timezone.utc)
        logged = log.log_set(EXERCISE, 95, 10, when=when)
        assert log.get_session(EXERCISE, date(2026, 2, 20)) == [logged]

    def test_invalid_values_rejected(self, log):
        with pytest.raises(InvalidInputError):
            log.log_set(EXERCISE, -10, 8)
        with pytest.raises(InvalidInputError):
            log.log_set(EXERCISE, 100, 8, rpe=12)

    def test_write_failure_propagates(self, clock):
        broken = TrainingLog(BrokenRepository(), clock=clock)
        with pytest.raises(RepositoryError):
            broken.log_set(EXERCISE, 100, 8)


class TestEditSet:
    def test_edit_refreshes_updated_at(self, log, clock):
        logged = log.log_set(EXERCISE, 100, 8, completed=False)
        clock.advance(minutes=3)
        updated = log.edit_set(EXERCISE, logged.id, reps=9, completed=True)

        assert updated.reps == 9
        assert updated.completed is True
        assert updated.updated_at == clock.now
        assert updated.created_at == logged.created_at
        assert log.get_session(EXERCISE, clock.now) == [updated]

    def test_unknown_id(self, log):
        with pytest.raises(InvalidInputError):
            log.edit_set(EXERCISE, "missing", reps=9)

    def test_invalid_edit_rejected(self, log):
        logged = log.log_set(EXERCISE, 100, 8)
        with pytest.raises(InvalidInputError):
            log.edit_set(EXERCISE, logged.id, reps=-1)


class TestDeleteSet:
    def test_remaining_sets_renumbered(self, log, clock):
        a = log.log_set(EXERCISE, 100, 8)
        b = log.log_set(EXERCISE, 100, 7)
        c = log.log_set(EXERCISE, 100, 6)

        assert log.delete_set(b.id) == b

        session = log.get_session(EXERCISE, clock.now)
        assert [s.id for s in session] == [a.id, c.id]
        assert [s.order for s in session] == [0, 1]

    def test_other_days_untouched(self, log, clock):
        first_day = log.log_set(EXERCISE, 100, 8)
        clock.advance(days=1)
        log.log_set(EXERCISE, 100, 8)
        doomed = log.log_set(EXERCISE, 100, 8)

        log.delete_set(doomed.id)
        assert log.get_session(EXERCISE, first_day.date) == [first_day]

    def test_unknown_id(self, log):
        assert log.delete_set("missing") is None

    def test_in_memory_repository(self, clock):
        log = TrainingLog(InMemorySetRepository(), clock=clock)
        a = log.log_set(EXERCISE, 60, 10)
        b = log.log_set(EXERCISE, 60, 10)
        log.delete_set(a.id)
        assert [s.order for s in log.get_session(EXERCISE, clock.now)] == [0]
        assert log.get_session(EXERCISE, clock.now)[0].id == b.id


# ---------------------------------------------------------------------------
# Service: queries
# ---------------------------------------------------------------------------


class TestQueries:
    def test_last_session_excluding_today(self, log, clock):
        log.log_set(EXERCISE, 100, 8)
        clock.advance(days=2)
        log.log_set(EXERCISE, 102.5, 8)
        today = log.today()

        last = log.get_last_session(EXERCISE, excluding=today)
        assert [s.weight for s in last] == [100]
        assert [s.weight for s in log.get_last_session(EXERCISE)] == [102.5]
        assert log.get_last_session("squat") is None

    def test_last_session_before(self, log, clock):
        log.log_set(EXERCISE, 100, 8)
        clock.advance(days=2)
        log.log_set(EXERCISE, 102.5, 8)

        last = log.get_last_session(EXERCISE, before=log.today())
        assert [s.weight for s in last] == [100]

    def test_history_and_records(self, log, clock):
        log.log_set(EXERCISE, 100, 10)
        clock.advance(days=2)
        log.log_set(EXERCISE, 110, 3)
        log.log_set(EXERCISE, 100, 5, completed=False)

        history = log.history(EXERCISE, _config())
        assert [s.top_weight for s in history] == [110, 100]
        assert history[0].total_volume == pytest.approx(330)

        records = log.personal_records(EXERCISE)
        assert records.best_weight == 110
        assert records.best_e1rm == pytest.approx(100 * (1 + 10 / 30))

    def test_sessions_by_date(self, log, clock):
        log.log_set(EXERCISE, 100, 8)
        log.log_set(EXERCISE, 100, 8)
        clock.advance(days=1)
        log.log_set(EXERCISE, 100, 8)

        buckets = log.sessions_by_date(EXERCISE)
        assert sorted(len(v) for v in buckets.values()) == [1, 2]

    def test_volume_and_e1rm_helpers(self, log):
        sets = [log.log_set(EXERCISE, 100, 10), log.log_set(EXERCISE, 100, 8)]
        assert TrainingLog.volume(sets) == pytest.approx(1800)
        assert TrainingLog.e1rm(sets) == pytest.approx(100 * (1 + 10 / 30))

    def test_progression_status(self, log, clock):
        log.log_set(EXERCISE, 100, 12)
        clock.advance(days=2)
        log.log_set(EXERCISE, 100, 12)

        status = log.progression_status(EXERCISE, _config(auto_progress=True))
        assert status.kind == "ready_to_increase_weight"
        assert status.recommended_weight == pytest.approx(102.5)
        assert status.apply_weight_update is True

    def test_live_progression_status(self, log, clock):
        log.log_set(EXERCISE, 100, 12)
        clock.advance(days=2)
        log.log_set(EXERCISE, 100, 12, completed=False)

        config = _config()
        assert log.progression_status(EXERCISE, config).kind == "insufficient_data"

        current = log.get_session(EXERCISE, log.today())
        status = log.live_progression_status(EXERCISE, config, current)
        assert status.kind == "ready_to_increase_weight"


class TestDegradedReads:
    """Storage failures read as 'no data'; writes still fail loudly."""

    def test_broken_repository(self, clock):
        log = TrainingLog(BrokenRepository(), clock=clock)

        assert log.progression_status(EXERCISE, _config()).kind == "insufficient_data"
        assert log.history(EXERCISE) == []
        assert log.get_session(EXERCISE, clock.now) == []
        assert log.get_last_session(EXERCISE) is None

    def test_corrupt_file(self, store, log, caplog):
        store.init()
        store.sets_path.write_text("garbage\n", encoding="utf-8")

        with caplog.at_level("WARNING"):
            status = log.progression_status(EXERCISE, _config())

        assert status.kind == "insufficient_data"
        assert "Could not load sets" in caplog.text
        with pytest.raises(RepositoryError):
            log.log_set(EXERCISE, 100, 8)


# ---------------------------------------------------------------------------
# Sets string parsing
# ---------------------------------------------------------------------------


class TestParseSetsString:
    def test_weight_x_reps(self):
        assert parse_sets_string("100x8, 95X10") == [(100.0, 8), (95.0, 10)]

    def test_sets_multiplier(self):
        assert parse_sets_string("140x5x3") == [(140.0, 5)] * 3

    def test_reps_at_weight_and_bare_reps(self):
        assert parse_sets_string("8@102.5, 12") == [(102.5, 8), (0.0, 12)]

    def test_unicode_times(self):
        assert parse_sets_string("60 × 10") == [(60.0, 10)]

    @pytest.mark.parametrize("bad", ["", "  ", "abc", "100x", "100x8x0"])
    def test_invalid(self, bad):
        with pytest.raises(ValidationError):
            parse_sets_string(bad)
