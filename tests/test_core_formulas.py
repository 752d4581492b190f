"""
Formula-focused unit tests for the metric and grouping layer.

Values are hand-computed so the tests double as worked examples:
- volume = Σ weight × reps over completed sets
- Epley 1RM = weight × (1 + reps/30), a single rep is its own 1RM
- sessions are (exercise, calendar day) buckets in a fixed timezone
"""

from datetime import date, datetime, timedelta, timezone
from itertools import permutations

import pytest

from liftlog.core.config import EPLEY_DIVISOR, default_increment
from liftlog.core.grouping import SessionGrouping
from liftlog.core.metrics import (
    best_e1rm_set,
    epley_1rm,
    estimated_one_rep_max,
    format_sets_summary,
    personal_records,
    summarize_session,
    top_set,
    total_volume,
    typical_reps,
    volume_change,
    working_sets,
)
from liftlog.core.models import ExerciseProgressionConfig, InvalidInputError, LoggedSet

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

DAY = date(2026, 3, 2)


def _set(
    weight: float,
    reps: int,
    order: int = 0,
    day: date = DAY,
    completed: bool = True,
    exercise_id: str = "bench_press",
    hour: int = 12,
) -> LoggedSet:
    return LoggedSet(
        exercise_id=exercise_id,
        date=datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc),
        weight=weight,
        reps=reps,
        order=order,
        completed=completed,
    )


def _sets(*pairs: tuple[float, int], day: date = DAY) -> list[LoggedSet]:
    return [_set(w, r, order=i, day=day) for i, (w, r) in enumerate(pairs)]


# ---------------------------------------------------------------------------
# Volume
# ---------------------------------------------------------------------------


class TestVolume:
    """volume = Σ weight × reps over completed sets."""

    def test_sum_of_completed_sets(self):
        sets = _sets((100, 8), (100, 8), (90, 10))
        assert total_volume(sets) == pytest.approx(800 + 800 + 900)

    def test_pending_sets_excluded(self):
        sets = [_set(100, 8, order=0), _set(100, 8, order=1, completed=False)]
        assert total_volume(sets) == pytest.approx(800)

    def test_empty_is_zero(self):
        assert total_volume([]) == 0.0

    def test_zero_rep_set_contributes_nothing(self):
        assert total_volume(_sets((100, 0), (50, 10))) == pytest.approx(500)

    def test_order_does_not_matter(self):
        sets = _sets((100, 8), (90, 10), (80, 12))
        assert total_volume(sets) == total_volume(list(reversed(sets)))


# ---------------------------------------------------------------------------
# Estimated 1RM
# ---------------------------------------------------------------------------


class TestEpley:
    """1RM = weight × (1 + reps/30)."""

    def test_formula(self):
        assert epley_1rm(100, 10) == pytest.approx(100 * (1 + 10 / EPLEY_DIVISOR))

    def test_single_rep_is_the_weight(self):
        assert epley_1rm(100, 1) == 100.0

    def test_zero_reps_gives_no_estimate(self):
        assert epley_1rm(100, 0) is None

    def test_negative_inputs_rejected(self):
        with pytest.raises(InvalidInputError):
            epley_1rm(-5, 5)
        with pytest.raises(InvalidInputError):
            epley_1rm(100, -1)

    def test_more_reps_never_lower(self):
        estimates = [epley_1rm(100, r) for r in range(1, 20)]
        assert estimates == sorted(estimates)

    def test_at_least_the_lifted_weight(self):
        for reps in range(1, 15):
            assert epley_1rm(80, reps) >= 80


class TestEstimatedOneRepMax:
    """Best single-set estimate across a set list."""

    def test_best_set_wins(self):
        # 100 × 5 → 116.7, 110 × 3 → 121.0
        sets = _sets((100, 5), (110, 3))
        assert estimated_one_rep_max(sets) == pytest.approx(121.0)

    def test_tie_goes_to_heavier_set(self):
        # 80 × 15 → 80 × 1.5 = 120, 120 × 1 → 120
        sets = _sets((80, 15), (120, 1))
        assert best_e1rm_set(sets).weight == 120

    def test_empty_and_all_zero_reps(self):
        assert estimated_one_rep_max([]) is None
        assert estimated_one_rep_max(_sets((100, 0), (90, 0))) is None

    def test_order_does_not_matter(self):
        # 80 × 15 and 120 × 1 tie at 120; 100 × 5 → 116.7, 60 × 0 has no estimate
        sets = _sets((80, 15), (120, 1), (100, 5), (60, 0))
        for ordering in permutations(sets):
            assert estimated_one_rep_max(ordering) == pytest.approx(120.0)
            assert best_e1rm_set(ordering).weight == 120

    def test_nan_weight_never_reaches_the_estimate(self):
        with pytest.raises(InvalidInputError):
            _sets((float("nan"), 8), (100, 8))
        with pytest.raises(InvalidInputError):
            epley_1rm(float("nan"), 8)


# ---------------------------------------------------------------------------
# Session summaries
# ---------------------------------------------------------------------------


class TestSessionHelpers:
    """Top set, typical reps and working-set selection."""

    def test_top_set_heaviest_then_most_reps(self):
        sets = _sets((100, 8), (100, 10), (90, 12))
        best = top_set(sets)
        assert (best.weight, best.reps) == (100, 10)

    def test_top_set_empty(self):
        assert top_set([]) is None

    def test_typical_reps_mode(self):
        assert typical_reps(_sets((100, 8), (100, 8), (100, 6))) == 8

    def test_typical_reps_tie_goes_higher(self):
        assert typical_reps(_sets((100, 8), (90, 10))) == 10

    def test_working_sets_drop_warmup(self):
        sets = _sets((60, 10), (100, 8), (100, 8))
        assert [s.weight for s in working_sets(sets, use_warmup_set=True)] == [100, 100]

    def test_working_sets_count_limit(self):
        sets = _sets((100, 8), (100, 8), (100, 6))
        assert len(working_sets(sets, progression_set_count=2)) == 2
        assert len(working_sets(sets, progression_set_count=None)) == 3

    def test_summary_uses_working_sets(self):
        config = ExerciseProgressionConfig(
            exercise_id="bench_press",
            target_rep_min=8,
            target_rep_max=12,
            use_warmup_set=True,
            progression_set_count=2,
        )
        sets = _sets((60, 10), (100, 8), (100, 8), (100, 6))
        summary = summarize_session(DAY, sets, config)

        assert len(summary.sets) == 4
        assert [s.reps for s in summary.working_sets] == [8, 8]
        assert summary.total_volume == pytest.approx(1600)
        assert (summary.top_weight, summary.top_reps) == (100, 8)
        assert summary.hit_target_reps is True

    def test_summary_misses_target(self):
        config = ExerciseProgressionConfig(
            exercise_id="bench_press", target_rep_min=8, target_rep_max=12
        )
        summary = summarize_session(DAY, _sets((100, 8), (100, 7)), config)
        assert summary.hit_target_reps is False

    def test_volume_change(self):
        assert volume_change(1100, 1000) == pytest.approx(0.1)
        assert volume_change(500, 0) is None

    def test_format_sets_summary_groups_weights(self):
        sets = _sets((100, 8), (100, 8), (90, 10))
        assert format_sets_summary(sets) == "100 kg × 8/8, 90 kg × 10"

    def test_format_sets_summary_empty(self):
        assert format_sets_summary([]) == "No sets"


class TestPersonalRecords:
    """Best weight / E1RM / volume across sessions."""

    def test_records_and_dates(self):
        d1, d2, d3 = DAY, DAY + timedelta(days=2), DAY + timedelta(days=4)
        sessions = [
            summarize_session(d1, _sets((100, 10), (100, 10), day=d1)),
            summarize_session(d2, _sets((110, 3), day=d2)),
            summarize_session(d3, _sets((105, 8), (105, 8), (105, 8), day=d3)),
        ]
        records = personal_records(sessions)

        assert records.best_weight == 110
        assert records.best_weight_date == d2
        # 100 × 10 → 133.3 beats 110 × 3 → 121 and 105 × 8 → 133.0
        assert records.best_e1rm == pytest.approx(100 * (1 + 10 / 30))
        assert records.best_e1rm_date == d1
        assert records.best_volume == pytest.approx(3 * 105 * 8)
        assert records.best_volume_date == d3

    def test_earlier_session_keeps_tied_record(self):
        d1, d2 = DAY, DAY + timedelta(days=1)
        sessions = [
            summarize_session(d2, _sets((100, 5), day=d2)),
            summarize_session(d1, _sets((100, 5), day=d1)),
        ]
        assert personal_records(sessions).best_weight_date == d1

    def test_no_sessions(self):
        records = personal_records([])
        assert records.best_weight is None
        assert records.best_e1rm is None


# ---------------------------------------------------------------------------
# Default increments
# ---------------------------------------------------------------------------


class TestDefaultIncrement:
    """Upper-body lifts progress in smaller steps."""

    @pytest.mark.parametrize("unit,category,expected", [
        ("kg", "Chest", 2.5),
        ("kg", "Legs", 5.0),
        ("kg", None, 5.0),
        ("lbs", "Back", 5.0),
        ("LBS", "Glutes", 10.0),
    ])
    def test_increment(self, unit, category, expected):
        assert default_increment(unit, category) == expected


# ---------------------------------------------------------------------------
# Session grouping
# ---------------------------------------------------------------------------


class TestSessionGrouping:
    """Sets → (exercise, calendar day) buckets."""

    def test_partition_by_day(self):
        d2 = DAY + timedelta(days=2)
        sets = [
            _set(100, 8, order=1),
            _set(100, 8, order=0),
            _set(105, 6, order=0, day=d2),
            _set(60, 12, order=0, exercise_id="squat"),
        ]
        buckets = SessionGrouping().sessions_by_date("bench_press", sets)

        assert set(buckets) == {DAY, d2}
        assert [s.order for s in buckets[DAY]] == [0, 1]
        assert sum(len(v) for v in buckets.values()) == 3

    def test_timezone_moves_day_boundary(self):
        late = _set(100, 8, hour=23)
        plus_two = SessionGrouping(tz=timezone(timedelta(hours=2)))
        assert SessionGrouping().calendar_day(late.date) == DAY
        assert plus_two.calendar_day(late.date) == DAY + timedelta(days=1)

    def test_naive_datetime_used_as_is(self):
        grouping = SessionGrouping(tz=timezone(timedelta(hours=-8)))
        assert grouping.calendar_day(datetime(2026, 3, 2, 1, 0)) == DAY

    def test_calendar_day_rejects_other_types(self):
        with pytest.raises(InvalidInputError):
            SessionGrouping().calendar_day("2026-03-02")

    def test_history_newest_first(self):
        days = [DAY + timedelta(days=i) for i in (0, 2, 4)]
        sets = [_set(100, 8, day=d) for d in days]
        history = SessionGrouping().history("bench_press", sets)

        assert [d for d, _ in history] == list(reversed(days))
        assert [d for d, _ in SessionGrouping().history("bench_press", sets, limit=2)] == [
            days[2], days[1]
        ]

    def test_latest_session_before(self):
        d1, d3, d5 = DAY, DAY + timedelta(days=2), DAY + timedelta(days=4)
        sets = [_set(100, 8, day=d) for d in (d1, d3, d5)]
        grouping = SessionGrouping()

        found = grouping.latest_session_before("bench_press", sets, d5)
        assert grouping.calendar_day(found[0].date) == d3

        found = grouping.latest_session_before("bench_press", sets, d5, excluding=d3)
        assert grouping.calendar_day(found[0].date) == d1

        # excluding the target day itself changes nothing
        found = grouping.latest_session_before("bench_press", sets, d5, excluding=d5)
        assert grouping.calendar_day(found[0].date) == d3

        assert grouping.latest_session_before("bench_press", sets, d1) is None

    def test_sets_for_day(self):
        sets = [_set(100, 8, order=1), _set(100, 10, order=0)]
        grouping = SessionGrouping()

        assert [s.reps for s in grouping.sets_for_day("bench_press", sets, DAY)] == [10, 8]
        assert grouping.sets_for_day("bench_press", sets, DAY + timedelta(days=1)) == []


# ---------------------------------------------------------------------------
# Model validation
# ---------------------------------------------------------------------------


class TestModelValidation:
    """Out-of-range values are rejected at construction."""

    def test_negative_weight(self):
        with pytest.raises(InvalidInputError):
            _set(-1, 5)

    @pytest.mark.parametrize("weight", [float("nan"), float("inf"), "100", None, True])
    def test_weight_must_be_a_finite_number(self, weight):
        with pytest.raises(InvalidInputError):
            _set(weight, 5)

    @pytest.mark.parametrize("reps", [8.5, 8.0, "8", float("nan")])
    def test_reps_must_be_whole(self, reps):
        with pytest.raises(InvalidInputError):
            _set(100, reps)

    def test_rpe_nan_and_fractional_rir(self):
        with pytest.raises(InvalidInputError):
            LoggedSet(exercise_id="x", date=datetime(2026, 3, 2), weight=10, reps=5, rpe=float("nan"))
        with pytest.raises(InvalidInputError):
            LoggedSet(exercise_id="x", date=datetime(2026, 3, 2), weight=10, reps=5, rir=1.5)

    def test_integer_weight_accepted(self):
        assert _set(100, 5).volume == 500

    def test_rpe_out_of_range(self):
        with pytest.raises(InvalidInputError):
            LoggedSet(exercise_id="x", date=datetime(2026, 3, 2), weight=10, reps=5, rpe=11)

    def test_inverted_rep_range(self):
        with pytest.raises(InvalidInputError):
            ExerciseProgressionConfig(exercise_id="x", target_rep_min=12, target_rep_max=8)

    def test_unknown_unit(self):
        with pytest.raises(InvalidInputError):
            ExerciseProgressionConfig(exercise_id="x", unit="stone")

    def test_non_finite_increment(self):
        with pytest.raises(InvalidInputError):
            ExerciseProgressionConfig(exercise_id="x", increment_value=float("nan"))

    def test_fractional_rep_range(self):
        with pytest.raises(InvalidInputError):
            ExerciseProgressionConfig(exercise_id="x", target_rep_min=7.5, target_rep_max=12)
