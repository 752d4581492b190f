"""
Tests for YAML settings loading and user overrides.
"""

import pytest

from liftlog.core.config import ProgressionThresholds, TimerSettings
from liftlog.core.engine.config_loader import (
    get_bundled_yaml_path,
    load_settings,
    load_thresholds,
    load_timer_settings,
)
from liftlog.core.models import InvalidInputError


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep a real ~/.liftlog/settings.yaml out of the tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


class TestBundledSettings:
    def test_bundled_file_present(self):
        path = get_bundled_yaml_path()
        assert path is not None
        assert path.name == "settings.yaml"

    def test_bundled_values_match_defaults(self):
        settings = load_settings()
        assert load_thresholds(settings) == ProgressionThresholds()
        assert load_timer_settings(settings) == TimerSettings()


class TestUserOverride:
    def test_deep_merge(self, tmp_path):
        user = tmp_path / "settings.yaml"
        user.write_text("progression:\n  decline_tolerance: 0.2\n", encoding="utf-8")

        thresholds = load_thresholds(load_settings(user))
        assert thresholds.decline_tolerance == pytest.approx(0.2)
        assert thresholds.sessions_to_analyze == 4

    def test_home_override_picked_up(self, tmp_path):
        user_dir = tmp_path / "home" / ".liftlog"
        user_dir.mkdir(parents=True)
        (user_dir / "settings.yaml").write_text(
            "rest_timer:\n  default_rest_seconds: 150\n", encoding="utf-8"
        )
        assert load_timer_settings().default_rest_seconds == 150

    def test_unparseable_override_ignored(self, tmp_path, caplog):
        user = tmp_path / "settings.yaml"
        user.write_text("progression: [unclosed\n", encoding="utf-8")

        with caplog.at_level("WARNING"):
            settings = load_settings(user)

        assert load_thresholds(settings) == ProgressionThresholds()
        assert "Ignoring settings file" in caplog.text

    def test_missing_sections_use_defaults(self):
        assert load_thresholds({}) == ProgressionThresholds()
        assert load_timer_settings({"rest_timer": None}) == TimerSettings()


class TestValidation:
    def test_out_of_range_tolerance(self):
        with pytest.raises(InvalidInputError):
            load_thresholds({"progression": {"decline_tolerance": 1.5}})

    def test_streak_longer_than_window(self):
        with pytest.raises(InvalidInputError):
            load_thresholds({"progression": {"sessions_to_analyze": 3, "consecutive_target_sessions": 5}})

    def test_poll_interval_too_slow(self):
        with pytest.raises(InvalidInputError):
            load_timer_settings({"rest_timer": {"poll_interval_seconds": 1.0}})
