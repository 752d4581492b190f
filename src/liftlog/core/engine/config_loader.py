"""
YAML → typed settings loader.

Loads tunables from settings.yaml (bundled with the package) and
optionally merges user overrides from ~/.liftlog/settings.yaml.

Usage:
    from liftlog.core.engine.config_loader import load_thresholds
    thresholds = load_thresholds()
    thresholds.decline_tolerance   # 0.10 unless overridden

Missing keys fall back to the Python defaults in config.py.  A user
override file that cannot be parsed is logged and ignored.
"""

from __future__ import annotations

import importlib.resources
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..config import ProgressionThresholds, TimerSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} if it is unreadable or not a mapping."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring settings file %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled settings.yaml, or None if not found."""
    ref = importlib.resources.files("liftlog").joinpath("settings.yaml")
    if not ref.is_file():
        return None
    with importlib.resources.as_file(ref) as p:
        return p


def get_user_yaml_path() -> Path | None:
    """Return ~/.liftlog/settings.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".liftlog" / "settings.yaml"
    return p if p.exists() else None


def load_settings(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge settings from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/liftlog/settings.yaml
    2. User override (``user_path`` or ~/.liftlog/settings.yaml)

    Returns:
        Merged dict of settings sections.  Empty dict if no YAML available.
    """
    settings: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        settings = _deep_merge(settings, _load_yaml_file(bundled))

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None and user.exists():
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            settings = _deep_merge(settings, user_cfg)

    return settings


def load_thresholds(settings: dict[str, Any] | None = None) -> ProgressionThresholds:
    """
    Build ProgressionThresholds from the ``progression`` section.

    Raises:
        InvalidInputError: If a configured value is out of range
    """
    if settings is None:
        settings = load_settings()
    section = settings.get("progression") or {}
    defaults = ProgressionThresholds()
    return ProgressionThresholds(
        decline_tolerance=float(section.get("decline_tolerance", defaults.decline_tolerance)),
        weight_tolerance=float(section.get("weight_tolerance", defaults.weight_tolerance)),
        sessions_to_analyze=int(section.get("sessions_to_analyze", defaults.sessions_to_analyze)),
        consecutive_target_sessions=int(
            section.get("consecutive_target_sessions", defaults.consecutive_target_sessions)
        ),
    )


def load_timer_settings(settings: dict[str, Any] | None = None) -> TimerSettings:
    """
    Build TimerSettings from the ``rest_timer`` section.

    Raises:
        InvalidInputError: If a configured value is out of range
    """
    if settings is None:
        settings = load_settings()
    section = settings.get("rest_timer") or {}
    defaults = TimerSettings()
    return TimerSettings(
        poll_interval_seconds=float(
            section.get("poll_interval_seconds", defaults.poll_interval_seconds)
        ),
        completion_grace_seconds=float(
            section.get("completion_grace_seconds", defaults.completion_grace_seconds)
        ),
        default_rest_seconds=int(
            section.get("default_rest_seconds", defaults.default_rest_seconds)
        ),
    )
