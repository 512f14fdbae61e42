"""
YAML → typed policy loader.

Loads the tunable progression constants from policy.yaml (bundled with the
package) and optionally merges user overrides from
~/.overload-planner/policy.yaml.

Usage:
    from overload_planner.core.engine.config_loader import load_policy
    policy = load_policy()
    policy.effort_tolerance  # 0.5 unless overridden

If the user override file exists but cannot be parsed, a warning is issued
and the file is ignored.  A broken bundled file is a packaging error and
raises.
"""

from __future__ import annotations

import logging
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import DEFAULT_POLICY, ProgressionPolicy

logger = logging.getLogger(__name__)

USER_DIR_NAME = ".overload-planner"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; a file holding anything else yields {}."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def load_user_yaml_file(path: Path) -> dict[str, Any]:
    """Like load_yaml_file, but a broken user file only warns."""
    try:
        return load_yaml_file(path)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(
            f"overload-planner: ignoring unreadable override {path} ({exc})",
            stacklevel=2,
        )
        return {}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def get_user_dir() -> Path:
    """Return ~/.overload-planner (may not exist)."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / USER_DIR_NAME


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_policy_path() -> Path:
    """Path of the policy.yaml shipped inside the package."""
    return Path(__file__).parent.parent.parent / "policy.yaml"


def get_user_policy_path() -> Path | None:
    """Return ~/.overload-planner/policy.yaml if it exists, else None."""
    p = get_user_dir() / "policy.yaml"
    return p if p.exists() else None


def load_policy_config(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge raw policy configuration.

    Load order (later overrides earlier):
    1. Bundled src/overload_planner/policy.yaml
    2. User override (``user_path`` or ~/.overload-planner/policy.yaml)

    Returns:
        Merged dict of config sections.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_policy_path()
    if bundled.exists():
        config = deep_merge(config, load_yaml_file(bundled))

    user = user_path if user_path is not None else get_user_policy_path()
    if user is not None and user.exists():
        user_cfg = load_user_yaml_file(user)
        if user_cfg:
            logger.debug("Merging policy override from %s", user)
            config = deep_merge(config, user_cfg)

    return config


def policy_from_dict(config: dict[str, Any]) -> ProgressionPolicy:
    """
    Build a ProgressionPolicy from merged config sections.

    Missing keys keep their defaults; unknown keys are ignored.

    Raises:
        ValueError: If a value has the wrong type or violates a policy bound
    """
    evaluation = config.get("evaluation", {}) or {}
    loads = config.get("loads", {}) or {}
    deload = config.get("deload", {}) or {}
    history = config.get("history", {}) or {}

    increments = dict(DEFAULT_POLICY.load_increments)
    for category, value in (loads.get("increments_kg", {}) or {}).items():
        increments[str(category)] = float(value)

    return ProgressionPolicy(
        effort_tolerance=float(evaluation.get("effort_tolerance", DEFAULT_POLICY.effort_tolerance)),
        stall_streak=int(evaluation.get("stall_streak", DEFAULT_POLICY.stall_streak)),
        load_increments=increments,
        deload_load_factor=float(loads.get("deload_factor", DEFAULT_POLICY.deload_load_factor)),
        struggle_load_factor=float(loads.get("struggle_factor", DEFAULT_POLICY.struggle_load_factor)),
        deload_rep_factor=float(deload.get("rep_factor", DEFAULT_POLICY.deload_rep_factor)),
        deload_rep_floor=int(deload.get("rep_floor", DEFAULT_POLICY.deload_rep_floor)),
        history_session_window=int(history.get("session_window", DEFAULT_POLICY.history_session_window)),
        exposure_window=int(history.get("exposure_window", DEFAULT_POLICY.exposure_window)),
    )


def load_policy(user_path: Path | None = None) -> ProgressionPolicy:
    """Load the effective ProgressionPolicy (bundled + user override)."""
    return policy_from_dict(load_policy_config(user_path))
