"""Config loading, defaults, validation, and deep merge."""

from __future__ import annotations

import copy
import logging
from pathlib import Path

from leakgrade.rules import MAX_FINDINGS
from leakgrade.scoring import GRADE_ORDER, WEIGHTINGS, Weighting
from leakgrade.utils import deep_merge, load_json, save_json

logger = logging.getLogger(__name__)

CONFIG_DIR = ".leakgrade"
CONFIG_FILE = "config.json"

DEFAULT_CONFIG: dict = {
    "version": 1,
    "weighting": "light",
    "fail_grade": "D",
    "max_findings": MAX_FINDINGS,
    "entropy": {"enabled": True},
    "ci": {
        "path": ".env.example",
        "comment_on_pr": True,
    },
}


def get_config_path(start_dir: Path | None = None) -> Path:
    """Find .leakgrade/config.json by walking up from start_dir."""
    search = start_dir or Path.cwd()
    for d in [search, *search.parents]:
        candidate = d / CONFIG_DIR / CONFIG_FILE
        if candidate.exists():
            return candidate
    return search / CONFIG_DIR / CONFIG_FILE


def load_config(start_dir: Path | None = None) -> dict:
    """Load config from .leakgrade/config.json, merged with defaults."""
    config_path = get_config_path(start_dir)
    if config_path.exists():
        user_config = load_json(config_path)
        if not user_config:
            logger.warning(
                "Config file exists but could not be loaded (corrupt?): %s "
                "Using defaults.", config_path
            )
        return deep_merge(copy.deepcopy(DEFAULT_CONFIG), user_config)
    return copy.deepcopy(DEFAULT_CONFIG)


def save_config(config: dict, target_dir: Path | None = None) -> Path:
    """Save config to .leakgrade/config.json."""
    target = target_dir or Path.cwd()
    config_path = target / CONFIG_DIR / CONFIG_FILE
    save_json(config_path, config)
    return config_path


def validate_config(config: dict) -> list[str]:
    """Validate config, returning list of error messages (empty if valid)."""
    errors = []
    weighting = config.get("weighting", "light")
    if weighting not in WEIGHTINGS:
        errors.append(
            f"Unknown weighting '{weighting}' (expected one of: {', '.join(WEIGHTINGS)})"
        )
    fail_grade = config.get("fail_grade", "D")
    if not isinstance(fail_grade, str) or fail_grade.upper() not in GRADE_ORDER:
        errors.append(f"Invalid fail_grade '{fail_grade}' (expected A, B, C, D or F)")
    max_findings = config.get("max_findings", MAX_FINDINGS)
    if (
        not isinstance(max_findings, int)
        or isinstance(max_findings, bool)
        or max_findings < 1
    ):
        errors.append(f"max_findings must be a positive integer, got {max_findings!r}")
    if not isinstance(config.get("entropy", {}), dict):
        errors.append("'entropy' must be an object")
    ci_config = config.get("ci", {})
    if not isinstance(ci_config, dict):
        errors.append("'ci' must be an object")
    elif not isinstance(ci_config.get("path", ".env.example"), str):
        errors.append("'ci.path' must be a string")
    return errors


def get_weighting(config: dict) -> Weighting:
    """Resolve the configured weighting name, falling back to light."""
    return WEIGHTINGS.get(config.get("weighting", "light"), WEIGHTINGS["light"])
