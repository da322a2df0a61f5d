"""
Configuration for matching and verification.

Thresholds, weights and the grading scale are read from environment
variables (optionally via a .env file) so alternative policies can be
tested without code changes.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .env import load_env


@dataclass(frozen=True)
class MatchingConfig:
    """Identity matching policy."""

    threshold: float = 0.7
    name_weight: float = 0.5
    dob_weight: float = 0.5

    def __post_init__(self):
        _check_unit("threshold", self.threshold)
        if self.name_weight < 0 or self.dob_weight < 0:
            raise ValueError("Matching weights must be non-negative")
        if self.name_weight + self.dob_weight == 0:
            raise ValueError("At least one matching weight must be positive")


@dataclass(frozen=True)
class VerificationConfig:
    """Per-field classification policy."""

    fully_verified_threshold: float = 0.9
    partially_verified_threshold: float = 0.6
    grade_scale_max: float = 20.0

    def __post_init__(self):
        _check_unit("fully_verified_threshold", self.fully_verified_threshold)
        _check_unit("partially_verified_threshold", self.partially_verified_threshold)
        if self.partially_verified_threshold > self.fully_verified_threshold:
            raise ValueError(
                "partially_verified_threshold must not exceed fully_verified_threshold"
            )
        if self.grade_scale_max <= 0:
            raise ValueError("grade_scale_max must be positive")


@dataclass(frozen=True)
class Settings:
    db_path: Path = Path("data/rostercheck.db")
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    verification: VerificationConfig = field(default_factory=VerificationConfig)


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value}")


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {key} must be a number, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from environment variables.

    Args:
        env: Mapping to read from (default: os.environ after loading .env)

    Returns:
        Settings instance

    Raises:
        ValueError: If a value is not a number or violates a policy bound
    """
    if env is None:
        load_env()
        env = os.environ

    defaults_m = MatchingConfig()
    defaults_v = VerificationConfig()

    matching = MatchingConfig(
        threshold=_env_float(env, "ROSTERCHECK_MATCH_THRESHOLD", defaults_m.threshold),
        name_weight=_env_float(env, "ROSTERCHECK_NAME_WEIGHT", defaults_m.name_weight),
        dob_weight=_env_float(env, "ROSTERCHECK_DOB_WEIGHT", defaults_m.dob_weight),
    )
    verification = VerificationConfig(
        fully_verified_threshold=_env_float(
            env, "ROSTERCHECK_FULLY_VERIFIED", defaults_v.fully_verified_threshold
        ),
        partially_verified_threshold=_env_float(
            env, "ROSTERCHECK_PARTIALLY_VERIFIED", defaults_v.partially_verified_threshold
        ),
        grade_scale_max=_env_float(env, "ROSTERCHECK_GRADE_SCALE", defaults_v.grade_scale_max),
    )

    return Settings(
        db_path=Path(env.get("ROSTERCHECK_DB_PATH") or "data/rostercheck.db"),
        log_level=(env.get("ROSTERCHECK_LOG_LEVEL") or "INFO").upper(),
        log_dir=Path(env.get("ROSTERCHECK_LOG_DIR") or "logs"),
        matching=matching,
        verification=verification,
    )
