"""Comparison configuration and profile loading.

Handles:
- Merging user settings with defaults (CompareConfig, DiagnosticsConfig).
- Accepting plain mappings with snake_case or camelCase keys.
- Validating the final configuration before a comparison runs.
- Loading comparison profiles from YAML files and applying CLI overrides.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

log = logging.getLogger("evidence_gate")

DEFAULT_ALPHA = 0.05
DEFAULT_EFFECT_SIZE_MINIMUM = 0.5
DEFAULT_OUTLIER_THRESHOLD = 2.5
DEFAULT_LABELS = ("A", "B")

# camelCase spellings accepted from mappings and profiles.
_KEY_ALIASES = {
    "practicalThreshold": "practical_threshold",
    "effectSizeMinimum": "effect_size_minimum",
    "outlierThreshold": "outlier_threshold",
}
_COMPARE_KEYS = {
    "practical_threshold",
    "alpha",
    "effect_size_minimum",
    "outlier_threshold",
    "labels",
}


# ---------------------------------------------------------------------------
# Config objects
# ---------------------------------------------------------------------------


@dataclass
class CompareConfig:
    """Resolved configuration for one comparison."""

    # Minimum absolute difference that matters in your domain.
    practical_threshold: float
    alpha: float = DEFAULT_ALPHA
    # Applies to Cohen's d only; rank-biserial uses a fixed threshold.
    effect_size_minimum: float = DEFAULT_EFFECT_SIZE_MINIMUM
    outlier_threshold: float = DEFAULT_OUTLIER_THRESHOLD  # in SDs
    labels: tuple[str, str] = DEFAULT_LABELS  # only used in rendered text

    def __post_init__(self) -> None:
        self.labels = tuple(self.labels)  # type: ignore[assignment]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CompareConfig:
        """Build a config from a mapping, filling in defaults.

        Keys may be snake_case or camelCase. Missing optional keys and
        keys set to ``None`` take their defaults.

        Raises:
            ValueError: If ``practical_threshold`` is missing or an
                unknown key is present.
        """
        normalized = _normalize_keys(data)
        unknown = set(normalized) - _COMPARE_KEYS
        if unknown:
            raise ValueError(f"Unknown configuration key(s): {', '.join(sorted(unknown))}")
        if normalized.get("practical_threshold") is None:
            raise ValueError("practical_threshold is required")

        kwargs = {k: v for k, v in normalized.items() if v is not None}
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "practical_threshold": self.practical_threshold,
            "alpha": self.alpha,
            "effect_size_minimum": self.effect_size_minimum,
            "outlier_threshold": self.outlier_threshold,
            "labels": list(self.labels),
        }


@dataclass
class DiagnosticsConfig:
    """Configuration for single-sample diagnostics."""

    outlier_threshold: float = DEFAULT_OUTLIER_THRESHOLD


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: CompareConfig) -> list[ValidationError]:
    """Validate a comparison configuration.

    Returns a list of validation errors. Empty list means valid.
    """
    errors: list[ValidationError] = []

    if not _is_finite_number(config.practical_threshold):
        errors.append(
            ValidationError(
                field="practical_threshold",
                message=(
                    f"Practical threshold must be a finite number "
                    f"(got {config.practical_threshold!r})."
                ),
            )
        )
    elif config.practical_threshold < 0:
        errors.append(
            ValidationError(
                field="practical_threshold",
                message=(
                    f"Practical threshold cannot be negative (got {config.practical_threshold})."
                ),
            )
        )

    if not _is_finite_number(config.alpha) or not 0 < config.alpha < 1:
        errors.append(
            ValidationError(
                field="alpha",
                message=f"Alpha must be between 0 and 1 exclusive (got {config.alpha!r}).",
            )
        )
    elif config.alpha > 0.1:
        errors.append(
            ValidationError(
                field="alpha",
                message=f"Alpha {config.alpha} is unusually lenient; 0.05 is conventional.",
                severity="warning",
            )
        )

    if not _is_finite_number(config.effect_size_minimum) or config.effect_size_minimum < 0:
        errors.append(
            ValidationError(
                field="effect_size_minimum",
                message=(
                    f"Effect size minimum must be a non-negative finite number "
                    f"(got {config.effect_size_minimum!r})."
                ),
            )
        )

    if not _is_finite_number(config.outlier_threshold) or config.outlier_threshold <= 0:
        errors.append(
            ValidationError(
                field="outlier_threshold",
                message=(
                    f"Outlier threshold must be a positive finite number "
                    f"(got {config.outlier_threshold!r})."
                ),
            )
        )

    if len(config.labels) != 2 or not all(isinstance(label, str) for label in config.labels):
        errors.append(
            ValidationError(
                field="labels",
                message=f"Exactly two string labels are required (got {list(config.labels)!r}).",
            )
        )

    return errors


def resolve_config(config: CompareConfig | Mapping[str, Any]) -> CompareConfig:
    """Merge *config* with defaults and validate it.

    Warnings are logged; errors are fatal.

    Raises:
        ValueError: If the configuration has any error-severity problem.
    """
    resolved = config if isinstance(config, CompareConfig) else CompareConfig.from_mapping(config)

    problems = validate_config(resolved)
    for p in problems:
        if p.severity == "warning":
            log.warning("Config %s: %s", p.field, p.message)
    errors = [p for p in problems if p.severity == "error"]
    if errors:
        raise ValueError("Invalid configuration: " + " ".join(e.message for e in errors))
    return resolved


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    return {_KEY_ALIASES.get(k, k): v for k, v in data.items()}


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a comparison profile from a YAML file.

    Profile format::

        practical_threshold: 10
        alpha: 0.01
        effect_size_minimum: 0.8
        outlier_threshold: 3.0
        labels: ["main", "feature-branch"]

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def config_from_profile(
    profile_data: Mapping[str, Any],
    *,
    cli_overrides: Mapping[str, Any] | None = None,
) -> CompareConfig:
    """Build a CompareConfig from a parsed profile.

    CLI overrides take precedence over profile values, which take
    precedence over defaults. Overrides set to ``None`` are ignored.

    Args:
        profile_data: Parsed YAML profile dict.
        cli_overrides: Dict of CLI option values keyed by CompareConfig
            field names.
    """
    merged = _normalize_keys(profile_data)
    unknown = set(merged) - _COMPARE_KEYS
    if unknown:
        raise ValueError(f"Unknown profile key(s): {', '.join(sorted(unknown))}")

    for key, value in (cli_overrides or {}).items():
        if value is not None:
            merged[key] = value

    if isinstance(merged.get("labels"), list):
        merged["labels"] = tuple(merged["labels"])

    return CompareConfig.from_mapping(merged)
