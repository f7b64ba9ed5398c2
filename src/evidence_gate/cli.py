"""Command-line interface for evidence-gate.

Provides the main CLI entry point with ``compare``, ``diagnose``,
``outliers`` and ``normality`` subcommands. Samples are read from files
(or stdin with ``-``) holding either a JSON array of numbers or numbers
separated by whitespace and/or commas.
"""

from __future__ import annotations

import json
import math
import re
from pathlib import Path
from typing import Any

import click
import yaml

from evidence_gate import __version__
from evidence_gate.compare import Verdict, compare_conditions
from evidence_gate.config import (
    DEFAULT_OUTLIER_THRESHOLD,
    DiagnosticsConfig,
    config_from_profile,
    load_profile,
)
from evidence_gate.logging import setup_logging

_SEPARATORS = re.compile(r"[\s,]+")

# Exit status per verdict.
_EXIT_CODES = {
    Verdict.SIGNIFICANT: 0,
    Verdict.NOT_SIGNIFICANT: 1,
    Verdict.INSUFFICIENT_DATA: 2,
    Verdict.DATA_QUALITY_ISSUE: 2,
}


# ---------------------------------------------------------------------------
# Sample input
# ---------------------------------------------------------------------------


def parse_sample(text: str) -> list[float]:
    """Parse a sample from text.

    Accepts a JSON array of numbers or plain numbers separated by
    whitespace and/or commas. Blank input is an empty sample.

    Raises:
        ValueError: If a value is not a finite number.
    """
    stripped = text.strip()
    if not stripped:
        return []

    if stripped.startswith("["):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise ValueError("JSON sample must be an array of numbers")
        values: list[Any] = data
    else:
        values = [tok for tok in _SEPARATORS.split(stripped) if tok]

    sample: list[float] = []
    for i, raw in enumerate(values):
        if isinstance(raw, bool):
            raise ValueError(f"value {i} is not a number: {raw!r}")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"value {i} is not a number: {raw!r}") from None
        if not math.isfinite(value):
            raise ValueError(f"value {i} is not finite: {raw!r}")
        sample.append(value)
    return sample


def read_sample(source: str, param_hint: str = "SAMPLE") -> list[float]:
    """Read a sample from a file path, or stdin when *source* is ``-``."""
    if source == "-":
        text = click.get_text_stream("stdin").read()
    else:
        path = Path(source)
        if not path.is_file():
            raise click.BadParameter(f"File not found: {source}", param_hint=param_hint)
        text = path.read_text(encoding="utf-8")

    try:
        return parse_sample(text)
    except ValueError as exc:
        raise click.BadParameter(f"{source}: {exc}", param_hint=param_hint) from exc


def _parse_labels(value: str | None) -> tuple[str, str] | None:
    if value is None:
        return None
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 2 or not all(parts):
        raise click.BadParameter(
            f"expected two comma-separated labels, got {value!r}", param_hint="--labels"
        )
    return parts[0], parts[1]


def _echo_json(data: dict[str, Any]) -> None:
    click.echo(json.dumps(data, indent=2))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """evidence-gate — Decide whether two samples really differ."""


@main.command()
@click.argument("sample_a")
@click.argument("sample_b")
@click.option(
    "--threshold",
    "practical_threshold",
    type=float,
    default=None,
    help="Minimum absolute difference that matters (required unless in --profile).",
)
@click.option("--alpha", type=float, default=None, help="Significance level [default: 0.05].")
@click.option(
    "--effect-size-min",
    "effect_size_minimum",
    type=float,
    default=None,
    help="Minimum |Cohen's d| [default: 0.5].",
)
@click.option(
    "--outlier-threshold",
    type=float,
    default=None,
    help="Z-score cutoff for outliers [default: 2.5].",
)
@click.option("--labels", default=None, help="Condition labels, e.g. 'main,feature'.")
@click.option(
    "--profile",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML comparison profile.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--log-file", type=click.Path(path_type=Path), default=None)
def compare(
    sample_a: str,
    sample_b: str,
    practical_threshold: float | None,
    alpha: float | None,
    effect_size_minimum: float | None,
    outlier_threshold: float | None,
    labels: str | None,
    profile: Path | None,
    as_json: bool,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Compare SAMPLE_A against SAMPLE_B through the three evidence gates.

    Exits 0 when the difference is significant, 1 when it is not and 2
    when there is not enough data to decide.
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    overrides = {
        "practical_threshold": practical_threshold,
        "alpha": alpha,
        "effect_size_minimum": effect_size_minimum,
        "outlier_threshold": outlier_threshold,
        "labels": _parse_labels(labels),
    }
    try:
        profile_data = load_profile(profile) if profile is not None else {}
        config = config_from_profile(profile_data, cli_overrides=overrides)
    except (ValueError, yaml.YAMLError) as exc:
        raise click.UsageError(str(exc)) from exc

    values_a = read_sample(sample_a, "SAMPLE_A")
    values_b = read_sample(sample_b, "SAMPLE_B")

    try:
        result = compare_conditions(values_a, values_b, config)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    if as_json:
        _echo_json(result.to_dict())
    else:
        from evidence_gate.display import format_compare_result

        click.echo(format_compare_result(result))

    raise SystemExit(_EXIT_CODES[result.verdict])


@main.command()
@click.argument("sample")
@click.option(
    "--outlier-threshold",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_OUTLIER_THRESHOLD,
    show_default=True,
)
@click.option("--label", default="sample", show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def diagnose(sample: str, outlier_threshold: float, label: str, as_json: bool) -> None:
    """Check one SAMPLE for outliers and normality."""
    from evidence_gate.diagnostics import run_diagnostics

    values = read_sample(sample)
    result = run_diagnostics(values, DiagnosticsConfig(outlier_threshold=outlier_threshold))

    if as_json:
        _echo_json(result.to_dict())
        return

    from evidence_gate.display import format_diagnostics

    click.echo(format_diagnostics(result, label))


@main.command()
@click.argument("sample")
@click.option(
    "--method",
    type=click.Choice(["zscore", "iqr", "combined"]),
    default="zscore",
    show_default=True,
)
@click.option(
    "--threshold",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_OUTLIER_THRESHOLD,
    show_default=True,
    help="Z-score cutoff.",
)
@click.option(
    "--multiplier",
    type=click.FloatRange(min=0, min_open=True),
    default=1.5,
    show_default=True,
    help="IQR fence multiplier.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def outliers(sample: str, method: str, threshold: float, multiplier: float, as_json: bool) -> None:
    """Detect outliers in SAMPLE."""
    from evidence_gate.stats.outliers import (
        detect_outliers,
        detect_outliers_combined,
        detect_outliers_iqr,
    )

    values = read_sample(sample)
    if method == "iqr":
        result = detect_outliers_iqr(values, multiplier)
    elif method == "combined":
        result = detect_outliers_combined(values, threshold, multiplier)
    else:
        result = detect_outliers(values, threshold)

    if as_json:
        _echo_json(result.to_dict())
        return

    from evidence_gate.display import format_outliers

    click.echo(format_outliers(result))


@main.command()
@click.argument("sample")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def normality(sample: str, as_json: bool) -> None:
    """Run the Shapiro-Wilk normality test on SAMPLE."""
    from evidence_gate.stats.normality import shapiro_wilk_test

    result = shapiro_wilk_test(read_sample(sample))

    if as_json:
        _echo_json(result.to_dict())
        return

    from evidence_gate.display import format_normality

    click.echo(format_normality(result))
