"""Three-gate comparison of two conditions.

``compare_conditions`` is the main entry point. It:

1. Refuses to judge samples with fewer than 3 values.
2. Runs diagnostics (outliers, normality) on both samples.
3. Chooses Welch's t-test, or Mann-Whitney U when the data violate
   parametric assumptions.
4. Applies three gates in order: statistical significance, effect size,
   practical threshold. A difference is only ``significant`` if it
   passes all three.
5. Renders a plain-language interpretation.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from evidence_gate.config import CompareConfig, resolve_config
from evidence_gate.diagnostics import (
    MIN_SAMPLE_SIZE,
    Recommendation,
    SampleDiagnostics,
    get_sample_diagnostics,
)
from evidence_gate.formatting import format_value_list, json_float
from evidence_gate.stats.mann_whitney import mann_whitney_u
from evidence_gate.stats.ttest import welch_ttest

log = logging.getLogger("evidence_gate")

# Medium effect on the rank-biserial scale; Cohen's d uses
# CompareConfig.effect_size_minimum instead.
RANK_BISERIAL_MINIMUM = 0.3


class Verdict(enum.Enum):
    """Final outcome of a comparison."""

    SIGNIFICANT = "significant"  # all three gates passed
    NOT_SIGNIFICANT = "not-significant"  # failed one or more gates
    INSUFFICIENT_DATA = "insufficient-data"  # n < 3 in either sample
    # Declared for "too poor to judge"; the gates never produce it.
    DATA_QUALITY_ISSUE = "data-quality-issue"


class DataQuality(enum.Enum):
    """Overall data quality across both samples."""

    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"


class TestUsed(enum.Enum):
    """Which significance test produced the evidence."""

    __test__ = False  # not a pytest test class

    WELCH_T_TEST = "welch-t-test"
    MANN_WHITNEY_U = "mann-whitney-u"


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------


@dataclass
class Evidence:
    """Numeric output of whichever test ran."""

    mean_a: float
    mean_b: float
    difference: float  # mean_a - mean_b
    difference_percent: float  # relative to mean_b
    p_value: float
    test_statistic: float  # t or U
    degrees_of_freedom: float  # NaN for Mann-Whitney
    effect_size: float  # Cohen's d or rank-biserial, see test_used
    effect_size_label: str
    ci95: tuple[float, float] | None  # t-test only
    test_used: TestUsed

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "mean_a": json_float(self.mean_a),
            "mean_b": json_float(self.mean_b),
            "difference": json_float(self.difference),
            "difference_percent": json_float(self.difference_percent),
            "p_value": json_float(self.p_value),
            "test_statistic": json_float(self.test_statistic),
            "degrees_of_freedom": json_float(self.degrees_of_freedom),
            "effect_size": json_float(self.effect_size),
            "effect_size_label": self.effect_size_label,
            "ci95": (
                [json_float(self.ci95[0]), json_float(self.ci95[1])]
                if self.ci95 is not None
                else None
            ),
            "test_used": self.test_used.value,
        }


@dataclass
class ComparisonDiagnostics:
    """Diagnostics for both samples plus the merged assessment."""

    sample_a: SampleDiagnostics
    sample_b: SampleDiagnostics
    overall_quality: DataQuality
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "sample_a": self.sample_a.to_dict(),
            "sample_b": self.sample_b.to_dict(),
            "overall_quality": self.overall_quality.value,
            "warnings": list(self.warnings),
        }


@dataclass
class GateOutcome:
    """One evaluated gate."""

    name: str  # "statistical", "effect-size" or "practical"
    passed: bool
    observed: float
    threshold: float

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "passed": self.passed,
            "observed": json_float(self.observed),
            "threshold": json_float(self.threshold),
        }


@dataclass
class CompareResult:
    """Complete outcome of ``compare_conditions``."""

    verdict: Verdict
    recommendation: Recommendation
    evidence: Evidence
    diagnostics: ComparisonDiagnostics
    interpretation: str
    config: CompareConfig
    gates: list[GateOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "verdict": self.verdict.value,
            "recommendation": self.recommendation.value,
            "evidence": self.evidence.to_dict(),
            "diagnostics": self.diagnostics.to_dict(),
            "interpretation": self.interpretation,
            "config": self.config.to_dict(),
            "gates": [g.to_dict() for g in self.gates],
        }


# ---------------------------------------------------------------------------
# Comparison logic
# ---------------------------------------------------------------------------


def compare_conditions(
    sample_a: Sequence[float],
    sample_b: Sequence[float],
    config: CompareConfig | Mapping[str, Any],
) -> CompareResult:
    """Compare two conditions with significance, effect size and practical gates.

    Args:
        sample_a: First sample (e.g. baseline timings).
        sample_b: Second sample (e.g. the new implementation).
        config: A CompareConfig, or a mapping with ``practical_threshold``
            (required) and optional ``alpha``, ``effect_size_minimum``,
            ``outlier_threshold`` and ``labels``.

    Returns:
        CompareResult with verdict, evidence, diagnostics and
        interpretation. Inputs are never modified.

    Raises:
        ValueError: If the configuration is invalid or a sample contains
            a non-finite value.

    Example::

        result = compare_conditions(
            [101, 98, 105, 99, 102],
            [85, 82, 88, 84, 86],
            {"practical_threshold": 10},
        )
        result.verdict  # Verdict.SIGNIFICANT
    """
    cfg = resolve_config(config)
    _check_finite(sample_a, cfg.labels[0])
    _check_finite(sample_b, cfg.labels[1])

    if len(sample_a) < MIN_SAMPLE_SIZE or len(sample_b) < MIN_SAMPLE_SIZE:
        return _insufficient_data_result(sample_a, sample_b, cfg)

    diag_a = get_sample_diagnostics(sample_a, cfg.outlier_threshold)
    diag_b = get_sample_diagnostics(sample_b, cfg.outlier_threshold)
    recommendation, quality, warnings = assess_data_quality(diag_a, diag_b, cfg.labels)
    for w in warnings:
        log.info("%s", w)

    if recommendation is Recommendation.USE_NONPARAMETRIC:
        mw = mann_whitney_u(sample_a, sample_b, cfg.alpha)
        difference = diag_a.mean - diag_b.mean
        evidence = Evidence(
            mean_a=diag_a.mean,
            mean_b=diag_b.mean,
            difference=difference,
            difference_percent=_percent(difference, diag_b.mean),
            p_value=mw.p_value,
            test_statistic=mw.u,
            degrees_of_freedom=float("nan"),
            effect_size=mw.effect_size,
            effect_size_label=mw.effect_size_label,
            ci95=None,
            test_used=TestUsed.MANN_WHITNEY_U,
        )
        significant = mw.significant
    else:
        welch = welch_ttest(sample_a, sample_b, cfg.alpha)
        evidence = Evidence(
            mean_a=diag_a.mean,
            mean_b=diag_b.mean,
            difference=welch.mean_diff,
            difference_percent=_percent(welch.mean_diff, diag_b.mean),
            p_value=welch.p_value,
            test_statistic=welch.t,
            degrees_of_freedom=welch.df,
            effect_size=welch.effect_size,
            effect_size_label=welch.effect_size_label,
            ci95=welch.ci95,
            test_used=TestUsed.WELCH_T_TEST,
        )
        significant = welch.significant

    log.debug(
        "Using %s: p=%.6f effect=%.4f",
        evidence.test_used.value,
        evidence.p_value,
        evidence.effect_size,
    )

    verdict, gates = evaluate_gates(
        significant=significant,
        p_value=evidence.p_value,
        effect_size=evidence.effect_size,
        difference=evidence.difference,
        test_used=evidence.test_used,
        config=cfg,
    )

    return CompareResult(
        verdict=verdict,
        recommendation=recommendation,
        evidence=evidence,
        diagnostics=ComparisonDiagnostics(
            sample_a=diag_a,
            sample_b=diag_b,
            overall_quality=quality,
            warnings=warnings,
        ),
        interpretation=build_interpretation(evidence, verdict, recommendation, cfg),
        config=cfg,
        gates=gates,
    )


def effect_threshold(test_used: TestUsed, config: CompareConfig) -> float:
    """The minimum |effect size| for gate 2, on the scale of *test_used*."""
    if test_used is TestUsed.MANN_WHITNEY_U:
        return RANK_BISERIAL_MINIMUM
    return config.effect_size_minimum


def evaluate_gates(
    *,
    significant: bool,
    p_value: float,
    effect_size: float,
    difference: float,
    test_used: TestUsed,
    config: CompareConfig,
) -> tuple[Verdict, list[GateOutcome]]:
    """Apply the three gates in order, stopping at the first failure.

    1. Statistical: the test's own ``significant`` flag (p < alpha).
    2. Effect size: |effect| >= the threshold for the test's scale.
    3. Practical: |mean difference| >= ``practical_threshold``.

    Returns:
        The verdict and the outcomes of the gates that were evaluated.
    """
    outcomes: list[GateOutcome] = []

    def _gate(name: str, passed: bool, observed: float, threshold: float) -> bool:
        outcomes.append(GateOutcome(name, passed, observed, threshold))
        log.debug("Gate %s: observed=%g threshold=%g passed=%s", name, observed, threshold, passed)
        return passed

    if not _gate("statistical", significant, p_value, config.alpha):
        return Verdict.NOT_SIGNIFICANT, outcomes

    min_effect = effect_threshold(test_used, config)
    if not _gate("effect-size", abs(effect_size) >= min_effect, abs(effect_size), min_effect):
        return Verdict.NOT_SIGNIFICANT, outcomes

    practical = config.practical_threshold
    if not _gate("practical", abs(difference) >= practical, abs(difference), practical):
        return Verdict.NOT_SIGNIFICANT, outcomes

    return Verdict.SIGNIFICANT, outcomes


def assess_data_quality(
    diag_a: SampleDiagnostics,
    diag_b: SampleDiagnostics,
    labels: Sequence[str],
) -> tuple[Recommendation, DataQuality, list[str]]:
    """Merge the diagnostics of both samples.

    Too many outliers or a failed normality test in either sample forces
    ``use-nonparametric``. A few outliers escalate ``proceed`` to
    ``caution`` but never downgrade ``use-nonparametric``. Warnings are
    listed in the order checked: outliers A, outliers B, normality A,
    normality B.
    """
    warnings: list[str] = []
    recommendation = Recommendation.PROCEED

    for label, diag in zip(labels, (diag_a, diag_b)):
        outliers = diag.outliers
        if outliers.too_many:
            warnings.append(f"{label} has >10% outliers ({outliers.count}/{diag.n}).")
            recommendation = Recommendation.USE_NONPARAMETRIC
        elif outliers.count > 0:
            warnings.append(
                f"{label} has {outliers.count} outlier(s): {format_value_list(outliers.values)}."
            )
            if recommendation is Recommendation.PROCEED:
                recommendation = Recommendation.CAUTION

    for label, diag in zip(labels, (diag_a, diag_b)):
        normality = diag.normality
        if not normality.is_normal:
            warnings.append(
                f"{label} deviates from normality "
                f"(W={normality.w:.3f}, p={normality.p_value:.4f})."
            )
            recommendation = Recommendation.USE_NONPARAMETRIC

    if recommendation is Recommendation.USE_NONPARAMETRIC:
        quality = DataQuality.POOR
    elif recommendation is Recommendation.CAUTION:
        quality = DataQuality.ACCEPTABLE
    else:
        quality = DataQuality.GOOD

    return recommendation, quality, warnings


# ---------------------------------------------------------------------------
# Interpretation
# ---------------------------------------------------------------------------


def build_interpretation(
    evidence: Evidence,
    verdict: Verdict,
    recommendation: Recommendation,
    config: CompareConfig,
) -> str:
    """Render the comparison as a few plain-English sentences."""
    label_a, label_b = config.labels
    direction = "higher" if evidence.difference > 0 else "lower"
    parts = [
        f"{label_a} is {abs(evidence.difference):.1f} {direction} than {label_b} "
        f"({abs(evidence.difference_percent):.1f}% difference)."
    ]

    if evidence.test_used is TestUsed.WELCH_T_TEST:
        parts.append(
            f"Welch's t-test: t={evidence.test_statistic:.3f}, p={evidence.p_value:.4f}, "
            f"Cohen's d={evidence.effect_size:.2f} ({evidence.effect_size_label})."
        )
        if evidence.ci95 is not None:
            parts.append(f"95% CI: [{evidence.ci95[0]:.1f}, {evidence.ci95[1]:.1f}].")
    else:
        parts.append(
            f"Mann-Whitney U: U={evidence.test_statistic:.1f}, p={evidence.p_value:.4f}, "
            f"r={evidence.effect_size:.2f} ({evidence.effect_size_label})."
        )

    effect_name = "|d|" if evidence.test_used is TestUsed.WELCH_T_TEST else "rank-biserial |r|"
    thresholds = (
        f"p < {config.alpha:g}, "
        f"{effect_name} ≥ {effect_threshold(evidence.test_used, config):g}, "
        f"Δ ≥ {config.practical_threshold:g}"
    )
    if verdict is Verdict.SIGNIFICANT:
        parts.append(f"VERDICT: Significant difference. All three gates passed ({thresholds}).")
    elif verdict is Verdict.NOT_SIGNIFICANT:
        parts.append(
            f"VERDICT: Not significant. Failed one or more gates (threshold: {thresholds})."
        )
    elif verdict is Verdict.DATA_QUALITY_ISSUE:
        parts.append(
            "VERDICT: Used non-parametric test due to data quality issues. "
            "Interpret with caution."
        )
    else:
        parts.append("VERDICT: Cannot determine - insufficient data.")

    if recommendation is not Recommendation.PROCEED:
        quality = (
            "acceptable but with warnings"
            if recommendation is Recommendation.CAUTION
            else "poor"
        )
        parts.append(f"Note: Data quality is {quality}.")

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _insufficient_data_result(
    sample_a: Sequence[float],
    sample_b: Sequence[float],
    config: CompareConfig,
) -> CompareResult:
    label_a, label_b = config.labels
    n_a, n_b = len(sample_a), len(sample_b)
    diag_a = get_sample_diagnostics(sample_a, config.outlier_threshold)
    diag_b = get_sample_diagnostics(sample_b, config.outlier_threshold)

    warning = (
        f"Insufficient data: {label_a} has {n_a} samples, {label_b} has {n_b} samples. "
        f"Need at least {MIN_SAMPLE_SIZE} each."
    )
    log.info("%s", warning)

    return CompareResult(
        verdict=Verdict.INSUFFICIENT_DATA,
        recommendation=Recommendation.CAUTION,
        evidence=Evidence(
            mean_a=diag_a.mean,
            mean_b=diag_b.mean,
            difference=diag_a.mean - diag_b.mean,
            difference_percent=0.0,
            p_value=1.0,
            test_statistic=0.0,
            degrees_of_freedom=0.0,
            effect_size=0.0,
            effect_size_label="negligible",
            ci95=None,
            test_used=TestUsed.WELCH_T_TEST,
        ),
        diagnostics=ComparisonDiagnostics(
            sample_a=diag_a,
            sample_b=diag_b,
            overall_quality=DataQuality.POOR,
            warnings=[warning],
        ),
        interpretation=(
            f"Cannot perform comparison: need at least {MIN_SAMPLE_SIZE} samples per "
            f"condition. {label_a} has {n_a}, {label_b} has {n_b}."
        ),
        config=config,
    )


def _percent(difference: float, reference: float) -> float:
    if reference == 0:
        return 0.0
    return difference / reference * 100.0


def _check_finite(sample: Sequence[float], label: str) -> None:
    for i, v in enumerate(sample):
        try:
            finite = math.isfinite(v)
        except TypeError:
            finite = False
        if not finite:
            raise ValueError(f"Sample {label} has a non-finite value at index {i}: {v!r}")
