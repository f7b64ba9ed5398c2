"""Sample-quality diagnostics.

Combines outlier detection and normality testing for one sample into a
recommendation on whether a parametric test is appropriate.
"""

from __future__ import annotations

import enum
import logging
import statistics
from dataclasses import dataclass
from typing import Any, Sequence

from evidence_gate.config import DEFAULT_OUTLIER_THRESHOLD, DiagnosticsConfig
from evidence_gate.formatting import format_value_list, json_float
from evidence_gate.stats.normality import NormalityResult, shapiro_wilk_test
from evidence_gate.stats.outliers import OutlierResult, detect_outliers

log = logging.getLogger("evidence_gate")

MIN_SAMPLE_SIZE = 3


class Recommendation(enum.Enum):
    """What the data quality allows."""

    PROCEED = "proceed"  # data quality good, results trustworthy
    CAUTION = "caution"  # minor issues, interpret carefully
    USE_NONPARAMETRIC = "use-nonparametric"  # parametric assumptions violated


@dataclass
class SampleDiagnostics:
    """Descriptive statistics plus outlier and normality findings."""

    n: int
    mean: float
    std_dev: float
    min: float
    max: float
    outliers: OutlierResult
    normality: NormalityResult

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "n": self.n,
            "mean": json_float(self.mean),
            "std_dev": json_float(self.std_dev),
            "min": json_float(self.min),
            "max": json_float(self.max),
            "outliers": self.outliers.to_dict(),
            "normality": self.normality.to_dict(),
        }


@dataclass
class DiagnosticsResult:
    """Diagnostics for one sample with a recommendation and summary."""

    sample: SampleDiagnostics
    recommendation: Recommendation
    summary: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "sample": self.sample.to_dict(),
            "recommendation": self.recommendation.value,
            "summary": self.summary,
        }


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


def get_sample_diagnostics(
    sample: Sequence[float],
    outlier_threshold: float = DEFAULT_OUTLIER_THRESHOLD,
) -> SampleDiagnostics:
    """Compute diagnostics for one sample, without a recommendation.

    An empty sample yields zeros and a "No data" normality result.
    """
    n = len(sample)
    if n == 0:
        return SampleDiagnostics(
            n=0,
            mean=0.0,
            std_dev=0.0,
            min=0.0,
            max=0.0,
            outliers=OutlierResult(),
            normality=NormalityResult(
                w=1.0, p_value=1.0, is_normal=True, interpretation="No data", n=0
            ),
        )

    return SampleDiagnostics(
        n=n,
        mean=statistics.mean(sample),
        std_dev=statistics.stdev(sample) if n > 1 else 0.0,
        min=min(sample),
        max=max(sample),
        outliers=detect_outliers(sample, outlier_threshold),
        normality=shapiro_wilk_test(sample),
    )


def run_diagnostics(
    sample: Sequence[float],
    config: DiagnosticsConfig | None = None,
) -> DiagnosticsResult:
    """Run full diagnostics on a single sample.

    Samples with fewer than 3 values get an "insufficient data" record
    and a ``caution`` recommendation. Otherwise the recommendation is
    ``use-nonparametric`` when more than 10% of values are outliers or
    the sample fails the normality test, and ``proceed`` if not.

    Args:
        sample: Numeric observations.
        config: Diagnostic configuration (outlier threshold).

    Returns:
        DiagnosticsResult with sample statistics, recommendation and a
        human-readable summary.
    """
    cfg = config or DiagnosticsConfig()
    n = len(sample)

    if n < MIN_SAMPLE_SIZE:
        values = list(sample)
        return DiagnosticsResult(
            sample=SampleDiagnostics(
                n=n,
                mean=statistics.mean(values) if n > 0 else 0.0,
                std_dev=statistics.stdev(values) if n > 1 else 0.0,
                min=min(values) if n > 0 else 0.0,
                max=max(values) if n > 0 else 0.0,
                outliers=OutlierResult(cleaned=values),
                normality=NormalityResult(
                    w=1.0,
                    p_value=1.0,
                    is_normal=True,
                    interpretation="Insufficient data (n < 3)",
                    n=n,
                ),
            ),
            recommendation=Recommendation.CAUTION,
            summary=(
                f"Insufficient data (n={n}). Need at least {MIN_SAMPLE_SIZE} "
                f"observations for meaningful analysis."
            ),
        )

    diag = get_sample_diagnostics(sample, cfg.outlier_threshold)
    recommendation = _recommend(diag.outliers.too_many, diag.normality.is_normal)
    log.debug(
        "Diagnostics n=%d: %d outlier(s), W=%.4f p=%.4f -> %s",
        n,
        diag.outliers.count,
        diag.normality.w,
        diag.normality.p_value,
        recommendation.value,
    )

    return DiagnosticsResult(
        sample=diag,
        recommendation=recommendation,
        summary=_build_summary(diag.outliers, diag.normality, recommendation),
    )


def _recommend(too_many_outliers: bool, is_normal: bool) -> Recommendation:
    if too_many_outliers or not is_normal:
        return Recommendation.USE_NONPARAMETRIC
    return Recommendation.PROCEED


_RECOMMENDATION_TEXT = {
    Recommendation.PROCEED: "Recommendation: Proceed with parametric test (t-test).",
    Recommendation.CAUTION: "Recommendation: Proceed with caution, interpret results carefully.",
    Recommendation.USE_NONPARAMETRIC: "Recommendation: Use non-parametric test (Mann-Whitney U).",
}


def _build_summary(
    outliers: OutlierResult,
    normality: NormalityResult,
    recommendation: Recommendation,
) -> str:
    parts: list[str] = []

    if outliers.count == 0:
        parts.append("No outliers detected.")
    elif outliers.too_many:
        parts.append(f"Warning: {outliers.count} outliers detected (>10% of data).")
    else:
        parts.append(
            f"{outliers.count} outlier(s) detected: {format_value_list(outliers.values)}."
        )

    if normality.is_normal:
        parts.append("Data appears normally distributed.")
    else:
        parts.append(
            f"Data deviates from normality (W={normality.w:.3f}, p={normality.p_value:.4f})."
        )

    parts.append(_RECOMMENDATION_TEXT[recommendation])
    return " ".join(parts)
