"""Outlier detection for a single sample.

Two detectors are provided:

- z-score: flags values more than ``threshold`` sample standard
  deviations from the mean. The default of 2.5 (rather than 3.0) limits
  masking, where a large outlier inflates the standard deviation enough
  to hide moderate ones.
- IQR (Tukey fences): flags values outside ``[Q1 - k*IQR, Q3 + k*IQR]``.
  The fences are built from quartiles, so outliers do not widen them.

``detect_outliers_combined`` runs both and says which one to trust.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from typing import Any, Sequence

from evidence_gate.formatting import json_float

# Fraction of flagged values above which a sample has "too many" outliers.
TOO_MANY_FRACTION = 0.10

_MIN_STDEV = 1e-10


def _too_many(count: int, n: int) -> bool:
    return n > 0 and count / n > TOO_MANY_FRACTION


def _percentile(sorted_values: list[float], p: float) -> float:
    """Compute the p-th percentile using linear interpolation.

    Equivalent to numpy.percentile with method='linear'. Assumes
    sorted_values is already sorted in ascending order.
    """
    n = len(sorted_values)
    if n == 0:
        return float("nan")
    if n == 1:
        return sorted_values[0]

    k = (n - 1) * p
    f = math.floor(k)
    c = math.ceil(k)
    if f == c:
        return sorted_values[int(k)]
    d = k - f
    return sorted_values[int(f)] * (1 - d) + sorted_values[int(c)] * d


# ---------------------------------------------------------------------------
# Z-score method
# ---------------------------------------------------------------------------


@dataclass
class OutlierResult:
    """Outliers found by the z-score method."""

    indices: list[int] = field(default_factory=list)  # 0-based, input order
    values: list[float] = field(default_factory=list)
    cleaned: list[float] = field(default_factory=list)
    count: int = 0
    too_many: bool = False  # count / n > 0.10
    z_scores: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "indices": list(self.indices),
            "values": [json_float(v) for v in self.values],
            "cleaned": [json_float(v) for v in self.cleaned],
            "count": self.count,
            "too_many": self.too_many,
            "z_scores": [json_float(z) for z in self.z_scores],
        }


def detect_outliers(sample: Sequence[float], threshold: float = 2.5) -> OutlierResult:
    """Detect outliers using the standard deviation rule.

    A value is flagged when ``|x - mean| / stdev > threshold`` (sample
    standard deviation). Samples with fewer than 3 values, or with a
    standard deviation below 1e-10, have no outliers and all z-scores 0.

    Args:
        sample: The data points.
        threshold: Number of standard deviations from the mean to flag.

    Returns:
        OutlierResult with flagged indices/values and the cleaned sample.
    """
    values = list(sample)
    n = len(values)

    if n < 3:
        return OutlierResult(cleaned=values, z_scores=[0.0] * n)

    mean = statistics.mean(values)
    stdev = statistics.stdev(values)
    if stdev < _MIN_STDEV:
        return OutlierResult(cleaned=values, z_scores=[0.0] * n)

    z_scores = [(v - mean) / stdev for v in values]
    result = OutlierResult(z_scores=z_scores)
    for i, (v, z) in enumerate(zip(values, z_scores)):
        if abs(z) > threshold:
            result.indices.append(i)
            result.values.append(v)
        else:
            result.cleaned.append(v)

    result.count = len(result.indices)
    result.too_many = _too_many(result.count, n)
    return result


# ---------------------------------------------------------------------------
# IQR method
# ---------------------------------------------------------------------------


@dataclass
class IQROutlierResult:
    """Outliers found by the IQR (Tukey fence) method."""

    indices: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    cleaned: list[float] = field(default_factory=list)
    count: int = 0
    too_many: bool = False
    q1: float = float("nan")
    q3: float = float("nan")
    iqr: float = float("nan")
    lower_fence: float = float("-inf")
    upper_fence: float = float("inf")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "indices": list(self.indices),
            "values": [json_float(v) for v in self.values],
            "cleaned": [json_float(v) for v in self.cleaned],
            "count": self.count,
            "too_many": self.too_many,
            "q1": json_float(self.q1),
            "q3": json_float(self.q3),
            "iqr": json_float(self.iqr),
            "lower_fence": json_float(self.lower_fence),
            "upper_fence": json_float(self.upper_fence),
        }


def detect_outliers_iqr(sample: Sequence[float], multiplier: float = 1.5) -> IQROutlierResult:
    """Detect outliers using the IQR method.

    A value is an outlier if it falls below ``Q1 - multiplier*IQR`` or
    above ``Q3 + multiplier*IQR``. With fewer than 4 values there is too
    little data for quartiles: nothing is flagged and the fences are
    infinite.

    Args:
        sample: The data points.
        multiplier: IQR multiplier (1.5 for standard outliers, 3.0 for
            extreme ones).
    """
    values = list(sample)
    n = len(values)

    if n < 4:
        return IQROutlierResult(cleaned=values)

    sorted_v = sorted(values)
    q1 = _percentile(sorted_v, 0.25)
    q3 = _percentile(sorted_v, 0.75)
    iqr = q3 - q1
    lower = q1 - multiplier * iqr
    upper = q3 + multiplier * iqr

    result = IQROutlierResult(q1=q1, q3=q3, iqr=iqr, lower_fence=lower, upper_fence=upper)
    for i, v in enumerate(values):
        if v < lower or v > upper:
            result.indices.append(i)
            result.values.append(v)
        else:
            result.cleaned.append(v)

    result.count = len(result.indices)
    result.too_many = _too_many(result.count, n)
    return result


# ---------------------------------------------------------------------------
# Combined
# ---------------------------------------------------------------------------

# Below this size the IQR method is preferred regardless of agreement.
_SMALL_SAMPLE = 20


@dataclass
class CombinedOutlierResult:
    """Both detectors run side by side, with a recommendation."""

    zscore: OutlierResult
    iqr: IQROutlierResult
    recommended_method: str  # "zscore" or "iqr"
    reason: str

    @property
    def recommended(self) -> OutlierResult | IQROutlierResult:
        """The result of the recommended method."""
        return self.iqr if self.recommended_method == "iqr" else self.zscore

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "zscore": self.zscore.to_dict(),
            "iqr": self.iqr.to_dict(),
            "recommended_method": self.recommended_method,
            "reason": self.reason,
        }


def detect_outliers_combined(
    sample: Sequence[float],
    z_threshold: float = 2.5,
    iqr_multiplier: float = 1.5,
) -> CombinedOutlierResult:
    """Run both outlier detectors and recommend one.

    IQR is recommended when the z-score method finds nothing but IQR
    does (masking), when z-score flags more than twice as many values as
    IQR (the spread looks non-normal), or when the sample is small
    (n < 20). Otherwise the z-score result is recommended.
    """
    z_result = detect_outliers(sample, z_threshold)
    iqr_result = detect_outliers_iqr(sample, iqr_multiplier)
    n = len(sample)

    if z_result.count == 0 and iqr_result.count > 0:
        method = "iqr"
        reason = (
            f"IQR found {iqr_result.count} outlier(s) that the z-score method missed; "
            f"extreme values are likely masking moderate ones."
        )
    elif z_result.count > 2 * iqr_result.count:
        method = "iqr"
        reason = (
            f"z-score flagged {z_result.count} value(s) versus {iqr_result.count} for IQR; "
            f"the spread looks non-normal, so the quartile fences are more reliable."
        )
    elif n < _SMALL_SAMPLE:
        method = "iqr"
        reason = f"Small sample (n={n} < {_SMALL_SAMPLE}); IQR is more robust."
    else:
        method = "zscore"
        reason = (
            f"Methods agree (z-score: {z_result.count}, IQR: {iqr_result.count}) "
            f"and n={n} is large enough for the z-score method."
        )

    return CombinedOutlierResult(
        zscore=z_result,
        iqr=iqr_result,
        recommended_method=method,
        reason=reason,
    )
