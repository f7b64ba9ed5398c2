"""Shapiro-Wilk test for normality.

Tests H0: the sample was drawn from a normal distribution. A p-value
below 0.05 rejects normality.

Coefficients for 3 <= n <= 11 are the published Shapiro & Wilk values;
larger samples use normalized Blom scores. The W statistic is turned into
a p-value with Royston's normalizing transform. Both approximations are
bounded-accuracy: W and p are guaranteed to lie in [0, 1], but for
n > 11 they only roughly match tabulated values.

References:
    Shapiro, S. S. & Wilk, M. B. (1965). "An analysis of variance test
        for normality (complete samples)." Biometrika 52(3-4): 591-611.
    Royston, P. (1992). "Approximating the Shapiro-Wilk W-test for
        non-normality." Statistics and Computing 2: 117-119.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Any, Sequence

from evidence_gate.formatting import json_float
from evidence_gate.stats.special import normal_cdf, normal_quantile

NORMALITY_ALPHA = 0.05

_MAX_N = 5000
_MIN_SUM_SQUARES = 1e-10

# Shapiro & Wilk (1965), Table 5. Only the first floor(n/2) coefficients
# are needed; the rest are antisymmetric.
_SMALL_SAMPLE_COEFFICIENTS: dict[int, tuple[float, ...]] = {
    3: (0.7071,),
    4: (0.6872, 0.1677),
    5: (0.6646, 0.2413),
    6: (0.6431, 0.2806, 0.0875),
    7: (0.6233, 0.3031, 0.1401),
    8: (0.6052, 0.3164, 0.1743, 0.0561),
    9: (0.5888, 0.3244, 0.1976, 0.0947),
    10: (0.5739, 0.3291, 0.2141, 0.1224, 0.0399),
    11: (0.5601, 0.3315, 0.2260, 0.1429, 0.0695),
}


@dataclass
class NormalityResult:
    """Result of the Shapiro-Wilk test."""

    w: float  # closer to 1 = more normal
    p_value: float
    is_normal: bool  # p >= 0.05
    interpretation: str
    n: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "w": json_float(self.w),
            "p_value": json_float(self.p_value),
            "is_normal": self.is_normal,
            "interpretation": self.interpretation,
            "n": self.n,
        }


def shapiro_wilk_test(sample: Sequence[float]) -> NormalityResult:
    """Run the Shapiro-Wilk normality test.

    Valid for 3 <= n <= 5000. Smaller samples are reported as trivially
    normal (W=1, p=1), larger ones as not applicable (W=0, p=0), and a
    sample with no spread as trivially normal.

    Args:
        sample: Numeric observations. Not modified.

    Returns:
        NormalityResult with W, p-value and an interpretation.
    """
    n = len(sample)

    if n < 3:
        return NormalityResult(
            w=1.0,
            p_value=1.0,
            is_normal=True,
            interpretation="Insufficient data (n < 3) - cannot test normality",
            n=n,
        )
    if n > _MAX_N:
        return NormalityResult(
            w=0.0,
            p_value=0.0,
            is_normal=False,
            interpretation=f"Sample too large (n > {_MAX_N}) - Shapiro-Wilk not applicable",
            n=n,
        )

    ordered = sorted(sample)
    mean = statistics.mean(ordered)
    sum_squares = math.fsum((x - mean) ** 2 for x in ordered)

    if sum_squares < _MIN_SUM_SQUARES:
        return NormalityResult(
            w=1.0,
            p_value=1.0,
            is_normal=True,
            interpretation="All values identical - trivially normal",
            n=n,
        )

    coefficients = shapiro_wilk_coefficients(n)
    b = 0.0
    for i, a_i in enumerate(coefficients):
        b += a_i * (ordered[n - 1 - i] - ordered[i])

    # Rounding in the coefficient approximation can push W past 1.
    w = min(max(b * b / sum_squares, 0.0), 1.0)
    p_value = shapiro_wilk_p_value(w, n)

    return NormalityResult(
        w=w,
        p_value=p_value,
        is_normal=p_value >= NORMALITY_ALPHA,
        interpretation=_interpret(w, p_value),
        n=n,
    )


def shapiro_wilk_coefficients(n: int) -> list[float]:
    """Return the first floor(n/2) Shapiro-Wilk coefficients for size n.

    Tabulated for n <= 11, otherwise derived from Blom's approximation of
    the expected normal order statistics and normalized to unit length.
    """
    if n in _SMALL_SAMPLE_COEFFICIENTS:
        return list(_SMALL_SAMPLE_COEFFICIENTS[n])

    half = n // 2
    m = [normal_quantile((i - 0.375) / (n + 0.25)) for i in range(1, n + 1)]
    a = [m[n - 1 - i] - m[i] for i in range(half)]

    norm = math.sqrt(math.fsum(x * x for x in a))
    if norm > 0:
        a = [x / norm for x in a]
    return a


def shapiro_wilk_p_value(w: float, n: int) -> float:
    """Convert W to a p-value with Royston's (1992) normalizing transform.

    For n <= 11 the transform is ``-ln(gamma - ln(1 - W))``; for larger n
    it is ``ln(1 - W)``. The normalized value is compared against the
    upper tail of the standard normal.
    """
    if w >= 1:
        return 1.0
    if w <= 0:
        return 0.0

    if n <= 11:
        gamma = 0.459 * n - 2.273
        inner = gamma - math.log(1.0 - w)
        if inner <= 0:
            return 0.0
        transformed = -math.log(inner)
        mu = -0.0006714 * n**3 + 0.025054 * n**2 - 0.39978 * n + 0.5440
        sigma = math.exp(-0.0020322 * n**3 + 0.062767 * n**2 - 0.77857 * n + 1.3822)
    else:
        log_n = math.log(n)
        transformed = math.log(1.0 - w)
        mu = 0.0038915 * log_n**3 - 0.083751 * log_n**2 - 0.31082 * log_n - 1.5861
        sigma = math.exp(0.0030302 * log_n**2 - 0.082676 * log_n - 0.4803)

    z = (transformed - mu) / sigma
    return min(max(1.0 - normal_cdf(z), 0.0), 1.0)


def _interpret(w: float, p_value: float) -> str:
    detail = f"W={w:.4f}, p={p_value:.4f}"
    if p_value >= 0.10:
        return f"Data appears normally distributed ({detail})"
    if p_value >= 0.05:
        return f"Marginal normality ({detail}) - proceed with caution"
    if p_value >= 0.01:
        return f"Non-normal distribution ({detail}) - consider non-parametric test"
    return f"Strongly non-normal ({detail}) - use non-parametric test"
