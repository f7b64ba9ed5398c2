"""Welch's t-test for two independent samples with unequal variances.

References:
    Welch, B. L. (1947). "The generalization of 'Student's' problem when
        several different population variances are involved."
        Biometrika 34(1-2): 28-35.
    Cohen, J. (1988). "Statistical Power Analysis for the Behavioral
        Sciences." 2nd ed.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Any, Sequence

from evidence_gate.formatting import json_float
from evidence_gate.stats.special import t_dist_cdf, t_dist_quantile


def effect_size_label(d: float) -> str:
    """Classify Cohen's d per Cohen's conventions.

    |d| < 0.2: negligible
    |d| < 0.5: small
    |d| < 0.8: medium
    |d| >= 0.8: large
    """
    d_abs = abs(d)
    if d_abs < 0.2:
        return "negligible"
    if d_abs < 0.5:
        return "small"
    if d_abs < 0.8:
        return "medium"
    return "large"


@dataclass
class WelchResult:
    """Result of Welch's t-test (sample A minus sample B)."""

    t: float
    df: float  # Welch-Satterthwaite, not necessarily integral
    p_value: float  # two-tailed
    significant: bool  # p < alpha
    effect_size: float  # Cohen's d, pooled standard deviation
    effect_size_label: str
    mean_diff: float
    ci95: tuple[float, float]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "t": json_float(self.t),
            "df": json_float(self.df),
            "p_value": json_float(self.p_value),
            "significant": self.significant,
            "effect_size": json_float(self.effect_size),
            "effect_size_label": self.effect_size_label,
            "mean_diff": json_float(self.mean_diff),
            "ci95": [json_float(self.ci95[0]), json_float(self.ci95[1])],
        }


def welch_ttest(
    sample_a: Sequence[float],
    sample_b: Sequence[float],
    alpha: float = 0.05,
) -> WelchResult:
    """Perform Welch's t-test for two independent samples.

    Tests the null hypothesis that the two populations have equal
    means, without assuming equal variances. Variances use the n-1
    denominator. The effect size is Cohen's d with the pooled standard
    deviation, which weights the groups differently from the
    Welch-Satterthwaite degrees of freedom. Values around 1e155 and
    above overflow the variance and should be rescaled first.

    Args:
        sample_a: First sample (at least 2 values; caller must guard).
        sample_b: Second sample (at least 2 values).
        alpha: Significance level; also sets the CI level (1 - alpha).

    Returns:
        WelchResult with t, df, two-tailed p-value, Cohen's d and the
        confidence interval for ``mean(a) - mean(b)``.
    """
    n1, n2 = len(sample_a), len(sample_b)
    m1 = statistics.mean(sample_a)
    m2 = statistics.mean(sample_b)
    v1 = statistics.variance(sample_a)
    v2 = statistics.variance(sample_b)
    mean_diff = m1 - m2

    pooled_std = math.sqrt(((n1 - 1) * v1 + (n2 - 1) * v2) / (n1 + n2 - 2))
    d = _cohens_d(mean_diff, pooled_std)

    se_a = v1 / n1
    se_b = v2 / n2
    se = math.sqrt(se_a + se_b)

    if se == 0:
        # Both samples constant: the difference is either exactly zero
        # or infinitely significant.
        if mean_diff == 0:
            t, p = 0.0, 1.0
        else:
            t, p = math.copysign(float("inf"), mean_diff), 0.0
        return WelchResult(
            t=t,
            df=float(n1 + n2 - 2),
            p_value=p,
            significant=p < alpha,
            effect_size=d,
            effect_size_label=effect_size_label(d),
            mean_diff=mean_diff,
            ci95=(mean_diff, mean_diff),
        )

    t = mean_diff / se
    # Welch-Satterthwaite df from each sample's share of the variance, so
    # tiny variances cannot underflow the denominator.
    share_a = se_a / (se_a + se_b)
    share_b = se_b / (se_a + se_b)
    df = 1.0 / (share_a**2 / (n1 - 1) + share_b**2 / (n2 - 1))
    p = 2.0 * (1.0 - t_dist_cdf(abs(t), df))
    p = min(max(p, 0.0), 1.0)

    t_crit = t_dist_quantile(1.0 - alpha / 2.0, df)
    ci95 = (mean_diff - t_crit * se, mean_diff + t_crit * se)

    return WelchResult(
        t=t,
        df=df,
        p_value=p,
        significant=p < alpha,
        effect_size=d,
        effect_size_label=effect_size_label(d),
        mean_diff=mean_diff,
        ci95=ci95,
    )


def _cohens_d(mean_diff: float, pooled_std: float) -> float:
    if pooled_std == 0:
        if mean_diff == 0:
            return 0.0
        return math.copysign(float("inf"), mean_diff)
    return mean_diff / pooled_std
