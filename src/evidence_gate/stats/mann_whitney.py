"""Mann-Whitney U test, the non-parametric alternative to the t-test.

Compares ranks rather than means, so it stays valid when the samples
are skewed or contain outliers. The p-value uses the normal
approximation with a continuity correction; it is reliable for
n1, n2 >= 8 and used as an approximation below that.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from evidence_gate.formatting import json_float
from evidence_gate.stats.special import normal_cdf


def rank_biserial_label(r: float) -> str:
    """Classify a rank-biserial correlation.

    The scale runs from -1 to 1 and uses its own thresholds, distinct
    from Cohen's d:

    |r| < 0.1: negligible
    |r| < 0.3: small
    |r| < 0.5: medium
    |r| >= 0.5: large
    """
    r_abs = abs(r)
    if r_abs < 0.1:
        return "negligible"
    if r_abs < 0.3:
        return "small"
    if r_abs < 0.5:
        return "medium"
    return "large"


@dataclass
class MannWhitneyResult:
    """Result of the Mann-Whitney U test."""

    u: float  # the smaller of U1 and U2
    p_value: float  # two-tailed
    significant: bool
    effect_size: float  # rank-biserial correlation
    effect_size_label: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "u": json_float(self.u),
            "p_value": json_float(self.p_value),
            "significant": self.significant,
            "effect_size": json_float(self.effect_size),
            "effect_size_label": self.effect_size_label,
        }


def assign_ranks(sorted_values: Sequence[float]) -> list[float]:
    """Assign 1-based ranks to ascending values, averaging ties.

    Values that are equal share the mean of the ranks they occupy, e.g.
    ``[1, 2, 2, 3]`` gets ranks ``[1, 2.5, 2.5, 4]``.
    """
    n = len(sorted_values)
    ranks = [0.0] * n
    i = 0
    while i < n:
        j = i
        while j < n and sorted_values[j] == sorted_values[i]:
            j += 1
        # Positions i..j-1 hold ranks i+1..j.
        avg_rank = (i + 1 + j) / 2.0
        for k in range(i, j):
            ranks[k] = avg_rank
        i = j
    return ranks


def mann_whitney_u(
    sample_a: Sequence[float],
    sample_b: Sequence[float],
    alpha: float = 0.05,
) -> MannWhitneyResult:
    """Mann-Whitney U test for two independent samples.

    Args:
        sample_a: First sample.
        sample_b: Second sample.
        alpha: Significance level.

    Returns:
        MannWhitneyResult with U, the continuity-corrected two-tailed
        p-value and the rank-biserial effect size ``1 - 2U / (n1*n2)``.
    """
    n1, n2 = len(sample_a), len(sample_b)

    # Tag each value with its group (0 = A, 1 = B); sorted() is stable.
    combined = sorted(
        [(v, 0) for v in sample_a] + [(v, 1) for v in sample_b],
        key=lambda item: item[0],
    )
    ranks = assign_ranks([v for v, _ in combined])

    rank_sums = [0.0, 0.0]
    for (_, group), rank in zip(combined, ranks):
        rank_sums[group] += rank

    u1 = rank_sums[0] - n1 * (n1 + 1) / 2.0
    u2 = rank_sums[1] - n2 * (n2 + 1) / 2.0
    u = min(u1, u2)

    mean_u = n1 * n2 / 2.0
    std_u = math.sqrt(n1 * n2 * (n1 + n2 + 1) / 12.0)

    z = (u - mean_u + 0.5) / std_u
    p = min(max(2.0 * normal_cdf(-abs(z)), 0.0), 1.0)

    r = 1.0 - 2.0 * u / (n1 * n2)

    return MannWhitneyResult(
        u=u,
        p_value=p,
        significant=p < alpha,
        effect_size=r,
        effect_size_label=rank_biserial_label(r),
    )
