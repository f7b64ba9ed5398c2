"""evidence-gate: evidence-based two-sample comparisons.

A difference between two conditions is only reported as significant when
it passes three gates: statistical significance, effect size and a
practical threshold. Noisy or malformed samples are diagnosed first and
routed to a non-parametric test.
"""

from __future__ import annotations

__version__ = "0.1.0"

from evidence_gate.compare import (  # noqa: E402
    CompareResult,
    ComparisonDiagnostics,
    DataQuality,
    Evidence,
    GateOutcome,
    TestUsed,
    Verdict,
    compare_conditions,
)
from evidence_gate.config import CompareConfig, DiagnosticsConfig  # noqa: E402
from evidence_gate.diagnostics import (  # noqa: E402
    DiagnosticsResult,
    Recommendation,
    SampleDiagnostics,
    get_sample_diagnostics,
    run_diagnostics,
)
from evidence_gate.stats.mann_whitney import MannWhitneyResult, mann_whitney_u  # noqa: E402
from evidence_gate.stats.normality import NormalityResult, shapiro_wilk_test  # noqa: E402
from evidence_gate.stats.outliers import (  # noqa: E402
    CombinedOutlierResult,
    IQROutlierResult,
    OutlierResult,
    detect_outliers,
    detect_outliers_combined,
    detect_outliers_iqr,
)
from evidence_gate.stats.special import t_dist_cdf, t_dist_quantile  # noqa: E402
from evidence_gate.stats.ttest import WelchResult, effect_size_label, welch_ttest  # noqa: E402

__all__ = [
    "CombinedOutlierResult",
    "CompareConfig",
    "CompareResult",
    "ComparisonDiagnostics",
    "DataQuality",
    "DiagnosticsConfig",
    "DiagnosticsResult",
    "Evidence",
    "GateOutcome",
    "IQROutlierResult",
    "MannWhitneyResult",
    "NormalityResult",
    "OutlierResult",
    "Recommendation",
    "SampleDiagnostics",
    "TestUsed",
    "Verdict",
    "WelchResult",
    "__version__",
    "compare_conditions",
    "detect_outliers",
    "detect_outliers_combined",
    "detect_outliers_iqr",
    "effect_size_label",
    "get_sample_diagnostics",
    "mann_whitney_u",
    "run_diagnostics",
    "shapiro_wilk_test",
    "t_dist_cdf",
    "t_dist_quantile",
    "welch_ttest",
]
