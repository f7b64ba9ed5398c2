"""Terminal display formatting for comparison and diagnostics results.

Produces aligned tables and summaries. Uses Unicode box-drawing
characters for section headers. No external dependencies.
"""

from __future__ import annotations

from evidence_gate.compare import CompareResult, TestUsed
from evidence_gate.diagnostics import DiagnosticsResult, SampleDiagnostics
from evidence_gate.formatting import (
    format_number,
    format_pct,
    format_section_header,
    format_table,
    format_value_list,
)
from evidence_gate.stats.normality import NormalityResult
from evidence_gate.stats.outliers import CombinedOutlierResult, IQROutlierResult, OutlierResult


def _sample_row(label: str, diag: SampleDiagnostics) -> list[str]:
    return [
        label,
        str(diag.n),
        format_number(diag.mean, 3),
        format_number(diag.std_dev, 3),
        format_number(diag.min, 3),
        format_number(diag.max, 3),
        str(diag.outliers.count),
        format_number(diag.normality.w, 3),
        format_number(diag.normality.p_value, 4),
    ]


_SAMPLE_HEADERS = ["Sample", "n", "Mean", "StdDev", "Min", "Max", "Outliers", "W", "p(normal)"]
_SAMPLE_ALIGN = ["l", "r", "r", "r", "r", "r", "r", "r", "r"]


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def format_compare_result(result: CompareResult) -> str:
    """Format a comparison for terminal output.

    Shows the verdict, per-sample diagnostics, test evidence, the gates
    that were evaluated, any warnings and the interpretation.
    """
    label_a, label_b = result.config.labels
    ev = result.evidence
    lines: list[str] = []

    title = f"{label_a} vs {label_b}: {result.verdict.value.upper()}"
    lines.append(title)
    lines.append("═" * len(title))
    lines.append(
        f"Recommendation: {result.recommendation.value}   "
        f"Data quality: {result.diagnostics.overall_quality.value}"
    )
    lines.append("")

    lines.append(format_section_header("Samples"))
    lines.append(
        format_table(
            _SAMPLE_HEADERS,
            [
                _sample_row(label_a, result.diagnostics.sample_a),
                _sample_row(label_b, result.diagnostics.sample_b),
            ],
            alignments=_SAMPLE_ALIGN,
        )
    )
    lines.append("")

    lines.append(format_section_header("Evidence"))
    if ev.test_used is TestUsed.WELCH_T_TEST:
        stat = f"t = {format_number(ev.test_statistic, 3)}, df = {format_number(ev.degrees_of_freedom, 1)}"
        effect = f"Cohen's d = {format_number(ev.effect_size, 3)} ({ev.effect_size_label})"
    else:
        stat = f"U = {format_number(ev.test_statistic, 1)}"
        effect = f"rank-biserial r = {format_number(ev.effect_size, 3)} ({ev.effect_size_label})"
    lines.append(f"  Test:        {ev.test_used.value}")
    lines.append(f"  Statistic:   {stat}")
    lines.append(f"  p-value:     {format_number(ev.p_value, 6)}")
    lines.append(f"  Effect size: {effect}")
    lines.append(
        f"  Difference:  {format_number(ev.difference, 3)} ({format_pct(ev.difference_percent)})"
    )
    if ev.ci95 is not None:
        lines.append(
            f"  95% CI:      [{format_number(ev.ci95[0], 3)}, {format_number(ev.ci95[1], 3)}]"
        )
    lines.append("")

    if result.gates:
        lines.append(format_section_header("Gates"))
        rows = [
            [
                g.name,
                format_number(g.observed, 4),
                format_number(g.threshold, 4),
                "pass" if g.passed else "FAIL",
            ]
            for g in result.gates
        ]
        lines.append(
            format_table(
                ["Gate", "Observed", "Threshold", "Result"],
                rows,
                alignments=["l", "r", "r", "l"],
            )
        )
        lines.append("")

    if result.diagnostics.warnings:
        lines.append(format_section_header("Warnings"))
        for w in result.diagnostics.warnings:
            lines.append(f"  ⚠ {w}")
        lines.append("")

    lines.append(result.interpretation)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Single-sample views
# ---------------------------------------------------------------------------


def format_diagnostics(result: DiagnosticsResult, label: str = "sample") -> str:
    """Format single-sample diagnostics for terminal output."""
    lines = [
        format_section_header(f"Diagnostics: {label}"),
        format_table(
            _SAMPLE_HEADERS,
            [_sample_row(label, result.sample)],
            alignments=_SAMPLE_ALIGN,
        ),
        "",
        f"Recommendation: {result.recommendation.value}",
        result.summary,
    ]
    return "\n".join(lines)


def format_normality(result: NormalityResult) -> str:
    """Format a Shapiro-Wilk result."""
    verdict = "normal" if result.is_normal else "non-normal"
    return "\n".join(
        [
            f"Shapiro-Wilk (n={result.n}): W = {format_number(result.w, 4)}, "
            f"p = {format_number(result.p_value, 4)} -> {verdict}",
            result.interpretation,
        ]
    )


def _outlier_lines(name: str, result: OutlierResult | IQROutlierResult) -> list[str]:
    lines = [f"{name}: {result.count} outlier(s)"]
    if result.count:
        lines.append(f"  indices: {result.indices}")
        lines.append(f"  values:  {format_value_list(result.values, 3)}")
    if result.too_many:
        lines.append("  more than 10% of the data are outliers")
    if isinstance(result, IQROutlierResult):
        lines.append(
            f"  Q1 = {format_number(result.q1, 3)}, Q3 = {format_number(result.q3, 3)}, "
            f"fences = [{format_number(result.lower_fence, 3)}, "
            f"{format_number(result.upper_fence, 3)}]"
        )
    return lines


def format_outliers(result: OutlierResult | IQROutlierResult | CombinedOutlierResult) -> str:
    """Format the result of any of the outlier detectors."""
    if isinstance(result, CombinedOutlierResult):
        lines = _outlier_lines("z-score", result.zscore)
        lines += _outlier_lines("IQR", result.iqr)
        lines.append(f"Recommended method: {result.recommended_method}")
        lines.append(f"  {result.reason}")
        return "\n".join(lines)
    if isinstance(result, IQROutlierResult):
        return "\n".join(_outlier_lines("IQR", result))
    return "\n".join(_outlier_lines("z-score", result))
