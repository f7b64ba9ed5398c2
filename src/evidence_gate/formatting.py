"""Shared text formatting helpers for evidence-gate.

Provides number formatting, aligned tables and section headers used by
the interpretation text, terminal display and JSON serialization.
"""

from __future__ import annotations

import math


def json_float(value: float, places: int = 6) -> float | str | None:
    """Round a float for JSON output.

    NaN becomes ``None`` and infinities become ``"inf"``/``"-inf"`` so the
    result is valid strict JSON.
    """
    if math.isnan(value):
        return None
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return round(value, places)


def format_number(value: float, precision: int = 1) -> str:
    """Format a float with fixed precision, ``'N/A'`` for NaN."""
    if math.isnan(value):
        return "N/A"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return f"{value:.{precision}f}"


def format_value_list(values: list[float], precision: int = 1) -> str:
    """Format values as ``'[1.0, 2.5]'``."""
    return "[" + ", ".join(format_number(v, precision) for v in values) + "]"


def format_pct(value: float, precision: int = 1) -> str:
    """Format a percentage with sign."""
    if math.isnan(value):
        return "N/A"
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{precision}f}%"


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    alignments: list[str] | None = None,
    indent: int = 2,
) -> str:
    """Format a list of rows as an aligned text table.

    Column widths are computed from content. Columns marked ``'r'`` in
    *alignments* are right-aligned.

    Args:
        headers: Column header strings.
        rows: List of rows, each a list of cell strings.
        alignments: Per-column alignment: ``'l'`` or ``'r'``.
        indent: Number of leading spaces per line.

    Returns:
        The formatted table as a string.
    """
    if not headers:
        return ""

    ncols = len(headers)
    aligns = list(alignments or [])
    while len(aligns) < ncols:
        aligns.append("l")

    proc_rows: list[list[str]] = []
    for row in rows:
        padded = list(row) + [""] * (ncols - len(row))
        proc_rows.append(padded[:ncols])

    widths = [len(h) for h in headers]
    for row in proc_rows:
        for ci, cell in enumerate(row):
            widths[ci] = max(widths[ci], len(cell))

    def _cell(text: str, width: int, align: str) -> str:
        return text.rjust(width) if align == "r" else text.ljust(width)

    prefix = " " * indent
    lines = [prefix + "  ".join(_cell(headers[i], widths[i], aligns[i]) for i in range(ncols))]
    for row in proc_rows:
        lines.append(prefix + "  ".join(_cell(row[i], widths[i], aligns[i]) for i in range(ncols)))
    return "\n".join(line.rstrip() for line in lines)


def format_section_header(title: str, width: int = 60) -> str:
    """Format a section header: ``'─── Title ──...'``."""
    prefix = "─── "
    suffix_len = width - len(prefix) - len(title) - 1
    return prefix + title + " " + "─" * max(0, suffix_len)
