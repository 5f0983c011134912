"""
Drift aggregation across a recipe sweep.

Collects every drifted numeric field from every run result, sorts by relative
drift (largest first) and surfaces the top N. This list is the signal for an
unintended engine change.
"""

from typing import Iterable, List

from ..schemas import DriftEntry, FieldType, RecipeRunResult

RULE = "━" * 60


def collect_drift_entries(results: Iterable[RecipeRunResult]) -> List[DriftEntry]:
    entries = []
    for result in results:
        for c in result.comparisons:
            if c.field_type != FieldType.NUMERIC or not c.drifted:
                continue
            entries.append(DriftEntry(
                recipe_id=result.recipe_id,
                recipe_name=result.recipe_name,
                field=c.field,
                expected=c.expected,
                actual=c.actual,
                delta_abs=c.delta_abs,
                delta_rel=c.delta_rel,
            ))
    entries.sort(key=lambda e: (-e.delta_rel, e.recipe_name, e.field))
    return entries


def rank_drift(results: Iterable[RecipeRunResult], top_n: int = 10) -> List[DriftEntry]:
    return collect_drift_entries(results)[:max(top_n, 0)]


def summarize_runs(results: Iterable[RecipeRunResult]) -> dict:
    summary = {"total": 0, "passed": 0, "failed": 0, "skipped": 0, "errored": 0}
    for r in results:
        summary["total"] += 1
        if r.passed is True:
            summary["passed"] += 1
        elif r.passed is False:
            summary["failed"] += 1
        elif r.error:
            summary["errored"] += 1
        else:
            summary["skipped"] += 1
    return summary


def format_drift_pct(delta_rel: float) -> str:
    if delta_rel == float("inf"):
        return "inf"
    return "%.4f" % (delta_rel * 100)


def format_drift_summary(entries: List[DriftEntry], top_n: int = 10, hidden: int = 0) -> str:
    """Text block for the top-N drifted fields. entries must already be sorted.

    hidden counts drifted fields a reader chose to suppress (see tolerance.py).
    """
    lines = ["", RULE, "TOP DRIFT FIELDS", RULE]
    if not entries:
        lines.append("No drift outside tolerance." if hidden else "No drift detected.")
        if hidden:
            lines.append("(%d drifted field(s) within tolerance not shown)" % hidden)
        return "\n".join(lines)

    for i, e in enumerate(entries[:top_n], start=1):
        lines.append("%d. %s (%s)" % (i, e.field, e.recipe_name))
        lines.append("   Drift: %s%%" % format_drift_pct(e.delta_rel))
        lines.append("   Expected: %s → Actual: %s" % (e.expected, e.actual))
        lines.append("")

    if len(entries) > top_n:
        lines.append("... and %d more fields with drift" % (len(entries) - top_n))
    if hidden:
        lines.append("(%d drifted field(s) within tolerance not shown)" % hidden)
    return "\n".join(lines)
