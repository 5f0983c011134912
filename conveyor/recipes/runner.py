"""
Recipe runner: re-executes stored recipes against the current engine.

Comparison modes pick the snapshot to diff against:

    expected  curated expected_outputs
    baseline  baseline_outputs (captured when the recipe was blessed)
    legacy    legacy_outputs (from the spreadsheet / previous system)
    previous  outputs of the last recorded run, supplied by the caller

A missing snapshot is a skip (passed=None), never a silent switch to another
mode. The caller can opt into expected-with-fallback explicitly.
"""

import logging
import time
from typing import Dict, Iterable, List, Optional

from .. import engine
from ..canonical import hash_canonical
from ..config import settings
from ..models import ComparisonMode
from ..schemas import Recipe, RecipeRunResult, ValidationIssue
from .compare import compare_issues, compare_outputs, summarize_comparisons

logger = logging.getLogger(__name__)

MAX_FAILURES_SHOWN = 5


def select_snapshot(recipe: Recipe, mode: ComparisonMode, previous_outputs: Optional[dict] = None):
    if mode == ComparisonMode.EXPECTED:
        return recipe.expected_outputs
    if mode == ComparisonMode.BASELINE:
        return recipe.baseline_outputs
    if mode == ComparisonMode.LEGACY:
        return recipe.legacy_outputs
    return previous_outputs


def run_recipe(recipe: Recipe, comparison_mode=ComparisonMode.EXPECTED, run_context: str = "manual",
               previous_outputs: Optional[dict] = None,
               fallback_to_expected: bool = False) -> RecipeRunResult:
    """
    Run one recipe and diff it against the snapshot for comparison_mode.

    Never raises for a bad recipe: an engine exception becomes passed=None
    with error set, so a sweep keeps going.
    """
    started = time.perf_counter()
    mode = ComparisonMode(comparison_mode)
    result = RecipeRunResult(
        recipe_id=recipe.id,
        recipe_name=recipe.name,
        recipe_tier=recipe.tier,
        comparison_mode=mode,
        model_version_id=settings.MODEL_VERSION_ID,
        run_context=run_context,
        inputs_hash=recipe.inputs_hash or hash_canonical(recipe.inputs),
    )

    effective_mode = mode
    snapshot = select_snapshot(recipe, mode, previous_outputs)
    if snapshot is None and fallback_to_expected and recipe.expected_outputs is not None:
        effective_mode = ComparisonMode.EXPECTED
        snapshot = recipe.expected_outputs
    result.effective_mode = effective_mode

    if snapshot is None:
        result.skip_reason = "no %s snapshot" % mode.value
        result.duration_ms = _elapsed_ms(started)
        return result

    try:
        calc = engine.calculate(recipe.inputs, model_key=recipe.model_key)
    except Exception as e:
        logger.warning("Recipe %s (%s) raised during calculation: %s",
                       recipe.name, recipe.id, e, exc_info=True)
        result.error = "%s: %s" % (type(e).__name__, e)
        result.duration_ms = _elapsed_ms(started)
        return result

    outputs = calc["outputs"]
    result.actual_outputs = outputs
    result.outputs_hash = hash_canonical(outputs) if outputs is not None else None
    result.actual_errors = [ValidationIssue(**i) for i in calc["errors"]]
    result.actual_warnings = [ValidationIssue(**i) for i in calc["warnings"]]

    result.comparisons = compare_outputs(snapshot, outputs)
    result.passed, result.max_drift_rel, result.max_drift_field = summarize_comparisons(result.comparisons)
    if recipe.expected_issues:
        result.issue_diff = compare_issues(recipe.expected_issues,
                                           result.actual_errors + result.actual_warnings)
        result.passed = result.passed and result.issue_diff.passed
    result.duration_ms = _elapsed_ms(started)
    return result


def run_recipes(recipes: Iterable[Recipe], comparison_mode=ComparisonMode.EXPECTED,
                run_context: str = "manual",
                previous_outputs: Optional[Dict[int, dict]] = None,
                fallback_to_expected: bool = False) -> List[RecipeRunResult]:
    """Run every recipe independently. One broken recipe never stops the sweep."""
    previous_outputs = previous_outputs or {}
    results = [
        run_recipe(recipe, comparison_mode, run_context,
                   previous_outputs=previous_outputs.get(recipe.id),
                   fallback_to_expected=fallback_to_expected)
        for recipe in recipes
    ]
    passed = sum(1 for r in results if r.passed is True)
    failed = sum(1 for r in results if r.passed is False)
    logger.info("Recipe sweep (%s, %s): %d passed, %d failed, %d skipped",
                ComparisonMode(comparison_mode).value, run_context,
                passed, failed, len(results) - passed - failed)
    return results


def run_status_label(result: RecipeRunResult) -> str:
    if result.passed is None:
        return "ERROR" if result.error else "SKIP"
    return "PASS" if result.passed else "FAIL"


def format_run_result(result: RecipeRunResult) -> str:
    lines = ["%s %s (%s)" % (run_status_label(result), result.recipe_name, result.recipe_tier)]

    if result.skip_reason:
        lines.append("  skipped: %s" % result.skip_reason)
    if result.error:
        lines.append("  error: %s" % result.error)

    if result.passed is False:
        failures = result.failures
        for f in failures[:MAX_FAILURES_SHOWN]:
            drift = ""
            if f.delta_rel is not None:
                drift = " (%.2f%%)" % (f.delta_rel * 100)
            actual = f.actual if f.actual_present else "<missing>"
            lines.append("  - %s: expected %s, got %s%s" % (f.field, f.expected, actual, drift))
        if len(failures) > MAX_FAILURES_SHOWN:
            lines.append("  ... and %d more failures" % (len(failures) - MAX_FAILURES_SHOWN))
        diff = result.issue_diff
        if diff and diff.missing:
            lines.append("  Missing issues: %s" % ", ".join(e.code for e in diff.missing))
        if diff and diff.unexpected:
            lines.append("  Unexpected errors: %s" % ", ".join(diff.unexpected))
        for issue in result.actual_errors:
            lines.append("  engine error: %s" % issue.message)

    lines.append("  Duration: %.1fms" % result.duration_ms)
    return "\n".join(lines)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)
