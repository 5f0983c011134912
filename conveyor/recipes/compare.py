"""
Field-by-field comparison of a stored output snapshot against fresh outputs.

Numeric fields report absolute and relative delta; ANY non-zero delta counts
as drift. Tolerance is a reporting decision, not a comparator decision.
Everything else is compared with canonical payload equality, so an output
that disappeared never equals a snapshot value of null.

Expected issues are matched by code against the engine's errors and warnings.
"""

import math
from typing import List, Optional, Tuple

from ..canonical import MISSING, payloads_equal
from ..schemas import ExpectedIssue, FieldComparison, FieldType, IssueDiff, IssueSeverity, ValidationIssue


def is_numeric(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def relative_delta(expected: float, actual: float) -> float:
    """|actual − expected| / |expected|; with expected == 0 it's inf unless actual is 0 too."""
    delta_abs = abs(actual - expected)
    if expected == 0:
        return math.inf if actual != 0 else 0.0
    return delta_abs / abs(expected)


def compare_field(field: str, expected, actual, actual_present: bool = True) -> FieldComparison:
    if actual_present and is_numeric(expected) and is_numeric(actual):
        delta_abs = abs(actual - expected)
        delta_rel = relative_delta(expected, actual)
        return FieldComparison(
            field=field,
            field_type=FieldType.NUMERIC,
            expected=expected,
            actual=actual,
            delta_abs=delta_abs,
            delta_rel=delta_rel,
            drifted=delta_rel > 0 or math.isnan(delta_rel),
        )

    equal = payloads_equal({"v": expected}, {"v": actual if actual_present else MISSING})
    return FieldComparison(
        field=field,
        field_type=FieldType.OTHER,
        expected=expected,
        actual=actual if actual_present else None,
        actual_present=actual_present,
        drifted=not equal,
    )


def compare_outputs(snapshot: dict, actual_outputs: Optional[dict]) -> List[FieldComparison]:
    """Compare every field present in the snapshot. Extra actual fields are ignored."""
    actual_outputs = actual_outputs or {}
    return [
        compare_field(field, snapshot[field], actual_outputs.get(field), field in actual_outputs)
        for field in sorted(snapshot)
    ]


def summarize_comparisons(comparisons: List[FieldComparison]) -> Tuple[bool, Optional[float], Optional[str]]:
    """(passed, max numeric delta_rel, field holding it)."""
    passed = not any(c.drifted for c in comparisons)
    max_rel = None
    max_field = None
    for c in comparisons:
        if c.field_type == FieldType.NUMERIC and c.delta_rel is not None:
            if max_rel is None or c.delta_rel > max_rel:
                max_rel = c.delta_rel
                max_field = c.field
    return passed, max_rel, max_field


def issue_code(issue: ValidationIssue) -> str:
    """ERROR_<FIELD> / WARN_<FIELD>, or bare ERROR / WARN for issues without a field."""
    prefix = "ERROR" if issue.severity == IssueSeverity.ERROR else "WARN"
    return "%s_%s" % (prefix, issue.field.upper()) if issue.field else prefix


def compare_issues(expected: List[ExpectedIssue], actual: List[ValidationIssue]) -> IssueDiff:
    """
    Check expected issues against what the engine reported.

    A required issue that never appeared is missing. An error nobody expected
    is unexpected. Unexpected warnings and info never fail a recipe.
    """
    actual_codes = {issue_code(i) for i in actual}
    expected_codes = {e.code for e in expected}

    missing = [e for e in expected if e.required and e.code not in actual_codes]
    unexpected = list(dict.fromkeys(
        issue_code(i) for i in actual
        if i.severity == IssueSeverity.ERROR and issue_code(i) not in expected_codes
    ))
    matched = [e.code for e in expected if e.code in actual_codes]

    return IssueDiff(passed=not missing and not unexpected,
                     missing=missing, unexpected=unexpected, matched=matched)
