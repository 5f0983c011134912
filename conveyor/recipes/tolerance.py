"""
Report-side tolerances for drift.

The comparator is exact: any non-zero delta fails a recipe. A drift report
reader can still choose to hide drift that sits inside an engineering
tolerance. Nothing here changes pass/fail.
"""

import math
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel

from ..schemas import DriftEntry


class ToleranceSpec(BaseModel):
    abs_tol: Optional[float] = None    # |actual - expected| <= abs_tol
    rel_tol: Optional[float] = None    # |actual - expected| / |expected| <= rel_tol (decimal)
    decimals: Optional[int] = None     # round both sides first

    class Config:
        frozen = True


# By output field suffix, first match wins
DEFAULT_TOLERANCES = {
    "_in": ToleranceSpec(abs_tol=0.001),      # dimensions: 0.001"
    "_lbf": ToleranceSpec(abs_tol=0.1),       # forces
    "_lb": ToleranceSpec(abs_tol=0.1),        # weights / belt pull
    "_rpm": ToleranceSpec(rel_tol=0.001),     # speeds: 0.1%
    "_pph": ToleranceSpec(rel_tol=0.01),      # throughput: 1%
    "_ratio": ToleranceSpec(rel_tol=0.001),
    "_pct": ToleranceSpec(abs_tol=0.1),       # percentage points
}

FALLBACK_TOLERANCE = ToleranceSpec(rel_tol=0.0001)


def get_default_tolerance(field: str) -> ToleranceSpec:
    for suffix, tolerance in DEFAULT_TOLERANCES.items():
        if field.endswith(suffix):
            return tolerance
    return FALLBACK_TOLERANCE


def _round_half_up(value: float, decimals: int) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def within_tolerance(expected: float, actual: float, tolerance: ToleranceSpec) -> bool:
    if tolerance.decimals is not None:
        expected = _round_half_up(expected, tolerance.decimals)
        actual = _round_half_up(actual, tolerance.decimals)

    delta = abs(actual - expected)
    if expected != 0:
        delta_rel = delta / abs(expected)
    else:
        delta_rel = math.inf if actual != 0 else 0.0

    if tolerance.abs_tol is not None and delta > tolerance.abs_tol:
        return False
    if tolerance.rel_tol is not None and delta_rel > tolerance.rel_tol:
        return False
    return True


def apply_tolerances(entries: Iterable[DriftEntry],
                     tolerances: Optional[Dict[str, ToleranceSpec]] = None
                     ) -> Tuple[List[DriftEntry], int]:
    """(entries outside tolerance, count hidden). Per-field overrides beat the suffix table."""
    tolerances = tolerances or {}
    kept = []
    hidden = 0
    for e in entries:
        tolerance = tolerances.get(e.field) or get_default_tolerance(e.field)
        if within_tolerance(e.expected, e.actual, tolerance):
            hidden += 1
        else:
            kept.append(e)
    return kept, hidden
