"""
PCI tube stress tests.

Tests:
1-4.  Boundary: reported at the limit, 0.4 psi over, just above (warn / fail)
5-7.  Incomplete, invalid geometry, estimated hub centers
8-10. Limits, V-groove heuristic, status rollup
"""

import math

from conveyor.calculators.tube_stress import (
    PCI_TUBE_STRESS_LIMIT_DRUM_PSI,
    PCI_TUBE_STRESS_LIMIT_VGROOVE_PSI,
    TubeStressInputs,
    TubeStressStatus,
    calculate_tube_stress,
    get_tube_stress_limit,
    is_v_groove_pulley,
    worst_status,
)

# F that puts an 8" OD x 0.25" wall tube (ID 7.5") at exactly 10,000 psi with H = 1"
F_AT_LIMIT = 10000 * math.pi * (8 ** 4 - 7.5 ** 4) / 64


def _tube(od=8.0, wall=0.25, hub=1.0, load=F_AT_LIMIT):
    return TubeStressInputs(tube_od_in=od, tube_wall_in=wall, hub_centers_in=hub, radial_load_lbf=load)


# ============================================================
# Limit boundary
# ============================================================

def test_stress_reported_at_limit_passes():
    # a hair under the limit still reports as 10000 psi
    result = calculate_tube_stress(_tube(load=F_AT_LIMIT * (1 - 1e-9)), PCI_TUBE_STRESS_LIMIT_DRUM_PSI,
                                   hub_centers_estimated=False, enforce=False)
    assert result.stress_psi == 10000
    assert result.status == TubeStressStatus.PASS


def test_stress_over_limit_by_less_than_rounding_still_fails():
    # raw stress 10000.4 psi reports as 10000 but is over the limit
    over = _tube(load=F_AT_LIMIT * 10000.4 / 10000)

    enforced = calculate_tube_stress(over, PCI_TUBE_STRESS_LIMIT_DRUM_PSI,
                                     hub_centers_estimated=False, enforce=True)
    assert enforced.stress_psi == 10000
    assert enforced.status == TubeStressStatus.FAIL

    advisory = calculate_tube_stress(over, PCI_TUBE_STRESS_LIMIT_DRUM_PSI,
                                     hub_centers_estimated=False, enforce=False)
    assert advisory.status == TubeStressStatus.WARN


def test_stress_above_limit_warns_when_not_enforced():
    result = calculate_tube_stress(_tube(load=F_AT_LIMIT * 1.001), PCI_TUBE_STRESS_LIMIT_DRUM_PSI,
                                   hub_centers_estimated=False, enforce=False)
    assert result.stress_psi == 10010
    assert result.status == TubeStressStatus.WARN


def test_stress_above_limit_fails_when_enforced():
    result = calculate_tube_stress(_tube(load=F_AT_LIMIT * 1.001), PCI_TUBE_STRESS_LIMIT_DRUM_PSI,
                                   hub_centers_estimated=True, enforce=True)
    assert result.status == TubeStressStatus.FAIL


# ============================================================
# Degraded inputs
# ============================================================

def test_missing_geometry_is_incomplete():
    for od, wall in ((0, 0.25), (8, 0), (0, 0)):
        result = calculate_tube_stress(_tube(od=od, wall=wall), 10000, False, True)
        assert result.status == TubeStressStatus.INCOMPLETE
        assert result.stress_psi is None


def test_wall_at_radius_is_error():
    result = calculate_tube_stress(_tube(od=1.0, wall=0.5), 10000, False, False)
    assert result.status == TubeStressStatus.ERROR
    assert result.stress_psi is None
    assert result.error_message == 'Invalid tube geometry: wall thickness (0.5") exceeds radius (0.5")'


def test_estimated_hub_centers_under_limit():
    result = calculate_tube_stress(_tube(load=F_AT_LIMIT / 2), 10000,
                                   hub_centers_estimated=True, enforce=False)
    assert result.stress_psi == 5000
    assert result.status == TubeStressStatus.ESTIMATED


# ============================================================
# Limits & rollup
# ============================================================

def test_limits_by_pulley_type():
    assert get_tube_stress_limit(False) == PCI_TUBE_STRESS_LIMIT_DRUM_PSI == 10000
    assert get_tube_stress_limit(True) == PCI_TUBE_STRESS_LIMIT_VGROOVE_PSI == 3400

    # Drum-safe stress can still exceed the V-groove limit
    result = calculate_tube_stress(_tube(load=F_AT_LIMIT / 2), get_tube_stress_limit(True), False, False)
    assert result.status == TubeStressStatus.WARN


def test_v_groove_heuristic():
    assert is_v_groove_pulley("V-guided", "K10") is True
    assert is_v_groove_pulley("V-guided", None) is False
    assert is_v_groove_pulley("Crowned", "K10") is False


def test_worst_status_rollup():
    assert worst_status(TubeStressStatus.PASS, TubeStressStatus.ESTIMATED) == TubeStressStatus.ESTIMATED
    assert worst_status(TubeStressStatus.INCOMPLETE, TubeStressStatus.WARN) == TubeStressStatus.WARN
    assert worst_status(TubeStressStatus.FAIL, TubeStressStatus.ERROR) == TubeStressStatus.ERROR
