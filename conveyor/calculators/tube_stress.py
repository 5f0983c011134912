"""
PCI tube stress check for drum / V-groove pulley tubes.

PCI Conveyor Pulley Selection Guide Rev 2.1, Appendix A:

    σ = 8·OD·F·H / (π·(OD⁴ − ID⁴)),   ID = OD − 2·wall

    OD   tube outer diameter (in)
    F    resultant radial load on the pulley (lbf)
    H    hub center-to-center distance (in)

Limits: 10,000 psi for drum (plain) pulleys, 3,400 psi for V-groove pulleys.
"""

import enum
import math
from typing import Optional

from pydantic import BaseModel

PCI_TUBE_STRESS_LIMIT_DRUM_PSI = 10000
PCI_TUBE_STRESS_LIMIT_VGROOVE_PSI = 3400


class TubeStressStatus(str, enum.Enum):
    PASS = "pass"               # stress <= limit, all geometry user-supplied
    ESTIMATED = "estimated"     # stress <= limit, hub centers defaulted
    WARN = "warn"               # stress > limit, checks not enforced
    FAIL = "fail"               # stress > limit, checks enforced
    INCOMPLETE = "incomplete"   # OD or wall missing
    ERROR = "error"             # impossible geometry


# Worst-first ranking used when drive and tail are rolled up into one status
STATUS_SEVERITY = {
    TubeStressStatus.PASS: 0,
    TubeStressStatus.ESTIMATED: 1,
    TubeStressStatus.INCOMPLETE: 2,
    TubeStressStatus.WARN: 3,
    TubeStressStatus.FAIL: 4,
    TubeStressStatus.ERROR: 5,
}


class TubeStressInputs(BaseModel):
    tube_od_in: float
    tube_wall_in: float
    hub_centers_in: float
    radial_load_lbf: float


class TubeStressResult(BaseModel):
    stress_psi: Optional[int] = None
    status: TubeStressStatus
    error_message: Optional[str] = None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _fmt(value: float) -> str:
    return ("%f" % value).rstrip("0").rstrip(".")


def calculate_tube_stress(inputs: TubeStressInputs, limit_psi: float,
                          hub_centers_estimated: bool, enforce: bool) -> TubeStressResult:
    """
    Compute tube stress and classify it against limit_psi.

    Guards short-circuit in order: missing geometry -> incomplete,
    wall >= radius -> error, OD⁴ − ID⁴ <= 0 -> error.
    The raw stress is classified; stress_psi is only the rounded report value,
    so a tube 0.4 psi over the limit fails even though it reports at the limit.
    """
    od = inputs.tube_od_in
    wall = inputs.tube_wall_in

    if od <= 0 or wall <= 0:
        return TubeStressResult(status=TubeStressStatus.INCOMPLETE)

    tube_id = od - 2 * wall
    if tube_id <= 0:
        return TubeStressResult(
            status=TubeStressStatus.ERROR,
            error_message='Invalid tube geometry: wall thickness (%s") exceeds radius (%s")'
                          % (_fmt(wall), _fmt(od / 2)),
        )

    od4 = od ** 4
    id4 = tube_id ** 4
    if od4 - id4 <= 0:
        return TubeStressResult(
            status=TubeStressStatus.ERROR,
            error_message="Invalid tube geometry: OD⁴ - ID⁴ ≤ 0",
        )

    numerator = 8 * od * inputs.radial_load_lbf * inputs.hub_centers_in
    denominator = math.pi * (od4 - id4)
    stress = numerator / denominator

    if stress > limit_psi:
        status = TubeStressStatus.FAIL if enforce else TubeStressStatus.WARN
    elif hub_centers_estimated:
        status = TubeStressStatus.ESTIMATED
    else:
        status = TubeStressStatus.PASS

    return TubeStressResult(stress_psi=_round_half_up(stress), status=status)


def get_tube_stress_limit(is_v_groove: bool) -> int:
    """Allowable tube stress in psi for the pulley type."""
    return PCI_TUBE_STRESS_LIMIT_VGROOVE_PSI if is_v_groove else PCI_TUBE_STRESS_LIMIT_DRUM_PSI


def is_v_groove_pulley(tracking_method, v_guide_key) -> bool:
    """
    Proxy for "this pulley has a V-groove": V-guided tracking with a V-guide selected.

    LIMITATION: the pulley catalog does not yet carry a face-profile field, so
    this infers pulley type from tracking choices. Replace with the catalog
    value once it exists; do not tighten the heuristic in the meantime.
    """
    return tracking_method == "V-guided" and v_guide_key is not None


def worst_status(*statuses: TubeStressStatus) -> TubeStressStatus:
    """Roll several tube checks up into the most severe status."""
    return max(statuses, key=lambda s: STATUS_SEVERITY[s])
