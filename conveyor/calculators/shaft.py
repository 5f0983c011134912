"""
Pulley shaft sizing: combined bending + torsion, von Mises criterion.

Assumptions:
- simply supported shaft, pulley load at mid-span
- 1045 steel (Sy = 45,000 psi), safety factor 3, service factor 1.2
- keyway stress concentration Kt = 1.6 on the drive shaft only
- T1/T2 from Euler-Eytelwein, wrap 180°, μ = 0.3 (lagged)
- deflection limit 0.001 × bearing span

    d = ∛( 32·SF·Kt / (π·Sy) · √(M² + 0.75·T²) )

The radial load computed here is also the PCI "F" used by tube_stress.py.
"""

import math
from typing import Optional

from pydantic import BaseModel

STANDARD_SHAFT_DIAMETERS = [
    0.5, 0.625, 0.75, 0.875, 1.0, 1.125, 1.25, 1.375, 1.5,
    1.625, 1.75, 1.875, 2.0, 2.25, 2.5, 2.75, 3.0,
]

E_STEEL_PSI = 30e6
DEFAULT_YIELD_STRENGTH_PSI = 45000
DEFAULT_SAFETY_FACTOR = 3.0
DEFAULT_SERVICE_FACTOR = 1.2
DEFAULT_WRAP_ANGLE_DEG = 180
DEFAULT_FRICTION_COEFFICIENT = 0.3
DEFAULT_BEARING_SPAN_OFFSET_IN = 5
KEYWAY_STRESS_CONCENTRATION = 1.6
MAX_DEFLECTION_RATIO = 0.001


class ShaftSizingResult(BaseModel):
    required_diameter_in: float
    calculated_diameter_in: float
    t1_lbf: float
    t2_lbf: float
    radial_load_lbf: float
    bending_moment_inlbf: float
    torque_inlbf: float
    von_mises_stress_psi: float
    deflection_in: float
    deflection_ok: bool
    bearing_span_in: float
    wrap_angle_deg: float


def _round_to(value: float, decimals: int) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def next_standard_diameter(min_diameter_in: float) -> float:
    """Smallest stock diameter >= min; past 3" round up to the next 1/4"."""
    for d in STANDARD_SHAFT_DIAMETERS:
        if d >= min_diameter_in:
            return d
    return math.ceil(min_diameter_in * 4) / 4


def calculate_shaft_diameter(belt_width_in: float, pulley_diameter_in: float,
                             effective_tension_lbf: float, is_drive_pulley: bool,
                             wrap_angle_deg: float = DEFAULT_WRAP_ANGLE_DEG,
                             friction_coefficient: float = DEFAULT_FRICTION_COEFFICIENT,
                             bearing_span_in: Optional[float] = None,
                             yield_strength_psi: float = DEFAULT_YIELD_STRENGTH_PSI,
                             safety_factor: float = DEFAULT_SAFETY_FACTOR,
                             service_factor: float = DEFAULT_SERVICE_FACTOR) -> ShaftSizingResult:
    span = bearing_span_in if bearing_span_in is not None else belt_width_in + DEFAULT_BEARING_SPAN_OFFSET_IN
    theta = math.radians(wrap_angle_deg)
    te = effective_tension_lbf * service_factor

    if te <= 0:
        # No tension: smallest stock shaft, nothing loaded
        smallest = STANDARD_SHAFT_DIAMETERS[0]
        return ShaftSizingResult(
            required_diameter_in=smallest, calculated_diameter_in=smallest,
            t1_lbf=0, t2_lbf=0, radial_load_lbf=0, bending_moment_inlbf=0,
            torque_inlbf=0, von_mises_stress_psi=0, deflection_in=0,
            deflection_ok=True, bearing_span_in=span, wrap_angle_deg=wrap_angle_deg,
        )

    # Te = T1 − T2 and T1 = T2·e^(μθ)
    tension_ratio = math.exp(friction_coefficient * theta)
    t2 = te / (tension_ratio - 1)
    t1 = t2 * tension_ratio

    radial_load = math.sqrt(t1 * t1 + t2 * t2 - 2 * t1 * t2 * math.cos(theta))
    moment = radial_load * span / 4
    torque = te * pulley_diameter_in / 2 if is_drive_pulley else 0.0
    kt = KEYWAY_STRESS_CONCENTRATION if is_drive_pulley else 1.0

    equivalent_moment = math.sqrt(moment * moment + 0.75 * torque * torque)
    calculated = (32 * safety_factor * kt * equivalent_moment / (math.pi * yield_strength_psi)) ** (1 / 3)
    d = next_standard_diameter(calculated)

    sigma_b = 32 * moment * kt / (math.pi * d ** 3)
    tau = 16 * torque / (math.pi * d ** 3)
    von_mises = math.sqrt(sigma_b * sigma_b + 3 * tau * tau)

    inertia = math.pi * d ** 4 / 64
    deflection = radial_load * span ** 3 / (48 * E_STEEL_PSI * inertia)

    return ShaftSizingResult(
        required_diameter_in=d,
        calculated_diameter_in=_round_to(calculated, 3),
        t1_lbf=_round_to(t1, 1),
        t2_lbf=_round_to(t2, 1),
        radial_load_lbf=_round_to(radial_load, 1),
        bending_moment_inlbf=_round_to(moment, 0),
        torque_inlbf=_round_to(torque, 0),
        von_mises_stress_psi=_round_to(von_mises, 0),
        deflection_in=_round_to(deflection, 4),
        deflection_ok=deflection <= MAX_DEFLECTION_RATIO * span,
        bearing_span_in=span,
        wrap_angle_deg=wrap_angle_deg,
    )
