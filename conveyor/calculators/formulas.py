"""
Sliderbed conveyor formulas.

Each function is one line of the shop's sizing worksheet. Units are in the
names: _in inches, _ft feet, _lb / _lbf pounds, _fpm feet per minute,
_pph parts per hour. No hidden conversions.

Call order matters; SliderbedCalculator.calculate() runs them in dependency order.
"""

import math

PI = math.pi


# --- Belt weight -------------------------------------------------------------

def effective_belt_coefficients(drive_pulley_diameter_in, params, piw_override=None,
                                pil_override=None, piw_catalog=None, pil_catalog=None,
                                piw_advanced=None, pil_advanced=None):
    # type: (float, dict, ...) -> dict
    """
    PIW/PIL used for belt weight, first non-None of:
    user override -> belt catalog -> advanced parameter -> diameter default
    (0.138 on a 2.5" drive pulley, 0.109 otherwise).
    """
    belt_piw = piw_override if piw_override is not None else piw_catalog
    belt_pil = pil_override if pil_override is not None else pil_catalog

    small = drive_pulley_diameter_in == 2.5
    default_piw = params["piw_2p5"] if small else params["piw_other"]
    default_pil = params["pil_2p5"] if small else params["pil_other"]

    piw = next(v for v in (belt_piw, piw_advanced, default_piw) if v is not None)
    pil = next(v for v in (belt_pil, pil_advanced, default_pil) if v is not None)

    return {
        "piw": piw,
        "pil": pil,
        "belt_piw_effective": belt_piw if belt_piw is not None else piw,
        "belt_pil_effective": belt_pil if belt_pil is not None else pil,
    }


def total_belt_length_in(cc_length_in, drive_pulley_diameter_in, tail_pulley_diameter_in):
    # type: (float, float, float) -> float
    """Open belt: both runs plus a half wrap on each pulley."""
    return 2 * cc_length_in + PI * (drive_pulley_diameter_in + tail_pulley_diameter_in) / 2


def belt_weight_lbf(piw, pil, belt_width_in, belt_length_in):
    # type: (float, float, float, float) -> float
    return piw * pil * belt_width_in * belt_length_in


# --- Load --------------------------------------------------------------------

def travel_dimension_in(part_length_in, part_width_in, orientation):
    # type: (float, float, str) -> float
    return part_length_in if orientation == "Lengthwise" else part_width_in


def pitch_in(part_length_in, part_width_in, part_spacing_in, orientation):
    # type: (float, float, float, str) -> float
    return travel_dimension_in(part_length_in, part_width_in, orientation) + part_spacing_in


def parts_on_belt(cc_length_in, pitch):
    # type: (float, float) -> float
    return cc_length_in / pitch


def avg_load_per_ft(total_load_lbf, cc_length_in):
    # type: (float, float) -> float
    return total_load_lbf / (cc_length_in / 12)


def belt_pull_calc_lb(avg_load_per_foot, friction_coeff, cc_length_in):
    # type: (float, float, float) -> float
    """Per-foot friction pull. Superseded by total_belt_pull_lb, kept for report parity."""
    return avg_load_per_foot * friction_coeff * (cc_length_in / 12)


# --- Belt pull ---------------------------------------------------------------

def friction_pull_lb(friction_coeff, total_load_lb):
    # type: (float, float) -> float
    """Friction acts on the full load regardless of incline (conservative)."""
    return friction_coeff * total_load_lb


def incline_pull_lb(total_load_lb, incline_deg):
    # type: (float, float) -> float
    return total_load_lb * math.sin(math.radians(incline_deg))


def total_belt_pull_lb(friction_pull, incline_pull, starting_belt_pull):
    # type: (float, float, float) -> float
    return friction_pull + incline_pull + starting_belt_pull


# --- Drive -------------------------------------------------------------------

def drive_shaft_rpm(belt_speed_fpm, pulley_diameter_in):
    # type: (float, float) -> float
    return belt_speed_fpm / ((pulley_diameter_in / 12) * PI)


def belt_speed_fpm(drive_rpm, pulley_diameter_in):
    # type: (float, float) -> float
    return drive_rpm * PI * (pulley_diameter_in / 12)


def torque_drive_shaft_inlbf(total_belt_pull, pulley_diameter_in, safety_factor):
    # type: (float, float, float) -> float
    return total_belt_pull * (pulley_diameter_in / 2) * safety_factor


def gear_ratio(motor_rpm, drive_rpm):
    # type: (float, float) -> float
    return motor_rpm / drive_rpm


def chain_ratio(mounting_style, gm_sprocket_teeth, drive_shaft_sprocket_teeth):
    # type: (str, int, int) -> float
    """Bottom-mount gearmotors drive through a chain: driven / driver teeth. Shaft mount = 1."""
    if mounting_style != "bottom_mount":
        return 1.0
    if gm_sprocket_teeth <= 0:
        return 1.0
    return drive_shaft_sprocket_teeth / gm_sprocket_teeth


# --- Throughput --------------------------------------------------------------

def capacity_pph(speed_fpm, pitch):
    # type: (float, float) -> float
    return speed_fpm * 12 * 60 / pitch


def target_pph(required_pph, margin_pct):
    # type: (float, float) -> float
    return required_pph * (1 + margin_pct / 100)


def rpm_required(target, pitch, pulley_diameter_in):
    # type: (float, float, float) -> float
    """Capacity formula solved for drive RPM."""
    return target * pitch / (12 * 60 * PI * (pulley_diameter_in / 12))


def margin_achieved_pct(capacity, required_pph):
    # type: (float, float) -> float
    if required_pph == 0:
        return 0.0
    return (capacity / required_pph - 1) * 100


# --- Pulley face -------------------------------------------------------------

def pulley_face_extra_in(is_v_guided, params):
    # type: (bool, dict) -> float
    """A V-guide keeps the belt centered, so it needs less extra face."""
    if is_v_guided:
        return params["pulley_face_extra_v_guided_in"]
    return params["pulley_face_extra_crowned_in"]


# --- Frame height & return rollers ---------------------------------------------

FRAME_STANDARD_OFFSET_IN = 2.5
FRAME_LOW_PROFILE_OFFSET_IN = 0.5
FRAME_DESIGN_REVIEW_THRESHOLD_IN = 4.0
SNUB_ROLLER_CLEARANCE_IN = 2.5
GRAVITY_ROLLER_SPACING_IN = 60


def effective_frame_height_in(mode, drive_pulley_diameter_in, custom_height_in=None):
    # type: (str, float, float) -> float
    if mode == "Custom":
        if custom_height_in is not None:
            return custom_height_in
        return drive_pulley_diameter_in + FRAME_STANDARD_OFFSET_IN
    if mode == "Low Profile":
        return drive_pulley_diameter_in + FRAME_LOW_PROFILE_OFFSET_IN
    return drive_pulley_diameter_in + FRAME_STANDARD_OFFSET_IN


def requires_snub_rollers(frame_height_in, drive_pulley_diameter_in, tail_pulley_diameter_in):
    # type: (float, float, float) -> bool
    largest = max(drive_pulley_diameter_in, tail_pulley_diameter_in)
    return frame_height_in < largest + SNUB_ROLLER_CLEARANCE_IN


def gravity_roller_quantity(cc_length_in, has_snubs, spacing_in=GRAVITY_ROLLER_SPACING_IN):
    # type: (float, bool, float) -> int
    """
    Return rollers at a fixed pitch along the return run.
    Snubs take over both end positions; without them there are always at least 2.
    """
    if cc_length_in <= 0:
        return 0
    positions = int(math.floor(cc_length_in / spacing_in)) + 1
    if has_snubs:
        return max(positions - 2, 0)
    return max(positions, 2)


def frame_cost_flags(mode, frame_height_in, has_snubs):
    # type: (str, float, bool) -> dict
    return {
        "cost_flag_low_profile": mode == "Low Profile",
        "cost_flag_custom_frame": mode == "Custom",
        "cost_flag_snub_rollers": has_snubs,
        "cost_flag_design_review": frame_height_in < FRAME_DESIGN_REVIEW_THRESHOLD_IN,
    }


# --- Belt minimum pulley diameter ----------------------------------------------

# Hot-welded cleats stiffen the belt; closer spacing needs a bigger pulley
_CLEAT_SPACING_BREAKPOINTS = [(4, 1.35), (6, 1.25), (8, 1.15), (12, 1.0)]


def cleat_spacing_multiplier(spacing_in):
    # type: (float) -> float
    if spacing_in >= 12:
        return 1.0
    if spacing_in <= 4:
        return 1.35
    for (lo, lo_mult), (hi, hi_mult) in zip(_CLEAT_SPACING_BREAKPOINTS, _CLEAT_SPACING_BREAKPOINTS[1:]):
        if lo <= spacing_in < hi:
            t = (spacing_in - lo) / (hi - lo)
            return lo_mult + t * (hi_mult - lo_mult)
    return 1.0


def round_up_to_increment(value, increment):
    # type: (float, float) -> float
    return math.ceil(value / increment) * increment
