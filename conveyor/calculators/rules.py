"""
Sliderbed validation rules: hard errors, warnings and info messages.

Three stages, all returning issue dicts {"field", "message", "severity"}:

    validate_inputs()          bad geometry / out-of-range power-user values
    apply_application_rules()  application limits (incline, temperature, fluids)
    check_outputs()            rules that need calculated values (pulley minimums,
                               PCI tube stress, throughput)

Every failing condition is reported; nothing stops at the first error.
"""

from .tube_stress import TubeStressStatus

MAX_INCLINE_DEG = 45
STRONG_WARNING_INCLINE_DEG = 35
WARNING_INCLINE_DEG = 20
MULTI_SECTION_LENGTH_IN = 120
HIGH_DROP_HEIGHT_IN = 24
LOW_SAFETY_FACTOR = 1.5

# (field, label, low, high): inclusive range checks for power-user overrides
RANGE_CHECKS = [
    ("safety_factor", "Safety factor", 1.0, 5.0),
    ("friction_coeff", "Friction coefficient", 0.05, 0.6),
    ("motor_rpm", "Motor RPM", 800, 3600),
    ("starting_belt_pull_lb", "Starting belt pull", 0, 2000),
    ("belt_coeff_piw", "Belt coefficient piw", 0.05, 0.30),
    ("belt_coeff_pil", "Belt coefficient pil", 0.05, 0.30),
]

# (field, label): must be present and > 0
POSITIVE_FIELDS = [
    ("conveyor_length_cc_in", "Conveyor Length (C-C)"),
    ("belt_width_in", "Belt Width"),
    ("drive_pulley_diameter_in", "Drive Pulley Diameter"),
    ("tail_pulley_diameter_in", "Tail Pulley Diameter"),
    ("part_weight_lbs", "Part Weight"),
    ("part_length_in", "Part Length"),
    ("part_width_in", "Part Width"),
]

# (field, label): optional, but >= 0 when given
NON_NEGATIVE_FIELDS = [
    ("conveyor_incline_deg", "Incline Angle"),
    ("part_spacing_in", "Part Spacing"),
    ("required_throughput_pph", "Required throughput"),
    ("throughput_margin_pct", "Throughput margin"),
    ("drop_height_in", "Drop height"),
]


def _issue(field, message, severity):
    return {"field": field, "message": message, "severity": severity}


def _error(field, message):
    return _issue(field, message, "error")


def _warning(field, message):
    return _issue(field, message, "warning")


def _info(field, message):
    return _issue(field, message, "info")


def validate_inputs(spec):
    # type: (dict) -> list
    """spec is the normalized input dict built by SliderbedCalculator.normalize_inputs()."""
    errors = []

    for field, label in POSITIVE_FIELDS:
        value = spec.get(field)
        if value is None:
            errors.append(_error(field, "%s is required" % label))
        elif value <= 0:
            errors.append(_error(field, "%s must be greater than 0" % label))

    for field, label in NON_NEGATIVE_FIELDS:
        value = spec.get(field)
        if value is not None and value < 0:
            errors.append(_error(field, "%s must be >= 0" % label))

    if spec.get("speed_mode") == "drive_rpm":
        rpm = spec.get("drive_rpm_input")
        if rpm is None:
            errors.append(_error("drive_rpm_input", "Drive RPM is required in drive RPM mode"))
        elif rpm <= 0:
            errors.append(_error("drive_rpm_input", "Drive RPM must be greater than 0"))
    else:
        speed = spec.get("belt_speed_fpm")
        if speed is None:
            errors.append(_error("belt_speed_fpm", "Belt speed is required in belt speed mode"))
        elif speed <= 0:
            errors.append(_error("belt_speed_fpm", "Belt speed must be greater than 0"))

    for field, label, low, high in RANGE_CHECKS:
        value = spec.get(field)
        if value is None:
            continue
        if value < low:
            errors.append(_error(field, "%s must be >= %s" % (label, low)))
        elif value > high:
            errors.append(_error(field, "%s must be <= %s" % (label, high)))

    if spec.get("frame_height_mode") == "Custom":
        custom = spec.get("custom_frame_height_in")
        if custom is not None and custom <= 0:
            errors.append(_error("custom_frame_height_in", "Custom frame height must be greater than 0"))

    return errors


def validate_parameters(parameters):
    # type: (dict) -> list
    errors = []
    if not 0.1 <= parameters["friction_coeff"] <= 1.0:
        errors.append(_error("friction_coeff", "Friction coefficient must be between 0.1 and 1.0"))
    if parameters["safety_factor"] < 1.0:
        errors.append(_error("safety_factor", "Safety factor must be >= 1.0"))
    if parameters["starting_belt_pull_lb"] < 0:
        errors.append(_error("starting_belt_pull_lb", "Starting belt pull must be >= 0"))
    if parameters["motor_rpm"] <= 0:
        errors.append(_error("motor_rpm", "Motor RPM must be greater than 0"))
    return errors


def apply_application_rules(spec):
    # type: (dict) -> tuple
    errors = []
    warnings = []

    temperature = spec.get("part_temperature_class")
    if temperature == "RED_HOT":
        errors.append(_error("part_temperature_class",
                             "Do not use sliderbed conveyor for red hot parts"))
    elif temperature == "HOT":
        warnings.append(_warning("part_temperature_class", "Consider high-temperature belt"))

    fluid = spec.get("fluid_type")
    if fluid == "CONSIDERABLE":
        warnings.append(_warning("fluid_type", "Consider ribbed or specialty belt"))
    elif fluid == "MINIMAL":
        warnings.append(_info("fluid_type", "Minimal residual oil present"))

    length = spec.get("conveyor_length_cc_in")
    if length is not None and length > MULTI_SECTION_LENGTH_IN:
        warnings.append(_warning("conveyor_length_cc_in", "Consider multi-section body"))

    drop = spec.get("drop_height_in")
    if drop is not None and drop >= HIGH_DROP_HEIGHT_IN:
        warnings.append(_warning("drop_height_in",
                                 "Drop height is high. Consider impact or wear protection."))

    incline = spec.get("conveyor_incline_deg") or 0
    if incline > MAX_INCLINE_DEG:
        errors.append(_error(
            "conveyor_incline_deg",
            "Incline exceeds 45°. Sliderbed conveyor without positive engagement "
            "is not supported by this model."))
    elif incline > STRONG_WARNING_INCLINE_DEG:
        warnings.append(_warning(
            "conveyor_incline_deg",
            "Incline exceeds 35°. Product retention by friction alone is unlikely. "
            "Cleats or positive engagement features are required for reliable operation."))
    elif incline > WARNING_INCLINE_DEG:
        warnings.append(_warning(
            "conveyor_incline_deg",
            "Incline exceeds 20°. Product retention by friction alone may be insufficient. "
            "Cleats or other retention features are typically required at this angle."))

    safety_factor = spec.get("safety_factor")
    if safety_factor is not None and 1.0 <= safety_factor < LOW_SAFETY_FACTOR:
        warnings.append(_warning("safety_factor",
                                 "Safety factor below 1.5. Verify drive sizing margin."))

    return errors, warnings


def _pci_issues(label, prefix, outputs, enforce):
    errors = []
    warnings = []
    status = outputs.get("pci_%s_tube_stress_status" % prefix)
    stress = outputs.get("pci_%s_tube_stress_psi" % prefix)
    limit = outputs.get("pci_tube_stress_limit_psi")
    field = "%s_tube_wall_in" % prefix

    if status == TubeStressStatus.ERROR.value:
        errors.append(_error(field, "%s pulley: %s" % (
            label, outputs.get("pci_%s_tube_error" % prefix) or "Invalid tube geometry")))
    elif status == TubeStressStatus.FAIL.value:
        errors.append(_error(field, "%s tube stress %s psi exceeds PCI limit of %s psi" % (
            label, stress, limit)))
    elif status == TubeStressStatus.WARN.value:
        warnings.append(_warning(field, "%s tube stress %s psi exceeds PCI limit of %s psi%s" % (
            label, stress, limit, "" if enforce else " (not enforced)")))
    elif status == TubeStressStatus.ESTIMATED.value:
        warnings.append(_info("hub_centers_in",
                              "%s tube stress OK with estimated hub centers" % label))
    return errors, warnings


def check_outputs(spec, outputs):
    # type: (dict, dict) -> tuple
    """Rules that can only run once outputs exist."""
    errors = []
    warnings = []

    for prefix, label in (("drive", "Drive"), ("tail", "Tail")):
        minimum = outputs.get("min_pulley_%s_required_in" % prefix)
        if outputs.get("%s_pulley_meets_minimum" % prefix) is False:
            warnings.append(_warning(
                "%s_pulley_diameter_in" % prefix,
                '%s pulley diameter (%s") is below the belt minimum of %s"' % (
                    label, outputs.get("%s_pulley_diameter_in" % prefix), minimum)))

    enforce = bool(outputs.get("pci_checks_enforced"))
    for prefix, label in (("drive", "Drive"), ("tail", "Tail")):
        pci_errors, pci_warnings = _pci_issues(label, prefix, outputs, enforce)
        errors.extend(pci_errors)
        warnings.extend(pci_warnings)

    if outputs.get("meets_throughput") is False:
        warnings.append(_warning(
            "required_throughput_pph",
            "Capacity %.0f pph does not meet target %.0f pph (requires %.1f drive RPM)" % (
                outputs["capacity_pph"], outputs["target_pph"], outputs["rpm_required_for_target"])))

    if outputs.get("cost_flag_design_review"):
        warnings.append(_warning("frame_height_mode",
                                 "Frame height below 4\" requires design review"))

    return errors, warnings
