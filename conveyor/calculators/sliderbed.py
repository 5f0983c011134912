"""
Sliderbed belt conveyor calculator (model key: sliderbed_v1).

Inputs: sanitized conveyor inputs (geometry, belt, pulleys, drive, load, environment)
Outputs: flat dict: belt pull, torque, drive ratios, shaft sizes, pulley
minimums, frame/roller quantities, PCI tube stress, tracking recommendation.

Outputs that don't apply to a configuration (e.g. throughput targets when no
required rate was given) are present with value None.
"""

import logging

from ..config import settings
from . import formulas, rules
from .base import BaseCalculator
from .shaft import calculate_shaft_diameter
from .tracking import TrackingInput, recommend
from .tube_stress import (
    TubeStressInputs,
    calculate_tube_stress,
    get_tube_stress_limit,
    is_v_groove_pulley,
    worst_status,
)

logger = logging.getLogger(__name__)

DEFAULT_PULLEY_DIAMETER_IN = 4.0
DEFAULT_GM_SPROCKET_TEETH = 18
DEFAULT_DRIVE_SHAFT_SPROCKET_TEETH = 24
DEFAULT_CLEAT_SPACING_IN = 12.0
DEFAULT_MANUAL_SHAFT_DIAMETER_IN = 1.0

_NUMBER_FIELDS = (
    "conveyor_incline_deg", "belt_speed_fpm", "drive_rpm_input", "motor_rpm",
    "part_weight_lbs", "part_length_in", "part_width_in", "part_spacing_in",
    "required_throughput_pph", "throughput_margin_pct", "drop_height_in",
    "safety_factor", "friction_coeff", "starting_belt_pull_lb",
    "belt_coeff_piw", "belt_coeff_pil", "belt_piw_override", "belt_pil_override",
    "belt_piw", "belt_pil", "belt_min_pulley_dia_no_vguide_in",
    "belt_min_pulley_dia_with_vguide_in", "cleat_spacing_in",
    "drive_shaft_diameter_in", "tail_shaft_diameter_in", "custom_frame_height_in",
    "drive_tube_od_in", "drive_tube_wall_in", "tail_tube_od_in", "tail_tube_wall_in",
    "hub_centers_in",
)

_FLAG_FIELDS = (
    "reversing_operation", "disturbance_side_loading", "disturbance_load_variability",
    "disturbance_environment", "disturbance_installation_risk", "cleats_enabled",
)

_TEXT_DEFAULTS = {
    "speed_mode": "belt_speed",
    "orientation": "Lengthwise",
    "belt_tracking_method": "Crowned",
    "shaft_diameter_mode": "Calculated",
    "frame_height_mode": "Standard",
    "gearmotor_mounting_style": "shaft_mounted",
    "application_class": None,
    "belt_construction": None,
    "tracking_preference": None,
    "part_temperature_class": None,
    "fluid_type": None,
    "belt_cleat_method": None,
}


class SliderbedCalculator(BaseCalculator):

    MODEL_KEY = "sliderbed_v1"
    MODEL_VERSION_ID = settings.MODEL_VERSION_ID

    DEFAULT_PARAMETERS = {
        "friction_coeff": 0.25,
        "safety_factor": 2.0,
        "starting_belt_pull_lb": 75.0,
        "motor_rpm": 1750.0,
        "piw_2p5": 0.138,
        "piw_other": 0.109,
        "pil_2p5": 0.138,
        "pil_other": 0.109,
        "pulley_face_extra_v_guided_in": 0.5,
        "pulley_face_extra_crowned_in": 2.0,
        "enforce_pci_checks": settings.ENFORCE_PCI_CHECKS,
    }

    def normalize_inputs(self, inputs: dict) -> dict:
        """
        Parse raw-ish values into one typed dict. Missing numbers become None.

        Legacy fields are folded in here: conveyor_width_in -> belt_width_in,
        pulley_diameter_in -> drive/tail diameters, drive_rpm -> drive_rpm_input.
        """
        spec = {}
        for field in _NUMBER_FIELDS:
            spec[field] = self.parse_optional_number(inputs.get(field))
        for field in _FLAG_FIELDS:
            spec[field] = self.parse_bool(inputs.get(field))
        for field, default in _TEXT_DEFAULTS.items():
            value = inputs.get(field)
            spec[field] = str(value) if value is not None else default

        spec["conveyor_length_cc_in"] = self._parse_length(inputs.get("conveyor_length_cc_in"))
        width = inputs.get("belt_width_in")
        if width is None and inputs.get("conveyor_width_in") is not None:
            logger.debug("Using legacy conveyor_width_in as belt_width_in")
            width = inputs.get("conveyor_width_in")
        spec["belt_width_in"] = self._parse_length(width)

        if spec["drive_rpm_input"] is None:
            spec["drive_rpm_input"] = self.parse_optional_number(inputs.get("drive_rpm"))

        legacy_pulley = self.parse_optional_number(inputs.get("pulley_diameter_in"))
        drive = self.parse_optional_number(inputs.get("drive_pulley_diameter_in"))
        if drive is None:
            drive = legacy_pulley if legacy_pulley is not None else DEFAULT_PULLEY_DIAMETER_IN
        tail = self.parse_optional_number(inputs.get("tail_pulley_diameter_in"))
        spec["drive_pulley_diameter_in"] = drive
        spec["tail_pulley_diameter_in"] = tail if tail is not None else drive

        spec["v_guide_key"] = inputs.get("v_guide_key")
        spec["enforce_pci_checks"] = (
            self.parse_bool(inputs["enforce_pci_checks"])
            if inputs.get("enforce_pci_checks") is not None else None
        )
        spec["gm_sprocket_teeth"] = self.parse_int(
            inputs.get("gm_sprocket_teeth"), DEFAULT_GM_SPROCKET_TEETH)
        spec["drive_shaft_sprocket_teeth"] = self.parse_int(
            inputs.get("drive_shaft_sprocket_teeth"), DEFAULT_DRIVE_SHAFT_SPROCKET_TEETH)
        return spec

    def _parse_length(self, value):
        if value is None:
            return None
        parsed = self.parse_inches(value, default=float("nan"))
        return None if parsed != parsed else parsed

    def validate(self, inputs: dict, parameters: dict) -> tuple:
        spec = self.normalize_inputs(inputs)
        errors = rules.validate_inputs(spec)
        errors.extend(rules.validate_parameters(parameters))
        rule_errors, warnings = rules.apply_application_rules(spec)
        errors.extend(rule_errors)
        return errors, warnings

    def check_outputs(self, inputs: dict, outputs: dict, parameters: dict) -> tuple:
        return rules.check_outputs(self.normalize_inputs(inputs), outputs)

    def calculate(self, inputs: dict, parameters: dict) -> dict:
        spec = self.normalize_inputs(inputs)

        cc_in = spec["conveyor_length_cc_in"]
        width_in = spec["belt_width_in"]
        drive_dia = spec["drive_pulley_diameter_in"]
        tail_dia = spec["tail_pulley_diameter_in"]
        spacing_in = spec["part_spacing_in"] or 0.0
        margin_pct = spec["throughput_margin_pct"] or 0.0
        incline_deg = spec["conveyor_incline_deg"] or 0.0

        safety_factor = _first(spec["safety_factor"], parameters["safety_factor"])
        starting_pull = _first(spec["starting_belt_pull_lb"], parameters["starting_belt_pull_lb"])
        friction_coeff = _first(spec["friction_coeff"], parameters["friction_coeff"])
        motor_rpm = _first(spec["motor_rpm"], parameters["motor_rpm"])

        # Belt weight
        coeffs = formulas.effective_belt_coefficients(
            drive_dia, parameters,
            piw_override=spec["belt_piw_override"], pil_override=spec["belt_pil_override"],
            piw_catalog=spec["belt_piw"], pil_catalog=spec["belt_pil"],
            piw_advanced=spec["belt_coeff_piw"], pil_advanced=spec["belt_coeff_pil"],
        )
        belt_length = formulas.total_belt_length_in(cc_in, drive_dia, tail_dia)
        belt_weight = formulas.belt_weight_lbf(coeffs["piw"], coeffs["pil"], width_in, belt_length)

        # Load
        pitch = formulas.pitch_in(spec["part_length_in"], spec["part_width_in"],
                                  spacing_in, spec["orientation"])
        parts = formulas.parts_on_belt(cc_in, pitch)
        part_load = parts * spec["part_weight_lbs"]
        total_load = belt_weight + part_load
        avg_per_ft = formulas.avg_load_per_ft(total_load, cc_in)

        # Belt pull
        friction_pull = formulas.friction_pull_lb(friction_coeff, total_load)
        incline_pull = formulas.incline_pull_lb(total_load, incline_deg)
        total_pull = formulas.total_belt_pull_lb(friction_pull, incline_pull, starting_pull)

        # Speed: one of belt speed / drive RPM is primary, the other derived
        if spec["speed_mode"] == "drive_rpm":
            drive_rpm = spec["drive_rpm_input"]
            speed_fpm = formulas.belt_speed_fpm(drive_rpm, drive_dia)
        else:
            speed_fpm = spec["belt_speed_fpm"]
            drive_rpm = formulas.drive_shaft_rpm(speed_fpm, drive_dia)

        capacity = formulas.capacity_pph(speed_fpm, pitch)
        torque = formulas.torque_drive_shaft_inlbf(total_pull, drive_dia, safety_factor)
        gear_ratio = formulas.gear_ratio(motor_rpm, drive_rpm)
        chain_ratio = formulas.chain_ratio(spec["gearmotor_mounting_style"],
                                           spec["gm_sprocket_teeth"],
                                           spec["drive_shaft_sprocket_teeth"])

        # Throughput (only when a rate is required)
        target = meets = rpm_for_target = margin_achieved = None
        required = spec["required_throughput_pph"]
        if required is not None and required > 0:
            target = formulas.target_pph(required, margin_pct)
            meets = capacity >= target
            rpm_for_target = formulas.rpm_required(target, pitch, drive_dia)
            margin_achieved = formulas.margin_achieved_pct(capacity, required)

        # Tracking & pulley face
        is_v_guided = spec["belt_tracking_method"] == "V-guided"
        face_extra = formulas.pulley_face_extra_in(is_v_guided, parameters)

        # Shafts
        drive_shaft = calculate_shaft_diameter(width_in, drive_dia, total_pull, True)
        tail_shaft = calculate_shaft_diameter(width_in, tail_dia, total_pull, False)
        if spec["shaft_diameter_mode"] == "Manual":
            drive_shaft_dia = _first(spec["drive_shaft_diameter_in"], DEFAULT_MANUAL_SHAFT_DIAMETER_IN)
            tail_shaft_dia = _first(spec["tail_shaft_diameter_in"], DEFAULT_MANUAL_SHAFT_DIAMETER_IN)
        else:
            drive_shaft_dia = drive_shaft.required_diameter_in
            tail_shaft_dia = tail_shaft.required_diameter_in

        # Frame & rollers
        frame_height = formulas.effective_frame_height_in(
            spec["frame_height_mode"], drive_dia, spec["custom_frame_height_in"])
        snubs = formulas.requires_snub_rollers(frame_height, drive_dia, tail_dia)

        outputs = {
            "parts_on_belt": parts,
            "load_on_belt_lbf": part_load,
            "belt_weight_lbf": belt_weight,
            "total_load_lbf": total_load,
            "total_belt_length_in": belt_length,
            "avg_load_per_ft_lbf": avg_per_ft,
            "belt_pull_calc_lb": formulas.belt_pull_calc_lb(avg_per_ft, friction_coeff, cc_in),
            "friction_pull_lb": friction_pull,
            "incline_pull_lb": incline_pull,
            "starting_belt_pull_lb": starting_pull,
            "total_belt_pull_lb": total_pull,
            "piw_used": coeffs["piw"],
            "pil_used": coeffs["pil"],
            "belt_piw_effective": coeffs["belt_piw_effective"],
            "belt_pil_effective": coeffs["belt_pil_effective"],

            "speed_mode_used": spec["speed_mode"],
            "pitch_in": pitch,
            "belt_speed_fpm": speed_fpm,
            "capacity_pph": capacity,
            "target_pph": target,
            "meets_throughput": meets,
            "rpm_required_for_target": rpm_for_target,
            "throughput_margin_achieved_pct": margin_achieved,

            "drive_shaft_rpm": drive_rpm,
            "torque_drive_shaft_inlbf": torque,
            "gear_ratio": gear_ratio,
            "chain_ratio": chain_ratio,
            "gearmotor_output_rpm": drive_rpm * chain_ratio,
            "total_drive_ratio": gear_ratio * chain_ratio,

            "safety_factor_used": safety_factor,
            "friction_coeff_used": friction_coeff,
            "motor_rpm_used": motor_rpm,

            "is_v_guided": is_v_guided,
            "pulley_requires_crown": not is_v_guided,
            "pulley_face_extra_in": face_extra,
            "pulley_face_length_in": width_in + face_extra,
            "drive_pulley_diameter_in": drive_dia,
            "tail_pulley_diameter_in": tail_dia,
            "drive_shaft_diameter_in": drive_shaft_dia,
            "tail_shaft_diameter_in": tail_shaft_dia,
            "drive_shaft_radial_load_lbf": drive_shaft.radial_load_lbf,
            "drive_shaft_deflection_ok": drive_shaft.deflection_ok,
            "tail_shaft_deflection_ok": tail_shaft.deflection_ok,

            "effective_frame_height_in": frame_height,
            "requires_snub_rollers": snubs,
            "gravity_roller_quantity": formulas.gravity_roller_quantity(cc_in, snubs),
            "gravity_roller_spacing_in": formulas.GRAVITY_ROLLER_SPACING_IN,
            "snub_roller_quantity": 2 if snubs else 0,
        }
        outputs.update(formulas.frame_cost_flags(spec["frame_height_mode"], frame_height, snubs))
        outputs.update(self._pulley_minimums(spec, is_v_guided, drive_dia, tail_dia))
        outputs.update(self._tube_stress(spec, parameters, drive_shaft, tail_shaft, width_in))
        outputs.update(self._tracking(spec))
        return outputs

    def _pulley_minimums(self, spec, is_v_guided, drive_dia, tail_dia) -> dict:
        """Belt catalog minimum pulley diameter, raised for hot-welded cleats."""
        base = (spec["belt_min_pulley_dia_with_vguide_in"] if is_v_guided
                else spec["belt_min_pulley_dia_no_vguide_in"])
        multiplier = None
        required = base
        if base is not None and spec["cleats_enabled"] and spec["belt_cleat_method"] == "hot_welded":
            multiplier = formulas.cleat_spacing_multiplier(
                _first(spec["cleat_spacing_in"], DEFAULT_CLEAT_SPACING_IN))
            required = formulas.round_up_to_increment(base * multiplier, 0.25)

        return {
            "min_pulley_base_in": base,
            "cleat_spacing_multiplier": multiplier,
            "min_pulley_drive_required_in": required,
            "min_pulley_tail_required_in": required,
            "drive_pulley_meets_minimum": drive_dia >= required if required is not None else None,
            "tail_pulley_meets_minimum": tail_dia >= required if required is not None else None,
        }

    def _tube_stress(self, spec, parameters, drive_shaft, tail_shaft, width_in) -> dict:
        """PCI tube stress for both pulleys. F is each shaft's radial load."""
        enforce = spec["enforce_pci_checks"]
        if enforce is None:
            enforce = bool(parameters.get("enforce_pci_checks"))
        hub_centers = spec["hub_centers_in"]
        estimated = hub_centers is None
        if estimated:
            hub_centers = width_in

        limit = get_tube_stress_limit(is_v_groove_pulley(spec["belt_tracking_method"],
                                                         spec["v_guide_key"]))
        results = {}
        for prefix, shaft in (("drive", drive_shaft), ("tail", tail_shaft)):
            results[prefix] = calculate_tube_stress(
                TubeStressInputs(
                    tube_od_in=spec["%s_tube_od_in" % prefix] or 0.0,
                    tube_wall_in=spec["%s_tube_wall_in" % prefix] or 0.0,
                    hub_centers_in=hub_centers,
                    radial_load_lbf=shaft.radial_load_lbf,
                ),
                limit, estimated, enforce,
            )

        overall = worst_status(results["drive"].status, results["tail"].status)
        return {
            "pci_tube_stress_limit_psi": limit,
            "pci_hub_centers_in": hub_centers,
            "pci_hub_centers_estimated": estimated,
            "pci_checks_enforced": enforce,
            "pci_drive_tube_stress_psi": results["drive"].stress_psi,
            "pci_drive_tube_stress_status": results["drive"].status.value,
            "pci_drive_tube_error": results["drive"].error_message,
            "pci_tail_tube_stress_psi": results["tail"].stress_psi,
            "pci_tail_tube_stress_status": results["tail"].status.value,
            "pci_tail_tube_error": results["tail"].error_message,
            "pci_tube_stress_status": overall.value,
        }

    def _tracking(self, spec) -> dict:
        rec = recommend(TrackingInput(
            conveyor_length_cc_in=spec["conveyor_length_cc_in"],
            belt_width_in=spec["belt_width_in"],
            application_class=spec["application_class"],
            belt_construction=spec["belt_construction"],
            reversing_operation=spec["reversing_operation"],
            disturbance_side_loading=spec["disturbance_side_loading"],
            disturbance_load_variability=spec["disturbance_load_variability"],
            disturbance_environment=spec["disturbance_environment"],
            disturbance_installation_risk=spec["disturbance_installation_risk"],
            tracking_preference=spec["tracking_preference"],
        ))
        return {
            "tracking_lw_ratio": rec.lw_ratio,
            "tracking_lw_band": rec.lw_band.value,
            "tracking_disturbance_count": rec.disturbance_count,
            "tracking_disturbance_severity_raw": rec.severity_raw.value,
            "tracking_disturbance_severity_modified": rec.severity_modified.value,
            "tracking_mode_recommended": rec.mode_recommended.value,
            "tracking_recommendation_note": rec.note,
            "tracking_recommendation_rationale": rec.rationale,
        }


def _first(value, fallback):
    return value if value is not None else fallback
