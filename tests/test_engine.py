"""
Calculation engine tests: sliderbed_v1 through engine.calculate().

Tests:
1-3.   Successful run, output contract, metadata
4-6.   Errors enumerate every failure, unknown model, None inputs, parameter ranges
7-8.   Warnings are additive
9-11.  PCI tube stress: estimated info, enforced fail blocks, V-groove limit
12-13. Belt catalog minimum pulley, legacy inputs
14-17. calculate_raw sanitizes first, registry, formula spot checks, parse helpers
"""

import math

import pytest

from conveyor import engine
from conveyor.calculators import formulas
from conveyor.calculators.registry import get_calculator, has_calculator, list_calculators
from conveyor.calculators.sliderbed import SliderbedCalculator


def _pci_tube(inputs, od=2.0, wall=0.02, hub=40):
    data = dict(inputs)
    data.update({"drive_tube_od_in": od, "drive_tube_wall_in": wall, "hub_centers_in": hub})
    return data


# ============================================================
# Successful calculation
# ============================================================

def test_calculate_success(base_inputs):
    result = engine.calculate(base_inputs)
    assert result["success"] is True
    assert result["errors"] == []
    out = result["outputs"]

    belt_length = 2 * 120 + math.pi * (4 + 4) / 2
    assert out["total_belt_length_in"] == pytest.approx(belt_length)
    assert out["belt_weight_lbf"] == pytest.approx(0.109 * 0.109 * 24 * belt_length)
    assert out["pitch_in"] == 18
    assert out["parts_on_belt"] == pytest.approx(120 / 18)
    assert out["drive_shaft_rpm"] == pytest.approx(50 / (math.pi * 4 / 12))
    assert out["total_belt_pull_lb"] == pytest.approx(
        0.25 * out["total_load_lbf"] + 75.0)
    assert out["gravity_roller_quantity"] == 3
    assert out["requires_snub_rollers"] is False


def test_calculate_tracking_and_pci_outputs(base_inputs):
    out = engine.calculate(base_inputs)["outputs"]
    assert out["tracking_lw_ratio"] == 5.0
    assert out["tracking_mode_recommended"] == "crowned"
    assert out["tracking_recommendation_note"] is None
    # No tube geometry given
    assert out["pci_tube_stress_status"] == "incomplete"
    assert out["pci_hub_centers_estimated"] is True
    assert out["pci_hub_centers_in"] == 24


def test_metadata(base_inputs):
    result = engine.calculate(base_inputs)
    meta = result["metadata"]
    assert meta["model_key"] == "sliderbed_v1"
    assert len(meta["inputs_hash"]) == 64
    assert "calculated_at" in meta
    assert meta["model_version_id"]


# ============================================================
# Errors
# ============================================================

def test_errors_enumerate_every_failure(base_inputs):
    bad = dict(base_inputs)
    del bad["belt_width_in"]
    del bad["belt_speed_fpm"]
    bad["conveyor_length_cc_in"] = -5
    bad["part_weight_lbs"] = 0

    result = engine.calculate(bad)
    assert result["success"] is False
    assert result["outputs"] is None
    fields = {e["field"] for e in result["errors"]}
    assert {"belt_width_in", "belt_speed_fpm", "conveyor_length_cc_in", "part_weight_lbs"} <= fields
    assert all(e["severity"] == "error" for e in result["errors"])


def test_unknown_model_is_error_result(base_inputs):
    result = engine.calculate(base_inputs, model_key="trough_v9")
    assert result["success"] is False
    assert result["outputs"] is None
    assert "trough_v9" in result["errors"][0]["message"]


def test_none_inputs_are_error_result():
    result = engine.calculate(None)
    assert result["success"] is False
    assert result["outputs"] is None
    assert "belt_width_in" in {e["field"] for e in result["errors"]}


def test_application_and_parameter_errors(base_inputs):
    inputs = dict(base_inputs, conveyor_incline_deg=50, part_temperature_class="RED_HOT")
    result = engine.calculate(inputs, parameters={"friction_coeff": 0.05})
    fields = [e["field"] for e in result["errors"]]
    assert "conveyor_incline_deg" in fields
    assert "part_temperature_class" in fields
    assert "friction_coeff" in fields


# ============================================================
# Warnings
# ============================================================

def test_warnings_do_not_suppress_outputs(base_inputs):
    inputs = dict(base_inputs, conveyor_incline_deg=25, fluid_type="CONSIDERABLE",
                  conveyor_length_cc_in=240)
    result = engine.calculate(inputs)
    assert result["success"] is True
    assert result["outputs"] is not None
    fields = {w["field"] for w in result["warnings"]}
    assert {"conveyor_incline_deg", "fluid_type", "conveyor_length_cc_in"} <= fields


def test_steep_incline_warning_text(base_inputs):
    result = engine.calculate(dict(base_inputs, conveyor_incline_deg=40))
    messages = [w["message"] for w in result["warnings"]]
    assert any(m.startswith("Incline exceeds 35°") for m in messages)


# ============================================================
# PCI tube stress
# ============================================================

def test_estimated_hub_centers_reported_as_info(base_inputs):
    inputs = dict(base_inputs, drive_tube_od_in=4.0, drive_tube_wall_in=0.25)
    result = engine.calculate(inputs)
    assert result["success"] is True
    assert result["outputs"]["pci_drive_tube_stress_status"] == "estimated"
    assert any(w["field"] == "hub_centers_in" and w["severity"] == "info"
               for w in result["warnings"])


def test_tube_overstress_warns_then_fails_when_enforced(base_inputs):
    inputs = _pci_tube(base_inputs)
    warned = engine.calculate(inputs)
    assert warned["success"] is True
    assert warned["outputs"]["pci_drive_tube_stress_status"] == "warn"
    assert warned["outputs"]["pci_tube_stress_status"] == "warn"
    assert any("not enforced" in w["message"] for w in warned["warnings"])

    enforced = engine.calculate(inputs, parameters={"enforce_pci_checks": True})
    assert enforced["success"] is False
    assert enforced["outputs"] is None
    assert any("exceeds PCI limit" in e["message"] for e in enforced["errors"])

    # Input-level flag wins over the parameter default
    per_input = engine.calculate(dict(inputs, enforce_pci_checks=True))
    assert per_input["success"] is False


def test_v_groove_limit_applies_with_v_guide(base_inputs):
    inputs = dict(base_inputs, belt_tracking_method="V-guided", v_guide_key="K10")
    out = engine.calculate(inputs)["outputs"]
    assert out["pci_tube_stress_limit_psi"] == 3400
    assert out["is_v_guided"] is True
    assert out["pulley_face_extra_in"] == 0.5

    crowned = engine.calculate(base_inputs)["outputs"]
    assert crowned["pci_tube_stress_limit_psi"] == 10000
    assert crowned["pulley_face_length_in"] == 26


# ============================================================
# Catalog & legacy inputs
# ============================================================

def test_belt_catalog_minimum_pulley(base_inputs):
    result = engine.calculate(base_inputs, belt_catalog={
        "min_pulley_dia_no_vguide_in": 6.0, "piw": 0.12, "pil": 0.12})
    out = result["outputs"]
    assert out["min_pulley_drive_required_in"] == 6.0
    assert out["drive_pulley_meets_minimum"] is False
    assert out["piw_used"] == 0.12
    assert any(w["field"] == "drive_pulley_diameter_in" for w in result["warnings"])


def test_legacy_width_and_pulley_diameter(base_inputs):
    inputs = dict(base_inputs)
    inputs["conveyor_width_in"] = inputs.pop("belt_width_in")
    del inputs["drive_pulley_diameter_in"]
    del inputs["tail_pulley_diameter_in"]
    inputs["pulley_diameter_in"] = 6

    result = engine.calculate(inputs)
    assert result["success"] is True
    assert result["outputs"]["tail_pulley_diameter_in"] == 6
    assert result["outputs"]["pulley_face_length_in"] == 26


def test_drive_rpm_mode(base_inputs):
    inputs = dict(base_inputs, speed_mode="drive_rpm", drive_rpm_input=60)
    del inputs["belt_speed_fpm"]
    out = engine.calculate(inputs)["outputs"]
    assert out["belt_speed_fpm"] == pytest.approx(60 * math.pi * 4 / 12)
    assert out["gear_ratio"] == pytest.approx(1750 / 60)


# ============================================================
# Sanitize-then-calculate & registry
# ============================================================

def test_calculate_raw_sanitizes_first(base_inputs):
    raw = dict(base_inputs, drive_rpm=999, send_to_estimating="No",
               belt_min_pulley_dia_no_vguide_in=99.0)
    result = engine.calculate_raw(raw)
    assert result["success"] is True
    removed = {r["key"] for r in result["metadata"]["removed_keys"]}
    assert {"drive_rpm", "drive_rpm_input", "send_to_estimating",
            "belt_min_pulley_dia_no_vguide_in"} <= removed
    # Client-sent catalog minimum was not trusted
    assert result["outputs"]["min_pulley_base_in"] is None
    assert "drive_rpm_input" not in result["metadata"]["sanitized_inputs"]


def test_registry():
    assert "sliderbed_v1" in list_calculators()
    assert has_calculator("sliderbed_v1")
    assert isinstance(get_calculator("sliderbed_v1"), SliderbedCalculator)
    with pytest.raises(ValueError):
        get_calculator("nope")


def test_formula_spot_checks():
    assert formulas.chain_ratio("bottom_mount", 18, 24) == pytest.approx(24 / 18)
    assert formulas.chain_ratio("shaft_mounted", 18, 24) == 1.0
    assert formulas.cleat_spacing_multiplier(5) == pytest.approx(1.30)
    assert formulas.cleat_spacing_multiplier(2) == 1.35
    assert formulas.round_up_to_increment(4.1, 0.25) == 4.25
    assert formulas.gravity_roller_quantity(30, False) == 2
    assert formulas.margin_achieved_pct(120, 100) == pytest.approx(20)


def test_base_calculator_parse_helpers():
    calc = SliderbedCalculator()
    assert calc.parse_number("12.5") == 12.5
    assert calc.parse_number("abc", default=1.0) == 1.0
    assert calc.parse_number(True, default=3.0) == 3.0      # bool is not a number
    assert calc.parse_number(float("inf")) == 0.0
    assert calc.parse_inches('24"') == 24.0
    assert calc.parse_inches("18 in") == 18.0
    assert calc.parse_int("18.0") == 18
    assert calc.parse_bool("Yes") is True
    assert calc.parse_bool("no") is False
    assert calc.merge_parameters({"safety_factor": 3.0, "motor_rpm": None})["motor_rpm"] == 1750.0
