"""
Belt tracking recommendation tests.

Tests:
1-3.  L/W ratio and bands
4-6.  Disturbance severity, reversing + side loading special case, modifiers
7-10. Matrix lookups, notes, user preference overrides
"""

import math

from conveyor.calculators.tracking import (
    DisturbanceSeverity,
    LwBand,
    NOTE_LESS_CONTROL,
    NOTE_REDUCED_MARGIN,
    TrackingInput,
    TrackingMode,
    apply_modifiers,
    calculate_lw_band,
    calculate_lw_ratio,
    calculate_raw_severity,
    recommend,
)


def _input(**overrides):
    data = {"conveyor_length_cc_in": 100, "belt_width_in": 24}
    data.update(overrides)
    return TrackingInput(**data)


# ============================================================
# Geometry
# ============================================================

def test_lw_ratio_rounded_to_tenth():
    assert calculate_lw_ratio(100, 24) == 4.2
    assert calculate_lw_ratio(120, 24) == 5.0
    assert calculate_lw_ratio(100, 0) == math.inf


def test_lw_band_boundaries():
    assert calculate_lw_band(5.0) == LwBand.LOW
    assert calculate_lw_band(5.1) == LwBand.MEDIUM
    assert calculate_lw_band(10.0) == LwBand.MEDIUM
    assert calculate_lw_band(10.1) == LwBand.HIGH
    assert calculate_lw_band(math.inf) == LwBand.HIGH


def test_literal_case_low_band_minimal_crowned():
    rec = recommend(_input())
    assert rec.lw_ratio == 4.2
    assert rec.lw_band == LwBand.LOW
    assert rec.disturbance_count == 0
    assert rec.severity_modified == DisturbanceSeverity.MINIMAL
    assert rec.mode_recommended == TrackingMode.CROWNED
    assert rec.note is None


# ============================================================
# Severity
# ============================================================

def test_severity_by_count():
    assert calculate_raw_severity(_input(disturbance_environment=True)) == DisturbanceSeverity.MODERATE
    assert calculate_raw_severity(_input(
        disturbance_environment=True, disturbance_load_variability=True)) == DisturbanceSeverity.MODERATE
    assert calculate_raw_severity(_input(
        disturbance_environment=True, disturbance_load_variability=True,
        disturbance_installation_risk=True)) == DisturbanceSeverity.SIGNIFICANT


def test_reversing_and_side_loading_forces_significant():
    data = _input(reversing_operation=True, disturbance_side_loading=True)
    rec = recommend(data)
    assert rec.disturbance_count == 2
    assert rec.severity_raw == DisturbanceSeverity.SIGNIFICANT
    # Low band + significant -> hybrid
    assert rec.mode_recommended == TrackingMode.HYBRID


def test_modifiers_raise_severity_and_cap():
    data = _input(application_class="bulk_handling")
    assert apply_modifiers(DisturbanceSeverity.MINIMAL, data) == DisturbanceSeverity.MODERATE

    stiff = _input(application_class="bulk_handling", belt_construction="steel_cord_or_very_stiff")
    assert apply_modifiers(DisturbanceSeverity.MINIMAL, stiff) == DisturbanceSeverity.SIGNIFICANT
    assert apply_modifiers(DisturbanceSeverity.SIGNIFICANT, stiff) == DisturbanceSeverity.SIGNIFICANT

    plain = _input(belt_construction="fabric_ply")
    assert apply_modifiers(DisturbanceSeverity.MODERATE, plain) == DisturbanceSeverity.MODERATE


# ============================================================
# Matrix & overrides
# ============================================================

def test_matrix_notes_on_borderline_cells():
    # Low + moderate: crowned with a reduced-margin note
    rec = recommend(_input(disturbance_environment=True))
    assert rec.mode_recommended == TrackingMode.CROWNED
    assert rec.note == NOTE_REDUCED_MARGIN

    # Medium (200/24 = 8.3) + minimal: crowned with note
    rec = recommend(_input(conveyor_length_cc_in=200))
    assert rec.lw_band == LwBand.MEDIUM
    assert rec.mode_recommended == TrackingMode.CROWNED
    assert rec.note == NOTE_REDUCED_MARGIN


def test_high_band_significant_is_v_guided():
    rec = recommend(_input(conveyor_length_cc_in=300, reversing_operation=True,
                           disturbance_side_loading=True))
    assert rec.lw_band == LwBand.HIGH
    assert rec.mode_recommended == TrackingMode.V_GUIDED


def test_preference_with_less_control_adds_note():
    rec = recommend(_input(conveyor_length_cc_in=300, tracking_preference="prefer_crowned"))
    assert rec.mode_recommended == TrackingMode.CROWNED
    assert rec.note == NOTE_LESS_CONTROL
    assert "System would recommend Hybrid" in rec.rationale


def test_preference_matching_or_exceeding_has_no_note():
    # Forced mode equals the matrix pick: matrix note is dropped
    rec = recommend(_input(disturbance_environment=True, tracking_preference="prefer_crowned"))
    assert rec.mode_recommended == TrackingMode.CROWNED
    assert rec.note is None

    rec = recommend(_input(tracking_preference="prefer_v_guided"))
    assert rec.mode_recommended == TrackingMode.V_GUIDED
    assert rec.note is None

    rec = recommend(_input(tracking_preference="auto"))
    assert rec.mode_recommended == TrackingMode.CROWNED
