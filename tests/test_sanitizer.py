"""
Input sanitizer tests.

Tests:
1-2.  Mode gating end-to-end, drive RPM mode keeps RPM
3-5.  Alias, deprecated, derived rules
6-7.  Null/MISSING stripping keeps falsy values
8-9.  Idempotence, input not mutated
10.   Custom rule table
"""

from conveyor.canonical import MISSING
from conveyor.sanitizer import DEFAULT_RULES, describe_rules, sanitize
from conveyor.schemas import RemovalReason, SanitizationRules


def _reasons(result):
    return {r.key: r.reason for r in result.removed}


# ============================================================
# Mode gating
# ============================================================

def test_mode_gating_end_to_end():
    result = sanitize({
        "speed_mode": "belt_speed",
        "belt_speed_fpm": 104.72,
        "drive_rpm": 100,
        "belt_min_pulley_dia_no_vguide_in": 5.0,
        "send_to_estimating": "No",
    })
    assert result.cleaned == {"speed_mode": "belt_speed", "belt_speed_fpm": 104.72}
    assert len(result.removed) >= 3

    reasons = _reasons(result)
    assert reasons["drive_rpm"] == RemovalReason.ALIASED
    assert reasons["drive_rpm_input"] == RemovalReason.MODE_GATED
    assert reasons["belt_min_pulley_dia_no_vguide_in"] == RemovalReason.DERIVED
    assert reasons["send_to_estimating"] == RemovalReason.DEPRECATED


def test_drive_rpm_mode_keeps_rpm_and_speed():
    result = sanitize({"speed_mode": "drive_rpm", "drive_rpm": 100, "belt_speed_fpm": 50})
    assert result.cleaned == {"speed_mode": "drive_rpm", "drive_rpm_input": 100, "belt_speed_fpm": 50}
    assert [r.reason for r in result.removed] == [RemovalReason.ALIASED]
    assert result.removed[0].detail == "aliased to drive_rpm_input"


# ============================================================
# Rule classes
# ============================================================

def test_alias_canonical_key_wins():
    result = sanitize({"conveyor_width_in": 18, "belt_width_in": 24})
    assert result.cleaned == {"belt_width_in": 24}
    assert result.removed[0].key == "conveyor_width_in"
    assert result.removed[0].detail == "dropped, belt_width_in already present"


def test_deprecated_removed_unconditionally():
    result = sanitize({"send_to_estimating": "Yes", "belt_width_in": 24})
    assert result.cleaned == {"belt_width_in": 24}


def test_derived_keys_never_trusted():
    result = sanitize({
        "belt_min_pulley_dia_no_vguide_in": 3.0,
        "belt_min_pulley_dia_with_vguide_in": 4.0,
    })
    assert result.cleaned == {}
    assert all(r.reason == RemovalReason.DERIVED for r in result.removed)


# ============================================================
# Null / MISSING stripping
# ============================================================

def test_null_and_missing_stripped():
    result = sanitize({"a": None, "b": MISSING, "c": 1})
    assert result.cleaned == {"c": 1}
    assert _reasons(result) == {"a": RemovalReason.NULL_UNDEFINED, "b": RemovalReason.NULL_UNDEFINED}


def test_zero_false_and_empty_string_kept():
    raw = {"conveyor_incline_deg": 0, "reversing_operation": False, "notes": ""}
    result = sanitize(raw)
    assert result.cleaned == raw
    assert result.removed == []


# ============================================================
# Idempotence
# ============================================================

def test_sanitize_is_idempotent():
    samples = [
        {},
        {"speed_mode": "belt_speed", "drive_rpm": 90, "drive_rpm_input": 100, "x": None},
        {"speed_mode": "drive_rpm", "conveyor_width_in": 24, "send_to_estimating": "No"},
        {"speed_mode": "unknown", "drive_rpm_input": 5, "belt_min_pulley_dia_with_vguide_in": 2},
    ]
    for raw in samples:
        once = sanitize(raw)
        twice = sanitize(once.cleaned)
        assert twice.removed == []
        assert twice.cleaned == once.cleaned


def test_input_not_mutated():
    raw = {"drive_rpm": 100, "speed_mode": "belt_speed"}
    sanitize(raw)
    assert raw == {"drive_rpm": 100, "speed_mode": "belt_speed"}
    assert sanitize(None).cleaned == {}


# ============================================================
# Rule table
# ============================================================

def test_custom_rule_table():
    rules = SanitizationRules(
        version="test",
        deprecated=["old"],
        mode_field="mode",
        mode_gated={"a": ["only_b"]},
    )
    result = sanitize({"old": 1, "mode": "a", "only_b": 2, "send_to_estimating": "No"}, rules)
    # send_to_estimating is only deprecated in the default table
    assert result.cleaned == {"mode": "a", "send_to_estimating": "No"}

    described = describe_rules(DEFAULT_RULES)
    assert described["mode_field"] == "speed_mode"
    assert "send_to_estimating" in described["deprecated"]
