"""
Belt tracking mode recommendation.

Recommends Crowned / Hybrid / V-guided tracking from two things:
  1. geometry:   length-to-width ratio, banded Low / Medium / High
  2. conditions: five disturbance flags, nudged up by belt/application modifiers

The (band, severity) pair is looked up in a fixed 3×3 matrix. A caller
preference can force a mode; forcing a mode with less control than the matrix
would pick emits a reduced-margin note.
"""

import enum
import math
from typing import Optional

from pydantic import BaseModel


class ApplicationClass(str, enum.Enum):
    UNIT_HANDLING = "unit_handling"
    BULK_HANDLING = "bulk_handling"


class BeltConstruction(str, enum.Enum):
    GENERAL = "general"
    FABRIC_PLY = "fabric_ply"
    THERMOPLASTIC_PVC_PU = "thermoplastic_pvc_pu"
    RUBBER_COMPOUND = "rubber_compound"
    STEEL_CORD_OR_VERY_STIFF = "steel_cord_or_very_stiff"
    PROFILED_SIDEWALL_OR_HIGH_CLEAT = "profiled_sidewall_or_high_cleat"


class TrackingPreference(str, enum.Enum):
    AUTO = "auto"
    PREFER_CROWNED = "prefer_crowned"
    PREFER_HYBRID = "prefer_hybrid"
    PREFER_V_GUIDED = "prefer_v_guided"


class TrackingMode(str, enum.Enum):
    CROWNED = "crowned"
    HYBRID = "hybrid"
    V_GUIDED = "v_guided"


class LwBand(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DisturbanceSeverity(str, enum.Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"


LW_BAND_LOW_MAX = 5
LW_BAND_MEDIUM_MAX = 10
SEVERITY_SIGNIFICANT_MIN_COUNT = 3

DISTURBANCE_FLAGS = (
    "reversing_operation",
    "disturbance_side_loading",
    "disturbance_load_variability",
    "disturbance_environment",
    "disturbance_installation_risk",
)

# (input field, value) pairs that each nudge severity up one level
SEVERITY_MODIFIERS = (
    ("application_class", ApplicationClass.BULK_HANDLING.value),
    ("belt_construction", BeltConstruction.STEEL_CORD_OR_VERY_STIFF.value),
    ("belt_construction", BeltConstruction.PROFILED_SIDEWALL_OR_HIGH_CLEAT.value),
)

SEVERITY_ORDER = [
    DisturbanceSeverity.MINIMAL,
    DisturbanceSeverity.MODERATE,
    DisturbanceSeverity.SIGNIFICANT,
]

MODE_ORDER = [TrackingMode.CROWNED, TrackingMode.HYBRID, TrackingMode.V_GUIDED]

# (band, severity) -> (mode, with_note)
RECOMMENDATION_MATRIX = {
    (LwBand.LOW, DisturbanceSeverity.MINIMAL): (TrackingMode.CROWNED, False),
    (LwBand.LOW, DisturbanceSeverity.MODERATE): (TrackingMode.CROWNED, True),
    (LwBand.LOW, DisturbanceSeverity.SIGNIFICANT): (TrackingMode.HYBRID, False),
    (LwBand.MEDIUM, DisturbanceSeverity.MINIMAL): (TrackingMode.CROWNED, True),
    (LwBand.MEDIUM, DisturbanceSeverity.MODERATE): (TrackingMode.HYBRID, False),
    (LwBand.MEDIUM, DisturbanceSeverity.SIGNIFICANT): (TrackingMode.V_GUIDED, False),
    (LwBand.HIGH, DisturbanceSeverity.MINIMAL): (TrackingMode.HYBRID, False),
    (LwBand.HIGH, DisturbanceSeverity.MODERATE): (TrackingMode.V_GUIDED, False),
    (LwBand.HIGH, DisturbanceSeverity.SIGNIFICANT): (TrackingMode.V_GUIDED, False),
}

PREFERENCE_MODES = {
    TrackingPreference.PREFER_CROWNED.value: TrackingMode.CROWNED,
    TrackingPreference.PREFER_HYBRID.value: TrackingMode.HYBRID,
    TrackingPreference.PREFER_V_GUIDED.value: TrackingMode.V_GUIDED,
}

MODE_DISPLAY_NAMES = {
    TrackingMode.CROWNED: "Crowned pulleys",
    TrackingMode.HYBRID: "Hybrid (crowned pulleys + V-guide)",
    TrackingMode.V_GUIDED: "V-guided (flat pulleys + V-guide)",
}

BAND_TEXT = {
    LwBand.LOW: "favorable",
    LwBand.MEDIUM: "moderate",
    LwBand.HIGH: "high",
}

NOTE_REDUCED_MARGIN = (
    "Conditions may reduce tracking margin. Consider Hybrid if issues appear in service."
)
NOTE_LESS_CONTROL = (
    "Selected mode provides less tracking control than recommended. "
    "Tracking margin may be reduced."
)


class TrackingInput(BaseModel):
    conveyor_length_cc_in: float
    belt_width_in: float
    application_class: Optional[str] = None
    belt_construction: Optional[str] = None
    reversing_operation: bool = False
    disturbance_side_loading: bool = False
    disturbance_load_variability: bool = False
    disturbance_environment: bool = False
    disturbance_installation_risk: bool = False
    tracking_preference: Optional[str] = None


class TrackingRecommendation(BaseModel):
    lw_ratio: float
    lw_band: LwBand
    disturbance_count: int
    severity_raw: DisturbanceSeverity
    severity_modified: DisturbanceSeverity
    mode_recommended: TrackingMode
    rationale: str
    note: Optional[str] = None


def calculate_lw_ratio(length_in: float, width_in: float) -> float:
    """Length / width rounded to 0.1. Zero or negative width -> infinity."""
    if not width_in or width_in <= 0:
        return math.inf
    return math.floor(length_in / width_in * 10 + 0.5) / 10


def calculate_lw_band(ratio: float) -> LwBand:
    if ratio <= LW_BAND_LOW_MAX:
        return LwBand.LOW
    if ratio <= LW_BAND_MEDIUM_MAX:
        return LwBand.MEDIUM
    return LwBand.HIGH


def count_disturbances(data: TrackingInput) -> int:
    return sum(1 for flag in DISTURBANCE_FLAGS if getattr(data, flag))


def calculate_raw_severity(data: TrackingInput) -> DisturbanceSeverity:
    # Reversing + side loading is significant on its own, even at count 2
    if data.reversing_operation and data.disturbance_side_loading:
        return DisturbanceSeverity.SIGNIFICANT

    count = count_disturbances(data)
    if count >= SEVERITY_SIGNIFICANT_MIN_COUNT:
        return DisturbanceSeverity.SIGNIFICANT
    if count >= 1:
        return DisturbanceSeverity.MODERATE
    return DisturbanceSeverity.MINIMAL


def _nudge_worse(severity: DisturbanceSeverity) -> DisturbanceSeverity:
    idx = SEVERITY_ORDER.index(severity)
    return SEVERITY_ORDER[min(idx + 1, len(SEVERITY_ORDER) - 1)]


def apply_modifiers(raw: DisturbanceSeverity, data: TrackingInput) -> DisturbanceSeverity:
    """Each matching modifier raises severity one level, capped at Significant."""
    modified = raw
    for field, value in SEVERITY_MODIFIERS:
        if getattr(data, field) == value:
            modified = _nudge_worse(modified)
    return modified


def _matrix_rationale(band: LwBand, severity: DisturbanceSeverity, mode: TrackingMode) -> str:
    band_text = BAND_TEXT[band]
    if mode == TrackingMode.CROWNED:
        if severity == DisturbanceSeverity.MINIMAL:
            return ("Crowned pulleys are appropriate. L/W ratio is %s and "
                    "disturbance factors are minimal." % band_text)
        return ("Crowned pulleys are appropriate for this geometry. "
                "Selected conditions may reduce tracking margin.")
    if mode == TrackingMode.HYBRID:
        return ("Hybrid adds tracking margin by combining crowned pulleys with a V-guide. "
                "Recommended given %s L/W ratio and selected conditions." % band_text)
    return ("V-guided provides positive belt constraint. Recommended when geometry "
            "and conditions increase tracking sensitivity.")


def recommend(data: TrackingInput) -> TrackingRecommendation:
    """Pure function: same input, same recommendation."""
    lw_ratio = calculate_lw_ratio(data.conveyor_length_cc_in, data.belt_width_in)
    lw_band = calculate_lw_band(lw_ratio)

    disturbance_count = count_disturbances(data)
    severity_raw = calculate_raw_severity(data)
    severity_modified = apply_modifiers(severity_raw, data)

    computed_mode, with_note = RECOMMENDATION_MATRIX[(lw_band, severity_modified)]
    rationale = _matrix_rationale(lw_band, severity_modified, computed_mode)
    note = NOTE_REDUCED_MARGIN if with_note else None
    mode = computed_mode

    forced = PREFERENCE_MODES.get(data.tracking_preference or "")
    if forced is not None:
        mode = forced
        note = None
        if forced != computed_mode:
            rationale = (
                "User preference applied. %s selected. System would recommend %s "
                "for these conditions." % (MODE_DISPLAY_NAMES[forced],
                                           MODE_DISPLAY_NAMES[computed_mode])
            )
            if MODE_ORDER.index(forced) < MODE_ORDER.index(computed_mode):
                note = NOTE_LESS_CONTROL

    return TrackingRecommendation(
        lw_ratio=lw_ratio,
        lw_band=lw_band,
        disturbance_count=disturbance_count,
        severity_raw=severity_raw,
        severity_modified=severity_modified,
        mode_recommended=mode,
        rationale=rationale,
        note=note,
    )
