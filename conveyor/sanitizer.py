"""
Input sanitizer: strips stale, catalog-derived, deprecated and mode-contradicting
keys from a raw input map before the engine or a recipe snapshot trusts it.

The rule content lives in DEFAULT_RULES (data). sanitize() is a fixed-order
reducer over that table:

    1. aliases      legacy key -> canonical key (canonical wins if both present)
    2. deprecated   removed unconditionally
    3. derived      catalog lookups, never trusted from the client
    4. mode_gated   keys contradicting the current mode value (read after 1-3)
    5. null/MISSING stripped; 0 and False are kept

Running sanitize() on its own output is a no-op with an empty audit trail.
"""

import logging

from .canonical import MISSING
from .schemas import RemovalReason, RemovedKey, SanitizationRules, SanitizeResult

logger = logging.getLogger(__name__)


DEFAULT_RULES = SanitizationRules(
    version="1",
    deprecated=[
        "send_to_estimating",       # feature removed
    ],
    derived=[
        "belt_min_pulley_dia_no_vguide_in",
        "belt_min_pulley_dia_with_vguide_in",
    ],
    aliases={
        "drive_rpm": "drive_rpm_input",
        "conveyor_width_in": "belt_width_in",
    },
    mode_field="speed_mode",
    mode_gated={
        "belt_speed": ["drive_rpm_input", "drive_rpm"],
        # belt_speed_fpm is derived in drive_rpm mode but harmless to keep
        "drive_rpm": [],
    },
)


def _apply_aliases(result: dict, rules: SanitizationRules, removed: list):
    for legacy, canonical in rules.aliases.items():
        if legacy == canonical or legacy not in result:
            continue
        value = result.pop(legacy)
        if canonical in result:
            detail = "dropped, %s already present" % canonical
        else:
            result[canonical] = value
            detail = "aliased to %s" % canonical
        removed.append(RemovedKey(key=legacy, reason=RemovalReason.ALIASED, detail=detail))


def _drop_keys(result: dict, keys, reason: RemovalReason, removed: list, detail=None):
    for key in keys:
        if key in result:
            del result[key]
            removed.append(RemovedKey(key=key, reason=reason, detail=detail))


def _apply_mode_gates(result: dict, rules: SanitizationRules, removed: list):
    if not rules.mode_field:
        return
    mode = result.get(rules.mode_field)
    if not isinstance(mode, str) or mode not in rules.mode_gated:
        return
    _drop_keys(
        result, rules.mode_gated[mode], RemovalReason.MODE_GATED, removed,
        detail="inactive in %s=%s mode" % (rules.mode_field, mode),
    )


def _strip_empty(result: dict, removed: list):
    for key in [k for k, v in result.items() if v is None or v is MISSING]:
        del result[key]
        removed.append(RemovedKey(key=key, reason=RemovalReason.NULL_UNDEFINED))


def sanitize(raw: dict, rules: SanitizationRules = DEFAULT_RULES) -> SanitizeResult:
    """
    Clean a raw input map against a rule table.

    Never raises. Keys outside every rule set pass through untouched and the
    caller's dict is not mutated.
    """
    result = dict(raw or {})
    removed = []  # type: list[RemovedKey]

    _apply_aliases(result, rules, removed)
    _drop_keys(result, rules.deprecated, RemovalReason.DEPRECATED, removed)
    _drop_keys(result, rules.derived, RemovalReason.DERIVED, removed)
    _apply_mode_gates(result, rules, removed)
    _strip_empty(result, removed)

    if removed:
        logger.debug(
            "Sanitizer (rules v%s) removed %d key(s): %s",
            rules.version, len(removed),
            ", ".join("%s[%s]" % (r.key, r.reason.value) for r in removed),
        )

    return SanitizeResult.model_construct(cleaned=result, removed=removed)


def describe_rules(rules: SanitizationRules = DEFAULT_RULES) -> dict:
    """Plain-dict copy of a rule table, for audit output and docs."""
    return {
        "version": rules.version,
        "deprecated": list(rules.deprecated),
        "derived": list(rules.derived),
        "aliases": dict(rules.aliases),
        "mode_field": rules.mode_field,
        "mode_gated": {mode: list(keys) for mode, keys in rules.mode_gated.items()},
    }
