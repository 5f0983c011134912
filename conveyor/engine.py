"""
Calculation engine: public entry point for conveyor sizing.

    calculate(sanitized_inputs) -> {
        "success":  bool,
        "outputs":  dict | None,      # None whenever errors is non-empty
        "errors":   [issue, ...],     # every failing condition, not just the first
        "warnings": [issue, ...],     # additive, never suppress outputs
        "metadata": {...},
    }

Validation problems are returned as values, never raised. Callers holding a
raw client payload use calculate_raw(), which sanitizes first.
"""

import logging
from datetime import datetime

from .canonical import hash_canonical
from .calculators.registry import get_calculator, has_calculator
from .config import settings
from .sanitizer import sanitize

logger = logging.getLogger(__name__)


# belt catalog column -> calculator input. These are derived keys the
# sanitizer strips from client input; only the server-side catalog sets them.
BELT_CATALOG_FIELDS = {
    "piw": "belt_piw",
    "pil": "belt_pil",
    "min_pulley_dia_no_vguide_in": "belt_min_pulley_dia_no_vguide_in",
    "min_pulley_dia_with_vguide_in": "belt_min_pulley_dia_with_vguide_in",
    "cleat_method": "belt_cleat_method",
}


def get_model_version_info(model_key: str = None) -> dict:
    return {
        "model_key": model_key or settings.MODEL_KEY,
        "model_version_id": settings.MODEL_VERSION_ID,
        "model_build_id": settings.MODEL_BUILD_ID,
    }


def _result(success, outputs, errors, warnings, metadata) -> dict:
    return {
        "success": success,
        "outputs": outputs if success else None,
        "errors": errors,
        "warnings": warnings,
        "metadata": metadata,
    }


def apply_belt_catalog(inputs: dict, belt_catalog: dict = None) -> dict:
    """Copy of inputs with catalog-resolved belt values filled in."""
    merged = dict(inputs or {})
    for column, field in BELT_CATALOG_FIELDS.items():
        value = (belt_catalog or {}).get(column)
        if value is not None:
            merged[field] = value
    return merged


def calculate(inputs: dict, parameters: dict = None, model_key: str = None,
              belt_catalog: dict = None) -> dict:
    """Run a sizing calculation on sanitized inputs."""
    model_key = model_key or settings.MODEL_KEY
    metadata = get_model_version_info(model_key)
    metadata["calculated_at"] = datetime.utcnow().isoformat()
    metadata["inputs_hash"] = hash_canonical(inputs)

    if not has_calculator(model_key):
        return _result(False, None, [{
            "field": None,
            "message": "Unknown calculation model: %s" % model_key,
            "severity": "error",
        }], [], metadata)

    calculator = get_calculator(model_key)
    params = calculator.merge_parameters(parameters)
    calc_inputs = apply_belt_catalog(inputs, belt_catalog)

    errors, warnings = calculator.validate(calc_inputs, params)
    if errors:
        logger.info("%s: %d validation error(s), calculation blocked", model_key, len(errors))
        return _result(False, None, errors, warnings, metadata)

    try:
        outputs = calculator.calculate(calc_inputs, params)
    except (ArithmeticError, ValueError) as e:
        logger.warning("%s calculation failed for inputs %s: %s",
                       model_key, metadata["inputs_hash"][:12], e)
        return _result(False, None, [{
            "field": None,
            "message": "Calculation failed: %s" % e,
            "severity": "error",
        }], warnings, metadata)

    output_errors, output_warnings = calculator.check_outputs(calc_inputs, outputs, params)
    errors.extend(output_errors)
    warnings.extend(output_warnings)

    return _result(not errors, outputs, errors, warnings, metadata)


def calculate_raw(raw_inputs: dict, parameters: dict = None, model_key: str = None,
                  belt_catalog: dict = None) -> dict:
    """Sanitize a client payload, then calculate. Adds the removed-key audit to metadata."""
    sanitized = sanitize(raw_inputs)
    result = calculate(sanitized.cleaned, parameters, model_key, belt_catalog)
    result["metadata"]["removed_keys"] = [r.model_dump(mode="json") for r in sanitized.removed]
    result["metadata"]["sanitized_inputs"] = sanitized.cleaned
    return result
