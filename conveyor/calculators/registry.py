"""
Calculator registry: maps model_key strings to calculator classes.

Recipes pin a model_key, so a key is never reused for different math;
a formula change that alters outputs ships as a new key or version.
"""

from .sliderbed import SliderbedCalculator
from .base import BaseCalculator

CALCULATOR_REGISTRY: dict[str, type] = {
    "sliderbed_v1": SliderbedCalculator,
}


def get_calculator(model_key: str) -> BaseCalculator:
    """Returns an instance of the calculator for a model key, or raises ValueError."""
    if model_key not in CALCULATOR_REGISTRY:
        raise ValueError(
            f"No calculator registered for model: {model_key}. "
            f"Available: {list(CALCULATOR_REGISTRY.keys())}"
        )
    return CALCULATOR_REGISTRY[model_key]()


def has_calculator(model_key: str) -> bool:
    """Check if a calculator exists for a model key."""
    return model_key in CALCULATOR_REGISTRY


def list_calculators() -> list[str]:
    """List all registered model keys."""
    return list(CALCULATOR_REGISTRY.keys())
