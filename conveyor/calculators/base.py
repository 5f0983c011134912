"""
Abstract base class for all conveyor model calculators.

Input: sanitized inputs dict (see sanitizer.py) + merged parameters dict
Output: flat outputs dict of numbers / strings / bools / None
"""

import logging
import math
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class BaseCalculator(ABC):
    """All conveyor model calculators inherit from this."""

    MODEL_KEY = ""
    MODEL_VERSION_ID = ""
    DEFAULT_PARAMETERS = {}  # type: dict

    @abstractmethod
    def validate(self, inputs: dict, parameters: dict) -> tuple:
        """
        Check inputs before any math runs.
        Returns (errors, warnings) as lists of issue dicts.
        """
        pass

    @abstractmethod
    def calculate(self, inputs: dict, parameters: dict) -> dict:
        """
        Takes validated inputs and merged parameters.
        Returns the outputs dict. Must be a pure function of its arguments.
        """
        pass

    def check_outputs(self, inputs: dict, outputs: dict, parameters: dict) -> tuple:
        """Post-calculation rules. Returns (errors, warnings). Default: none."""
        return [], []

    def merge_parameters(self, overrides: dict = None) -> dict:
        """DEFAULT_PARAMETERS with caller overrides layered on top."""
        merged = dict(self.DEFAULT_PARAMETERS)
        for key, value in (overrides or {}).items():
            if value is not None:
                if key in merged and merged[key] != value:
                    logger.debug("%s parameter override %s=%s", self.MODEL_KEY, key, value)
                merged[key] = value
        return merged

    # --- Helper methods for all calculators ---

    def parse_number(self, value, default: float = 0.0) -> float:
        """Parse a numeric value from user input."""
        if value is None or isinstance(value, bool):
            return default
        try:
            result = float(str(value).strip())
        except (ValueError, TypeError):
            return default
        return result if math.isfinite(result) else default

    def parse_optional_number(self, value):
        """Like parse_number, but None when the value is absent or unparseable."""
        if value is None or isinstance(value, bool):
            return None
        try:
            result = float(str(value).strip())
        except (ValueError, TypeError):
            return None
        return result if math.isfinite(result) else None

    def parse_int(self, value, default: int = 0) -> int:
        """Parse an integer from user input."""
        if value is None or isinstance(value, bool):
            return default
        try:
            return int(float(str(value).strip()))
        except (ValueError, TypeError):
            return default

    def parse_bool(self, value, default: bool = False) -> bool:
        """Parse a checkbox / yes-no value."""
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        return str(value).strip().lower() in ("true", "yes", "y", "1")

    def parse_inches(self, value, default: float = 0.0) -> float:
        """Parse an inches value from user input. Handles strings like '24"' or '24 in'."""
        if value is None or isinstance(value, bool):
            return default
        if isinstance(value, (int, float)):
            return float(value) if math.isfinite(value) else default
        try:
            return float(str(value).strip().rstrip('"').rstrip("in").strip())
        except (ValueError, TypeError):
            return default
