from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union
from datetime import datetime
import enum

from .models import ComparisonMode


# --- Sanitizer ---

class RemovalReason(str, enum.Enum):
    DEPRECATED = "deprecated"
    DERIVED = "derived"
    ALIASED = "aliased"
    MODE_GATED = "mode_gated"
    NULL_UNDEFINED = "null_undefined"


class RemovedKey(BaseModel):
    key: str
    reason: RemovalReason
    detail: Optional[str] = None


class SanitizationRules(BaseModel):
    """Declarative rule table consumed by sanitizer.sanitize()."""
    version: str = "1"
    deprecated: List[str] = []
    derived: List[str] = []
    aliases: Dict[str, str] = {}          # legacy key -> canonical key
    mode_field: Optional[str] = None
    mode_gated: Dict[str, List[str]] = {}  # mode value -> keys to drop

    class Config:
        frozen = True


class SanitizeResult(BaseModel):
    cleaned: Dict[str, Any]
    removed: List[RemovedKey] = []


# --- Validation issues ---

class IssueSeverity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationIssue(BaseModel):
    field: Optional[str] = None
    message: str
    severity: IssueSeverity = IssueSeverity.ERROR


class ExpectedIssue(BaseModel):
    """An issue a recipe expects the engine to report. Codes look like ERROR_BELT_WIDTH_IN."""
    code: str
    severity: IssueSeverity = IssueSeverity.ERROR
    required: bool = True   # must appear, vs. may appear


class IssueDiff(BaseModel):
    passed: bool
    missing: List[ExpectedIssue] = []
    unexpected: List[str] = []     # codes of error-severity issues nobody expected
    matched: List[str] = []


# --- Recipes ---

class RecipeBase(BaseModel):
    name: str
    slug: Optional[str] = None
    tier: str = "regression"
    status: str = "draft"
    model_key: str = "sliderbed_v1"
    model_version_id: Optional[str] = None
    inputs: Dict[str, Any]
    expected_outputs: Optional[Dict[str, Any]] = None
    baseline_outputs: Optional[Dict[str, Any]] = None
    legacy_outputs: Optional[Dict[str, Any]] = None
    expected_issues: Optional[List[ExpectedIssue]] = None
    is_fixture: Optional[bool] = False
    source: Optional[str] = None
    source_ref: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = []


class Recipe(RecipeBase):
    id: Optional[int] = None
    inputs_hash: str
    removed_keys: List[RemovedKey] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FieldType(str, enum.Enum):
    NUMERIC = "numeric"
    OTHER = "other"


class FieldComparison(BaseModel):
    field: str
    field_type: FieldType
    expected: Any = None
    actual: Any = None
    actual_present: bool = True
    delta_abs: Optional[float] = None
    delta_rel: Optional[float] = None
    drifted: bool = False


class RecipeRunResult(BaseModel):
    recipe_id: Optional[int] = None
    recipe_name: str
    recipe_tier: str = "regression"
    comparison_mode: ComparisonMode
    effective_mode: Optional[ComparisonMode] = None
    model_version_id: str
    run_context: str = "manual"
    inputs_hash: str
    outputs_hash: Optional[str] = None
    actual_outputs: Optional[Dict[str, Any]] = None
    actual_errors: List[ValidationIssue] = []
    actual_warnings: List[ValidationIssue] = []
    comparisons: List[FieldComparison] = []
    issue_diff: Optional[IssueDiff] = None
    passed: Optional[bool] = None
    max_drift_rel: Optional[float] = None
    max_drift_field: Optional[str] = None
    skip_reason: Optional[str] = None
    error: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def failures(self) -> List[FieldComparison]:
        return [c for c in self.comparisons if c.drifted]


class DriftEntry(BaseModel):
    recipe_id: Optional[int] = None
    recipe_name: str
    field: str
    expected: Union[int, float]
    actual: Union[int, float]
    delta_abs: float
    delta_rel: float = Field(..., description="Relative drift; inf when expected is 0")
