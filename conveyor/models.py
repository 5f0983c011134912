from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


# --- Enums ---

class RecipeTier(str, enum.Enum):
    SMOKE = "smoke"
    REGRESSION = "regression"
    GOLDEN = "golden"
    EDGE = "edge"
    LONG_TAIL = "long_tail"


class RecipeStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    LOCKED = "locked"
    DEPRECATED = "deprecated"


class ComparisonMode(str, enum.Enum):
    EXPECTED = "expected"
    BASELINE = "baseline"
    LEGACY = "legacy"
    PREVIOUS = "previous"


# DECISION: tier/status are stored as plain VARCHAR. The runner ignores them;
# only CI blocking (recipes/ci.py) reads them.


class CalcRecipe(Base):
    __tablename__ = "calc_recipes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=True, index=True)
    tier = Column(String, default=RecipeTier.REGRESSION.value)
    status = Column(String, default=RecipeStatus.DRAFT.value)
    model_key = Column(String, nullable=False, default="sliderbed_v1")
    model_version_id = Column(String, nullable=True)

    # Always the sanitized form. Raw client payloads are never stored here.
    inputs = Column(JSON, nullable=False)
    inputs_hash = Column(String(64), nullable=False, index=True)

    expected_outputs = Column(JSON, nullable=True)
    baseline_outputs = Column(JSON, nullable=True)
    legacy_outputs = Column(JSON, nullable=True)
    expected_issues = Column(JSON, nullable=True)  # [{code, severity, required}]

    is_fixture = Column(Boolean, default=False)
    source = Column(String, nullable=True)       # "application", "quote", "manual"
    source_ref = Column(String, nullable=True)   # quote / sales order number
    notes = Column(Text, nullable=True)
    tags = Column(JSON, default=list)
    removed_keys = Column(JSON, default=list)    # sanitizer audit trail at snapshot time

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    runs = relationship("RecipeRun", back_populates="recipe", cascade="all, delete-orphan")


class RecipeRun(Base):
    """One execution of a recipe against the current engine."""
    __tablename__ = "calc_recipe_runs"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("calc_recipes.id"), nullable=False, index=True)
    comparison_mode = Column(String, nullable=False)
    model_version_id = Column(String, nullable=True)
    run_context = Column(String, default="manual")   # "ci", "manual", "drift"

    inputs_hash = Column(String(64), nullable=True)
    outputs_hash = Column(String(64), nullable=True)
    actual_outputs = Column(JSON, nullable=True)
    passed = Column(Boolean, nullable=True)          # NULL = skipped
    max_drift_rel = Column(Float, nullable=True)
    max_drift_field = Column(String, nullable=True)
    comparisons = Column(JSON, default=list)
    issue_diff = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)
    skip_reason = Column(Text, nullable=True)
    duration_ms = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    recipe = relationship("CalcRecipe", back_populates="runs")
