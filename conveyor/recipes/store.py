"""
SQLAlchemy-backed recipe corpus.

Thin adapter between ORM rows (CalcRecipe / RecipeRun) and the pydantic
Recipe / RecipeRunResult the runner works with. The runner never touches
the session.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from .. import models
from ..schemas import Recipe, RecipeRunResult
from .lifecycle import promote_to_fixture

logger = logging.getLogger(__name__)


class RecipeStore:

    def __init__(self, db: Session):
        self.db = db

    def add(self, recipe: Recipe) -> Recipe:
        data = recipe.model_dump(mode="json", exclude={"id", "created_at", "updated_at"})
        row = models.CalcRecipe(**data)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return Recipe.model_validate(row)

    def get(self, recipe_id: int) -> Optional[Recipe]:
        row = self.db.query(models.CalcRecipe).filter(models.CalcRecipe.id == recipe_id).first()
        return Recipe.model_validate(row) if row else None

    def list_recipes(self) -> List[Recipe]:
        rows = self.db.query(models.CalcRecipe).order_by(models.CalcRecipe.id).all()
        return [Recipe.model_validate(r) for r in rows]

    def list_fixtures(self, tier: Optional[str] = None) -> List[Recipe]:
        query = self.db.query(models.CalcRecipe).filter(models.CalcRecipe.is_fixture.is_(True))
        if tier:
            query = query.filter(models.CalcRecipe.tier == tier)
        return [Recipe.model_validate(r) for r in query.order_by(models.CalcRecipe.id).all()]

    def promote(self, recipe_id: int, name: Optional[str] = None, tier: Optional[str] = None):
        """Promote in place. Returns (recipe, already_promoted); (None, False) if not found."""
        row = self.db.query(models.CalcRecipe).filter(models.CalcRecipe.id == recipe_id).first()
        if not row:
            return None, False

        promoted, already = promote_to_fixture(Recipe.model_validate(row), name=name, tier=tier)
        if already:
            return promoted, True

        row.name = promoted.name
        row.slug = promoted.slug
        row.tier = promoted.tier
        row.status = promoted.status
        row.is_fixture = True
        row.notes = promoted.notes
        self.db.commit()
        self.db.refresh(row)
        return Recipe.model_validate(row), False

    def record_run(self, result: RecipeRunResult) -> models.RecipeRun:
        if result.recipe_id is None:
            raise ValueError("Cannot record a run for an unsaved recipe: %s" % result.recipe_name)

        run = models.RecipeRun(
            recipe_id=result.recipe_id,
            comparison_mode=result.comparison_mode.value,
            model_version_id=result.model_version_id,
            run_context=result.run_context,
            inputs_hash=result.inputs_hash,
            outputs_hash=result.outputs_hash,
            actual_outputs=result.actual_outputs,
            passed=result.passed,
            max_drift_rel=result.max_drift_rel,
            max_drift_field=result.max_drift_field,
            comparisons=[c.model_dump(mode="json") for c in result.comparisons],
            issue_diff=result.issue_diff.model_dump(mode="json") if result.issue_diff else None,
            error=result.error,
            skip_reason=result.skip_reason,
            duration_ms=result.duration_ms,
        )
        self.db.add(run)
        self.db.commit()
        self.db.refresh(run)
        logger.debug("Recorded run %s for recipe %s", run.id, result.recipe_id)
        return run

    def last_run_outputs(self, recipe_id: int) -> Optional[dict]:
        """Outputs of the most recent run that produced outputs; feeds 'previous' mode."""
        runs = (
            self.db.query(models.RecipeRun)
            .filter(models.RecipeRun.recipe_id == recipe_id)
            .order_by(models.RecipeRun.created_at.desc(), models.RecipeRun.id.desc())
            .all()
        )
        # JSON columns store None as a JSON null, so filter here rather than in SQL
        for run in runs:
            if run.actual_outputs is not None:
                return run.actual_outputs
        return None
