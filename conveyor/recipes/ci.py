"""
CI blocking: which failed recipes are allowed to fail the build.

Rules, first match wins:
  - application snapshots (not fixtures) never block
  - only locked fixtures can block
  - never_block / always_block slug lists override the tier
  - otherwise a failure blocks only in a blocking tier (default: smoke)

Errored and skipped runs (passed=None) do not block; they show up in the
run report instead.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel

from ..config import settings
from ..models import RecipeStatus
from ..schemas import Recipe, RecipeRunResult

logger = logging.getLogger(__name__)


class CIBlockingConfig(BaseModel):
    blocking_tiers: List[str] = ["smoke"]
    always_block: List[str] = []   # slugs
    never_block: List[str] = []    # slugs

    @classmethod
    def from_settings(cls) -> "CIBlockingConfig":
        return cls(
            blocking_tiers=settings.CI_BLOCKING_TIERS,
            always_block=settings.CI_ALWAYS_BLOCK,
            never_block=settings.CI_NEVER_BLOCK,
        )


class CIBlockingResult(BaseModel):
    block: bool
    reason: str


class CIBlocker(BaseModel):
    recipe_name: str
    slug: Optional[str] = None
    reason: str


class CIReport(BaseModel):
    checked: int
    blockers: List[CIBlocker] = []

    @property
    def should_block(self) -> bool:
        return bool(self.blockers)


def should_block_ci(recipe: Recipe, result: RecipeRunResult,
                    config: Optional[CIBlockingConfig] = None) -> CIBlockingResult:
    config = config or CIBlockingConfig.from_settings()

    if not recipe.is_fixture:
        return CIBlockingResult(block=False, reason="application_snapshot")
    if recipe.status != RecipeStatus.LOCKED.value:
        return CIBlockingResult(block=False, reason="not_locked")

    if recipe.slug and recipe.slug in config.never_block:
        return CIBlockingResult(block=False, reason="in_never_block_list")
    if recipe.slug and recipe.slug in config.always_block:
        if result.passed is False:
            return CIBlockingResult(block=True, reason="always_block_recipe_failed: %s" % recipe.slug)
        return CIBlockingResult(block=False, reason="always_block_passed")

    if recipe.tier not in config.blocking_tiers:
        return CIBlockingResult(block=False, reason="tier_%s_non_blocking" % recipe.tier)

    if result.passed is False:
        drift = ""
        if result.max_drift_field and result.max_drift_rel is not None:
            drift = ": %s drifted %.2f%%" % (result.max_drift_field, result.max_drift_rel * 100)
        return CIBlockingResult(block=True, reason="%s_tier_failed%s" % (recipe.tier, drift))

    if result.passed is None:
        return CIBlockingResult(block=False, reason="no_result")
    return CIBlockingResult(block=False, reason="passed")


def check_ci_blocking(pairs: Iterable[Tuple[Recipe, RecipeRunResult]],
                      config: Optional[CIBlockingConfig] = None) -> CIReport:
    config = config or CIBlockingConfig.from_settings()
    report = CIReport(checked=0)
    for recipe, result in pairs:
        report.checked += 1
        check = should_block_ci(recipe, result, config)
        if check.block:
            report.blockers.append(CIBlocker(recipe_name=recipe.name, slug=recipe.slug,
                                             reason=check.reason))
    if report.should_block:
        logger.info("CI blocked by %d recipe(s)", len(report.blockers))
    return report


def format_ci_summary(report: CIReport) -> str:
    if not report.should_block:
        return "CI OK: %d recipe(s) checked, none blocking" % report.checked
    lines = ["CI BLOCKED: %d recipe(s) failed" % len(report.blockers)]
    lines.extend("  - %s: %s" % (b.recipe_name, b.reason) for b in report.blockers)
    return "\n".join(lines)


def get_ci_exit_code(pairs: Iterable[Tuple[Recipe, RecipeRunResult]],
                     config: Optional[CIBlockingConfig] = None) -> int:
    return 1 if check_ci_blocking(pairs, config).should_block else 0


def filter_recipes_for_ci(recipes: Iterable[Recipe], tiers: Optional[List[str]] = None) -> List[Recipe]:
    """Locked fixtures in the given tiers (default: the blocking tiers)."""
    tiers = tiers if tiers is not None else settings.CI_BLOCKING_TIERS
    return [
        r for r in recipes
        if r.is_fixture is True and r.status == RecipeStatus.LOCKED.value and r.tier in tiers
    ]
