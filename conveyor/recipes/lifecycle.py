"""
Recipe lifecycle: snapshot a live configuration, promote it into the corpus.

A snapshot always holds the sanitized form of the inputs. The keys the
sanitizer dropped are kept on the recipe as an audit trail, so a reviewer can
see what the client sent that the engine never trusted.
"""

import logging
import re
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ..canonical import hash_canonical
from ..config import settings
from ..models import RecipeStatus, RecipeTier
from ..sanitizer import sanitize
from ..schemas import Recipe

logger = logging.getLogger(__name__)

# Names that came straight from a quote or sales order number
_AUTO_NAME_PREFIXES = ("SALES_ORDER", "QUOTE", "SO")
_QUOTE_NUMBER = re.compile(r"^Q\d+")
PROMOTED_SUFFIX = " (Promoted)"


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "recipe"


def create_recipe_snapshot(raw_inputs: dict, name: str, expected_outputs: dict = None,
                           source: str = "application", source_ref: str = None,
                           model_key: str = None, tier: str = RecipeTier.REGRESSION.value,
                           notes: str = None, tags: List[str] = None) -> Recipe:
    """Sanitize raw inputs and wrap them as a non-fixture draft recipe."""
    sanitized = sanitize(raw_inputs)
    if sanitized.removed:
        logger.info("Snapshot %r: sanitizer removed %d key(s): %s", name, len(sanitized.removed),
                    ", ".join(r.key for r in sanitized.removed))

    return Recipe(
        name=name,
        slug=slugify(name),
        tier=tier,
        status=RecipeStatus.DRAFT.value,
        model_key=model_key or settings.MODEL_KEY,
        model_version_id=settings.MODEL_VERSION_ID,
        inputs=sanitized.cleaned,
        inputs_hash=hash_canonical(sanitized.cleaned),
        expected_outputs=expected_outputs,
        is_fixture=False,
        source=source,
        source_ref=source_ref,
        notes=notes,
        tags=tags or [],
        removed_keys=sanitized.removed,
    )


def is_auto_generated_name(name: str) -> bool:
    name = name or ""
    return name.startswith(_AUTO_NAME_PREFIXES) or bool(_QUOTE_NUMBER.match(name))


def promote_to_fixture(recipe: Recipe, name: Optional[str] = None,
                       tier: Optional[str] = None) -> Tuple[Recipe, bool]:
    """
    Promote a recipe into the regression corpus.

    Idempotent: promoting a fixture returns it unchanged with already_promoted=True.
    Returns a new Recipe; the argument is never mutated.
    """
    if recipe.is_fixture:
        return recipe, True

    new_name = name
    if new_name is None:
        new_name = recipe.name
        if is_auto_generated_name(new_name) and not new_name.endswith(PROMOTED_SUFFIX):
            new_name = new_name + PROMOTED_SUFFIX

    stamp = "Promoted to fixture %s" % datetime.utcnow().strftime("%Y-%m-%d %H:%M UTC")
    notes = "%s\n%s" % (recipe.notes, stamp) if recipe.notes else stamp

    promoted = recipe.model_copy(update={
        "name": new_name,
        "slug": slugify(new_name),
        "tier": tier or RecipeTier.REGRESSION.value,
        "status": RecipeStatus.ACTIVE.value,
        "is_fixture": True,
        "notes": notes,
    })
    logger.info("Promoted recipe %s to fixture as %r (%s)", recipe.id, new_name, promoted.tier)
    return promoted, False


def filter_fixtures(recipes: Iterable[Recipe], include_applications: bool = False) -> List[Recipe]:
    if include_applications:
        return list(recipes)
    # is_fixture may be NULL on rows that predate the column
    return [r for r in recipes if r.is_fixture is True]
