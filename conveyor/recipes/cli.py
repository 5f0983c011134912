"""
Drift report: rerun the recipe corpus and rank numeric drift.

Usage:
    python -m conveyor.recipes.cli [--mode expected|baseline|legacy|previous]
                                   [--top N] [--corpus recipes.json]
                                   [--database-url URL] [--record]
                                   [--tolerances] [--strict]

Without --corpus the fixtures are loaded from the recipe database.
A corpus file is a JSON list of recipe objects (name, inputs, and any of
expected_outputs / baseline_outputs / legacy_outputs / expected_issues, plus
optional slug, tier and status for CI blocking).

Exit codes follow the CI blocking rules in ci.py (only locked fixtures in a
blocking tier fail the build). With --strict any failure or error exits 1.

    0: nothing blocking
    1: at least one blocking failure
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ..canonical import hash_canonical
from ..config import settings
from ..database import Base, SessionLocal, init_db
from ..models import ComparisonMode
from ..sanitizer import sanitize
from ..schemas import Recipe
from .ci import check_ci_blocking, format_ci_summary
from .drift import collect_drift_entries, format_drift_summary, summarize_runs
from .lifecycle import filter_fixtures, slugify
from .runner import format_run_result, run_recipes
from .store import RecipeStore
from .tolerance import apply_tolerances

logger = logging.getLogger(__name__)


def load_corpus_file(path: Path) -> List[Recipe]:
    """Recipes from a JSON file. Inputs are re-sanitized; a corpus file is client data."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("recipes", [])

    recipes = []
    for i, item in enumerate(raw, start=1):
        cleaned = sanitize(item.get("inputs") or {}).cleaned
        data = dict(item)
        data.setdefault("id", i)
        data.setdefault("is_fixture", True)
        data.setdefault("slug", slugify(data.get("name") or ""))
        data["inputs"] = cleaned
        data["inputs_hash"] = hash_canonical(cleaned)
        recipes.append(Recipe.model_validate(data))
    return recipes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m conveyor.recipes.cli",
        description="Rerun stored recipes against the current engine and report drift.",
    )
    parser.add_argument("--mode", choices=[m.value for m in ComparisonMode],
                        default=ComparisonMode.EXPECTED.value,
                        help="Snapshot to compare against (default: expected)")
    parser.add_argument("--top", type=int, default=settings.DRIFT_TOP_N,
                        help="Number of drifted fields to list (default: %(default)s)")
    parser.add_argument("--corpus", type=Path, default=None,
                        help="JSON corpus file instead of the recipe database")
    parser.add_argument("--database-url", default=None,
                        help="Recipe database URL (default: DATABASE_URL setting)")
    parser.add_argument("--include-applications", action="store_true",
                        help="Also run non-fixture application snapshots")
    parser.add_argument("--fallback-to-expected", action="store_true",
                        help="Compare against expected outputs when the chosen snapshot is missing")
    parser.add_argument("--record", action="store_true",
                        help="Persist run results (database corpus only)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Print every recipe result, not only failures")
    parser.add_argument("--tolerances", action="store_true",
                        help="Hide drift inside the default per-field tolerances (pass/fail is unchanged)")
    parser.add_argument("--strict", action="store_true",
                        help="Exit 1 on any failure or error, ignoring CI blocking rules")
    return parser


def _open_session(database_url: Optional[str]):
    if database_url is None:
        init_db()
        return SessionLocal()

    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)()


def _run_from_database(args, mode: ComparisonMode):
    db = _open_session(args.database_url)
    try:
        store = RecipeStore(db)
        recipes = store.list_recipes() if args.include_applications else store.list_fixtures()
        previous = {}
        if mode == ComparisonMode.PREVIOUS:
            previous = {r.id: store.last_run_outputs(r.id) for r in recipes}
        results = run_recipes(recipes, mode, run_context="drift", previous_outputs=previous,
                              fallback_to_expected=args.fallback_to_expected)
        if args.record:
            for result in results:
                store.record_run(result)
        return recipes, results
    finally:
        db.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    mode = ComparisonMode(args.mode)

    if args.corpus is not None:
        recipes = filter_fixtures(load_corpus_file(args.corpus), args.include_applications)
        results = run_recipes(recipes, mode, run_context="drift",
                              fallback_to_expected=args.fallback_to_expected)
    else:
        recipes, results = _run_from_database(args, mode)

    for result in results:
        if args.verbose or result.passed is False or result.error:
            print(format_run_result(result))

    summary = summarize_runs(results)
    print("\n%d recipes: %d passed, %d failed, %d skipped, %d errored (mode: %s)" % (
        summary["total"], summary["passed"], summary["failed"],
        summary["skipped"], summary["errored"], mode.value))
    entries = collect_drift_entries(results)
    hidden = 0
    if args.tolerances:
        entries, hidden = apply_tolerances(entries)
    print(format_drift_summary(entries, args.top, hidden=hidden))

    if args.strict:
        return 1 if summary["failed"] or summary["errored"] else 0

    report = check_ci_blocking(zip(recipes, results))
    print("\n" + format_ci_summary(report))
    return 1 if report.should_block else 0


if __name__ == "__main__":
    sys.exit(main())
