"""Recipe dataset loading and the process-wide recipe index."""

import json
import logging
from functools import lru_cache
from typing import Any, List, Sequence, Tuple

from recipe_recognizer.config import RECIPES_PATH
from .index import RecipeIndex
from .models import RecipeRecord

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_steps(value: Any) -> Tuple[str, ...]:
    # Order matters for Method: steps are kept exactly as listed
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(_as_text(item) for item in value)


def record_from_dict(item: dict) -> RecipeRecord:
    """
    Map one dataset entry onto ``RecipeRecord``.

    Dataset keys: class_name, Name, image_url, Ingredients, Method.
    Raises ValueError if class_name is missing.
    """
    class_name = item.get("class_name")
    if class_name is None:
        raise ValueError("Recipe entry has no class_name")

    return RecipeRecord(
        class_name=_as_text(class_name),
        name=_as_text(item.get("Name")),
        image_url=_as_text(item.get("image_url")),
        ingredients=_as_steps(item.get("Ingredients")),
        method=_as_steps(item.get("Method")),
    )


def parse_recipes(entries: Sequence[Any]) -> List[RecipeRecord]:
    """Convert already-deserialized entries, skipping ones that are not usable."""
    records: List[RecipeRecord] = []
    for position, item in enumerate(entries):
        if not isinstance(item, dict):
            logger.warning(
                "[DATASET] Skipping entry #%d: expected object, got %s",
                position,
                type(item).__name__,
            )
            continue
        try:
            records.append(record_from_dict(item))
        except (TypeError, ValueError) as e:
            logger.warning("[DATASET] Skipping entry #%d: %s", position, e)
    return records


def load_recipes(path: str) -> List[RecipeRecord]:
    """Read a JSON array of recipes from ``path``."""
    with open(path, "r", encoding="utf-8") as f:
        entries = json.load(f)

    if not isinstance(entries, list):
        raise ValueError(f"Recipe dataset {path} must contain a JSON array")

    records = parse_recipes(entries)
    logger.info(
        "[DATASET] Loaded %d recipes from %s (%d entries skipped)",
        len(records),
        path,
        len(entries) - len(records),
    )
    return records


@lru_cache
def get_recipe_index() -> RecipeIndex:
    """Build the recipe index once per process from RECIPES_PATH."""
    logger.info("[DATASET] Building recipe index from %s", RECIPES_PATH)
    return RecipeIndex.build(load_recipes(RECIPES_PATH))
