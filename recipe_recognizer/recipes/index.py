"""Normalized class-name index over the recipe dataset."""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import IndexNotBuilt
from .models import RecipeRecord

logger = logging.getLogger(__name__)


def normalize(label: str) -> str:
    """
    Canonical form used to match classifier labels against dataset class names.

    Trims surrounding whitespace and lower-cases. Internal whitespace and
    Unicode case variants are left untouched.
    """
    return label.strip().lower()


class RecipeIndex:
    """
    Read-only mapping: normalized class name -> recipes, in dataset order.

    Use ``RecipeIndex.build(records)``. An instance created directly is
    unbuilt and refuses lookups with ``IndexNotBuilt``.
    """

    def __init__(self, groups: Optional[Mapping[str, Tuple[RecipeRecord, ...]]] = None):
        self._groups: Optional[Mapping[str, Tuple[RecipeRecord, ...]]] = (
            MappingProxyType(dict(groups)) if groups is not None else None
        )

    @classmethod
    def build(cls, records: Iterable[RecipeRecord]) -> "RecipeIndex":
        grouped: Dict[str, List[RecipeRecord]] = {}
        count = 0
        for record in records:
            grouped.setdefault(normalize(record.class_name), []).append(record)
            count += 1

        logger.info(
            "[INDEX] Built recipe index: %d records across %d class names",
            count,
            len(grouped),
        )
        return cls({key: tuple(group) for key, group in grouped.items()})

    @property
    def is_built(self) -> bool:
        return self._groups is not None

    def _require_groups(self) -> Mapping[str, Tuple[RecipeRecord, ...]]:
        if self._groups is None:
            raise IndexNotBuilt("Recipe index has not been built")
        return self._groups

    def lookup(self, label: str) -> Tuple[RecipeRecord, ...]:
        """Return every recipe filed under ``normalize(label)``; empty if none."""
        return self._require_groups().get(normalize(label), ())

    def class_names(self) -> List[str]:
        return list(self._require_groups().keys())

    def __contains__(self, label: object) -> bool:
        if not isinstance(label, str):
            return False
        return normalize(label) in self._require_groups()

    def __len__(self) -> int:
        return sum(len(group) for group in self._require_groups().values())
