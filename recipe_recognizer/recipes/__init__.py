"""
Recipe resolution package:
- models: Prediction / RecipeRecord / ResolvedResult value objects
- index: normalized class-name -> recipes lookup
- resolver: threshold, ranking and expansion of classifier output
- dataset: JSON dataset loading and the shared index
"""

from .dataset import get_recipe_index, load_recipes, parse_recipes, record_from_dict
from .errors import IndexNotBuilt, InvalidInput
from .index import RecipeIndex, normalize
from .models import Prediction, RecipeRecord, ResolvedResult
from .resolver import ExpandPolicy, ResolveOptions, coerce_prediction, resolve

__all__ = [
    "ExpandPolicy",
    "IndexNotBuilt",
    "InvalidInput",
    "Prediction",
    "RecipeIndex",
    "RecipeRecord",
    "ResolveOptions",
    "ResolvedResult",
    "coerce_prediction",
    "get_recipe_index",
    "load_recipes",
    "normalize",
    "parse_recipes",
    "record_from_dict",
    "resolve",
]
