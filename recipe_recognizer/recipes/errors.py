"""Errors raised by the recipe resolution core."""


class InvalidInput(ValueError):
    """A prediction could not be coerced into a usable label/confidence pair."""


class IndexNotBuilt(RuntimeError):
    """Resolution was attempted against a recipe index that was never built."""
