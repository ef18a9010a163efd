"""
Prediction-to-recipe resolution.

Raw classifier output
  ↓
coerce (label, confidence)
  ↓
threshold filter
  ↓
stable sort by confidence (desc)
  ↓
truncate to max_results predictions
  ↓
index lookup + expansion (all matches / first match)
  ↓
ResolvedResult list
"""

import dataclasses
import enum
import logging
import math
from typing import Any, Iterable, List, Mapping, Optional

from .errors import IndexNotBuilt, InvalidInput
from .index import RecipeIndex
from .models import Prediction, ResolvedResult

logger = logging.getLogger(__name__)

# How many ranked predictions to include in the diagnostic log line
TOP_PREDICTIONS_LOGGED = 5


class ExpandPolicy(str, enum.Enum):
    ALL_MATCHES = "all_matches"
    FIRST_MATCH = "first_match"


@dataclasses.dataclass(frozen=True)
class ResolveOptions:
    """
    Knobs for ``resolve``.

    - confidence_threshold: predictions below it are discarded before ranking
    - max_results: number of ranked predictions kept (None = unlimited);
      applied before recipe expansion, so it does not cap result rows
    - expand_policy: emit every recipe of a matched group, or only the first
    """

    confidence_threshold: float = 0.0
    max_results: Optional[int] = None
    expand_policy: ExpandPolicy = ExpandPolicy.ALL_MATCHES

    def __post_init__(self):
        try:
            threshold = float(self.confidence_threshold)
        except (TypeError, ValueError) as e:
            raise ValueError(
                f"confidence_threshold must be a number, got {self.confidence_threshold!r}"
            ) from e
        if not math.isfinite(threshold):
            raise ValueError("confidence_threshold must be finite")
        object.__setattr__(self, "confidence_threshold", threshold)

        if self.max_results is not None:
            if isinstance(self.max_results, bool) or not isinstance(self.max_results, int):
                raise ValueError(
                    f"max_results must be an int or None, got {self.max_results!r}"
                )
            if self.max_results < 0:
                raise ValueError("max_results must not be negative")

        # Accept plain strings such as "first_match" from config / query params
        object.__setattr__(self, "expand_policy", ExpandPolicy(self.expand_policy))


def _coerce_confidence(raw: Any, label: str) -> float:
    if raw is None:
        return 0.0
    if isinstance(raw, bool):
        raise InvalidInput(f"Confidence for {label!r} is a boolean: {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Confidence for {label!r} is not a number: {raw!r}") from e

    if math.isnan(value):
        return 0.0
    if math.isinf(value):
        raise InvalidInput(f"Confidence for {label!r} is not finite: {raw!r}")
    return min(max(value, 0.0), 1.0)


def coerce_prediction(raw: Any) -> Prediction:
    """
    Turn one raw classifier entry into a ``Prediction``.

    Accepts ``Prediction`` instances and mappings with ``label`` and
    ``confidence`` keys. Missing/NaN/negative confidences become 0.0, values
    above 1.0 are clamped. Anything that cannot become a finite number raises
    ``InvalidInput``.
    """
    if isinstance(raw, Prediction):
        label, confidence = raw.label, raw.confidence
    elif isinstance(raw, Mapping):
        if "confidence" not in raw:
            raise InvalidInput(f"Prediction has no confidence: {raw!r}")
        label, confidence = raw.get("label"), raw["confidence"]
    else:
        raise InvalidInput(f"Unsupported prediction type: {type(raw).__name__}")

    label = "" if label is None else str(label)
    return Prediction(label=label, confidence=_coerce_confidence(confidence, label))


def resolve(
    predictions: Optional[Iterable[Any]],
    index: Optional[RecipeIndex],
    options: Optional[ResolveOptions] = None,
) -> List[ResolvedResult]:
    """
    Rank classifier predictions and join them against the recipe index.

    ``predictions`` may be None (no classifier result), which resolves to an
    empty list. Predictions whose label has no recipe group contribute
    nothing. Results keep prediction order; within one prediction they keep
    dataset order.
    """
    if index is None or not index.is_built:
        raise IndexNotBuilt("resolve() called before the recipe index was built")

    options = options or ResolveOptions()

    if predictions is None:
        logger.info("[RESOLVE] No classifier result, nothing to resolve")
        return []

    coerced = [coerce_prediction(raw) for raw in predictions]
    admitted = [p for p in coerced if p.confidence >= options.confidence_threshold]

    # sorted() is stable, also with reverse=True: equal confidences keep classifier order
    ranked = sorted(admitted, key=lambda p: p.confidence, reverse=True)
    if options.max_results is not None:
        ranked = ranked[: options.max_results]

    logger.info(
        "[RESOLVE] Top predictions: %s",
        [(p.label, round(p.confidence, 4)) for p in ranked[:TOP_PREDICTIONS_LOGGED]],
    )

    results: List[ResolvedResult] = []
    matched = 0
    for prediction in ranked:
        group = index.lookup(prediction.label)
        if not group:
            logger.debug("[RESOLVE] No recipe for label %r", prediction.label)
            continue

        matched += 1
        if options.expand_policy is ExpandPolicy.FIRST_MATCH:
            group = group[:1]
        results.extend(ResolvedResult.join(prediction, record) for record in group)

    logger.info(
        "[RESOLVE] predictions=%d admitted=%d ranked=%d matched=%d results=%d "
        "(threshold=%.3f, max_results=%s, policy=%s)",
        len(coerced),
        len(admitted),
        len(ranked),
        matched,
        len(results),
        options.confidence_threshold,
        options.max_results,
        options.expand_policy.value,
    )
    return results
