import dataclasses
from typing import Any, Dict, Tuple


@dataclasses.dataclass(frozen=True)
class Prediction:
    """One classifier output: a raw label and its confidence in [0, 1]."""

    label: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "confidence": self.confidence}


@dataclasses.dataclass(frozen=True)
class RecipeRecord:
    """One dataset entry.

    ``class_name`` is stored as found in the dataset; it is normalized only
    when the index is built. Several records may share a class name.
    """

    class_name: str
    name: str = ""
    image_url: str = ""
    ingredients: Tuple[str, ...] = ()
    method: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class_name": self.class_name,
            "recipe_name": self.name,
            "image_url": self.image_url,
            "ingredients": list(self.ingredients),
            "method": list(self.method),
        }


@dataclasses.dataclass(frozen=True)
class ResolvedResult:
    """A prediction joined with one matching recipe, ready for display."""

    label: str
    confidence: float
    name: str
    image_url: str
    ingredients: Tuple[str, ...]
    method: Tuple[str, ...]

    @classmethod
    def join(cls, prediction: Prediction, record: RecipeRecord) -> "ResolvedResult":
        return cls(
            label=prediction.label,
            confidence=prediction.confidence,
            name=record.name,
            image_url=record.image_url,
            ingredients=record.ingredients,
            method=record.method,
        )

    def to_dict(self) -> Dict[str, Any]:
        # Keys match what the results screen consumes
        return {
            "label": self.label,
            "confidence": self.confidence,
            "recipe_name": self.name,
            "image_url": self.image_url,
            "ingredients": list(self.ingredients),
            "method": list(self.method),
        }
