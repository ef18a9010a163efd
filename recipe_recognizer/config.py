import os
from typing import Optional


def _parse_cors_origins(raw: str) -> list[str]:
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


def _parse_max_results(raw: str) -> Optional[int]:
    """0 or a negative value means unlimited (None)."""
    value = int(raw)
    return value if value > 0 else None


CORS_ORIGINS = _parse_cors_origins(os.getenv("CORS_ORIGINS", "*"))
ALLOW_ALL_ORIGINS = CORS_ORIGINS == ["*"]

# LOG_LEVEL: root logging level for the service (DEBUG shows dropped predictions)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -----------------------------------
# Dataset configuration
# -----------------------------------

# RECIPES_PATH: JSON array of recipes with class_name, Name, image_url,
# Ingredients and Method fields. Loaded once per process.
RECIPES_PATH = os.getenv("RECIPES_PATH", "assets/recipes.json")

# -----------------------------------
# Classifier configuration
# -----------------------------------

# CLASSIFIER_MODEL_PATH / CLASSIFIER_LABELS_PATH: ONNX model and its labels.
# Labels may be a JSON id->label map, a JSON list, or a text file with one label per line.
CLASSIFIER_MODEL_PATH = os.getenv(
    "CLASSIFIER_MODEL_PATH", "models/food_classifier/classifier.onnx"
)
CLASSIFIER_LABELS_PATH = os.getenv(
    "CLASSIFIER_LABELS_PATH", "models/food_classifier/classifier_labels.json"
)

# CLASSIFIER_IMAGE_MEAN / CLASSIFIER_IMAGE_STD: input normalization,
# applied to raw 0..255 pixels as (pixel - mean) / std
CLASSIFIER_IMAGE_MEAN = float(os.getenv("CLASSIFIER_IMAGE_MEAN", "0.846"))
CLASSIFIER_IMAGE_STD = float(os.getenv("CLASSIFIER_IMAGE_STD", "1.0"))

# CLASSIFIER_NUM_RESULTS: how many top classes the classifier reports
CLASSIFIER_NUM_RESULTS = int(os.getenv("CLASSIFIER_NUM_RESULTS", "25"))

# CLASSIFIER_THRESHOLD: classifier-side confidence floor.
# Independent of RESOLVE_CONFIDENCE_THRESHOLD; both are applied.
CLASSIFIER_THRESHOLD = float(os.getenv("CLASSIFIER_THRESHOLD", "0.2"))

# CLASSIFIER_THREADS: ONNX Runtime intra-op thread count
CLASSIFIER_THREADS = int(os.getenv("CLASSIFIER_THREADS", "4"))

# CLASSIFIER_APPLY_SOFTMAX: set to "false" when the model already outputs probabilities
CLASSIFIER_APPLY_SOFTMAX = os.getenv("CLASSIFIER_APPLY_SOFTMAX", "true").lower() == "true"

# BACKEND_MAX_SIDE_PX: longer side of the uploaded image after initial resize
BACKEND_MAX_SIDE_PX = int(os.getenv("BACKEND_MAX_SIDE_PX", "768"))

# -----------------------------------
# Resolution configuration
# -----------------------------------

# RESOLVE_CONFIDENCE_THRESHOLD: predictions below this are not matched to recipes.
# Default 0.0 admits everything the classifier returned.
RESOLVE_CONFIDENCE_THRESHOLD = float(os.getenv("RESOLVE_CONFIDENCE_THRESHOLD", "0.0"))

# RESOLVE_MAX_RESULTS: number of ranked predictions considered (0 or negative = unlimited)
RESOLVE_MAX_RESULTS = _parse_max_results(os.getenv("RESOLVE_MAX_RESULTS", "0"))

# RESOLVE_EXPAND_POLICY:
# - "all_matches": one result per recipe sharing the predicted class name
# - "first_match": only the first recipe (dataset order) per prediction
RESOLVE_EXPAND_POLICY = os.getenv("RESOLVE_EXPAND_POLICY", "all_matches").lower()
