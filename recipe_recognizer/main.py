"""Main FastAPI application."""

import asyncio
import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from recipe_recognizer.classifier import FoodClassifier, close_classifier, get_classifier
from recipe_recognizer.config import (
    ALLOW_ALL_ORIGINS,
    CORS_ORIGINS,
    LOG_LEVEL,
    RESOLVE_CONFIDENCE_THRESHOLD,
    RESOLVE_EXPAND_POLICY,
    RESOLVE_MAX_RESULTS,
)
from recipe_recognizer.image_preprocess import preprocess_image
from recipe_recognizer.recipes import (
    InvalidInput,
    RecipeIndex,
    ResolveOptions,
    coerce_prediction,
    get_recipe_index,
    resolve,
)

logging.basicConfig(
    level=LOG_LEVEL,
    stream=sys.stdout,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

SUPPORTED_CONTENT_TYPES = ["image/jpeg", "image/png"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_classifier()


app = FastAPI(title="Recipe Recognizer", lifespan=lifespan)

# -----------------------------------
# CORS
# -----------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=not ALLOW_ALL_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------------
# Dependencies
# -----------------------------------

def recipe_index() -> RecipeIndex:
    try:
        return get_recipe_index()
    except (OSError, ValueError) as e:
        logger.exception("Recipe dataset could not be loaded")
        raise HTTPException(503, f"Recipe dataset unavailable: {e}")


def food_classifier() -> FoodClassifier:
    classifier = get_classifier()
    if classifier is None:
        raise HTTPException(503, "Classifier unavailable")
    return classifier


def resolve_options(
    threshold: Optional[float] = Query(None, ge=0.0, le=1.0),
    max_results: Optional[int] = Query(
        None,
        ge=0,
        description="Ranked predictions to keep before recipe expansion; 0 means unlimited",
    ),
    policy: Optional[str] = Query(None),
) -> ResolveOptions:
    """
    Per-request overrides on top of the configured defaults.

    In the query string max_results=0 means unlimited and is passed on as
    None; ResolveOptions(max_results=0) itself would keep no predictions.
    """
    try:
        return ResolveOptions(
            confidence_threshold=RESOLVE_CONFIDENCE_THRESHOLD if threshold is None else threshold,
            max_results=RESOLVE_MAX_RESULTS if max_results is None else (max_results or None),
            expand_policy=(policy or RESOLVE_EXPAND_POLICY).lower(),
        )
    except ValueError as e:
        raise HTTPException(422, f"Invalid resolve options: {e}")


# -----------------------------------
# Endpoints
# -----------------------------------

@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/recipes/{label}")
def get_recipes(label: str, index: RecipeIndex = Depends(recipe_index)):
    """All recipes filed under the (normalized) label, in dataset order."""
    records = index.lookup(label)
    if not records:
        raise HTTPException(404, f"No recipes for label {label!r}")
    return {"label": label, "recipes": [record.to_dict() for record in records]}


@app.post("/recognize")
async def recognize_dish(
    image: UploadFile = File(None),
    options: ResolveOptions = Depends(resolve_options),
    classifier: FoodClassifier = Depends(food_classifier),
    index: RecipeIndex = Depends(recipe_index),
):
    """
    Photo → classifier → recipe resolution.

    An empty "results" list is a valid answer: nothing passed the
    thresholds or no predicted label has a recipe.
    """
    if not image:
        raise HTTPException(422, "Image field is required")

    if image.content_type not in SUPPORTED_CONTENT_TYPES:
        raise HTTPException(422, "Unsupported format (use jpeg/png)")

    total_start = time.time()
    logger.info("[PIPELINE] Starting /recognize for file: %s", image.filename)

    content = await image.read()

    # Step 1: decode + resize
    preprocess_start = time.time()
    try:
        img = await asyncio.to_thread(preprocess_image, content)
    except ValueError as e:
        raise HTTPException(422, f"Invalid image: {e}")
    preprocess_time = time.time() - preprocess_start

    # Step 2: classify
    classify_start = time.time()
    try:
        raw_predictions = await asyncio.to_thread(classifier.classify, img)
    except RuntimeError as e:
        logger.exception("[PIPELINE] Classifier failed")
        raise HTTPException(503, f"Classifier unavailable: {e}")
    except Exception as e:
        logger.exception("[PIPELINE] Classifier failed")
        raise HTTPException(422, f"Recognition error: {e}")
    classify_time = time.time() - classify_start

    # Step 3: resolve against recipes (a null classifier result counts as no predictions)
    resolve_start = time.time()
    try:
        predictions = [coerce_prediction(raw) for raw in raw_predictions or []]
        results = resolve(predictions, index, options)
    except InvalidInput as e:
        logger.error("[PIPELINE] Classifier returned malformed predictions: %s", e)
        raise HTTPException(422, f"Invalid classifier output: {e}")
    resolve_time = time.time() - resolve_start

    total_time = time.time() - total_start
    processing_times = {
        "preprocess_ms": round(preprocess_time * 1000, 2),
        "classify_ms": round(classify_time * 1000, 2),
        "resolve_ms": round(resolve_time * 1000, 2),
        "total_ms": round(total_time * 1000, 2),
    }
    logger.info(
        "[PIPELINE] /recognize completed: %d predictions, %d results, timings_ms=%s",
        len(predictions),
        len(results),
        processing_times,
    )

    return {
        "results": [result.to_dict() for result in results],
        "predictions": [prediction.to_dict() for prediction in predictions],
        "processing_times": processing_times,
    }
