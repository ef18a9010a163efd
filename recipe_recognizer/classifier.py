import json
import logging
import os
from typing import List, Optional

import cv2
import numpy as np
import onnxruntime as ort

from recipe_recognizer.config import (
    CLASSIFIER_APPLY_SOFTMAX,
    CLASSIFIER_IMAGE_MEAN,
    CLASSIFIER_IMAGE_STD,
    CLASSIFIER_LABELS_PATH,
    CLASSIFIER_MODEL_PATH,
    CLASSIFIER_NUM_RESULTS,
    CLASSIFIER_THREADS,
    CLASSIFIER_THRESHOLD,
)
from recipe_recognizer.recipes.models import Prediction

logger = logging.getLogger(__name__)

DEFAULT_INPUT_SIZE = 224


def load_labels(path: str) -> List[str]:
    """
    Load class labels in model output order.

    Supported formats:
    - JSON object {"0": "pizza", "1": "sushi", ...} (HF id2label export)
    - JSON list ["pizza", "sushi", ...]
    - text file, one label per line (blank lines ignored)
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Classifier labels not found at {path}")

    if path.endswith(".json"):
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            return [str(data[key]) for key in sorted(data, key=int)]
        if isinstance(data, list):
            return [str(label) for label in data]
        raise ValueError(f"Unsupported labels JSON in {path}")

    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


class FoodClassifier:
    """
    ONNX Runtime image classifier wrapper.

    Expects a model with a single (1, 3, H, W) float input and a
    (1, num_classes) output. Labels come from a separate file.
    """

    def __init__(
        self,
        model_path: str = CLASSIFIER_MODEL_PATH,
        labels_path: str = CLASSIFIER_LABELS_PATH,
        mean: float = CLASSIFIER_IMAGE_MEAN,
        std: float = CLASSIFIER_IMAGE_STD,
        thread_count: int = CLASSIFIER_THREADS,
        apply_softmax: bool = CLASSIFIER_APPLY_SOFTMAX,
    ):
        if not os.path.exists(model_path):
            raise FileNotFoundError(f"Classifier model not found at {model_path}")
        if std == 0:
            raise ValueError("Classifier image std must be non-zero")

        self.model_path = model_path
        self.labels = load_labels(labels_path)
        self.mean = float(mean)
        self.std = float(std)
        self.apply_softmax = apply_softmax

        logger.info(
            "[CLASSIFIER] Initializing from %s (%d labels, threads=%d)",
            model_path,
            len(self.labels),
            thread_count,
        )
        options = ort.SessionOptions()
        options.intra_op_num_threads = thread_count
        self.session = ort.InferenceSession(
            model_path,
            sess_options=options,
            providers=["CPUExecutionProvider"],
        )
        self.input_name = self.session.get_inputs()[0].name
        self.output_name = self.session.get_outputs()[0].name

        # Typical shapes: [1, 3, H, W] or [None, 3, H, W] / symbolic dims
        in_shape = self.session.get_inputs()[0].shape
        if len(in_shape) == 4 and isinstance(in_shape[2], int) and isinstance(in_shape[3], int):
            self.input_h = in_shape[2]
            self.input_w = in_shape[3]
        else:
            self.input_h = DEFAULT_INPUT_SIZE
            self.input_w = DEFAULT_INPUT_SIZE

    def _to_tensor(self, image: np.ndarray) -> np.ndarray:
        resized = cv2.resize(image, (self.input_w, self.input_h))
        tensor = (resized.astype(np.float32) - self.mean) / self.std
        return tensor.transpose(2, 0, 1)[None]  # (1, 3, H, W)

    def classify(
        self,
        image: np.ndarray,
        num_results: int = CLASSIFIER_NUM_RESULTS,
        threshold: float = CLASSIFIER_THRESHOLD,
    ) -> List[Prediction]:
        """
        Run the model on an RGB image.

        Returns at most ``num_results`` predictions with
        ``confidence >= threshold``, highest confidence first.
        """
        if self.session is None:
            raise RuntimeError("Classifier session is closed")
        if image is None or image.size == 0:
            raise ValueError("Empty image passed to classifier")

        outputs = self.session.run(
            [self.output_name], {self.input_name: self._to_tensor(image)}
        )[0]

        # Assume outputs shape is (1, num_classes) or (num_classes,)
        scores = outputs[0] if outputs.ndim == 2 else outputs
        scores = scores.astype(np.float32)

        if self.apply_softmax:
            e_x = np.exp(scores - np.max(scores))
            scores = e_x / e_x.sum()

        if len(scores) != len(self.labels):
            logger.warning(
                "[CLASSIFIER] Model returned %d scores but %d labels are loaded",
                len(scores),
                len(self.labels),
            )

        order = np.argsort(-scores, kind="stable")
        predictions: List[Prediction] = []
        for cls_idx in order[: max(num_results, 0)]:
            confidence = float(scores[cls_idx])
            if confidence < threshold:
                break
            label = self.labels[cls_idx] if cls_idx < len(self.labels) else f"class_{cls_idx}"
            predictions.append(Prediction(label=label, confidence=confidence))

        logger.info(
            "[CLASSIFIER] %d predictions, top=%s",
            len(predictions),
            (predictions[0].label, round(predictions[0].confidence, 3)) if predictions else None,
        )
        return predictions

    def close(self) -> None:
        # ONNX Runtime frees the session when the last reference goes away
        self.session = None


# Singleton pattern to avoid reloading the ONNX model for each request
_CLASSIFIER_SINGLETON: Optional[FoodClassifier] = None


def get_classifier() -> Optional[FoodClassifier]:
    """
    Lazily initialize the classifier singleton.

    Returns:
        FoodClassifier instance, or None if initialization failed.
    """
    global _CLASSIFIER_SINGLETON
    if _CLASSIFIER_SINGLETON is not None:
        return _CLASSIFIER_SINGLETON

    try:
        _CLASSIFIER_SINGLETON = FoodClassifier()
    except Exception as e:
        logger.error("Failed to initialize FoodClassifier: %s", e)
        _CLASSIFIER_SINGLETON = None

    return _CLASSIFIER_SINGLETON


def close_classifier() -> None:
    """Release the singleton session, if one was created."""
    global _CLASSIFIER_SINGLETON
    if _CLASSIFIER_SINGLETON is not None:
        logger.info("[CLASSIFIER] Closing session")
        _CLASSIFIER_SINGLETON.close()
        _CLASSIFIER_SINGLETON = None
