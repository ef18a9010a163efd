"""Image acquisition: uploaded bytes -> bounded-size RGB array."""

import logging
from io import BytesIO

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from recipe_recognizer.config import BACKEND_MAX_SIDE_PX

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> np.ndarray:
    """Decode JPEG/PNG bytes into an RGB uint8 array of shape (H, W, 3)."""
    if not data:
        raise ValueError("Empty image payload")
    try:
        img = Image.open(BytesIO(data)).convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Cannot decode image: {e}") from e
    return np.asarray(img, dtype=np.uint8)


def preprocess_image(data: bytes, max_size: int = BACKEND_MAX_SIDE_PX) -> np.ndarray:
    """
    Load image → resize long side to max_size → return RGB array.

    No color normalization happens here; the classifier applies its own
    mean/std to the pixels.
    """
    img = decode_image(data)

    h, w = img.shape[:2]
    scale = max_size / max(h, w)
    if scale < 1:
        img = cv2.resize(
            img,
            (int(w * scale), int(h * scale)),
            interpolation=cv2.INTER_AREA,
        )

    logger.debug(
        "Preprocessed image: input=%sx%s, output=%sx%s",
        w,
        h,
        img.shape[1],
        img.shape[0],
    )
    return img
