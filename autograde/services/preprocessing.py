# autograde/services/preprocessing.py
import cv2
import numpy as np

from autograde.core.config import CONFIG
from autograde.core.errors import InvalidImageError


def preprocess_page(image_bytes: bytes, max_side: int | None = None) -> bytes:
    """
    Minimal preprocessing before OCR:
    - decode bytes to image
    - resize too-large scans (keeps aspect ratio)
    - re-encode as PNG
    Colour is kept; providers do their own binarization.
    """
    img_array = np.frombuffer(image_bytes, np.uint8)
    img = cv2.imdecode(img_array, cv2.IMREAD_COLOR)

    if img is None:
        raise InvalidImageError("Failed to decode image bytes")

    max_side = max_side or CONFIG.MAX_IMAGE_SIDE
    h, w = img.shape[:2]
    scale = max_side / max(h, w)
    if scale < 1:
        img = cv2.resize(img, (int(w * scale), int(h * scale)), interpolation=cv2.INTER_AREA)

    ok, png = cv2.imencode(".png", img)
    if not ok:
        raise InvalidImageError("Failed to encode image as PNG")
    return png.tobytes()
