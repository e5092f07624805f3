# autograde/services/google_vision.py
import time
from typing import Any, List

from google.api_core.exceptions import GoogleAPICallError, ServiceUnavailable
from google.cloud import vision
from google.oauth2 import service_account

from autograde.core.config import CONFIG
from autograde.core.errors import OCRProviderError
from autograde.core.logger import get_logger
from autograde.models.ocr import TextObject
from autograde.ocr.text_objects import text_objects_from_annotations

logger = get_logger("google_vision")

_client: vision.ImageAnnotatorClient | None = None


def get_vision_client() -> vision.ImageAnnotatorClient:
    """Service-account file if configured, application default credentials otherwise."""
    global _client
    if _client is None:
        if CONFIG.GOOGLE_CREDENTIALS_PATH:
            credentials = service_account.Credentials.from_service_account_file(
                CONFIG.GOOGLE_CREDENTIALS_PATH
            )
            _client = vision.ImageAnnotatorClient(credentials=credentials)
        else:
            _client = vision.ImageAnnotatorClient()
    return _client


def text_detection_from_bytes(
    image_bytes: bytes,
    retries: int | None = None,
    delay: float | None = None,
) -> Any:
    """Call Cloud Vision text_detection with retry on ServiceUnavailable."""
    retries = CONFIG.VISION_RETRIES if retries is None else retries
    delay = CONFIG.VISION_RETRY_DELAY if delay is None else delay

    client = get_vision_client()
    image = vision.Image(content=image_bytes)
    context = vision.ImageContext(
        language_hints=["en"],
        text_detection_params=vision.TextDetectionParams(
            enable_text_detection_confidence_score=True
        ),
    )

    last_exc = None
    for attempt in range(retries + 1):
        try:
            response = client.text_detection(image=image, image_context=context)
        except ServiceUnavailable as e:
            last_exc = e
            if attempt < retries:
                logger.warning("Vision unavailable (attempt %d), retrying", attempt + 1)
                time.sleep(delay * (2**attempt))
                continue
            break
        except GoogleAPICallError as e:
            raise OCRProviderError(f"Google Vision request failed: {e}") from e

        if response.error.message:
            raise OCRProviderError(response.error.message)
        return response

    raise OCRProviderError(f"Vision service unavailable after {retries + 1} attempts: {last_exc!r}")


def vision_response_to_text_objects(response: Any) -> List[TextObject]:
    """
    Convert text_annotations into TextObjects.
    Annotation 0 is the full-page text and is skipped.
    """
    annotations = (
        (
            ann.description,
            [(v.x, v.y) for v in ann.bounding_poly.vertices],
            ann.confidence,
        )
        for ann in response.text_annotations
    )
    return text_objects_from_annotations(annotations)


def detect_text_objects(image_bytes: bytes) -> List[TextObject]:
    response = text_detection_from_bytes(image_bytes)
    objects = vision_response_to_text_objects(response)
    logger.info("Vision returned %d text objects", len(objects))
    return objects
