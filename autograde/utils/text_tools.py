# autograde/utils/text_tools.py
import re
from typing import List

from autograde.models.ocr import TextObject


def normalize_space(s: str) -> str:
    return re.sub(r"\s+", " ", (s or "").strip())


def row_text(text_objects: List[TextObject]) -> str:
    """Left-to-right text of a row, for logs and debug dumps."""
    return normalize_space(" ".join(o.text for o in text_objects))
