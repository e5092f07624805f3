# autograde/utils/helpers.py
import base64
import binascii
import json
from pathlib import Path
from typing import Any


def b64_to_bytes(b64: str) -> bytes:
    """
    Accepts either:
      - raw base64 string
      - or 'data:image/png;base64,...'

    Raises binascii.Error on anything that is not strict base64.
    """
    if "," in b64 and b64.strip().startswith("data:"):
        b64 = b64.split(",", 1)[1]
    b64 = "".join(b64.split())
    if not b64:
        raise binascii.Error("empty base64 payload")
    return base64.b64decode(b64, validate=True)


def ensure_dir(path: str) -> str:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return str(p)


def save_debug_json(data: Any, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)
