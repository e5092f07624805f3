# autograde/services/claude_vision.py
import base64
from typing import Sequence

import anthropic

from autograde.core.config import CONFIG
from autograde.core.errors import OCRProviderError
from autograde.core.logger import get_logger

logger = get_logger("claude_vision")


def build_prompt(grading_scale: Sequence[str]) -> str:
    scale = ", ".join(grading_scale)
    return (
        "I have a grade sheet image. For each student row in order from top to bottom:\n"
        f"1. Identify which score ({scale}) is marked/filled/blacked out\n"
        "2. Check if M (Missing), A (Absent), or E (Exempt) cells are marked/filled/blacked out\n"
        "\n"
        "Return a CSV with these columns:\n"
        "Row,Score,Status\n"
        "\n"
        "Return ONLY the CSV data. No explanations, no markdown, no code blocks."
    )


def get_claude_client() -> anthropic.Anthropic:
    return anthropic.Anthropic(api_key=CONFIG.ANTHROPIC_API_KEY)


def describe_grade_sheet(
    image_bytes: bytes,
    grading_scale: Sequence[str],
    media_type: str = "image/png",
    prompt: str | None = None,
) -> str:
    """Ask the model for a "Row,Score,Status" table and return its raw text."""
    client = get_claude_client()
    try:
        response = client.messages.create(
            model=CONFIG.CLAUDE_MODEL,
            max_tokens=CONFIG.CLAUDE_MAX_TOKENS,
            temperature=0,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt or build_prompt(grading_scale)},
                    {
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": media_type,
                            "data": base64.b64encode(image_bytes).decode("ascii"),
                        },
                    },
                ],
            }],
        )
    except anthropic.APIError as e:
        raise OCRProviderError(f"Claude request failed: {e}") from e

    texts = [block.text for block in response.content if getattr(block, "type", "") == "text"]
    if not texts:
        raise OCRProviderError("Claude returned no text content")
    return texts[0]
