# autograde/ocr/free_text_parser.py
from __future__ import annotations

import re
from typing import List, Optional, Sequence

from autograde.core.logger import get_logger
from autograde.models.constants import STATUS_ABBREVIATIONS, STATUS_OPTIONS
from autograde.models.grade_schemas import ProcessedGrade, RosterStudent
from autograde.ocr.grade_assembler import merge_with_roster
from autograde.utils.text_tools import normalize_space

logger = get_logger("free_text")

_FENCE_RX = re.compile(r"```[a-zA-Z]*\n?")
_DELIMITERS = [",", ";", "\t", "|"]
_TABLE_RULE_RX = re.compile(r"^[\s|:\-+]+$")
_NOT_APPLICABLE_RX = re.compile(r"\bN\s*/\s*A\b|\bNA\b")


def _delimiter_of(line: str) -> Optional[str]:
    if line.strip().startswith("|"):
        return "|"
    for d in _DELIMITERS:
        if d in line:
            return d
    return None


def _is_header(line: str) -> bool:
    return "row" in line.lower() and _delimiter_of(line) is not None


def clean_free_text_response(text: str) -> str:
    """
    Strip code fences and anything before the "Row,Score,Status" header.
    Without a recognizable header the whole (unfenced) text is kept.
    """
    cleaned = _FENCE_RX.sub("", text or "")
    lines = cleaned.split("\n")

    start = 0
    for i, ln in enumerate(lines):
        if _is_header(ln):
            start = i
            break

    return "\n".join(lines[start:]).strip()


def split_fields(line: str) -> List[str]:
    delim = _delimiter_of(line)
    if delim is None:
        return [line.strip()]
    if delim == "|":
        line = line.strip().strip("|")
    return [p.strip() for p in line.split(delim)]


def parse_status(status_text: str) -> List[str]:
    """
    Case-insensitive. Full words match anywhere ("Absent", "was missing");
    single letters only as standalone tokens, so "Absent" does not also
    count as "E". "N/A" means no status. Result follows STATUS_OPTIONS
    order without duplicates.
    """
    upper = _NOT_APPLICABLE_RX.sub(" ", (status_text or "").upper())
    tokens = set(re.findall(r"[A-Z]+", upper))

    found = set()
    for word in STATUS_OPTIONS:
        if word.upper() in upper:
            found.add(word)
    for letter, word in STATUS_ABBREVIATIONS.items():
        if letter in tokens:
            found.add(word)

    return [s for s in STATUS_OPTIONS if s in found]


def parse_free_text_grades(
    text: str,
    roster: Sequence[RosterStudent],
) -> List[ProcessedGrade]:
    """
    Parse a "Row,Score,Status" reply into one grade per roster student.

    Data line i belongs to roster[i]. Lines with fewer than two fields keep
    their slot but contribute nothing; the student still gets an empty entry.
    """
    cleaned = clean_free_text_response(text)
    lines = [ln for ln in cleaned.split("\n") if ln.strip()]
    if lines and _is_header(lines[0]):
        lines = lines[1:]
    # a preamble mentioning "row" may have been taken for the header
    while lines and split_fields(lines[0])[0].lower() == "row":
        lines = lines[1:]

    lines = [ln for ln in lines if not _TABLE_RULE_RX.match(ln)]

    partial: List[Optional[ProcessedGrade]] = []
    for i, line in enumerate(lines[: len(roster)]):
        student = roster[i]
        parts = split_fields(line)
        if len(parts) < 2:
            logger.debug("Skipping malformed line %d: %r", i + 1, line)
            partial.append(None)
            continue

        score = normalize_space(parts[1])
        status_text = " ".join(parts[2:])
        partial.append(ProcessedGrade(
            student_id=student.student_id,
            student_name=student.full_name,
            score=score,
            status=parse_status(status_text),
        ))

    if len(lines) < len(roster):
        logger.info("Free-text reply covered %d of %d students", len(lines), len(roster))

    return merge_with_roster(partial, roster)
