"""
Shared fixtures for the autograde test suite.
"""

import pytest

from autograde.models.grade_schemas import GradingConfig, RosterStudent
from autograde.models.ocr import BoundingBox, TextObject
from autograde.ocr.row_clustering import Row


def _make_text_object(text, cx, cy, confidence=1.0, width=10.0, height=10.0):
    return TextObject(
        text=text,
        confidence=confidence,
        bounding_box=BoundingBox(
            min_x=cx - width / 2,
            max_x=cx + width / 2,
            min_y=cy - height / 2,
            max_y=cy + height / 2,
        ),
    )


@pytest.fixture
def make_text_object():
    """Factory: make_text_object(text, center_x, center_y, confidence=1.0)."""
    return _make_text_object


@pytest.fixture
def make_row():
    """Factory: make_row([(text, center_x), ...], center_y=100, confidence=1.0)."""

    def _make(cells, center_y=100.0):
        row = None
        for cell in cells:
            text, cx = cell[0], cell[1]
            conf = cell[2] if len(cell) > 2 else 1.0
            obj = _make_text_object(text, cx, center_y, conf)
            if row is None:
                row = Row.start(obj)
            else:
                row.add(obj)
        return row or Row()

    return _make


@pytest.fixture
def roster():
    return [
        RosterStudent(student_id="001", first_name="Ann", last_name="Lee"),
        RosterStudent(student_id="002", first_name="Bo", last_name="Kim"),
        RosterStudent(student_id="003", first_name="Cy", last_name="Park"),
        RosterStudent(student_id="004", first_name="Di", last_name="Ross"),
    ]


@pytest.fixture
def grading():
    return GradingConfig(grading_scale=["10", "8.5", "7.5"], include_status=True)


# Synthetic sheet geometry: row number, name, 3 score bubbles, M/A/E bubbles
ROW_NUMBER_X = 40
NAME_X = 150
SCORE_XS = [300, 350, 400]
STATUS_XS = [450, 490, 530]


@pytest.fixture
def sheet_text_objects():
    """
    OCR output for a three-row sheet. Empty bubbles read as "O"; marks are
    either an "X" glyph or a low-confidence blob.

      1 Ann Lee : score 10
      2 Bo Kim  : Absent
      3 Cy Park : 8.5 and 7.5 both marked, Missing (blob) and Exempt
    """
    rows = [
        ("1", "Ann Lee", ["X", "O", "O"], ["O", "O", "O"], 100),
        ("2", "Bo Kim", ["O", "O", "O"], ["O", "X", "O"], 130),
        ("3", "Cy Park", ["O", "X", "X"], ["#", "O", "X"], 160),
    ]
    objects = []
    for number, name, scores, statuses, y in rows:
        objects.append(_make_text_object(number, ROW_NUMBER_X, y))
        objects.append(_make_text_object(name, NAME_X, y, width=80))
        for text, x in zip(scores, SCORE_XS):
            objects.append(_make_text_object(text, x, y, 0.95))
        for text, x in zip(statuses, STATUS_XS):
            conf = 0.3 if text == "#" else 0.95
            objects.append(_make_text_object(text, x, y, conf))
    return objects
