"""Tests for assembling per-student grades from rows and columns."""

import pytest

from autograde.models.constants import STATUS_OPTIONS
from autograde.models.grade_schemas import ProcessedGrade
from autograde.ocr.grade_assembler import (
    ColumnLayout,
    PositionalRowMatcher,
    RowNumberMatcher,
    assemble_grades,
    check_column_count,
    merge_with_roster,
    row_matcher_for,
)

SCALE = ["10", "8.5", "7.5"]
# row number, name, 3 scores, M/A/E
COLUMNS = [40, 150, 300, 350, 400, 450, 490, 530]


def _student_row(make_row, number, marks, y):
    """marks: x positions that carry an "X"; every other bubble reads "O"."""
    cells = [(str(number), 40), ("Name", 150)]
    for x in COLUMNS[2:]:
        cells.append(("X" if x in marks else "O", x))
    return make_row(cells, center_y=y)


@pytest.fixture
def rows(make_row):
    return [
        _student_row(make_row, 1, {300}, 100),
        _student_row(make_row, 2, {490}, 130),
        _student_row(make_row, 3, {350, 400, 450, 530}, 160),
    ]


def test_one_grade_per_student_with_roster_identity(roster, rows):
    grades = assemble_grades(roster, rows, COLUMNS, SCALE, STATUS_OPTIONS)

    assert len(grades) == len(roster)
    for grade, student in zip(grades, roster):
        assert grade.student_id == student.student_id
        assert grade.student_name == student.full_name


def test_scores_and_statuses(roster, rows):
    grades = assemble_grades(roster, rows, COLUMNS, SCALE, STATUS_OPTIONS)

    assert (grades[0].score, grades[0].status) == ("10", [])
    assert (grades[1].score, grades[1].status) == ("", ["Absent"])
    # double mark: first scale option wins, statuses are all kept
    assert (grades[2].score, grades[2].status) == ("8.5", ["Missing", "Exempt"])
    # no row for the fourth student
    assert (grades[3].score, grades[3].status) == ("", [])


@pytest.mark.parametrize("row_count", [0, 1, 3])
def test_length_matches_roster_when_rows_are_short(roster, rows, row_count):
    grades = assemble_grades(roster, rows[:row_count], COLUMNS, SCALE, STATUS_OPTIONS)
    assert len(grades) == len(roster)
    assert all(g.score == "" and g.status == [] for g in grades[row_count:])


def test_extra_rows_are_ignored(roster, rows, make_row):
    extra = rows + [_student_row(make_row, i, {300}, 200 + 30 * i) for i in range(4, 9)]
    grades = assemble_grades(roster[:2], extra, COLUMNS, SCALE, STATUS_OPTIONS)
    assert [g.student_id for g in grades] == ["001", "002"]


def test_empty_roster(rows):
    assert assemble_grades([], rows, COLUMNS, SCALE, STATUS_OPTIONS) == []


def test_identical_inputs_give_identical_output(roster, rows):
    first = assemble_grades(roster, rows, COLUMNS, SCALE, STATUS_OPTIONS)
    second = assemble_grades(roster, rows, COLUMNS, SCALE, STATUS_OPTIONS)
    assert [g.model_dump_json() for g in first] == [g.model_dump_json() for g in second]


def test_status_disabled_reads_no_statuses(roster, rows):
    grades = assemble_grades(roster, rows, COLUMNS, SCALE, [])
    assert all(g.status == [] for g in grades)
    assert grades[0].score == "10"


def test_undercounted_columns_read_as_unmarked(roster, rows):
    # only leading + score columns were detected
    grades = assemble_grades(roster, rows, COLUMNS[:5], SCALE, STATUS_OPTIONS)
    assert grades[1].status == []
    assert grades[2].score == "8.5"


def test_leading_columns_shift_the_layout(roster, make_row):
    row = make_row([("1", 40), ("X", 300), ("O", 350)])
    grades = assemble_grades(roster[:1], [row], [40, 300, 350], ["A", "B"], [], leading_columns=1)
    assert grades[0].score == "A"


def test_column_layout_indices():
    layout = ColumnLayout(scale_size=5, status_count=3)
    assert layout.expected_columns == 10
    assert layout.score_column(0) == 2
    assert layout.status_column(0) == 7


def test_check_column_count():
    layout = ColumnLayout(scale_size=3, status_count=3)
    assert check_column_count(layout, 8) == "ok"
    assert check_column_count(layout, 5) == "under"
    assert check_column_count(layout, 11) == "over"


def test_positional_matcher_skips_leading_rows(rows):
    matched = PositionalRowMatcher(skip_rows=1).match(rows, 3)
    assert matched == [rows[1], rows[2], None]


def test_row_number_matcher_anchors_on_printed_number(roster, rows, make_row):
    header = make_row([("#", 40), ("Student", 150), ("10", 300)], center_y=60)
    shuffled = [header, rows[2], rows[0]]
    matched = RowNumberMatcher().match(shuffled, len(roster))
    assert matched == [rows[0], None, rows[2], None]

    grades = assemble_grades(
        roster, shuffled, COLUMNS, SCALE, STATUS_OPTIONS, row_matcher=RowNumberMatcher()
    )
    assert [g.score for g in grades] == ["10", "", "8.5", ""]


def test_row_matcher_for():
    assert isinstance(row_matcher_for("row_number"), RowNumberMatcher)
    assert isinstance(row_matcher_for("positional"), PositionalRowMatcher)
    assert isinstance(row_matcher_for("bogus"), PositionalRowMatcher)


def test_merge_with_roster_restamps_identity_and_fills_gaps(roster):
    partial = [
        ProcessedGrade(student_id="wrong", student_name="From OCR", score="10"),
        None,
    ]
    merged = merge_with_roster(partial, roster)

    assert len(merged) == len(roster)
    assert merged[0].student_id == "001"
    assert merged[0].student_name == "Ann Lee"
    assert merged[0].score == "10"
    assert merged[1].score == "" and merged[1].status == []
    assert merged[3].student_name == "Di Ross"
    # the input is not mutated
    assert partial[0].student_id == "wrong"
