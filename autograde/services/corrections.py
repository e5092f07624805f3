# autograde/services/corrections.py
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from autograde.core.errors import UnknownStudentError
from autograde.models.grade_schemas import GradeCorrection, ProcessedGrade


def apply_corrections(
    grades: Sequence[ProcessedGrade],
    corrections: Sequence[GradeCorrection],
    editor: str,
    now: Optional[datetime] = None,
) -> List[ProcessedGrade]:
    """
    Return a new grade list with the corrected entries replaced.

    A correction replaces score and/or status (fields left as None are kept)
    and records who edited it and when. Entries without a correction are
    returned as they were.
    """
    now = now or datetime.now(timezone.utc)
    by_student: Dict[str, GradeCorrection] = {}
    known = {g.student_id for g in grades}
    for c in corrections:
        if c.student_id not in known:
            raise UnknownStudentError(f"Student '{c.student_id}' is not on this grade sheet")
        by_student[c.student_id] = c

    out: List[ProcessedGrade] = []
    for grade in grades:
        c = by_student.get(grade.student_id)
        if c is None:
            out.append(grade)
            continue

        update = {"manually_edited": True, "edited_by": editor, "edited_at": now}
        if c.score is not None:
            update["score"] = c.score
        if c.status is not None:
            update["status"] = list(c.status)
        out.append(grade.model_copy(update=update))
    return out
