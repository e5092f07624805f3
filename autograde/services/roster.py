# autograde/services/roster.py
from typing import List

from pymongo import ASCENDING

from autograde.core.database import ASSIGNMENTS, STUDENTS, get_collection
from autograde.core.errors import GradeProcessingError
from autograde.models.grade_schemas import GradingConfig, RosterStudent


def _student_from_doc(doc: dict) -> RosterStudent:
    student_id = str(doc.get("student_id", ""))
    if not doc.get("first_name") and not doc.get("last_name") and doc.get("full_name"):
        return RosterStudent.from_full_name(student_id, doc["full_name"])
    return RosterStudent(
        student_id=student_id,
        first_name=doc.get("first_name", ""),
        last_name=doc.get("last_name", ""),
    )


def load_roster(period_id: str) -> List[RosterStudent]:
    """
    Active students of one period, sorted by last then first name.
    This order is the positional key the sheet was printed with.
    """
    cursor = get_collection(STUDENTS).find(
        {"periods": period_id, "is_active": {"$ne": False}}
    ).sort([("last_name", ASCENDING), ("first_name", ASCENDING)])

    roster = [_student_from_doc(doc) for doc in cursor]
    # full_name-only documents sort by their parsed last name
    roster.sort(key=lambda s: (s.last_name, s.first_name))
    return roster


def load_grading_config(assignment_id: str) -> GradingConfig:
    doc = get_collection(ASSIGNMENTS).find_one({"assignment_id": assignment_id})
    if not doc:
        raise GradeProcessingError(f"Assignment '{assignment_id}' not found")

    data = {"grading_scale": doc.get("grading_scale") or []}
    if "include_status" in doc:
        data["include_status"] = bool(doc["include_status"])
    if doc.get("status_options"):
        data["status_options"] = doc["status_options"]
    return GradingConfig(**data)
