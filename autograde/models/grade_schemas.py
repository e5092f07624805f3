from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from autograde.models.constants import (
    DEFAULT_GRADING_SCALE,
    MAX_GRADING_SCALE_SIZE,
    STATUS_OPTIONS,
)


class RosterStudent(BaseModel):
    student_id: str
    first_name: str
    last_name: str = ""

    @classmethod
    def from_full_name(cls, student_id: str, full_name: str) -> "RosterStudent":
        """Last word is the last name: "Mary Ann Lee" -> ("Mary Ann", "Lee")."""
        parts = (full_name or "").split()
        if len(parts) < 2:
            return cls(student_id=student_id, first_name=" ".join(parts))
        return cls(student_id=student_id, first_name=" ".join(parts[:-1]), last_name=parts[-1])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class GradingConfig(BaseModel):
    grading_scale: List[str] = Field(default_factory=lambda: list(DEFAULT_GRADING_SCALE))
    include_status: bool = True
    status_options: List[str] = Field(default_factory=lambda: list(STATUS_OPTIONS))

    @field_validator("grading_scale")
    @classmethod
    def scale_size(cls, v: List[str]) -> List[str]:
        if not 1 <= len(v) <= MAX_GRADING_SCALE_SIZE:
            raise ValueError(
                f"Grading scale must have between 1 and {MAX_GRADING_SCALE_SIZE} options"
            )
        return v

    @property
    def active_status_options(self) -> List[str]:
        return list(self.status_options) if self.include_status else []


class ProcessedGrade(BaseModel):
    """One student's result. Replaced, never mutated, on reprocessing or correction."""

    student_id: str
    student_name: str
    score: str = ""
    status: List[str] = Field(default_factory=list)

    # provenance of manual corrections
    manually_edited: bool = False
    edited_by: Optional[str] = None
    edited_at: Optional[datetime] = None


class GradeCorrection(BaseModel):
    student_id: str
    score: Optional[str] = None
    status: Optional[List[str]] = None
