"""Hope-course selection dialog state."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from stepflow.core.exceptions import ValidationError

COURSE_OPTIONS = [
    "사회복지사",
    "아동학사",
    "평생교육사",
    "편입/대학원",
    "건강가정사",
    "청소년지도사",
    "보육교사",
    "심리상담사",
]


class CourseSelection(BaseModel):
    selected: List[str] = Field(default_factory=list)
    custom: str = ""

    def toggle(self, course: str) -> None:
        if course not in COURSE_OPTIONS:
            raise ValidationError(
                message=f"Unknown course: {course}",
                code="unknown_course",
                details={"course": course, "options": COURSE_OPTIONS},
            )
        if course in self.selected:
            self.selected = [c for c in self.selected if c != course]
        else:
            self.selected = [*self.selected, course]

    @property
    def can_confirm(self) -> bool:
        return bool(self.selected) or bool(self.custom.strip())

    def confirm(self) -> str:
        """Selection order first, trimmed free text last."""
        courses = list(self.selected)
        if self.custom.strip():
            courses.append(self.custom.strip())
        return ", ".join(courses)
