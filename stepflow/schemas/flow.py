# stepflow/schemas/flow.py
from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from stepflow.services.courses import CourseSelection


class Step(IntEnum):
    INTRO = 1
    FORM = 2
    COMPLETE = 3


class FormRecord(BaseModel):
    """Everything a visitor can enter on either page variant."""

    name: str = ""
    contact: str = ""
    privacy_agreed: bool = False

    # baroform: consultation / practice application
    type: Literal["consultation", "practice"] = "consultation"
    progress: str = ""
    employment_consulting: bool = False
    employment_connection: bool = False
    student_status: str = "상담대기"
    practice_place: str = ""
    employment_after_cert: Literal["", "O", "X"] = ""
    education: str = ""
    hope_course: str = ""
    reason: str = ""

    # practice: service checkboxes, dates, employment hope
    practice_service: bool = False
    employment_service: bool = False
    practice_start_date: str = ""
    certificate_date: str = ""
    employment_hope: Literal["", "hope", "not_hope"] = ""


class FieldUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    contact: Optional[str] = None
    privacy_agreed: Optional[bool] = None
    type: Optional[Literal["consultation", "practice"]] = None
    progress: Optional[str] = None
    employment_consulting: Optional[bool] = None
    employment_connection: Optional[bool] = None
    student_status: Optional[str] = None
    practice_place: Optional[str] = None
    employment_after_cert: Optional[Literal["", "O", "X"]] = None
    education: Optional[str] = None
    reason: Optional[str] = None
    practice_service: Optional[bool] = None
    employment_service: Optional[bool] = None
    practice_start_date: Optional[str] = None
    certificate_date: Optional[str] = None
    employment_hope: Optional[Literal["", "hope", "not_hope"]] = None


class Flow(BaseModel):
    """Controller state for a single page view."""

    id: str
    variant: str
    step: Step
    click_source: str
    record: Optional[FormRecord] = Field(default_factory=FormRecord)
    contact_error: str = ""
    submitting: bool = False
    courses: Optional[CourseSelection] = None
    created_at: datetime


class CourseToggle(BaseModel):
    course: str


class CustomCourse(BaseModel):
    custom: str


class Assets(BaseModel):
    logo: str
    completion_image: str


class Confirmation(BaseModel):
    title: str
    image: str


class FlowView(BaseModel):
    id: str
    variant: str
    step: int
    click_source: str
    record: Optional[FormRecord] = None
    contact_error: str = ""
    submitting: bool = False
    submittable: bool = False
    checks: Dict[str, bool] = Field(default_factory=dict)
    progress_percent: int = 0
    courses: Optional[CourseSelection] = None
    course_options: List[str] = Field(default_factory=list)
    assets: Assets
    confirmation: Optional[Confirmation] = None


class SubmitResponse(BaseModel):
    success: bool
    message: str
    flow: FlowView
