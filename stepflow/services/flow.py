# stepflow/services/flow.py
"""
Step/submission controller for the consultation forms.

A flow is one page view: it reads the attribution parameters once when it is
opened, collects the form record on step 2 and moves to the terminal step 3
only after the consultation endpoint accepted the record.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping

from stepflow.core.config import settings
from stepflow.core.exceptions import BusinessRuleError, ConflictError
from stepflow.core.logging import get_structlog_logger
from stepflow.schemas.flow import (
    Assets,
    Confirmation,
    FieldUpdate,
    Flow,
    FlowView,
    FormRecord,
    Step,
)
from stepflow.services.attribution import resolve_click_source
from stepflow.services.contact import format_contact, is_contact_complete, validate_contact
from stepflow.services.courses import COURSE_OPTIONS, CourseSelection
from stepflow.services.submission import SubmissionResult
from stepflow.services.variants import FormVariant, get_variant

logger = get_structlog_logger(__name__)

CONFIRMATION_TITLE = "신청이 완료되었습니다.\n곧 연락드리겠습니다."

FIELD_PREDICATES: Dict[str, Callable[[FormRecord], bool]] = {
    "name": lambda record: len(record.name.strip()) > 0,
    "contact": lambda record: is_contact_complete(record.contact),
    "privacy": lambda record: record.privacy_agreed,
    "services": lambda record: record.practice_service or record.employment_service,
    "employment_hope": lambda record: record.employment_hope in ("hope", "not_hope"),
}


def open_flow(variant_key: str, params: Mapping[str, str]) -> Flow:
    variant = get_variant(variant_key)
    flow = Flow(
        id=uuid.uuid4().hex,
        variant=variant.key,
        step=variant.initial_step,
        click_source=resolve_click_source(variant.campaign, params),
        record=FormRecord(),
        courses=CourseSelection() if variant.course_dialog else None,
        created_at=datetime.now(timezone.utc),
    )
    logger.info(
        "flow.opened",
        flow_id=flow.id,
        variant=flow.variant,
        step=int(flow.step),
        click_source=flow.click_source,
    )
    return flow


def _require_step(flow: Flow, step: Step, action: str) -> None:
    if flow.step == Step.COMPLETE:
        raise BusinessRuleError(
            message="Flow already completed",
            code="flow_completed",
            details={"flow_id": flow.id, "action": action},
        )
    if flow.step != step:
        raise BusinessRuleError(
            message=f"Cannot {action} on step {int(flow.step)}",
            code="invalid_step",
            details={"flow_id": flow.id, "step": int(flow.step), "expected_step": int(step)},
        )


def _require_idle(flow: Flow) -> None:
    if flow.submitting:
        raise ConflictError(
            message="Submission already in progress",
            code="submission_in_progress",
            details={"flow_id": flow.id},
        )


def _require_course_dialog(flow: Flow) -> CourseSelection:
    _require_step(flow, Step.FORM, "select courses")
    _require_idle(flow)
    if not get_variant(flow.variant).course_dialog or flow.courses is None:
        raise BusinessRuleError(
            message="Course selection is not available on this form",
            code="course_dialog_unavailable",
            details={"variant": flow.variant},
        )
    return flow.courses


def advance(flow: Flow) -> Flow:
    """'Next' on the intro screen."""
    _require_step(flow, Step.INTRO, "advance")
    flow.step = Step.FORM
    logger.info("flow.advanced", flow_id=flow.id, step=int(flow.step))
    return flow


def update_fields(flow: Flow, update: FieldUpdate) -> Flow:
    _require_step(flow, Step.FORM, "update fields")
    _require_idle(flow)
    # null means "leave as is"
    changes: Dict[str, Any] = {
        key: value
        for key, value in update.model_dump(exclude_unset=True).items()
        if value is not None
    }

    if "contact" in changes:
        changes["contact"] = format_contact(changes["contact"])
        check = validate_contact(changes["contact"])
        flow.contact_error = check.error or ""

    flow.record = flow.record.model_copy(update=changes)
    return flow


def toggle_course(flow: Flow, course: str) -> Flow:
    _require_course_dialog(flow).toggle(course)
    return flow


def set_custom_course(flow: Flow, custom: str) -> Flow:
    _require_course_dialog(flow).custom = custom
    return flow


def confirm_courses(flow: Flow) -> Flow:
    courses = _require_course_dialog(flow)
    if not courses.can_confirm:
        raise BusinessRuleError(
            message="Select at least one course",
            code="course_selection_empty",
        )
    flow.record = flow.record.model_copy(update={"hope_course": courses.confirm()})
    return flow


def field_checks(flow: Flow) -> Dict[str, bool]:
    if flow.record is None:
        return {}
    variant = get_variant(flow.variant)
    return {name: bool(FIELD_PREDICATES[name](flow.record)) for name in variant.required_fields}


def is_submittable(flow: Flow) -> bool:
    checks = field_checks(flow)
    return flow.step == Step.FORM and bool(checks) and all(checks.values())


def progress_percent(flow: Flow) -> int:
    if flow.step == Step.COMPLETE:
        return 100
    checks = field_checks(flow)
    if not checks:
        return 0
    return round(sum(checks.values()) / len(checks) * 100)


def begin_submission(flow: Flow) -> Dict[str, Any]:
    """Mark the flow busy and assemble the payload to send."""
    _require_step(flow, Step.FORM, "submit")
    _require_idle(flow)
    if not is_submittable(flow):
        raise BusinessRuleError(
            message="Required fields are missing or invalid",
            code="form_incomplete",
            details={"checks": field_checks(flow)},
        )

    variant: FormVariant = get_variant(flow.variant)
    payload = variant.build_payload(flow.record, flow.click_source)
    flow.submitting = True
    return payload


def finish_submission(flow: Flow, result: SubmissionResult) -> Flow:
    flow.submitting = False
    if result.success:
        flow.step = Step.COMPLETE
        flow.record = None
        flow.courses = None
        flow.contact_error = ""
        logger.info("flow.submitted", flow_id=flow.id, click_source=flow.click_source)
    else:
        logger.warning(
            "submission.failed",
            flow_id=flow.id,
            status_code=result.status,
            error=result.message,
        )
    return flow


def render(flow: Flow) -> FlowView:
    checks = field_checks(flow)
    course_dialog = flow.courses is not None
    confirmation = None
    if flow.step == Step.COMPLETE:
        confirmation = Confirmation(title=CONFIRMATION_TITLE, image=settings.completion_image_path)

    return FlowView(
        id=flow.id,
        variant=flow.variant,
        step=int(flow.step),
        click_source=flow.click_source,
        record=flow.record,
        contact_error=flow.contact_error,
        submitting=flow.submitting,
        submittable=is_submittable(flow) and not flow.submitting,
        checks=checks,
        progress_percent=progress_percent(flow),
        courses=flow.courses,
        course_options=COURSE_OPTIONS if course_dialog else [],
        assets=Assets(logo=settings.logo_path, completion_image=settings.completion_image_path),
        confirmation=confirmation,
    )
