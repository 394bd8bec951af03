import pytest

from stepflow.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from stepflow.schemas.flow import FieldUpdate, Step
from stepflow.services import flow as controller
from stepflow.services.contact import CONTACT_PREFIX_ERROR
from stepflow.services.submission import SubmissionResult

BAROFORM_VALID = {
    "name": "홍길동",
    "contact": "01012345678",
    "privacy_agreed": True,
}

PRACTICE_VALID = {
    "name": "홍길동",
    "contact": "01012345678",
    "practice_service": True,
    "employment_hope": "hope",
    "privacy_agreed": True,
}


def _filled(variant, fields, **overrides):
    flow = controller.open_flow(variant, {"utm_source": "kakao", "material_id": "42"})
    if flow.step == Step.INTRO:
        controller.advance(flow)
    controller.update_fields(flow, FieldUpdate(**{**fields, **overrides}))
    return flow


def test_open_flow_initial_steps():
    baroform = controller.open_flow("baroform", {})
    practice = controller.open_flow("practice", {})

    assert baroform.step == Step.INTRO
    assert baroform.click_source == "바로폼"
    assert baroform.courses is not None

    assert practice.step == Step.FORM
    assert practice.click_source == "한평생실습"
    assert practice.courses is None


def test_open_flow_reads_attribution_once():
    flow = controller.open_flow("baroform", {"utm_source": "kakao", "material_id": "42"})
    assert flow.click_source == "바로폼_카카오_소재_42"


def test_open_flow_unknown_variant():
    with pytest.raises(NotFoundError) as exc_info:
        controller.open_flow("landing", {})
    assert exc_info.value.code == "unknown_variant"


def test_advance_only_from_intro():
    flow = controller.open_flow("baroform", {})
    with pytest.raises(BusinessRuleError):
        controller.update_fields(flow, FieldUpdate(name="홍길동"))

    controller.advance(flow)
    assert flow.step == Step.FORM

    with pytest.raises(BusinessRuleError) as exc_info:
        controller.advance(flow)
    assert exc_info.value.code == "invalid_step"


def test_update_fields_formats_and_validates_contact():
    flow = _filled("baroform", BAROFORM_VALID)
    assert flow.record.contact == "010-1234-5678"
    assert flow.contact_error == ""

    controller.update_fields(flow, FieldUpdate(contact="02112345678"))
    assert flow.record.contact == "021-1234-5678"
    assert flow.contact_error == CONTACT_PREFIX_ERROR
    assert controller.is_submittable(flow) is False

    controller.update_fields(flow, FieldUpdate(contact=""))
    assert flow.contact_error == ""


@pytest.mark.parametrize("variant,fields", [("baroform", BAROFORM_VALID), ("practice", PRACTICE_VALID)])
def test_all_required_fields_valid_is_submittable(variant, fields):
    flow = _filled(variant, fields)
    assert controller.is_submittable(flow) is True
    assert controller.progress_percent(flow) == 100


@pytest.mark.parametrize(
    "override",
    [
        {"name": ""},
        {"name": "   "},
        {"contact": ""},
        {"contact": "0101234"},
        {"contact": "02112345678"},
        {"privacy_agreed": False},
    ],
)
def test_baroform_single_invalid_field_blocks_submission(override):
    flow = _filled("baroform", BAROFORM_VALID, **override)
    assert controller.is_submittable(flow) is False
    assert controller.progress_percent(flow) < 100


@pytest.mark.parametrize(
    "override",
    [
        {"name": ""},
        {"contact": "02112345678"},
        {"practice_service": False},
        {"employment_hope": ""},
        {"privacy_agreed": False},
    ],
)
def test_practice_single_invalid_field_blocks_submission(override):
    flow = _filled("practice", PRACTICE_VALID, **override)
    assert controller.is_submittable(flow) is False


def test_practice_employment_service_alone_is_enough():
    flow = _filled("practice", PRACTICE_VALID, practice_service=False, employment_service=True)
    assert controller.is_submittable(flow) is True


def test_course_dialog_writes_hope_course():
    flow = _filled("baroform", BAROFORM_VALID)
    controller.toggle_course(flow, "사회복지사")
    controller.toggle_course(flow, "보육교사")
    controller.set_custom_course(flow, " 바리스타 ")
    controller.confirm_courses(flow)

    assert flow.record.hope_course == "사회복지사, 보육교사, 바리스타"


def test_course_dialog_empty_selection_cannot_confirm():
    flow = _filled("baroform", BAROFORM_VALID)
    with pytest.raises(BusinessRuleError) as exc_info:
        controller.confirm_courses(flow)
    assert exc_info.value.code == "course_selection_empty"


def test_course_dialog_unavailable_on_practice():
    flow = _filled("practice", PRACTICE_VALID)
    with pytest.raises(BusinessRuleError) as exc_info:
        controller.toggle_course(flow, "사회복지사")
    assert exc_info.value.code == "course_dialog_unavailable"


def test_finish_submission_success_completes_flow():
    flow = _filled("baroform", BAROFORM_VALID)

    payload = controller.begin_submission(flow)
    controller.finish_submission(flow, SubmissionResult(success=True, status=201, message=""))

    assert payload["click_source"] == "바로폼_카카오_소재_42"
    assert payload["contact"] == "010-1234-5678"
    assert flow.step == Step.COMPLETE
    assert flow.record is None
    assert flow.submitting is False

    view = controller.render(flow)
    assert view.confirmation is not None
    assert view.confirmation.title == controller.CONFIRMATION_TITLE

    with pytest.raises(BusinessRuleError) as exc_info:
        controller.update_fields(flow, FieldUpdate(name="다시"))
    assert exc_info.value.code == "flow_completed"


def test_finish_submission_failure_stays_on_form():
    flow = _filled("practice", PRACTICE_VALID)

    controller.begin_submission(flow)
    controller.finish_submission(
        flow, SubmissionResult(success=False, status=400, message="이미 신청된 연락처입니다.")
    )

    assert flow.step == Step.FORM
    assert flow.submitting is False
    assert flow.record.name == "홍길동"

    # Retry is a fresh user action
    controller.begin_submission(flow)
    assert flow.submitting is True


def test_begin_submission_incomplete_form():
    flow = _filled("baroform", BAROFORM_VALID, privacy_agreed=False)
    with pytest.raises(BusinessRuleError) as exc_info:
        controller.begin_submission(flow)
    assert exc_info.value.code == "form_incomplete"
    assert exc_info.value.details["checks"]["privacy"] is False
    assert flow.submitting is False


def test_update_fields_ignores_null_values():
    flow = _filled("baroform", BAROFORM_VALID)

    controller.update_fields(flow, FieldUpdate.model_validate({"name": None, "privacy_agreed": None}))

    assert flow.record.name == "홍길동"
    assert flow.record.privacy_agreed is True
    assert controller.is_submittable(flow) is True


def test_edits_rejected_while_submitting():
    flow = _filled("baroform", BAROFORM_VALID)
    controller.begin_submission(flow)

    with pytest.raises(ConflictError) as exc_info:
        controller.update_fields(flow, FieldUpdate(name="김철수"))
    assert exc_info.value.code == "submission_in_progress"

    with pytest.raises(ConflictError):
        controller.toggle_course(flow, "사회복지사")
    with pytest.raises(ConflictError):
        controller.set_custom_course(flow, "바리스타")

    assert flow.record.name == "홍길동"


def test_begin_submission_blocks_reentry():
    flow = _filled("baroform", BAROFORM_VALID)
    controller.begin_submission(flow)
    assert flow.submitting is True
    assert controller.render(flow).submittable is False

    with pytest.raises(ConflictError) as exc_info:
        controller.begin_submission(flow)
    assert exc_info.value.code == "submission_in_progress"
