import pytest

from stepflow.core.exceptions import ValidationError
from stepflow.services.courses import CourseSelection


def test_toggle_adds_and_removes_in_selection_order():
    selection = CourseSelection()
    selection.toggle("보육교사")
    selection.toggle("사회복지사")
    assert selection.selected == ["보육교사", "사회복지사"]

    selection.toggle("보육교사")
    assert selection.selected == ["사회복지사"]


def test_toggle_unknown_course():
    selection = CourseSelection()
    with pytest.raises(ValidationError) as exc_info:
        selection.toggle("요리사")
    assert exc_info.value.code == "unknown_course"


def test_confirm_joins_selection_then_custom():
    selection = CourseSelection()
    assert selection.can_confirm is False

    selection.toggle("평생교육사")
    selection.toggle("편입/대학원")
    selection.custom = "  바리스타  "
    assert selection.can_confirm is True
    assert selection.confirm() == "평생교육사, 편입/대학원, 바리스타"


def test_confirm_custom_only():
    selection = CourseSelection(custom="미용사")
    assert selection.can_confirm is True
    assert selection.confirm() == "미용사"

    selection.custom = "   "
    assert selection.can_confirm is False
