import pytest

from stepflow.services.contact import (
    CONTACT_PREFIX_ERROR,
    format_contact,
    is_contact_complete,
    validate_contact,
)


def test_format_contact():
    assert format_contact("") == ""
    assert format_contact(None) == ""
    assert format_contact("010") == "010"
    assert format_contact("0101") == "010-1"
    assert format_contact("0101234") == "010-1234"
    assert format_contact("01012345") == "010-1234-5"
    assert format_contact("01012345678") == "010-1234-5678"


def test_format_contact_strips_non_digits_and_caps_length():
    assert format_contact("010 1234 5678") == "010-1234-5678"
    assert format_contact("(010)1234-5678") == "010-1234-5678"
    assert format_contact("010-1234-56789999") == "010-1234-5678"
    assert format_contact("abc") == ""


@pytest.mark.parametrize(
    "raw",
    ["", "0", "010", "0101", "0101234", "01012345", "01012345678", "010-1234-5678", "0111234567", "02112345678"],
)
def test_format_contact_is_idempotent(raw):
    once = format_contact(raw)
    assert format_contact(once) == once


def test_validate_contact():
    assert validate_contact("010-1234-5678").valid is True
    assert validate_contact("011-123-4567").valid is True
    assert validate_contact("").valid is True
    assert validate_contact("").error is None

    check = validate_contact(format_contact("02112345678"))
    assert check.valid is False
    assert check.error == CONTACT_PREFIX_ERROR


def test_validate_contact_partial_prefix():
    # "01" cannot start with 010 or 011 yet
    assert validate_contact("01").valid is False
    assert validate_contact("016-123-4567").valid is False


def test_is_contact_complete():
    assert is_contact_complete("010-1234-5678") is True
    assert is_contact_complete("011-123-4567") is True
    assert is_contact_complete("010-1234-567") is False
    assert is_contact_complete("") is False
    assert is_contact_complete("021-1234-5678") is False
