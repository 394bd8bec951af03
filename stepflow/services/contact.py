from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

CONTACT_PREFIX_ERROR = "010 또는 011로 시작하는 번호를 입력해주세요"

_NON_DIGITS = re.compile(r"[^0-9]")
_SEPARATORS = re.compile(r"[-\s]")


@dataclass(frozen=True)
class ContactCheck:
    valid: bool
    error: Optional[str] = None


class ContactFormatter:
    def __init__(
        self,
        allowed_prefixes: Tuple[str, ...] = ("010", "011"),
        max_digits: int = 11,
        min_complete_digits: int = 10,
    ):
        self.allowed_prefixes = allowed_prefixes
        self.max_digits = max_digits
        self.min_complete_digits = min_complete_digits

    def digits(self, value: Optional[str]) -> str:
        if not value:
            return ""
        return _SEPARATORS.sub("", value)

    def format(self, raw: Optional[str]) -> str:
        cleaned = _NON_DIGITS.sub("", raw or "")[: self.max_digits]
        if len(cleaned) <= 3:
            return cleaned
        if len(cleaned) <= 7:
            return f"{cleaned[:3]}-{cleaned[3:]}"
        return f"{cleaned[:3]}-{cleaned[3:7]}-{cleaned[7:]}"

    def validate(self, value: Optional[str]) -> ContactCheck:
        cleaned = self.digits(value)
        if not cleaned:
            # Nothing entered yet
            return ContactCheck(valid=True)
        if not cleaned.startswith(self.allowed_prefixes):
            return ContactCheck(valid=False, error=CONTACT_PREFIX_ERROR)
        return ContactCheck(valid=True)

    def is_complete(self, value: Optional[str]) -> bool:
        return (
            len(self.digits(value)) >= self.min_complete_digits
            and self.validate(value).valid
        )


# Global instance with production defaults
formatter = ContactFormatter()


def format_contact(raw: Optional[str]) -> str:
    """Reformat keystrokes into 010-1234-5678 shape."""
    return formatter.format(raw)


def validate_contact(value: Optional[str]) -> ContactCheck:
    return formatter.validate(value)


def is_contact_complete(value: Optional[str]) -> bool:
    """Valid prefix and enough digits to be submitted."""
    return formatter.is_complete(value)
