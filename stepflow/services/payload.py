# stepflow/services/payload.py
from __future__ import annotations

import re
from typing import Any, Dict, Optional

from stepflow.core.exceptions import BusinessRuleError
from stepflow.schemas.flow import FormRecord

PRACTICE_SERVICE_LABEL = "실습처 배정"
EMPLOYMENT_SERVICE_LABEL = "취업연계"

_DATE_SEPARATORS = re.compile(r"[-./\s]")


def strip_date_separators(value: Optional[str]) -> str:
    """2025-03-01, 2025.03.01 and 2025/03/01 all become 20250301."""
    if not value:
        return ""
    return _DATE_SEPARATORS.sub("", value)


def derive_service_type(practice: bool, employment: bool) -> str:
    if practice and employment:
        return f"{PRACTICE_SERVICE_LABEL}+{EMPLOYMENT_SERVICE_LABEL}"
    if practice:
        return PRACTICE_SERVICE_LABEL
    if employment:
        return EMPLOYMENT_SERVICE_LABEL
    raise BusinessRuleError(
        message="At least one service must be selected",
        code="service_not_selected",
    )


def employment_hope_flag(choice: str) -> Optional[bool]:
    if choice == "hope":
        return True
    if choice == "not_hope":
        return False
    return None


def build_baroform_payload(record: FormRecord, click_source: str) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": record.name,
        "contact": record.contact,
        "type": record.type,
        "click_source": click_source,
        "employment_after_cert": record.employment_after_cert,
    }

    if record.type == "consultation":
        payload["progress"] = record.progress
        payload["employment_consulting"] = record.employment_consulting
        payload["employment_connection"] = record.employment_connection
        payload["student_status"] = record.student_status
    else:
        payload["practice_place"] = record.practice_place

    # Legacy fields still read by the consultation backend
    payload["education"] = record.education
    payload["hope_course"] = record.hope_course
    payload["reason"] = record.reason

    return payload


def build_practice_payload(record: FormRecord, click_source: str) -> Dict[str, Any]:
    return {
        "name": record.name,
        "contact": record.contact,
        "type": derive_service_type(record.practice_service, record.employment_service),
        "click_source": click_source,
        "practice_start_date": strip_date_separators(record.practice_start_date),
        "certificate_date": strip_date_separators(record.certificate_date),
        "employment_hope": employment_hope_flag(record.employment_hope),
    }
