# stepflow/services/variants.py
"""Per-page configuration of the shared consultation flow."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple

from stepflow.core.exceptions import NotFoundError
from stepflow.schemas.flow import FormRecord, Step
from stepflow.services.payload import build_baroform_payload, build_practice_payload

PayloadBuilder = Callable[[FormRecord, str], Dict[str, Any]]


@dataclass(frozen=True)
class FormVariant:
    key: str
    campaign: str
    title: str
    initial_step: Step
    required_fields: Tuple[str, ...]
    course_dialog: bool
    build_payload: PayloadBuilder


BAROFORM = FormVariant(
    key="baroform",
    campaign="바로폼",
    title="상담신청",
    initial_step=Step.INTRO,
    required_fields=("name", "contact", "privacy"),
    course_dialog=True,
    build_payload=build_baroform_payload,
)

PRACTICE = FormVariant(
    key="practice",
    campaign="한평생실습",
    title="실습 신청",
    initial_step=Step.FORM,
    required_fields=("name", "contact", "services", "employment_hope", "privacy"),
    course_dialog=False,
    build_payload=build_practice_payload,
)

VARIANTS: Dict[str, FormVariant] = {
    BAROFORM.key: BAROFORM,
    PRACTICE.key: PRACTICE,
}


def get_variant(key: str) -> FormVariant:
    variant = VARIANTS.get(key)
    if variant is None:
        raise NotFoundError(
            message=f"Unknown form variant: {key}",
            code="unknown_variant",
            details={"variant": key, "available": sorted(VARIANTS)},
        )
    return variant
