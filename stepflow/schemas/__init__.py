# stepflow/schemas/__init__.py
"""
Pydantic schemas for request/response validation and serialization.
"""

from stepflow.schemas.flow import (
    FieldUpdate,
    Flow,
    FlowView,
    FormRecord,
    Step,
    SubmitResponse,
)

__all__ = [
    "FieldUpdate",
    "Flow",
    "FlowView",
    "FormRecord",
    "Step",
    "SubmitResponse",
]
