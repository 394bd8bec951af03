# stepflow/routes/flows.py
from __future__ import annotations

from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request, status

from stepflow.core.exceptions import ExternalServiceError
from stepflow.core.logging import get_structlog_logger
from stepflow.schemas.flow import CourseToggle, CustomCourse, FieldUpdate, Flow, FlowView, SubmitResponse
from stepflow.services import flow as controller
from stepflow.services.attribution import ATTRIBUTION_PARAMS
from stepflow.services.flow_store import FlowStore, get_flow_store
from stepflow.services.submission import ConsultationClient, SubmissionResult, get_consultation_client

router = APIRouter()

# Seconds the submit path waits for the flow lock when recording its outcome
RESULT_LOCK_WAIT_SECONDS = 10


async def _mutate(store: FlowStore, flow_id: str, action: Callable[[Flow], Flow]) -> FlowView:
    async with store.lock(flow_id):
        flow = await store.load(flow_id)
        action(flow)
        await store.save(flow)
    return controller.render(flow)


@router.post(
    "/flows/{variant}",
    response_model=FlowView,
    status_code=status.HTTP_201_CREATED,
    summary="Open a form flow for one page view",
)
async def open_flow(
    variant: str,
    request: Request,
    store: FlowStore = Depends(get_flow_store),
) -> FlowView:
    params = {
        key: request.query_params[key]
        for key in ATTRIBUTION_PARAMS
        if key in request.query_params
    }
    flow = controller.open_flow(variant, params)
    await store.save(flow)
    return controller.render(flow)


@router.get("/flows/{flow_id}", response_model=FlowView)
async def get_flow(flow_id: str, store: FlowStore = Depends(get_flow_store)) -> FlowView:
    flow = await store.load(flow_id)
    return controller.render(flow)


@router.post("/flows/{flow_id}/next", response_model=FlowView)
async def next_step(flow_id: str, store: FlowStore = Depends(get_flow_store)) -> FlowView:
    return await _mutate(store, flow_id, controller.advance)


@router.patch("/flows/{flow_id}/fields", response_model=FlowView)
async def update_fields(
    flow_id: str,
    update: FieldUpdate,
    store: FlowStore = Depends(get_flow_store),
) -> FlowView:
    return await _mutate(store, flow_id, lambda flow: controller.update_fields(flow, update))


@router.post("/flows/{flow_id}/courses/toggle", response_model=FlowView)
async def toggle_course(
    flow_id: str,
    body: CourseToggle,
    store: FlowStore = Depends(get_flow_store),
) -> FlowView:
    return await _mutate(store, flow_id, lambda flow: controller.toggle_course(flow, body.course))


@router.put("/flows/{flow_id}/courses/custom", response_model=FlowView)
async def set_custom_course(
    flow_id: str,
    body: CustomCourse,
    store: FlowStore = Depends(get_flow_store),
) -> FlowView:
    return await _mutate(store, flow_id, lambda flow: controller.set_custom_course(flow, body.custom))


@router.post("/flows/{flow_id}/courses/confirm", response_model=FlowView)
async def confirm_courses(flow_id: str, store: FlowStore = Depends(get_flow_store)) -> FlowView:
    return await _mutate(store, flow_id, controller.confirm_courses)


@router.post("/flows/{flow_id}/submit", response_model=SubmitResponse)
async def submit_flow(
    flow_id: str,
    store: FlowStore = Depends(get_flow_store),
    client: ConsultationClient = Depends(get_consultation_client),
) -> SubmitResponse:
    logger = get_structlog_logger().bind(route="/api/flows/submit", flow_id=flow_id)

    # Claim the busy flag, then release the lock for the network call.
    async with store.lock(flow_id):
        flow = await store.load(flow_id)
        payload = controller.begin_submission(flow)
        await store.save(flow)

    result: Optional[SubmissionResult] = None
    try:
        result = await client.submit(payload)
    except Exception:
        logger.exception("submission.unexpected_error")
        raise
    finally:
        async with store.lock(flow_id, wait=RESULT_LOCK_WAIT_SECONDS):
            flow = await store.load(flow_id)
            if result is None:
                flow.submitting = False
            else:
                controller.finish_submission(flow, result)
            await store.save(flow)

    view = controller.render(flow)
    if not result.success:
        raise ExternalServiceError(
            message=result.message,
            code="submission_failed",
            details={"status_code": result.status, "flow": view.model_dump(mode="json")},
        )

    logger.info("flow.completed", variant=flow.variant)
    return SubmitResponse(success=True, message=controller.CONFIRMATION_TITLE, flow=view)
