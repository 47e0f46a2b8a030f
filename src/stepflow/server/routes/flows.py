"""Parse, validate, run and control flows over HTTP."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from ...errors import (
    FlowAlreadyRunningError,
    FlowCancelledError,
    FlowNotFoundError,
    FlowNotRunningError,
    RetriesExhaustedError,
    StepNotFoundError,
)
from ...flows import FlowExecutor
from ...parser import parse_flow, validate_flow
from ..schemas import (
    DiagnosticModel,
    ParseRequest,
    RunFlowRequest,
    RunFlowResponse,
    RunningFlowsResponse,
    ValidateRequest,
    ValidateResponse,
)

log = logging.getLogger(__name__)


def build_flows_router(executor: FlowExecutor) -> APIRouter:
    router = APIRouter()

    @router.post("/api/flows/parse")
    def api_parse(payload: ParseRequest) -> Dict[str, Any]:
        return parse_flow(payload.source, flow_id=payload.flow_id).to_dict()

    @router.post("/api/flows/validate", response_model=ValidateResponse)
    def api_validate(payload: ValidateRequest) -> ValidateResponse:
        flow = parse_flow(payload.source)
        if not flow.success:
            return ValidateResponse(success=False, error=flow.error)
        diagnostics = [DiagnosticModel(**diag.to_dict()) for diag in validate_flow(flow)]
        return ValidateResponse(
            success=not any(diag.severity == "error" for diag in diagnostics),
            diagnostics=diagnostics,
        )

    @router.post("/api/flows/run", response_model=RunFlowResponse)
    async def api_run(payload: RunFlowRequest) -> RunFlowResponse:
        flow = parse_flow(payload.source, flow_id=payload.flow_id)
        if not flow.success:
            raise HTTPException(status_code=400, detail=flow.error)
        if not payload.wait:
            try:
                executor.submit(flow)
            except FlowAlreadyRunningError as exc:
                raise HTTPException(status_code=409, detail=str(exc)) from exc
            return RunFlowResponse(flow_id=flow.flow_id, status="running")
        try:
            result = await executor.start(flow)
        except FlowAlreadyRunningError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except FlowCancelledError as exc:
            return RunFlowResponse(flow_id=flow.flow_id, status="cancelled", error=str(exc), flow=flow.to_dict())
        except (StepNotFoundError, RetriesExhaustedError) as exc:
            return RunFlowResponse(flow_id=flow.flow_id, status="failed", error=str(exc), flow=flow.to_dict())
        return RunFlowResponse(flow_id=result.flow_id, status=result.status, flow=result.flow.to_dict())

    @router.get("/api/flows", response_model=RunningFlowsResponse)
    def api_list() -> RunningFlowsResponse:
        return RunningFlowsResponse(running=executor.running(), known=executor.known())

    @router.get("/api/flows/{flow_id}")
    def api_get(flow_id: str) -> Dict[str, Any]:
        try:
            return executor.get(flow_id).to_dict()
        except FlowNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @router.post("/api/flows/{flow_id}/stop")
    def api_stop(flow_id: str) -> Dict[str, str]:
        try:
            executor.stop(flow_id)
        except FlowNotRunningError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        log.info("Flow %s stopped over HTTP", flow_id)
        return {"flow_id": flow_id, "status": "stopping"}

    return router


__all__ = ["build_flows_router"]
