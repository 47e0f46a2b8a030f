"""Pydantic schemas used by the FastAPI server."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ParseRequest(BaseModel):
    source: str
    flow_id: Optional[str] = None


class ValidateRequest(BaseModel):
    source: str


class RunFlowRequest(BaseModel):
    source: str
    flow_id: Optional[str] = None
    wait: bool = Field(True, description="Block until the flow finishes")


class DiagnosticModel(BaseModel):
    code: str
    category: str
    severity: str
    message: str
    line: Optional[int] = None
    hint: Optional[str] = None


class ValidateResponse(BaseModel):
    success: bool
    error: str = ""
    diagnostics: List[DiagnosticModel] = Field(default_factory=list)


class RunFlowResponse(BaseModel):
    flow_id: str
    status: str
    error: Optional[str] = None
    flow: Optional[Dict[str, Any]] = None


class RunningFlowsResponse(BaseModel):
    running: List[str]
    known: List[str]
