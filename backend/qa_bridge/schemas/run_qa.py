"""Schema definitions for the QA run endpoint."""
from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QaRunRequest(BaseModel):
    """Incoming request payload describing a QA task in natural language."""

    chat_input: Optional[str] = Field(
        default=None,
        alias="chatInput",
        description="Free-text QA task, e.g. 'Test the login page at https://example.com'.",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("chat_input", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Optional[str]:
        # Falsy values (null, "", 0, false, [], {}) count as missing; other values become JSON text
        if not value:
            return None
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)


class QaRunResponse(BaseModel):
    """Outcome of one agent invocation. Agent failures are reported in ``error``."""

    stdout: str = Field(..., description="Trimmed standard output of the agent process.")
    report_url: str = Field(
        ...,
        alias="reportUrl",
        description="Report URL found in the agent output, or 'No report URL found.'.",
    )
    session_id: str = Field(..., alias="sessionId", description="Server-assigned session identifier.")
    error: Optional[str] = Field(default=None, description="Agent invocation error, if any.")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "stdout": "Report ready: http://localhost:8443/walk-reports/report_run_1718000000000.html",
                "reportUrl": "http://localhost:8443/walk-reports/report_run_1718000000000.html",
                "sessionId": "run_1718000000000",
                "error": None,
            }
        },
    )


class ErrorResponse(BaseModel):
    error: str
