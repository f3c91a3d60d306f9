"""API route that runs one QA session through the external agent."""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from ..schemas.run_qa import ErrorResponse, QaRunRequest, QaRunResponse
from ..services.agent_invoker import build_agent_argv, build_agent_command, extract_report_url
from .deps import QaServices, get_qa_services, require_api_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["qa"])


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=ErrorResponse(error=message).model_dump())


@router.post(
    "/run-qa",
    response_model=QaRunResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Run a natural-language QA task through the external agent",
    dependencies=[Depends(require_api_key)],
)
async def run_qa(
    request: Request,
    services: QaServices = Depends(get_qa_services),
):
    """Assign a session, run the agent to completion and reply without waiting on the recording."""

    body = await request.body()
    try:
        data = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.error("JSON Parse Error %s", exc)
        return _bad_request("Invalid JSON body")
    if data is None:
        logger.error("JSON Parse Error: body is null")
        return _bad_request("Invalid JSON body")

    # Non-object documents carry no chatInput field
    payload = QaRunRequest.model_validate(data if isinstance(data, dict) else {})
    user_request = payload.chat_input
    if not user_request:
        return _bad_request("Missing chatInput")

    settings = services.settings
    session_id = services.session_ids.allocate()
    logger.info("Received Request. Assigned Session ID: %s", session_id)

    prompt = services.prompt_builder.build(user_request, session_id)
    if settings.AGENT_USE_SHELL:
        result = await services.agent_invoker.run_shell(build_agent_command(settings.GEMINI_PATH, prompt))
    else:
        result = await services.agent_invoker.run(build_agent_argv(settings.GEMINI_PATH, prompt))

    if result.stdout:
        logger.info("STDOUT: %s", result.stdout)
    if result.error:
        logger.error("Agent run failed for session %s: %s", session_id, result.error)

    services.recording_converter.schedule(session_id)

    result.report_url = extract_report_url(result.stdout, settings.PUBLIC_BASE_URL)
    return QaRunResponse(
        stdout=result.stdout,
        report_url=result.report_url,
        session_id=session_id,
        error=result.error,
    )
