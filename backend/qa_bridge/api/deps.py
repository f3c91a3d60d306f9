"""
Dependency injection for FastAPI routes.
"""
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from ..core.config import Settings
from ..services.agent_invoker import AgentInvoker
from ..services.qa_prompts import QaPromptBuilder
from ..services.recording_converter import RecordingConverter
from ..services.session_ids import SessionIdAllocator

logger = logging.getLogger(__name__)


@dataclass
class QaServices:
    """Container for everything the QA run endpoint needs."""

    settings: Settings
    session_ids: SessionIdAllocator
    prompt_builder: QaPromptBuilder
    agent_invoker: AgentInvoker
    recording_converter: RecordingConverter


def build_qa_services(settings: Settings) -> QaServices:
    """
    Wire the QA services from settings.

    Returns:
        QaServices sharing one settings instance
    """

    return QaServices(
        settings=settings,
        session_ids=SessionIdAllocator(),
        prompt_builder=QaPromptBuilder(
            base_url=settings.PUBLIC_BASE_URL,
            reports_dir=settings.reports_dir,
            recordings_dir=settings.recordings_dir,
            recording_format=settings.RECORDING_FORMAT,
        ),
        agent_invoker=AgentInvoker(
            settings.WORK_DIR,
            timeout_seconds=settings.AGENT_TIMEOUT_SECONDS,
            max_concurrent=settings.AGENT_MAX_CONCURRENT,
        ),
        recording_converter=RecordingConverter(
            settings.recordings_dir,
            ffmpeg_path=settings.FFMPEG_PATH,
            width=settings.RECORDING_WIDTH,
            output_format=settings.RECORDING_FORMAT,
        ),
    )


def get_qa_services(request: Request) -> QaServices:
    return request.app.state.qa_services


def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(default=None),
) -> None:
    """Reject the request with 401 unless x-api-key matches the configured secret."""

    expected = get_qa_services(request).settings.BRIDGE_API_KEY
    if x_api_key is None or not hmac.compare_digest(x_api_key.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Rejected request with missing or invalid x-api-key")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
