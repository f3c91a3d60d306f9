import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.deps import build_qa_services
from .api.routes import api_router
from .core.config import Settings, get_settings
from .core.logging import configure_logging, configure_startup_logging, shutdown_logging
from .core.server import GuardedH11Protocol

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    if settings is None:
        settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings.recordings_dir.mkdir(parents=True, exist_ok=True)
        settings.reports_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Bridge server running on port %s", settings.PORT)
        yield
        pending = app.state.qa_services.recording_converter.pending
        if pending:
            logger.info("Shutting down with %d recording conversion(s) still running", pending)
        shutdown_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        description="HTTP bridge between QA requests and an autonomous browser agent",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.qa_services = build_qa_services(settings)

    @app.middleware("http")
    async def allow_any_origin(request: Request, call_next):
        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    @app.exception_handler(StarletteHTTPException)
    async def plain_text_http_error(request: Request, exc: StarletteHTTPException):
        # Unknown paths and wrong methods on the QA route are both plain 404s
        if exc.status_code in (404, 405):
            return PlainTextResponse("Not Found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    app.include_router(api_router)
    return app


def main() -> None:
    try:
        settings = get_settings()
    except ValidationError as exc:
        configure_startup_logging()
        missing_key = any(error["loc"] == ("BRIDGE_API_KEY",) for error in exc.errors())
        if missing_key:
            logger.critical("FATAL: BRIDGE_API_KEY environment variable not set.")
        else:
            logger.critical("FATAL: invalid configuration: %s", exc)
        shutdown_logging()
        sys.exit(1)

    configure_logging(settings)
    config = uvicorn.Config(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        http=GuardedH11Protocol,
        log_level="info",
    )
    uvicorn.Server(config).run()


if __name__ == "__main__":
    main()
