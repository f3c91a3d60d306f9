from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    PROJECT_NAME: str = "QA Bridge"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3333

    # Shared secret expected in the x-api-key header
    BRIDGE_API_KEY: str = Field(..., min_length=1)

    # External agent
    WORK_DIR: Path = Field(default_factory=Path.cwd)
    GEMINI_PATH: str = "gemini"
    PUBLIC_BASE_URL: str = "http://localhost:8443"
    AGENT_USE_SHELL: bool = False
    AGENT_TIMEOUT_SECONDS: Optional[float] = None
    AGENT_MAX_CONCURRENT: Optional[int] = None  # None = unbounded

    # Recording post-processing
    FFMPEG_PATH: str = "ffmpeg"
    RECORDING_WIDTH: int = 1280
    RECORDING_FORMAT: str = "gif"

    # Logging
    LOG_FILE: Optional[Path] = None
    LOG_CONSOLE_LEVEL: str = "ERROR"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @field_validator("BRIDGE_API_KEY")
    @classmethod
    def _reject_blank_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("BRIDGE_API_KEY must not be blank")
        return value

    @field_validator("PUBLIC_BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def recordings_dir(self) -> Path:
        return self.WORK_DIR / "public" / "recordings"

    @property
    def reports_dir(self) -> Path:
        return self.WORK_DIR / "public" / "walk-reports"

    @property
    def log_file(self) -> Path:
        return self.LOG_FILE if self.LOG_FILE is not None else self.WORK_DIR / "bridge.log"


@lru_cache()
def get_settings():
    return Settings()
