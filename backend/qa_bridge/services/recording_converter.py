"""Background conversion of a session's step screenshots into one animated recording."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Set

logger = logging.getLogger(__name__)


class RecordingConversionError(RuntimeError):
    """Raised when the conversion tool cannot produce a recording."""


class RecordingConverter:
    """Turns ``<session>_step_NN.png`` frames into ``<session>.<format>`` with ffmpeg.

    Conversions are scheduled as detached tasks; errors never leave this class.
    """

    def __init__(
        self,
        recordings_dir: Path | str,
        *,
        ffmpeg_path: str = "ffmpeg",
        width: int = 1280,
        output_format: str = "gif",
    ) -> None:
        self._recordings_dir = Path(recordings_dir)
        self._ffmpeg_path = ffmpeg_path
        self._width = width
        self._output_format = output_format
        self._label = output_format.upper()
        self._tasks: Set[asyncio.Task] = set()

    def frame_glob(self, session_id: str) -> str:
        return str(self._recordings_dir / f"{session_id}_step_*.png")

    def output_path(self, session_id: str) -> Path:
        return self._recordings_dir / f"{session_id}.{self._output_format}"

    def has_frames(self, session_id: str) -> bool:
        if not self._recordings_dir.is_dir():
            return False
        return any(self._recordings_dir.glob(f"{session_id}_step_*.png"))

    def build_command(self, session_id: str) -> List[str]:
        # scale -> split into two streams -> palettegen on one, paletteuse on the other
        filter_graph = (
            f"scale={self._width}:-1:flags=lanczos,"
            "split[s0][s1];[s0]palettegen[p];[s1][p]paletteuse"
        )
        return [
            self._ffmpeg_path,
            "-y",
            "-framerate", "1",
            "-pattern_type", "glob",
            "-i", self.frame_glob(session_id),
            "-vf", filter_graph,
            "-loop", "0",
            str(self.output_path(session_id)),
        ]

    def schedule(self, session_id: str) -> asyncio.Task:
        """Start :meth:`convert` in the background and return without waiting."""

        task = asyncio.get_running_loop().create_task(
            self.convert(session_id), name=f"recording-{session_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def convert(self, session_id: str) -> Optional[Path]:
        """Build the recording for ``session_id``; returns its path or None."""

        if not self.has_frames(session_id):
            logger.info("[BACKGROUND] Skipping %s: No screenshots found for %s", self._label, session_id)
            return None

        logger.info("[BACKGROUND] Starting High-Quality %s generation for session: %s", self._label, session_id)
        try:
            output = await self._run_ffmpeg(session_id)
        except RecordingConversionError as exc:
            logger.error("[BACKGROUND] Failed to create %s: %s", self._label, exc)
            return None
        except Exception:
            logger.exception("[BACKGROUND] Unexpected error while creating %s for %s", self._label, session_id)
            return None

        logger.info("[BACKGROUND] %s created successfully: %s", self._label, output)
        return output

    async def _run_ffmpeg(self, session_id: str) -> Path:
        command = self.build_command(session_id)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise RecordingConversionError(f"Unable to start {self._ffmpeg_path}: {exc}") from exc

        _, stderr = await process.communicate()
        if process.returncode != 0:
            tail = (stderr or b"").decode("utf-8", errors="replace").strip().splitlines()[-5:]
            raise RecordingConversionError(
                f"{self._ffmpeg_path} exited with code {process.returncode}: " + " | ".join(tail)
            )
        return self.output_path(session_id)
