"""Runs the external QA agent as a child process and extracts its report URL."""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .qa_prompts import REPORTS_ROUTE

logger = logging.getLogger(__name__)

REPORT_URL_NOT_FOUND = "No report URL found."
YOLO_FLAG = "--yolo"


@dataclass
class AgentResult:
    stdout: str
    stderr: str = ""
    error: Optional[str] = None
    return_code: Optional[int] = None
    report_url: str = REPORT_URL_NOT_FOUND

    @property
    def succeeded(self) -> bool:
        return self.error is None


def shell_quote_argument(text: str) -> str:
    """Wrap ``text`` in single quotes, turning each embedded ``'`` into ``'\\''``."""

    return "'" + text.replace("'", "'\\''") + "'"


def build_agent_argv(executable: str, prompt: str) -> list[str]:
    return [executable, YOLO_FLAG, prompt]


def build_agent_command(executable: str, prompt: str) -> str:
    return f"{executable} {YOLO_FLAG} {shell_quote_argument(prompt)}"


def report_url_pattern(base_url: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(base_url.rstrip('/'))}/{REPORTS_ROUTE}/[a-zA-Z0-9._-]+\.html")


def extract_report_url(stdout: str, base_url: str) -> str:
    """Return the first report URL found in ``stdout`` or the not-found sentinel."""

    match = report_url_pattern(base_url).search(stdout or "")
    return match.group(0) if match else REPORT_URL_NOT_FOUND


class AgentInvoker:
    """Executes agent command lines and captures their output.

    Agent-level failures (spawn errors, non-zero exits, timeouts) are returned
    in :attr:`AgentResult.error` rather than raised.
    """

    def __init__(
        self,
        work_dir: Path | str,
        *,
        timeout_seconds: Optional[float] = None,
        max_concurrent: Optional[int] = None,
    ) -> None:
        self._work_dir = Path(work_dir)
        self._timeout = timeout_seconds
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent else None

    async def run(self, argv: Sequence[str]) -> AgentResult:
        """Run ``argv`` directly, without a shell."""

        async def spawn() -> asyncio.subprocess.Process:
            return await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(self._work_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )

        return await self._run_with_limit(spawn, label=argv[0] if argv else "")

    async def run_shell(self, command: str) -> AgentResult:
        """Run a pre-quoted command line through the system shell."""

        async def spawn() -> asyncio.subprocess.Process:
            return await asyncio.create_subprocess_shell(
                command,
                cwd=str(self._work_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )

        return await self._run_with_limit(spawn, label=command.split(" ", 1)[0])

    async def _run_with_limit(self, spawn, *, label: str) -> AgentResult:
        if self._semaphore is None:
            return await self._execute(spawn, label=label)
        async with self._semaphore:
            return await self._execute(spawn, label=label)

    async def _execute(self, spawn, *, label: str) -> AgentResult:
        try:
            process = await spawn()
        except OSError as exc:
            logger.error("Failed to start agent process %s: %s", label, exc)
            return AgentResult(stdout="", error=str(exc))

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error("Agent process %s exceeded %ss, killing it", label, self._timeout)
            try:
                process.kill()
            except ProcessLookupError:
                pass  # exited between the timeout and the kill
            stdout_bytes, stderr_bytes = await process.communicate()
            return AgentResult(
                stdout=_decode(stdout_bytes).strip(),
                stderr=_decode(stderr_bytes),
                error=f"Agent timed out after {self._timeout:g}s",
                return_code=process.returncode,
            )

        stdout = _decode(stdout_bytes).strip()
        stderr = _decode(stderr_bytes)
        error = None
        if process.returncode != 0:
            error = f"Command failed with exit code {process.returncode}"
            detail = stderr.strip() or stdout
            if detail:
                error = f"{error}: {detail}"

        return AgentResult(stdout=stdout, stderr=stderr, error=error, return_code=process.returncode)


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")
