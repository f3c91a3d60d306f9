"""
Shared pytest fixtures for the QA bridge tests.
"""

from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from qa_bridge.core.config import Settings
from qa_bridge.main import create_app
from qa_bridge.services.agent_invoker import AgentResult

API_KEY = "test-secret"


class FakeAgentInvoker:
    """Stands in for AgentInvoker; records the commands it was asked to run."""

    def __init__(self, result: Optional[AgentResult] = None):
        self.result = result or AgentResult(stdout="")
        self.argv_calls: List[list] = []
        self.shell_calls: List[str] = []

    async def run(self, argv):
        self.argv_calls.append(list(argv))
        return AgentResult(stdout=self.result.stdout, error=self.result.error)

    async def run_shell(self, command):
        self.shell_calls.append(command)
        return AgentResult(stdout=self.result.stdout, error=self.result.error)

    @property
    def call_count(self):
        return len(self.argv_calls) + len(self.shell_calls)


class FakeRecordingConverter:
    def __init__(self):
        self.scheduled: List[str] = []
        self.pending = 0

    def schedule(self, session_id):
        self.scheduled.append(session_id)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        BRIDGE_API_KEY=API_KEY,
        WORK_DIR=tmp_path,
        PUBLIC_BASE_URL="http://localhost:8443",
    )


@pytest.fixture
def fake_invoker():
    return FakeAgentInvoker()


@pytest.fixture
def fake_converter():
    return FakeRecordingConverter()


@pytest.fixture
def app(settings, fake_invoker, fake_converter):
    application = create_app(settings)
    application.state.qa_services.agent_invoker = fake_invoker
    application.state.qa_services.recording_converter = fake_converter
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"x-api-key": API_KEY}
