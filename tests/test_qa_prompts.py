"""Tests for the QA prompt builder and report template rendering."""

import pytest

from qa_bridge.services.qa_prompts import (
    RECORDING_FORMAT_PLACEHOLDER,
    SESSION_ID_PLACEHOLDER,
    TASK_PLACEHOLDER,
    QaPromptBuilder,
    render_report_template,
)

SESSION_ID = "run_1718000000000"


@pytest.fixture
def builder(tmp_path):
    return QaPromptBuilder(
        base_url="http://localhost:8443/",
        reports_dir=tmp_path / "public" / "walk-reports",
        recordings_dir=tmp_path / "public" / "recordings",
    )


@pytest.mark.parametrize(
    "task",
    [
        "Test the login page",
        "Check {braces} and 'quotes' and \"double quotes\"",
        "Multi\nline\ntask",
    ],
)
def test_report_template_substitutes_every_placeholder(task):
    html = render_report_template(task, SESSION_ID)

    for marker in (SESSION_ID_PLACEHOLDER, TASK_PLACEHOLDER, RECORDING_FORMAT_PLACEHOLDER):
        assert marker not in html
    assert f"<title>QA Report: {SESSION_ID}</title>" in html
    assert f"<strong>Session ID:</strong> {SESSION_ID}" in html
    assert f"<p>{task}</p>" in html
    assert f'src="../recordings/{SESSION_ID}.gif"' in html


def test_report_template_uses_configured_recording_format():
    html = render_report_template("task", SESSION_ID, recording_format="webp")

    assert f'src="../recordings/{SESSION_ID}.webp"' in html


def test_prompt_embeds_file_contracts(builder, tmp_path):
    prompt = builder.build("Test the login page", SESSION_ID)

    recordings_dir = tmp_path / "public" / "recordings"
    reports_dir = tmp_path / "public" / "walk-reports"
    assert f"- Reports dir: {reports_dir}" in prompt
    assert f"- Recordings dir: {recordings_dir}" in prompt
    assert f"- SESSION ID: {SESSION_ID}" in prompt
    assert f"Pattern: {recordings_dir}/{SESSION_ID}_step_01.png" in prompt
    assert f"named 'report_{SESSION_ID}.html'" in prompt
    assert f"http://localhost:8443/walk-reports/report_{SESSION_ID}.html" in prompt
    assert "- Base URL: http://localhost:8443/walk-reports" in prompt
    assert 'User Request: "Test the login page"' in prompt


def test_prompt_states_operating_protocols(builder):
    prompt = builder.build("anything", SESSION_ID)

    assert "NO SCRIPTING" in prompt
    assert '"no schema with key"' in prompt
    assert "Video recording is unavailable." in prompt
    assert "NO RETRIES" in prompt


def test_prompt_embeds_rendered_template_verbatim(builder):
    task = "Check the {cart} page"
    prompt = builder.build(task, SESSION_ID)

    begin = prompt.index("*** BEGIN HTML TEMPLATE ***")
    end = prompt.index("*** END HTML TEMPLATE ***")
    assert render_report_template(task, SESSION_ID) in prompt[begin:end]
    assert SESSION_ID_PLACEHOLDER not in prompt
    assert TASK_PLACEHOLDER not in prompt


def test_prompt_is_deterministic(builder):
    assert builder.build("task", SESSION_ID) == builder.build("task", SESSION_ID)
    assert builder.build("task", SESSION_ID) != builder.build("task", "run_1718000000001")


def test_report_url(builder):
    assert builder.report_url(SESSION_ID) == f"http://localhost:8443/walk-reports/report_{SESSION_ID}.html"
