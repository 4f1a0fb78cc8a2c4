"""Tests for log routing and per-document context."""

import json
import logging

import pytest

from flowlint.logging_config import bind_lint_context, clear_lint_context, configure_logging
from flowlint.service import LintService


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    clear_lint_context()
    configure_logging("warning")


def _events(err):
    return [json.loads(line) for line in err.splitlines() if line.startswith("{")]


def test_json_events_carry_document_path(capsys):
    configure_logging("info", json_output=True)
    bind_lint_context("flows/a.json")
    logging.getLogger("flowlint.service").info("workflow_linted", extra={"findings": 2})

    captured = capsys.readouterr()
    assert captured.out == ""
    event = _events(captured.err)[-1]
    assert event["event"] == "workflow_linted"
    assert event["path"] == "flows/a.json"
    assert event["findings"] == 2
    assert event["level"] == "info"


def test_unknown_level_falls_back_to_warning():
    configure_logging("chatty")
    assert logging.getLogger().level == logging.WARNING


def test_lint_document_clears_context(capsys, webhook_workflow):
    configure_logging("info", json_output=True)
    LintService().lint_document("flows/order.json", webhook_workflow)
    logging.getLogger("flowlint.cli").info("after_lint")

    events = _events(capsys.readouterr().err)
    linted = next(e for e in events if e["event"] == "workflow_linted")
    assert linted["path"] == "flows/order.json"
    assert "path" not in events[-1]
