from __future__ import annotations

import pytest

from tests._fixtures.fakes import FakeResponse, make_issue, make_point


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def analysis_payload() -> dict:
    """A full API analysis body: 2 criticals, 3 warnings across two files."""
    return {
        "inferencePoints": [
            make_point(
                "src/chat.ts",
                12,
                make_issue("warning", "No retry on rate limit"),
                make_issue("critical", "Missing timeout", fix="client.chat({ timeout: 30000 })"),
                point_id="ip-1",
            ),
            make_point(
                "src/agent.py",
                40,
                make_issue("critical", "Unbounded max_tokens"),
                make_issue("warning", "No streaming"),
                make_issue("warning", "Model pinned to deprecated snapshot"),
                point_id="ip-2",
            ),
        ],
        "drifts": [
            {
                "type": "model_mismatch",
                "file": "src/chat.ts",
                "line": 12,
                "expected": "gpt-4o",
                "actual": "gpt-4o-mini",
                "severity": "warning",
            }
        ],
        "insights": [
            {"headline": "Two providers in one PR", "detail": "Consider a shared client."},
            {"headline": "Trivial note", "severity": "info"},
        ],
        "summary": {"totalInferencePoints": 2, "criticalIssues": 2, "warnings": 3},
        "layersUsed": ["code", "runtime"],
    }
