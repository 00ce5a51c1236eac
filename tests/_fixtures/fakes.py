"""Fakes and builders shared by the test suite."""

from __future__ import annotations

import requests


class FakeResponse:
    """Stand-in for requests.Response with just what the stages touch."""

    def __init__(self, status_code: int = 200, payload=None, text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeGitHubAPI:
    """Records comments instead of posting them."""

    def __init__(self, owner: str, repo: str, token: str, events: list | None = None):
        self.owner = owner
        self.repo = repo
        self.token = token
        self.comments: list[tuple[int, str]] = []
        self.events = events if events is not None else []

    def post_comment(self, issue_number: int, body: str):
        self.comments.append((issue_number, body))
        self.events.append("comment")
        return {"id": len(self.comments)}


def make_point(file: str, line: int, *issues: dict, point_id: str = "ip-1") -> dict:
    return {
        "id": point_id,
        "file": file,
        "line": line,
        "provider": "openai",
        "model": "gpt-4o",
        "issues": list(issues),
    }


def make_issue(severity: str, headline: str, fix: str | None = None) -> dict:
    issue = {
        "type": "reliability",
        "severity": severity,
        "headline": headline,
        "evidence": f"Evidence for {headline}",
    }
    if fix:
        issue["suggestedFix"] = fix
    return issue
