"""
Stage 5: Publish Results — PeakInfer Action

PURPOSE:
    The two sinks the pipeline writes to:

    1. GitHubAPI.post_comment: the single PR comment per run
    2. ActionReporter: step outputs (`verdict`, counts, layers, credits) and
       the run's failed/not-failed status

    The verdict output and the failed status are independent. A run can
    report BLOCK and still pass when `fail-on-critical` is off.

CALLED BY:
    action_main.py — after Stage 4 has rendered the comment body.

DEPENDS ON:
    - GitHub REST API (via requests library) for the issue comment
    - The GITHUB_TOKEN (or `github-token` input) with issues:write
    - The runner's $GITHUB_OUTPUT file for step outputs
"""

import uuid
from enum import Enum
from typing import Optional

import requests

from .logging import get_logger


logger = get_logger("publish")


# ---------------------------------------------------------------------------
# GITHUB API HELPER CLASS
# ---------------------------------------------------------------------------


class GitHubAPI:
    """
    Thin wrapper around the GitHub REST API for the one call we need.

    Pull requests are issues as far as comments go, so the PR number is
    used as the issue number.
    """

    def __init__(self, owner: str, repo: str, token: str):
        self.owner = owner
        self.repo = repo
        self.base_url = f"https://api.github.com/repos/{owner}/{repo}"
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def post_comment(self, issue_number: int, body: str):
        """Post a comment on a GitHub Issue or Pull Request."""
        url = f"{self.base_url}/issues/{issue_number}/comments"
        resp = requests.post(url, headers=self.headers, json={"body": body}, timeout=30)
        resp.raise_for_status()
        return resp.json()


# ---------------------------------------------------------------------------
# STEP OUTPUTS & RUN STATUS
# ---------------------------------------------------------------------------


class ActionReporter:
    """
    Collects step outputs and the failed status for one run.

    Outputs are appended to $GITHUB_OUTPUT as they are set, so they survive
    even if a later step of the run blows up. The `outputs` dict mirrors what
    was written; tests read it instead of the file.
    """

    def __init__(self, output_path: Optional[str] = None):
        self.output_path = output_path
        self.outputs: dict = {}
        self.failed = False
        self.failure_message: Optional[str] = None

    def set_output(self, name: str, value) -> None:
        text = _format_value(value)
        self.outputs[name] = text

        if not self.output_path:
            logger.debug(f"output {name}={text}")
            return

        with open(self.output_path, "a", encoding="utf-8") as f:
            if "\n" in text:
                # Multi-line values need the heredoc form.
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                f.write(f"{name}<<{delimiter}\n{text}\n{delimiter}\n")
            else:
                f.write(f"{name}={text}\n")

    def set_failed(self, message: str) -> None:
        """Mark the run failed. The first message wins; the process exits 1."""
        logger.error(message)
        if not self.failed:
            self.failed = True
            self.failure_message = message

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


def _format_value(value) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)
