"""
Configuration — PeakInfer Action

PURPOSE:
    Turn the GitHub Actions environment into two frozen objects, built once at
    process start and passed into the pipeline:

    - ActionConfig: the action's inputs (tokens, path, layer settings, modes)
    - GitHubContext: what triggered the run (repository, event payload) and
      where the runner wants step outputs written

    No other module reads os.environ. Tests build these objects directly.

INPUT CONVENTION:
    GitHub Actions exposes an input named `fail-on-critical` to the step as
    the environment variable `INPUT_FAIL-ON-CRITICAL`: uppercased, hyphens
    kept, spaces turned into underscores.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .models import BenchmarksLayer, EvalsLayer, LayerConfig, RunContext, RuntimeLayer


COMMENT_MODES = ("always", "on-issues", "never")


class ConfigError(ValueError):
    """Raised when the action inputs are missing or malformed."""


def _input(environ: Mapping[str, str], name: str) -> str:
    key = "INPUT_" + name.replace(" ", "_").upper()
    return environ.get(key, "").strip()


def _bool_input(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _input(environ, name)
    if not raw:
        return default
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ConfigError(f"Input '{name}' must be 'true' or 'false', got '{raw}'")


@dataclass(frozen=True)
class ActionConfig:
    path: str = "./src"
    token: str = ""
    github_token: str = ""
    fail_on_critical: bool = False
    comment_mode: str = "always"
    events: Optional[str] = None
    events_map: Optional[str] = None
    include_benchmarks: bool = True
    benchmark_framework: str = "api"
    evals_source: Optional[str] = None
    evals_api_key: Optional[str] = None
    show_enhancement_prompts: bool = True

    @classmethod
    def from_environment(cls, environ: Mapping[str, str]) -> "ActionConfig":
        """
        Parse the action inputs. Malformed values raise ConfigError; missing
        credentials are left empty and reported by validate().
        """
        comment_mode = _input(environ, "comment-mode").lower() or "always"
        if comment_mode not in COMMENT_MODES:
            raise ConfigError(
                f"Input 'comment-mode' must be one of {', '.join(COMMENT_MODES)}, "
                f"got '{comment_mode}'"
            )

        return cls(
            path=_input(environ, "path") or "./src",
            token=_input(environ, "token") or _input(environ, "peakinfer-token"),
            github_token=_input(environ, "github-token") or environ.get("GITHUB_TOKEN", "").strip(),
            fail_on_critical=_bool_input(environ, "fail-on-critical", False),
            comment_mode=comment_mode,
            events=_input(environ, "events-file") or _input(environ, "events") or None,
            events_map=_input(environ, "events-map") or None,
            include_benchmarks=_bool_input(environ, "include-benchmarks", True),
            benchmark_framework=_input(environ, "benchmark-framework") or "api",
            evals_source=_input(environ, "evals-source") or None,
            evals_api_key=_input(environ, "evals-api-key") or None,
            show_enhancement_prompts=_bool_input(environ, "show-enhancement-prompts", True),
        )

    def validate(self) -> None:
        if not self.token:
            raise ConfigError("PeakInfer token is required. Get one at https://peakinfer.com")
        if not self.github_token:
            raise ConfigError("GitHub token is required for PR comments")

    def layer_config(self) -> LayerConfig:
        """
        Build the layer bundle. The runtime events value may name a file in the
        workspace; if so its contents are sent, otherwise the value goes as-is.
        """
        runtime = None
        if self.events:
            runtime = RuntimeLayer(events=_read_events(self.events), events_map=self.events_map)

        benchmarks = None
        if self.include_benchmarks:
            benchmarks = BenchmarksLayer(framework=self.benchmark_framework)

        evals = None
        if self.evals_source:
            evals = EvalsLayer(source=self.evals_source, api_key=self.evals_api_key)

        return LayerConfig(runtime=runtime, benchmarks=benchmarks, evals=evals)


def _read_events(value: str) -> str:
    if os.path.isfile(value):
        with open(value, "r", encoding="utf-8") as f:
            return f.read()
    return value


@dataclass(frozen=True)
class GitHubContext:
    repository: str = ""
    event_name: str = ""
    event: dict = field(default_factory=dict)
    output_path: Optional[str] = None
    debug: bool = False

    @classmethod
    def from_environment(cls, environ: Mapping[str, str]) -> "GitHubContext":
        return cls(
            repository=environ.get("GITHUB_REPOSITORY", ""),
            event_name=environ.get("GITHUB_EVENT_NAME", ""),
            event=_load_event(environ.get("GITHUB_EVENT_PATH")),
            output_path=environ.get("GITHUB_OUTPUT") or None,
            debug=environ.get("RUNNER_DEBUG") == "1",
        )

    def run_context(self) -> Optional[RunContext]:
        """The pull request under analysis, or None for non-PR triggers."""
        pull_request = self.event.get("pull_request")
        if not isinstance(pull_request, dict) or "/" not in self.repository:
            return None
        return RunContext(
            repo=self.repository,
            pr_number=int(pull_request.get("number", 0)),
            sha=str(pull_request.get("head", {}).get("sha", "")),
        )


def _load_event(event_path: Optional[str]) -> dict:
    if not event_path:
        return {}
    try:
        with open(event_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}
