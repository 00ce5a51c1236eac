"""
Action Main — PeakInfer Action

PURPOSE:
    Run the five stages in order for one pull request:

      config -> 1. collect files -> 2. call API -> 3. classify verdict
      -> 4. render comment -> 5. post comment + set outputs -> maybe fail

    Nothing here is retried and nothing branches back. Each stage takes the
    previous stage's complete output.

CALLED BY:
    `python -m peakinfer_action` (see __main__.py), from the composite step in
    action.yml.

FAILURE POLICY:
    - Missing credentials: fail immediately. No API calls, no comment.
    - Not a pull_request event: warn and exit cleanly with no outputs.
    - No supported files: SKIP verdict, not a failure.
    - Out of credits: PAUSED verdict, informational comment, never fails,
      even with fail-on-critical on.
    - Any other API error: error comment, ERROR verdict, run fails.
    - Critical issues with fail-on-critical: the run fails AFTER the comment
      is posted, so the PR author always sees why.
    - Anything unexpected: caught at the top, run fails, ERROR verdict.
      That includes an event payload file that exists but can't be read.
"""

import json
import os
from typing import Callable, List, Mapping, Optional

from .config import ActionConfig, ConfigError, GitHubContext
from .logging import configure_logging, get_logger
from .models import AnalysisFailure, AnalysisSuccess, OrgStats, RunContext
from .stage_1_collect_source_files import collect_source_files
from .stage_2_call_analysis_api import call_analysis_api, fetch_stats
from .stage_3_classify_verdict import Verdict, classify_verdict
from .stage_4_render_comment import (
    format_analysis_comment,
    format_error_comment,
    format_exhausted_comment,
    format_no_code_comment,
)
from .stage_5_publish_results import ActionReporter, GitHubAPI


logger = get_logger("main")


def main(environ: Optional[Mapping[str, str]] = None) -> int:
    """Process entry point. Returns the exit code for the runner."""
    environ = os.environ if environ is None else environ

    try:
        github = GitHubContext.from_environment(environ)
    except (OSError, ValueError) as e:
        # Unreadable event payload: still report through the step outputs.
        configure_logging()
        reporter = ActionReporter(environ.get("GITHUB_OUTPUT") or None)
        reporter.set_output("verdict", Verdict.ERROR)
        reporter.set_failed(f"Could not read the GitHub event payload: {e}")
        return reporter.exit_code

    configure_logging(debug=github.debug)
    reporter = ActionReporter(github.output_path)

    try:
        config = ActionConfig.from_environment(environ)
    except ConfigError as e:
        reporter.set_failed(str(e))
        return reporter.exit_code

    run_action(config, github, reporter)
    return reporter.exit_code


def run_action(
    config: ActionConfig,
    github: GitHubContext,
    reporter: ActionReporter,
    github_api_factory: Callable[..., GitHubAPI] = GitHubAPI,
) -> None:
    """
    Run the pipeline for one pull request.

    Args:
        config: Parsed action inputs
        github: Event and repository information for this run
        reporter: Receives step outputs and the failed status
        github_api_factory: Builds the comment client from (owner, repo, token)
    """
    try:
        try:
            config.validate()
        except ConfigError as e:
            reporter.set_failed(str(e))
            return

        context = github.run_context()
        if context is None:
            logger.warning("PeakInfer action should run on pull_request events")
            return

        gh = github_api_factory(context.owner, context.name, config.github_token)
        _run_pipeline(config, context, gh, reporter)

    except Exception as e:
        reporter.set_output("verdict", Verdict.ERROR)
        reporter.set_failed(str(e) or "An unexpected error occurred")


# ---------------------------------------------------------------------------
# PRIVATE HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def _run_pipeline(
    config: ActionConfig, context: RunContext, gh: GitHubAPI, reporter: ActionReporter
) -> None:
    # -----------------------------------------------------------------------
    # STAGE 1: Collect files
    # -----------------------------------------------------------------------

    logger.info(f"Analyzing path: {config.path}")
    files = collect_source_files(config.path)
    logger.info(f"Found {len(files)} files to analyze")

    if not files:
        logger.warning("No supported files found for analysis")
        if _should_comment(config.comment_mode, has_issues=False):
            gh.post_comment(context.pr_number, format_no_code_comment(config.path))
        reporter.set_output("verdict", Verdict.SKIP)
        return

    # -----------------------------------------------------------------------
    # STAGE 2: Call the API
    # -----------------------------------------------------------------------

    layers = config.layer_config()
    logger.info(f"Calling PeakInfer API with layers: {', '.join(layers.enabled())}")
    outcome = call_analysis_api(config.token, files, context, layers)

    if isinstance(outcome, AnalysisFailure):
        _handle_failure(config, context, gh, reporter, outcome, len(files))
        return

    # -----------------------------------------------------------------------
    # STAGES 3-5: Classify, render, publish
    # -----------------------------------------------------------------------

    _handle_success(config, context, gh, reporter, outcome, layers.enabled())


def _handle_failure(
    config: ActionConfig,
    context: RunContext,
    gh: GitHubAPI,
    reporter: ActionReporter,
    outcome: AnalysisFailure,
    file_count: int,
) -> None:
    if outcome.credits_exhausted:
        logger.warning("Credit limit reached")
        verdict = classify_verdict(0, 0, False, credits_exhausted=True)
        if _should_comment(config.comment_mode, has_issues=True):
            stats = fetch_stats(config.token) or OrgStats()
            gh.post_comment(
                context.pr_number,
                format_exhausted_comment(file_count, stats, outcome.error),
            )
        reporter.set_output("verdict", verdict)
        return

    verdict = classify_verdict(0, 0, False, had_transport_error=True)
    if _should_comment(config.comment_mode, has_issues=True):
        gh.post_comment(context.pr_number, format_error_comment(outcome.error))
    reporter.set_output("verdict", verdict)
    reporter.set_failed(f"API error: {outcome.error.message}")


def _handle_success(
    config: ActionConfig,
    context: RunContext,
    gh: GitHubAPI,
    reporter: ActionReporter,
    outcome: AnalysisSuccess,
    enabled_layers: List[str],
) -> None:
    result = outcome.result
    summary = result.summary
    logger.info(f"Analysis complete: {summary.total_inference_points} inference points")

    verdict = classify_verdict(
        summary.critical_issues,
        summary.warnings,
        summary.total_inference_points > 0,
    )

    has_issues = summary.critical_issues + summary.warnings > 0
    if _should_comment(config.comment_mode, has_issues=has_issues):
        comment = format_analysis_comment(
            result,
            verdict,
            outcome.credits,
            show_enhancement_prompts=config.show_enhancement_prompts,
            enabled_layers=enabled_layers,
        )
        gh.post_comment(context.pr_number, comment)
    else:
        logger.info(f"Skipping PR comment (comment-mode: {config.comment_mode})")

    reporter.set_output("verdict", verdict)
    reporter.set_output("inference-points", summary.total_inference_points)
    reporter.set_output("critical-count", summary.critical_issues)
    reporter.set_output("warning-count", summary.warnings)
    reporter.set_output("drift-count", result.drift_count)
    reporter.set_output("layers-used", result.layers_used)
    reporter.set_output("summary", _compact_json(summary.raw))
    if outcome.credits is not None:
        reporter.set_output("credits-used", outcome.credits.consumed)
        reporter.set_output("credits-remaining", outcome.credits.remaining)

    if config.fail_on_critical and summary.critical_issues > 0:
        reporter.set_failed(f"Found {summary.critical_issues} critical issues")


def _should_comment(comment_mode: str, has_issues: bool) -> bool:
    if comment_mode == "never":
        return False
    if comment_mode == "on-issues":
        return has_issues
    return True


def _compact_json(data: dict) -> str:
    return json.dumps(data, separators=(",", ":"), sort_keys=True)
