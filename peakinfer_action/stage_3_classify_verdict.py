"""
Stage 3: Classify Verdict — PeakInfer Action

PURPOSE:
    Reduce a run to one label that workflows can branch on (the `verdict`
    output) and that heads the PR comment.

CALLED BY:
    action_main.py — for every path through the pipeline, including the ones
    that never reached the API (no files) or failed there.

RULES (first match wins):
    ERROR   the analysis call failed for any reason other than credits
    PAUSED  the organization is out of credits
    SKIP    no inference points were found
    BLOCK   2 or more critical issues
    REVIEW  exactly 1 critical issue, or more than 5 warnings
    OK      1 to 5 warnings, no criticals
    PASS    nothing to report

    The thresholds (2 criticals, 5 warnings) are part of the action's public
    behavior. Workflows gate merges on them.
"""

from enum import Enum


class Verdict(str, Enum):
    PASS = "PASS"
    OK = "OK"
    REVIEW = "REVIEW"
    BLOCK = "BLOCK"
    PAUSED = "PAUSED"
    SKIP = "SKIP"
    ERROR = "ERROR"


BLOCK_CRITICAL_THRESHOLD = 2
REVIEW_WARNING_THRESHOLD = 5


def classify_verdict(
    critical_count: int,
    warning_count: int,
    has_inference_points: bool,
    credits_exhausted: bool = False,
    had_transport_error: bool = False,
) -> Verdict:
    """
    Pick the verdict for a run.

    This is the ONLY public function in this file. It is pure: same inputs,
    same verdict, no I/O.
    """
    if had_transport_error:
        return Verdict.ERROR
    if credits_exhausted:
        return Verdict.PAUSED
    if not has_inference_points:
        return Verdict.SKIP
    if critical_count >= BLOCK_CRITICAL_THRESHOLD:
        return Verdict.BLOCK
    if critical_count == 1 or warning_count > REVIEW_WARNING_THRESHOLD:
        return Verdict.REVIEW
    if warning_count >= 1:
        return Verdict.OK
    return Verdict.PASS
