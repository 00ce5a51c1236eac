"""Tests for the Stage 3 verdict table."""

from __future__ import annotations

import pytest

from peakinfer_action.stage_3_classify_verdict import Verdict, classify_verdict


@pytest.mark.parametrize(
    "critical, warning, expected",
    [
        (0, 0, Verdict.PASS),
        (0, 1, Verdict.OK),
        (0, 4, Verdict.OK),
        (0, 5, Verdict.OK),
        (0, 6, Verdict.REVIEW),
        (1, 0, Verdict.REVIEW),
        (1, 5, Verdict.REVIEW),
        (1, 6, Verdict.REVIEW),
        (2, 0, Verdict.BLOCK),
        (2, 3, Verdict.BLOCK),
        (3, 0, Verdict.BLOCK),
    ],
)
def test_count_boundaries(critical: int, warning: int, expected: Verdict) -> None:
    assert classify_verdict(critical, warning, True) is expected


@pytest.mark.parametrize("critical, warning", [(0, 0), (1, 0), (5, 9)])
def test_no_inference_points_is_skip(critical: int, warning: int) -> None:
    assert classify_verdict(critical, warning, False) is Verdict.SKIP


@pytest.mark.parametrize("has_code", [True, False])
@pytest.mark.parametrize("credits_exhausted", [True, False])
def test_transport_error_always_wins(has_code: bool, credits_exhausted: bool) -> None:
    verdict = classify_verdict(
        5, 10, has_code, credits_exhausted=credits_exhausted, had_transport_error=True
    )
    assert verdict is Verdict.ERROR


def test_credits_exhausted_beats_counts_and_missing_code() -> None:
    assert classify_verdict(3, 0, True, credits_exhausted=True) is Verdict.PAUSED
    assert classify_verdict(0, 0, False, credits_exhausted=True) is Verdict.PAUSED


def test_verdict_values_are_the_published_labels() -> None:
    assert {v.value for v in Verdict} == {"PASS", "OK", "REVIEW", "BLOCK", "PAUSED", "SKIP", "ERROR"}
