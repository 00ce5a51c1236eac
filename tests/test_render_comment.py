"""Tests for the Stage 4 comment renderer."""

from __future__ import annotations

from peakinfer_action.models import AnalysisResult, CreditState, ErrorResult, OrgStats
from peakinfer_action.stage_3_classify_verdict import Verdict
from peakinfer_action.stage_4_render_comment import (
    MAX_COMMENT_BYTES,
    format_analysis_comment,
    format_error_comment,
    format_exhausted_comment,
    format_no_code_comment,
)
from tests._fixtures.fakes import make_issue, make_point


def test_full_result_layout(analysis_payload) -> None:
    result = AnalysisResult.from_dict(analysis_payload)
    credits = CreditState(consumed=3, remaining=97, expiring_soon=10)

    body = format_analysis_comment(result, Verdict.BLOCK, credits)

    assert body.startswith("## 🔴 PeakInfer: BLOCK")
    assert "Found **2 inference points** · 2 critical · 3 warnings · 1 drift" in body
    # First critical in file order, not the first issue.
    assert "Top issue: Missing timeout" in body
    assert "client.chat({ timeout: 30000 })" in body
    assert "<summary>Runtime drift (1)</summary>" in body
    assert "<summary>All issues (5)</summary>" in body
    assert "**`src/chat.ts`**" in body and "**`src/agent.py`**" in body
    assert "<summary>Insights (1)</summary>" in body
    assert "Trivial note" not in body
    assert "Credits: 3 used · 97 remaining (10 expiring soon)" in body
    # Benchmarks layer unused: no section, but it is advertised.
    assert "Benchmark comparisons" not in body
    assert "Get more from PeakInfer" in body
    assert "`include-benchmarks: true`" in body
    assert "`events-file`" not in body


def test_sections_are_ordered(analysis_payload) -> None:
    body = format_analysis_comment(AnalysisResult.from_dict(analysis_payload), Verdict.BLOCK)

    order = [
        body.index("Top issue"),
        body.index("Runtime drift"),
        body.index("All issues"),
        body.index("Insights"),
        body.index("Get more from PeakInfer"),
        body.index("\n---\n"),
    ]
    assert order == sorted(order)


def test_top_issue_falls_back_to_first_warning() -> None:
    result = AnalysisResult.from_dict(
        {
            "inferencePoints": [
                make_point("a.py", 1, make_issue("info", "FYI")),
                make_point("b.py", 2, make_issue("warning", "Watch out")),
            ],
            "summary": {"totalInferencePoints": 2, "criticalIssues": 0, "warnings": 1},
        }
    )

    body = format_analysis_comment(result, Verdict.OK)

    assert "🟡 Top issue: Watch out" in body
    assert "FYI" in body  # still in the full table


def test_zero_inference_points() -> None:
    result = AnalysisResult.from_dict(
        {"inferencePoints": [], "summary": {"totalInferencePoints": 0, "criticalIssues": 0, "warnings": 0}}
    )

    body = format_analysis_comment(result, Verdict.SKIP, CreditState(consumed=1, remaining=9))

    assert "No LLM inference points detected in this PR." in body
    assert "| Line | Severity | Issue |" not in body
    assert "All issues" not in body
    assert "Credits: 1 used · 9 remaining" in body


def test_missing_optional_fields_render_cleanly() -> None:
    result = AnalysisResult.from_dict(
        {"inferencePoints": [make_point("a.ts", 3)], "summary": {"totalInferencePoints": 1}}
    )

    body = format_analysis_comment(result, Verdict.PASS, credits=None, show_enhancement_prompts=False)

    assert "✅ No issues detected." in body
    assert "None" not in body
    assert "undefined" not in body
    assert "Credits" not in body
    assert "drift" not in body.lower()
    assert "Get more from PeakInfer" not in body
    assert body.rstrip().endswith("*[PeakInfer](https://peakinfer.com)*")


def test_empty_body_from_service_does_not_crash() -> None:
    body = format_analysis_comment(AnalysisResult.from_dict({}), Verdict.SKIP)

    assert "No LLM inference points detected" in body


def test_benchmark_section_when_layer_used() -> None:
    result = AnalysisResult.from_dict(
        {
            "inferencePoints": [make_point("a.ts", 3)],
            "benchmarkComparisons": [
                {"model": "gpt-4o", "metric": "p95 latency", "yours": "2.1s", "benchmark": "1.4s", "verdict": "slower"}
            ],
            "summary": {"totalInferencePoints": 1, "criticalIssues": 0, "warnings": 0},
            "layersUsed": ["code", "benchmarks"],
        }
    )

    body = format_analysis_comment(result, Verdict.PASS)

    assert "<summary>Benchmark comparisons (1)</summary>" in body
    assert "| gpt-4o | p95 latency | 2.1s | 1.4s | slower |" in body


def test_table_cells_are_escaped_and_clipped() -> None:
    long_headline = "pipe | inside " + "x" * 300
    result = AnalysisResult.from_dict(
        {
            "inferencePoints": [make_point("a.ts", 3, make_issue("info", long_headline))],
            "summary": {"totalInferencePoints": 1, "criticalIssues": 0, "warnings": 0},
        }
    )

    body = format_analysis_comment(result, Verdict.PASS)

    row = next(line for line in body.splitlines() if line.startswith("| 3 |"))
    assert "pipe \\| inside" in row
    assert "…" in row
    assert len(row) < 200


def test_huge_issue_table_is_capped() -> None:
    issues = [make_issue("warning", f"Issue number {i} " + "y" * 100) for i in range(400)]
    points = [make_point(f"src/file_{i}.ts", i + 1, issue) for i, issue in enumerate(issues)]
    result = AnalysisResult.from_dict(
        {"inferencePoints": points, "summary": {"totalInferencePoints": 400, "criticalIssues": 0, "warnings": 400}}
    )

    body = format_analysis_comment(result, Verdict.REVIEW)

    assert len(body.encode("utf-8")) <= MAX_COMMENT_BYTES
    assert "…and 350 more" in body


def test_configured_layers_are_not_advertised(analysis_payload) -> None:
    # Service reports only code+runtime, but benchmarks was switched on.
    result = AnalysisResult.from_dict(analysis_payload)

    body = format_analysis_comment(
        result, Verdict.BLOCK, enabled_layers=["code", "benchmarks"]
    )

    assert "Get more from PeakInfer" in body
    assert "`include-benchmarks: true`" not in body
    assert "`evals-source`" in body


def test_no_enhancement_block_when_every_layer_is_on(analysis_payload) -> None:
    result = AnalysisResult.from_dict(analysis_payload)

    body = format_analysis_comment(
        result, Verdict.BLOCK, enabled_layers=["code", "runtime", "benchmarks", "evals"]
    )

    assert "Get more from PeakInfer" not in body


def test_multibyte_body_is_cut_by_bytes_and_blocks_closed() -> None:
    result = AnalysisResult.from_dict(
        {
            "inferencePoints": [make_point("a.ts", 3, make_issue("warning", "注意"))],
            "insights": [{"headline": "长文本", "detail": "漢" * 30000, "severity": "warning"}],
            "summary": {"totalInferencePoints": 1, "criticalIssues": 0, "warnings": 1},
        }
    )

    body = format_analysis_comment(result, Verdict.OK)

    assert len(body.encode("utf-8")) <= MAX_COMMENT_BYTES
    assert "comment truncated" in body
    assert body.count("<details>") == body.count("</details>")
    assert body.count("```") % 2 == 0


def test_exhausted_comment_with_stats_and_error() -> None:
    stats = OrgStats(analyses_run=12, inference_points_analyzed=140, critical_issues_caught=4, warnings_caught=21)
    error = ErrorResult(message="Out of credits", code="CREDIT_EXHAUSTED", available=0, credits_needed=2)

    body = format_exhausted_comment(8, stats, error)

    assert body.startswith("## ⏸️ PeakInfer: PAUSED")
    assert "| Analyses run | 12 |" in body
    assert "| Critical issues caught | 4 |" in body
    assert "**8 files**" in body
    assert "~24 inference points" in body
    assert "This run needs 2 credits; 0 available." in body


def test_exhausted_comment_defaults_to_zero_stats() -> None:
    body = format_exhausted_comment(1)

    assert "| Analyses run | 0 |" in body
    assert "**1 file**" in body
    assert "~3 inference points" in body
    assert "needs" not in body


def test_no_code_comment_lists_patterns() -> None:
    body = format_no_code_comment("./src")

    assert body.startswith("## ⏭️ PeakInfer: SKIP")
    assert "`./src`" in body
    assert "LangChain" in body


def test_error_comment_with_and_without_hint() -> None:
    with_hint = format_error_comment(ErrorResult(message="Invalid token", code="UNAUTHORIZED", hint="Rotate it"))
    bare = format_error_comment(ErrorResult(message="boom"))

    assert with_hint.startswith("## ❌ PeakInfer: ERROR")
    assert "Invalid token" in with_hint
    assert "`UNAUTHORIZED`" in with_hint
    assert "**Hint:** Rotate it" in with_hint
    assert "Hint" not in bare
    assert "Error code" not in bare
    assert "Open an issue" in bare
