"""
Stage 4: Render Comment — PeakInfer Action

PURPOSE:
    Turn the outcome of a run into the Markdown body of the PR comment. There
    are four shapes, one per way a run can end:

      format_analysis_comment   the API returned a result
      format_exhausted_comment  the organization ran out of credits
      format_no_code_comment    Stage 1 found nothing to send
      format_error_comment      the API call failed

    action_main.py picks the one that applies. All four are pure functions of
    their arguments.

    This is what the PR author actually reads, so the layout is fixed: the
    verdict and counts up top, the single most important issue expanded, and
    everything else folded into <details> blocks that stay out of the way.

DESIGN DECISIONS:
    - Every optional piece of the result (credits, drifts, comparisons,
      insights) may be missing. Missing pieces drop their section or line;
      nothing ever prints "None".
    - GitHub rejects comment bodies over 65,536 bytes. We budget 60,000
      UTF-8 bytes and shrink the full issue table first, since it is the only
      section whose size grows with the PR. If the rest still overflows, the
      body is cut and any open <details> block or code fence is closed.
    - Enhancement prompts advertise only layers the user did not configure.
    - Table cells are escaped (pipes, newlines) and clipped to 120 characters
      so one long evidence string can't wreck the table.
"""

from typing import List, Optional

from .models import (
    OPTIONAL_LAYERS,
    AnalysisResult,
    CreditState,
    ErrorResult,
    Issue,
    OrgStats,
)
from .stage_3_classify_verdict import Verdict


PEAKINFER_URL = "https://peakinfer.com"
PRICING_URL = "https://peakinfer.com/pricing"
SUPPORT_URL = "https://github.com/peakinfer/peakinfer-action/issues"

# GitHub rejects bodies over 65,536 bytes; stay under it with room to spare.
MAX_COMMENT_BYTES = 60000
MAX_TABLE_ROWS = 50
MAX_CELL_CHARS = 120

# Placeholder heuristic for the paused comment; the real count is unknown
# until the API runs.
ESTIMATED_POINTS_PER_FILE = 3

VERDICT_DISPLAY = {
    Verdict.PASS: ("✅", "No issues found"),
    Verdict.OK: ("🟢", "Minor warnings only"),
    Verdict.REVIEW: ("🟡", "Review recommended before merging"),
    Verdict.BLOCK: ("🔴", "Critical issues: fix before merging"),
    Verdict.PAUSED: ("⏸️", "Analysis paused"),
    Verdict.SKIP: ("⏭️", "No LLM inference code detected"),
    Verdict.ERROR: ("❌", "Analysis failed"),
}

SEVERITY_ICONS = {"critical": "🔴", "warning": "🟡", "info": "🔵"}

LAYER_PROMPTS = {
    "runtime": (
        "**Runtime drift**: set `events-file` to your inference logs to compare "
        "what the code declares with what production actually does."
    ),
    "benchmarks": (
        "**Benchmarks**: set `include-benchmarks: true` to compare your latency "
        "and cost against public benchmarks."
    ),
    "evals": (
        "**Evals**: set `evals-source` to gate model recommendations on your "
        "own eval results."
    ),
}

RECOGNIZED_PATTERNS = [
    "OpenAI, Anthropic, Google Gemini, Mistral and Cohere SDK calls",
    "Azure OpenAI and AWS Bedrock clients",
    "LangChain and LlamaIndex chains, agents and LLM wrappers",
    "Vercel AI SDK calls (`generateText`, `streamText`, `generateObject`)",
    "Self-hosted inference: vLLM, Ollama, TGI and OpenAI-compatible endpoints",
    "Raw HTTP calls to known inference APIs",
]


# ---------------------------------------------------------------------------
# SUCCESS PATH
# ---------------------------------------------------------------------------


def format_analysis_comment(
    result: AnalysisResult,
    verdict: Verdict,
    credits: Optional[CreditState] = None,
    show_enhancement_prompts: bool = True,
    enabled_layers: Optional[List[str]] = None,
) -> str:
    """
    Format a successful analysis into the PR comment.

    Args:
        result: The parsed analysis from Stage 2
        verdict: The verdict from Stage 3
        credits: Credit balance returned with the analysis, if any
        show_enhancement_prompts: Whether to advertise the layers this run
                                  didn't use
        enabled_layers: Layers the action inputs turned on. A layer listed
                        here is never advertised, even if the service did not
                        report using it.
    """
    summary = result.summary
    lines = _header(verdict)

    if summary.total_inference_points == 0:
        lines.append("No LLM inference points detected in this PR.")
        lines.append("")
        lines.extend(_footer(credits))
        return "\n".join(lines)

    lines.append(_counts_line(result))
    lines.append("")
    lines.extend(_top_issue_section(result))

    before_table = list(lines)
    after_table: List[str] = []

    if "runtime" in result.layers_used:
        before_table.extend(_drift_section(result))
    if "benchmarks" in result.layers_used:
        before_table.extend(_benchmark_section(result))

    after_table.extend(_insight_section(result))
    if show_enhancement_prompts:
        after_table.extend(
            _enhancement_section(list(result.layers_used) + list(enabled_layers or []))
        )
    after_table.extend(_footer(credits))

    # Whatever room is left goes to the full issue table.
    budget = MAX_COMMENT_BYTES - _size("\n".join(before_table + after_table)) - 200
    table = _issue_table_section(result, budget)

    return _clip("\n".join(before_table + table + after_table))


# ---------------------------------------------------------------------------
# CREDITS EXHAUSTED PATH
# ---------------------------------------------------------------------------


def format_exhausted_comment(
    file_count: int,
    stats: Optional[OrgStats] = None,
    error: Optional[ErrorResult] = None,
) -> str:
    """Format the comment posted when the organization is out of credits."""
    stats = stats or OrgStats()
    estimated_points = file_count * ESTIMATED_POINTS_PER_FILE

    lines = _header(Verdict.PAUSED)
    lines.extend([
        "**Analysis paused**: your organization has used all of its credits.",
        "",
        "### Value delivered this month",
        "",
        "| | |",
        "|---|---|",
        f"| Analyses run | {stats.analyses_run} |",
        f"| Inference points analyzed | {stats.inference_points_analyzed} |",
        f"| Critical issues caught | {stats.critical_issues_caught} |",
        f"| Warnings caught | {stats.warnings_caught} |",
        "",
        f"**{file_count} {_plural(file_count, 'file')}** with an estimated "
        f"**~{estimated_points} inference points** (about {ESTIMATED_POINTS_PER_FILE} per file) "
        "were not analyzed in this PR.",
    ])

    if error is not None and error.credits_needed is not None:
        available = error.available if error.available is not None else 0
        lines.append("")
        lines.append(f"This run needs {error.credits_needed} credits; {available} available.")

    lines.extend([
        "",
        f"[Add credits →]({PRICING_URL})",
        "",
    ])
    lines.extend(_footer(None))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# NO CODE PATH
# ---------------------------------------------------------------------------


def format_no_code_comment(scanned_path: str) -> str:
    """Format the comment posted when Stage 1 found no supported files."""
    lines = _header(Verdict.SKIP)
    lines.extend([
        f"No supported source files were found under `{scanned_path}`, so there "
        "was nothing to analyze.",
        "",
        "PeakInfer recognizes LLM inference code such as:",
    ])
    lines.extend(f"- {pattern}" for pattern in RECOGNIZED_PATTERNS)
    lines.extend([
        "",
        "If your LLM code lives somewhere else, point the `path` input at it.",
        "",
    ])
    lines.extend(_footer(None))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# ERROR PATH
# ---------------------------------------------------------------------------


def format_error_comment(error: ErrorResult) -> str:
    """Format the comment posted when the analysis call failed."""
    lines = _header(Verdict.ERROR)
    lines.append("The analysis could not be completed:")
    lines.append("")
    lines.append("```")
    lines.append(error.message)
    lines.append("```")
    if error.code:
        lines.append(f"Error code: `{error.code}`")
    lines.append("")
    if error.hint:
        lines.append(f"**Hint:** {error.hint}")
        lines.append("")
    lines.append(f"Need help? [Open an issue]({SUPPORT_URL}).")
    lines.append("")
    lines.extend(_footer(None))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# PRIVATE HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def _header(verdict: Verdict) -> List[str]:
    icon, description = VERDICT_DISPLAY[verdict]
    return [
        f"## {icon} PeakInfer: {verdict.value}",
        f"**{description}**",
        "",
    ]


def _footer(credits: Optional[CreditState]) -> List[str]:
    lines = ["---"]
    if credits is None:
        lines.append(f"*[PeakInfer]({PEAKINFER_URL})*")
        return lines

    credit_text = f"Credits: {credits.consumed} used · {credits.remaining} remaining"
    if credits.expiring_soon:
        credit_text += f" ({credits.expiring_soon} expiring soon)"
    lines.append(f"*{credit_text} · [PeakInfer]({PEAKINFER_URL})*")
    return lines


def _counts_line(result: AnalysisResult) -> str:
    summary = result.summary
    parts = [
        f"Found **{summary.total_inference_points} "
        f"{_plural(summary.total_inference_points, 'inference point')}**",
        f"{summary.critical_issues} critical",
        f"{summary.warnings} {_plural(summary.warnings, 'warning')}",
    ]
    if result.drifts is not None:
        parts.append(f"{result.drift_count} {_plural(result.drift_count, 'drift')}")
    return " · ".join(parts)


def _top_issue(result: AnalysisResult):
    """First critical in file order, else first warning, else None."""
    pairs = result.all_issues()
    for severity in ("critical", "warning"):
        for point, issue in pairs:
            if issue.severity == severity:
                return point, issue
    return None


def _top_issue_section(result: AnalysisResult) -> List[str]:
    top = _top_issue(result)
    if top is None:
        return ["✅ No issues detected.", ""]

    point, issue = top
    lines = [
        f"### {SEVERITY_ICONS[issue.severity]} Top issue: {issue.headline}",
        "",
    ]
    location = f"`{point.location}`"
    if point.provider or point.model:
        model = "/".join(part for part in (point.provider, point.model) if part)
        location += f" · {model}"
    lines.append(location)
    lines.append("")
    if issue.evidence:
        lines.extend(f"> {line}" for line in issue.evidence.splitlines())
        lines.append("")
    if issue.suggested_fix:
        lines.append("**Suggested fix:**")
        lines.append("```")
        lines.append(issue.suggested_fix)
        lines.append("```")
        lines.append("")
    return lines


def _details(summary: str, body: List[str]) -> List[str]:
    return ["<details>", f"<summary>{summary}</summary>", ""] + body + ["", "</details>", ""]


def _drift_section(result: AnalysisResult) -> List[str]:
    drifts = result.drifts or []
    if not drifts:
        body = ["No drift detected between the code and its runtime behavior."]
    else:
        body = [
            "| Location | Drift | Declared | Observed |",
            "|----------|-------|----------|----------|",
        ]
        for drift in drifts[:MAX_TABLE_ROWS]:
            location = f"`{drift.file}:{drift.line}`" if drift.file else "-"
            icon = SEVERITY_ICONS.get(drift.severity, "🟡")
            body.append(
                f"| {location} | {icon} {_cell(drift.type)} | {_cell(drift.expected)} "
                f"| {_cell(drift.actual)} |"
            )
        body.extend(_more_line(len(drifts) - MAX_TABLE_ROWS))
    return _details(f"Runtime drift ({len(drifts)})", body)


def _benchmark_section(result: AnalysisResult) -> List[str]:
    comparisons = result.benchmark_comparisons or []
    if not comparisons:
        body = ["No benchmark data matched the models in this PR."]
    else:
        body = [
            "| Model | Metric | Yours | Benchmark | Verdict |",
            "|-------|--------|-------|-----------|---------|",
        ]
        for c in comparisons[:MAX_TABLE_ROWS]:
            body.append(
                f"| {_cell(c.model)} | {_cell(c.metric)} | {_cell(c.yours)} "
                f"| {_cell(c.benchmark)} | {_cell(c.verdict) or '-'} |"
            )
        body.extend(_more_line(len(comparisons) - MAX_TABLE_ROWS))
    return _details(f"Benchmark comparisons ({len(comparisons)})", body)


def _issue_table_section(result: AnalysisResult, budget: int) -> List[str]:
    """
    All issues grouped by file, in the order received. Rows stop at
    MAX_TABLE_ROWS or when the character budget runs out.
    """
    pairs = result.all_issues()
    if not pairs:
        return []

    groups: dict = {}
    for point, issue in pairs:
        groups.setdefault(point.file, []).append((point, issue))

    body: List[str] = []
    used = 0
    shown = 0
    for file_path, file_pairs in groups.items():
        group_lines = [
            f"**`{file_path}`**",
            "",
            "| Line | Severity | Issue |",
            "|------|----------|-------|",
        ]
        rows = []
        for point, issue in file_pairs:
            if shown + len(rows) >= MAX_TABLE_ROWS:
                break
            rows.append(_issue_row(point.line, issue))

        cost = _size("\n".join(group_lines + rows)) + 2
        while rows and used + cost > budget:
            rows.pop()
            cost = _size("\n".join(group_lines + rows)) + 2
        if not rows:
            break

        body.extend(group_lines + rows + [""])
        used += cost
        shown += len(rows)

    body.extend(_more_line(len(pairs) - shown))
    return _details(f"All issues ({len(pairs)})", body)


def _issue_row(line: int, issue: Issue) -> str:
    icon = SEVERITY_ICONS[issue.severity]
    return f"| {line or '-'} | {icon} {issue.severity} | {_cell(issue.headline)} |"


def _insight_section(result: AnalysisResult) -> List[str]:
    insights = [i for i in result.insights if not i.is_trivial]
    if not insights:
        return []
    body = []
    for insight in insights:
        line = f"- **{insight.headline.strip()}**"
        if insight.detail:
            line += f": {insight.detail.strip()}"
        body.append(line)
    return _details(f"Insights ({len(insights)})", body)


def _enhancement_section(active_layers: List[str]) -> List[str]:
    unused = [layer for layer in OPTIONAL_LAYERS if layer not in active_layers]
    if not unused:
        return []
    lines = ["> 💡 **Get more from PeakInfer**"]
    lines.extend(f"> - {LAYER_PROMPTS[layer]}" for layer in unused)
    lines.append("")
    return lines


def _more_line(hidden: int) -> List[str]:
    if hidden <= 0:
        return []
    return ["", f"…and {hidden} more"]


def _cell(text: str) -> str:
    """Make text safe for a single Markdown table cell."""
    flat = " ".join(str(text).split()).replace("|", "\\|")
    if len(flat) > MAX_CELL_CHARS:
        flat = flat[: MAX_CELL_CHARS - 1].rstrip() + "…"
    return flat


def _clip(body: str) -> str:
    """Cut the body to MAX_COMMENT_BYTES, closing any fence or <details> the cut leaves open."""
    if _size(body) <= MAX_COMMENT_BYTES:
        return body
    notice = "\n\n*…comment truncated to fit GitHub's size limit.*"
    room = MAX_COMMENT_BYTES - _size(notice) - 200
    clipped = body.encode("utf-8")[:room].decode("utf-8", errors="ignore")

    closers = []
    if clipped.count("```") % 2:
        closers.append("```")
    open_blocks = clipped.count("<details>") - clipped.count("</details>")
    closers.extend(["</details>"] * max(open_blocks, 0))
    if closers:
        clipped += "\n" + "\n".join(closers)
    return clipped + notice


def _size(text: str) -> int:
    return len(text.encode("utf-8"))


def _plural(count: int, word: str) -> str:
    return word if count == 1 else word + "s"
