"""
Shared Data Types — PeakInfer Action

PURPOSE:
    The value objects that flow between the pipeline stages. Every object here
    lives for exactly one run: it is built once, handed forward to the next
    stage, and never mutated.

    Most of these types describe what the PeakInfer API sends back. The API is
    the source of truth for their contents, so the `from_dict` constructors are
    lenient: unknown keys are ignored and missing optional keys become None or
    empty lists. The renderer relies on that to never see a KeyError.

DESIGN DECISIONS:
    - Optional layers are modeled as `Optional[<Layer>]` where each layer class
      has only required fields. `None` means the layer is disabled; an instance
      means it is enabled AND carries everything it needs. There is no way to
      build an "enabled but missing its events" runtime layer.
    - The API call returns either AnalysisSuccess or AnalysisFailure. Callers
      branch with isinstance(); the two never coexist for one call.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union


SEVERITIES = ("critical", "warning", "info")


@dataclass(frozen=True)
class CollectedFile:
    """One source file picked up by Stage 1."""

    path: str
    content: str

    def to_payload(self) -> dict:
        return {"path": self.path, "content": self.content}


@dataclass(frozen=True)
class RunContext:
    """Identifies the pull request being analyzed."""

    repo: str
    pr_number: int
    sha: str

    @property
    def owner(self) -> str:
        return self.repo.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repo.split("/", 1)[1]


# ---------------------------------------------------------------------------
# LAYERS
# ---------------------------------------------------------------------------
# The "code" layer is always on and takes no parameters, so it has no class.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuntimeLayer:
    """Runtime drift detection fed with real inference events."""

    events: str
    events_map: Optional[str] = None

    def to_payload(self) -> dict:
        payload = {"events": self.events}
        if self.events_map:
            payload["eventsMap"] = self.events_map
        return payload


@dataclass(frozen=True)
class BenchmarksLayer:
    """Comparison of observed latency/cost against public benchmarks."""

    framework: str

    def to_payload(self) -> dict:
        return {"framework": self.framework}


@dataclass(frozen=True)
class EvalsLayer:
    """Eval-gated recommendations pulled from an external eval source."""

    source: str
    api_key: Optional[str] = None

    def to_payload(self) -> dict:
        payload = {"source": self.source}
        if self.api_key:
            payload["apiKey"] = self.api_key
        return payload


OPTIONAL_LAYERS = ("runtime", "benchmarks", "evals")


@dataclass(frozen=True)
class LayerConfig:
    runtime: Optional[RuntimeLayer] = None
    benchmarks: Optional[BenchmarksLayer] = None
    evals: Optional[EvalsLayer] = None

    def enabled(self) -> List[str]:
        """Names of the enabled layers, "code" always first."""
        names = ["code"]
        for name in OPTIONAL_LAYERS:
            if getattr(self, name) is not None:
                names.append(name)
        return names

    def to_payload(self) -> dict:
        """Only enabled layers appear; disabled ones are left out entirely."""
        payload = {}
        for name in OPTIONAL_LAYERS:
            layer = getattr(self, name)
            if layer is not None:
                payload[name] = layer.to_payload()
        return payload


# ---------------------------------------------------------------------------
# ANALYSIS RESULT (produced by the PeakInfer API)
# ---------------------------------------------------------------------------


def _int(value, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _str(value, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _list_of_dicts(value) -> list:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass(frozen=True)
class Issue:
    type: str
    severity: str
    headline: str
    evidence: str = ""
    suggested_fix: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Issue":
        severity = _str(data.get("severity"), "info").lower()
        if severity not in SEVERITIES:
            severity = "info"
        return cls(
            type=_str(data.get("type"), "unknown"),
            severity=severity,
            headline=_str(data.get("headline")),
            evidence=_str(data.get("evidence")),
            suggested_fix=data.get("suggestedFix") or None,
        )


@dataclass(frozen=True)
class InferencePoint:
    id: str
    file: str
    line: int
    provider: str = ""
    model: str = ""
    issues: List[Issue] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "InferencePoint":
        return cls(
            id=_str(data.get("id")),
            file=_str(data.get("file"), "unknown"),
            line=_int(data.get("line")),
            provider=_str(data.get("provider")),
            model=_str(data.get("model")),
            issues=[Issue.from_dict(i) for i in _list_of_dicts(data.get("issues"))],
        )

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}" if self.line else self.file


@dataclass(frozen=True)
class Drift:
    type: str
    file: str = ""
    line: int = 0
    expected: str = ""
    actual: str = ""
    severity: str = "warning"

    @classmethod
    def from_dict(cls, data: dict) -> "Drift":
        return cls(
            type=_str(data.get("type"), "drift"),
            file=_str(data.get("file")),
            line=_int(data.get("line")),
            expected=_str(data.get("expected", data.get("declared"))),
            actual=_str(data.get("actual", data.get("observed"))),
            severity=_str(data.get("severity"), "warning").lower(),
        )


@dataclass(frozen=True)
class BenchmarkComparison:
    model: str
    metric: str
    yours: str
    benchmark: str
    verdict: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "BenchmarkComparison":
        return cls(
            model=_str(data.get("model"), "unknown"),
            metric=_str(data.get("metric")),
            yours=_str(data.get("yours", data.get("yourValue"))),
            benchmark=_str(data.get("benchmark", data.get("benchmarkValue"))),
            verdict=_str(data.get("verdict")),
        )


@dataclass(frozen=True)
class Insight:
    headline: str
    detail: str = ""
    severity: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Insight":
        severity = data.get("severity")
        return cls(
            headline=_str(data.get("headline", data.get("title"))),
            detail=_str(data.get("detail", data.get("description"))),
            severity=str(severity).lower() if severity else None,
        )

    @property
    def is_trivial(self) -> bool:
        return not self.headline.strip() or self.severity == "info"


@dataclass(frozen=True)
class AnalysisSummary:
    total_inference_points: int
    critical_issues: int
    warnings: int
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class AnalysisResult:
    inference_points: List[InferencePoint]
    summary: AnalysisSummary
    drifts: Optional[List[Drift]] = None
    benchmark_comparisons: Optional[List[BenchmarkComparison]] = None
    insights: List[Insight] = field(default_factory=list)
    layers_used: List[str] = field(default_factory=lambda: ["code"])

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisResult":
        points = [InferencePoint.from_dict(p) for p in _list_of_dicts(data.get("inferencePoints"))]
        all_issues = [issue for point in points for issue in point.issues]

        # Trust the service's own counts; fall back to counting what we received.
        summary_data = data.get("summary") if isinstance(data.get("summary"), dict) else {}
        summary = AnalysisSummary(
            total_inference_points=_int(summary_data.get("totalInferencePoints"), len(points)),
            critical_issues=_int(
                summary_data.get("criticalIssues"),
                sum(1 for i in all_issues if i.severity == "critical"),
            ),
            warnings=_int(
                summary_data.get("warnings"),
                sum(1 for i in all_issues if i.severity == "warning"),
            ),
            raw=summary_data,
        )

        drifts = None
        if isinstance(data.get("drifts"), list):
            drifts = [Drift.from_dict(d) for d in _list_of_dicts(data["drifts"])]

        comparisons = None
        if isinstance(data.get("benchmarkComparisons"), list):
            comparisons = [
                BenchmarkComparison.from_dict(c)
                for c in _list_of_dicts(data["benchmarkComparisons"])
            ]

        layers_used = data.get("layersUsed")
        if not isinstance(layers_used, list) or not layers_used:
            layers_used = ["code"]

        return cls(
            inference_points=points,
            summary=summary,
            drifts=drifts,
            benchmark_comparisons=comparisons,
            insights=[Insight.from_dict(i) for i in _list_of_dicts(data.get("insights"))],
            layers_used=[str(layer) for layer in layers_used],
        )

    @property
    def drift_count(self) -> int:
        return len(self.drifts) if self.drifts else 0

    def all_issues(self) -> List[tuple]:
        """(inference point, issue) pairs in file order as received."""
        return [(point, issue) for point in self.inference_points for issue in point.issues]


@dataclass(frozen=True)
class CreditState:
    consumed: int
    remaining: int
    expiring_soon: int = 0

    @classmethod
    def from_dict(cls, data) -> Optional["CreditState"]:
        if not isinstance(data, dict):
            return None
        return cls(
            consumed=_int(data.get("consumed", data.get("used"))),
            remaining=_int(data.get("remaining")),
            expiring_soon=_int(data.get("expiringSoon")),
        )


@dataclass(frozen=True)
class ErrorResult:
    message: str
    code: Optional[str] = None
    hint: Optional[str] = None
    available: Optional[int] = None
    credits_needed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict, fallback_message: str = "Unknown error") -> "ErrorResult":
        available = data.get("available")
        needed = data.get("creditsNeeded")
        return cls(
            message=_str(data.get("error") or data.get("message"), fallback_message),
            code=data.get("code") or None,
            hint=data.get("hint") or None,
            available=_int(available) if available is not None else None,
            credits_needed=_int(needed) if needed is not None else None,
        )


@dataclass(frozen=True)
class OrgStats:
    """Monthly usage totals for the token's organization."""

    analyses_run: int = 0
    inference_points_analyzed: int = 0
    critical_issues_caught: int = 0
    warnings_caught: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "OrgStats":
        month = data.get("month") if isinstance(data.get("month"), dict) else data
        return cls(
            analyses_run=_int(month.get("analysesRun", month.get("analyses"))),
            inference_points_analyzed=_int(month.get("inferencePointsAnalyzed")),
            critical_issues_caught=_int(month.get("criticalIssuesCaught")),
            warnings_caught=_int(month.get("warningsCaught")),
        )


# ---------------------------------------------------------------------------
# API OUTCOME (tagged union)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisSuccess:
    result: AnalysisResult
    credits: Optional[CreditState] = None


@dataclass(frozen=True)
class AnalysisFailure:
    error: ErrorResult

    @property
    def credits_exhausted(self) -> bool:
        return self.error.code == "CREDIT_EXHAUSTED"


AnalysisOutcome = Union[AnalysisSuccess, AnalysisFailure]
