"""
Stage 2: Call Analysis API — PeakInfer Action

PURPOSE:
    Send the collected files to the PeakInfer API and turn whatever comes back
    into either an AnalysisSuccess or an AnalysisFailure. All of the actual
    analysis (inference-point detection, issue severity, runtime drift,
    benchmark comparison) happens server-side; this stage is a forwarder.

    A second, read-only call fetches the organization's usage for the month.
    It only decorates the "credits exhausted" comment, so it is best-effort.

CALLED BY:
    action_main.py — passes the PeakInfer token, the files from Stage 1, the
    PR context, and the layer bundle built from the action inputs.

EXTERNAL APIS USED:
    - POST https://www.peakinfer.com/api/analyze (Bearer token)
    - GET  https://www.peakinfer.com/api/stats   (Bearer token)

DESIGN DECISIONS:
    - One attempt, no retry. A failed analysis becomes an error comment and a
      failed check; re-running the workflow is the retry.
    - No client-side timeout on the analyze call. Large PRs can take a while
      server-side and the job's own `timeout-minutes` bounds the run.
    - Disabled layers are left out of the payload entirely rather than sent as
      false/null, so the service can tell "not configured" from "off".
    - We never raise for service or transport failures. Everything becomes an
      AnalysisFailure with a message the error comment can show.
"""

from typing import List, Optional

import requests

from .logging import get_logger
from .models import (
    AnalysisFailure,
    AnalysisOutcome,
    AnalysisResult,
    AnalysisSuccess,
    CollectedFile,
    CreditState,
    ErrorResult,
    LayerConfig,
    OrgStats,
    RunContext,
)


logger = get_logger("api")

PEAKINFER_API = "https://www.peakinfer.com/api"
STATS_TIMEOUT_SECONDS = 15


def call_analysis_api(
    token: str,
    files: List[CollectedFile],
    context: RunContext,
    layers: LayerConfig,
    api_url: str = PEAKINFER_API,
) -> AnalysisOutcome:
    """
    Run one analysis request against the PeakInfer API.

    This is the main public function in this file; fetch_stats() below is the
    optional companion call.

    Args:
        token: PeakInfer API token (from the `token` input)
        files: Files collected by Stage 1
        context: Repository, PR number and head SHA
        layers: Optional layer bundle; only enabled layers are sent
        api_url: Base URL of the API

    Returns:
        AnalysisSuccess when the API answered 2xx with an `analysis` object,
        AnalysisFailure for anything else.
    """
    payload = build_request_payload(files, context, layers)

    try:
        response = requests.post(
            f"{api_url}/analyze",
            headers=_auth_headers(token),
            json=payload,
        )
    except requests.RequestException as e:
        return AnalysisFailure(
            error=ErrorResult(message=f"Could not reach PeakInfer API: {e}", code="NETWORK_ERROR")
        )

    data = _parse_json_body(response)

    if not response.ok:
        if data is None:
            return AnalysisFailure(
                error=ErrorResult(
                    message=f"PeakInfer API returned HTTP {response.status_code}: "
                    f"{response.text[:200]}"
                )
            )
        return AnalysisFailure(
            error=ErrorResult.from_dict(data, f"PeakInfer API returned HTTP {response.status_code}")
        )

    # The service reports some failures (e.g. credit exhaustion) with a 2xx
    # status and an `error` key instead of an analysis.
    if data is not None and "error" in data:
        return AnalysisFailure(
            error=ErrorResult.from_dict(data, "PeakInfer API returned an error")
        )

    if data is None or not isinstance(data.get("analysis"), dict):
        return AnalysisFailure(
            error=ErrorResult(
                message="PeakInfer API returned a response without an analysis result",
                code="INVALID_RESPONSE",
            )
        )

    return AnalysisSuccess(
        result=AnalysisResult.from_dict(data["analysis"]),
        credits=CreditState.from_dict(data.get("credits")),
    )


def fetch_stats(token: str, api_url: str = PEAKINFER_API) -> Optional[OrgStats]:
    """
    Fetch this month's usage totals. Returns None on any failure; callers
    fall back to zeroed stats.
    """
    try:
        response = requests.get(
            f"{api_url}/stats",
            headers=_auth_headers(token),
            timeout=STATS_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.debug(f"Stats fetch failed: {e}")
        return None

    if not isinstance(data, dict):
        logger.debug("Stats response was not a JSON object")
        return None
    return OrgStats.from_dict(data)


def build_request_payload(
    files: List[CollectedFile], context: RunContext, layers: LayerConfig
) -> dict:
    """The JSON body for POST /analyze."""
    return {
        "files": [f.to_payload() for f in files],
        "repo": context.repo,
        "prNumber": context.pr_number,
        "sha": context.sha,
        "layers": layers.to_payload(),
    }


# ---------------------------------------------------------------------------
# PRIVATE HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def _auth_headers(token: str) -> dict:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {token}",
    }


def _parse_json_body(response) -> Optional[dict]:
    """The body as a dict, or None if it isn't a JSON object."""
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
