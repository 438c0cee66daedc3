from __future__ import annotations

import time
from typing import List, Optional

from fastapi import APIRouter

from ..api_models import HealthResponse, ResultsResponse, StatusResponse
from ..state import state

router = APIRouter()
router_v1 = APIRouter(prefix="/api/v1")


def _compute_warnings(last_result_age_s: Optional[float], pipeline_state: str) -> List[str]:
    """
    Warnings for /api/status.
    Thresholds: halted pipeline => pipeline_halted; no result or >10s => results_missing;
    >3s => results_stale.
    """
    warnings: List[str] = []
    if pipeline_state == "halted":
        warnings.append("pipeline_halted")
    if last_result_age_s is None or last_result_age_s > 10:
        warnings.append("results_missing")
    elif last_result_age_s > 3:
        warnings.append("results_stale")
    return warnings


def _health_status(pipeline_state: str) -> str:
    if pipeline_state in ("halted", "stopped"):
        return pipeline_state
    return "running"


@router.get("/health", response_model=HealthResponse)
@router_v1.get("/healthz", response_model=HealthResponse)
def health():
    pipeline_state, fault = state.get_pipeline_state()
    return {
        "status": _health_status(pipeline_state),
        "pipeline_state": pipeline_state,
        "fault": fault,
    }


@router.get("/results", response_model=ResultsResponse)
@router_v1.get("/results", response_model=ResultsResponse)
def results():
    """Latest decoded emotion and face results; null until the first cycle completes."""
    return state.get_results_copy()


@router.get("/status", response_model=StatusResponse)
def status():
    """
    Compact status for polling clients.
    Fields:
    - running: False once the pipeline is halted or stopped
    - last_result_age_s: seconds since the last published result (None if never)
    - cycles/dropped_ticks/empty_reads: pipeline counters
    - warnings: pipeline_halted, results_missing, results_stale
    """
    now = time.time()
    pipeline_state, fault = state.get_pipeline_state()
    sys_stats = state.get_system_stats_copy()

    last_result_ts = sys_stats.get("last_result_ts")
    last_result_age = now - last_result_ts if last_result_ts else None
    start_time = sys_stats.get("start_time") or None
    last_cycle_s = sys_stats.get("last_cycle_s")

    return {
        "running": _health_status(pipeline_state) == "running",
        "pipeline_state": pipeline_state,
        "fault": fault,
        "last_result_age_s": last_result_age,
        "uptime_seconds": int(now - start_time) if start_time else None,
        "cycles": sys_stats.get("cycles", 0),
        "dropped_ticks": sys_stats.get("dropped_ticks", 0),
        "empty_reads": sys_stats.get("empty_reads", 0),
        "last_cycle_ms": last_cycle_s * 1000.0 if last_cycle_s is not None else None,
        "warnings": _compute_warnings(last_result_age, pipeline_state),
    }
