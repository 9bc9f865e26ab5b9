# stylevision/metrics.py
"""
Prometheus metrics and /metrics endpoint for the FastAPI app.
"""

from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter()

# Analysis calls by kind (hair, color)
ANALYSIS_REQUESTS = Counter(
    "stylevision_analysis_requests_total",
    "Total number of /api/analyze requests",
    ["kind"],
)

# Every time the fixed dataset stands in for a live answer
FALLBACKS_SERVED = Counter(
    "stylevision_fallbacks_served_total",
    "Analysis results served from the fallback dataset",
    ["kind", "reason"],
)

# Backoff waits before re-sending an upstream request
UPSTREAM_RETRIES = Counter(
    "stylevision_upstream_retries_total",
    "Retries of upstream AI requests",
    ["cause"],  # rate_limit, network
)

# One per candidate model tried in an image fallback chain
MODEL_ATTEMPTS = Counter(
    "stylevision_model_attempts_total",
    "Image model attempts by model and outcome",
    ["model", "status"],
)

# Face detection frames posted by clients
DETECTION_FRAMES = Counter(
    "stylevision_detection_frames_total",
    "Frames analysed by the face detector",
    ["profile"],
)

CAPTURES_FIRED = Counter(
    "stylevision_captures_fired_total",
    "Photo captures fired",
    ["trigger"],  # auto, countdown, manual
)

# Try-on jobs currently pending
JOBS_IN_FLIGHT = Gauge(
    "stylevision_tryon_jobs_in_flight",
    "Number of virtual try-on jobs currently not finished",
)

JOB_PROCESSING_SECONDS = Histogram(
    "stylevision_tryon_job_processing_seconds",
    "Time spent processing virtual try-on jobs in seconds",
)

JOBS_COMPLETED = Counter(
    "stylevision_tryon_jobs_completed_total",
    "Total number of completed try-on jobs by status",
    ["status"],  # done, error
)


@router.get("/metrics")
def metrics() -> Response:
    """
    Expose Prometheus metrics in text format.
    """
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
