# stylevision/job_manager.py
"""
Job queue management for virtual try-on requests.
Handles job creation, scheduling, and status tracking.
"""

import asyncio
import uuid
from typing import Dict, Any, Optional

from stylevision.analysis import AnalysisService
from stylevision.logger import console
from stylevision.metrics import JOB_PROCESSING_SECONDS, JOBS_COMPLETED, JOBS_IN_FLIGHT

# In-memory job store, lives as long as the process
JOBS: Dict[str, Dict[str, Any]] = {}


async def process_job(job_id: str, payload: Dict[str, Any], service: Optional[AnalysisService] = None):
    """
    Background worker: analysis (with fallback) followed by one rendering per
    recommendation.

    Args:
        job_id: Unique job identifier
        payload: {"userPhoto": data URI, "analysisType": "hair" | "color"}
        service: AnalysisService to use; a fresh one reading the environment if None
    """
    console.log(f"[yellow]Starting try-on processing for job {job_id}[/yellow]")
    try:
        service = service or AnalysisService()

        # Time the job processing
        with JOB_PROCESSING_SECONDS.time():
            result = await service.virtual_tryon(payload["userPhoto"], payload.get("analysisType"))

        JOBS[job_id]["status"] = "done"
        JOBS[job_id]["result"] = dict(result, success=True)

        JOBS_COMPLETED.labels(status="done").inc()
        console.log(f"[green]Job {job_id} done.[/green]")

    except Exception as e:
        # a background task has nobody to raise to; the status endpoint reports it
        JOBS[job_id]["status"] = "error"
        JOBS[job_id]["error"] = str(e)

        JOBS_COMPLETED.labels(status="error").inc()
        console.log(f"[red]Job {job_id} failed: {e}[/red]")

    finally:
        JOBS_IN_FLIGHT.dec()


def create_job(payload: Dict[str, Any], service: Optional[AnalysisService] = None) -> str:
    """
    Create job entry and schedule async background task.

    Returns:
        job_id: Unique identifier for tracking job status
    """
    job_id = uuid.uuid4().hex
    JOBS[job_id] = {"status": "pending", "analysisType": payload.get("analysisType")}

    JOBS_IN_FLIGHT.inc()

    loop = asyncio.get_event_loop()
    loop.create_task(process_job(job_id, payload, service=service))

    return job_id
