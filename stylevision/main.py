# stylevision/main.py
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stylevision import __version__
from stylevision.alignment import FaceDetector
from stylevision.analysis import AnalysisRequest, AnalysisService
from stylevision.capture import CaptureStateMachine
from stylevision.config import DetectorConfig
from stylevision.errors import (
    ConfigError,
    MalformedResponseError,
    PollTimeoutError,
    RateLimitedError,
    StyleVisionError,
    TransientNetworkError,
    UpstreamRejectionError,
)
from stylevision.fallback_data import ADVISORY_AI, ADVISORY_FALLBACK, get_fallback
from stylevision.job_manager import JOBS, create_job
from stylevision.logger import console
from stylevision.metrics import DETECTION_FRAMES, router as metrics_router
from stylevision.models import (
    AnalyzeRequest,
    DetectFaceRequest,
    GenerateHairstyleRequest,
    GenerateStyleRequest,
    HairstyleGenRequest,
    HairstyleTransferRequest,
    VirtualTryOnRequest,
)
from stylevision.prompts import PRESET_HAIRSTYLES, style_visualization_prompt
from stylevision.utils import base64_to_pil, pil_to_numpy

app = FastAPI(title="StyleVision API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include /metrics endpoint
app.include_router(metrics_router)

# Per-client detection state: {"profile", "detector", "machine", "last_seen"}
SESSIONS: Dict[str, Dict[str, Any]] = {}
SESSION_IDLE_SECONDS = 120.0
MAX_SESSIONS = 256


def status_for(exc: StyleVisionError) -> int:
    if isinstance(exc, RateLimitedError):
        return 429
    if isinstance(exc, TransientNetworkError):
        return 503
    if isinstance(exc, PollTimeoutError):
        return 504
    if isinstance(exc, UpstreamRejectionError):
        return exc.status_code
    # ConfigError, MalformedResponseError and anything unclassified
    return 500


def error_response(exc: StyleVisionError, data: Optional[Dict[str, Any]] = None, **extra) -> JSONResponse:
    content: Dict[str, Any] = {"error": str(exc), "useFallback": True, "errorCode": exc.error_code}
    if data is not None:
        content["data"] = data
        content["advisory"] = ADVISORY_FALLBACK
    if isinstance(exc, UpstreamRejectionError) and exc.payload is not None:
        content["details"] = exc.payload
    content.update(extra)
    return JSONResponse(status_code=status_for(exc), content=content)


@app.get("/")
def read_root() -> Dict[str, str]:
    return {"status": "ok", "message": "StyleVision API", "version": __version__}


# ---- analysis ----


@app.post("/api/analyze")
async def analyze(payload: AnalyzeRequest):
    """
    Analyse a photo for hairstyle or colour recommendations.

    Body:
      {"imageSrc": "data:image/jpeg;base64,...", "analysisType": "hair" | "color"}

    Always carries a renderable result in `data`: the live analysis, or the
    fallback dataset together with the error that caused it.
    """
    request = AnalysisRequest.create(payload.imageSrc, payload.analysisType)
    console.log(f"[blue]Analysis request ({request.kind.name})[/blue]")

    try:
        service = AnalysisService()
    except ConfigError as e:
        return error_response(e, data=get_fallback(request.kind).to_payload())

    result, error = await service.analyze_or_fallback(request)
    if error is not None:
        return error_response(error, data=result.to_payload())
    return {"success": True, "data": result.to_payload(), "advisory": ADVISORY_AI}


# ---- face detection ----


def _prune_sessions(now: float) -> None:
    """Drop idle sessions, then the oldest ones until a new session fits."""
    for sid in [sid for sid, s in SESSIONS.items() if now - s["last_seen"] > SESSION_IDLE_SECONDS]:
        del SESSIONS[sid]
    while SESSIONS and len(SESSIONS) >= MAX_SESSIONS:
        del SESSIONS[min(SESSIONS, key=lambda sid: SESSIONS[sid]["last_seen"])]


def _session_for(session_id: Optional[str], profile: str):
    now = time.monotonic()
    if session_id and session_id in SESSIONS:
        SESSIONS[session_id]["last_seen"] = now
        return session_id, SESSIONS[session_id]

    _prune_sessions(now)
    session_id = session_id or uuid.uuid4().hex
    config = DetectorConfig.for_profile(profile)
    machine = CaptureStateMachine(config)
    machine.start()
    SESSIONS[session_id] = {
        "profile": profile,
        "detector": FaceDetector(config),
        "machine": machine,
        "last_seen": now,
    }
    console.log(f"[blue]Detection session {session_id[:8]} started ({profile})[/blue]")
    return session_id, SESSIONS[session_id]


@app.post("/api/detect-face")
async def detect_face(payload: DetectFaceRequest):
    """
    Run the skin-tone detector on one video frame and advance the session's
    auto-capture counter. When `shouldCapture` is true the client waits
    `settleDelayMs` and takes the photo.
    """
    try:
        frame = pil_to_numpy(base64_to_pil(payload.image))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session_id, session = _session_for(payload.sessionId, payload.profile)
    DETECTION_FRAMES.labels(profile=session["profile"]).inc()

    result = session["detector"].detect_array(frame, channel_order="rgb")
    machine: CaptureStateMachine = session["machine"]

    should_capture = machine.tick(result.is_in_oval)
    if should_capture:
        machine.fire("auto")
        # a captured session is finished; the next frame under this id starts over
        SESSIONS.pop(session_id, None)
        console.log(f"[green]Session {session_id[:8]} stable, capture fired[/green]")

    return {
        **result.to_dict(),
        **machine.state.to_dict(),
        "sessionId": session_id,
        "state": machine.phase.value,
        "shouldCapture": should_capture,
        "settleDelayMs": int(machine.config.settle_delay * 1000),
    }


@app.post("/api/detect-face/{session_id}/reset")
async def reset_detection(session_id: str):
    session = SESSIONS.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="session not found")
    session["machine"].start()
    return {"sessionId": session_id, "state": session["machine"].phase.value}


@app.delete("/api/detect-face/{session_id}")
async def end_detection(session_id: str):
    if SESSIONS.pop(session_id, None) is None:
        raise HTTPException(status_code=404, detail="session not found")
    console.log(f"[blue]Detection session {session_id[:8]} ended[/blue]")
    return {"sessionId": session_id, "deleted": True}


# ---- image generation ----


async def _render(user_photo: str, prompt: str, hairstyle: str):
    try:
        outcome = await AnalysisService().visualize(user_photo, prompt)
    except ConfigError as e:
        return error_response(e)

    if outcome.success:
        return {"success": True, "image": outcome.image, "hairstyle": hairstyle, "model": outcome.model}
    if outcome.text:
        return {
            "success": False,
            "message": "Image generation not available for this request",
            "textDescription": outcome.text,
        }
    return error_response(outcome.last_error or MalformedResponseError("No image generated"))


@app.post("/api/generate-style")
async def generate_style(payload: GenerateStyleRequest):
    console.log(f"[blue]Style visualisation: {payload.hairstyleName}[/blue]")
    prompt = style_visualization_prompt(
        payload.hairstyleName, payload.hairstyleDescription, payload.visualDescription
    )
    return await _render(payload.userPhoto, prompt, payload.hairstyleName)


@app.get("/api/hairstyles")
def list_hairstyles():
    return {"hairstyles": [{"index": i, "name": h["name"]} for i, h in enumerate(PRESET_HAIRSTYLES)]}


@app.post("/api/hairstyle-gen")
async def hairstyle_gen(payload: HairstyleGenRequest):
    index = payload.hairstyleIndex or 0
    if not 0 <= index < len(PRESET_HAIRSTYLES):
        index = 0
    preset = PRESET_HAIRSTYLES[index]
    console.log(f"[blue]Preset hairstyle {index}: {preset['name']}[/blue]")
    return await _render(payload.userPhoto, preset["prompt"], preset["name"])


@app.post("/api/generate-hairstyle")
async def generate_hairstyle(payload: GenerateHairstyleRequest):
    """
    Analyse the face, pick six flattering hairstyles and render them.

    Body:
      {"userPhoto": "data:image/jpeg;base64,...", "styleIndex": 0-5 (optional)}

    With `styleIndex` only that style is rendered.
    """
    try:
        return await AnalysisService().generate_hairstyles(payload.userPhoto, payload.styleIndex)
    except ConfigError as e:
        return error_response(e)


# ---- virtual try-on jobs ----


@app.post("/api/virtual-tryon/submit")
async def submit_tryon(payload: VirtualTryOnRequest):
    """
    Start a try-on job and immediately return its id.

    Body:
      {"userPhoto": "data:image/jpeg;base64,...", "analysisType": "hair" | "color"}
    """
    job_id = create_job(payload.model_dump())
    console.log(f"[blue]Received try-on job {job_id}[/blue]")
    return JSONResponse(status_code=202, content={"id": job_id, "status": "pending"})


@app.get("/api/virtual-tryon/status/{job_id}")
async def get_tryon_status(job_id: str):
    job = JOBS.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="job not found")

    status = job.get("status")
    if status == "pending":
        return {"id": job_id, "status": "pending"}
    if status == "error":
        return {"id": job_id, "status": "error", "error": job.get("error")}

    # status == "done"
    return {"id": job_id, "status": "done", **job["result"]}


# ---- hairstyle transfer ----


@app.post("/api/hairstyle-transfer")
async def hairstyle_transfer(payload: HairstyleTransferRequest):
    try:
        output = await AnalysisService().hairstyle_transfer(payload.userPhoto, payload.hairstyleRef)
    except ConfigError as e:
        return error_response(e, needsKey=e.setting == "REPLICATE_API_KEY")
    except StyleVisionError as e:
        console.log(f"[red]Hairstyle transfer failed: {e}[/red]")
        return error_response(e)
    return {"success": True, "image": output}
