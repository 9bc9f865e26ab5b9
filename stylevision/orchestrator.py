# stylevision/orchestrator.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from stylevision.errors import (
    ContentBlockedError,
    MalformedResponseError,
    StyleVisionError,
    TransientNetworkError,
    UpstreamRejectionError,
)
from stylevision.extract import check_blocked, extract_image
from stylevision.gemini import GeminiClient
from stylevision.logger import console
from stylevision.metrics import MODEL_ATTEMPTS


class AttemptStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED_TRANSIENT = "failedTransient"
    FAILED_FATAL = "failedFatal"


@dataclass
class AIModelAttempt:
    model_id: str
    status: AttemptStatus = AttemptStatus.PENDING
    raw_response: Optional[Dict[str, Any]] = None
    error: Optional[StyleVisionError] = None


@dataclass
class FallbackOutcome:
    image: Optional[str] = None
    text: Optional[str] = None
    model: Optional[str] = None
    attempts: List[AIModelAttempt] = field(default_factory=list)
    last_error: Optional[StyleVisionError] = None

    @property
    def success(self) -> bool:
        return self.model is not None


class ModelFallbackOrchestrator:
    """
    Sends one request body to each candidate model in turn until one of
    them returns an image (or, with require_image=False, any text).

    Models are tried strictly one after another. A failing model is not
    retried here; only fetch_with_retry's transient backoff applies
    inside a single attempt. ConfigError is not absorbed.
    """

    def __init__(self, client: GeminiClient, models: Sequence[str], require_image: bool = True):
        if not models:
            raise ValueError("at least one candidate model is required")
        self.client = client
        self.models = list(models)
        self.require_image = require_image

    def _fail(self, attempt: AIModelAttempt, status: AttemptStatus, error: StyleVisionError) -> None:
        attempt.status = status
        attempt.error = error
        MODEL_ATTEMPTS.labels(model=attempt.model_id, status=status.value).inc()
        console.log(f"[yellow]Model {attempt.model_id} failed ({status.value}): {error}[/yellow]")

    async def run(self, body: Dict[str, Any]) -> FallbackOutcome:
        attempts: List[AIModelAttempt] = []
        last_error: Optional[StyleVisionError] = None
        last_text: Optional[str] = None

        for model in self.models:
            attempt = AIModelAttempt(model_id=model)
            attempts.append(attempt)

            try:
                data = await self.client.generate(model, body)
            except TransientNetworkError as exc:
                self._fail(attempt, AttemptStatus.FAILED_TRANSIENT, exc)
                last_error = exc
                continue
            except (UpstreamRejectionError, MalformedResponseError) as exc:
                self._fail(attempt, AttemptStatus.FAILED_FATAL, exc)
                last_error = exc
                continue

            attempt.raw_response = data
            try:
                check_blocked(data)
            except ContentBlockedError as exc:
                self._fail(attempt, AttemptStatus.FAILED_FATAL, exc)
                last_error = exc
                continue

            extraction = extract_image(data)
            if extraction.found or (not self.require_image and extraction.text):
                attempt.status = AttemptStatus.SUCCESS
                MODEL_ATTEMPTS.labels(model=model, status=attempt.status.value).inc()
                console.log(f"[green]Model {model} produced a result[/green]")
                return FallbackOutcome(
                    image=extraction.image,
                    text=extraction.text,
                    model=model,
                    attempts=attempts,
                )

            if extraction.text:
                # text-only answer to an image request: usually a refusal or an explanation
                last_text = extraction.text
                error = MalformedResponseError(f"{model} returned text only: {extraction.text[:200]}")
            else:
                error = MalformedResponseError(f"{model} returned no image")
            self._fail(attempt, AttemptStatus.FAILED_FATAL, error)
            last_error = error

        console.log(f"[red]All {len(self.models)} candidate models failed[/red]")
        return FallbackOutcome(text=last_text, attempts=attempts, last_error=last_error)
