# stylevision/gemini.py
"""
Outbound calls to the generative-AI backend.

fetch_with_retry() is the only place that sleeps between attempts:
HTTP 429 and transport failures back off 1s, 2s, 4s, ... for at most
`max_retries` extra attempts; every other status is handed back to the
caller untouched so it can classify the failure itself.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from stylevision.config import Settings
from stylevision.errors import (
    ConfigError,
    MalformedResponseError,
    RateLimitedError,
    TransientNetworkError,
    UpstreamRejectionError,
)
from stylevision.logger import console
from stylevision.metrics import UPSTREAM_RETRIES

SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]

ANALYSIS_GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 8192,
}


@dataclass(frozen=True)
class InlineImage:
    mime_type: str
    data: str


def build_request(
    prompt: str,
    image: Optional[InlineImage] = None,
    generation_config: Optional[Dict[str, Any]] = None,
    with_safety: bool = True,
) -> Dict[str, Any]:
    """Assemble a generateContent body: prompt text first, then the photo."""
    parts: List[Dict[str, Any]] = [{"text": prompt}]
    if image is not None:
        parts.append({"inline_data": {"mime_type": image.mime_type, "data": image.data}})

    body: Dict[str, Any] = {
        "contents": [{"parts": parts}],
        "generationConfig": dict(generation_config or ANALYSIS_GENERATION_CONFIG),
    }
    if with_safety:
        body["safetySettings"] = [dict(s) for s in SAFETY_SETTINGS]
    return body


def image_edit_config(temperature: float = 0.9) -> Dict[str, Any]:
    return {"temperature": temperature, "responseModalities": ["TEXT", "IMAGE"]}


async def fetch_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    max_retries: int = 2,
    sleep: Callable = asyncio.sleep,
    **kwargs,
) -> httpx.Response:
    """
    Send a request, retrying on 429 and transport errors.

    Returns the final response (which may itself be a 429 once retries
    are used up). Raises TransientNetworkError if the last attempt could
    not reach the server at all.
    """
    attempt = 0
    while True:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            if attempt >= max_retries:
                console.log(f"[red]Network error on attempt {attempt + 1}, giving up: {exc}[/red]")
                raise TransientNetworkError(f"Network error after {attempt + 1} attempts: {exc}") from exc
            wait = 2 ** attempt
            UPSTREAM_RETRIES.labels(cause="network").inc()
            console.log(f"[yellow]Network error on attempt {attempt + 1} ({exc}); retrying in {wait}s[/yellow]")
            await sleep(wait)
            attempt += 1
            continue

        if response.status_code == 429 and attempt < max_retries:
            wait = 2 ** attempt
            UPSTREAM_RETRIES.labels(cause="rate_limit").inc()
            console.log(f"[yellow]Rate limited on attempt {attempt + 1}; retrying in {wait}s[/yellow]")
            await sleep(wait)
            attempt += 1
            continue

        return response


def _error_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:500]


class GeminiClient:
    def __init__(self, settings: Settings, http: httpx.AsyncClient, sleep: Callable = asyncio.sleep):
        self.settings = settings
        self.http = http
        self.sleep = sleep

    def url_for(self, model: str) -> str:
        return f"{self.settings.gemini_api_base}/{model}:generateContent"

    async def generate(self, model: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST one generateContent request and return the decoded JSON body."""
        if not self.settings.gemini_api_key:
            raise ConfigError("API key not configured", setting="GEMINI_API_KEY")

        response = await fetch_with_retry(
            self.http,
            "POST",
            self.url_for(model),
            max_retries=self.settings.max_retries,
            sleep=self.sleep,
            params={"key": self.settings.gemini_api_key},
            json=body,
        )

        if response.status_code == 429:
            raise RateLimitedError("Rate limit exceeded. Please wait a moment and try again.")
        if response.status_code >= 400:
            payload = _error_payload(response)
            console.log(f"[red]Gemini {model} error {response.status_code}: {str(payload)[:200]}[/red]")
            raise UpstreamRejectionError(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"{model} returned a non-JSON body") from exc
