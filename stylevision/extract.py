# stylevision/extract.py
"""
Pull usable payloads out of generateContent responses.

Two separate concerns: JSON carried in a (maybe fenced) text part, and
an inline image carried in one of several parts. The backend has been
seen emitting both snake_case (inline_data / mime_type) and camelCase
(inlineData / mimeType) part keys, so both are read.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from stylevision.errors import ContentBlockedError, MalformedResponseError
from stylevision.utils import to_data_uri

_FENCE_RE = re.compile(r"```[\w-]*\s*([\s\S]*?)```")


@dataclass
class ImageExtraction:
    image: Optional[str] = None
    text: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.image is not None


def extract_json(text: str) -> Any:
    """Parse JSON from a fenced code block if there is one, else from the whole text."""
    if text is None:
        raise MalformedResponseError("Failed to parse response: empty text")
    match = _FENCE_RE.search(text)
    candidate = match.group(1).strip() if match else text.strip()
    try:
        return json.loads(candidate)
    except ValueError as exc:
        raise MalformedResponseError(f"Failed to parse response: {exc}") from exc


def candidate_parts(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    candidates = data.get("candidates") or []
    if not candidates:
        return []
    content = candidates[0].get("content") or {}
    return [p for p in content.get("parts") or [] if isinstance(p, dict)]


def check_blocked(data: Dict[str, Any]) -> None:
    """Raise ContentBlockedError if the prompt or the first candidate was refused."""
    reason = (data.get("promptFeedback") or {}).get("blockReason")
    if reason:
        raise ContentBlockedError(f"Request blocked: {reason}", status_code=422, payload=data.get("promptFeedback"))
    candidates = data.get("candidates") or []
    if candidates and candidates[0].get("finishReason") == "SAFETY":
        raise ContentBlockedError("Response blocked by safety filter", status_code=422)


def first_text(data: Dict[str, Any]) -> Optional[str]:
    for part in candidate_parts(data):
        text = part.get("text")
        if text:
            return text
    return None


def _inline_image(part: Dict[str, Any]) -> Optional[str]:
    inline = part.get("inline_data") or part.get("inlineData")
    if not isinstance(inline, dict) or not inline.get("data"):
        return None
    mime_type = inline.get("mime_type") or inline.get("mimeType") or "image/png"
    if not mime_type.startswith("image/"):
        return None
    return to_data_uri(mime_type, inline["data"])


def extract_image(data: Dict[str, Any]) -> ImageExtraction:
    """
    First inline image as a data URI. When there is none, the first text
    part is returned instead so the caller can show why.
    """
    parts = candidate_parts(data)
    for part in parts:
        image = _inline_image(part)
        if image:
            return ImageExtraction(image=image, text=first_text(data))
    return ImageExtraction(image=None, text=first_text(data))


def extract_analysis_json(data: Dict[str, Any]) -> Dict[str, Any]:
    """Text flow: refuse blocked answers, then parse the JSON object out of the text."""
    check_blocked(data)
    text = first_text(data)
    if not text:
        raise MalformedResponseError("No response from Gemini")
    parsed = extract_json(text)
    if not isinstance(parsed, dict):
        raise MalformedResponseError("Failed to parse response: expected a JSON object")
    return parsed
