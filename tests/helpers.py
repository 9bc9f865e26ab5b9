"""Frame builders and fake HTTP helpers shared by the stylevision tests."""

import json

import httpx
import numpy as np

SKIN_RGB = (220, 170, 140)
BACKGROUND_RGB = (0, 0, 255)

FRAME_WIDTH = 640
FRAME_HEIGHT = 480


def make_frame(box=(240, 140, 160, 200), width=FRAME_WIDTH, height=FRAME_HEIGHT):
    """RGB frame: blue background with one skin-coloured rectangle (x, y, w, h), or none."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :] = BACKGROUND_RGB
    if box is not None:
        x, y, w, h = box
        frame[y:y + h, x:x + w] = SKIN_RGB
    return frame


def recording_sleep(calls):
    async def sleep(seconds):
        calls.append(seconds)
    return sleep


def gemini_text(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}


def gemini_image(b64="aW1hZ2U=", mime_type="image/png", text=None):
    parts = []
    if text:
        parts.append({"text": text})
    parts.append({"inlineData": {"mimeType": mime_type, "data": b64}})
    return {"candidates": [{"content": {"parts": parts}}]}


def json_response(status_code, payload):
    return httpx.Response(
        status_code, content=json.dumps(payload).encode(), headers={"content-type": "application/json"}
    )


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
