# stylevision/utils.py
import base64
import binascii
import io
import re
from typing import Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

_DATA_URI_RE = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)


def split_data_uri(image_src: str, default_mime: str = "image/jpeg") -> Tuple[str, str]:
    """
    Accepts either raw base64 or a data URI (data:image/png;base64,...).
    Returns (mime_type, base64_payload).
    """
    match = _DATA_URI_RE.match(image_src.strip())
    if match:
        return match.group(1), match.group(2)
    return default_mime, image_src.strip()


def to_data_uri(mime_type: str, b64: str) -> str:
    return f"data:{mime_type};base64,{b64}"


def base64_to_pil(b64: str) -> Image.Image:
    """Decode raw base64 or a data URI into an RGB PIL image."""
    _, payload = split_data_uri(b64)
    try:
        data = base64.b64decode(payload)
        return Image.open(io.BytesIO(data)).convert("RGB")
    except (binascii.Error, UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"image could not be decoded: {exc}") from exc


def pil_to_numpy(img: Image.Image) -> np.ndarray:
    """Return H x W x 3 uint8 array (RGB)."""
    return np.asarray(img, dtype=np.uint8)


def numpy_to_base64_png(image_np: np.ndarray) -> str:
    """Convert an RGB numpy image to data:image/png;base64,..."""
    img = Image.fromarray(image_np.astype("uint8"), "RGB")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return to_data_uri("image/png", base64.b64encode(buf.getvalue()).decode("ascii"))
