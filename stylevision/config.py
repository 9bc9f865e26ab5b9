# stylevision/config.py
"""
Runtime configuration.

Settings are read from the process environment on every call to
Settings.from_env(), so a credential that is missing only affects the
request that needs it. Detector tuning lives in DetectorConfig; the
numbers are empirically chosen defaults, not derived constants.
"""

import os
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from stylevision.errors import ConfigError
from stylevision.logger import console

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"
REPLICATE_API_URL = "https://api.replicate.com/v1/predictions"

DEFAULT_TEXT_MODEL = "gemini-2.0-flash"
DEFAULT_IMAGE_MODELS = [
    "gemini-2.0-flash-exp-image-generation",
    "gemini-2.0-flash-preview-image-generation",
    "gemini-2.0-flash-exp",
]


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}", setting=name) from exc


def _split_models(raw: Optional[str]) -> List[str]:
    if not raw:
        return list(DEFAULT_IMAGE_MODELS)
    models = [m.strip() for m in raw.split(",") if m.strip()]
    return models or list(DEFAULT_IMAGE_MODELS)


@dataclass
class Settings:
    gemini_api_key: Optional[str] = None
    replicate_api_key: Optional[str] = None
    hairstyle_transfer_version: Optional[str] = None
    gemini_api_base: str = GEMINI_API_BASE
    replicate_api_url: str = REPLICATE_API_URL
    text_model: str = DEFAULT_TEXT_MODEL
    image_models: List[str] = field(default_factory=lambda: list(DEFAULT_IMAGE_MODELS))
    max_retries: int = 2
    timeout_seconds: float = 60.0
    prediction_max_polls: int = 60
    prediction_poll_interval: float = 1.0
    tryon_request_gap: float = 0.5

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("NEXT_PUBLIC_GEMINI_API_KEY") or None,
            replicate_api_key=os.getenv("REPLICATE_API_KEY") or None,
            hairstyle_transfer_version=os.getenv("HAIRSTYLE_TRANSFER_VERSION") or None,
            gemini_api_base=os.getenv("GEMINI_API_BASE", GEMINI_API_BASE),
            replicate_api_url=os.getenv("REPLICATE_API_URL", REPLICATE_API_URL),
            text_model=os.getenv("GEMINI_TEXT_MODEL", DEFAULT_TEXT_MODEL),
            image_models=_split_models(os.getenv("GEMINI_IMAGE_MODELS")),
            max_retries=_env_number("AI_MAX_RETRIES", "2", int),
            timeout_seconds=_env_number("AI_TIMEOUT_SECONDS", "60", float),
            prediction_max_polls=_env_number("PREDICTION_MAX_POLLS", "60", int),
            prediction_poll_interval=_env_number("PREDICTION_POLL_INTERVAL", "1.0", float),
        )


@dataclass(frozen=True)
class SkinToneBands:
    """YCbCr window treated as skin. Bounds are exclusive."""

    y_min: float = 80.0
    cb_min: float = 77.0
    cb_max: float = 127.0
    cr_min: float = 133.0
    cr_max: float = 173.0


LOOSE_SKIN_BANDS = SkinToneBands()
STRICT_SKIN_BANDS = SkinToneBands(y_min=90.0, cb_min=85.0, cb_max=125.0, cr_min=135.0, cr_max=170.0)


@dataclass(frozen=True)
class OvalTarget:
    """Guide ellipse, as fractions of the frame size."""

    center_x: float = 0.5
    center_y: float = 0.5
    radius_x: float = 0.25
    radius_y: float = 0.35

    def in_pixels(self, frame_width: int, frame_height: int) -> Tuple[float, float, float, float]:
        return (
            self.center_x * frame_width,
            self.center_y * frame_height,
            self.radius_x * frame_width,
            self.radius_y * frame_height,
        )


@dataclass(frozen=True)
class DetectorConfig:
    bands: SkinToneBands = LOOSE_SKIN_BANDS
    stride: int = 4
    mirror: bool = True
    min_skin_samples: int = 100
    padding: int = 20
    min_confidence: float = 0.5
    # fraction of each box's sampled grid expected to be skin for confidence 1.0
    expected_skin_fraction: float = 0.1
    min_box_skin_ratio: float = 0.0

    oval: OvalTarget = OvalTarget()
    ellipse_threshold: float = 1.3
    min_size_fraction: float = 0.3
    max_size_fraction: float = 1.5
    # centre offsets tolerated before a move hint, as fractions of frame width / height
    horizontal_tolerance: float = 0.08
    vertical_tolerance: float = 0.0625

    stability_frames: int = 20
    settle_delay: float = 0.3
    countdown_steps: int = 0
    countdown_interval: float = 1.0
    tick_interval: float = 0.2
    # a gap longer than this many tick intervals resets the stability counter
    max_tick_gap_factor: float = 3.0

    @classmethod
    def background(cls) -> "DetectorConfig":
        """Always-on detector: loose bands, fine stride."""
        return cls()

    @classmethod
    def capture(cls) -> "DetectorConfig":
        """Capture guidance: tighter bands, coarser stride, in-box skin ratio gate."""
        return cls(
            bands=STRICT_SKIN_BANDS,
            stride=8,
            min_skin_samples=50,
            min_box_skin_ratio=0.15,
        )

    @classmethod
    def for_profile(cls, name: str) -> "DetectorConfig":
        if name == "capture":
            return cls.capture()
        return cls.background()

    def with_overrides(self, **changes) -> "DetectorConfig":
        return replace(self, **changes)

    def validate(self) -> bool:
        """Validate configuration values"""
        try:
            assert self.stride >= 1, "stride must be at least 1"
            assert self.oval.radius_x > 0 and self.oval.radius_y > 0, "oval radii must be positive"
            assert 0.0 <= self.oval.center_x - self.oval.radius_x, "oval leaves the frame on the left"
            assert self.oval.center_x + self.oval.radius_x <= 1.0, "oval leaves the frame on the right"
            assert 0.0 <= self.oval.center_y - self.oval.radius_y, "oval leaves the frame at the top"
            assert self.oval.center_y + self.oval.radius_y <= 1.0, "oval leaves the frame at the bottom"
            assert self.bands.cb_min < self.bands.cb_max, "Cb band is empty"
            assert self.bands.cr_min < self.bands.cr_max, "Cr band is empty"
            assert 0 < self.min_size_fraction < self.max_size_fraction, "size fractions out of order"
            assert self.ellipse_threshold > 0, "ellipse_threshold must be positive"
            assert self.stability_frames > 0, "stability_frames must be positive"
            assert 0.0 <= self.min_confidence <= 1.0, "min_confidence must be in [0, 1]"
            return True
        except AssertionError as e:
            console.log(f"[red]Detector configuration invalid: {e}[/red]")
            return False
