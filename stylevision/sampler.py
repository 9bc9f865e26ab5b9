# stylevision/sampler.py
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np


@dataclass
class SampledFrame:
    """Strided RGB view of the current frame. Valid until the next sample() call."""

    ready: bool
    samples: Optional[np.ndarray] = None
    width: int = 0
    height: int = 0
    stride: int = 1

    @classmethod
    def not_ready(cls) -> "SampledFrame":
        return cls(ready=False)


class FrameSampler:
    """
    Copies frames into one reused offscreen RGB bitmap (mirrored for a
    selfie view when asked) and exposes every `stride`-th pixel.

    Frames come either from a cv2.VideoCapture-like source (BGR, via
    read()) or as arrays handed in directly.
    """

    def __init__(self, stride: int = 4, mirror: bool = True):
        self.stride = max(1, int(stride))
        self.mirror = mirror
        self._rgb: Optional[np.ndarray] = None
        self._bitmap: Optional[np.ndarray] = None

    def _ensure_buffers(self, height: int, width: int) -> None:
        shape = (height, width, 3)
        if self._bitmap is None or self._bitmap.shape != shape:
            self._rgb = np.empty(shape, dtype=np.uint8)
            self._bitmap = np.empty(shape, dtype=np.uint8)

    def sample_array(self, frame: Optional[np.ndarray], channel_order: str = "bgr") -> SampledFrame:
        if frame is None or frame.ndim != 3 or frame.shape[0] == 0 or frame.shape[1] == 0:
            return SampledFrame.not_ready()

        height, width = frame.shape[:2]
        self._ensure_buffers(height, width)
        frame = np.ascontiguousarray(frame[..., :3], dtype=np.uint8)

        if channel_order == "bgr":
            cv2.cvtColor(frame, cv2.COLOR_BGR2RGB, dst=self._rgb)
        else:
            np.copyto(self._rgb, frame)

        if self.mirror:
            cv2.flip(self._rgb, 1, dst=self._bitmap)
        else:
            np.copyto(self._bitmap, self._rgb)

        return SampledFrame(
            ready=True,
            samples=self._bitmap[:: self.stride, :: self.stride],
            width=width,
            height=height,
            stride=self.stride,
        )

    def sample(self, source) -> SampledFrame:
        """Read one frame from a cv2.VideoCapture-like source."""
        ok, frame = source.read()
        if not ok:
            return SampledFrame.not_ready()
        return self.sample_array(frame, channel_order="bgr")

    @property
    def bitmap(self) -> Optional[np.ndarray]:
        return self._bitmap
