# stylevision/alignment.py
"""
Oval alignment and the per-frame face detector.

OvalAlignmentEvaluator answers two questions about a FaceBox: is its
centre inside the guide ellipse, and is it a sensible size for it. The
hint message comes from a fixed priority list (horizontal, vertical,
size) so identical inputs always produce the same hint.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from stylevision.config import DetectorConfig, OvalTarget
from stylevision.face_region import FaceBox, FaceRegionEstimator
from stylevision.sampler import FrameSampler

MSG_PERFECT = "Perfect! Hold still..."
MSG_MOVE_RIGHT = "Move right"
MSG_MOVE_LEFT = "Move left"
MSG_MOVE_DOWN = "Move down"
MSG_MOVE_UP = "Move up"
MSG_MOVE_CLOSER = "Move closer"
MSG_MOVE_BACK = "Move back"
MSG_ALMOST = "Almost there, align your face with the oval"
MSG_NO_FACE = "Position your face in the oval"
MSG_NOT_READY = "Waiting for camera..."


@dataclass
class Alignment:
    is_in_oval: bool
    message: str
    ellipse_value: float
    size_ok: bool


@dataclass
class DetectionResult:
    detected: bool
    face_box: Optional[FaceBox]
    is_in_oval: bool
    message: str
    confidence: float

    @classmethod
    def nothing(cls, message: str = MSG_NO_FACE) -> "DetectionResult":
        return cls(detected=False, face_box=None, is_in_oval=False, message=message, confidence=0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detected": self.detected,
            "faceBox": self.face_box.to_dict() if self.face_box else None,
            "isInOval": self.is_in_oval,
            "message": self.message,
            "confidence": round(self.confidence, 3),
        }


class OvalAlignmentEvaluator:
    def __init__(self, config: DetectorConfig):
        self.config = config

    def evaluate(
        self,
        box: FaceBox,
        frame_width: int,
        frame_height: int,
        oval: Optional[OvalTarget] = None,
    ) -> Alignment:
        cfg = self.config
        oval = oval or cfg.oval
        cx, cy, rx, ry = oval.in_pixels(frame_width, frame_height)
        fx, fy = box.center

        dx = (fx - cx) / rx
        dy = (fy - cy) / ry
        ellipse_value = dx * dx + dy * dy
        inside = ellipse_value <= cfg.ellipse_threshold

        minor = min(2 * rx, 2 * ry)
        size = max(box.width, box.height)
        too_small = size < cfg.min_size_fraction * minor
        too_large = size > cfg.max_size_fraction * minor
        size_ok = not (too_small or too_large)

        is_in_oval = inside and size_ok
        if is_in_oval:
            message = MSG_PERFECT
        else:
            h_tol = cfg.horizontal_tolerance * frame_width
            v_tol = cfg.vertical_tolerance * frame_height
            # frame is mirrored, so a face left of centre must move right
            if fx < cx - h_tol:
                message = MSG_MOVE_RIGHT
            elif fx > cx + h_tol:
                message = MSG_MOVE_LEFT
            elif fy < cy - v_tol:
                message = MSG_MOVE_DOWN
            elif fy > cy + v_tol:
                message = MSG_MOVE_UP
            elif too_small:
                message = MSG_MOVE_CLOSER
            elif too_large:
                message = MSG_MOVE_BACK
            else:
                message = MSG_ALMOST

        return Alignment(is_in_oval=is_in_oval, message=message, ellipse_value=ellipse_value, size_ok=size_ok)


class FaceDetector:
    """FrameSampler -> FaceRegionEstimator -> OvalAlignmentEvaluator for one frame."""

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config or DetectorConfig.background()
        self.sampler = FrameSampler(stride=self.config.stride, mirror=self.config.mirror)
        self.estimator = FaceRegionEstimator(self.config)
        self.evaluator = OvalAlignmentEvaluator(self.config)

    def detect_array(self, frame: Optional[np.ndarray], channel_order: str = "bgr") -> DetectionResult:
        sampled = self.sampler.sample_array(frame, channel_order=channel_order)
        return self._detect_sampled(sampled)

    def detect(self, source) -> DetectionResult:
        return self._detect_sampled(self.sampler.sample(source))

    def _detect_sampled(self, sampled) -> DetectionResult:
        if not sampled.ready:
            return DetectionResult.nothing(MSG_NOT_READY)

        estimate = self.estimator.estimate(sampled.samples, sampled.width, sampled.height, sampled.stride)
        if estimate.box is None:
            return DetectionResult.nothing()

        alignment = self.evaluator.evaluate(estimate.box, sampled.width, sampled.height)
        return DetectionResult(
            detected=True,
            face_box=estimate.box,
            is_in_oval=alignment.is_in_oval,
            message=alignment.message,
            confidence=estimate.confidence,
        )
