# stylevision/face_region.py
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from stylevision.config import DetectorConfig
from stylevision.skin import ColorClassifier


@dataclass(frozen=True)
class FaceBox:
    x: int
    y: int
    width: int
    height: int

    @property
    def center(self):
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    @property
    def area(self) -> int:
        return self.width * self.height

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class RegionEstimate:
    skin_pixel_count: int
    box: Optional[FaceBox]
    confidence: float


class FaceRegionEstimator:
    """Bounding box of skin-tone samples, padded and clamped to the frame."""

    def __init__(self, config: DetectorConfig):
        self.config = config
        self.classifier = ColorClassifier(config.bands)

    def estimate(self, samples: np.ndarray, width: int, height: int, stride: int) -> RegionEstimate:
        mask = self.classifier.skin_mask(samples)
        rows, cols = np.nonzero(mask)
        count = int(rows.size)

        if count <= self.config.min_skin_samples:
            return RegionEstimate(skin_pixel_count=count, box=None, confidence=0.0)

        pad = self.config.padding
        min_x, max_x = int(cols.min()) * stride, int(cols.max()) * stride
        min_y, max_y = int(rows.min()) * stride, int(rows.max()) * stride

        x0 = max(0, min_x - pad)
        y0 = max(0, min_y - pad)
        x1 = min(width, max_x + pad)
        y1 = min(height, max_y + pad)
        box = FaceBox(x=x0, y=y0, width=x1 - x0, height=y1 - y0)

        if self.config.min_box_skin_ratio > 0:
            r0, r1 = y0 // stride, -(-y1 // stride)
            c0, c1 = x0 // stride, -(-x1 // stride)
            in_box = mask[r0:r1, c0:c1]
            ratio = float(in_box.mean()) if in_box.size else 0.0
            if ratio < self.config.min_box_skin_ratio:
                return RegionEstimate(skin_pixel_count=count, box=None, confidence=0.0)

        expected = box.area * self.config.expected_skin_fraction / float(stride * stride)
        confidence = min(1.0, count / expected) if expected > 0 else 1.0
        # once a box exists the reported confidence never drops below the floor
        confidence = max(confidence, self.config.min_confidence)

        return RegionEstimate(skin_pixel_count=count, box=box, confidence=confidence)
