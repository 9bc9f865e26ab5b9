# stylevision/skin.py
"""
YCbCr skin-tone classification.

A cheap colour-space heuristic, not a face model: it runs on a sampled
subset of every video frame, so both the scalar and the vectorised form
use the same luma/chroma formulas and the same band test.
"""

from typing import Tuple

import numpy as np

from stylevision.config import LOOSE_SKIN_BANDS, SkinToneBands


def rgb_to_ycbcr(r: float, g: float, b: float) -> Tuple[float, float, float]:
    y = 0.299 * r + 0.587 * g + 0.114 * b
    cb = 128 - 0.168736 * r - 0.331264 * g + 0.5 * b
    cr = 128 + 0.5 * r - 0.418688 * g - 0.081312 * b
    return y, cb, cr


class ColorClassifier:
    def __init__(self, bands: SkinToneBands = LOOSE_SKIN_BANDS):
        self.bands = bands

    def _in_bands(self, y, cb, cr):
        b = self.bands
        return (y > b.y_min) & (cb > b.cb_min) & (cb < b.cb_max) & (cr > b.cr_min) & (cr < b.cr_max)

    def is_skin_tone(self, r: float, g: float, b: float) -> bool:
        return bool(self._in_bands(*rgb_to_ycbcr(r, g, b)))

    def skin_mask(self, rgb: np.ndarray) -> np.ndarray:
        """Boolean H x W mask for an H x W x 3 (or more channels) RGB array."""
        pixels = rgb[..., :3].astype(np.float32)
        r, g, b = pixels[..., 0], pixels[..., 1], pixels[..., 2]
        return self._in_bands(*rgb_to_ycbcr(r, g, b))


def is_skin_tone(r: float, g: float, b: float, bands: SkinToneBands = LOOSE_SKIN_BANDS) -> bool:
    return ColorClassifier(bands).is_skin_tone(r, g, b)
