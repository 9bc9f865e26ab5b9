"""Tests for skin classification, region estimation and oval alignment."""

import numpy as np
import pytest

from stylevision.alignment import (
    MSG_MOVE_BACK,
    MSG_MOVE_CLOSER,
    MSG_MOVE_RIGHT,
    MSG_MOVE_UP,
    MSG_NO_FACE,
    MSG_NOT_READY,
    MSG_PERFECT,
    FaceDetector,
    OvalAlignmentEvaluator,
)
from stylevision.config import DetectorConfig, OvalTarget, STRICT_SKIN_BANDS
from stylevision.face_region import FaceBox, FaceRegionEstimator
from stylevision.sampler import FrameSampler
from stylevision.skin import ColorClassifier, is_skin_tone, rgb_to_ycbcr

from helpers import FRAME_HEIGHT, FRAME_WIDTH, SKIN_RGB, make_frame


class TestColorClassifier:

    @pytest.mark.parametrize("rgb", [SKIN_RGB, (200, 150, 120), (180, 120, 90)])
    def test_skin_tones(self, rgb):
        assert is_skin_tone(*rgb)

    @pytest.mark.parametrize("rgb", [(0, 0, 255), (0, 255, 0), (20, 20, 20), (255, 255, 255)])
    def test_non_skin(self, rgb):
        assert not is_skin_tone(*rgb)

    def test_bounds_are_exclusive(self):
        y, cb, cr = rgb_to_ycbcr(*SKIN_RGB)
        assert 80 < y and 77 < cb < 127 and 133 < cr < 173

    def test_mask_matches_scalar(self):
        classifier = ColorClassifier()
        pixels = np.array([[SKIN_RGB, (0, 0, 255)], [(20, 20, 20), (200, 150, 120)]], dtype=np.uint8)
        mask = classifier.skin_mask(pixels)
        expected = [[classifier.is_skin_tone(*p) for p in row] for row in pixels.tolist()]
        assert mask.tolist() == expected

    def test_strict_bands_reject_loose_edge(self):
        # cr just above 170: inside the loose band, outside the strict one
        rgb = (230, 150, 120)
        assert is_skin_tone(*rgb)
        assert not ColorClassifier(STRICT_SKIN_BANDS).is_skin_tone(*rgb)


class TestFrameSampler:

    def test_reuses_bitmap(self):
        sampler = FrameSampler(stride=4)
        sampler.sample_array(make_frame(), channel_order="rgb")
        first = sampler.bitmap
        sampler.sample_array(make_frame(box=None), channel_order="rgb")
        assert sampler.bitmap is first

    def test_empty_frame_not_ready(self):
        sampler = FrameSampler()
        assert not sampler.sample_array(None).ready
        assert not sampler.sample_array(np.zeros((0, 0, 3), dtype=np.uint8)).ready

    def test_mirrors_horizontally(self):
        frame = make_frame(box=(0, 0, 10, FRAME_HEIGHT))
        sampled = FrameSampler(stride=1, mirror=True).sample_array(frame, channel_order="rgb")
        assert tuple(sampled.samples[0, FRAME_WIDTH - 1]) == SKIN_RGB
        assert tuple(sampled.samples[0, 0]) != SKIN_RGB

    def test_bgr_converted(self):
        frame = make_frame()[..., ::-1].copy()
        sampled = FrameSampler(stride=1, mirror=False).sample_array(frame, channel_order="bgr")
        assert tuple(sampled.samples[200, 300]) == SKIN_RGB

    def test_stride(self):
        sampled = FrameSampler(stride=8).sample_array(make_frame(), channel_order="rgb")
        assert sampled.samples.shape[:2] == (FRAME_HEIGHT // 8, FRAME_WIDTH // 8)


class TestFaceRegionEstimator:

    def _estimate(self, frame, config):
        sampled = FrameSampler(stride=config.stride, mirror=False).sample_array(frame, channel_order="rgb")
        return FaceRegionEstimator(config).estimate(sampled.samples, sampled.width, sampled.height, sampled.stride)

    def test_padded_box(self):
        config = DetectorConfig.background()
        estimate = self._estimate(make_frame(box=(240, 140, 160, 200)), config)
        assert estimate.box == FaceBox(x=220, y=120, width=196, height=236)
        assert 0.5 <= estimate.confidence <= 1.0

    def test_too_few_samples(self):
        estimate = self._estimate(make_frame(box=(300, 200, 8, 8)), DetectorConfig.background())
        assert estimate.box is None
        assert estimate.confidence == 0.0

    def test_box_clamped_to_frame(self):
        estimate = self._estimate(make_frame(box=(0, 0, 100, 100)), DetectorConfig.background())
        assert estimate.box.x == 0 and estimate.box.y == 0

    def test_sparse_skin_rejected_by_ratio(self):
        frame = make_frame(box=None)
        # scattered skin pixels spread over the whole frame
        frame[::48, ::48] = SKIN_RGB
        config = DetectorConfig.capture().with_overrides(stride=8, min_skin_samples=10)
        assert self._estimate(frame, config).box is None
        assert self._estimate(frame, config.with_overrides(min_box_skin_ratio=0.0)).box is not None


class TestOvalAlignmentEvaluator:

    def setup_method(self):
        self.evaluator = OvalAlignmentEvaluator(DetectorConfig.capture())

    def test_centered_box_is_perfect(self):
        alignment = self.evaluator.evaluate(FaceBox(220, 120, 200, 240), FRAME_WIDTH, FRAME_HEIGHT)
        assert alignment.is_in_oval
        assert alignment.message == MSG_PERFECT

    def test_deterministic(self):
        box = FaceBox(50, 30, 120, 90)
        results = {
            (a.is_in_oval, a.message)
            for a in (self.evaluator.evaluate(box, FRAME_WIDTH, FRAME_HEIGHT, OvalTarget()) for _ in range(5))
        }
        assert len(results) == 1

    def test_horizontal_hint_has_priority(self):
        # left of centre, also too high and too small
        alignment = self.evaluator.evaluate(FaceBox(90, 10, 20, 20), FRAME_WIDTH, FRAME_HEIGHT)
        assert not alignment.is_in_oval
        assert alignment.message == MSG_MOVE_RIGHT

    def test_vertical_hint(self):
        alignment = self.evaluator.evaluate(FaceBox(220, 400, 200, 80), FRAME_WIDTH, FRAME_HEIGHT)
        assert not alignment.is_in_oval
        assert alignment.message == MSG_MOVE_UP

    def test_too_small(self):
        alignment = self.evaluator.evaluate(FaceBox(300, 220, 40, 40), FRAME_WIDTH, FRAME_HEIGHT)
        assert not alignment.is_in_oval
        assert alignment.message == MSG_MOVE_CLOSER

    def test_too_large(self):
        alignment = self.evaluator.evaluate(FaceBox(0, 0, 640, 480), FRAME_WIDTH, FRAME_HEIGHT)
        assert not alignment.is_in_oval
        assert alignment.message == MSG_MOVE_BACK

    def test_custom_oval(self):
        oval = OvalTarget(center_x=0.25, center_y=0.5, radius_x=0.2, radius_y=0.3)
        alignment = self.evaluator.evaluate(FaceBox(100, 140, 120, 200), FRAME_WIDTH, FRAME_HEIGHT, oval)
        assert alignment.is_in_oval


class TestFaceDetector:

    def test_centered_face(self):
        result = FaceDetector(DetectorConfig.capture()).detect_array(make_frame(), channel_order="rgb")
        assert result.detected
        assert result.is_in_oval
        assert result.message == MSG_PERFECT
        assert result.to_dict()["faceBox"] is not None

    def test_no_face(self):
        result = FaceDetector().detect_array(make_frame(box=None), channel_order="rgb")
        assert not result.detected
        assert result.message == MSG_NO_FACE

    def test_not_ready(self):
        result = FaceDetector().detect_array(None)
        assert result.message == MSG_NOT_READY

    def test_reads_capture_source(self):
        class Source:
            def read(self):
                return True, make_frame()[..., ::-1].copy()

        assert FaceDetector(DetectorConfig.capture()).detect(Source()).is_in_oval


class TestDetectorConfig:

    def test_profiles_valid(self):
        assert DetectorConfig.background().validate()
        assert DetectorConfig.capture().validate()

    def test_invalid_oval(self):
        config = DetectorConfig().with_overrides(oval=OvalTarget(center_x=0.1, radius_x=0.25))
        assert not config.validate()

    def test_profile_lookup(self):
        assert DetectorConfig.for_profile("capture").min_box_skin_ratio == 0.15
        assert DetectorConfig.for_profile("background").stride == 4
