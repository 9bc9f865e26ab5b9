# stylevision/capture.py
"""
Auto-capture state machine and camera stream ownership.

CaptureStateMachine is plain synchronous state: it is fed one alignment
verdict per detection tick and says when the stability threshold is hit.
CameraSession owns the hardware stream. CaptureLoop drives both on an
asyncio schedule and tears the stream down when the capture fires.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import cv2
import numpy as np

from stylevision.alignment import MSG_NOT_READY, DetectionResult, FaceDetector
from stylevision.config import DetectorConfig
from stylevision.errors import CameraError
from stylevision.logger import console
from stylevision.metrics import CAPTURES_FIRED


class CapturePhase(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    STABILIZING = "stabilizing"
    COUNTDOWN = "countdown"
    MANUAL_OVERRIDE = "manual_override"
    CAPTURED = "captured"


@dataclass
class CaptureState:
    consecutive_in_oval_frames: int = 0
    auto_capturing: bool = False
    countdown: Optional[int] = None

    def to_dict(self):
        return {
            "consecutiveInOvalFrames": self.consecutive_in_oval_frames,
            "autoCapturing": self.auto_capturing,
            "countdown": self.countdown,
        }


class CaptureStateMachine:
    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        on_capture: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or DetectorConfig.capture()
        self.on_capture = on_capture
        self.clock = clock
        self.phase = CapturePhase.IDLE
        self.state = CaptureState()
        self.trigger: Optional[str] = None
        self._last_tick_at: Optional[float] = None

    @property
    def captured(self) -> bool:
        return self.phase == CapturePhase.CAPTURED

    def start(self) -> None:
        """Camera stream became active: (re)enter tracking with a clean counter."""
        self.phase = CapturePhase.TRACKING
        self.state = CaptureState()
        self.trigger = None
        self._last_tick_at = None

    def reset(self) -> None:
        self.phase = CapturePhase.IDLE
        self.state = CaptureState()
        self.trigger = None
        self._last_tick_at = None

    def tick(self, is_in_oval: bool, now: Optional[float] = None) -> bool:
        """
        Feed one detection verdict. Returns True on the tick that reaches
        the stability threshold; the caller then settles and fires.
        """
        if self.phase != CapturePhase.TRACKING:
            return False

        now = self.clock() if now is None else now
        max_gap = self.config.tick_interval * self.config.max_tick_gap_factor
        if self._last_tick_at is not None and now - self._last_tick_at > max_gap:
            # ticks were dropped (backgrounded tab, stalled camera): start over
            self.state.consecutive_in_oval_frames = 0
        self._last_tick_at = now

        if not is_in_oval:
            self.state.consecutive_in_oval_frames = 0
            return False

        self.state.consecutive_in_oval_frames += 1
        if self.state.consecutive_in_oval_frames >= self.config.stability_frames:
            self.phase = CapturePhase.STABILIZING
            self.state.auto_capturing = True
            return True
        return False

    def begin_countdown(self) -> None:
        self.phase = CapturePhase.COUNTDOWN
        self.state.countdown = self.config.countdown_steps

    def countdown_step(self) -> bool:
        """Advance the visible countdown; fires once it reaches zero."""
        if self.phase != CapturePhase.COUNTDOWN or self.state.countdown is None:
            return False
        self.state.countdown -= 1
        if self.state.countdown <= 0:
            self.state.countdown = None
            return self.fire("countdown")
        return False

    def manual_capture(self) -> bool:
        """User pressed the shutter. Ignored once an auto capture is under way."""
        if self.captured or self.state.auto_capturing:
            return False
        self.phase = CapturePhase.MANUAL_OVERRIDE
        return self.fire("manual")

    def fire(self, trigger: str = "auto") -> bool:
        if self.captured:
            return False
        self.phase = CapturePhase.CAPTURED
        self.trigger = trigger
        CAPTURES_FIRED.labels(trigger=trigger).inc()
        if self.on_capture is not None:
            self.on_capture(trigger)
        return True


class StreamHandle:
    """One open camera stream. Only the CameraSession that opened it releases it."""

    def __init__(self, owner: "CameraSession", capture, facing: str):
        self._owner = owner
        self._capture = capture
        self.facing = facing
        self.active = True

    def read(self):
        if not self.active:
            raise CameraError("stream already released")
        return self._capture.read()

    def _release(self, owner: "CameraSession") -> None:
        if owner is not self._owner:
            raise CameraError("stream can only be released by the session that opened it")
        if self.active:
            self._capture.release()
            self.active = False


class CameraSession:
    FACING_INDEX = {"user": 0, "environment": 1}

    def __init__(
        self,
        capture_factory: Callable = cv2.VideoCapture,
        width: int = 1920,
        height: int = 1080,
        settle_delay: float = 0.3,
        sleep: Callable = asyncio.sleep,
    ):
        self.capture_factory = capture_factory
        self.width = width
        self.height = height
        self.settle_delay = settle_delay
        self.sleep = sleep
        self._handle: Optional[StreamHandle] = None

    @property
    def handle(self) -> Optional[StreamHandle]:
        return self._handle

    def acquire(self, facing: str = "user") -> StreamHandle:
        # never hold two streams: the previous device must be freed first
        self.release()

        cap = self.capture_factory(self.FACING_INDEX.get(facing, 0))
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Unable to open camera facing {facing!r}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._handle = StreamHandle(self, cap, facing)
        console.log(f"[blue]Camera stream acquired (facing={facing})[/blue]")
        return self._handle

    def release(self) -> None:
        if self._handle is not None:
            self._handle._release(self)
            console.log(f"[blue]Camera stream released (facing={self._handle.facing})[/blue]")
            self._handle = None

    async def switch_facing(self) -> StreamHandle:
        current = self._handle.facing if self._handle else "user"
        target = "environment" if current == "user" else "user"
        self.release()
        await self.sleep(self.settle_delay)
        return self.acquire(target)


class CaptureLoop:
    """
    Ticks the detector against a live stream until the state machine
    fires, then releases the stream and hands the mirrored still to
    on_capture.
    """

    def __init__(
        self,
        session: CameraSession,
        on_capture: Callable[[np.ndarray, str], None],
        config: Optional[DetectorConfig] = None,
        sleep: Callable = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        facing: str = "user",
    ):
        self.config = config or DetectorConfig.capture()
        self.session = session
        self.on_capture = on_capture
        self.sleep = sleep
        self.facing = facing
        self.detector = FaceDetector(self.config)
        self.machine = CaptureStateMachine(self.config, clock=clock)
        self.last_result = None

    def _grab_still(self) -> Optional[np.ndarray]:
        handle = self.session.handle
        if handle is None:
            return None
        ok, frame = handle.read()
        if not ok or frame is None:
            return None
        return cv2.flip(frame, 1) if self.config.mirror else frame

    def _fire(self, trigger: str) -> bool:
        if self.machine.captured:
            return False
        still = self._grab_still()
        if trigger == "manual":
            fired = self.machine.manual_capture()
        elif trigger == "countdown":
            fired = self.machine.countdown_step()
        else:
            fired = self.machine.fire(trigger)
        if not fired:
            return False
        self.session.release()
        console.log(f"[green]Capture fired ({trigger})[/green]")
        if still is not None:
            self.on_capture(still, trigger)
        return True

    def capture_now(self) -> bool:
        """Manual shutter: fires right away unless an auto capture is in progress."""
        if self.machine.state.auto_capturing:
            return False
        return self._fire("manual")

    async def _countdown(self) -> None:
        self.machine.begin_countdown()
        while not self.machine.captured:
            await self.sleep(self.config.countdown_interval)
            if self.machine.state.countdown == 1:
                self._fire("countdown")
            else:
                self.machine.countdown_step()

    async def run(self, max_ticks: Optional[int] = None) -> bool:
        """Returns True when a capture fired, False if max_ticks ran out first."""
        self.session.acquire(self.facing)
        self.machine.start()
        ticks = 0
        try:
            while not self.machine.captured:
                if max_ticks is not None and ticks >= max_ticks:
                    return False
                ticks += 1

                handle = self.session.handle
                if handle is None:
                    # facing switch in progress, no video for this tick
                    self.last_result = DetectionResult.nothing(MSG_NOT_READY)
                else:
                    self.last_result = self.detector.detect(handle)
                if self.machine.tick(self.last_result.is_in_oval):
                    if self.config.countdown_steps > 0:
                        await self._countdown()
                    else:
                        await self.sleep(self.config.settle_delay)
                        self._fire("auto")
                    break
                await self.sleep(self.config.tick_interval)
            return self.machine.captured
        finally:
            if not self.machine.captured:
                self.session.release()
