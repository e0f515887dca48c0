from dataclasses import dataclass

import numpy as np

from artisign.backend.config import RealtimeConfig
from artisign.backend.ml.buffer import mean_abs_diff
from artisign.backend.realtime.session import SignSession


class StabilityDetector:
    """
    Decides when a held pose has been still long enough to classify as a letter.

    Each frame is compared with the previous one in the static window.
    The session counts consecutive low-movement frames and any movement
    resets the count.
    """
    def __init__(self, config: RealtimeConfig):
        self.movement_threshold = config.movement_threshold
        self.stable_frame_threshold = config.stable_frame_threshold

    def update(self, session: SignSession, frame: np.ndarray) -> bool:
        window = session.static_window

        # nothing to compare against yet
        if window.is_empty:
            window.push(frame)
            return False

        diff = mean_abs_diff(frame, window.last())
        window.push(frame)

        if diff < self.movement_threshold:
            session.stable_frame_count += 1
        else:
            session.stable_frame_count = 0

        return session.stable_frame_count >= self.stable_frame_threshold


@dataclass
class MotionEdges:
    starting: bool = False
    ending: bool = False


class MotionSegmenter:
    """Reports motion start/end edges that bound a word gesture."""

    def __init__(self, config: RealtimeConfig):
        self.motion_threshold = config.motion_threshold
        self.min_sequence_frames = config.min_sequence_frames

    def update(self, session: SignSession, frame: np.ndarray) -> MotionEdges:
        window = session.dynamic_window

        if window.is_empty:
            window.push(frame)
            return MotionEdges()

        diff = mean_abs_diff(frame, window.last())
        window.push(frame)

        moving = diff > self.motion_threshold
        was_moving = session.in_motion
        session.in_motion = moving

        if moving and not was_moving:
            session.motion_frames = 1
            return MotionEdges(starting=True)

        if was_moving:
            session.motion_frames += 1

        if was_moving and not moving:
            long_enough = session.motion_frames >= self.min_sequence_frames
            # blips shorter than a gesture are noise
            session.motion_frames = 0
            return MotionEdges(ending=long_enough)

        return MotionEdges()

    def reset(self, session: SignSession):
        session.dynamic_window.clear()
        session.in_motion = False
        session.motion_frames = 0
