import logging
from collections import deque

import numpy as np

logger = logging.getLogger("artisign.buffer")


class FrameBuffer:
    """
    Fixed-capacity ring buffer of landmark frames.
    Once full, pushing evicts the oldest frame first.
    """
    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("FrameBuffer capacity must be >= 1")
        self.capacity = capacity
        self._frames = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._frames)

    def clear(self):
        self._frames.clear()

    def push(self, frame: np.ndarray):
        self._frames.append(frame)

    @property
    def is_empty(self) -> bool:
        return not self._frames

    @property
    def is_full(self) -> bool:
        return len(self._frames) == self.capacity

    def last(self) -> np.ndarray:
        if not self._frames:
            raise IndexError("FrameBuffer is empty")
        return self._frames[-1]

    def frames(self) -> list[np.ndarray]:
        return list(self._frames)


def mean_abs_diff(current: np.ndarray, previous: np.ndarray) -> float:
    """
    Mean absolute per-index difference between two flat frames.

    Frames of different length are compared over the overlapping
    index range only.
    """
    n = min(current.shape[0], previous.shape[0])
    if current.shape[0] != previous.shape[0]:
        logger.warning(
            f"frame length mismatch: {current.shape[0]} vs {previous.shape[0]}, "
            f"comparing first {n} values"
        )
    if n == 0:
        return 0.0
    return float(np.mean(np.abs(current[:n] - previous[:n])))
