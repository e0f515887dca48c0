import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class RealtimeConfig:
    movement_threshold: float = 0.015
    stable_frame_threshold: int = 5
    motion_threshold: float = 0.03
    min_sequence_frames: int = 15
    confidence_threshold: float = 0.7

    static_window: int = 10
    # ~1s at 30fps
    dynamic_window: int = 30

    session_timeout_s: float = 60 * 60
    sweep_interval_s: float = 30 * 60

    classifier: str = "stub"
    model_dir: str = "models"
    ws_debug: bool = False

    @classmethod
    def from_env(cls) -> "RealtimeConfig":
        """
        Reads ARTISIGN_* variables. Call load_dotenv() beforehand
        if values should come from a .env file.
        """
        return cls(
            movement_threshold=_env_float("ARTISIGN_MOVEMENT_THRESHOLD", cls.movement_threshold),
            stable_frame_threshold=_env_int("ARTISIGN_STABLE_FRAME_THRESHOLD", cls.stable_frame_threshold),
            motion_threshold=_env_float("ARTISIGN_MOTION_THRESHOLD", cls.motion_threshold),
            min_sequence_frames=_env_int("ARTISIGN_MIN_SEQUENCE_FRAMES", cls.min_sequence_frames),
            confidence_threshold=_env_float("ARTISIGN_CONFIDENCE_THRESHOLD", cls.confidence_threshold),
            static_window=_env_int("ARTISIGN_STATIC_WINDOW", cls.static_window),
            dynamic_window=_env_int("ARTISIGN_DYNAMIC_WINDOW", cls.dynamic_window),
            session_timeout_s=_env_float("ARTISIGN_SESSION_TIMEOUT_S", cls.session_timeout_s),
            sweep_interval_s=_env_float("ARTISIGN_SWEEP_INTERVAL_S", cls.sweep_interval_s),
            classifier=os.getenv("ARTISIGN_CLASSIFIER", cls.classifier).strip().lower() or cls.classifier,
            model_dir=os.getenv("ARTISIGN_MODEL_DIR", cls.model_dir),
            ws_debug=os.getenv("ARTISIGN_WS_DEBUG", "0") == "1",
        )
