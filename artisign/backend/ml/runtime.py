import asyncio
import concurrent.futures
import logging
from pathlib import Path

import numpy as np
import onnxruntime as ort
import yaml
from einops import rearrange

from artisign.backend.ml.classifier import (
    DEFAULT_MODEL_CHOICE,
    LETTERS,
    MODEL_CHOICES,
    WORDS,
    Prediction,
)
from artisign.backend.realtime.errors import ClassificationFailure, InvalidInput

logger = logging.getLogger("artisign.runtime")


class OnnxClassifier:
    """
    Classifier port backed by onnxruntime.

    The model directory holds a config.yml:

        device: cpu            # or cuda
        static:
          weights: landmark_model.onnx
          labels: letters.txt  # optional, "idx<TAB>label" per line
        dynamic:
          labels: words.txt
          lstm: lstm_model.onnx
          transformer: transformer_model.onnx

    Inference sessions are created on first use. All inference runs on a
    single worker thread, off the event loop.
    """
    def __init__(self, model_dir: str):
        self.model_dir = Path(model_dir).expanduser().resolve()
        self.config = self._load_config()

        self.providers = ["CPUExecutionProvider"]
        if self.config.get("device") == "cuda":
            self.providers = ["CUDAExecutionProvider", "CPUExecutionProvider"]

        static_cfg = self.config.get("static") or {}
        dynamic_cfg = self.config.get("dynamic") or {}
        self.letters = self._load_labels(static_cfg.get("labels"), LETTERS)
        self.words = self._load_labels(dynamic_cfg.get("labels"), WORDS)

        self._weights = {"static": static_cfg.get("weights")}
        for choice in MODEL_CHOICES:
            self._weights[choice] = dynamic_cfg.get(choice)

        self._sessions: dict[str, ort.InferenceSession] = {}
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)

    def _load_config(self) -> dict:
        config_path = self.model_dir / "config.yml"
        if not config_path.exists():
            raise FileNotFoundError(f"config.yml not found in {self.model_dir}")
        with open(config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _load_labels(self, filename, default: dict) -> dict:
        if not filename:
            return dict(default)

        labels_path = self.model_dir / filename
        if not labels_path.exists():
            raise FileNotFoundError(f"{filename} not found in {self.model_dir}")

        with open(labels_path, "r", encoding="utf-8") as f:
            lines = [line.strip() for line in f if line.strip()]

        pairs = [line.split("\t", 1) for line in lines]
        return {int(idx): lbl for idx, lbl in pairs}

    def _session(self, key: str) -> ort.InferenceSession:
        if key in self._sessions:
            return self._sessions[key]

        weights = self._weights.get(key)
        if not weights:
            raise ClassificationFailure(f"no weights configured for model '{key}'")

        model_path = self.model_dir / weights
        logger.info(f"Loading ONNX model '{key}' from {model_path}")
        session = ort.InferenceSession(str(model_path), providers=self.providers)
        self._sessions[key] = session
        return session

    @staticmethod
    def _softmax(x: np.ndarray) -> np.ndarray:
        x = x - np.max(x, axis=1, keepdims=True)
        exp = np.exp(x)
        return exp / np.sum(exp, axis=1, keepdims=True)

    def _run(self, key: str, batch: np.ndarray, labels: dict) -> Prediction:
        session = self._session(key)
        input_name = session.get_inputs()[0].name
        logits = session.run(None, {input_name: batch})[0]

        probs = self._softmax(np.asarray(logits, dtype=np.float32).reshape(1, -1))
        idx = int(np.argmax(probs[0]))
        confidence = float(probs[0, idx])

        return Prediction(label=labels.get(idx, "unknown"), confidence=confidence, index=idx)

    def _predict_static_sync(self, landmarks) -> Prediction:
        frame = np.asarray(landmarks, dtype=np.float32)
        if frame.ndim != 1:
            raise ClassificationFailure(f"expected a flat landmark frame, got shape {frame.shape}")
        return self._run("static", rearrange(frame, "f -> 1 f"), self.letters)

    def _predict_dynamic_sync(self, sequence, model_choice: str) -> Prediction:
        try:
            clip = np.asarray(sequence, dtype=np.float32)
        except ValueError as e:
            raise ClassificationFailure(f"landmark sequence is ragged: {e}") from e
        if clip.ndim != 2:
            raise ClassificationFailure(f"expected (frames, features) sequence, got shape {clip.shape}")

        pred = self._run(model_choice, rearrange(clip, "t f -> 1 t f"), self.words)
        pred.model_used = model_choice
        return pred

    async def predict_static(self, landmarks) -> Prediction:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._predict_static_sync, landmarks)

    async def predict_dynamic(self, sequence, model_choice=DEFAULT_MODEL_CHOICE) -> Prediction:
        if model_choice not in MODEL_CHOICES:
            raise InvalidInput(f"unknown model choice '{model_choice}', expected one of {list(MODEL_CHOICES)}")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._predict_dynamic_sync, sequence, model_choice)

    def status(self) -> dict:
        return {
            "landmarkModel": bool(self._weights["static"]),
            "videoLstmModel": bool(self._weights["lstm"]),
            "videoTransformerModel": bool(self._weights["transformer"]),
            "loaded": sorted(self._sessions),
            "backend": "onnx",
        }

    def close(self):
        self._executor.shutdown(wait=False)
