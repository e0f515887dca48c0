import logging
import math
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from artisign.backend.realtime.errors import ClassificationFailure

logger = logging.getLogger("artisign.classifier")

MODEL_CHOICES = ("lstm", "transformer")
DEFAULT_MODEL_CHOICE = "transformer"

LETTERS = {i: chr(ord("A") + i) for i in range(26)}

WORDS = {
    0: "Apa", 1: "Apa Kabar", 2: "Bagaimana", 3: "Baik", 4: "Belajar", 5: "Berapa",
    6: "Berdiri", 7: "Bingung", 8: "Dia", 9: "Dimana", 10: "Duduk", 11: "Halo",
}


@dataclass
class Prediction:
    label: str
    confidence: float
    index: int
    model_used: Optional[str] = None

    def to_dict(self) -> dict:
        out = {"class": self.label, "confidence": self.confidence, "index": self.index}
        if self.model_used is not None:
            out["modelUsed"] = self.model_used
        return out


class ClassifierPort(Protocol):
    async def predict_static(self, landmarks: Sequence[float]) -> Prediction: ...

    async def predict_dynamic(self, sequence: Sequence[Sequence[float]],
                              model_choice: str = DEFAULT_MODEL_CHOICE) -> Prediction: ...

    def status(self) -> dict: ...


def ensure_prediction(result) -> Prediction:
    """Rejects anything the core cannot act on."""
    if not isinstance(result, Prediction):
        raise ClassificationFailure(f"classifier returned {type(result).__name__}, expected Prediction")
    if not isinstance(result.label, str) or not result.label:
        raise ClassificationFailure("classifier returned an empty class label")
    conf = result.confidence
    if isinstance(conf, bool) or not isinstance(conf, (int, float)) or not math.isfinite(conf):
        raise ClassificationFailure(f"classifier returned invalid confidence: {conf!r}")
    return result


class StubClassifier:
    """Placeholder model: a fixed letter and a fixed word with high confidence."""

    async def predict_static(self, landmarks):
        logger.info(f"Received landmarks array with {len(landmarks)} elements")
        return Prediction(label=LETTERS[0], confidence=0.95, index=0)

    async def predict_dynamic(self, sequence, model_choice=DEFAULT_MODEL_CHOICE):
        logger.info(f"Received landmark sequence with {len(sequence)} frames")
        return Prediction(label=WORDS[11], confidence=0.92, index=11, model_used=model_choice)

    def status(self) -> dict:
        return {
            "landmarkModel": True,
            "videoLstmModel": True,
            "videoTransformerModel": True,
            "backend": "stub",
        }
