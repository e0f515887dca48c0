import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from artisign.backend.config import RealtimeConfig
from artisign.backend.ml.classifier import (
    DEFAULT_MODEL_CHOICE,
    MODEL_CHOICES,
    ClassifierPort,
    StubClassifier,
    ensure_prediction,
)
from artisign.backend.realtime.assembler import TextAssembler, validate_correction
from artisign.backend.realtime.detectors import MotionSegmenter, StabilityDetector
from artisign.backend.realtime.errors import InvalidInput, RealtimeError, SessionNotFound
from artisign.backend.realtime.notifier import Notifier
from artisign.backend.realtime.session import SessionStore

logger = logging.getLogger("artisign.realtime")


@dataclass
class Result:
    success: bool
    data: dict = field(default_factory=dict)
    error: Optional[str] = None
    kind: Optional[str] = None

    @classmethod
    def ok(cls, **data) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, exc: Exception, kind: Optional[str] = None) -> "Result":
        return cls(success=False, error=str(exc), kind=kind or getattr(exc, "kind", "error"))

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, **self.data}
        return {"success": False, "error": self.error}


def _frame(landmarks) -> np.ndarray:
    if landmarks is None:
        raise InvalidInput("Landmarks are required")
    try:
        frame = np.asarray(landmarks, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Landmarks must be an array of numbers: {e}") from e
    if frame.ndim != 1 or frame.size == 0:
        raise InvalidInput("Landmarks must be a non-empty flat array of numbers")
    if not np.all(np.isfinite(frame)):
        raise InvalidInput("Landmarks must be finite numbers")
    return frame


def _sequence(sequence) -> list:
    if not sequence:
        raise InvalidInput("Landmark sequence must be a non-empty array of frames")
    return [_frame(f) for f in sequence]


class RealtimeHandler:
    """
    Per-session streaming state machine: frame -> letter/word -> text.

    Frames of one session are processed one at a time under the session
    lock. Failures come back as Result values, never as exceptions.
    """
    def __init__(
        self,
        config: Optional[RealtimeConfig] = None,
        classifier: Optional[ClassifierPort] = None,
        notifier: Optional[Notifier] = None,
        store: Optional[SessionStore] = None,
    ):
        self.config = config or RealtimeConfig()
        self.classifier = classifier or StubClassifier()
        self.notifier = notifier or Notifier()
        self.store = store or SessionStore(self.config)

        self.stability = StabilityDetector(self.config)
        self.motion = MotionSegmenter(self.config)
        self.assembler = TextAssembler(self.notifier)

    def _confident(self, prediction) -> bool:
        return prediction.confidence > self.config.confidence_threshold

    @asynccontextmanager
    async def _locked(self, session_id: str, create: bool = True):
        """
        Holds the lock of the session currently stored under session_id.
        A session ended or replaced while we waited is skipped in favour
        of whatever the store holds now.
        """
        while True:
            session = self.store.get_or_create(session_id) if create else self.store.get(session_id)
            async with session.lock:
                if session.closed:
                    continue
                yield session
                return

    def create_session(self, user_id: Optional[str] = None) -> Result:
        session_id = user_id or str(uuid.uuid4())
        self.store.create(session_id, user_id)
        return Result.ok(sessionId=session_id)

    async def end_session(self, session_id: str) -> Result:
        try:
            session = self.store.get(session_id)
            async with session.lock:
                # reset or expired while queued behind other work
                if session.closed:
                    raise SessionNotFound(session_id)
                self.assembler.complete_word(session)
                full_text = session.full_text
                self.store.remove(session_id, expected=session)
        except RealtimeError as e:
            return Result.fail(e)

        logger.info(f"Session ended: {session_id}")
        return Result.ok(sessionId=session_id, fullText=full_text)

    def get_session_status(self, session_id: str) -> Result:
        try:
            return Result.ok(**self.store.status(session_id))
        except RealtimeError as e:
            return Result.fail(e)

    async def correct(self, session_id: str, kind: str, value: Optional[str] = None) -> Result:
        try:
            validate_correction(kind, value)
            async with self._locked(session_id, create=False) as session:
                self.assembler.correct(session, kind, value)
                return Result.ok(currentWord=session.current_word, fullText=session.full_text)
        except RealtimeError as e:
            return Result.fail(e)

    async def process_frame(self, session_id: str, landmarks) -> Result:
        try:
            frame = _frame(landmarks)
        except InvalidInput as e:
            return Result.fail(e)

        try:
            async with self._locked(session_id) as session:
                # letter and word checks are independent; one frame may trigger both
                if self.stability.update(session, frame):
                    prediction = ensure_prediction(await self.classifier.predict_static(frame.tolist()))
                    if self._confident(prediction):
                        self.assembler.append_letter(session, prediction.label)

                edges = self.motion.update(session, frame)
                if edges.ending:
                    sequence = [f.tolist() for f in session.dynamic_window.frames()]
                    try:
                        prediction = ensure_prediction(await self.classifier.predict_dynamic(sequence))
                        if self._confident(prediction):
                            self.assembler.complete_word(session, prediction.label)
                    finally:
                        self.motion.reset(session)
        except InvalidInput as e:
            return Result.fail(e)
        except Exception as e:
            logger.exception(f"Error processing landmarks for {session_id}")
            return Result.fail(e, kind="classification")

        return Result.ok(sessionId=session_id)

    async def process_sequence(self, session_id: str, sequence, model_choice: Optional[str] = None) -> Result:
        model_choice = model_choice or DEFAULT_MODEL_CHOICE
        try:
            if model_choice not in MODEL_CHOICES:
                raise InvalidInput(f"Unknown model choice '{model_choice}', expected one of {list(MODEL_CHOICES)}")
            frames = _sequence(sequence)
        except InvalidInput as e:
            return Result.fail(e)

        try:
            async with self._locked(session_id) as session:
                prediction = ensure_prediction(
                    await self.classifier.predict_dynamic([f.tolist() for f in frames], model_choice)
                )
                if self._confident(prediction):
                    self.assembler.complete_word(session, prediction.label)
        except InvalidInput as e:
            return Result.fail(e)
        except Exception as e:
            logger.exception(f"Error processing landmark sequence for {session_id}")
            return Result.fail(e, kind="classification")

        return Result.ok(sessionId=session_id, result=prediction.to_dict())

    async def predict_static(self, landmarks) -> Result:
        """Single classification, outside any session."""
        try:
            frame = _frame(landmarks)
            prediction = ensure_prediction(await self.classifier.predict_static(frame.tolist()))
        except InvalidInput as e:
            return Result.fail(e)
        except Exception as e:
            logger.exception("Error in static sign prediction")
            return Result.fail(e, kind="classification")
        return Result.ok(result=prediction.to_dict())

    async def predict_dynamic(self, sequence, model_choice: Optional[str] = None) -> Result:
        model_choice = model_choice or DEFAULT_MODEL_CHOICE
        try:
            if model_choice not in MODEL_CHOICES:
                raise InvalidInput(f"Unknown model choice '{model_choice}', expected one of {list(MODEL_CHOICES)}")
            frames = _sequence(sequence)
            prediction = ensure_prediction(
                await self.classifier.predict_dynamic([f.tolist() for f in frames], model_choice)
            )
        except InvalidInput as e:
            return Result.fail(e)
        except Exception as e:
            logger.exception("Error in dynamic sign prediction")
            return Result.fail(e, kind="classification")
        return Result.ok(result=prediction.to_dict())
