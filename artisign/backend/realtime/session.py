import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from artisign.backend.config import RealtimeConfig
from artisign.backend.ml.buffer import FrameBuffer
from artisign.backend.realtime.errors import SessionNotFound

logger = logging.getLogger("artisign.sessions")


@dataclass
class SignSession:
    id: str
    static_window: FrameBuffer
    dynamic_window: FrameBuffer
    last_activity: float
    user_id: Optional[str] = None

    stable_frame_count: int = 0
    in_motion: bool = False
    # frames buffered since the last motion-start edge
    motion_frames: int = 0

    last_letter: Optional[str] = None
    last_word: Optional[str] = None
    current_word: str = ""
    full_text: str = ""

    # set once the store drops this session (end, expiry or reset)
    closed: bool = False

    created_at: float = field(default_factory=time.time)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def snapshot(self) -> dict:
        return {
            "sessionId": self.id,
            "currentWord": self.current_word,
            "fullText": self.full_text,
            "lastLetter": self.last_letter,
            "lastWord": self.last_word,
        }


class SessionStore:
    """
    Owns every live SignSession, keyed by id.

    The mapping is shared between request handlers and the sweeper,
    so every access goes through self._lock. Per-session state is
    serialized separately by SignSession.lock.
    """
    def __init__(self, config: RealtimeConfig, clock: Callable[[], float] = time.time):
        self.config = config
        self.clock = clock
        self._sessions: dict[str, SignSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def _new(self, session_id: str, user_id: Optional[str]) -> SignSession:
        return SignSession(
            id=session_id,
            user_id=user_id,
            static_window=FrameBuffer(self.config.static_window),
            dynamic_window=FrameBuffer(self.config.dynamic_window),
            last_activity=self.clock(),
        )

    def create(self, session_id: str, user_id: Optional[str] = None) -> SignSession:
        """Creates a fresh session, replacing any existing one with the same id."""
        session = self._new(session_id, user_id)
        with self._lock:
            previous = self._sessions.get(session_id)
            if previous is not None:
                previous.closed = True
            self._sessions[session_id] = session
        replaced = previous is not None
        if replaced:
            logger.info(f"User session reset: {session_id}")
        else:
            logger.info(f"New user session created: {session_id}")
        return session

    def get_or_create(self, session_id: str) -> SignSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_activity = self.clock()
                return session
            session = self._new(session_id, None)
            self._sessions[session_id] = session
        logger.info(f"New user session created: {session_id}")
        return session

    def get(self, session_id: str, touch: bool = True) -> SignSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            if touch:
                session.last_activity = self.clock()
            return session

    def status(self, session_id: str) -> dict:
        # reading status does not count as activity
        return self.get(session_id, touch=False).snapshot()

    def remove(self, session_id: str, expected: Optional[SignSession] = None) -> Optional[SignSession]:
        """
        Drops the session stored under session_id. With `expected`, only that
        exact object is dropped; a newer session under the same id is left alone.
        """
        with self._lock:
            current = self._sessions.get(session_id)
            if expected is not None:
                expected.closed = True
                if current is not expected:
                    return None
            elif current is None:
                raise SessionNotFound(session_id)
            del self._sessions[session_id]
            current.closed = True
        return current

    def sweep(self, now: Optional[float] = None, timeout: Optional[float] = None) -> list[str]:
        now = self.clock() if now is None else now
        timeout = self.config.session_timeout_s if timeout is None else timeout

        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if now - s.last_activity > timeout]
            for sid in expired:
                self._sessions.pop(sid).closed = True

        for sid in expired:
            logger.info(f"Cleaned up inactive session: {sid}")
        return expired


class SessionSweeper:
    """Background task that expires idle sessions on a fixed interval."""

    def __init__(self, store: SessionStore, interval_s: float):
        self.store = store
        self.interval_s = interval_s
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self):
        try:
            while True:
                await asyncio.sleep(self.interval_s)
                try:
                    self.store.sweep()
                except Exception:
                    logger.exception("Session sweep failed")
        except asyncio.CancelledError:
            return

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(f"Session sweeper started, interval={self.interval_s}s")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        finally:
            self._task = None
