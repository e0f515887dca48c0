from fastapi import APIRouter, Depends

from artisign.backend.api.deps import get_handler, unwrap
from artisign.backend.api.schemas.realtime import (
    CorrectionIn,
    LandmarkSequenceIn,
    LandmarksIn,
    SessionCreateIn,
    SessionEndIn,
)
from artisign.backend.realtime.handler import RealtimeHandler

router = APIRouter(prefix="/api/realtime", tags=["realtime"])


@router.post("/session/create")
def create_session(payload: SessionCreateIn | None = None, handler: RealtimeHandler = Depends(get_handler)):
    user_id = payload.user_id if payload else None
    return unwrap(handler.create_session(user_id))


@router.post("/session/end")
async def end_session(payload: SessionEndIn, handler: RealtimeHandler = Depends(get_handler)):
    return unwrap(await handler.end_session(payload.session_id))


@router.get("/session/{session_id}/status")
def session_status(session_id: str, handler: RealtimeHandler = Depends(get_handler)):
    return unwrap(handler.get_session_status(session_id))


@router.post("/landmarks")
async def post_landmarks(payload: LandmarksIn, handler: RealtimeHandler = Depends(get_handler)):
    return unwrap(await handler.process_frame(payload.session_id, payload.landmarks))


@router.post("/landmark-sequence")
async def post_landmark_sequence(payload: LandmarkSequenceIn, handler: RealtimeHandler = Depends(get_handler)):
    return unwrap(await handler.process_sequence(
        payload.session_id, payload.landmark_sequence, payload.model_choice
    ))


@router.post("/correction")
async def post_correction(payload: CorrectionIn, handler: RealtimeHandler = Depends(get_handler)):
    return unwrap(await handler.correct(payload.session_id, payload.correction_type, payload.correction))
