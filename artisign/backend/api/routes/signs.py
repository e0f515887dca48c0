from fastapi import APIRouter, Depends, HTTPException

from artisign.backend.api.deps import get_handler, unwrap
from artisign.backend.api.schemas.signs import DynamicSignIn, StaticSignIn, TextToSignIn
from artisign.backend.ml.classifier import LETTERS, WORDS
from artisign.backend.ml.text_to_sign import text_to_sign
from artisign.backend.realtime.errors import InvalidInput
from artisign.backend.realtime.handler import RealtimeHandler

router = APIRouter(prefix="/api", tags=["signs"])


@router.post("/predict-static-sign")
async def predict_static_sign(payload: StaticSignIn, handler: RealtimeHandler = Depends(get_handler)):
    return unwrap(await handler.predict_static(payload.landmarks))


@router.post("/predict-dynamic-sign")
async def predict_dynamic_sign(payload: DynamicSignIn, handler: RealtimeHandler = Depends(get_handler)):
    return unwrap(await handler.predict_dynamic(payload.landmark_sequence, payload.model_choice))


@router.get("/available-letters")
def available_letters():
    letters = [{"id": str(k), "letter": v} for k, v in sorted(LETTERS.items())]
    return {"success": True, "count": len(letters), "letters": letters}


@router.get("/available-words")
def available_words():
    words = [{"id": str(k), "word": v} for k, v in sorted(WORDS.items())]
    return {"success": True, "count": len(words), "words": words}


@router.post("/text-to-sign")
def post_text_to_sign(payload: TextToSignIn):
    try:
        return text_to_sign(payload.text)
    except InvalidInput as e:
        raise HTTPException(400, str(e))


@router.get("/health")
def health(handler: RealtimeHandler = Depends(get_handler)):
    return {
        "status": "ok",
        "models": handler.classifier.status(),
        "activeSessions": len(handler.store),
    }
