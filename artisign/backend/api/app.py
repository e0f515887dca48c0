import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from artisign.backend.config import RealtimeConfig
from artisign.backend.ml.classifier import ClassifierPort, StubClassifier
from artisign.backend.realtime.handler import RealtimeHandler
from artisign.backend.realtime.notifier import Notifier, TopicHub
from artisign.backend.realtime.session import SessionSweeper
from .routes import realtime, signs
from .ws import router as ws_router

logger = logging.getLogger("artisign.api")


def build_classifier(config: RealtimeConfig) -> ClassifierPort:
    if config.classifier == "onnx":
        from artisign.backend.ml.runtime import OnnxClassifier
        return OnnxClassifier(config.model_dir)
    if config.classifier != "stub":
        raise ValueError(f"ARTISIGN_CLASSIFIER must be 'stub' or 'onnx', got {config.classifier!r}")
    logger.info("Using dummy classifier (no model loaded)")
    return StubClassifier()


def create_app(config: Optional[RealtimeConfig] = None, classifier: Optional[ClassifierPort] = None) -> FastAPI:
    config = config or RealtimeConfig.from_env()
    hub = TopicHub()
    handler = RealtimeHandler(
        config=config,
        classifier=classifier or build_classifier(config),
        notifier=Notifier(hub),
    )
    sweeper = SessionSweeper(handler.store, config.sweep_interval_s)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper.start()
        try:
            yield
        finally:
            await sweeper.stop()
            close = getattr(handler.classifier, "close", None)
            if close is not None:
                close()

    app = FastAPI(title="Artisign Realtime API", lifespan=lifespan)
    app.state.handler = handler
    app.state.hub = hub
    app.state.sweeper = sweeper

    origins = [o.strip() for o in os.getenv("ARTISIGN_CORS_ORIGINS", "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"message": "Artisign BISINDO Translator API"}

    app.include_router(realtime.router)
    app.include_router(signs.router)
    app.include_router(ws_router)
    return app
