from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import asyncio
import json
import time
import logging

from artisign.backend.realtime.notifier import session_topic

router = APIRouter()

logger = logging.getLogger("artisign.ws")

PING_INTERVAL_S = 10.0


@router.websocket("/ws/realtime/{session_id}")
async def realtime_ws(ws: WebSocket, session_id: str):
    """
    Subscribes the socket to a session's update stream.

    The client may also push frames over the same socket:
      {"type": "landmarks", "landmarks": [...]}
      {"type": "sequence", "landmarkSequence": [[...], ...], "modelChoice": "lstm"}
    Failures are answered with {"type": "error", "error": "..."}.
    """
    handler = ws.app.state.handler
    hub = ws.app.state.hub
    debug = handler.config.ws_debug

    await ws.accept()

    sub = hub.subscribe(session_topic(session_id))
    alive = True

    frames_in = 0
    events_out = 0
    errors = 0
    last_debug = 0.0

    async def send_error(message: str):
        nonlocal errors
        errors += 1
        await ws.send_json({"type": "error", "error": message})

    async def receiver():
        nonlocal alive, frames_in
        try:
            while True:
                raw = await ws.receive_text()
                try:
                    msg = json.loads(raw)
                except ValueError:
                    await send_error("Message must be a JSON object")
                    continue
                if not isinstance(msg, dict):
                    await send_error("Message must be a JSON object")
                    continue

                kind = msg.get("type")
                if kind == "landmarks":
                    frames_in += 1
                    result = await handler.process_frame(session_id, msg.get("landmarks"))
                elif kind == "sequence":
                    result = await handler.process_sequence(
                        session_id, msg.get("landmarkSequence"), msg.get("modelChoice")
                    )
                else:
                    await send_error(f"Unknown message type {kind!r}, expected 'landmarks' or 'sequence'")
                    continue

                if not result.success:
                    await send_error(result.error)
        except WebSocketDisconnect:
            alive = False

    async def sender():
        nonlocal alive, events_out, last_debug
        last_ping = time.monotonic()
        while alive:
            try:
                event = await asyncio.wait_for(sub.get(), timeout=0.25)
            except asyncio.TimeoutError:
                event = None

            now = time.monotonic()
            try:
                if event is not None:
                    await ws.send_json(event)
                    events_out += 1
                if (now - last_ping) > PING_INTERVAL_S:
                    last_ping = now
                    await ws.send_json({"type": "ping"})
            except (WebSocketDisconnect, RuntimeError):
                alive = False
                break

            if debug and (now - last_debug) > 1.0:
                last_debug = now
                logger.info(
                    f"session={session_id} frames_in={frames_in} events_out={events_out} "
                    f"dropped={sub.dropped} errors={errors}"
                )

    recv_task = asyncio.create_task(receiver())
    send_task = asyncio.create_task(sender())

    try:
        await asyncio.wait({recv_task, send_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        alive = False
        hub.unsubscribe(sub)

        for t in (recv_task, send_task):
            t.cancel()
        results = await asyncio.gather(recv_task, send_task, return_exceptions=True)
        for r in results:
            if isinstance(r, Exception) and not isinstance(r, (asyncio.CancelledError, WebSocketDisconnect)):
                logger.warning(f"websocket task for {session_id} ended with {r!r}")
