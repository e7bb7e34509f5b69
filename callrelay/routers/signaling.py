"""WebSocket transport for the call signaling router."""
from __future__ import annotations

import json
import logging
from uuid import uuid4

from fastapi import APIRouter, WebSocket
from pydantic import ValidationError

from ..schemas.signaling import Envelope
from ..services.signaling import SignalingConnection, SignalingRouter

logger = logging.getLogger(__name__)

router = APIRouter()


def _router_for(websocket: WebSocket) -> SignalingRouter:
    return websocket.app.state.signaling


def _decode(peer_id: str, raw: str) -> Envelope | None:
    """Parse one inbound frame, returning ``None`` for anything unusable."""

    try:
        return Envelope.model_validate(json.loads(raw))
    except json.JSONDecodeError:
        logger.warning("Discarding non-JSON frame from peer %s", peer_id)
    except ValidationError:
        logger.warning("Discarding frame without an event name from peer %s", peer_id)
    return None


@router.websocket("/socket")
async def signaling_endpoint(websocket: WebSocket) -> None:
    """Register the peer, relay its negotiation messages, announce its departure."""

    signaling = _router_for(websocket)
    peer_id = uuid4().hex
    await websocket.accept()

    async def send(event: str, data: dict) -> None:
        await websocket.send_json({"event": event, "data": data})

    connection = SignalingConnection(connection_id=peer_id, send=send, transport=websocket.url.scheme)
    if not await signaling.connect(connection):
        await websocket.close()
        return

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                logger.warning("Discarding binary frame from peer %s", peer_id)
                continue
            envelope = _decode(peer_id, raw)
            if envelope is None:
                continue
            await signaling.handle(peer_id, envelope.event, envelope.data)
    finally:
        await signaling.disconnect(peer_id)
