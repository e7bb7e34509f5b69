"""In-memory WebRTC call signaling router."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict

from pydantic import ValidationError

from ..schemas import signaling as schemas
from .registry import PeerRegistry

logger = logging.getLogger(__name__)

SendCallable = Callable[[str, dict], Awaitable[None]]


@dataclass(slots=True)
class SignalingConnection:
    """Connection wrapper for signaling participants."""

    connection_id: str
    send: SendCallable
    transport: str = "ws"


class SignalingRouter:
    """Track connected peers and relay call negotiation messages between them."""

    def __init__(self, registry: PeerRegistry | None = None) -> None:
        self.registry = registry if registry is not None else PeerRegistry()
        self._connections: Dict[str, SignalingConnection] = {}
        self._lock = asyncio.Lock()
        self._handlers: Dict[str, Callable[[str, Any], Awaitable[None]]] = {
            schemas.InboundEvent.CALL_USER.value: self._call_user,
            schemas.InboundEvent.MAKE_ANSWER.value: self._make_answer,
            schemas.InboundEvent.REJECT_CALL.value: self._reject_call,
        }

    async def online(self) -> list[str]:
        """Return a snapshot of the registered peer ids."""

        async with self._lock:
            return list(self.registry)

    async def connect(self, connection: SignalingConnection) -> bool:
        """Register a new peer and announce it.

        Returns ``False`` without sending anything when the id is already
        registered. Messages go out after the lock is released, so a peer
        joining at the same moment may reach this one with its join broadcast
        before this peer receives its own private list.
        """

        peer_id = connection.connection_id
        async with self._lock:
            if self.registry.contains(peer_id):
                logger.info("Ignoring duplicate connect for peer %s", peer_id)
                return False
            self.registry.add(peer_id)
            self._connections[peer_id] = connection
            private = schemas.UserList(me=peer_id, users=self.registry.list_others(peer_id))
            recipients = [conn for conn_id, conn in self._connections.items() if conn_id != peer_id]

        logger.info("Peer %s connected over %s (%d online)", peer_id, connection.transport, len(recipients) + 1)
        await self._deliver(connection, schemas.OutboundEvent.UPDATE_USER_LIST, private)
        await self._fan_out(recipients, schemas.OutboundEvent.UPDATE_USER_LIST, schemas.UserList(users=[peer_id]))
        return True

    async def disconnect(self, peer_id: str) -> None:
        """Deregister a peer and tell the remaining peers it left."""

        async with self._lock:
            self.registry.remove(peer_id)
            self._connections.pop(peer_id, None)

        logger.info("Peer %s disconnected", peer_id)
        await self.broadcast_except(peer_id, schemas.OutboundEvent.REMOVE_USER, schemas.RemoveUser(socket_id=peer_id))

    async def handle(self, peer_id: str, event: str, data: Any) -> None:
        """Dispatch one inbound message from ``peer_id``.

        Unknown events and malformed payloads are logged and dropped.
        """

        handler = self._handlers.get(event)
        if handler is None:
            logger.warning("Dropping unknown event %r from peer %s", event, peer_id)
            return
        try:
            await handler(peer_id, data)
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed %s from peer %s: %d validation error(s)",
                event,
                peer_id,
                exc.error_count(),
            )

    async def send(self, peer_id: str, event: schemas.OutboundEvent, message: schemas.WireModel) -> None:
        """Unicast to one peer; unknown ids are dropped silently."""

        async with self._lock:
            connection = self._connections.get(peer_id)

        if connection is None:
            logger.debug("No connection for peer %s; dropping %s", peer_id, event.value)
            return
        await self._deliver(connection, event, message)

    async def broadcast_except(self, peer_id: str, event: schemas.OutboundEvent, message: schemas.WireModel) -> None:
        """Send a message to every connected peer except ``peer_id``."""

        async with self._lock:
            recipients = [conn for conn_id, conn in self._connections.items() if conn_id != peer_id]

        await self._fan_out(recipients, event, message)

    async def _call_user(self, sender: str, data: Any) -> None:
        request = schemas.CallUserRequest.model_validate(data)
        logger.info("Relaying call from %s to %s", sender, request.to)
        message = schemas.CallMade(sender=sender, to=request.to, offer=request.offer, socket=sender)
        await self.send(request.to, schemas.OutboundEvent.CALL_MADE, message)

    async def _make_answer(self, sender: str, data: Any) -> None:
        request = schemas.MakeAnswerRequest.model_validate(data)
        logger.info("Relaying answer from %s to %s", sender, request.to)
        message = schemas.AnswerMade(sender=sender, to=request.to, socket=sender, answer=request.answer)
        await self.send(request.to, schemas.OutboundEvent.ANSWER_MADE, message)

    async def _reject_call(self, sender: str, data: Any) -> None:
        # The inbound ``from`` is the destination (the caller being rejected).
        request = schemas.RejectCallRequest.model_validate(data)
        logger.info("Relaying rejection from %s to %s", sender, request.caller)
        message = schemas.CallRejected(sender=sender, to=request.caller, socket=sender)
        await self.send(request.caller, schemas.OutboundEvent.CALL_REJECTED, message)

    async def _deliver(self, connection: SignalingConnection, event: schemas.OutboundEvent, message: schemas.WireModel) -> None:
        try:
            await connection.send(event.value, message.to_wire())
        except Exception:  # noqa: BLE001 - per-peer send failures stay local
            logger.warning("Failed sending %s to peer %s", event.value, connection.connection_id, exc_info=True)

    async def _fan_out(self, recipients: list[SignalingConnection], event: schemas.OutboundEvent, message: schemas.WireModel) -> None:
        if not recipients:
            return

        payload = message.to_wire()
        results = await asyncio.gather(
            *(connection.send(event.value, payload) for connection in recipients),
            return_exceptions=True,
        )
        for connection, result in zip(recipients, results):
            if isinstance(result, Exception):
                logger.warning("Failed sending %s to peer %s", event.value, connection.connection_id, exc_info=result)
