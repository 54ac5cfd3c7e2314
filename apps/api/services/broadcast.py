"""
Broadcast hub for real-time dashboard updates
Fans mutation events out to connected WebSocket subscribers, either to
everyone or to a named group (a role name such as "government").

Delivery is best-effort and at-most-once: nothing is acknowledged, stored
or replayed, and a subscriber that connects after an event was published
never sees it. Dashboards poll the aggregation endpoints as the backstop.
"""

import json
import uuid
from datetime import datetime
from typing import Dict, Set, Any, Iterable
from dataclasses import dataclass, field
from enum import Enum
from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Server -> client event names"""
    NEW_CASE = "newCase"
    NEW_EMERGENCY = "newEmergency"
    EMERGENCY_UPDATED = "emergencyUpdated"
    NEW_HEALTH_CAMP = "newHealthCamp"
    NEW_MEDICINE_REQUEST = "newMedicineRequest"
    MEDICINE_REQUEST_UPDATE = "medicineRequestUpdate"

    # Connection housekeeping
    CONNECTED = "connected"
    JOINED_ROOM = "joinedRoom"
    LEFT_ROOM = "leftRoom"
    ERROR = "error"


class ClientMessage(str, Enum):
    """Client -> server message names"""
    JOIN_ROOM = "joinRoom"
    LEAVE_ROOM = "leaveRoom"


@dataclass
class BroadcastEvent:
    """Structure for outgoing WebSocket frames"""
    event: EventType
    data: Any = None
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def to_dict(self) -> dict:
        return {
            "event": self.event.value if isinstance(self.event, EventType) else self.event,
            "data": jsonable_encoder(self.data),
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class Subscriber:
    """A connected dashboard or app client"""
    subscriber_id: str
    websocket: WebSocket
    connected_at: datetime = field(default_factory=datetime.utcnow)
    groups: Set[str] = field(default_factory=set)


class BroadcastHub:
    """
    Tracks connected subscribers and their groups and fans events out to them.

    One instance is built per application in the lifespan handler and handed
    to route handlers through the ``get_hub`` dependency.
    """

    def __init__(self):
        # subscriber_id -> Subscriber
        self.subscribers: Dict[str, Subscriber] = {}

        # group name -> subscriber ids
        self.groups: Dict[str, Set[str]] = {}

    async def connect(self, websocket: WebSocket) -> Subscriber:
        """Accept a new WebSocket connection"""
        await websocket.accept()
        subscriber = Subscriber(subscriber_id=uuid.uuid4().hex, websocket=websocket)
        self.subscribers[subscriber.subscriber_id] = subscriber
        logger.info(f"Client connected: {subscriber.subscriber_id}")
        return subscriber

    def disconnect(self, subscriber_id: str):
        """Forget a subscriber and its group memberships"""
        subscriber = self.subscribers.pop(subscriber_id, None)
        if not subscriber:
            return
        for group in list(subscriber.groups):
            self._remove_from_group(subscriber_id, group)
        logger.info(f"Client disconnected: {subscriber_id}")

    def join_group(self, subscriber_id: str, group: str) -> bool:
        subscriber = self.subscribers.get(subscriber_id)
        if not subscriber:
            return False
        self.groups.setdefault(group, set()).add(subscriber_id)
        subscriber.groups.add(group)
        logger.info(f"Client {subscriber_id} joined room: {group}")
        return True

    def leave_group(self, subscriber_id: str, group: str):
        self._remove_from_group(subscriber_id, group)
        subscriber = self.subscribers.get(subscriber_id)
        if subscriber:
            subscriber.groups.discard(group)

    def _remove_from_group(self, subscriber_id: str, group: str):
        members = self.groups.get(group)
        if members is None:
            return
        members.discard(subscriber_id)
        # Clean up empty groups
        if not members:
            del self.groups[group]

    async def send_personal_message(self, subscriber_id: str, message: BroadcastEvent) -> bool:
        """Send a frame to one subscriber, dropping it if the socket is gone"""
        subscriber = self.subscribers.get(subscriber_id)
        if not subscriber:
            return False
        try:
            await subscriber.websocket.send_text(message.to_json())
            return True
        except Exception as e:
            # Any transport failure means the client is gone; never surface it to the publisher
            logger.warning(f"Dropping subscriber {subscriber_id} after failed send: {e}")
            self.disconnect(subscriber_id)
            return False

    async def _fan_out(self, subscriber_ids: Iterable[str], message: BroadcastEvent) -> int:
        delivered = 0
        # Snapshot: failed sends mutate the registry while we iterate
        for subscriber_id in list(subscriber_ids):
            if await self.send_personal_message(subscriber_id, message):
                delivered += 1
        return delivered

    async def broadcast(self, event: EventType, data: Any) -> int:
        """Publish an event to every connected subscriber"""
        delivered = await self._fan_out(self.subscribers.keys(), BroadcastEvent(event=event, data=data))
        logger.debug(f"{event.value} delivered to {delivered} subscriber(s)")
        return delivered

    async def emit_to_group(self, group: str, event: EventType, data: Any) -> int:
        """Publish an event to the members of one group"""
        members = self.groups.get(group, set())
        delivered = await self._fan_out(members, BroadcastEvent(event=event, data=data))
        logger.debug(f"{event.value} delivered to {delivered} subscriber(s) in {group}")
        return delivered

    async def send_error(self, subscriber_id: str, error_message: str):
        await self.send_personal_message(
            subscriber_id,
            BroadcastEvent(event=EventType.ERROR, data={"message": error_message})
        )

    def subscriber_count(self) -> int:
        return len(self.subscribers)

    def group_size(self, group: str) -> int:
        """Get number of subscribers in a group"""
        return len(self.groups.get(group, set()))

    async def close(self):
        """Close every open connection on shutdown"""
        for subscriber_id, subscriber in list(self.subscribers.items()):
            try:
                await subscriber.websocket.close()
            except Exception as e:
                logger.debug(f"Ignoring close failure for {subscriber_id}: {e}")
            self.disconnect(subscriber_id)
