"""WebSocket endpoint feeding live dashboards from the broadcast hub"""
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from dependencies import get_hub
from services.broadcast import BroadcastEvent, BroadcastHub, ClientMessage, EventType
import json
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


async def handle_client_message(hub: BroadcastHub, subscriber_id: str, raw: str):
    """Apply one joinRoom/leaveRoom frame; anything else gets an error frame"""
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        await hub.send_error(subscriber_id, "Invalid JSON")
        return

    if not isinstance(message, dict):
        await hub.send_error(subscriber_id, "Message must be an object")
        return

    event = message.get("event")
    room = message.get("data")
    if not isinstance(room, str) or not room:
        await hub.send_error(subscriber_id, "Room name required")
        return

    if event == ClientMessage.JOIN_ROOM.value:
        hub.join_group(subscriber_id, room)
        await hub.send_personal_message(
            subscriber_id, BroadcastEvent(event=EventType.JOINED_ROOM, data={"room": room})
        )
    elif event == ClientMessage.LEAVE_ROOM.value:
        hub.leave_group(subscriber_id, room)
        await hub.send_personal_message(
            subscriber_id, BroadcastEvent(event=EventType.LEFT_ROOM, data={"room": room})
        )
    else:
        await hub.send_error(subscriber_id, f"Unknown event: {event}")


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, hub: BroadcastHub = Depends(get_hub)):
    """Subscribe to mutation events; join a role room to get targeted ones"""
    subscriber = await hub.connect(websocket)

    await hub.send_personal_message(
        subscriber.subscriber_id,
        BroadcastEvent(event=EventType.CONNECTED, data={"subscriber_id": subscriber.subscriber_id})
    )

    try:
        while True:
            raw = await websocket.receive_text()
            await handle_client_message(hub, subscriber.subscriber_id, raw)
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(subscriber.subscriber_id)
