"""WebSocket endpoint for real-time snapshot updates."""

import asyncio
import logging

import orjson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()

# Will be set by main.py on startup
broadcaster = None
engine = None


async def _initial_message() -> bytes | None:
    # Latest published state; before the first publish, ask the engine directly
    state_data = await broadcaster.get_current_state()
    if state_data:
        message = orjson.loads(state_data)
    elif engine is not None:
        message = engine.state_message()
    else:
        return None
    message["type"] = "snapshot"
    return orjson.dumps(message)


@router.websocket("/ws/stops")
async def snapshot_ws(websocket: WebSocket) -> None:
    """Send the current snapshot, then one ``update`` message per tick."""
    await websocket.accept()

    if broadcaster is None:
        await websocket.close(code=1011, reason="Service not ready")
        return

    initial = await _initial_message()
    if initial is not None:
        await websocket.send_bytes(initial)

    queue = broadcaster.subscribe()
    try:
        while True:
            await websocket.send_bytes(await queue.get())
    except (WebSocketDisconnect, asyncio.CancelledError):
        logger.debug("WebSocket subscriber left")
    except Exception:
        logger.exception("WebSocket error")
    finally:
        broadcaster.unsubscribe(queue)
