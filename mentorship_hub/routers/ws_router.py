# mentorship_hub/routers/ws_router.py
import asyncio
import logging
from anyio import to_thread
from fastapi import APIRouter, Query, WebSocket

from ..core.change_feed import NOTIFICATIONS, Subscription
from ..security import decode_profile_id
from ..services.directory_service import DirectoryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ws"])

POLL_TIMEOUT_SECONDS = 1.0

async def _forward_events(websocket: WebSocket, subscription: Subscription):
    while not subscription.closed:
        # Abandoned on cancel so a disconnect is not held up by the blocking wait
        event = await to_thread.run_sync(subscription.get, POLL_TIMEOUT_SECONDS, abandon_on_cancel=True)
        if event is not None:
            await websocket.send_json(event.model_dump(mode="json"))

async def _wait_for_disconnect(websocket: WebSocket):
    # Inbound frames are ignored; the stream is push-only
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return

@router.websocket("/ws/notifications")
async def notifications_ws(websocket: WebSocket, token: str = Query(None)):
    """Pushes the current profile's notification changes as they commit."""
    app_state = websocket.app.state
    profile_id = decode_profile_id(token, app_state.settings) if token else None
    if profile_id is not None:
        with app_state.session_factory() as db:
            if DirectoryService(db).find_profile(profile_id) is None:
                profile_id = None
    if profile_id is None:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    feed = app_state.change_feed
    subscription = feed.subscribe(NOTIFICATIONS, {"user_id": profile_id})
    logger.info(f"Notification stream opened for user {profile_id}")
    sender = asyncio.create_task(_forward_events(websocket, subscription))
    receiver = asyncio.create_task(_wait_for_disconnect(websocket))
    tasks = {sender, receiver}
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        if sender in done and sender.exception() is not None:
            # Client went away mid-send; it will re-pull on reconnect
            logger.info(f"Notification stream for user {profile_id} ended: {sender.exception()}")
    finally:
        # Closing the handle first releases a forwarder blocked on the next event
        feed.unsubscribe(subscription)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Notification stream closed for user {profile_id}")
