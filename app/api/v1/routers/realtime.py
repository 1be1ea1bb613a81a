"""Canal temps réel : un WebSocket par client, snapshot initial puis événements diffusés."""

import anyio
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from loguru import logger

from app.api.v1.dependencies import get_ws_task_service
from app.features.tasks.broadcast import Subscription, SubscriptionClosed
from app.features.tasks.services import TaskService

router = APIRouter(tags=["realtime"])

# 1013 = "Try Again Later" : client trop lent, retiré du registre
LAGGING_CLOSE_CODE = 1013


async def _drain_incoming(websocket: WebSocket) -> None:
    # Les messages du client sont ignorés ; on lit seulement pour détecter la déconnexion
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def _forward(websocket: WebSocket, subscription: Subscription) -> bool:
    """Envoie la file du client. Retourne True si la souscription a été fermée pour retard."""
    try:
        while True:
            message = await subscription.next()
            await websocket.send_json(message)
    except SubscriptionClosed:
        return True
    except WebSocketDisconnect:
        return False


@router.websocket("/ws")
async def task_events(websocket: WebSocket, svc: TaskService = Depends(get_ws_task_service)):
    await websocket.accept()
    subscription = None
    lagging = False
    try:
        subscription = await svc.subscribe()

        async with anyio.create_task_group() as tg:

            async def reader() -> None:
                await _drain_incoming(websocket)
                tg.cancel_scope.cancel()

            async def writer() -> None:
                nonlocal lagging
                lagging = await _forward(websocket, subscription)
                tg.cancel_scope.cancel()

            tg.start_soon(reader)
            tg.start_soon(writer)

        if lagging:
            logger.warning("Closing lagging client id={}", subscription.id)
            await websocket.close(code=LAGGING_CLOSE_CODE)
    finally:
        if subscription is not None:
            svc.unsubscribe(subscription)
