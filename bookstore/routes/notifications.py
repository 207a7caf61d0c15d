import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.engine import Engine
from sqlmodel import Session

from bookstore.constants.roles import is_staff
from bookstore.database import get_engine
from bookstore.models.user import User
from bookstore.notifications.hub import hub
from bookstore.utils.token import resolve_user

logger = logging.getLogger(__name__)

router = APIRouter()


def resolve_staff(token: str, bind: Engine) -> User | None:
    """Look the caller up in a short session that is closed before streaming starts."""
    with Session(bind) as session:
        try:
            user = resolve_user(token, session)
        except HTTPException:
            return None
    return user if is_staff(user.role) else None


async def _wait_for_disconnect(websocket: WebSocket):
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws")
async def staff_alerts(
    websocket: WebSocket,
    token: str = Query(...),
    bind: Engine = Depends(get_engine),
):
    user = await run_in_threadpool(resolve_staff, token, bind)
    if user is None:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    queue = hub.subscribe()
    disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
    logger.info(f"Staff {user.id} subscribed to live alerts")

    try:
        while True:
            next_alert = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait(
                {next_alert, disconnected}, return_when=asyncio.FIRST_COMPLETED
            )
            if disconnected in done:
                next_alert.cancel()
                break
            await websocket.send_json(next_alert.result())
    except WebSocketDisconnect:
        pass
    finally:
        disconnected.cancel()
        hub.unsubscribe(queue)
        logger.info(f"Staff {user.id} disconnected from live alerts")
