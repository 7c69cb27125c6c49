from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState
from greendata.core.change_feed import change_feed
from greendata.core.database import AsyncSessionLocal
from greendata.core.security import resolve_profile
from greendata.schemas.file import FileOut, FilesSnapshot
from greendata.schemas.stats import AdminOverview, AdminSnapshot, StorageStats
from greendata.services import file_service, stats_service
from typing import Awaitable, Callable, Optional
import asyncio
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["Realtime"])


async def _authenticate(websocket: WebSocket, admin_only: bool = False):
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Missing token")
        return None

    async with AsyncSessionLocal() as db:
        profile = await resolve_profile(token, db)
    if profile is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return None
    if admin_only and not profile.is_admin:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Admin access required")
        return None
    return profile


def _connected(websocket: WebSocket) -> bool:
    return (
        websocket.client_state == WebSocketState.CONNECTED
        and websocket.application_state == WebSocketState.CONNECTED
    )


async def _serve(websocket: WebSocket, user_id: Optional[int], send_snapshot: Callable[[], Awaitable[None]]):
    """Push a fresh snapshot now and after every change until the client goes away."""
    async with change_feed.channel(user_id) as changes:
        await send_snapshot()

        async def pump():
            while True:
                change = await changes.get()
                logger.debug("Refreshing view for user_id=%s after %s", user_id, change.event)
                try:
                    await send_snapshot()
                except WebSocketDisconnect:
                    return
                except Exception:
                    if not _connected(websocket):
                        return
                    # The next change retries with a full re-fetch
                    logger.exception("Snapshot refresh failed for user_id=%s", user_id)

        pump_task = asyncio.create_task(pump())
        try:
            # Client messages are ignored; this only waits for the disconnect
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info("WebSocket closed for user_id=%s", user_id)
        finally:
            pump_task.cancel()
            try:
                await pump_task
            except asyncio.CancelledError:
                pass


@router.websocket("/files")
async def files_feed(websocket: WebSocket):
    await websocket.accept()
    profile = await _authenticate(websocket)
    if profile is None:
        return

    async def send_snapshot():
        async with AsyncSessionLocal() as db:
            records = await file_service.list_user_files(db, profile.id)
        snapshot = FilesSnapshot(
            files=[FileOut.model_validate(r) for r in records],
            stats=StorageStats(**stats_service.summarize_files(records)),
        )
        await websocket.send_json(snapshot.model_dump(mode="json", by_alias=True))

    await _serve(websocket, profile.id, send_snapshot)


@router.websocket("/admin")
async def admin_feed(websocket: WebSocket):
    await websocket.accept()
    profile = await _authenticate(websocket, admin_only=True)
    if profile is None:
        return

    async def send_snapshot():
        async with AsyncSessionLocal() as db:
            overview = await file_service.admin_overview(db)
        snapshot = AdminSnapshot(overview=AdminOverview(**overview))
        await websocket.send_json(snapshot.model_dump(mode="json", by_alias=True))

    await _serve(websocket, None, send_snapshot)
