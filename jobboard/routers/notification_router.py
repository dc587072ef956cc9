# jobboard/routers/notification_router.py

from fastapi import APIRouter, BackgroundTasks, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from jobboard.core.config import settings
from jobboard.core.database import get_db
from jobboard.core.security import get_current_admin, get_current_user, get_current_user_from_websocket_token
from jobboard.core.websocket_manager import manager
from jobboard.models.user import User
from jobboard.schemas.notification_schema import (
    CleanupResult, DispatchResult, MarkAllReadResult, NotificationAnalytics, NotificationOut,
    SystemNotificationCreate, UnreadCount
)
from jobboard.services.notification_dispatcher import (
    NotificationDispatcher, get_dispatcher, schedule_dispatch
)
from jobboard.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/Notifications",
    tags=["Notifications"]
)


def get_notification_service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


@router.get("", response_model=List[NotificationOut], summary="My notifications")
async def api_get_my_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    """
    Newest first. Clients without a WebSocket connection can poll this.
    """
    return await service.get_user_notifications(current_user, unread_only=unread_only, limit=limit)


@router.get("/unread", response_model=List[NotificationOut])
async def api_get_unread(
    limit: int = Query(50, ge=1, le=200),
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    return await service.get_user_notifications(current_user, unread_only=True, limit=limit)


@router.get("/unread-count", response_model=UnreadCount)
async def api_get_unread_count(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    return UnreadCount(unread_count=await service.get_unread_count(current_user))


@router.get("/analytics", response_model=NotificationAnalytics)
async def api_get_analytics(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    return await service.get_analytics(current_user)


@router.put("/read-all", response_model=MarkAllReadResult)
async def api_mark_all_as_read(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    return MarkAllReadResult(updated=await service.mark_all_as_read(current_user))


@router.put("/{notification_id}/read", response_model=NotificationOut)
async def api_mark_as_read(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    """
    Called when the user opens a notification
    """
    return await service.mark_as_read(notification_id, current_user)


# --- Admin ---

@router.post("", response_model=NotificationOut, status_code=status.HTTP_201_CREATED)
async def api_send_system_notification(
    body: SystemNotificationCreate,
    background_tasks: BackgroundTasks,
    service: NotificationService = Depends(get_notification_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    admin: User = Depends(get_current_admin)
):
    notification = await service.create_system_notification(
        body.recipient_user_id, body.title, body.message, body.is_urgent, admin
    )
    schedule_dispatch(background_tasks, service, dispatcher)
    return notification


@router.post("/dispatch-pending", response_model=DispatchResult)
async def api_dispatch_pending(
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    admin: User = Depends(get_current_admin)
):
    """
    Retry email delivery for notifications still marked unsent
    """
    return DispatchResult(processed=await dispatcher.dispatch_pending())


@router.delete("/cleanup", response_model=CleanupResult)
async def api_cleanup_notifications(
    days: int = Query(settings.NOTIFICATION_RETENTION_DAYS, ge=1),
    service: NotificationService = Depends(get_notification_service),
    admin: User = Depends(get_current_admin)
):
    return CleanupResult(deleted=await service.cleanup_old_notifications(days))


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def api_delete_notification(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    await service.delete_notification(notification_id, current_user)


# --- WebSocket ---

@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    # Connection URL: /api/Notifications/ws?token=<JWT>
    user: User = Depends(get_current_user_from_websocket_token)
):
    """
    Live notification feed. Every connection joins the user's group and
    receives {"event": "notification", "notification": {...}} messages.
    """
    await manager.connect(user.user_id, websocket)
    try:
        while True:
            # Incoming frames are only keep-alives
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(user.user_id, websocket)
    except Exception as e:
        logger.error(f"WebSocket error for user {user.user_id}: {e}", exc_info=True)
        manager.disconnect(user.user_id, websocket)
