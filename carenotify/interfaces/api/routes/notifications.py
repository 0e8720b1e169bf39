"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging
from dataclasses import replace

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from carenotify.application.use_cases.notifications import (
    NotificationDispatcher,
    record_polled_deliveries,
)
from carenotify.bootstrap import NotificationServices
from carenotify.domain.entities import (
    NotificationNotFoundError,
    NotificationType,
    serialize_notification,
)
from carenotify.interfaces.api.dependencies import (
    get_current_user_id,
    get_dispatcher,
    get_services,
)
from carenotify.interfaces.api.schemas import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
    NotificationRead,
    UnreadCountResponse,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)

WS_POLICY_VIOLATION = 1008


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    is_read: bool | None = Query(None),
    notification_type: NotificationType | None = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    services: NotificationServices = Depends(get_services),
) -> NotificationListResponse:
    """Return the caller's notifications and confirm their delivery by polling."""

    result = await services.notifications.list_for_user(
        user_id,
        is_read=is_read,
        notification_type=notification_type,
        page=page,
        limit=limit,
    )
    await record_polled_deliveries(
        services.delivery_logs, user_id, [item.id for item in result.items]
    )
    return NotificationListResponse(
        items=[NotificationRead.model_validate(item) for item in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        has_next_page=result.has_next_page,
        has_prev_page=result.has_prev_page,
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    user_id: str = Depends(get_current_user_id),
    services: NotificationServices = Depends(get_services),
) -> UnreadCountResponse:
    count = await services.notifications.get_unread_count(user_id)
    return UnreadCountResponse(count=count)


@router.get("/preferences", response_model=NotificationPreferencesRead)
async def get_preferences(
    user_id: str = Depends(get_current_user_id),
    services: NotificationServices = Depends(get_services),
) -> NotificationPreferencesRead:
    preferences = await services.preferences.get_preferences(user_id)
    return NotificationPreferencesRead.model_validate(preferences)


@router.put("/preferences", response_model=NotificationPreferencesRead)
async def update_preferences(
    payload: NotificationPreferencesUpdate,
    user_id: str = Depends(get_current_user_id),
    services: NotificationServices = Depends(get_services),
) -> NotificationPreferencesRead:
    """Apply the provided fields on top of the stored preferences."""

    current = await services.preferences.get_preferences(user_id)
    changes = payload.model_dump(exclude_unset=True)
    updated = await services.preferences.upsert_preferences(replace(current, **changes))
    return NotificationPreferencesRead.model_validate(updated)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    user_id: str = Depends(get_current_user_id),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> MarkAllReadResponse:
    updated = await dispatcher.mark_all_notifications_as_read(user_id)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_as_read(
    notification_id: str,
    user_id: str = Depends(get_current_user_id),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> NotificationRead:
    try:
        notification = await dispatcher.mark_notification_as_read(notification_id, user_id)
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return NotificationRead.model_validate(notification)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the connected user."""

    user_id = (websocket.query_params.get("user_id") or "").strip()
    services: NotificationServices | None = getattr(
        websocket.app.state, "notification_services", None
    )
    if not user_id or services is None:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    pending = await services.notifications.list_unread(user_id)

    await services.manager.connect(user_id, websocket)
    try:
        if pending:
            await websocket.send_json(
                {"type": "init", "data": [serialize_notification(n) for n in pending]}
            )
            await record_polled_deliveries(
                services.delivery_logs, user_id, [n.id for n in pending]
            )
        while True:
            message = await websocket.receive_json()
            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list):
                    await _acknowledge(services.dispatcher, user_id, ids)
    except WebSocketDisconnect:
        logger.debug("Websocket for user %s disconnected", user_id)
    finally:
        services.manager.disconnect(user_id, websocket)


async def _acknowledge(
    dispatcher: NotificationDispatcher, user_id: str, notification_ids: list[object]
) -> None:
    for notification_id in notification_ids:
        if not isinstance(notification_id, str) or not notification_id:
            continue
        try:
            await dispatcher.mark_notification_as_read(notification_id, user_id)
        except NotificationNotFoundError:
            logger.debug(
                "Ignoring ack for unknown notification %s from user %s",
                notification_id,
                user_id,
            )
