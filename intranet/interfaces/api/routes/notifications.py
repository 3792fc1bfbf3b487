"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session
from starlette.websockets import WebSocketState

from intranet.application.use_cases.notifications import (
    clear_notifications as clear_notifications_uc,
    create_bulk_notifications as create_bulk_notifications_uc,
    create_notification as create_notification_uc,
    delete_notification as delete_notification_uc,
    get_notification_stats as get_notification_stats_uc,
    get_unread_count as get_unread_count_uc,
    list_notifications as list_notifications_uc,
    mark_all_notifications_read as mark_all_notifications_read_uc,
    mark_notification_read as mark_notification_read_uc,
    new_job_id,
    run_job_simulation,
)
from intranet.config import get_settings
from intranet.domain.entities import Notification, NotificationType, User
from intranet.domain.exceptions import PersistenceError
from intranet.infrastructure.database import SessionLocal, get_db
from intranet.infrastructure.notifications import (
    UNREAD_COUNT_CHANGED,
    NotificationPublisher,
)
from intranet.infrastructure.repositories import NotificationRepository
from intranet.interfaces.api.dependencies import (
    get_current_active_user,
    get_notification_publisher,
    resolve_current_user,
)
from intranet.interfaces.api.schemas import (
    BulkNotificationRequest,
    BulkNotificationResult,
    ClearNotificationsResult,
    JobStartedRead,
    MarkAllReadResponse,
    NotificationPageRead,
    NotificationRead,
    NotificationStatsRead,
    NotificationTrigger,
    NotificationTriggerResult,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)

_NOT_FOUND_DETAIL = "Notification not found"


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or "",
        title=notification.title,
        message=notification.message,
        type=notification.type,
        is_read=notification.is_read,
        read_at=notification.read_at,
        action_url=notification.action_url,
        metadata=notification.metadata,
        created_at=notification.created_at,
    )


def _clamp_page_size(page_size: int | None) -> int:
    settings = get_settings()
    requested = page_size or settings.default_page_size
    return max(1, min(requested, settings.max_page_size))


@router.get("/", response_model=NotificationPageRead)
def list_notifications(
    page_number: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1),
    is_read: bool | None = Query(default=None),
    notification_type: NotificationType | None = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationPageRead:
    """Return one page of the authenticated user's notifications, newest first."""

    page = list_notifications_uc(
        db,
        user_id=current_user.id,
        page_number=page_number,
        page_size=_clamp_page_size(page_size),
        is_read=is_read,
        notification_type=notification_type,
    )
    return NotificationPageRead(
        items=[_notification_to_schema(item) for item in page.items],
        unread_count=page.unread_count,
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
    )


@router.get("/unread-count", response_model=UnreadCountRead)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UnreadCountRead:
    return UnreadCountRead(count=get_unread_count_uc(db, user_id=current_user.id))


@router.get("/stats", response_model=NotificationStatsRead)
def get_notification_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationStatsRead:
    stats = get_notification_stats_uc(db, user_id=current_user.id)
    return NotificationStatsRead(
        total=stats.total,
        unread=stats.unread,
        by_type={member: stats.by_type.get(member, 0) for member in NotificationType},
    )


@router.put("/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> MarkAllReadResponse:
    count = mark_all_notifications_read_uc(
        db, user_id=current_user.id, publisher=publisher
    )
    return MarkAllReadResponse(marked_as_read=count)


@router.put("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_notification_read(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> Response:
    """Mark one notification as read; repeating the call is harmless."""

    found = mark_notification_read_uc(
        db, notification_id, user_id=current_user.id, publisher=publisher
    )
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND_DETAIL)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/clear", response_model=ClearNotificationsResult)
def clear_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> ClearNotificationsResult:
    """Delete every notification of the caller."""

    deleted = clear_notifications_uc(db, user_id=current_user.id, publisher=publisher)
    return ClearNotificationsResult(deleted_count=deleted)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> Response:
    deleted = delete_notification_uc(
        db, notification_id, user_id=current_user.id, publisher=publisher
    )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND_DETAIL)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/test",
    response_model=NotificationTriggerResult,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
def create_test_notification(
    payload: NotificationTrigger,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> NotificationTriggerResult:
    """Send a notification to the caller, mainly to exercise the push channel."""

    try:
        notification = create_notification_uc(
            db,
            user_id=current_user.id,
            title=payload.title or "Test Notification",
            message=payload.message or "This is a test notification message.",
            notification_type=payload.type or NotificationType.INFO,
            action_url=payload.action_url,
            metadata=payload.metadata,
            publisher=publisher,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return NotificationTriggerResult(notification_id=notification.id or "")


@router.post(
    "/test/bulk",
    response_model=BulkNotificationResult,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
def create_bulk_test_notifications(
    payload: BulkNotificationRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> BulkNotificationResult:
    created = create_bulk_notifications_uc(
        db,
        user_id=current_user.id,
        count=payload.count if payload else None,
        publisher=publisher,
    )
    return BulkNotificationResult(
        notification_ids=[notification.id or "" for notification in created],
        count=len(created),
    )


@router.post(
    "/test/job",
    response_model=JobStartedRead,
    status_code=status.HTTP_202_ACCEPTED,
    include_in_schema=False,
)
def simulate_job(
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_active_user),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> JobStartedRead:
    """Start a fake job that reports its progress through notifications."""

    job_id = new_job_id()
    background_tasks.add_task(
        run_job_simulation,
        SessionLocal,
        user_id=current_user.id,
        job_id=job_id,
        step_seconds=get_settings().job_simulation_step_seconds,
        publisher=publisher,
    )
    return JobStartedRead(
        job_id=job_id,
        message="Job started, you will receive notifications about its progress",
    )


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notification events to the authenticated user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    except PersistenceError:
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return
    finally:
        session.close()

    manager = websocket.app.state.notification_manager
    publisher = NotificationPublisher(manager)
    # Register before counting so nothing created in between is missed.
    await manager.connect(user.id, websocket)
    try:
        unread_count = _count_unread(user.id)
    except PersistenceError:
        manager.disconnect(user.id, websocket)
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    try:
        await websocket.send_json({"type": UNREAD_COUNT_CHANGED, "data": {"count": unread_count}})
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if websocket.application_state != WebSocketState.CONNECTED:
                # Closed by the manager after a failed delivery.
                break
            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    _acknowledge(user.id, ids, publisher)
                continue
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(user.id, websocket)


def _count_unread(user_id: int) -> int:
    count_session = SessionLocal()
    try:
        return NotificationRepository(count_session).count_unread(user_id)
    finally:
        count_session.close()


def _acknowledge(user_id: int, ids: list[object], publisher: NotificationPublisher) -> None:
    """Mark the notifications a client acknowledged over the socket as read."""

    ack_session = SessionLocal()
    try:
        for notification_id in dict.fromkeys(str(value) for value in ids):
            mark_notification_read_uc(
                ack_session, notification_id, user_id=user_id, publisher=publisher
            )
    except PersistenceError:
        logger.warning("Could not acknowledge notifications for user %s", user_id)
    finally:
        ack_session.close()
