"""Messaging router - Booking chat, direct messages, attachments and live updates"""

import json
import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...auth import get_current_principal
from ...database import SessionLocal, get_db
from ...errors import Transient, ValidationFailed
from ...models import Profile
from ...services.change_feed import ChangeFeed, channel_name, get_change_feed
from ...services.object_storage import ObjectStorage, get_object_storage
from .schemas import (
    AttachmentResponse,
    BookingMessageResponse,
    ConversationSummary,
    DirectMessageResponse,
    MessageCreate,
    UnreadCountsResponse,
)
from .service import MessagingService
from .unread import RecomputeTrigger, UnreadCounter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Messages"])


def get_messaging_service(
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
    feed: ChangeFeed = Depends(get_change_feed),
) -> MessagingService:
    """Dependency injection for MessagingService"""
    return MessagingService(db, storage, feed)


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


def _counts_body(counter: UnreadCounter) -> dict:
    return {"counts": counter.counts, "total": counter.total}


def _require_live_updates(feed: ChangeFeed) -> None:
    # Fail before the stream starts, while a status code can still be sent
    if not feed.url:
        raise Transient("Live updates are not available right now.")


# ----------------------------------------------------------------------
# Booking chat
# ----------------------------------------------------------------------


@router.get("/bookings/{booking_id}/messages", response_model=list[BookingMessageResponse])
async def list_booking_messages(
    booking_id: str,
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.list_booking_messages(current_principal, booking_id)


@router.post(
    "/bookings/{booking_id}/messages", response_model=BookingMessageResponse, status_code=201
)
async def send_booking_message(
    booking_id: str,
    data: MessageCreate,
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
):
    """Post in a booking's chat (its hirer and worker only)"""
    return service.send_booking_message(current_principal, booking_id, data)


# ----------------------------------------------------------------------
# Attachments
# ----------------------------------------------------------------------


@router.post("/attachments", response_model=AttachmentResponse, status_code=201)
async def upload_attachment(
    file: UploadFile = File(...),
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
):
    """Upload a chat file; the returned URL can be sent in a message"""
    if not file or not file.filename:
        raise ValidationFailed({"file": "No file provided"})

    contents = await file.read()
    url = service.upload_attachment(current_principal, file.filename, file.content_type, contents)
    return AttachmentResponse(file_url=url, file_type=file.content_type, size=len(contents))


@router.delete("/attachments/{key:path}", status_code=204)
async def delete_attachment(
    key: str,
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
):
    service.delete_attachment(current_principal, key)


# ----------------------------------------------------------------------
# Direct messages
# ----------------------------------------------------------------------


@router.get("/messages/direct", response_model=list[ConversationSummary])
async def list_conversations(
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
):
    """Conversation index, most recent first"""
    return [
        ConversationSummary(
            peer_id=summary["peer_id"],
            peer_name=summary["peer_name"],
            last_message=DirectMessageResponse.model_validate(summary["last_message"]),
            unread_count=summary["unread_count"],
        )
        for summary in service.list_conversations(current_principal)
    ]


@router.get("/messages/direct/unread", response_model=UnreadCountsResponse)
async def get_unread_counts(
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
):
    return _counts_body(service.unread_counts(current_principal))


@router.get("/messages/direct/unread/stream")
async def stream_unread_counts(
    current_principal: Profile = Depends(get_current_principal),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """
    Server-sent events with the principal's unread counts: once on connect,
    then again after every change notification on their inbox channel.
    """
    _require_live_updates(feed)
    receiver_id = current_principal.id
    channel = channel_name("direct_messages", "receiver_id", receiver_id)

    async def events():
        # The request-scoped session is gone once streaming starts
        db = SessionLocal()
        try:
            counter = UnreadCounter(db, receiver_id)
            yield _sse("unread", _counts_body(counter))
            async for payload in feed.listen(channel):
                if payload is None:
                    yield ": keepalive\n\n"
                    continue
                db.expire_all()
                counter.recompute(RecomputeTrigger.NOTIFICATION)
                yield _sse("unread", _counts_body(counter))
        finally:
            db.close()

    return StreamingResponse(events(), media_type="text/event-stream")


@router.post(
    "/messages/direct/message/{message_id}/read", response_model=DirectMessageResponse
)
async def mark_message_read(
    message_id: str,
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
):
    """Read receipt; only the receiver may set it, and only once"""
    return service.mark_read(current_principal, message_id)


@router.get("/messages/direct/{peer_id}", response_model=list[DirectMessageResponse])
async def get_conversation(
    peer_id: str,
    mark_read: bool = Query(True),
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.get_conversation(current_principal, peer_id, mark_read=mark_read)


@router.post("/messages/direct/{peer_id}", response_model=DirectMessageResponse, status_code=201)
async def send_direct_message(
    peer_id: str,
    data: MessageCreate,
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.send_direct_message(current_principal, peer_id, data)


@router.post("/messages/direct/{peer_id}/read")
async def mark_conversation_read(
    peer_id: str,
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
):
    updated = service.mark_conversation_read(current_principal, peer_id)
    return {"updated": updated}


# ----------------------------------------------------------------------
# Change feed
# ----------------------------------------------------------------------


@router.get("/changes/stream")
async def stream_changes(
    table: str = Query(...),
    column: str = Query(...),
    value: str = Query(...),
    current_principal: Profile = Depends(get_current_principal),
    service: MessagingService = Depends(get_messaging_service),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """
    Relay one change channel as server-sent events. Events only say that
    something changed; clients re-fetch through the regular endpoints.
    """
    service.authorize_channel(current_principal, table, column, value)
    _require_live_updates(feed)
    channel = channel_name(table, column, value)
    logger.info(f"📡 {current_principal.id} streaming {channel}")

    async def events():
        async for payload in feed.listen(channel):
            if payload is None:
                yield ": keepalive\n\n"
            else:
                yield f"event: change\ndata: {payload}\n\n"

    return StreamingResponse(events(), media_type="text/event-stream")
