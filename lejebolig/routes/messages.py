# Direct-message and conversation endpoints.
# Clients poll these (thread every ~5s, conversation list every ~10s); there is no push channel.
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Query, status

from .. import models, schemas
from ..conversations import ConversationEngine, get_conversation_engine
from .auth import get_current_user

# Router namespace for messaging APIs
router = APIRouter()
# Namespaced logger for message reads
logger = logging.getLogger("lejebolig.messages")


@router.get("/messages", response_model=List[schemas.MessageRead])
def list_messages(
    other_user_id: Optional[int] = Query(None, ge=1, alias="otherUserId"),
    engine: ConversationEngine = Depends(get_conversation_engine),
    user: models.User = Depends(get_current_user),
):
    """
    Return a thread or the flat inbox.

    - otherUserId given: messages exchanged with that user, ascending by created_at then id
    - otherwise: every message the caller sent or received, newest first

    Reading does not mark anything as read.
    """
    items = engine.fetch_thread(user.id, other_user_id)
    logger.debug(
        "messages.history",
        extra={"user_id": user.id, "other_user_id": other_user_id, "count": len(items)},
    )
    return items


@router.post("/messages", response_model=schemas.MessageRead, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: schemas.MessageCreate,
    engine: ConversationEngine = Depends(get_conversation_engine),
    user: models.User = Depends(get_current_user),
):
    return engine.send_message(
        sender_id=user.id,
        recipient_id=payload.recipient_id,
        content=payload.content,
        property_id=payload.property_id,
    )


@router.put("/messages/{message_id}/read", response_model=schemas.MessageRead)
def mark_message_read(
    message_id: int,
    engine: ConversationEngine = Depends(get_conversation_engine),
    user: models.User = Depends(get_current_user),
):
    return engine.mark_message_read(user.id, message_id)


@router.get("/conversations", response_model=List[schemas.ConversationRead])
def list_conversations(
    engine: ConversationEngine = Depends(get_conversation_engine),
    user: models.User = Depends(get_current_user),
):
    return engine.list_conversations(user.id)


@router.get("/conversations/unread-count", response_model=schemas.UnreadCount)
def unread_count(
    engine: ConversationEngine = Depends(get_conversation_engine),
    user: models.User = Depends(get_current_user),
):
    return schemas.UnreadCount(unread_count=engine.unread_count(user.id))


@router.put("/conversations/{other_user_id}/read", response_model=schemas.MarkReadResponse)
def mark_conversation_read(
    other_user_id: int,
    engine: ConversationEngine = Depends(get_conversation_engine),
    user: models.User = Depends(get_current_user),
):
    updated = engine.mark_conversation_read(user.id, other_user_id)
    return schemas.MarkReadResponse(updated=updated)
