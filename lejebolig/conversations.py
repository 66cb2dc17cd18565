# Conversation engine: direct messages, threads, per-counterpart summaries and read state.
# Depends only on the MessageStore protocol so it can run against SqlStorage or an in-memory fake.
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Protocol

from fastapi import Depends

from . import schemas
from .errors import NotFound, PermissionDenied, ValidationFailed
from .storage import SqlStorage, get_storage

logger = logging.getLogger("lejebolig.messages")


class MessageStore(Protocol):
    def get_user(self, user_id: int): ...

    def get_users(self, user_ids: Iterable[int]) -> Dict[int, object]: ...

    def get_property(self, property_id: int): ...

    def get_property_titles(self, property_ids: Iterable[int]) -> Dict[int, str]: ...

    def create_message(self, *, sender_id: int, recipient_id: int, content: str, property_id: Optional[int] = None): ...

    def get_message(self, message_id: int): ...

    def messages_for_user(self, user_id: int) -> list: ...

    def messages_between(self, user_id: int, other_user_id: int) -> list: ...

    def mark_read(self, *, recipient_id: int, sender_id: Optional[int] = None, message_id: Optional[int] = None) -> int: ...

    def unread_count(self, user_id: int) -> int: ...


class ConversationEngine:
    """
    Turns the append-only message log into threads and conversation summaries.

    Reads never change read state; acknowledging messages is always an explicit call
    (mark_conversation_read / mark_message_read) so clients decide when a message counts as seen.
    """

    def __init__(self, store: MessageStore) -> None:
        self.store = store

    def send_message(
        self,
        *,
        sender_id: int,
        recipient_id: int,
        content: str,
        property_id: Optional[int] = None,
    ):
        text = (content or "").strip()
        if not text:
            raise ValidationFailed("Message content must not be empty", field="content")
        if recipient_id == sender_id:
            raise ValidationFailed("Cannot send a message to yourself", field="recipient_id")
        if self.store.get_user(recipient_id) is None:
            raise ValidationFailed("Recipient does not exist", field="recipient_id")
        if property_id is not None and self.store.get_property(property_id) is None:
            raise ValidationFailed("Property does not exist", field="property_id")

        msg = self.store.create_message(
            sender_id=sender_id,
            recipient_id=recipient_id,
            content=text,
            property_id=property_id,
        )
        logger.info(
            "messages.sent",
            extra={
                "message_id": msg.id,
                "sender_id": sender_id,
                "recipient_id": recipient_id,
                "property_id": property_id,
            },
        )
        return msg

    def fetch_thread(self, user_id: int, other_user_id: Optional[int] = None) -> list:
        """
        With other_user_id: both directions of the pair, oldest first.
        Without: the user's whole inbox and outbox, newest first.
        """
        if other_user_id is None:
            return self.store.messages_for_user(user_id)
        return self.store.messages_between(user_id, other_user_id)

    def list_conversations(self, user_id: int) -> List[schemas.ConversationRead]:
        """
        One summary per counterpart, most recently active first.

        The message list arrives newest first, so the first row seen for a counterpart is its
        latest message; later rows only add to the unread count.
        """
        groups: Dict[int, dict] = {}
        for msg in self.store.messages_for_user(user_id):
            other_id = msg.sender_id if msg.recipient_id == user_id else msg.recipient_id
            group = groups.get(other_id)
            if group is None:
                group = groups[other_id] = {"latest": msg, "unread": 0}
            if msg.recipient_id == user_id and not msg.read:
                group["unread"] += 1

        if not groups:
            return []

        users = self.store.get_users(groups.keys())
        titles = self.store.get_property_titles(
            g["latest"].property_id for g in groups.values() if g["latest"].property_id is not None
        )

        summaries: List[schemas.ConversationRead] = []
        for other_id, group in groups.items():
            latest = group["latest"]
            other = users.get(other_id)
            summaries.append(
                schemas.ConversationRead(
                    other_user_id=other_id,
                    other_user_name=other.name if other is not None else None,
                    last_message=latest.content,
                    last_message_at=latest.created_at,
                    unread_count=group["unread"],
                    property_id=latest.property_id,
                    property_title=titles.get(latest.property_id) if latest.property_id is not None else None,
                )
            )
        return summaries

    def mark_conversation_read(self, user_id: int, other_user_id: int) -> int:
        """Mark everything other_user_id sent to user_id as read. Idempotent; returns rows changed."""
        updated = self.store.mark_read(recipient_id=user_id, sender_id=other_user_id)
        logger.info(
            "conversations.read",
            extra={"user_id": user_id, "other_user_id": other_user_id, "updated": updated},
        )
        return updated

    def mark_message_read(self, user_id: int, message_id: int):
        msg = self.store.get_message(message_id)
        if msg is None or user_id not in (msg.sender_id, msg.recipient_id):
            raise NotFound("Message not found")
        if msg.recipient_id != user_id:
            raise PermissionDenied("Only the recipient can mark a message as read")
        self.store.mark_read(recipient_id=user_id, message_id=message_id)
        return self.store.get_message(message_id)

    def unread_count(self, user_id: int) -> int:
        return self.store.unread_count(user_id)


def get_conversation_engine(store: SqlStorage = Depends(get_storage)) -> ConversationEngine:
    return ConversationEngine(store)
