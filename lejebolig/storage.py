# Request-scoped storage handle over a SQLAlchemy session.
# Route handlers receive one through the get_storage dependency instead of importing a shared store;
# the conversation engine only sees the message/user/listing methods it needs.
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from fastapi import Depends
from sqlalchemy import and_, func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from . import models
from .db import get_db
from .errors import Conflict, NotFound

logger = logging.getLogger("lejebolig.storage")


class SqlStorage:
    """All persistence for one unit of work. Commits happen per write method."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ----------------
    # Users
    # ----------------
    def get_user(self, user_id: int) -> Optional[models.User]:
        return self.db.get(models.User, user_id)

    def get_users(self, user_ids: Iterable[int]) -> Dict[int, models.User]:
        ids = set(user_ids)
        if not ids:
            return {}
        rows = self.db.query(models.User).filter(models.User.id.in_(ids)).all()
        return {u.id: u for u in rows}

    def get_user_by_email(self, email: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.email == email).first()

    def create_user(self, *, name: str, email: str, password_hash: str, role: str) -> models.User:
        user = models.User(name=name, email=email, password_hash=password_hash, role=role)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same email
            self.db.rollback()
            raise Conflict("Email already registered", field="email") from exc
        self.db.refresh(user)
        return user

    def update_user(self, user: models.User, changes: dict) -> models.User:
        for key, value in changes.items():
            setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    # ----------------
    # Listings
    # ----------------
    def get_property(self, property_id: int) -> Optional[models.Property]:
        return self.db.get(models.Property, property_id)

    def search_properties(
        self,
        *,
        location: Optional[str] = None,
        rooms: Optional[int] = None,
        max_price: Optional[Decimal] = None,
        landlord_id: Optional[int] = None,
    ) -> List[models.Property]:
        """Available listings matching every given filter, newest first."""
        q = self.db.query(models.Property).filter(models.Property.available.is_(True))
        if location:
            # Match the text literally: % and _ from the caller are not wildcards
            escaped = location.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            pattern = f"%{escaped}%"
            q = q.filter(
                or_(
                    models.Property.address.ilike(pattern, escape="\\"),
                    models.Property.city.ilike(pattern, escape="\\"),
                    models.Property.postal_code.ilike(pattern, escape="\\"),
                )
            )
        if rooms is not None:
            q = q.filter(models.Property.rooms == rooms)
        if max_price is not None:
            q = q.filter(models.Property.price <= max_price)
        if landlord_id is not None:
            q = q.filter(models.Property.landlord_id == landlord_id)
        return q.order_by(models.Property.created_at.desc(), models.Property.id.desc()).all()

    def properties_for_landlord(self, landlord_id: int) -> List[models.Property]:
        return (
            self.db.query(models.Property)
            .filter(models.Property.landlord_id == landlord_id)
            .order_by(models.Property.created_at.desc(), models.Property.id.desc())
            .all()
        )

    def get_property_titles(self, property_ids: Iterable[int]) -> Dict[int, str]:
        ids = set(property_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(models.Property.id, models.Property.title)
            .filter(models.Property.id.in_(ids))
            .all()
        )
        return {pid: title for pid, title in rows}

    def create_property(self, landlord_id: int, data: dict) -> models.Property:
        obj = models.Property(landlord_id=landlord_id, **data)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update_property(self, obj: models.Property, changes: dict) -> models.Property:
        for key, value in changes.items():
            setattr(obj, key, value)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def delete_property(self, obj: models.Property) -> None:
        """Delete a listing and the favorites pointing at it. Messages keep their reference."""
        property_id = obj.id
        removed = (
            self.db.query(models.Favorite)
            .filter(models.Favorite.property_id == property_id)
            .delete(synchronize_session=False)
        )
        self.db.delete(obj)
        self.db.commit()
        logger.info("properties.deleted", extra={"property_id": property_id, "favorites_removed": removed})

    # ----------------
    # Favorites
    # ----------------
    def list_favorites(self, user_id: int) -> List[models.Favorite]:
        return (
            self.db.query(models.Favorite)
            .options(joinedload(models.Favorite.property))
            .filter(models.Favorite.user_id == user_id)
            .order_by(models.Favorite.created_at.desc(), models.Favorite.id.desc())
            .all()
        )

    def is_favorite(self, user_id: int, property_id: int) -> bool:
        row = (
            self.db.query(models.Favorite.id)
            .filter(models.Favorite.user_id == user_id, models.Favorite.property_id == property_id)
            .first()
        )
        return row is not None

    def add_favorite(self, user_id: int, property_id: int) -> models.Favorite:
        if self.get_property(property_id) is None:
            raise NotFound("Property not found", field="property_id")
        if self.is_favorite(user_id, property_id):
            raise Conflict("Property already in favorites", field="property_id")
        fav = models.Favorite(user_id=user_id, property_id=property_id)
        self.db.add(fav)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Concurrent double submit: the unique constraint decides the winner
            self.db.rollback()
            raise Conflict("Property already in favorites", field="property_id") from exc
        self.db.refresh(fav)
        return fav

    def remove_favorite(self, user_id: int, property_id: int) -> bool:
        removed = (
            self.db.query(models.Favorite)
            .filter(models.Favorite.user_id == user_id, models.Favorite.property_id == property_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed > 0

    # ----------------
    # Messages
    # ----------------
    def create_message(
        self, *, sender_id: int, recipient_id: int, content: str, property_id: Optional[int] = None
    ) -> models.Message:
        msg = models.Message(
            sender_id=sender_id,
            recipient_id=recipient_id,
            property_id=property_id,
            content=content,
            read=False,
        )
        self.db.add(msg)
        self.db.commit()
        self.db.refresh(msg)
        return msg

    def get_message(self, message_id: int) -> Optional[models.Message]:
        return self.db.get(models.Message, message_id)

    def messages_for_user(self, user_id: int) -> List[models.Message]:
        """Every message sent or received by the user, newest first."""
        return (
            self.db.query(models.Message)
            .filter(or_(models.Message.sender_id == user_id, models.Message.recipient_id == user_id))
            .order_by(models.Message.created_at.desc(), models.Message.id.desc())
            .all()
        )

    def messages_between(self, user_id: int, other_user_id: int) -> List[models.Message]:
        """Both directions of one pair, oldest first."""
        return (
            self.db.query(models.Message)
            .filter(
                or_(
                    and_(models.Message.sender_id == user_id, models.Message.recipient_id == other_user_id),
                    and_(models.Message.sender_id == other_user_id, models.Message.recipient_id == user_id),
                )
            )
            .order_by(models.Message.created_at.asc(), models.Message.id.asc())
            .all()
        )

    def mark_read(self, *, recipient_id: int, sender_id: Optional[int] = None, message_id: Optional[int] = None) -> int:
        """Flip unread messages addressed to recipient_id; returns the number of rows changed."""
        stmt = update(models.Message).where(
            models.Message.recipient_id == recipient_id,
            models.Message.read.is_(False),
        )
        if sender_id is not None:
            stmt = stmt.where(models.Message.sender_id == sender_id)
        if message_id is not None:
            stmt = stmt.where(models.Message.id == message_id)
        result = self.db.execute(stmt.values(read=True).execution_options(synchronize_session=False))
        self.db.commit()
        return result.rowcount or 0

    def unread_count(self, user_id: int) -> int:
        return (
            self.db.query(func.count(models.Message.id))
            .filter(models.Message.recipient_id == user_id, models.Message.read.is_(False))
            .scalar()
        ) or 0


def get_storage(db: Session = Depends(get_db)) -> SqlStorage:
    """FastAPI dependency: a storage handle bound to the request's session."""
    return SqlStorage(db)
