# SQLAlchemy ORM models for the marketplace tables (users, properties, messages, favorites).
# Keep business logic out of models; storage.py and conversations.py own queries and rules.
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_mixin, relationship

from .db import Base


@declarative_mixin
class TimestampMixin:
    """Common UTC-aware timestamps automatically managed by the database.

    - created_at: set on insert
    - updated_at: set on insert and updated on each modification
    """
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class User(Base, TimestampMixin):
    """Marketplace account.

    Roles (fixed at registration):
    - landlord: publishes and manages listings
    - tenant: browses, favorites listings and messages landlords
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)  # "landlord" or "tenant"
    phone = Column(String(50), nullable=True)
    bio = Column(Text, nullable=True)
    # Data URI or URL; data URIs can be large, hence Text
    profile_picture_url = Column(Text, nullable=True)

    properties = relationship("Property", back_populates="landlord")


class Property(Base, TimestampMixin):
    """Rental listing created and managed by a landlord."""
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    landlord_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    address = Column(String(500), nullable=False)
    postal_code = Column(String(20), nullable=True)
    city = Column(String(120), nullable=True, index=True)
    country = Column(String(120), nullable=True)
    price = Column(Numeric(10, 2, asdecimal=True), nullable=False)
    rooms = Column(Integer, nullable=False)
    size = Column(Integer, nullable=False)  # square meters
    available = Column(Boolean, nullable=False, default=True, index=True)
    available_from = Column(Date, nullable=True)
    # Ordered list of image references (data URIs or http(s) URLs)
    images = Column(JSON, nullable=False, default=list)

    landlord = relationship("User", back_populates="properties")


class Message(Base):
    """One direct message between two users, optionally about a listing.

    property_id is a soft reference: no foreign key, so messages outlive a deleted listing.
    Only `read` ever changes after insert, and only from False to True.
    """
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    property_id = Column(Integer, nullable=True, index=True)
    content = Column(String(2000), nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Pair lookups for threads and the unread scan for mark-as-read
    __table_args__ = (
        Index("ix_messages_sender_recipient_created_at", "sender_id", "recipient_id", "created_at"),
        Index("ix_messages_recipient_read", "recipient_id", "read"),
    )


class Favorite(Base):
    """A tenant's saved listing. At most one row per (user, listing)."""
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    property = relationship("Property")

    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_favorites_user_property"),
    )
