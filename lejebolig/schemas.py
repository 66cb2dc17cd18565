# Pydantic models (request/response DTOs) used by the API layer.
# Keep models minimal and serializable; business rules live in storage.py / conversations.py.
from pydantic import BaseModel, Field, ConfigDict, field_validator, EmailStr
from typing import List, Literal, Optional
from datetime import date, datetime
from decimal import Decimal


# Image references: inline data URIs (base64 uploads) or remote URLs
_IMAGE_PREFIXES = ("data:image/", "http://", "https://")


def _strip(v):
    if isinstance(v, str):
        v = v.strip()
    return v


def _blank_to_none(v):
    v = _strip(v)
    if v == "":
        return None
    return v


def _check_image_ref(v: str) -> str:
    if not v.startswith(_IMAGE_PREFIXES):
        raise ValueError("image must be a data:image/ URI or an http(s) URL")
    return v


# Authentication and user models

# User roles within the system
Role = Literal["landlord", "tenant"]


# Request payload for user registration
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Role = "tenant"

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip(v)

    # Normalize email input to lowercase without surrounding whitespace
    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip().lower()
        return v


# Request payload for logging in
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip().lower()
        return v


# Profile fields a user may change; role and email are fixed after registration
class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    bio: Optional[str] = Field(None, max_length=2000)
    phone: Optional[str] = Field(None, max_length=50)
    profile_picture_url: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return _strip(v)

    @field_validator("bio", "phone", "profile_picture_url", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("profile_picture_url")
    @classmethod
    def check_picture(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_image_ref(v)


# Public profile: what other users may see
class UserPublic(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: Role
    phone: Optional[str] = None
    bio: Optional[str] = None
    profile_picture_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# API response for the authenticated user's own record
class UserRead(UserPublic):
    created_at: datetime


# Token response bundled with the current user profile
class TokenResponse(BaseModel):
    user: UserRead
    token: str
    token_type: str = "bearer"


# Listings

# Base attributes for a property listing (shared by create/read)
class PropertyBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1, max_length=500)
    postal_code: Optional[str] = Field(None, max_length=20)
    city: Optional[str] = Field(None, max_length=120)
    country: Optional[str] = Field(None, max_length=120)
    # Monetary amount; serialized as a string to avoid float rounding
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    rooms: int = Field(..., ge=1)
    size: int = Field(..., ge=1)
    available: bool = True
    available_from: Optional[date] = None
    images: List[str] = Field(default_factory=list)

    @field_validator("title", "description", "address", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        # Trim surrounding whitespace before validation
        return _strip(v)

    @field_validator("postal_code", "city", "country", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("images")
    @classmethod
    def check_images(cls, v: List[str]) -> List[str]:
        return [_check_image_ref(item.strip()) for item in v]


# Payload for creating a new property
class PropertyCreate(PropertyBase):
    pass


# Partial update: every field optional, unset fields are left untouched
class PropertyUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    postal_code: Optional[str] = Field(None, max_length=20)
    city: Optional[str] = Field(None, max_length=120)
    country: Optional[str] = Field(None, max_length=120)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    rooms: Optional[int] = Field(None, ge=1)
    size: Optional[int] = Field(None, ge=1)
    available: Optional[bool] = None
    available_from: Optional[date] = None
    images: Optional[List[str]] = None

    @field_validator("title", "description", "address", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)

    @field_validator("postal_code", "city", "country", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("images")
    @classmethod
    def check_images(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return [_check_image_ref(item.strip()) for item in v]


# Response shape when reading a property from the API
class PropertyRead(PropertyBase):
    id: int
    landlord_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Favorites

# Request payload for saving a listing
class FavoriteCreate(BaseModel):
    property_id: int = Field(..., ge=1)


# Saved listing with the listing embedded for the favorites page
class FavoriteRead(BaseModel):
    id: int
    user_id: int
    property_id: int
    created_at: datetime
    property: PropertyRead

    model_config = ConfigDict(from_attributes=True)


class FavoriteStatus(BaseModel):
    property_id: int
    favorite: bool


# Messages

# API response for a direct message
class MessageRead(BaseModel):
    id: int
    sender_id: int
    recipient_id: int
    property_id: Optional[int] = None
    content: str
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Request payload for sending a message
class MessageCreate(BaseModel):
    recipient_id: int = Field(..., ge=1)
    property_id: Optional[int] = Field(None, ge=1)
    content: str = Field(..., min_length=1, max_length=2000)

    # Trim surrounding whitespace before validation
    @field_validator("content", mode="before")
    @classmethod
    def normalize_content(cls, v: str) -> str:
        return _strip(v)


# Per-counterpart summary computed from the message log
class ConversationRead(BaseModel):
    other_user_id: int
    other_user_name: Optional[str] = None
    last_message: str
    last_message_at: datetime
    unread_count: int
    property_id: Optional[int] = None
    property_title: Optional[str] = None


class MarkReadResponse(BaseModel):
    success: bool = True
    updated: int


class UnreadCount(BaseModel):
    unread_count: int
