from __future__ import annotations

import logging
import os
import time
from typing import Optional

import jwt
from fastapi import APIRouter, Depends, HTTPException, Header, status
from passlib.context import CryptContext

from .. import models, schemas
from ..rate_limit import rate_limit
from ..storage import SqlStorage, get_storage

router = APIRouter()
logger = logging.getLogger("lejebolig.auth")

# Security primitives
JWT_SECRET: str = os.getenv("LEJEBOLIG_JWT_SECRET", "dev-secret-change-me")
JWT_ALG: str = "HS256"
JWT_TTL_SECONDS: int = int(os.getenv("JWT_TTL_SECONDS", str(60 * 60 * 24 * 7)))  # 7 days
# Use bcrypt_sha256 to avoid bcrypt's 72-byte password limit and handle unicode safely.
pwd_context = CryptContext(schemes=["bcrypt_sha256"], deprecated="auto")


# ----------------
# Helpers
# ----------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(*, user: models.User) -> str:
    # Payload is deliberately minimal: identity and expiry only
    payload = {
        "sub": str(user.id),
        "exp": int(time.time()) + JWT_TTL_SECONDS,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG], options={"require": ["exp", "sub"]})
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


def _token_response(user: models.User) -> schemas.TokenResponse:
    return schemas.TokenResponse(
        user=schemas.UserRead.model_validate(user),
        token=create_access_token(user=user),
    )


# ----------------
# Dependencies
# ----------------
def bearer_token_from_auth_header(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization header missing")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Authorization header")
    return parts[1].strip()


def get_current_user(
    store: SqlStorage = Depends(get_storage),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> models.User:
    token = bearer_token_from_auth_header(authorization)
    payload = decode_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    user = store.get_user(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_landlord(user: models.User = Depends(get_current_user)) -> models.User:
    if user.role != "landlord":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Landlord role required")
    return user


def require_tenant(user: models.User = Depends(get_current_user)) -> models.User:
    if user.role != "tenant":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Tenant role required")
    return user


# ----------------
# Routes
# ----------------
@router.post(
    "/auth/register",
    response_model=schemas.TokenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("register"))],
)
def register(payload: schemas.UserCreate, store: SqlStorage = Depends(get_storage)) -> schemas.TokenResponse:
    # Email is normalized by the schema validator; enforce uniqueness up front for a clean 409
    if store.get_user_by_email(payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = store.create_user(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    logger.info("auth.registered", extra={"user_id": user.id, "role": user.role})
    return _token_response(user)


@router.post(
    "/auth/login",
    response_model=schemas.TokenResponse,
    dependencies=[Depends(rate_limit("login"))],
)
def login(payload: schemas.LoginRequest, store: SqlStorage = Depends(get_storage)) -> schemas.TokenResponse:
    user = store.get_user_by_email(payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("auth.login_failed", extra={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _token_response(user)


@router.get("/auth/me", response_model=schemas.UserRead)
def me(user: models.User = Depends(get_current_user)) -> models.User:
    return user


@router.put("/auth/profile", response_model=schemas.UserRead)
def update_profile(
    payload: schemas.ProfileUpdate,
    store: SqlStorage = Depends(get_storage),
    user: models.User = Depends(get_current_user),
) -> models.User:
    """Partial profile update; only fields present in the body are touched."""
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name cannot be empty")
    return store.update_user(user, changes)


@router.get("/users/{user_id}", response_model=schemas.UserPublic)
def get_user(user_id: int, store: SqlStorage = Depends(get_storage)) -> models.User:
    user = store.get_user(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
