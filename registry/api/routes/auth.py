"""Bearer-token authentication for the admin surface."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from threading import Lock
from typing import Any, Literal, cast
from uuid import uuid4

import bcrypt
from cryptography.hazmat.primitives import serialization
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from registry.core.config import Settings, get_settings

RoleName = Literal["ADMIN", "COMPLIANCE"]
ROLE_VALUES: set[str] = {"ADMIN", "COMPLIANCE"}

router = APIRouter()
security_scheme = HTTPBearer(auto_error=True)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginRequest(BaseModel):
    email: str
    password: str
    role: RoleName | None = None


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPayload(BaseModel):
    sub: str
    role: RoleName
    type: Literal["access", "refresh"]
    iat: datetime
    exp: datetime
    jti: str


@dataclass(frozen=True)
class AuthenticatedUser:
    email: str
    role: RoleName
    token_id: str


class RefreshTokenStore:
    """In-memory store of the current refresh token per subject plus revoked ids."""

    def __init__(self) -> None:
        self._active: dict[str, str] = {}
        self._revoked: set[str] = set()
        self._lock = Lock()

    def mark_active(self, subject: str, token_id: str) -> None:
        with self._lock:
            self._active[subject] = token_id

    def is_active(self, subject: str, token_id: str) -> bool:
        with self._lock:
            return token_id not in self._revoked and self._active.get(subject) == token_id

    def revoke(self, token_id: str) -> None:
        with self._lock:
            self._revoked.add(token_id)

    def reset(self) -> None:
        with self._lock:
            self._active.clear()
            self._revoked.clear()


refresh_token_store = RefreshTokenStore()


@lru_cache(maxsize=4)
def _keys_for(private_pem: str) -> tuple[Any, str]:
    try:
        private_key = serialization.load_pem_private_key(private_pem.encode("utf-8"), password=None)
    except ValueError as exc:  # pragma: no cover - configuration issue
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Invalid JWT signing key",
        ) from exc
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_key, public_pem.decode("utf-8")


def _create_token(
    *,
    subject: str,
    role: RoleName,
    token_type: Literal["access", "refresh"],
    expires_delta: timedelta,
    settings: Settings,
) -> tuple[str, str]:
    now = datetime.now(UTC)
    token_id = uuid4().hex
    payload = {
        "sub": subject,
        "role": role,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "jti": token_id,
    }
    signing_key, _ = _keys_for(settings.jwt_private_key)
    return jwt.encode(payload, signing_key, algorithm=settings.jwt_algorithm), token_id


def _issue_tokens(*, subject: str, role: RoleName, settings: Settings) -> TokenResponse:
    access_token, _ = _create_token(
        subject=subject,
        role=role,
        token_type="access",
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        settings=settings,
    )
    refresh_token, refresh_id = _create_token(
        subject=subject,
        role=role,
        token_type="refresh",
        expires_delta=timedelta(days=settings.refresh_token_expire_days),
        settings=settings,
    )
    refresh_token_store.mark_active(subject, refresh_id)
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


def decode_token(token: str, settings: Settings) -> TokenPayload:
    _, verification_key = _keys_for(settings.jwt_private_key)
    try:
        payload = jwt.decode(token, verification_key, algorithms=[settings.jwt_algorithm])
        return TokenPayload(**payload)
    except (JWTError, ValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
) -> AuthenticatedUser:
    payload = decode_token(credentials.credentials, get_settings())
    if payload.type != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
    request.state.actor_email = payload.sub
    return AuthenticatedUser(email=payload.sub, role=payload.role, token_id=payload.jti)


def require_role(*roles: RoleName) -> Callable[..., AuthenticatedUser]:
    allowed_roles: set[str] = set(roles)

    def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return dependency


@router.post("/login", response_model=TokenResponse, summary="Issue JWT access tokens")
def login(request: LoginRequest) -> TokenResponse:
    settings = get_settings()
    if "@" not in request.email:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid email address",
        )
    password_valid = _verify_password(request.password, settings.default_user_hashed_password)
    if not password_valid and request.password != settings.default_user_password:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    role_value = request.role or settings.default_role
    if role_value not in ROLE_VALUES:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Invalid role configuration",
        )
    return _issue_tokens(subject=request.email, role=cast(RoleName, role_value), settings=settings)


@router.post("/refresh", response_model=TokenResponse, summary="Rotate JWT refresh tokens")
def refresh_token(request: RefreshRequest) -> TokenResponse:
    settings = get_settings()
    payload = decode_token(request.refresh_token, settings)
    if payload.type != "refresh":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token type")
    if not refresh_token_store.is_active(payload.sub, payload.jti):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token revoked")

    refresh_token_store.revoke(payload.jti)
    return _issue_tokens(subject=payload.sub, role=payload.role, settings=settings)


def _verify_password(raw_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(raw_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:  # pragma: no cover - invalid hash format
        return False


__all__ = [
    "AuthenticatedUser",
    "RoleName",
    "TokenResponse",
    "decode_token",
    "get_current_user",
    "refresh_token_store",
    "require_role",
    "router",
]
