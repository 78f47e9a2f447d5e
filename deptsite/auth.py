"""
Password hashing, token issuance and the bearer-token dependencies.

``authenticate`` answers 401 when no bearer credential is sent and 403
when one is sent but cannot be verified. ``authenticate_admin`` adds a
capability check on top. Public routes use ``optional_identity``, which
never rejects a request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Header, HTTPException, status

from deptsite.config import Settings, get_settings
from deptsite.schemas import User
from deptsite.types import Capability, Role, role_has_capability

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The caller as decoded from a verified token."""

    id: str
    username: str
    role: Role

    def can(self, capability: Capability) -> bool:
        return role_has_capability(self.role, capability)


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(
        password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)
    ).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password("not-a-real-password", rounds=rounds)


def check_credentials(user: Optional[User], password: str, rounds: int = 10) -> bool:
    """Compare ``password`` against ``user``; unknown users cost the same."""
    if user is None:
        verify_password(password, _dummy_hash(rounds))
        return False
    return verify_password(password, user.password)


def issue_token(user: User, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user.id,
        "username": user.username,
        "role": Role(user.role).value,
        "iat": now,
        "exp": now + timedelta(hours=settings.jwt_expires_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> Identity:
    """
    Returns the identity carried by ``token``, else raises jwt.InvalidTokenError.
    """
    payload = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "id", "username", "role"]},
    )
    try:
        role = Role(payload["role"])
    except ValueError as exc:
        raise jwt.InvalidTokenError(f"unknown role {payload['role']!r}") from exc
    return Identity(id=str(payload["id"]), username=str(payload["username"]), role=role)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def authenticate(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Identity:
    token = _bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_token(token, settings)
    except jwt.InvalidTokenError as exc:
        logger.info(f"Rejected bearer token: {exc}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )


def require_capability(capability: Capability, detail: str):
    """Build a dependency that admits only identities holding ``capability``."""

    def dependency(identity: Identity = Depends(authenticate)) -> Identity:
        if not identity.can(capability):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return identity

    return dependency


authenticate_admin = require_capability(
    Capability.MANAGE_CONTENT, "Admin access required"
)


def optional_identity(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Optional[Identity]:
    token = _bearer_token(authorization)
    if token is None:
        return None
    try:
        return decode_token(token, settings)
    except jwt.InvalidTokenError:
        return None
