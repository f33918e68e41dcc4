# marketplace/auth.py
"""
Bearer-token verification for tokens issued by the hosted auth backend.

Sign-up, login and session refresh all happen in the hosted backend; this
service only verifies the JWT it hands to the browser and loads the
matching ``users`` row (same id as the token's ``sub``).
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from marketplace.config import settings
from marketplace.database import get_db
from marketplace.models import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# -------------------------------------------------------------------
# Roles
# -------------------------------------------------------------------
ROLE_CUSTOMER = "customer"
ROLE_ADMIN = "admin"
ROLE_BUSINESS_OWNER = "business-owner"
VALID_ROLES = {ROLE_CUSTOMER, ROLE_ADMIN, ROLE_BUSINESS_OWNER}


def normalize_role(value: Optional[str]) -> str:
    r = (value or "").strip().lower().replace("_", "-")
    return r if r in VALID_ROLES else ROLE_CUSTOMER


# -------------------------------------------------------------------
# JWT create/verify
# -------------------------------------------------------------------
def create_access_token(*, user_id: str, email: str, expires_minutes: int = 60) -> str:
    """
    Mirrors the claims the hosted backend puts in its access tokens.
    Used by local tooling and tests; production tokens come from the host.
    """
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes)
    payload = {
        "sub": user_id,
        "email": email,
        "aud": settings.auth_jwt_audience,
        "role": "authenticated",
        "exp": expire,
    }
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
        )
        if not payload.get("sub"):
            raise ValueError("Token missing sub claim")
        return payload
    except (JWTError, ValueError) as e:
        raise ValueError("Invalid token") from e


def _auth_401() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


# -------------------------------------------------------------------
# Dependencies
# -------------------------------------------------------------------
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not (credentials.credentials or "").strip():
        raise _auth_401()

    try:
        payload = decode_token(credentials.credentials.strip())
    except ValueError:
        logger.info("Rejected bearer token")
        raise _auth_401()

    user = db.get(User, str(payload["sub"]))
    if not user:
        raise _auth_401()

    return user


def _require_role(user: User, role: str, message: str) -> User:
    if normalize_role(getattr(user, "role", None)) != role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    return _require_role(user, ROLE_ADMIN, "Admin privileges required")


def require_business_owner(user: User = Depends(get_current_user)) -> User:
    return _require_role(user, ROLE_BUSINESS_OWNER, "Business owner account required")


def require_customer(user: User = Depends(get_current_user)) -> User:
    return _require_role(user, ROLE_CUSTOMER, "Customer account required")
