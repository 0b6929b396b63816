from __future__ import annotations

from typing import Optional

import jwt
from fastapi import HTTPException, status

from sellerpro.config import get_settings


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _token_subject(authorization: Optional[str]) -> Optional[str]:
    """User id carried in a ``Bearer`` token, or None when no token was sent.

    A token that is present but unverifiable is a 401, never an anonymous
    fallback to the header user.
    """
    scheme, _, token = (authorization or "").strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None

    settings = get_settings()
    if not settings.JWT_SECRET:
        raise _unauthorized("JWT auth is not configured")

    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"require": ["sub"], "verify_aud": bool(settings.JWT_AUDIENCE)},
        )
    except jwt.MissingRequiredClaimError as exc:
        raise _unauthorized("Token has no subject") from exc
    except jwt.PyJWTError as exc:
        raise _unauthorized("Invalid JWT") from exc

    subject = str(claims["sub"]).strip()
    if not subject:
        raise _unauthorized("Token has no subject")
    return subject


def resolve_user_id(
    authorization: Optional[str],
    header_user: Optional[str] = None,
) -> str:
    """Return the id of the user every read and write is scoped to."""
    subject = _token_subject(authorization)
    if subject is not None:
        return subject

    if get_settings().ALLOW_HEADER_USER and header_user and header_user.strip():
        return header_user.strip()

    raise _unauthorized("Not authenticated")
