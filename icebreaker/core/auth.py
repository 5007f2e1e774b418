"""Firebase ID token verification.

Tokens are issued by the Firebase identity provider and verified with
google-auth against Google's published signing certificates. Routes receive
the verified ``Principal`` through the ``get_current_principal`` dependency.
"""
import logging
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from icebreaker.core.config import settings
from icebreaker.core.errors import AuthorizationError

logger = logging.getLogger(__name__)

# Reused across verifications so the certificate fetch is cached per session
_request = google_requests.Request()


@dataclass(frozen=True)
class Principal:
    """A verified caller."""
    uid: str
    email: str | None = None
    name: str | None = None
    is_anonymous: bool = False
    email_verified: bool = False


def verify_token(token: str) -> Principal:
    """Verify a Firebase ID token and return its principal.

    Raises ValueError or GoogleAuthError if the token is invalid or expired.
    """
    claims = id_token.verify_firebase_token(
        token, _request, audience=settings.firebase_project_id or None
    )
    firebase = claims.get("firebase") or {}
    return Principal(
        uid=claims.get("user_id") or claims["sub"],
        email=claims.get("email"),
        name=claims.get("name"),
        is_anonymous=firebase.get("sign_in_provider") == "anonymous",
        email_verified=claims.get("email_verified") is True,
    )


def get_current_principal(authorization: str | None = Header(default=None)) -> Principal:
    """Dependency returning the verified caller of a request."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing token")

    token = authorization.split(" ", 1)[1].strip()
    try:
        return verify_token(token)
    except (ValueError, KeyError, GoogleAuthError) as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(status_code=403, detail="Invalid or expired token")


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Dependency allowing only admins (callers with a verified email)."""
    if not principal.email_verified:
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal


def ensure_self_or_admin(principal: Principal, user_id: str, action: str) -> None:
    """Raise AuthorizationError unless the caller is ``user_id`` or an admin."""
    if principal.uid != user_id and not principal.email_verified:
        raise AuthorizationError(f"You can only {action} for yourself")
