"""
Bearer tokens for the order service.

The server signs and verifies HS256 tokens with ``SECRET_KEY``. Clients only
read the payload segment to learn who is logged in; that value feeds
display and eligibility heuristics and is never used for an authorization
decision. Every mutating route re-verifies the token server-side.
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt
from jwt import PyJWTError

import config

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class AuthError(Exception):
    """Missing, malformed, expired or forged token presented to the server."""

    status_code = 401

    def __init__(self, message="Not authorized, login again"):
        super().__init__(message)
        self.message = message


class DecodeError(Exception):
    """Client-side token payload could not be read."""


def issue_token(user_id, name=None, is_admin=False, secret=None, ttl_minutes=None):
    """
    Sign a token carrying the user's id (and optionally display name).
    Args:
        user_id (str): Identifier stored under the ``id`` claim.
        name (str | None): Display name, used as claimant name on claims.
        is_admin (bool): Grants access to admin status updates.
    Returns:
        str: Encoded token.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "id": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=ttl_minutes or config.TOKEN_TTL_MINUTES),
    }
    if name:
        payload["name"] = name
    if is_admin:
        payload["admin"] = True
    return jwt.encode(payload, secret or config.SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token, secret=None):
    """
    Verify signature and expiry and return the claims.
    Raises:
        AuthError: If the token is absent or fails verification.
    """
    if not token:
        raise AuthError()
    try:
        claims = jwt.decode(token, secret or config.SECRET_KEY, algorithms=[ALGORITHM])
    except PyJWTError as exc:
        logger.info("Token validation failed: %s", exc)
        raise AuthError() from exc
    if not claims.get("id"):
        raise AuthError()
    return claims


def decode_user_id(token):
    """
    Read the ``id`` claim without verifying the signature.
    Raises:
        DecodeError: If the token is absent, malformed, or has no ``id``.
    """
    if not token:
        raise DecodeError("no token")
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except PyJWTError as exc:
        raise DecodeError(str(exc)) from exc
    user_id = claims.get("id")
    if not user_id:
        raise DecodeError("token has no id claim")
    return str(user_id)
