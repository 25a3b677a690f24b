"""
Shared authentication helpers.
Provides token creation, verification, and the per-route access guard.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional

import jwt
from flask import current_app, request

from backend.config import EXTENSION_KEY
from backend.errors import ConfigurationError, InvalidToken, Unauthenticated, ValidationError

TOKEN_LIFETIME = timedelta(days=7)
JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class Identity:
    """The verified caller, as decoded from a bearer token."""

    user_id: int
    email: str


# --- JWT CREATION ---
def create_token(user_id: int, email: str, secret: Optional[str], now: Optional[datetime] = None) -> str:
    """
    Generates a new JWT for a given user.

    Args:
        user_id (int): The unique ID of the user.
        email (str): The user's email, embedded as a claim.
        secret (str): The signing secret.
        now (datetime, optional): Issuance time; defaults to the current UTC time.

    Returns:
        str: Encoded JWT string valid for seven days.

    Raises:
        ConfigurationError: If the signing secret is not set.
    """
    if not secret:
        raise ConfigurationError("JWT_SECRET is not defined in environment variables")

    now = now or datetime.now(timezone.utc)

    payload = {
        "user_id": user_id,
        "email": email,
        "iat": now,
        "exp": now + TOKEN_LIFETIME,
    }

    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


# --- JWT VALIDATION ---
def decode_token(token: str, secret: Optional[str]) -> Identity:
    """
    Verify a JWT and return the identity it asserts.

    Raises:
        InvalidToken: Bad signature, expired, malformed, or missing claims.
    """
    if not secret:
        raise InvalidToken()

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat", "user_id", "email"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidToken(detail="token expired")
    except jwt.PyJWTError as e:
        raise InvalidToken(detail=str(e))

    user_id = payload["user_id"]
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise InvalidToken(detail="malformed user_id claim")

    return Identity(user_id=user_id, email=payload["email"])


def get_json_body() -> Dict[str, Any]:
    """
    Return the request JSON object, or an empty dict when there is no JSON body.

    Raises:
        ValidationError: The body is JSON but not an object.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def verify_token_from_request(secret: Optional[str]) -> Identity:
    """
    Verify the JWT in the Authorization header of the current request.

    Raises:
        Unauthenticated: Header missing or not a Bearer credential.
        InvalidToken: The credential does not verify.
    """
    auth = request.headers.get("Authorization", "")

    if not auth.startswith("Bearer "):
        logging.info("[Auth] No token provided")
        raise Unauthenticated()

    token = auth.split(" ", 1)[1].strip()

    try:
        return decode_token(token, secret)
    except InvalidToken as e:
        logging.info(f"[Auth] Token verification failed: {e.detail}")
        raise


def require_auth(view: Callable) -> Callable:
    """
    Route decorator: verify the bearer token and pass `identity` to the view.

    If an identity has already been supplied (the guard was applied twice),
    the request passes through unchanged.
    """
    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any):
        if isinstance(kwargs.get("identity"), Identity):
            return view(*args, **kwargs)

        settings = current_app.extensions[EXTENSION_KEY]["settings"]
        kwargs["identity"] = verify_token_from_request(settings.jwt_secret)
        return view(*args, **kwargs)

    return wrapper
