"""
Authentication service route handlers.

Provides routes for:
- User signup
- User login
- Profile retrieval (/me)

Token logic lives in `auth_service.utils`; the business rules in
`auth_service.service`. Errors raised by the service are rendered by the
gateway's error handlers.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from backend.auth_service.service import CredentialService
from backend.auth_service.utils import Identity, get_json_body, require_auth
from backend.config import EXTENSION_KEY

auth_bp = Blueprint("auth", __name__)


def _credentials() -> CredentialService:
    return current_app.extensions[EXTENSION_KEY]["credentials"]


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    """
    Log every incoming request method and path to the authentication service.
    Headers are not logged since they carry bearer tokens.
    """
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
def after_request(response: Response) -> Response:
    """
    Log the response status code for every request.
    """
    logging.info(f"[Auth] Response {response.status}")
    return response


# --- SIGNUP ---
@auth_bp.route("/signup", methods=["POST"])
def signup() -> Tuple[Response, int]:
    """
    Register a new user in the system.

    Expects a JSON body with:
    - name (str)
    - email (str): Unique email address.
    - password (str): Minimum 6 characters.

    Returns:
        201: JSON with a new JWT token and the public user fields.
        400: Missing fields, short password, or email already exists.
        500: Server-side error (hashing, database, or missing JWT secret).
    """
    data: Dict[str, Any] = get_json_body()

    user, token = _credentials().signup(
        data.get("name"),
        data.get("email"),
        data.get("password"),
    )

    return jsonify({"success": True, "token": token, "user": user.to_public()}), 201


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Returns:
        200: JSON with JWT token and the public user fields.
        400: Missing or invalid credentials (same message for wrong email or password).
        500: Database error.
    """
    data: Dict[str, Any] = get_json_body()

    user, token = _credentials().login(data.get("email"), data.get("password"))

    return jsonify({"success": True, "token": token, "user": user.to_public()}), 200


# --- GET CURRENT USER ---
@auth_bp.route("/me", methods=["GET"])
@require_auth
def get_current_user(identity: Identity) -> Tuple[Response, int]:
    """
    Retrieve the current user's profile.

    Requires Authorization header: Bearer <token>

    Returns:
        200: User profile object.
        401: Authentication failure.
        404: User no longer exists.
    """
    user = _credentials().get_current_user(identity.user_id)
    return jsonify({"success": True, "user": user.to_public(include_created=True)}), 200
