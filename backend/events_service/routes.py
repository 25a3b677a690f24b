"""
Events service routes: create, read, update, delete events, RSVP, and
AI-assisted descriptions.

Every route requires a bearer token. Business rules live in
`events_service.service`; errors are rendered by the gateway.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from backend.ai_service.assistant import DescriptionAssistant
from backend.auth_service.utils import Identity, get_json_body, require_auth
from backend.config import EXTENSION_KEY
from backend.events_service.service import EventService

events_bp = Blueprint("events", __name__)


def _events() -> EventService:
    return current_app.extensions[EXTENSION_KEY]["events"]


def _assistant() -> DescriptionAssistant:
    return current_app.extensions[EXTENSION_KEY]["assistant"]


@events_bp.before_request
def before_request() -> None:
    logging.info(f"[Events] Incoming {request.method} {request.path}")


@events_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Events] Response {response.status}")
    return response


@events_bp.route("/generate-description", methods=["POST"])
@require_auth
def generate_description(identity: Identity) -> Tuple[Response, int]:
    """
    Draft an event description with the AI assistant.

    Expects JSON: { "title": str, "location": str, "date": str }

    Returns:
        200: { "success": true, "description": str }
        400: Missing title, location or date.
        500: AI service not configured or failed; the client should let the
             user type a description instead.
    """
    data: Dict[str, Any] = get_json_body()

    description = _assistant().generate(data.get("title"), data.get("location"), data.get("date"))

    return jsonify({"success": True, "description": description}), 200


@events_bp.route("", methods=["POST"])
@require_auth
def create_event(identity: Identity) -> Tuple[Response, int]:
    """
    Create an event owned by the caller.

    Expects JSON: title, description, date, time, location, capacity, image (optional,
    data URL or remote URL).

    Returns:
        201: { "success": true, "event": {...} }
        400: Validation error.
        500: Image upload or database failure.
    """
    data: Dict[str, Any] = get_json_body()
    event = _events().create(identity.user_id, data)
    return jsonify({"success": True, "event": event.to_dict()}), 201


@events_bp.route("", methods=["GET"])
@require_auth
def list_events(identity: Identity) -> Tuple[Response, int]:
    """
    Return all events, newest first, with creator name and email.
    """
    events = _events().list_all()
    return jsonify({"success": True, "events": [e.to_dict() for e in events]}), 200


@events_bp.route("/my-events", methods=["GET"])
@require_auth
def list_my_events(identity: Identity) -> Tuple[Response, int]:
    """
    Return the events created by the caller, with attendee names and emails.
    """
    events = _events().list_mine(identity.user_id)
    return jsonify({"success": True, "events": [e.to_dict() for e in events]}), 200


@events_bp.route("/<int:event_id>", methods=["GET"])
@require_auth
def get_event(identity: Identity, event_id: int) -> Tuple[Response, int]:
    """
    Get a single event with creator and attendees resolved.

    Returns:
        200: Event object.
        404: Event not found.
    """
    event = _events().get_by_id(event_id)
    return jsonify({"success": True, "event": event.to_dict()}), 200


@events_bp.route("/<int:event_id>", methods=["PUT"])
@require_auth
def update_event(identity: Identity, event_id: int) -> Tuple[Response, int]:
    """
    Replace an event's fields. Creator only.

    Returns:
        200: Updated event.
        400: Validation error.
        403: Caller is not the creator.
        404: Event not found.
    """
    data: Dict[str, Any] = get_json_body()
    event = _events().update(identity.user_id, event_id, data)
    return jsonify({"success": True, "event": event.to_dict()}), 200


@events_bp.route("/<int:event_id>", methods=["DELETE"])
@require_auth
def delete_event(identity: Identity, event_id: int) -> Tuple[Response, int]:
    """
    Delete an event. Creator only.
    """
    _events().delete(identity.user_id, event_id)
    return jsonify({"success": True, "message": "Event deleted successfully"}), 200


@events_bp.route("/<int:event_id>/rsvp", methods=["POST"])
@require_auth
def rsvp(identity: Identity, event_id: int) -> Tuple[Response, int]:
    """
    RSVP the caller to an event.

    Returns:
        200: RSVP recorded.
        400: Already RSVP'd, or the event is full.
        404: Event not found.
    """
    event = _events().rsvp(identity.user_id, event_id)
    return jsonify({"success": True, "message": "RSVP successful", "event": event.to_dict()}), 200


@events_bp.route("/<int:event_id>/rsvp", methods=["DELETE"])
@require_auth
def cancel_rsvp(identity: Identity, event_id: int) -> Tuple[Response, int]:
    """
    Withdraw the caller's RSVP. Succeeds even if there was none.
    """
    event = _events().cancel_rsvp(identity.user_id, event_id)
    return jsonify({"success": True, "message": "RSVP cancelled", "event": event.to_dict()}), 200
