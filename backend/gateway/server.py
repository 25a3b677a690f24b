"""
API gateway: wires settings, stores and services, and mounts the auth and
events blueprints under /api.
This is the local entrypoint for development.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from backend.ai_service.assistant import DescriptionAssistant
from backend.auth_service.routes import auth_bp
from backend.auth_service.service import CredentialService
from backend.auth_service.store import UserStore
from backend.config import EXTENSION_KEY, Settings
from backend.errors import AppError
from backend.events_service.images import ImageUploader
from backend.events_service.routes import events_bp
from backend.events_service.service import EventService
from backend.events_service.store import EventStore

# Basic console logging during API requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def register_error_handlers(app: Flask, settings: Settings) -> None:
    """
    Convert every error raised below the route handlers into a JSON body
    with a human-readable `message`.
    """
    include_detail = not settings.is_production

    @app.errorhandler(AppError)
    def handle_app_error(e: AppError):
        if e.status_code >= 500:
            logging.error(f"{type(e).__name__}: {e.message} ({e.detail})")
        return jsonify(e.to_dict(include_detail=include_detail)), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        logging.exception("Unhandled error while serving request")
        body = {"success": False, "message": "Something went wrong!"}
        if include_detail:
            body["error"] = str(e)
        return jsonify(body), 500


def create_app(
    settings: Optional[Settings] = None,
    user_store: Optional[UserStore] = None,
    event_store: Optional[EventStore] = None,
    images: Optional[ImageUploader] = None,
    assistant: Optional[DescriptionAssistant] = None,
) -> Flask:
    """
    Application factory for creating the Flask app.

    Collaborators not passed in are built from `settings`.

    Returns:
        Flask: The configured Flask application.
    """
    settings = settings or Settings.from_env()

    if (user_store is None or event_store is None) and not settings.database_url:
        raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")

    user_store = user_store or UserStore(settings.database_url)
    event_store = event_store or EventStore(settings.database_url)
    images = images or ImageUploader(settings)
    assistant = assistant or DescriptionAssistant(settings)

    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = {
        "settings": settings,
        "credentials": CredentialService(user_store, settings),
        "events": EventService(event_store, images),
        "assistant": assistant,
    }

    CORS(app, resources={
        r"/api/*": {
            "origins": [settings.allowed_origin],
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "supports_credentials": True,
        }
    })

    # --- REGISTER BLUEPRINTS ---
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(events_bp, url_prefix="/api/events")
    logging.info("All blueprints registered successfully.")

    register_error_handlers(app, settings)

    # --- BASIC HEALTH CHECKPOINT ---
    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({
            "status": "OK",
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 200

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    try:
        app = create_app(settings)
    except RuntimeError as e:
        logging.error(str(e))
        sys.exit(1)
    app.run(host="0.0.0.0", port=settings.port, debug=not settings.is_production, threaded=True)
