"""
Process-wide configuration.

Everything the services need from the environment is read once into a
`Settings` object and passed to each service at construction.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_DEV_ORIGIN = "http://localhost:3000"

# Key under `app.extensions` holding the settings and the wired services
EXTENSION_KEY = "event_rsvp"


@dataclass(frozen=True)
class Settings:
    jwt_secret: Optional[str] = None
    database_url: Optional[str] = None

    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None

    groq_api_key: Optional[str] = None
    groq_base_url: str = DEFAULT_GROQ_BASE_URL
    groq_model: str = DEFAULT_GROQ_MODEL
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    ai_timeout_seconds: float = 15.0

    frontend_url: Optional[str] = None
    port: int = 5000
    environment: str = "development"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        When `env` is omitted the `.env` file is loaded first and `os.environ`
        is used.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        return cls(
            jwt_secret=env.get("JWT_SECRET") or None,
            database_url=env.get("DATABASE_URL") or None,
            cloudinary_cloud_name=env.get("CLOUDINARY_CLOUD_NAME") or None,
            cloudinary_api_key=env.get("CLOUDINARY_API_KEY") or None,
            cloudinary_api_secret=env.get("CLOUDINARY_API_SECRET") or None,
            groq_api_key=env.get("GROQ_API_KEY") or None,
            groq_base_url=env.get("GROQ_BASE_URL") or DEFAULT_GROQ_BASE_URL,
            groq_model=env.get("GROQ_MODEL") or DEFAULT_GROQ_MODEL,
            gemini_api_key=env.get("GEMINI_API_KEY") or None,
            gemini_model=env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            ai_timeout_seconds=float(env.get("AI_TIMEOUT_SECONDS", 15)),
            frontend_url=env.get("FRONTEND_URL") or None,
            port=int(env.get("PORT", 5000)),
            environment=(env.get("APP_ENV") or "development").lower(),
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def allowed_origin(self) -> str:
        """The single browser origin allowed by CORS."""
        if self.is_production:
            return self.frontend_url or DEFAULT_DEV_ORIGIN
        return DEFAULT_DEV_ORIGIN

    @property
    def cloudinary_configured(self) -> bool:
        return all([
            self.cloudinary_cloud_name,
            self.cloudinary_api_key,
            self.cloudinary_api_secret,
        ])
