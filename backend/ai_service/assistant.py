"""
Description assistant: drafts event descriptions with a hosted LLM.

Groq is used through the OpenAI-compatible client when GROQ_API_KEY is set;
otherwise Gemini is used when GEMINI_API_KEY is set. Remote failures are
translated into distinct upstream errors so the client can tell the user to
write the description manually.
"""

import logging
from typing import Optional

import openai
from openai import OpenAI

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from backend.config import Settings
from backend.errors import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamBadRequest,
    UpstreamError,
    UpstreamRateLimited,
    ValidationError,
)
from backend.events_service.service import parse_date

MANUAL_TIP = "You can write the description manually"
TEMPERATURE = 0.7
MAX_TOKENS = 200

# --- SYSTEM PROMPT ---
SYSTEM_PROMPT = "You are a professional event marketing expert who creates engaging event descriptions."

USER_PROMPT = """Generate an engaging event description for:
Title: {title}
Location: {location}
Date: {date}

Create a compelling 2-3 sentence description that highlights what attendees can expect and why they should attend. Make it exciting and professional."""


def format_event_date(raw: str) -> str:
    """'2025-03-15' -> 'Saturday, March 15, 2025'; unparseable input is kept as-is."""
    d = parse_date(raw)
    if d is None:
        return raw
    return f"{d:%A}, {d:%B} {d.day}, {d.year}"


def _error_for_status(status: Optional[int], detail: str) -> UpstreamError:
    if status == 401:
        return UpstreamAuthError(detail=detail)
    if status == 429:
        return UpstreamRateLimited(detail=detail)
    if status == 400:
        return UpstreamBadRequest(detail=detail)
    return UpstreamError("Failed to generate description with AI", detail=detail, tip=MANUAL_TIP)


class DescriptionAssistant:

    def __init__(self, settings: Settings):
        self.settings = settings
        self.openai_client: Optional[OpenAI] = None
        self.gemini_client: Optional[genai.Client] = None
        self.active_service: Optional[str] = None

        # 1. Groq through the OpenAI-compatible API
        if settings.groq_api_key:
            self.openai_client = OpenAI(
                api_key=settings.groq_api_key,
                base_url=settings.groq_base_url,
                timeout=settings.ai_timeout_seconds,
                max_retries=0,
            )
            self.active_service = "groq"
        # 2. Gemini as the fallback provider
        elif settings.gemini_api_key:
            self.gemini_client = genai.Client(
                api_key=settings.gemini_api_key,
                http_options=types.HttpOptions(timeout=int(settings.ai_timeout_seconds * 1000)),
            )
            self.active_service = "gemini"

        if self.active_service:
            logging.info(f"[AI] Description assistant using {self.active_service}")
        else:
            logging.warning("[AI] No AI API key configured; description generation disabled")

    def generate(self, title: Optional[str], location: Optional[str], date: Optional[str]) -> str:
        """
        Generate a short marketing description for an event.

        Raises:
            ValidationError: title, location or date missing.
            ConfigurationError: No AI provider configured.
            UpstreamAuthError, UpstreamRateLimited, UpstreamBadRequest, UpstreamError:
                The provider rejected or failed the request.
        """
        if not title or not location or not date:
            raise ValidationError("Title, location, and date are required")

        if self.active_service is None:
            raise ConfigurationError(
                "AI service not configured. Set GROQ_API_KEY or GEMINI_API_KEY.",
                detail="GROQ_API_KEY and GEMINI_API_KEY not set",
            )

        prompt = USER_PROMPT.format(title=title, location=location, date=format_event_date(str(date)))

        logging.info(f"[AI] Sending description request to {self.active_service}")
        if self.active_service == "groq":
            text = self._generate_openai(prompt)
        else:
            text = self._generate_gemini(prompt)

        text = (text or "").strip()
        if not text:
            raise UpstreamError("Failed to generate description with AI", detail="empty response", tip=MANUAL_TIP)

        logging.info("[AI] Description generated successfully")
        return text

    def _generate_openai(self, prompt: str) -> str:
        try:
            response = self.openai_client.chat.completions.create(
                model=self.settings.groq_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
            )
        except openai.APIStatusError as e:
            logging.error(f"[AI] Groq returned {e.status_code}: {e.message}")
            raise _error_for_status(e.status_code, e.message)
        except openai.APIError as e:
            logging.error(f"[AI] Groq request failed: {e}")
            raise _error_for_status(None, str(e))

        return response.choices[0].message.content

    def _generate_gemini(self, prompt: str) -> str:
        try:
            response = self.gemini_client.models.generate_content(
                model=self.settings.gemini_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_PROMPT,
                    temperature=TEMPERATURE,
                    max_output_tokens=MAX_TOKENS,
                ),
            )
        except genai_errors.APIError as e:
            logging.error(f"[AI] Gemini returned {e.code}: {e.message}")
            raise _error_for_status(e.code, str(e.message))
        except Exception as e:
            logging.error(f"[AI] Gemini request failed: {e}")
            raise _error_for_status(None, str(e))

        return response.text
