"""Gemini boundary for audio transcription and feedback."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional, Protocol

from google import genai
from google.genai import types

from .models import AudioPayload

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


class AICapability(Protocol):
    async def generate_json(
        self, audio: AudioPayload, prompt: str, response_schema: dict
    ) -> str:
        ...


class GeminiClient:
    """Async wrapper around the google-genai SDK.

    Usage::

        gemini = GeminiClient(api_key="...")
        text = await gemini.generate_json(audio, prompt, SCHEMA)

    Every call is bounded by ``timeout_seconds``; an expired call raises
    ``asyncio.TimeoutError`` to the caller.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = 120.0,
    ) -> None:
        self._model = model or DEFAULT_MODEL
        self._timeout = timeout_seconds
        self._client = genai.Client(api_key=api_key or os.environ.get("GEMINI_API_KEY"))

    @property
    def model(self) -> str:
        return self._model

    async def generate_json(
        self, audio: AudioPayload, prompt: str, response_schema: dict
    ) -> str:
        """Send one audio part and one instruction part; return the JSON body text."""
        contents = [
            types.Part.from_bytes(data=audio.data, mime_type=audio.mime_type),
            types.Part.from_text(text=prompt),
        ]
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=response_schema,
        )
        logger.debug(
            "Gemini request: model=%s audio=%d bytes (%s)",
            self._model,
            len(audio.data),
            audio.mime_type,
        )
        request = self._client.aio.models.generate_content(
            model=self._model,
            contents=contents,
            config=config,
        )
        resp = await asyncio.wait_for(request, timeout=self._timeout)
        return resp.text
