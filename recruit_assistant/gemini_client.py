from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import google.generativeai as genai

from .config import Settings

logger = logging.getLogger("recruit.gemini")

GENERATION_CONFIG = {"temperature": 0.4, "max_output_tokens": 1024}


class GeminiClient:
    """Thin wrapper around the Gemini SDK used for free-form candidate questions."""

    def __init__(self, settings: Settings) -> None:
        """Purpose: Keep settings and prepare the model cache.
        Inputs/Outputs: Input is Settings; no return value.
        Side Effects / State: None until the first call; the key is not validated here
            so the app can start (and serve local answers) without one.
        Dependencies: Uses google.generativeai and Settings from config.
        Failure Modes: None at init.
        If Removed: General questions cannot reach the model.
        Testing Notes: Construct with an empty key and verify generate_reply raises.
        """
        self._settings = settings
        self._configured_key: Optional[str] = None
        self._models: Dict[Tuple[str, str], genai.GenerativeModel] = {}
        self._default_model = _normalize_model_name(settings.gemini_model)

    def _ensure_configured(self) -> None:
        api_key = self._settings.gemini_api_key
        if not api_key:
            raise ValueError("GEMINI_API_KEY is required")
        if self._configured_key != api_key:
            genai.configure(api_key=api_key)
            self._configured_key = api_key

    def _get_model(self, model_name: str, system_instruction: str) -> genai.GenerativeModel:
        key = (model_name, system_instruction)
        if key not in self._models:
            self._models[key] = genai.GenerativeModel(
                model_name,
                system_instruction=system_instruction or None,
            )
        return self._models[key]

    def generate_reply(self, prompt: str, system_instruction: str = "") -> str:
        """Purpose: Send one user message with the system instruction and return the reply.
        Inputs/Outputs: Input is the raw user text and system instruction; returns the
            stripped reply text, or "" when the model gave none.
        Side Effects / State: Configures the SDK key once; may add a model to the cache.
        Dependencies: Uses genai.GenerativeModel.generate_content.
        Failure Modes: Raises ValueError if the API key or model name is missing; SDK
            errors (network, auth, quota) propagate unchanged and are not retried.
        If Removed: Every general query falls back to the glitch reply.
        Testing Notes: Monkeypatch genai.GenerativeModel with a fake and assert payload.
        """
        # Resolve model name, then call the SDK once.
        self._ensure_configured()
        model_name = self._default_model
        if not model_name:
            raise ValueError("Gemini model name is required")
        response = self._get_model(model_name, system_instruction).generate_content(
            prompt,
            generation_config=GENERATION_CONFIG,
        )
        text = _response_text(response)
        logger.info("model=%s reply_chars=%s", model_name, len(text))
        return text


def _response_text(response: object) -> str:
    """Purpose: Read reply text from an SDK response without failing on empty replies.
    Inputs/Outputs: Input is a GenerateContentResponse (or None); output is text or "".
    Side Effects / State: None.
    Dependencies: The SDK's .text accessor raises ValueError when no parts exist.
    Failure Modes: Blocked or empty candidates return "".
    If Removed: Blocked replies raise inside the fallback step and show the glitch reply.
    Testing Notes: Pass an object whose text property raises ValueError.
    """
    if response is None:
        return ""
    try:
        text: Optional[str] = getattr(response, "text", None)
    except ValueError:
        logger.warning("model returned no text parts")
        return ""
    return (text or "").strip()


def _normalize_model_name(name: Optional[str]) -> str:
    """Strip the "models/" prefix and whitespace from a model name."""
    if not name:
        return ""
    cleaned = name.strip()
    if cleaned.startswith("models/"):
        return cleaned.split("/", 1)[1]
    return cleaned
