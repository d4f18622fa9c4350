#------------------------------------------------------------
#                       llm_service.py
#        Thin client for the OpenRouter chat-completions
#                   text generation endpoint.

import logging
from typing import Optional
import requests
from ..config import (
    DEFAULT_LLM_MODEL,
    LLM_MAX_TOKENS_CAP,
    LLM_REQUEST_TIMEOUT_SECONDS,
    LLM_TEMPERATURE,
    OPENROUTER_API_URL,
    resolve_llm_settings,
)
from ..errors import TextGenerationError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a professional CV writer assistant."
CLIENT_TITLE = "GitHub to CV Generator"
NOT_CONFIGURED_MESSAGE = "Text generation is not configured. Set OPENROUTER_API_KEY to enable it."
EMPTY_PROMPT_MESSAGE = "Prompt is required"
API_ERROR_TEMPLATE = "OpenRouter API error: {status}"
TRANSPORT_ERROR_TEMPLATE = "OpenRouter request failed: {error}"

class OpenRouterClient:

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or ""
        self.model = model or DEFAULT_LLM_MODEL

    @classmethod
    def from_env(cls) -> "OpenRouterClient":
        settings = resolve_llm_settings()
        return cls(api_key=settings["api_key"], model=settings["model"])

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "X-Title": CLIENT_TITLE,
        }

    # This function does request one completion for a prompt.
    # It returns the trimmed text of the first choice.
    def generate(self, prompt: str, system_prompt: Optional[str] = None, max_tokens: int = 1000) -> str:
        if not self.enabled:
            raise TextGenerationError(NOT_CONFIGURED_MESSAGE)
        if not prompt:
            raise TextGenerationError(EMPTY_PROMPT_MESSAGE)

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt or DEFAULT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": min(max_tokens, LLM_MAX_TOKENS_CAP),
            "temperature": LLM_TEMPERATURE,
        }

        try:
            response = requests.post(
                OPENROUTER_API_URL,
                headers=self.headers(),
                json=payload,
                timeout=LLM_REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            raise TextGenerationError(TRANSPORT_ERROR_TEMPLATE.format(error=exc)) from exc

        if not response.ok:
            message = API_ERROR_TEMPLATE.format(status=response.status_code)
            try:
                message = response.json().get("error", {}).get("message") or message
            except (ValueError, AttributeError):
                pass
            raise TextGenerationError(message)

        try:
            data = response.json()
        except ValueError as exc:
            raise TextGenerationError(f"Invalid response from OpenRouter: {exc}") from exc

        choices = data.get("choices") or []
        if not choices:
            return ""
        content = (choices[0].get("message") or {}).get("content") or ""
        logger.debug("Generated %d characters with %s", len(content), self.model)
        return content.strip()
