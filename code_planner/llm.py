from __future__ import annotations
import logging
from openai import OpenAI
from typing import Optional

from .config import GEMINI_BASE_URL

class LLMUnavailableError(RuntimeError):
    pass

class LLM:
    """
    Gemini integration through its OpenAI-compatible chat completions endpoint.
    Without an API key no client is built and every call raises LLMUnavailableError,
    so callers can switch to their offline path.
    """
    def __init__(self, api_key: Optional[str] = None, base_url: str = GEMINI_BASE_URL,
                 model: str = "gemini-2.0-flash"):
        self.api_key = api_key
        self.model = model
        if not self.api_key:
            logging.warning("Gemini API key not found. Planner will use fallback mode.")
            self.client = None
        else:
            self.client = OpenAI(
                api_key=self.api_key,
                base_url=base_url
            )

    @property
    def available(self) -> bool:
        return self.client is not None

    def generate_text(self, prompt: str, system_prompt: str = "You are a helpful AI assistant.",
                      max_tokens: int = 4000) -> str:
        """
        Send one prompt and return the raw reply text. API errors propagate to the caller.
        """
        if not self.client:
            raise LLMUnavailableError("Gemini API key not available")

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt}
            ],
            temperature=0.2,
            max_tokens=max_tokens
        )
        content = response.choices[0].message.content
        if not content:
            raise ValueError("empty response from Gemini")
        return content.strip()
