"""
Gemini Model Client - multimodal completions with credential fallback.

Sends a text prompt, optionally with one inline image or PDF, and returns
the raw reply text. Tries the primary API key first and the fallback key
on any API error or empty reply.

Uses the `google-genai` SDK (not the deprecated `google-generativeai`).
"""
import base64
import logging
import time
from typing import Callable, Optional, Sequence

from google import genai
from google.genai import types

from src.core.entities.document import InlineAttachment
from src.core.interfaces.model_client import IModelClient
from src.infrastructure.llm.fallback import call_with_fallback

logger = logging.getLogger(__name__)

LOG_PREVIEW_CHARS = 500


class GeminiModelClient(IModelClient):
    """Gemini-backed IModelClient."""

    def __init__(
        self,
        api_keys: Sequence[str],
        model_name: str = "gemini-2.0-flash",
        max_output_tokens: int = 2000,
        temperature: float = 0.1,
        models_without_temperature: Sequence[str] = (),
        client_factory: Callable[[str], object] | None = None,
    ):
        self._api_keys = [key for key in api_keys if key]
        self._model_name = model_name
        self._max_output_tokens = max_output_tokens
        self._temperature = temperature
        self._models_without_temperature = set(models_without_temperature)
        self._client_factory = client_factory or (lambda api_key: genai.Client(api_key=api_key))
        self._clients: dict[str, object] = {}

    @property
    def model_name(self) -> str:
        return self._model_name

    def _get_client(self, api_key: str):
        if api_key not in self._clients:
            self._clients[api_key] = self._client_factory(api_key)
        return self._clients[api_key]

    def build_contents(self, prompt: str, attachment: Optional[InlineAttachment]) -> list:
        """Text-only, or text followed by one inline image/document part."""
        if attachment is None:
            return [prompt]
        return [
            prompt,
            types.Part.from_bytes(
                data=base64.b64decode(attachment.data_base64),
                mime_type=attachment.mime_type,
            ),
        ]

    def build_config(self, system_prompt: Optional[str]) -> dict:
        config = {"max_output_tokens": self._max_output_tokens}
        if self._model_name not in self._models_without_temperature:
            config["temperature"] = self._temperature
        if system_prompt:
            config["system_instruction"] = system_prompt
        return config

    def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        attachment: InlineAttachment | None = None,
    ) -> str | None:
        t0 = time.perf_counter()
        contents = self.build_contents(prompt, attachment)
        config = self.build_config(system_prompt)

        def _generate(api_key: str) -> str:
            response = self._get_client(api_key).models.generate_content(
                model=self._model_name,
                contents=contents,
                config=config,
            )
            return response.text

        reply = call_with_fallback(
            self._api_keys,
            _generate,
            succeeded=lambda text: bool(text and text.strip()),
            operation=f"Gemini {self._model_name} completion",
        )
        latency = (time.perf_counter() - t0) * 1000

        if reply is None:
            logger.error(f"Model unavailable after {latency:.0f} ms")
            return None

        preview = reply[:LOG_PREVIEW_CHARS] + ("..." if len(reply) > LOG_PREVIEW_CHARS else "")
        logger.info(f"Model reply in {latency:.0f} ms: {preview}")
        return reply
