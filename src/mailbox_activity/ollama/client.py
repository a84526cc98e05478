"""Ollama client implementation.

This module provides a client for interacting with Ollama LLM.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from typing import Any

import structlog

from mailbox_activity.config import Settings
from mailbox_activity.exceptions import OllamaConnectionError, OllamaInferenceError

logger = structlog.get_logger()


class OllamaClient:
    """Ollama LLM client for AI inference.

    This client handles communication with the Ollama API
    for language model inference tasks.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize Ollama client.

        Args:
            settings: Application settings. If None, uses default settings.
        """
        from mailbox_activity.config import get_settings

        self.settings = settings or get_settings()
        logger.info(
            "ollama_client_initialized",
            host=self.settings.ollama_host,
            model=self.settings.ollama_model,
        )

    async def generate(self, prompt: str, model: str | None = None) -> str:
        """Generate text using Ollama (non-streaming).

        Args:
            prompt: The prompt to send to the model.
            model: Model name to use. If None, uses default from settings.

        Returns:
            The generated text.

        Raises:
            OllamaConnectionError: If unable to connect to Ollama.
            OllamaInferenceError: If inference fails.
        """
        model = model or self.settings.ollama_model
        logger.debug("generating_text", model=model, prompt_length=len(prompt))

        data = await asyncio.to_thread(self._post_generate_sync, model, prompt)

        response = data.get("response")
        if not isinstance(response, str):
            raise OllamaInferenceError(f"Ollama returned no response text (model={model})")
        return response.strip()

    def _post_generate_sync(self, model: str, prompt: str) -> dict[str, Any]:
        host = self.settings.ollama_host.rstrip("/")
        payload = json.dumps({"model": model, "prompt": prompt, "stream": False}).encode("utf-8")
        req = urllib.request.Request(
            url=f"{host}/api/generate",
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=self.settings.ollama_timeout) as resp:  # noqa: S310
                body = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise OllamaInferenceError(f"Ollama returned HTTP {exc.code}") from exc
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise OllamaConnectionError(f"Unable to reach Ollama at {host}: {exc}") from exc

        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise OllamaInferenceError("Ollama returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise OllamaInferenceError("Ollama returned an unexpected payload")
        return data
