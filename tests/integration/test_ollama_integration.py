"""Integration tests with a running Ollama instance.

Set MAILBOX_ACTIVITY_IT_OLLAMA=1 to run them against MAILBOX_ACTIVITY_OLLAMA_HOST.
"""

import os

import pytest

from mailbox_activity.analysis.rtr.extractor import RtrExtractor
from mailbox_activity.config import Settings
from mailbox_activity.ollama.client import OllamaClient

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        os.environ.get("MAILBOX_ACTIVITY_IT_OLLAMA") != "1",
        reason="MAILBOX_ACTIVITY_IT_OLLAMA is not set",
    ),
]


class TestOllamaIntegration:
    """Integration tests for Ollama LLM."""

    @pytest.mark.asyncio
    async def test_ollama_connection(self) -> None:
        response = await OllamaClient(Settings()).generate("Reply with the single word: ok")

        assert response

    @pytest.mark.asyncio
    async def test_rtr_extraction_with_ollama(self) -> None:
        extractor = RtrExtractor(OllamaClient(Settings()))
        body = (
            "Hi Jane,\n\nPlease confirm the right to represent you for the Senior Java "
            "Developer role with our client Acme Corp in Austin, TX at $85/hr.\n\n"
            "Thanks,\nBob from TalentCo"
        )

        fields = await extractor.extract(body, "RTR - Senior Java Developer")

        assert fields.client is not None
        assert "acme" in fields.client.lower()
