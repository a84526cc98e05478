"""RTR field extraction using Ollama.

Extraction is best-effort: callers treat any exception as "no enrichment"
and carry on with the classification result.
"""

from __future__ import annotations

import json
import re

import pydantic
import structlog

from mailbox_activity.analysis.rtr.models import RtrFields
from mailbox_activity.analysis.rtr.prompt import (
    PROMPT_VERSION,
    build_rtr_extraction_prompt,
    clean_body_text,
)
from mailbox_activity.exceptions import ExtractionError
from mailbox_activity.ollama.client import OllamaClient

logger = structlog.get_logger()

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.S)
_CODE_FENCE_RE = re.compile(r"^```(?:json)?|```$", re.M)


def _extract_json_object(raw: str) -> dict:
    """Extract the first JSON object from a raw model response."""

    raw = _CODE_FENCE_RE.sub("", (raw or "").strip()).strip()
    if not raw:
        raise ExtractionError("empty model response")

    try:
        obj = json.loads(raw)
        if isinstance(obj, dict):
            return obj
    except json.JSONDecodeError:
        pass

    m = _JSON_OBJECT_RE.search(raw)
    if not m:
        raise ExtractionError("model response did not contain a JSON object")

    try:
        obj = json.loads(m.group(0))
    except json.JSONDecodeError as exc:
        raise ExtractionError("model response contained malformed JSON") from exc
    if not isinstance(obj, dict):
        raise ExtractionError("extracted JSON was not an object")
    return obj


def _stringify(obj: dict) -> dict:
    # Models sometimes answer rate or date_context with numbers.
    return {
        k: str(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else v
        for k, v in obj.items()
    }


class RtrExtractor:
    """Turns free-text RTR email bodies into `RtrFields`."""

    def __init__(self, ollama_client: OllamaClient, max_chars: int = 3000) -> None:
        self.ollama_client = ollama_client
        self.max_chars = max_chars

    async def extract(self, text: str, subject_hint: str | None) -> RtrFields:
        """Extract structured fields from ``text``.

        Raises:
            ExtractionError: If the model response cannot be parsed.
            OllamaConnectionError: If Ollama is unreachable.
            OllamaInferenceError: If inference fails.
        """

        prompt = build_rtr_extraction_prompt(
            subject=subject_hint,
            body=clean_body_text(text, self.max_chars),
        )
        raw = await self.ollama_client.generate(prompt)
        obj = _extract_json_object(raw)

        try:
            fields = RtrFields.model_validate(_stringify(obj))
        except pydantic.ValidationError as exc:
            raise ExtractionError(f"unexpected field types: {exc}") from exc

        logger.debug("rtr_fields_extracted", prompt_version=PROMPT_VERSION, candidate=fields.candidate)
        return fields
