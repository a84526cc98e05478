"""Prompt contract for extracting right-to-represent details from emails."""

from __future__ import annotations

PROMPT_VERSION = "rtr-extract-v1"


def clean_body_text(text: str | None, max_chars: int = 3000) -> str:
    """Drop quoted reply lines and truncate the body to ``max_chars``."""

    if not text:
        return ""
    lines = [line for line in text.split("\n") if not line.strip().startswith(">")]
    return "\n".join(lines)[:max_chars]


def build_rtr_extraction_prompt(*, subject: str | None, body: str) -> str:
    """Build a prompt that requests strict JSON output.

    Args:
        subject: Original thread subject (may be None).
        body: Cleaned plain-text bodies of the latest messages.

    Returns:
        Prompt string.
    """

    subj = (subject or "").strip()

    return (
        "You are an assistant that reads recruiting emails about a job submission or a "
        "\"Right to Represent\" (RTR) request.\n\n"
        "Return ONLY valid JSON. No markdown. No code fences. No commentary.\n\n"
        "Extract these fields:\n"
        "- client: string|null (end client company, e.g. Nike, Apple)\n"
        "- rate: string|null (pay rate as written, e.g. $50/hr, 80k/yr)\n"
        "- candidate: string|null (full name of the candidate being represented)\n"
        "- position: string|null (job title / role)\n"
        "- location: string|null (city, state, or Remote)\n"
        "- vendor: string|null (vendor or staffing agency mentioned)\n"
        "- date_context: string|null (date of the RTR if stated, e.g. 12/23)\n\n"
        "Rules:\n"
        "- Use only information supported by the email content.\n"
        "- Use null for anything not stated.\n\n"
        f"Subject: {subj}\n\n"
        "Email body:\n"
        "---\n"
        f"{body}\n"
        "---\n"
    )
