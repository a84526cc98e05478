"""Helpers for parsing Gmail thread and message payloads into internal models."""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any

from mailbox_activity.models import RawMessage, RawThread

_BRACKETED_ADDRESS_RE = re.compile(r"<([^>]+)>")


def _header_map(payload: dict[str, Any]) -> dict[str, str]:
    headers = payload.get("headers") or []
    result: dict[str, str] = {}
    for h in headers:
        name = h.get("name")
        value = h.get("value")
        if isinstance(name, str) and isinstance(value, str):
            # Gmail can include duplicates; keep the first.
            result.setdefault(name.lower(), value)
    return result


def _parse_internal_date(value: Any) -> int:
    try:
        return int(value) if value is not None else 0
    except (TypeError, ValueError):
        return 0


def _decode_b64(data: str) -> str | None:
    """Decode base64url body data; None when the data is not valid base64."""
    padded = data + "=" * (-len(data) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("utf-8"))
    except (binascii.Error, ValueError):
        return None
    return raw.decode("utf-8", errors="replace")


def _walk_parts(part: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten a MIME part tree, depth first, excluding the root."""
    flat: list[dict[str, Any]] = []
    for child in part.get("parts") or []:
        flat.append(child)
        flat.extend(_walk_parts(child))
    return flat


def attachment_filenames(payload: dict[str, Any]) -> list[str]:
    """Return the filenames of every attached part in a message payload."""
    names: list[str] = []
    for part in _walk_parts(payload):
        filename = part.get("filename")
        if isinstance(filename, str) and filename:
            names.append(filename)
    return names


def extract_body_text(payload: dict[str, Any]) -> str:
    """Extract a best-effort plain-text body from a message payload.

    Order of preference: data on the root payload, the first ``text/plain``
    part, then every part with decodable data joined by newlines. Parts whose
    data does not decode are skipped.
    """

    data = (payload.get("body") or {}).get("data")
    if data:
        decoded = _decode_b64(data)
        if decoded is not None:
            return decoded

    parts = _walk_parts(payload)
    for part in parts:
        mime = (part.get("mimeType") or "").lower()
        part_data = (part.get("body") or {}).get("data")
        if part_data and mime.startswith("text/plain"):
            decoded = _decode_b64(part_data)
            if decoded is not None:
                return decoded

    texts = []
    for part in parts:
        part_data = (part.get("body") or {}).get("data")
        decoded = _decode_b64(part_data) if part_data else None
        if decoded is not None:
            texts.append(decoded)
    return "\n".join(texts)


def parse_identity(value: str | None) -> tuple[str, str]:
    """Split a From/To header value into ``(display_name, address)``.

    The bracketed address is authoritative. Without brackets the whole value,
    minus quotes, is the address. The display name falls back to the address
    when the header carries no separate name.
    """

    if not value:
        return "", ""

    match = _BRACKETED_ADDRESS_RE.search(value)
    if match:
        address = match.group(1).strip()
        name = value.split("<", 1)[0].replace('"', "").strip()
    else:
        address = value.replace('"', "").strip()
        name = ""

    return name or address, address


def message_to_raw_message(message: dict[str, Any]) -> RawMessage:
    """Convert a Gmail API message dict (format=full or metadata) to RawMessage.

    Args:
        message: Gmail API message dict.

    Returns:
        RawMessage: Parsed message model.
    """

    payload = message.get("payload") or {}

    label_ids = message.get("labelIds") or []
    if not isinstance(label_ids, list):
        label_ids = []

    return RawMessage(
        id=str(message.get("id") or ""),
        thread_id=str(message.get("threadId") or ""),
        internal_timestamp=_parse_internal_date(message.get("internalDate")),
        labels=frozenset(str(x) for x in label_ids if isinstance(x, str)),
        headers=_header_map(payload),
        snippet=str(message.get("snippet") or ""),
        attachment_filenames=attachment_filenames(payload),
        body_text=extract_body_text(payload),
    )


def thread_to_raw_thread(thread: dict[str, Any]) -> RawThread:
    """Convert a Gmail API thread dict to RawThread."""

    messages = thread.get("messages") or []
    return RawThread(
        id=str(thread.get("id") or ""),
        messages=[message_to_raw_message(m) for m in messages if isinstance(m, dict)],
    )
