"""Subject line helpers."""

from __future__ import annotations

import re

REPLY_PREFIX = re.compile(r"^(?:(?:re|fwd|fw|aw):\s*)+", re.IGNORECASE)
ROLE_PREFIX = re.compile(r"^([^|\-:]+)")

MAX_ROLE_LENGTH = 50


def strip_reply_prefix(subject: str | None) -> str:
    """Remove leading Re:/Fwd:/Fw:/Aw: prefixes, stacked ones included."""
    if not subject:
        return ""
    return REPLY_PREFIX.sub("", subject).strip()


def role_label(subject: str | None) -> str:
    """Short role label: the text before the first ``|``, ``-`` or ``:``.

    ``"Fwd: Senior Engineer | Remote"`` becomes ``"Senior Engineer"``. When
    that leading segment is empty or 50+ characters long, the cleaned subject
    is returned instead.
    """

    clean = strip_reply_prefix(subject)
    match = ROLE_PREFIX.match(clean)
    if match and len(match.group(1)) < MAX_ROLE_LENGTH and match.group(1).strip():
        return match.group(1).strip()
    return clean
