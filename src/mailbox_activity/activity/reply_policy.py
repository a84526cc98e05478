"""Reply detection strategies.

Two rules have been used to decide whether a thread counts as "replied":

- ``last_reply`` (canonical): the thread has more than one message, its
  primary message is inbound and its latest message was sent by the mailbox
  owner. In other words the owner's most recent action was a reply.
- ``conversation``: the thread holds at least one sent and at least one
  received message anywhere, in any order.

``conversation`` is kept for reports that need the looser count; it is never
used as an implicit fallback.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from mailbox_activity.models import RawMessage


class ReplyPolicy(ABC):
    """Decides the ``is_replied`` flag for a chronologically sorted thread."""

    name: str

    @abstractmethod
    def is_replied(
        self,
        messages: Sequence[RawMessage],
        primary: RawMessage,
        latest: RawMessage,
    ) -> bool:
        """Return True if the thread counts as replied."""


class LastReplyPolicy(ReplyPolicy):
    name = "last_reply"

    def is_replied(
        self,
        messages: Sequence[RawMessage],
        primary: RawMessage,
        latest: RawMessage,
    ) -> bool:
        return len(messages) > 1 and not primary.is_sent and latest.is_sent


class ConversationPolicy(ReplyPolicy):
    name = "conversation"

    def is_replied(
        self,
        messages: Sequence[RawMessage],
        primary: RawMessage,
        latest: RawMessage,
    ) -> bool:
        has_sent = any(m.is_sent for m in messages)
        has_received = any(not m.is_sent for m in messages)
        return has_sent and has_received


_POLICIES: dict[str, type[ReplyPolicy]] = {
    LastReplyPolicy.name: LastReplyPolicy,
    ConversationPolicy.name: ConversationPolicy,
}


def get_reply_policy(name: str = LastReplyPolicy.name) -> ReplyPolicy:
    """Look up a reply policy by name.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return _POLICIES[name]()
    except KeyError:
        raise ValueError(f"Unknown reply policy: {name!r}") from None
