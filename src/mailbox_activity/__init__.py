"""Mailbox Activity - thread aggregation and activity classification.

This package pulls a mailbox's paginated message list from Gmail, rebuilds
conversation threads, and classifies each thread (inbound vs. sent, reply
status, resume submissions, right-to-represent requests) for reporting.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from mailbox_activity.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
