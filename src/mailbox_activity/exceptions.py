"""Custom exceptions for Mailbox Activity."""


class MailboxActivityError(Exception):
    """Base exception for all Mailbox Activity errors."""


class GmailAPIError(MailboxActivityError):
    """Exception raised for Gmail API related errors."""


class DirectoryError(MailboxActivityError):
    """Exception raised when listing directory users fails."""


class OllamaConnectionError(MailboxActivityError):
    """Exception raised when unable to connect to Ollama."""


class OllamaInferenceError(MailboxActivityError):
    """Exception raised when Ollama inference fails."""


class ExtractionError(MailboxActivityError):
    """Exception raised when a model response cannot be turned into fields."""


class ConfigurationError(MailboxActivityError):
    """Exception raised for configuration related errors."""


class AuthenticationError(MailboxActivityError):
    """Exception raised for authentication failures."""
