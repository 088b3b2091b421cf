"""
Exception Definitions - Custom exceptions for Keyword Bot
=========================================================

This module defines the exceptions used throughout the bot. Startup
errors (configuration, rule file) are fatal; command and send errors
are handled where they occur and reported through chat or the log.
"""


class KeywordBotError(Exception):
    """
    Base exception for all Keyword Bot errors.

    Attributes:
        message (str): Human-readable error description
        details (dict): Additional error details for debugging
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            details: Optional dictionary with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return formatted error message with details if present."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(KeywordBotError):
    """
    Configuration-related errors.

    Raised when there are issues with:
    - Unreadable or unparsable configuration files
    - Invalid configuration values
    - Group registry entries missing required keys
    """
    pass


class RuleStoreError(KeywordBotError):
    """
    Keyword rule file errors.

    Raised when the rule file exists but cannot be read or does not
    have the expected shape. Fatal at startup.
    """
    pass


class InvalidPatternError(RuleStoreError):
    """Raised when a keyword pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid keyword pattern: {reason}", {"pattern": pattern})


class CommandSyntaxError(KeywordBotError):
    """
    Malformed management command.

    Always caught by the module that parsed the command; the user gets
    the command's usage message in chat.
    """
    pass


class SendError(KeywordBotError):
    """
    Outbound message errors.

    Raised when the bot send API cannot be reached or rejects a
    message. Sends run in the background, so these only reach the log.
    """
    pass
