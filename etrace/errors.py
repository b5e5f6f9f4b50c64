# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Error types raised while configuring an etrace run.

All of these are fatal and are reported before any event is processed.
"""


class ConfigurationError(ValueError):
    """Exception raised for invalid or incompatible run configuration."""

    pass


class MalformedFilterError(ConfigurationError):
    """Exception raised when a filter expression cannot be parsed."""

    def __init__(self, text: str, reason: str = "") -> None:
        self.text = text
        message = f"Invalid filter: '{text}'"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class UnknownKeywordError(ConfigurationError):
    """Exception raised for a provider keyword name that does not exist."""

    pass
