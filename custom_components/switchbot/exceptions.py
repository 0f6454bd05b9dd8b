"""Error taxonomy shared by the SwitchBot client, profiles and engine."""

from __future__ import annotations


class SwitchBotError(Exception):
    """Base class for every error raised by the integration."""


class TransportError(SwitchBotError):
    """Raised when the cloud API cannot be reached or the call timed out."""


class ProtocolError(SwitchBotError):
    """Raised when the cloud API answers without the success sentinel."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        api_message: str | None = None,
    ) -> None:
        """Store the status code and message reported by the API."""

        super().__init__(message)
        self.status_code = status_code
        self.api_message = api_message


class ParseError(SwitchBotError):
    """Raised when a status body cannot be interpreted for a device type."""


class MappingError(SwitchBotError):
    """Raised when the target state and configuration yield no valid command."""


class ConfigurationError(SwitchBotError):
    """Raised when the integration configuration is missing or invalid."""
