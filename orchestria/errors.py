"""Exception hierarchy for the assistant engine."""


class OrchestriaError(Exception):
    """Base class for all engine errors."""


class SessionUnavailable(OrchestriaError):
    """No conversation handle could be established (e.g. missing API key)."""


class TransportError(OrchestriaError):
    """The remote language service failed while a turn was streaming."""


class StoreError(OrchestriaError):
    """Structured error from a domain store operation."""

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        self.code = code


class ToolArgumentError(OrchestriaError):
    """Tool arguments passed the schema but could not be turned into typed args."""


class MessageLogError(OrchestriaError):
    """Misuse of the message log, e.g. opening a second assistant turn.

    This is a programming error and is never converted into a message.
    """
