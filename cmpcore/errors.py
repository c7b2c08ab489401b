"""
Exceptions raised by the completion engine.

Provider failures never reach the user: they are caught at the source
boundary, logged through the editor host and turned into an ERRORED status.
"""


class CmpError(Exception):
    """Base class for all engine errors."""


class ProviderFetchError(CmpError):
    """A provider's asynchronous fetch raised."""

    def __init__(self, source_name: str, cause: BaseException) -> None:
        super().__init__(f"{source_name}: {type(cause).__name__}: {cause}")
        self.source_name = source_name
        self.cause = cause


class StaleResultDiscarded(CmpError):
    """A provider answered a request that a newer request superseded."""


class ConfirmationAborted(CmpError):
    """A confirmation phase could not proceed."""


class InvalidStatusTransition(CmpError):
    """A source status change outside the allowed transition table."""


class ConfigError(CmpError):
    """Invalid configuration detected at setup."""
