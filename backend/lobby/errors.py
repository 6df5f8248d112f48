"""Typed exceptions for local lobby errors.

Protocol-level outcomes that the lobby tolerates by design (unknown message
types, mismatched room codes, an unanswered join request, a start attempt
with too few players) are not exceptions. They are return values or log
lines. The classes here cover mistakes made on the local device only.
"""


class LobbyError(Exception):
    """Base exception for local lobby errors."""


class InvalidJoinInputError(LobbyError):
    """Join form submitted with an empty or malformed room code or name.

    Raised before anything is published to the bus.
    """

    def __init__(self, *, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"invalid {field}: {reason}")


class InvalidTransitionError(LobbyError):
    """Operation is not available in the current lobby mode."""

    def __init__(self, *, operation: str, mode: str) -> None:
        self.operation = operation
        self.mode = mode
        super().__init__(f"cannot {operation} while in {mode} mode")


class ImageAcquisitionError(LobbyError):
    """Selected image could not be read or downloaded."""
