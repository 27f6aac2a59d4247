"""
Error kinds raised by the accrual engine and the state stores.
"""
from __future__ import annotations


class GameError(Exception):
    """Base class for every error the game reports to the player."""


class InvalidArgument(GameError, ValueError):
    """Bad quantity, unknown resource or malformed command."""


class InsufficientResources(GameError):
    def __init__(self, resource: str, needed: int, available: int, message: str = ""):
        self.resource = resource
        self.needed = needed
        self.available = available
        super().__init__(message or f"Need {needed} {resource}(s), have {available}.")


class LockedError(GameError):
    def __init__(self, resource: str, requires: str, threshold: int):
        self.resource = resource
        self.requires = requires
        self.threshold = threshold
        super().__init__(
            f"{resource.capitalize()}s are not available for purchase yet. "
            f"You need at least {threshold} {requires}s to purchase a {resource}!"
        )


class PersistenceError(GameError):
    """The state store is unreachable or a write failed."""


class CorruptState(GameError):
    """A saved snapshot could not be decoded."""
