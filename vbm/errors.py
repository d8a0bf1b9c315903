"""
Domain errors shared by the standings aggregator, the simulator and the services.
None of these are retried; they propagate to the caller (the API maps them to HTTP codes).
"""
from __future__ import annotations


class DataIntegrityError(ValueError):
    """Snapshot is internally inconsistent (unknown team, team in two leagues, bad record)."""


class InvalidInputError(ValueError):
    """An input violates its declared domain (strength out of range, missing team)."""


class MatchTransitionError(ValueError):
    """Invalid match status transition, or a write to a completed/cancelled match."""


class MaintenanceModeRequiredError(PermissionError):
    """Administrative override attempted without maintenance mode enabled."""


class NotFoundError(LookupError):
    """Referenced league, team, player or match does not exist."""


class InsufficientFundsError(InvalidInputError):
    """Buying team's balance does not cover the offered amount."""


class OfferStateError(ValueError):
    """Transfer offer is no longer pending, or the player has already moved."""
