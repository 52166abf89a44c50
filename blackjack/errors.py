"""
Error taxonomy for the blackjack table.

Every error here is local and recoverable: the engine raises it before any
state is touched, so the caller may report it and carry on with the same
round.
"""

from __future__ import annotations


class BlackjackError(Exception):
    """Base class for all rejected table operations."""


class InvalidBet(BlackjackError, ValueError):
    """Bet outside min/max/step or otherwise not placeable."""


class InsufficientFunds(InvalidBet):
    """Bankroll cannot cover the minimum bet (or the requested commitment)."""


class RoundAlreadyActive(BlackjackError):
    pass


class NoActiveRound(BlackjackError):
    pass


class IllegalAction(BlackjackError):
    """Action not permitted for the current hand or phase."""


class InsuranceUnavailable(BlackjackError):
    """Insurance not offered, already decided, or unaffordable."""


class ShoeEmpty(BlackjackError, ValueError):
    """Draw attempted from an exhausted shoe."""
