"""
Hand evaluation: best total and soft-ace bookkeeping.

Aces start at 11 and are softened to 1 one at a time, only while the total
is over 21. The result is the best non-busting total, or the minimum total
when every ace is already softened and the hand is still over 21.

All functions are pure and take any sequence of card ints.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from .cards import RANK_VALUES, RANK_ACE

if TYPE_CHECKING:
    from .rules import HandOutcome


def _total_and_soft_aces(cards: Sequence[int]) -> tuple[int, int]:
    total = 0
    aces = 0
    for card in cards:
        rank = card // 4
        total += RANK_VALUES[rank]
        if rank == RANK_ACE:
            aces += 1
    while total > 21 and aces > 0:
        total -= 10
        aces -= 1
    return total, aces


def hand_value(cards: Sequence[int]) -> int:
    """Return the best total of a hand.

    Examples:
        >>> hand_value((51, 48))          # AS, AC
        12
        >>> hand_value((51, 48, 29))      # AS, AC, 9D
        21
        >>> hand_value((46, 41, 12))      # KH, QD, 5C
        25
    """
    return _total_and_soft_aces(cards)[0]


def soft_aces(cards: Sequence[int]) -> int:
    """Return how many aces are still counted as 11 at the best total."""
    return _total_and_soft_aces(cards)[1]


def is_soft(cards: Sequence[int]) -> bool:
    """Return True if at least one ace is still counted as 11."""
    return soft_aces(cards) > 0


def is_soft_17(cards: Sequence[int]) -> bool:
    """Return True for a 17 that still counts an ace as 11.

    Only the dealer's hit/stand decision uses this.

    Examples:
        >>> is_soft_17((51, 18))           # AS, 6H
        True
        >>> is_soft_17((35, 18, 49))       # 10S, 6H, AD
        False
    """
    total, aces = _total_and_soft_aces(cards)
    return total == 17 and aces > 0


def is_blackjack(cards: Sequence[int]) -> bool:
    """Return True only for a two-card 21."""
    return len(cards) == 2 and hand_value(cards) == 21


def is_bust(total: int) -> bool:
    """Return True if a total exceeds 21.

    Examples:
        >>> is_bust(21)
        False
        >>> is_bust(22)
        True
    """
    return total > 21


# ─── Player hand record ───────────────────────────────────────────────────────

@dataclass
class PlayerHand:
    """One player hand with everything that belongs to it.

    ``result`` and ``net`` stay None until settlement and are written
    exactly once.
    """
    cards: list[int]
    bet: int
    done: bool = False
    doubled: bool = False
    surrendered: bool = False
    is_split_ace: bool = False
    first_action: bool = True
    result: HandOutcome | None = None
    net: int | None = None

    @property
    def value(self) -> int:
        return hand_value(self.cards)

    @property
    def settled(self) -> bool:
        return self.result is not None
