"""
Shared pytest fixtures for blackjack tests.

Provides convenience wrappers around str_to_card for building known hands
and engines that deal from a stacked shoe.
"""

from __future__ import annotations

import numpy as np
import pytest

from blackjack.config import TableRules
from blackjack.engine.cards import str_to_card
from blackjack.engine.game_state import RoundEngine
from blackjack.engine.hand import PlayerHand
from blackjack.engine.shoe import stacked_shoe

BALANCE = 100_000


def hand(*card_strs: str) -> tuple[int, ...]:
    """Build a hand tuple from human-readable card strings.

    Examples:
        >>> hand('AS', 'AC')
        (51, 48)
    """
    return tuple(str_to_card(s) for s in card_strs)


def player_hand(*card_strs: str, bet: int = 100, **flags) -> PlayerHand:
    return PlayerHand(cards=list(hand(*card_strs)), bet=bet, **flags)


def deal_order(player: tuple[str, str], dealer: tuple[str, str], draws: tuple[str, ...] = ()) -> list[str]:
    """Lay out shoe cards in dealing order: P1, D1 (upcard), P2, D2 (hole), then draws."""
    return [player[0], dealer[0], player[1], dealer[1], *draws]


def stacked_engine(
    player: tuple[str, str],
    dealer: tuple[str, str],
    draws: tuple[str, ...] = (),
    rules: TableRules | None = None,
) -> RoundEngine:
    """Engine whose every round deals the given cards first."""
    front = deal_order(player, dealer, draws)
    return RoundEngine(rules, rng=np.random.default_rng(0), shoe_factory=lambda rng: stacked_shoe(front))


@pytest.fixture
def rules() -> TableRules:
    return TableRules()
