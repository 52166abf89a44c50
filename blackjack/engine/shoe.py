"""
Shoe creation and dealing.

A shoe is one full 52-card deck in randomized order, held as a numpy int8
array plus a read position. Cards are consumed strictly from the front and
the shoe is never replenished: a new one is built for every round.

Randomness comes only from the injected ``numpy.random.Generator``; the
engine never seeds anything itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from blackjack.errors import ShoeEmpty
from .cards import DECK_SIZE, str_to_card


@dataclass
class Shoe:
    """Ordered cards plus the index of the next card to deal."""
    cards: np.ndarray
    position: int = 0

    def __len__(self) -> int:
        return cards_remaining(self)


def _fisher_yates(cards: np.ndarray, rng: np.random.Generator) -> None:
    """Shuffle ``cards`` in place with a uniform Fisher–Yates pass."""
    for i in range(len(cards) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        cards[i], cards[j] = cards[j], cards[i]


def new_shoe(rng: np.random.Generator | None = None) -> Shoe:
    """Build a freshly shuffled 52-card shoe.

    Args:
        rng: Random source. A fresh unseeded generator is used when None.

    Examples:
        >>> shoe = new_shoe(np.random.default_rng(7))
        >>> cards_remaining(shoe)
        52
        >>> sorted(shoe.cards.tolist()) == list(range(52))
        True
    """
    if rng is None:
        rng = np.random.default_rng()
    cards = np.arange(DECK_SIZE, dtype=np.int8)
    _fisher_yates(cards, rng)
    return Shoe(cards=cards)


def stacked_shoe(
    front: Iterable[int | str],
    rng: np.random.Generator | None = None,
) -> Shoe:
    """Build a shoe whose first cards are ``front``, in that order.

    The remaining cards follow in ascending order, or shuffled when ``rng``
    is given. Used for deterministic scenarios.

    Args:
        front: Card ints or card strings ('AS', '10H', ...).
        rng:   Optional random source for the tail of the shoe.

    Raises:
        ValueError: If a card appears twice in ``front``.

    Examples:
        >>> shoe = stacked_shoe(['AS', 'KH'])
        >>> draw(shoe), draw(shoe)
        (51, 46)
    """
    head = [str_to_card(c) if isinstance(c, str) else int(c) for c in front]
    if len(set(head)) != len(head):
        raise ValueError("Stacked shoe repeats a card.")
    used = set(head)
    tail = np.array([c for c in range(DECK_SIZE) if c not in used], dtype=np.int8)
    if rng is not None:
        _fisher_yates(tail, rng)
    cards = np.concatenate([np.array(head, dtype=np.int8), tail])
    return Shoe(cards=cards)


def cards_remaining(shoe: Shoe) -> int:
    return len(shoe.cards) - shoe.position


def draw(shoe: Shoe) -> int:
    """Deal the next card from the front of the shoe.

    Raises:
        ShoeEmpty: If every card has been dealt.
    """
    if shoe.position >= len(shoe.cards):
        raise ShoeEmpty("Cannot draw from an empty shoe.")
    card = int(shoe.cards[shoe.position])
    shoe.position += 1
    return card
