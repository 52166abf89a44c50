"""
Card constants, encoding, and human-readable I/O helpers.

Card encoding (integer 0–51):
    rank_index = card // 4  ->  0=2, 1=3, ..., 7=9, 8=10, 9=J, 10=Q, 11=K, 12=A
    suit_index = card % 4   ->  0=C, 1=D, 2=H, 3=S

A card is an immutable int; rank and suit are derived, never stored.
Suit is cosmetic: no rule in the engine looks at it.
String representations are used only at I/O boundaries.
"""

from __future__ import annotations

# Blackjack point value per rank index. Ace counts 11 here; the hand
# evaluator softens it to 1 when needed.
RANK_VALUES: list[int] = [2, 3, 4, 5, 6, 7, 8, 9, 10, 10, 10, 10, 11]

RANK_NAMES: list[str] = ['2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'A']
SUIT_NAMES: list[str] = ['C', 'D', 'H', 'S']
SUIT_SYMBOLS: list[str] = ['♣', '♦', '♥', '♠']

RANK_ACE: int = 12
RANK_EIGHT: int = 6
RANK_TEN: int = 8
RANK_JACK: int = 9
RANK_QUEEN: int = 10
RANK_KING: int = 11

TEN_VALUE_RANKS: frozenset[int] = frozenset({RANK_TEN, RANK_JACK, RANK_QUEEN, RANK_KING})

DECK_SIZE: int = 52


def card_rank(card: int) -> int:
    """Return the rank index (0–12) of a card.

    Examples:
        >>> card_rank(0)   # 2 of Clubs
        0
        >>> card_rank(51)  # Ace of Spades
        12
    """
    return card // 4


def card_suit(card: int) -> int:
    """Return the suit index (0–3) of a card."""
    return card % 4


def card_value(card: int) -> int:
    """Return the point value of a card, with Ace counted as 11.

    Examples:
        >>> card_value(36)   # Jack of Clubs
        10
        >>> card_value(48)   # Ace of Clubs
        11
    """
    return RANK_VALUES[card // 4]


def is_ace(card: int) -> bool:
    return card // 4 == RANK_ACE


def is_ten_value(card: int) -> bool:
    """True for 10, J, Q, K."""
    return card // 4 in TEN_VALUE_RANKS


def card_to_str(card: int, symbols: bool = False) -> str:
    """Convert a card integer to its human-readable string.

    Examples:
        >>> card_to_str(51)
        'AS'
        >>> card_to_str(32)
        '10C'
        >>> card_to_str(51, symbols=True)
        'A♠'
    """
    suits = SUIT_SYMBOLS if symbols else SUIT_NAMES
    return RANK_NAMES[card // 4] + suits[card % 4]


def str_to_card(s: str) -> int:
    """Parse a human-readable card string to its integer encoding.

    The format is <rank><suit> where suit is the last character.
    Rank can be '2'-'10', 'J', 'Q', 'K', or 'A'; suit is C, D, H, S
    (case-insensitive) or one of the suit symbols.

    Raises:
        ValueError: If the string does not name a card.

    Examples:
        >>> str_to_card('2C')
        0
        >>> str_to_card('AS')
        51
        >>> str_to_card('10h')
        34
    """
    s = s.strip()
    if len(s) < 2:
        raise ValueError(f"Not a card: {s!r}")
    suit_char = s[-1].upper()
    rank_str = s[:-1].upper()
    if rank_str not in RANK_NAMES:
        raise ValueError(f"Unknown rank in card {s!r}")
    if suit_char in SUIT_NAMES:
        suit = SUIT_NAMES.index(suit_char)
    elif suit_char in SUIT_SYMBOLS:
        suit = SUIT_SYMBOLS.index(suit_char)
    else:
        raise ValueError(f"Unknown suit in card {s!r}")
    return RANK_NAMES.index(rank_str) * 4 + suit


def hand_to_str(cards, symbols: bool = False) -> str:
    """Convert a sequence of card ints to a comma-separated string.

    Examples:
        >>> hand_to_str((48, 51))
        'AC, AS'
    """
    return ', '.join(card_to_str(c, symbols) for c in cards)
