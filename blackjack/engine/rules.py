"""
Settlement, hand comparison, and payout calculation.

Settlement priority per hand (highest to lowest):
    1. Surrendered            → lose half the bet (rounded down)
    2. Player bust (>21)      → lose the bet
    3. Dealer blackjack       → push a player natural, lose anything else
    4. Player natural         → win bet × payout multiplier (round half up)
    5. Dealer bust            → win the bet
    6. Total comparison       → win / lose / push at 1:1

A natural is a two-card 21 on an unsplit hand; split-ace hands never count.

Insurance settles on its own: +2× stake on a dealer blackjack, −stake
otherwise. The round net is the sum of the hand nets plus the insurance net.

Payout convention (from player's perspective, in chips):
    +N  = player wins N
    -N  = player loses N
     0  = push (bet returned)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from .cards import hand_to_str
from .hand import PlayerHand, hand_value, is_blackjack, is_bust


class HandOutcome(Enum):
    BLACKJACK = "blackjack"
    WIN = "win"
    PUSH = "push"
    LOSE = "lose"
    BUST = "bust"
    SURRENDER = "surrender"


def round_half_up(amount: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Examples:
        >>> round_half_up(7.5)
        8
        >>> round_half_up(225.0)
        225
    """
    return int(math.floor(amount + 0.5))


def _signed(n: int) -> str:
    return f"+{n}" if n >= 0 else str(n)


# ─── Core settlement functions ────────────────────────────────────────────────

def resolve_hand(
    cards: Sequence[int],
    bet: int,
    dealer_value: int,
    dealer_busted: bool = False,
    dealer_has_blackjack: bool = False,
    surrendered: bool = False,
    split_ace: bool = False,
    payout_multiplier: float = 1.5,
) -> tuple[HandOutcome, int]:
    """Classify a finished hand and compute its signed net.

    Args:
        cards: Player's final cards.
        bet: Final stake on the hand (already doubled if the hand doubled).
        dealer_value: Dealer's final total.
        dealer_busted: True if the dealer's final total exceeds 21.
        dealer_has_blackjack: True if the dealer's first two cards are a natural.
        surrendered: Hand was surrendered.
        split_ace: Hand came from splitting aces; it can never be a natural.
        payout_multiplier: Natural payout (1.5 = 3:2).

    Returns:
        (HandOutcome, net) from the player's perspective.
    """
    if surrendered:
        return HandOutcome.SURRENDER, -(bet // 2)

    player_value = hand_value(cards)
    if is_bust(player_value):
        return HandOutcome.BUST, -bet

    player_has_blackjack = is_blackjack(cards) and not split_ace

    if dealer_has_blackjack:
        if player_has_blackjack:
            return HandOutcome.PUSH, 0
        return HandOutcome.LOSE, -bet

    if player_has_blackjack:
        return HandOutcome.BLACKJACK, round_half_up(bet * payout_multiplier)

    if dealer_busted:
        return HandOutcome.WIN, bet

    if player_value > dealer_value:
        return HandOutcome.WIN, bet
    if player_value < dealer_value:
        return HandOutcome.LOSE, -bet
    return HandOutcome.PUSH, 0


def settle_hand(
    hand: PlayerHand,
    dealer_value: int,
    dealer_busted: bool = False,
    dealer_has_blackjack: bool = False,
    payout_multiplier: float = 1.5,
) -> tuple[HandOutcome, int]:
    """Write ``result`` and ``net`` onto a hand, once.

    A hand that already carries a result is returned as-is; settling twice
    never changes it.
    """
    if hand.result is not None and hand.net is not None:
        return hand.result, hand.net

    outcome, net = resolve_hand(
        hand.cards,
        hand.bet,
        dealer_value,
        dealer_busted=dealer_busted,
        dealer_has_blackjack=dealer_has_blackjack,
        surrendered=hand.surrendered,
        split_ace=hand.is_split_ace,
        payout_multiplier=payout_multiplier,
    )
    hand.result = outcome
    hand.net = net
    return outcome, net


def settle_insurance(amount: int, dealer_has_blackjack: bool) -> int:
    """Net for an insurance stake (0 when no insurance was taken).

    Examples:
        >>> settle_insurance(50, dealer_has_blackjack=True)
        100
        >>> settle_insurance(50, dealer_has_blackjack=False)
        -50
    """
    if amount <= 0:
        return 0
    if dealer_has_blackjack:
        return amount * 2
    return -amount


# ─── Round summary ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class HandLine:
    """Settled snapshot of one player hand."""
    index: int
    cards: tuple[int, ...]
    value: int
    bet: int
    outcome: HandOutcome
    net: int
    doubled: bool = False
    surrendered: bool = False
    split_ace: bool = False

    def __str__(self) -> str:
        return (
            f"Hand {self.index + 1}: {hand_to_str(self.cards)} ({self.value}) | "
            f"Bet {self.bet} | {self.outcome.value} | Net {_signed(self.net)}"
        )


@dataclass(frozen=True)
class InsuranceLine:
    amount: int
    net: int
    even_money: bool = False

    def __str__(self) -> str:
        label = "Even Money" if self.even_money else "Insurance"
        return f"{label}: Bet {self.amount} | Net {_signed(self.net)}"


@dataclass(frozen=True)
class RoundSummary:
    """Immutable result of one completed round.

    ``net_total`` is the only figure the bankroll owner needs to apply.
    """
    net_total: int
    dealer_cards: tuple[int, ...]
    dealer_value: int
    hand_lines: tuple[HandLine, ...]
    insurance_line: InsuranceLine | None = None
    dealer_busted: bool = False
    dealer_has_blackjack: bool = False
    opening_bet: int = 0

    def lines(self) -> list[str]:
        """Render the summary as display lines."""
        out = [
            f"Last Round: Net {_signed(self.net_total)}",
            f"Dealer: {hand_to_str(self.dealer_cards)} ({self.dealer_value})",
        ]
        out.extend(str(line) for line in self.hand_lines)
        if self.insurance_line is not None:
            out.append(str(self.insurance_line))
        return out


def settle_round(
    hands: Sequence[PlayerHand],
    dealer_cards: Sequence[int],
    dealer_has_blackjack: bool = False,
    insurance_amount: int = 0,
    even_money: bool = False,
    payout_multiplier: float = 1.5,
    opening_bet: int = 0,
) -> RoundSummary:
    """Settle every hand and the insurance side bet into a ``RoundSummary``.

    Hands that were settled before keep their result; the total is always
    rebuilt from the stored nets, so calling this twice gives the same
    summary.
    """
    dealer_value = hand_value(dealer_cards)
    dealer_busted = is_bust(dealer_value)

    hand_lines = []
    net_total = 0
    for index, hand in enumerate(hands):
        outcome, net = settle_hand(
            hand,
            dealer_value,
            dealer_busted=dealer_busted,
            dealer_has_blackjack=dealer_has_blackjack,
            payout_multiplier=payout_multiplier,
        )
        net_total += net
        hand_lines.append(HandLine(
            index=index,
            cards=tuple(hand.cards),
            value=hand.value,
            bet=hand.bet,
            outcome=outcome,
            net=net,
            doubled=hand.doubled,
            surrendered=hand.surrendered,
            split_ace=hand.is_split_ace,
        ))

    insurance_line = None
    if insurance_amount > 0:
        insurance_net = settle_insurance(insurance_amount, dealer_has_blackjack)
        net_total += insurance_net
        insurance_line = InsuranceLine(insurance_amount, insurance_net, even_money)

    return RoundSummary(
        net_total=net_total,
        dealer_cards=tuple(dealer_cards),
        dealer_value=dealer_value,
        hand_lines=tuple(hand_lines),
        insurance_line=insurance_line,
        dealer_busted=dealer_busted,
        dealer_has_blackjack=dealer_has_blackjack,
        opening_bet=opening_bet,
    )
