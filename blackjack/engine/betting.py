"""
Bet and bankroll policy.

Pure validation of bet amounts against the table limits and the player's
balance. Nothing here depends on round state; the round engine consults it
before accepting bets, doubles, splits and insurance.
"""

from __future__ import annotations

from dataclasses import dataclass

from blackjack.config import TableRules


def round_down_to_step(amount: int, step: int) -> int:
    """Round ``amount`` down to a multiple of ``step``.

    Examples:
        >>> round_down_to_step(250, 100)
        200
        >>> round_down_to_step(99, 100)
        0
    """
    amount = int(amount)
    if step <= 1:
        return amount
    return amount - (amount % step)


def clamp_bet(requested: int, balance: int, min_bet: int, max_bet: int, step: int) -> int:
    """Turn a requested bet into a placeable one, or 0 if none is placeable.

    The request is rounded down to the step, rejected if that falls below
    the minimum, and capped at the maximum. If the balance cannot cover it,
    the bet drops to the balance rounded down to the step, and to 0 when
    that no longer reaches the minimum.

    Examples:
        >>> clamp_bet(250, 10_000, 100, 10_000, 100)
        200
        >>> clamp_bet(50, 10_000, 100, 10_000, 100)
        0
        >>> clamp_bet(50_000, 10_000, 100, 10_000, 100)
        10000
        >>> clamp_bet(5_000, 1_250, 100, 10_000, 100)
        1200
    """
    bet = round_down_to_step(requested, step)
    if bet < min_bet:
        return 0
    if bet > max_bet:
        bet = max_bet
    if bet > balance:
        bet = round_down_to_step(balance, step)
        if bet < min_bet:
            return 0
    return bet


def insurance_amount(opening_bet: int, step: int) -> int:
    """Insurance stake: half the opening bet, rounded down to the step."""
    return round_down_to_step(opening_bet // 2, step)


@dataclass(frozen=True)
class BankrollPolicy:
    """A balance together with the limits it is validated against.

    The balance is owned outside the round; the policy only answers
    questions about it.
    """
    balance: int
    min_bet: int
    max_bet: int
    step: int

    @classmethod
    def from_rules(cls, balance: int, rules: TableRules) -> BankrollPolicy:
        return cls(
            balance=int(balance),
            min_bet=rules.min_bet,
            max_bet=rules.max_bet,
            step=rules.bet_step,
        )

    def clamp(self, requested: int) -> int:
        return clamp_bet(requested, self.balance, self.min_bet, self.max_bet, self.step)

    def can_afford(self, amount: int) -> bool:
        return self.balance >= amount

    def can_cover_minimum(self) -> bool:
        return self.balance >= self.min_bet
