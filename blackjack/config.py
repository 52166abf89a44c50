"""
Table configuration.

All bet limits and rule toggles live in one frozen ``TableRules`` value that
is handed to the engine at construction time. Nothing in the engine reads
module-level constants directly, so callers can vary any of them.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MIN_BET: int = 100
DEFAULT_MAX_BET: int = 10_000
DEFAULT_BET_STEP: int = 100
DEFAULT_BANKROLL: int = 100_000
DEFAULT_LAST_BET: int = 1_000

BLACKJACK_PAYOUT: float = 1.5   # 3:2
MAX_HANDS: int = 4


@dataclass(frozen=True)
class TableRules:
    """Bet limits and house rules for one table.

    Attributes:
        min_bet, max_bet, bet_step: Bet limits; every bet is a multiple of the step.
        starting_bankroll:  Balance given to a new (or reset) player.
        default_last_bet:   Bet suggested to a new (or reset) player.
        blackjack_payout:   Natural payout multiplier (1.5 = 3:2, 1.0 = even).
        dealer_hits_soft_17: H17 when True, S17 otherwise.
        max_hands:          Maximum number of player hands after splits.
        split_aces_one_card_only: Split aces get one card each and stand.
    """
    min_bet: int = DEFAULT_MIN_BET
    max_bet: int = DEFAULT_MAX_BET
    bet_step: int = DEFAULT_BET_STEP
    starting_bankroll: int = DEFAULT_BANKROLL
    default_last_bet: int = DEFAULT_LAST_BET

    blackjack_payout: float = BLACKJACK_PAYOUT
    dealer_hits_soft_17: bool = False

    max_hands: int = MAX_HANDS
    allow_double: bool = True
    allow_double_after_split: bool = True
    allow_surrender: bool = True      # late surrender
    allow_insurance: bool = True
    allow_split: bool = True
    allow_resplit_aces: bool = True
    split_aces_one_card_only: bool = True

    def __post_init__(self) -> None:
        if self.bet_step <= 0:
            raise ValueError(f"bet_step must be positive, got {self.bet_step}.")
        if self.min_bet <= 0:
            raise ValueError(f"min_bet must be positive, got {self.min_bet}.")
        if self.max_bet < self.min_bet:
            raise ValueError(
                f"max_bet ({self.max_bet}) is below min_bet ({self.min_bet})."
            )
        if self.min_bet % self.bet_step or self.max_bet % self.bet_step:
            raise ValueError("min_bet and max_bet must be multiples of bet_step.")
        if self.starting_bankroll < 0:
            raise ValueError("starting_bankroll cannot be negative.")
        if self.blackjack_payout <= 0:
            raise ValueError("blackjack_payout must be positive.")
        if self.max_hands < 1:
            raise ValueError("max_hands must be at least 1.")
