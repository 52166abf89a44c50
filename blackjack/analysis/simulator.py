"""
Monte Carlo simulator for blackjack strategies.

Plays complete rounds through ``RoundEngine``, with the same dealing, peek,
insurance, split and settlement code the table uses, and summarises the
per-round nets into EV statistics with a confidence interval.

Nets are reported in units of the opening bet, so a natural at 3:2 is +1.5
and a lost double is -2.0. The balance handed to the engine is effectively
unlimited, so affordability never restricts doubles or splits.

Usage (standalone report):
    python -m blackjack.analysis.simulator
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

import numpy as np
from scipy import stats

from blackjack.config import TableRules
from blackjack.engine.cards import RANK_ACE, RANK_EIGHT, card_rank, card_value
from blackjack.engine.game_state import Action, ActionResult, RoundEngine
from blackjack.engine.hand import PlayerHand, is_soft

UNLIMITED_BALANCE: int = 10**12

# strategy(hand, dealer_upcard, legal_actions) -> Action
PlayerStrategy = Callable[[PlayerHand, int, frozenset], Action]

_CALLS: dict[Action, Callable[[RoundEngine], ActionResult]] = {
    Action.HIT: RoundEngine.hit,
    Action.STAND: RoundEngine.stand,
    Action.DOUBLE: RoundEngine.double,
    Action.SPLIT: RoundEngine.split,
    Action.SURRENDER: RoundEngine.surrender,
}


# ─── Result type ──────────────────────────────────────────────────────────────


@dataclass
class SimulationResult:
    """Aggregate statistics from a Monte Carlo run.

    Attributes:
        n_rounds:       Number of rounds simulated.
        mean_ev:        Mean net per round in units of the bet.
        std_ev:         Sample standard deviation of per-round nets.
        ci_95_low:      Lower bound of the 95% confidence interval (Student t).
        ci_95_high:     Upper bound of the 95% confidence interval.
        house_edge_pct: -mean_ev * 100. Positive = house advantage.
        skewness:       Fisher skewness of the per-round nets.
        n_wins:         Rounds with a positive net.
        n_losses:       Rounds with a negative net.
        n_pushes:       Rounds with a zero net.
        payouts:        Raw per-round nets, or None unless requested.
    """

    n_rounds: int
    mean_ev: float
    std_ev: float
    ci_95_low: float
    ci_95_high: float
    house_edge_pct: float
    skewness: float
    n_wins: int
    n_losses: int
    n_pushes: int
    payouts: np.ndarray | None = None

    def __str__(self) -> str:
        return (
            f"Rounds: {self.n_rounds:,} | "
            f"EV: {self.mean_ev:+.4f} ({self.mean_ev * 100:+.2f}%) | "
            f"95% CI: [{self.ci_95_low:.4f}, {self.ci_95_high:.4f}] | "
            f"House edge: {self.house_edge_pct:+.2f}%"
        )


# ─── Strategies ───────────────────────────────────────────────────────────────


def always_stand(hand: PlayerHand, dealer_upcard: int, legal: frozenset) -> Action:
    return Action.STAND


def simple_strategy(hand: PlayerHand, dealer_upcard: int, legal: frozenset) -> Action:
    """A compact approximation of basic strategy.

    Split aces and eights, double hard 10/11, stand on 17+ and on hard
    13–16 against a dealer 2–6, hit otherwise.
    """
    value = hand.value
    soft = is_soft(hand.cards)
    upcard_value = card_value(dealer_upcard)

    pair = len(hand.cards) == 2 and card_rank(hand.cards[0]) == card_rank(hand.cards[1])
    if Action.SPLIT in legal and pair and card_rank(hand.cards[0]) in (RANK_ACE, RANK_EIGHT):
        return Action.SPLIT
    if Action.DOUBLE in legal and not soft and value in (10, 11) and upcard_value < value:
        return Action.DOUBLE
    if value >= 18 or (value == 17 and not soft):
        return Action.STAND
    if not soft and value >= 13 and upcard_value <= 6:
        return Action.STAND
    if Action.HIT in legal:
        return Action.HIT
    return Action.STAND


# ─── Core simulation loop ─────────────────────────────────────────────────────


def play_round(engine: RoundEngine, bet: int, strategy: PlayerStrategy) -> ActionResult:
    """Play one full round, always declining insurance."""
    result = engine.start(bet, UNLIMITED_BALANCE)
    while result.settlement is None:
        if engine.insurance().offered:
            result = engine.decline_insurance()
            continue
        hand = engine.player_hands()[engine.current_hand_index()]
        legal = engine.legal_actions()
        action = strategy(hand, engine.dealer_upcard(), legal)
        if action not in legal:
            action = Action.STAND
        result = _CALLS[action](engine)
    return result


def simulate_rounds(
    n_rounds: int = 10_000,
    bet: int | None = None,
    strategy: PlayerStrategy = simple_strategy,
    rules: TableRules | None = None,
    seed: int | None = 42,
    return_payouts: bool = False,
) -> SimulationResult:
    """Simulate ``n_rounds`` rounds and return aggregate statistics.

    Args:
        n_rounds: Number of rounds (at least 2).
        bet: Opening bet; the table minimum when None.
        strategy: Player decision function.
        rules: Table rules; defaults when None.
        seed: Seed for the shuffle generator. None for a non-deterministic run.
        return_payouts: Attach the raw per-round nets to the result.

    Returns:
        SimulationResult with EV statistics for the run.
    """
    if n_rounds < 2:
        raise ValueError("n_rounds must be at least 2.")
    rules = rules if rules is not None else TableRules()
    bet = bet if bet is not None else rules.min_bet
    engine = RoundEngine(rules, rng=np.random.default_rng(seed))

    nets = np.empty(n_rounds, dtype=np.float64)
    for i in range(n_rounds):
        result = play_round(engine, bet, strategy)
        nets[i] = result.settlement.net_total / result.settlement.opening_bet

    mean = float(np.mean(nets))
    std = float(np.std(nets, ddof=1))
    margin = float(stats.t.ppf(0.975, df=n_rounds - 1)) * std / math.sqrt(n_rounds)
    skewness = float(stats.skew(nets)) if std > 0 else 0.0

    return SimulationResult(
        n_rounds=n_rounds,
        mean_ev=mean,
        std_ev=std,
        ci_95_low=mean - margin,
        ci_95_high=mean + margin,
        house_edge_pct=-mean * 100.0,
        skewness=skewness,
        n_wins=int(np.sum(nets > 0)),
        n_losses=int(np.sum(nets < 0)),
        n_pushes=int(np.sum(nets == 0)),
        payouts=nets if return_payouts else None,
    )


if __name__ == "__main__":
    print("Blackjack Monte Carlo — 100,000 rounds per strategy\n")
    print(f"simple_strategy: {simulate_rounds(100_000)}")
    print(f"always_stand:    {simulate_rounds(100_000, strategy=always_stand)}")
