"""
Table session: bankroll owner, bet selection, and the text command surface.

The round engine only proposes a signed delta at the end of each round;
this module applies it to the persisted profile, keeps the next-round bet
valid, and turns engine events into the short notification lines a chat
console or UI prints.

Commands (``handle_command``):
    help | start | bet <amount> | hit | stand | double | split | surrender
    insurance | evenmoney | noinsurance | status | reset
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from blackjack.config import TableRules
from blackjack.engine.betting import clamp_bet, round_down_to_step
from blackjack.engine.cards import card_to_str, hand_to_str
from blackjack.engine.game_state import (
    ActionResult,
    EventKind,
    RoundEngine,
    RoundEvent,
    ShoeFactory,
)
from blackjack.errors import BlackjackError, InsufficientFunds, InvalidBet, RoundAlreadyActive
from blackjack.profile import Profile, load_profile, profile_path, save_profile

logger = logging.getLogger(__name__)

HELP_LINES: tuple[str, ...] = (
    "Commands:",
    "  start",
    "  bet <amount>   (min {min}, max {max}, step {step})",
    "  hit | stand",
    "  double",
    "  split",
    "  surrender",
    "  insurance | noinsurance | evenmoney",
    "  status",
    "  reset",
    "  quit",
)


def _signed(n: int) -> str:
    return f"+{n}" if n >= 0 else str(n)


class TableSession:
    """One player at one table, with a persisted bankroll.

    Args:
        profile: Bankroll and last bet; table defaults when None.
        rules: Table rules shared with the engine.
        path: Where to persist the profile; nothing is written when None.
        rng, shoe_factory: Passed through to ``RoundEngine``.
    """

    def __init__(
        self,
        profile: Profile | None = None,
        rules: TableRules | None = None,
        path: Path | str | None = None,
        rng: np.random.Generator | None = None,
        shoe_factory: ShoeFactory | None = None,
    ) -> None:
        self.rules = rules if rules is not None else TableRules()
        self.profile = profile if profile is not None else Profile.default(self.rules)
        self.path = Path(path) if path is not None else None
        self.engine = RoundEngine(self.rules, rng=rng, shoe_factory=shoe_factory)
        self.current_bet = self._initial_bet()

    @classmethod
    def open(
        cls,
        name: str,
        config_dir: Path | str | None = None,
        rules: TableRules | None = None,
        **kwargs,
    ) -> TableSession:
        """Load (or create) the profile for ``name`` and open a session on it."""
        rules = rules if rules is not None else TableRules()
        path = profile_path(name, config_dir)
        return cls(load_profile(path, rules), rules, path=path, **kwargs)

    # ── Bankroll & bet ───────────────────────────────────────────────────────

    @property
    def bankroll(self) -> int:
        return self.profile.bankroll

    @property
    def can_bet(self) -> bool:
        return self.profile.bankroll >= self.rules.min_bet

    def max_affordable_bet(self) -> int:
        return round_down_to_step(min(self.profile.bankroll, self.rules.max_bet), self.rules.bet_step)

    def _clamp(self, amount: int) -> int:
        r = self.rules
        return clamp_bet(amount, self.profile.bankroll, r.min_bet, r.max_bet, r.bet_step)

    def _initial_bet(self) -> int:
        r = self.rules
        bet = min(self.profile.last_bet, self.profile.bankroll)
        bet = round_down_to_step(bet, r.bet_step)
        return min(max(bet, r.min_bet), r.max_bet)

    def _save(self) -> None:
        if self.path is not None:
            save_profile(self.profile, self.path)

    def set_bet(self, amount: int) -> int:
        """Set the bet for the next round and remember it.

        Raises:
            InsufficientFunds: The bankroll cannot cover the minimum bet.
            InvalidBet: The amount rounds below the minimum.
        """
        clamped = self._clamp(amount)
        if clamped < self.rules.min_bet:
            if not self.can_bet:
                raise InsufficientFunds(
                    f"Not enough bankroll to bet the minimum ({self.rules.min_bet}). "
                    f"Use reset to restart at {self.rules.starting_bankroll}."
                )
            raise InvalidBet(f"Bet must be at least {self.rules.min_bet}.")
        self.current_bet = clamped
        self.profile.last_bet = clamped
        self._save()
        logger.debug("Bet set to %d", clamped)
        return clamped

    def all_in(self) -> int:
        return self.set_bet(self.max_affordable_bet())

    def reset_bankroll(self) -> None:
        """Restore the starting bankroll and the default bet.

        Raises:
            RoundAlreadyActive: Bankroll changes wait until the round is over.
        """
        if self.engine.in_round:
            raise RoundAlreadyActive("Finish the current round before resetting.")
        self.profile.bankroll = self.rules.starting_bankroll
        self.profile.last_bet = self.rules.default_last_bet
        self._save()
        self.set_bet(self.profile.last_bet)
        logger.info("Bankroll reset to %d", self.profile.bankroll)

    def apply_net(self, net: int) -> None:
        """Apply a settled round's delta and keep the next bet placeable."""
        self.profile.bankroll = max(self.profile.bankroll + net, 0)
        self._save()
        logger.info("Bankroll %s -> %d", _signed(net), self.profile.bankroll)

        if self.can_bet:
            bet = self._clamp(self.current_bet)
            if bet < self.rules.min_bet:
                bet = self._clamp(self.profile.last_bet)
            if bet < self.rules.min_bet:
                bet = self._clamp(self.profile.bankroll)
            if bet < self.rules.min_bet:
                bet = self.rules.min_bet
            self.current_bet = bet

    # ── Round actions ────────────────────────────────────────────────────────

    def _apply(self, result: ActionResult) -> ActionResult:
        if result.settlement is not None:
            self.apply_net(result.settlement.net_total)
        return result

    def start(self) -> ActionResult:
        if not self.engine.in_round and not self.can_bet:
            raise InsufficientFunds(
                f"Bankroll is below the minimum bet ({self.rules.min_bet}). "
                f"Use reset to restart at {self.rules.starting_bankroll}."
            )
        result = self.engine.start(self.current_bet, self.profile.bankroll)
        started = next(e for e in result.events if e.kind is EventKind.ROUND_STARTED)
        self.current_bet = started.amount
        return self._apply(result)

    def hit(self) -> ActionResult:
        return self._apply(self.engine.hit())

    def stand(self) -> ActionResult:
        return self._apply(self.engine.stand())

    def double(self) -> ActionResult:
        return self._apply(self.engine.double())

    def split(self) -> ActionResult:
        return self._apply(self.engine.split())

    def surrender(self) -> ActionResult:
        return self._apply(self.engine.surrender())

    def take_insurance(self, even_money: bool = False) -> ActionResult:
        return self._apply(self.engine.take_insurance(even_money))

    def decline_insurance(self) -> ActionResult:
        return self._apply(self.engine.decline_insurance())

    # ── Text surface ─────────────────────────────────────────────────────────

    def help_lines(self) -> list[str]:
        r = self.rules
        return [line.format(min=r.min_bet, max=r.max_bet, step=r.bet_step) for line in HELP_LINES]

    def status_lines(self) -> list[str]:
        r = self.rules
        lines = [
            f"Bankroll: {self.bankroll} | Next Bet: {self.current_bet} | "
            f"Min: {r.min_bet} | Max: {r.max_bet} | Step: {r.bet_step}"
        ]
        engine = self.engine
        if engine.in_round:
            hands = engine.player_hands()
            index = engine.current_hand_index()
            hand = hands[index]
            lines.append(f"Dealer shows: {card_to_str(engine.dealer_upcard())}")
            lines.append(
                f"Current hand {index + 1}/{len(hands)}: {hand_to_str(hand.cards)} "
                f"({hand.value}) | Bet {hand.bet}"
            )
            if engine.insurance().offered:
                lines.append("Insurance offered: insurance | noinsurance | evenmoney")
        return lines

    def describe(self, result: ActionResult) -> list[str]:
        """Notification lines for everything ``result`` reports."""
        lines: list[str] = []
        dealt: list[int] = []
        dealt_value = 0
        for event in result.events:
            if event.kind is EventKind.PLAYER_CARD:
                dealt.append(event.card)
                dealt_value = event.value
                continue
            if event.kind is EventKind.DEALER_UPCARD and dealt:
                lines.append(f"Your hand: {hand_to_str(dealt)} ({dealt_value})")
            lines.extend(self._describe_event(event, result))
        return lines

    def _describe_event(self, event: RoundEvent, result: ActionResult) -> list[str]:
        kind = event.kind
        n = (event.hand_index or 0) + 1
        card = card_to_str(event.card) if event.card is not None else ""

        if kind is EventKind.ROUND_STARTED:
            return [f"New round. Bet: {event.amount} | Bankroll: {self.bankroll}"]
        if kind is EventKind.DEALER_UPCARD:
            return [f"Dealer shows: {card}"]
        if kind is EventKind.INSURANCE_OFFERED:
            return ["Dealer shows an Ace. Insurance is available."]
        if kind is EventKind.DEALER_BLACKJACK:
            return ["Dealer peeks... BLACKJACK!"]
        if kind is EventKind.DEALER_PEEK:
            return ["Dealer peeks... no blackjack."]
        if kind is EventKind.PLAYER_BLACKJACK:
            if self.engine.in_round:
                return ["You have Blackjack. Dealer shows Ace: take Even Money or play it out."]
            return ["Blackjack!"]
        if kind is EventKind.INSURANCE_TAKEN:
            return [f"Insurance taken for {event.amount}."]
        if kind is EventKind.INSURANCE_DECLINED:
            return ["Insurance declined."]
        if kind is EventKind.HIT:
            return [f"Hand {n} draws {card} ({event.value})."]
        if kind is EventKind.BUST:
            return [f"Bust (hand {n})."]
        if kind is EventKind.AUTO_STAND:
            return [f"21 on hand {n}. Auto-stand."]
        if kind is EventKind.STAND:
            return [f"Hand {n} stands on {event.value}."]
        if kind is EventKind.DOUBLE:
            return [f"Hand {n} doubled. New bet: {event.amount}", f"Hand {n} draws {card} ({event.value})."]
        if kind is EventKind.SURRENDER:
            return [f"Hand {n} surrendered."]
        if kind is EventKind.SPLIT:
            return [f"Split! Hand {n} draws {card} ({event.value}) | Bet {event.amount}"]
        if kind is EventKind.SPLIT_ACES_LOCKED:
            return ["Split Aces: one card only. Standing both hands."]
        if kind is EventKind.NEXT_HAND:
            return [f"Now playing hand {n}."]
        if kind is EventKind.DEALER_REVEAL:
            return [f"Dealer reveals {card}."]
        if kind is EventKind.DEALER_DRAW:
            return [f"Dealer draws {card} ({event.value})."]
        if kind is EventKind.ROUND_SETTLED:
            summary = result.settlement
            lines = [
                f"Dealer: {hand_to_str(summary.dealer_cards)} ({summary.dealer_value})",
                f"Round complete. Net {_signed(summary.net_total)}. Bankroll now: {self.bankroll}",
            ]
            if self.can_bet:
                lines.append("Adjust bet and Start again.")
            else:
                lines.append(
                    f"Bankroll below {self.rules.min_bet}. "
                    f"Use reset to restart at {self.rules.starting_bankroll}."
                )
            return lines
        return []

    def handle_command(self, text: str) -> list[str]:
        """Run one console command and return the lines to print."""
        args = text.strip().split()
        cmd = args[0].lower().lstrip("/") if args else ""

        try:
            if cmd in ("", "help"):
                return self.help_lines()
            if cmd == "status":
                return self.status_lines()
            if cmd == "bet":
                if len(args) < 2 or not args[1].lstrip("-").isdigit():
                    return ["Usage: bet <amount>"]
                bet = self.set_bet(int(args[1]))
                return [
                    f"Bet set to {bet} (Min {self.rules.min_bet} / Max {self.rules.max_bet}). "
                    f"Bankroll: {self.bankroll}"
                ]
            if cmd == "reset":
                self.reset_bankroll()
                return [
                    f"Bankroll reset to {self.bankroll} and bet set to {self.current_bet}."
                ]

            actions = {
                "start": self.start,
                "hit": self.hit,
                "stand": self.stand,
                "double": self.double,
                "split": self.split,
                "surrender": self.surrender,
                "insurance": lambda: self.take_insurance(False),
                "evenmoney": lambda: self.take_insurance(True),
                "noinsurance": self.decline_insurance,
            }
            if cmd not in actions:
                return ["Unknown command. Use help"]
            return self.describe(actions[cmd]())
        except BlackjackError as exc:
            return [str(exc)]
