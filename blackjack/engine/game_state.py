"""
Round state management for a single blackjack table.

Implements the full round flow:
    IDLE → BETTING → DEALT → (Dealer Peek) → (Insurance) →
    PLAYER_TURN → DEALER_TURN → SETTLEMENT → IDLE

Rules modelled here:
    - Deal order is player, dealer upcard, player, dealer hole card.
    - Dealer peeks on an Ace or ten-value upcard; a dealer blackjack ends the
      round at once, before any player decision.
    - An Ace upcard offers insurance. Any other action declines it first.
    - A player natural settles immediately, unless insurance is on offer, in
      which case it waits for the insurance decision. Any player action on
      it declines insurance and settles the natural.
    - Double, split and surrender are first-action-only; surrender only on
      the original, unsplit hand (late surrender).
    - Split inserts the new hand right after the current one. Split aces take
      one card each and stand when the one-card rule is on.
    - Turn order scans forward from the current hand, wraps once, and settles
      when every hand is done.

Every action runs to completion, cascading auto-stand, advance and
settlement, before it returns. Legality is checked in full before anything
is mutated, so a rejected action leaves the round exactly as it was.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable

import numpy as np

from blackjack.config import TableRules
from blackjack.errors import (
    IllegalAction,
    InsufficientFunds,
    InsuranceUnavailable,
    InvalidBet,
    NoActiveRound,
    RoundAlreadyActive,
    ShoeEmpty,
)
from .betting import BankrollPolicy, insurance_amount
from .cards import card_rank, is_ace, is_ten_value
from .hand import PlayerHand, hand_value, is_blackjack, is_soft_17
from .rules import RoundSummary, settle_round
from .shoe import Shoe, cards_remaining, draw, new_shoe

logger = logging.getLogger(__name__)


# ─── Enumerations ─────────────────────────────────────────────────────────────

class Phase(Enum):
    IDLE = auto()
    BETTING = auto()
    DEALT = auto()          # cards out, insurance decision pending
    PLAYER_TURN = auto()
    DEALER_TURN = auto()
    SETTLEMENT = auto()


class Action(Enum):
    HIT = auto()
    STAND = auto()
    DOUBLE = auto()
    SPLIT = auto()
    SURRENDER = auto()
    INSURANCE = auto()
    EVEN_MONEY = auto()
    DECLINE_INSURANCE = auto()


PLAYER_ACTIONS: tuple[Action, ...] = (
    Action.HIT, Action.STAND, Action.DOUBLE, Action.SPLIT, Action.SURRENDER,
)

_CARDS_NEEDED: dict[Action, int] = {Action.HIT: 1, Action.DOUBLE: 1, Action.SPLIT: 2}


class EventKind(Enum):
    ROUND_STARTED = auto()
    PLAYER_CARD = auto()
    DEALER_UPCARD = auto()
    INSURANCE_OFFERED = auto()
    DEALER_PEEK = auto()
    DEALER_BLACKJACK = auto()
    PLAYER_BLACKJACK = auto()
    INSURANCE_TAKEN = auto()
    INSURANCE_DECLINED = auto()
    HIT = auto()
    BUST = auto()
    AUTO_STAND = auto()
    STAND = auto()
    DOUBLE = auto()
    SURRENDER = auto()
    SPLIT = auto()
    SPLIT_ACES_LOCKED = auto()
    NEXT_HAND = auto()
    DEALER_REVEAL = auto()
    DEALER_DRAW = auto()
    ROUND_SETTLED = auto()


# ─── State / Result types ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class RoundEvent:
    """Something observable that happened during an action.

    Only the fields relevant to ``kind`` are filled in; text rendering is
    left to the caller.
    """
    kind: EventKind
    hand_index: int | None = None
    card: int | None = None
    value: int | None = None
    amount: int | None = None


@dataclass
class InsuranceState:
    offered: bool = False
    taken: bool = False
    amount: int = 0
    is_even_money: bool = False

    def clear(self) -> None:
        self.offered = False
        self.taken = False
        self.amount = 0
        self.is_even_money = False


@dataclass
class RoundState:
    """Everything owned by one round. Discarded when the round settles."""
    shoe: Shoe
    policy: BankrollPolicy
    opening_bet: int
    hands: list[PlayerHand]
    dealer_cards: list[int] = field(default_factory=list)
    current_hand_index: int = 0
    insurance: InsuranceState = field(default_factory=InsuranceState)
    peeked: bool = False
    dealer_has_blackjack: bool = False

    @property
    def current_hand(self) -> PlayerHand:
        return self.hands[self.current_hand_index]

    def all_done(self) -> bool:
        return all(h.done for h in self.hands)

    def any_live(self) -> bool:
        return any(not h.surrendered and h.value <= 21 for h in self.hands)


@dataclass(frozen=True)
class ActionResult:
    """What one engine call did.

    Attributes:
        action:     The action performed (None for ``start``).
        events:     Events emitted by this call, in order.
        settlement: The round summary if this call finished the round.
    """
    action: Action | None
    events: tuple[RoundEvent, ...]
    settlement: RoundSummary | None = None

    @property
    def round_over(self) -> bool:
        return self.settlement is not None

    @property
    def balance_delta(self) -> int:
        """Signed amount to apply to the externally owned bankroll."""
        return self.settlement.net_total if self.settlement is not None else 0


ShoeFactory = Callable[[np.random.Generator], Shoe]


# ─── Engine ───────────────────────────────────────────────────────────────────

class RoundEngine:
    """Single-table blackjack round engine.

    The engine never owns the bankroll: ``start`` receives the current
    balance, and the finished round reports a signed delta through
    ``ActionResult.settlement``.

    Args:
        rules: Table limits and house rules.
        rng: Random source handed to the shoe factory every round.
        shoe_factory: Builds the shoe for a round; ``new_shoe`` by default.
    """

    def __init__(
        self,
        rules: TableRules | None = None,
        rng: np.random.Generator | None = None,
        shoe_factory: ShoeFactory | None = None,
    ) -> None:
        self.rules = rules if rules is not None else TableRules()
        self._rng = rng if rng is not None else np.random.default_rng()
        self._shoe_factory = shoe_factory if shoe_factory is not None else new_shoe
        self._phase = Phase.IDLE
        self._round: RoundState | None = None
        self._last_summary: RoundSummary | None = None
        self._events: list[RoundEvent] = []
        self._settlement: RoundSummary | None = None

    # ── Read-only queries ────────────────────────────────────────────────────

    @property
    def phase(self) -> Phase:
        return self._phase

    def current_phase(self) -> Phase:
        return self._phase

    @property
    def in_round(self) -> bool:
        return self._phase in (Phase.DEALT, Phase.PLAYER_TURN)

    def current_hand_index(self) -> int | None:
        if self._round is None:
            return None
        return self._round.current_hand_index

    def player_hands(self) -> tuple[PlayerHand, ...]:
        """Copies of the player hands, in table order (empty between rounds)."""
        if self._round is None:
            return ()
        return tuple(copy.deepcopy(h) for h in self._round.hands)

    def dealer_upcard(self) -> int | None:
        if self._round is None or not self._round.dealer_cards:
            return None
        return self._round.dealer_cards[0]

    def dealer_full_hand(self) -> tuple[int, ...]:
        """The dealer's cards including the hole card.

        Between rounds this is the last settled dealer hand.

        Raises:
            IllegalAction: During a round in which the dealer has not peeked.
        """
        if self._round is None:
            if self._last_summary is None:
                return ()
            return self._last_summary.dealer_cards
        if not self._round.peeked:
            raise IllegalAction("The hole card has not been revealed.")
        return tuple(self._round.dealer_cards)

    def insurance(self) -> InsuranceState:
        if self._round is None:
            return InsuranceState()
        return copy.copy(self._round.insurance)

    def last_round_summary(self) -> RoundSummary | None:
        return self._last_summary

    def legal_actions(self) -> frozenset[Action]:
        """Actions that would currently be accepted."""
        if not self.in_round:
            return frozenset()
        legal = {a for a in PLAYER_ACTIONS if self._action_block(a) is None}
        if self._insurance_block(even_money=False) is None:
            legal.add(Action.INSURANCE)
        if self._insurance_block(even_money=True) is None:
            legal.add(Action.EVEN_MONEY)
        if self._round.insurance.offered:
            legal.add(Action.DECLINE_INSURANCE)
        return frozenset(legal)

    def can(self, action: Action) -> bool:
        return action in self.legal_actions()

    # ── Round start ──────────────────────────────────────────────────────────

    def start(self, bet: int, balance: int) -> ActionResult:
        """Validate the bet, deal, peek, and offer insurance.

        Args:
            bet: Requested bet; clamped to the limits and the balance.
            balance: Current bankroll, owned by the caller.

        Raises:
            RoundAlreadyActive: A round is in progress.
            InsufficientFunds: The balance cannot cover the minimum bet.
            InvalidBet: The bet cannot be placed.
        """
        if self._phase is not Phase.IDLE:
            raise RoundAlreadyActive("Already in a round.")

        policy = BankrollPolicy.from_rules(balance, self.rules)
        if not policy.can_cover_minimum():
            raise InsufficientFunds(
                f"Bankroll {policy.balance} is below the minimum bet ({policy.min_bet})."
            )
        amount = policy.clamp(bet)
        if amount < self.rules.min_bet:
            raise InvalidBet(
                f"Bet {bet} is not placeable (min {policy.min_bet}, "
                f"max {policy.max_bet}, step {policy.step})."
            )

        self._begin_call()
        self._phase = Phase.BETTING
        rnd = RoundState(
            shoe=self._shoe_factory(self._rng),
            policy=policy,
            opening_bet=amount,
            hands=[PlayerHand(cards=[], bet=amount)],
        )
        self._round = rnd
        logger.debug("Round started: bet=%d balance=%d", amount, policy.balance)
        self._emit(EventKind.ROUND_STARTED, amount=amount)

        player = rnd.hands[0]
        player.cards.append(draw(rnd.shoe))
        rnd.dealer_cards.append(draw(rnd.shoe))
        player.cards.append(draw(rnd.shoe))
        rnd.dealer_cards.append(draw(rnd.shoe))
        self._phase = Phase.DEALT

        for card in player.cards:
            self._emit(EventKind.PLAYER_CARD, hand_index=0, card=card, value=player.value)
        upcard = rnd.dealer_cards[0]
        self._emit(EventKind.DEALER_UPCARD, card=upcard)

        if self.rules.allow_insurance and is_ace(upcard):
            rnd.insurance.offered = True
            self._emit(EventKind.INSURANCE_OFFERED)

        if is_ace(upcard) or is_ten_value(upcard):
            rnd.peeked = True
            if is_blackjack(rnd.dealer_cards):
                rnd.dealer_has_blackjack = True
                self._emit(EventKind.DEALER_BLACKJACK, card=rnd.dealer_cards[1], value=21)
                self._settle(dealer_plays=False)
                return self._result(None)
            self._emit(EventKind.DEALER_PEEK)

        if is_blackjack(player.cards):
            self._emit(EventKind.PLAYER_BLACKJACK, hand_index=0, value=21)
            if not rnd.insurance.offered:
                self._settle(dealer_plays=False)
                return self._result(None)
            # Deferred: wait for even money / decline.
            return self._result(None)

        if not rnd.insurance.offered:
            self._phase = Phase.PLAYER_TURN
        return self._result(None)

    # ── Insurance ────────────────────────────────────────────────────────────

    def take_insurance(self, even_money: bool = False) -> ActionResult:
        """Stake half the opening bet (rounded down to the step) on a dealer blackjack.

        Raises:
            NoActiveRound: No round in progress.
            InsuranceUnavailable: Not offered, already decided, unaffordable,
                or even money requested without a natural.
        """
        self._require_active()
        block = self._insurance_block(even_money)
        if block is not None:
            raise InsuranceUnavailable(block)

        self._begin_call()
        rnd = self._round
        amount = insurance_amount(rnd.opening_bet, rnd.policy.step)
        rnd.insurance.taken = True
        rnd.insurance.amount = amount
        rnd.insurance.is_even_money = even_money
        rnd.insurance.offered = False
        logger.debug("Insurance taken: amount=%d even_money=%s", amount, even_money)
        self._emit(EventKind.INSURANCE_TAKEN, amount=amount)
        self._after_insurance_decision()
        return self._result(Action.EVEN_MONEY if even_money else Action.INSURANCE)

    def decline_insurance(self) -> ActionResult:
        """Clear any insurance offer or stake and carry on with the round.

        Raises:
            NoActiveRound: No round in progress.
        """
        self._require_active()
        self._begin_call()
        self._decline()
        self._after_insurance_decision()
        return self._result(Action.DECLINE_INSURANCE)

    # ── Player actions ───────────────────────────────────────────────────────

    def hit(self) -> ActionResult:
        if not self._prepare(Action.HIT):
            return self._result(Action.HIT)
        rnd = self._round
        hand = rnd.current_hand
        card = draw(rnd.shoe)
        hand.first_action = False
        hand.cards.append(card)
        value = hand.value
        index = rnd.current_hand_index
        self._emit(EventKind.HIT, hand_index=index, card=card, value=value)

        if value > 21:
            hand.done = True
            self._emit(EventKind.BUST, hand_index=index, value=value)
            self._advance()
        elif value == 21:
            hand.done = True
            self._emit(EventKind.AUTO_STAND, hand_index=index, value=value)
            self._advance()
        return self._result(Action.HIT)

    def stand(self) -> ActionResult:
        if not self._prepare(Action.STAND):
            return self._result(Action.STAND)
        rnd = self._round
        hand = rnd.current_hand
        hand.first_action = False
        hand.done = True
        self._emit(EventKind.STAND, hand_index=rnd.current_hand_index, value=hand.value)
        self._advance()
        return self._result(Action.STAND)

    def double(self) -> ActionResult:
        if not self._prepare(Action.DOUBLE):
            return self._result(Action.DOUBLE)
        rnd = self._round
        hand = rnd.current_hand
        card = draw(rnd.shoe)
        hand.first_action = False
        hand.doubled = True
        hand.bet *= 2
        hand.cards.append(card)
        hand.done = True
        index = rnd.current_hand_index
        self._emit(EventKind.DOUBLE, hand_index=index, card=card, value=hand.value, amount=hand.bet)
        if hand.value > 21:
            self._emit(EventKind.BUST, hand_index=index, value=hand.value)
        self._advance()
        return self._result(Action.DOUBLE)

    def surrender(self) -> ActionResult:
        if not self._prepare(Action.SURRENDER):
            return self._result(Action.SURRENDER)
        rnd = self._round
        hand = rnd.current_hand
        hand.first_action = False
        hand.surrendered = True
        hand.done = True
        self._emit(EventKind.SURRENDER, hand_index=rnd.current_hand_index, amount=hand.bet // 2)
        self._advance()
        return self._result(Action.SURRENDER)

    def split(self) -> ActionResult:
        if not self._prepare(Action.SPLIT):
            return self._result(Action.SPLIT)
        rnd = self._round
        index = rnd.current_hand_index
        hand = rnd.hands[index]
        first_card = draw(rnd.shoe)
        second_card = draw(rnd.shoe)

        moved = hand.cards.pop(1)
        new_hand = PlayerHand(cards=[moved], bet=hand.bet)
        rnd.hands.insert(index + 1, new_hand)
        hand.first_action = True
        hand.cards.append(first_card)
        new_hand.cards.append(second_card)

        self._emit(EventKind.SPLIT, hand_index=index, card=first_card, value=hand.value, amount=hand.bet)
        self._emit(EventKind.SPLIT, hand_index=index + 1, card=second_card, value=new_hand.value,
                   amount=new_hand.bet)

        if is_ace(moved):
            hand.is_split_ace = True
            new_hand.is_split_ace = True
            if self.rules.split_aces_one_card_only:
                hand.done = True
                new_hand.done = True
                self._emit(EventKind.SPLIT_ACES_LOCKED, hand_index=index)
                self._advance()
                return self._result(Action.SPLIT)

        rnd.current_hand_index = index
        return self._result(Action.SPLIT)

    # ── Legality ─────────────────────────────────────────────────────────────

    def _action_block(self, action: Action) -> str | None:
        """Why ``action`` is illegal on the current hand, or None if it is legal."""
        rnd = self._round
        rules = self.rules
        hand = rnd.current_hand

        if hand.done:
            return f"Hand {rnd.current_hand_index + 1} is finished."

        if action is Action.HIT:
            if hand.surrendered:
                return "Hand is surrendered."
            if hand.is_split_ace and rules.split_aces_one_card_only:
                return "Split aces receive one card only."
            return None

        if action is Action.STAND:
            return None

        if action is Action.DOUBLE:
            if not rules.allow_double:
                return "Double is not allowed."
            if not hand.first_action or len(hand.cards) != 2:
                return "Double is only allowed as the first action on two cards."
            if len(rnd.hands) > 1 and not rules.allow_double_after_split:
                return "Double after split is not allowed."
            if not rnd.policy.can_afford(hand.bet):
                return "Not enough bankroll to double."
            return None

        if action is Action.SURRENDER:
            if not rules.allow_surrender:
                return "Surrender is not allowed."
            if not hand.first_action or len(hand.cards) != 2:
                return "Surrender is only allowed as the first action on two cards."
            if len(rnd.hands) != 1 or rnd.current_hand_index != 0:
                return "Surrender is only allowed on the original hand."
            return None

        if action is Action.SPLIT:
            if not rules.allow_split:
                return "Split is not allowed."
            if len(rnd.hands) >= rules.max_hands:
                return f"No more than {rules.max_hands} hands."
            if not hand.first_action or len(hand.cards) != 2:
                return "Split is only allowed as the first action on two cards."
            first, second = hand.cards
            if card_rank(first) != card_rank(second):
                return "Split needs two cards of the same rank."
            if not rnd.policy.can_afford(hand.bet):
                return "Not enough bankroll to split."
            if is_ace(first) and len(rnd.hands) > 1 and not rules.allow_resplit_aces:
                return "Resplitting aces is not allowed."
            return None

        return f"{action.name} is not a player action."

    def _insurance_block(self, even_money: bool) -> str | None:
        rnd = self._round
        if rnd is None or not self.in_round:
            return "No round in progress."
        if not rnd.insurance.offered or rnd.insurance.taken:
            return "Insurance is not available right now."
        if even_money and not is_blackjack(rnd.hands[0].cards):
            return "Even money needs a blackjack."
        amount = insurance_amount(rnd.opening_bet, rnd.policy.step)
        if amount < rnd.policy.step:
            return "Insurance is not possible with this bet."
        if not rnd.policy.can_afford(amount):
            return "Not enough bankroll to take insurance."
        return None

    def _require_active(self) -> None:
        if not self.in_round:
            raise NoActiveRound("No round in progress.")

    def _prepare(self, action: Action) -> bool:
        """Validate ``action`` and decline pending insurance.

        Returns False when the implicit decline already finished the round.
        """
        self._require_active()
        block = self._action_block(action)
        if block is not None:
            raise IllegalAction(block)
        needed = _CARDS_NEEDED.get(action, 0)
        if cards_remaining(self._round.shoe) < needed:
            raise ShoeEmpty(f"Not enough cards left to {action.name.lower()}.")
        self._begin_call()
        if self._round.insurance.offered:
            self._decline()
            self._after_insurance_decision()
        return self._phase is Phase.PLAYER_TURN

    # ── Transitions ──────────────────────────────────────────────────────────

    def _decline(self) -> None:
        rnd = self._round
        if rnd.insurance.offered or rnd.insurance.taken:
            self._emit(EventKind.INSURANCE_DECLINED)
        rnd.insurance.clear()

    def _after_insurance_decision(self) -> None:
        if self._phase is not Phase.DEALT:
            return
        if is_blackjack(self._round.hands[0].cards):
            self._settle(dealer_plays=False)
        else:
            self._phase = Phase.PLAYER_TURN

    def _advance(self) -> None:
        """Move to the next unfinished hand, wrapping once, or settle."""
        rnd = self._round
        count = len(rnd.hands)
        for index in list(range(rnd.current_hand_index + 1, count)) + list(range(count)):
            if not rnd.hands[index].done:
                rnd.current_hand_index = index
                self._emit(EventKind.NEXT_HAND, hand_index=index, value=rnd.hands[index].value)
                return
        self._settle()

    def _dealer_play(self) -> None:
        rnd = self._round
        while True:
            value = hand_value(rnd.dealer_cards)
            if value < 17 or (
                value == 17
                and self.rules.dealer_hits_soft_17
                and is_soft_17(rnd.dealer_cards)
            ):
                card = draw(rnd.shoe)
                rnd.dealer_cards.append(card)
                self._emit(EventKind.DEALER_DRAW, card=card, value=hand_value(rnd.dealer_cards))
            else:
                break

    def _settle(self, dealer_plays: bool = True) -> None:
        rnd = self._round
        self._emit(EventKind.DEALER_REVEAL, card=rnd.dealer_cards[1], value=hand_value(rnd.dealer_cards))
        if dealer_plays and not rnd.dealer_has_blackjack and rnd.any_live():
            self._phase = Phase.DEALER_TURN
            self._dealer_play()

        self._phase = Phase.SETTLEMENT
        insurance = rnd.insurance
        summary = settle_round(
            rnd.hands,
            rnd.dealer_cards,
            dealer_has_blackjack=rnd.dealer_has_blackjack,
            insurance_amount=insurance.amount if insurance.taken else 0,
            even_money=insurance.is_even_money,
            payout_multiplier=self.rules.blackjack_payout,
            opening_bet=rnd.opening_bet,
        )
        self._last_summary = summary
        self._settlement = summary
        self._emit(EventKind.ROUND_SETTLED, value=summary.dealer_value, amount=summary.net_total)
        logger.info(
            "Round settled: net=%+d dealer=%d hands=%d",
            summary.net_total, summary.dealer_value, len(summary.hand_lines),
        )

        self._round = None
        self._phase = Phase.IDLE

    # ── Call bookkeeping ─────────────────────────────────────────────────────

    def _begin_call(self) -> None:
        self._events = []
        self._settlement = None

    def _emit(self, kind: EventKind, **fields) -> None:
        self._events.append(RoundEvent(kind, **fields))

    def _result(self, action: Action | None) -> ActionResult:
        return ActionResult(action=action, events=tuple(self._events), settlement=self._settlement)
