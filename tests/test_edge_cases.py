"""
Integration tests for the table's documented edge cases.

Edge Case Reference:
    1.  Ace reduction never double-counts (A,A = 12; A,A,9 = 21; A,A,A,9 = 12)
    2.  Only a two-card 21 is a blackjack (7,7,7 is not)
    3.  Settlement is idempotent
    4.  Split aces never count as blackjack
    5.  Insurance net is independent of the hand nets
    6.  Bet clamping (250 -> 200, 50 -> rejected)
    7.  Player 19 stands vs upcard 6, dealer reaches 20 -> lose
    8.  8,8 vs upcard 5 splits; index stays on the first split hand
    9.  A,K vs Ace upcard: deferred settlement, decline -> blackjack
    10. Last round summary only changes at the next settlement
"""

from __future__ import annotations

from blackjack.engine.betting import clamp_bet
from blackjack.engine.game_state import Action, Phase
from blackjack.engine.hand import hand_value, is_blackjack
from blackjack.engine.rules import HandOutcome, settle_round
from tests.conftest import BALANCE, hand, player_hand, stacked_engine


# ─── Edge Case 1: Ace reduction ───────────────────────────────────────────────

class TestEdgeCase1AceReduction:
    def test_two_aces(self):
        assert hand_value(hand('AS', 'AC')) == 12

    def test_two_aces_and_nine(self):
        assert hand_value(hand('AS', 'AC', '9D')) == 21

    def test_three_aces_and_nine(self):
        assert hand_value(hand('AS', 'AC', 'AD', '9D')) == 12


# ─── Edge Case 2: Blackjack needs two cards ───────────────────────────────────

class TestEdgeCase2TwoCardBlackjack:
    def test_ace_king(self):
        assert is_blackjack(hand('AS', 'KD'))

    def test_three_sevens(self):
        cards = hand('7C', '7D', '7H')
        assert hand_value(cards) == 21
        assert not is_blackjack(cards)


# ─── Edge Case 3: Idempotent settlement ───────────────────────────────────────

class TestEdgeCase3IdempotentSettlement:
    def test_second_settlement_keeps_results(self):
        hands = [player_hand('10C', '9H'), player_hand('10D', '6S')]
        settle_round(hands, hand('10S', '7D'))
        before = [(h.result, h.net) for h in hands]
        settle_round(hands, hand('10S', '10H'))
        assert [(h.result, h.net) for h in hands] == before


# ─── Edge Case 4: Split aces are not blackjack ────────────────────────────────

class TestEdgeCase4SplitAces:
    def test_split_ace_twenty_one_is_win(self):
        summary = settle_round([player_hand('AC', 'KH', is_split_ace=True)], hand('10S', '7D'))
        line = summary.hand_lines[0]
        assert line.outcome is HandOutcome.WIN
        assert line.net == 100


# ─── Edge Case 5: Insurance independent of hands ──────────────────────────────

class TestEdgeCase5InsuranceIndependent:
    def test_insurance_pays_regardless_of_hand(self):
        for cards in (('10C', '9H'), ('AC', 'KH'), ('10D', '6S', 'KC')):
            summary = settle_round(
                [player_hand(*cards)], hand('AS', 'KD'),
                dealer_has_blackjack=True, insurance_amount=50,
            )
            assert summary.insurance_line.net == 100


# ─── Edge Case 6: Bet clamping ────────────────────────────────────────────────

class TestEdgeCase6ClampBet:
    def test_rounds_to_step(self):
        assert clamp_bet(250, balance=10_000, min_bet=100, max_bet=10_000, step=100) == 200

    def test_below_minimum(self):
        assert clamp_bet(50, balance=10_000, min_bet=100, max_bet=10_000, step=100) == 0


# ─── Edge Case 7: Player 19 vs dealer 20 ──────────────────────────────────────

class TestEdgeCase7DealerReachesTwenty:
    def test_lose(self):
        engine = stacked_engine(('10C', '9H'), ('6S', '10D'), draws=('4C',))
        engine.start(100, BALANCE)
        result = engine.stand()
        line = result.settlement.hand_lines[0]
        assert result.settlement.dealer_value == 20
        assert line.outcome is HandOutcome.LOSE
        assert line.net == -100


# ─── Edge Case 8: Split eights vs 5 ───────────────────────────────────────────

class TestEdgeCase8SplitEights:
    def test_split(self):
        engine = stacked_engine(('8C', '8H'), ('5S', '10D'), draws=('2C', '9D', '10H'))
        engine.start(100, BALANCE)
        assert engine.can(Action.SPLIT)
        engine.split()
        hands = engine.player_hands()
        assert len(hands) == 2
        assert hands[0].cards[0] == hand('8C')[0]
        assert hands[1].cards[0] == hand('8H')[0]
        assert all(len(h.cards) == 2 for h in hands)
        assert engine.current_hand_index() == 0

    def test_index_stays_until_done(self):
        engine = stacked_engine(('8C', '8H'), ('5S', '10D'), draws=('2C', '9D', '10H'))
        engine.start(100, BALANCE)
        engine.split()
        engine.hit()                     # 8,2,10 = 20
        assert engine.current_hand_index() == 0
        engine.stand()
        assert engine.current_hand_index() == 1


# ─── Edge Case 9: Blackjack vs Ace upcard ─────────────────────────────────────

class TestEdgeCase9DeferredBlackjack:
    def test_decline_settles_as_blackjack(self):
        engine = stacked_engine(('AC', 'KH'), ('AS', '9D'))
        result = engine.start(100, BALANCE)
        assert engine.insurance().offered
        assert result.settlement is None
        result = engine.decline_insurance()
        assert result.settlement.hand_lines[0].outcome is HandOutcome.BLACKJACK
        assert result.balance_delta == 150

    def test_dealer_blackjack_pushes(self):
        engine = stacked_engine(('AC', 'KH'), ('AS', 'QD'))
        result = engine.start(100, BALANCE)
        assert result.settlement.hand_lines[0].outcome is HandOutcome.PUSH
        assert engine.phase is Phase.IDLE


# ─── Edge Case 10: Summary stable mid-round ───────────────────────────────────

class TestEdgeCase10SummaryMidRound:
    def test_previous_snapshot_returned(self):
        engine = stacked_engine(('10C', '9H'), ('6S', '10D'), draws=('4C',))
        engine.start(100, BALANCE)
        previous = engine.stand().settlement
        engine.start(100, BALANCE)
        assert engine.phase is Phase.PLAYER_TURN
        assert engine.last_round_summary() is previous
        assert engine.last_round_summary().lines() == previous.lines()
