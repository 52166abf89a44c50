"""Tests for blackjack/session.py — bankroll owner and command surface."""

from __future__ import annotations

import json

import pytest

from blackjack.engine.shoe import stacked_shoe
from blackjack.errors import InsufficientFunds, InvalidBet, RoundAlreadyActive
from blackjack.profile import Profile
from blackjack.session import TableSession
from tests.conftest import deal_order


def make_session(tmp_path, player=('10C', '9H'), dealer=('6S', '10D'), draws=('4C',), profile=None):
    front = deal_order(player, dealer, draws)
    return TableSession(
        profile=profile,
        path=tmp_path / 'blackjack_test.json',
        shoe_factory=lambda rng: stacked_shoe(front),
    )


def saved(session) -> dict:
    return json.loads(session.path.read_text())


# ─── Bets ─────────────────────────────────────────────────────────────────────


class TestBets:
    def test_initial_bet_from_profile(self, tmp_path):
        assert make_session(tmp_path).current_bet == 1_000

    def test_initial_bet_limited_by_bankroll(self, tmp_path):
        session = make_session(tmp_path, profile=Profile(450, 1_000, 10_000))
        assert session.current_bet == 400

    def test_set_bet_clamps_and_saves(self, tmp_path):
        session = make_session(tmp_path)
        assert session.set_bet(250) == 200
        assert session.current_bet == 200
        assert saved(session)['last_bet'] == 200

    def test_set_bet_capped(self, tmp_path):
        assert make_session(tmp_path).set_bet(99_999) == 10_000

    def test_set_bet_below_minimum(self, tmp_path):
        session = make_session(tmp_path)
        with pytest.raises(InvalidBet):
            session.set_bet(50)
        assert session.current_bet == 1_000

    def test_set_bet_when_broke(self, tmp_path):
        session = make_session(tmp_path, profile=Profile(50, 100, 10_000))
        with pytest.raises(InsufficientFunds, match='reset'):
            session.set_bet(100)

    def test_all_in(self, tmp_path):
        session = make_session(tmp_path, profile=Profile(3_450, 100, 10_000))
        assert session.all_in() == 3_400


# ─── Bankroll ─────────────────────────────────────────────────────────────────


class TestBankroll:
    def test_apply_net(self, tmp_path):
        session = make_session(tmp_path)
        session.apply_net(-2_500)
        assert session.bankroll == 97_500
        assert saved(session)['bankroll'] == 97_500

    def test_never_below_zero(self, tmp_path):
        session = make_session(tmp_path, profile=Profile(1_000, 1_000, 10_000))
        session.apply_net(-5_000)
        assert session.bankroll == 0
        assert not session.can_bet

    def test_bet_lowered_after_loss(self, tmp_path):
        session = make_session(tmp_path, profile=Profile(1_000, 1_000, 10_000))
        session.apply_net(-600)
        assert session.current_bet == 400

    def test_reset(self, tmp_path):
        session = make_session(tmp_path, profile=Profile(0, 100, 10_000))
        session.reset_bankroll()
        assert session.bankroll == 100_000
        assert session.current_bet == 1_000
        assert saved(session) == {'bankroll': 100_000, 'last_bet': 1_000, 'max_bet': 10_000}

    def test_reset_refused_mid_round(self, tmp_path):
        session = make_session(tmp_path)
        session.start()
        with pytest.raises(RoundAlreadyActive):
            session.reset_bankroll()

    def test_round_result_applied(self, tmp_path):
        session = make_session(tmp_path)
        session.start()
        result = session.stand()
        assert result.balance_delta == -1_000
        assert session.bankroll == 99_000
        assert saved(session)['bankroll'] == 99_000

    def test_start_when_broke(self, tmp_path):
        session = make_session(tmp_path, profile=Profile(0, 100, 10_000))
        with pytest.raises(InsufficientFunds):
            session.start()

    def test_open_persists_by_name(self, tmp_path):
        session = TableSession.open('Bob', config_dir=tmp_path)
        session.apply_net(500)
        assert TableSession.open('Bob', config_dir=tmp_path).bankroll == 100_500


# ─── Commands ─────────────────────────────────────────────────────────────────


class TestCommands:
    def test_help(self, tmp_path):
        lines = make_session(tmp_path).handle_command('help')
        assert lines[0] == 'Commands:'
        assert any('min 100, max 10000, step 100' in line for line in lines)

    def test_empty_is_help(self, tmp_path):
        assert make_session(tmp_path).handle_command('')[0] == 'Commands:'

    def test_unknown(self, tmp_path):
        assert make_session(tmp_path).handle_command('dance') == ['Unknown command. Use help']

    def test_bet(self, tmp_path):
        session = make_session(tmp_path)
        assert session.handle_command('bet 250') == [
            'Bet set to 200 (Min 100 / Max 10000). Bankroll: 100000'
        ]

    def test_bet_usage(self, tmp_path):
        assert make_session(tmp_path).handle_command('bet lots') == ['Usage: bet <amount>']

    def test_bet_too_small(self, tmp_path):
        assert make_session(tmp_path).handle_command('bet 50') == ['Bet must be at least 100.']

    def test_action_without_round(self, tmp_path):
        assert make_session(tmp_path).handle_command('hit') == ['No round in progress.']

    def test_slash_prefix_and_case(self, tmp_path):
        assert make_session(tmp_path).handle_command('/HELP')[0] == 'Commands:'

    def test_full_round(self, tmp_path):
        session = make_session(tmp_path)
        lines = session.handle_command('start')
        assert lines[:3] == [
            'New round. Bet: 1000 | Bankroll: 100000',
            'Your hand: 10C, 9H (19)',
            'Dealer shows: 6S',
        ]
        lines = session.handle_command('stand')
        assert 'Hand 1 stands on 19.' in lines
        assert 'Dealer reveals 10D.' in lines
        assert 'Dealer draws 4C (20).' in lines
        assert 'Round complete. Net -1000. Bankroll now: 99000' in lines
        assert lines[-1] == 'Adjust bet and Start again.'

    def test_start_twice(self, tmp_path):
        session = make_session(tmp_path)
        session.handle_command('start')
        assert session.handle_command('start') == ['Already in a round.']

    def test_status_in_round(self, tmp_path):
        session = make_session(tmp_path)
        session.handle_command('start')
        lines = session.handle_command('status')
        assert lines[0].startswith('Bankroll: 100000 | Next Bet: 1000')
        assert 'Dealer shows: 6S' in lines
        assert 'Current hand 1/1: 10C, 9H (19) | Bet 1000' in lines

    def test_dealer_blackjack_messages(self, tmp_path):
        session = make_session(tmp_path, dealer=('KS', 'AH'), draws=())
        lines = session.handle_command('start')
        assert 'Dealer peeks... BLACKJACK!' in lines
        assert 'Round complete. Net -1000. Bankroll now: 99000' in lines

    def test_insurance_commands(self, tmp_path):
        session = make_session(tmp_path, player=('10C', '7H'), dealer=('AS', '9D'), draws=())
        lines = session.handle_command('start')
        assert 'Dealer shows an Ace. Insurance is available.' in lines
        assert session.handle_command('evenmoney') == ['Even money needs a blackjack.']
        assert session.handle_command('insurance') == ['Insurance taken for 500.']
        lines = session.handle_command('stand')
        assert 'Round complete. Net -1500. Bankroll now: 98500' in lines

    def test_even_money(self, tmp_path):
        session = make_session(tmp_path, player=('AC', 'KH'), dealer=('AS', '5D'), draws=())
        lines = session.handle_command('start')
        assert 'You have Blackjack. Dealer shows Ace: take Even Money or play it out.' in lines
        lines = session.handle_command('evenmoney')
        assert 'Round complete. Net +1000. Bankroll now: 101000' in lines

    def test_broke_after_round(self, tmp_path):
        session = make_session(tmp_path, profile=Profile(100, 100, 10_000))
        session.handle_command('start')
        lines = session.handle_command('stand')
        assert lines[-1] == 'Bankroll below 100. Use reset to restart at 100000.'
        assert 'reset' in session.handle_command('start')[0]

    def test_reset_command(self, tmp_path):
        session = make_session(tmp_path, profile=Profile(0, 100, 10_000))
        assert session.handle_command('reset') == ['Bankroll reset to 100000 and bet set to 1000.']
