"""Tests for blackjack/profile.py — per-character bankroll persistence."""

from __future__ import annotations

import json
import logging

from blackjack.config import TableRules
from blackjack.profile import Profile, load_profile, profile_path, sanitize_profile, save_profile


class TestProfilePath:
    def test_name_in_file(self, tmp_path):
        assert profile_path('Bob', tmp_path) == tmp_path / 'blackjack_Bob.json'

    def test_unsafe_characters_replaced(self, tmp_path):
        assert profile_path('Bob Smith/../x', tmp_path).name == 'blackjack_Bob_Smith_.._x.json'

    def test_blank_name(self, tmp_path):
        assert profile_path('  ', tmp_path).name == 'blackjack_unknown.json'


class TestSanitize:
    def test_defaults_untouched(self, rules):
        assert sanitize_profile(Profile.default(rules), rules) == Profile(100_000, 1_000, 10_000)

    def test_negative_bankroll_floored(self, rules):
        assert sanitize_profile(Profile(-500, 1_000, 10_000), rules).bankroll == 0

    def test_last_bet_rounded_to_step(self, rules):
        assert sanitize_profile(Profile(100_000, 250, 10_000), rules).last_bet == 200

    def test_last_bet_raised_to_minimum(self, rules):
        assert sanitize_profile(Profile(100_000, 50, 10_000), rules).last_bet == 100

    def test_last_bet_capped_at_maximum(self, rules):
        assert sanitize_profile(Profile(100_000, 50_000, 10_000), rules).last_bet == 10_000

    def test_last_bet_lowered_to_bankroll(self, rules):
        assert sanitize_profile(Profile(1_250, 5_000, 10_000), rules).last_bet == 1_200

    def test_small_bankroll_keeps_minimum_bet(self, rules):
        assert sanitize_profile(Profile(50, 1_000, 10_000), rules).last_bet == 100

    def test_max_bet_from_rules(self, rules):
        assert sanitize_profile(Profile(100_000, 1_000, 777), rules).max_bet == 10_000


class TestLoadSave:
    def test_missing_file_created_with_defaults(self, tmp_path):
        path = tmp_path / 'nested' / 'blackjack_Bob.json'
        profile = load_profile(path)
        assert profile == Profile(100_000, 1_000, 10_000)
        assert json.loads(path.read_text()) == {'bankroll': 100_000, 'last_bet': 1_000, 'max_bet': 10_000}

    def test_round_trip(self, tmp_path):
        path = tmp_path / 'p.json'
        save_profile(Profile(42_000, 300, 10_000), path)
        assert load_profile(path) == Profile(42_000, 300, 10_000)

    def test_loaded_values_sanitised_and_saved(self, tmp_path):
        path = tmp_path / 'p.json'
        path.write_text(json.dumps({'bankroll': 1_250, 'last_bet': 5_050, 'max_bet': 1}))
        profile = load_profile(path)
        assert profile == Profile(1_250, 1_200, 10_000)
        assert json.loads(path.read_text())['last_bet'] == 1_200

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path, caplog):
        path = tmp_path / 'p.json'
        path.write_text('{not json')
        with caplog.at_level(logging.WARNING, logger='blackjack.profile'):
            profile = load_profile(path)
        assert profile == Profile(100_000, 1_000, 10_000)
        assert 'Unreadable profile' in caplog.text

    def test_custom_rules(self, tmp_path):
        rules = TableRules(min_bet=5, max_bet=500, bet_step=5, starting_bankroll=1_000, default_last_bet=25)
        assert load_profile(tmp_path / 'p.json', rules) == Profile(1_000, 25, 500)
