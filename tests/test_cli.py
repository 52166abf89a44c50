"""Tests for blackjack/cli.py — the interactive console."""

from __future__ import annotations

import builtins

from blackjack.cli import build_parser, main


def feed(monkeypatch, lines):
    it = iter(lines)

    def fake_input(prompt=''):
        try:
            return next(it)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr(builtins, 'input', fake_input)


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.name == 'unknown'
    assert args.seed is None
    assert not args.verbose


def test_help_then_quit(monkeypatch, capsys, tmp_path):
    feed(monkeypatch, ['help', 'quit'])
    assert main(['--name', 'Bob', '--config-dir', str(tmp_path), '--seed', '1']) == 0
    out = capsys.readouterr().out
    assert '[Blackjack] Commands:' in out
    assert out.rstrip().endswith('[Blackjack] Stopping.')
    assert (tmp_path / 'blackjack_Bob.json').exists()


def test_eof_ends_loop(monkeypatch, capsys, tmp_path):
    feed(monkeypatch, ['bet 500'])
    assert main(['--config-dir', str(tmp_path)]) == 0
    assert '[Blackjack] Bet set to 500' in capsys.readouterr().out


def test_plays_a_round(monkeypatch, capsys, tmp_path):
    feed(monkeypatch, ['start', 'stand', 'stand', 'noinsurance', 'stand', 'exit'])
    main(['--config-dir', str(tmp_path), '--seed', '4'])
    assert '[Blackjack] New round. Bet: 1000' in capsys.readouterr().out
