"""
Per-character bankroll persistence.

Each character gets one small JSON file holding the bankroll and the last
bet. Values are sanitised against the table rules on every load and the
cleaned profile is written straight back.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass
from pathlib import Path

from blackjack.config import TableRules
from blackjack.engine.betting import round_down_to_step

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "blackjack"


@dataclass
class Profile:
    bankroll: int
    last_bet: int
    max_bet: int

    @classmethod
    def default(cls, rules: TableRules) -> Profile:
        return cls(
            bankroll=rules.starting_bankroll,
            last_bet=rules.default_last_bet,
            max_bet=rules.max_bet,
        )


def profile_path(name: str, config_dir: Path | str | None = None) -> Path:
    """Return the profile file for a character name.

    Examples:
        >>> profile_path('Bob', '/tmp/bj').as_posix()
        '/tmp/bj/blackjack_Bob.json'
    """
    directory = Path(config_dir) if config_dir is not None else DEFAULT_CONFIG_DIR
    safe = re.sub(r"[^A-Za-z0-9_.-]", "_", name.strip()) or "unknown"
    return directory / f"blackjack_{safe}.json"


def sanitize_profile(profile: Profile, rules: TableRules) -> Profile:
    """Bring a loaded profile back inside the table rules.

    The maximum bet is always the table's; the bankroll never goes below 0;
    the last bet is rounded to the step, clamped to [min, max], and lowered
    to the bankroll when the bankroll is positive but smaller.
    """
    bankroll = max(int(profile.bankroll), 0)
    max_bet = rules.max_bet

    last_bet = round_down_to_step(profile.last_bet, rules.bet_step)
    last_bet = min(max(last_bet, rules.min_bet), max_bet)
    if 0 < bankroll < last_bet:
        last_bet = max(round_down_to_step(bankroll, rules.bet_step), rules.min_bet)

    return Profile(bankroll=bankroll, last_bet=last_bet, max_bet=max_bet)


def save_profile(profile: Profile, path: Path | str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(profile), indent=2))


def load_profile(path: Path | str, rules: TableRules | None = None) -> Profile:
    """Load, sanitise and re-save a profile; create it with defaults if missing.

    A file that cannot be parsed is replaced by the defaults.
    """
    rules = rules if rules is not None else TableRules()
    path = Path(path)
    profile = Profile.default(rules)

    if path.exists():
        try:
            data = json.loads(path.read_text())
            profile.bankroll = int(data.get("bankroll", profile.bankroll))
            profile.last_bet = int(data.get("last_bet", profile.last_bet))
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("Unreadable profile %s (%s); using defaults.", path, exc)
    else:
        logger.info("No profile at %s; creating one.", path)

    profile = sanitize_profile(profile, rules)
    save_profile(profile, path)
    return profile
