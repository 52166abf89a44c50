"""Blackjack Table — Streamlit Dashboard.

Two-tab dashboard over one persisted table session:
  Tab 1 — Table        (bet controls, actions, hands, last round results)
  Tab 2 — Simulation   (Monte Carlo EV of the built-in strategies)

The page polls the session on every rerun; all state changes go through
the session's action methods.

Run:
    streamlit run app.py
"""

from __future__ import annotations

import os

import pandas as pd
import streamlit as st

from blackjack.analysis.simulator import always_stand, simple_strategy, simulate_rounds
from blackjack.engine.cards import card_to_str, hand_to_str
from blackjack.engine.game_state import Action
from blackjack.errors import BlackjackError
from blackjack.session import TableSession

# ─── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Blackjack",
    page_icon="🃏",
    layout="wide",
)

CONFIG_DIR = os.environ.get("BLACKJACK_CONFIG_DIR")


def _session(name: str) -> TableSession:
    """One session per character name, kept for the browser session."""
    key = f"session::{name}"
    if key not in st.session_state:
        st.session_state[key] = TableSession.open(name, config_dir=CONFIG_DIR)
    return st.session_state[key]


def _run(session: TableSession, command: str) -> None:
    st.session_state["messages"] = session.handle_command(command)


def _set_bet(session: TableSession) -> None:
    try:
        session.set_bet(st.session_state["bet_slider"])
        st.session_state["messages"] = [f"Bet set to {session.current_bet}."]
    except BlackjackError as exc:
        st.session_state["messages"] = [str(exc)]


def _nudge_bet(session: TableSession, steps: int) -> None:
    r = session.rules
    upper = max(session.max_affordable_bet(), r.min_bet)
    bet = st.session_state.get("bet_slider", session.current_bet) + steps * r.bet_step
    st.session_state["bet_slider"] = min(max(bet, r.min_bet), upper)
    _set_bet(session)


def _all_in(session: TableSession) -> None:
    try:
        session.all_in()
        st.session_state["bet_slider"] = session.current_bet
        st.session_state["messages"] = [f"Bet set to {session.current_bet}."]
    except BlackjackError as exc:
        st.session_state["messages"] = [str(exc)]


def _line_colour(line: str) -> str | None:
    if "Net +" in line or "| blackjack" in line or "| win" in line:
        return "green"
    if "Net -" in line or "| lose" in line or "| bust" in line or "| surrender" in line:
        return "red"
    return None


# ─── Sidebar controls ─────────────────────────────────────────────────────────

with st.sidebar:
    st.title("🃏 Blackjack")
    st.markdown("---")
    name = st.text_input("Character", value="unknown")
    st.markdown("---")
    st.caption("Dealer peek · Insurance / Even Money · Late surrender")
    st.caption("Split to 4 hands · Split aces one card · 3:2 blackjack")

session = _session(name)
engine = session.engine
rules = session.rules

tab1, tab2 = st.tabs(["Table", "Simulation"])

# ── Tab 1: Table ──────────────────────────────────────────────────────────────

with tab1:
    col1, col2, col3 = st.columns(3)
    col1.metric("Bankroll", f"{session.bankroll:,}")
    col2.metric("Next bet", f"{session.current_bet:,}")
    col3.metric("Limits", f"{rules.min_bet:,} – {rules.max_bet:,} / {rules.bet_step:,}")

    st.subheader("Bet")
    can_bet = session.can_bet
    upper = max(session.max_affordable_bet(), rules.min_bet)
    if "bet_slider" not in st.session_state:
        st.session_state["bet_slider"] = min(session.current_bet, upper)
    st.session_state["bet_slider"] = min(max(st.session_state["bet_slider"], rules.min_bet), upper)

    b1, b2, b3, b4, b5 = st.columns([1, 6, 1, 2, 2])
    b1.button("−", key="bet_minus", disabled=not can_bet, on_click=_nudge_bet, args=(session, -1))
    b2.slider(
        "Bet amount",
        min_value=rules.min_bet,
        max_value=upper if upper > rules.min_bet else rules.min_bet + rules.bet_step,
        step=rules.bet_step,
        key="bet_slider",
        on_change=_set_bet,
        args=(session,),
        disabled=not can_bet or upper <= rules.min_bet,
        label_visibility="collapsed",
    )
    b3.button("+", key="bet_plus", disabled=not can_bet, on_click=_nudge_bet, args=(session, 1))
    b4.button("Set Bet", key="set_bet", disabled=not can_bet, on_click=_set_bet, args=(session,))
    b5.button("All-In", key="all_in", disabled=not can_bet, on_click=_all_in, args=(session,))

    if not can_bet and not engine.in_round:
        st.warning(
            f"Not enough bankroll for minimum bet ({rules.min_bet}). "
            f"Reset to {rules.starting_bankroll:,}?"
        )
        st.button("Reset Bankroll", key="reset", on_click=_run, args=(session, "reset"))

    st.markdown("---")
    st.subheader("Last Round Results")
    summary = engine.last_round_summary()
    with st.container(border=True):
        if summary is None:
            st.text("No rounds played yet.")
        else:
            for line in summary.lines():
                colour = _line_colour(line)
                st.markdown(f":{colour}[{line}]" if colour else line)

    st.markdown("---")
    st.subheader("Status: In Round" if engine.in_round else "Status: Idle")

    legal = engine.legal_actions()
    if engine.in_round:
        st.text(f"Dealer shows: {card_to_str(engine.dealer_upcard(), symbols=True)}")
        current = engine.current_hand_index()
        rows = []
        for i, hand in enumerate(engine.player_hands()):
            flags = [
                label for label, on in (
                    ("SURRENDER", hand.surrendered),
                    ("DOUBLE", hand.doubled),
                    ("SPLIT-ACE", hand.is_split_ace),
                ) if on
            ]
            rows.append({
                "": ">>" if i == current else "",
                "Hand": i + 1,
                "Cards": hand_to_str(hand.cards, symbols=True),
                "Value": hand.value,
                "Bet": hand.bet,
                "Flags": " ".join(flags),
            })
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

        if engine.insurance().offered:
            st.info("Insurance offered (dealer shows Ace).")
            i1, i2, i3 = st.columns(3)
            i1.button("Take Insurance", key="insurance", disabled=Action.INSURANCE not in legal,
                      on_click=_run, args=(session, "insurance"))
            i2.button("No Insurance", key="noinsurance",
                      on_click=_run, args=(session, "noinsurance"))
            i3.button("Even Money", key="evenmoney", disabled=Action.EVEN_MONEY not in legal,
                      on_click=_run, args=(session, "evenmoney"))

    a0, a1, a2, a3, a4, a5 = st.columns(6)
    a0.button("Start", key="start", type="primary", disabled=engine.in_round or not can_bet,
              on_click=_run, args=(session, "start"))
    for column, (label, action) in zip(
        (a1, a2, a3, a4, a5),
        (
            ("Hit", Action.HIT),
            ("Stand", Action.STAND),
            ("Double", Action.DOUBLE),
            ("Split", Action.SPLIT),
            ("Surrender", Action.SURRENDER),
        ),
    ):
        column.button(label, key=label.lower(), disabled=action not in legal,
                      on_click=_run, args=(session, label.lower()))

    messages = st.session_state.get("messages", [])
    if messages:
        st.code("\n".join(messages), language=None)

# ── Tab 2: Simulation ─────────────────────────────────────────────────────────

with tab2:
    st.header("Monte Carlo Simulation")
    st.caption("Full rounds through the table engine; nets in units of the bet.")

    n_rounds = st.slider("Rounds", min_value=1_000, max_value=50_000, value=5_000, step=1_000)
    strategies = {"Simple strategy": simple_strategy, "Always stand": always_stand}
    chosen = st.selectbox("Strategy", options=list(strategies))

    if st.button("Run Simulation", key="simulate"):
        with st.spinner(f"Simulating {n_rounds:,} rounds …"):
            sim = simulate_rounds(n_rounds, strategy=strategies[chosen], rules=rules, seed=42)
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Mean EV / round", f"{sim.mean_ev:+.4f}")
        c2.metric("Std dev", f"{sim.std_ev:.4f}")
        c3.metric("House edge", f"{sim.house_edge_pct:+.2f}%")
        c4.metric("Skewness", f"{sim.skewness:.3f}")
        st.dataframe(
            pd.DataFrame([
                {"Outcome": "Win", "Rounds": sim.n_wins},
                {"Outcome": "Loss", "Rounds": sim.n_losses},
                {"Outcome": "Push", "Rounds": sim.n_pushes},
            ]),
            use_container_width=True,
            hide_index=True,
        )
        st.text(str(sim))
