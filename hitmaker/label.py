# hitmaker/label.py
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.cost import available_producer_tiers
from hitmaker.models import LabelState, MonthlySummary

logger = logging.getLogger(__name__)


def change_money(
    state: LabelState,
    delta: int,
    summary: MonthlySummary,
    *,
    description: str = "",
    source: str = "",
) -> int:
    """
    Credit or debit the label's bank.

    Unless the game allows debt, a debit stops at zero; the shortfall is
    recorded on the summary. Returns the amount actually moved.
    """
    game = state.game
    delta = int(round(delta))
    before = game.money
    after = before + delta
    if after < 0 and not game.allow_negative_money:
        summary.add("shortfall", f"Could not cover ${-after:,} of {source or 'costs'}",
                    amount=-after, source=source)
        logger.warning("Game %s short $%d on %s", game.id, -after, source or "costs")
        after = 0
    game.money = after
    applied = after - before

    if applied > 0:
        summary.revenue += applied
        summary.add("revenue", description or f"+${applied:,}", amount=applied, source=source)
    elif applied < 0:
        summary.expenses += -applied
        summary.add("expense", description or f"-${-applied:,}", amount=applied, source=source)
    return applied


def change_reputation(state: LabelState, delta: float, summary: MonthlySummary, *, source: str = "") -> float:
    game = state.game
    before = game.reputation
    game.reputation = max(0.0, min(100.0, before + delta))
    applied = game.reputation - before
    if applied:
        summary.add("reputation", f"Reputation {applied:+.1f}", amount=applied, source=source)
        summary.reputation_change += applied
    return applied


def change_creative_capital(state: LabelState, delta: float, summary: MonthlySummary, *, source: str = "") -> float:
    game = state.game
    before = game.creative_capital
    game.creative_capital = max(0.0, min(100.0, before + delta))
    applied = game.creative_capital - before
    if applied:
        summary.add("creative_capital", f"Creative capital {applied:+.1f}", amount=applied, source=source)
    return applied


def tier_for(reputation: float, table: Tuple[Tuple[str, float], ...]) -> str:
    current = table[0][0]
    for name, threshold in table:
        if reputation >= threshold:
            current = name
    return current


def apply_unlocks(
    state: LabelState,
    summary: MonthlySummary,
    balance: Optional[BalanceConfig] = None,
) -> List[str]:
    """
    Bring access tiers, producer tiers and focus slots in line with reputation.

    Tiers only ever move up. Returns the description of each unlock.
    """
    balance = balance or get_balance()
    game = state.game
    unlocked: List[str] = []

    for attr, table, label in (
        ("playlist_access", balance.access.playlist, "Playlist access"),
        ("press_access", balance.access.press, "Press access"),
    ):
        ranks = [name for name, _ in table]
        current = getattr(game, attr)
        target = tier_for(game.reputation, table)
        if current not in ranks or ranks.index(target) > ranks.index(current):
            setattr(game, attr, target)
            unlocked.append(f"{label}: {target}")

    for tier in available_producer_tiers(game.reputation, balance):
        if tier.value not in game.unlocked_producer_tiers:
            game.unlocked_producer_tiers.append(tier.value)
            unlocked.append(f"Producer tier: {tier.value}")

    rules = balance.campaign
    if game.focus_slots < rules.max_focus_slots and game.reputation >= rules.fourth_focus_slot_reputation:
        game.focus_slots = rules.max_focus_slots
        unlocked.append(f"Focus slots: {game.focus_slots}")

    for text in unlocked:
        summary.add("unlock", text, source="reputation")
        logger.info("Game %s unlocked %s", game.id, text)
    return unlocked
