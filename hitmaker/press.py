# hitmaker/press.py
from __future__ import annotations

import logging
import math
from typing import Optional

from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.label import change_reputation
from hitmaker.models import LabelState, MonthlySummary, Release
from hitmaker.quality import clamp
from hitmaker.rng import TurnRng

logger = logging.getLogger(__name__)


def pickup_chance(
    press_access: str,
    marketing_spend: float,
    reputation: float,
    balance: Optional[BalanceConfig] = None,
) -> float:
    """Chance that any one outlet covers a release, capped at max_chance."""
    balance = balance or get_balance()
    p = balance.press
    chance = (
        p.base_chance
        + p.tier_chance.get(press_access, 0.0)
        + max(0.0, marketing_spend) * p.spend_chance
        + clamp(reputation, 0.0, 100.0) * p.reputation_chance
    )
    return clamp(chance, 0.0, p.max_chance)


def roll_pickups(rng: TurnRng, chance: float, balance: Optional[BalanceConfig] = None) -> int:
    balance = balance or get_balance()
    return sum(1 for _ in range(balance.press.max_pickups) if rng.random() < chance)


def press_reputation(pickups: int, quality: float, balance: Optional[BalanceConfig] = None) -> float:
    balance = balance or get_balance()
    return float(math.floor(pickups * clamp(quality, 0.0, 100.0) / 100.0 * balance.press.reputation_per_pickup))


def cover_release(
    state: LabelState,
    release: Release,
    quality: float,
    rng: TurnRng,
    summary: MonthlySummary,
    balance: Optional[BalanceConfig] = None,
) -> int:
    """
    Roll press pickups for a full release and pay out reputation.

    Always draws max_pickups numbers, so the draw count never depends on
    the outcome. Returns the number of pickups.
    """
    balance = balance or get_balance()
    game = state.game
    chance = pickup_chance(game.press_access, release.marketing_budget, game.reputation, balance)
    pickups = roll_pickups(rng, chance, balance)
    release.press_pickups = pickups
    if not pickups:
        return 0

    summary.add("press", f'"{release.title}" picked up by {pickups} outlet{"s" if pickups != 1 else ""}',
                amount=pickups, artist_id=release.artist_id, project_id=release.project_id)
    gain = press_reputation(pickups, quality, balance)
    if gain > 0:
        change_reputation(state, gain, summary, source="press")
    logger.debug("Release %s: %d press pickups at %.2f", release.id, pickups, chance)
    return pickups
