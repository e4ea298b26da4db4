# hitmaker/quality.py
from __future__ import annotations

import logging
import math
from typing import Dict, Optional

from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.errors import ComputationError
from hitmaker.models import ProducerTier, ProjectType, TimeInvestment

logger = logging.getLogger(__name__)


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def safe_number(value: float, fallback: float, label: str) -> float:
    """Return `value` if finite, else log the defect and return `fallback`."""
    if value is None or not math.isfinite(value):
        err = ComputationError(f"{label} produced {value!r}; using {fallback}")
        logger.warning("%s", err)
        return fallback
    return value


def minimum_viable_cost(project_type: ProjectType, balance: Optional[BalanceConfig] = None) -> float:
    balance = balance or get_balance()
    return balance.project_type(project_type).minimum_viable_cost


def budget_ratio(
    budget_per_song: float,
    project_type: ProjectType,
    balance: Optional[BalanceConfig] = None,
) -> float:
    mvc = minimum_viable_cost(project_type, balance)
    if mvc <= 0:
        return safe_number(math.nan, 0.0, "budget_ratio")
    ratio = safe_number(budget_per_song / mvc, 0.0, "budget_ratio")
    return max(0.0, ratio)


def budget_quality_bonus(ratio: float, balance: Optional[BalanceConfig] = None) -> float:
    """
    Piecewise-linear bonus for spending above the minimum viable cost.

    Below the first breakpoint the bonus is the flat penalty; between
    breakpoints it interpolates; past the last one it grows logarithmically
    until it hits the cap. Continuous and non-decreasing everywhere.
    """
    balance = balance or get_balance()
    rules = balance.quality
    points = rules.budget_breakpoints

    ratio = safe_number(ratio, 0.0, "budget_quality_bonus")
    first_ratio, first_bonus = points[0]
    if ratio < first_ratio:
        return first_bonus

    for (r0, b0), (r1, b1) in zip(points, points[1:]):
        if ratio <= r1:
            progress = (ratio - r0) / (r1 - r0)
            return b0 + (b1 - b0) * progress

    last_ratio, last_bonus = points[-1]
    excess = ratio - last_ratio
    bonus = last_bonus + rules.diminishing_factor * math.log1p(excess)
    return min(rules.bonus_cap, bonus)


def song_count_quality_impact(song_count: int, balance: Optional[BalanceConfig] = None) -> float:
    balance = balance or get_balance()
    rules = balance.quality
    if song_count <= 1:
        return 1.0
    return max(rules.song_count_floor, rules.song_count_decay ** (song_count - 1))


def quality_breakdown(
    *,
    producer_tier: ProducerTier,
    time_investment: TimeInvestment,
    budget_per_song: float,
    song_count: int,
    artist_mood: float,
    project_type: ProjectType = ProjectType.SINGLE,
    balance: Optional[BalanceConfig] = None,
) -> Dict[str, float]:
    balance = balance or get_balance()
    rules = balance.quality

    ratio = budget_ratio(budget_per_song, project_type, balance)
    producer_bonus = balance.producer(producer_tier).quality_bonus
    time_bonus = balance.time(time_investment).quality_modifier
    mood_bonus = clamp(artist_mood, 0.0, 100.0) * rules.mood_weight
    budget_bonus = budget_quality_bonus(ratio, balance)
    impact = song_count_quality_impact(max(1, song_count), balance)

    combined = (producer_bonus + time_bonus + mood_bonus + budget_bonus) * impact
    raw = safe_number(rules.base + combined, rules.base, "quality")
    quality = clamp(raw, rules.minimum, rules.maximum)

    return {
        "budget_ratio": ratio,
        "producer_bonus": producer_bonus,
        "time_bonus": time_bonus,
        "mood_bonus": mood_bonus,
        "budget_bonus": budget_bonus,
        "song_count_impact": impact,
        "raw_quality": raw,
        "quality": quality,
    }


def calculate_quality(
    *,
    producer_tier: ProducerTier,
    time_investment: TimeInvestment,
    budget_per_song: float,
    song_count: int,
    artist_mood: float,
    project_type: ProjectType = ProjectType.SINGLE,
    balance: Optional[BalanceConfig] = None,
) -> float:
    return quality_breakdown(
        producer_tier=producer_tier,
        time_investment=time_investment,
        budget_per_song=budget_per_song,
        song_count=song_count,
        artist_mood=artist_mood,
        project_type=project_type,
        balance=balance,
    )["quality"]
