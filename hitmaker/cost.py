# hitmaker/cost.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.errors import ValidationError
from hitmaker.models import (
    GameState,
    ProducerTier,
    ProjectType,
    StartProjectAction,
    TimeInvestment,
)


@dataclass(frozen=True)
class CostBreakdown:
    budget_per_song: int
    song_count: int
    base_cost: int
    economies_multiplier: float
    producer_multiplier: float
    time_multiplier: float
    total_cost: int


def economies_of_scale(song_count: int, balance: Optional[BalanceConfig] = None) -> float:
    """Per-song discount step for larger projects (non-increasing in song_count)."""
    balance = balance or get_balance()
    for min_songs, multiplier in balance.economies_of_scale:
        if song_count >= min_songs:
            return multiplier
    return 1.0


def calculate_project_cost(
    budget_per_song: int,
    song_count: int,
    producer_tier: ProducerTier,
    time_investment: TimeInvestment,
    balance: Optional[BalanceConfig] = None,
) -> CostBreakdown:
    balance = balance or get_balance()
    song_count = max(1, int(song_count))
    budget_per_song = max(0, int(budget_per_song))

    eos = economies_of_scale(song_count, balance)
    producer_mult = balance.producer(producer_tier).cost_multiplier
    time_mult = balance.time(time_investment).cost_multiplier

    base = budget_per_song * song_count
    total = int(round(base * eos * producer_mult * time_mult))

    return CostBreakdown(
        budget_per_song=budget_per_song,
        song_count=song_count,
        base_cost=base,
        economies_multiplier=eos,
        producer_multiplier=producer_mult,
        time_multiplier=time_mult,
        total_cost=total,
    )


def producer_tier_unlocked(tier: ProducerTier, reputation: float, balance: Optional[BalanceConfig] = None) -> bool:
    balance = balance or get_balance()
    return reputation >= balance.producer(tier).unlock_reputation


def available_producer_tiers(reputation: float, balance: Optional[BalanceConfig] = None) -> List[ProducerTier]:
    balance = balance or get_balance()
    return [t for t in ProducerTier if producer_tier_unlocked(t, reputation, balance)]


def validate_project(
    action: StartProjectAction,
    game: GameState,
    *,
    available_money: Optional[int] = None,
    balance: Optional[BalanceConfig] = None,
) -> CostBreakdown:
    """
    Check a new project against the label's reputation and bank balance.

    Raises ValidationError listing every problem; returns the cost breakdown
    when the project can be committed.
    """
    balance = balance or get_balance()
    errors: List[str] = []

    try:
        tier = ProducerTier(action.producer_tier)
    except ValueError:
        raise ValidationError(f"Unknown producer tier: {action.producer_tier}")
    try:
        investment = TimeInvestment(action.time_investment)
    except ValueError:
        raise ValidationError(f"Unknown time investment: {action.time_investment}")
    try:
        project_type = ProjectType(action.project_type)
    except ValueError:
        raise ValidationError(f"Unknown project type: {action.project_type}")

    required = balance.producer(tier).unlock_reputation
    if game.reputation < required:
        errors.append(
            f"Producer tier '{tier.value}' requires {required:g} reputation "
            f"(current: {game.reputation:g})"
        )
    if tier is ProducerTier.LEGENDARY and investment is TimeInvestment.RUSHED:
        errors.append("Legendary producers refuse rushed timeline projects")

    spec = balance.project_type(project_type)
    if not spec.min_songs <= action.song_count <= spec.max_songs:
        errors.append(
            f"A {project_type.value} needs {spec.min_songs}-{spec.max_songs} songs "
            f"(got {action.song_count})"
        )
    if action.budget_per_song < 0:
        errors.append("Budget per song cannot be negative")
    if action.marketing_budget < 0:
        errors.append("Marketing budget cannot be negative")
    if action.due_month is not None and action.due_month <= game.current_month:
        errors.append(f"Release month {action.due_month} is not in the future")
    if action.lead_single_month is not None:
        if action.due_month is None or not game.current_month < action.lead_single_month < action.due_month:
            errors.append("Lead single month must fall before the release month")
        if action.song_count < 2:
            errors.append("A lead single needs a project with at least two songs")

    breakdown = calculate_project_cost(
        action.budget_per_song, action.song_count, tier, investment, balance)

    money = game.money if available_money is None else available_money
    needed = breakdown.total_cost + max(0, action.marketing_budget)
    if not game.allow_negative_money and needed > money:
        errors.append(f"Insufficient funds: project needs ${needed:,}, label has ${money:,}")

    if errors:
        raise ValidationError(errors[0], errors)
    return breakdown
