# hitmaker/streaming.py
from __future__ import annotations

import math
from typing import Optional, Tuple

from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.models import Song
from hitmaker.quality import clamp, safe_number


def marketing_score(spend: float, balance: Optional[BalanceConfig] = None) -> float:
    """sqrt-scaled marketing spend on a 0..100 scale."""
    balance = balance or get_balance()
    s = balance.streaming
    spend = max(0.0, safe_number(spend, 0.0, "marketing_score"))
    return min(100.0, math.sqrt(spend / s.marketing_divisor) * s.marketing_score_scale)


def initial_streams(
    *,
    quality: float,
    popularity: float,
    playlist_access: str,
    reputation: float,
    marketing_spend: float = 0.0,
    month: Optional[int] = None,
    balance: Optional[BalanceConfig] = None,
) -> int:
    """
    Launch-month streams for a newly released song.

    Monotonic in every input and saturating: the weighted score approaches
    the reach-adjusted peak exponentially, so no combination runs away.
    A release `month` scales the result by its season.
    """
    balance = balance or get_balance()
    s = balance.streaming

    score = (
        clamp(quality, 0.0, 100.0) * s.weight_quality
        + clamp(popularity, 0.0, 100.0) * s.weight_popularity
        + clamp(reputation, 0.0, 100.0) * s.weight_reputation
        + marketing_score(marketing_spend, balance) * s.weight_marketing
    )
    reach = balance.access.playlist_reach.get(playlist_access, 1.0)
    streams = s.peak * reach * (1.0 - math.exp(-score / s.saturation))
    if month is not None:
        streams *= balance.seasons.revenue_multiplier(month)
    return int(round(safe_number(streams, 0.0, "initial_streams")))


def decay_factor(age_in_months: int, balance: Optional[BalanceConfig] = None) -> float:
    """Month-over-month retention; steeper in the launch window, gentler in catalog."""
    balance = balance or get_balance()
    s = balance.streaming
    if age_in_months <= 0:
        return 1.0
    if age_in_months <= s.launch_window_months:
        return s.launch_decay
    return s.catalog_decay


def catalog_tail(song: Song, balance: Optional[BalanceConfig] = None) -> int:
    balance = balance or get_balance()
    return max(1, int(round(song.initial_streams * balance.streaming.catalog_tail_fraction)))


def marketing_boost(spend: float, balance: Optional[BalanceConfig] = None) -> int:
    balance = balance or get_balance()
    s = balance.streaming
    spend = max(0.0, safe_number(spend, 0.0, "marketing_boost"))
    return int(round(math.sqrt(spend / s.marketing_divisor) * s.marketing_boost_streams))


def marketing_cost(amount: float, month: int, balance: Optional[BalanceConfig] = None) -> int:
    """What `amount` of marketing actually costs when paid in `month`."""
    balance = balance or get_balance()
    amount = max(0.0, safe_number(amount, 0.0, "marketing_cost"))
    return int(round(amount * balance.seasons.marketing_cost_multiplier(month)))


def revenue_for(streams: int, balance: Optional[BalanceConfig] = None) -> int:
    balance = balance or get_balance()
    return max(0, int(round(streams * balance.streaming.revenue_per_stream)))


def advance_song(
    song: Song,
    age_in_months: int,
    *,
    boost: int = 0,
    balance: Optional[BalanceConfig] = None,
) -> Tuple[int, int]:
    """
    Run one period of streaming for a released song, updating it in place.

    Returns (period_streams, period_revenue).
    """
    balance = balance or get_balance()

    if age_in_months <= 0:
        streams = song.initial_streams
    else:
        previous = song.weekly_streams
        decayed = int(round(previous * decay_factor(age_in_months, balance)))
        # the tail only props a song up; it never lifts it above last period
        floor = min(previous, catalog_tail(song, balance))
        streams = max(decayed, floor)
    streams += max(0, int(boost))

    revenue = revenue_for(streams, balance)

    song.weekly_streams = streams
    song.total_streams += streams
    song.last_period_revenue = revenue
    song.total_revenue += revenue
    return streams, revenue
