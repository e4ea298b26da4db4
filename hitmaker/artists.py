# hitmaker/artists.py
from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence

from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.errors import MissingTargetError
from hitmaker.models import Artist, EffectType, MonthlySummary, TargetScope
from hitmaker.rng import TurnRng

logger = logging.getLogger(__name__)

ATTRIBUTE_FOR_EFFECT = {
    EffectType.ARTIST_MOOD: "mood",
    EffectType.ARTIST_LOYALTY: "loyalty",
    EffectType.ARTIST_POPULARITY: "popularity",
}


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


# --- Popularity ---

def dynamic_threshold(popularity: float, balance: Optional[BalanceConfig] = None) -> float:
    """Streams a song needs before it moves the needle; doubles every 25 points."""
    balance = balance or get_balance()
    p = balance.popularity
    return p.base_threshold * 2 ** (clamp(popularity, 0.0, 100.0) / p.threshold_doubling)


def popularity_multiplier(popularity: float, balance: Optional[BalanceConfig] = None) -> float:
    balance = balance or get_balance()
    p = balance.popularity
    ratio = clamp(popularity, 0.0, 100.0) / p.saturation_point
    return clamp(0.2 + 1.3 / (1.0 + ratio ** 4), 0.2, 1.5)


def stream_points(streams: Iterable[int], popularity: float, balance: Optional[BalanceConfig] = None) -> float:
    balance = balance or get_balance()
    threshold = dynamic_threshold(popularity, balance)
    points = 0.0
    for s in streams:
        if s >= threshold:
            points += math.log10(s / threshold)
    return min(points, balance.popularity.max_gain)


def stream_popularity_bonus(
    streams: Iterable[int],
    popularity: float,
    balance: Optional[BalanceConfig] = None,
) -> float:
    """Popularity gained this month from an artist's active songs (0 if none qualify)."""
    balance = balance or get_balance()
    p = balance.popularity
    points = stream_points(streams, popularity, balance)
    if points <= 0:
        return 0.0
    return clamp(points * popularity_multiplier(popularity, balance), p.min_gain, p.max_gain)


# --- Scoped effects ---

def resolve_targets(
    scope: TargetScope,
    artists: Sequence[Artist],
    explicit_target_id: Optional[str] = None,
    rng: Optional[TurnRng] = None,
) -> List[str]:
    """
    Which artist ids a meeting effect lands on.

      global         -> every signed artist
      predetermined  -> the single most popular artist; ties broken by `rng`
      user_selected  -> the caller's artist, if still signed

    Raises MissingTargetError when a user-selected artist is gone.
    """
    scope = TargetScope(scope)
    roster = sorted(artists, key=lambda a: a.id)

    if scope is TargetScope.GLOBAL:
        return [a.id for a in roster]

    if scope is TargetScope.USER_SELECTED:
        if explicit_target_id is None or explicit_target_id not in {a.id for a in roster}:
            raise MissingTargetError(explicit_target_id or "<none>")
        return [explicit_target_id]

    if not roster:
        return []
    top = max(a.popularity for a in roster)
    tied = [a for a in roster if a.popularity == top]
    if len(tied) == 1 or rng is None:
        return [tied[0].id]
    return [rng.pick(tied).id]


def apply_delta(
    artist: Artist,
    attribute: str,
    delta: float,
    summary: Optional[MonthlySummary] = None,
    *,
    source: str = "",
    event_type: Optional[str] = None,
) -> float:
    """
    Add `delta` to a bounded artist attribute and clamp on the spot.

    Returns the delta actually applied, which is what the summary records.
    """
    before = getattr(artist, attribute)
    after = clamp(before + delta, 0.0, 100.0)
    setattr(artist, attribute, after)
    applied = after - before

    if summary is not None and applied != 0:
        verb = "rose" if applied > 0 else "fell"
        summary.add(
            event_type or attribute,
            f"{artist.name}'s {attribute} {verb} ({applied:+.1f})",
            amount=applied,
            artist_id=artist.id,
            source=source,
        )
    return applied


def apply_artist_effect(
    artists: dict,
    effect: EffectType,
    delta: float,
    target_ids: Sequence[str],
    summary: MonthlySummary,
    *,
    source: str = "",
) -> int:
    """Apply one artist effect to each resolved target; returns how many landed."""
    attribute = ATTRIBUTE_FOR_EFFECT[EffectType(effect)]
    landed = 0
    for artist_id in target_ids:
        artist = artists.get(artist_id)
        if artist is None:
            err = MissingTargetError(artist_id)
            logger.warning("Skipping %s %+g from %s: %s", attribute, delta, source or "effect", err)
            summary.add("effect_skipped", str(err), amount=delta, artist_id=artist_id, source=source)
            continue
        apply_delta(artist, attribute, delta, summary, source=source)
        landed += 1
    return landed


# --- Monthly drift ---

def drift_toward(value: float, baseline: float, step: float) -> float:
    if value > baseline:
        return max(baseline, value - step)
    if value < baseline:
        return min(baseline, value + step)
    return value


def monthly_mood_update(
    artist: Artist,
    active_productions: int,
    summary: MonthlySummary,
    balance: Optional[BalanceConfig] = None,
) -> None:
    """
    Drift of mood and loyalty back toward baseline, then workload stress.

    An overloaded month always costs the full workload penalty.
    """
    balance = balance or get_balance()
    m = balance.mood
    spec = balance.archetype(artist.archetype)

    target = drift_toward(artist.mood, m.mood_baseline, m.mood_drift)
    if target != artist.mood:
        apply_delta(artist, "mood", target - artist.mood, summary, source="drift")

    overload = active_productions - spec.workload_tolerance
    if overload > 0:
        apply_delta(artist, "mood", overload * m.workload_penalty, summary, source="workload")

    target = drift_toward(artist.loyalty, m.loyalty_baseline, m.loyalty_drift)
    if target != artist.loyalty:
        apply_delta(artist, "loyalty", target - artist.loyalty, summary, source="drift")


def apply_stream_popularity(
    artist: Artist,
    streams: Sequence[int],
    summary: MonthlySummary,
    balance: Optional[BalanceConfig] = None,
) -> float:
    bonus = stream_popularity_bonus(streams, artist.popularity, balance)
    if bonus <= 0:
        return 0.0
    return apply_delta(artist, "popularity", bonus, summary, source="streaming")
