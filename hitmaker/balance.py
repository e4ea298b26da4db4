# hitmaker/balance.py
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from hitmaker import config
from hitmaker.errors import ValidationError
from hitmaker.models import Archetype, ProducerTier, ProjectType, TimeInvestment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProducerTierSpec:
    unlock_reputation: float
    quality_bonus: float
    cost_multiplier: float


@dataclass(frozen=True)
class TimeInvestmentSpec:
    quality_modifier: float
    cost_multiplier: float
    min_months: int


@dataclass(frozen=True)
class ProjectTypeSpec:
    minimum_viable_cost: float
    min_songs: int
    max_songs: int
    songs_per_month: int


@dataclass(frozen=True)
class ArchetypeSpec:
    workload_tolerance: int


@dataclass(frozen=True)
class CampaignRules:
    length_months: int
    starting_money: int
    starting_reputation: float
    starting_creative_capital: float
    starting_focus_slots: int
    max_focus_slots: int
    fourth_focus_slot_reputation: float
    monthly_operating_cost: int


@dataclass(frozen=True)
class QualityRules:
    base: float
    minimum: float
    maximum: float
    mood_weight: float
    song_count_decay: float
    song_count_floor: float
    song_variance: float
    budget_breakpoints: Tuple[Tuple[float, float], ...]
    diminishing_factor: float
    bonus_cap: float


@dataclass(frozen=True)
class AccessRules:
    # (tier name, reputation threshold), ascending by threshold
    playlist: Tuple[Tuple[str, float], ...]
    press: Tuple[Tuple[str, float], ...]
    playlist_reach: Mapping[str, float]


@dataclass(frozen=True)
class StreamingRules:
    peak: float
    saturation: float
    weight_quality: float
    weight_popularity: float
    weight_reputation: float
    weight_marketing: float
    marketing_divisor: float
    marketing_score_scale: float
    release_variance: Tuple[float, float]
    launch_window_months: int
    launch_decay: float
    catalog_decay: float
    catalog_tail_fraction: float
    revenue_per_stream: float
    marketing_boost_streams: float


@dataclass(frozen=True)
class SeasonRules:
    # quarter ("q1".."q4") -> multiplier
    revenue: Mapping[str, float]
    marketing_cost: Mapping[str, float]

    def quarter(self, month: int) -> str:
        return f"q{(max(1, month) - 1) % 12 // 3 + 1}"

    def revenue_multiplier(self, month: int) -> float:
        return self.revenue.get(self.quarter(month), 1.0)

    def marketing_cost_multiplier(self, month: int) -> float:
        return self.marketing_cost.get(self.quarter(month), 1.0)


@dataclass(frozen=True)
class PressRules:
    base_chance: float
    tier_chance: Mapping[str, float]
    spend_chance: float
    reputation_chance: float
    max_chance: float
    max_pickups: int
    reputation_per_pickup: float


@dataclass(frozen=True)
class PopularityRules:
    base_threshold: float
    threshold_doubling: float
    saturation_point: float
    max_gain: float
    min_gain: float


@dataclass(frozen=True)
class MoodRules:
    mood_baseline: float
    mood_drift: float
    loyalty_baseline: float
    loyalty_drift: float
    workload_penalty: float


@dataclass(frozen=True)
class ReleaseRules:
    hit_quality: float
    hit_mood: float
    flop_quality: float
    flop_mood: float
    reputation_quality: float
    reputation_gain: float
    lead_single_marketing_share: float


@dataclass(frozen=True)
class ChartRules:
    size: int
    top10_debut_reputation: float
    number_one_debut_reputation: float
    competitors: int
    competitor_streams: Tuple[float, float]
    competitor_variance: Tuple[float, float]


@dataclass(frozen=True)
class BalanceConfig:
    """Every coefficient the engine reads. Loaded once, never mutated."""
    version: str
    campaign: CampaignRules
    quality: QualityRules
    producer_tiers: Mapping[ProducerTier, ProducerTierSpec]
    time_investments: Mapping[TimeInvestment, TimeInvestmentSpec]
    project_types: Mapping[ProjectType, ProjectTypeSpec]
    economies_of_scale: Tuple[Tuple[int, float], ...]
    access: AccessRules
    streaming: StreamingRules
    seasons: SeasonRules
    press: PressRules
    popularity: PopularityRules
    mood: MoodRules
    archetypes: Mapping[Archetype, ArchetypeSpec]
    release: ReleaseRules
    charts: ChartRules

    def producer(self, tier: ProducerTier) -> ProducerTierSpec:
        return self.producer_tiers[ProducerTier(tier)]

    def time(self, investment: TimeInvestment) -> TimeInvestmentSpec:
        return self.time_investments[TimeInvestment(investment)]

    def project_type(self, project_type: ProjectType) -> ProjectTypeSpec:
        return self.project_types[ProjectType(project_type)]

    def archetype(self, archetype: Archetype) -> ArchetypeSpec:
        return self.archetypes[Archetype(archetype)]


def _tier_table(raw: Mapping[str, Any], defaults: Mapping[str, float]) -> Tuple[Tuple[str, float], ...]:
    table = {**defaults, **{k: float(v) for k, v in raw.items()}}
    return tuple(sorted(((name, float(t)) for name, t in table.items()), key=lambda kv: kv[1]))


def _lookup(raw: Mapping[str, Any], key: str, default: Any) -> Any:
    value = raw.get(key, default)
    return default if value is None else value


def build_balance(raw: Optional[Mapping[str, Any]] = None) -> BalanceConfig:
    """Merge a raw balance document over the config.py defaults and validate it."""
    raw = raw or {}

    c = raw.get("campaign", {})
    campaign = CampaignRules(
        length_months=int(_lookup(c, "length_months", config.CAMPAIGN_LENGTH_MONTHS)),
        starting_money=int(_lookup(c, "starting_money", config.STARTING_MONEY)),
        starting_reputation=float(_lookup(c, "starting_reputation", config.STARTING_REPUTATION)),
        starting_creative_capital=float(
            _lookup(c, "starting_creative_capital", config.STARTING_CREATIVE_CAPITAL)),
        starting_focus_slots=int(_lookup(c, "starting_focus_slots", config.STARTING_FOCUS_SLOTS)),
        max_focus_slots=int(_lookup(c, "max_focus_slots", config.MAX_FOCUS_SLOTS)),
        fourth_focus_slot_reputation=float(
            _lookup(c, "fourth_focus_slot_reputation", config.FOURTH_FOCUS_SLOT_REPUTATION)),
        monthly_operating_cost=int(_lookup(c, "monthly_operating_cost", config.MONTHLY_OPERATING_COST)),
    )

    q = raw.get("quality", {})
    breakpoints = _lookup(q, "budget_breakpoints", config.BUDGET_BREAKPOINTS)
    quality = QualityRules(
        base=float(_lookup(q, "base", config.QUALITY_BASE)),
        minimum=float(_lookup(q, "minimum", config.QUALITY_MIN)),
        maximum=float(_lookup(q, "maximum", config.QUALITY_MAX)),
        mood_weight=float(_lookup(q, "mood_weight", config.MOOD_QUALITY_WEIGHT)),
        song_count_decay=float(_lookup(q, "song_count_decay", config.SONG_COUNT_QUALITY_DECAY)),
        song_count_floor=float(_lookup(q, "song_count_floor", config.SONG_COUNT_QUALITY_FLOOR)),
        song_variance=float(_lookup(q, "song_variance", config.SONG_QUALITY_VARIANCE)),
        budget_breakpoints=tuple((float(r), float(b)) for r, b in breakpoints),
        diminishing_factor=float(_lookup(q, "diminishing_factor", config.BUDGET_DIMINISHING_FACTOR)),
        bonus_cap=float(_lookup(q, "bonus_cap", config.BUDGET_BONUS_CAP)),
    )

    raw_producers = raw.get("producer_tiers", {})
    producer_tiers = {}
    for tier in ProducerTier:
        d = {**config.PRODUCER_TIERS[tier.value], **raw_producers.get(tier.value, {})}
        producer_tiers[tier] = ProducerTierSpec(
            unlock_reputation=float(d["unlock_reputation"]),
            quality_bonus=float(d["quality_bonus"]),
            cost_multiplier=float(d["cost_multiplier"]),
        )

    raw_times = raw.get("time_investments", {})
    time_investments = {}
    for ti in TimeInvestment:
        d = {**config.TIME_INVESTMENTS[ti.value], **raw_times.get(ti.value, {})}
        time_investments[ti] = TimeInvestmentSpec(
            quality_modifier=float(d["quality_modifier"]),
            cost_multiplier=float(d["cost_multiplier"]),
            min_months=int(d["min_months"]),
        )

    raw_types = raw.get("project_types", {})
    project_types = {}
    for pt in ProjectType:
        d = raw_types.get(pt.value, {})
        lo, hi = config.SONG_COUNT_RANGE[pt.value]
        project_types[pt] = ProjectTypeSpec(
            minimum_viable_cost=float(_lookup(d, "minimum_viable_cost", config.MINIMUM_VIABLE_COST[pt.value])),
            min_songs=int(_lookup(d, "min_songs", lo)),
            max_songs=int(_lookup(d, "max_songs", hi)),
            songs_per_month=int(_lookup(d, "songs_per_month", config.SONGS_PER_MONTH[pt.value])),
        )

    eos = _lookup(raw, "economies_of_scale", config.ECONOMIES_OF_SCALE)
    economies_of_scale = tuple(sorted(((int(n), float(m)) for n, m in eos), reverse=True))

    a = raw.get("access", {})
    access = AccessRules(
        playlist=_tier_table(a.get("playlist", {}), config.PLAYLIST_TIERS),
        press=_tier_table(a.get("press", {}), config.PRESS_TIERS),
        playlist_reach={**config.PLAYLIST_REACH, **{k: float(v) for k, v in a.get("playlist_reach", {}).items()}},
    )

    s = raw.get("streaming", {})
    streaming = StreamingRules(
        peak=float(_lookup(s, "peak", config.STREAMS_PEAK)),
        saturation=float(_lookup(s, "saturation", config.STREAMS_SATURATION)),
        weight_quality=float(_lookup(s, "weight_quality", config.STREAM_WEIGHT_QUALITY)),
        weight_popularity=float(_lookup(s, "weight_popularity", config.STREAM_WEIGHT_POPULARITY)),
        weight_reputation=float(_lookup(s, "weight_reputation", config.STREAM_WEIGHT_REPUTATION)),
        weight_marketing=float(_lookup(s, "weight_marketing", config.STREAM_WEIGHT_MARKETING)),
        marketing_divisor=float(_lookup(s, "marketing_divisor", config.MARKETING_DIVISOR)),
        marketing_score_scale=float(_lookup(s, "marketing_score_scale", config.MARKETING_SCORE_SCALE)),
        release_variance=tuple(float(v) for v in _lookup(s, "release_variance", config.RELEASE_VARIANCE)),
        launch_window_months=int(_lookup(s, "launch_window_months", config.LAUNCH_WINDOW_MONTHS)),
        launch_decay=float(_lookup(s, "launch_decay", config.LAUNCH_DECAY)),
        catalog_decay=float(_lookup(s, "catalog_decay", config.CATALOG_DECAY)),
        catalog_tail_fraction=float(_lookup(s, "catalog_tail_fraction", config.CATALOG_TAIL_FRACTION)),
        revenue_per_stream=float(_lookup(s, "revenue_per_stream", config.REVENUE_PER_STREAM)),
        marketing_boost_streams=float(_lookup(s, "marketing_boost_streams", config.MARKETING_BOOST_STREAMS)),
    )

    se = raw.get("seasons", {})
    seasons = SeasonRules(
        revenue={**config.SEASONAL_REVENUE, **{k: float(v) for k, v in se.get("revenue", {}).items()}},
        marketing_cost={**config.SEASONAL_MARKETING_COST,
                        **{k: float(v) for k, v in se.get("marketing_cost", {}).items()}},
    )

    pr = raw.get("press", {})
    press = PressRules(
        base_chance=float(_lookup(pr, "base_chance", config.PRESS_BASE_CHANCE)),
        tier_chance={**config.PRESS_TIER_CHANCE, **{k: float(v) for k, v in pr.get("tier_chance", {}).items()}},
        spend_chance=float(_lookup(pr, "spend_chance", config.PRESS_SPEND_CHANCE)),
        reputation_chance=float(_lookup(pr, "reputation_chance", config.PRESS_REPUTATION_CHANCE)),
        max_chance=float(_lookup(pr, "max_chance", config.PRESS_MAX_CHANCE)),
        max_pickups=int(_lookup(pr, "max_pickups", config.PRESS_MAX_PICKUPS)),
        reputation_per_pickup=float(_lookup(pr, "reputation_per_pickup", config.PRESS_REPUTATION_PER_PICKUP)),
    )

    p = raw.get("popularity", {})
    popularity = PopularityRules(
        base_threshold=float(_lookup(p, "base_threshold", config.POPULARITY_BASE_THRESHOLD)),
        threshold_doubling=float(_lookup(p, "threshold_doubling", config.POPULARITY_THRESHOLD_DOUBLING)),
        saturation_point=float(_lookup(p, "saturation_point", config.POPULARITY_SATURATION_POINT)),
        max_gain=float(_lookup(p, "max_gain", config.POPULARITY_MAX_GAIN)),
        min_gain=float(_lookup(p, "min_gain", config.POPULARITY_MIN_GAIN)),
    )

    m = raw.get("mood", {})
    mood = MoodRules(
        mood_baseline=float(_lookup(m, "mood_baseline", config.MOOD_BASELINE)),
        mood_drift=float(_lookup(m, "mood_drift", config.MOOD_DRIFT)),
        loyalty_baseline=float(_lookup(m, "loyalty_baseline", config.LOYALTY_BASELINE)),
        loyalty_drift=float(_lookup(m, "loyalty_drift", config.LOYALTY_DRIFT)),
        workload_penalty=float(_lookup(m, "workload_penalty", config.WORKLOAD_MOOD_PENALTY)),
    )

    raw_archetypes = raw.get("archetypes", {})
    archetypes = {}
    for arch in Archetype:
        d = {**config.ARCHETYPES[arch.value], **raw_archetypes.get(arch.value, {})}
        archetypes[arch] = ArchetypeSpec(
            workload_tolerance=int(d["workload_tolerance"]),
        )

    r = raw.get("release", {})
    release = ReleaseRules(
        hit_quality=float(_lookup(r, "hit_quality", config.RELEASE_HIT_QUALITY)),
        hit_mood=float(_lookup(r, "hit_mood", config.RELEASE_HIT_MOOD)),
        flop_quality=float(_lookup(r, "flop_quality", config.RELEASE_FLOP_QUALITY)),
        flop_mood=float(_lookup(r, "flop_mood", config.RELEASE_FLOP_MOOD)),
        reputation_quality=float(_lookup(r, "reputation_quality", config.RELEASE_REPUTATION_QUALITY)),
        reputation_gain=float(_lookup(r, "reputation_gain", config.RELEASE_REPUTATION_GAIN)),
        lead_single_marketing_share=float(
            _lookup(r, "lead_single_marketing_share", config.LEAD_SINGLE_MARKETING_SHARE)),
    )

    ch = raw.get("charts", {})
    charts = ChartRules(
        size=int(_lookup(ch, "size", config.CHART_SIZE)),
        top10_debut_reputation=float(_lookup(ch, "top10_debut_reputation", config.TOP10_DEBUT_REPUTATION)),
        number_one_debut_reputation=float(
            _lookup(ch, "number_one_debut_reputation", config.NUMBER_ONE_DEBUT_REPUTATION)),
        competitors=int(_lookup(ch, "competitors", config.CHART_COMPETITORS)),
        competitor_streams=tuple(
            float(v) for v in _lookup(ch, "competitor_streams", config.CHART_COMPETITOR_STREAMS)),
        competitor_variance=tuple(
            float(v) for v in _lookup(ch, "competitor_variance", config.CHART_COMPETITOR_VARIANCE)),
    )

    balance = BalanceConfig(
        version=str(raw.get("version", config.BALANCE_VERSION)),
        campaign=campaign,
        quality=quality,
        producer_tiers=producer_tiers,
        time_investments=time_investments,
        project_types=project_types,
        economies_of_scale=economies_of_scale,
        access=access,
        streaming=streaming,
        seasons=seasons,
        press=press,
        popularity=popularity,
        mood=mood,
        archetypes=archetypes,
        release=release,
        charts=charts,
    )
    validate_balance(balance)
    return balance


def validate_balance(balance: BalanceConfig) -> None:
    errors = []

    bps = balance.quality.budget_breakpoints
    if len(bps) < 2:
        errors.append("quality.budget_breakpoints needs at least two points")
    for (r0, b0), (r1, b1) in zip(bps, bps[1:]):
        if r1 <= r0 or b1 < b0:
            errors.append(f"budget breakpoints must increase: {(r0, b0)} -> {(r1, b1)}")
    if bps and balance.quality.bonus_cap < bps[-1][1]:
        errors.append("quality.bonus_cap is below the last budget breakpoint")

    last = None
    for count, mult in sorted(balance.economies_of_scale):
        if last is not None and mult > last:
            errors.append("economies_of_scale must not increase with song count")
        last = mult
    if 1 not in {count for count, _ in balance.economies_of_scale}:
        errors.append("economies_of_scale must define a 1-song entry")

    for pt, spec in balance.project_types.items():
        if spec.minimum_viable_cost <= 0:
            errors.append(f"project_types.{pt.value}.minimum_viable_cost must be positive")
        if not 1 <= spec.min_songs <= spec.max_songs:
            errors.append(f"project_types.{pt.value} song range is invalid")
        if spec.songs_per_month < 1:
            errors.append(f"project_types.{pt.value}.songs_per_month must be >= 1")

    s = balance.streaming
    for name in ("launch_decay", "catalog_decay"):
        if not 0.0 < getattr(s, name) <= 1.0:
            errors.append(f"streaming.{name} must be in (0, 1]")
    if s.saturation <= 0 or s.peak <= 0:
        errors.append("streaming.peak and streaming.saturation must be positive")
    lo, hi = s.release_variance
    if lo > hi or lo <= 0:
        errors.append("streaming.release_variance must be a positive (lo, hi) range")

    if balance.popularity.base_threshold <= 0 or balance.popularity.saturation_point <= 0:
        errors.append("popularity thresholds must be positive")

    for name in ("revenue", "marketing_cost"):
        table = getattr(balance.seasons, name)
        if any(table.get(q, 0.0) <= 0 for q in ("q1", "q2", "q3", "q4")):
            errors.append(f"seasons.{name} needs a positive multiplier for q1..q4")

    pr = balance.press
    if pr.max_pickups < 0 or not 0.0 <= pr.max_chance <= 1.0:
        errors.append("press.max_pickups must be >= 0 and press.max_chance in [0, 1]")

    if not 0.0 <= balance.release.lead_single_marketing_share <= 1.0:
        errors.append("release.lead_single_marketing_share must be in [0, 1]")

    ch = balance.charts
    if ch.competitors < 0 or ch.size < 1:
        errors.append("charts.size must be positive and charts.competitors non-negative")
    top, bottom = ch.competitor_streams
    if bottom <= 0 or top < bottom:
        errors.append("charts.competitor_streams must be a positive (top, bottom) pair")
    lo, hi = ch.competitor_variance
    if lo > hi or lo <= 0:
        errors.append("charts.competitor_variance must be a positive (lo, hi) range")

    if errors:
        raise ValidationError("Invalid balance config", errors)


def load_balance(path: str) -> BalanceConfig:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    balance = build_balance(raw)
    logger.info("Loaded balance config %s from %s", balance.version, path)
    return balance


# --- Locate data file (inside the package) ---
_PACKAGE_ROOT = os.path.abspath(os.path.dirname(__file__))
_BALANCE_PATH = os.environ.get(
    "HITMAKER_BALANCE_PATH", os.path.join(_PACKAGE_ROOT, "data", "balance.json"))

BALANCE: BalanceConfig
try:
    BALANCE = load_balance(_BALANCE_PATH)
except FileNotFoundError:
    logger.warning("No balance file at %s, using built-in defaults", _BALANCE_PATH)
    BALANCE = build_balance()


def get_balance() -> BalanceConfig:
    return BALANCE
