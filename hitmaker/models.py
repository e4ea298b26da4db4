# hitmaker/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union


class Archetype(str, Enum):
    VISIONARY = "Visionary"
    WORKHORSE = "Workhorse"
    TRENDSETTER = "Trendsetter"


class ProducerTier(str, Enum):
    LOCAL = "local"
    REGIONAL = "regional"
    NATIONAL = "national"
    LEGENDARY = "legendary"


class TimeInvestment(str, Enum):
    RUSHED = "rushed"
    STANDARD = "standard"
    EXTENDED = "extended"
    PERFECTIONIST = "perfectionist"


class ProjectType(str, Enum):
    SINGLE = "single"
    EP = "ep"


class ProjectStage(str, Enum):
    """Forward-only recording project stages; RELEASED is terminal."""
    PLANNING = "planning"
    PRODUCTION = "production"
    MARKETING = "marketing"
    RELEASED = "released"


class TargetScope(str, Enum):
    GLOBAL = "global"
    PREDETERMINED = "predetermined"
    USER_SELECTED = "user_selected"


class EffectType(str, Enum):
    MONEY = "money"
    REPUTATION = "reputation"
    CREATIVE_CAPITAL = "creative_capital"
    ARTIST_MOOD = "artist_mood"
    ARTIST_LOYALTY = "artist_loyalty"
    ARTIST_POPULARITY = "artist_popularity"


ARTIST_EFFECTS = (
    EffectType.ARTIST_MOOD,
    EffectType.ARTIST_LOYALTY,
    EffectType.ARTIST_POPULARITY,
)


class ReleaseKind(str, Enum):
    LEAD_SINGLE = "lead_single"
    FULL = "full"


class ReleaseStatus(str, Enum):
    PLANNED = "planned"
    RELEASED = "released"


@dataclass
class Artist:
    id: str
    name: str
    archetype: Archetype

    # all 0..100
    mood: float = 50.0
    loyalty: float = 50.0
    popularity: float = 10.0

    signing_cost: int = 0
    monthly_cost: int = 0
    signed_month: int = 0


@dataclass
class Project:
    id: str
    artist_id: str
    title: str
    type: ProjectType
    producer_tier: ProducerTier
    time_investment: TimeInvestment

    budget_per_song: int
    song_count: int
    budget: int                 # total committed cost
    budget_used: int = 0

    stage: ProjectStage = ProjectStage.PLANNING
    quality: float = 0.0        # running average of recorded songs
    songs_created: int = 0

    start_month: int = 0
    production_start_month: Optional[int] = None
    marketing_start_month: Optional[int] = None
    due_month: Optional[int] = None
    marketing_budget: int = 0
    marketing_months: int = 0
    lead_single_month: Optional[int] = None
    lead_single_released: bool = False
    release_id: Optional[str] = None


@dataclass
class Song:
    id: str
    title: str
    artist_id: str
    project_id: str
    quality: float

    release_id: Optional[str] = None
    is_recorded: bool = True
    is_released: bool = False
    recorded_month: int = 0
    release_month: Optional[int] = None

    # streaming
    initial_streams: int = 0
    weekly_streams: int = 0     # streams in the most recent period
    total_streams: int = 0
    total_revenue: int = 0
    last_period_revenue: int = 0

    # chart
    current_position: Optional[int] = None
    peak_position: Optional[int] = None
    weeks_on_chart: int = 0
    movement: int = 0
    is_debut: bool = False


@dataclass
class Release:
    id: str
    artist_id: str
    project_id: str
    title: str
    kind: ReleaseKind
    song_ids: List[str] = field(default_factory=list)
    release_month: Optional[int] = None
    marketing_budget: int = 0
    status: ReleaseStatus = ReleaseStatus.PLANNED
    press_pickups: int = 0


@dataclass(frozen=True)
class ChartEntry:
    song_id: str
    position: int
    streams: int
    movement: int
    is_debut: bool
    title: str = ""
    artist_id: str = ""
    is_competitor: bool = False


@dataclass(frozen=True)
class ChartSnapshot:
    """One month's ranking. Never mutated once appended to history."""
    month: int
    entries: tuple = ()


@dataclass
class ScheduledEffect:
    """A delayed meeting effect, keyed by (trigger_month, target, effect_type)."""
    trigger_month: int
    effect_type: EffectType
    delta: float
    target_artist_id: Optional[str] = None   # None = every signed artist
    meeting_id: str = ""
    choice_id: str = ""


@dataclass
class MonthlyStats:
    revenue: int = 0
    expenses: int = 0
    streams: int = 0
    reputation_change: float = 0.0


@dataclass
class GameState:
    id: str
    rng_seed: int

    current_month: int = 0
    money: int = 0
    reputation: float = 0.0
    creative_capital: float = 0.0

    focus_slots: int = 3
    used_focus_slots: int = 0

    playlist_access: str = "none"
    press_access: str = "none"
    unlocked_producer_tiers: List[str] = field(default_factory=lambda: ["local"])

    allow_negative_money: bool = False
    campaign_completed: bool = False

    rng_counter: int = 0
    id_counter: int = 0

    monthly_stats: Dict[str, MonthlyStats] = field(default_factory=dict)
    scheduled_effects: List[ScheduledEffect] = field(default_factory=list)

    def next_id(self, prefix: str) -> str:
        self.id_counter += 1
        return f"{prefix}_{self.id_counter:05d}"


@dataclass
class LabelState:
    """Everything one turn reads and writes for a single game."""
    game: GameState
    artists: Dict[str, Artist] = field(default_factory=dict)
    projects: Dict[str, Project] = field(default_factory=dict)
    songs: Dict[str, Song] = field(default_factory=dict)
    releases: Dict[str, Release] = field(default_factory=dict)
    charts: List[ChartSnapshot] = field(default_factory=list)


@dataclass
class ChangeEvent:
    type: str
    description: str
    amount: float = 0.0
    artist_id: Optional[str] = None
    project_id: Optional[str] = None
    song_id: Optional[str] = None
    source: str = ""


@dataclass
class MonthlySummary:
    """Ordered audit trail of one month. Consumed only by presentation."""
    month: int
    changes: List[ChangeEvent] = field(default_factory=list)
    revenue: int = 0
    expenses: int = 0
    streams: int = 0
    reputation_change: float = 0.0

    def add(self, type: str, description: str, **kwargs) -> ChangeEvent:
        event = ChangeEvent(type=type, description=description, **kwargs)
        self.changes.append(event)
        return event


@dataclass
class CampaignResults:
    final_score: int
    score_breakdown: Dict[str, int]
    victory_type: str
    summary: str
    achievements: List[str] = field(default_factory=list)
    campaign_completed: bool = True


# --- Action descriptors (already resolved by the meeting workflow / UI) ---

@dataclass(frozen=True)
class MeetingAction:
    role_id: str
    meeting_id: str
    choice_id: str
    target_artist_id: Optional[str] = None


@dataclass(frozen=True)
class StartProjectAction:
    artist_id: str
    title: str
    project_type: ProjectType
    producer_tier: ProducerTier
    time_investment: TimeInvestment
    budget_per_song: int
    song_count: int
    due_month: Optional[int] = None
    marketing_budget: int = 0
    lead_single_month: Optional[int] = None


@dataclass(frozen=True)
class ReleaseProjectAction:
    project_id: str


@dataclass(frozen=True)
class MarketSongAction:
    song_id: str
    amount: int


@dataclass(frozen=True)
class SignArtistAction:
    name: str
    archetype: Archetype
    signing_cost: int
    monthly_cost: int
    mood: float = 50.0
    loyalty: float = 50.0
    popularity: float = 10.0


@dataclass(frozen=True)
class DropArtistAction:
    artist_id: str


Action = Union[
    MeetingAction,
    StartProjectAction,
    ReleaseProjectAction,
    MarketSongAction,
    SignArtistAction,
    DropArtistAction,
]
