# hitmaker/schemas.py
from __future__ import annotations

from dataclasses import asdict
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from hitmaker.models import (
    Archetype,
    ChartEntry,
    DropArtistAction,
    MarketSongAction,
    MeetingAction,
    ProducerTier,
    ProjectType,
    ReleaseProjectAction,
    SignArtistAction,
    StartProjectAction,
    TimeInvestment,
)
from hitmaker.simulation import TurnOutcome


# --- Actions ---

class MeetingIn(BaseModel):
    type: Literal["meeting"] = "meeting"
    role_id: str
    meeting_id: str
    choice_id: str
    target_artist_id: Optional[str] = None

    def to_action(self) -> MeetingAction:
        return MeetingAction(
            role_id=self.role_id,
            meeting_id=self.meeting_id,
            choice_id=self.choice_id,
            target_artist_id=self.target_artist_id,
        )


class StartProjectIn(BaseModel):
    type: Literal["start_project"] = "start_project"
    artist_id: str
    title: str = Field(min_length=1, max_length=120)
    project_type: ProjectType
    producer_tier: ProducerTier = ProducerTier.LOCAL
    time_investment: TimeInvestment = TimeInvestment.STANDARD
    budget_per_song: int = Field(ge=0)
    song_count: int = Field(ge=1)
    due_month: Optional[int] = None
    marketing_budget: int = Field(default=0, ge=0)
    lead_single_month: Optional[int] = None

    def to_action(self) -> StartProjectAction:
        return StartProjectAction(
            artist_id=self.artist_id,
            title=self.title,
            project_type=self.project_type,
            producer_tier=self.producer_tier,
            time_investment=self.time_investment,
            budget_per_song=self.budget_per_song,
            song_count=self.song_count,
            due_month=self.due_month,
            marketing_budget=self.marketing_budget,
            lead_single_month=self.lead_single_month,
        )


class ReleaseProjectIn(BaseModel):
    type: Literal["release_project"] = "release_project"
    project_id: str

    def to_action(self) -> ReleaseProjectAction:
        return ReleaseProjectAction(project_id=self.project_id)


class MarketSongIn(BaseModel):
    type: Literal["market_song"] = "market_song"
    song_id: str
    amount: int = Field(gt=0)

    def to_action(self) -> MarketSongAction:
        return MarketSongAction(song_id=self.song_id, amount=self.amount)


class SignArtistIn(BaseModel):
    type: Literal["sign_artist"] = "sign_artist"
    name: str = Field(min_length=1, max_length=80)
    archetype: Archetype
    signing_cost: int = Field(default=0, ge=0)
    monthly_cost: int = Field(default=0, ge=0)
    mood: float = Field(default=50.0, ge=0, le=100)
    loyalty: float = Field(default=50.0, ge=0, le=100)
    popularity: float = Field(default=10.0, ge=0, le=100)

    def to_action(self) -> SignArtistAction:
        return SignArtistAction(
            name=self.name,
            archetype=self.archetype,
            signing_cost=self.signing_cost,
            monthly_cost=self.monthly_cost,
            mood=self.mood,
            loyalty=self.loyalty,
            popularity=self.popularity,
        )


class DropArtistIn(BaseModel):
    type: Literal["drop_artist"] = "drop_artist"
    artist_id: str

    def to_action(self) -> DropArtistAction:
        return DropArtistAction(artist_id=self.artist_id)


ActionIn = Annotated[
    Union[MeetingIn, StartProjectIn, ReleaseProjectIn, MarketSongIn, SignArtistIn, DropArtistIn],
    Field(discriminator="type"),
]


# --- Requests ---

class CreateGameRequest(BaseModel):
    seed: Optional[int] = None
    allow_negative_money: bool = False
    artists: List[SignArtistIn] = Field(default_factory=list)


class AdvanceRequest(BaseModel):
    actions: List[ActionIn] = Field(default_factory=list)


# --- Responses ---

class ChartEntryOut(BaseModel):
    song_id: str
    title: str
    artist_id: str
    position: int
    streams: int
    movement: int
    is_debut: bool
    is_competitor: bool = False


class Top10Response(BaseModel):
    game_id: str
    month: int
    entries: List[ChartEntryOut]


class AdvanceResponse(BaseModel):
    game_state: Dict[str, Any]
    summary: Dict[str, Any]
    campaign_results: Optional[Dict[str, Any]] = None


def advance_response(outcome: TurnOutcome, game_state: Dict[str, Any]) -> AdvanceResponse:
    results = outcome.campaign_results
    return AdvanceResponse(
        game_state=game_state,
        summary=asdict(outcome.summary),
        campaign_results=asdict(results) if results is not None else None,
    )


def chart_entry_out(entry: ChartEntry, title: str, artist_id: str) -> ChartEntryOut:
    return ChartEntryOut(
        song_id=entry.song_id,
        title=title,
        artist_id=artist_id,
        position=entry.position,
        streams=entry.streams,
        movement=entry.movement,
        is_debut=entry.is_debut,
        is_competitor=entry.is_competitor,
    )
