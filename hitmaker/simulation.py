# hitmaker/simulation.py
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from hitmaker.artists import (
    apply_artist_effect,
    apply_delta,
    apply_stream_popularity,
    monthly_mood_update,
    resolve_targets,
)
from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.charts import update_charts
from hitmaker.cost import calculate_project_cost, validate_project
from hitmaker.errors import CampaignCompletedError, MissingTargetError, ValidationError
from hitmaker.generation import record_songs, songs_due
from hitmaker.label import apply_unlocks, change_creative_capital, change_money, change_reputation
from hitmaker.lifecycle import advance_projects
from hitmaker.meetings import MEETINGS, Meeting, resolve_choice
from hitmaker.models import (
    ARTIST_EFFECTS,
    Action,
    Archetype,
    Artist,
    CampaignResults,
    DropArtistAction,
    EffectType,
    GameState,
    LabelState,
    MarketSongAction,
    MeetingAction,
    MonthlyStats,
    MonthlySummary,
    Project,
    ProjectStage,
    ReleaseKind,
    ReleaseProjectAction,
    ScheduledEffect,
    SignArtistAction,
    StartProjectAction,
    TargetScope,
)
from hitmaker.rng import TurnRng
from hitmaker.scoring import campaign_results
from hitmaker.streaming import advance_song, marketing_boost, marketing_cost

logger = logging.getLogger(__name__)


@dataclass
class TurnOutcome:
    state: LabelState
    summary: MonthlySummary
    campaign_results: Optional[CampaignResults] = None


def new_game(
    game_id: str,
    rng_seed: int,
    *,
    allow_negative_money: bool = False,
    balance: Optional[BalanceConfig] = None,
) -> LabelState:
    balance = balance or get_balance()
    c = balance.campaign
    game = GameState(
        id=game_id,
        rng_seed=int(rng_seed),
        money=c.starting_money,
        reputation=c.starting_reputation,
        creative_capital=c.starting_creative_capital,
        focus_slots=c.starting_focus_slots,
        allow_negative_money=allow_negative_money,
    )
    state = LabelState(game=game)
    # starting tiers follow starting reputation, without announcing anything
    apply_unlocks(state, MonthlySummary(month=0), balance)
    return state


# --- Validation (step 0, no mutation) ---

def validate_actions(
    state: LabelState,
    actions: Sequence[Action],
    balance: Optional[BalanceConfig] = None,
    catalog: Optional[Mapping[str, Meeting]] = None,
) -> None:
    """
    Check a whole month of actions against the current state.

    Actions are checked in order against a running balance and roster, the
    same order apply_actions will run them in. Raises ValidationError
    listing every problem found. Nothing is mutated.
    """
    balance = balance or get_balance()
    game = state.game
    month = game.current_month + 1
    errors: List[str] = []
    money = game.money
    roster = set(state.artists)

    def spend(amount: int, what: str) -> None:
        nonlocal money
        if not game.allow_negative_money and amount > money:
            errors.append(f"Insufficient funds for {what}: needs ${amount:,}, label has ${money:,}")
        money -= amount

    def signed(artist_id: Optional[str]) -> bool:
        if artist_id in roster:
            return True
        errors.append(f"Artist {artist_id} is not signed to the label")
        return False

    meetings = [a for a in actions if isinstance(a, MeetingAction)]
    if len(meetings) > game.focus_slots:
        errors.append(f"{len(meetings)} meetings scheduled but only {game.focus_slots} focus slots")

    for action in actions:
        if isinstance(action, MeetingAction):
            try:
                meeting, choice = resolve_choice(action, catalog)
            except ValidationError as e:
                errors.extend(e.errors)
                continue
            if meeting.target_scope is TargetScope.USER_SELECTED:
                signed(action.target_artist_id)
            for effect, delta in choice.immediate:
                if effect is not EffectType.MONEY:
                    continue
                if delta < 0:
                    spend(int(-delta), f"meeting {meeting.id}/{choice.id}")
                else:
                    money += int(delta)

        elif isinstance(action, StartProjectAction):
            if not signed(action.artist_id):
                continue
            # funds are checked below against the running balance
            unlimited = copy.copy(game)
            unlimited.allow_negative_money = True
            try:
                breakdown = validate_project(action, unlimited, balance=balance)
            except ValidationError as e:
                errors.extend(e.errors)
                continue
            spend(breakdown.total_cost + marketing_cost(action.marketing_budget, month, balance),
                  f'project "{action.title}"')

        elif isinstance(action, ReleaseProjectAction):
            project = state.projects.get(action.project_id)
            if project is None:
                errors.append(f"Project {action.project_id} not found")
            elif project.stage != ProjectStage.MARKETING:
                errors.append(f"Project {action.project_id} is in {ProjectStage(project.stage).value}, not marketing")

        elif isinstance(action, MarketSongAction):
            song = state.songs.get(action.song_id)
            if song is None:
                errors.append(f"Song {action.song_id} not found")
            elif not song.is_released:
                errors.append(f"Song {action.song_id} has not been released")
            if action.amount <= 0:
                errors.append("Marketing spend must be positive")
            else:
                spend(marketing_cost(action.amount, month, balance), f"marketing {action.song_id}")

        elif isinstance(action, SignArtistAction):
            if not action.name.strip():
                errors.append("Artist name cannot be empty")
            try:
                Archetype(action.archetype)
            except ValueError:
                errors.append(f"Unknown archetype: {action.archetype}")
            if action.signing_cost < 0 or action.monthly_cost < 0:
                errors.append("Artist costs cannot be negative")
            else:
                spend(action.signing_cost, f"signing {action.name}")

        elif isinstance(action, DropArtistAction):
            if signed(action.artist_id):
                roster.discard(action.artist_id)

        else:
            errors.append(f"Unsupported action: {type(action).__name__}")

    if errors:
        raise ValidationError(errors[0], errors)


# --- Step 1 ---

def apply_label_effect(
    state: LabelState,
    effect: EffectType,
    delta: float,
    summary: MonthlySummary,
    source: str,
) -> None:
    if effect is EffectType.MONEY:
        change_money(state, int(delta), summary, source=source)
    elif effect is EffectType.REPUTATION:
        change_reputation(state, delta, summary, source=source)
    elif effect is EffectType.CREATIVE_CAPITAL:
        change_creative_capital(state, delta, summary, source=source)


def apply_meeting(
    state: LabelState,
    action: MeetingAction,
    rng: TurnRng,
    summary: MonthlySummary,
    catalog: Optional[Mapping[str, Meeting]] = None,
) -> None:
    meeting, choice = resolve_choice(action, catalog)
    game = state.game
    source = f"{meeting.id}/{choice.id}"
    summary.add("meeting", f"{meeting.role_id}: {choice.label}", source=source,
                artist_id=action.target_artist_id)

    targets: List[str] = []
    needs_targets = any(e in ARTIST_EFFECTS for e, _ in choice.immediate + choice.delayed)
    if needs_targets:
        try:
            targets = resolve_targets(
                meeting.target_scope,
                list(state.artists.values()),
                action.target_artist_id,
                rng,
            )
        except MissingTargetError as e:
            logger.warning("Meeting %s: %s; artist effects skipped", source, e)
            summary.add("effect_skipped", str(e), artist_id=e.artist_id, source=source)

    for effect, delta in choice.immediate:
        if effect in ARTIST_EFFECTS:
            apply_artist_effect(state.artists, effect, delta, targets, summary, source=source)
        else:
            apply_label_effect(state, effect, delta, summary, source)

    for effect, delta in choice.delayed:
        if effect in ARTIST_EFFECTS:
            if meeting.target_scope is TargetScope.GLOBAL:
                scheduled: List[Optional[str]] = [None]
            else:
                scheduled = list(targets)
        else:
            scheduled = [None]
        for artist_id in scheduled:
            game.scheduled_effects.append(ScheduledEffect(
                trigger_month=game.current_month + 1,
                effect_type=effect,
                delta=delta,
                target_artist_id=artist_id,
                meeting_id=meeting.id,
                choice_id=choice.id,
            ))


def start_project(
    state: LabelState,
    action: StartProjectAction,
    summary: MonthlySummary,
    balance: BalanceConfig,
) -> Project:
    game = state.game
    breakdown = calculate_project_cost(
        action.budget_per_song, action.song_count, action.producer_tier, action.time_investment, balance)
    project = Project(
        id=game.next_id("project"),
        artist_id=action.artist_id,
        title=action.title,
        type=action.project_type,
        producer_tier=action.producer_tier,
        time_investment=action.time_investment,
        budget_per_song=action.budget_per_song,
        song_count=action.song_count,
        budget=breakdown.total_cost,
        start_month=game.current_month,
        due_month=action.due_month,
        marketing_budget=action.marketing_budget,
        lead_single_month=action.lead_single_month,
    )
    state.projects[project.id] = project
    marketing = marketing_cost(action.marketing_budget, game.current_month, balance)
    change_money(state, -(breakdown.total_cost + marketing), summary,
                 description=f'Committed budget for "{project.title}"', source="project")
    summary.add("project_stage", f'"{project.title}" entered planning',
                project_id=project.id, artist_id=project.artist_id)
    logger.info("Game %s started project %s (%s)", game.id, project.id, project.title)
    return project


def sign_artist(state: LabelState, action: SignArtistAction, summary: MonthlySummary) -> Artist:
    game = state.game
    artist = Artist(
        id=game.next_id("artist"),
        name=action.name,
        archetype=Archetype(action.archetype),
        mood=max(0.0, min(100.0, action.mood)),
        loyalty=max(0.0, min(100.0, action.loyalty)),
        popularity=max(0.0, min(100.0, action.popularity)),
        signing_cost=action.signing_cost,
        monthly_cost=action.monthly_cost,
        signed_month=game.current_month,
    )
    state.artists[artist.id] = artist
    change_money(state, -action.signing_cost, summary,
                 description=f"Signed {artist.name}", source="signing")
    summary.add("signing", f"Signed {artist.name}", artist_id=artist.id)
    return artist


def apply_actions(
    state: LabelState,
    actions: Sequence[Action],
    rng: TurnRng,
    summary: MonthlySummary,
    balance: BalanceConfig,
    catalog: Optional[Mapping[str, Meeting]],
) -> Dict[str, object]:
    game = state.game
    release_requests: List[str] = []
    boosts: Dict[str, int] = {}
    game.used_focus_slots = 0

    for action in actions:
        if isinstance(action, MeetingAction):
            game.used_focus_slots += 1
            apply_meeting(state, action, rng, summary, catalog)
        elif isinstance(action, StartProjectAction):
            start_project(state, action, summary, balance)
        elif isinstance(action, SignArtistAction):
            sign_artist(state, action, summary)
        elif isinstance(action, DropArtistAction):
            artist = state.artists.pop(action.artist_id)
            summary.add("artist_dropped", f"Dropped {artist.name}", artist_id=artist.id)
        elif isinstance(action, MarketSongAction):
            song = state.songs[action.song_id]
            change_money(state, -marketing_cost(action.amount, game.current_month, balance), summary,
                         description=f'Marketing for "{song.title}"', source="marketing")
            boosts[song.id] = boosts.get(song.id, 0) + marketing_boost(action.amount, balance)
        elif isinstance(action, ReleaseProjectAction):
            release_requests.append(action.project_id)

    return {"release_requests": release_requests, "boosts": boosts}


# --- Steps 3 to 9 ---

def record_production(state: LabelState, rng: TurnRng, summary: MonthlySummary, balance: BalanceConfig) -> None:
    game = state.game
    for project in state.projects.values():
        if project.stage != ProjectStage.PRODUCTION:
            continue
        n = songs_due(project, balance)
        if n == 0:
            continue
        artist = state.artists.get(project.artist_id)
        mood = artist.mood if artist is not None else balance.mood.mood_baseline
        ids = [game.next_id("song") for _ in range(n)]
        for song in record_songs(rng, project, mood, ids, game.current_month, balance):
            state.songs[song.id] = song
            summary.add("song_recorded", f'Recorded "{song.title}" (quality {song.quality:g})',
                        amount=song.quality, song_id=song.id, project_id=project.id,
                        artist_id=project.artist_id)
        if project.songs_created >= project.song_count:
            summary.add("project_complete", f'"{project.title}" finished recording',
                        amount=project.quality, project_id=project.id, artist_id=project.artist_id)


def run_streaming(state: LabelState, boosts: Mapping[str, int], summary: MonthlySummary,
                  balance: BalanceConfig) -> None:
    month = state.game.current_month
    total_streams = 0
    total_revenue = 0
    for song in state.songs.values():
        if not song.is_released or song.release_month is None:
            continue
        streams, revenue = advance_song(song, month - song.release_month,
                                        boost=boosts.get(song.id, 0), balance=balance)
        total_streams += streams
        total_revenue += revenue

    summary.streams += total_streams
    if total_revenue:
        change_money(state, total_revenue, summary,
                     description=f"Streaming revenue from {total_streams:,} streams", source="streaming")


def update_artists(state: LabelState, summary: MonthlySummary, balance: BalanceConfig) -> None:
    month = state.game.current_month
    for artist in state.artists.values():
        streams = [s.weekly_streams for s in state.songs.values()
                   if s.artist_id == artist.id and s.is_released]
        apply_stream_popularity(artist, streams, summary, balance)
        active = sum(1 for p in state.projects.values()
                     if p.artist_id == artist.id and p.stage == ProjectStage.PRODUCTION)
        monthly_mood_update(artist, active, summary, balance)

    # release outcomes land after the monthly drift
    rules = balance.release
    for release in state.releases.values():
        if release.release_month != month or release.kind != ReleaseKind.FULL:
            continue
        artist = state.artists.get(release.artist_id)
        if artist is None or not release.song_ids:
            continue
        avg = sum(state.songs[sid].quality for sid in release.song_ids) / len(release.song_ids)
        if avg >= rules.hit_quality:
            apply_delta(artist, "mood", rules.hit_mood, summary, source="release")
        elif avg < rules.flop_quality:
            apply_delta(artist, "mood", rules.flop_mood, summary, source="release")


def apply_delayed_effects(state: LabelState, summary: MonthlySummary) -> int:
    """Fire every scheduled effect due this month and drop it from the queue."""
    game = state.game
    due = [e for e in game.scheduled_effects if e.trigger_month <= game.current_month]
    game.scheduled_effects = [e for e in game.scheduled_effects if e.trigger_month > game.current_month]

    for effect in due:
        source = f"{effect.meeting_id}/{effect.choice_id}"
        kind = EffectType(effect.effect_type)
        summary.add("delayed_effect", f"Delayed {kind.value} {effect.delta:+g} from {source}",
                    amount=effect.delta, artist_id=effect.target_artist_id, source=source)
        if kind in ARTIST_EFFECTS:
            targets = [effect.target_artist_id] if effect.target_artist_id else list(state.artists)
            apply_artist_effect(state.artists, kind, effect.delta, targets, summary, source=source)
        else:
            apply_label_effect(state, kind, effect.delta, summary, source)
    return len(due)


def pay_operating_costs(state: LabelState, summary: MonthlySummary, balance: BalanceConfig) -> int:
    burn = balance.campaign.monthly_operating_cost + sum(a.monthly_cost for a in state.artists.values())
    if burn <= 0:
        return 0
    return change_money(state, -burn, summary, description="Operating costs", source="operating_costs")


def advance_month(
    state: LabelState,
    actions: Sequence[Action] = (),
    rng_seed: Optional[int] = None,
    *,
    balance: Optional[BalanceConfig] = None,
    catalog: Optional[Mapping[str, Meeting]] = None,
) -> TurnOutcome:
    """
    Advance one label by one month.

    `state` is never mutated; the returned outcome holds a new state. The
    same state, actions and seed always give the same outcome.
    """
    balance = balance or get_balance()
    catalog = MEETINGS if catalog is None else catalog

    if state.game.campaign_completed:
        raise CampaignCompletedError(state.game.id)
    validate_actions(state, actions, balance, catalog)

    new = copy.deepcopy(state)
    game = new.game
    game.current_month += 1
    month = game.current_month
    seed = game.rng_seed if rng_seed is None else int(rng_seed)
    rng = TurnRng(seed, month)
    summary = MonthlySummary(month=month)
    logger.info("Game %s: advancing to month %d (%d actions)", game.id, month, len(actions))

    # 1. actions
    pending = apply_actions(new, actions, rng, summary, balance, catalog)

    # 2. lifecycle and releases
    advance_projects(new, rng, summary, pending["release_requests"], balance)

    # 3. recording
    record_production(new, rng, summary, balance)

    # 4. streaming and revenue
    run_streaming(new, pending["boosts"], summary, balance)

    # 5. popularity, release outcomes, drift
    update_artists(new, summary, balance)

    # 6. charts
    update_charts(new, rng, summary, balance)

    # 7. delayed effects
    apply_delayed_effects(new, summary)

    # 8. burn and unlocks
    pay_operating_costs(new, summary, balance)
    apply_unlocks(new, summary, balance)

    # 9. stats and completion
    game.monthly_stats[str(month)] = MonthlyStats(
        revenue=summary.revenue,
        expenses=summary.expenses,
        streams=summary.streams,
        reputation_change=round(summary.reputation_change, 4),
    )
    game.rng_counter += rng.counter

    results = None
    if month >= balance.campaign.length_months:
        game.campaign_completed = True
        results = campaign_results(new)
        summary.add("campaign_complete", results.summary, amount=results.final_score)
        logger.info("Game %s campaign complete: %s (%d)", game.id, results.victory_type, results.final_score)

    return TurnOutcome(state=new, summary=summary, campaign_results=results)
