# hitmaker/lifecycle.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set

from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.errors import InvalidTransitionError
from hitmaker.label import change_reputation
from hitmaker.models import (
    LabelState,
    MonthlySummary,
    Project,
    ProjectStage,
    Release,
    ReleaseKind,
    ReleaseStatus,
    Song,
)
from hitmaker.press import cover_release
from hitmaker.rng import TurnRng
from hitmaker.streaming import initial_streams

logger = logging.getLogger(__name__)

# Forward only; RELEASED is terminal. Cancellation would add a CANCELLED target here.
VALID_TRANSITIONS: Dict[ProjectStage, Set[ProjectStage]] = {
    ProjectStage.PLANNING: {ProjectStage.PRODUCTION},
    ProjectStage.PRODUCTION: {ProjectStage.MARKETING},
    ProjectStage.MARKETING: {ProjectStage.RELEASED},
    ProjectStage.RELEASED: set(),
}


def can_transition(current: ProjectStage, to: ProjectStage) -> bool:
    return ProjectStage(to) in VALID_TRANSITIONS.get(ProjectStage(current), set())


def transition(project: Project, to: ProjectStage, month: int, summary: Optional[MonthlySummary] = None) -> None:
    if not can_transition(project.stage, to):
        raise InvalidTransitionError(project.id, ProjectStage(project.stage).value, ProjectStage(to).value)

    previous = ProjectStage(project.stage)
    project.stage = ProjectStage(to)
    if to is ProjectStage.PRODUCTION:
        project.production_start_month = month
    elif to is ProjectStage.MARKETING:
        project.marketing_start_month = month
        project.marketing_months = 0

    logger.info("Project %s: %s -> %s (month %d)", project.id, previous.value, project.stage.value, month)
    if summary is not None:
        summary.add(
            "project_stage",
            f'"{project.title}" moved to {project.stage.value}',
            project_id=project.id,
            artist_id=project.artist_id,
        )


def ready_for_marketing(project: Project, month: int, balance: Optional[BalanceConfig] = None) -> bool:
    balance = balance or get_balance()
    if project.songs_created < project.song_count:
        return False
    started = project.production_start_month if project.production_start_month is not None else month
    return month - started >= balance.time(project.time_investment).min_months


def ready_for_release(project: Project, month: int, requested: bool) -> bool:
    if project.due_month is not None and month >= project.due_month:
        return True
    if requested and project.marketing_months >= 1:
        return True
    # with no release date the label ships after a single marketing month
    return project.due_month is None and project.marketing_months >= 1


def unreleased_songs(state: LabelState, project: Project) -> List[Song]:
    return [
        s for s in state.songs.values()
        if s.project_id == project.id and s.is_recorded and not s.is_released
    ]


def release_marketing(project: Project, kind: ReleaseKind, balance: Optional[BalanceConfig] = None) -> int:
    """
    The part of the project marketing budget spent on one release.

    A lead single takes its share up front and the full release gets the
    rest; without a lead single the full release gets everything.
    """
    balance = balance or get_balance()
    share = balance.release.lead_single_marketing_share
    if kind is ReleaseKind.LEAD_SINGLE:
        return int(round(project.marketing_budget * share))
    if project.lead_single_released:
        return project.marketing_budget - int(round(project.marketing_budget * share))
    return project.marketing_budget


def release_songs(
    state: LabelState,
    project: Project,
    songs: List[Song],
    kind: ReleaseKind,
    rng: TurnRng,
    summary: MonthlySummary,
    balance: Optional[BalanceConfig] = None,
) -> Release:
    """
    Put `songs` out as one release and seed their launch streams.

    Launch streams get a small random swing; the rest of the streaming
    month is handled by the streaming pass.
    """
    balance = balance or get_balance()
    game = state.game
    artist = state.artists.get(project.artist_id)
    popularity = artist.popularity if artist is not None else 0.0
    lo, hi = balance.streaming.release_variance

    title = project.title if kind is ReleaseKind.FULL else f"{songs[0].title} (lead single)"
    release = Release(
        id=game.next_id("release"),
        artist_id=project.artist_id,
        project_id=project.id,
        title=title,
        kind=kind,
        release_month=game.current_month,
        marketing_budget=release_marketing(project, kind, balance),
    )

    for song in songs:
        base = initial_streams(
            quality=song.quality,
            popularity=popularity,
            playlist_access=game.playlist_access,
            reputation=game.reputation,
            marketing_spend=release.marketing_budget,
            month=game.current_month,
            balance=balance,
        )
        song.initial_streams = max(0, int(round(base * rng.uniform(lo, hi))))
        song.weekly_streams = 0
        song.is_released = True
        song.release_month = game.current_month
        song.release_id = release.id
        release.song_ids.append(song.id)

    release.status = ReleaseStatus.RELEASED
    state.releases[release.id] = release

    summary.add(
        "release",
        f'Released "{release.title}" ({len(songs)} song{"s" if len(songs) != 1 else ""})',
        amount=len(songs),
        artist_id=project.artist_id,
        project_id=project.id,
    )

    if kind is ReleaseKind.FULL:
        avg = sum(s.quality for s in songs) / len(songs) if songs else 0.0
        if avg >= balance.release.reputation_quality:
            change_reputation(state, balance.release.reputation_gain, summary, source="release")
        cover_release(state, release, avg, rng, summary, balance)
    return release


def release_lead_single(
    state: LabelState,
    project: Project,
    rng: TurnRng,
    summary: MonthlySummary,
    balance: Optional[BalanceConfig] = None,
) -> Optional[Release]:
    songs = unreleased_songs(state, project)
    if len(songs) < 2:
        return None
    release = release_songs(state, project, songs[:1], ReleaseKind.LEAD_SINGLE, rng, summary, balance)
    project.lead_single_released = True
    return release


def release_project(
    state: LabelState,
    project: Project,
    rng: TurnRng,
    summary: MonthlySummary,
    balance: Optional[BalanceConfig] = None,
) -> Release:
    songs = unreleased_songs(state, project)
    transition(project, ProjectStage.RELEASED, state.game.current_month, summary)
    release = release_songs(state, project, songs, ReleaseKind.FULL, rng, summary, balance)
    project.release_id = release.id
    return release


def advance_projects(
    state: LabelState,
    rng: TurnRng,
    summary: MonthlySummary,
    release_requests: Iterable[str] = (),
    balance: Optional[BalanceConfig] = None,
) -> List[Release]:
    """
    Move every project at most one stage forward for the current month.

    Returns the releases (lead singles included) that happened.
    """
    balance = balance or get_balance()
    month = state.game.current_month
    requested = set(release_requests)
    releases: List[Release] = []

    for project in state.projects.values():
        stage = ProjectStage(project.stage)

        if stage is ProjectStage.PLANNING:
            if month > project.start_month:
                transition(project, ProjectStage.PRODUCTION, month, summary)

        elif stage is ProjectStage.PRODUCTION:
            if ready_for_marketing(project, month, balance):
                transition(project, ProjectStage.MARKETING, month, summary)

        elif stage is ProjectStage.MARKETING:
            project.marketing_months += 1
            if (project.lead_single_month is not None and not project.lead_single_released
                    and month >= project.lead_single_month):
                single = release_lead_single(state, project, rng, summary, balance)
                if single is not None:
                    releases.append(single)
            if ready_for_release(project, month, project.id in requested):
                releases.append(release_project(state, project, rng, summary, balance))

    return releases
