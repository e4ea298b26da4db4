# hitmaker/charts.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.generation import TITLE_NOUNS, TITLE_OPENERS
from hitmaker.label import change_reputation
from hitmaker.models import ChartEntry, ChartSnapshot, LabelState, MonthlySummary, Song
from hitmaker.rng import TurnRng

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Competitor:
    """A song from outside the label. Only its monthly streams change."""
    id: str
    title: str
    base_streams: float


def competitor_field(balance: Optional[BalanceConfig] = None) -> List[Competitor]:
    """
    The industry the label charts against, strongest first.

    Base streams fall geometrically from the top of the field to the bottom.
    """
    balance = balance or get_balance()
    rules = balance.charts
    n = rules.competitors
    top, bottom = rules.competitor_streams
    field = []
    for i in range(n):
        base = top if n == 1 else top * (bottom / top) ** (i / (n - 1))
        opener = TITLE_OPENERS[i % len(TITLE_OPENERS)]
        noun = TITLE_NOUNS[(i // len(TITLE_OPENERS) + i) % len(TITLE_NOUNS)]
        field.append(Competitor(id=f"comp_{i + 1:03d}", title=f"{opener} {noun}", base_streams=base))
    return field


def competitor_streams(
    rng: TurnRng,
    field: Sequence[Competitor],
    balance: Optional[BalanceConfig] = None,
) -> List[Tuple[Competitor, int]]:
    """One draw per competitor, in field order."""
    balance = balance or get_balance()
    lo, hi = balance.charts.competitor_variance
    return [(c, max(1, int(round(c.base_streams * rng.uniform(lo, hi))))) for c in field]


def eligible(song: Song) -> bool:
    return song.is_released and song.weekly_streams > 0


def rank_songs(songs: List[Song], size: int) -> List[Song]:
    """Streams descending, song id ascending on ties."""
    ranked = sorted((s for s in songs if eligible(s)), key=lambda s: (-s.weekly_streams, s.id))
    return ranked[:size]


def build_chart(
    songs: Dict[str, Song],
    month: int,
    balance: Optional[BalanceConfig] = None,
    competitors: Sequence[Tuple[Competitor, int]] = (),
) -> ChartSnapshot:
    """
    Rank this month's songs against the competitor field and update each
    label song's chart fields in place.

    Songs that fall off the chart lose their current position but keep
    their peak and week count.
    """
    balance = balance or get_balance()
    size = balance.charts.size

    rows = [(song.weekly_streams, song.id, song) for song in rank_songs(list(songs.values()), size)]
    rows += [(streams, comp.id, comp) for comp, streams in competitors]
    rows.sort(key=lambda row: (-row[0], row[1]))
    rows = rows[:size]

    entries = []
    on_chart = set()
    for position, (streams, entry_id, item) in enumerate(rows, start=1):
        if isinstance(item, Competitor):
            entries.append(ChartEntry(song_id=entry_id, position=position, streams=streams,
                                      movement=0, is_debut=False, title=item.title, is_competitor=True))
            continue

        song = item
        on_chart.add(song.id)
        previous = song.current_position
        debut = song.peak_position is None
        movement = 0 if previous is None else previous - position

        song.current_position = position
        song.peak_position = position if debut else min(song.peak_position, position)
        song.weeks_on_chart += 1
        song.movement = movement
        song.is_debut = debut

        entries.append(ChartEntry(
            song_id=song.id,
            position=position,
            streams=streams,
            movement=movement,
            is_debut=debut,
            title=song.title,
            artist_id=song.artist_id,
        ))

    for song in songs.values():
        if song.id not in on_chart:
            song.current_position = None
            song.movement = 0
            song.is_debut = False

    return ChartSnapshot(month=month, entries=tuple(entries))


def update_charts(
    state: LabelState,
    rng: TurnRng,
    summary: MonthlySummary,
    balance: Optional[BalanceConfig] = None,
) -> ChartSnapshot:
    """Build and append this month's chart; pays reputation for strong debuts."""
    balance = balance or get_balance()
    rules = balance.charts
    game = state.game

    field = competitor_streams(rng, competitor_field(balance), balance)
    snapshot = build_chart(state.songs, game.current_month, balance, field)
    state.charts.append(snapshot)

    for entry in snapshot.entries:
        if entry.is_competitor or not entry.is_debut or entry.position > 10:
            continue
        song = state.songs[entry.song_id]
        if entry.position == 1:
            gain = rules.number_one_debut_reputation
            label = "debuted at #1"
        else:
            gain = rules.top10_debut_reputation
            label = f"debuted at #{entry.position}"
        summary.add("chart", f'"{song.title}" {label}', amount=entry.position,
                    artist_id=song.artist_id, song_id=song.id)
        change_reputation(state, gain, summary, source="chart_debut")

    logger.info("Month %d chart: %d entries, %d from the label", game.current_month,
                len(snapshot.entries), sum(1 for e in snapshot.entries if not e.is_competitor))
    return snapshot


def top10(history: List[ChartSnapshot], month: Optional[int] = None) -> List[ChartEntry]:
    """Top ten of the latest snapshot, or of `month` if given."""
    if not history:
        return []
    if month is None:
        return list(history[-1].entries[:10])
    for snap in reversed(history):
        if snap.month == month:
            return list(snap.entries[:10])
    return []
