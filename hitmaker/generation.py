# hitmaker/generation.py
from __future__ import annotations

from typing import List, Optional

from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.models import Project, Song
from hitmaker.quality import calculate_quality, clamp
from hitmaker.rng import TurnRng

TITLE_OPENERS = [
    "Midnight", "Golden", "Broken", "Electric", "Velvet", "Neon", "Silent",
    "Paper", "Wild", "Crystal", "Lonely", "Burning", "Sugar", "Northern",
]
TITLE_NOUNS = [
    "Hearts", "Highway", "Summer", "Signals", "Echoes", "Daydream", "Skyline",
    "Motel", "Fever", "Tides", "Letters", "Satellites", "Static", "Parade",
]


def song_title(rng: TurnRng) -> str:
    return f"{rng.pick(TITLE_OPENERS)} {rng.pick(TITLE_NOUNS)}"


def song_quality(
    rng: TurnRng,
    project: Project,
    artist_mood: float,
    balance: Optional[BalanceConfig] = None,
) -> float:
    """
    Project quality for the artist's current mood, plus a small per-song
    swing of +/- song_variance.
    """
    balance = balance or get_balance()
    rules = balance.quality
    base = calculate_quality(
        producer_tier=project.producer_tier,
        time_investment=project.time_investment,
        budget_per_song=project.budget_per_song,
        song_count=project.song_count,
        artist_mood=artist_mood,
        project_type=project.type,
        balance=balance,
    )
    swing = rng.uniform(-rules.song_variance, rules.song_variance)
    return round(clamp(base + swing, rules.minimum, rules.maximum), 1)


def record_songs(
    rng: TurnRng,
    project: Project,
    artist_mood: float,
    song_ids: List[str],
    month: int,
    balance: Optional[BalanceConfig] = None,
) -> List[Song]:
    """
    Record one recording milestone of `project`: one song per id handed in.

    Updates the project's song count, running quality average and spend.
    """
    balance = balance or get_balance()
    per_song_cost = project.budget // max(1, project.song_count)

    songs: List[Song] = []
    for song_id in song_ids:
        quality = song_quality(rng, project, artist_mood, balance)
        songs.append(Song(
            id=song_id,
            title=song_title(rng),
            artist_id=project.artist_id,
            project_id=project.id,
            quality=quality,
            is_recorded=True,
            recorded_month=month,
        ))

        done = project.songs_created
        project.quality = round((project.quality * done + quality) / (done + 1), 1)
        project.songs_created = done + 1
        project.budget_used = min(project.budget, project.budget_used + per_song_cost)

    if project.songs_created >= project.song_count:
        project.budget_used = project.budget
    return songs


def songs_due(project: Project, balance: Optional[BalanceConfig] = None) -> int:
    """How many songs the project records this month."""
    balance = balance or get_balance()
    per_month = balance.project_type(project.type).songs_per_month
    return max(0, min(per_month, project.song_count - project.songs_created))
