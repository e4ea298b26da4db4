# hitmaker/store.py
"""
Game storage.

Keeps persistence out of the turn engine: the engine only ever sees a
LabelState, stores turn it into JSON-safe dicts and back.
"""
from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Protocol, Union, runtime_checkable

from hitmaker.errors import GameNotFoundError, PersistenceError
from hitmaker.models import (
    Archetype,
    Artist,
    ChartEntry,
    ChartSnapshot,
    EffectType,
    GameState,
    LabelState,
    MonthlyStats,
    Project,
    ProjectStage,
    ProjectType,
    ProducerTier,
    Release,
    ReleaseKind,
    ReleaseStatus,
    ScheduledEffect,
    Song,
    TimeInvestment,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


# --- Serialization ---

def state_to_dict(state: LabelState) -> Dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "game": asdict(state.game),
        "artists": [asdict(a) for a in state.artists.values()],
        "projects": [asdict(p) for p in state.projects.values()],
        "songs": [asdict(s) for s in state.songs.values()],
        "releases": [asdict(r) for r in state.releases.values()],
        "charts": [
            {"month": snap.month, "entries": [asdict(e) for e in snap.entries]}
            for snap in state.charts
        ],
    }


def state_to_json(state: LabelState) -> str:
    return json.dumps(state_to_dict(state), sort_keys=True, separators=(",", ":"))


def _game_from_dict(d: Dict[str, Any]) -> GameState:
    d = dict(d)
    d["monthly_stats"] = {k: MonthlyStats(**v) for k, v in d.get("monthly_stats", {}).items()}
    d["scheduled_effects"] = [
        ScheduledEffect(**{**e, "effect_type": EffectType(e["effect_type"])})
        for e in d.get("scheduled_effects", [])
    ]
    d["unlocked_producer_tiers"] = list(d.get("unlocked_producer_tiers", ["local"]))
    return GameState(**d)


def _artist_from_dict(d: Dict[str, Any]) -> Artist:
    return Artist(**{**d, "archetype": Archetype(d["archetype"])})


def _project_from_dict(d: Dict[str, Any]) -> Project:
    return Project(**{
        **d,
        "type": ProjectType(d["type"]),
        "producer_tier": ProducerTier(d["producer_tier"]),
        "time_investment": TimeInvestment(d["time_investment"]),
        "stage": ProjectStage(d["stage"]),
    })


def _release_from_dict(d: Dict[str, Any]) -> Release:
    return Release(**{
        **d,
        "kind": ReleaseKind(d["kind"]),
        "status": ReleaseStatus(d["status"]),
        "song_ids": list(d.get("song_ids", [])),
    })


def state_from_dict(data: Dict[str, Any]) -> LabelState:
    version = data.get("schema_version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise PersistenceError(f"Unsupported save schema version {version}")

    artists = [_artist_from_dict(a) for a in data.get("artists", [])]
    projects = [_project_from_dict(p) for p in data.get("projects", [])]
    songs = [Song(**s) for s in data.get("songs", [])]
    releases = [_release_from_dict(r) for r in data.get("releases", [])]
    charts = [
        ChartSnapshot(month=c["month"], entries=tuple(ChartEntry(**e) for e in c.get("entries", [])))
        for c in data.get("charts", [])
    ]
    return LabelState(
        game=_game_from_dict(data["game"]),
        artists={a.id: a for a in artists},
        projects={p.id: p for p in projects},
        songs={s.id: s for s in songs},
        releases={r.id: r for r in releases},
        charts=charts,
    )


# --- Stores ---

@runtime_checkable
class GameStore(Protocol):
    """
    Storage interface the service talks to.

    Implementations:
    - JsonGameStore: one JSON file per game
    - MemoryGameStore: in-memory (tests, single process)
    """

    def load(self, game_id: str) -> LabelState:
        """Return the stored state. Raises GameNotFoundError."""
        ...

    def save(self, game_id: str, state: LabelState) -> None:
        """Persist atomically. Raises PersistenceError and keeps the old copy on failure."""
        ...

    def exists(self, game_id: str) -> bool:
        ...

    def delete(self, game_id: str) -> bool:
        ...

    def list_ids(self) -> List[str]:
        ...


class MemoryGameStore:
    """
    In-memory storage.

    Holds deep copies so callers can never reach into a stored game.
    """

    def __init__(self):
        self.games: Dict[str, LabelState] = {}

    def load(self, game_id: str) -> LabelState:
        if game_id not in self.games:
            raise GameNotFoundError(game_id)
        return copy.deepcopy(self.games[game_id])

    def save(self, game_id: str, state: LabelState) -> None:
        self.games[game_id] = copy.deepcopy(state)

    def exists(self, game_id: str) -> bool:
        return game_id in self.games

    def delete(self, game_id: str) -> bool:
        return self.games.pop(game_id, None) is not None

    def list_ids(self) -> List[str]:
        return sorted(self.games)


class JsonGameStore:
    """
    One `<game_id>.json` per game.

    Saves go to a temp file in the same directory and are swapped in with
    os.replace, so a crash mid-write never leaves a half-written save.
    """

    def __init__(self, games_dir: Union[Path, str] = "games"):
        self.games_dir = Path(games_dir)
        self.games_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, game_id: str) -> Path:
        if not game_id or "/" in game_id or "\\" in game_id or game_id.startswith("."):
            raise GameNotFoundError(game_id)
        return self.games_dir / f"{game_id}.json"

    def load(self, game_id: str) -> LabelState:
        path = self._path(game_id)
        if not path.exists():
            raise GameNotFoundError(game_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Could not read game {game_id}: {e}") from e
        try:
            return state_from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(f"Game {game_id} is corrupt: {e!r}") from e

    def save(self, game_id: str, state: LabelState) -> None:
        path = self._path(game_id)
        payload = state_to_json(state)
        fd, tmp = tempfile.mkstemp(prefix=f".{game_id}.", suffix=".tmp", dir=str(self.games_dir))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, path)
        except OSError as e:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise PersistenceError(f"Could not save game {game_id}: {e}") from e
        logger.debug("Saved game %s (%d bytes)", game_id, len(payload))

    def exists(self, game_id: str) -> bool:
        try:
            return self._path(game_id).exists()
        except GameNotFoundError:
            return False

    def delete(self, game_id: str) -> bool:
        path = self._path(game_id)
        if path.exists():
            path.unlink()
            return True
        return False

    def list_ids(self) -> List[str]:
        return sorted(f.stem for f in self.games_dir.glob("*.json") if not f.name.startswith("."))
