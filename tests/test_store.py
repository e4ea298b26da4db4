"""Tests for game storage and the turn service."""

import json
import os

import pytest

from hitmaker.errors import GameNotFoundError, PersistenceError
from hitmaker.models import (
    Archetype,
    EffectType,
    ProducerTier,
    ProjectStage,
    ProjectType,
    ReleaseKind,
    ScheduledEffect,
    SignArtistAction,
    StartProjectAction,
    TimeInvestment,
)
from hitmaker.service import GameService
from hitmaker.simulation import advance_month
from hitmaker.store import (
    JsonGameStore,
    MemoryGameStore,
    state_from_dict,
    state_to_dict,
    state_to_json,
)


def single():
    return StartProjectAction(
        artist_id="artist_a",
        title="First Light",
        project_type=ProjectType.SINGLE,
        producer_tier=ProducerTier.LOCAL,
        time_investment=TimeInvestment.STANDARD,
        budget_per_song=2500,
        song_count=1,
    )


@pytest.fixture
def played_state(label_state):
    """A label six months in, with a released single and chart history."""
    outcome = advance_month(label_state, [single()])
    for _ in range(5):
        outcome = advance_month(outcome.state, [])
    return outcome.state


class FailingStore(MemoryGameStore):
    def __init__(self):
        super().__init__()
        self.fail = False

    def save(self, game_id, state):
        if self.fail:
            raise PersistenceError(f"disk full while saving {game_id}")
        super().save(game_id, state)


class TestSerialization:

    def test_restores_enums_and_history(self, played_state):
        restored = state_from_dict(state_to_dict(played_state))
        project = next(iter(restored.projects.values()))
        assert project.stage is ProjectStage.RELEASED
        assert project.type is ProjectType.SINGLE
        release = next(iter(restored.releases.values()))
        assert release.kind is ReleaseKind.FULL
        assert len(restored.charts) == len(played_state.charts)
        assert isinstance(restored.charts[-1].entries, tuple)
        assert state_to_json(restored) == state_to_json(played_state)

    def test_restored_state_keeps_playing_identically(self, played_state):
        restored = state_from_dict(state_to_dict(played_state))
        a = advance_month(played_state, [])
        b = advance_month(restored, [])
        assert state_to_json(a.state) == state_to_json(b.state)

    def test_scheduled_effects_survive(self, label_state):
        label_state.game.scheduled_effects.append(
            ScheduledEffect(trigger_month=2, effect_type=EffectType.ARTIST_MOOD, delta=3.0,
                            target_artist_id="artist_a", meeting_id="m", choice_id="c"))
        restored = state_from_dict(state_to_dict(label_state))
        effect = restored.game.scheduled_effects[0]
        assert effect.effect_type is EffectType.ARTIST_MOOD
        assert effect.target_artist_id == "artist_a"

    def test_rejects_unknown_schema_version(self, label_state):
        data = state_to_dict(label_state)
        data["schema_version"] = 99
        with pytest.raises(PersistenceError):
            state_from_dict(data)


class TestMemoryGameStore:

    def test_missing_game(self, memory_store):
        with pytest.raises(GameNotFoundError):
            memory_store.load("nope")

    def test_stored_copy_is_isolated(self, memory_store, label_state):
        memory_store.save("g", label_state)
        label_state.game.money = 1
        assert memory_store.load("g").game.money != 1
        loaded = memory_store.load("g")
        loaded.game.money = 2
        assert memory_store.load("g").game.money != 2


class TestJsonGameStore:

    def test_save_and_load(self, tmp_path, played_state):
        store = JsonGameStore(tmp_path)
        store.save(played_state.game.id, played_state)
        assert store.exists(played_state.game.id)
        assert store.list_ids() == [played_state.game.id]
        loaded = store.load(played_state.game.id)
        assert state_to_json(loaded) == state_to_json(played_state)

    def test_missing_game(self, tmp_path):
        with pytest.raises(GameNotFoundError):
            JsonGameStore(tmp_path).load("nope")

    def test_rejects_path_like_ids(self, tmp_path):
        with pytest.raises(GameNotFoundError):
            JsonGameStore(tmp_path).load("../secrets")

    def test_failed_save_keeps_previous_file(self, tmp_path, label_state, monkeypatch):
        store = JsonGameStore(tmp_path)
        store.save("g", label_state)

        later = advance_month(label_state, []).state

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)
        with pytest.raises(PersistenceError):
            store.save("g", later)
        monkeypatch.undo()

        assert store.load("g").game.current_month == 0
        assert [p.name for p in tmp_path.iterdir()] == ["g.json"]

    def test_malformed_save_is_a_persistence_error(self, tmp_path, label_state):
        store = JsonGameStore(tmp_path)
        store.save("g", label_state)
        data = json.loads((tmp_path / "g.json").read_text())
        del data["game"]["rng_seed"]
        data["artists"][0]["archetype"] = "Bard"
        (tmp_path / "g.json").write_text(json.dumps(data))
        with pytest.raises(PersistenceError):
            store.load("g")

    def test_save_missing_its_game_block(self, tmp_path):
        (tmp_path / "g.json").write_text(json.dumps({"schema_version": 1}))
        with pytest.raises(PersistenceError):
            JsonGameStore(tmp_path).load("g")

    def test_unparseable_save(self, tmp_path):
        (tmp_path / "g.json").write_text("{not json")
        with pytest.raises(PersistenceError):
            JsonGameStore(tmp_path).load("g")

    def test_delete(self, tmp_path, label_state):
        store = JsonGameStore(tmp_path)
        store.save("g", label_state)
        assert store.delete("g")
        assert not store.exists("g")
        assert not store.delete("g")


class TestGameService:

    def test_create_with_starting_roster(self, service):
        state = service.create_game(seed=7, artists=[
            SignArtistAction("Nova", Archetype.VISIONARY, signing_cost=0, monthly_cost=800),
        ])
        assert state.game.rng_seed == 7
        assert [a.name for a in state.artists.values()] == ["Nova"]
        assert service.get_game(state.game.id).game.id == state.game.id

    def test_advance_persists(self, service):
        state = service.create_game(seed=7)
        outcome = service.advance(state.game.id)
        assert outcome.state.game.current_month == 1
        assert service.get_game(state.game.id).game.current_month == 1

    def test_failed_save_rolls_back(self):
        store = FailingStore()
        service = GameService(store)
        state = service.create_game(seed=7)

        store.fail = True
        with pytest.raises(PersistenceError):
            service.advance(state.game.id)

        store.fail = False
        assert service.get_game(state.game.id).game.current_month == 0

    def test_unknown_game(self, service):
        with pytest.raises(GameNotFoundError):
            service.advance("missing")

    def test_starting_roster_is_clamped(self, service):
        state = service.create_game(seed=7, artists=[
            SignArtistAction("Nova", Archetype.VISIONARY, signing_cost=0, monthly_cost=800,
                             mood=150, loyalty=-20, popularity=101),
        ])
        artist = next(iter(state.artists.values()))
        assert (artist.mood, artist.loyalty, artist.popularity) == (100, 0, 100)

    def test_locks_are_released_after_each_turn(self, service):
        games = [service.create_game(seed=s).game.id for s in range(3)]
        for game_id in games:
            service.advance(game_id)
        assert service._locks == {}

    def test_lock_is_released_when_a_turn_fails(self, service):
        with pytest.raises(GameNotFoundError):
            service.advance("missing")
        assert service._locks == {}
