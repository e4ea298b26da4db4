"""
Pytest fixtures for hitmaker tests.

Provides a small signed roster, in-memory stores and a test client.
"""

import pytest
from fastapi.testclient import TestClient

from hitmaker.balance import get_balance
from hitmaker.meetings import Choice, Meeting
from hitmaker.models import (
    Archetype,
    Artist,
    EffectType,
    MonthlySummary,
    Song,
    TargetScope,
)
from hitmaker.rng import TurnRng
from hitmaker.service import GameService
from hitmaker.simulation import new_game
from hitmaker.store import MemoryGameStore
from hitmaker.webapp import create_app


@pytest.fixture
def balance():
    return get_balance()


@pytest.fixture
def rng():
    return TurnRng(seed=1234, month=1)


@pytest.fixture
def summary():
    return MonthlySummary(month=1)


def make_artist(artist_id, popularity=10.0, mood=50.0, loyalty=50.0,
                archetype=Archetype.WORKHORSE, monthly_cost=0):
    return Artist(
        id=artist_id,
        name=artist_id.replace("_", " ").title(),
        archetype=archetype,
        mood=mood,
        loyalty=loyalty,
        popularity=popularity,
        monthly_cost=monthly_cost,
    )


def make_song(song_id, streams=0, released=True, quality=60.0, artist_id="artist_a"):
    return Song(
        id=song_id,
        title=f"Song {song_id}",
        artist_id=artist_id,
        project_id="project_x",
        quality=quality,
        is_released=released,
        release_month=1 if released else None,
        initial_streams=streams,
        weekly_streams=streams,
    )


@pytest.fixture
def label_state():
    """Fresh game with two signed artists."""
    state = new_game("game_test", 42)
    state.artists["artist_a"] = make_artist("artist_a", popularity=40.0)
    state.artists["artist_b"] = make_artist("artist_b", popularity=20.0)
    return state


def meeting(meeting_id, scope, immediate=(), delayed=(), role_id="ceo"):
    return Meeting(
        id=meeting_id,
        role_id=role_id,
        prompt="",
        target_scope=TargetScope(scope),
        choices=(Choice(id="go", label="Go", immediate=tuple(immediate), delayed=tuple(delayed)),),
    )


@pytest.fixture
def catalog():
    """Hand-built meeting catalog covering every target scope."""
    return {
        m.id: m for m in (
            meeting("pep_talk", "global", immediate=[(EffectType.ARTIST_MOOD, 10.0)]),
            meeting("spotlight", "predetermined", immediate=[(EffectType.ARTIST_POPULARITY, 3.0)]),
            meeting("one_on_one", "user_selected",
                    immediate=[(EffectType.ARTIST_MOOD, 4.0)],
                    delayed=[(EffectType.ARTIST_LOYALTY, 5.0)]),
            meeting("fundraiser", "global",
                    immediate=[(EffectType.MONEY, 1000.0)],
                    delayed=[(EffectType.REPUTATION, 3.0)]),
            meeting("studio_time", "global", immediate=[(EffectType.MONEY, -3000.0)]),
        )
    }


@pytest.fixture
def memory_store():
    return MemoryGameStore()


@pytest.fixture
def service(memory_store):
    return GameService(memory_store)


@pytest.fixture
def client(service):
    return TestClient(create_app(service))
