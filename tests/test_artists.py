"""Tests for popularity growth, mood dynamics and effect targeting."""

import pytest

from conftest import make_artist
from hitmaker.artists import (
    apply_artist_effect,
    apply_delta,
    drift_toward,
    dynamic_threshold,
    monthly_mood_update,
    popularity_multiplier,
    resolve_targets,
    stream_popularity_bonus,
)
from hitmaker.errors import MissingTargetError
from hitmaker.models import Archetype, EffectType, MonthlySummary, TargetScope
from hitmaker.rng import TurnRng


class TestPopularityGrowth:

    def test_threshold_doubles_every_25_points(self):
        assert dynamic_threshold(0) == pytest.approx(3000)
        assert dynamic_threshold(25) == pytest.approx(6000)
        assert dynamic_threshold(50) == pytest.approx(12000)

    def test_multiplier_shrinks_with_popularity(self):
        assert popularity_multiplier(0) == pytest.approx(1.5)
        assert popularity_multiplier(35) == pytest.approx(0.85)
        assert popularity_multiplier(100) > 0.2
        assert popularity_multiplier(10) > popularity_multiplier(60)

    def test_no_qualifying_songs_means_no_bonus(self):
        assert stream_popularity_bonus([], 10) == 0
        assert stream_popularity_bonus([2999], 0) == 0

    def test_single_song_ten_times_threshold(self):
        assert stream_popularity_bonus([30000], 0) == pytest.approx(1.5)

    def test_bonus_bounds(self):
        assert stream_popularity_bonus([3001], 0) == pytest.approx(0.1)
        assert stream_popularity_bonus([3000 * 10 ** 5] * 3, 0) == pytest.approx(10)


class TestResolveTargets:

    def test_global_hits_everyone(self):
        artists = [make_artist("artist_b"), make_artist("artist_a")]
        assert resolve_targets(TargetScope.GLOBAL, artists) == ["artist_a", "artist_b"]

    def test_predetermined_picks_most_popular(self):
        artists = [
            make_artist("artist_a", popularity=60),
            make_artist("artist_b", popularity=85),
            make_artist("artist_c", popularity=50),
        ]
        assert resolve_targets(TargetScope.PREDETERMINED, artists, rng=TurnRng(1, 1)) == ["artist_b"]

    def test_predetermined_tie_is_seeded(self):
        artists = [make_artist(f"artist_{c}", popularity=70) for c in "abc"]
        picks = set()
        for seed in range(50):
            first = resolve_targets(TargetScope.PREDETERMINED, artists, rng=TurnRng(seed, 3))
            again = resolve_targets(TargetScope.PREDETERMINED, artists, rng=TurnRng(seed, 3))
            assert first == again
            assert len(first) == 1
            picks.add(first[0])
        assert picks <= {"artist_a", "artist_b", "artist_c"}
        assert len(picks) > 1

    def test_predetermined_with_empty_roster(self):
        assert resolve_targets(TargetScope.PREDETERMINED, []) == []

    def test_user_selected(self):
        artists = [make_artist("artist_a"), make_artist("artist_b")]
        assert resolve_targets(TargetScope.USER_SELECTED, artists, "artist_b") == ["artist_b"]

    def test_user_selected_missing_artist(self):
        with pytest.raises(MissingTargetError):
            resolve_targets(TargetScope.USER_SELECTED, [make_artist("artist_a")], "artist_z")


class TestApplyDelta:

    def test_clamps_and_records_applied_delta(self):
        artist = make_artist("artist_a", mood=98)
        summary = MonthlySummary(month=1)
        applied = apply_delta(artist, "mood", 10, summary, source="meeting")
        assert artist.mood == 100
        assert applied == pytest.approx(2)
        assert summary.changes[-1].amount == pytest.approx(2)
        assert summary.changes[-1].type == "mood"

    def test_no_event_when_nothing_changes(self):
        artist = make_artist("artist_a", mood=0)
        summary = MonthlySummary(month=1)
        assert apply_delta(artist, "mood", -5, summary) == 0
        assert summary.changes == []

    def test_missing_targets_are_skipped(self):
        artists = {"artist_a": make_artist("artist_a")}
        summary = MonthlySummary(month=1)
        landed = apply_artist_effect(artists, EffectType.ARTIST_LOYALTY, 5, ["artist_a", "artist_gone"], summary)
        assert landed == 1
        assert artists["artist_a"].loyalty == 55
        assert [c.type for c in summary.changes] == ["loyalty", "effect_skipped"]


class TestMonthlyMood:

    def test_drift_toward(self):
        assert drift_toward(60, 50, 3) == 57
        assert drift_toward(49, 50, 3) == 50
        assert drift_toward(50, 50, 3) == 50

    def test_mood_and_loyalty_drift(self):
        artist = make_artist("artist_a", mood=70, loyalty=40)
        monthly_mood_update(artist, 0, MonthlySummary(month=1))
        assert artist.mood == 67
        assert artist.loyalty == 42

    def test_workload_beyond_tolerance(self):
        artist = make_artist("artist_a", mood=50, archetype=Archetype.VISIONARY)
        monthly_mood_update(artist, 4, MonthlySummary(month=1))
        # already at baseline, so only the two-project overload counts
        assert artist.mood == 40

    def test_overload_penalty_is_not_softened_by_drift(self):
        artist = make_artist("artist_a", mood=50, archetype=Archetype.VISIONARY)
        summary = MonthlySummary(month=1)
        monthly_mood_update(artist, 3, summary)
        assert artist.mood == 45
        sources = [c.source for c in summary.changes if c.type == "mood"]
        assert sources == ["workload"]

    def test_drift_uses_mood_before_the_penalty(self):
        artist = make_artist("artist_a", mood=60, archetype=Archetype.VISIONARY)
        monthly_mood_update(artist, 3, MonthlySummary(month=1))
        # 60 drifts to 57, then one project over tolerance costs 5
        assert artist.mood == 52

    def test_workhorse_tolerates_more(self):
        artist = make_artist("artist_a", mood=50, archetype=Archetype.WORKHORSE)
        monthly_mood_update(artist, 3, MonthlySummary(month=1))
        assert artist.mood == 50
