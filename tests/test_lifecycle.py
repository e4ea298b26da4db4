"""Tests for the project stage machine and releases."""

import pytest

from hitmaker.balance import build_balance
from hitmaker.errors import InvalidTransitionError
from hitmaker.lifecycle import (
    advance_projects,
    can_transition,
    ready_for_release,
    release_marketing,
    transition,
)
from hitmaker.models import (
    MonthlySummary,
    ProducerTier,
    Project,
    ProjectStage,
    ProjectType,
    ReleaseKind,
    Song,
    TimeInvestment,
)
from hitmaker.rng import TurnRng


def make_project(project_id="project_1", **overrides):
    args = dict(
        id=project_id,
        artist_id="artist_a",
        title="First Light",
        type=ProjectType.SINGLE,
        producer_tier=ProducerTier.LOCAL,
        time_investment=TimeInvestment.STANDARD,
        budget_per_song=2500,
        song_count=1,
        budget=2500,
        start_month=1,
    )
    args.update(overrides)
    return Project(**args)


def recorded_song(song_id, project_id="project_1", quality=72.0):
    return Song(id=song_id, title=f"Track {song_id}", artist_id="artist_a",
                project_id=project_id, quality=quality, recorded_month=1)


class TestTransitions:

    def test_forward_only(self):
        assert can_transition(ProjectStage.PLANNING, ProjectStage.PRODUCTION)
        assert can_transition(ProjectStage.PRODUCTION, ProjectStage.MARKETING)
        assert can_transition(ProjectStage.MARKETING, ProjectStage.RELEASED)
        assert not can_transition(ProjectStage.PRODUCTION, ProjectStage.PLANNING)
        assert not can_transition(ProjectStage.PLANNING, ProjectStage.RELEASED)
        for stage in ProjectStage:
            assert not can_transition(ProjectStage.RELEASED, stage)

    def test_illegal_transition_raises(self):
        project = make_project(stage=ProjectStage.RELEASED)
        with pytest.raises(InvalidTransitionError):
            transition(project, ProjectStage.MARKETING, 5)

    def test_ready_for_release(self):
        project = make_project(stage=ProjectStage.MARKETING, due_month=6, marketing_months=1)
        assert not ready_for_release(project, 5, requested=False)
        assert ready_for_release(project, 5, requested=True)
        assert ready_for_release(project, 6, requested=False)


class TestAdvanceProjects:

    def test_planning_moves_next_month(self, label_state, summary):
        project = make_project(start_month=1)
        label_state.projects[project.id] = project
        label_state.game.current_month = 1
        advance_projects(label_state, TurnRng(1, 1), summary)
        assert project.stage == ProjectStage.PLANNING

        label_state.game.current_month = 2
        advance_projects(label_state, TurnRng(1, 2), summary)
        assert project.stage == ProjectStage.PRODUCTION
        assert project.production_start_month == 2

    def test_production_waits_for_songs_and_minimum_months(self, label_state, summary):
        project = make_project(stage=ProjectStage.PRODUCTION, production_start_month=2, songs_created=1)
        label_state.projects[project.id] = project

        label_state.game.current_month = 3
        advance_projects(label_state, TurnRng(1, 3), summary)
        assert project.stage == ProjectStage.PRODUCTION

        label_state.game.current_month = 4
        advance_projects(label_state, TurnRng(1, 4), summary)
        assert project.stage == ProjectStage.MARKETING

    def test_release_on_due_month(self, label_state, summary):
        project = make_project(stage=ProjectStage.MARKETING, due_month=5, songs_created=1)
        label_state.projects[project.id] = project
        label_state.songs["song_1"] = recorded_song("song_1")
        label_state.game.current_month = 5

        releases = advance_projects(label_state, TurnRng(1, 5), summary)

        assert project.stage == ProjectStage.RELEASED
        assert len(releases) == 1
        release = releases[0]
        assert release.kind == ReleaseKind.FULL
        assert release.song_ids == ["song_1"]
        assert project.release_id == release.id
        song = label_state.songs["song_1"]
        assert song.is_released and song.release_month == 5
        assert song.initial_streams > 0

    def test_lead_single_then_full_release(self, label_state, summary):
        project = make_project(stage=ProjectStage.MARKETING, song_count=2, songs_created=2,
                               due_month=6, lead_single_month=4)
        label_state.projects[project.id] = project
        label_state.songs["song_1"] = recorded_song("song_1")
        label_state.songs["song_2"] = recorded_song("song_2")

        label_state.game.current_month = 4
        releases = advance_projects(label_state, TurnRng(1, 4), summary)
        assert [r.kind for r in releases] == [ReleaseKind.LEAD_SINGLE]
        assert releases[0].song_ids == ["song_1"]
        assert project.lead_single_released
        assert project.stage == ProjectStage.MARKETING

        label_state.game.current_month = 6
        releases = advance_projects(label_state, TurnRng(1, 6), summary)
        assert [r.kind for r in releases] == [ReleaseKind.FULL]
        assert releases[0].song_ids == ["song_2"]

    def test_good_release_earns_reputation(self, label_state, summary):
        project = make_project(stage=ProjectStage.MARKETING, due_month=5, songs_created=1)
        label_state.projects[project.id] = project
        label_state.songs["song_1"] = recorded_song("song_1", quality=80)
        label_state.game.current_month = 5
        advance_projects(label_state, TurnRng(1, 5), summary)
        gains = [c.amount for c in summary.changes if c.type == "reputation" and c.source == "release"]
        assert gains == [2]

    def test_full_release_gets_press_coverage(self, label_state, summary):
        always = build_balance({"press": {"base_chance": 1.0, "max_chance": 1.0}})
        project = make_project(stage=ProjectStage.MARKETING, due_month=5, songs_created=1)
        label_state.projects[project.id] = project
        label_state.songs["song_1"] = recorded_song("song_1", quality=80)
        label_state.game.current_month = 5
        before = label_state.game.reputation

        [release] = advance_projects(label_state, TurnRng(1, 5), summary, balance=always)

        assert release.press_pickups == 8
        assert any(c.type == "press" and c.amount == 8 for c in summary.changes)
        # +2 for quality, floor(8 * 0.8 * 2) from the press
        assert label_state.game.reputation == before + 2 + 12


class TestReleaseMarketing:

    def test_budget_split_between_lead_single_and_full_release(self, balance):
        project = make_project(marketing_budget=10000)
        assert release_marketing(project, ReleaseKind.FULL, balance) == 10000
        assert release_marketing(project, ReleaseKind.LEAD_SINGLE, balance) == 3000
        project.lead_single_released = True
        assert release_marketing(project, ReleaseKind.FULL, balance) == 7000

    def test_budget_is_spent_once_across_both_releases(self, label_state, summary):
        project = make_project(stage=ProjectStage.MARKETING, song_count=2, songs_created=2,
                               due_month=6, lead_single_month=4, marketing_budget=10000)
        label_state.projects[project.id] = project
        label_state.songs["song_1"] = recorded_song("song_1")
        label_state.songs["song_2"] = recorded_song("song_2")

        label_state.game.current_month = 4
        [single] = advance_projects(label_state, TurnRng(1, 4), summary)
        label_state.game.current_month = 6
        [full] = advance_projects(label_state, TurnRng(1, 6), summary)

        assert single.marketing_budget + full.marketing_budget == 10000
        assert single.marketing_budget < full.marketing_budget
