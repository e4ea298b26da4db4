"""HTTP API tests using the FastAPI test client."""

from fastapi.testclient import TestClient

from hitmaker.balance import build_balance
from hitmaker.errors import PersistenceError
from hitmaker.service import GameService
from hitmaker.store import MemoryGameStore
from hitmaker.webapp import create_app

ROSTER = {
    "seed": 11,
    "artists": [
        {"name": "Nova", "archetype": "Visionary", "monthly_cost": 500, "popularity": 30},
        {"name": "Ridge", "archetype": "Workhorse", "monthly_cost": 300},
    ],
}


class ReadOnlyStore(MemoryGameStore):
    """Accepts the first save of each game, then refuses."""

    def save(self, game_id, state):
        if game_id in self.games:
            raise PersistenceError(f"store is read-only, cannot save {game_id}")
        super().save(game_id, state)


def create(client, body=ROSTER):
    res = client.post("/games", json=body)
    assert res.status_code == 201
    return res.json()


class TestGames:

    def test_create_and_fetch(self, client):
        game = create(client)
        game_id = game["game"]["id"]
        assert [a["name"] for a in game["artists"]] == ["Nova", "Ridge"]
        assert game["game"]["current_month"] == 0

        res = client.get(f"/games/{game_id}")
        assert res.status_code == 200
        assert res.json()["game"]["rng_seed"] == 11

    def test_unknown_game(self, client):
        res = client.get("/games/doesnotexist")
        assert res.status_code == 404
        assert res.json()["error"] == "GameNotFoundError"

    def test_bad_archetype_is_rejected(self, client):
        res = client.post("/games", json={"artists": [{"name": "X", "archetype": "Bard"}]})
        assert res.status_code == 422


class TestAdvance:

    def test_empty_turn(self, client):
        game_id = create(client)["game"]["id"]
        res = client.post(f"/games/{game_id}/advance", json={"actions": []})
        assert res.status_code == 200
        body = res.json()
        assert body["summary"]["month"] == 1
        assert body["game_state"]["game"]["current_month"] == 1
        assert body["campaign_results"] is None
        assert client.get(f"/games/{game_id}").json()["game"]["current_month"] == 1

    def test_meeting_action(self, client):
        game_id = create(client)["game"]["id"]
        action = {"type": "meeting", "role_id": "ceo", "meeting_id": "ceo_priorities",
                  "choice_id": "cost_control"}
        res = client.post(f"/games/{game_id}/advance", json={"actions": [action]})
        assert res.status_code == 200
        changes = res.json()["summary"]["changes"]
        assert any(c["type"] == "meeting" for c in changes)
        assert len(res.json()["game_state"]["game"]["scheduled_effects"]) == 2

    def test_unknown_meeting_is_a_validation_error(self, client):
        game_id = create(client)["game"]["id"]
        action = {"type": "meeting", "role_id": "ceo", "meeting_id": "nope", "choice_id": "x"}
        res = client.post(f"/games/{game_id}/advance", json={"actions": [action]})
        assert res.status_code == 400
        body = res.json()
        assert body["error"] == "ValidationError"
        assert body["errors"]
        assert client.get(f"/games/{game_id}").json()["game"]["current_month"] == 0

    def test_unknown_action_type(self, client):
        game_id = create(client)["game"]["id"]
        res = client.post(f"/games/{game_id}/advance", json={"actions": [{"type": "party"}]})
        assert res.status_code == 422

    def test_advance_unknown_game(self, client):
        res = client.post("/games/doesnotexist/advance", json={"actions": []})
        assert res.status_code == 404

    def test_completed_campaign(self):
        service = GameService(MemoryGameStore(), balance=build_balance({"campaign": {"length_months": 1}}))
        client = TestClient(create_app(service))
        game_id = create(client)["game"]["id"]

        res = client.post(f"/games/{game_id}/advance", json={"actions": []})
        assert res.status_code == 200
        results = res.json()["campaign_results"]
        assert results["campaign_completed"] is True
        assert "victory_type" in results

        res = client.post(f"/games/{game_id}/advance", json={"actions": []})
        assert res.status_code == 409
        assert res.json()["error"] == "CampaignCompletedError"

    def test_store_failure(self):
        client = TestClient(create_app(GameService(ReadOnlyStore())))
        game_id = create(client)["game"]["id"]
        res = client.post(f"/games/{game_id}/advance", json={"actions": []})
        assert res.status_code == 503
        assert client.get(f"/games/{game_id}").json()["game"]["current_month"] == 0


class TestTop10:

    def test_empty_before_any_release(self, client):
        game_id = create(client)["game"]["id"]
        res = client.get(f"/games/{game_id}/charts/top10")
        assert res.status_code == 200
        assert res.json()["entries"] == []

    def release_single(self, client):
        game = create(client)
        game_id = game["game"]["id"]
        artist_id = game["artists"][1]["id"]
        project = {
            "type": "start_project",
            "artist_id": artist_id,
            "title": "Night Drive",
            "project_type": "single",
            "budget_per_song": 2500,
            "song_count": 1,
        }
        client.post(f"/games/{game_id}/advance", json={"actions": [project]})
        for _ in range(4):
            client.post(f"/games/{game_id}/advance", json={"actions": []})
        return game_id, artist_id

    def test_new_label_charts_below_the_industry(self, client):
        game_id, artist_id = self.release_single(client)

        body = client.get(f"/games/{game_id}/charts/top10").json()
        assert body["month"] == 5
        assert len(body["entries"]) == 10
        assert all(e["is_competitor"] and e["title"] for e in body["entries"])

        chart = client.get(f"/games/{game_id}").json()["charts"][-1]["entries"]
        ours = [e for e in chart if not e["is_competitor"]]
        assert len(ours) == 1
        assert ours[0]["artist_id"] == artist_id
        assert ours[0]["position"] > 10

    def test_released_single_tops_an_empty_field(self):
        service = GameService(MemoryGameStore(), balance=build_balance({"charts": {"competitors": 0}}))
        client = TestClient(create_app(service))
        game_id, artist_id = self.release_single(client)

        body = client.get(f"/games/{game_id}/charts/top10").json()
        assert len(body["entries"]) == 1
        entry = body["entries"][0]
        assert entry["position"] == 1
        assert entry["artist_id"] == artist_id
        assert entry["title"]
        assert not entry["is_competitor"]
        assert entry["streams"] > 0
