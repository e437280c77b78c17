"""Tests for adding invitations and responding to them."""

from datetime import datetime

import pytest


@pytest.fixture
def game(signup, create_game):
    """A two-team game with dana invited to the first team."""
    organizer, dana = signup("organizer"), signup("dana")
    detail = create_game(organizer, [
        {"name": "Home", "invited_user_ids": [dana.id]},
        {"name": "Away"},
    ])
    return {"organizer": organizer, "dana": dana, "detail": detail, "id": detail["game"]["id"]}


def parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


class TestRespond:

    def test_accept(self, client, game):
        response = client.put(
            f"/games/{game['id']}/invitations/dana",
            json={"response": "accepted"},
            headers=game["dana"].headers,
        )

        assert response.status_code == 200
        invitation = response.json()
        assert invitation["status"] == "accepted"
        assert invitation["responded_at"] is not None
        assert invitation["game_id"] == game["id"]
        assert invitation["user_id"] == "dana"

    def test_accept_decline_accept(self, client, game):
        """The last answer wins and every answer refreshes responded_at."""
        url = f"/games/{game['id']}/invitations/dana"
        headers = game["dana"].headers

        first = client.put(url, json={"response": "accepted"}, headers=headers).json()
        second = client.put(url, json={"response": "declined"}, headers=headers).json()
        third = client.put(url, json={"response": "accepted"}, headers=headers).json()

        assert [first["status"], second["status"], third["status"]] == ["accepted", "declined", "accepted"]
        assert parse(first["responded_at"]) <= parse(second["responded_at"]) <= parse(third["responded_at"])

        detail = client.get(f"/games/{game['id']}", headers=headers).json()
        stored = {i["user"]["id"]: i["invitation"] for i in detail["invitations"]}["dana"]
        assert stored["status"] == "accepted"

    def test_respond_without_user_in_path(self, client, game):
        response = client.put(
            f"/games/{game['id']}/invitations",
            json={"response": "declined"},
            headers=game["dana"].headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "declined"

    def test_not_invited(self, client, game, signup):
        stranger = signup("stranger")

        response = client.put(
            f"/games/{game['id']}/invitations/stranger",
            json={"response": "accepted"},
            headers=stranger.headers,
        )

        assert response.status_code == 404
        assert response.json() == {"detail": "Invitation not found"}

    def test_missing_game(self, client, game):
        response = client.put(
            "/games/nope/invitations/dana",
            json={"response": "accepted"},
            headers=game["dana"].headers,
        )

        assert response.status_code == 404
        assert response.json() == {"detail": "Game not found"}

    def test_cannot_answer_for_someone_else(self, client, game):
        response = client.put(
            f"/games/{game['id']}/invitations/dana",
            json={"response": "declined"},
            headers=game["organizer"].headers,
        )

        assert response.status_code == 403

    def test_pending_is_not_a_response(self, client, game):
        response = client.put(
            f"/games/{game['id']}/invitations/dana",
            json={"response": "pending"},
            headers=game["dana"].headers,
        )

        assert response.status_code == 400


class TestAddInvitations:

    def test_add_users_and_groups(self, client, game, signup, create_group):
        erin, fay = signup("erin"), signup("fay")
        organizer = game["organizer"]
        group = create_group(organizer, "Regulars", [fay.id])
        away = game["detail"]["teams"][1]["id"]

        response = client.post(
            f"/games/{game['id']}/invitations",
            json={"team_id": away, "user_ids": ["erin"], "group_ids": [group["id"]]},
            headers=organizer.headers,
        )

        assert response.status_code == 200
        invitations = {i["user"]["id"]: i["invitation"] for i in response.json()["invitations"]}
        assert sorted(invitations) == ["dana", "erin", "fay", "organizer"]
        assert invitations["erin"]["team_id"] == away
        assert invitations["erin"]["group_id"] is None
        assert invitations["fay"]["team_id"] == away
        assert invitations["fay"]["group_id"] == group["id"]

        group_games = client.get(f"/groups/{group['id']}/games", headers=fay.headers).json()
        assert [g["id"] for g in group_games] == [game["id"]]

    def test_hidden_group_rejected(self, client, game, signup, create_group):
        owner, secret = signup("owner"), signup("secret")
        group = create_group(owner, "Private", [secret.id])

        response = client.post(
            f"/games/{game['id']}/invitations",
            json={"team_id": game["detail"]["teams"][1]["id"], "group_ids": [group["id"]]},
            headers=game["organizer"].headers,
        )

        assert response.status_code == 400
        detail = client.get(f"/games/{game['id']}", headers=game["organizer"].headers).json()
        assert sorted(i["user"]["id"] for i in detail["invitations"]) == ["dana"]

    def test_existing_invitation_untouched(self, client, game):
        """Re-inviting a player to another team keeps their first row and answer."""
        home, away = [t["id"] for t in game["detail"]["teams"]]
        client.put(
            f"/games/{game['id']}/invitations/dana",
            json={"response": "accepted"},
            headers=game["dana"].headers,
        )

        response = client.post(
            f"/games/{game['id']}/invitations",
            json={"team_id": away, "user_ids": ["dana"]},
            headers=game["organizer"].headers,
        )

        assert response.status_code == 200
        rows = [i["invitation"] for i in response.json()["invitations"] if i["user"]["id"] == "dana"]
        assert len(rows) == 1
        assert rows[0]["team_id"] == home
        assert rows[0]["status"] == "accepted"

    def test_team_from_another_game(self, client, game, create_game):
        other = create_game(game["organizer"], [{"name": "Elsewhere"}])

        response = client.post(
            f"/games/{game['id']}/invitations",
            json={"team_id": other["teams"][0]["id"], "user_ids": ["dana"]},
            headers=game["organizer"].headers,
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Team does not belong to this game"}

    def test_nothing_to_invite(self, client, game):
        response = client.post(
            f"/games/{game['id']}/invitations",
            json={"team_id": game["detail"]["teams"][0]["id"]},
            headers=game["organizer"].headers,
        )

        assert response.status_code == 400

    def test_unknown_user(self, client, game):
        response = client.post(
            f"/games/{game['id']}/invitations",
            json={"team_id": game["detail"]["teams"][0]["id"], "user_ids": ["ghost"]},
            headers=game["organizer"].headers,
        )

        assert response.status_code == 400

    def test_missing_game(self, client, game):
        response = client.post(
            "/games/nope/invitations",
            json={"team_id": game["detail"]["teams"][0]["id"], "user_ids": ["dana"]},
            headers=game["organizer"].headers,
        )

        assert response.status_code == 404
