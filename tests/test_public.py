def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "X-Request-ID" in response.headers
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_request_id_is_echoed(client):
    response = client.get("/", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


def test_list_tournaments_newest_first(client, db, world):
    db.add("tournaments", {"name": "Old Cup", "sport": "football",
                           "start_date": "2020-01-01", "end_date": "2020-02-01",
                           "status": "completed"})
    response = client.get("/api/tournaments")
    assert response.status_code == 200
    assert [t["name"] for t in response.json()] == ["World Cup", "Old Cup"]


def test_unknown_tournament_is_not_found(client, world):
    response = client.get("/api/tournaments/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Tournament not found", "code": "NOT_FOUND"}


def test_participants_never_expose_email(client, world):
    response = client.get(f"/api/tournaments/{world.tournament['id']}/participants")
    assert response.status_code == 200
    participants = response.json()
    assert {p["id"] for p in participants} == {world.player["id"], world.admin["id"]}
    for participant in participants:
        assert "email" not in participant
        assert "is_admin" not in participant


def test_tournament_teams_sorted_by_name(client, world):
    response = client.get(f"/api/tournaments/{world.tournament['id']}/teams")
    assert [t["name"] for t in response.json()] == ["Argentina", "Brazil"]


def test_rankings_in_rank_order(client, db, world):
    tid = world.tournament["id"]
    db.add("tournament_rankings", {"tournament_id": tid, "user_id": world.admin["id"],
                                   "total_points": 3, "predictions_count": 2, "rank": 2})
    db.add("tournament_rankings", {"tournament_id": tid, "user_id": world.player["id"],
                                   "total_points": 9, "predictions_count": 2, "rank": 1})

    response = client.get(f"/api/tournaments/{tid}/rankings")
    assert [r["user_id"] for r in response.json()] == [world.player["id"], world.admin["id"]]

    mine = client.get(f"/api/tournaments/{tid}/rankings/{world.player['id']}")
    assert mine.json()["total_points"] == 9

    missing = client.get(f"/api/tournaments/{tid}/rankings/{world.outsider['id']}")
    assert missing.status_code == 404


def test_matches_by_kickoff(client, world):
    response = client.get("/api/matches", params={"tournament_id": world.tournament["id"]})
    assert [m["id"] for m in response.json()] == [world.kicked_off["id"], world.upcoming["id"]]


def test_unknown_match_is_not_found(client, world):
    assert client.get("/api/matches/nope").status_code == 404


def test_list_teams(client, world):
    response = client.get("/api/teams")
    assert [t["short_name"] for t in response.json()] == ["ARG", "BRA"]
    assert client.get(f"/api/teams/{world.home['id']}").json()["name"] == "Brazil"
    assert client.get("/api/teams/nope").status_code == 404


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json()["code"] == "HTTP_404"
