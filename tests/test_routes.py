from fastapi.testclient import TestClient

from main import app
from utils.auth import USER_HEADER


def _as(user_id):
    return {USER_HEADER: str(user_id)}


def test_health():
    client = TestClient(app)
    assert client.get("/health").json() == {"status": "ok"}


def test_session_start_then_finalize(seed):
    user_id = seed.user()
    first = seed.system_card(prompt="casa", answer="house")
    second = seed.system_card(prompt="perro", answer="dog")
    client = TestClient(app)

    response = client.post(
        "/sessions",
        json={"total_slots": 5, "selected_games": ["quiz", "hangman"]},
        headers=_as(user_id),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "insufficient_material"
    assert body["breakdown"]["new"] == 2
    session = body["session"]
    assert {card["id"] for card in session["cards"]} == {first, second}
    assert session["selected_games"] == ["quiz", "hangman"]

    fetched = client.get(f"/sessions/{session['session_id']}", headers=_as(user_id))
    assert fetched.status_code == 200
    assert fetched.json()["session_id"] == session["session_id"]

    results = {
        "game_results": [
            {
                "game_id": "quiz",
                "answers": [
                    {"card_id": first, "is_correct": True, "time_spent_ms": 1500},
                    {"card_id": second, "is_correct": False, "time_spent_ms": 2500},
                ],
                "correct": 1,
                "total": 2,
            },
            {
                "game_id": "hangman",
                "answers": [{"card_id": first, "is_correct": True, "time_spent_ms": 6000}],
                "correct": 1,
                "total": 1,
            },
        ]
    }
    finalize = client.post(
        f"/sessions/{session['session_id']}/finalize", json=results, headers=_as(user_id)
    )
    assert finalize.status_code == 200
    summary = finalize.json()
    by_id = {update["card_id"]: update for update in summary["updated"]}
    assert by_id[first]["quality"] == 5
    assert by_id[first]["session_cap"] == 15
    assert by_id[second]["quality"] == 0
    assert by_id[second]["session_cap"] == 10
    assert summary["words_learned"] == 2
    assert summary["combined_score"] == 67
    assert summary["wrong_card_ids"] == [second]
    assert summary["failed"] == []

    again = client.post(
        f"/sessions/{session['session_id']}/finalize", json=results, headers=_as(user_id)
    )
    assert again.json()["already_finalized"] is True
    assert again.json()["updated"] == []


def test_sessions_are_private(seed):
    owner = seed.user("Owner")
    other = seed.user("Other")
    seed.system_card()
    client = TestClient(app)
    created = client.post(
        "/sessions", json={"total_slots": 5, "selected_games": ["quiz"]}, headers=_as(owner)
    ).json()
    session_id = created["session"]["session_id"]

    assert client.get(f"/sessions/{session_id}", headers=_as(other)).status_code == 404
    finalize = client.post(
        f"/sessions/{session_id}/finalize", json={"game_results": []}, headers=_as(other)
    )
    assert finalize.status_code == 404


def test_missing_or_unknown_user_gets_empty_results(seed):
    seed.system_card()
    client = TestClient(app)

    optimal = client.get("/cards/optimal")
    assert optimal.status_code == 200
    assert optimal.json()["cards"] == []
    assert optimal.json()["status"] == "unauthenticated"

    created = client.post("/sessions", json={"selected_games": ["quiz"]}, headers=_as(999))
    assert created.status_code == 200
    assert created.json() == {"session": None, "status": "unauthenticated", "breakdown": None}


def test_optimal_cards_uses_configured_default_size(seed):
    user_id = seed.user()
    for index in range(30):
        seed.system_card(prompt=f"word-{index}")
    client = TestClient(app)

    response = client.get("/cards/optimal", params={"mode": "review-and-new"}, headers=_as(user_id))

    assert response.status_code == 200
    body = response.json()
    assert len(body["cards"]) == 20
    assert body["breakdown"]["new"] == 20
    assert body["requested"] == 20
    assert body["status"] == "ok"


def test_optimal_cards_rejects_bad_parameters(seed):
    user_id = seed.user()
    client = TestClient(app)

    assert client.get("/cards/optimal", params={"total_slots": 0}, headers=_as(user_id)).status_code == 422
    assert client.get("/cards/optimal", params={"total_slots": 101}, headers=_as(user_id)).status_code == 422
    assert client.get("/cards/optimal", params={"mode": "cram"}, headers=_as(user_id)).status_code == 422
    missing_games = client.post("/sessions", json={"selected_games": []}, headers=_as(user_id))
    assert missing_games.status_code == 422
