"""Integration tests for poll and participant endpoints."""
import pytest


@pytest.mark.integration
class TestLaunchPoll:
    def test_launch(self, client, make_event):
        event = make_event()

        response = client.post(
            f"/api/v1/events/{event.id}/polls",
            json={"question": "Lunch?", "type": "multiple-choice", "options": ["Pizza", "Salad"]},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["isActive"] is True
        assert data["options"] == ["Pizza", "Salad"]

    def test_only_one_active_poll(self, client, make_event):
        event = make_event()
        url = f"/api/v1/events/{event.id}/polls"
        first = client.post(url, json={"question": "First?", "type": "open-text"}).json()
        second = client.post(url, json={"question": "Second?", "type": "word-cloud"}).json()

        active = client.get(f"/api/v1/events/{event.id}/polls/active").json()
        polls = client.get(url).json()

        assert active["id"] == second["id"]
        assert [p["id"] for p in polls if p["isActive"]] == [second["id"]]
        assert first["id"] in [p["id"] for p in polls]

    def test_no_active_poll(self, client, make_event):
        event = make_event()

        response = client.get(f"/api/v1/events/{event.id}/polls/active")

        assert response.status_code == 200
        assert response.json() is None

    def test_invalid_options(self, client, make_event):
        event = make_event()

        response = client.post(
            f"/api/v1/events/{event.id}/polls",
            json={"question": "Lunch?", "type": "multiple-choice", "options": ["Pizza"]},
        )

        assert response.status_code == 422

    def test_reactivate_old_poll(self, client, make_event, make_poll):
        event = make_event()
        old = make_poll(event, is_active=False)
        current = make_poll(event, is_active=True)

        response = client.patch(f"/api/v1/polls/{old.id}", json={"isActive": True})

        assert response.status_code == 200
        assert client.get(f"/api/v1/events/{event.id}/polls/active").json()["id"] == old.id
        polls = {p["id"]: p for p in client.get(f"/api/v1/events/{event.id}/polls").json()}
        assert polls[current.id]["isActive"] is False


@pytest.mark.integration
class TestPollResponses:
    def test_results_round_trip(self, client, make_event, make_poll):
        """Four responses split evenly give 50% each."""
        poll = make_poll(make_event(), options=["A", "B"])

        for option in ("A", "A", "B", "B"):
            response = client.post(f"/api/v1/polls/{poll.id}/responses", json={"response": {"option": option}})
            assert response.status_code == 201

        results = client.get(f"/api/v1/polls/{poll.id}/results").json()

        assert results["totalResponses"] == 4
        assert results["results"] == [
            {"option": "A", "count": 2, "percentage": 50},
            {"option": "B", "count": 2, "percentage": 50},
        ]

    def test_closed_poll(self, client, make_event, make_poll):
        poll = make_poll(make_event(), is_active=False)

        response = client.post(f"/api/v1/polls/{poll.id}/responses", json={"response": {"option": "Pizza"}})

        assert response.status_code == 400

    def test_unknown_option(self, client, make_event, make_poll):
        poll = make_poll(make_event())

        response = client.post(f"/api/v1/polls/{poll.id}/responses", json={"response": {"option": "Soup"}})

        assert response.status_code == 400

    def test_open_text_results(self, client, make_event, make_poll):
        poll = make_poll(make_event(), type="open-text", options=None)
        client.post(f"/api/v1/polls/{poll.id}/responses", json={"response": {"text": "More coffee"}})

        results = client.get(f"/api/v1/polls/{poll.id}/results").json()

        assert results["results"] == []
        assert results["responses"] == [{"text": "More coffee"}]

    def test_missing_poll(self, client):
        assert client.get("/api/v1/polls/404/results").status_code == 404


@pytest.mark.integration
class TestParticipants:
    def test_join_and_list(self, client, make_event):
        event = make_event()

        joined = client.post(
            f"/api/v1/events/{event.id}/participants",
            json={"name": "Ada", "isAnonymous": False, "sessionId": "s-1"},
        )
        listed = client.get(f"/api/v1/events/{event.id}/participants")

        assert joined.status_code == 201
        assert joined.json()["name"] == "Ada"
        assert [p["id"] for p in listed.json()] == [joined.json()["id"]]

    def test_heartbeat(self, client, make_event, make_participant):
        participant = make_participant(make_event())

        response = client.post(f"/api/v1/participants/{participant.id}/heartbeat")

        assert response.status_code == 200
        assert response.json()["id"] == participant.id

    def test_heartbeat_unknown_participant(self, client):
        assert client.post("/api/v1/participants/404/heartbeat").status_code == 404
