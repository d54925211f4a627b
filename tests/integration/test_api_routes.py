"""
Integration tests for the lessons HTTP API.

The workflow dependency is overridden with one bound to an in-memory database
and a scripted gateway. The TestClient is used without a ``with`` block so the
application lifespan (which touches the configured database) does not run.
"""

import pytest
from fastapi.testclient import TestClient

from src.api import main as api_main
from src.api.main import app
from src.api.routers.lessons_router import get_workflow
from src.engine.errors import GatewayRejected, GatewayUnavailable
from tests.fakes import adaptation_response, evaluation_response, plan_response

HEADERS = {"X-User-Id": "user-1"}
OTHER_HEADERS = {"X-User-Id": "user-2"}


@pytest.fixture
def client(workflow):
    app.dependency_overrides[get_workflow] = lambda: workflow
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def created_plan(client, fake_gateway):
    fake_gateway.queue(plan_response(3))
    response = client.post(
        "/api/plans/generate",
        json={"topic": "Linear Algebra", "num_challenges": 3},
        headers=HEADERS,
    )
    assert response.status_code == 200
    return response.json()


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "openlesson"

    def test_health(self, client, monkeypatch):
        monkeypatch.setattr(api_main, "check_database_health", lambda: ("ok", None))
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["components"]["database"] == "ok"


class TestGeneratePlan:
    def test_generate(self, created_plan):
        assert created_plan["plan"]["topic"] == "Linear Algebra"
        assert created_plan["plan"]["status"] == "active"
        assert created_plan["plan"]["metadata"]["difficulty"] == "beginner"
        assert [c["order_index"] for c in created_plan["challenges"]] == [0, 1, 2]
        assert created_plan["progress"] == 0

    def test_missing_user_header(self, client, fake_gateway):
        response = client.post("/api/plans/generate", json={"topic": "Linear Algebra"})
        assert response.status_code == 401
        assert fake_gateway.calls == []

    def test_blank_topic(self, client, fake_gateway):
        response = client.post("/api/plans/generate", json={"topic": "  "}, headers=HEADERS)
        assert response.status_code == 400
        assert response.json()["detail"] == "Topic is required"
        assert fake_gateway.calls == []

    def test_unknown_difficulty(self, client, fake_gateway):
        response = client.post(
            "/api/plans/generate",
            json={"topic": "Rust", "difficulty": "expert"},
            headers=HEADERS,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "difficulty must be one of: beginner, intermediate, advanced"
        assert fake_gateway.calls == []

    def test_difficulty_is_case_insensitive(self, client, fake_gateway):
        fake_gateway.queue(plan_response(3))
        response = client.post(
            "/api/plans/generate",
            json={"topic": "Rust", "difficulty": "Advanced", "num_challenges": 3},
            headers=HEADERS,
        )
        assert response.status_code == 200
        assert response.json()["plan"]["metadata"]["difficulty"] == "advanced"

    def test_unparseable_model_output(self, client, fake_gateway):
        fake_gateway.queue("I am not JSON")
        response = client.post("/api/plans/generate", json={"topic": "Rust"}, headers=HEADERS)
        assert response.status_code == 502
        assert response.json()["detail"] == "The AI returned an invalid response"

    def test_gateway_unavailable(self, client, fake_gateway):
        fake_gateway.queue(GatewayUnavailable("OPENROUTER_API_KEY is not set"))
        response = client.post("/api/plans/generate", json={"topic": "Rust"}, headers=HEADERS)
        assert response.status_code == 503

    def test_gateway_rejected(self, client, fake_gateway):
        fake_gateway.queue(GatewayRejected("quota exceeded", status_code=402))
        response = client.post("/api/plans/generate", json={"topic": "Rust"}, headers=HEADERS)
        assert response.status_code == 502
        assert response.json()["detail"] == "quota exceeded"


class TestPlans:
    def test_list(self, client, created_plan):
        response = client.get("/api/plans", headers=HEADERS)
        assert [p["plan"]["id"] for p in response.json()] == [created_plan["plan"]["id"]]
        assert client.get("/api/plans", headers=OTHER_HEADERS).json() == []
        assert client.get("/api/plans?status=archived", headers=HEADERS).json() == []

    def test_get(self, client, created_plan):
        plan_id = created_plan["plan"]["id"]
        response = client.get(f"/api/plans/{plan_id}", headers=HEADERS)
        assert response.status_code == 200
        assert len(response.json()["challenges"]) == 3

    def test_get_other_users_plan(self, client, created_plan):
        plan_id = created_plan["plan"]["id"]
        assert client.get(f"/api/plans/{plan_id}", headers=OTHER_HEADERS).status_code == 404

    def test_archive(self, client, created_plan):
        plan_id = created_plan["plan"]["id"]
        response = client.post(f"/api/plans/{plan_id}/archive", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["status"] == "archived"


class TestChallengesAndSubmissions:
    def test_start(self, client, created_plan):
        challenge_id = created_plan["challenges"][0]["id"]
        response = client.post(f"/api/challenges/{challenge_id}/start", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

    def test_evaluate(self, client, fake_gateway, created_plan):
        challenge_id = created_plan["challenges"][0]["id"]
        fake_gateway.queue(evaluation_response(True, 91, "Clear explanation."))

        response = client.post(
            "/api/submissions/evaluate",
            json={"challenge_id": challenge_id, "content": "A vector space is..."},
            headers=HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["passed"] is True
        assert body["score"] == 91
        assert body["feedback"] == "Clear explanation."
        assert body["submission"]["status"] == "passed"
        assert body["plan_status"] == "active"

    def test_evaluate_blank_content(self, client, fake_gateway, created_plan):
        challenge_id = created_plan["challenges"][0]["id"]
        response = client.post(
            "/api/submissions/evaluate",
            json={"challenge_id": challenge_id, "content": "   "},
            headers=HEADERS,
        )
        assert response.status_code == 400
        assert len(fake_gateway.calls) == 1

    def test_evaluate_other_users_challenge(self, client, created_plan):
        challenge_id = created_plan["challenges"][0]["id"]
        response = client.post(
            "/api/submissions/evaluate",
            json={"challenge_id": challenge_id, "content": "Answer"},
            headers=OTHER_HEADERS,
        )
        assert response.status_code == 403

    def test_evaluate_unknown_challenge(self, client):
        response = client.post(
            "/api/submissions/evaluate",
            json={"challenge_id": "missing", "content": "Answer"},
            headers=HEADERS,
        )
        assert response.status_code == 404


class TestRecompute:
    def test_nothing_completed(self, client, created_plan):
        response = client.post(
            "/api/plans/recompute", json={"plan_id": created_plan["plan"]["id"]}, headers=HEADERS
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "No completed challenges to adapt from"
        assert body["updated_challenges"] == []

    def test_recompute_after_submission(self, client, fake_gateway, created_plan):
        plan_id = created_plan["plan"]["id"]
        challenge_id = created_plan["challenges"][0]["id"]
        fake_gateway.queue(evaluation_response(False, 45, "Keep going."))
        client.post(
            "/api/submissions/evaluate",
            json={"challenge_id": challenge_id, "content": "Answer"},
            headers=HEADERS,
        )

        fake_gateway.queue(adaptation_response(1))
        response = client.post("/api/plans/recompute", json={"plan_id": plan_id}, headers=HEADERS)

        body = response.json()
        assert body["message"] == "Plan recomputed successfully"
        assert [c["order_index"] for c in body["updated_challenges"]] == [3]
        assert body["average_score"] == 70

    def test_enough_pending(self, client, fake_gateway, created_plan):
        plan_id = created_plan["plan"]["id"]
        fake_gateway.queue(evaluation_response(True, 80), adaptation_response(1))
        client.post(
            "/api/submissions/evaluate",
            json={"challenge_id": created_plan["challenges"][0]["id"], "content": "Answer"},
            headers=HEADERS,
        )
        client.post("/api/plans/recompute", json={"plan_id": plan_id}, headers=HEADERS)

        response = client.post("/api/plans/recompute", json={"plan_id": plan_id}, headers=HEADERS)
        assert response.json()["message"] == "Enough pending challenges exist"
