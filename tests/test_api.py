"""HTTP tests through the FastAPI application."""

import uuid

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.repository.repo_history import HistoryRepository
from app.repository.repo_storage import get_storage

from conftest import ReadOnlyStorage, standing_pose


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    return f"user_{uuid.uuid4().hex[:8]}"


def _frame(nose_y, timestamp_ms):
    landmarks = [{"x": 0.5, "y": 0.5, "visibility": 0.9} for _ in range(33)]
    landmarks[0] = {"x": 0.5, "y": nose_y, "visibility": 0.95}
    return {"landmarks": landmarks, "timestamp_ms": timestamp_ms}


class TestHealthcheck:

    def test_healthcheck(self, client):
        response = client.get("/api/healthcheck")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "healthy"
        assert body["data"]["storage"] == "InMemoryStorage"


class TestExerciseApi:

    def test_list_exercises(self, client):
        body = client.get("/api/exercises").json()
        ids = [e["id"] for e in body["data"]]
        assert "chin-tuck" in ids
        assert "squat" in ids

    def test_filter_by_condition(self, client):
        body = client.get("/api/exercises", params={"condition": "round_shoulder"}).json()
        assert body["data"]
        assert all(e["target_condition"] == "round_shoulder" for e in body["data"])

    def test_get_exercise(self, client):
        body = client.get("/api/exercises/chin-tuck").json()
        assert body["data"]["threshold_up"] == pytest.approx(0.28)
        assert body["data"]["axis"] == "y"

    def test_unknown_exercise(self, client):
        response = client.get("/api/exercises/moonwalk")
        assert response.status_code == 404
        assert response.json() == {"success": False, "code": "404", "message": "Exercise moonwalk not found"}

    def test_unknown_session(self, client):
        response = client.post("/api/exercise-sessions/ex_missing/frames", json=_frame(0.3, 0))
        assert response.status_code == 404

    def test_invalid_frame_body(self, client):
        session_id = client.post("/api/exercise-sessions", json={"exercise_id": "chin-tuck"}).json()["data"]["session_id"]
        response = client.post(f"/api/exercise-sessions/{session_id}/frames", json={"timestamp_ms": 0})
        assert response.status_code == 422

    def test_full_session_is_stored(self, client, user_id):
        response = client.post("/api/exercise-sessions", json={"exercise_id": "chin-tuck", "user_id": user_id})
        assert response.status_code == 200
        session_id = response.json()["data"]["session_id"]

        t = 0
        last = None
        for set_index in range(3):
            for _ in range(10):
                client.post(f"/api/exercise-sessions/{session_id}/frames", json=_frame(0.35, t))
                last = client.post(f"/api/exercise-sessions/{session_id}/frames", json=_frame(0.27, t + 100)).json()["data"]
                t += 1000
            assert last["set_completed"]
            if set_index < 2:
                assert last["status"] == "resting"
                assert last["rest_time_sec"] == 15
                state = client.post(f"/api/exercise-sessions/{session_id}/next-set").json()["data"]
                assert state["status"] == "active"

        assert last["session_completed"]
        assert last["result"]["completed_reps"] == [10, 10, 10]
        assert last["result"]["accuracy"] == 100

        history = HistoryRepository(app.state.storage).get_exercise_history(user_id)
        assert len(history) == 1
        assert history[0].total_reps == 30

        finished = client.post(f"/api/exercise-sessions/{session_id}/finish").json()["data"]
        assert finished["result"]["total_reps"] == 30
        assert len(HistoryRepository(app.state.storage).get_exercise_history(user_id)) == 1

    def test_cancel_session(self, client):
        session_id = client.post("/api/exercise-sessions", json={"exercise_id": "squat"}).json()["data"]["session_id"]
        response = client.delete(f"/api/exercise-sessions/{session_id}")
        assert response.json()["data"]["status"] == "cancelled"
        assert client.get(f"/api/exercise-sessions/{session_id}").status_code == 404

    def test_next_set_while_active(self, client):
        session_id = client.post("/api/exercise-sessions", json={"exercise_id": "squat"}).json()["data"]["session_id"]
        response = client.post(f"/api/exercise-sessions/{session_id}/next-set")
        assert response.status_code == 409
        assert response.json()["success"] is False


class TestAnalysisApi:

    def _payload(self, user_id=None):
        return {
            "user_id": user_id,
            "items": [
                {"id": "forward_head", "value": 4, "score": 80},
                {"id": "shoulder_tilt", "value": 1, "score": 60},
            ],
            "overall_score": 82,
        }

    def test_anonymous(self, client):
        body = client.post("/api/analysis", json=self._payload()).json()
        analysis = body["data"]["analysis"]
        assert analysis["diseases"][0] == {
            "id": "forward_head",
            "risk": 44,
            "level": "medium",
            "item_risks": {"forward_head": 55.0, "shoulder_tilt": 0.0},
        }
        assert analysis["primary_concern"]["id"] == "forward_head"
        assert body["data"]["badges"] is None

    def test_with_user_awards_badges(self, client, user_id):
        body = client.post("/api/analysis", json=self._payload(user_id)).json()
        assert body["data"]["badges"]["newly_earned"] == ["first_analysis", "turtle_neck_escape"]

        badges = client.get(f"/api/badges/{user_id}").json()["data"]
        assert badges["earned_count"] == 2

    def test_invalid_score(self, client):
        payload = self._payload()
        payload["overall_score"] = 150
        assert client.post("/api/analysis", json=payload).status_code == 422

    @pytest.mark.parametrize("body", [
        '{"items": [{"id": "forward_head", "value": NaN}]}',
        '{"items": [{"id": "forward_head", "value": 4, "score": NaN}]}',
        '{"items": [{"id": "forward_head", "value": Infinity}]}',
    ])
    def test_non_finite_item_is_a_validation_error(self, client, body):
        response = client.post("/api/analysis", content=body,
                               headers={"Content-Type": "application/json"})
        assert response.status_code == 422

    def test_program_in_response(self, client):
        program = client.post("/api/analysis", json=self._payload()).json()["data"]["program"]
        assert [e["id"] for e in program["recommended"]] == ["chin-tuck", "neck-side-stretch"]
        assert len(program["daily_routine"]) == 6

    def test_landmarks(self, client, user_id):
        response = client.post("/api/analysis/landmarks",
                               json={"user_id": user_id, "landmarks": standing_pose()})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["posture"]["overall_score"] == 99
        assert data["posture"]["overall_grade"] == "good"
        assert "perfect_posture" in data["badges"]["newly_earned"]

    def test_landmarks_without_pose(self, client):
        response = client.post("/api/analysis/landmarks", json={"landmarks": standing_pose()[:10]})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_storage_failure_is_a_warning(self, client, user_id):
        app.dependency_overrides[get_storage] = ReadOnlyStorage
        response = client.post("/api/analysis", json=self._payload(user_id))
        assert response.status_code == 200
        assert response.json()["data"]["warnings"]


class TestBadgeApi:

    CONTEXT = {
        "total_analyses": 1,
        "current_streak": 3,
        "latest_score": 80,
        "previous_score": 70,
        "head_forward_score": 80,
        "shoulder_balance_score": 60,
        "overall_score": 82,
    }

    def test_initial_badges(self, client, user_id):
        data = client.get(f"/api/badges/{user_id}").json()["data"]
        assert len(data["badges"]) == 8
        assert data["earned_count"] == 0

    def test_evaluate_scenario(self, client, user_id):
        data = client.post(f"/api/badges/{user_id}/evaluate", json=self.CONTEXT).json()["data"]
        assert data["newly_earned"] == ["first_analysis", "streak_3", "first_improvement", "turtle_neck_escape"]
        assert data["persisted"] is True

        again = client.post(f"/api/badges/{user_id}/evaluate", json=self.CONTEXT).json()["data"]
        assert again["newly_earned"] == []
        assert again["earned_count"] == 4

    def test_write_failure(self, client, user_id):
        app.dependency_overrides[get_storage] = ReadOnlyStorage
        data = client.post(f"/api/badges/{user_id}/evaluate", json=self.CONTEXT).json()["data"]
        assert data["persisted"] is False
        assert data["warning"]
        assert len(data["newly_earned"]) == 4
