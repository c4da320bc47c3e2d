"""Tests for the exercise session, badge and analysis services."""

import pytest

from app.helpers.exception_handler import CustomException
from app.repository.repo_badge import BadgeRepository
from app.repository.repo_history import HistoryRepository
from app.schemas.sche_analysis import AnalysisRequest, LandmarkAnalysisRequest
from app.schemas.sche_exercise import ProcessFrameRequest, SessionStatus, StartSessionRequest
from app.services.srv_analysis import HISTORY_SAVE_WARNING, AnalysisService
from app.services.srv_badge import BadgeService
from app.services.srv_exercise import ExerciseSessionService
from app.posture_engine.modules import BadgeCheckContext
from app.repository.repo_storage import InMemoryStorage
from conftest import standing_pose


class BadgeWriteFailingStorage(InMemoryStorage):
    def save(self, key, data):
        if key.startswith("user_badges:"):
            return False
        return super().save(key, data)


class AnalysisWriteFailingStorage(InMemoryStorage):
    def save(self, key, data):
        if key.startswith("analysis_history:"):
            return False
        return super().save(key, data)


def _frame_request(nose_y, timestamp_ms, visibility=0.9):
    landmarks = [{"x": 0.5, "y": 0.5, "visibility": 0.9} for _ in range(33)]
    landmarks[0] = {"x": 0.5, "y": nose_y, "visibility": visibility}
    return ProcessFrameRequest(landmarks=landmarks, timestamp_ms=timestamp_ms)


@pytest.fixture
def service(short_config):
    now = [0.0]
    svc = ExerciseSessionService(catalog={short_config.id: short_config}, session_timeout=3600,
                                 clock=lambda: now[0])
    svc.now = now
    return svc


def _rep(service, session_id, t_ms, on_result=None):
    service.process_frame(session_id, _frame_request(0.35, t_ms), on_result=on_result)
    return service.process_frame(session_id, _frame_request(0.27, t_ms + 100), on_result=on_result)


class TestExerciseSessionService:

    def test_unknown_exercise(self, service):
        with pytest.raises(CustomException) as exc:
            service.start_session(StartSessionRequest(exercise_id="moonwalk"))
        assert exc.value.http_code == 404

    def test_unknown_session(self, service):
        with pytest.raises(CustomException) as exc:
            service.process_frame("ex_missing", _frame_request(0.3, 0))
        assert exc.value.http_code == 404

    def test_frame_flow(self, service):
        session_id = service.start_session(StartSessionRequest(exercise_id="short")).session_id

        response = service.process_frame(session_id, _frame_request(0.35, 0))
        assert response.value == pytest.approx(0.35)
        assert response.phase == "engaged"

        response = service.process_frame(session_id, _frame_request(0.27, 100))
        assert response.counted
        assert response.rep_count == 1

    def test_occluded_frame(self, service):
        session_id = service.start_session(StartSessionRequest(exercise_id="short")).session_id
        response = service.process_frame(session_id, _frame_request(0.35, 0, visibility=0.1))
        assert response.value is None
        assert response.phase == "rest"

    def test_rest_and_next_set(self, service):
        session_id = service.start_session(StartSessionRequest(exercise_id="short")).session_id
        _rep(service, session_id, 0)
        response = _rep(service, session_id, 1000)

        assert response.set_completed
        assert response.status == SessionStatus.RESTING
        assert response.rest_time_sec == 10

        state = service.next_set(session_id)
        assert state.status == SessionStatus.ACTIVE
        assert state.completed_reps == [2]

    def test_next_set_requires_rest(self, service):
        session_id = service.start_session(StartSessionRequest(exercise_id="short")).session_id
        with pytest.raises(CustomException) as exc:
            service.next_set(session_id)
        assert exc.value.http_code == 409

    def test_completion_reports_result_once(self, service):
        results = []
        on_result = lambda user_id, result: results.append((user_id, result))
        session_id = service.start_session(StartSessionRequest(exercise_id="short", user_id="u1")).session_id

        _rep(service, session_id, 0, on_result)
        _rep(service, session_id, 1000, on_result)
        service.next_set(session_id)
        _rep(service, session_id, 2000, on_result)
        service.now[0] = 30000.0
        response = _rep(service, session_id, 3000, on_result)

        assert response.session_completed
        assert response.status == SessionStatus.COMPLETED
        assert response.result.completed_reps == [2, 2]
        assert response.result.duration == 30

        finished = service.finish_session(session_id, on_result=on_result)
        assert finished.result.total_reps == 4
        assert len(results) == 1
        assert results[0][0] == "u1"

    def test_finish_early_returns_partial(self, service):
        results = []
        session_id = service.start_session(StartSessionRequest(exercise_id="short", user_id="u1")).session_id
        _rep(service, session_id, 0)

        finished = service.finish_session(session_id, on_result=lambda u, r: results.append(r))
        assert finished.result.completed_reps == [1]
        assert finished.result.accuracy == 25
        assert len(results) == 1
        assert service.active_session_count == 0

    def test_finish_without_reps_is_not_reported(self, service):
        results = []
        session_id = service.start_session(StartSessionRequest(exercise_id="short", user_id="u1")).session_id
        finished = service.finish_session(session_id, on_result=lambda u, r: results.append(r))
        assert finished.result.total_reps == 0
        assert results == []

    def test_cancel_discards(self, service):
        session_id = service.start_session(StartSessionRequest(exercise_id="short")).session_id
        _rep(service, session_id, 0)

        response = service.cancel_session(session_id)
        assert response.status == SessionStatus.CANCELLED
        assert response.result is None
        with pytest.raises(CustomException):
            service.get_session(session_id)

    def test_expired_session(self, service):
        session_id = service.start_session(StartSessionRequest(exercise_id="short")).session_id
        service.session_timeout = -1
        with pytest.raises(CustomException) as exc:
            service.get_session(session_id)
        assert exc.value.http_code == 404
        assert service.active_session_count == 0

    def test_cleanup_tolerates_sessions_added_meanwhile(self, service):
        session_id = service.start_session(StartSessionRequest(exercise_id="short")).session_id
        session = service._sessions[session_id]

        def start_another(timeout):
            # A concurrent request registers a session mid-scan
            service._sessions.setdefault("ex_other", session)
            return True

        session.is_expired = start_another
        assert service._cleanup_expired_sessions() == 1
        assert session_id not in service._sessions

    def test_session_log_written(self, short_config, tmp_path):
        svc = ExerciseSessionService(catalog={short_config.id: short_config}, log_dir=str(tmp_path))
        session_id = svc.start_session(StartSessionRequest(exercise_id="short")).session_id
        _rep(svc, session_id, 0)
        svc.finish_session(session_id)

        assert len(list(tmp_path.glob(f"session_{session_id}_*.json"))) == 1


class TestBadgeService:

    def test_evaluate_and_persist(self, memory_storage):
        service = BadgeService(BadgeRepository(memory_storage))
        update = service.evaluate("u1", BadgeCheckContext(total_analyses=1))

        assert update.newly_earned == ["first_analysis"]
        assert update.persisted
        assert update.warning is None
        assert service.get_badges("u1").earned_count == 1

    def test_write_failure_still_reports_badges(self, read_only_storage):
        service = BadgeService(BadgeRepository(read_only_storage))
        update = service.evaluate("u1", BadgeCheckContext(total_analyses=1))

        assert update.newly_earned == ["first_analysis"]
        assert update.persisted is False
        assert update.warning

    def test_nothing_new_is_not_written(self, read_only_storage):
        service = BadgeService(BadgeRepository(read_only_storage))
        update = service.evaluate("u1", BadgeCheckContext())
        assert update.newly_earned == []
        assert update.persisted


class TestAnalysisService:

    def _service(self, storage):
        return AnalysisService(HistoryRepository(storage), BadgeService(BadgeRepository(storage)))

    def _request(self, user_id=None):
        return AnalysisRequest(
            user_id=user_id,
            items=[
                {"id": "forward_head", "value": 4, "score": 80},
                {"id": "shoulder_tilt", "value": 1, "score": 60},
            ],
            overall_score=82,
        )

    def test_anonymous_analysis(self, memory_storage):
        response = self._service(memory_storage).analyze(self._request())
        assert response.analysis.overall_risk == 26
        assert response.analysis.primary_concern.id == "forward_head"
        assert response.badges is None
        assert response.warnings == []

    def test_user_analysis_records_and_awards(self, memory_storage):
        service = self._service(memory_storage)
        response = service.analyze(self._request("u1"))

        assert response.badges.newly_earned == ["first_analysis", "turtle_neck_escape"]
        assert len(service.history_repo.get_analysis_history("u1")) == 1

        response = service.analyze(self._request("u1"))
        assert response.badges.newly_earned == []

    def test_history_write_failure_becomes_warning(self, read_only_storage):
        response = self._service(read_only_storage).analyze(self._request("u1"))
        assert response.analysis.overall_risk == 26
        assert response.badges.newly_earned == ["first_analysis", "turtle_neck_escape"]
        assert HISTORY_SAVE_WARNING in response.warnings

    def test_history_write_failure_keeps_new_badges(self):
        storage = AnalysisWriteFailingStorage()
        request = AnalysisRequest(
            user_id="u1",
            items=[
                {"id": "forward_head", "value": 1, "score": 95},
                {"id": "shoulder_tilt", "value": 0.5, "score": 95},
            ],
            overall_score=95,
        )
        response = self._service(storage).analyze(request)

        assert response.warnings == [HISTORY_SAVE_WARNING]
        assert response.badges.newly_earned == [
            "first_analysis", "turtle_neck_escape", "shoulder_balance", "perfect_posture",
        ]
        assert response.badges.persisted

    def test_overall_score_defaults_to_weighted_items(self, memory_storage):
        request = self._request("u1")
        request.overall_score = None
        service = self._service(memory_storage)
        service.analyze(request)

        # (80*0.35 + 60*0.25) / 0.6 = 71.67; a single warning item carries no penalty
        assert service.history_repo.get_analysis_history("u1")[0].overall_score == 72

    def test_program_follows_risk(self, memory_storage):
        response = self._service(memory_storage).analyze(self._request())

        program = response.program
        assert [e.id for e in program.recommended] == ["chin-tuck", "neck-side-stretch"]
        assert program.urgent == []
        assert [e.id for e in program.preventive] == ["shoulder-squeeze", "shoulder-blade-squeeze"]
        assert program.weekly_goal

    def test_analyze_landmarks(self, memory_storage):
        request = LandmarkAnalysisRequest(user_id="u1", landmarks=standing_pose())
        response = self._service(memory_storage).analyze_landmarks(request)

        # Straight knees (180) score 96: 100*0.85 + 96*0.15 = 99.4
        assert response.posture.overall_score == 99
        assert response.posture.items[3].score == 96
        assert [i.id for i in response.posture.items] == [
            "forward_head", "shoulder_tilt", "pelvis_tilt", "knee_angle",
        ]
        assert response.analysis.overall_risk == 0
        assert "perfect_posture" in response.badges.newly_earned

    def test_analyze_landmarks_without_pose(self, memory_storage):
        request = LandmarkAnalysisRequest(landmarks=standing_pose()[:20])
        with pytest.raises(ValueError):
            self._service(memory_storage).analyze_landmarks(request)

    def test_badge_write_failure_becomes_warning(self):
        storage = BadgeWriteFailingStorage()
        response = self._service(storage).analyze(self._request("u1"))

        assert response.badges.newly_earned == ["first_analysis", "turtle_neck_escape"]
        assert response.badges.persisted is False
        assert response.warnings == [response.badges.warning]

