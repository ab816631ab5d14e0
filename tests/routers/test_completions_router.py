"""
Tests for the /exercise-completions endpoints.
"""
import pytest

from tests.fakes import make_program

pytestmark = pytest.mark.unit


def completion_body(**overrides):
    body = {
        "exercise_id": "ex-1",
        "program_id": "prog-1",
        "milestone_index": 0,
        "day_index": 0,
        "sets": 3,
        "reps": 10,
    }
    body.update(overrides)
    return body


class TestSaveCompletion:
    def test_saves(self, api, fake_completion_repo):
        response = api.post("/exercise-completions", json=completion_body())

        assert response.status_code == 200
        assert response.json()["completion_id"]
        [row] = fake_completion_repo.get_all()
        assert row["reps"] == 10

    def test_out_of_range_values(self, api, fake_completion_repo):
        response = api.post("/exercise-completions", json=completion_body(sets=0))

        assert response.status_code == 422
        body = response.json()
        assert body["error_type"] == "validation"
        assert "Sets must be between 1 and 99" in body["validation_errors"]
        assert fake_completion_repo.get_all() == []


class TestAutoSave:
    def test_saves_partial_data(self, api):
        response = api.post("/exercise-completions/autosave", json=completion_body(sets=None))
        assert response.status_code == 200
        assert response.json()["saved"] is True

    def test_failure_is_still_ok(self, api, fake_completion_repo):
        fake_completion_repo.fail_with = "offline"

        response = api.post("/exercise-completions/autosave", json=completion_body())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["saved"] is False


class TestCompleteAndAdvance:
    def test_next_exercise(self, api):
        response = api.post(
            "/exercise-completions/complete-and-advance",
            json=completion_body(current_exercise_index=0),
        )

        assert response.status_code == 200
        advancement = response.json()["advancement"]
        assert advancement["next_exercise_index"] == 1
        assert advancement["day_completed"] is False

    def test_last_exercise_completes_day(self, api):
        response = api.post(
            "/exercise-completions/complete-and-advance",
            json=completion_body(exercise_id="ex-2", current_exercise_index=1),
        )
        advancement = response.json()["advancement"]
        assert advancement["day_completed"] is True
        assert advancement["next_exercise_index"] is None

    def test_rest_day(self, api, fake_curriculum_repo):
        fake_curriculum_repo.seed([make_program([3], program_id="rest-prog", rest_days=[(0, 1)])])

        response = api.post(
            "/exercise-completions/complete-and-advance",
            json=completion_body(program_id="rest-prog", day_index=1, current_exercise_index=0),
        )

        assert response.status_code == 422
        assert response.json()["error_type"] == "program_mismatch"
