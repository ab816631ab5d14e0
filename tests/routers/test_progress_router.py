"""
Tests for the /progress endpoints.

Requests run as DEFAULT_USER_ID against a program of two milestones with
3 and 4 workout days.
"""
import pytest

from tests.fakes import make_progress

pytestmark = pytest.mark.unit


class TestOverview:
    def test_overview(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(1, 0, total_workouts_completed=3)])

        response = api.get("/progress", params={"start_date": "2024-01-01T00:00:00Z"})

        assert response.status_code == 200
        body = response.json()
        assert body["program"]["id"] == "prog-1"
        assert body["program_progress"]["completion_percentage"] == 43
        assert body["is_valid"] is True
        assert body["analytics"] is not None

    def test_not_enrolled(self, api):
        response = api.get("/progress")
        assert response.status_code == 404
        assert response.json()["error_type"] == "no_active_program"


class TestValidate:
    def test_auto_repair(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 10)])

        response = api.post("/progress/validate")

        assert response.status_code == 200
        body = response.json()
        assert body["repaired"] is True
        assert (body["repair"]["milestone"], body["repair"]["day"]) == (0, 2)
        assert fake_progress_repo.get_progress("user-1").current_day_index == 2

    def test_report_only(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 10)])

        response = api.post("/progress/validate", params={"auto_repair": "false"})

        assert response.status_code == 422
        body = response.json()
        assert body["error_type"] == "day_index_invalid"
        assert body["repair_action"]["type"] == "adjust_to_valid_position"
        assert fake_progress_repo.get_progress("user-1").current_day_index == 10

    def test_valid(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(1, 3)])
        body = api.post("/progress/validate").json()
        assert body["is_valid"] is True
        assert body["repaired"] is False


class TestAdvance:
    def test_advance_day_into_next_milestone(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 2, total_workouts_completed=2)])

        response = api.post("/progress/advance-day")

        assert response.status_code == 200
        body = response.json()
        assert body["from_position"] == {"milestone_index": 0, "day_index": 2}
        assert body["to_position"] == {"milestone_index": 1, "day_index": 0}
        assert body["milestone_completed"] is True
        assert body["progress"]["total_workouts_completed"] == 3
        assert body["audit_id"]

    def test_advance_day_without_program(self, api):
        response = api.post("/progress/advance-day")
        assert response.status_code == 404
        assert response.json()["error_type"] == "no_active_program"

    def test_completed_program(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(2, 0)])

        response = api.post("/progress/advance-day")

        assert response.status_code == 422
        assert response.json()["program_completed"] is True

    def test_write_failure(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 0)])
        fake_progress_repo.fail_next_update = "socket closed"

        response = api.post("/progress/advance-day")

        assert response.status_code == 500
        body = response.json()
        assert body["error_type"] == "system_error"
        assert "socket closed" not in body["error"]
        assert fake_progress_repo.get_progress("user-1").current_day_index == 0

    def test_advance_milestone(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 1)])

        response = api.post("/progress/advance-milestone")

        assert response.status_code == 200
        assert response.json()["to_position"] == {"milestone_index": 1, "day_index": 0}

    def test_advance_past_final_milestone(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(1, 0)])
        assert api.post("/progress/advance-milestone").status_code == 422


class TestSetProgress:
    def test_success_is_audited(self, api, fake_progress_repo, fake_audit_repo):
        fake_progress_repo.seed([make_progress(0, 1, total_workouts_completed=1)])

        response = api.put(
            "/progress", json={"program_id": "prog-1", "milestone_index": 0, "day_index": 2}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["progress"]["current_day_index"] == 2
        assert body["previous_progress"]["current_day_index"] == 1
        assert body["rollback_available"] is True
        assert fake_audit_repo.get(body["audit_id"]) is not None

    def test_program_mismatch(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 1)])
        response = api.put(
            "/progress", json={"program_id": "other", "milestone_index": 0, "day_index": 2}
        )
        assert response.status_code == 422
        assert response.json()["error_type"] == "program_mismatch"

    def test_stale_expected_position(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 1)])
        response = api.put(
            "/progress",
            json={
                "program_id": "prog-1",
                "milestone_index": 0,
                "day_index": 2,
                "expected_milestone_index": 0,
                "expected_day_index": 0,
            },
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "data_conflict"

    def test_out_of_range_target(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 0)])
        response = api.put(
            "/progress", json={"program_id": "prog-1", "milestone_index": 0, "day_index": 10}
        )
        assert response.status_code == 422
        body = response.json()
        assert body["repair_action"]["target"] == {"milestone_index": 0, "day_index": 2}
        assert body["repair_instructions"]

    def test_missing_fields(self, api):
        assert api.put("/progress", json={"program_id": "prog-1"}).status_code == 422


class TestRollback:
    def test_rollback_after_update(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 1, total_workouts_completed=1)])
        updated = api.put(
            "/progress", json={"program_id": "prog-1", "milestone_index": 0, "day_index": 2}
        ).json()

        response = api.post(
            "/progress/rollback",
            json={"audit_id": updated["audit_id"], "reason": "Tapped the wrong day"},
        )

        assert response.status_code == 200
        assert response.json()["rolled_back_to"] == {"milestone": 0, "day": 1, "total_workouts": 1}
        assert fake_progress_repo.get_progress("user-1").current_day_index == 1

    def test_unknown_entry(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 1)])
        response = api.post("/progress/rollback", json={"audit_id": "nope", "reason": "oops"})
        assert response.status_code == 404


class TestAudit:
    def test_lists_recorded_changes(self, api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 2)])
        api.post("/progress/advance-day")

        response = api.get("/progress/audit")

        assert response.status_code == 200
        [entry] = response.json()
        assert entry["action"] == "milestone_advance"
        assert entry["previous_state"]["day"] == 2
        assert entry["new_state"] == {"milestone": 1, "day": 0, "total_workouts": 1}

    def test_limit_bounds(self, api):
        assert api.get("/progress/audit", params={"limit": 0}).status_code == 422
        assert api.get("/progress/audit", params={"limit": 201}).status_code == 422
