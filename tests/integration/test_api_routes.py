from __future__ import annotations

from forge.core.auth import Role
from forge.domain.services import PinService

from tests.utils import WHAT_I_TRIED, auth_headers, seed_classroom


def _teacher(seeded) -> dict[str, str]:
    return auth_headers(seeded.teacher.id, Role.TEACHER)


def _student(seeded, index: int = 0) -> dict[str, str]:
    return auth_headers(seeded.students[index].id)


async def _open_session(async_client, seeded) -> dict:
    response = await async_client.post(
        f"/classrooms/{seeded.classroom.id}/sessions", headers=_teacher(seeded)
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    async def test_health_reports_database(self, async_client) -> None:
        response = await async_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["datastores"]["database"]["status"] == "ok"
        assert "x-request-id" in response.headers


class TestAuthentication:
    async def test_missing_token(self, async_client, seeded) -> None:
        response = await async_client.get(f"/classrooms/{seeded.classroom.id}/sessions")

        assert response.status_code == 401

    async def test_garbage_token(self, async_client, seeded) -> None:
        response = await async_client.get(
            f"/classrooms/{seeded.classroom.id}/sessions",
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401

    async def test_non_member_forbidden(self, async_client, seeded) -> None:
        response = await async_client.get(
            f"/classrooms/{seeded.classroom.id}/sessions", headers=auth_headers("stranger")
        )

        assert response.status_code == 403
        assert response.json()["detail"]["type"] == "NOT_MEMBER"


class TestSessionRoutes:
    async def test_open_and_end_session(self, async_client, seeded) -> None:
        """Teachers open a drop-in and end it; the listing reflects both."""
        created = await _open_session(async_client, seeded)
        assert created["status"] == "active"

        current = await async_client.get(
            f"/classrooms/{seeded.classroom.id}/sessions/current", headers=_student(seeded)
        )
        assert current.json()["session"]["id"] == created["id"]

        ended = await async_client.post(
            f"/classrooms/{seeded.classroom.id}/sessions/{created['id']}/end",
            headers=_teacher(seeded),
        )
        assert ended.status_code == 200
        assert ended.json()["status"] == "ended"

        listing = await async_client.get(
            f"/classrooms/{seeded.classroom.id}/sessions",
            params={"session_status": "ended"},
            headers=_student(seeded),
        )
        assert [s["id"] for s in listing.json()["sessions"]] == [created["id"]]

    async def test_students_cannot_open_sessions(self, async_client, seeded) -> None:
        response = await async_client.post(
            f"/classrooms/{seeded.classroom.id}/sessions", headers=_student(seeded)
        )

        assert response.status_code == 403
        assert response.json()["detail"]["type"] == "NOT_TEACHER"

    async def test_second_session_conflicts(self, async_client, seeded) -> None:
        await _open_session(async_client, seeded)

        response = await async_client.post(
            f"/classrooms/{seeded.classroom.id}/sessions", headers=_teacher(seeded)
        )

        assert response.status_code == 409
        assert response.json()["detail"]["type"] == "ACTIVE_SESSION_EXISTS"

    async def test_no_current_session(self, async_client, seeded) -> None:
        response = await async_client.get(
            f"/classrooms/{seeded.classroom.id}/sessions/current", headers=_student(seeded)
        )

        assert response.status_code == 200
        assert response.json() == {"session": None}


class TestPresenceRoutes:
    async def test_sign_in_and_out(self, async_client, seeded) -> None:
        session = await _open_session(async_client, seeded)
        base = f"/sessions/{session['id']}/sign-ins"

        signed_in = await async_client.post(base, headers=_student(seeded))
        present = await async_client.get(base, headers=_student(seeded, 1))
        signed_out = await async_client.post(f"{base}/sign-out", headers=_student(seeded))

        assert signed_in.status_code == 201
        assert signed_in.json()["person_id"] == seeded.students[0].id
        assert [p["person_id"] for p in present.json()["people"]] == [seeded.students[0].id]
        assert signed_out.json()["signout_type"] == "self"

    async def test_student_cannot_sign_in_someone_else(self, async_client, seeded) -> None:
        session = await _open_session(async_client, seeded)

        response = await async_client.post(
            f"/sessions/{session['id']}/sign-ins",
            json={"person_id": seeded.students[1].id},
            headers=_student(seeded),
        )

        assert response.status_code == 403

    async def test_teacher_signs_student_in(self, async_client, seeded) -> None:
        session = await _open_session(async_client, seeded)

        response = await async_client.post(
            f"/sessions/{session['id']}/sign-ins",
            json={"person_id": seeded.students[1].id},
            headers=_teacher(seeded),
        )

        assert response.status_code == 201
        assert response.json()["signed_in_by_id"] == seeded.teacher.id

    async def test_unknown_session(self, async_client, seeded) -> None:
        response = await async_client.post("/sessions/missing/sign-ins", headers=_student(seeded))

        assert response.status_code == 404
        assert response.json()["detail"]["type"] == "SESSION_NOT_FOUND"


class TestHelpRoutes:
    async def test_help_flow(self, async_client, seeded) -> None:
        """Request, queue, claim and resolve through the API."""
        session = await _open_session(async_client, seeded)
        base = f"/classrooms/{seeded.classroom.id}/help"

        created = await async_client.post(
            f"{base}/requests",
            json={
                "session_id": session["id"],
                "description": "Tests fail on import",
                "what_i_tried": WHAT_I_TRIED,
                "urgency": "blocked",
            },
            headers=_student(seeded),
        )
        assert created.status_code == 201, created.text
        request_id = created.json()["request"]["id"]
        assert created.json()["queue_position"] == 1

        queue = await async_client.get(
            f"{base}/queue", params={"session_id": session["id"]}, headers=_teacher(seeded)
        )
        assert [entry["request"]["id"] for entry in queue.json()["queue"]] == [request_id]

        mine = await async_client.get(f"{base}/requests/mine", headers=_student(seeded))
        assert [r["id"] for r in mine.json()] == [request_id]

        claimed = await async_client.post(
            f"{base}/requests/{request_id}/claim", headers=_teacher(seeded)
        )
        assert claimed.json()["status"] == "claimed"

        resolved = await async_client.post(
            f"{base}/requests/{request_id}/resolve",
            json={"resolution_notes": "Missing __init__"},
            headers=_teacher(seeded),
        )
        assert resolved.status_code == 200
        assert resolved.json()["status"] == "resolved"
        assert resolved.json()["resolution_notes"] == "Missing __init__"

    async def test_validation_error_is_422(self, async_client, seeded) -> None:
        session = await _open_session(async_client, seeded)

        response = await async_client.post(
            f"/classrooms/{seeded.classroom.id}/help/requests",
            json={"session_id": session["id"], "description": "Help", "what_i_tried": "nothing"},
            headers=_student(seeded),
        )

        assert response.status_code == 422
        assert response.json()["detail"]["type"] == "VALIDATION_ERROR"

    async def test_cancel_without_body(self, async_client, seeded) -> None:
        session = await _open_session(async_client, seeded)
        base = f"/classrooms/{seeded.classroom.id}/help"
        created = await async_client.post(
            f"{base}/requests",
            json={"session_id": session["id"], "description": "Help", "what_i_tried": WHAT_I_TRIED},
            headers=_student(seeded),
        )
        request_id = created.json()["request"]["id"]

        denied = await async_client.post(
            f"{base}/requests/{request_id}/cancel", headers=_student(seeded, 1)
        )
        cancelled = await async_client.post(
            f"{base}/requests/{request_id}/cancel", headers=_student(seeded)
        )

        assert denied.status_code == 403
        assert cancelled.json()["status"] == "cancelled"

    async def test_request_outside_classroom_is_hidden(self, async_client, env, seeded) -> None:
        other = await seed_classroom(env, classroom_id="room-2", display_code="ROOM22")
        session = await _open_session(async_client, seeded)
        created = await async_client.post(
            f"/classrooms/{seeded.classroom.id}/help/requests",
            json={"session_id": session["id"], "description": "Help", "what_i_tried": WHAT_I_TRIED},
            headers=_student(seeded),
        )
        request_id = created.json()["request"]["id"]

        response = await async_client.post(
            f"/classrooms/{other.classroom.id}/help/requests/{request_id}/claim",
            headers=auth_headers(other.teacher.id, Role.TEACHER),
        )

        assert response.status_code == 404


class TestPinRoutes:
    async def test_pin_login_acts_as_student(self, async_client, env, seeded) -> None:
        """A PIN session token authenticates its student on the other routes."""
        student = seeded.students[0]
        await PinService(env).set_pin(classroom_id=seeded.classroom.id, person_id=student.id, pin="4821")
        session = await _open_session(async_client, seeded)

        login = await async_client.post(
            "/pin/login", json={"classroom_code": "abc123", "pin": "4821"}
        )
        assert login.status_code == 200
        token = login.json()["token"]
        headers = {"Authorization": f"Bearer {token}"}

        signed_in = await async_client.post(f"/sessions/{session['id']}/sign-ins", headers=headers)
        assert signed_in.status_code == 201
        assert signed_in.json()["person_id"] == student.id

        logout = await async_client.post("/pin/logout", headers=headers)
        assert logout.status_code == 204
        after = await async_client.get(f"/sessions/{session['id']}/sign-ins", headers=headers)
        assert after.status_code == 401

    async def test_bad_pin(self, async_client, seeded) -> None:
        response = await async_client.post(
            "/pin/login", json={"classroom_code": "ABC123", "pin": "0000"}
        )

        assert response.status_code == 401
        assert response.json()["detail"]["type"] == "INVALID_CREDENTIALS"


class TestDisplayRoutes:
    """The unauthenticated classroom board."""

    async def test_board_before_and_during_session(self, async_client, seeded) -> None:
        before = await async_client.get("/display/abc123")

        assert before.status_code == 200
        assert before.json()["classroom_name"] == "Period 3 Programming"
        assert before.json()["session"] is None
        assert before.json()["present"] == []

        session = await _open_session(async_client, seeded)
        await async_client.post(f"/sessions/{session['id']}/sign-ins", headers=_student(seeded))
        await async_client.post(
            f"/classrooms/{seeded.classroom.id}/help/requests",
            json={
                "session_id": session["id"],
                "description": "Tests fail on import",
                "what_i_tried": WHAT_I_TRIED,
                "urgency": "question",
            },
            headers=_student(seeded, 1),
        )

        during = await async_client.get("/display/ABC123")

        body = during.json()
        assert body["session"]["id"] == session["id"]
        assert [p["person_id"] for p in body["present"]] == [seeded.students[0].id]
        (entry,) = body["queue"]
        assert entry["position"] == 1
        assert entry["requester_name"] == seeded.students[1].display_name
        assert "requester_id" not in entry

    async def test_unknown_display_code(self, async_client) -> None:
        response = await async_client.get("/display/ZZZ999")

        assert response.status_code == 404
        assert response.json()["detail"]["type"] == "CLASSROOM_NOT_FOUND"
