"""
Admin review of freelancer applications.
"""
from unittest.mock import AsyncMock, MagicMock, patch

from conftest import ADMIN_USER, CLIENT_USER, auth_headers, make_cursor, make_db

BASE = "/api/admin/freelancers"

APPLICANT = {
    "user_id": "user-applicant-1",
    "email": "applicant@example.com",
    "roles": ["client", "freelancer"],
    "is_freelancer": True,
    "freelancer_status": "PENDING",
    "freelancer_applied_at": "2026-01-05T10:00:00+00:00",
}


def test_non_admin_is_forbidden(client):
    response = client.get(BASE, headers=auth_headers(CLIENT_USER))
    assert response.status_code == 403


def test_list_pending_applications(client):
    db = make_db()
    db.users.find = MagicMock(return_value=make_cursor([APPLICANT]))

    with patch("services.freelancer_service.database.get_db", return_value=db):
        response = client.get(BASE, params={"status": "PENDING"}, headers=auth_headers(ADMIN_USER))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["applications"][0]["user_id"] == APPLICANT["user_id"]
    assert db.users.find.call_args[0][0]["freelancer_status"] == "PENDING"


def test_unknown_status_filter_is_422(client):
    response = client.get(BASE, params={"status": "ARCHIVED"}, headers=auth_headers(ADMIN_USER))
    assert response.status_code == 422
    assert "request_id" in response.json()


def test_application_detail_includes_history(client):
    db = make_db()
    db.freelancer_profiles.find_one = AsyncMock(return_value={"user_id": APPLICANT["user_id"], "skills": ["react"]})
    db.audit_logs.find = MagicMock(return_value=make_cursor([{"action": "FREELANCER_APPLICATION_SUBMITTED"}]))

    with patch("services.freelancer_service.database.get_db", return_value=db):
        response = client.get(f"{BASE}/{APPLICANT['user_id']}", headers=auth_headers(ADMIN_USER))

    assert response.status_code == 200
    assert response.json()["history"][0]["action"] == "FREELANCER_APPLICATION_SUBMITTED"
    # Submission and review audits share the user resource the history reads.
    assert db.audit_logs.find.call_args[0][0] == {"resource_type": "user", "resource_id": APPLICANT["user_id"]}


def test_missing_profile_is_404(client):
    with patch("services.freelancer_service.database.get_db", return_value=make_db()):
        response = client.get(f"{BASE}/nobody", headers=auth_headers(ADMIN_USER))
    assert response.status_code == 404


def test_approve_pending_application(client):
    db = make_db()
    db.users.find_one = AsyncMock(return_value=dict(APPLICANT))

    with patch("services.freelancer_service.database.get_db", return_value=db):
        response = client.post(f"{BASE}/{APPLICANT['user_id']}/approve", headers=auth_headers(ADMIN_USER))

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["freelancer_status"] == "APPROVED"
    assert user["freelancer_reviewed_by"] == ADMIN_USER["user_id"]


def test_reject_with_reason(client):
    db = make_db()
    db.users.find_one = AsyncMock(return_value=dict(APPLICANT))

    with patch("services.freelancer_service.database.get_db", return_value=db):
        response = client.post(
            f"{BASE}/{APPLICANT['user_id']}/reject",
            json={"reason": "Portfolio link is broken"},
            headers=auth_headers(ADMIN_USER),
        )

    assert response.status_code == 200
    assert response.json()["user"]["freelancer_review_reason"] == "Portfolio link is broken"


def test_reviewing_twice_is_409(client):
    db = make_db()
    db.users.find_one = AsyncMock(return_value={**APPLICANT, "freelancer_status": "APPROVED"})

    with patch("services.freelancer_service.database.get_db", return_value=db):
        response = client.post(f"{BASE}/{APPLICANT['user_id']}/reject", headers=auth_headers(ADMIN_USER))

    assert response.status_code == 409
    db.users.update_one.assert_not_called()


def test_review_of_non_applicant_is_404(client):
    with patch("services.freelancer_service.database.get_db", return_value=make_db()):
        response = client.post(f"{BASE}/{CLIENT_USER['user_id']}/approve", headers=auth_headers(ADMIN_USER))
    assert response.status_code == 404
