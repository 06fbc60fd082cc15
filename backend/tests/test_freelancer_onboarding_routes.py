"""
Become-a-Freelancer wizard API: guard, mount, field edits, step gating,
submission and identity refresh.
"""
from unittest.mock import AsyncMock, MagicMock, patch

from conftest import CLIENT_USER, auth_headers, make_cursor, make_db
from auth import decode_access_token

BASE = "/api/freelancer-onboarding"
SKILLS = ["web-design", "react", "seo"]
CATALOG = [
    {"skill_id": "react", "name": "React"},
    {"skill_id": "seo", "name": "SEO"},
    {"skill_id": "web-design", "name": "Web Design"},
]


def _db(user=None):
    db = make_db()
    db.users.find_one = AsyncMock(return_value=user if user is not None else dict(CLIENT_USER))
    db.skills.find = MagicMock(return_value=make_cursor(CATALOG))
    return db


def _mount(client, db, headers=None):
    with patch("routes.freelancer_onboarding.database.get_db", return_value=db):
        response = client.post(f"{BASE}/sessions", headers=headers or auth_headers(CLIENT_USER))
    assert response.status_code == 200, response.text
    return response.json()


def _patch_fields(client, session_id, fields):
    return client.patch(
        f"{BASE}/sessions/{session_id}/fields",
        json={"fields": fields},
        headers=auth_headers(CLIENT_USER),
    )


def _post(client, session_id, action):
    return client.post(f"{BASE}/sessions/{session_id}/{action}", headers=auth_headers(CLIENT_USER))


def _walk_to_agreement(client, session_id):
    _patch_fields(client, session_id, {"skills": SKILLS, "bio": "b" * 60})
    assert _post(client, session_id, "advance").json()["step"] == 2
    assert _post(client, session_id, "advance").json()["step"] == 3
    _patch_fields(client, session_id, {
        "availability": "Full-time",
        "workingHours": "09:00-17:00",
        "portfolioLink": "https://github.com/client-one",
    })
    assert _post(client, session_id, "advance").json()["step"] == 4
    _patch_fields(client, session_id, {"agreeToFreelancerTerms": True, "agreeToQualityStandards": True})


class TestGuard:

    def test_unauthenticated_redirects_to_login(self, client):
        with patch("utils.audit.database.get_db", return_value=make_db()):
            response = client.post(f"{BASE}/sessions")

        assert response.status_code == 401
        assert response.headers["X-Redirect"] == "/login"

    def test_skill_suggestions_require_auth(self, client):
        with patch("utils.audit.database.get_db", return_value=make_db()):
            response = client.get(f"{BASE}/skills")
        assert response.status_code == 401

    def test_skill_suggestions(self, client):
        with patch("services.skill_catalog.database.get_db", return_value=_db()):
            response = client.get(f"{BASE}/skills", headers=auth_headers(CLIENT_USER))

        assert response.status_code == 200
        assert response.json()["skills"][0] == {"id": "react", "name": "React"}


class TestMount:

    def test_mount_seeds_bio_from_profile(self, client):
        user = {**CLIENT_USER, "bio": "I design landing pages."}

        view = _mount(client, _db(user))

        assert view["step"] == 1
        assert view["fields"]["bio"] == "I design landing pages."
        assert view["fields"]["skills"] == []
        assert len(view["suggestions"]) == 3
        assert view["can_retreat"] is False

    def test_existing_freelancer_cannot_mount(self, client):
        user = {**CLIENT_USER, "is_freelancer": True, "freelancer_status": "PENDING"}

        with patch("routes.freelancer_onboarding.database.get_db", return_value=_db(user)):
            response = client.post(f"{BASE}/sessions", headers=auth_headers(CLIENT_USER))

        assert response.status_code == 409
        assert response.json()["detail"]["error_code"] == "ALREADY_FREELANCER"

    def test_search_filters_suggestions(self, client):
        view = _mount(client, _db())

        response = client.get(
            f"{BASE}/sessions/{view['session_id']}",
            params={"search": "web"},
            headers=auth_headers(CLIENT_USER),
        )

        assert response.status_code == 200
        assert response.json()["suggestions"] == [{"id": "web-design", "name": "Web Design"}]

    def test_other_user_gets_404(self, client):
        view = _mount(client, _db())
        stranger = {**CLIENT_USER, "user_id": "user-other", "email": "other@example.com"}

        response = client.get(f"{BASE}/sessions/{view['session_id']}", headers=auth_headers(stranger))

        assert response.status_code == 404

    def test_indonesian_messages_from_accept_language(self, client):
        headers = {**auth_headers(CLIENT_USER), "Accept-Language": "id-ID,id;q=0.9"}
        view = _mount(client, _db(), headers=headers)

        response = _post(client, view["session_id"], "advance")

        from services.onboarding_validation import MESSAGES
        assert response.json()["errors"]["skills"] == MESSAGES["id"]["skills_min"]


class TestStepping:

    def test_invalid_step_one_stays_with_errors(self, client):
        view = _mount(client, _db())
        _patch_fields(client, view["session_id"], {"skills": ["react", "seo"], "bio": "b" * 60})

        response = _post(client, view["session_id"], "advance")

        body = response.json()
        assert response.status_code == 200
        assert body["advanced"] is False
        assert body["step"] == 1
        assert set(body["errors"]) == {"skills"}

    def test_unknown_field_is_422(self, client):
        view = _mount(client, _db())

        response = _patch_fields(client, view["session_id"], {"hourlyRate": 20})

        assert response.status_code == 422

    def test_field_of_other_step_is_422(self, client):
        view = _mount(client, _db())

        response = _patch_fields(client, view["session_id"], {"availability": "Full-time"})

        assert response.status_code == 422
        assert "not editable" in response.json()["detail"]

    def test_wrongly_typed_value_is_422(self, client):
        view = _mount(client, _db())

        response = _patch_fields(client, view["session_id"], {"skills": "react"})

        assert response.status_code == 422

    def test_retreat_keeps_draft(self, client):
        view = _mount(client, _db())
        session_id = view["session_id"]
        _patch_fields(client, session_id, {"skills": SKILLS, "bio": "b" * 60})
        _post(client, session_id, "advance")

        body = _post(client, session_id, "retreat").json()

        assert body["retreated"] is True
        assert body["step"] == 1
        assert body["fields"]["skills"] == SKILLS

    def test_submit_before_agreement_step_is_not_ready(self, client):
        view = _mount(client, _db())

        response = _post(client, view["session_id"], "submit")

        assert response.status_code == 200
        assert response.json()["status"] == "not_ready"


class TestSubmit:

    def test_full_flow_grants_role_and_refreshes_identity(self, client):
        granted = {
            **CLIENT_USER,
            "roles": ["client", "freelancer"],
            "is_freelancer": True,
            "freelancer_status": "PENDING",
        }
        db = _db()
        view = _mount(client, db)
        session_id = view["session_id"]

        with patch("routes.freelancer_onboarding.database.get_db", return_value=db):
            _walk_to_agreement(client, session_id)
            db.users.find_one = AsyncMock(side_effect=[{"user_id": CLIENT_USER["user_id"]}, granted])
            response = _post(client, session_id, "submit")

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["status"] == "submitted"
        assert body["redirect"] == "/profile"
        assert body["application"]["freelancer_status"] == "PENDING"

        claims = decode_access_token(body["identity"]["access_token"])
        assert "freelancer" in claims["roles"]
        assert body["identity"]["user"]["is_freelancer"] is True

        profile = db.freelancer_profiles.update_one.call_args[0][1]["$set"]
        assert profile["skills"] == SKILLS
        assert profile["portfolio_link"] == "https://github.com/client-one"

        # Session is discarded after a successful submit
        assert client.get(f"{BASE}/sessions/{session_id}", headers=auth_headers(CLIENT_USER)).status_code == 404

    def test_gateway_failure_shows_banner_and_keeps_session(self, client):
        db = _db()
        view = _mount(client, db)
        session_id = view["session_id"]

        with patch("routes.freelancer_onboarding.database.get_db", return_value=db):
            _walk_to_agreement(client, session_id)
            db.freelancer_profiles.update_one = AsyncMock(side_effect=RuntimeError("replica set unavailable"))
            response = _post(client, session_id, "submit")

        body = response.json()
        assert body["status"] == "failed"
        assert "replica set unavailable" in body["banner"]
        assert body["step"] == 4
        assert body["submitting"] is False
        assert body["fields"]["agreeToFreelancerTerms"] is True
        db.users.update_one.assert_not_called()

    def test_unchecked_agreement_is_invalid(self, client):
        db = _db()
        view = _mount(client, db)
        session_id = view["session_id"]
        _walk_to_agreement(client, session_id)
        _patch_fields(client, session_id, {"agreeToQualityStandards": False})

        response = _post(client, session_id, "submit")

        body = response.json()
        assert body["status"] == "invalid"
        assert set(body["errors"]) == {"agreeToQualityStandards"}
        db.freelancer_profiles.update_one.assert_not_called()


def test_abandon_discards_session(client):
    view = _mount(client, _db())

    response = client.delete(f"{BASE}/sessions/{view['session_id']}", headers=auth_headers(CLIENT_USER))

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.get(f"{BASE}/sessions/{view['session_id']}", headers=auth_headers(CLIENT_USER)).status_code == 404


def test_refresh_failure_after_grant_still_reports_success(client):
    db = _db()
    view = _mount(client, db)
    session_id = view["session_id"]

    with patch("routes.freelancer_onboarding.database.get_db", return_value=db):
        _walk_to_agreement(client, session_id)
        db.users.find_one = AsyncMock(side_effect=[
            {"user_id": CLIENT_USER["user_id"]},
            RuntimeError("secondary not reachable"),
        ])
        response = _post(client, session_id, "submit")

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["status"] == "submitted"
    assert body["identity"] is None
    assert body["application"]["freelancer_status"] == "PENDING"
    db.users.update_one.assert_called_once()
    assert client.get(f"{BASE}/sessions/{session_id}", headers=auth_headers(CLIENT_USER)).status_code == 404


def test_batch_with_bad_value_changes_nothing(client):
    view = _mount(client, _db())
    session_id = view["session_id"]

    response = _patch_fields(client, session_id, {"bio": "b" * 60, "skills": "not-a-list"})

    assert response.status_code == 422
    current = client.get(f"{BASE}/sessions/{session_id}", headers=auth_headers(CLIENT_USER)).json()
    assert current["fields"]["bio"] == ""
    assert current["fields"]["skills"] == []


def test_mount_refused_while_submit_in_flight(client):
    from services.freelancer_wizard import wizard_sessions

    view = _mount(client, _db())
    pending = wizard_sessions.get(view["session_id"], CLIENT_USER["user_id"])
    pending.in_flight = True

    with patch("routes.freelancer_onboarding.database.get_db", return_value=_db()):
        response = client.post(f"{BASE}/sessions", headers=auth_headers(CLIENT_USER))

    assert response.status_code == 409
    assert len(wizard_sessions) == 1
