import re

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from pitwall.app import create_app
from pitwall.core import Settings
from pitwall.models import InvitationCode, Picks, User
from pitwall.services.mail import NullMailSender


def extract_code(mail):
    return re.search(r"\d{6}", mail.sent[-1]["html"]).group(0)


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


# -- invitation codes ---------------------------------------------------------


def test_validate_invitation_requires_code(client):
    res = client.post("/invitations/validate", json={})
    assert res.status_code == 400
    assert res.json() == {"ok": False, "error": "invalid-argument", "message": "Code required"}


def test_validate_invitation_reserves_once(app, client):
    code = app.state.league.invitations.create("admin")

    res = client.post("/invitations/validate", json={"code": code})
    assert res.status_code == 200
    assert res.json() == {"valid": True}

    res = client.post("/invitations/validate", json={"code": code})
    assert res.status_code == 409
    assert res.json()["message"] == "Code used"

    res = client.post("/invitations/validate", json={"code": "FF1-2026-ZZZZZZ"})
    assert res.status_code == 404
    assert res.json()["message"] == "Invalid code"


def test_validate_invitation_is_rate_limited_per_client(client):
    headers = {"X-Forwarded-For": "198.51.100.4"}
    for _ in range(5):
        res = client.post("/invitations/validate", json={"code": "nope"}, headers=headers)
        assert res.status_code == 404

    res = client.post("/invitations/validate", json={"code": "nope"}, headers=headers)
    assert res.status_code == 429
    assert res.headers["Retry-After"] == "600"
    assert res.json()["error"] == "resource-exhausted"

    # another client is unaffected
    res = client.post(
        "/invitations/validate", json={"code": "nope"}, headers={"X-Forwarded-For": "198.51.100.5"}
    )
    assert res.status_code == 404


def test_admin_invitation_management(client, make_user, login_as):
    login_as(make_user("boss", is_admin=True))

    codes = client.post("/admin/invitations", json={"count": 3}).json()["codes"]
    assert len(codes) == 3

    listed = client.get("/admin/invitations").json()["codes"]
    assert {row["code"] for row in listed} == set(codes)
    assert all(row["status"] == "active" for row in listed)

    assert client.delete(f"/admin/invitations/{codes[0]}").status_code == 200
    assert client.post("/admin/invitations", json={"count": 101}).status_code == 400


# -- email verification -------------------------------------------------------


def test_send_and_verify_code(client, mail):
    res = client.post("/auth/code/send", json={"email": "Alice@Example.com"})
    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert mail.sent[-1]["to"] == "alice@example.com"
    code = extract_code(mail)

    wrong = "100000" if code != "100000" else "100001"
    res = client.post("/auth/code/verify", json={"email": "alice@example.com", "code": wrong})
    assert res.json() == {"valid": False, "message": "Invalid code"}

    res = client.post("/auth/code/verify", json={"email": "alice@example.com", "code": code})
    assert res.json() == {"valid": True}

    res = client.post("/auth/code/verify", json={"email": "alice@example.com", "code": code})
    assert res.json() == {"valid": False, "message": "Code not found"}


def test_verify_reports_missing_data(client):
    res = client.post("/auth/code/verify", json={"email": "alice@example.com"})
    assert res.status_code == 200
    assert res.json() == {"valid": False, "message": "Missing data"}


def test_verify_reports_expiry(client, mail, clock):
    client.post("/auth/code/send", json={"email": "alice@example.com"})
    code = extract_code(mail)
    clock.advance(601)

    res = client.post("/auth/code/verify", json={"email": "alice@example.com", "code": code})
    assert res.json() == {"valid": False, "message": "Code expired"}


@pytest.mark.parametrize("email", ["", "not-an-email"])
def test_send_code_rejects_bad_email(client, email):
    assert client.post("/auth/code/send", json={"email": email}).status_code == 400


def test_send_code_rate_limit(client):
    for n in range(3):
        res = client.post("/auth/code/send", json={"email": f"user{n}@example.com"})
        assert res.status_code == 200

    res = client.post("/auth/code/send", json={"email": "user9@example.com"})
    assert res.status_code == 429
    assert res.json()["retryAfterSeconds"] == 600


def test_send_code_cooldown_per_email(client, clock):
    assert client.post("/auth/code/send", json={"email": "a@example.com"}).status_code == 200
    res = client.post("/auth/code/send", json={"email": "a@example.com"})
    assert res.status_code == 429
    assert res.json()["message"] == "Too many attempts. Please wait 1 minute."


def test_send_code_without_mail_transport(settings, engine, clock):
    app = create_app(
        settings, engine=engine, clock=clock, mail=NullMailSender(), background_rollups=False
    )
    res = TestClient(app).post("/auth/code/send", json={"email": "a@example.com"})
    assert res.status_code == 412
    assert res.json()["error"] == "failed-precondition"


def test_send_code_in_demo_mode(engine, clock):
    settings = Settings(secret_key="test-secret", app_env="test", enable_demo_mode=True)
    app = create_app(
        settings, engine=engine, clock=clock, mail=NullMailSender(), background_rollups=False
    )
    body = TestClient(app).post("/auth/code/send", json={"email": "a@example.com"}).json()
    assert body["success"] is True
    assert body["demoMode"] is True
    assert re.fullmatch(r"\d{6}", body["code"])


# -- signup -------------------------------------------------------------------


def verify_email(client, mail, email):
    client.post("/auth/code/send", json={"email": email})
    res = client.post("/auth/code/verify", json={"email": email, "code": extract_code(mail)})
    assert res.json() == {"valid": True}


def reserved_code(app, client):
    code = app.state.league.invitations.create("admin")
    assert client.post("/invitations/validate", json={"code": code}).json() == {"valid": True}
    return code


def test_register_with_invitation(app, client, mail, engine):
    code = reserved_code(app, client)
    verify_email(client, mail, "nina@example.com")

    res = client.post(
        "/auth/register",
        json={
            "displayName": "Nina",
            "firstName": "Nina",
            "lastName": "Rossi",
            "invitationCode": code,
        },
    )
    assert res.status_code == 200
    user_id = res.json()["user"]["id"]

    me = client.get("/me").json()["user"]
    assert me["email"] == "nina@example.com"
    assert me["displayName"] == "Nina"

    with Session(engine) as session:
        row = session.get(InvitationCode, code)
        assert row.status == "used"
        assert row.used_by == user_id


def test_register_requires_verified_email(client):
    res = client.post(
        "/auth/register", json={"displayName": "Nina", "firstName": "Nina", "lastName": "Rossi"}
    )
    assert res.status_code == 401


def test_register_requires_invitation_code(client, mail, engine):
    verify_email(client, mail, "eve@example.com")

    res = client.post(
        "/auth/register", json={"displayName": "Eve", "firstName": "Eve", "lastName": "Adams"}
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Code required"
    with Session(engine) as session:
        assert session.exec(select(User)).all() == []


def test_register_requires_reserved_invitation_code(app, client, mail, engine):
    code = app.state.league.invitations.create("admin")
    verify_email(client, mail, "eve@example.com")

    res = client.post(
        "/auth/register",
        json={"displayName": "Eve", "firstName": "Eve", "lastName": "Adams", "invitationCode": code},
    )
    assert res.status_code == 409
    with Session(engine) as session:
        assert session.exec(select(User)).all() == []
        assert session.get(InvitationCode, code).status == "active"


def test_register_rejects_restricted_display_name(app, client, mail):
    code = reserved_code(app, client)
    verify_email(client, mail, "nina@example.com")
    res = client.post(
        "/auth/register",
        json={
            "displayName": "SysAdmin",
            "firstName": "Nina",
            "lastName": "Rossi",
            "invitationCode": code,
        },
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Display name contains restricted words."


def test_session_without_participant_is_forbidden(app, client, mail, engine):
    code = reserved_code(app, client)
    verify_email(client, mail, "nina@example.com")
    user_id = client.post(
        "/auth/register",
        json={"displayName": "Nina", "firstName": "Nina", "lastName": "Rossi", "invitationCode": code},
    ).json()["user"]["id"]
    with Session(engine) as session:
        session.delete(session.get(User, user_id))
        session.commit()

    res = client.post("/admin/leaderboard/sync")
    assert res.status_code == 403
    assert res.json()["error"] == "permission-denied"
    # the stale session is dropped
    assert client.post("/admin/leaderboard/sync").status_code == 401


# -- leaderboard --------------------------------------------------------------


def test_manual_sync_requires_login(client):
    res = client.post("/admin/leaderboard/sync")
    assert res.status_code == 401
    assert res.json()["error"] == "unauthenticated"


def test_manual_sync_requires_admin(client, make_user, login_as):
    login_as(make_user("alice"))
    res = client.post("/admin/leaderboard/sync")
    assert res.status_code == 403
    assert res.json()["message"] == "Only admins can perform this action."


def test_manual_sync_recalculates(client, make_user, login_as):
    login_as(make_user("boss", "Boss", is_admin=True))
    make_user("alice", "Alice")
    client.put(
        "/admin/results/bahrain",
        json={"grandPrixFinish": ["ver"], "gpQualifying": ["ver"], "fastestLap": "ver"},
    )

    res = client.post("/admin/leaderboard/sync")
    assert res.status_code == 200
    assert res.json() == {"success": True, "usersProcessed": 2}


def test_manual_sync_without_results_processes_nobody(client, make_user, login_as):
    login_as(make_user("boss", is_admin=True))
    assert client.post("/admin/leaderboard/sync").json() == {"success": True, "usersProcessed": 0}


def test_manual_sync_rate_limit(client, make_user, login_as):
    login_as(make_user("boss", is_admin=True))
    for _ in range(5):
        assert client.post("/admin/leaderboard/sync").status_code == 200
    assert client.post("/admin/leaderboard/sync").status_code == 429


def test_manual_sync_failure_is_internal(app, client, make_user, login_as, monkeypatch):
    login_as(make_user("boss", is_admin=True))

    def boom():
        raise RuntimeError("disk full")

    monkeypatch.setattr(app.state.league.rollup, "recalculate_all", boom)
    res = client.post("/admin/leaderboard/sync")
    assert res.status_code == 500
    assert res.json() == {
        "ok": False,
        "error": "internal",
        "message": "Recalculation failed on server.",
    }


def test_saving_result_updates_leaderboard(client, make_user, login_as):
    admin = login_as(make_user("boss", "Boss", is_admin=True))
    alice = make_user("alice", "Alice")

    login_as(alice)
    res = client.put("/picks/bahrain", json={"aDrivers": ["ver"], "aTeams": [], "bDrivers": []})
    assert res.status_code == 200

    login_as(admin)
    res = client.put(
        "/admin/results/bahrain",
        json={
            "grandPrixFinish": ["ver", "nor"],
            "gpQualifying": ["ver", "nor"],
            "fastestLap": "nor",
        },
    )
    assert res.status_code == 200

    entries = client.get("/leaderboard").json()["entries"]
    assert entries[0]["userId"] == "alice"
    assert entries[0]["totalPoints"] == 28
    assert entries[0]["breakdown"] == {"gp": 25, "sprint": 0, "quali": 3, "fl": 0}
    assert entries[0]["rank"] == 1
    assert entries[1]["userId"] == "boss"
    assert entries[1]["rank"] == 2


def test_deleting_result_updates_leaderboard(client, make_user, login_as):
    login_as(make_user("boss", is_admin=True))
    client.put("/picks/bahrain", json={"aDrivers": ["ver"]})
    client.put("/picks/jeddah", json={"aDrivers": ["ver"]})
    for event_id in ("bahrain", "jeddah"):
        client.put(f"/admin/results/{event_id}", json={"grandPrixFinish": ["ver"]})
    assert client.get("/leaderboard").json()["entries"][0]["totalPoints"] == 50

    assert client.delete("/admin/results/jeddah").status_code == 200
    assert client.get("/leaderboard").json()["entries"][0]["totalPoints"] == 25
    assert client.delete("/admin/results/jeddah").status_code == 404


# -- picks and profiles -------------------------------------------------------


def test_picks_and_usage(client, make_user, login_as):
    login_as(make_user("alice"))
    client.put("/picks/bahrain", json={"aTeams": ["mclaren"], "bTeam": "haas"})
    client.put("/picks/jeddah", json={"aTeams": ["mclaren"], "aDrivers": ["ver"]})

    body = client.get("/picks").json()
    assert set(body["picks"]) == {"bahrain", "jeddah"}
    assert body["usage"]["teams"] == {"mclaren": 2, "haas": 1}
    assert body["usage"]["drivers"] == {"ver": 1}


def test_admin_penalty(client, engine, make_user, login_as):
    alice = login_as(make_user("alice"))
    client.put("/picks/bahrain", json={"aDrivers": ["ver"]})

    login_as(make_user("boss", is_admin=True))
    res = client.put(
        f"/admin/picks/{alice.id}/bahrain/penalty", json={"penalty": 0.2, "reason": "Late"}
    )
    assert res.json() == {"ok": True, "penalty": 0.2, "reason": "Late"}
    assert client.put(
        f"/admin/picks/{alice.id}/bahrain/penalty", json={"penalty": 1.5}
    ).status_code == 400

    # resubmitting picks keeps the penalty
    login_as(alice)
    client.put("/picks/bahrain", json={"aDrivers": ["nor"]})
    with Session(engine) as session:
        assert session.get(Picks, ("alice", "bahrain")).penalty == 0.2


def test_profile_update_validates_names(client, engine, make_user, login_as):
    login_as(make_user("alice"))

    res = client.patch("/me/profile", json={"displayName": "Speedy"})
    assert res.status_code == 200
    assert res.json()["user"]["displayName"] == "Speedy"

    res = client.patch("/me/profile", json={"firstName": "R2D2"})
    assert res.status_code == 400

    with Session(engine) as session:
        assert session.get(User, "alice").display_name == "Speedy"


def test_scoring_settings_validation(client, make_user, login_as):
    login_as(make_user("boss", is_admin=True))
    res = client.put(
        "/admin/scoring",
        json={
            "activeProfileId": "missing",
            "profiles": [{"id": "std", "name": "Standard", "config": {"grandPrixFinish": [10]}}],
        },
    )
    assert res.status_code == 400

    res = client.put("/admin/scoring", json={"grandPrixFinish": [10, 5], "fastestLap": 1})
    assert res.status_code == 200
    assert client.get("/admin/scoring").json()["active"]["grandPrixFinish"] == [10, 5]
