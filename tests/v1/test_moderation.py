# tests/v1/test_moderation.py
"""Tests for moderation endpoints."""

from fastapi import status

from commons_board.models import Notification, UserAccount


def _report(client, discussion_id: int, reporter: str, reason: str = "Spam"):
    return client.post(
        "/api/v1/moderation/report",
        json={"discussion_id": discussion_id, "reason": reason, "reporter_identity": reporter},
    )


def test_file_report_flags_discussion(client, make_discussion, alice, bob) -> None:
    discussion = make_discussion("Event", author_identity=alice.identity)
    response = _report(client, discussion.id, bob.identity)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "pending"
    assert data["reported_identity"] == alice.identity

    flagged = client.get(f"/api/v1/discussions/{discussion.id}").json()
    assert flagged["status"] == "flagged"
    assert flagged["is_flagged"] is True
    assert flagged["flag_count"] == 1


def test_duplicate_report_rejected(client, make_discussion, bob, carol) -> None:
    discussion = make_discussion("Event")
    assert _report(client, discussion.id, bob.identity).status_code == 201

    response = _report(client, discussion.id, carol.identity, reason="Harassment")
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "already_reported"
    assert response.json()["detail"] == "This discussion has already been reported"


def test_report_unknown_reason(client, make_discussion, bob) -> None:
    discussion = make_discussion("Event")
    response = _report(client, discussion.id, bob.identity, reason="Boring")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_report_nonexistent_discussion(client, bob) -> None:
    response = _report(client, 99999, bob.identity)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_check_report(client, make_discussion, bob) -> None:
    discussion = make_discussion("Event")
    before = client.get("/api/v1/moderation/report/check", params={"discussion_id": discussion.id})
    assert before.json() == {"has_pending_report": False}

    _report(client, discussion.id, bob.identity)
    after = client.get("/api/v1/moderation/report/check", params={"discussion_id": discussion.id})
    assert after.json() == {"has_pending_report": True}


def test_revoke_report(client, make_discussion, bob, carol) -> None:
    discussion = make_discussion("Event")
    _report(client, discussion.id, bob.identity)

    wrong = client.post(
        "/api/v1/moderation/report/revoke",
        json={"discussion_id": discussion.id, "reporter_identity": carol.identity},
    )
    assert wrong.status_code == status.HTTP_403_FORBIDDEN

    response = client.post(
        "/api/v1/moderation/report/revoke",
        json={"discussion_id": discussion.id, "reporter_identity": bob.identity},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Report revoked successfully"}

    restored = client.get(f"/api/v1/discussions/{discussion.id}").json()
    assert restored["status"] == "active"
    assert restored["is_flagged"] is False
    assert restored["flag_count"] == 0

    # A revoked report no longer blocks a fresh one.
    assert _report(client, discussion.id, carol.identity).status_code == 201


def test_revoke_without_report(client, make_discussion, bob) -> None:
    discussion = make_discussion("Event")
    response = client.post(
        "/api/v1/moderation/report/revoke",
        json={"discussion_id": discussion.id, "reporter_identity": bob.identity},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_admin_endpoints_require_token(client) -> None:
    response = client.get("/api/v1/moderation/reports")
    assert response.status_code in (401, 403)

    response = client.get(
        "/api/v1/moderation/reports",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_list_reports(client, make_discussion, admin_headers, bob) -> None:
    first = make_discussion("Event", title="One")
    second = make_discussion("Event", title="Two")
    _report(client, first.id, bob.identity)
    _report(client, second.id, bob.identity)

    response = client.get(
        "/api/v1/moderation/reports",
        params={"limit": 1},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert len(data["reports"]) == 1
    assert data["pagination"] == {"current": 1, "total": 2, "has_more": True}


def test_take_action_remove(client, db_session, make_discussion, admin_headers, alice, bob) -> None:
    discussion = make_discussion("Event", author_identity=alice.identity, title="Spammy")
    report_id = _report(client, discussion.id, bob.identity).json()["id"]

    response = client.post(
        f"/api/v1/moderation/reports/{report_id}/action",
        json={"action": "removed", "notes": "Advertising"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "removed"
    assert data["reviewer_id"] == "admin-1"
    assert data["admin_notes"] == "Advertising"

    assert client.get(f"/api/v1/discussions/{discussion.id}").status_code == 404
    listed = client.get("/api/v1/discussions/").json()
    assert discussion.id not in [item["id"] for item in listed]

    author_note = db_session.query(Notification).filter_by(recipient=alice.identity).one()
    assert author_note.type == "content_removed"
    reporter_note = db_session.query(Notification).filter_by(recipient=bob.identity).one()
    assert reporter_note.type == "report_reviewed"
    assert reporter_note.data == {"report_id": report_id, "outcome": "removed"}


def test_take_action_rejected_unflags(client, make_discussion, admin_headers, bob) -> None:
    discussion = make_discussion("Event")
    report_id = _report(client, discussion.id, bob.identity).json()["id"]

    response = client.post(
        f"/api/v1/moderation/reports/{report_id}/action",
        json={"action": "rejected"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    restored = client.get(f"/api/v1/discussions/{discussion.id}").json()
    assert restored["status"] == "active"
    assert restored["is_flagged"] is False

    again = client.post(
        f"/api/v1/moderation/reports/{report_id}/action",
        json={"action": "approved"},
        headers=admin_headers,
    )
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["code"] == "report_closed"


def test_get_report_not_found(client, admin_headers) -> None:
    response = client.get("/api/v1/moderation/reports/424242", headers=admin_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_moderation_stats(client, make_discussion, admin_headers, bob) -> None:
    discussion = make_discussion("Event")
    _report(client, discussion.id, bob.identity)

    response = client.get("/api/v1/moderation/stats", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "total_reports": 1,
        "pending_reports": 1,
        "flagged_discussions": 1,
        "status_breakdown": {"pending": 1},
    }


def test_ban_reported_user(client, db_session, make_discussion, admin_headers, alice, bob) -> None:
    discussion = make_discussion("Event", author_identity=alice.identity)
    report_id = _report(client, discussion.id, bob.identity).json()["id"]

    response = client.post(
        f"/api/v1/moderation/reports/{report_id}/ban-user",
        json={"reason": "Spam ring", "duration": "temporary"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["message"] == "User banned successfully"
    assert data["user"]["identity"] == alice.identity
    assert data["user"]["is_active"] is False
    assert data["user"]["ban_reason"] == "Spam ring"
    assert data["user"]["banned_until"] is not None
    assert data["report"]["status"] == "resolved"
    assert data["report"]["admin_notes"] == "User banned: Spam ring"
    assert data["report"]["reviewer_id"] == "admin-1"

    restored = client.get(f"/api/v1/discussions/{discussion.id}").json()
    assert restored["is_flagged"] is False

    db_session.expire_all()
    assert db_session.get(UserAccount, alice.identity).is_active is False
    reporter_note = db_session.query(Notification).filter_by(recipient=bob.identity).one()
    assert reporter_note.data == {"report_id": report_id, "outcome": "resolved"}


def test_permanent_ban_has_no_end(client, make_discussion, admin_headers, alice, bob) -> None:
    discussion = make_discussion("Event", author_identity=alice.identity)
    report_id = _report(client, discussion.id, bob.identity).json()["id"]

    response = client.post(
        f"/api/v1/moderation/reports/{report_id}/ban-user",
        json={},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    user = response.json()["user"]
    assert user["banned_until"] is None
    assert user["ban_reason"] == "Violation of community guidelines"


def test_ban_needs_a_reported_account(client, make_discussion, admin_headers, bob) -> None:
    discussion = make_discussion("Event")
    report_id = _report(client, discussion.id, bob.identity).json()["id"]

    response = client.post(
        f"/api/v1/moderation/reports/{report_id}/ban-user",
        json={"duration": "permanent"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["field"] == "reported_identity"


def test_ban_on_closed_report(client, make_discussion, admin_headers, alice, bob) -> None:
    discussion = make_discussion("Event", author_identity=alice.identity)
    report_id = _report(client, discussion.id, bob.identity).json()["id"]
    client.post(
        f"/api/v1/moderation/reports/{report_id}/action",
        json={"action": "rejected"},
        headers=admin_headers,
    )

    response = client.post(
        f"/api/v1/moderation/reports/{report_id}/ban-user",
        json={},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "report_closed"


def test_ban_requires_admin(client, make_discussion, alice, bob) -> None:
    discussion = make_discussion("Event", author_identity=alice.identity)
    report_id = _report(client, discussion.id, bob.identity).json()["id"]

    response = client.post(f"/api/v1/moderation/reports/{report_id}/ban-user", json={})
    assert response.status_code in (401, 403)
