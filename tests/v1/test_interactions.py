# tests/v1/test_interactions.py
"""Tests for variant-specific interaction endpoints."""

from fastapi import status

from commons_board.models import Notification, UserAccount


def _points(db_session, identity: str) -> int:
    db_session.expire_all()
    return db_session.get(UserAccount, identity).total_points


def test_vote_records_choice(client, db_session, make_discussion, alice, bob) -> None:
    poll = make_discussion("Poll", author_identity=alice.identity, options=["Yes", "No"])
    response = client.post(
        f"/api/v1/discussions/{poll.id}/vote",
        json={"actor_identity": bob.identity, "option": "Yes"},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["votes_by_option"] == {"Yes": 1, "No": 0}
    assert data["vote_by_user"] == {bob.identity: "Yes"}
    assert _points(db_session, bob.identity) == 5


def test_vote_unknown_option(client, make_discussion, bob) -> None:
    poll = make_discussion("Poll")
    response = client.post(
        f"/api/v1/discussions/{poll.id}/vote",
        json={"actor_identity": bob.identity, "option": "Maybe"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["field"] == "option"


def test_vote_on_non_poll(client, make_discussion, bob) -> None:
    event = make_discussion("Event")
    response = client.post(
        f"/api/v1/discussions/{event.id}/vote",
        json={"actor_identity": bob.identity, "option": "Yes"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["field"] == "type"


def test_private_poll_hides_voters(client, make_discussion, bob) -> None:
    poll = make_discussion("Poll", poll_private=True)
    response = client.post(
        f"/api/v1/discussions/{poll.id}/vote",
        json={"actor_identity": bob.identity, "option": "No"},
    )
    data = response.json()
    assert data["votes_by_option"] == {"Yes": 0, "No": 1}
    assert data["vote_by_user"] is None


def test_rsvp_and_cancel(client, db_session, make_discussion, alice, bob) -> None:
    event = make_discussion("Event", author_identity=alice.identity)
    rsvp_url = f"/api/v1/discussions/{event.id}/rsvp"

    first = client.post(rsvp_url, json={"actor_identity": bob.identity})
    assert first.status_code == status.HTTP_200_OK
    assert first.json()["attendee_count"] == 1
    assert first.json()["attendees"] == [bob.identity]

    again = client.post(rsvp_url, json={"actor_identity": bob.identity})
    assert again.json()["attendee_count"] == 1

    cancelled = client.post(
        f"/api/v1/discussions/{event.id}/cancel-rsvp",
        json={"actor_identity": bob.identity},
    )
    assert cancelled.json()["attendee_count"] == 0
    assert cancelled.json()["attendees"] == []

    rejoined = client.post(rsvp_url, json={"actor_identity": bob.identity})
    assert rejoined.json()["attendee_count"] == 1
    assert _points(db_session, bob.identity) == 8


def test_cancel_rsvp_without_rsvp_is_noop(client, make_discussion, bob) -> None:
    event = make_discussion("Event")
    response = client.post(
        f"/api/v1/discussions/{event.id}/cancel-rsvp",
        json={"actor_identity": bob.identity},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["attendee_count"] == 0


def test_volunteer_signup(client, db_session, make_discussion, alice, bob) -> None:
    call = make_discussion("Volunteer", author_identity=alice.identity, skills="Lifting")
    response = client.post(
        f"/api/v1/discussions/{call.id}/rsvp",
        json={"actor_identity": bob.identity},
    )
    assert response.json()["volunteer_count"] == 1
    assert response.json()["volunteers"] == [bob.identity]
    assert _points(db_session, bob.identity) == 12

    notification = db_session.query(Notification).filter_by(recipient=alice.identity).one()
    assert notification.type == "volunteer_signup"


def test_rsvp_on_poll_rejected(client, make_discussion, bob) -> None:
    poll = make_discussion("Poll")
    response = client.post(
        f"/api/v1/discussions/{poll.id}/rsvp",
        json={"actor_identity": bob.identity},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_donate(client, db_session, make_discussion, alice, bob) -> None:
    fundraiser = make_discussion("Donation", author_identity=alice.identity, goal_amount=500)
    response = client.post(
        f"/api/v1/discussions/{fundraiser.id}/donate",
        json={"actor_identity": bob.identity, "amount": 25.5},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["current_amount"] == 25.5
    assert [donor["identity"] for donor in data["donors"]] == [bob.identity]

    notification = db_session.query(Notification).filter_by(recipient=alice.identity).one()
    assert notification.type == "donation_made"
    assert notification.data == {"amount": 25.5}


def test_anonymous_donation_allowed(client, make_discussion) -> None:
    fundraiser = make_discussion("Donation")
    response = client.post(
        f"/api/v1/discussions/{fundraiser.id}/donate",
        json={"actor_identity": "Anonymous", "amount": 10},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["current_amount"] == 10


def test_donate_rejects_non_positive_amounts(client, make_discussion, bob) -> None:
    fundraiser = make_discussion("Donation")
    for amount in (0, -5):
        response = client.post(
            f"/api/v1/discussions/{fundraiser.id}/donate",
            json={"actor_identity": bob.identity, "amount": amount},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["field"] == "amount"

    response = client.get(f"/api/v1/discussions/{fundraiser.id}")
    assert response.json()["current_amount"] == 0


def test_donate_rejects_amounts_the_ledger_cannot_hold(client, make_discussion, bob) -> None:
    fundraiser = make_discussion("Donation")
    for amount in (0.001, 12.345, 10**12, 5e15):
        response = client.post(
            f"/api/v1/discussions/{fundraiser.id}/donate",
            json={"actor_identity": bob.identity, "amount": amount},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["field"] == "amount"

    accepted = client.post(
        f"/api/v1/discussions/{fundraiser.id}/donate",
        json={"actor_identity": bob.identity, "amount": 0.01},
    )
    assert accepted.status_code == status.HTTP_200_OK
    assert accepted.json()["current_amount"] == 0.01


def test_donate_rejects_non_numeric_amount(client, make_discussion, bob) -> None:
    fundraiser = make_discussion("Donation")
    response = client.post(
        f"/api/v1/discussions/{fundraiser.id}/donate",
        json={"actor_identity": bob.identity, "amount": "lots"},
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_offer_help(client, db_session, make_discussion, alice, bob) -> None:
    report = make_discussion("Report", author_identity=alice.identity)
    response = client.post(
        f"/api/v1/discussions/{report.id}/offer-help",
        json={"actor_identity": bob.identity},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["helper_count"] == 1
    assert data["helpers"][0]["identity"] == bob.identity
    assert data["helpers"][0]["status"] == "offered"
    assert _points(db_session, bob.identity) == 15

    notification = db_session.query(Notification).filter_by(recipient=alice.identity).one()
    assert notification.type == "help_offered"
    assert notification.priority == "high"
    assert notification.data == {"helper_id": data["helpers"][0]["id"]}


def test_withdraw_help(client, make_discussion, alice, bob) -> None:
    report = make_discussion("Report", author_identity=alice.identity)
    client.post(
        f"/api/v1/discussions/{report.id}/offer-help",
        json={"actor_identity": bob.identity},
    )
    withdraw_url = f"/api/v1/discussions/{report.id}/withdraw-help"

    response = client.post(withdraw_url, json={"actor_identity": bob.identity})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["helper_count"] == 0

    again = client.post(withdraw_url, json={"actor_identity": bob.identity})
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["code"] == "no_active_offer"


def test_helper_status_transitions(client, db_session, make_discussion, alice, bob) -> None:
    report = make_discussion("Report", author_identity=alice.identity)
    offered = client.post(
        f"/api/v1/discussions/{report.id}/offer-help",
        json={"actor_identity": bob.identity},
    )
    helper_id = offered.json()["helpers"][0]["id"]
    status_url = f"/api/v1/discussions/{report.id}/helper/{helper_id}/status"

    too_early = client.patch(
        status_url,
        json={"actor_identity": alice.identity, "status": "completed"},
    )
    assert too_early.status_code == status.HTTP_409_CONFLICT
    assert too_early.json()["code"] == "invalid_transition"

    accepted = client.patch(
        status_url,
        json={"actor_identity": alice.identity, "status": "accepted"},
    )
    assert accepted.status_code == status.HTTP_200_OK
    assert accepted.json()["helpers"][0]["status"] == "accepted"

    completed = client.patch(
        status_url,
        json={"actor_identity": alice.identity, "status": "completed"},
    )
    assert completed.json()["helpers"][0]["status"] == "completed"

    types = {
        n.type for n in db_session.query(Notification).filter_by(recipient=bob.identity)
    }
    assert types == {"help_accepted", "help_completed"}


def test_helper_status_unknown_helper(client, make_discussion, alice) -> None:
    report = make_discussion("Report", author_identity=alice.identity)
    response = client.patch(
        f"/api/v1/discussions/{report.id}/helper/9999/status",
        json={"actor_identity": alice.identity, "status": "accepted"},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_resolve_closes_help(client, make_discussion, alice, bob) -> None:
    report = make_discussion("Report", author_identity=alice.identity)
    resolve_url = f"/api/v1/discussions/{report.id}/resolve"

    response = client.patch(resolve_url, json={"actor_identity": alice.identity})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["help_needed"] is False

    again = client.patch(resolve_url, json={"actor_identity": alice.identity})
    assert again.status_code == status.HTTP_200_OK
    assert again.json()["help_needed"] is False

    late = client.post(
        f"/api/v1/discussions/{report.id}/offer-help",
        json={"actor_identity": bob.identity},
    )
    assert late.status_code == status.HTTP_409_CONFLICT
    assert late.json()["code"] == "help_closed"


def test_resolve_by_non_author(client, make_discussion, alice, bob) -> None:
    report = make_discussion("Report", author_identity=alice.identity)
    response = client.patch(
        f"/api/v1/discussions/{report.id}/resolve",
        json={"actor_identity": bob.identity},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert client.get(f"/api/v1/discussions/{report.id}").json()["help_needed"] is True


def test_interaction_on_removed_discussion(client, db_session, make_discussion, bob) -> None:
    event = make_discussion("Event")
    event.status = "removed"
    db_session.commit()

    response = client.post(
        f"/api/v1/discussions/{event.id}/rsvp",
        json={"actor_identity": bob.identity},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
