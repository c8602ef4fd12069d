# tests/v1/test_boards.py
"""Tests for board endpoints."""

from fastapi import status

from commons_board.models import Board


def test_list_boards_busiest_first(client, make_discussion) -> None:
    make_discussion("Event", location="Hilltop")
    make_discussion("Event", location="Riverside")
    make_discussion("Report", location="Riverside")

    response = client.get("/api/v1/boards/")
    assert response.status_code == status.HTTP_200_OK
    assert [(b["title"], b["post_count"]) for b in response.json()] == [
        ("Riverside", 2),
        ("Hilltop", 1),
    ]


def test_board_count_follows_create_and_delete(client, make_discussion, alice) -> None:
    created = [
        make_discussion("Event", author_identity=alice.identity, title=f"Event {i}")
        for i in range(5)
    ]
    for discussion in created[:2]:
        response = client.request(
            "DELETE",
            f"/api/v1/discussions/{discussion.id}",
            json={"actor_identity": alice.identity},
        )
        assert response.status_code == status.HTTP_204_NO_CONTENT

    response = client.get("/api/v1/boards/Riverside")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["post_count"] == 3


def test_reconcile_repairs_drift(client, db_session, make_discussion) -> None:
    make_discussion("Event", location="Hilltop")
    board = db_session.query(Board).filter_by(title="Hilltop").one()
    board.post_count = 10
    db_session.commit()

    response = client.post("/api/v1/boards/Hilltop/reconcile")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "title": "Hilltop",
        "stored": 10,
        "actual": 1,
        "corrected": True,
    }

    again = client.post("/api/v1/boards/Hilltop/reconcile")
    assert again.json()["corrected"] is False


def test_get_board_reconciles(client, db_session, make_discussion) -> None:
    make_discussion("Event", location="Hilltop")
    board = db_session.query(Board).filter_by(title="Hilltop").one()
    board.post_count = 7
    db_session.commit()

    response = client.get("/api/v1/boards/Hilltop")
    assert response.json()["post_count"] == 1


def test_unknown_board(client) -> None:
    assert client.get("/api/v1/boards/Nowhere").status_code == status.HTTP_404_NOT_FOUND
    assert client.post("/api/v1/boards/Nowhere/reconcile").status_code == 404
