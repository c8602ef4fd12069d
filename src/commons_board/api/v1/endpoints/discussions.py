# src/commons_board/api/v1/endpoints/discussions.py
"""Discussion and interaction endpoints for the Commons Board API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Query, status

from commons_board.api.v1.dependencies import SessionDep
from commons_board.models import Comment
from commons_board.schemas.discussion import (
    ActorRequest,
    CommentCreate,
    CommentResponse,
    DiscussionCreate,
    DiscussionResponse,
    DiscussionResponseBase,
    DonateRequest,
    HelperStatusUpdate,
    VoteRequest,
    to_discussion_response,
)
from commons_board.services import discussions, interactions

router = APIRouter(prefix="/discussions", tags=["discussions"])


@router.post("/", response_model=DiscussionResponse, status_code=status.HTTP_201_CREATED)
async def create_discussion(
    db: SessionDep,
    payload: Annotated[DiscussionCreate, Body(discriminator="type")],
) -> DiscussionResponseBase:
    """Create a discussion of any variant; the ``type`` field selects the payload."""
    outcome = discussions.create_discussion(db, payload)
    return to_discussion_response(outcome.discussion)


@router.get("/", response_model=list[DiscussionResponse])
async def list_discussions(
    db: SessionDep,
    location: str | None = Query(None, description="Board title to filter by"),
    discussion_type: str | None = Query(None, alias="type", description="Variant to filter by"),
    before: int | None = Query(None, description="Return discussions with a smaller id"),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of discussions"),
) -> list[DiscussionResponseBase]:
    """List visible discussions, newest first."""
    items = discussions.list_discussions(
        db,
        location=location,
        discussion_type=discussion_type,
        before=before,
        limit=limit,
    )
    return [to_discussion_response(item) for item in items]


@router.get("/{discussion_id}", response_model=DiscussionResponse)
async def get_discussion(discussion_id: str, db: SessionDep) -> DiscussionResponseBase:
    return to_discussion_response(discussions.get_discussion(db, discussion_id))


@router.delete("/{discussion_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_discussion(discussion_id: str, body: ActorRequest, db: SessionDep) -> None:
    """Delete a discussion. Only its author, matched by stable identity, may do this."""
    discussions.delete_discussion(db, discussion_id, body.actor_identity)


@router.post("/{discussion_id}/like", response_model=DiscussionResponse)
async def like_discussion(
    discussion_id: str,
    body: ActorRequest,
    db: SessionDep,
) -> DiscussionResponseBase:
    """Toggle the actor's like."""
    outcome = discussions.toggle_like(db, discussion_id, body.actor_identity)
    return to_discussion_response(outcome.discussion)


@router.post("/{discussion_id}/vote", response_model=DiscussionResponse)
async def vote(discussion_id: str, body: VoteRequest, db: SessionDep) -> DiscussionResponseBase:
    outcome = interactions.vote(db, discussion_id, body.actor_identity, body.option)
    return to_discussion_response(outcome.discussion)


@router.post("/{discussion_id}/rsvp", response_model=DiscussionResponse)
async def rsvp(discussion_id: str, body: ActorRequest, db: SessionDep) -> DiscussionResponseBase:
    outcome = interactions.rsvp(db, discussion_id, body.actor_identity)
    return to_discussion_response(outcome.discussion)


@router.post("/{discussion_id}/cancel-rsvp", response_model=DiscussionResponse)
async def cancel_rsvp(
    discussion_id: str,
    body: ActorRequest,
    db: SessionDep,
) -> DiscussionResponseBase:
    outcome = interactions.cancel_rsvp(db, discussion_id, body.actor_identity)
    return to_discussion_response(outcome.discussion)


@router.post("/{discussion_id}/donate", response_model=DiscussionResponse)
async def donate(discussion_id: str, body: DonateRequest, db: SessionDep) -> DiscussionResponseBase:
    outcome = interactions.donate(db, discussion_id, body.actor_identity, body.amount)
    return to_discussion_response(outcome.discussion)


@router.post("/{discussion_id}/offer-help", response_model=DiscussionResponse)
async def offer_help(
    discussion_id: str,
    body: ActorRequest,
    db: SessionDep,
) -> DiscussionResponseBase:
    outcome = interactions.offer_help(db, discussion_id, body.actor_identity)
    return to_discussion_response(outcome.discussion)


@router.post("/{discussion_id}/withdraw-help", response_model=DiscussionResponse)
async def withdraw_help(
    discussion_id: str,
    body: ActorRequest,
    db: SessionDep,
) -> DiscussionResponseBase:
    outcome = interactions.withdraw_help(db, discussion_id, body.actor_identity)
    return to_discussion_response(outcome.discussion)


@router.patch("/{discussion_id}/helper/{helper_id}/status", response_model=DiscussionResponse)
async def update_helper_status(
    discussion_id: str,
    helper_id: str,
    body: HelperStatusUpdate,
    db: SessionDep,
) -> DiscussionResponseBase:
    """Accept, decline or complete a helper. Author only."""
    outcome = interactions.update_helper_status(
        db,
        discussion_id,
        helper_id,
        body.actor_identity,
        body.status,
    )
    return to_discussion_response(outcome.discussion)


@router.patch("/{discussion_id}/resolve", response_model=DiscussionResponse)
async def resolve(discussion_id: str, body: ActorRequest, db: SessionDep) -> DiscussionResponseBase:
    """Mark an incident report as no longer needing help. Author only."""
    outcome = interactions.resolve(db, discussion_id, body.actor_identity)
    return to_discussion_response(outcome.discussion)


@router.post(
    "/{discussion_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(discussion_id: str, body: CommentCreate, db: SessionDep) -> Comment:
    comment, _ = discussions.add_comment(db, discussion_id, body.actor_identity, body.content)
    return comment


@router.get("/{discussion_id}/comments", response_model=list[CommentResponse])
async def list_comments(discussion_id: str, db: SessionDep) -> list[Comment]:
    return discussions.list_comments(db, discussion_id)
