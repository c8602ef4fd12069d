"""Variant-specific interaction handlers.

Polls take votes, events and volunteer calls take RSVPs, fundraisers take
donations and incident reports take help offers. Every handler returns an
``InteractionOutcome`` whose effects were already applied after commit.
"""
from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import InstrumentedAttribute, Session

from commons_board.core.errors import ConflictError, NotFoundError, ValidationError
from commons_board.models import (
    Discussion,
    DiscussionHelper,
    DonationDiscussion,
    EventDiscussion,
    IncidentDiscussion,
    PollDiscussion,
    VolunteerDiscussion,
)
from commons_board.models.discussion import ANONYMOUS, HelperStatus, ReceiptKind
from commons_board.models.notification import NotificationType
from commons_board.repositories import DiscussionRepository
from commons_board.services.discussions import (
    StaleRead,
    load_discussion,
    parse_discussion_id,
    require_author,
    require_identity,
    require_variant,
    run_interaction,
)
from commons_board.services.points import PointAction
from commons_board.services.side_effects import (
    InteractionOutcome,
    NotificationRequest,
    PointsAward,
)

logger = logging.getLogger(__name__)

# Donation amounts are stored as NUMERIC(14, 2).
MAX_DONATION = 10**12

_ACTIVE_HELP = (HelperStatus.OFFERED.value, HelperStatus.ACCEPTED.value)

# new status -> statuses it may be reached from
HELPER_TRANSITIONS: dict[str, tuple[str, ...]] = {
    HelperStatus.ACCEPTED.value: (HelperStatus.OFFERED.value,),
    HelperStatus.DECLINED.value: (HelperStatus.OFFERED.value,),
    HelperStatus.COMPLETED.value: (HelperStatus.ACCEPTED.value,),
}

_HELPER_NOTIFICATIONS = {
    HelperStatus.ACCEPTED.value: NotificationType.HELP_ACCEPTED.value,
    HelperStatus.DECLINED.value: NotificationType.HELP_DECLINED.value,
    HelperStatus.COMPLETED.value: NotificationType.HELP_COMPLETED.value,
}


def vote(db: Session, raw_id: str | int, actor_identity: str, option: str) -> InteractionOutcome:
    """Cast, repeat or switch a poll vote.

    Repeating the current choice changes nothing. Switching moves the vote
    row and both tallies in one transaction and earns no further points.
    """
    discussion_id = parse_discussion_id(raw_id)
    actor = require_identity(actor_identity)
    option = (option or "").strip()
    repo = DiscussionRepository(db)

    def transition() -> InteractionOutcome:
        discussion = load_discussion(repo, discussion_id)
        require_variant(discussion, PollDiscussion, action="vote on")
        if option not in discussion.option_labels:
            raise ValidationError(f"{option!r} is not an option of this poll", field="option")

        previous = repo.current_vote(discussion_id, actor)
        if previous == option:
            return InteractionOutcome(discussion)
        if previous is not None:
            if not repo.move_vote(discussion_id, actor, previous, option):
                raise StaleRead
            repo.bump_option(discussion_id, previous, -1)
            repo.bump_option(discussion_id, option, 1)
            return InteractionOutcome(discussion)

        repo.add_vote(discussion_id, actor, option)
        repo.bump_option(discussion_id, option, 1)
        return InteractionOutcome(
            discussion,
            [
                PointsAward(actor, PointAction.POLL_VOTED, discussion.location),
                NotificationRequest(
                    discussion.author_identity,
                    actor,
                    NotificationType.POLL_VOTED.value,
                    discussion_id,
                ),
            ],
        )

    return run_interaction(db, transition)


def _participation(
    discussion: Discussion,
) -> tuple[InstrumentedAttribute[Any], PointAction, str]:
    """Return (counter column, points action, notification type) for an RSVP target."""
    if isinstance(discussion, EventDiscussion):
        return (
            EventDiscussion.attendee_count,
            PointAction.EVENT_RSVP,
            NotificationType.EVENT_RSVP.value,
        )
    return (
        VolunteerDiscussion.volunteer_count,
        PointAction.VOLUNTEER_SIGNUP,
        NotificationType.VOLUNTEER_SIGNUP.value,
    )


def rsvp(db: Session, raw_id: str | int, actor_identity: str) -> InteractionOutcome:
    """Join an event or volunteer call; joining twice is a no-op."""
    discussion_id = parse_discussion_id(raw_id)
    actor = require_identity(actor_identity)
    repo = DiscussionRepository(db)

    def transition() -> InteractionOutcome:
        discussion = load_discussion(repo, discussion_id)
        require_variant(discussion, EventDiscussion, VolunteerDiscussion, action="RSVP to")
        if repo.is_participant(discussion_id, actor):
            return InteractionOutcome(discussion)

        counter, action, notification_type = _participation(discussion)
        repo.add_participant(discussion_id, actor)
        repo.bump(type(discussion), discussion_id, counter, 1)

        effects = []
        if repo.add_receipt(discussion_id, actor, ReceiptKind.RSVP.value):
            effects.append(PointsAward(actor, action, discussion.location))
        effects.append(
            NotificationRequest(
                discussion.author_identity,
                actor,
                notification_type,
                discussion_id,
            )
        )
        return InteractionOutcome(discussion, effects)

    return run_interaction(db, transition)


def cancel_rsvp(db: Session, raw_id: str | int, actor_identity: str) -> InteractionOutcome:
    discussion_id = parse_discussion_id(raw_id)
    actor = require_identity(actor_identity)
    repo = DiscussionRepository(db)

    def transition() -> InteractionOutcome:
        discussion = load_discussion(repo, discussion_id)
        require_variant(discussion, EventDiscussion, VolunteerDiscussion, action="cancel an RSVP on")
        counter, _, _ = _participation(discussion)
        if repo.remove_participant(discussion_id, actor):
            repo.bump(type(discussion), discussion_id, counter, -1)
        return InteractionOutcome(discussion)

    return run_interaction(db, transition)


def _donation_amount(amount: object) -> float:
    if isinstance(amount, bool) or not isinstance(amount, int | float):
        raise ValidationError("Donation amount must be a number", field="amount")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Donation amount must be greater than zero", field="amount")
    if amount >= MAX_DONATION:
        raise ValidationError("Donation amount is too large", field="amount")
    if Decimal(str(amount)).as_tuple().exponent < -2:
        raise ValidationError("Donation amount cannot have more than 2 decimals", field="amount")
    return float(amount)


def donate(
    db: Session,
    raw_id: str | int,
    actor_identity: str,
    amount: object,
) -> InteractionOutcome:
    """Record a donation; every donation is rewarded, repeats included."""
    discussion_id = parse_discussion_id(raw_id)
    value = _donation_amount(amount)
    actor = (actor_identity or "").strip() or ANONYMOUS
    repo = DiscussionRepository(db)

    def transition() -> InteractionOutcome:
        discussion = load_discussion(repo, discussion_id)
        require_variant(discussion, DonationDiscussion, action="donate to")
        repo.add_donation(discussion_id, actor, value)
        repo.bump(DonationDiscussion, discussion_id, DonationDiscussion.current_amount, value)
        return InteractionOutcome(
            discussion,
            [
                PointsAward(actor, PointAction.DONATION_MADE, discussion.location),
                NotificationRequest(
                    discussion.author_identity,
                    actor,
                    NotificationType.DONATION_MADE.value,
                    discussion_id,
                    data={"amount": value},
                ),
            ],
        )

    return run_interaction(db, transition)


def offer_help(db: Session, raw_id: str | int, actor_identity: str) -> InteractionOutcome:
    """Offer help on an open incident report; a second offer is a conflict."""
    discussion_id = parse_discussion_id(raw_id)
    actor = require_identity(actor_identity)
    repo = DiscussionRepository(db)

    def transition() -> InteractionOutcome:
        discussion = load_discussion(repo, discussion_id)
        require_variant(discussion, IncidentDiscussion, action="offer help on")
        if not discussion.help_needed:
            raise ConflictError("This report no longer needs help", code="help_closed")
        if repo.helper_for(discussion_id, actor) is not None:
            raise ConflictError("You have already offered help", code="already_offered")

        helper = repo.add_helper(discussion_id, actor)
        repo.bump(IncidentDiscussion, discussion_id, IncidentDiscussion.helper_count, 1)

        effects = []
        if repo.add_receipt(discussion_id, actor, ReceiptKind.HELP.value):
            effects.append(PointsAward(actor, PointAction.HELP_OFFERED, discussion.location))
        effects.append(
            NotificationRequest(
                discussion.author_identity,
                actor,
                NotificationType.HELP_OFFERED.value,
                discussion_id,
                data={"helper_id": helper.id},
            )
        )
        return InteractionOutcome(discussion, effects)

    return run_interaction(db, transition)


def withdraw_help(db: Session, raw_id: str | int, actor_identity: str) -> InteractionOutcome:
    """Take back an offered or accepted help offer; no effects."""
    discussion_id = parse_discussion_id(raw_id)
    actor = require_identity(actor_identity)
    repo = DiscussionRepository(db)

    def transition() -> InteractionOutcome:
        discussion = load_discussion(repo, discussion_id)
        require_variant(discussion, IncidentDiscussion, action="withdraw help from")
        helper = repo.helper_for(discussion_id, actor)
        if helper is None or helper.status not in _ACTIVE_HELP:
            raise ConflictError("There is no active help offer to withdraw", code="no_active_offer")
        if not repo.remove_helper(discussion_id, actor, _ACTIVE_HELP):
            raise StaleRead
        repo.bump(IncidentDiscussion, discussion_id, IncidentDiscussion.helper_count, -1)
        return InteractionOutcome(discussion)

    return run_interaction(db, transition)


def update_helper_status(
    db: Session,
    raw_id: str | int,
    raw_helper_id: str | int,
    actor_identity: str,
    status: str,
) -> InteractionOutcome:
    """Author-only move of a helper along offered -> accepted/declined -> completed."""
    discussion_id = parse_discussion_id(raw_id)
    helper_id = parse_discussion_id(raw_helper_id, entity="Helper")
    allowed_from = HELPER_TRANSITIONS.get(status)
    if allowed_from is None:
        raise ValidationError(f"Unsupported helper status: {status}", field="status")
    repo = DiscussionRepository(db)

    def transition() -> InteractionOutcome:
        discussion = load_discussion(repo, discussion_id)
        require_variant(discussion, IncidentDiscussion, action="update helpers of")
        require_author(discussion, actor_identity)

        helper = db.get(DiscussionHelper, helper_id, populate_existing=True)
        if helper is None or helper.discussion_id != discussion_id:
            raise NotFoundError(f"Helper {helper_id} not found")
        if helper.status not in allowed_from:
            raise ConflictError(
                f"Cannot move a {helper.status} helper to {status}",
                code="invalid_transition",
            )
        if not repo.transition_helper(helper_id, discussion_id, allowed_from, status):
            raise ConflictError("The helper changed concurrently", code="invalid_transition")

        logger.info("Helper %d on discussion %d is now %s", helper_id, discussion_id, status)
        return InteractionOutcome(
            discussion,
            [
                NotificationRequest(
                    helper.identity,
                    actor_identity,
                    _HELPER_NOTIFICATIONS[status],
                    discussion_id,
                    data={"helper_id": helper_id},
                )
            ],
        )

    return run_interaction(db, transition)


def resolve(db: Session, raw_id: str | int, actor_identity: str) -> InteractionOutcome:
    """Author-only, idempotent close of an incident report's help request."""
    discussion_id = parse_discussion_id(raw_id)
    repo = DiscussionRepository(db)

    def transition() -> InteractionOutcome:
        discussion = load_discussion(repo, discussion_id)
        require_variant(discussion, IncidentDiscussion, action="resolve")
        require_author(discussion, actor_identity)
        if repo.close_help(discussion_id):
            logger.info("Discussion %d resolved by its author", discussion_id)
        return InteractionOutcome(discussion)

    return run_interaction(db, transition)
