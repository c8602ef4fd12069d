"""Discussion lifecycle handlers: create, read, like, comment and delete.

Each mutating handler builds its transition out of store-side atomic
statements, commits it once, and only then hands the resulting side effects
to :func:`apply_side_effects`. A unique-constraint violation means another
request changed the same membership set first; the transaction is rolled
back and the handler re-runs from a fresh read.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from commons_board.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from commons_board.core.settings import settings
from commons_board.models import Comment, Discussion, PollOption
from commons_board.models.discussion import (
    ANONYMOUS,
    VARIANTS,
    DiscussionStatus,
    DiscussionType,
    ReceiptKind,
)
from commons_board.models.notification import NotificationType
from commons_board.repositories import DiscussionRepository
from commons_board.schemas.discussion import DiscussionCreateBase
from commons_board.services import boards
from commons_board.services.identity import get_account, resolve_display_name
from commons_board.services.points import PointAction
from commons_board.services.side_effects import (
    InteractionOutcome,
    NotificationRequest,
    PointsAward,
    apply_side_effects,
)

logger = logging.getLogger(__name__)

# Variant payload columns that every new row of that variant starts with.
_INITIAL_STATE: dict[str, dict[str, object]] = {
    DiscussionType.POLL.value: {},
    DiscussionType.EVENT.value: {"attendee_count": 0},
    DiscussionType.VOLUNTEER.value: {"volunteer_count": 0},
    DiscussionType.DONATION.value: {"current_amount": 0},
    DiscussionType.REPORT.value: {"help_needed": True, "helper_count": 0},
}

# SQLSTATE for check_violation
_CHECK_VIOLATION = "23514"


class StaleRead(Exception):
    """A compare-and-set lost to a concurrent writer; the transition is re-run."""


def parse_discussion_id(raw: str | int, *, entity: str = "Discussion") -> int:
    """Turn a path segment into an id; anything malformed is simply not found."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    elif isinstance(raw, str) and raw.isascii() and raw.isdigit():
        value = int(raw)
    else:
        raise NotFoundError(f"{entity} {raw!r} not found")
    if value <= 0:
        raise NotFoundError(f"{entity} {raw!r} not found")
    return value


def require_identity(identity: str | None) -> str:
    """Reject interactions that need a real actor key."""
    if not identity or not identity.strip() or identity == ANONYMOUS:
        raise ValidationError("An actor identity is required", field="actor_identity")
    return identity.strip()


def load_discussion(repo: DiscussionRepository, discussion_id: int) -> Discussion:
    """Load a discussion that can still be interacted with."""
    discussion = repo.get_by_id(discussion_id)
    if discussion is None or discussion.status == DiscussionStatus.REMOVED.value:
        raise NotFoundError(f"Discussion {discussion_id} not found")
    return discussion


def require_variant(discussion: Discussion, *variants: type[Discussion], action: str) -> None:
    if not isinstance(discussion, variants):
        raise ValidationError(
            f"Cannot {action} a {discussion.type} discussion",
            field="type",
        )


def require_author(discussion: Discussion, actor_identity: str) -> None:
    """Author-only actions compare stable identities, never display names."""
    if discussion.author_identity == ANONYMOUS or discussion.author_identity != actor_identity:
        raise AuthorizationError("Only the author may perform this action")


def is_check_violation(exc: IntegrityError) -> bool:
    """True when a CHECK constraint, not a uniqueness race, refused the write."""
    if getattr(exc.orig, "sqlstate", None) == _CHECK_VIOLATION:
        return True
    return "CHECK constraint failed" in str(exc.orig)


def run_interaction(
    db: Session,
    transition: Callable[[], InteractionOutcome],
) -> InteractionOutcome:
    """Commit ``transition`` once, retrying from a fresh read on constraint races.

    Side effects run only after the primary commit succeeded.
    """
    attempts = settings.interaction_max_retries
    for attempt in range(1, attempts + 1):
        try:
            outcome = transition()
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if is_check_violation(exc):
                raise ValidationError("The request contains values the store rejects") from exc
            logger.info("Concurrent update detected (attempt %d/%d)", attempt, attempts)
            continue
        except StaleRead:
            db.rollback()
            logger.info("Concurrent update detected (attempt %d/%d)", attempt, attempts)
            continue
        except DataError as exc:
            db.rollback()
            raise ValidationError("The request contains values the store cannot hold") from exc
        except Exception:
            db.rollback()
            raise
        apply_side_effects(db, outcome.effects)
        return outcome
    raise ConflictError(
        "The discussion changed concurrently, please retry",
        code="concurrent_update",
    )


# -- reads ---------------------------------------------------------------------


def get_discussion(db: Session, raw_id: str | int) -> Discussion:
    return load_discussion(DiscussionRepository(db), parse_discussion_id(raw_id))


def list_discussions(
    db: Session,
    *,
    location: str | None = None,
    discussion_type: str | None = None,
    before: int | None = None,
    limit: int = 50,
) -> list[Discussion]:
    if discussion_type is not None and discussion_type not in VARIANTS:
        raise ValidationError(f"Unknown discussion type: {discussion_type}", field="type")
    return DiscussionRepository(db).list_visible(
        location=location,
        discussion_type=discussion_type,
        before=before,
        limit=limit,
    )


def list_comments(db: Session, raw_id: str | int) -> list[Comment]:
    discussion = get_discussion(db, raw_id)
    return DiscussionRepository(db).comments_for(discussion.id)


# -- handlers ------------------------------------------------------------------


def create_discussion(db: Session, payload: DiscussionCreateBase) -> InteractionOutcome:
    """Create a discussion of the payload's variant and count it on its board."""
    variant = VARIANTS.get(getattr(payload, "type", None))
    if variant is None:
        raise ValidationError("Unknown discussion type", field="type")

    fields = payload.model_dump(exclude={"type", "options"})
    fields["priority"] = payload.priority.value
    fields["author"] = resolve_display_name(db, payload.author_identity)
    fields.update(_INITIAL_STATE[payload.type])

    boards.ensure_board(db, payload.location)

    discussion = variant(**fields)
    if payload.type == DiscussionType.POLL.value:
        discussion.options = [
            PollOption(position=position, label=label, votes=0)
            for position, label in enumerate(payload.options)
        ]
    try:
        db.add(discussion)
        db.flush()
        boards.increment(db, payload.location)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(discussion)
    logger.info("Created %s discussion %d in %r", discussion.type, discussion.id, discussion.location)

    effects = [PointsAward(payload.author_identity, PointAction.POST_CREATED, payload.location)]
    apply_side_effects(db, effects)
    return InteractionOutcome(discussion, effects)


def toggle_like(db: Session, raw_id: str | int, actor_identity: str) -> InteractionOutcome:
    """Like or unlike; only the add edge produces points and a notification."""
    discussion_id = parse_discussion_id(raw_id)
    actor = require_identity(actor_identity)
    repo = DiscussionRepository(db)

    def transition() -> InteractionOutcome:
        discussion = load_discussion(repo, discussion_id)
        effects = []
        if repo.has_like(discussion_id, actor):
            if repo.remove_like(discussion_id, actor):
                repo.bump(Discussion, discussion_id, Discussion.like_count, -1)
            return InteractionOutcome(discussion, effects)

        repo.add_like(discussion_id, actor)
        repo.bump(Discussion, discussion_id, Discussion.like_count, 1)
        if repo.add_receipt(discussion_id, actor, ReceiptKind.LIKE.value):
            effects.append(PointsAward(actor, PointAction.POST_LIKED, discussion.location))
        effects.append(
            NotificationRequest(
                discussion.author_identity,
                actor,
                NotificationType.POST_LIKED.value,
                discussion_id,
            )
        )
        return InteractionOutcome(discussion, effects)

    return run_interaction(db, transition)


def add_comment(
    db: Session,
    raw_id: str | int,
    actor_identity: str,
    content: str,
) -> tuple[Comment, InteractionOutcome]:
    """Append a comment with the commenter's display name frozen at write time."""
    discussion_id = parse_discussion_id(raw_id)
    content = content.strip()
    if not content:
        raise ValidationError("Comment content is required", field="content")
    actor = (actor_identity or ANONYMOUS).strip() or ANONYMOUS
    repo = DiscussionRepository(db)
    created: list[Comment] = []

    def transition() -> InteractionOutcome:
        discussion = load_discussion(repo, discussion_id)
        comment = Comment(
            discussion_id=discussion_id,
            content=content,
            author_identity=actor,
            author_display_name=resolve_display_name(db, actor),
        )
        db.add(comment)
        db.flush()
        created[:] = [comment]

        effects = []
        if get_account(db, actor) is not None:
            effects.append(PointsAward(actor, PointAction.COMMENT_ADDED, discussion.location))
        effects.append(
            NotificationRequest(
                discussion.author_identity,
                actor,
                NotificationType.COMMENT_ADDED.value,
                discussion_id,
            )
        )
        return InteractionOutcome(discussion, effects)

    outcome = run_interaction(db, transition)
    return created[0], outcome


def delete_discussion(db: Session, raw_id: str | int, actor_identity: str) -> None:
    """Hard-delete a discussion on behalf of its author and uncount it from its board."""
    discussion_id = parse_discussion_id(raw_id)
    repo = DiscussionRepository(db)
    discussion = repo.get_by_id(discussion_id)
    if discussion is None:
        raise NotFoundError(f"Discussion {discussion_id} not found")
    require_author(discussion, actor_identity)

    location = discussion.location
    try:
        db.delete(discussion)
        db.flush()
        boards.decrement(db, location)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted discussion %d from %r", discussion_id, location)
