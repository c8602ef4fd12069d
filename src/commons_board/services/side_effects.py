"""Side effects produced by interaction handlers.

Handlers never call the ledger or the dispatcher themselves. They return the
effects they decided on and ``apply_side_effects`` runs them after the
primary transition has committed, points before notification.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from commons_board.models import Discussion
from commons_board.services import notifications, points

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointsAward:
    identity: str
    action: points.PointAction
    location: str | None = None


@dataclass(frozen=True)
class NotificationRequest:
    recipient: str
    sender: str
    type: str
    discussion_id: int | None = None
    data: dict[str, Any] | None = None
    priority: str | None = None


SideEffect = PointsAward | NotificationRequest


@dataclass
class InteractionOutcome:
    """Result of a handler: the updated discussion plus what should happen next."""

    discussion: Discussion
    effects: list[SideEffect] = field(default_factory=list)


def apply_side_effects(db: Session, effects: list[SideEffect]) -> None:
    """Run ``effects`` in order, each in its own transaction.

    A failing effect is logged and rolled back; it never undoes the primary
    transition and never stops the effects after it.
    """
    for effect in effects:
        try:
            if isinstance(effect, PointsAward):
                points.award(db, effect.identity, effect.action, effect.location)
            else:
                notifications.notify_event(
                    db,
                    recipient=effect.recipient,
                    sender=effect.sender,
                    notification_type=effect.type,
                    discussion_id=effect.discussion_id,
                    data=effect.data,
                    priority=effect.priority,
                )
            db.commit()
        except Exception:  # noqa: BLE001
            db.rollback()
            logger.exception("Side effect %r failed", effect)
