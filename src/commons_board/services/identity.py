"""Identity resolution: stable identity (phone) to current display name.

Accounts are owned by the external sign-up service; this module only reads
them. Callers snapshot the returned name at write time (discussion author,
comment author, notification text) and never use it for authorization.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from commons_board.models import UserAccount
from commons_board.models.discussion import ANONYMOUS


def get_account(db: Session, identity: str | None) -> UserAccount | None:
    """Return the active account for ``identity`` if one exists."""
    if not identity or identity == ANONYMOUS:
        return None
    account = db.get(UserAccount, identity)
    if account is None or not account.is_active:
        return None
    return account


def display_name_for(account: UserAccount) -> str:
    if account.username and account.username.strip():
        return account.username.strip()
    full_name = " ".join(part for part in (account.first_name, account.last_name) if part)
    if full_name.strip():
        return full_name.strip()
    return f"User {account.identity[-4:]}"


def resolve_display_name(db: Session, identity: str | None) -> str:
    """Return the name to show for ``identity``; unknown identities read as Anonymous."""
    account = get_account(db, identity)
    if account is None:
        return ANONYMOUS
    return display_name_for(account)
