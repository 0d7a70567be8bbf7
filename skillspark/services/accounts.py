"""Account store."""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from skillspark.db.transaction import atomic, storage_errors
from skillspark.exceptions import Conflict, InvalidArgument, NotFound
from skillspark.models.account import Account

logger = logging.getLogger(__name__)


def create_account(db: Session, username: str, credential_hash: str) -> Account:
    """Create an account. A taken username raises Conflict and leaves the existing account alone."""
    if not username or not username.strip():
        raise InvalidArgument("username must not be empty")
    if not credential_hash:
        raise InvalidArgument("credential_hash must not be empty")

    account = Account(username=username, credential_hash=credential_hash)
    try:
        with atomic(db):
            db.add(account)
    except Conflict:
        raise Conflict(f"Username {username!r} already exists") from None
    logger.info("Created account %s", account.id)
    return account


def get_account(db: Session, account_id: uuid.UUID) -> Account:
    with storage_errors(db):
        account = db.scalars(select(Account).where(Account.id == account_id)).first()
    if account is None:
        raise NotFound(f"Account {account_id} not found")
    return account


def find_by_username(db: Session, username: str) -> Account:
    with storage_errors(db):
        account = db.scalars(select(Account).where(Account.username == username)).first()
    if account is None:
        raise NotFound(f"Account {username!r} not found")
    return account


def username_exists(db: Session, username: str) -> bool:
    with storage_errors(db):
        return db.scalar(select(Account.id).where(Account.username == username)) is not None


def delete_account(db: Session, account_id: uuid.UUID) -> None:
    """Delete an account. Topics, roadmaps, progress, video pages, settings and
    quiz history go with it through the database's ON DELETE CASCADE chain."""
    with atomic(db):
        result = db.execute(
            delete(Account).where(Account.id == account_id),
            execution_options={"synchronize_session": False},
        )
        if result.rowcount == 0:
            raise NotFound(f"Account {account_id} not found")
    logger.info("Deleted account %s", account_id)
