import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from skillspark.db.transaction import atomic, translate
from skillspark.exceptions import (
    Conflict,
    DomainError,
    InvalidArgument,
    NotFound,
    StorageUnavailable,
)
from skillspark.models import Account


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__(f"pg error {pgcode}")
        self.pgcode = pgcode


@pytest.mark.parametrize(
    "orig, expected",
    [
        (_PgError("23505"), Conflict),
        (_PgError("23503"), NotFound),
        (_PgError("23514"), InvalidArgument),
        (Exception("UNIQUE constraint failed: accounts.username"), Conflict),
        (Exception("FOREIGN KEY constraint failed"), NotFound),
        (Exception("CHECK constraint failed: ck_video_pages_page_number_positive"), InvalidArgument),
    ],
)
def test_integrity_errors_are_translated(orig, expected):
    assert isinstance(translate(IntegrityError("INSERT ...", {}, orig)), expected)


def test_operational_errors_are_retryable():
    error = translate(OperationalError("SELECT 1", {}, Exception("server closed the connection")))

    assert isinstance(error, StorageUnavailable)
    assert error.retryable
    assert not isinstance(error, DomainError)


def test_atomic_rolls_back_on_error(db, count_rows):
    with pytest.raises(RuntimeError):
        with atomic(db):
            db.add(Account(username="carol", credential_hash="h"))
            db.flush()
            raise RuntimeError("boom")

    assert count_rows(Account) == 0


def test_atomic_translates_constraint_errors(db, account, count_rows):
    with pytest.raises(Conflict):
        with atomic(db):
            db.add(Account(username="alice", credential_hash="h"))

    assert count_rows(Account) == 1
