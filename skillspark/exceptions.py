"""Error taxonomy raised by the store.

Callers never see raw SQLAlchemy / DBAPI exceptions: constraint violations
become `Conflict` / `NotFound`, connectivity problems become
`StorageUnavailable`.
"""


class StoreError(Exception):
    """Base class for everything the store raises."""

    retryable = False


class DomainError(StoreError):
    pass


class NotFound(DomainError):
    """Referenced entity is absent."""


class Conflict(DomainError):
    """Uniqueness violation (duplicate username, duplicate settings row...)."""


class InvalidArgument(DomainError):
    """Enum value outside its allowed set, malformed composite key, bad payload."""


class ForbiddenOwnership(DomainError):
    """The target entity belongs to another account."""


class StorageUnavailable(StoreError):
    """Transient infrastructure failure. Safe for the caller to retry."""

    retryable = True
