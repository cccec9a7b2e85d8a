from dataclasses import dataclass
from datetime import datetime
from typing import Optional


class AuthorshipError(Exception):
    pass


@dataclass(frozen=True)
class Authorship:
    """Who created an entity and when. Mapped as a composite of the
    `created_at` and `created_by` columns."""

    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    def is_set(self) -> bool:
        return self.created_at is not None and self.created_by is not None

    def is_partial(self) -> bool:
        return not self.is_set() and (
            self.created_at is not None or self.created_by is not None
        )


def has_authorship(entity) -> bool:
    # transient entities with no columns set return None for the composite
    authorship = entity.authorship
    return authorship is not None and authorship.is_set()


def stamp_authorship(entity, created_at: datetime, created_by: str) -> Authorship:
    """
    Stamp creation metadata onto an entity exposing an `authorship` composite

    Raises:
        AuthorshipError: If the entity already carries creation metadata,
            complete or partial
    """
    authorship = entity.authorship
    if authorship is not None and authorship.is_set():
        raise AuthorshipError(
            f"Authorship already set: created at {authorship.created_at} "
            f"by {authorship.created_by}"
        )
    if authorship is not None and authorship.is_partial():
        raise AuthorshipError(
            f"Authorship is incomplete: created at {authorship.created_at} "
            f"by {authorship.created_by}"
        )
    entity.authorship = Authorship(created_at=created_at, created_by=created_by)
    return entity.authorship
