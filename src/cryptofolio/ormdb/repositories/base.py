"""Base repository class with common functionality."""

from sqlalchemy.orm import Session


class BaseRepository:
    """Base repository bound to a caller-owned session.

    Repositories stage changes on the session and flush; the caller owns the
    unit of work and decides when to commit or roll back.
    """

    def __init__(self, session: Session):
        self.session = session
