"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (guardians,
tuitions). Repositories return SQLModel objects and perform
commits/refreshes where appropriate.
"""

from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from . import models


class DuplicateTuitionCode(Exception):
    """Raised when the store rejects a tuition because its code is taken."""
    def __init__(self, code: str):
        super().__init__(f"tuition code already exists: {code}")
        self.code = code


class GuardianRepository:
    """CRUD operations for `Guardian` objects."""
    def __init__(self, session: Session):
        self.session = session

    def get_by_number(self, number: str) -> Optional[models.Guardian]:
        """Return a `Guardian` by phone number or `None` if not found."""
        stmt = select(models.Guardian).where(models.Guardian.number == number)
        return self.session.exec(stmt).first()

    def stage(self, guardian: models.Guardian) -> models.Guardian:
        """Add a new or modified guardian to the session without committing.

        The guardian is written by the next commit, so it is discarded
        together with a tuition insert that gets rolled back.
        """
        self.session.add(guardian)
        return guardian


class TuitionRepository:
    """Persistence for `Tuition` records and their codes.

    The `tuition.code` unique index is enforced here: `create` turns the
    store's integrity error into `DuplicateTuitionCode` so callers can
    retry with a freshly allocated code.
    """
    def __init__(self, session: Session):
        self.session = session

    def create(self, tuition: models.Tuition) -> models.Tuition:
        """Insert a tuition; raise `DuplicateTuitionCode` if its code is taken."""
        self.session.add(tuition)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if 'code' in str(e.orig).lower():
                raise DuplicateTuitionCode(tuition.code) from e
            raise
        self.session.refresh(tuition)
        return tuition

    def list_codes(self) -> List[str]:
        """Return every stored tuition code."""
        return list(self._read(select(models.Tuition.code)).all())

    def code_exists(self, code: str) -> bool:
        """Return True if a tuition with exactly this code exists."""
        stmt = select(models.Tuition.id).where(models.Tuition.code == code)
        return self._read(stmt).first() is not None

    def _read(self, stmt):
        # a failed statement aborts the transaction on some backends (postgres);
        # roll back so the caller can still insert with a fallback code
        try:
            return self.session.exec(stmt)
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def get_by_code(self, code: str) -> Optional[models.Tuition]:
        """Fetch a tuition by code, ignoring case."""
        stmt = select(models.Tuition).where(func.lower(models.Tuition.code) == code.lower())
        return self.session.exec(stmt).first()
