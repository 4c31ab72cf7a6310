from typing import List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import StoreError
from ..core.security import UserRole
from ..models.profile import Profile

logger = logging.getLogger(__name__)

class ProfileStore:
    """Profile reads and writes.

    Writes are flushed, not committed; the caller owns the transaction and
    ends it with ``commit()`` or ``rollback()``. Any database failure rolls
    the session back and surfaces as ``StoreError``.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, profile_id: int) -> Optional[Profile]:
        try:
            return self.db.get(Profile, profile_id)
        except SQLAlchemyError as exc:
            self._fail("load profile", exc)

    def lock_profile(self, profile_id: int) -> Optional[Profile]:
        """Reload a profile from the database, reading its row ``FOR UPDATE``.

        Any state already loaded in the session is overwritten.
        """
        try:
            return self.db.get(Profile, profile_id, populate_existing=True, with_for_update=True)
        except SQLAlchemyError as exc:
            self._fail("lock profile", exc)

    def get_by_email(self, email: str) -> Optional[Profile]:
        try:
            return self.db.query(Profile).filter(Profile.email == email.lower()).first()
        except SQLAlchemyError as exc:
            self._fail("load profile by email", exc)

    def list_profiles(self, role: Optional[UserRole] = None) -> List[Profile]:
        try:
            query = self.db.query(Profile)
            if role is not None:
                query = query.filter(Profile.role == role)
            return query.order_by(Profile.created_at.desc(), Profile.id.desc()).all()
        except SQLAlchemyError as exc:
            self._fail("list profiles", exc)

    def count_by_role(self, role: UserRole, lock: bool = False) -> int:
        """Count profiles holding ``role``.

        With ``lock`` the matching rows are read ``FOR UPDATE`` and stay
        locked until the transaction ends (a no-op on SQLite).
        """
        try:
            query = self.db.query(Profile.id).filter(Profile.role == role)
            if lock:
                # FOR UPDATE cannot be combined with an aggregate
                return len(query.with_for_update().all())
            return query.count()
        except SQLAlchemyError as exc:
            self._fail("count profiles", exc)

    def update_role(self, profile_id: int, role: UserRole) -> Profile:
        profile = self.get_profile(profile_id)
        if profile is None:
            raise StoreError(f"No profile found to update with ID: {profile_id}")
        try:
            profile.role = role
            self.db.flush()
        except SQLAlchemyError as exc:
            self._fail("update role", exc)
        return profile

    def delete_profile(self, profile_id: int) -> None:
        try:
            deleted = self.db.query(Profile).filter(Profile.id == profile_id).delete()
            self.db.flush()
        except SQLAlchemyError as exc:
            self._fail("delete profile", exc)
        if not deleted:
            raise StoreError(f"No profile found to delete with ID: {profile_id}")

    def add(self, profile: Profile) -> Profile:
        try:
            self.db.add(profile)
            self.db.flush()
        except SQLAlchemyError as exc:
            self._fail("create profile", exc)
        return profile

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self._fail("commit", exc)

    def rollback(self) -> None:
        self.db.rollback()

    def _fail(self, operation: str, exc: SQLAlchemyError):
        self.db.rollback()
        logger.error(f"Profile store failed to {operation}: {exc}")
        raise StoreError(f"Failed to {operation}") from exc
