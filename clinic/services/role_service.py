"""Role changes between admins and superadmins.

At most ``SUPERADMIN_CAP`` profiles hold the superadmin role. Promoting an
admin while the cap is reached transfers the acting superadmin's slot: the
actor is demoted to admin and the target promoted, as one unit of work.
"""
from dataclasses import dataclass
from typing import Literal, Optional, Union
import logging
import threading

from ..core.exceptions import Forbidden, InvalidRequest, NotFound, StoreError, TransferFailed
from ..core.security import UserRole
from ..repositories.audit import AuditStore
from ..repositories.profile import ProfileStore

logger = logging.getLogger(__name__)

SUPERADMIN_CAP = 2

# Serializes the read-count-write sequence within this process. The
# superadmin rows are also read FOR UPDATE, which covers other processes on
# databases with row locking.
_superadmin_lock = threading.Lock()


@dataclass(frozen=True)
class RoleUpdated:
    target_id: int
    previous_role: UserRole
    new_role: UserRole
    outcome: Literal["updated"] = "updated"

    @property
    def message(self) -> str:
        return f"Role updated successfully from {self.previous_role.value} to {self.new_role.value}"


@dataclass(frozen=True)
class RoleTransferred:
    target_id: int
    demoted_id: int
    previous_role: UserRole
    new_role: UserRole = UserRole.SUPERADMIN
    outcome: Literal["transferred"] = "transferred"

    @property
    def message(self) -> str:
        return (
            f"Role transfer completed: user {self.demoted_id} is now an admin "
            f"and user {self.target_id} is now a superadmin"
        )


RoleChange = Union[RoleUpdated, RoleTransferred]


class RoleService:
    def __init__(self, profiles: ProfileStore, audit: AuditStore):
        self.profiles = profiles
        self.audit = audit

    def change_role(self, actor_id: int, target_id: Optional[int], requested_role) -> RoleChange:
        """Set ``target_id``'s role, transferring the actor's superadmin slot if needed.

        The caller must already be authenticated as a superadmin.
        """
        if not target_id:
            raise InvalidRequest("Target user ID is required")
        try:
            requested_role = UserRole(requested_role)
        except ValueError:
            raise InvalidRequest("Invalid role value")
        if actor_id == target_id:
            raise InvalidRequest("Cannot change your own role")

        with _superadmin_lock:
            # Both rows are read again under the lock; a request that waited
            # here must see the roles the previous one committed.
            actor = self.profiles.lock_profile(actor_id)
            if actor is None or actor.role != UserRole.SUPERADMIN:
                self.profiles.rollback()
                raise Forbidden("Only superadmins can change roles")

            target = self.profiles.lock_profile(target_id)
            if target is None:
                self.profiles.rollback()
                raise NotFound(f"No user profile found with ID: {target_id}")
            previous_role = UserRole(target.role)

            if requested_role != UserRole.SUPERADMIN:
                return self._update(actor_id, target_id, previous_role, requested_role)

            superadmins = self.profiles.count_by_role(UserRole.SUPERADMIN, lock=True)
            if superadmins >= SUPERADMIN_CAP and previous_role != UserRole.SUPERADMIN:
                return self._transfer(actor_id, target_id, previous_role)
            return self._update(actor_id, target_id, previous_role, requested_role)

    def _update(self, actor_id, target_id, previous_role, new_role) -> RoleUpdated:
        self.profiles.update_role(target_id, new_role)
        self.profiles.commit()
        logger.info(f"User {actor_id} changed role of user {target_id}: {previous_role.value} -> {new_role.value}")

        self.audit.record(
            actor_id,
            "update_role",
            target_id=target_id,
            previous_role=previous_role.value,
            new_role=new_role.value,
        )
        return RoleUpdated(target_id=target_id, previous_role=previous_role, new_role=new_role)

    def _transfer(self, actor_id, target_id, previous_role) -> RoleTransferred:
        try:
            self.profiles.update_role(actor_id, UserRole.ADMIN)
        except StoreError as exc:
            self.profiles.rollback()
            raise TransferFailed(f"Error transferring current superadmin role: {exc}") from exc

        try:
            self.profiles.update_role(target_id, UserRole.SUPERADMIN)
            self.profiles.commit()
        except StoreError as exc:
            compensated = self._restore_superadmin(actor_id)
            raise TransferFailed(
                f"Error updating target user role: {exc}", compensated=compensated
            ) from exc

        logger.info(f"Superadmin role transferred from user {actor_id} to user {target_id}")
        self.audit.record(
            actor_id,
            "role_transfer",
            target_id=target_id,
            previous_role=previous_role.value,
            new_role=UserRole.SUPERADMIN.value,
            details={"transferred_from": actor_id, "transferred_to": target_id},
        )
        return RoleTransferred(target_id=target_id, demoted_id=actor_id, previous_role=previous_role)

    def _restore_superadmin(self, actor_id: int) -> bool:
        """Give the demoted actor back the superadmin role after a failed promotion.

        Returns whether the actor holds the superadmin role afterwards.
        """
        self.profiles.rollback()
        try:
            # The rollback usually discards the uncommitted demotion already
            if self._is_superadmin(actor_id):
                return True
            self.profiles.update_role(actor_id, UserRole.SUPERADMIN)
            self.profiles.commit()
            return True
        except StoreError as exc:
            self.profiles.rollback()
            logger.error(f"Error reverting user role after failed target update: {exc}")

        try:
            return self._is_superadmin(actor_id)
        except StoreError:
            return False

    def _is_superadmin(self, profile_id: int) -> bool:
        profile = self.profiles.lock_profile(profile_id)
        return profile is not None and profile.role == UserRole.SUPERADMIN
