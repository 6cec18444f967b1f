from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from ..common.context import RequestContext, require_role
from ..common.datetime_utils import now_utc
from ..common.validators import parse_enum, require_non_empty
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..store.repository import RecordStore
from .model import Profile

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserService:
    """Use case: provision and manage portal profiles (admin)."""

    def __init__(self, store: RecordStore, *, clock: Callable = now_utc):
        self._store = store
        self._clock = clock

    def get_profile(self, user_id: str) -> Profile:
        row = self._store.get("profiles", str(user_id))
        if not row:
            raise NotFoundError("User not found")
        return Profile.from_row(row)

    def find_profile(self, user_id: str) -> Optional[Profile]:
        row = self._store.get("profiles", str(user_id))
        return Profile.from_row(row) if row else None

    def role_of(self, user_id: str) -> Optional[Role]:
        profile = self.find_profile(user_id)
        return profile.role if profile else None

    def profiles_by_id(self, user_ids) -> dict[str, Profile]:
        ids = sorted({str(i) for i in user_ids if i})
        if not ids:
            return {}
        return {str(r["id"]): Profile.from_row(r) for r in self._store.select("profiles", {"id": ids})}

    def require_profile_with_role(self, user_id: str, role: Role, label: str) -> Profile:
        profile = self.find_profile(user_id)
        if not profile or profile.role is not role:
            raise ValidationError(f"{label} must be an existing {role.value}")
        return profile

    def create_user(
        self,
        ctx: RequestContext,
        *,
        email: str,
        full_name: str,
        role,
        lecturer_id: Optional[str] = None,
    ) -> Profile:
        require_role(ctx, Role.ADMIN)

        email = require_non_empty(email, "Email").lower()
        if not _EMAIL_RE.match(email):
            raise ValidationError("Email is not valid")
        full_name = require_non_empty(full_name, "Full name")
        role = parse_enum(Role, role, "Role")

        if self._store.select("profiles", {"email": email}, limit=1):
            raise ValidationError("A user with this email already exists")

        if lecturer_id:
            if role is not Role.STUDENT:
                raise ValidationError("Only students can have a lecturer")
            self.require_profile_with_role(lecturer_id, Role.LECTURER, "Lecturer")

        row = {
            "email": email,
            "full_name": full_name,
            "role": role.value,
            "lecturer_id": lecturer_id or None,
            "created_at": self._clock(),
        }
        user_id = self._store.insert("profiles", row)
        logger.info("Provisioned %s profile %s", role.value, user_id)
        return Profile.from_row({**row, "id": user_id})

    def list_users(self, ctx: RequestContext, *, role=None) -> list[Profile]:
        require_role(ctx, Role.ADMIN)
        filters = {"role": parse_enum(Role, role, "Role").value} if role else None
        rows = self._store.select("profiles", filters, order_by="created_at", descending=True)
        return [Profile.from_row(r) for r in rows]

    def change_role(self, ctx: RequestContext, user_id: str, role) -> Profile:
        require_role(ctx, Role.ADMIN)
        role = parse_enum(Role, role, "Role")
        profile = self.get_profile(user_id)
        if profile.id == ctx.user_id:
            raise ValidationError("You cannot change your own role")

        patch: dict = {"role": role.value}
        if role is not Role.STUDENT:
            patch["lecturer_id"] = None
        self._store.update("profiles", profile.id, patch)
        return self.get_profile(profile.id)

    def assign_lecturer(self, ctx: RequestContext, student_id: str, lecturer_id: Optional[str]) -> Profile:
        require_role(ctx, Role.ADMIN)
        self.require_profile_with_role(student_id, Role.STUDENT, "Student")
        if lecturer_id:
            self.require_profile_with_role(lecturer_id, Role.LECTURER, "Lecturer")
        self._store.update("profiles", student_id, {"lecturer_id": lecturer_id or None})
        return self.get_profile(student_id)

    def advisees(self, ctx: RequestContext) -> list[Profile]:
        require_role(ctx, Role.LECTURER)
        rows = self._store.select("profiles", {"lecturer_id": ctx.user_id, "role": Role.STUDENT.value}, order_by="full_name")
        return [Profile.from_row(r) for r in rows]

    def delete_user(self, ctx: RequestContext, user_id: str) -> None:
        require_role(ctx, Role.ADMIN)
        profile = self.get_profile(user_id)
        if profile.id == ctx.user_id:
            raise ValidationError("You cannot delete your own account")
        if profile.role is Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deleted")
        if not self._store.delete("profiles", profile.id):
            raise NotFoundError("User not found")
        logger.info("Deleted profile %s", profile.id)
