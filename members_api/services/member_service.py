"""
Member Service
Orchestrates repository calls and applies business rules for members.

Every public operation returns a ServiceResult; failures are converted to
error results here and never raised to the caller.
"""

import logging
from typing import Any, Dict, List, Optional

from members_api.repositories import (
    AuraRepository,
    ClassRepository,
    GroupRepository,
    MemberRepository,
    RaceRepository,
)
from members_api.schemas.member import MemberCreate, MemberUpdate
from members_api.schemas.results import ErrorCode, ServiceResult
from members_api.services.image import ImageService

logger = logging.getLogger(__name__)

Member = Dict[str, Any]


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class MemberService:
    """Business logic for members, lookups and sessions."""

    def __init__(
        self,
        member_repository: MemberRepository,
        class_repository: ClassRepository,
        race_repository: RaceRepository,
        aura_repository: AuraRepository,
        group_repository: GroupRepository,
        image_service: Optional[ImageService] = None,
    ):
        self.member_repository = member_repository
        self.class_repository = class_repository
        self.race_repository = race_repository
        self.aura_repository = aura_repository
        self.group_repository = group_repository
        self.image_service = image_service

    async def create_member(self, request: MemberCreate) -> ServiceResult[Member]:
        if _blank(request.name):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "Member name cannot be empty")

        try:
            member = self.member_repository.create(request)
        except Exception as e:
            logger.exception("memberService > createMember > error")
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, f"Failed to create member: {e}")

        return ServiceResult.ok(member)

    async def get_member_by_id(self, member_id: str) -> ServiceResult[Member]:
        if _blank(member_id):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "Member ID is required")

        try:
            member = self.member_repository.get_by_id(member_id)
        except Exception as e:
            logger.exception("memberService > getMemberById > error")
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, f"Failed to get member: {e}")

        if member is None:
            return ServiceResult.fail(ErrorCode.MEMBER_NOT_FOUND, "Member not found")
        return ServiceResult.ok(member)

    async def get_all_members(self) -> ServiceResult[List[Member]]:
        """Roster listing (projected). Deleted members are not filtered here."""
        try:
            return ServiceResult.ok(self.member_repository.get_all())
        except Exception as e:
            logger.exception("memberService > getAllMembers > error")
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, f"Failed to get members: {e}")

    async def get_members_by_owner(self, owner_id: str) -> ServiceResult[List[Member]]:
        if _blank(owner_id):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "Owner ID is required")

        try:
            return ServiceResult.ok(self.member_repository.get_by_owner(owner_id))
        except Exception as e:
            logger.exception("memberService > getMembersByOwner > error")
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, f"Failed to get members: {e}")

    def validate_update(self, member_id: str, updates: MemberUpdate) -> Optional[ServiceResult]:
        """Return a failed result if the update can never be applied, else None."""
        if _blank(member_id):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "Member ID is required")
        changes = updates.changes()
        if "name" in changes and _blank(changes["name"]):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "Member name cannot be empty")
        return None

    async def update_member(self, member_id: str, updates: MemberUpdate) -> ServiceResult[Member]:
        """
        Apply a partial update to an existing member.

        An update with no fields is a no-op that returns the stored record.
        """
        invalid = self.validate_update(member_id, updates)
        if invalid is not None:
            return invalid

        changes = updates.changes()

        try:
            existing = self.member_repository.get_by_id(member_id)
            if existing is None:
                return ServiceResult.fail(ErrorCode.MEMBER_NOT_FOUND, "Member not found")
            if not changes:
                return ServiceResult.ok(existing)
            updated = self.member_repository.update(member_id, changes)
        except Exception as e:
            logger.exception("memberService > updateMember > error")
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, f"Failed to update member: {e}")

        return ServiceResult.ok(updated)

    async def delete_member(self, member_id: str) -> ServiceResult[Dict[str, str]]:
        if _blank(member_id):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "Member ID is required")

        try:
            existing = self.member_repository.get_by_id(member_id)
            if existing is None:
                return ServiceResult.fail(ErrorCode.MEMBER_NOT_FOUND, "Member not found")

            image_key = existing.get("image")
            if image_key and self.image_service is not None:
                await self._delete_image_best_effort(image_key)

            self.member_repository.delete(member_id)
        except Exception as e:
            logger.exception("memberService > deleteMember > error")
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, f"Failed to delete member: {e}")

        return ServiceResult.ok({"message": "Member deleted successfully"})

    async def _delete_image_best_effort(self, image_key: str) -> None:
        """Image cleanup never blocks member deletion."""
        logger.info(f"[Members] Deleting associated image: {image_key}")
        try:
            result = await self.image_service.delete_image(image_key)
        except Exception as e:
            logger.warning(f"[Members] Failed to delete image {image_key}: {e}")
            return
        if not result.success:
            logger.warning(f"[Members] Failed to delete image {image_key}: {result.error}")

    async def get_classes(self) -> ServiceResult[List[Member]]:
        return self._list_lookup(self.class_repository, "classes")

    async def get_races(self) -> ServiceResult[List[Member]]:
        return self._list_lookup(self.race_repository, "races")

    async def get_auras(self) -> ServiceResult[List[Member]]:
        return self._list_lookup(self.aura_repository, "auras")

    async def get_groups(self) -> ServiceResult[List[Member]]:
        return self._list_lookup(self.group_repository, "groups")

    def _list_lookup(self, repository, label: str) -> ServiceResult[List[Member]]:
        try:
            return ServiceResult.ok(repository.get_all())
        except Exception as e:
            logger.exception(f"memberService > get {label} > error")
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, f"Failed to get {label}: {e}")

    async def get_sessions_by_member_id(self, member_id: str) -> ServiceResult[List[Member]]:
        if _blank(member_id):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "Member ID is required")

        try:
            return ServiceResult.ok(self.member_repository.get_sessions_by_member_id(member_id))
        except Exception as e:
            logger.exception("memberService > getSessionsByMemberId > error")
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, f"Failed to get sessions: {e}")

    async def count_sessions_by_member_id(self, member_id: str) -> ServiceResult[Dict[str, int]]:
        if _blank(member_id):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "Member ID is required")

        try:
            count = self.member_repository.count_sessions_by_member_id(member_id)
        except Exception as e:
            logger.exception("memberService > countSessionsByMemberId > error")
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, f"Failed to count sessions: {e}")

        return ServiceResult.ok({"count": count})
