"""
Member Repository
Handles all DynamoDB interactions for members and their sessions.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from members_api.repositories.base import collect_items, from_dynamo, iter_pages, to_dynamo
from members_api.schemas.member import LISTING_PROJECTION, MemberCreate

logger = logging.getLogger(__name__)


class MemberRepository:
    """Data access for the member table and the session index."""

    def __init__(
        self,
        members_table,
        sessions_table,
        owner_index: str = "owner-index",
        sessions_index: str = "member-id-report-id-index",
    ):
        self.members = members_table
        self.sessions = sessions_table
        self.owner_index = owner_index
        self.sessions_index = sessions_index

    def create(self, request: MemberCreate) -> Dict[str, Any]:
        """Persist a new member under a freshly generated id."""
        member_id = str(uuid.uuid4())
        item = request.to_item(member_id)
        logger.info(f"memberRepository > create > id: {member_id}")

        try:
            self.members.put_item(Item=to_dynamo(item))
        except Exception as e:
            logger.error(f"memberRepository > create > error: {e}")
            raise

        return item

    def get_by_id(self, member_id: str) -> Optional[Dict[str, Any]]:
        logger.debug(f"memberRepository > getById > id: {member_id}")

        try:
            result = self.members.get_item(Key={"id": member_id})
        except Exception as e:
            logger.error(f"memberRepository > getById > error: {e}")
            raise

        item = result.get("Item")
        if not item:
            logger.info(f"memberRepository > getById > not found: {member_id}")
            return None
        return from_dynamo(item)

    def get_all(self) -> List[Dict[str, Any]]:
        """Every member, projected down to the roster listing attributes."""
        names = {f"#{attr}": attr for attr in LISTING_PROJECTION}
        try:
            items = collect_items(
                self.members.scan,
                ProjectionExpression=", ".join(names),
                ExpressionAttributeNames=names,
            )
        except Exception as e:
            logger.error(f"memberRepository > getAll > error: {e}")
            raise

        logger.info(f"memberRepository > getAll > success: {len(items)} items")
        return items

    def scan_all(self) -> List[Dict[str, Any]]:
        """Every member with all attributes (batch jobs only)."""
        try:
            items = collect_items(self.members.scan)
        except Exception as e:
            logger.error(f"memberRepository > scanAll > error: {e}")
            raise

        logger.info(f"memberRepository > scanAll > success: {len(items)} items")
        return items

    def get_by_owner(self, owner_id: str) -> List[Dict[str, Any]]:
        """Members whose owner equals owner_id, via the owner index."""
        try:
            items = collect_items(
                self.members.query,
                IndexName=self.owner_index,
                KeyConditionExpression="#owner = :owner",
                ExpressionAttributeNames={"#owner": "owner"},
                ExpressionAttributeValues={":owner": owner_id},
            )
        except Exception as e:
            logger.error(f"memberRepository > getByOwner > error: {e}")
            raise

        logger.info(f"memberRepository > getByOwner > success: {len(items)} items")
        return items

    def update(self, member_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a sparse SET update and return the full post-update record.

        Only the given attributes are written; the statement is not
        conditional, so callers check existence first.
        """
        if not changes:
            raise ValueError("No valid updates provided")

        assignments = []
        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        for i, (key, value) in enumerate(changes.items()):
            assignments.append(f"#f{i} = :v{i}")
            names[f"#f{i}"] = key
            values[f":v{i}"] = to_dynamo(value)

        logger.info(f"memberRepository > update > id: {member_id} fields: {sorted(changes)}")
        try:
            result = self.members.update_item(
                Key={"id": member_id},
                UpdateExpression="SET " + ", ".join(assignments),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except Exception as e:
            logger.error(f"memberRepository > update > error: {e}")
            raise

        return from_dynamo(result.get("Attributes", {}))

    def delete(self, member_id: str) -> None:
        logger.info(f"memberRepository > delete > id: {member_id}")
        try:
            self.members.delete_item(Key={"id": member_id})
        except Exception as e:
            logger.error(f"memberRepository > delete > error: {e}")
            raise

    def get_sessions_by_member_id(self, member_id: str) -> List[Dict[str, Any]]:
        """Session records for a member, in report-id order."""
        try:
            items = collect_items(
                self.sessions.query,
                IndexName=self.sessions_index,
                KeyConditionExpression="#memberId = :memberId",
                ExpressionAttributeNames={"#memberId": "member-id"},
                ExpressionAttributeValues={":memberId": member_id},
            )
        except Exception as e:
            logger.error(f"memberRepository > getSessionsByMemberId > error: {e}")
            raise

        logger.info(f"memberRepository > getSessionsByMemberId > success: {len(items)} items")
        return items

    def count_sessions_by_member_id(self, member_id: str) -> int:
        total = 0
        try:
            for page in iter_pages(
                self.sessions.query,
                IndexName=self.sessions_index,
                KeyConditionExpression="#memberId = :memberId",
                ExpressionAttributeNames={"#memberId": "member-id"},
                ExpressionAttributeValues={":memberId": member_id},
                Select="COUNT",
            ):
                total += page.get("Count", 0)
        except Exception as e:
            logger.error(f"memberRepository > countSessionsByMemberId > error: {e}")
            raise

        logger.info(f"memberRepository > countSessionsByMemberId > success: {total}")
        return total
