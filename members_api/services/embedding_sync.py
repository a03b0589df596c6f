"""
Embedding Sync
Publishes a member's search document to the vector index, or removes it
when the member is soft-deleted.

Vectors are a derived cache of member state. They are refreshed only when
this pipeline runs (the batch driver), not on live writes.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from members_api.services.embedding import (
    EmbeddingService,
    LookupTables,
    build_member_embedding_text,
)
from members_api.services.vectordb import VectorDBService, member_vector_id

logger = logging.getLogger(__name__)


class SyncOutcome(str, Enum):
    SYNCED = "synced"
    REMOVED = "removed"
    SKIPPED = "skipped"


class EmbeddingSyncService:
    """Per-member embedding sync."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_service: VectorDBService,
        class_repository=None,
        race_repository=None,
        group_repository=None,
        metadata_text_chars: int = 3000,
    ):
        self.embedding_service = embedding_service
        self.vector_service = vector_service
        self.class_repository = class_repository
        self.race_repository = race_repository
        self.group_repository = group_repository
        self.metadata_text_chars = metadata_text_chars

    def load_lookup_tables(self) -> LookupTables:
        """Load classes, races and groups in full."""
        lookups = LookupTables(
            classes=self.class_repository.get_all(),
            races=self.race_repository.get_all(),
            groups=self.group_repository.get_all(),
        )
        logger.info(
            f"[Sync] Lookup tables loaded - classes: {len(lookups.classes)}, "
            f"races: {len(lookups.races)}, groups: {len(lookups.groups)}"
        )
        return lookups

    def build_metadata(self, member: Dict[str, Any], text: str, lookups: LookupTables) -> Dict[str, Any]:
        """Scalar snapshot stored next to the vector. Null values are left out."""
        metadata: Dict[str, Any] = {
            "type": "member",
            "memberId": member["id"],
            "name": member.get("name") or "",
            "text": text[: self.metadata_text_chars],
            "updatedAt": datetime.now(timezone.utc).isoformat(),
        }

        for attr in ("pseudonym", "title", "born", "died", "level", "religion"):
            if member.get(attr):
                metadata[attr] = member[attr]

        races = ", ".join(lookups.race_names(member))
        classes = ", ".join(lookups.class_names(member))
        groups = ", ".join(lookups.group_names(member))
        if races:
            metadata["races"] = races
        if classes:
            metadata["classes"] = classes
        if groups:
            metadata["groups"] = groups

        return metadata

    async def remove_member(self, member_id: str) -> None:
        await self.vector_service.delete(member_vector_id(member_id))

    async def sync_member(
        self,
        member: Dict[str, Any],
        lookups: Optional[LookupTables] = None,
    ) -> SyncOutcome:
        """
        Embed and upsert one member.

        Deleted members have their vector removed without any model call.
        An empty document publishes nothing.
        """
        member_id = member["id"]
        logger.info(f"[Sync] Syncing member {member_id} ({member.get('name')})")

        if member.get("deleted"):
            logger.info(f"[Sync] Member {member_id} is marked deleted, removing vector")
            await self.remove_member(member_id)
            return SyncOutcome.REMOVED

        if lookups is None:
            lookups = self.load_lookup_tables()

        text = build_member_embedding_text(member, lookups)
        if not text.strip():
            logger.info(f"[Sync] Skipping member {member_id} - no text to embed")
            return SyncOutcome.SKIPPED

        text = self.embedding_service.truncate(text)
        embedding = await self.embedding_service.embed(text)
        metadata = self.build_metadata(member, text, lookups)

        # Replace, never accumulate: drop the previous vector first
        await self.remove_member(member_id)
        await self.vector_service.upsert(member_vector_id(member_id), embedding, metadata)

        logger.info(f"[Sync] Synced member {member_id}")
        return SyncOutcome.SYNCED
