"""
Embedding Service
Builds the search document for a member and turns it into a vector with
Amazon Bedrock Titan text embeddings.
"""

import asyncio
import html
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

import numpy as np

logger = logging.getLogger(__name__)

_BLOCK_OPEN = re.compile(r"<\s*(p|div|h[1-6]|li|ul|ol|blockquote|br)\b[^>]*>", re.IGNORECASE)
_BLOCK_CLOSE = re.compile(r"<\/\s*(p|div|h[1-6]|li|ul|ol|blockquote)\s*>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]*>")


def strip_html(markup: str) -> str:
    """Strip tags from rich text; block elements become paragraph breaks."""
    if not markup:
        return ""

    cleaned = _BLOCK_OPEN.sub("\n\n", markup)
    cleaned = _BLOCK_CLOSE.sub("\n\n", cleaned)
    cleaned = _ANY_TAG.sub(" ", cleaned)

    cleaned = cleaned.replace("&nbsp;", " ")
    cleaned = html.unescape(cleaned)

    cleaned = re.sub(r"\n\s*\n", "\n\n", cleaned)
    cleaned = re.sub(r"[ \t]+", " ", cleaned)
    return cleaned.strip()


@dataclass
class LookupTables:
    """Reference tables used to turn member foreign keys into names."""
    classes: List[Dict[str, Any]] = field(default_factory=list)
    races: List[Dict[str, Any]] = field(default_factory=list)
    groups: List[Dict[str, Any]] = field(default_factory=list)

    @staticmethod
    def resolve(ids: Iterable[Any], table: List[Dict[str, Any]]) -> List[str]:
        """Exact id match; unknown ids fall back to the raw id string."""
        names = {entry.get("id"): entry.get("name") for entry in table}
        return [str(names.get(ref) or ref) for ref in ids or []]

    def class_names(self, member: Dict[str, Any]) -> List[str]:
        return self.resolve(member.get("classes"), self.classes)

    def race_names(self, member: Dict[str, Any]) -> List[str]:
        return self.resolve(member.get("races"), self.races)

    def group_names(self, member: Dict[str, Any]) -> List[str]:
        return self.resolve(member.get("groups"), self.groups)


def build_member_embedding_text(member: Dict[str, Any], lookups: LookupTables) -> str:
    """
    Compose the plain-text search document for a member.

    Section order: identity, race, class, birth/death or level, physical,
    religion, groups, biography.
    """
    parts: List[str] = []

    if member.get("name"):
        parts.append(f"Name: {member['name']}")
    if member.get("pseudonym"):
        parts.append(f"Also known as: {member['pseudonym']}")
    if member.get("title"):
        parts.append(f"Title: {member['title']}")

    races = lookups.race_names(member)
    if races:
        parts.append(f"Race: {', '.join(races)}")

    classes = lookups.class_names(member)
    if classes:
        parts.append(f"Class: {', '.join(classes)}")

    level = member.get("level")
    if member.get("born"):
        parts.append(f"Born: {member['born']}SF")
    if member.get("died"):
        level_info = f" (Level {level} at death)" if level else ""
        parts.append(f"Died: {member['died']}SF{level_info}")
    elif level:
        parts.append(f"Level: {level}")

    physical = []
    for attr in ("ethnicity", "eyes", "hair", "height"):
        if member.get(attr):
            physical.append(f"{attr}: {member[attr]}")
    if member.get("weight"):
        physical.append(f"weight: {member['weight']} lbs")
    if physical:
        parts.append(f"Physical: {', '.join(physical)}")

    if member.get("religion"):
        parts.append(f"Religion: {member['religion']}")

    groups = lookups.group_names(member)
    if groups:
        parts.append(f"Groups: {', '.join(groups)}")

    # Biography carries most of the semantic signal
    if member.get("descript"):
        parts.append(f"Biography: {strip_html(member['descript'])}")

    return "\n".join(parts)


class EmbeddingService:
    """Service for Bedrock Titan text embeddings."""

    def __init__(
        self,
        bedrock_client,
        model_id: str = "amazon.titan-embed-text-v2:0",
        dimensions: int = 1024,
        max_chars: int = 24000,
    ):
        self.client = bedrock_client
        self.model_id = model_id
        self.dimensions = dimensions
        self.max_chars = max_chars

    def truncate(self, text: str) -> str:
        return text[: self.max_chars]

    def _invoke(self, text: str) -> np.ndarray:
        response = self.client.invoke_model(
            modelId=self.model_id,
            body=json.dumps({
                "inputText": text,
                "dimensions": self.dimensions,
                "normalize": True,
            }),
            contentType="application/json",
            accept="application/json",
        )
        payload = json.loads(response["body"].read())
        vector = np.asarray(payload["embedding"], dtype=np.float32)
        if vector.shape != (self.dimensions,):
            raise ValueError(
                f"Embedding has shape {vector.shape}, expected ({self.dimensions},)"
            )
        return vector

    async def embed(self, text: str) -> np.ndarray:
        """Embed text (truncated to the model limit) as a normalized vector."""
        truncated = self.truncate(text)
        logger.debug(f"[Embedding] Requesting embedding for {len(truncated)} chars")
        return await asyncio.to_thread(self._invoke, truncated)
