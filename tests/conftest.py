"""
Shared pytest fixtures.

DynamoDB tables, S3 and the embedding model are replaced by small
in-memory fakes that speak the same call shapes as the boto3 handles.
"""

import copy
import io
import re
from typing import Any, Dict, List, Optional

import numpy as np
import pytest
from botocore.exceptions import ClientError
from PIL import Image

from members_api.api.router import MembersRouter
from members_api.repositories import (
    AuraRepository,
    ClassRepository,
    GroupRepository,
    MemberRepository,
    RaceRepository,
)
from members_api.services.embedding_sync import EmbeddingSyncService
from members_api.services.image import ImageService
from members_api.services.member_service import MemberService
from members_api.services.storage import StorageService
from members_api.services.vectordb import LocalVectorStore, VectorDBService

_SET_CLAUSE = re.compile(r"(#\w+)\s*=\s*(:\w+)")
_KEY_CONDITION = re.compile(r"^\s*(#?[\w-]+)\s*=\s*(:\w+)\s*$")


class FakeTable:
    """
    In-memory stand-in for a boto3 DynamoDB Table resource.

    ``page_size`` caps each scan/query page and hands back a
    LastEvaluatedKey until results run out. ``indexes`` maps an index name
    to its hash-key attribute.
    """

    def __init__(
        self,
        items: Optional[List[Dict[str, Any]]] = None,
        key: str = "id",
        page_size: Optional[int] = None,
        indexes: Optional[Dict[str, str]] = None,
    ):
        self.key = key
        self.page_size = page_size
        self.indexes = indexes or {}
        self.items: Dict[Any, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        for item in items or []:
            self.items[item[key]] = copy.deepcopy(item)

    def _page(self, matches: List[Dict[str, Any]], kwargs: Dict[str, Any]) -> Dict[str, Any]:
        start = (kwargs.get("ExclusiveStartKey") or {}).get("_offset", 0)
        end = len(matches) if self.page_size is None else start + self.page_size
        page = matches[start:end]

        projection = kwargs.get("ProjectionExpression")
        if projection:
            names = kwargs.get("ExpressionAttributeNames", {})
            attrs = [names.get(p.strip(), p.strip()) for p in projection.split(",")]
            page = [{a: item[a] for a in attrs if a in item} for item in page]

        response: Dict[str, Any] = {"Items": copy.deepcopy(page), "Count": len(page)}
        if kwargs.get("Select") == "COUNT":
            response.pop("Items")
        if end < len(matches):
            response["LastEvaluatedKey"] = {"_offset": end}
        return response

    def put_item(self, Item):
        self.calls.append(("put_item", Item))
        self.items[Item[self.key]] = copy.deepcopy(Item)
        return {}

    def get_item(self, Key):
        self.calls.append(("get_item", Key))
        item = self.items.get(Key[self.key])
        return {"Item": copy.deepcopy(item)} if item is not None else {}

    def delete_item(self, Key):
        self.calls.append(("delete_item", Key))
        self.items.pop(Key[self.key], None)
        return {}

    def update_item(self, Key, UpdateExpression, ExpressionAttributeNames, ExpressionAttributeValues, **kwargs):
        self.calls.append(("update_item", Key, UpdateExpression))
        item = self.items.setdefault(Key[self.key], {self.key: Key[self.key]})
        for name_ref, value_ref in _SET_CLAUSE.findall(UpdateExpression):
            item[ExpressionAttributeNames[name_ref]] = copy.deepcopy(ExpressionAttributeValues[value_ref])
        return {"Attributes": copy.deepcopy(item)}

    def scan(self, **kwargs):
        self.calls.append(("scan", kwargs))
        return self._page(list(self.items.values()), kwargs)

    def query(self, IndexName=None, KeyConditionExpression="", **kwargs):
        self.calls.append(("query", IndexName, KeyConditionExpression, kwargs))
        match = _KEY_CONDITION.match(KeyConditionExpression)
        name_ref, value_ref = match.groups()
        attr = kwargs.get("ExpressionAttributeNames", {}).get(name_ref, name_ref)
        if IndexName is not None:
            assert self.indexes.get(IndexName) == attr, f"unknown index {IndexName} for {attr}"
        wanted = kwargs["ExpressionAttributeValues"][value_ref]
        matches = [item for item in self.items.values() if item.get(attr) == wanted]
        return self._page(matches, kwargs)

    def count_calls(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class FailingTable(FakeTable):
    """Every operation raises, as a throttled or unreachable table would."""

    def _fail(self, *args, **kwargs):
        raise RuntimeError("table unavailable")

    put_item = get_item = delete_item = update_item = scan = query = _fail


class FakeS3:
    """Minimal S3 client: put/head/get/delete on a dict of objects."""

    def __init__(self):
        self.objects: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def _missing(operation: str):
        return ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, operation)

    def put_object(self, Bucket, Key, Body, ContentType=None, Metadata=None):
        self.objects[Key] = {"Body": Body, "ContentType": ContentType, "Metadata": Metadata or {}}
        return {}

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise self._missing("HeadObject")
        return {"ContentType": self.objects[Key]["ContentType"]}

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[Key]["Body"])}

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)
        return {}


class FakeEmbeddingService:
    """Deterministic embeddings; records every text it was asked to embed."""

    def __init__(self, dimensions: int = 8, max_chars: int = 24000):
        self.dimensions = dimensions
        self.max_chars = max_chars
        self.calls: List[str] = []

    def truncate(self, text: str) -> str:
        return text[: self.max_chars]

    async def embed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        rng = np.random.default_rng(len(text))
        return rng.standard_normal(self.dimensions).astype(np.float32)


def make_image_bytes(width: int, height: int, fmt: str = "JPEG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(120, 40, 200)).save(buffer, format=fmt)
    return buffer.getvalue()


CLASSES = [{"id": "c1", "name": "Paladin"}, {"id": "c2", "name": "Wizard"}]
RACES = [{"id": "r1", "name": "Human"}, {"id": "r2", "name": "Elf"}]
AURAS = [{"id": "a1", "name": "Radiant"}]
GROUPS = [{"id": "g1", "name": "Silver Hand"}]


@pytest.fixture
def members_table():
    return FakeTable(indexes={"owner-index": "owner"})


@pytest.fixture
def sessions_table():
    return FakeTable(key="report-id", indexes={"member-id-report-id-index": "member-id"})


@pytest.fixture
def member_repository(members_table, sessions_table):
    return MemberRepository(members_table, sessions_table)


@pytest.fixture
def lookup_repositories():
    return (
        ClassRepository(FakeTable(CLASSES)),
        RaceRepository(FakeTable(RACES)),
        AuraRepository(FakeTable(AURAS)),
        GroupRepository(FakeTable(GROUPS)),
    )


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def storage_service(fake_s3):
    return StorageService(s3_client=fake_s3, bucket="test-bucket")


@pytest.fixture
def image_service(storage_service):
    return ImageService(storage_service)


@pytest.fixture
def member_service(member_repository, lookup_repositories, image_service):
    classes, races, auras, groups = lookup_repositories
    return MemberService(member_repository, classes, races, auras, groups, image_service=image_service)


@pytest.fixture
def router(member_service, image_service):
    return MembersRouter(member_service, image_service)


@pytest.fixture
def fake_embeddings():
    return FakeEmbeddingService()


@pytest.fixture
def vector_service():
    return VectorDBService(local_store=LocalVectorStore())


@pytest.fixture
def sync_service(fake_embeddings, vector_service, lookup_repositories):
    classes, races, _, groups = lookup_repositories
    return EmbeddingSyncService(
        fake_embeddings,
        vector_service,
        class_repository=classes,
        race_repository=races,
        group_repository=groups,
    )
