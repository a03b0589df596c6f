"""
API Dependencies
Builds the wired service graph once per process from Settings.
"""

from functools import lru_cache

from members_api.api.router import MembersRouter
from members_api.core.clients import AwsClients, build_aws_clients
from members_api.core.config import Settings, get_settings
from members_api.repositories import (
    AuraRepository,
    ClassRepository,
    GroupRepository,
    MemberRepository,
    RaceRepository,
)
from members_api.services.embedding import EmbeddingService
from members_api.services.embedding_sync import EmbeddingSyncService
from members_api.services.image import ImageService
from members_api.services.member_service import MemberService
from members_api.services.storage import StorageService
from members_api.services.vectordb import LocalVectorStore, VectorDBService, create_pinecone_index


@lru_cache()
def get_aws_clients() -> AwsClients:
    return build_aws_clients(get_settings())


def _table(name: str):
    return get_aws_clients().dynamodb.Table(name)


@lru_cache()
def get_storage_service() -> StorageService:
    settings = get_settings()
    return StorageService(
        s3_client=get_aws_clients().s3,
        bucket=settings.S3_BUCKET,
        local_path=settings.LOCAL_STORAGE_PATH,
    )


@lru_cache()
def get_image_service() -> ImageService:
    settings = get_settings()
    return ImageService(
        get_storage_service(),
        width=settings.IMAGE_WIDTH,
        height=settings.IMAGE_HEIGHT,
        jpeg_quality=settings.IMAGE_JPEG_QUALITY,
        max_video_bytes=settings.MAX_VIDEO_BYTES,
    )


def build_lookup_repositories(settings: Settings):
    """Class, race, aura and group repositories, in that order."""
    return (
        ClassRepository(_table(settings.CLASSES_TABLE)),
        RaceRepository(_table(settings.RACES_TABLE)),
        AuraRepository(_table(settings.AURAS_TABLE)),
        GroupRepository(_table(settings.GROUPS_TABLE)),
    )


@lru_cache()
def get_member_repository() -> MemberRepository:
    settings = get_settings()
    return MemberRepository(
        _table(settings.MEMBERS_TABLE),
        _table(settings.SESSIONS_TABLE),
        owner_index=settings.MEMBERS_BY_OWNER_INDEX,
        sessions_index=settings.SESSIONS_BY_MEMBER_INDEX,
    )


@lru_cache()
def get_member_service() -> MemberService:
    classes, races, auras, groups = build_lookup_repositories(get_settings())
    return MemberService(
        member_repository=get_member_repository(),
        class_repository=classes,
        race_repository=races,
        aura_repository=auras,
        group_repository=groups,
        image_service=get_image_service(),
    )


@lru_cache()
def get_vector_service() -> VectorDBService:
    """Pinecone when an API key is configured, local NumPy store otherwise."""
    settings = get_settings()
    if settings.PINECONE_API_KEY:
        index = create_pinecone_index(settings.PINECONE_API_KEY, settings.PINECONE_INDEX_NAME)
        return VectorDBService(index=index, namespace=settings.PINECONE_NAMESPACE)
    return VectorDBService(local_store=LocalVectorStore(settings.LOCAL_VECTOR_PATH or None))


@lru_cache()
def get_embedding_sync_service() -> EmbeddingSyncService:
    settings = get_settings()
    classes, races, _, groups = build_lookup_repositories(settings)
    embedding_service = EmbeddingService(
        get_aws_clients().bedrock,
        model_id=settings.BEDROCK_EMBEDDING_MODEL,
        dimensions=settings.EMBEDDING_DIMENSIONS,
        max_chars=settings.EMBEDDING_MAX_CHARS,
    )
    return EmbeddingSyncService(
        embedding_service,
        get_vector_service(),
        class_repository=classes,
        race_repository=races,
        group_repository=groups,
        metadata_text_chars=settings.EMBEDDING_METADATA_TEXT_CHARS,
    )


@lru_cache()
def get_router() -> MembersRouter:
    return MembersRouter(
        get_member_service(),
        get_image_service(),
        cors_origin=get_settings().CORS_ALLOW_ORIGIN,
    )
