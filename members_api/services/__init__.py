# Services package - business logic and external integrations
from members_api.services.storage import StorageService
from members_api.services.image import ImageService, ImageUploadResult
from members_api.services.member_service import MemberService
from members_api.services.embedding import EmbeddingService, LookupTables
from members_api.services.vectordb import VectorDBService, LocalVectorStore
from members_api.services.embedding_sync import EmbeddingSyncService, SyncOutcome

__all__ = [
    "StorageService",
    "ImageService",
    "ImageUploadResult",
    "MemberService",
    "EmbeddingService",
    "LookupTables",
    "VectorDBService",
    "LocalVectorStore",
    "EmbeddingSyncService",
    "SyncOutcome",
]
