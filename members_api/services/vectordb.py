"""
Vector Database Service
Stores member search vectors in Pinecone, with a local NumPy store for
development when no Pinecone key is configured.

Vector ids are ``member_<memberId>``; each member has at most one vector.
"""

import json
import logging
import pickle
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
from pinecone import Pinecone
from pinecone.exceptions import NotFoundException

logger = logging.getLogger(__name__)


def member_vector_id(member_id: str) -> str:
    return f"member_{member_id}"


class LocalVectorStore:
    """
    Local vector store using NumPy.
    Persists to disk when a storage path is given, otherwise memory only.
    """

    def __init__(self, storage_path: Optional[str] = None):
        self.storage_path = Path(storage_path) if storage_path else None
        self.vectors: Dict[str, np.ndarray] = {}
        self.metadata: Dict[str, Dict[str, Any]] = {}

        if self.storage_path:
            self.storage_path.mkdir(parents=True, exist_ok=True)
            self._load()
            logger.info(f"[VectorDB] Using local storage: {self.storage_path}")

    def _load(self):
        """Load vectors from disk."""
        vectors_path = self.storage_path / "vectors.pkl"
        metadata_path = self.storage_path / "metadata.json"

        if vectors_path.exists():
            with open(vectors_path, "rb") as f:
                self.vectors = pickle.load(f)

        if metadata_path.exists():
            with open(metadata_path, "r") as f:
                self.metadata = json.load(f)

    def _save(self):
        if not self.storage_path:
            return
        with open(self.storage_path / "vectors.pkl", "wb") as f:
            pickle.dump(self.vectors, f)

        with open(self.storage_path / "metadata.json", "w") as f:
            json.dump(self.metadata, f, indent=2, default=str)

    def upsert(self, vector_id: str, vector: np.ndarray, metadata: Optional[Dict] = None):
        """Insert or update a vector."""
        vector = np.asarray(vector, dtype=np.float32)

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector = vector / norm

        self.vectors[vector_id] = vector
        self.metadata[vector_id] = dict(metadata or {})
        self._save()

    def get(self, vector_id: str) -> Optional[np.ndarray]:
        return self.vectors.get(vector_id)

    def delete(self, vector_id: str):
        """Delete a vector; unknown ids are ignored."""
        self.vectors.pop(vector_id, None)
        self.metadata.pop(vector_id, None)
        self._save()

    def __len__(self):
        return len(self.vectors)


def create_pinecone_index(api_key: str, index_name: str):
    """Connect to an existing Pinecone index."""
    pc = Pinecone(api_key=api_key)
    index = pc.Index(index_name)
    logger.info(f"[VectorDB] Connected to Pinecone index '{index_name}'")
    return index


class VectorDBService:
    """
    High-level service for member vectors.
    Uses a Pinecone index when one is supplied, else the local store.
    """

    def __init__(
        self,
        index=None,
        local_store: Optional[LocalVectorStore] = None,
        namespace: str = "",
    ):
        self.index = index
        self.use_pinecone = index is not None
        self.local_store = local_store if local_store is not None else LocalVectorStore()
        self.namespace = namespace

        if not self.use_pinecone:
            logger.info("[VectorDB] Using local NumPy store")

    @property
    def backend(self) -> str:
        return "pinecone" if self.use_pinecone else "local"

    def _ns(self) -> Dict[str, str]:
        return {"namespace": self.namespace} if self.namespace else {}

    async def upsert(self, vector_id: str, embedding: np.ndarray, metadata: Dict[str, Any]) -> str:
        if self.use_pinecone:
            self.index.upsert(
                vectors=[{
                    "id": vector_id,
                    "values": np.asarray(embedding, dtype=np.float32).tolist(),
                    "metadata": metadata,
                }],
                **self._ns(),
            )
        else:
            self.local_store.upsert(vector_id, embedding, metadata)

        logger.info(f"[VectorDB] Upserted vector: {vector_id}")
        return vector_id

    async def delete(self, vector_id: str) -> None:
        """Remove a vector. A vector that does not exist is not an error."""
        if self.use_pinecone:
            try:
                self.index.delete(ids=[vector_id], **self._ns())
            except NotFoundException:
                logger.info(f"[VectorDB] No existing vector {vector_id}")
                return
        else:
            self.local_store.delete(vector_id)

        logger.info(f"[VectorDB] Deleted vector: {vector_id}")

    async def get_stats(self) -> Dict[str, Any]:
        """Get statistics about the vector store."""
        if self.use_pinecone:
            stats = self.index.describe_index_stats()
            return {"backend": "pinecone", "total_vectors": stats.total_vector_count}
        return {"backend": "local", "total_vectors": len(self.local_store)}
