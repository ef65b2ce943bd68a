"""ChromaDB-backed vector store for local runs and tests."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import chromadb
from chromadb.config import Settings
from shared.config import VectorStoreConfig
from shared.models import VectorMatch, VectorRecord

from .vector_store import NamespacedIndex, VectorStore

logger = logging.getLogger(__name__)

# Metadata key holding the namespace; one collection serves every tenant.
NAMESPACE_KEY = "dxgenNamespace"


def _namespace_where(
    namespace: str, filter: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Combine the namespace clause with an optional metadata filter."""
    clauses: List[Dict[str, Any]] = [{NAMESPACE_KEY: {"$eq": namespace}}]
    if filter:
        # Chroma accepts one field per clause; split multi-field filters.
        clauses.extend({key: value} for key, value in filter.items())
    return clauses[0] if len(clauses) == 1 else {"$and": clauses}


class ChromaNamespacedIndex(NamespacedIndex):
    def __init__(self, collection: Any, namespace: str):
        super().__init__(namespace)
        self._collection = collection
        self._id_prefix = f"{namespace}:"

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        if not records:
            return
        self._collection.upsert(
            ids=[self._id_prefix + r.id for r in records],
            embeddings=[r.values for r in records],
            metadatas=[{**r.metadata, NAMESPACE_KEY: self.namespace} for r in records],
        )
        logger.debug(f"Upserted {len(records)} records into {self.namespace}")

    def query(
        self,
        vector: List[float],
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorMatch]:
        results = self._collection.query(
            query_embeddings=[vector],
            n_results=top_k,
            where=_namespace_where(self.namespace, filter),
            include=["metadatas", "distances"],
        )

        matches: List[VectorMatch] = []
        if not results["ids"] or not results["ids"][0]:
            return matches

        metadatas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]
        for i, chroma_id in enumerate(results["ids"][0]):
            metadata = dict(metadatas[i] or {}) if i < len(metadatas) else {}
            metadata.pop(NAMESPACE_KEY, None)
            distance = distances[i] if i < len(distances) else None
            matches.append(
                VectorMatch(
                    id=chroma_id[len(self._id_prefix) :]
                    if chroma_id.startswith(self._id_prefix)
                    else chroma_id,
                    # Cosine space: similarity is 1 - distance.
                    score=None if distance is None else 1.0 - float(distance),
                    metadata=metadata,
                )
            )
        return matches

    def delete_all(self) -> None:
        self._collection.delete(where=_namespace_where(self.namespace))
        logger.debug(f"Deleted all records in namespace {self.namespace}")


class ChromaVectorStore(VectorStore):
    """One ChromaDB collection per index, partitioned by a namespace field."""

    def __init__(self, config: VectorStoreConfig):
        super().__init__(config)
        settings = Settings(anonymized_telemetry=False, allow_reset=True)

        if config.persist_directory:
            persist_directory = Path(config.persist_directory)
            persist_directory.mkdir(parents=True, exist_ok=True)
            self._client = chromadb.PersistentClient(
                path=str(persist_directory), settings=settings
            )
            logger.info(f"Using persistent ChromaDB at {persist_directory}")
        else:
            self._client = chromadb.EphemeralClient(settings=settings)
            logger.info("Using in-memory ChromaDB")

        self.collection = self._client.get_or_create_collection(
            name=self.index_name,
            metadata={"hnsw:space": "cosine", "description": "Project source chunks"},
        )
        logger.info(f"Loaded collection: {self.index_name}")

    @property
    def client(self) -> Any:
        return self._client

    def namespaced_index(self, namespace: str) -> NamespacedIndex:
        return ChromaNamespacedIndex(self.collection, namespace)
