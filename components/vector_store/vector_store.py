"""Vector index abstraction shared by the sync engine and the retriever."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from shared.config import VectorStoreConfig
from shared.models import SyncContext, VectorMatch, VectorRecord

from .namespace import build_namespace

logger = logging.getLogger(__name__)


class NamespacedIndex(ABC):
    """Handle on one namespace of a vector index.

    Filters use the Mongo-style operator dialect understood by both Pinecone
    and ChromaDB, e.g. ``{"relativePath": {"$eq": "src/index.ts"}}``.
    """

    def __init__(self, namespace: str):
        self.namespace = namespace

    @abstractmethod
    def upsert(self, records: Sequence[VectorRecord]) -> None:
        """Insert or overwrite records by id."""

    @abstractmethod
    def query(
        self,
        vector: List[float],
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorMatch]:
        """Return up to ``top_k`` matches with metadata, best first."""

    @abstractmethod
    def delete_all(self) -> None:
        """Remove every record in the namespace. A missing namespace is not an error."""


def http_status(error: Exception) -> Optional[int]:
    """HTTP status carried by a client error, if any.

    Older Pinecone clients expose it as ``status``, newer ones as ``status_code``.
    """
    status = getattr(error, "status", None)
    if status is None:
        status = getattr(error, "status_code", None)
    return status if isinstance(status, int) else None


@dataclass(frozen=True)
class ResolvedNamespace:
    client: Any
    namespace: str
    index: NamespacedIndex


class VectorStore(ABC):
    """A vector index service holding one named index split into namespaces."""

    def __init__(self, config: VectorStoreConfig):
        self.config = config
        self.index_name = config.index

    @property
    @abstractmethod
    def client(self) -> Any:
        """The underlying SDK client."""

    @abstractmethod
    def namespaced_index(self, namespace: str) -> NamespacedIndex:
        """Return a handle scoped to ``namespace``."""

    def resolve_namespace(self, context: SyncContext) -> ResolvedNamespace:
        """Derive the tenant namespace and return a handle scoped to it.

        No network call is made here; connections are opened on first use.
        """
        namespace = build_namespace(self.config, context)
        logger.debug(f"Resolved namespace {namespace} in index {self.index_name}")
        return ResolvedNamespace(
            client=self.client,
            namespace=namespace,
            index=self.namespaced_index(namespace),
        )


def create_vector_store(config: VectorStoreConfig) -> VectorStore:
    """Factory function to create the vector store named by ``config.provider``."""
    provider = config.provider.lower()

    if provider == "pinecone":
        from .pinecone_store import PineconeVectorStore

        return PineconeVectorStore(config)

    elif provider == "chroma":
        from .chroma_store import ChromaVectorStore

        return ChromaVectorStore(config)

    else:
        raise ValueError(
            f"Unsupported vector store provider: {provider}. "
            f"Supported providers: pinecone, chroma"
        )
