"""Pinecone-backed vector store."""

import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from pinecone import Pinecone
from pinecone.exceptions import NotFoundException, PineconeApiException
from shared.config import ConfigurationError, VectorStoreConfig
from shared.models import VectorMatch, VectorRecord

from .vector_store import NamespacedIndex, VectorStore, http_status

logger = logging.getLogger(__name__)

PINECONE_API_KEY_ENV = "PINECONE_API_KEY"
PINECONE_CONTROLLER_HOST_ENV = "PINECONE_CONTROLLER_HOST"


def is_not_found(error: Exception) -> bool:
    """True when Pinecone reports that the index or namespace does not exist."""
    if isinstance(error, NotFoundException):
        return True
    return isinstance(error, PineconeApiException) and http_status(error) == 404


class PineconeNamespacedIndex(NamespacedIndex):
    def __init__(self, store: "PineconeVectorStore", namespace: str):
        super().__init__(namespace)
        self._store = store

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        vectors = [
            {"id": r.id, "values": r.values, "metadata": r.metadata} for r in records
        ]
        self._store.index.upsert(vectors=vectors, namespace=self.namespace)

    def query(
        self,
        vector: List[float],
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorMatch]:
        kwargs: Dict[str, Any] = {
            "vector": vector,
            "top_k": top_k,
            "namespace": self.namespace,
            "include_metadata": True,
            "include_values": False,
        }
        if filter:
            kwargs["filter"] = filter
        response = self._store.index.query(**kwargs)
        return [
            VectorMatch(id=m.id, score=m.score, metadata=dict(m.metadata or {}))
            for m in response.matches
        ]

    def delete_all(self) -> None:
        try:
            self._store.index.delete(delete_all=True, namespace=self.namespace)
        except PineconeApiException as e:
            if is_not_found(e):
                logger.debug(f"Namespace {self.namespace} not found, nothing to delete")
                return
            raise


class PineconeVectorStore(VectorStore):
    """Pinecone index whose namespaces isolate tenants."""

    def __init__(self, config: VectorStoreConfig):
        super().__init__(config)
        api_key = config.api_key or os.environ.get(PINECONE_API_KEY_ENV)
        if not api_key:
            raise ConfigurationError(
                f"{PINECONE_API_KEY_ENV} is required to interact with Pinecone"
            )

        client_kwargs: Dict[str, Any] = {"api_key": api_key}
        host = config.controller_host_url or os.environ.get(
            PINECONE_CONTROLLER_HOST_ENV
        )
        if host:
            client_kwargs["host"] = host
        self._client = Pinecone(**client_kwargs)
        self._index: Any = None
        logger.info(f"Initialized Pinecone client for index {self.index_name}")

    @property
    def client(self) -> Any:
        return self._client

    @property
    def index(self) -> Any:
        """The data-plane index handle, opened on first use."""
        if self._index is None:
            if self.config.index_host_url:
                self._index = self._client.Index(
                    name=self.index_name, host=self.config.index_host_url
                )
            else:
                self._index = self._client.Index(name=self.index_name)
            logger.debug(f"Opened Pinecone index {self.index_name}")
        return self._index

    def namespaced_index(self, namespace: str) -> NamespacedIndex:
        return PineconeNamespacedIndex(self, namespace)
