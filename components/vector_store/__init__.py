"""Vector Store Component.

Namespace-scoped upsert, query and delete-all against Pinecone, or ChromaDB
for local runs.
"""

from .namespace import NAMESPACE_PREFIX, build_namespace, slugify
from .vector_store import (
    NamespacedIndex,
    ResolvedNamespace,
    VectorStore,
    create_vector_store,
    http_status,
)

__all__ = [
    "NAMESPACE_PREFIX",
    "NamespacedIndex",
    "ResolvedNamespace",
    "VectorStore",
    "build_namespace",
    "create_vector_store",
    "http_status",
    "slugify",
]
