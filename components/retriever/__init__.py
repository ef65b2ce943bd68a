"""Retriever Component.

Embeds a query, searches the tenant namespace and filters the matches.
"""

from .query_builder import FEATURES, build_rag_query, top_k_for_feature
from .retriever import NamespaceVectorRetriever, create_retriever

__all__ = [
    "FEATURES",
    "NamespaceVectorRetriever",
    "build_rag_query",
    "create_retriever",
    "top_k_for_feature",
]
