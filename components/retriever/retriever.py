"""Namespace-scoped vector retrieval with score and path filtering."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from components.vector_store import NamespacedIndex, VectorStore
from llama_index.core.embeddings import BaseEmbedding
from llama_index.core.retrievers import BaseRetriever
from llama_index.core.schema import NodeWithScore, QueryBundle, TextNode
from shared.config import Config
from shared.models import RetrieverOptions, SyncContext, VectorMatch

logger = logging.getLogger(__name__)


class NamespaceVectorRetriever(BaseRetriever):
    """Retrieves the chunks of one tenant namespace closest to a query.

    Matches are post-processed in this order: score threshold (matches
    without a score are kept), conversion to text nodes, removal of empty
    text, removal of excluded path prefixes. When nothing survives and a
    fallback retriever is set, the fallback's answer to the same query is
    returned instead.
    """

    def __init__(
        self,
        embed_model: BaseEmbedding,
        index: NamespacedIndex,
        top_k: int,
        score_threshold: Optional[float] = None,
        filters: Optional[Dict[str, Any]] = None,
        fallback: Optional[BaseRetriever] = None,
        exclude_relative_path_prefixes: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ):
        if top_k <= 0:
            raise ValueError(f"top_k must be positive, got {top_k}")
        self._embed_model = embed_model
        self._index = index
        self._top_k = top_k
        self._score_threshold = score_threshold
        self._filters = filters
        self._fallback = fallback
        self._exclude_prefixes = list(exclude_relative_path_prefixes or [])
        super().__init__(**kwargs)

    @property
    def namespace(self) -> str:
        return self._index.namespace

    def _to_nodes(self, matches: List[VectorMatch]) -> List[NodeWithScore]:
        nodes: List[NodeWithScore] = []
        for match in matches:
            if (
                self._score_threshold is not None
                and match.score is not None
                and match.score < self._score_threshold
            ):
                continue

            metadata = dict(match.metadata)
            text = metadata.pop("text", "")
            if not isinstance(text, str) or not text:
                continue

            relative_path = metadata.get("relativePath")
            if isinstance(relative_path, str) and any(
                relative_path.startswith(prefix) for prefix in self._exclude_prefixes
            ):
                continue

            metadata["score"] = match.score
            metadata["vectorId"] = match.id
            nodes.append(
                NodeWithScore(
                    node=TextNode(id_=match.id, text=text, metadata=metadata),
                    score=match.score,
                )
            )

        logger.debug(
            f"Kept {len(nodes)} of {len(matches)} matches from {self.namespace}"
        )
        return nodes

    def _retrieve(self, query_bundle: QueryBundle) -> List[NodeWithScore]:
        embedding = query_bundle.embedding or self._embed_model.get_query_embedding(
            query_bundle.query_str
        )
        matches = self._index.query(embedding, self._top_k, self._filters)
        nodes = self._to_nodes(matches)

        if not nodes and self._fallback is not None:
            logger.warning(
                f"No documents left for query in {self.namespace}; using fallback"
            )
            return self._fallback.retrieve(query_bundle)
        return nodes

    async def _aretrieve(self, query_bundle: QueryBundle) -> List[NodeWithScore]:
        embedding = query_bundle.embedding or (
            await self._embed_model.aget_query_embedding(query_bundle.query_str)
        )
        matches = await asyncio.to_thread(
            self._index.query, embedding, self._top_k, self._filters
        )
        nodes = self._to_nodes(matches)

        if not nodes and self._fallback is not None:
            logger.warning(
                f"No documents left for query in {self.namespace}; using fallback"
            )
            return await self._fallback.aretrieve(query_bundle)
        return nodes


def create_retriever(
    embed_model: BaseEmbedding,
    vector_store: VectorStore,
    context: SyncContext,
    options: Optional[RetrieverOptions] = None,
    config: Optional[Config] = None,
) -> NamespaceVectorRetriever:
    """Build a retriever for the tenant namespace of ``context``.

    Unset options fall back to the ``[retrieval]`` configuration.
    """
    options = options or RetrieverOptions()
    retrieval = (config or Config()).retrieval

    exclude_prefixes = options.exclude_relative_path_prefixes
    if exclude_prefixes is None:
        exclude_prefixes = retrieval.exclude_relative_path_prefixes
    score_threshold = options.score_threshold
    if score_threshold is None:
        score_threshold = retrieval.score_threshold

    resolved = vector_store.resolve_namespace(context)
    return NamespaceVectorRetriever(
        embed_model=embed_model,
        index=resolved.index,
        top_k=options.top_k or retrieval.top_k_default,
        score_threshold=score_threshold,
        filters=options.filter,
        fallback=options.fallback,
        exclude_relative_path_prefixes=exclude_prefixes,
    )
