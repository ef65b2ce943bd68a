"""Single entry point combining an optional sync with retrieval."""

import logging
from typing import Optional

from components.document_processing import chunk_project_files
from components.embedding_system import create_embedding_model
from components.file_scanner import ascan_project_files
from components.retriever import create_retriever
from components.sync_engine import SyncEngine
from components.vector_store import VectorStore, create_vector_store
from llama_index.core.embeddings import BaseEmbedding
from shared.config import Config
from shared.models import (
    ChunkOptions,
    RagPipelineOptions,
    RagPipelineResult,
    RetrievedDocument,
    SyncSummary,
)

logger = logging.getLogger(__name__)


class RagPipeline:
    """Scan, chunk and sync a project when asked, then retrieve for a query."""

    def __init__(
        self, embed_model: BaseEmbedding, vector_store: VectorStore, config: Config
    ):
        self.embed_model = embed_model
        self.vector_store = vector_store
        self.config = config
        self.sync_engine = SyncEngine(
            embed_model,
            vector_store,
            max_batch_bytes=config.indexing.max_batch_bytes,
        )

    def _chunk_options(self, options: RagPipelineOptions) -> ChunkOptions:
        if options.chunk_options is not None:
            return options.chunk_options
        return ChunkOptions(
            chunk_size=self.config.indexing.chunk_size,
            chunk_overlap=self.config.indexing.chunk_overlap,
        )

    async def _sync(self, options: RagPipelineOptions) -> SyncSummary:
        indexing = self.config.indexing
        scan = options.scan_options
        scan_result = await ascan_project_files(
            options.root_dir,
            include_extensions=(
                scan.include_extensions
                if scan.include_extensions is not None
                else indexing.include_extensions
            ),
            exclude_globs=[*indexing.exclude_globs, *(scan.exclude_globs or [])],
            max_file_size_bytes=scan.max_file_size_bytes or indexing.max_file_size_bytes,
        )
        chunks = chunk_project_files(scan_result.files, self._chunk_options(options))
        return await self.sync_engine.resync(
            chunks, options.context, full_reindex=options.sync.full_reindex
        )

    async def run(self, options: RagPipelineOptions) -> RagPipelineResult:
        """Run one pipeline invocation.

        When ``options.sync.enabled`` is false the project is neither scanned
        nor written; only retrieval runs.
        """
        sync_summary: Optional[SyncSummary] = None
        if options.sync.enabled:
            logger.info(
                f"Syncing {options.root_dir} "
                f"({'full reindex' if options.sync.full_reindex else 'incremental'})"
            )
            sync_summary = await self._sync(options)

        retriever = create_retriever(
            self.embed_model,
            self.vector_store,
            options.context,
            options.retriever_options,
            self.config,
        )
        nodes = await retriever.aretrieve(options.query)
        logger.info(f"Retrieved {len(nodes)} documents from {retriever.namespace}")

        return RagPipelineResult(
            documents=[RetrievedDocument.from_node(node) for node in nodes],
            sync_summary=sync_summary,
        )


async def run_rag_pipeline(
    options: RagPipelineOptions,
    config: Optional[Config] = None,
    embed_model: Optional[BaseEmbedding] = None,
    vector_store: Optional[VectorStore] = None,
) -> RagPipelineResult:
    """Run the pipeline, building any dependency that was not supplied."""
    config = config or Config()
    if embed_model is None:
        embed_model = create_embedding_model(config.embedding_model)
    if vector_store is None:
        vector_store = create_vector_store(config.vector_store)
    return await RagPipeline(embed_model, vector_store, config).run(options)
