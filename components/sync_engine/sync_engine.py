"""Embedding and upserting of chunks into a tenant namespace."""

import asyncio
import hashlib
import json
import logging
from typing import Dict, List, Sequence

from components.vector_store import NamespacedIndex, VectorStore, http_status
from llama_index.core.embeddings import BaseEmbedding
from shared.models import (
    FileChunk,
    MetadataValue,
    SyncContext,
    SyncSummary,
    VectorRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_BYTES = 3_500_000


def chunk_vector_id(chunk: FileChunk, context: SyncContext) -> str:
    """Stable vector id for a chunk of a tenant's file."""
    key = ":".join(
        [
            context.user_id,
            context.project_id,
            chunk.metadata.relative_path,
            str(chunk.metadata.chunk_index),
        ]
    )
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def build_record_metadata(
    chunk: FileChunk, context: SyncContext
) -> Dict[str, MetadataValue]:
    """Metadata stored with a chunk's vector.

    Extra context metadata is passed through only for str, int, float and bool
    values, and never replaces the tenant or chunk fields.
    """
    metadata: Dict[str, MetadataValue] = {}
    for key, value in context.extra_metadata.items():
        if isinstance(value, (str, int, float, bool)):
            metadata[key] = value
        else:
            logger.debug(f"Dropping non-scalar extra metadata field: {key}")

    metadata.update(
        {
            "userId": context.user_id,
            "projectId": context.project_id,
            "text": chunk.text,
            **chunk.metadata.to_store_metadata(),
        }
    )
    if context.branch:
        metadata["branch"] = context.branch
    if context.commit_sha:
        metadata["commitSha"] = context.commit_sha
    return metadata


def payload_size(records: Sequence[VectorRecord]) -> int:
    """Size in bytes of the JSON upsert payload for ``records``."""
    payload = {"vectors": [record.model_dump() for record in records]}
    return len(json.dumps(payload).encode("utf-8"))


def batch_records(
    records: Sequence[VectorRecord], max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES
) -> List[List[VectorRecord]]:
    """Group records in order into batches whose payload fits ``max_batch_bytes``.

    A record that is too large on its own is sent in a batch of its own.
    """
    batches: List[List[VectorRecord]] = []
    current: List[VectorRecord] = []

    for record in records:
        record_size = payload_size([record])
        if record_size > max_batch_bytes:
            if current:
                batches.append(current)
                current = []
            logger.warning(
                f"Record {record.id} exceeds the batch size limit "
                f"({record_size} > {max_batch_bytes} bytes); sending it alone"
            )
            batches.append([record])
            continue

        if current and payload_size([*current, record]) > max_batch_bytes:
            batches.append(current)
            current = [record]
        else:
            current.append(record)

    if current:
        batches.append(current)
    return batches


def is_payload_too_large(error: Exception) -> bool:
    if http_status(error) == 413:
        return True
    return "too large" in str(error).lower()


class SyncEngine:
    """Embeds chunks and writes them to the tenant's namespace."""

    def __init__(
        self,
        embed_model: BaseEmbedding,
        vector_store: VectorStore,
        max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES,
    ):
        self.embed_model = embed_model
        self.vector_store = vector_store
        self.max_batch_bytes = max_batch_bytes

    async def _embed(self, chunks: Sequence[FileChunk]) -> List[List[float]]:
        if not chunks:
            return []
        return await self.embed_model.aget_text_embedding_batch(
            [chunk.text for chunk in chunks]
        )

    async def _upsert_batch(
        self, index: NamespacedIndex, batch: List[VectorRecord], label: str
    ) -> int:
        try:
            await asyncio.to_thread(index.upsert, batch)
            return len(batch)
        except Exception as e:
            if not is_payload_too_large(e) or len(batch) < 2:
                logger.error(f"Upsert of batch {label} failed: {e}")
                raise
            logger.warning(
                f"Batch {label} rejected as too large; retrying as two halves"
            )

        half = (len(batch) + 1) // 2
        upserted = 0
        for sub_batch in (batch[:half], batch[half:]):
            await asyncio.to_thread(index.upsert, sub_batch)
            upserted += len(sub_batch)
        return upserted

    async def sync(
        self, chunks: Sequence[FileChunk], context: SyncContext
    ) -> SyncSummary:
        """Embed ``chunks`` and upsert them; vectors of other files are untouched."""
        vectors = await self._embed(chunks)
        resolved = self.vector_store.resolve_namespace(context)
        summary = SyncSummary(
            index=self.vector_store.index_name, namespace=resolved.namespace
        )

        records = [
            VectorRecord(
                id=chunk_vector_id(chunk, context),
                values=vector,
                metadata=build_record_metadata(chunk, context),
            )
            for chunk, vector in zip(chunks, vectors, strict=True)
        ]
        if not records:
            logger.info(f"No chunks to sync into {resolved.namespace}")
            return summary

        batches = batch_records(records, self.max_batch_bytes)
        for i, batch in enumerate(batches, start=1):
            summary.upserted_count += await self._upsert_batch(
                resolved.index, batch, f"{i}/{len(batches)}"
            )
            if len(batches) > 1:
                logger.debug(
                    f"Batch {i}/{len(batches)}: {len(batch)} records "
                    f"({summary.upserted_count}/{len(records)} total)"
                )

        logger.info(
            f"Upserted {summary.upserted_count} records into "
            f"{summary.index}/{summary.namespace}"
        )
        return summary

    async def reset_namespace(self, context: SyncContext) -> None:
        """Delete every vector in the tenant's namespace."""
        resolved = self.vector_store.resolve_namespace(context)
        await asyncio.to_thread(resolved.index.delete_all)
        logger.info(f"Reset namespace {resolved.namespace}")

    async def resync(
        self,
        chunks: Sequence[FileChunk],
        context: SyncContext,
        full_reindex: bool = False,
    ) -> SyncSummary:
        """Sync ``chunks``, wiping the namespace first when ``full_reindex`` is set."""
        if full_reindex:
            await self.reset_namespace(context)
        return await self.sync(chunks, context)
