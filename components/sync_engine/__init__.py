"""Sync Engine Component.

Turns chunks into vector records and upserts them in size-capped batches.
"""

from .sync_engine import (
    SyncEngine,
    batch_records,
    build_record_metadata,
    chunk_vector_id,
    payload_size,
)

__all__ = [
    "SyncEngine",
    "batch_records",
    "build_record_metadata",
    "chunk_vector_id",
    "payload_size",
]
