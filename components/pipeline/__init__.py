"""Pipeline Component.

The facade external callers use: optional sync followed by retrieval.
"""

from .pipeline import RagPipeline, run_rag_pipeline

__all__ = ["RagPipeline", "run_rag_pipeline"]
