"""Retrieval-augmented context gathering for documentation generation."""

from components.pipeline import RagPipeline, run_rag_pipeline

__version__ = "0.1.0"

__all__ = [
    "RagPipeline",
    "run_rag_pipeline",
]
