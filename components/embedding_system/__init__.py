"""Embedding System Component.

Builds the llama-index embedding model used to embed chunks at sync time and
queries at retrieval time.
"""

from .custom_embedding import CustomEmbeddingWrapperBase, load_wrapper_class
from .embedding_factory import (
    OpenAIEmbeddingModel,
    SentenceTransformersEmbedding,
    create_embedding_model,
    resolve_openai_api_key,
)

__all__ = [
    "CustomEmbeddingWrapperBase",
    "OpenAIEmbeddingModel",
    "SentenceTransformersEmbedding",
    "create_embedding_model",
    "load_wrapper_class",
    "resolve_openai_api_key",
]
