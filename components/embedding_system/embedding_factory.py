import logging
import os
from typing import Any, Dict, List, cast

from llama_index.core.embeddings import BaseEmbedding
from openai import AsyncOpenAI, OpenAI
from pydantic import PrivateAttr
from shared.config import ConfigurationError, EmbeddingModelConfig

from .custom_embedding import load_wrapper_class

logger = logging.getLogger(__name__)

OPENAI_API_KEY_ENV = "OPENAI_API_KEY"


class OpenAIEmbeddingModel(BaseEmbedding):
    """Embeddings from the OpenAI API or any OpenAI-compatible endpoint.

    Request errors are raised to the caller. A failed call never yields
    placeholder vectors, since those would silently corrupt the index.
    """

    dimensions: int | None = None

    _client: Any = PrivateAttr()
    _aclient: Any = PrivateAttr()

    def __init__(
        self,
        model_name: str,
        api_key: str,
        endpoint_url: str | None = None,
        dimensions: int | None = None,
        **kwargs: Any,
    ):
        """Initialize the OpenAI embedding clients.

        Args:
            model_name: Name of the embedding model
            api_key: API key for authentication
            endpoint_url: Optional base URL of an OpenAI-compatible API
            dimensions: Optional output dimension, for models that support it
            **kwargs: Additional arguments for BaseEmbedding
        """
        super().__init__(model_name=model_name, dimensions=dimensions, **kwargs)
        self._client = OpenAI(api_key=api_key, base_url=endpoint_url)
        self._aclient = AsyncOpenAI(api_key=api_key, base_url=endpoint_url)
        logger.info(
            f"Initialized OpenAI embedding client for {model_name}"
            + (f" at {endpoint_url}" if endpoint_url else "")
        )

    @classmethod
    def class_name(cls) -> str:
        return "OpenAIEmbeddingModel"

    def _request_kwargs(self, texts: List[str]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"model": self.model_name, "input": texts}
        if self.dimensions is not None:
            kwargs["dimensions"] = self.dimensions
        return kwargs

    @staticmethod
    def _vectors(response: Any) -> List[List[float]]:
        data = sorted(response.data, key=lambda item: item.index)
        return [cast(List[float], item.embedding) for item in data]

    def _get_text_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Embed a batch of texts in one request."""
        response = self._client.embeddings.create(**self._request_kwargs(texts))
        return self._vectors(response)

    async def _aget_text_embeddings(self, texts: List[str]) -> List[List[float]]:
        response = await self._aclient.embeddings.create(
            **self._request_kwargs(texts)
        )
        return self._vectors(response)

    def _get_text_embedding(self, text: str) -> List[float]:
        return self._get_text_embeddings([text])[0]

    async def _aget_text_embedding(self, text: str) -> List[float]:
        return (await self._aget_text_embeddings([text]))[0]

    def _get_query_embedding(self, query: str) -> List[float]:
        return self._get_text_embedding(query)

    async def _aget_query_embedding(self, query: str) -> List[float]:
        return await self._aget_text_embedding(query)


class SentenceTransformersEmbedding(BaseEmbedding):
    """Wrapper for local SentenceTransformers embedding models."""

    _sentence_model: Any = PrivateAttr()

    def __init__(self, model_name: str, **kwargs: Any):
        """Initialize SentenceTransformers model.

        Args:
            model_name: Name of the SentenceTransformers model
            **kwargs: Additional arguments for BaseEmbedding
        """
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ImportError(
                "sentence-transformers is required for this provider. "
                "Install with: pip install 'dxgen-rag[local]'"
            ) from e

        super().__init__(model_name=model_name, **kwargs)
        self._sentence_model = SentenceTransformer(model_name)
        logger.info(f"Loaded SentenceTransformers model: {model_name}")

    @classmethod
    def class_name(cls) -> str:
        return "SentenceTransformersEmbedding"

    def _get_text_embeddings(self, texts: List[str]) -> List[List[float]]:
        return cast(List[List[float]], self._sentence_model.encode(texts).tolist())

    def _get_query_embedding(self, query: str) -> List[float]:
        return self._get_text_embeddings([query])[0]

    def _get_text_embedding(self, text: str) -> List[float]:
        return self._get_text_embeddings([text])[0]

    async def _aget_query_embedding(self, query: str) -> List[float]:
        return self._get_query_embedding(query)


def resolve_openai_api_key(config: EmbeddingModelConfig) -> str:
    """Return the configured key, else ``OPENAI_API_KEY``; fail if neither is set."""
    api_key = config.api_key or os.environ.get(OPENAI_API_KEY_ENV)
    if not api_key:
        raise ConfigurationError(
            f"{OPENAI_API_KEY_ENV} is required to generate embeddings"
        )
    return api_key


def create_embedding_model(config: EmbeddingModelConfig) -> BaseEmbedding:
    """Factory function to create embedding models based on configuration."""
    if config.wrapper_class:
        wrapper_class = load_wrapper_class(config.wrapper_class)
        logger.info(f"Using embedding wrapper {config.wrapper_class}")
        return cast(BaseEmbedding, wrapper_class(config))

    provider = config.provider.lower()

    if provider == "openai":
        return OpenAIEmbeddingModel(
            config.model_name,
            api_key=resolve_openai_api_key(config),
            endpoint_url=config.endpoint_url,
            dimensions=config.dimensions,
            embed_batch_size=config.embed_batch_size,
        )

    elif provider == "sentence_transformers":
        return SentenceTransformersEmbedding(
            config.model_name, embed_batch_size=config.embed_batch_size
        )

    else:
        raise ValueError(
            f"Unsupported embedding provider: {provider}. "
            f"Supported providers: openai, sentence_transformers"
        )
