"""Pluggable embedding wrappers named by ``embedding_model.wrapper_class``."""

import importlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Type

from shared.config import EmbeddingModelConfig

logger = logging.getLogger(__name__)


class CustomEmbeddingWrapperBase(ABC):
    """
    Base class for embedding models loaded from a dotted import path.

    A wrapper also derives from llama-index ``BaseEmbedding`` (listed first
    among its bases) and is built with the ``[embedding_model]`` section as
    its only positional argument.
    """

    @abstractmethod
    def __init__(self, config: EmbeddingModelConfig, **kwargs: Any):
        """
        Args:
            config: The ``[embedding_model]`` configuration section.
            **kwargs: Passed through to ``BaseEmbedding``.
        """


def load_wrapper_class(dotted_path: str) -> Type[CustomEmbeddingWrapperBase]:
    """Import ``package.module.ClassName`` and check it is a wrapper class."""
    try:
        module_path, class_name = dotted_path.rsplit(".", 1)
        module = importlib.import_module(module_path)
        wrapper_class = getattr(module, class_name)
    except (ImportError, AttributeError, ValueError) as e:
        logger.error(f"Failed to load wrapper class '{dotted_path}': {e}")
        raise ValueError(f"Could not load wrapper class '{dotted_path}'") from e

    if not (
        isinstance(wrapper_class, type)
        and issubclass(wrapper_class, CustomEmbeddingWrapperBase)
    ):
        raise ValueError(
            f"Wrapper class '{dotted_path}' must derive from CustomEmbeddingWrapperBase"
        )
    return wrapper_class
