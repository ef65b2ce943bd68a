"""Configuration management for the dxgen RAG pipeline."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import toml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE_EXTENSIONS = [
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".py",
    ".go",
    ".java",
    ".rb",
    ".rs",
    ".php",
    ".cs",
    ".swift",
    ".kt",
    ".kts",
    ".scala",
    ".md",
    ".mdx",
    ".yml",
    ".yaml",
    ".json",
]

DEFAULT_EXCLUDES = [
    "**/node_modules/**",
    "**/.git/**",
    "**/dist/**",
    "**/build/**",
    "**/.next/**",
    "**/out/**",
    "**/.turbo/**",
    "**/.cache/**",
]

DEFAULT_MAX_FILE_SIZE = 1024 * 1024  # 1 MiB

# Environment variable -> (section, field)
ENV_OVERRIDES = {
    "RAG_CHUNK_SIZE": ("indexing", "chunk_size"),
    "RAG_CHUNK_OVERLAP": ("indexing", "chunk_overlap"),
    "RAG_TOP_K_DEFAULT": ("retrieval", "top_k_default"),
    "RAG_TOP_K_README": ("retrieval", "top_k_readme"),
    "RAG_EMBEDDING_MODEL": ("embedding_model", "model_name"),
}


class ConfigurationError(ValueError):
    """Raised when a required setting (usually a credential) is missing."""


class EmbeddingModelConfig(BaseModel):
    """Configuration for embedding models."""

    provider: str = Field(
        default="openai",
        description="Embedding provider: openai or sentence_transformers",
    )
    model_name: str = Field(
        default="text-embedding-3-small", description="Model name or identifier"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for the openai provider (falls back to OPENAI_API_KEY)",
    )
    endpoint_url: Optional[str] = Field(
        default=None, description="Base URL of an OpenAI-compatible endpoint"
    )
    dimensions: Optional[int] = Field(
        default=None, description="Output dimensions, for models that support it"
    )
    embed_batch_size: int = Field(
        default=512, gt=0, description="Maximum texts sent per embedding request"
    )
    wrapper_class: Optional[str] = Field(
        default=None,
        description="Dotted path to a custom embedding wrapper class",
    )


class VectorStoreConfig(BaseModel):
    """Configuration for the backing vector index."""

    provider: str = Field(
        default="pinecone", description="Vector store provider: pinecone or chroma"
    )
    index: str = Field(default="dxgen-docs", description="Name of the vector index")
    api_key: Optional[str] = Field(
        default=None, description="Pinecone API key (falls back to PINECONE_API_KEY)"
    )
    namespace: Optional[str] = Field(
        default=None,
        description="Explicit namespace; derived from the tenant when unset",
    )
    controller_host_url: Optional[str] = Field(
        default=None, description="Pinecone controller host override"
    )
    index_host_url: Optional[str] = Field(
        default=None, description="Pinecone data-plane host for the index"
    )
    persist_directory: Optional[str] = Field(
        default=None,
        description="ChromaDB directory; an in-memory client is used when unset",
    )


class IndexingConfig(BaseModel):
    """Configuration for scanning, chunking and upserting."""

    chunk_size: int = Field(default=1500, gt=0, description="Characters per chunk")
    chunk_overlap: int = Field(
        default=200, ge=0, description="Characters shared by consecutive chunks"
    )
    max_file_size_bytes: int = Field(
        default=DEFAULT_MAX_FILE_SIZE, gt=0, description="Skip files larger than this"
    )
    include_extensions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_INCLUDE_EXTENSIONS),
        description="File extensions picked up by the scanner",
    )
    exclude_globs: List[str] = Field(
        default_factory=list,
        description="Extra gitignore-style globs excluded from scanning",
    )
    max_batch_bytes: int = Field(
        default=3_500_000,
        gt=0,
        description="Upper bound on the serialized size of one upsert request",
    )

    @model_validator(mode="after")
    def _check_overlap(self) -> "IndexingConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


class RetrievalConfig(BaseModel):
    """Configuration for retrieval."""

    top_k_default: int = Field(default=25, gt=0, description="Default result count")
    top_k_readme: int = Field(
        default=35, gt=0, description="Result count for README generation"
    )
    score_threshold: Optional[float] = Field(
        default=None, description="Drop matches scoring below this value"
    )
    exclude_relative_path_prefixes: List[str] = Field(
        default_factory=list,
        description="Drop documents whose relativePath starts with one of these",
    )


class Config(BaseModel):
    """Main configuration model."""

    embedding_model: EmbeddingModelConfig = Field(default_factory=EmbeddingModelConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    indexing: IndexingConfig = Field(default_factory=IndexingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)

    @classmethod
    def load_from_file(
        cls, config_path: str, overrides: Optional[Dict[str, Any]] = None
    ) -> "Config":
        """Load configuration from a TOML file, deep-merging ``overrides`` on top."""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, "r") as f:
            config_data = toml.load(f)

        return cls(**_deep_merge_config(config_data, overrides or {}))


def load_config(
    app_config_path: Optional[str] = None,
    config_dir: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """Load the configuration file (if any) and apply environment overrides.

    An explicitly given ``app_config_path`` must exist. The default
    ``config/app.toml`` is optional; built-in defaults are used without it.
    """
    env = os.environ if environ is None else environ
    base_dir = Path(config_dir) if config_dir else Path("config")
    app_path = Path(app_config_path) if app_config_path else base_dir / "app.toml"

    overrides: Dict[str, Any] = {}
    for var, (section, field) in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            logger.debug(f"Applying {var} override to {section}.{field}")
            overrides.setdefault(section, {})[field] = value

    try:
        logger.info(f"Loading app config from: {app_path}")
        return Config.load_from_file(str(app_path), overrides)
    except FileNotFoundError:
        if app_config_path:
            logger.error(f"Application config file not found at {app_path}. Aborting.")
            raise
        logger.warning(f"Config file not found at {app_path}. Using defaults.")
        return Config(**overrides)


def _deep_merge_config(
    base: Dict[str, Any], override: Dict[str, Any]
) -> Dict[str, Any]:
    """Deep merge configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge_config(result[key], value)
        else:
            result[key] = value

    return result
