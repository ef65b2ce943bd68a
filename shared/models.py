"""Data models shared by the RAG pipeline components."""

from typing import Any, Dict, List, Literal, Optional, Union

from llama_index.core.retrievers import BaseRetriever
from llama_index.core.schema import MetadataMode, NodeWithScore
from pydantic import BaseModel, ConfigDict, Field, model_validator

FileType = Literal["code", "config", "docs", "test", "other"]
MetadataValue = Union[str, int, float, bool]


class ProjectFile(BaseModel):
    """A scanned file and its full text content."""

    full_path: str = Field(..., description="Absolute path of the file")
    relative_path: str = Field(
        ..., description="POSIX path relative to the project root"
    )
    size: int = Field(..., description="Size of the file in bytes")
    content: str = Field(..., description="Full text content of the file")


class ScanResult(BaseModel):
    files: List[ProjectFile] = Field(default_factory=list)


class ScanOptions(BaseModel):
    """Per-call overrides for the file scanner."""

    include_extensions: Optional[List[str]] = None
    exclude_globs: Optional[List[str]] = None
    max_file_size_bytes: Optional[int] = Field(default=None, gt=0)


class ChunkOptions(BaseModel):
    """Chunk sizing, in characters."""

    chunk_size: int = Field(default=1500, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)

    @model_validator(mode="after")
    def _check_overlap(self) -> "ChunkOptions":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


class SemanticTags(BaseModel):
    """Path-derived flags used to prioritize config and docs files downstream."""

    model_config = ConfigDict(frozen=True)

    file_type: FileType = "other"
    is_config: bool = False
    is_package_json: bool = False
    is_readme: bool = False
    is_env_example: bool = False
    is_ci_config: bool = False


class FileChunkMetadata(SemanticTags):
    """Position of a chunk within its source file."""

    source: str = Field(..., description="Absolute path of the source file")
    relative_path: str
    chunk_index: int = Field(..., ge=0)
    chunk_count: int = Field(..., ge=1)
    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)

    def to_store_metadata(self) -> Dict[str, MetadataValue]:
        """Return the camelCase metadata written next to the vector."""
        return {
            "relativePath": self.relative_path,
            "chunkIndex": self.chunk_index,
            "chunkCount": self.chunk_count,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "fileType": self.file_type,
            "isConfig": self.is_config,
            "isPackageJson": self.is_package_json,
            "isReadme": self.is_readme,
            "isEnvExample": self.is_env_example,
            "isCiConfig": self.is_ci_config,
        }


class FileChunk(BaseModel):
    """One embeddable slice of a file."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="'<relative_path>:<chunk_index>'")
    text: str
    metadata: FileChunkMetadata


class SyncContext(BaseModel):
    """Tenant and project identity for a sync or a query."""

    user_id: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1)
    branch: Optional[str] = None
    commit_sha: Optional[str] = None
    extra_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Passthrough metadata; only str/int/float/bool values are kept",
    )


class VectorRecord(BaseModel):
    """The unit stored in the vector index."""

    id: str
    values: List[float]
    metadata: Dict[str, MetadataValue] = Field(default_factory=dict)


class VectorMatch(BaseModel):
    """A single query match returned by the vector index."""

    id: str
    score: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SyncSummary(BaseModel):
    index: str
    namespace: str
    upserted_count: int = 0


class RetrievedDocument(BaseModel):
    """A retrieved chunk: its text plus metadata enriched with score and vectorId."""

    page_content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_node(cls, node_with_score: NodeWithScore) -> "RetrievedDocument":
        metadata = dict(node_with_score.node.metadata)
        metadata.setdefault("score", node_with_score.score)
        metadata.setdefault("vectorId", node_with_score.node.node_id)
        return cls(
            page_content=node_with_score.node.get_content(
                metadata_mode=MetadataMode.NONE
            ),
            metadata=metadata,
        )


class RetrieverOptions(BaseModel):
    """Per-call retrieval settings; unset values fall back to configuration."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    top_k: Optional[int] = Field(default=None, gt=0)
    score_threshold: Optional[float] = None
    filter: Optional[Dict[str, Any]] = Field(
        default=None, description="Metadata filter applied by the vector index"
    )
    exclude_relative_path_prefixes: Optional[List[str]] = None
    fallback: Optional[BaseRetriever] = Field(
        default=None, description="Retriever consulted when no document survives"
    )


class SyncToggle(BaseModel):
    enabled: bool = False
    full_reindex: bool = False


class RagPipelineOptions(BaseModel):
    """Everything one pipeline run needs."""

    root_dir: str = Field(..., min_length=1, description="Project root to scan")
    query: str
    context: SyncContext
    sync: SyncToggle = Field(default_factory=SyncToggle)
    scan_options: ScanOptions = Field(default_factory=ScanOptions)
    chunk_options: Optional[ChunkOptions] = None
    retriever_options: RetrieverOptions = Field(default_factory=RetrieverOptions)


class RagPipelineResult(BaseModel):
    documents: List[RetrievedDocument] = Field(default_factory=list)
    sync_summary: Optional[SyncSummary] = None
