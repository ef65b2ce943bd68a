"""Splitting of project files into overlapping, line-addressed chunks."""

import logging
from typing import List, Optional

from llama_index.core.node_parser import TokenTextSplitter
from shared.models import ChunkOptions, FileChunk, FileChunkMetadata, ProjectFile

from .semantic_tags import classify_path

logger = logging.getLogger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"
BACKUP_SEPARATORS = ["\n", " "]


def create_text_splitter(chunk_options: ChunkOptions) -> TokenTextSplitter:
    """Build a recursive character splitter.

    Text is broken on paragraphs first, then lines, then words, then single
    characters, and only as far as needed to fit ``chunk_size``. Sizes are
    measured in characters, not model tokens.
    """
    return TokenTextSplitter(
        chunk_size=chunk_options.chunk_size,
        chunk_overlap=chunk_options.chunk_overlap,
        separator=PARAGRAPH_SEPARATOR,
        backup_separators=BACKUP_SEPARATORS,
        tokenizer=list,
        include_prev_next_rel=False,
    )


def line_at(content: str, offset: int) -> int:
    """Return the 1-based line number of ``offset`` in ``content``."""
    if offset <= 0:
        return 1
    return content.count("\n", 0, offset) + 1


def split_file(file: ProjectFile, splitter: TokenTextSplitter) -> List[FileChunk]:
    """Split one file and attach position and semantic metadata to each piece."""
    windows = [text for text in splitter.split_text(file.content) if text.strip()]
    tags = classify_path(file.relative_path)
    chunk_count = len(windows)

    chunks: List[FileChunk] = []
    cursor = 0
    previous_text: Optional[str] = None
    for chunk_index, text in enumerate(windows):
        # Identical consecutive windows must map to successive occurrences.
        search_from = cursor + 1 if text == previous_text else cursor
        start = file.content.find(text, search_from)
        if start == -1:
            logger.warning(
                f"Chunk {chunk_index} of {file.relative_path} not found in source; "
                "using line 1"
            )
            start_line = end_line = 1
        else:
            cursor = start
            start_line = line_at(file.content, start)
            end_line = line_at(file.content, start + len(text))
        previous_text = text

        chunks.append(
            FileChunk(
                id=f"{file.relative_path}:{chunk_index}",
                text=text,
                metadata=FileChunkMetadata(
                    source=file.full_path,
                    relative_path=file.relative_path,
                    chunk_index=chunk_index,
                    chunk_count=chunk_count,
                    start_line=start_line,
                    end_line=end_line,
                    **tags.model_dump(),
                ),
            )
        )

    return chunks


def chunk_project_files(
    files: List[ProjectFile], chunk_options: Optional[ChunkOptions] = None
) -> List[FileChunk]:
    """Chunk every file, keeping scanner order and per-file chunk order.

    Splitting errors are not caught: a file whose chunk metadata cannot be
    computed fails the whole call.
    """
    options = chunk_options or ChunkOptions()
    splitter = create_text_splitter(options)

    chunks: List[FileChunk] = []
    for file in files:
        file_chunks = split_file(file, splitter)
        logger.debug(f"{file.relative_path}: {len(file_chunks)} chunks")
        chunks.extend(file_chunks)

    logger.info(
        f"Chunked {len(files)} files into {len(chunks)} chunks "
        f"(size={options.chunk_size}, overlap={options.chunk_overlap})"
    )
    return chunks
