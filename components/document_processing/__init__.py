"""Document processing component.

This component turns scanned project files into embeddable chunks. It splits
text with a recursive character splitter, maps every chunk back to a line
range of its source file and tags it by path (code, config, docs, test).
"""

from .chunker import chunk_project_files, create_text_splitter, line_at, split_file
from .semantic_tags import classify_path

__all__ = [
    # Chunking
    "chunk_project_files",
    "create_text_splitter",
    "line_at",
    "split_file",
    # Semantic tags
    "classify_path",
]
