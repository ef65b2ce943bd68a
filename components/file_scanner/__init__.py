"""File scanner component.

Walks a project tree and returns the source, config and documentation files
that should be chunked and indexed, honoring exclude globs, ``.gitignore``
files and a per-file size limit.
"""

from .file_scanner import (
    FileScanError,
    IgnoreRules,
    ascan_project_files,
    scan_project_files,
)

__all__ = [
    "FileScanError",
    "IgnoreRules",
    "ascan_project_files",
    "scan_project_files",
]
