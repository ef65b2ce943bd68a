"""Discovery of candidate source files under a project root."""

import asyncio
import logging
import os
import stat
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pathspec
from shared.config import (
    DEFAULT_EXCLUDES,
    DEFAULT_INCLUDE_EXTENSIONS,
    DEFAULT_MAX_FILE_SIZE,
)
from shared.models import ProjectFile, ScanResult

logger = logging.getLogger(__name__)

GITIGNORE_NAME = ".gitignore"


class FileScanError(Exception):
    """Raised when the scan root cannot be used."""


def _normalize_extension(ext: str) -> str:
    return ext[1:] if ext.startswith(".") else ext


class IgnoreRules:
    """Exclude globs plus every ``.gitignore`` found while walking the tree.

    Each ``.gitignore`` applies to paths relative to the directory holding it,
    the way git reads nested ignore files.
    """

    def __init__(self, exclude_globs: Iterable[str]):
        self._specs: List[Tuple[str, pathspec.PathSpec]] = [
            ("", pathspec.GitIgnoreSpec.from_lines(list(exclude_globs)))
        ]

    def load_gitignore(self, directory: Path, rel_dir: str) -> None:
        """Register the ``.gitignore`` of ``directory`` if it has one."""
        gitignore_path = directory / GITIGNORE_NAME
        if not gitignore_path.is_file():
            return
        try:
            lines = gitignore_path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            logger.warning(f"Could not read {gitignore_path}: {e}")
            return
        self._specs.append((rel_dir, pathspec.GitIgnoreSpec.from_lines(lines)))
        logger.debug(f"Loaded {len(lines)} ignore rules from {gitignore_path}")

    def is_ignored(self, rel_path: str, is_dir: bool = False) -> bool:
        for base, spec in self._specs:
            if base:
                if not rel_path.startswith(base + "/"):
                    continue
                candidate = rel_path[len(base) + 1 :]
            else:
                candidate = rel_path
            if is_dir:
                candidate += "/"
            if spec.match_file(candidate):
                return True
        return False


def _matches_extension(filename: str, extensions: List[str]) -> bool:
    if not extensions:
        return True
    return any(filename.endswith(f".{ext}") for ext in extensions)


def _iter_candidate_paths(
    root: Path, extensions: List[str], rules: IgnoreRules
) -> List[str]:
    """Walk ``root`` and return matching relative paths in sorted order."""
    candidates = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        rel_dir = "" if rel_dir == "." else rel_dir
        rules.load_gitignore(current, rel_dir)

        kept_dirs = []
        for dirname in sorted(dirnames):
            rel = f"{rel_dir}/{dirname}" if rel_dir else dirname
            if rules.is_ignored(rel, is_dir=True):
                logger.debug(f"Pruned directory: {rel}")
                continue
            kept_dirs.append(dirname)
        dirnames[:] = kept_dirs

        for filename in filenames:
            if not _matches_extension(filename, extensions):
                continue
            rel = f"{rel_dir}/{filename}" if rel_dir else filename
            if rules.is_ignored(rel):
                continue
            candidates.append(rel)

    return sorted(candidates)


def scan_project_files(
    root_dir: str,
    include_extensions: Optional[List[str]] = None,
    exclude_globs: Optional[List[str]] = None,
    max_file_size_bytes: Optional[int] = None,
) -> ScanResult:
    """Find the project files worth indexing.

    Args:
        root_dir: Path to the repository or project root
        include_extensions: Extensions to include (leading dot optional).
            An empty list includes every file.
        exclude_globs: Gitignore-style globs excluded on top of the defaults
        max_file_size_bytes: Files larger than this are skipped (default 1 MiB)

    Returns:
        ScanResult with files sorted by relative path

    Raises:
        FileScanError: If ``root_dir`` is not an existing directory

    A file that cannot be stat'ed or read is logged and skipped; the rest of
    the scan continues.
    """
    root = Path(root_dir).expanduser().resolve()
    if not root.is_dir():
        raise FileScanError(f"Scan root is not a readable directory: {root_dir}")

    if include_extensions is None:
        include_extensions = DEFAULT_INCLUDE_EXTENSIONS
    extensions = sorted(
        {_normalize_extension(ext) for ext in include_extensions if ext}
        - {""}
    )
    max_size = (
        max_file_size_bytes if max_file_size_bytes is not None else DEFAULT_MAX_FILE_SIZE
    )
    rules = IgnoreRules([*DEFAULT_EXCLUDES, *(exclude_globs or [])])

    candidates = _iter_candidate_paths(root, extensions, rules)
    logger.debug(f"Found {len(candidates)} candidate files under {root}")

    files: List[ProjectFile] = []
    skipped = 0
    for relative_path in candidates:
        full_path = root / relative_path
        try:
            file_stat = os.stat(full_path)
            if not stat.S_ISREG(file_stat.st_mode):
                continue
            if file_stat.st_size > max_size:
                logger.debug(
                    f"Skipping {relative_path}: {file_stat.st_size} bytes exceeds "
                    f"limit of {max_size}"
                )
                skipped += 1
                continue
            content = full_path.read_bytes().decode("utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Skipping unreadable file {full_path}: {e}")
            skipped += 1
            continue

        files.append(
            ProjectFile(
                full_path=str(full_path),
                relative_path=relative_path,
                size=file_stat.st_size,
                content=content,
            )
        )

    logger.info(f"Scanned {root}: {len(files)} files kept, {skipped} skipped")
    return ScanResult(files=files)


async def ascan_project_files(
    root_dir: str,
    include_extensions: Optional[List[str]] = None,
    exclude_globs: Optional[List[str]] = None,
    max_file_size_bytes: Optional[int] = None,
) -> ScanResult:
    """Run :func:`scan_project_files` in a worker thread."""
    return await asyncio.to_thread(
        scan_project_files,
        root_dir,
        include_extensions,
        exclude_globs,
        max_file_size_bytes,
    )
