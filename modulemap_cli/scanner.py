"""File-system collaborators: source enumeration and content reads."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Sequence

from .errors import ContentReadError, EnumerationError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".ts", ".tsx")
DEFAULT_EXCLUDE_MARKERS = ("d", "test", "config")
DEFAULT_SKIP_DIRS = frozenset({"node_modules"})


def _excluded_suffixes(extensions: Sequence[str], markers: Iterable[str]) -> List[str]:
    # ".d.ts", ".test.tsx", ...
    return [f".{marker}{ext}" for marker in markers for ext in extensions]


def is_source_file(
    name: str,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    exclude_markers: Iterable[str] = DEFAULT_EXCLUDE_MARKERS,
) -> bool:
    if not name.endswith(tuple(extensions)):
        return False
    return not name.endswith(tuple(_excluded_suffixes(extensions, exclude_markers)))


def is_skipped_dir(name: str, skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS) -> bool:
    return name.startswith(".") or name in skip_dirs


def get_source_files(
    root: Path,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    exclude_markers: Iterable[str] = DEFAULT_EXCLUDE_MARKERS,
    skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
) -> List[str]:
    """Return project-relative POSIX paths of every eligible source file.

    Hidden directories and dependency directories are pruned at any depth.
    Declaration, test and config files (``.d.ts``, ``.test.ts``,
    ``.config.ts`` and the same markers for every other extension) are
    left out.

    Raises:
        EnumerationError: If *root* is missing, not a directory, or unreadable.
    """
    root = Path(root)
    if not root.exists():
        raise EnumerationError(f"Project root not found: {root}")
    if not root.is_dir():
        raise EnumerationError(f"Project root is not a directory: {root}")

    skip = frozenset(skip_dirs)
    markers = tuple(exclude_markers)
    files: List[str] = []

    def traverse(directory: Path) -> None:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            raise EnumerationError(f"Cannot read directory {directory}: {exc}") from exc

        for entry in entries:
            if entry.is_dir():
                if not is_skipped_dir(entry.name, skip):
                    traverse(entry)
            elif entry.is_file() and is_source_file(entry.name, extensions, markers):
                files.append(entry.relative_to(root).as_posix())

    traverse(root)
    logger.debug("Enumerated %d source files under %s", len(files), root)
    return files


def get_file_content(root: Path, rel_path: str) -> str:
    """Read a project file as UTF-8 text.

    Raises:
        ContentReadError: If the file is missing, not a file, or unreadable.
    """
    full_path = Path(root) / rel_path
    if not full_path.exists():
        raise ContentReadError(f"File not found: {rel_path}")
    if not full_path.is_file():
        raise ContentReadError(f"Path is not a file: {rel_path}")

    try:
        return full_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ContentReadError(f"Cannot read {rel_path}: {exc}") from exc
