"""Front controller: enumerate, analyze, assemble."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .analyzer import ON_ERROR_ABORT, FileAnalyzer, ProgressCallback
from .assembler import build_module_map
from .conversation import DEFAULT_MAX_ROUNDS
from .llm import ChatClient
from .models import ModuleMap
from .scanner import (
    DEFAULT_EXCLUDE_MARKERS,
    DEFAULT_EXTENSIONS,
    DEFAULT_SKIP_DIRS,
    get_source_files,
)

logger = logging.getLogger(__name__)

SAMPLE_EDGES = 3
SAMPLE_REASON_CHARS = 100


def create_module_map(
    root: Path,
    client: ChatClient,
    on_error: str = ON_ERROR_ABORT,
    workers: int = 1,
    max_tool_rounds: int = DEFAULT_MAX_ROUNDS,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    exclude_markers: Iterable[str] = DEFAULT_EXCLUDE_MARKERS,
    skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
    progress: Optional[ProgressCallback] = None,
    on_files: Optional[Callable[[List[str]], None]] = None,
) -> ModuleMap:
    """Build the module map for the project at *root*.

    Assembly only starts once every file has been analyzed or has
    definitively failed.

    Raises:
        EnumerationError: If *root* cannot be walked.
        AnalysisError: If a file fails and *on_error* is ``"abort"``.
    """
    root = Path(root)
    files = get_source_files(root, extensions, exclude_markers, skip_dirs)
    logger.info("Analyzing %d files under %s", len(files), root)
    if on_files is not None:
        on_files(files)

    analyzer = FileAnalyzer(client, root, files, max_tool_rounds, extensions)
    results, failures = analyzer.analyze_project(on_error=on_error, workers=workers, progress=progress)

    return build_module_map(files, results, {f.path: f.error for f in failures})


def _clip(text: str, limit: int = SAMPLE_REASON_CHARS) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def summarize(module_map: ModuleMap) -> List[str]:
    """Human-readable summary: module count and one sample entry."""
    lines = [f"Total modules analyzed: {len(module_map.modules)}"]
    if module_map.skipped:
        lines.append(f"Skipped after errors: {len(module_map.skipped)}")

    if not module_map.modules:
        return lines

    sample = next(iter(module_map.modules))
    entry = module_map.modules[sample]
    lines += ["", "Sample module information:", f"Module: {sample}", f"Description: {entry.description}"]

    if entry.calling:
        lines.append("Calls:")
        for path in list(entry.calling)[:SAMPLE_EDGES]:
            lines.append(f"  - {path}: {_clip(entry.calling[path])}")
    if entry.callers:
        lines.append("Called by:")
        for path in list(entry.callers)[:SAMPLE_EDGES]:
            lines.append(f"  - {path}: {_clip(entry.callers[path])}")
    return lines
