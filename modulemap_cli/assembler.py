"""Fold per-file analysis results into a bidirectional module map."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional, TypeVar

from .models import AnalysisResult, ModuleEntry, ModuleMap

logger = logging.getLogger(__name__)

V = TypeVar("V")


def sort_keys(mapping: Mapping[str, V]) -> Dict[str, V]:
    """Return a copy of *mapping* with keys in lexicographic order."""
    return {key: mapping[key] for key in sorted(mapping)}


def build_module_map(
    files: Iterable[str],
    results: Iterable[AnalysisResult],
    skipped: Optional[Mapping[str, str]] = None,
) -> ModuleMap:
    """Assemble the module map from analysis results.

    Every edge fact ``(A -> B, reason)`` whose ends both have an entry sets
    ``calling[A][B]`` and ``callers[B][A]`` to the same reason. Facts pointing
    outside the map and self-references are dropped. When the same pair is reported twice the
    last one wins. Entries and their edge mappings come out sorted.

    Args:
        files: The enumerated file set.
        results: One result per analyzed file.
        skipped: Files whose analysis failed and was skipped, with the error.

    Raises:
        ValueError: If a result belongs to a file outside *files*.
    """
    enumerated = set(files)
    skipped = dict(skipped or {})
    result_list = list(results)

    entries: Dict[str, ModuleEntry] = {}
    for result in result_list:
        if result.path not in enumerated:
            raise ValueError(f"Analysis result for non-enumerated file: {result.path}")
        entries[result.path] = ModuleEntry(description=result.description)

    for result in result_list:
        for fact in result.edge_facts():
            if fact.target == fact.source:
                logger.debug("Dropping self-reference of %s", fact.source)
                continue
            target = entries.get(fact.target)
            if target is None:
                logger.debug("Dropping edge %s -> %s: target not in map", fact.source, fact.target)
                continue
            entries[fact.source].calling[fact.target] = fact.reason
            target.callers[fact.source] = fact.reason

    modules = {}
    for path in sorted(entries):
        entry = entries[path]
        modules[path] = ModuleEntry(
            description=entry.description,
            calling=sort_keys(entry.calling),
            callers=sort_keys(entry.callers),
        )
    return ModuleMap(modules=modules, skipped=sort_keys(skipped))
