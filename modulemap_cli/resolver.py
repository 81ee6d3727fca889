"""Import specifier resolution relative to a project root.

Specifiers are resolved the way a TypeScript bundler would look them up:
the path as written, then with each source extension, then as a directory
holding an ``index`` file. Only relative specifiers (``./x``, ``../x``)
designate project files; anything else is an external package.
"""

from __future__ import annotations

import posixpath
import re
from pathlib import Path
from typing import Collection, Iterator, List, Optional, Sequence

from .scanner import DEFAULT_EXTENSIONS

INDEX_NAME = "index"

# from './x'  |  import './x'  |  require('./x')  |  import('./x')
_SPECIFIER_RE = re.compile(
    r"""(?:\bfrom\s*|\bimport\s*\(?\s*|\brequire\s*\(\s*)(['"])(?P<spec>[^'"]+)\1"""
)


def is_relative_specifier(specifier: str) -> bool:
    return specifier in (".", "..") or specifier.startswith(("./", "../"))


def _candidates(base: str, extensions: Sequence[str]) -> Iterator[str]:
    yield base
    for ext in extensions:
        yield base + ext
    for ext in extensions:
        yield posixpath.join(base, INDEX_NAME + ext)


def _exists(candidate: str, root: Path, known_files: Optional[Collection[str]]) -> bool:
    if known_files is not None:
        return candidate in known_files
    return (Path(root) / candidate).is_file()


def resolve_import_path(
    import_path: str,
    importing_file: str,
    root: Path,
    known_files: Optional[Collection[str]] = None,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> Optional[str]:
    """Resolve *import_path*, written inside *importing_file*, to a project path.

    Args:
        import_path: Specifier as written in the import statement.
        importing_file: Project-relative path of the file holding the import.
        root: Project root directory.
        known_files: Enumerated project paths. When given, candidates are
            probed against this set instead of the file system.
        extensions: Recognized source extensions; the first one is primary.

    Returns:
        The project-relative POSIX path of the first matching candidate, a
        best-effort guess (primary extension appended) when nothing matches,
        or ``None`` for non-relative (external) specifiers.
    """
    if not is_relative_specifier(import_path):
        return None

    importer_dir = posixpath.dirname(importing_file)
    base = posixpath.normpath(posixpath.join(importer_dir, import_path))
    if base == ".":
        base = ""

    for candidate in _candidates(base, extensions):
        if candidate and _exists(candidate, root, known_files):
            return candidate

    return (base or INDEX_NAME) + extensions[0]


def normalize_reported_path(
    reported: str,
    importing_file: str,
    root: Path,
    known_files: Collection[str],
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> Optional[str]:
    """Map a path named by the oracle onto a project-relative path.

    The oracle is told to use root-relative paths but sometimes answers
    relative to the file under analysis. Paths that cannot be placed are
    returned cleaned up; the assembler drops them if they are not enumerated.

    Paths without an extension (``app/log``) are probed like import
    specifiers, first from the root and then from the importing file. A
    single segment without an extension (``react``) or a scoped name
    (``@scope/pkg``) is a package specifier and never becomes a path.

    Returns:
        The normalized path, or ``None`` for empty input, package names and
        extensionless paths that match no known file.
    """
    path = reported.strip().replace("\\", "/")
    if not path:
        return None
    if path.startswith("/"):
        path = path.lstrip("/")
    if path in known_files:
        return path

    if is_relative_specifier(path):
        return resolve_import_path(path, importing_file, root, known_files, extensions)

    has_extension = path.endswith(tuple(extensions))
    if not has_extension and ("/" not in path or path.startswith("@")):
        return None

    for importer in ("", importing_file):
        candidate = resolve_import_path("./" + path, importer, root, known_files, extensions)
        if candidate in known_files:
            return candidate
    return posixpath.normpath(path) if has_extension else None


def extract_import_lines(content: str) -> List[str]:
    """Return lines that begin with an import marker.

    ``export ... from`` re-exports are import relationships too.
    """
    lines = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("import ") or stripped.startswith("import{"):
            lines.append(stripped)
        elif stripped.startswith("export ") and " from " in stripped:
            lines.append(stripped)
    return lines


def extract_called_modules(
    import_lines: str,
    root: Path,
    file_path: str,
    known_files: Optional[Collection[str]] = None,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> List[str]:
    """Resolve every local module referenced by *import_lines*.

    Package and absolute imports are skipped. Order of first appearance is
    kept and duplicates are removed.
    """
    modules: List[str] = []
    for match in _SPECIFIER_RE.finditer(import_lines):
        resolved = resolve_import_path(
            match.group("spec"), file_path, root, known_files, extensions
        )
        if resolved is not None and resolved not in modules:
            modules.append(resolved)
    return modules
