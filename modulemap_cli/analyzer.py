"""Per-file analysis: ask the oracle what each source file does and imports."""

from __future__ import annotations

import json
import logging
import posixpath
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .conversation import (
    DEFAULT_MAX_ROUNDS,
    add_user_message,
    create_conversation,
    create_tool,
    run_conversation,
)
from .errors import AnalysisError, ContentReadError, ModuleMapError
from .llm import ChatClient
from .models import AnalysisFailure, AnalysisResult, Conversation, Tool
from .resolver import extract_called_modules, extract_import_lines, normalize_reported_path
from .scanner import DEFAULT_EXTENSIONS, get_file_content

logger = logging.getLogger(__name__)

ON_ERROR_ABORT = "abort"
ON_ERROR_SKIP = "skip"

SYSTEM_PROMPT = """You are a senior engineer documenting a TypeScript code base.

For the file you are given, explain its purpose and which other project files it
imports, and why. Answer with a single JSON object of the form:

{
  "description": "<what this file does, 1-4 sentences>",
  "modules": {
    "<project-relative path of an imported file>": "<why this file imports it>"
  }
}

Rules:
- Only use paths from the list of valid project files. Never invent paths.
- Paths are relative to the project root, exactly as listed.
- Leave out third-party packages and Node built-ins.
- Use "modules": {} when the file imports no project files.
- If you need to double-check the imports of a file, call get_import_lines.
"""

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)

ProgressCallback = Callable[[str], None]


def parse_analysis_reply(text: str) -> Tuple[str, Dict[str, str]]:
    """Parse the oracle's JSON reply into ``(description, modules)``.

    Raises:
        ValueError: If the reply is not a JSON object of the expected shape.
    """
    body = text.strip()
    fenced = _FENCE_RE.match(body)
    if fenced:
        body = fenced.group("body").strip()

    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ValueError(f"reply is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("reply is not a JSON object")

    description = data.get("description")
    if not isinstance(description, str) or not description.strip():
        raise ValueError("reply has no description")

    modules = data.get("modules", {})
    if not isinstance(modules, dict):
        raise ValueError("'modules' must be an object")
    for target, reason in modules.items():
        if not isinstance(reason, str):
            raise ValueError(f"reason for '{target}' must be a string")

    return description.strip(), {str(k): v.strip() for k, v in modules.items()}


class FileAnalyzer:
    """Obtains one :class:`AnalysisResult` per source file from the oracle.

    Each file is analyzed on its own; the oracle never sees results for
    other files. The only shared state is read-only (root, file list).
    """

    def __init__(
        self,
        client: ChatClient,
        root: Path,
        files: Sequence[str],
        max_tool_rounds: int = DEFAULT_MAX_ROUNDS,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ):
        self.client = client
        self.root = Path(root)
        self.files = list(files)
        self.known_files = frozenset(self.files)
        self.max_tool_rounds = max_tool_rounds
        self.extensions = tuple(extensions)
        self.tools = [self._import_lines_tool()]

    # ------------------------------------------------------------------
    # Oracle tool
    # ------------------------------------------------------------------

    def get_import_lines(self, file_path: str) -> str:
        """Return the import lines of *file_path* wrapped for the oracle.

        Only enumerated project files can be read.

        Raises:
            ContentReadError: If *file_path* is not an enumerated file or
                cannot be read.
        """
        path = posixpath.normpath(file_path.strip().replace("\\", "/"))
        if path not in self.known_files:
            raise ContentReadError(f"Not a project file: {file_path}")
        content = get_file_content(self.root, path)
        lines = "\n".join(extract_import_lines(content))
        return f'<import_lines file="{path}">\n{lines}\n</import_lines>'

    def _import_lines_tool(self) -> Tool:
        def execute(args: Dict[str, Any]) -> str:
            file_path = str(args.get("filePath", ""))
            try:
                return self.get_import_lines(file_path)
            except ModuleMapError as exc:
                logger.warning("get_import_lines failed for %r: %s", file_path, exc)
                return f"Error: {exc}"

        return create_tool(
            "get_import_lines",
            "Get all import lines from a project file",
            {
                "filePath": {
                    "type": "string",
                    "description": "Path to the file relative to the project root",
                },
            },
            execute,
        )

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------

    def build_conversation(self, path: str, content: str) -> Conversation:
        hints = extract_called_modules(
            "\n".join(extract_import_lines(content)),
            self.root,
            path,
            self.known_files,
            self.extensions,
        )
        local_imports = [h for h in hints if h in self.known_files]

        prompt = [
            f"File: {path}",
            "",
            "Valid project files:",
            *(f"- {f}" for f in self.files),
            "",
        ]
        if local_imports:
            prompt += ["Local imports detected statically:", *(f"- {m}" for m in local_imports), ""]
        prompt += [f"Content of {path}:", "```", content, "```"]

        return add_user_message(create_conversation(SYSTEM_PROMPT), "\n".join(prompt))

    def analyze_file(self, path: str) -> AnalysisResult:
        """Analyze one file.

        Raises:
            AnalysisError: If the file cannot be read, the oracle fails, or its
                reply cannot be parsed. Nothing is fabricated on failure.
        """
        try:
            content = get_file_content(self.root, path)
            conversation = self.build_conversation(path, content)
            reply, _ = run_conversation(
                self.client,
                conversation,
                self.tools,
                force_json=True,
                max_rounds=self.max_tool_rounds,
            )
        except ModuleMapError as exc:
            raise AnalysisError(path, str(exc), exc) from exc

        try:
            description, reported = parse_analysis_reply(reply)
        except ValueError as exc:
            raise AnalysisError(path, f"unparseable oracle reply: {exc}", exc) from exc

        modules: Dict[str, str] = {}
        for target, reason in reported.items():
            normalized = normalize_reported_path(
                target, path, self.root, self.known_files, self.extensions
            )
            if normalized is None or normalized == path:
                continue
            modules[normalized] = reason

        logger.debug("Analyzed %s: %d referenced modules", path, len(modules))
        return AnalysisResult(path=path, description=description, modules=modules)

    # ------------------------------------------------------------------
    # Whole project
    # ------------------------------------------------------------------

    def analyze_project(
        self,
        on_error: str = ON_ERROR_ABORT,
        workers: int = 1,
        progress: Optional[ProgressCallback] = None,
    ) -> Tuple[List[AnalysisResult], List[AnalysisFailure]]:
        """Analyze every enumerated file.

        Args:
            on_error: ``"abort"`` re-raises the first failure; ``"skip"``
                logs it and records an :class:`AnalysisFailure`.
            workers: Number of concurrent oracle calls. ``1`` processes files
                strictly in enumeration order.
            progress: Called with each file path once it is done.

        Returns:
            Results and failures, both in enumeration order.
        """
        if on_error not in (ON_ERROR_ABORT, ON_ERROR_SKIP):
            raise ValueError(f"on_error must be 'abort' or 'skip', got {on_error!r}")

        outcomes: Dict[str, Any] = {}

        def record(path: str, outcome: Any) -> None:
            if isinstance(outcome, AnalysisError):
                if on_error == ON_ERROR_ABORT:
                    raise outcome
                logger.warning("Skipping %s: %s", path, outcome)
                outcome = AnalysisFailure(path=path, error=str(outcome))
            outcomes[path] = outcome
            if progress is not None:
                progress(path)

        if workers <= 1:
            for path in self.files:
                try:
                    outcome = self.analyze_file(path)
                except AnalysisError as exc:
                    outcome = exc
                record(path, outcome)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {executor.submit(self.analyze_file, p): p for p in self.files}
                try:
                    for future in as_completed(futures):
                        try:
                            outcome = future.result()
                        except AnalysisError as exc:
                            outcome = exc
                        record(futures[future], outcome)
                except AnalysisError:
                    for future in futures:
                        future.cancel()
                    raise

        ordered = [outcomes[p] for p in self.files if p in outcomes]
        results = [o for o in ordered if isinstance(o, AnalysisResult)]
        failures = [o for o in ordered if isinstance(o, AnalysisFailure)]
        return results, failures
