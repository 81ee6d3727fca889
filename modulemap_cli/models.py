"""Core data models shared by analysis, assembly, and serialization."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional


@dataclass(frozen=True)
class EdgeFact:
    source: str
    target: str
    reason: str


@dataclass
class AnalysisResult:
    """What the oracle reported for one source file.

    ``modules`` maps a project-relative target path to the reason the file
    references it.
    """

    path: str
    description: str
    modules: Dict[str, str] = field(default_factory=dict)

    def edge_facts(self) -> Iterator[EdgeFact]:
        for target, reason in self.modules.items():
            yield EdgeFact(self.path, target, reason)


@dataclass
class AnalysisFailure:
    path: str
    error: str


@dataclass
class ModuleEntry:
    description: str
    calling: Dict[str, str] = field(default_factory=dict)
    callers: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "calling": dict(self.calling),
            "callers": dict(self.callers),
        }


@dataclass
class ModuleMap:
    modules: Dict[str, ModuleEntry] = field(default_factory=dict)
    skipped: Dict[str, str] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return not self.skipped

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "modules": {path: entry.to_dict() for path, entry in self.modules.items()},
        }
        if self.skipped:
            data["skipped"] = dict(self.skipped)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModuleMap":
        modules = {}
        for path, raw in (data.get("modules") or {}).items():
            modules[path] = ModuleEntry(
                description=raw.get("description", ""),
                calling=dict(raw.get("calling") or {}),
                callers=dict(raw.get("callers") or {}),
            )
        return cls(modules=modules, skipped=dict(data.get("skipped") or {}))


# ---------------------------------------------------------------------------
# Oracle conversation types
# ---------------------------------------------------------------------------

@dataclass
class ToolCall:
    call_id: str
    name: str
    arguments: str


@dataclass
class Message:
    role: str  # system | user | assistant | tool
    content: str
    name: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)


@dataclass
class Conversation:
    messages: List[Message] = field(default_factory=list)


@dataclass
class Tool:
    """A function the oracle may ask us to run.

    ``parameters`` maps parameter name to a JSON-schema fragment; a fragment
    with ``"optional": True`` is left out of the required list.
    """

    name: str
    description: str
    parameters: Dict[str, Dict[str, Any]]
    execute: Callable[[Dict[str, Any]], str]
