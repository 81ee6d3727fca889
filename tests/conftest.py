"""Pytest configuration and fixtures for ModuleMap CLI tests."""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional, Union

# Keep import-time configuration away from the developer's real config.
os.environ["MODULEMAP_HOME"] = tempfile.mkdtemp(prefix="modulemap-home-")

import pytest

from modulemap_cli.errors import OracleError
from modulemap_cli.llm import ChatClient
from modulemap_cli.models import Message, Tool, ToolCall

Reply = Union[str, Message, Exception, Callable[[List[Message]], Message]]


def analysis_reply(description: str, modules: Optional[Dict[str, str]] = None) -> str:
    return json.dumps({"description": description, "modules": modules or {}})


class ScriptedClient(ChatClient):
    """Stub oracle answering from a per-file script.

    ``by_file`` maps the analyzed path to the reply for that file. A reply
    may be a JSON string, a prepared :class:`Message`, an exception to
    raise, or a callable receiving the message list. ``sequence`` replies
    are consumed in order before ``by_file`` is consulted.
    """

    def __init__(self, by_file: Optional[Dict[str, Reply]] = None, sequence: Optional[List[Reply]] = None):
        self.by_file = by_file or {}
        self.sequence = list(sequence or [])
        self.calls: List[Dict] = []

    def complete(self, messages: List[Message], tools: Optional[List[Tool]] = None, force_json: bool = False) -> Message:
        self.calls.append({"messages": list(messages), "tools": list(tools or []), "force_json": force_json})

        if self.sequence:
            reply = self.sequence.pop(0)
        else:
            path = self._analyzed_path(messages)
            if path not in self.by_file:
                raise OracleError(f"no scripted reply for {path}")
            reply = self.by_file[path]

        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(messages)
        if isinstance(reply, Message):
            return reply
        return Message(role="assistant", content=reply)

    @staticmethod
    def _analyzed_path(messages: List[Message]) -> str:
        for msg in messages:
            if msg.role == "user" and msg.content.startswith("File: "):
                return msg.content.splitlines()[0][len("File: "):]
        return ""


def tool_request(name: str, arguments: Dict, call_id: str = "call_1") -> Message:
    return Message(
        role="assistant",
        content="",
        tool_calls=[ToolCall(call_id=call_id, name=name, arguments=json.dumps(arguments))],
    )


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Point the TOML config file at a per-test location."""
    monkeypatch.setattr("modulemap_cli.config_manager.CONFIG_FILE", tmp_path / "home" / "config.toml")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample TypeScript project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def write_project(temp_dir: Path) -> Callable[[Dict[str, str]], Path]:
    """Create a project tree from a ``{relative path: content}`` mapping."""

    def _write(files: Dict[str, str]) -> Path:
        for rel_path, content in files.items():
            full = temp_dir / rel_path
            full.parent.mkdir(parents=True, exist_ok=True)
            full.write_text(content, encoding="utf-8")
        return temp_dir

    return _write


@pytest.fixture
def sample_replies() -> Dict[str, str]:
    """Oracle replies for every file of the sample project."""
    return {
        "app/index.ts": analysis_reply(
            "Entry point that wires logging and the user controller.",
            {
                "app/log.ts": "Logs application start and shutdown.",
                "app/user-controller.ts": "Creates and lists users.",
            },
        ),
        "app/log.ts": analysis_reply("Logging utility with log levels."),
        "app/user-controller.ts": analysis_reply(
            "Controller mediating user operations.",
            {
                "app/log.ts": "Logs controller operations.",
                "app/user.ts": "User type returned to callers.",
                "app/user-service.ts": "Business logic for users.",
            },
        ),
        "app/user-service.ts": analysis_reply(
            "In-memory user store.",
            {"./log": "Logs store operations.", "user.ts": "User model."},
        ),
        "app/user.ts": analysis_reply("User model interface."),
    }
