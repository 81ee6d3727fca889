"""Conversation helpers and the bounded tool-call loop."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import OracleError
from .llm import ChatClient
from .models import Conversation, Message, Tool

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 5


def create_tool(
    name: str,
    description: str,
    parameters: Dict[str, Dict[str, Any]],
    execute: Callable[[Dict[str, Any]], str],
) -> Tool:
    return Tool(name=name, description=description, parameters=parameters, execute=execute)


def create_conversation(system_prompt: Optional[str] = None) -> Conversation:
    if not system_prompt:
        return Conversation()
    return Conversation(messages=[Message(role="system", content=system_prompt)])


def add_user_message(conversation: Conversation, content: str) -> Conversation:
    """Return a new conversation with a user message appended."""
    return Conversation(messages=[*conversation.messages, Message(role="user", content=content)])


def _run_tool(tool: Tool, arguments: str) -> str:
    try:
        args = json.loads(arguments) if arguments else {}
    except json.JSONDecodeError as exc:
        raise OracleError(f"Malformed arguments for tool '{tool.name}': {exc}") from exc
    if not isinstance(args, dict):
        raise OracleError(f"Arguments for tool '{tool.name}' must be an object")
    return tool.execute(args)


def run_conversation(
    client: ChatClient,
    conversation: Conversation,
    tools: Optional[List[Tool]] = None,
    force_json: bool = False,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
) -> Tuple[str, Conversation]:
    """Call the oracle until it answers without requesting tools.

    Each round appends the assistant message and, when tools were requested,
    one ``tool`` message per call before asking again.

    Returns:
        The final reply text and the updated conversation.

    Raises:
        OracleError: If the oracle fails, asks for an unknown tool, or keeps
            requesting tools past *max_rounds*.
    """
    tools = tools or []
    tool_map = {tool.name: tool for tool in tools}
    messages = list(conversation.messages)

    for round_no in range(1, max_rounds + 1):
        reply = client.complete(messages, tools, force_json=force_json)
        messages.append(reply)

        if not reply.tool_calls:
            return reply.content, Conversation(messages=messages)

        for call in reply.tool_calls:
            tool = tool_map.get(call.name)
            if tool is None:
                raise OracleError(f'Tool "{call.name}" not found')
            logger.debug("Round %d: running tool %s(%s)", round_no, call.name, call.arguments)
            result = _run_tool(tool, call.arguments)
            messages.append(
                Message(role="tool", content=result, name=call.name, tool_call_id=call.call_id)
            )

    raise OracleError(f"Oracle still requesting tools after {max_rounds} rounds")
