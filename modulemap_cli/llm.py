"""Chat-completions client for the oracle that describes source files.

Every supported provider exposes an OpenAI-compatible chat-completions
endpoint, so a single transport covers Ollama, Groq, OpenAI, OpenRouter,
Gemini and Anthropic.
"""

from __future__ import annotations

import json
import logging
import socket
import urllib.error
import urllib.request
from typing import Any, Dict, List, Optional

from .config_manager import DEFAULT_CONFIGS
from .errors import OracleError
from .models import Message, Tool, ToolCall

logger = logging.getLogger(__name__)

KEYLESS_PROVIDERS = {"ollama"}


class ChatClient:
    """Base class for oracle clients."""

    def complete(
        self,
        messages: List[Message],
        tools: Optional[List[Tool]] = None,
        force_json: bool = False,
    ) -> Message:
        """Return the assistant reply to *messages*.

        Raises:
            OracleError: If the oracle is unreachable or the reply is malformed.
        """
        raise NotImplementedError


def tool_schema(tool: Tool) -> Dict[str, Any]:
    """Convert a :class:`Tool` to the chat-completions ``tools`` format."""
    properties = {
        name: {key: value for key, value in spec.items() if key != "optional"}
        for name, spec in tool.parameters.items()
    }
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": [
                    name for name, spec in tool.parameters.items() if not spec.get("optional")
                ],
            },
        },
    }


def message_payload(msg: Message) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"role": msg.role, "content": msg.content}
    if msg.role == "tool":
        payload["tool_call_id"] = msg.tool_call_id
        if msg.name:
            payload["name"] = msg.name
    if msg.tool_calls:
        payload["tool_calls"] = [
            {
                "id": call.call_id,
                "type": "function",
                "function": {"name": call.name, "arguments": call.arguments},
            }
            for call in msg.tool_calls
        ]
    return payload


class OpenAICompatibleClient(ChatClient):
    """OpenAI chat-completions API client (also Groq, OpenRouter, Gemini, Anthropic, Ollama)."""

    def __init__(
        self,
        model: str,
        api_key: str = "",
        endpoint: str = "https://api.openai.com/v1/chat/completions",
        timeout: float = 60,
        temperature: float = 0.1,
        require_api_key: bool = True,
    ):
        self.model = model
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.temperature = temperature
        self.require_api_key = require_api_key

    def build_payload(
        self,
        messages: List[Message],
        tools: Optional[List[Tool]] = None,
        force_json: bool = False,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [message_payload(m) for m in messages],
            "temperature": self.temperature,
        }
        if tools:
            payload["tools"] = [tool_schema(t) for t in tools]
            payload["tool_choice"] = "auto"
        if force_json:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def complete(
        self,
        messages: List[Message],
        tools: Optional[List[Tool]] = None,
        force_json: bool = False,
    ) -> Message:
        if self.require_api_key and not self.api_key:
            raise OracleError(
                "No API key configured. Run 'modmap set-llm <provider> -k <key>' "
                "or set MODULEMAP_API_KEY."
            )

        body = json.dumps(self.build_payload(messages, tools, force_json)).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        req = urllib.request.Request(self.endpoint, data=body, headers=headers, method="POST")

        logger.debug("Oracle request: %d messages, %d tools", len(messages), len(tools or []))
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                parsed = json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as exc:
            raise OracleError(f"Oracle returned HTTP {exc.code}: {exc.reason}") from exc
        except (urllib.error.URLError, TimeoutError, socket.timeout) as exc:
            raise OracleError(f"Oracle unreachable at {self.endpoint}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise OracleError(f"Oracle response is not JSON: {exc}") from exc

        return self.parse_response(parsed)

    @staticmethod
    def parse_response(parsed: Dict[str, Any]) -> Message:
        """Extract the assistant message from a chat-completions response."""
        try:
            raw = parsed["choices"][0]["message"]
            tool_calls = [
                ToolCall(
                    call_id=call["id"],
                    name=call["function"]["name"],
                    arguments=call["function"].get("arguments") or "{}",
                )
                for call in raw.get("tool_calls") or []
            ]
        except (KeyError, IndexError, TypeError) as exc:
            raise OracleError(f"Unexpected oracle response shape: {exc!r}") from exc

        return Message(role="assistant", content=raw.get("content") or "", tool_calls=tool_calls)


def create_client(
    provider: str,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
    endpoint: Optional[str] = None,
    timeout: float = 60,
) -> ChatClient:
    """Create the client for *provider*, filling gaps from provider defaults.

    Raises:
        ValueError: If the provider is unknown.
    """
    provider_name = provider.lower().strip()
    defaults = DEFAULT_CONFIGS.get(provider_name)
    if defaults is None:
        raise ValueError(
            f"Unknown provider '{provider}'. Choose from: {', '.join(DEFAULT_CONFIGS)}"
        )

    return OpenAICompatibleClient(
        model=model or defaults["model"],
        api_key=api_key or "",
        endpoint=endpoint or defaults["endpoint"],
        timeout=timeout,
        require_api_key=provider_name not in KEYLESS_PROVIDERS,
    )
