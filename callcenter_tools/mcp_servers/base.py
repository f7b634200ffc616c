"""
================================================================================
Tool Server Base
================================================================================

Shared plumbing of the stdio tool servers built on the MCP low-level server.

A subclass declares:
    - ``name``: server name announced to clients
    - ``tools()``: the tool descriptors (name, description, input schema)
    - ``handlers()``: tool name -> async handler returning the response text

Handler failures never escape as protocol errors: they are reported as a
single text item ``"Error executing <tool>: <message>"`` flagged as error.

================================================================================
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

import mcp.types as types
from loguru import logger
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server


ToolHandler = Callable[[Dict[str, Any]], Awaitable[str]]


class ToolError(Exception):
    """Raised for a failed tool call; the message is what the client sees."""
    pass


# ================================================================================
# Argument Helpers
# ================================================================================

def int_arg(arguments: Mapping[str, Any], key: str, default: Optional[int] = None, minimum: int = 0) -> int:
    value = arguments.get(key, default)
    if value is None:
        raise ValueError(f"'{key}' is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
        raise ValueError(f"'{key}' must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"'{key}' must be >= {minimum}, got {value}")
    return int(value)


def number_arg(arguments: Mapping[str, Any], key: str, default: float) -> float:
    value = arguments.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}' must be a number, got {value!r}")
    return float(value)


def choice_arg(arguments: Mapping[str, Any], key: str, choices: Sequence[str], default: Optional[str] = None) -> str:
    value = arguments.get(key, default)
    if value is None:
        raise ValueError(f"'{key}' is required")
    if value not in choices:
        raise ValueError(f"'{key}' must be one of {', '.join(choices)}, got {value!r}")
    return value


def list_arg(arguments: Mapping[str, Any], key: str) -> Optional[List[str]]:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be an array, got {value!r}")
    return [str(v) for v in value]


# ================================================================================
# Server
# ================================================================================

class ToolServer(ABC):
    """
    Base class of the stdio tool servers.

    Usage:
        server = TestDataServer()
        result = await server.call("generate_user_data", {"count": 2})
        asyncio.run(server.run_stdio())
    """

    name = "tool-server"
    version = "1.0.0"

    def __init__(self):
        self._handlers = self.handlers()
        self.server = Server(self.name, version=self.version)
        self._register()

    @abstractmethod
    def tools(self) -> List[types.Tool]:
        ...

    @abstractmethod
    def handlers(self) -> Dict[str, ToolHandler]:
        ...

    def _register(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> List[types.Tool]:
            return self.tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
            # The low-level server turns a raised error into an isError result
            text = await self.execute(name, arguments)
            return [types.TextContent(type="text", text=text)]

    async def execute(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> str:
        """
        Run a tool and return its text.

        Raises:
            ToolError: Unknown tool or failing handler
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolError(f"Error executing {name}: Unknown tool: {name}")

        logger.info(f"[{self.name}] {name} {arguments or {}}")
        try:
            return await handler(dict(arguments or {}))
        except Exception as e:
            logger.error(f"[{self.name}] {name} failed: {e}")
            raise ToolError(f"Error executing {name}: {e}") from e

    async def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> types.CallToolResult:
        """Run a tool and wrap the outcome as a tool result."""
        try:
            text = await self.execute(name, arguments)
        except ToolError as e:
            return types.CallToolResult(
                content=[types.TextContent(type="text", text=str(e))],
                isError=True,
            )
        return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=False)

    async def run_stdio(self) -> None:
        """Serve over stdin/stdout until the client disconnects."""
        logger.info(f"{self.name} {self.version} running on stdio")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(read_stream, write_stream, self.server.create_initialization_options())


def serve(server: ToolServer) -> None:
    """Entry point helper: run ``server`` on stdio."""
    asyncio.run(server.run_stdio())


__all__ = [
    "ToolError",
    "ToolHandler",
    "ToolServer",
    "choice_arg",
    "int_arg",
    "list_arg",
    "number_arg",
    "serve",
]
