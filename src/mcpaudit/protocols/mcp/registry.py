"""ToolRegistry — name-to-descriptor map with the handler behind each tool.

Registration is expected once at server start-up; after that the registry is
only read, so no locking is done.
"""

from __future__ import annotations

import copy
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import jsonschema

from mcpaudit.protocols.errors import DuplicateToolError, SchemaValidationError
from mcpaudit.protocols.mcp.models import ToolDescriptor

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Any]
"""Any callable ``(arguments) -> result``; coroutine functions are awaited."""


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: ToolDescriptor
    handler: ToolHandler


class ToolRegistry:
    """In-memory registry of tools exposed by an :class:`MCPServer`.

    Usage::

        registry = ToolRegistry()
        registry.register(ToolDescriptor(name="echo", input_schema=...), echo)

        @registry.tool("ping", description="Health check")
        async def ping(arguments: dict[str, Any]) -> str:
            return "pong"
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, descriptor: ToolDescriptor, handler: ToolHandler) -> None:
        """Add a tool; raises :class:`DuplicateToolError` if the name is taken."""
        if descriptor.name in self._tools:
            raise DuplicateToolError(descriptor.name)

        schema = copy.deepcopy(descriptor.input_schema)
        validator_cls = jsonschema.validators.validator_for(schema)
        try:
            validator_cls.check_schema(schema)
        except jsonschema.SchemaError as exc:
            msg = f"Invalid input schema for tool {descriptor.name}: {exc.message}"
            raise ValueError(msg) from exc

        # Private copy: later mutation of the caller's dict is not seen here.
        stored = descriptor.model_copy(update={"input_schema": schema})
        self._tools[descriptor.name] = RegisteredTool(descriptor=stored, handler=handler)
        logger.info("Registered tool %s", descriptor.name)

    def tool(
        self,
        name: str,
        *,
        description: str = "",
        input_schema: dict[str, Any] | None = None,
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: ToolHandler) -> ToolHandler:
            descriptor = ToolDescriptor(
                name=name,
                description=description or (inspect.getdoc(handler) or ""),
                input_schema=input_schema or {"type": "object", "properties": {}},
            )
            self.register(descriptor, handler)
            return handler

        return decorator

    def list_tools(self) -> list[ToolDescriptor]:
        """Return a snapshot of all descriptors in registration order."""
        return [entry.descriptor.model_copy(deep=True) for entry in self._tools.values()]

    def get(self, name: str) -> ToolDescriptor | None:
        """Return a copy of the descriptor for *name*, or ``None``."""
        entry = self._tools.get(name)
        if entry is None:
            return None
        return entry.descriptor.model_copy(deep=True)

    def names(self) -> list[str]:
        return list(self._tools)

    def validate_arguments(self, name: str, arguments: dict[str, Any]) -> None:
        """Check *arguments* against the tool's declared input schema.

        Raises:
            KeyError: If *name* is not registered.
            SchemaValidationError: If the arguments do not match.
        """
        schema = self._tools[name].descriptor.input_schema
        try:
            jsonschema.validate(instance=arguments, schema=schema)
        except jsonschema.ValidationError as exc:
            raise SchemaValidationError(name, exc.message) from exc

    async def invoke(self, name: str, arguments: dict[str, Any]) -> Any:
        """Run the handler for *name*, awaiting it if it returns an awaitable."""
        handler = self._tools[name].handler
        result = handler(arguments)
        if inspect.isawaitable(result):
            result = await result
        return result
