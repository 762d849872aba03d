"""Built-in demo tools: ``echo``, ``add_reminder`` and ``list_reminders``.

They stand in for the external services a real deployment would register,
so ``mcpaudit serve`` has something to expose.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from mcpaudit.protocols.errors import ToolError
from mcpaudit.protocols.mcp.models import ToolDescriptor
from mcpaudit.protocols.mcp.registry import ToolRegistry

ECHO = ToolDescriptor(
    name="echo",
    description="Returns the given text unchanged.",
    input_schema={
        "type": "object",
        "properties": {"text": {"type": "string", "description": "Text to echo back."}},
        "required": ["text"],
    },
)

ADD_REMINDER = ToolDescriptor(
    name="add_reminder",
    description=(
        "Adds a new reminder for a specific task at a given time. "
        "Use this to add a new reminder."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "time": {
                "type": "string",
                "description": 'The time for the reminder, e.g., "10:00 AM", "tonight at 8pm".',
            },
            "task": {
                "type": "string",
                "description": 'The task or message for the reminder, e.g., "call the doctor".',
            },
        },
        "required": ["time", "task"],
    },
)

LIST_REMINDERS = ToolDescriptor(
    name="list_reminders",
    description="Lists all current reminders. Use this to find out what reminders have been set.",
    input_schema={"type": "object", "properties": {}, "required": []},
)


class Reminder(BaseModel):
    """A stored reminder."""

    model_config = {"populate_by_name": True}

    id: str = Field(default_factory=lambda: f"reminder_{uuid4().hex[:12]}")
    time: str
    task: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), alias="createdAt")


class ReminderStore:
    """In-memory reminder list, lost on restart."""

    def __init__(self) -> None:
        self._reminders: list[Reminder] = []

    def __len__(self) -> int:
        return len(self._reminders)

    def add(self, time: str, task: str) -> Reminder:
        if not time.strip() or not task.strip():
            raise ToolError("Missing 'time' or 'task'")
        reminder = Reminder(time=time, task=task)
        self._reminders.append(reminder)
        return reminder

    def all(self) -> list[Reminder]:
        return list(self._reminders)


def echo(arguments: dict[str, Any]) -> dict[str, Any]:
    return {"text": arguments["text"]}


def register_builtin_tools(registry: ToolRegistry, store: ReminderStore | None = None) -> ReminderStore:
    """Register the demo tools on *registry* and return the backing store."""
    reminders = store if store is not None else ReminderStore()

    async def add_reminder(arguments: dict[str, Any]) -> dict[str, Any]:
        reminder = reminders.add(arguments["time"], arguments["task"])
        return {
            "message": f"Reminder added: {reminder.task} at {reminder.time}",
            "reminder": reminder.model_dump(by_alias=True, mode="json"),
        }

    async def list_reminders(arguments: dict[str, Any]) -> list[dict[str, Any]]:
        return [r.model_dump(by_alias=True, mode="json") for r in reminders.all()]

    registry.register(ECHO, echo)
    registry.register(ADD_REMINDER, add_reminder)
    registry.register(LIST_REMINDERS, list_reminders)
    return reminders
