"""
Tool-calling adapter.

Converts kit actions into OpenAI-style function tools::

    {"type": "function",
     "function": {"name": ..., "description": ..., "parameters": {...}}}

Each tool's ``execute`` never raises: handler failures (including parameter
validation) come back as ``{"success": False, "error": ..., "action": ...}``
so the model can read and react to them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Sequence

from .actions import Action

if TYPE_CHECKING:
    from .client import DexfraAgentKit

logger = logging.getLogger(__name__)

MAX_TOOLS = 128
MAX_DESCRIPTION_LENGTH = 1023


@dataclass
class Tool:
    name: str
    description: str
    parameters: dict[str, Any]
    action: Action
    kit: "DexfraAgentKit"

    def to_param(self) -> dict:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    async def execute(self, params: Optional[dict[str, Any]] = None) -> Any:
        try:
            return await self.action.run(self.kit, params)
        except Exception as e:
            logger.info("Tool %s failed: %s", self.name, e)
            return {"success": False, "error": str(e) or type(e).__name__, "action": self.action.name}


def format_description(action: Action) -> str:
    """Description plus similes and examples, cut to the tool-description limit."""
    desc = action.description + "\n\n"
    if action.similes:
        desc += f"Also known as: {', '.join(action.similes)}\n\n"
    if action.examples:
        desc += "Examples:\n"
        for example in action.examples:
            desc += f"- Input: {json.dumps(example.input)}\n"
            desc += f"  Output: {json.dumps(example.output)}\n"
            desc += f"  Explanation: {example.explanation}\n\n"
    return desc[:MAX_DESCRIPTION_LENGTH]


def _build_tool(kit: "DexfraAgentKit", action: Action) -> Tool:
    return Tool(
        name=action.name,
        description=format_description(action),
        parameters=action.input_schema,
        action=action,
        kit=kit,
    )


def create_tools(kit: "DexfraAgentKit", actions: Optional[Sequence[Action]] = None) -> dict[str, Tool]:
    """Tools for ``actions`` (default: all kit actions), keyed by name, at most MAX_TOOLS."""
    to_convert = list(actions if actions is not None else kit.actions)
    if len(to_convert) > MAX_TOOLS:
        logger.warning(
            "Too many actions (%d). Only the first %d will be converted to tools.",
            len(to_convert), MAX_TOOLS,
        )

    tools: dict[str, Tool] = {}
    for action in to_convert[:MAX_TOOLS]:
        try:
            tools[action.name] = _build_tool(kit, action)
        except Exception:
            logger.exception("Failed to create tool for action %r", action.name)
    return tools


def create_tool(kit: "DexfraAgentKit", action_name: str) -> Optional[Tool]:
    action = next((a for a in kit.actions if a.name == action_name), None)
    if action is None:
        logger.warning("Action %r not found in kit actions", action_name)
        return None
    try:
        return _build_tool(kit, action)
    except Exception:
        logger.exception("Failed to create tool for action %r", action_name)
        return None


def get_tool_stats(kit: "DexfraAgentKit") -> dict:
    total = len(kit.actions)
    return {
        "total_actions": total,
        "available_tools": min(total, MAX_TOOLS),
        "truncated": total > MAX_TOOLS,
    }
