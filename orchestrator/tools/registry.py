"""Tool registry — decorator-based builtin registration and name lookup."""
import logging
from typing import Dict, List, Optional

from ..errors import DuplicateToolError, RegistryFrozenError
from .base import BaseTool, FunctionTool
from .models import ToolDefinition, ToolParameter

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name → tool lookup. Populated at startup, read-only once frozen."""

    def __init__(self, tools: Optional[List[BaseTool]] = None):
        self._tools: Dict[str, BaseTool] = {}
        self._frozen = False
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: BaseTool) -> None:
        if self._frozen:
            raise RegistryFrozenError(tool.name)
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def list(self) -> List[BaseTool]:
        return list(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def definitions(self) -> List[ToolDefinition]:
        return [tool.get_definition() for tool in self._tools.values()]

    def tool_descriptions(self) -> str:
        """Plain-text listing served as ``text`` by GET /api/tools.

        ``- name [category]: description (param: type, optional?: type)``
        """
        return "\n".join(_describe(self._tools[name]) for name in sorted(self._tools))


def _describe(tool: BaseTool) -> str:
    signature = ", ".join(
        f"{p.name}{'' if p.required else '?'}: {p.type}" for p in tool.parameters
    )
    label = f"{tool.name} [{tool.category}]" if tool.category else tool.name
    return f"- {label}: {tool.description} ({signature})"


_builtin_tools: Dict[str, FunctionTool] = {}


def register_tool(
    name: str,
    description: str = "",
    params: Optional[List[ToolParameter]] = None,
    category: str = "",
):
    """Decorator registering an async handler as a builtin tool."""
    def decorator(func):
        if name in _builtin_tools:
            raise DuplicateToolError(name)
        _builtin_tools[name] = FunctionTool(
            name=name,
            description=description or (func.__doc__ or "").strip(),
            handler=func,
            parameters=params,
            category=category,
        )
        logger.info(f"Registered builtin tool: {name}")
        return func
    return decorator


def builtin_tools() -> Dict[str, FunctionTool]:
    return dict(_builtin_tools)


def default_registry() -> ToolRegistry:
    """Frozen registry holding every builtin tool."""
    from . import builtin  # noqa: F401  (triggers @register_tool)

    return ToolRegistry(list(_builtin_tools.values())).freeze()
