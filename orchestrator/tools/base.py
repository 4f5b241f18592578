"""Tool capability interface and the function-backed implementation."""
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from .models import ToolContext, ToolDefinition, ToolParameter, ToolResult, ValidationResult

ToolHandler = Callable[..., Awaitable[ToolResult]]

_PY_TYPE_NAMES = {
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
    dict: "object",
    list: "array",
    tuple: "array",
}


def _type_name(value: Any) -> str:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "boolean"
    for py_type, name in _PY_TYPE_NAMES.items():
        if isinstance(value, py_type):
            return name
    return type(value).__name__


class BaseTool(ABC):
    """Base class for every tool variant.

    Subclasses declare ``name``, ``description`` and ``parameters`` and
    implement ``execute``. Raising from ``execute`` marks the attempt as
    failed and lets the executor retry it; returning a failed ToolResult
    is a final answer.
    """

    name: str = ""
    description: str = ""
    parameters: Sequence[ToolParameter] = ()
    category: str = ""

    @abstractmethod
    async def execute(self, context: ToolContext) -> ToolResult:
        ...

    def validate_parameters(self, params: Dict[str, Any]) -> ValidationResult:
        errors: List[str] = []
        for param in self.parameters:
            value = params.get(param.name)
            if value is None:
                if param.required and param.default_value is None:
                    errors.append(f"Missing required parameter: {param.name}")
                continue

            actual = _type_name(value)
            if actual != param.type:
                errors.append(f"Parameter {param.name} must be of type {param.type}, got {actual}")
                continue

            if param.enum and value not in param.enum:
                errors.append(f"Parameter {param.name} must be one of: {', '.join(param.enum)}")

        return ValidationResult(valid=not errors, errors=errors)

    def resolve_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Copy of params with declared defaults filled in for absent values."""
        resolved = dict(params)
        for param in self.parameters:
            if resolved.get(param.name) is None and param.default_value is not None:
                resolved[param.name] = param.default_value
        return resolved

    def get_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=list(self.parameters),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class FunctionTool(BaseTool):
    """Adapts ``async def handler(context, **params)`` to the tool interface."""

    def __init__(
        self,
        name: str,
        description: str,
        handler: ToolHandler,
        parameters: Optional[List[ToolParameter]] = None,
        category: str = "",
    ):
        self.name = name
        self.description = description
        self.parameters = list(parameters or [])
        self.handler = handler
        self.category = category

    async def execute(self, context: ToolContext) -> ToolResult:
        return await self.handler(context, **self.resolve_params(context.params))
