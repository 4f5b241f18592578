"""Tool system — models, registry, planner, executor."""
from .models import (
    ToolParameter, ToolDefinition, ToolContext, ToolResult, ValidationResult,
    ToolCallRequest, ToolCallResponse,
)
from .base import BaseTool, FunctionTool
from .registry import ToolRegistry, register_tool, builtin_tools, default_registry
from .planner import ToolPlanner, ToolPlan, PlanStep, ToolSelection, ExecutionContext, CompletedStep
from .executor import ToolExecutor

# Auto-import builtin tools to trigger @register_tool decorators
from . import builtin  # noqa
