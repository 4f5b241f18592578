"""Echo tool — returns its message unchanged."""
from ..models import ToolContext, ToolParameter, ToolResult
from ..registry import register_tool


@register_tool(
    "echo",
    description="Echo back the input message",
    params=[ToolParameter("message", description="Message to echo")],
    category="debug",
)
async def echo(context: ToolContext, message: str, **kwargs) -> ToolResult:
    return ToolResult.ok({"echoed": message})
