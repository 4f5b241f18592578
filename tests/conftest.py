"""Shared fixtures: small tool variants, registries and executors."""
import asyncio
from typing import List

import pytest

from orchestrator.tools.base import BaseTool
from orchestrator.tools.executor import ToolExecutor
from orchestrator.tools.models import ToolContext, ToolDefinition, ToolParameter, ToolResult
from orchestrator.tools.registry import ToolRegistry


class EchoTool(BaseTool):
    name = "echo"
    description = "Echo back the input message"
    parameters = [ToolParameter("message", description="Message to echo")]

    async def execute(self, context: ToolContext) -> ToolResult:
        return ToolResult.ok({"echoed": context.params["message"]})


class SlowTool(BaseTool):
    name = "slow_tool"
    description = "A slow tool for timeout testing"
    parameters = [
        ToolParameter("delay", type="number", description="seconds to sleep", required=False, default_value=0.3),
    ]

    def __init__(self):
        self.finished = 0

    async def execute(self, context: ToolContext) -> ToolResult:
        await asyncio.sleep(context.params.get("delay", 0.3))
        self.finished += 1
        return ToolResult.ok({"completed": True})


class FailingTool(BaseTool):
    name = "failing_tool"
    description = "A tool that always raises"
    parameters = []

    def __init__(self):
        self.calls = 0

    async def execute(self, context: ToolContext) -> ToolResult:
        self.calls += 1
        raise RuntimeError("Tool execution failed")


class FlakyTool(BaseTool):
    """Raises until the ``succeed_on``-th attempt."""
    name = "flaky_tool"
    description = "A flaky tool"
    parameters = []

    def __init__(self, succeed_on: int = 3):
        self.succeed_on = succeed_on
        self.calls = 0
        self.contexts: List[ToolContext] = []

    async def execute(self, context: ToolContext) -> ToolResult:
        self.calls += 1
        self.contexts.append(context)
        if self.calls < self.succeed_on:
            raise RuntimeError("Temporary failure")
        return ToolResult.ok({"attempts": self.calls}, source="flaky")


class RecordingTool(BaseTool):
    """Sleeps ``delay`` seconds then records its id in the shared completion log."""
    name = "recorder"
    description = "Records completion order"
    parameters = [
        ToolParameter("tag", description="identifier to record"),
        ToolParameter("delay", type="number", description="seconds to sleep", required=False, default_value=0),
    ]

    def __init__(self):
        self.completed: List[str] = []

    async def execute(self, context: ToolContext) -> ToolResult:
        await asyncio.sleep(context.params.get("delay", 0))
        self.completed.append(context.params["tag"])
        return ToolResult.ok({"tag": context.params["tag"]})


@pytest.fixture
def registry():
    return ToolRegistry([EchoTool(), SlowTool(), FailingTool(), FlakyTool(), RecordingTool()])


@pytest.fixture
def executor(registry):
    return ToolExecutor(registry, max_retries=2, retry_delay_ms=10)


@pytest.fixture
def planner_tools():
    return [
        ToolDefinition(
            name="read_file",
            description="Read the contents of a file",
            parameters=[ToolParameter("path", description="File path to read")],
        ),
        ToolDefinition(
            name="write_file",
            description="Write content to a file",
            parameters=[
                ToolParameter("path", description="File path to write"),
                ToolParameter("content", description="Content to write"),
            ],
        ),
        ToolDefinition(
            name="search_code",
            description="Search for code patterns in the codebase",
            parameters=[ToolParameter("query", description="Search query")],
        ),
        ToolDefinition(
            name="execute_command",
            description="Execute a shell command",
            parameters=[ToolParameter("command", description="Command to execute")],
        ),
    ]
