"""Tests for agent.py — planning policies, run loop and failure boundary."""
from unittest.mock import AsyncMock, patch

import pytest

from orchestrator.agent import (
    NO_CALLS_ERROR,
    AgentConfig,
    PlanningAgent,
    ToolCallingAgent,
    ToolCallPlan,
    summarize_results,
)
from orchestrator.tools.executor import ToolExecutor
from orchestrator.tools.models import ToolCallRequest, ToolCallResponse, ToolResult
from orchestrator.tools.registry import default_registry


@pytest.fixture
def agent(executor):
    return ToolCallingAgent(executor)


class TestPlanToolCalls:
    @pytest.mark.asyncio
    async def test_echo_message(self, agent):
        plan = await agent.plan_tool_calls('echo the message "hello world"')
        assert len(plan.tool_calls) == 1
        call = plan.tool_calls[0]
        assert call.name == "echo"
        assert call.arguments == {"message": "hello world"}
        assert call.id.startswith("call_")
        assert plan.reasoning

    @pytest.mark.asyncio
    async def test_unique_ids(self, agent):
        a = await agent.plan_tool_calls("echo a")
        b = await agent.plan_tool_calls("echo b")
        assert a.tool_calls[0].id != b.tool_calls[0].id

    @pytest.mark.asyncio
    async def test_no_trigger(self, agent):
        plan = await agent.plan_tool_calls("do something")
        assert plan.tool_calls == []


class TestRun:
    @pytest.mark.asyncio
    async def test_success(self, agent):
        result = await agent.run("echo hello")
        assert result.success is True
        assert len(result.tool_results) == 1
        assert result.tool_results[0].result.data == {"echoed": "hello"}
        assert result.final_output == "Executed 1 tool calls, 1 succeeded"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_no_calls_never_touches_executor(self, executor):
        agent = ToolCallingAgent(executor)
        with patch.object(executor, "execute_batch", new_callable=AsyncMock) as batch:
            result = await agent.run("do something unrelated")
        assert result.success is False
        assert result.error == NO_CALLS_ERROR
        assert result.tool_results == []
        batch.assert_not_called()

    @pytest.mark.asyncio
    async def test_aggregate_is_and_of_results(self, agent):
        plan = ToolCallPlan(tool_calls=[
            ToolCallRequest(id="1", name="echo", arguments={"message": "ok"}),
            ToolCallRequest(id="2", name="failing_tool", arguments={}),
        ])
        with patch.object(agent, "plan_tool_calls", new=AsyncMock(return_value=plan)):
            result = await agent.run("anything")
        assert result.success is False
        assert [r.id for r in result.tool_results] == ["1", "2"]
        assert result.final_output == "Executed 2 tool calls, 1 succeeded"

    @pytest.mark.asyncio
    async def test_planning_exception_caught(self, agent):
        with patch.object(agent, "plan_tool_calls", new=AsyncMock(side_effect=RuntimeError("planner down"))):
            result = await agent.run("echo hi")
        assert result.success is False
        assert result.error == "planner down"
        assert result.tool_results == []

    @pytest.mark.asyncio
    async def test_execution_exception_caught(self, agent):
        with patch.object(agent.executor, "execute_batch", new=AsyncMock(side_effect=ValueError("boom"))):
            result = await agent.run("echo hi")
        assert result.success is False
        assert result.error == "boom"

    @pytest.mark.asyncio
    async def test_execute_plan_delegates(self, agent):
        plan = ToolCallPlan(tool_calls=[ToolCallRequest(id="x", name="echo", arguments={"message": "m"})])
        responses = await agent.execute_plan(plan)
        assert [r.id for r in responses] == ["x"]

    def test_default_config(self, agent):
        assert agent.config.max_iterations == 10
        assert agent.config.verbose is False


class TestSummarize:
    def test_counts(self):
        results = [
            ToolCallResponse("1", "a", ToolResult.ok()),
            ToolCallResponse("2", "b", ToolResult.fail("x")),
            ToolCallResponse("3", "c", ToolResult.ok()),
        ]
        assert summarize_results(results) == "Executed 3 tool calls, 2 succeeded"


class TestPlanningAgent:
    @pytest.fixture
    def planning_agent(self):
        return PlanningAgent(ToolExecutor(default_registry(), max_retries=0))

    @pytest.mark.asyncio
    async def test_ready_steps_become_calls(self, planning_agent, tmp_path):
        plan = await planning_agent.plan_tool_calls("read config.json and then write result.json")
        assert [c.name for c in plan.tool_calls] == ["read_file", "write_file"]
        assert plan.tool_calls[1].arguments == {"path": "result.json", "content": ""}
        assert plan.reasoning.startswith("2 of 2")

    @pytest.mark.asyncio
    async def test_incomplete_steps_reported(self, planning_agent):
        plan = await planning_agent.plan_tool_calls("run the tests")
        assert plan.tool_calls == []
        assert "execute_command needs input" in plan.reasoning

    @pytest.mark.asyncio
    async def test_run_against_workspace(self, tmp_path, monkeypatch):
        (tmp_path / "config.json").write_text('{"debug": true}', encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        agent = PlanningAgent(ToolExecutor(default_registry(), max_retries=0))

        result = await agent.run("read config.json and then write result.json")
        assert result.success is True
        assert result.tool_results[0].result.data["content"] == '{"debug": true}'
        assert (tmp_path / "result.json").read_text(encoding="utf-8") == ""
        # both intents fulfilled, nothing more to suggest
        assert result.next_step is None

    @pytest.mark.asyncio
    async def test_next_step_suggested(self, tmp_path, monkeypatch):
        (tmp_path / "notes.txt").write_text("todo: retry", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        agent = PlanningAgent(ToolExecutor(default_registry(), max_retries=0))

        result = await agent.run("read notes.txt and search")
        assert result.tool_results[0].name == "read_file"
        assert result.next_step is not None
        assert result.next_step.tool == "search_code"

    @pytest.mark.asyncio
    async def test_max_iterations_caps_calls(self):
        agent = PlanningAgent(ToolExecutor(default_registry()), config=AgentConfig(max_iterations=1))
        plan = await agent.plan_tool_calls("read a.txt and write b.txt")
        assert [c.name for c in plan.tool_calls] == ["read_file"]

    @pytest.mark.asyncio
    async def test_nothing_ready(self, planning_agent):
        result = await planning_agent.run("hello there")
        assert result.success is False
        assert result.error == NO_CALLS_ERROR
