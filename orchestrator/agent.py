"""Tool-calling agent — plan, execute the batch, summarize.

``ToolCallingAgent`` ships a deliberately tiny planning policy (it only
understands "echo ..."); ``PlanningAgent`` swaps in the rule-based
ToolPlanner. Both share the same run loop and failure boundary.
"""
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from .tools.executor import ToolExecutor
from .tools.models import ToolCallRequest, ToolCallResponse
from .tools.planner import CompletedStep, ExecutionContext, PlanStep, ToolPlan, ToolPlanner

logger = logging.getLogger(__name__)

NO_CALLS_ERROR = "No tool calls planned for the given task"

_ECHO_RE = re.compile(r"""echo\s+(?:the\s+message\s+)?["']?([^"']+)["']?""", re.IGNORECASE)


@dataclass
class AgentConfig:
    max_iterations: int = 10
    verbose: bool = False


@dataclass
class ToolCallPlan:
    tool_calls: List[ToolCallRequest] = field(default_factory=list)
    reasoning: str = ""


@dataclass
class AgentRunResult:
    success: bool
    tool_results: List[ToolCallResponse] = field(default_factory=list)
    final_output: Optional[str] = None
    error: Optional[str] = None
    next_step: Optional[PlanStep] = None


def new_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:8]}"


def summarize_results(results: List[ToolCallResponse]) -> str:
    succeeded = sum(1 for r in results if r.result.success)
    return f"Executed {len(results)} tool calls, {succeeded} succeeded"


class ToolCallingAgent:
    def __init__(self, executor: ToolExecutor, config: Optional[AgentConfig] = None):
        self.executor = executor
        self.config = config or AgentConfig()

    async def plan_tool_calls(self, task: str) -> ToolCallPlan:
        tool_calls: List[ToolCallRequest] = []
        if "echo" in task.lower():
            match = _ECHO_RE.search(task)
            message = match.group(1).strip() if match else task
            tool_calls.append(ToolCallRequest(id=new_call_id(), name="echo", arguments={"message": message}))
        return ToolCallPlan(tool_calls=tool_calls, reasoning=f"Planning tool calls for task: {task}")

    async def execute_plan(self, plan: ToolCallPlan) -> List[ToolCallResponse]:
        return await self.executor.execute_batch(plan.tool_calls)

    async def run(self, task: str) -> AgentRunResult:
        try:
            plan = await self.plan_tool_calls(task)
            if not plan.tool_calls:
                logger.info(f"No tool calls planned for task: {task!r}")
                return AgentRunResult(success=False, error=NO_CALLS_ERROR, final_output=plan.reasoning or None)

            if self.config.verbose:
                logger.info(f"Plan: {[c.name for c in plan.tool_calls]} ({plan.reasoning})")
            results = await self.execute_plan(plan)
            summary = summarize_results(results)
            logger.info(summary)
            return AgentRunResult(
                success=all(r.result.success for r in results),
                tool_results=results,
                final_output=summary,
                next_step=await self.suggest_follow_up(task, results),
            )
        except Exception as e:
            logger.error(f"Agent run failed for task {task!r}: {e}", exc_info=True)
            return AgentRunResult(success=False, error=str(e) or type(e).__name__)

    async def suggest_follow_up(self, task: str, results: List[ToolCallResponse]) -> Optional[PlanStep]:
        return None


class PlanningAgent(ToolCallingAgent):
    """Agent whose plans come from the rule-based ToolPlanner."""

    def __init__(self, executor: ToolExecutor, planner: Optional[ToolPlanner] = None,
                 config: Optional[AgentConfig] = None):
        super().__init__(executor, config)
        self.planner = planner or ToolPlanner.from_registry(executor.registry)

    async def plan_tool_calls(self, task: str) -> ToolCallPlan:
        plan = self.planner.create_plan(task)
        calls: List[ToolCallRequest] = []
        pending: List[str] = []

        for step in plan.steps[: self.config.max_iterations]:
            check = self.planner.validate_plan(ToolPlan(steps=[step]))
            if check.valid:
                calls.append(ToolCallRequest(id=new_call_id(), name=step.tool, arguments=dict(step.parameters)))
            else:
                hints = ", ".join(f"{k}: {v}" for k, v in (step.parameter_hints or {}).items())
                pending.append(f"{step.tool} needs input ({hints or '; '.join(check.errors)})")

        reasoning = f"{len(calls)} of {len(plan.steps)} planned steps are ready"
        if pending:
            reasoning += "; " + "; ".join(pending)
        return ToolCallPlan(tool_calls=calls, reasoning=reasoning)

    async def suggest_follow_up(self, task: str, results: List[ToolCallResponse]) -> Optional[PlanStep]:
        completed = [
            CompletedStep(tool=r.name, result=str(r.result.data if r.result.success else r.result.error))
            for r in results if r.result.success
        ]
        return self.planner.suggest_next_tool(ExecutionContext(original_task=task, completed_steps=completed))
