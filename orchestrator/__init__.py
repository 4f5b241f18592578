"""Tool orchestration engine.

Plans tool invocations from free text, validates them against declared
parameter schemas, and executes them with bounded retry, timeouts and
concurrent batches.
"""
from orchestrator.agent import AgentConfig, AgentRunResult, PlanningAgent, ToolCallingAgent, ToolCallPlan
from orchestrator.config import DEFAULT_EXECUTOR_CONFIG, ExecutorConfig

__all__ = [
    "AgentConfig",
    "AgentRunResult",
    "PlanningAgent",
    "ToolCallingAgent",
    "ToolCallPlan",
    "DEFAULT_EXECUTOR_CONFIG",
    "ExecutorConfig",
]
