"""REST API routes: tool listing, planning, execution, agent runs."""
import logging
from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .agent import AgentConfig, PlanningAgent, ToolCallingAgent
from .config import ExecutorConfig, settings
from .tools.executor import ToolExecutor
from .tools.models import ToolCallRequest, ToolCallResponse, ToolResult
from .tools.planner import CompletedStep, ExecutionContext, PlanStep, ToolPlan, ToolPlanner
from .tools.registry import ToolRegistry, default_registry
from .tools.rules import DEFAULT_POLICY

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")


class Runtime:
    """Registry, planner, executor and agents shared by every request."""

    def __init__(self, registry: ToolRegistry, executor_config: ExecutorConfig,
                 locales: Optional[List[str]] = None, agent_config: Optional[AgentConfig] = None):
        self.registry = registry
        policy = DEFAULT_POLICY.for_locales(locales) if locales else DEFAULT_POLICY
        self.planner = ToolPlanner.from_registry(registry, policy=policy)
        self.executor = ToolExecutor(registry, executor_config)
        agent_config = agent_config or AgentConfig()
        self.agents = {
            "echo": ToolCallingAgent(self.executor, agent_config),
            "rules": PlanningAgent(self.executor, self.planner, agent_config),
        }


@lru_cache(maxsize=1)
def get_runtime() -> Runtime:
    return Runtime(
        default_registry(),
        ExecutorConfig.from_settings(settings),
        locales=settings.locales,
        agent_config=AgentConfig(max_iterations=settings.agent_max_iterations),
    )


# ── Pydantic schemas ──────────────────────────────────────────

class TaskRequest(BaseModel):
    task: str


class StepModel(BaseModel):
    tool: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    reason: str = ""
    parameter_hints: Optional[Dict[str, str]] = None

    @classmethod
    def from_step(cls, step: PlanStep) -> "StepModel":
        return cls(tool=step.tool, parameters=step.parameters, reason=step.reason,
                   parameter_hints=step.parameter_hints)

    def to_step(self) -> PlanStep:
        return PlanStep(tool=self.tool, parameters=dict(self.parameters), reason=self.reason,
                        parameter_hints=self.parameter_hints)


class ValidateRequest(BaseModel):
    steps: List[StepModel]


class ValidationOut(BaseModel):
    valid: bool
    errors: List[str]


class PlanOut(BaseModel):
    steps: List[StepModel]
    validation: ValidationOut


class SelectionOut(BaseModel):
    tools: List[str]
    reasoning: str


class CompletedStepModel(BaseModel):
    tool: str
    result: str = ""


class NextStepRequest(BaseModel):
    original_task: str
    completed_steps: List[CompletedStepModel] = Field(default_factory=list)


class NextStepOut(BaseModel):
    step: Optional[StepModel] = None


class ToolResultOut(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: ToolResult) -> "ToolResultOut":
        return cls(**result.to_dict())


class ExecuteRequest(BaseModel):
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    working_directory: Optional[str] = None
    timeout_ms: Optional[int] = Field(None, gt=0)


class CallModel(BaseModel):
    id: str
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class CallResponseOut(BaseModel):
    id: str
    name: str
    result: ToolResultOut

    @classmethod
    def from_response(cls, resp: ToolCallResponse) -> "CallResponseOut":
        return cls(id=resp.id, name=resp.name, result=ToolResultOut.from_result(resp.result))


class BatchRequest(BaseModel):
    requests: List[CallModel]


class AgentRunRequest(BaseModel):
    task: str
    planner: Literal["echo", "rules"] = "rules"


class AgentRunOut(BaseModel):
    success: bool
    tool_results: List[CallResponseOut]
    final_output: Optional[str] = None
    error: Optional[str] = None
    next_step: Optional[StepModel] = None


# ── Tools ─────────────────────────────────────────────────────

@router.get("/tools")
async def list_tools(rt: Runtime = Depends(get_runtime)):
    return {
        "tools": [d.to_dict() for d in rt.registry.definitions()],
        "text": rt.registry.tool_descriptions(),
    }


@router.get("/tools/{name}")
async def get_tool(name: str, rt: Runtime = Depends(get_runtime)):
    tool = rt.registry.get(name)
    if not tool:
        raise HTTPException(status_code=404, detail=f"Tool not found: {name}")
    return tool.get_definition().to_dict()


@router.post("/tools/execute", response_model=ToolResultOut)
async def execute_tool(req: ExecuteRequest, rt: Runtime = Depends(get_runtime)):
    workdir = req.working_directory or settings.workspace_root or None
    if req.timeout_ms:
        result = await rt.executor.execute_with_timeout(req.name, req.arguments, req.timeout_ms, workdir)
    else:
        result = await rt.executor.execute(req.name, req.arguments, workdir)
    return ToolResultOut.from_result(result)


@router.post("/tools/batch", response_model=List[CallResponseOut])
async def execute_batch(req: BatchRequest, rt: Runtime = Depends(get_runtime)):
    requests = [ToolCallRequest(id=c.id, name=c.name, arguments=c.arguments) for c in req.requests]
    responses = await rt.executor.execute_batch(requests)
    return [CallResponseOut.from_response(r) for r in responses]


# ── Planning ──────────────────────────────────────────────────

@router.post("/plan", response_model=PlanOut)
async def create_plan(req: TaskRequest, rt: Runtime = Depends(get_runtime)):
    plan = rt.planner.create_plan(req.task)
    check = rt.planner.validate_plan(plan)
    return PlanOut(
        steps=[StepModel.from_step(s) for s in plan.steps],
        validation=ValidationOut(valid=check.valid, errors=check.errors),
    )


@router.post("/plan/select", response_model=SelectionOut)
async def select_tools(req: TaskRequest, rt: Runtime = Depends(get_runtime)):
    selection = rt.planner.select_tools(req.task)
    return SelectionOut(tools=[t.name for t in selection.tools], reasoning=selection.reasoning)


@router.post("/plan/validate", response_model=ValidationOut)
async def validate_plan(req: ValidateRequest, rt: Runtime = Depends(get_runtime)):
    check = rt.planner.validate_plan(ToolPlan(steps=[s.to_step() for s in req.steps]))
    return ValidationOut(valid=check.valid, errors=check.errors)


@router.post("/plan/next", response_model=NextStepOut)
async def suggest_next(req: NextStepRequest, rt: Runtime = Depends(get_runtime)):
    context = ExecutionContext(
        original_task=req.original_task,
        completed_steps=[CompletedStep(tool=s.tool, result=s.result) for s in req.completed_steps],
    )
    step = rt.planner.suggest_next_tool(context)
    return NextStepOut(step=StepModel.from_step(step) if step else None)


# ── Agent ─────────────────────────────────────────────────────

@router.post("/agent/run", response_model=AgentRunOut)
async def run_agent(req: AgentRunRequest, rt: Runtime = Depends(get_runtime)):
    result = await rt.agents[req.planner].run(req.task)
    return AgentRunOut(
        success=result.success,
        tool_results=[CallResponseOut.from_response(r) for r in result.tool_results],
        final_output=result.final_output,
        error=result.error,
        next_step=StepModel.from_step(result.next_step) if result.next_step else None,
    )
