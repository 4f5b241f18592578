"""Rule-based tool planner.

Turns free text into an ordered list of plan steps by matching fixed trigger
words (see rules.py). This is keyword decomposition, not understanding: every
triggered category contributes one step, in category order, with no
dependency analysis between steps.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import ToolDefinition, ValidationResult
from .rules import DEFAULT_POLICY, EXTRACT_PATH, EXTRACT_QUERY, CategoryRule, PlanningPolicy, extract_path, extract_query

logger = logging.getLogger(__name__)

NO_MATCH_REASONING = "No specific tools matched, returning all available tools for user selection"


@dataclass
class PlanStep:
    tool: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    reason: str = ""
    parameter_hints: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"tool": self.tool, "parameters": dict(self.parameters), "reason": self.reason}
        if self.parameter_hints:
            out["parameter_hints"] = dict(self.parameter_hints)
        return out


@dataclass
class ToolPlan:
    steps: List[PlanStep] = field(default_factory=list)


@dataclass
class ToolSelection:
    tools: List[ToolDefinition]
    reasoning: str


@dataclass
class CompletedStep:
    tool: str
    result: str = ""


@dataclass
class ExecutionContext:
    original_task: str
    completed_steps: List[CompletedStep] = field(default_factory=list)


def _find_first(text: str, words: List[str]) -> int:
    """Index of the earliest occurrence of any word, -1 if none occurs."""
    positions = [text.find(w) for w in words]
    positions = [p for p in positions if p >= 0]
    return min(positions) if positions else -1


class ToolPlanner:
    def __init__(self, tools: List[ToolDefinition], policy: Optional[PlanningPolicy] = None):
        self.policy = policy or DEFAULT_POLICY
        self._tools: Dict[str, ToolDefinition] = {t.name: t for t in tools}

    @classmethod
    def from_registry(cls, registry, policy: Optional[PlanningPolicy] = None) -> "ToolPlanner":
        return cls(registry.definitions(), policy=policy)

    def get_available_tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def select_tools(self, task: str) -> ToolSelection:
        """Tools whose description or keyword table appears in the task.

        Never empty: with no match, every tool is returned.
        """
        task_lower = task.lower()
        selected: List[ToolDefinition] = []
        reasons: List[str] = []

        for name, tool in self._tools.items():
            if self._description_matches(tool, task_lower) or self._keywords_match(name, task_lower):
                selected.append(tool)
                reasons.append(f"Tool '{name}' matches task keywords")

        if not selected:
            return ToolSelection(tools=list(self._tools.values()), reasoning=NO_MATCH_REASONING)
        return ToolSelection(tools=selected, reasoning="; ".join(reasons))

    def create_plan(self, task: str) -> ToolPlan:
        task_lower = task.lower()
        steps: List[PlanStep] = []

        for rule in self.policy.categories:
            start = _find_first(task_lower, rule.words(self.policy.locales))
            if start < 0:
                continue
            # slice the original text only when lowercasing kept offsets intact
            segment = task[start:] if len(task) == len(task_lower) else task
            steps.append(self._step_for(rule, segment, task))

        if not steps:
            selection = self.select_tools(task)
            if selection.tools:
                top = selection.tools[0]
                steps.append(PlanStep(
                    tool=top.name,
                    parameters={},
                    parameter_hints=self._parameter_hints(top),
                    reason="Suggested tool based on task analysis",
                ))

        logger.debug(f"Plan for {task!r}: {[s.tool for s in steps]}")
        return ToolPlan(steps=steps)

    def suggest_next_tool(self, context: ExecutionContext) -> Optional[PlanStep]:
        """At most one follow-up step; None tells the caller to stop."""
        task_lower = context.original_task.lower()
        completed = {s.tool for s in context.completed_steps}

        for rule in self.policy.next_steps:
            if rule.tool in completed:
                continue
            if rule.requires and rule.requires not in completed:
                continue
            if _find_first(task_lower, self.policy.trigger_words(rule.category)) < 0:
                continue
            return PlanStep(
                tool=rule.tool,
                parameters={},
                parameter_hints=dict(rule.hints),
                reason=rule.reason,
            )
        return None

    def validate_plan(self, plan: ToolPlan) -> ValidationResult:
        """Presence-only check: known tools and required parameter keys."""
        errors: List[str] = []
        for step in plan.steps:
            tool = self._tools.get(step.tool)
            if not tool:
                errors.append(f"Unknown tool: {step.tool}")
                continue
            for param in tool.parameters:
                if param.required and param.name not in step.parameters:
                    errors.append(f"Missing required parameter '{param.name}' for tool '{step.tool}'")
        return ValidationResult(valid=not errors, errors=errors)

    def _step_for(self, rule: CategoryRule, segment: str, task: str) -> PlanStep:
        value = None
        if rule.extractor == EXTRACT_PATH:
            value = extract_path(segment, self.policy) or extract_path(task, self.policy)
        elif rule.extractor == EXTRACT_QUERY:
            value = extract_query(segment, self.policy) or extract_query(task, self.policy)

        parameters: Dict[str, Any] = {}
        hints: Dict[str, str] = dict(rule.always_hints)
        if value:
            parameters[rule.target_param] = value
            parameters.update(rule.placeholders)
        else:
            hints.update(rule.missing_hints)

        return PlanStep(
            tool=rule.tool,
            parameters=parameters,
            parameter_hints=hints or None,
            reason=rule.reason,
        )

    @staticmethod
    def _description_matches(tool: ToolDefinition, task_lower: str) -> bool:
        keywords = [w for w in tool.description.lower().split() if len(w) > 3]
        return any(kw in task_lower for kw in keywords)

    def _keywords_match(self, name: str, task_lower: str) -> bool:
        return any(kw in task_lower for kw in self.policy.keywords_for(name))

    @staticmethod
    def _parameter_hints(tool: ToolDefinition) -> Dict[str, str]:
        return {p.name: p.description or p.name for p in tool.parameters}
