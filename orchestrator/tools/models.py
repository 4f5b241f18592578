"""Tool data model — parameter schemas, contexts, results and call envelopes."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PARAM_TYPES = ("string", "number", "boolean", "object", "array")

# metadata["error_type"] values produced by the executor
ERROR_LOOKUP = "lookup"
ERROR_VALIDATION = "validation"
ERROR_EXECUTION = "execution"
ERROR_TIMEOUT = "timeout"


@dataclass
class ToolParameter:
    name: str
    type: str = "string"
    description: str = ""
    required: bool = True
    default_value: Any = None
    enum: Optional[List[str]] = None
    items: Optional["ToolParameter"] = None
    properties: Optional[Dict[str, "ToolParameter"]] = None

    def __post_init__(self):
        if self.type not in PARAM_TYPES:
            raise ValueError(f"Unsupported parameter type for {self.name}: {self.type}")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "required": self.required,
        }
        if self.default_value is not None:
            out["default_value"] = self.default_value
        if self.enum:
            out["enum"] = list(self.enum)
        if self.items is not None:
            out["items"] = self.items.to_dict()
        if self.properties:
            out["properties"] = {k: v.to_dict() for k, v in self.properties.items()}
        return out


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    parameters: List[ToolParameter] = field(default_factory=list)

    def required_parameters(self) -> List[str]:
        return [p.name for p in self.parameters if p.required]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
        }


@dataclass
class ToolContext:
    """Input of a single execution attempt. Built fresh for every attempt."""
    params: Dict[str, Any]
    working_directory: str
    timeout_ms: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any = None, **metadata) -> "ToolResult":
        return cls(success=True, data=data, metadata=dict(metadata))

    @classmethod
    def fail(cls, error: str, **metadata) -> "ToolResult":
        return cls(success=False, error=error, metadata=dict(metadata))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "metadata": dict(self.metadata),
        }


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class ToolCallRequest:
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolCallResponse:
    id: str
    name: str
    result: ToolResult
