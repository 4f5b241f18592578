"""Exception types raised across the orchestrator package.

Tool failures never surface as exceptions to callers of the executor or the
agent; these are for registry misuse and for tools that want to signal a
retryable failure explicitly.
"""


class OrchestratorError(Exception):
    """Base error with a machine-readable code."""

    def __init__(self, code: str, message: str, **extra):
        self.code = code
        self.message = message
        self.extra = extra
        super().__init__(message)


class DuplicateToolError(OrchestratorError):
    def __init__(self, name: str):
        super().__init__("TOOL_DUPLICATE", f"Tool already registered: {name}", tool=name)


class RegistryFrozenError(OrchestratorError):
    def __init__(self, name: str):
        super().__init__("REGISTRY_FROZEN", f"Registry is frozen, cannot register: {name}", tool=name)


class ToolExecutionError(OrchestratorError):
    """Raised by a tool when an attempt failed and may be retried."""

    def __init__(self, message: str, **extra):
        super().__init__("TOOL_EXECUTION_FAILED", message, **extra)
