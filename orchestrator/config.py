from pydantic import BaseModel, Field
import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Load .env file if it exists (before reading os.getenv)
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                # Only set if not already in environment (env vars take precedence)
                if key not in os.environ:
                    os.environ[key] = value


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # Executor
    tool_timeout_ms: int = int(os.getenv("ORCH_TOOL_TIMEOUT_MS", "30000"))
    tool_max_retries: int = int(os.getenv("ORCH_TOOL_MAX_RETRIES", "3"))
    tool_retry_delay_ms: int = int(os.getenv("ORCH_TOOL_RETRY_DELAY_MS", "1000"))
    batch_max_concurrency: int = int(os.getenv("ORCH_BATCH_MAX_CONCURRENCY", "0"))  # 0 = unbounded
    cancel_on_timeout: bool = _env_bool("ORCH_CANCEL_ON_TIMEOUT")

    # Planner / agent
    planner_locales: str = os.getenv("ORCH_PLANNER_LOCALES", "en,zh")
    agent_max_iterations: int = int(os.getenv("ORCH_AGENT_MAX_ITERATIONS", "10"))

    # Tools resolve relative paths against this (empty = process cwd)
    workspace_root: str = os.getenv("ORCH_WORKSPACE_ROOT", "")

    # HTTP
    http_host: str = os.getenv("ORCH_HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("ORCH_HTTP_PORT", "8000"))
    log_level: str = os.getenv("ORCH_LOG_LEVEL", "INFO")

    @property
    def locales(self) -> List[str]:
        return [loc.strip() for loc in self.planner_locales.split(",") if loc.strip()]


class ExecutorConfig(BaseModel):
    """Per-executor configuration; fixed for the executor's lifetime."""

    model_config = {"frozen": True}

    timeout_ms: int = Field(30000, gt=0)
    max_retries: int = Field(3, ge=0)
    retry_delay_ms: int = Field(1000, ge=0)
    # None: execute_batch schedules every request at once
    max_concurrency: Optional[int] = Field(None, gt=0)
    # False: a timed-out execution keeps running in the background
    cancel_on_timeout: bool = False

    def merged(self, overrides: Optional[Dict[str, Any]] = None) -> "ExecutorConfig":
        """New config with ``overrides`` applied field by field (None values ignored)."""
        values = self.model_dump()
        for key, value in (overrides or {}).items():
            if key not in values:
                raise ValueError(f"Unknown executor option: {key}")
            if value is not None:
                values[key] = value
        return ExecutorConfig(**values)

    @classmethod
    def from_settings(cls, s: "Settings") -> "ExecutorConfig":
        return DEFAULT_EXECUTOR_CONFIG.merged({
            "timeout_ms": s.tool_timeout_ms,
            "max_retries": s.tool_max_retries,
            "retry_delay_ms": s.tool_retry_delay_ms,
            "max_concurrency": s.batch_max_concurrency or None,
            "cancel_on_timeout": s.cancel_on_timeout,
        })


DEFAULT_EXECUTOR_CONFIG = ExecutorConfig()

settings = Settings()

logger.info(
    f"Config: executor timeout={settings.tool_timeout_ms}ms retries={settings.tool_max_retries} "
    f"delay={settings.tool_retry_delay_ms}ms, planner locales={settings.locales}"
)
