"""Shell command tool — runs a command in the working directory."""
import asyncio
import logging

from ..models import ToolContext, ToolParameter, ToolResult
from ..registry import register_tool

logger = logging.getLogger(__name__)

MAX_OUTPUT_CHARS = 20000
DEFAULT_COMMAND_TIMEOUT_MS = 60000


def _decode(raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace")
    if len(text) > MAX_OUTPUT_CHARS:
        text = text[:MAX_OUTPUT_CHARS] + "\n... truncated ..."
    return text


@register_tool(
    "execute_command",
    description="Execute a shell command",
    params=[
        ToolParameter("command", description="Command to execute"),
        ToolParameter("timeout_ms", type="number", description="Kill the command after this many ms",
                      required=False),
    ],
    category="shell",
)
async def execute_command(context: ToolContext, command: str, timeout_ms=None, **kwargs) -> ToolResult:
    limit_ms = timeout_ms or context.timeout_ms or DEFAULT_COMMAND_TIMEOUT_MS
    logger.info(f"Running command in {context.working_directory}: {command}")
    proc = await asyncio.create_subprocess_shell(
        command,
        cwd=context.working_directory,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=limit_ms / 1000)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        return ToolResult.fail(f"Command timed out after {limit_ms}ms: {command}")
    except asyncio.CancelledError:
        # the executor cancelled us (cancel_on_timeout); don't leak the child
        proc.kill()
        await proc.wait()
        raise

    data = {"exit_code": proc.returncode, "stdout": _decode(stdout), "stderr": _decode(stderr)}
    if proc.returncode != 0:
        return ToolResult(success=False, data=data, error=f"Command exited with status {proc.returncode}")
    return ToolResult.ok(data)
