"""File tools — read and write text files under the working directory."""
import asyncio
import logging
from pathlib import Path
from typing import Optional

from ..models import ToolContext, ToolParameter, ToolResult
from ..registry import register_tool

logger = logging.getLogger(__name__)


def resolve_path(raw: str, working_directory: str) -> Optional[Path]:
    """Resolve ``raw`` against the working directory; None if it escapes it."""
    text = (raw or "").strip()
    if not text:
        return None
    root = Path(working_directory).expanduser().resolve()
    candidate = Path(text).expanduser()
    resolved = (candidate if candidate.is_absolute() else root / candidate).resolve()
    try:
        resolved.relative_to(root)
    except ValueError:
        return None
    return resolved


@register_tool(
    "read_file",
    description="Read the contents of a text file",
    params=[
        ToolParameter("path", description="File path to read, relative to the working directory"),
        ToolParameter("encoding", description="Text encoding", required=False, default_value="utf-8"),
    ],
    category="file",
)
async def read_file(context: ToolContext, path: str, encoding: str = "utf-8", **kwargs) -> ToolResult:
    target = resolve_path(path, context.working_directory)
    if target is None:
        return ToolResult.fail(f"Invalid path: {path}")
    if not target.is_file():
        return ToolResult.fail(f"File not found: {path}")

    try:
        content = await asyncio.to_thread(target.read_text, encoding=encoding)
    except LookupError:
        return ToolResult.fail(f"Unknown encoding: {encoding}")
    except UnicodeDecodeError as e:
        return ToolResult.fail(f"Cannot decode {path} as {encoding}: {e.reason} at byte {e.start}")
    return ToolResult.ok({"path": path, "content": content}, bytes=len(content.encode(encoding)))


@register_tool(
    "write_file",
    description="Write content to a file, creating parent directories",
    params=[
        ToolParameter("path", description="File path to write"),
        ToolParameter("content", description="Content to write"),
        ToolParameter("append", type="boolean", description="Append instead of overwrite",
                      required=False, default_value=False),
    ],
    category="file",
)
async def write_file(context: ToolContext, path: str, content: str, append: bool = False, **kwargs) -> ToolResult:
    target = resolve_path(path, context.working_directory)
    if target is None:
        return ToolResult.fail(f"Invalid path: {path}")
    if target.is_dir():
        return ToolResult.fail(f"Path is a directory: {path}")

    def _write() -> int:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "a" if append else "w", encoding="utf-8") as f:
            return f.write(content)

    written = await asyncio.to_thread(_write)
    logger.info(f"Wrote {written} chars to {target}")
    return ToolResult.ok({"path": path, "bytes": len(content.encode("utf-8"))})
