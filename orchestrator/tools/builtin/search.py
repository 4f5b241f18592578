"""Code search tool — literal substring search over text files."""
import asyncio
from pathlib import Path
from typing import List

from ..models import ToolContext, ToolParameter, ToolResult
from ..registry import register_tool
from .files import resolve_path

MAX_SEARCH_RESULTS = 200
_SKIP_DIRS = {".git", "__pycache__", "node_modules", ".venv", "venv"}


def _search(base: Path, root: Path, query: str, limit: int) -> List[str]:
    results: List[str] = []
    for path in sorted(base.rglob("*")):
        if not path.is_file() or _SKIP_DIRS.intersection(path.relative_to(base).parts):
            continue
        # symlinks may point outside the working directory
        try:
            path.resolve().relative_to(root)
        except ValueError:
            continue
        try:
            content = path.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            continue
        for line_no, line in enumerate(content.splitlines(), start=1):
            if query in line:
                results.append(f"{path.relative_to(root)}:{line_no}: {line.strip()}")
                if len(results) >= limit:
                    return results
    return results


@register_tool(
    "search_code",
    description="Search for code patterns in the codebase",
    params=[
        ToolParameter("query", description="Search query"),
        ToolParameter("directory", description="Directory to search, default the working directory",
                      required=False, default_value="."),
        ToolParameter("max_results", type="number", description="Maximum matches to return",
                      required=False, default_value=50),
    ],
    category="search",
)
async def search_code(context: ToolContext, query: str, directory: str = ".", max_results=50,
                      **kwargs) -> ToolResult:
    query = query.strip()
    if not query:
        return ToolResult.fail("Empty query")
    base = resolve_path(directory, context.working_directory)
    if base is None or not base.is_dir():
        return ToolResult.fail(f"Invalid directory: {directory}")

    limit = max(1, min(int(max_results), MAX_SEARCH_RESULTS))
    root = Path(context.working_directory).resolve()
    matches = await asyncio.to_thread(_search, base, root, query, limit)
    return ToolResult.ok({"query": query, "matches": matches}, truncated=len(matches) >= limit)
