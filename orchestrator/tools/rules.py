"""Rule tables for the rule-based planner.

Trigger words, per-tool keywords and extraction patterns are plain data keyed
by locale, so a deployment can restrict the recognised languages or swap the
whole policy without touching the planner or the executor.
"""
import re
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple

EXTRACT_PATH = "path"
EXTRACT_QUERY = "query"


@dataclass(frozen=True)
class CategoryRule:
    category: str
    tool: str
    triggers: Dict[str, Tuple[str, ...]]  # locale -> trigger words
    reason: str
    extractor: Optional[str] = None
    target_param: str = ""
    # hints emitted when the extractor finds nothing
    missing_hints: Dict[str, str] = field(default_factory=dict)
    # hints emitted regardless of extraction
    always_hints: Dict[str, str] = field(default_factory=dict)
    # filled alongside an extracted value (e.g. empty content for writes)
    placeholders: Dict[str, str] = field(default_factory=dict)

    def words(self, locales: Optional[Iterable[str]] = None) -> List[str]:
        selected = self.triggers if locales is None else {
            loc: words for loc, words in self.triggers.items() if loc in set(locales)
        }
        return [w for words in selected.values() for w in words]


@dataclass(frozen=True)
class NextStepRule:
    """Suggest ``tool`` when the task names ``category`` and ``tool`` has not run.

    ``requires`` gates the rule on a tool that already completed.
    """
    category: str
    tool: str
    hints: Dict[str, str]
    reason: str
    requires: Optional[str] = None


@dataclass(frozen=True)
class PlanningPolicy:
    categories: Tuple[CategoryRule, ...]
    tool_keywords: Dict[str, Dict[str, Tuple[str, ...]]]  # tool -> locale -> words
    path_patterns: Tuple[re.Pattern, ...]
    query_patterns: Tuple[re.Pattern, ...]
    next_steps: Tuple[NextStepRule, ...]
    locales: Tuple[str, ...] = ("en", "zh")

    def category(self, name: str) -> Optional[CategoryRule]:
        for rule in self.categories:
            if rule.category == name:
                return rule
        return None

    def trigger_words(self, category: str) -> List[str]:
        rule = self.category(category)
        return rule.words(self.locales) if rule else []

    def keywords_for(self, tool: str) -> List[str]:
        table = self.tool_keywords.get(tool, {})
        return [w for loc in self.locales for w in table.get(loc, ())]

    def for_locales(self, locales: Iterable[str]) -> "PlanningPolicy":
        wanted = tuple(loc for loc in locales if loc)
        unknown = [loc for loc in wanted if loc not in self.locales]
        if unknown:
            raise ValueError(f"Unsupported planner locale(s): {', '.join(unknown)}")
        return replace(self, locales=wanted)


_FILE_HINT_READ = {"path": "File path to read"}
_FILE_HINTS_WRITE = {"path": "File path to write", "content": "Content to write"}

CATEGORIES = (
    CategoryRule(
        category="read",
        tool="read_file",
        triggers={"en": ("read",), "zh": ("查看", "读取")},
        reason="Read file contents as requested",
        extractor=EXTRACT_PATH,
        target_param="path",
        missing_hints=_FILE_HINT_READ,
    ),
    CategoryRule(
        category="write",
        tool="write_file",
        triggers={"en": ("write", "create"), "zh": ("创建", "写入")},
        reason="Write to file as requested",
        extractor=EXTRACT_PATH,
        target_param="path",
        always_hints=_FILE_HINTS_WRITE,
        placeholders={"content": ""},
    ),
    CategoryRule(
        category="search",
        tool="search_code",
        triggers={"en": ("search", "find"), "zh": ("查找", "搜索")},
        reason="Search codebase as requested",
        extractor=EXTRACT_QUERY,
        target_param="query",
        missing_hints={"query": "Search query"},
    ),
    CategoryRule(
        category="execute",
        tool="execute_command",
        triggers={"en": ("execute", "run"), "zh": ("执行", "运行")},
        reason="Execute command as requested",
        always_hints={"command": "Command to execute"},
    ),
)

TOOL_KEYWORDS = {
    "read_file": {"en": ("read", "file", "content"), "zh": ("查看", "读取", "文件")},
    "write_file": {"en": ("write", "create", "file", "save"), "zh": ("写入", "创建", "保存")},
    "search_code": {"en": ("search", "find", "look"), "zh": ("查找", "搜索", "寻找")},
    "execute_command": {"en": ("execute", "run", "command", "shell"), "zh": ("执行", "运行", "命令")},
}

# Quoted path before bare name.ext
PATH_PATTERNS = (
    re.compile(r"""['"]([^'"]+\.[a-zA-Z]+)['"]"""),
    re.compile(r"\b([a-zA-Z0-9_\-/]+\.[a-zA-Z]{1,4})\b"),
)

# Fallback after the verb pattern: a quoted literal anywhere
QUERY_PATTERNS = (
    re.compile(r"""['"]([^'"]+)['"]"""),
)


def query_verb_pattern(words: Iterable[str]) -> Optional[re.Pattern]:
    """Text following one of ``words``; None when no word is enabled.

    Latin verbs need whitespace before the query, CJK verbs do not.
    """
    words = list(words)
    spaced = "|".join(re.escape(w) for w in words if w.isascii())
    joined = "|".join(re.escape(w) for w in words if not w.isascii())
    verbs = [alt for alt in (spaced and rf"(?:{spaced})\s+", joined and rf"(?:{joined})\s*") if alt]
    if not verbs:
        return None
    return re.compile(rf"""(?:{'|'.join(verbs)})(?:for\s+)?['"]?([^'"]+)['"]?""", re.IGNORECASE)

NEXT_STEPS = (
    NextStepRule("read", "read_file", dict(_FILE_HINT_READ), "Read file as next step"),
    NextStepRule("search", "search_code", {"query": "Search query"}, "Search as next step"),
    NextStepRule(
        "write", "write_file", {"path": "File path", "content": "Content to write"},
        "Write file after reading", requires="read_file",
    ),
)

DEFAULT_POLICY = PlanningPolicy(
    categories=CATEGORIES,
    tool_keywords=TOOL_KEYWORDS,
    path_patterns=PATH_PATTERNS,
    query_patterns=QUERY_PATTERNS,
    next_steps=NEXT_STEPS,
)


def _strip_punctuation(text: str) -> str:
    """Strip trailing Chinese/English punctuation from text."""
    return text.rstrip("。！？，、；：…—.!?,;:")


def extract_path(text: str, policy: PlanningPolicy = DEFAULT_POLICY) -> Optional[str]:
    for pattern in policy.path_patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def extract_query(text: str, policy: PlanningPolicy = DEFAULT_POLICY) -> Optional[str]:
    verbs = [w for rule in policy.categories if rule.extractor == EXTRACT_QUERY for w in rule.words(policy.locales)]
    verb_pattern = query_verb_pattern(verbs)
    patterns = ([verb_pattern] if verb_pattern else []) + list(policy.query_patterns)
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            query = _strip_punctuation(match.group(1).strip())
            if query:
                return query
    return None
