"""Auto-import builtin tool modules to trigger @register_tool decorators."""
from . import files
from . import search
from . import command
from . import echo
