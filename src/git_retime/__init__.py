"""git-retime - edit commit timestamps through an editable todo file."""

__version__ = "0.1.0"

from .adapter import CommitRange, CommitRecord, GitRetimeAdapter, RetimeResult
from .compiler import compile_script
from .config import Config, RetimeConfig, ServerConfig, get_config, reload_config
from .errors import (
    ResolveError,
    RetimeError,
    RetimeInputError,
    StructureError,
    TokenSyntaxError,
)
from .planner import RetimePlan, find_paradoxes, plan_from_todo, plan_randomize, plan_shift
from .resolver import EditToken, ResolvedCommit, TokenKind, parse_token, resolve_all
from .timestamp import contains_rr, format_git, format_local, parse_local, parse_shift, resolve_rr
from .todo import TodoEntry, generate, is_abort, parse, validate_structure

__all__ = [
    # Version
    "__version__",
    # Adapter
    "GitRetimeAdapter",
    "CommitRecord",
    "CommitRange",
    "RetimeResult",
    # Timestamps
    "parse_shift",
    "resolve_rr",
    "contains_rr",
    "format_local",
    "parse_local",
    "format_git",
    # Resolver
    "TokenKind",
    "EditToken",
    "ResolvedCommit",
    "parse_token",
    "resolve_all",
    # Todo file
    "TodoEntry",
    "generate",
    "parse",
    "is_abort",
    "validate_structure",
    # Compiler and planner
    "compile_script",
    "RetimePlan",
    "plan_from_todo",
    "plan_shift",
    "plan_randomize",
    "find_paradoxes",
    # Config
    "Config",
    "RetimeConfig",
    "ServerConfig",
    "get_config",
    "reload_config",
    # Errors
    "RetimeError",
    "RetimeInputError",
    "TokenSyntaxError",
    "ResolveError",
    "StructureError",
]
