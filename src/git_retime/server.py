"""MCP Server for git-retime operations."""

import asyncio
import datetime
import json
import logging
from functools import wraps
from typing import Any, Callable

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .adapter import CommitRange, GitRetimeAdapter, RetimeResult
from .config import get_config
from .planner import RetimePlan, plan_from_todo, plan_randomize, plan_shift
from .timestamp import format_git, format_local
from .todo import generate
from .tools import TOOL_DEFINITIONS

# Config and logging
config = get_config()
logging.basicConfig(level=getattr(logging, config.server.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

server = Server("git-retime")


def result_to_dict(result: RetimeResult) -> dict:
    """RetimeResult -> dict"""
    return {
        "success": result.success, "message": result.message,
        "commits_processed": result.commits_processed, "commits_rewritten": result.commits_rewritten,
        "dry_run": result.dry_run, "error": result.error,
    }


def plan_to_dict(plan: RetimePlan) -> dict:
    """RetimePlan -> dict"""
    return {
        "commits": [
            {
                "hash": c.short_hash,
                "subject": c.new_subject or c.subject,
                "subject_changed": c.subject_changed,
                "original_author_date": format_local(c.orig_author_date),
                "author_date": format_git(c.resolved_author_date),
                "committer_date": format_git(c.resolved_commit_date),
            }
            for c in plan.commits
        ],
        "paradoxes": plan.paradoxes,
        "script": plan.script,
    }


def create_adapter(repo_path: str) -> GitRetimeAdapter:
    """Create adapter with proper error handling."""
    return GitRetimeAdapter(repo_path)


def fetch_range(adapter: GitRetimeAdapter, revision: str) -> CommitRange:
    commit_range = adapter.fetch_commits(revision)
    if not commit_range.commits:
        raise ValueError(f"No commits after {revision}")
    return commit_range


def handle_errors(tool_name: str):
    """Decorator for consistent error handling in tool handlers."""
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (ValueError, RuntimeError) as e:
                return {"success": False, "error": str(e)}
            except Exception as e:
                logger.exception(f"{tool_name} failed")
                return {"success": False, "error": str(e)}
        return wrapper
    return decorator


@server.list_tools()
async def list_tools() -> list[Tool]:
    """Return tool list."""
    return [
        Tool(
            name=tool["name"],
            description=tool["description"],
            inputSchema=tool["inputSchema"],
        )
        for tool in TOOL_DEFINITIONS
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool call."""
    try:
        result = await _execute_tool(name, arguments)
        return [TextContent(type="text", text=json.dumps(result, indent=2, ensure_ascii=False))]
    except Exception as e:
        logger.exception(f"{name} failed")
        return [TextContent(type="text", text=json.dumps({"error": str(e), "success": False}, indent=2))]


def _apply_plan(adapter: GitRetimeAdapter, commit_range: CommitRange, plan: RetimePlan, dry_run: bool) -> dict:
    """Run plan's script, or describe it on dry run."""
    if dry_run:
        return {
            "success": True,
            "dry_run": True,
            "message": f"Dry run: {len(plan.commits)} commits would be retimed",
            **plan_to_dict(plan),
        }

    backup = adapter.create_backup() if config.server.auto_backup else None
    result = adapter.execute_rebase(plan.script, commit_range.base, commit_range.needs_root)

    response = result_to_dict(result)
    if backup:
        response["backup_branch"] = backup
    return response


@handle_errors("list_commits")
async def _list_commits(args: dict[str, Any]) -> dict:
    commit_range = fetch_range(create_adapter(args["repo_path"]), args["revision"])
    split_dates = args.get("split_dates", config.retime.split_dates)
    return {
        "success": True,
        "base": commit_range.base,
        "needs_root": commit_range.needs_root,
        "total_commits": len(commit_range.commits),
        "commits": [
            {
                "hash": c.short_hash,
                "subject": c.subject,
                "author_date": format_local(c.author_date),
                "committer_date": format_local(c.commit_date),
            }
            for c in commit_range.commits
        ],
        "todo": generate(commit_range.commits, commit_range.base, split_dates),
    }


@handle_errors("preview_retime")
async def _preview_retime(args: dict[str, Any]) -> dict:
    commit_range = fetch_range(create_adapter(args["repo_path"]), args["revision"])
    now = datetime.datetime.now().astimezone().replace(microsecond=0)

    split_dates = args.get("split_dates", config.retime.split_dates)
    plan = plan_from_todo(args["todo"], commit_range.commits, now, split_dates)
    if plan is None:
        return {"success": True, "aborted": True, "message": "Todo is empty or starts with ABORT"}
    return {"success": True, "aborted": False, **plan_to_dict(plan)}


@handle_errors("apply_retime")
async def _apply_retime(args: dict[str, Any]) -> dict:
    dry_run = args.get("dry_run", config.server.default_dry_run)
    adapter = create_adapter(args["repo_path"])
    commit_range = fetch_range(adapter, args["revision"])
    now = datetime.datetime.now().astimezone().replace(microsecond=0)

    split_dates = args.get("split_dates", config.retime.split_dates)
    plan = plan_from_todo(args["todo"], commit_range.commits, now, split_dates)
    if plan is None:
        return {"success": False, "error": "Todo is empty or starts with ABORT, nothing to apply"}

    if plan.paradoxes and not dry_run and not args.get("allow_paradox", False):
        return {
            "success": False,
            "error": "Time paradox detected, set allow_paradox to apply anyway",
            "paradoxes": plan.paradoxes,
        }

    return _apply_plan(adapter, commit_range, plan, dry_run)


@handle_errors("shift_commits")
async def _shift_commits(args: dict[str, Any]) -> dict:
    dry_run = args.get("dry_run", config.server.default_dry_run)
    adapter = create_adapter(args["repo_path"])
    commit_range = fetch_range(adapter, args["revision"])

    plan = plan_shift(commit_range.commits, args["shift"])
    return _apply_plan(adapter, commit_range, plan, dry_run)


@handle_errors("randomize_commits")
async def _randomize_commits(args: dict[str, Any]) -> dict:
    dry_run = args.get("dry_run", config.server.default_dry_run)
    adapter = create_adapter(args["repo_path"])
    commit_range = fetch_range(adapter, args["revision"])

    plan = plan_randomize(commit_range.commits, args["time_range"], args.get("allow_paradox", False))
    return _apply_plan(adapter, commit_range, plan, dry_run)


@handle_errors("create_backup")
async def _create_backup(args: dict[str, Any]) -> dict:
    backup_branch = create_adapter(args["repo_path"]).create_backup()
    return {"success": True, "backup_branch": backup_branch, "message": f"Created backup branch: {backup_branch}"}


@handle_errors("restore_backup")
async def _restore_backup(args: dict[str, Any]) -> dict:
    return result_to_dict(create_adapter(args["repo_path"]).restore_backup(args["backup_branch"]))


TOOL_HANDLERS = {
    "list_commits": _list_commits,
    "preview_retime": _preview_retime,
    "apply_retime": _apply_retime,
    "shift_commits": _shift_commits,
    "randomize_commits": _randomize_commits,
    "create_backup": _create_backup,
    "restore_backup": _restore_backup,
}


async def _execute_tool(name: str, args: dict[str, Any]) -> dict:
    """Execute tool."""
    logger.info(f"tool: {name}")
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        return {"error": f"Unknown tool: {name}"}
    return await handler(args)


async def run_server():
    """Run MCP server."""
    logger.info("server starting")
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("ready")
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    except Exception:
        logger.exception("server error")
        raise


def main():
    """Entry point."""
    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        logger.info("stopped")
    except Exception:
        logger.exception("fatal")


if __name__ == "__main__":
    main()
