"""MCP tool definitions for git-retime operations."""

from pydantic import BaseModel, Field


class ListCommitsInput(BaseModel):
    """Input for list_commits tool."""

    repo_path: str = Field(description="Path to the git repository")
    revision: str = Field(description="Exclusive base revision, e.g. HEAD~5 (the root commit is included)")
    split_dates: bool = Field(default=False, description="Show author and committer dates as separate columns")


class PreviewRetimeInput(BaseModel):
    """Input for preview_retime tool."""

    repo_path: str = Field(description="Path to the git repository")
    revision: str = Field(description="Exclusive base revision used to generate the todo")
    todo: str = Field(description="Edited todo text (as returned by list_commits)")
    split_dates: bool = Field(default=False, description="The todo has separate author and committer columns")


class ApplyRetimeInput(BaseModel):
    """Input for apply_retime tool."""

    repo_path: str = Field(description="Path to the git repository")
    revision: str = Field(description="Exclusive base revision used to generate the todo")
    todo: str = Field(description="Edited todo text (as returned by list_commits)")
    split_dates: bool = Field(default=False, description="The todo has separate author and committer columns")
    allow_paradox: bool = Field(
        default=False, description="Apply even if a commit ends up older than its predecessor"
    )
    dry_run: bool = Field(default=True, description="If true, only show what would be changed")


class ShiftCommitsInput(BaseModel):
    """Input for shift_commits tool."""

    repo_path: str = Field(description="Path to the git repository")
    revision: str = Field(description="Exclusive base revision, e.g. HEAD~3")
    shift: str = Field(description="Signed offset such as +2h, -1d30m or +1w")
    dry_run: bool = Field(default=True, description="If true, only show what would be changed")


class RandomizeCommitsInput(BaseModel):
    """Input for randomize_commits tool."""

    repo_path: str = Field(description="Path to the git repository")
    revision: str = Field(description="Exclusive base revision, e.g. HEAD~3")
    time_range: str = Field(description="Time-of-day range HH:MM-HH:MM, e.g. 09:00-17:00")
    allow_paradox: bool = Field(
        default=False, description="Do not sort randomized times within each day"
    )
    dry_run: bool = Field(default=True, description="If true, only show what would be changed")


class CreateBackupInput(BaseModel):
    """Input for create_backup tool."""

    repo_path: str = Field(description="Path to the git repository")


class RestoreBackupInput(BaseModel):
    """Input for restore_backup tool."""

    repo_path: str = Field(description="Path to the git repository")
    backup_branch: str = Field(description="Name of the backup branch to restore")


TODO_SYNTAX = """Todo syntax (one line per commit, columns separated by two spaces):
  <hash>  <timestamp>  <message>
Timestamp column:
- leave unchanged: keep the original date
- 2026-02-23 14:00:00: absolute local time
- 2026-02-23 10:00:00 +2h: absolute time plus shift
- +2h, -30m, +1d2h30m: shift from the previous commit's new date
- PREV, PREV +45m: previous commit's original date (plus shift)
- NOW: current time
- RR / RR(08,17) in HH:MM:SS: random field"""


# Tool definitions for MCP registration
TOOL_DEFINITIONS = [
    {
        "name": "list_commits",
        "description": """List the commits after a revision and return the editable todo text.

Use this tool first. Edit the timestamp (and optionally message) columns of the
returned todo, then pass it to preview_retime or apply_retime.""",
        "inputSchema": ListCommitsInput.model_json_schema(),
    },
    {
        "name": "preview_retime",
        "description": f"""Resolve an edited todo without touching the repository.

Returns the resolved dates, paradox warnings and the rebase script.

{TODO_SYNTAX}""",
        "inputSchema": PreviewRetimeInput.model_json_schema(),
    },
    {
        "name": "apply_retime",
        "description": f"""Rewrite commit dates (and edited messages) from an edited todo.

Do not delete or reorder commit lines.

{TODO_SYNTAX}

IMPORTANT: Always use dry_run=true first to preview changes!""",
        "inputSchema": ApplyRetimeInput.model_json_schema(),
    },
    {
        "name": "shift_commits",
        "description": """Shift the author and committer dates of every commit after a revision.

Units: w=weeks, d=days, h=hours, m=minutes, s=seconds. Compound: +1d2h30m.

IMPORTANT: Always use dry_run=true first to preview changes!""",
        "inputSchema": ShiftCommitsInput.model_json_schema(),
    },
    {
        "name": "randomize_commits",
        "description": """Randomize the time of day of every commit after a revision.

Each commit keeps its calendar date. Times are sorted within each day
unless allow_paradox is true.

IMPORTANT: Always use dry_run=true first to preview changes!""",
        "inputSchema": RandomizeCommitsInput.model_json_schema(),
    },
    {
        "name": "create_backup",
        "description": """Create a backup branch before making changes.

Always recommended before any rewrite operation.
Returns the backup branch name for later restoration.""",
        "inputSchema": CreateBackupInput.model_json_schema(),
    },
    {
        "name": "restore_backup",
        "description": """Restore repository from a backup branch.

Use this to undo changes made by rewrite operations.""",
        "inputSchema": RestoreBackupInput.model_json_schema(),
    },
]
