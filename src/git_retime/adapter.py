"""Git adapter - wraps the git commands git-retime needs."""

import datetime
import logging
import os
import shlex
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from .errors import GitCommandError
from .timestamp import parse_git

logger = logging.getLogger(__name__)

# Timeout constants (seconds)
TIMEOUT_FAST = 5       # rev-parse, var
TIMEOUT_DEFAULT = 30   # log
TIMEOUT_LONG = 300     # rebase

# git log separators: unit separator between fields, record separator between commits
FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"
LOG_FORMAT = FIELD_SEP.join(["%H", "%h", "%aI", "%cI", "%s", "%b"]) + RECORD_SEP

DEFAULT_EDITOR = "vi"


def _parse_lines(output: str) -> list[str]:
    """Parse stdout into non-empty lines."""
    return [line for line in output.strip().split("\n") if line]


@dataclass
class CommitRecord:
    """Snapshot of one commit in the range being retimed."""

    hash: str
    short_hash: str
    author_date: datetime.datetime
    commit_date: datetime.datetime
    subject: str
    body: str = ""


@dataclass
class CommitRange:
    """Commits to retime (oldest first) and where the rebase starts."""

    commits: list[CommitRecord] = field(default_factory=list)
    base: str | None = None
    needs_root: bool = False


@dataclass
class RetimeResult:
    """Result of a history rewrite."""

    success: bool
    message: str
    commits_processed: int = 0
    commits_rewritten: int = 0
    dry_run: bool = False
    error: str | None = None


def parse_log_output(output: str) -> list[CommitRecord]:
    """Parse `git log --format=LOG_FORMAT` output."""
    commits = []
    for record in output.split(RECORD_SEP):
        record = record.strip()
        if not record:
            continue

        fields = record.split(FIELD_SEP, 5)
        if len(fields) < 5:
            raise GitCommandError("log", f"unexpected output: {record!r}")

        try:
            author_date = parse_git(fields[2])
            commit_date = parse_git(fields[3])
        except ValueError as e:
            raise GitCommandError("log", f"cannot parse date in {record!r}: {e}") from e

        commits.append(CommitRecord(
            hash=fields[0].strip(),
            short_hash=fields[1].strip(),
            author_date=author_date,
            commit_date=commit_date,
            subject=fields[4].strip(),
            body=fields[5].strip() if len(fields) == 6 else "",
        ))
    return commits


class GitRetimeAdapter:
    """Adapter for the git commands used to retime a range of commits."""

    def __init__(self, repo_path: str = "."):
        self.repo_path = Path(repo_path).resolve()
        self._check_git()
        self._validate_repo()

    def _check_git(self) -> None:
        """Check if git is installed."""
        if not shutil.which("git"):
            raise RuntimeError("git is not installed or not on PATH")

    def _validate_repo(self) -> None:
        """Validate that the path is inside a git work tree."""
        result = self._run_command(
            ["git", "rev-parse", "--is-inside-work-tree"], check=False, timeout=TIMEOUT_FAST
        )
        if result.returncode != 0 or result.stdout.strip() != "true":
            raise ValueError(f"Not a git repository: {self.repo_path}")

    def _run_command(
        self,
        args: list[str],
        check: bool = True,
        timeout: int = TIMEOUT_DEFAULT,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        """Run a command in the repo directory."""
        try:
            return subprocess.run(
                args, cwd=self.repo_path, capture_output=True, text=True,
                check=check, timeout=timeout, env=env,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"timeout {timeout}s: {' '.join(args[:2])}")
            raise

    def _run_git(self, *args: str, timeout: int = TIMEOUT_DEFAULT) -> subprocess.CompletedProcess:
        """Run a git command, raising GitCommandError on failure."""
        try:
            return self._run_command(["git", *args], timeout=timeout)
        except subprocess.CalledProcessError as e:
            raise GitCommandError(args[0], f"exit status {e.returncode}", e.stderr) from e

    def _run_git_fast(self, *args: str) -> subprocess.CompletedProcess:
        """Run a quick git command with short timeout."""
        return self._run_git(*args, timeout=TIMEOUT_FAST)

    def git_dir(self) -> Path:
        """Path of the repository's git directory."""
        git_dir = Path(self._run_git_fast("rev-parse", "--git-dir").stdout.strip())
        return git_dir if git_dir.is_absolute() else self.repo_path / git_dir

    def resolve_revision(self, revision: str) -> str:
        """Resolve a revision expression to a full commit hash."""
        try:
            return self._run_git_fast("rev-parse", "--verify", f"{revision}^{{commit}}").stdout.strip()
        except GitCommandError as e:
            raise GitCommandError("rev-parse", f"cannot resolve revision {revision!r}", e.stderr) from e

    def _has_parent(self, commit_hash: str) -> bool:
        result = self._run_command(
            ["git", "rev-parse", "--verify", "--quiet", f"{commit_hash}^"],
            check=False, timeout=TIMEOUT_FAST,
        )
        return result.returncode == 0

    def _fetch_log(self, *range_args: str) -> list[CommitRecord]:
        result = self._run_git("log", f"--format={LOG_FORMAT}", "--reverse", *range_args)
        return parse_log_output(result.stdout)

    def fetch_commits(self, revision: str) -> CommitRange:
        """
        Fetch the commits to retime, oldest first.

        Like `git rebase -i`, the revision is the exclusive base. If it is the
        root commit it is included too and the range needs `--root`.
        """
        resolved = self.resolve_revision(revision)
        after = self._fetch_log(f"{resolved}..HEAD")

        if not self._has_parent(resolved):
            root = self._fetch_log("-1", resolved)
            logger.debug(f"range includes root commit {resolved[:7]}")
            return CommitRange(commits=root + after, base=None, needs_root=True)

        return CommitRange(commits=after, base=resolved, needs_root=False)

    def has_merge_commits(self, base: str | None) -> bool:
        """Check whether the range after base contains merge commits."""
        range_arg = f"{base}..HEAD" if base else "HEAD"
        return bool(_parse_lines(self._run_git("log", "--merges", "--format=%H", range_arg).stdout))

    def get_editor(self) -> str:
        """Editor as git resolves it (GIT_EDITOR, core.editor, VISUAL, EDITOR)."""
        try:
            editor = self._run_git_fast("var", "GIT_EDITOR").stdout.strip()
        except GitCommandError as e:
            raise GitCommandError("var", "cannot determine editor", e.stderr) from e
        return editor or DEFAULT_EDITOR

    def open_editor(self, editor: str, file_path: Path) -> None:
        """Run the editor on file_path attached to the user's terminal."""
        args = shlex.split(editor)
        if not args:
            raise GitCommandError("editor", "empty editor command")

        result = subprocess.run([*args, str(file_path)], cwd=self.repo_path)
        if result.returncode != 0:
            raise GitCommandError("editor", f"{args[0]} exited with status {result.returncode}")

    def execute_rebase(self, script: str, base: str | None, needs_root: bool) -> RetimeResult:
        """
        Run a headless `git rebase -i` with script as its todo list.

        On failure the rebase is aborted so the branch is left as it was.
        """
        if not needs_root and not base:
            raise ValueError("execute_rebase needs a base commit unless needs_root is set")
        commit_count = sum(1 for line in script.splitlines() if line.startswith("pick "))

        with tempfile.NamedTemporaryFile(mode="w", suffix=".todo", prefix="git-retime-", delete=False) as f:
            f.write(script)
            script_path = f.name

        try:
            args = ["git", "rebase", "-i", "--rebase-merges"]
            args.append("--root" if needs_root else base)

            env = os.environ.copy()
            env["GIT_SEQUENCE_EDITOR"] = f"cp {shlex.quote(script_path)}"

            try:
                result = self._run_command(args, check=False, timeout=TIMEOUT_LONG, env=env)
            except subprocess.TimeoutExpired:
                return self._abort_after_failure(f"rebase timed out after {TIMEOUT_LONG}s")
            if result.returncode != 0:
                logger.warning(f"rebase failed: {result.stderr.strip()}")
                return self._abort_after_failure(result.stderr)

            return RetimeResult(
                success=True,
                message=f"Successfully retimed {commit_count} commits",
                commits_processed=commit_count,
                commits_rewritten=commit_count,
            )
        finally:
            Path(script_path).unlink(missing_ok=True)

    def _abort_after_failure(self, rebase_error: str) -> RetimeResult:
        abort = self._run_command(["git", "rebase", "--abort"], check=False)
        if abort.returncode != 0:
            return RetimeResult(
                success=False,
                message="Rebase failed and rebase --abort failed too",
                error=f"{rebase_error.strip()}\n{abort.stderr.strip()}",
            )
        return RetimeResult(
            success=False,
            message="Rebase failed (auto-aborted), repository restored to its original state",
            error=rebase_error.strip(),
        )

    def create_backup(self) -> str:
        """Create a backup branch before rewriting."""
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_branch = f"backup_{timestamp}"

        self._run_git("branch", backup_branch)
        return backup_branch

    def restore_backup(self, backup_branch: str) -> RetimeResult:
        """Restore from a backup branch."""
        try:
            current_branch = self._run_git("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()

            self._run_git("reset", "--hard", backup_branch)
            self._run_git("branch", "-D", backup_branch)

            return RetimeResult(
                success=True,
                message=f"Restored {current_branch} from {backup_branch}",
            )
        except GitCommandError as e:
            return RetimeResult(
                success=False,
                message="Failed to restore backup",
                error=str(e),
            )
