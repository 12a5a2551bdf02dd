"""Compile resolved commits into a git rebase todo script."""

import shlex

from .resolver import ResolvedCommit
from .timestamp import format_git

# Backslash escapes understood by POSIX printf %b
_PRINTF_ESCAPES = str.maketrans({
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
})


def shell_quote(text: str) -> str:
    """
    Quote text as a single-line POSIX sh word that expands back to text.

    Git runs exec lines with /bin/sh and each todo line must stay on one line,
    so control characters are encoded for printf %b and the result is
    single-quoted.
    """
    return f"\"$(printf '%b' {shlex.quote(text.translate(_PRINTF_ESCAPES))})\""


def full_message(commit: ResolvedCommit) -> str:
    """New subject followed by the original body."""
    if commit.body:
        return f"{commit.new_subject}\n\n{commit.body}"
    return commit.new_subject


def build_exec(commit: ResolvedCommit) -> str:
    """
    The exec line that amends one commit.

    GIT_COMMITTER_DATE sets the committer date; --date sets the author date
    (GIT_AUTHOR_DATE is ignored by --amend).
    """
    author_date = format_git(commit.resolved_author_date)
    commit_date = format_git(commit.resolved_commit_date)

    parts = ["exec", f'GIT_COMMITTER_DATE="{commit_date}"']
    if commit.subject_changed:
        parts.append("git commit --amend --allow-empty")
        parts.append(f'--date="{author_date}"')
        parts.extend(["-m", shell_quote(full_message(commit))])
    else:
        parts.append("git commit --amend --no-edit --allow-empty")
        parts.append(f'--date="{author_date}"')
    return " ".join(parts)


def compile_script(commits: list[ResolvedCommit]) -> str:
    """One pick line and one exec line per commit, oldest first."""
    lines = []
    for commit in commits:
        subject = commit.new_subject or commit.subject
        lines.append(f"pick {commit.short_hash} {subject}")
        lines.append(build_exec(commit))
    return "".join(f"{line}\n" for line in lines)
