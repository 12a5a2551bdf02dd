"""Tests for rebase script compilation."""

import datetime
import shutil
import subprocess

import pytest

from git_retime.compiler import build_exec, compile_script, full_message, shell_quote
from git_retime.resolver import ResolvedCommit

UTC = datetime.timezone.utc
IST = datetime.timezone(datetime.timedelta(hours=5, minutes=30))


def resolved(short_hash="abc1234", subject="Fix navbar", new_subject=None, body="", author=None, committer=None):
    author = author or datetime.datetime(2026, 2, 23, 12, 0, tzinfo=UTC)
    return ResolvedCommit(
        hash=short_hash * 5,
        short_hash=short_hash,
        orig_author_date=author,
        orig_commit_date=author,
        subject=subject,
        body=body,
        new_subject=new_subject if new_subject is not None else subject,
        resolved_author_date=author,
        resolved_commit_date=committer or author,
    )


def printf_word(quoted: str) -> str:
    return f"\"$(printf '%b' {quoted})\""


_requires_sh = pytest.mark.skipif(shutil.which("sh") is None, reason="sh not available")


class TestShellQuote:
    def test_plain(self):
        assert shell_quote("Fix navbar") == printf_word("'Fix navbar'")

    def test_single_quote(self):
        assert shell_quote("don't") == printf_word("'don'\"'\"'t'")

    def test_backslash(self):
        assert shell_quote("a\\b") == printf_word(r"'a\\b'")

    def test_newline_and_tab_stay_on_one_line(self):
        quoted = shell_quote("a\n\tb")

        assert "\n" not in quoted
        assert "\t" not in quoted
        assert quoted == printf_word(r"'a\n\tb'")

    @_requires_sh
    @pytest.mark.parametrize(
        "message",
        [
            "Fix navbar",
            "Renamed it's config",
            "Subject\n\nBody line\n\tindented",
            'say "hi" to $HOME and `whoami`',
            "back\\slash and \\c and \\n literally",
            "-n leading dash",
        ],
    )
    def test_posix_sh_expands_back_to_message(self, message):
        result = subprocess.run(
            ["sh", "-c", f"printf '%s' {shell_quote(message)}"],
            capture_output=True, text=True, check=True,
        )
        assert result.stdout == message


class TestFullMessage:
    def test_subject_only(self):
        assert full_message(resolved(new_subject="New")) == "New"

    def test_subject_and_body(self):
        commit = resolved(new_subject="New", body="Line one\nLine two")
        assert full_message(commit) == "New\n\nLine one\nLine two"


class TestBuildExec:
    def test_preserves_message(self):
        line = build_exec(resolved())

        assert line == (
            'exec GIT_COMMITTER_DATE="2026-02-23T12:00:00Z" '
            'git commit --amend --no-edit --allow-empty --date="2026-02-23T12:00:00Z"'
        )

    def test_new_message(self):
        line = build_exec(resolved(new_subject="Fix the navbar", body="Closes #12"))

        assert "--no-edit" not in line
        assert line.endswith("-m " + printf_word(r"'Fix the navbar\n\nCloses #12'"))

    def test_committer_and_author_dates_are_separate(self):
        author = datetime.datetime(2026, 2, 23, 10, 0, tzinfo=IST)
        committer = datetime.datetime(2026, 2, 23, 18, 0, tzinfo=IST)

        line = build_exec(resolved(author=author, committer=committer))

        assert 'GIT_COMMITTER_DATE="2026-02-23T18:00:00+05:30"' in line
        assert '--date="2026-02-23T10:00:00+05:30"' in line

    def test_quotes_special_characters(self):
        line = build_exec(resolved(new_subject="It's a \\ test"))
        assert "-m " + printf_word("'It'\"'\"'s a \\\\ test'") in line


class TestCompileScript:
    def test_empty(self):
        assert compile_script([]) == ""

    def test_pick_and_exec_per_commit(self):
        commits = [resolved("abc1234", "First"), resolved("def5678", "Second")]

        lines = compile_script(commits).splitlines()

        assert len(lines) == 4
        assert lines[0] == "pick abc1234 First"
        assert lines[1].startswith("exec ")
        assert lines[2] == "pick def5678 Second"
        assert lines[3].startswith("exec ")

    def test_pick_uses_edited_subject(self):
        script = compile_script([resolved(subject="Old", new_subject="New")])
        assert script.startswith("pick abc1234 New\n")

    def test_trailing_newline(self):
        assert compile_script([resolved()]).endswith("\n")
