"""Exceptions raised by git-retime."""


class RetimeError(Exception):
    """Base class for all git-retime errors."""


class RetimeInputError(RetimeError, ValueError):
    """Error in user-edited input. The user can fix it and retry."""


class TokenSyntaxError(RetimeInputError):
    """Malformed text in a todo line or timestamp token."""


class ShiftSyntaxError(TokenSyntaxError):
    """Malformed shift expression such as '+2x'."""


class TimestampFormatError(TokenSyntaxError):
    """Timestamp does not match the 'YYYY-MM-DD HH:MM:SS' layout."""


class RandomFieldError(TokenSyntaxError):
    """Malformed RR marker or RR bounds."""


class ColumnCountError(TokenSyntaxError):
    """Todo line has too few columns."""

    def __init__(self, line: str, expected: int, found: int):
        self.line = line
        self.expected = expected
        self.found = found
        super().__init__(f"expected {expected} columns, got {found} in: {line!r}")


class MissingPredecessorError(RetimeInputError):
    """PREV or a bare shift was used on the first commit."""


class ResolveError(RetimeInputError):
    """A timestamp token could not be resolved for a specific commit."""

    def __init__(self, short_hash: str, column: str, cause: Exception):
        self.short_hash = short_hash
        self.column = column
        self.cause = cause
        super().__init__(f"commit {short_hash}: {column}: {cause}")


class StructureError(RetimeInputError):
    """Todo lines were deleted, added or reordered."""


class DeletedCommitsError(StructureError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            f"commit(s) deleted from todo file: {', '.join(missing)}\n"
            "git-retime only modifies timestamps, do not remove lines"
        )


class ExtraLinesError(StructureError):
    def __init__(self, expected: int, found: int):
        self.expected = expected
        self.found = found
        super().__init__(f"extra lines in todo file: expected {expected} commits, found {found}")


class ReorderedCommitsError(StructureError):
    def __init__(self, line: int, expected: str, found: str):
        self.line = line
        self.expected = expected
        self.found = found
        super().__init__(
            f"commit order changed at line {line}: expected {expected}, got {found}\n"
            "git-retime only modifies timestamps, do not reorder lines"
        )


class GitCommandError(RetimeError, RuntimeError):
    """A git command failed."""

    def __init__(self, command: str, message: str, stderr: str | None = None):
        self.command = command
        self.stderr = stderr
        detail = f"\n{stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"git {command}: {message}{detail}")
