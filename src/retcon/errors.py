"""Exception types raised across retcon.

Every failure the UI or the CLI needs to report derives from ``RetconError`` so
callers can catch one type and surface ``str(exc)`` to the user.
"""


class RetconError(Exception):
    """Base class for all retcon errors."""


class NotARepository(RetconError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Not a git repository: {path}")
        self.path = path


class RebaseInProgress(RetconError):
    def __init__(self) -> None:
        super().__init__("Rebase in progress - complete or abort first")


class MergeInProgress(RetconError):
    def __init__(self) -> None:
        super().__init__("Merge in progress - complete or abort first")


class DirtyWorkingTree(RetconError):
    def __init__(self) -> None:
        super().__init__("Uncommitted changes detected - commit or stash first")


class NoCommits(RetconError):
    def __init__(self) -> None:
        super().__init__("No commits found in repository")


class InvalidEmail(RetconError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid email format: {value}")
        self.value = value


class InvalidDate(RetconError):
    def __init__(self, value: str) -> None:
        super().__init__(
            f"Invalid date format: {value}. Expected: YYYY-MM-DD HH:MM:SS [+/-]HHMM"
        )
        self.value = value


class CommitNotFound(RetconError):
    def __init__(self, commit_id: object) -> None:
        super().__init__(f"Commit not found: {commit_id}")
        self.commit_id = commit_id


class RewriteFailed(RetconError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Cannot rewrite history: {reason}")
        self.reason = reason


class ActionRejected(RetconError):
    """Raised when a session operation is refused; the session is left untouched."""
