"""GitPython-backed repository access.

Wraps a ``git.Repo`` with the handful of queries and writes retcon needs:
loading the commit window, state checks, stash handling, backup refs, commit
creation and the final branch move. Every GitPython failure is re-raised as a
``RetconError`` so callers never see ``git.exc`` types.
"""

import logging
from datetime import datetime
from pathlib import Path

import git
from git import Actor, Commit, GitCommandError
from git.exc import BadName, BadObject, InvalidGitRepositoryError, NoSuchPathError

from retcon.errors import (
    CommitNotFound,
    DirtyWorkingTree,
    MergeInProgress,
    NoCommits,
    NotARepository,
    RebaseInProgress,
    RetconError,
    RewriteFailed,
)
from retcon.models import CommitData, CommitId, Person

LOG = logging.getLogger(__name__)

STASH_MESSAGE = "retcon: auto-stash before history rewrite"
BACKUP_REFLOG_MESSAGE = "retcon: backup before rewrite"
BACKUP_REF_PREFIX = "refs/original/heads/"

_NULL_SHA = "0" * 40

# Marker files git leaves in the git dir while an operation is half done.
_REBASE_MARKERS = ("rebase-merge", "rebase-apply")
_OTHER_MARKERS = ("CHERRY_PICK_HEAD", "REVERT_HEAD", "BISECT_LOG")


def backup_ref_name(branch_name: str) -> str:
    return f"{BACKUP_REF_PREFIX}{branch_name}"


def commit_data_from_git(commit: Commit) -> CommitData:
    return CommitData(
        id=CommitId(commit.hexsha),
        author=Person(commit.author.name or "", commit.author.email or ""),
        author_date=commit.authored_datetime,
        committer=Person(commit.committer.name or "", commit.committer.email or ""),
        committer_date=commit.committed_datetime,
        message=_as_text(commit.message),
        parent_ids=tuple(CommitId(p.hexsha) for p in commit.parents),
        tree_id=commit.tree.hexsha,
    )


def _as_text(message: str | bytes) -> str:
    if isinstance(message, bytes):
        return message.decode("utf-8", errors="replace")
    return message


class Repository:
    """A validated git repository opened for history editing."""

    def __init__(self, repo: git.Repo) -> None:
        self._repo = repo

    @classmethod
    def open(cls, path: str | Path = ".") -> "Repository":
        """Discover the repository containing *path* and check its state.

        Raises NotARepository, RebaseInProgress or MergeInProgress.
        """
        try:
            repo = git.Repo(path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as exc:
            raise NotARepository(str(path)) from exc
        if repo.bare:
            raise NotARepository(str(path))
        instance = cls(repo)
        instance.validate_state()
        LOG.info("opened repository at %s", repo.working_tree_dir)
        return instance

    @property
    def repo(self) -> git.Repo:
        return self._repo

    @property
    def working_dir(self) -> str:
        return str(self._repo.working_tree_dir)

    def validate_state(self) -> None:
        """Refuse repositories with an operation in progress.

        Uncommitted changes are fine for browsing; they are stashed on apply.
        """
        git_dir = Path(self._repo.git_dir)
        if any((git_dir / marker).exists() for marker in _REBASE_MARKERS):
            raise RebaseInProgress()
        if (git_dir / "MERGE_HEAD").exists():
            raise MergeInProgress()
        if any((git_dir / marker).exists() for marker in _OTHER_MARKERS):
            raise RewriteFailed("Repository is in an unsupported state")

    def validate_clean_for_rewrite(self) -> None:
        if self.has_uncommitted_changes():
            raise DirtyWorkingTree()

    def has_uncommitted_changes(self) -> bool:
        return self._repo.is_dirty(index=True, working_tree=True, untracked_files=False)

    def current_branch_name(self) -> str | None:
        """Name of the checked-out branch, or None when HEAD is detached."""
        if self._repo.head.is_detached:
            return None
        return self._repo.active_branch.name

    def has_upstream(self) -> bool:
        if self._repo.head.is_detached:
            return False
        return self._repo.active_branch.tracking_branch() is not None

    def head_id(self) -> CommitId:
        try:
            return CommitId(self._repo.head.commit.hexsha)
        except ValueError as exc:
            raise NoCommits() from exc

    def load_commits(self, limit: int) -> list[CommitData]:
        """Return up to *limit* commits reachable from HEAD, newest first."""
        try:
            walk = self._repo.iter_commits("HEAD", max_count=limit, topo_order=True)
            commits = [commit_data_from_git(c) for c in walk]
        except (GitCommandError, ValueError) as exc:
            raise NoCommits() from exc
        if not commits:
            raise NoCommits()
        LOG.debug("loaded %d commits", len(commits))
        return commits

    def commit_count(self) -> int:
        try:
            return int(self._repo.git.rev_list("--count", "HEAD"))
        except GitCommandError as exc:
            raise NoCommits() from exc

    def find_commit(self, commit_id: CommitId) -> CommitData:
        try:
            return commit_data_from_git(self._repo.commit(commit_id.hexsha))
        except (BadName, BadObject, ValueError) as exc:
            raise CommitNotFound(commit_id) from exc

    def create_backup_ref(self, branch_name: str) -> bool:
        """Record the current tip under refs/original; never overwrites.

        Returns False (and logs) when the ref could not be created, which is
        the normal case after a previous rewrite left one behind.
        """
        ref = backup_ref_name(branch_name)
        try:
            self._repo.git.update_ref(
                "-m", BACKUP_REFLOG_MESSAGE, ref, self._repo.head.commit.hexsha, _NULL_SHA
            )
        except GitCommandError as exc:
            LOG.warning("backup ref %s not created: %s", ref, exc.stderr.strip())
            return False
        LOG.info("created backup ref %s", ref)
        return True

    def stash_changes(self) -> bool:
        """Stash uncommitted work including untracked files; True if stashed."""
        if not self.has_uncommitted_changes():
            return False
        try:
            self._repo.git.stash("push", "--include-untracked", "-m", STASH_MESSAGE)
        except GitCommandError as exc:
            raise RewriteFailed(f"could not stash changes: {exc.stderr.strip()}") from exc
        LOG.info("stashed uncommitted changes")
        return True

    def unstash_changes(self) -> None:
        try:
            self._repo.git.stash("pop")
        except GitCommandError as exc:
            raise RetconError(f"git stash pop failed: {exc.stderr.strip()}") from exc
        LOG.info("restored stashed changes")

    def create_commit(
        self,
        tree_id: str,
        parents: list[CommitId],
        author: Person,
        author_date: datetime,
        committer: Person,
        committer_date: datetime,
        message: str,
    ) -> CommitId:
        """Write a commit object without touching any reference."""
        try:
            commit = Commit.create_from_tree(
                self._repo,
                self._repo.tree(tree_id),
                message,
                parent_commits=[self._repo.commit(p.hexsha) for p in parents],
                head=False,
                author=Actor(author.name, author.email),
                committer=Actor(committer.name, committer.email),
                author_date=author_date,
                commit_date=committer_date,
            )
        except (GitCommandError, BadName, BadObject, ValueError) as exc:
            raise RewriteFailed(str(exc)) from exc
        return CommitId(commit.hexsha)

    def update_branch(self, branch_name: str, commit_id: CommitId, message: str) -> None:
        """Force-move refs/heads/<branch_name> to *commit_id*."""
        try:
            self._repo.git.update_ref("-m", message, f"refs/heads/{branch_name}", commit_id.hexsha)
        except GitCommandError as exc:
            raise RewriteFailed(exc.stderr.strip() or str(exc)) from exc

    def head_tree_id(self) -> str:
        return self._repo.head.commit.tree.hexsha

    def sync_working_tree(self) -> None:
        """Reset index and working tree to the (already moved) HEAD."""
        try:
            self._repo.head.reset(index=True, working_tree=True)
        except GitCommandError as exc:
            raise RewriteFailed(f"could not update working tree: {exc.stderr.strip()}") from exc
        LOG.info("working tree reset to %s", self._repo.head.commit.hexsha)
