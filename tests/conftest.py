"""Shared fixtures: in-memory commit windows and throwaway git repositories."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import git
import pytest

from retcon.models import CommitData, CommitId, Person

ALICE = git.Actor("Alice", "alice@example.com")
BASE_DATE = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def fake_id(n: int) -> CommitId:
    return CommitId(f"{n:040x}")


def make_commit(
    n: int,
    parents: tuple[int, ...] | None = None,
    name: str = "Alice",
    email: str = "alice@example.com",
    message: str | None = None,
) -> CommitData:
    """Commit ``n`` whose default parent is ``n - 1`` (none for n == 1)."""
    if parents is None:
        parents = (n - 1,) if n > 1 else ()
    when = BASE_DATE + timedelta(hours=n)
    return CommitData(
        id=fake_id(n),
        author=Person(name, email),
        author_date=when,
        committer=Person(name, email),
        committer_date=when,
        message=message if message is not None else f"commit {n}\n",
        parent_ids=tuple(fake_id(p) for p in parents),
        tree_id=f"tree-{n}",
    )


@pytest.fixture
def commits() -> list[CommitData]:
    """A linear window C1 <- C2 <- C3, newest first."""
    return [make_commit(3), make_commit(2), make_commit(1)]


def add_commit(repo: git.Repo, filename: str, content: str, message: str, hour: int) -> git.Commit:
    path = Path(repo.working_tree_dir) / filename
    path.write_text(content)
    repo.index.add([filename])
    when = BASE_DATE + timedelta(hours=hour)
    return repo.index.commit(
        message,
        author=ALICE,
        committer=ALICE,
        author_date=when,
        commit_date=when,
    )


@pytest.fixture
def git_repo(tmp_path: Path) -> git.Repo:
    """A repository on branch ``main`` with three commits, each adding a file."""
    repo = git.Repo.init(tmp_path / "repo", initial_branch="main")
    add_commit(repo, "one.txt", "one\n", "C1", 1)
    add_commit(repo, "two.txt", "two\n", "C2", 2)
    add_commit(repo, "three.txt", "three\n", "C3", 3)
    return repo
