"""Tests for the GitPython-backed repository wrapper."""

from pathlib import Path

import git
import pytest

from retcon.errors import (
    CommitNotFound,
    DirtyWorkingTree,
    MergeInProgress,
    NoCommits,
    NotARepository,
    RebaseInProgress,
    RewriteFailed,
)
from retcon.models import CommitId
from retcon.repository import Repository, backup_ref_name


class TestOpen:
    def test_opens_from_subdirectory(self, git_repo):
        """
        Given a path inside the work tree
        When Repository.open is called
        Then the enclosing repository is found
        """
        sub = Path(git_repo.working_tree_dir) / "nested"
        sub.mkdir()
        repo = Repository.open(sub)
        assert repo.working_dir == git_repo.working_tree_dir

    def test_plain_directory_is_refused(self, tmp_path):
        """
        Given a directory that is not a repository
        When Repository.open is called
        Then NotARepository is raised naming the path
        """
        plain = tmp_path / "plain"
        plain.mkdir()
        with pytest.raises(NotARepository, match="Not a git repository"):
            Repository.open(plain)

    def test_missing_path_is_refused(self, tmp_path):
        """
        Given a path that does not exist
        When Repository.open is called
        Then NotARepository is raised
        """
        with pytest.raises(NotARepository):
            Repository.open(tmp_path / "nope")

    @pytest.mark.parametrize(
        ("marker", "error"),
        [
            ("rebase-merge", RebaseInProgress),
            ("rebase-apply", RebaseInProgress),
            ("MERGE_HEAD", MergeInProgress),
            ("CHERRY_PICK_HEAD", RewriteFailed),
        ],
    )
    def test_operation_in_progress_is_refused(self, git_repo, marker, error):
        """
        Given a git dir containing an in-progress marker
        When Repository.open is called
        Then the matching error is raised
        """
        marker_path = Path(git_repo.git_dir) / marker
        if marker.startswith("rebase"):
            marker_path.mkdir()
        else:
            marker_path.write_text(git_repo.head.commit.hexsha + "\n")
        with pytest.raises(error):
            Repository.open(git_repo.working_tree_dir)


class TestQueries:
    def test_load_commits_newest_first(self, git_repo):
        """
        Given three commits
        When loaded
        Then they come back newest first with parents and trees filled in
        """
        commits = Repository.open(git_repo.working_tree_dir).load_commits(10)
        assert [c.summary for c in commits] == ["C3", "C2", "C1"]
        assert commits[0].parent_ids == (commits[1].id,)
        assert commits[2].parent_ids == ()
        assert commits[0].author.email == "alice@example.com"
        assert commits[0].tree_id == git_repo.head.commit.tree.hexsha

    def test_load_commits_respects_limit(self, git_repo):
        """
        Given three commits
        When loading with a limit of two
        Then only the two newest are returned
        """
        commits = Repository.open(git_repo.working_tree_dir).load_commits(2)
        assert [c.summary for c in commits] == ["C3", "C2"]

    def test_empty_repository_has_no_commits(self, tmp_path):
        """
        Given a freshly initialised repository
        When commits are loaded
        Then NoCommits is raised
        """
        git.Repo.init(tmp_path / "empty")
        repo = Repository.open(tmp_path / "empty")
        with pytest.raises(NoCommits):
            repo.load_commits(10)

    def test_branch_and_upstream(self, git_repo):
        """
        Given a branch without upstream
        When queried
        Then the branch name is known and there is no upstream
        """
        repo = Repository.open(git_repo.working_tree_dir)
        assert repo.current_branch_name() == "main"
        assert repo.has_upstream() is False

    def test_detached_head_has_no_branch(self, git_repo):
        """
        Given HEAD detached at the previous commit
        When queried
        Then there is no branch name
        """
        git_repo.git.checkout("HEAD~1")
        repo = Repository.open(git_repo.working_tree_dir)
        assert repo.current_branch_name() is None
        assert repo.has_upstream() is False

    def test_find_commit(self, git_repo):
        """
        Given a known and an unknown id
        When looked up
        Then the known one is returned and the unknown one raises
        """
        repo = Repository.open(git_repo.working_tree_dir)
        head = git_repo.head.commit.hexsha
        assert repo.find_commit(CommitId(head)).summary == "C3"
        with pytest.raises(CommitNotFound):
            repo.find_commit(CommitId("1" * 40))

    def test_commit_count(self, git_repo):
        """
        Given three commits
        When counted
        Then the count is three
        """
        assert Repository.open(git_repo.working_tree_dir).commit_count() == 3


class TestWorkingTree:
    def test_dirty_detection(self, git_repo):
        """
        Given a modified tracked file
        When the clean check runs
        Then DirtyWorkingTree is raised
        """
        repo = Repository.open(git_repo.working_tree_dir)
        repo.validate_clean_for_rewrite()
        (Path(git_repo.working_tree_dir) / "one.txt").write_text("changed\n")
        assert repo.has_uncommitted_changes()
        with pytest.raises(DirtyWorkingTree):
            repo.validate_clean_for_rewrite()

    def test_stash_round_trip(self, git_repo):
        """
        Given a modified tracked file
        When stashed and restored
        Then the tree is clean in between and the change comes back
        """
        repo = Repository.open(git_repo.working_tree_dir)
        path = Path(git_repo.working_tree_dir) / "one.txt"
        path.write_text("changed\n")

        assert repo.stash_changes() is True
        assert not repo.has_uncommitted_changes()
        repo.unstash_changes()
        assert path.read_text() == "changed\n"

    def test_stash_on_clean_tree_is_noop(self, git_repo):
        """
        Given a clean tree
        When stashing
        Then nothing is stashed
        """
        repo = Repository.open(git_repo.working_tree_dir)
        assert repo.stash_changes() is False
        assert git_repo.git.stash("list") == ""


class TestWrites:
    def test_backup_ref_is_created_once(self, git_repo):
        """
        Given no backup ref
        When creating it twice
        Then the first call records HEAD and the second leaves it alone
        """
        repo = Repository.open(git_repo.working_tree_dir)
        head = git_repo.head.commit.hexsha
        assert repo.create_backup_ref("main") is True
        assert git_repo.git.rev_parse(backup_ref_name("main")) == head

        git_repo.git.reset("--hard", "HEAD~1")
        assert repo.create_backup_ref("main") is False
        assert git_repo.git.rev_parse(backup_ref_name("main")) == head

    def test_create_commit_does_not_move_refs(self, git_repo):
        """
        Given the tip's tree
        When a commit object is created from it
        Then it exists with the given metadata and main is unchanged
        """
        repo = Repository.open(git_repo.working_tree_dir)
        tip = repo.load_commits(1)[0]
        new_id = repo.create_commit(
            tree_id=tip.tree_id,
            parents=list(tip.parent_ids),
            author=tip.author,
            author_date=tip.author_date,
            committer=tip.committer,
            committer_date=tip.committer_date,
            message="Different message\n",
        )
        assert git_repo.head.commit.hexsha == tip.id.hexsha
        created = repo.find_commit(new_id)
        assert created.message == "Different message\n"
        assert created.parent_ids == tip.parent_ids

    def test_update_branch_and_sync(self, git_repo):
        """
        Given main moved back one commit
        When the working tree is synced
        Then the file added by the dropped commit is gone
        """
        repo = Repository.open(git_repo.working_tree_dir)
        parent = repo.load_commits(2)[1]
        repo.update_branch("main", parent.id, "test")
        assert repo.head_id() == parent.id
        repo.sync_working_tree()
        assert not (Path(git_repo.working_tree_dir) / "three.txt").exists()
