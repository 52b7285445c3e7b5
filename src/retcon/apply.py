"""
Applying an edit session to the repository.

This is the only place that turns pending edits into real git writes. The
sequence is fixed:

1. stash uncommitted work (the rewrite does not start if stashing fails)
2. record a backup ref for the current tip (best effort)
3. rewrite the commit chain and move the branch
4. reset the working tree if the tip's tree changed
5. restore the stash

Once the branch has moved, nothing is rolled back: later failures (working
tree reset, stash restore) become a warning on the returned outcome. If the
rewrite itself fails the stash is still restored, the error propagates and
the session is left exactly as it was so the user can retry or discard.
"""

import logging

from retcon.errors import ActionRejected, RetconError, RewriteFailed
from retcon.models import ApplyOutcome
from retcon.repository import Repository
from retcon.rewrite import rewrite_history
from retcon.state import SessionState

LOG = logging.getLogger(__name__)


def apply_changes(session: SessionState, repo: Repository) -> ApplyOutcome:
    """Rewrite history from *session* and reset it to the new baseline."""
    branch = session.branch_name
    if branch is None:
        raise RewriteFailed("HEAD is detached - check out a branch first")
    if not session.is_dirty():
        raise ActionRejected("No changes to apply")

    old_tree = repo.head_tree_id()
    stashed = repo.stash_changes()
    repo.create_backup_ref(branch)

    try:
        new_head = rewrite_history(
            repo,
            session.commits,
            session.modifications,
            session.deleted,
            session.current_order,
            branch,
            original_order=session.original_order,
        )
    except Exception:
        if stashed:
            _restore_after_failure(repo)
        raise

    warnings: list[str] = []
    if repo.head_tree_id() != old_tree:
        try:
            repo.sync_working_tree()
        except RetconError as exc:
            LOG.error("working tree reset failed after rewrite: %s", exc)
            warnings.append(f"Warning: {exc}. Run 'git reset --hard' to sync the working tree.")
    if stashed:
        try:
            repo.unstash_changes()
        except RetconError as exc:
            LOG.error("stash restore failed after rewrite: %s", exc)
            warnings.append(
                f"Warning: Could not restore stashed changes: {exc}. "
                "Use 'git stash pop' manually."
            )

    session.load(repo.load_commits(len(session.commits)))
    return ApplyOutcome(new_head=new_head, warning=" ".join(warnings) or None)


def _restore_after_failure(repo: Repository) -> None:
    try:
        repo.unstash_changes()
    except RetconError as exc:
        LOG.error("stash restore failed after aborted rewrite: %s", exc)
