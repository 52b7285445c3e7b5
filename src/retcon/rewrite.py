"""History rewrite engine.

Replays the loaded window of history oldest-first, writing a new commit for
every survivor whose metadata or ancestry changed, then moves the branch.

The commit graph is never held as linked objects. Two lookup tables carry all
parent relationships:

- ``remap``: original id -> id of the commit written in its place
- ``reparent``: deleted id -> the parents its children inherit

Trees are carried over unchanged, so only metadata and parent links differ
between an original commit and its replacement. The branch reference is the
only thing moved, and it moves last, after every new object exists.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from retcon.errors import CommitNotFound, RewriteFailed
from retcon.models import CommitData, CommitId, CommitModifications, Person

LOG = logging.getLogger(__name__)

REWRITE_REFLOG_MESSAGE = "retcon: rewrite history"

# Per-commit lines shown in the apply summary before collapsing the rest.
SUMMARY_DETAIL_LIMIT = 5


class CommitWriter(Protocol):
    """The two backend primitives the engine needs."""

    def create_commit(
        self,
        tree_id: str,
        parents: list[CommitId],
        author: Person,
        author_date: datetime,
        committer: Person,
        committer_date: datetime,
        message: str,
    ) -> CommitId: ...

    def update_branch(self, branch_name: str, commit_id: CommitId, message: str) -> None: ...


def order_changed(original_order: list[CommitId], new_order: list[CommitId]) -> bool:
    return list(original_order) != list(new_order)


def count_modified_commits(modifications: dict[CommitId, CommitModifications]) -> int:
    return sum(1 for m in modifications.values() if m.has_modifications())


def planned_parents(
    commits: dict[CommitId, CommitData],
    original_order: list[CommitId],
    new_order: list[CommitId],
) -> dict[CommitId, tuple[CommitId, ...]]:
    """Parents each commit should have before deletions are resolved.

    With the original order these are simply the recorded parents. After a
    reorder the window is relinked as a chain in the new order, the oldest
    commit inheriting whatever the originally-oldest commit sat on.
    """
    if not order_changed(original_order, new_order):
        return {cid: commits[cid].parent_ids for cid in new_order}

    if any(commits[cid].is_merge for cid in new_order):
        raise RewriteFailed("cannot reorder a history window that contains merge commits")

    base = commits[original_order[-1]].parent_ids
    chain: dict[CommitId, tuple[CommitId, ...]] = {}
    for i, cid in enumerate(new_order):
        chain[cid] = (new_order[i + 1],) if i + 1 < len(new_order) else base
    return chain


def _resolve_parents(
    parents: Iterable[CommitId],
    remap: dict[CommitId, CommitId],
    reparent: dict[CommitId, tuple[CommitId, ...]],
) -> list[CommitId]:
    resolved: list[CommitId] = []
    for parent in parents:
        if parent in reparent:
            candidates = _resolve_parents(reparent[parent], remap, reparent)
        else:
            candidates = [remap.get(parent, parent)]
        for candidate in candidates:
            if candidate not in resolved:
                resolved.append(candidate)
    return resolved


def rewrite_history(
    writer: CommitWriter,
    commits: list[CommitData],
    modifications: dict[CommitId, CommitModifications],
    deleted: set[CommitId],
    new_order: list[CommitId],
    branch_name: str,
    original_order: list[CommitId] | None = None,
) -> CommitId:
    """Write the rewritten chain and point *branch_name* at its tip.

    *new_order* is display order (newest first). Returns the new tip id.
    """
    by_id = {c.id: c for c in commits}
    for cid in new_order:
        if cid not in by_id:
            raise CommitNotFound(cid)
    baseline = list(original_order) if original_order is not None else list(new_order)
    parents_of = planned_parents(by_id, baseline, list(new_order))

    reparent = {cid: parents_of[cid] for cid in new_order if cid in deleted}
    remap: dict[CommitId, CommitId] = {}

    for cid in reversed(new_order):
        if cid in deleted:
            continue
        commit = by_id[cid]
        parents = _resolve_parents(parents_of[cid], remap, reparent)
        mods = modifications.get(cid) or CommitModifications()

        if mods.is_empty() and parents == list(commit.parent_ids):
            remap[cid] = cid
            continue

        new_id = writer.create_commit(
            tree_id=commit.tree_id,
            parents=parents,
            author=mods.effective_author(commit),
            author_date=mods.effective_author_date(commit),
            committer=mods.effective_committer(commit),
            committer_date=mods.effective_committer_date(commit),
            message=mods.effective_message(commit),
        )
        LOG.debug("rewrote %s -> %s", cid.hexsha, new_id.hexsha)
        remap[cid] = new_id

    tip = next((cid for cid in new_order if cid not in deleted), None)
    if tip is None:
        raise RewriteFailed("All commits would be deleted")
    new_head = remap.get(tip)
    if new_head is None:
        raise RewriteFailed("Failed to find new HEAD commit")

    writer.update_branch(branch_name, new_head, REWRITE_REFLOG_MESSAGE)
    LOG.info("branch %s now at %s", branch_name, new_head.hexsha)
    return new_head


def generate_change_summary(
    commits: list[CommitData],
    modifications: dict[CommitId, CommitModifications],
    deleted: set[CommitId],
    original_order: list[CommitId],
    new_order: list[CommitId],
) -> list[str]:
    """Human-readable lines describing what an apply would do."""
    summary: list[str] = []
    if deleted:
        summary.append(f"{len(deleted)} commit(s) will be deleted")

    modified = count_modified_commits(modifications)
    if modified:
        summary.append(f"{modified} commit(s) with modified metadata")

    if order_changed(original_order, new_order):
        summary.append("Commit order has been changed")

    shown = 0
    for commit in commits:
        if shown == SUMMARY_DETAIL_LIMIT:
            break
        mods = modifications.get(commit.id)
        if mods is None or not mods.has_modifications():
            continue
        labels = ", ".join(f.display_name.lower() for f in mods.changed_fields())
        summary.append(f"  {commit.short_hash} - {labels}")
        shown += 1

    if modified > SUMMARY_DETAIL_LIMIT:
        summary.append(f"  ... and {modified - SUMMARY_DETAIL_LIMIT} more")
    return summary
