"""Edit session state: the modal state machine behind the commit editor.

The session owns every pending, reversible change the user makes (field
edits, deletions, reordering) plus selection and the undo/redo log. Nothing in
here touches the repository; ``retcon.apply`` hands a finished session to the
rewrite engine.

Mutators that the user can be refused (reorder at the top, delete everything,
edit a merge commit) raise ``ActionRejected`` and leave the session untouched.
Successful mutators return a short status string for the UI to display, or
None when there is nothing worth saying.
"""

from dataclasses import replace

from retcon.errors import ActionRejected
from retcon.models import (
    EDITABLE_COLUMNS,
    NUM_COLUMNS,
    SYNCED_FIELDS,
    AppMode,
    Column,
    CommitData,
    CommitId,
    CommitModifications,
    ConfirmAction,
    Confirming,
    EditableField,
    Editing,
    Help,
    Normal,
    Quitting,
    Search,
    UndoSnapshot,
    Visual,
    VisualKind,
)
from retcon.validation import format_date, validate_date, validate_email


class EditBuffer:
    """Single-line text buffer with a cursor, used by inline field editing."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.cursor = len(text)

    def reset(self, text: str = "") -> None:
        self.text = text
        self.cursor = len(text)

    def insert(self, chars: str) -> None:
        self.text = self.text[: self.cursor] + chars + self.text[self.cursor :]
        self.cursor += len(chars)

    def backspace(self) -> None:
        if self.cursor > 0:
            self.text = self.text[: self.cursor - 1] + self.text[self.cursor :]
            self.cursor -= 1

    def delete(self) -> None:
        if self.cursor < len(self.text):
            self.text = self.text[: self.cursor] + self.text[self.cursor + 1 :]

    def move_left(self) -> None:
        self.cursor = max(0, self.cursor - 1)

    def move_right(self) -> None:
        self.cursor = min(len(self.text), self.cursor + 1)

    def home(self) -> None:
        self.cursor = 0

    def end(self) -> None:
        self.cursor = len(self.text)

    def move_word_left(self) -> None:
        pos = self.cursor
        while pos > 0 and self.text[pos - 1].isspace():
            pos -= 1
        while pos > 0 and not self.text[pos - 1].isspace():
            pos -= 1
        self.cursor = pos

    def move_word_right(self) -> None:
        pos = self.cursor
        length = len(self.text)
        while pos < length and not self.text[pos].isspace():
            pos += 1
        while pos < length and self.text[pos].isspace():
            pos += 1
        self.cursor = pos

    def delete_word_backward(self) -> None:
        end = self.cursor
        self.move_word_left()
        self.text = self.text[: self.cursor] + self.text[end:]

    def kill_to_start(self) -> None:
        self.text = self.text[self.cursor :]
        self.cursor = 0

    def kill_to_end(self) -> None:
        self.text = self.text[: self.cursor]


class SessionState:
    """All pending edits for one branch, plus cursor, selection and mode."""

    def __init__(
        self,
        commits: list[CommitData],
        branch_name: str | None = None,
        has_upstream: bool = False,
        sync_author_to_committer: bool = True,
    ) -> None:
        self.branch_name = branch_name
        self.has_upstream = has_upstream
        self.sync_author_to_committer = sync_author_to_committer
        self.mode: AppMode = Normal()
        self.cursor = 0
        self.column = Column.NAME.value
        self.committer_view = False
        self.search_query = ""
        self.filtered_indices: list[int] | None = None
        self.selected: set[CommitId] = set()
        self.visual_edit_targets: list[CommitId] | None = None
        self.edit_buffer = EditBuffer()
        self.edit_original = ""
        self.load(commits)

    def load(self, commits: list[CommitData]) -> None:
        """Install *commits* (newest first) as the clean baseline."""
        self.commits: list[CommitData] = list(commits)
        self._by_id: dict[CommitId, CommitData] = {c.id: c for c in self.commits}
        self.original_order: list[CommitId] = [c.id for c in self.commits]
        self.current_order: list[CommitId] = list(self.original_order)
        self.modifications: dict[CommitId, CommitModifications] = {}
        self.deleted: set[CommitId] = set()
        self.undo_stack: list[UndoSnapshot] = []
        self.redo_stack: list[UndoSnapshot] = []
        self.selected.clear()
        self.visual_edit_targets = None
        self.mode = Normal()
        if self.filtered_indices is not None:
            self._refilter()
        self._clamp_cursor()

    # -- lookup ------------------------------------------------------------

    def visible_commits(self) -> list[CommitData]:
        if self.filtered_indices is None:
            return self.commits
        return [self.commits[i] for i in self.filtered_indices]

    def cursor_commit(self) -> CommitData | None:
        visible = self.visible_commits()
        if 0 <= self.cursor < len(visible):
            return visible[self.cursor]
        return None

    def commit(self, commit_id: CommitId) -> CommitData:
        return self._by_id[commit_id]

    def get_or_create_modifications(self, commit_id: CommitId) -> CommitModifications:
        return self.modifications.setdefault(commit_id, CommitModifications())

    def is_modified(self, commit_id: CommitId) -> bool:
        mods = self.modifications.get(commit_id)
        return mods is not None and mods.has_modifications()

    def is_deleted(self, commit_id: CommitId) -> bool:
        return commit_id in self.deleted

    def current_field(self) -> EditableField | None:
        """The field the cursor column edits, honouring the committer view."""
        return Column(self.column).editable_field(self.committer_view)

    def display_value(self, commit: CommitData, editable: EditableField) -> str:
        """Effective value of *editable* as the user would type it."""
        mods = self.modifications.get(commit.id) or CommitModifications()
        value = mods.effective(commit, editable)
        if editable.is_date:
            return format_date(value)
        return value

    # -- navigation --------------------------------------------------------

    def _clamp_cursor(self) -> None:
        count = len(self.visible_commits())
        self.cursor = max(0, min(self.cursor, count - 1))

    def cursor_down(self) -> None:
        self.cursor += 1
        self._clamp_cursor()

    def cursor_up(self) -> None:
        self.cursor -= 1
        self._clamp_cursor()

    def cursor_top(self) -> None:
        self.cursor = 0

    def cursor_bottom(self) -> None:
        self.cursor = len(self.visible_commits()) - 1
        self._clamp_cursor()

    def page_down(self, rows: int = 10) -> None:
        self.cursor += rows
        self._clamp_cursor()

    def page_up(self, rows: int = 10) -> None:
        self.cursor -= rows
        self._clamp_cursor()

    def column_left(self) -> None:
        self.column = (self.column - 1) % NUM_COLUMNS

    def column_right(self) -> None:
        self.column = (self.column + 1) % NUM_COLUMNS

    def next_editable_column(self) -> None:
        if self.column in EDITABLE_COLUMNS:
            pos = EDITABLE_COLUMNS.index(self.column)
            self.column = EDITABLE_COLUMNS[(pos + 1) % len(EDITABLE_COLUMNS)]
        else:
            self.column = EDITABLE_COLUMNS[0]

    def prev_editable_column(self) -> None:
        if self.column in EDITABLE_COLUMNS:
            pos = EDITABLE_COLUMNS.index(self.column)
            self.column = EDITABLE_COLUMNS[(pos - 1) % len(EDITABLE_COLUMNS)]
        else:
            self.column = EDITABLE_COLUMNS[-1]

    def toggle_committer_view(self) -> None:
        self.committer_view = not self.committer_view

    # -- checkbox selection ------------------------------------------------

    def toggle_selection(self) -> None:
        commit = self.cursor_commit()
        if commit is None:
            return
        if commit.id in self.selected:
            self.selected.discard(commit.id)
        else:
            self.selected.add(commit.id)

    def select_all(self) -> None:
        self.selected.update(c.id for c in self.visible_commits())

    def deselect_all(self) -> None:
        self.selected.clear()

    # -- visual mode -------------------------------------------------------

    def enter_visual_mode(self, kind: VisualKind) -> None:
        self.mode = Visual(anchor=(self.cursor, self.column), kind=kind)

    def exit_visual_mode(self) -> None:
        if isinstance(self.mode, Visual):
            self.mode = Normal()

    def switch_visual_mode(self, kind: VisualKind) -> None:
        """Pressing the active kind exits; the other kind keeps the anchor."""
        if not isinstance(self.mode, Visual):
            self.enter_visual_mode(kind)
        elif self.mode.kind is kind:
            self.exit_visual_mode()
        else:
            self.mode = Visual(anchor=self.mode.anchor, kind=kind)

    def visual_range(self) -> tuple[tuple[int, int], tuple[int, int]] | None:
        """Normalised ``((top, left), (bottom, right))`` of the visual selection."""
        if not isinstance(self.mode, Visual):
            return None
        anchor_row, anchor_col = self.mode.anchor
        return (
            (min(anchor_row, self.cursor), min(anchor_col, self.column)),
            (max(anchor_row, self.cursor), max(anchor_col, self.column)),
        )

    def is_in_visual_selection(self, row: int, col: int) -> bool:
        bounds = self.visual_range()
        if bounds is None:
            return False
        (top, left), (bottom, right) = bounds
        if not top <= row <= bottom:
            return False
        if self.mode.kind is VisualKind.LINE:
            return True
        return left <= col <= right

    def visual_selection_count(self) -> int:
        bounds = self.visual_range()
        if bounds is None:
            return 0
        (top, _), (bottom, _) = bounds
        return bottom - top + 1

    def _visual_ids(self) -> list[CommitId]:
        bounds = self.visual_range()
        if bounds is None:
            return []
        (top, _), (bottom, _) = bounds
        visible = self.visible_commits()
        return [c.id for c in visible[top : bottom + 1]]

    def apply_visual_selection(self) -> None:
        """Add every row of the visual range to the checkbox selection."""
        self.selected.update(self._visual_ids())

    def toggle_visual_selection(self) -> None:
        for commit_id in self._visual_ids():
            if commit_id in self.selected:
                self.selected.discard(commit_id)
            else:
                self.selected.add(commit_id)

    def capture_visual_edit_targets(self) -> int:
        """Freeze the visual rows as edit targets and leave visual mode."""
        ids = self._visual_ids()
        self.visual_edit_targets = ids or None
        self.mode = Normal()
        return len(ids)

    def clear_visual_edit_targets(self) -> None:
        self.visual_edit_targets = None

    def commits_to_edit(self) -> list[CommitId]:
        """Resolve targets: visual capture, else checkbox selection, else cursor."""
        if self.visual_edit_targets:
            return list(self.visual_edit_targets)
        if self.selected:
            return [cid for cid in self.current_order if cid in self.selected]
        commit = self.cursor_commit()
        return [commit.id] if commit is not None else []

    # -- undo / redo -------------------------------------------------------

    def _snapshot(self, description: str) -> UndoSnapshot:
        return UndoSnapshot(
            commit_order=list(self.current_order),
            modifications={cid: replace(m) for cid, m in self.modifications.items()},
            deleted=set(self.deleted),
            description=description,
        )

    def _restore(self, snapshot: UndoSnapshot) -> None:
        self.current_order = list(snapshot.commit_order)
        self.modifications = snapshot.modifications
        self.deleted = set(snapshot.deleted)
        self._rebuild_commits_order()

    def _rebuild_commits_order(self) -> None:
        self.commits = [self._by_id[cid] for cid in self.current_order if cid in self._by_id]
        if self.filtered_indices is not None:
            self._refilter()
        self._clamp_cursor()

    def save_undo(self, description: str) -> None:
        """Snapshot the overlays before a mutation; invalidates redo history."""
        self.undo_stack.append(self._snapshot(description))
        self.redo_stack.clear()

    def undo(self) -> bool:
        if not self.undo_stack:
            return False
        snapshot = self.undo_stack.pop()
        self.redo_stack.append(self._snapshot(snapshot.description))
        self._restore(snapshot)
        return True

    def redo(self) -> bool:
        if not self.redo_stack:
            return False
        snapshot = self.redo_stack.pop()
        self.undo_stack.append(self._snapshot(snapshot.description))
        self._restore(snapshot)
        return True

    # -- dirtiness ---------------------------------------------------------

    def is_dirty(self) -> bool:
        return (
            any(m.has_modifications() for m in self.modifications.values())
            or bool(self.deleted)
            or self.current_order != self.original_order
        )

    def modified_count(self) -> int:
        return sum(1 for m in self.modifications.values() if m.has_modifications())

    def change_count(self) -> int:
        """Commits touched in any way: edited, deleted or moved."""
        moved = {
            cid
            for cid, orig in zip(self.current_order, self.original_order)
            if cid != orig
        }
        touched = {cid for cid, m in self.modifications.items() if m.has_modifications()}
        return len(touched | self.deleted | moved)

    def clear_modifications(self) -> None:
        """Drop every pending change and both undo stacks."""
        self.modifications.clear()
        self.deleted.clear()
        self.current_order = list(self.original_order)
        self.undo_stack.clear()
        self.redo_stack.clear()
        self._rebuild_commits_order()

    # -- structural edits --------------------------------------------------

    def toggle_deletion(self) -> str | None:
        targets = self.commits_to_edit()
        self.clear_visual_edit_targets()
        if not targets:
            return None
        will_delete = targets[0] not in self.deleted
        count = len(targets)
        if will_delete and count >= len(self.commits) - len(self.deleted):
            raise ActionRejected("Cannot delete all commits")

        verb = "Delete" if will_delete else "Restore"
        self.save_undo(f"{verb} {count} commit(s)")
        if will_delete:
            self.deleted.update(targets)
        else:
            self.deleted.difference_update(targets)

        if will_delete:
            return f"{count} commits marked for deletion" if count > 1 else "Commit marked for deletion"
        return f"{count} commits restored" if count > 1 else "Commit restored"

    def _check_reorder(self) -> CommitData | None:
        if self.filtered_indices is not None:
            raise ActionRejected("Cannot reorder while filtering")
        commit = self.cursor_commit()
        if commit is not None and commit.is_merge:
            raise ActionRejected("Cannot reorder merge commits")
        return commit

    def move_commit_up(self) -> str:
        if self.filtered_indices is None and self.cursor == 0:
            raise ActionRejected("Already at top")
        self._check_reorder()
        i = self.cursor
        self.save_undo("Reorder commits")
        self._swap(i, i - 1)
        self.cursor = i - 1
        return "Commit moved up"

    def move_commit_down(self) -> str:
        if self.filtered_indices is None and self.cursor >= len(self.commits) - 1:
            raise ActionRejected("Already at bottom")
        self._check_reorder()
        i = self.cursor
        self.save_undo("Reorder commits")
        self._swap(i, i + 1)
        self.cursor = i + 1
        return "Commit moved down"

    def _swap(self, a: int, b: int) -> None:
        order, commits = self.current_order, self.commits
        order[a], order[b] = order[b], order[a]
        commits[a], commits[b] = commits[b], commits[a]

    # -- search ------------------------------------------------------------

    def open_search(self) -> None:
        self.mode = Search()

    def apply_filter(self, query: str) -> int:
        """Filter visible rows by *query*; returns the number of matches.

        An empty query, or one matching nothing, leaves every row visible.
        """
        self.search_query = query
        self._refilter()
        self.cursor = 0
        self.mode = Normal()
        return 0 if self.filtered_indices is None else len(self.filtered_indices)

    def _refilter(self) -> None:
        q = self.search_query.lower()
        if not q:
            self.filtered_indices = None
            return
        matches = [i for i, c in enumerate(self.commits) if c.matches(q)]
        self.filtered_indices = matches or None

    def clear_filter(self) -> None:
        self.search_query = ""
        self.filtered_indices = None
        self.mode = Normal()
        self._clamp_cursor()

    # -- field editing -----------------------------------------------------

    def begin_edit(self) -> EditableField | None:
        """Enter Editing on the cursor cell and seed the buffer with its value."""
        commit = self.cursor_commit()
        if commit is None:
            self.clear_visual_edit_targets()
            return None
        if commit.is_merge:
            self.clear_visual_edit_targets()
            raise ActionRejected("Cannot edit merge commits")
        editable = self.current_field()
        if editable is None:
            self.clear_visual_edit_targets()
            raise ActionRejected("This column is not editable")

        current = self.display_value(commit, editable)
        self.edit_buffer.reset(current)
        self.edit_original = current
        self.mode = Editing(row=self.cursor, field=editable)
        return editable

    def confirm_edit(self) -> str | None:
        """Validate the buffer and write it to every target commit.

        Raises InvalidEmail or InvalidDate without leaving Editing, so the
        user can correct the value.
        """
        if not isinstance(self.mode, Editing):
            return None
        editable = self.mode.field
        value = self.edit_buffer.text
        if editable.is_email:
            validate_email(value)
        if editable.is_date:
            validate_date(value)

        message = None
        if value != self.edit_original:
            targets = self.commits_to_edit()
            if targets:
                count = len(targets)
                self.save_undo(f"Edit {editable.display_name} on {count} commit(s)")
                for commit_id in targets:
                    self.apply_field_edit(commit_id, editable, value)
                if count > 1:
                    message = f"Updated {count} commits"
                else:
                    message = f"{editable.display_name} updated"
        self._finish_edit()
        return message

    def cancel_edit(self) -> None:
        self._finish_edit()

    def _finish_edit(self) -> None:
        self.edit_buffer.reset()
        self.edit_original = ""
        self.clear_visual_edit_targets()
        self.mode = Normal()

    def apply_field_edit(self, commit_id: CommitId, editable: EditableField, value: str) -> None:
        """Write *value* into the overlay, mirroring author fields when syncing."""
        stored = validate_date(value) if editable.is_date else value
        mods = self.get_or_create_modifications(commit_id)
        mods.set(editable, stored)
        if self.sync_author_to_committer and editable in SYNCED_FIELDS:
            mods.set(SYNCED_FIELDS[editable], stored)

    # -- modal screens -----------------------------------------------------

    def request_apply(self) -> None:
        if not self.is_dirty():
            raise ActionRejected("No changes to apply")
        self.mode = Confirming(ConfirmAction.APPLY_CHANGES)

    def request_discard(self) -> bool:
        if not self.is_dirty():
            return False
        self.mode = Confirming(ConfirmAction.DISCARD_CHANGES)
        return True

    def request_quit(self) -> bool:
        """Return True if the session may end now, else enter Quitting."""
        if not self.is_dirty():
            return True
        self.mode = Quitting()
        return False

    def open_help(self) -> None:
        self.mode = Help()

    def return_to_normal(self) -> None:
        self.mode = Normal()

    def discard_changes(self) -> None:
        self.clear_modifications()
        self.mode = Normal()
