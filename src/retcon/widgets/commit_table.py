"""Commit table widget."""

from rich.text import Text
from textual.binding import Binding
from textual.coordinate import Coordinate
from textual.widgets import DataTable

from retcon.constants import COMMITTER_TABLE_COLUMNS, TABLE_COLUMNS
from retcon.models import Column, CommitData, CommitModifications, EditableField
from retcon.state import SessionState
from retcon.validation import format_short_date

_SELECTED = "●"
_VISUAL_STYLE = "reverse"
_DELETED_STYLE = "strike dim red"
_MODIFIED_STYLE = "bold yellow"


class CommitTable(DataTable, inherit_bindings=False):
    """Cell-cursor table of the loaded commits, newest first.

    The session is the source of truth: the app moves the session cursor and
    calls ``render_session``, which rewrites cells in place when the set of
    rows is unchanged (so the cursor and scroll position are kept) and
    rebuilds the table otherwise.

    Navigation keys are bound on the app, not here; only Tab and Shift+Tab
    are bound locally so they win over the screen's focus cycling.
    """

    BINDINGS = [
        Binding("tab", "app.next_column", show=False),
        Binding("shift+tab", "app.prev_column", show=False),
    ]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._row_ids: list[str] = []
        self._committer_view: bool | None = None

    def on_mount(self) -> None:
        self.cursor_type = "cell"
        self.zebra_stripes = True

    def render_session(self, session: SessionState) -> None:
        """Bring rows, styles and cursor in line with *session*."""
        visible = session.visible_commits()
        row_ids = [c.id.hexsha for c in visible]
        rows = [self._cells(session, row, commit) for row, commit in enumerate(visible)]

        if row_ids == self._row_ids and session.committer_view == self._committer_view:
            for r, cells in enumerate(rows):
                for c, cell in enumerate(cells):
                    self.update_cell_at(Coordinate(r, c), cell)
        else:
            self.clear(columns=True)
            labels = COMMITTER_TABLE_COLUMNS if session.committer_view else TABLE_COLUMNS
            self.add_columns(*labels)
            for key, cells in zip(row_ids, rows):
                self.add_row(*cells, key=key)
            self._row_ids = row_ids
            self._committer_view = session.committer_view

        if visible:
            self.move_cursor(row=session.cursor, column=session.column)

    def _cells(self, session: SessionState, row: int, commit: CommitData) -> list[Text]:
        mods = session.modifications.get(commit.id) or CommitModifications()
        deleted = session.is_deleted(commit.id)
        committer = session.committer_view
        name_field = Column.NAME.editable_field(committer)
        email_field = Column.EMAIL.editable_field(committer)
        date_field = Column.DATE.editable_field(committer)

        message = mods.effective_summary(commit)
        if commit.is_merge:
            message = f"[merge] {message}"

        values: list[tuple[str, EditableField | None]] = [
            (_SELECTED if commit.id in session.selected else " ", None),
            (commit.short_hash, None),
            (mods.effective(commit, name_field), name_field),
            (mods.effective(commit, email_field), email_field),
            (format_short_date(mods.effective(commit, date_field)), date_field),
            (message, EditableField.MESSAGE),
        ]

        cells: list[Text] = []
        for col, (value, editable) in enumerate(values):
            style = ""
            if deleted:
                style = _DELETED_STYLE
            elif editable is not None and mods.get(editable) is not None:
                style = _MODIFIED_STYLE
            if session.is_in_visual_selection(row, col):
                style = f"{style} {_VISUAL_STYLE}".strip()
            cells.append(Text(value, style=style))
        return cells
