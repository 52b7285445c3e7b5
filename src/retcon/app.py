"""Main application: the Textual controller around an edit session."""

import os
import shlex
import subprocess
import tempfile
from collections.abc import Callable
from pathlib import Path

from textual import work
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.binding import Binding
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Input, LoadingIndicator

from retcon.apply import apply_changes
from retcon.config import load_theme, save_theme
from retcon.constants import APP_TITLE, PAGE_ROWS
from retcon.errors import RetconError
from retcon.models import ApplyOutcome, ConfirmAction, Visual, VisualKind
from retcon.repository import Repository
from retcon.rewrite import generate_change_summary
from retcon.screens.confirm import ConfirmScreen
from retcon.screens.edit import NEXT, PREV, EditScreen
from retcon.screens.help import HelpScreen
from retcon.state import SessionState
from retcon.widgets.commit_table import CommitTable
from retcon.widgets.detail_pane import DetailPane
from retcon.widgets.main_view import MainView

DEFAULT_EDITOR = "vim"


class RetconApp(App):
    """retcon — edit commit metadata, order and deletions, then rewrite."""

    CSS_PATH = "app.tcss"
    TITLE = APP_TITLE

    dirty: reactive[bool] = reactive(False)
    loading: reactive[bool] = reactive(False)

    BINDINGS = [
        Binding("q", "request_quit", "Quit"),
        Binding("?", "toggle_help", "Help"),
        Binding("/", "focus_search", "Search"),
        Binding("escape", "escape", show=False),
        Binding("j,down", "cursor_down", show=False),
        Binding("k,up", "cursor_up", show=False),
        Binding("h,left", "column_left", show=False),
        Binding("l,right", "column_right", show=False),
        Binding("g,home", "cursor_top", show=False),
        Binding("G,end", "cursor_bottom", show=False),
        Binding("ctrl+d,pagedown", "page_down", show=False),
        Binding("ctrl+u,pageup", "page_up", show=False),
        Binding("space", "toggle_select", "Select"),
        Binding("ctrl+a", "select_all", show=False),
        Binding("ctrl+n", "deselect_all", show=False),
        Binding("e,enter", "edit", "Edit"),
        Binding("d,x", "toggle_delete", "Delete"),
        Binding("K", "move_up", show=False),
        Binding("J", "move_down", show=False),
        Binding("v,V", "visual_line", "Visual"),
        Binding("ctrl+v", "visual_block", show=False),
        Binding("c", "committer_view", "Committer"),
        Binding("u", "undo", "Undo"),
        Binding("ctrl+r", "redo", "Redo"),
        Binding("r", "discard", "Reset"),
        Binding("w", "write", "Write"),
    ]

    def __init__(
        self,
        session: SessionState,
        repository: Repository | None = None,
        editor: str | None = None,
        _use_config: bool = False,
    ) -> None:
        super().__init__()
        self.session = session
        self._repository = repository
        self._editor = editor
        self._use_config = _use_config

    def compose(self) -> ComposeResult:
        yield Header()
        yield MainView(id="main")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#search", Input).display = False
        self.query_one("#loading", LoadingIndicator).display = False
        if self._use_config:
            saved_theme = load_theme()
            if saved_theme:
                self.theme = saved_theme
        self._render()
        self._get_table().focus()

    # -- rendering ---------------------------------------------------------

    def _get_table(self) -> CommitTable:
        return self.query_one("#commit-table", CommitTable)

    def _render(self) -> None:
        """Redraw the table and detail pane from the session."""
        self._get_table().render_session(self.session)
        self._show_detail()
        self.dirty = self.session.is_dirty()
        self._update_subtitle()

    def _show_detail(self) -> None:
        commit = self.session.cursor_commit()
        mods = self.session.modifications.get(commit.id) if commit else None
        deleted = commit is not None and self.session.is_deleted(commit.id)
        self.query_one("#detail", DetailPane).show_commit(commit, mods, deleted)

    def _update_subtitle(self) -> None:
        session = self.session
        parts = [f"[{session.branch_name or 'detached HEAD'}]"]
        mode = session.mode
        if isinstance(mode, Visual):
            label = "V-LINE" if mode.kind is VisualKind.LINE else "V-BLOCK"
            parts.append(f"{label} ({session.visual_selection_count()})")
        if session.committer_view:
            parts.append("committer view")
        if session.search_query and session.filtered_indices is not None:
            parts.append(f"filter: {session.search_query}")
        if self.dirty:
            n = session.change_count()
            noun = "change" if n == 1 else "changes"
            parts.append(f"[modified] {n} unsaved {noun}")
            if session.has_upstream:
                parts.append("upstream: force push needed")
        self.sub_title = " · ".join(parts)

    def watch_dirty(self, dirty: bool) -> None:
        """Reflect unsaved state in the subtitle."""
        self._update_subtitle()

    def watch_loading(self, loading: bool) -> None:
        """Show or hide the loading overlay while history is rewritten."""
        self.query_one("#loading", LoadingIndicator).display = loading
        self._get_table().display = not loading

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Disable every key binding while the rewrite worker owns the session."""
        if self.loading:
            return False
        return True

    def watch_theme(self, theme: str) -> None:
        """Persist theme changes whenever the theme is changed."""
        if self._use_config:
            save_theme(theme)

    def _run(self, operation: Callable[[], str | None]) -> None:
        """Run a session mutator, reporting its status or refusal."""
        try:
            message = operation()
        except RetconError as exc:
            self.notify(str(exc), severity="error", timeout=4)
        else:
            if message:
                self.notify(message, timeout=2)
        self._render()

    def _after_move(self) -> None:
        if isinstance(self.session.mode, Visual):
            self._render()
            return
        self._get_table().move_cursor(row=self.session.cursor, column=self.session.column)
        self._show_detail()

    def on_data_table_cell_highlighted(self, event: DataTable.CellHighlighted) -> None:
        """Follow the table cursor when it is moved with the mouse."""
        # Rebuilding the table queues highlights for positions it has already left.
        if event.coordinate != event.data_table.cursor_coordinate:
            return
        row, column = event.coordinate
        if (row, column) == (self.session.cursor, self.session.column):
            return
        self.session.cursor = row
        self.session.column = column
        self._after_move()

    # -- navigation --------------------------------------------------------

    def action_cursor_down(self) -> None:
        self.session.cursor_down()
        self._after_move()

    def action_cursor_up(self) -> None:
        self.session.cursor_up()
        self._after_move()

    def action_cursor_top(self) -> None:
        self.session.cursor_top()
        self._after_move()

    def action_cursor_bottom(self) -> None:
        self.session.cursor_bottom()
        self._after_move()

    def action_page_down(self) -> None:
        self.session.page_down(PAGE_ROWS)
        self._after_move()

    def action_page_up(self) -> None:
        self.session.page_up(PAGE_ROWS)
        self._after_move()

    def action_column_left(self) -> None:
        """Previous column: any column in visual mode, else editable ones only."""
        if isinstance(self.session.mode, Visual):
            self.session.column_left()
        else:
            self.session.prev_editable_column()
        self._after_move()

    def action_column_right(self) -> None:
        if isinstance(self.session.mode, Visual):
            self.session.column_right()
        else:
            self.session.next_editable_column()
        self._after_move()

    def action_next_column(self) -> None:
        self.session.next_editable_column()
        self._after_move()

    def action_prev_column(self) -> None:
        self.session.prev_editable_column()
        self._after_move()

    def action_committer_view(self) -> None:
        self.session.toggle_committer_view()
        self._render()

    # -- selection ---------------------------------------------------------

    def action_toggle_select(self) -> None:
        if isinstance(self.session.mode, Visual):
            self.session.toggle_visual_selection()
        else:
            self.session.toggle_selection()
        self._render()

    def action_select_all(self) -> None:
        self.session.select_all()
        self._render()

    def action_deselect_all(self) -> None:
        self.session.deselect_all()
        self._render()

    def action_visual_line(self) -> None:
        self.session.switch_visual_mode(VisualKind.LINE)
        self._render()

    def action_visual_block(self) -> None:
        self.session.switch_visual_mode(VisualKind.BLOCK)
        self._render()

    def action_escape(self) -> None:
        """Leave visual mode, or clear the active search."""
        if isinstance(self.session.mode, Visual):
            self.session.exit_visual_mode()
            self._render()
            return
        search = self.query_one("#search", Input)
        if search.display or self.session.search_query:
            search.value = ""
            search.display = False
            self.session.clear_filter()
            self._render()
            self._get_table().focus()

    # -- structural edits --------------------------------------------------

    def action_toggle_delete(self) -> None:
        if isinstance(self.session.mode, Visual):
            self.session.capture_visual_edit_targets()
        self._run(self.session.toggle_deletion)

    def action_move_up(self) -> None:
        self._run(self.session.move_commit_up)

    def action_move_down(self) -> None:
        self._run(self.session.move_commit_down)

    def action_undo(self) -> None:
        if self.session.undo():
            self.notify("Undone", timeout=2)
        else:
            self.notify("Nothing to undo", severity="warning", timeout=2)
        self._render()

    def action_redo(self) -> None:
        if self.session.redo():
            self.notify("Redone", timeout=2)
        else:
            self.notify("Nothing to redo", severity="warning", timeout=2)
        self._render()

    # -- field editing -----------------------------------------------------

    def action_edit(self) -> None:
        """Edit the focused cell, or every row of the visual selection."""
        if isinstance(self.session.mode, Visual):
            if self.session.capture_visual_edit_targets() == 0:
                self._render()
                return
        self._start_edit()

    def _start_edit(self) -> None:
        try:
            editable = self.session.begin_edit()
        except RetconError as exc:
            self.notify(str(exc), severity="error", timeout=4)
            self._render()
            return
        if editable is None:
            return
        if editable.is_multiline:
            self._edit_message()
            return
        targets = len(self.session.commits_to_edit())
        self.push_screen(EditScreen(self.session, targets), self._on_edit_done)

    def _on_edit_done(self, result: tuple[str, str | None] | None) -> None:
        if result is not None:
            direction, message = result
            if message:
                self.notify(message, timeout=2)
            if direction == NEXT:
                self.session.next_editable_column()
            elif direction == PREV:
                self.session.prev_editable_column()
            if direction in (NEXT, PREV):
                self._render()
                self._start_edit()
                return
        self._render()
        self._get_table().focus()

    def _edit_message(self) -> None:
        """Hand the message to an external editor and apply what comes back."""
        current = self.session.edit_buffer.text
        with tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False) as f:
            f.write(current)
            path = Path(f.name)
        try:
            returncode = self._run_editor(path)
            edited = path.read_text().rstrip()
        except (OSError, SuspendNotSupported) as exc:
            self.session.cancel_edit()
            self.notify(f"Failed to run editor: {exc}", severity="error", timeout=8)
            return
        finally:
            path.unlink(missing_ok=True)

        if returncode != 0:
            self.session.cancel_edit()
            self.notify("Editor exited with error", severity="error", timeout=4)
        elif edited == current.rstrip():
            self.session.cancel_edit()
        else:
            self.session.edit_buffer.reset(edited)
            self._run(self.session.confirm_edit)
            return
        self._render()

    def _run_editor(self, path: Path) -> int:
        """Run the configured editor on *path* with the UI suspended."""
        editor = (
            self._editor or os.environ.get("EDITOR") or os.environ.get("VISUAL") or DEFAULT_EDITOR
        )
        with self.suspend():
            return subprocess.run([*shlex.split(editor), str(path)]).returncode

    # -- search ------------------------------------------------------------

    def action_focus_search(self) -> None:
        """Show and focus the search bar."""
        self.session.open_search()
        search = self.query_one("#search", Input)
        search.value = self.session.search_query
        search.display = True
        search.focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "search":
            return
        matches = self.session.apply_filter(event.value)
        if event.value and matches == 0:
            self.notify("No commits match", severity="warning", timeout=2)
        if not event.value:
            event.input.display = False
        self._render()
        self._get_table().focus()

    # -- confirmations -----------------------------------------------------

    def _confirm(
        self,
        action: ConfirmAction,
        lines: list[str],
        on_accept: Callable[[], None],
        warning: str | None = None,
    ) -> None:
        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                on_accept()
            else:
                self.session.return_to_normal()
                self._get_table().focus()

        self.push_screen(ConfirmScreen.for_action(action, lines, warning), on_confirm)

    def action_write(self) -> None:
        """Ask for confirmation, then rewrite history."""
        try:
            self.session.request_apply()
        except RetconError as exc:
            self.notify(str(exc), severity="error", timeout=4)
            return
        session = self.session
        summary = generate_change_summary(
            session.commits,
            session.modifications,
            session.deleted,
            session.original_order,
            session.current_order,
        )
        warning = "Branch has upstream - will require force push!" if session.has_upstream else None
        self._confirm(
            ConfirmAction.APPLY_CHANGES,
            ["This will rewrite git history.", "", *summary],
            self._start_apply,
            warning,
        )

    def _start_apply(self) -> None:
        self.session.return_to_normal()
        if self._repository is None:
            self.notify("No repository to write to", severity="error", timeout=8)
            return
        self.loading = True
        self._apply(self._repository)

    @work(thread=True, exclusive=True)
    def _apply(self, repository: Repository) -> None:
        """Apply the session to the repository in a background thread."""
        try:
            outcome = apply_changes(self.session, repository)
        except RetconError as exc:
            self.call_from_thread(self._finish_apply, None, str(exc))
        else:
            self.call_from_thread(self._finish_apply, outcome, None)

    def _finish_apply(self, outcome: ApplyOutcome | None, error: str | None) -> None:
        """Report the apply result (called from main thread)."""
        self.loading = False
        if error is not None:
            self.notify(error, severity="error", timeout=8)
        elif outcome is not None:
            if outcome.warning:
                self.notify(outcome.warning, severity="warning", timeout=12)
            self.notify("History rewritten successfully!", timeout=4)
        self._render()
        self._get_table().focus()

    def action_discard(self) -> None:
        """Drop every pending change after confirmation."""
        if not self.session.request_discard():
            return

        def discard() -> None:
            self.session.discard_changes()
            self.notify("All changes discarded", timeout=2)
            self._render()
            self._get_table().focus()

        n = self.session.modified_count()
        self._confirm(
            ConfirmAction.DISCARD_CHANGES,
            [
                f"You have {n} modified commit(s).",
                "",
                "Are you sure you want to discard all changes?",
            ],
            discard,
        )

    def action_request_quit(self) -> None:
        """Quit, prompting first if there are unsaved changes."""
        if self.session.request_quit():
            self.exit()
            return
        n = self.session.change_count()
        self._confirm(
            ConfirmAction.QUIT_WITH_CHANGES,
            [f"You have {n} unsaved change(s).", "", "Are you sure you want to quit?"],
            self.exit,
        )

    def action_toggle_help(self) -> None:
        self.session.open_help()

        def on_close(_: object) -> None:
            self.session.return_to_normal()

        self.push_screen(HelpScreen(), on_close)
