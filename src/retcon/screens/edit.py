"""Edit screen — modal line editor for a single commit field."""

from collections.abc import Callable

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widget import Widget
from textual.widgets import Label

from retcon.errors import InvalidDate, InvalidEmail
from retcon.state import EditBuffer, SessionState

# Direction the app should move after a successful save.
DONE = "done"
NEXT = "next"
PREV = "prev"

_KEY_ACTIONS: dict[str, Callable[[EditBuffer], None]] = {
    "backspace": EditBuffer.backspace,
    "delete": EditBuffer.delete,
    "left": EditBuffer.move_left,
    "right": EditBuffer.move_right,
    "home": EditBuffer.home,
    "end": EditBuffer.end,
    "ctrl+a": EditBuffer.home,
    "ctrl+e": EditBuffer.end,
    "ctrl+left": EditBuffer.move_word_left,
    "ctrl+right": EditBuffer.move_word_right,
    "alt+left": EditBuffer.move_word_left,
    "alt+right": EditBuffer.move_word_right,
    "ctrl+w": EditBuffer.delete_word_backward,
    "alt+backspace": EditBuffer.delete_word_backward,
    "ctrl+u": EditBuffer.kill_to_start,
    "ctrl+k": EditBuffer.kill_to_end,
}


class LineEditor(Widget, can_focus=True):
    """Renders an EditBuffer with a block cursor and routes keys into it.

    Enter, Escape and Tab are left to bubble up to the screen's bindings.
    """

    def __init__(self, buffer: EditBuffer, **kwargs) -> None:
        super().__init__(**kwargs)
        self._edit_buffer = buffer

    def render(self) -> Text:
        text, cursor = self._edit_buffer.text, self._edit_buffer.cursor
        rendered = Text(text[:cursor])
        rendered.append(text[cursor : cursor + 1] or " ", style="reverse")
        rendered.append(text[cursor + 1 :])
        return rendered

    def on_key(self, event: events.Key) -> None:
        action = _KEY_ACTIONS.get(event.key)
        if action is not None:
            action(self._edit_buffer)
        elif event.is_printable and event.character:
            self._edit_buffer.insert(event.character)
        else:
            return
        event.stop()
        event.prevent_default()
        self.refresh()


class EditScreen(ModalScreen[tuple[str, str | None] | None]):
    """Modal that edits the session's current field in place.

    The session must already be in Editing mode. Saving runs the session's
    validation: on failure the error is shown inline and the editor stays
    open. Dismisses with ``(direction, status message)`` on save, or None on
    cancel.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
        Binding("enter", "save('done')", show=False),
        Binding("tab", "save('next')", show=False),
        Binding("shift+tab", "save('prev')", show=False),
    ]

    def __init__(self, session: SessionState, target_count: int = 1) -> None:
        super().__init__()
        self._session = session
        self._field = session.mode.field
        self._target_count = target_count

    def compose(self) -> ComposeResult:
        title = f"Edit  {self._field.display_name}"
        if self._target_count > 1:
            title += f"  ({self._target_count} commits)"
        with Vertical(id="edit-container"):
            yield Label(title, id="edit-title")
            yield LineEditor(self._session.edit_buffer, id="edit-value")
            yield Label("", id="edit-error")
            yield Label("Enter to save · Tab next field · Escape to cancel", id="edit-hint")

    def on_mount(self) -> None:
        self.query_one("#edit-value", LineEditor).focus()

    def _show_error(self, msg: str) -> None:
        self.query_one("#edit-error", Label).update(Text(msg, style="red"))

    def action_save(self, direction: str) -> None:
        try:
            message = self._session.confirm_edit()
        except (InvalidEmail, InvalidDate) as exc:
            self._show_error(str(exc))
            return
        self.dismiss((direction, message))

    def action_cancel(self) -> None:
        self._session.cancel_edit()
        self.dismiss(None)
