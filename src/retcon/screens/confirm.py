"""Confirm screen — yes/no modal for apply, discard and quit."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from retcon.models import ConfirmAction

TITLES = {
    ConfirmAction.APPLY_CHANGES: "Apply Changes",
    ConfirmAction.DISCARD_CHANGES: "Discard Changes",
    ConfirmAction.QUIT_WITH_CHANGES: "Quit with Changes",
}


class ConfirmScreen(ModalScreen[bool]):
    """Modal that asks the user to confirm or cancel a destructive action.

    Shows a title, body lines and an optional warning. "No" is focused on
    open. Dismisses with True on confirm, False on cancel.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
        Binding("n", "cancel", show=False),
        Binding("N", "cancel", show=False),
        Binding("y", "confirm", show=False),
        Binding("Y", "confirm", show=False),
        Binding("h", "focus_yes", show=False),
        Binding("left", "focus_yes", show=False),
        Binding("l", "focus_no", show=False),
        Binding("right", "focus_no", show=False),
    ]

    def __init__(self, title: str, lines: list[str], warning: str | None = None) -> None:
        super().__init__()
        self._heading = title
        self._body_lines = lines
        self._warning = warning

    @classmethod
    def for_action(
        cls, action: ConfirmAction, lines: list[str], warning: str | None = None
    ) -> "ConfirmScreen":
        return cls(TITLES[action], lines, warning)

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-container"):
            yield Label(self._heading, id="confirm-title")
            with ScrollableContainer(id="confirm-body"):
                for line in self._body_lines:
                    yield Label(line, markup=False)
            if self._warning:
                yield Label(f"[bold yellow]Warning:[/] {self._warning}", id="confirm-warning")
            with Horizontal(id="confirm-buttons"):
                yield Button("Yes", variant="error", id="confirm-yes")
                yield Button("No", variant="primary", id="confirm-no")

    def on_mount(self) -> None:
        self.query_one("#confirm-no", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)

    def action_focus_yes(self) -> None:
        self.query_one("#confirm-yes", Button).focus()

    def action_focus_no(self) -> None:
        self.query_one("#confirm-no", Button).focus()

    @property
    def body(self) -> list[str]:
        """Body lines as passed in (for tests)."""
        return list(self._body_lines)
