"""Help overlay screen."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

from retcon.constants import HELP_TEXT


class HelpScreen(ModalScreen):
    """Modal overlay displaying keyboard shortcuts."""

    BINDINGS = [
        Binding("escape", "dismiss", show=False),
        Binding("?", "dismiss", show=False),
        Binding("q", "dismiss", show=False),
        Binding("j", "scroll_help(1)", show=False),
        Binding("k", "scroll_help(-1)", show=False),
    ]

    def compose(self) -> ComposeResult:
        yield VerticalScroll(
            Static(HELP_TEXT, id="help-text"),
            id="help-container",
        )

    def action_scroll_help(self, lines: int) -> None:
        self.query_one("#help-container", VerticalScroll).scroll_relative(y=lines, animate=False)

    def on_click(self) -> None:
        """Dismiss on any click outside the help box."""
        self.dismiss()
