"""Main view: search bar above the commit table and the detail pane."""

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Input, LoadingIndicator

from retcon.widgets.commit_table import CommitTable
from retcon.widgets.detail_pane import DetailPane


class MainView(Vertical):
    """Composes the search input, commit table and detail pane into one panel."""

    def compose(self) -> ComposeResult:
        yield Input(placeholder="Search author, email, message or hash…", id="search")
        yield CommitTable(id="commit-table")
        yield DetailPane(id="detail")
        yield LoadingIndicator(id="loading")
