"""Detail pane: full metadata of the commit under the cursor."""

from rich.text import Text
from textual.widgets import Static

from retcon.models import CommitData, CommitModifications, EditableField
from retcon.validation import format_date


class DetailPane(Static):
    """Shows hash, parents, author, committer and the full message.

    Values come from the pending overlay when one exists; overridden fields
    carry a yellow ``*`` so the user can see what an apply would change.
    """

    def show_commit(
        self,
        commit: CommitData | None,
        mods: CommitModifications | None = None,
        deleted: bool = False,
    ) -> None:
        if commit is None:
            self.update("")
            return
        mods = mods or CommitModifications()
        text = Text()
        text.append("commit ", style="bold")
        text.append(commit.id.hexsha, style="yellow")
        if deleted:
            text.append("  (marked for deletion)", style="bold red")
        text.append("\n")
        if commit.parent_ids:
            parents = " ".join(p.short for p in commit.parent_ids)
            text.append(f"Parents:   {parents}\n", style="dim")

        author = mods.effective_author(commit).format_full()
        committer = mods.effective_committer(commit).format_full()
        author_date = format_date(mods.effective_author_date(commit))
        committer_date = format_date(mods.effective_committer_date(commit))
        author_changed = mods.author_name is not None or mods.author_email is not None
        committer_changed = mods.committer_name is not None or mods.committer_email is not None
        self._line(text, "Author:   ", author, author_changed)
        self._line(text, "Date:     ", author_date, mods.author_date is not None)
        self._line(text, "Committer:", committer, committer_changed)
        self._line(text, "Date:     ", committer_date, mods.committer_date is not None)

        text.append("\n")
        message = mods.effective_message(commit).rstrip("\n")
        style = "yellow" if mods.get(EditableField.MESSAGE) is not None else ""
        for line in message.splitlines() or [""]:
            text.append(f"    {line}\n", style=style)
        self.update(text)

    @staticmethod
    def _line(text: Text, label: str, value: str, overridden: bool) -> None:
        text.append(f"{label} ", style="bold")
        text.append(value)
        if overridden:
            text.append(" *", style="bold yellow")
        text.append("\n")
