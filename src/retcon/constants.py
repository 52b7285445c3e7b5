"""Application-wide constants."""

APP_TITLE = "retcon"

DEFAULT_LIMIT = 50
PAGE_ROWS = 10

TABLE_COLUMNS = ("✓", "Hash", "Author", "Email", "Date", "Message")
COMMITTER_TABLE_COLUMNS = ("✓", "Hash", "Committer", "C.Email", "C.Date", "Message")

HELP_TEXT = """\
 Navigation
 ──────────────────────────────────────
 j / ↓        Move cursor down
 k / ↑        Move cursor up
 h / l        Previous / next column
 Tab          Next editable column
 g / G        First / last commit
 Ctrl+d / u   Page down / up
 c            Toggle author / committer view

 Selection
 ──────────────────────────────────────
 Space        Toggle selection
 Ctrl+a       Select all commits
 Ctrl+n       Deselect all commits
 v / V        Line visual mode
 Ctrl+v       Block visual mode
   e / Enter  Edit every commit in range
   Space      Toggle range selection
   d / x      Delete every commit in range
   Esc        Cancel visual selection
 (Edits apply to the selection if any)

 Edit
 ──────────────────────────────────────
 e / Enter    Edit the focused cell
 d / x        Toggle deletion
 J / K        Move commit down / up
 u            Undo last change
 Ctrl+r       Redo

 In the editor
 ──────────────────────────────────────
 Enter        Save
 Esc          Cancel
 Tab          Save and edit next column
 Ctrl+w       Delete word backward
 Ctrl+u / k   Delete to start / end
 Ctrl+a / e   Start / end of line

 Search
 ──────────────────────────────────────
 /            Open search
 Enter        Apply filter
 Escape       Clear filter

 General
 ──────────────────────────────────────
 w            Write changes to git
 r            Discard all changes
 ?            Toggle this help
 q            Quit\
"""
