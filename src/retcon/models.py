"""Domain models."""

from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum, auto

SHORT_HASH_LENGTH = 7


@dataclass(frozen=True)
class CommitId:
    """Content-derived commit identifier; compares and hashes by value."""

    hexsha: str

    @property
    def short(self) -> str:
        return self.hexsha[:SHORT_HASH_LENGTH]

    def __str__(self) -> str:
        return self.short


@dataclass(frozen=True)
class Person:
    name: str
    email: str

    def format_full(self) -> str:
        return f"{self.name} <{self.email}>"


class EditableField(Enum):
    AUTHOR_NAME = auto()
    AUTHOR_EMAIL = auto()
    AUTHOR_DATE = auto()
    COMMITTER_NAME = auto()
    COMMITTER_EMAIL = auto()
    COMMITTER_DATE = auto()
    MESSAGE = auto()

    @classmethod
    def all(cls) -> list["EditableField"]:
        return list(cls)

    @property
    def attr(self) -> str:
        """Attribute name of this field on CommitModifications."""
        return self.name.lower()

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def short_label(self) -> str:
        return _SHORT_LABELS[self]

    @property
    def is_date(self) -> bool:
        return self in (EditableField.AUTHOR_DATE, EditableField.COMMITTER_DATE)

    @property
    def is_email(self) -> bool:
        return self in (EditableField.AUTHOR_EMAIL, EditableField.COMMITTER_EMAIL)

    @property
    def is_multiline(self) -> bool:
        return self is EditableField.MESSAGE

    def next(self) -> "EditableField":
        members = list(EditableField)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> "EditableField":
        members = list(EditableField)
        return members[(members.index(self) - 1) % len(members)]


_DISPLAY_NAMES = {
    EditableField.AUTHOR_NAME: "Author Name",
    EditableField.AUTHOR_EMAIL: "Author Email",
    EditableField.AUTHOR_DATE: "Author Date",
    EditableField.COMMITTER_NAME: "Committer Name",
    EditableField.COMMITTER_EMAIL: "Committer Email",
    EditableField.COMMITTER_DATE: "Committer Date",
    EditableField.MESSAGE: "Commit Message",
}

_SHORT_LABELS = {
    EditableField.AUTHOR_NAME: "Author",
    EditableField.AUTHOR_EMAIL: "Email",
    EditableField.AUTHOR_DATE: "Date",
    EditableField.COMMITTER_NAME: "Committer",
    EditableField.COMMITTER_EMAIL: "C.Email",
    EditableField.COMMITTER_DATE: "C.Date",
    EditableField.MESSAGE: "Message",
}

# Author field -> committer field written alongside it when sync is enabled.
SYNCED_FIELDS = {
    EditableField.AUTHOR_NAME: EditableField.COMMITTER_NAME,
    EditableField.AUTHOR_EMAIL: EditableField.COMMITTER_EMAIL,
    EditableField.AUTHOR_DATE: EditableField.COMMITTER_DATE,
}


@dataclass(frozen=True)
class CommitData:
    """Immutable snapshot of one commit as loaded from the repository.

    Never mutated: pending edits live in a separate CommitModifications overlay
    keyed by ``id``.
    """

    id: CommitId
    author: Person
    author_date: datetime
    committer: Person
    committer_date: datetime
    message: str
    parent_ids: tuple[CommitId, ...]
    tree_id: str

    @property
    def short_hash(self) -> str:
        return self.id.short

    @property
    def summary(self) -> str:
        return first_line(self.message)

    @property
    def is_merge(self) -> bool:
        return len(self.parent_ids) > 1

    def value(self, editable: EditableField) -> str | datetime:
        """Return the original value of *editable*."""
        return {
            EditableField.AUTHOR_NAME: self.author.name,
            EditableField.AUTHOR_EMAIL: self.author.email,
            EditableField.AUTHOR_DATE: self.author_date,
            EditableField.COMMITTER_NAME: self.committer.name,
            EditableField.COMMITTER_EMAIL: self.committer.email,
            EditableField.COMMITTER_DATE: self.committer_date,
            EditableField.MESSAGE: self.message,
        }[editable]

    def matches(self, query: str) -> bool:
        """Return True if author name, email, message or short hash contains query.

        The query is expected to be lower-cased already.
        """
        return (
            query in self.author.name.lower()
            or query in self.author.email.lower()
            or query in self.message.lower()
            or query in self.short_hash.lower()
        )


def first_line(message: str) -> str:
    return message.split("\n", 1)[0].strip()


@dataclass
class CommitModifications:
    """Sparse overlay of pending edits to a single commit; None means unchanged."""

    author_name: str | None = None
    author_email: str | None = None
    author_date: datetime | None = None
    committer_name: str | None = None
    committer_email: str | None = None
    committer_date: datetime | None = None
    message: str | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def has_modifications(self) -> bool:
        return not self.is_empty()

    def get(self, editable: EditableField) -> str | datetime | None:
        return getattr(self, editable.attr)

    def set(self, editable: EditableField, value: str | datetime) -> None:
        setattr(self, editable.attr, value)

    def changed_fields(self) -> list[EditableField]:
        return [f for f in EditableField if self.get(f) is not None]

    def modification_count(self) -> int:
        return len(self.changed_fields())

    def effective(self, commit: CommitData, editable: EditableField) -> str | datetime:
        override = self.get(editable)
        return commit.value(editable) if override is None else override

    def effective_author(self, commit: CommitData) -> Person:
        return Person(
            self.author_name if self.author_name is not None else commit.author.name,
            self.author_email if self.author_email is not None else commit.author.email,
        )

    def effective_committer(self, commit: CommitData) -> Person:
        return Person(
            self.committer_name if self.committer_name is not None else commit.committer.name,
            self.committer_email
            if self.committer_email is not None
            else commit.committer.email,
        )

    def effective_author_date(self, commit: CommitData) -> datetime:
        return self.author_date if self.author_date is not None else commit.author_date

    def effective_committer_date(self, commit: CommitData) -> datetime:
        return self.committer_date if self.committer_date is not None else commit.committer_date

    def effective_message(self, commit: CommitData) -> str:
        return self.message if self.message is not None else commit.message

    def effective_summary(self, commit: CommitData) -> str:
        return first_line(self.effective_message(commit))


@dataclass
class UndoSnapshot:
    """Full copy of the three mutable overlays, taken before a mutation."""

    commit_order: list[CommitId]
    modifications: dict[CommitId, CommitModifications]
    deleted: set[CommitId]
    description: str


class Column(Enum):
    """Columns of the commit table, in display order."""

    SELECTION = 0
    HASH = 1
    NAME = 2
    EMAIL = 3
    DATE = 4
    MESSAGE = 5

    @property
    def is_editable(self) -> bool:
        return self not in (Column.SELECTION, Column.HASH)

    def editable_field(self, committer_view: bool = False) -> EditableField | None:
        """Map a column to the field it edits, honouring the committer view."""
        if self is Column.MESSAGE:
            return EditableField.MESSAGE
        author_fields = {
            Column.NAME: EditableField.AUTHOR_NAME,
            Column.EMAIL: EditableField.AUTHOR_EMAIL,
            Column.DATE: EditableField.AUTHOR_DATE,
        }
        result = author_fields.get(self)
        if result is not None and committer_view:
            return SYNCED_FIELDS[result]
        return result


NUM_COLUMNS = len(Column)
EDITABLE_COLUMNS = [c.value for c in Column if c.is_editable]


class VisualKind(Enum):
    LINE = auto()
    BLOCK = auto()


class ConfirmAction(Enum):
    APPLY_CHANGES = auto()
    DISCARD_CHANGES = auto()
    QUIT_WITH_CHANGES = auto()


# Modal states. Exactly one is active at a time; payload only where needed.


@dataclass(frozen=True)
class Normal:
    pass


@dataclass(frozen=True)
class Visual:
    anchor: tuple[int, int]
    kind: VisualKind


@dataclass(frozen=True)
class Editing:
    row: int
    field: EditableField


@dataclass(frozen=True)
class Search:
    pass


@dataclass(frozen=True)
class Confirming:
    action: ConfirmAction


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Quitting:
    pass


AppMode = Normal | Visual | Editing | Search | Confirming | Help | Quitting


@dataclass
class ApplyOutcome:
    """Result of a successful apply; ``warning`` is set on partial success."""

    new_head: CommitId
    warning: str | None = None
