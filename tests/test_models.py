"""Unit tests for domain models."""

from datetime import datetime, timezone

from conftest import fake_id, make_commit

from retcon.models import (
    EDITABLE_COLUMNS,
    Column,
    CommitId,
    CommitModifications,
    EditableField,
    Person,
)


class TestCommitId:
    def test_short_is_seven_characters(self):
        """
        Given a full 40-character id
        When short is read
        Then the first seven characters are returned
        """
        cid = CommitId("abcdef1234567890abcdef1234567890abcdef12")
        assert cid.short == "abcdef1"
        assert str(cid) == "abcdef1"

    def test_equality_is_by_value(self):
        """
        Given two CommitIds built from the same hex string
        When compared and hashed
        Then they are equal and collapse in a set
        """
        assert fake_id(1) == fake_id(1)
        assert len({fake_id(1), fake_id(1), fake_id(2)}) == 2


class TestEditableField:
    def test_next_wraps_from_message_to_author_name(self):
        """
        Given the last field
        When next is called
        Then it wraps around to the first field
        """
        assert EditableField.MESSAGE.next() is EditableField.AUTHOR_NAME

    def test_prev_wraps_from_author_name_to_message(self):
        """
        Given the first field
        When prev is called
        Then it wraps around to the last field
        """
        assert EditableField.AUTHOR_NAME.prev() is EditableField.MESSAGE

    def test_predicates(self):
        """
        Given each field kind
        When the classification properties are read
        Then only dates are dates, only emails are emails, only message is multiline
        """
        assert EditableField.AUTHOR_DATE.is_date
        assert EditableField.COMMITTER_DATE.is_date
        assert not EditableField.AUTHOR_NAME.is_date
        assert EditableField.COMMITTER_EMAIL.is_email
        assert EditableField.MESSAGE.is_multiline
        assert not EditableField.AUTHOR_EMAIL.is_multiline

    def test_all_lists_seven_fields_in_order(self):
        """
        Given the enum
        When all is called
        Then seven fields come back, author fields first and message last
        """
        fields = EditableField.all()
        assert len(fields) == 7
        assert fields[0] is EditableField.AUTHOR_NAME
        assert fields[-1] is EditableField.MESSAGE


class TestCommitData:
    def test_summary_is_trimmed_first_line(self):
        """
        Given a multi-line message
        When summary is read
        Then only the first line is returned
        """
        commit = make_commit(1, message="Fix the thing  \n\nLonger body\n")
        assert commit.summary == "Fix the thing"

    def test_is_merge_requires_two_parents(self):
        """
        Given commits with zero, one and two parents
        When is_merge is read
        Then only the two-parent commit is a merge
        """
        assert not make_commit(1).is_merge
        assert not make_commit(2).is_merge
        assert make_commit(4, parents=(2, 3)).is_merge

    def test_matches_author_email_message_and_hash(self):
        """
        Given a commit
        When matches is called with lower-cased fragments of each searchable part
        Then each fragment matches and an unrelated one does not
        """
        commit = make_commit(3, name="Bob Smith", email="bob@corp.io", message="Add Parser\n")
        assert commit.matches("smith")
        assert commit.matches("corp.io")
        assert commit.matches("parser")
        assert commit.matches(commit.short_hash)
        assert not commit.matches("alice")


class TestCommitModifications:
    def test_new_overlay_is_empty(self):
        """
        Given a freshly created overlay
        When inspected
        Then it reports no modifications
        """
        mods = CommitModifications()
        assert mods.is_empty()
        assert not mods.has_modifications()
        assert mods.modification_count() == 0

    def test_set_and_changed_fields(self):
        """
        Given an overlay
        When two fields are set
        Then both are reported as changed in field order
        """
        mods = CommitModifications()
        mods.set(EditableField.MESSAGE, "new\n")
        mods.set(EditableField.AUTHOR_EMAIL, "x@y.z")
        assert mods.changed_fields() == [EditableField.AUTHOR_EMAIL, EditableField.MESSAGE]
        assert mods.modification_count() == 2

    def test_effective_values_fall_back_to_original(self):
        """
        Given an overlay that only overrides the author name
        When effective values are read
        Then the override wins and every other value comes from the commit
        """
        commit = make_commit(1)
        mods = CommitModifications(author_name="Carol")
        assert mods.effective_author(commit) == Person("Carol", "alice@example.com")
        assert mods.effective_committer(commit) == commit.committer
        assert mods.effective_message(commit) == commit.message
        assert mods.effective_author_date(commit) == commit.author_date

    def test_effective_date_override(self):
        """
        Given an overlay with a committer date
        When effective is called for that field
        Then the override is returned
        """
        when = datetime(2020, 5, 5, tzinfo=timezone.utc)
        mods = CommitModifications(committer_date=when)
        assert mods.effective(make_commit(1), EditableField.COMMITTER_DATE) == when


class TestColumn:
    def test_editable_columns(self):
        """
        Given the column layout
        When the editable set is computed
        Then selection and hash are excluded
        """
        assert EDITABLE_COLUMNS == [2, 3, 4, 5]
        assert not Column.SELECTION.is_editable
        assert not Column.HASH.is_editable

    def test_editable_field_follows_committer_view(self):
        """
        Given the name, email and date columns
        When mapped in author and committer view
        Then they edit the matching author or committer field
        """
        assert Column.NAME.editable_field() is EditableField.AUTHOR_NAME
        assert Column.EMAIL.editable_field(committer_view=True) is EditableField.COMMITTER_EMAIL
        assert Column.DATE.editable_field(committer_view=True) is EditableField.COMMITTER_DATE
        assert Column.MESSAGE.editable_field(committer_view=True) is EditableField.MESSAGE
        assert Column.HASH.editable_field() is None
