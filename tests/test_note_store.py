"""
Tests for the durable (SQL) and fallback (JSONL) note stores.
"""
from datetime import datetime, timezone

import pytest

from triage.db import make_session_factory
from triage.errors import SubmissionError
from triage.services.note_store import LocalNoteStore, SqlNoteStore
from tests.conftest import find_note


@pytest.fixture(params=["sql", "local"])
def store(request, sql_store, local_store):
    return sql_store if request.param == "sql" else local_store


class TestNoteStoreContract:
    def test_create_assigns_id_and_timestamp(self, store, make_record):
        note_id = store.create_note(make_record())

        assert note_id
        note = find_note(store, note_id)
        assert note.user_id == "user-1"
        assert note.initial_complaint == "headache"
        assert note.transcript[1].answer == "two days"
        assert note.plan == "See a physician."
        assert note.created_at.tzinfo is not None

    def test_missing_identity_rejected(self, store, make_record):
        with pytest.raises(SubmissionError):
            store.create_note(make_record(user_id=""))
        assert store.list_notes() == []

    def test_list_is_newest_first(self, store, make_record):
        first = store.create_note(make_record(complaint="first"))
        second = store.create_note(make_record(complaint="second"))
        ids = [note.id for note in store.list_notes()]
        assert set(ids) == {first, second}
        notes = store.list_notes()
        assert notes[0].created_at >= notes[1].created_at

    def test_subscription_delivers_full_snapshots(self, store, make_record):
        snapshots = []
        unsubscribe = store.subscribe(snapshots.append)
        assert snapshots == [[]]

        store.create_note(make_record(user_id="a"))
        store.create_note(make_record(user_id="b"))
        assert [len(snapshot) for snapshot in snapshots] == [0, 1, 2]

        unsubscribe()
        store.create_note(make_record(user_id="c"))
        assert len(snapshots) == 3


class TestLocalNoteStore:
    def test_ids_are_local(self, local_store, make_record):
        assert local_store.create_note(make_record()).startswith("local-")

    def test_skips_corrupt_lines(self, local_store, make_record):
        local_store.create_note(make_record())
        with local_store.path.open("a", encoding="utf-8") as fh:
            fh.write("{not json\n\n")
        assert len(local_store.list_notes()) == 1

    def test_unreadable_file_delivers_empty_set(self, tmp_path):
        directory = tmp_path / "is-a-directory"
        directory.mkdir()
        store = LocalNoteStore(directory)

        snapshots = []
        store.subscribe(snapshots.append)

        assert snapshots == [[]]

    def test_write_failure_raises_submission_error(self, tmp_path, make_record):
        directory = tmp_path / "is-a-directory"
        directory.mkdir()
        with pytest.raises(SubmissionError):
            LocalNoteStore(directory).create_note(make_record())


def test_sql_store_reports_utc(sql_store, make_record):
    note = find_note(sql_store, sql_store.create_note(make_record()))
    assert note.created_at.utcoffset() == timezone.utc.utcoffset(None)
    assert note.created_at <= datetime.now(timezone.utc)


# ── subscriber failures after a committed write ──

class UnreadableSqlNoteStore(SqlNoteStore):
    """Writes succeed; reading back raises something unexpected."""

    def list_notes(self):
        raise KeyError("transcript")


class TestPublishAfterWrite:
    def test_raising_subscriber_does_not_fail_write(self, store, make_record):
        def explode(notes):
            if notes:
                raise RuntimeError("review board crashed")

        store.subscribe(explode)
        note_id = store.create_note(make_record())

        assert note_id
        assert [note.id for note in store.list_notes()] == [note_id]

    def test_other_subscribers_still_notified(self, store, make_record):
        def explode(notes):
            raise RuntimeError("review board crashed")

        snapshots = []
        store.subscribe(explode)
        store.subscribe(snapshots.append)
        store.create_note(make_record())

        assert [len(snapshot) for snapshot in snapshots] == [0, 1]

    def test_unexpected_read_error_delivers_empty_set(self, sql_engine, make_record):
        store = UnreadableSqlNoteStore(make_session_factory(sql_engine))
        snapshots = []
        store.subscribe(snapshots.append)

        note_id = store.create_note(make_record())

        assert note_id
        assert snapshots == [[], []]
