from app.models.pending_import import PendingImport
from app.services.folder_watcher import list_pending, mark_fetched, poll_inbox


def test_poll_stages_each_file_once(db_session, config, storage):
    storage.files["inbox/a.pdf"] = b"a"
    storage.files["inbox/b.pdf"] = b"b"
    storage.files["inbox/notes.txt"] = b"ignored"

    staged = poll_inbox(db_session, config, storage)
    again = poll_inbox(db_session, config, storage)

    assert [row.filename for row in staged] == ["a.pdf", "b.pdf"]
    assert again == []
    assert len(list_pending(db_session)) == 2


def test_fetched_rows_leave_pending(db_session, config, storage):
    storage.files["inbox/a.pdf"] = b"a"
    poll_inbox(db_session, config, storage)
    row = list_pending(db_session)[0]

    mark_fetched(db_session, row)

    assert list_pending(db_session) == []
    # Still in the inbox: not staged again
    assert poll_inbox(db_session, config, storage) == []


def test_file_reused_after_it_left_the_inbox(db_session, config, storage):
    storage.files["inbox/a.pdf"] = b"a"
    poll_inbox(db_session, config, storage)
    mark_fetched(db_session, list_pending(db_session)[0])
    storage.move_file("inbox/a.pdf", "processed")

    poll_inbox(db_session, config, storage)
    assert db_session.query(PendingImport).count() == 0

    storage.files["inbox/a.pdf"] = b"a2"
    staged = poll_inbox(db_session, config, storage)

    assert [row.storage_key for row in staged] == ["inbox/a.pdf"]
