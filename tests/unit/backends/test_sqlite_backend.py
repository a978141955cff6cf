import json
import sqlite3

import pytest

from sessionkit import Manager, RequestContext, SessionStatus, SQLiteBackend


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "sessions.db")


def _open(db_path, clock, session_id=None, initialised=True, **options):
    cookies = {"sid": session_id} if session_id else {}
    context = RequestContext(remote_addr="127.0.0.1", user_agent="pytest", cookies=cookies)
    backend = SQLiteBackend("sid", db_path, context=context, options=options, initialised=initialised)
    return Manager(backend, options, clock=clock)


def test_backend_is_disabled_until_initialised(db_path, clock):
    session = _open(db_path, clock, initialised=False)

    assert session.status == SessionStatus.DISABLED
    assert session.start() is False
    assert session.create() is False
    assert session.gc() is False

    assert session.backend.init() is True
    assert session.status == SessionStatus.NONE


def test_db_path_is_normalised(tmp_path):
    backend = SQLiteBackend("sid", str(tmp_path / "store"))

    assert backend.db_path == str(tmp_path / "store.db")


def test_init_failure_leaves_backend_disabled(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    backend = SQLiteBackend("sid", str(blocker / "sessions.db"))

    assert backend.init() is False
    assert backend.status == SessionStatus.DISABLED


def test_payload_round_trip(db_path, clock):
    SQLiteBackend("sid", db_path).init()

    first = _open(db_path, clock)
    first.start()
    first.data.set("cart", ["apple", "pear"])
    assert first.stop() is True

    record = first.backend.get_record(first.id)
    assert record is not None
    assert record.name == "sid"
    assert record.expires_at == clock.now() + 7200
    assert json.loads(record.payload)["security"]["id"] == first.id

    second = _open(db_path, clock, session_id=first.id)
    assert second.start() is True
    assert second.data.get("cart") == ["apple", "pear"]


def test_write_updates_existing_row(db_path, clock):
    SQLiteBackend("sid", db_path).init()
    session = _open(db_path, clock)
    session.start()
    session.data.set("step", 1)
    session.write()
    session.data.set("step", 2)
    session.write()

    payload = json.loads(session.backend.get_record(session.id).payload)
    assert payload["data"]["step"] == 2


def test_destroy_and_gc(db_path, clock):
    SQLiteBackend("sid", db_path).init()

    doomed = _open(db_path, clock)
    doomed.start()
    doomed.stop()
    short = _open(db_path, clock, expiration_time=10)
    short.start()
    short.stop()
    kept = _open(db_path, clock)
    kept.start()
    kept.stop()

    destroyer = _open(db_path, clock, session_id=doomed.id)
    destroyer.start()
    assert destroyer.destroy() is True
    assert kept.backend.get_record(doomed.id) is None

    clock.advance(11)
    assert kept.gc() is True
    assert kept.backend.get_record(short.id) is None
    assert kept.backend.get_record(kept.id) is not None


def test_storage_errors_become_false_results(db_path, clock):
    SQLiteBackend("sid", db_path).init()
    session = _open(db_path, clock)
    session.start()

    with sqlite3.connect(db_path) as connection:
        connection.execute("DROP TABLE session_payloads")

    assert session.read() is False
    assert session.stop() is False
