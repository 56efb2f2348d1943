"""
Keyed locks.

``hold(("client", 7), ("session", 3))`` gives one in-process mutex per key.
Keys are acquired in sorted order so two callers never wait on each other
in a cycle. Entries are dropped once nobody holds or waits on them.

``hold`` only covers threads of one worker. ``lock_client_schedule`` takes
the matching row lock in the database, which every worker process sees
and which lasts until the caller's transaction ends.
"""
import threading
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import insert, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from models import db
from models.client_schedule_lock import ClientScheduleLock

_registry_lock = threading.Lock()
_locks: dict = {}  # key -> [lock, users]


def _checkout(key):
    with _registry_lock:
        entry = _locks.get(key)
        if entry is None:
            entry = [threading.Lock(), 0]
            _locks[key] = entry
        entry[1] += 1
        return entry[0]


def _checkin(key):
    with _registry_lock:
        entry = _locks[key]
        entry[1] -= 1
        if entry[1] == 0:
            del _locks[key]


@contextmanager
def hold(*keys):
    ordered = sorted(set(keys))
    acquired = []
    try:
        for key in ordered:
            lock = _checkout(key)
            try:
                lock.acquire()
            except BaseException:
                _checkin(key)
                raise
            acquired.append((key, lock))
        yield
    finally:
        for key, lock in reversed(acquired):
            lock.release()
            _checkin(key)


def client_key(client_id: int):
    return ("client", int(client_id))


def session_key(session_id: int):
    return ("session", int(session_id))


def held_keys() -> int:
    """Number of live lock entries (used by tests to check nothing leaks)."""
    with _registry_lock:
        return len(_locks)


def _ensure_client_row(client_id: int):
    dialect = db.session.get_bind().dialect.name
    values = {"client_id": client_id, "version": 0, "updated_at": datetime.utcnow()}
    if dialect == "postgresql":
        stmt = pg_insert(ClientScheduleLock).values(**values).on_conflict_do_nothing(index_elements=["client_id"])
    elif dialect == "sqlite":
        stmt = sqlite_insert(ClientScheduleLock).values(**values).on_conflict_do_nothing(index_elements=["client_id"])
    else:
        stmt = insert(ClientScheduleLock).values(**values).prefix_with("IGNORE", dialect="mysql")
    db.session.execute(stmt)


def lock_client_schedule(client_id: int) -> int:
    """
    Row-lock the client's schedule inside the current transaction and return
    the new lock version. A second transaction for the same client blocks
    here until the first commits or rolls back, so its overlap scan sees
    the first one's reservation.
    """
    client_id = int(client_id)
    _ensure_client_row(client_id)
    db.session.execute(
        update(ClientScheduleLock)
        .where(ClientScheduleLock.client_id == client_id)
        .values(version=ClientScheduleLock.version + 1, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(
        db.select(ClientScheduleLock.version).where(ClientScheduleLock.client_id == client_id)
    ).scalar_one()
