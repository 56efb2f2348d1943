import threading
import time

from booking import locks
from models import db
from models.client_schedule_lock import ClientScheduleLock


def test_hold_releases_entries():
    with locks.hold(locks.client_key(1), locks.session_key(2)):
        assert locks.held_keys() == 2
    assert locks.held_keys() == 0


def test_hold_releases_on_error():
    try:
        with locks.hold(locks.session_key(5)):
            raise ValueError("boom")
    except ValueError:
        pass
    assert locks.held_keys() == 0


def test_different_keys_do_not_block():
    entered = threading.Event()

    def other():
        with locks.hold(locks.session_key(2)):
            entered.set()

    with locks.hold(locks.session_key(1)):
        t = threading.Thread(target=other)
        t.start()
        assert entered.wait(timeout=2)
        t.join()


def test_same_key_serializes():
    order = []

    def worker(name):
        with locks.hold(locks.session_key(9)):
            order.append(name + "-in")
            time.sleep(0.05)
            order.append(name + "-out")

    threads = [threading.Thread(target=worker, args=(n,)) for n in ("a", "b")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert order[0][0] == order[1][0]
    assert order[2][0] == order[3][0]


def test_client_schedule_lock_row_per_client(app):
    assert locks.lock_client_schedule(7) == 1
    assert locks.lock_client_schedule(7) == 2
    assert locks.lock_client_schedule(8) == 1
    db.session.commit()

    assert ClientScheduleLock.query.count() == 2

    locks.lock_client_schedule(7)
    db.session.rollback()
    assert db.session.get(ClientScheduleLock, 7, populate_existing=True).version == 2
