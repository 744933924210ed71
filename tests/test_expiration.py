import threading
import time
from datetime import timedelta

from ringoshop.services.expiration import ExpirationRegistry
from ringoshop.utils import utcnow


def _soon(seconds=0.05):
    return utcnow() + timedelta(seconds=seconds)


def test_fires_once_and_forgets_entry():
    registry = ExpirationRegistry(workers=1)
    fired = []
    done = threading.Event()

    def on_expire(order_id):
        fired.append(order_id)
        done.set()

    registry.register(7, _soon(), on_expire)
    assert 7 in registry

    assert done.wait(2)
    assert fired == [7]
    assert 7 not in registry
    assert len(registry) == 0
    registry.shutdown(wait=True)


def test_cancel_before_deadline_prevents_action():
    registry = ExpirationRegistry(workers=1)
    fired = []

    registry.register(1, _soon(0.3), fired.append)
    assert registry.cancel(1) is True
    assert registry.cancel(1) is False

    time.sleep(0.5)
    assert fired == []
    registry.shutdown(wait=True)


def test_reregistration_replaces_previous_timer():
    registry = ExpirationRegistry(workers=1)
    first, second = [], []
    done = threading.Event()

    def on_second(order_id):
        second.append(order_id)
        done.set()

    registry.register(3, _soon(0.2), first.append)
    deadline = _soon(0.3)
    registry.register(3, deadline, on_second)
    assert registry.deadline_for(3) == deadline
    assert len(registry) == 1

    assert done.wait(2)
    time.sleep(0.1)
    assert first == []
    assert second == [3]
    registry.shutdown(wait=True)


def test_stale_timer_does_not_act_on_a_newer_entry():
    registry = ExpirationRegistry(workers=1)
    fired = []

    registry.register(5, _soon(10), fired.append)
    # a callback from some other thread than the entry's own timer
    registry._fire(5)

    assert fired == []
    assert 5 in registry
    registry.shutdown(wait=True)


def test_worker_failure_is_logged_and_entry_not_readded(caplog):
    registry = ExpirationRegistry(workers=1)
    done = threading.Event()

    def boom(order_id):
        done.set()
        raise RuntimeError("db down")

    registry.register(9, _soon(), boom)
    assert done.wait(2)
    registry.shutdown(wait=True)

    assert 9 not in registry
    assert "auto-cancel of order 9 failed" in caplog.text


def test_register_after_shutdown_is_ignored():
    registry = ExpirationRegistry(workers=1)
    registry.shutdown()
    registry.register(2, _soon(), lambda oid: None)
    assert 2 not in registry


def test_past_deadline_fires_immediately():
    registry = ExpirationRegistry(workers=1)
    done = threading.Event()
    registry.register(4, utcnow() - timedelta(minutes=5), lambda oid: done.set())
    assert done.wait(2)
    registry.shutdown(wait=True)
