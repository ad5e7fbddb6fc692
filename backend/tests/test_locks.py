import threading

from schedease.services.locks import KeyedLock


def test_same_key_is_exclusive():
    locks = KeyedLock()
    with locks.acquire(("First Term", 2024), timeout=0) as held:
        assert held
        assert locks.is_locked(("First Term", 2024))
        with locks.acquire(("First Term", 2024), timeout=0.05) as second:
            assert second is False
    assert not locks.is_locked(("First Term", 2024))


def test_different_keys_do_not_block():
    locks = KeyedLock()
    with locks.acquire(("First Term", 2024), timeout=0) as first:
        with locks.acquire(("Second Term", 2024), timeout=0) as second:
            assert first and second


def test_lock_released_on_error():
    locks = KeyedLock()
    try:
        with locks.acquire("key", timeout=0):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    with locks.acquire("key", timeout=0) as held:
        assert held


def test_waiter_gets_lock_after_release():
    locks = KeyedLock()
    results = []

    def waiter():
        with locks.acquire("key", timeout=2) as held:
            results.append(held)

    with locks.acquire("key", timeout=0):
        thread = threading.Thread(target=waiter)
        thread.start()
    thread.join(timeout=5)
    assert results == [True]
    assert locks._locks == {}
