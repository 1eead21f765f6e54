import threading

import pytest

from kernelsim.locks import LockError, SleepLock, SpinLock


def _in_thread(fn):
    result = {}

    def run():
        try:
            result["value"] = fn()
        except Exception as exc:  # noqa: BLE001
            result["error"] = exc

    t = threading.Thread(target=run)
    t.start()
    t.join(5)
    return result


def test_spinlock_acquire_release():
    lock = SpinLock("time")
    assert lock.holding() is False
    lock.acquire()
    assert lock.holding() is True
    assert lock.locked is True
    lock.release()
    assert lock.locked is False


def test_spinlock_double_acquire_raises():
    lock = SpinLock("x")
    lock.acquire()
    with pytest.raises(LockError):
        lock.acquire()
    lock.release()


def test_spinlock_release_without_holding_raises():
    with pytest.raises(LockError):
        SpinLock("x").release()


def test_spinlock_not_held_by_other_thread():
    lock = SpinLock("x")
    with lock:
        result = _in_thread(lock.holding)
        assert result["value"] is False
        result = _in_thread(lock.release)
        assert isinstance(result["error"], LockError)
    assert lock.locked is False


def test_sleeplock_holding_by_pid():
    lock = SleepLock("buffer")
    lock.acquire(3)
    assert lock.holding(3) is True
    assert lock.holding(4) is False
    lock.release()
    assert lock.holding(3) is False
    assert lock.pid == 0


def test_sleeplock_blocks_until_released():
    lock = SleepLock("inode")
    lock.acquire(1)
    got = threading.Event()

    def worker():
        lock.acquire(2)
        got.set()

    t = threading.Thread(target=worker)
    t.start()
    assert not got.wait(0.1)
    lock.release()
    assert got.wait(5)
    t.join(5)
    assert lock.holding(2) is True