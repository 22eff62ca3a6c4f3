"""Tests for the fixed-size worker pool."""

import threading

from thread_pool import ThreadPool


def test_thread_pool_starts_fixed_worker_count() -> None:
    pool = ThreadPool(worker_count=3, queue_size=4, handler=lambda _sock, _addr: None)
    pool.start()

    try:
        assert pool.worker_count == 3
        assert len(pool.threads) == 3
        assert all(thread.is_alive() for thread in pool.threads)
    finally:
        pool.shutdown()


def test_thread_pool_submit_returns_false_when_full() -> None:
    pool = ThreadPool(worker_count=1, queue_size=1, handler=lambda _sock, _addr: None)

    assert pool.submit(object(), ("127.0.0.1", 0)) is True
    assert pool.submit(object(), ("127.0.0.1", 1)) is False


def test_thread_pool_runs_jobs_and_survives_handler_errors() -> None:
    seen: list[int] = []
    done = threading.Event()

    def handler(_sock: object, address: tuple[str, int]) -> None:
        if address[1] == 0:
            raise RuntimeError("boom")
        seen.append(address[1])
        done.set()

    pool = ThreadPool(worker_count=1, queue_size=4, handler=handler)
    pool.start()
    try:
        assert pool.submit(object(), ("127.0.0.1", 0)) is True
        assert pool.submit(object(), ("127.0.0.1", 7)) is True
        assert done.wait(timeout=2.0)
    finally:
        pool.shutdown()

    assert seen == [7]


def test_submit_after_shutdown_is_refused() -> None:
    pool = ThreadPool(worker_count=1, queue_size=1, handler=lambda _sock, _addr: None)
    pool.start()
    pool.shutdown()

    assert pool.submit(object(), ("127.0.0.1", 0)) is False
