"""Fixed-size worker pool for accepted client connections."""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

ClientAddress = tuple[str, int]
ClientJob = tuple[object, ClientAddress]
ClientHandler = Callable[[object, ClientAddress], None]


class ThreadPool:
    """Runs ``handler(client_socket, address)`` on a fixed set of daemon threads.

    Jobs wait in a bounded queue; ``submit`` returns False instead of blocking
    when the queue is full so the accept loop can answer 503 right away.
    """

    def __init__(self, worker_count: int, queue_size: int, handler: ClientHandler) -> None:
        if worker_count <= 0:
            raise ValueError("worker_count must be positive")
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")

        self._handler = handler
        self._worker_count = worker_count
        self._queue: queue.Queue[ClientJob | None] = queue.Queue(maxsize=queue_size)
        self._threads: list[threading.Thread] = []
        self._stopped = threading.Event()

    @property
    def worker_count(self) -> int:
        return self._worker_count

    @property
    def threads(self) -> tuple[threading.Thread, ...]:
        return tuple(self._threads)

    def start(self) -> None:
        for index in range(self._worker_count):
            worker = threading.Thread(
                target=self._worker_loop,
                name=f"dirserve-worker-{index}",
                daemon=True,
            )
            self._threads.append(worker)
            worker.start()

    def submit(self, client_socket: object, address: ClientAddress) -> bool:
        if self._stopped.is_set():
            return False
        try:
            self._queue.put_nowait((client_socket, address))
        except queue.Full:
            return False
        return True

    def shutdown(self, timeout: float = 1.0) -> None:
        if self._stopped.is_set():
            return
        self._stopped.set()
        for _ in self._threads:
            try:
                self._queue.put(None, timeout=timeout)
            except queue.Full:
                break
        for thread in self._threads:
            thread.join(timeout=timeout)

    def _worker_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                client_socket, address = item
                try:
                    self._handler(client_socket, address)
                except Exception:
                    logger.exception("Unhandled error while serving %s", address[0])
            finally:
                self._queue.task_done()
