"""
Concurrent independent reads (fan-out/fan-in).

``gather`` submits each callable to a shared thread pool and waits for all
of them. Every task runs inside its own application context, so it gets a
private ``db.session`` which is removed when the task returns; results
must therefore be fully loaded before they leave the task.

The first failure is re-raised in the caller once every task has finished.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, wait

from flask import current_app

from logging_setup import get_logger

LOG = get_logger(__name__)

_EXECUTOR = None
_LOCK = threading.Lock()


def _executor(app) -> ThreadPoolExecutor:
    global _EXECUTOR
    if _EXECUTOR is None:
        with _LOCK:
            if _EXECUTOR is None:
                workers = app.config.get("CATALOG_READ_WORKERS", 4)
                LOG.debug("Starting read pool with %s workers", workers)
                _EXECUTOR = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="catalog-read")
    return _EXECUTOR


def shutdown() -> None:
    """
    Stop the shared pool; the next ``gather`` starts a fresh one.
    """
    global _EXECUTOR
    with _LOCK:
        if _EXECUTOR is not None:
            _EXECUTOR.shutdown(wait=True)
            _EXECUTOR = None


def gather(*calls):
    """
    Run ``calls`` concurrently and return their results in order.
    """
    app = current_app._get_current_object()

    def run(call):
        with app.app_context():
            return call()

    futures = [_executor(app).submit(run, call) for call in calls]
    wait(futures)
    return tuple(future.result() for future in futures)
