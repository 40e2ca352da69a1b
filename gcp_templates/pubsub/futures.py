"""Helpers for composing ``concurrent.futures.Future`` results."""

import threading
from concurrent.futures import Future
from typing import Any, Callable, Iterable, List, Optional


def completed_future(result: Any = None) -> Future:
    future = Future()
    future.set_result(result)
    return future


def failed_future(exc: BaseException) -> Future:
    future = Future()
    future.set_exception(exc)
    return future


def transform(source: Future, fn: Callable[[Any], Any]) -> Future:
    """
    Chain ``fn`` onto ``source``.

    The returned future resolves with ``fn(source.result())``, or with the
    exception raised by either ``source`` or ``fn``.
    """
    target = Future()

    def _done(done: Future) -> None:
        exc = done.exception()
        if exc is not None:
            target.set_exception(exc)
            return
        try:
            target.set_result(fn(done.result()))
        except Exception as e:
            target.set_exception(e)

    source.add_done_callback(_done)
    return target


def all_of(futures: Iterable[Future]) -> Future:
    """
    Combine futures into one that resolves to None once all succeed.

    The first failure observed fails the combined future; nothing is retried.
    """
    pending: List[Future] = list(futures)
    if not pending:
        return completed_future(None)

    combined = Future()
    lock = threading.Lock()
    remaining = [len(pending)]
    first_error: List[Optional[BaseException]] = [None]

    def _done(done: Future) -> None:
        exc = done.exception()
        with lock:
            if exc is not None and first_error[0] is None:
                first_error[0] = exc
            remaining[0] -= 1
            finished = remaining[0] == 0
        if finished:
            if first_error[0] is not None:
                combined.set_exception(first_error[0])
            else:
                combined.set_result(None)

    for future in pending:
        future.add_done_callback(_done)
    return combined
