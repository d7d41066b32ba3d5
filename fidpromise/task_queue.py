# -*- coding: utf-8 -*-
"""Task queues running the Promise callbacks on a later turn.

A Promise never calls a reaction synchronously: every dispatch is pushed in a
task queue, and executed after the current call returns. Tasks are started in
the exact order they have been enqueued.

Two implementations are available:
- ``ThreadTaskQueue`` runs the tasks in a dedicated thread. It's the default.
- ``ManualTaskQueue`` stores the tasks until the host decides to run them.
  It's useful when the program already has its own event loop, and in tests.
"""

from collections import deque
from concurrent.futures import ThreadPoolExecutor
import logging
import threading

_logger = logging.getLogger(__name__)


class TaskQueue(object):
    """Interface of a FIFO queue of deferred calls."""

    def enqueue(self, callback, *args):
        """Schedule a call to `callback(*args)`.

        The callback must never be executed before this method returns.
        """
        raise NotImplementedError()

    def is_worker_thread(self):
        """Returns True if the caller is running inside a queued task."""
        return False

    @staticmethod
    def _run_task(callback, args):
        try:
            callback(*args)
        except Exception:
            _logger.exception('Task %s raised an exception!',
                              getattr(callback, '__name__', repr(callback)))


class ThreadTaskQueue(TaskQueue):
    """Execute the tasks one after another, in a dedicated thread.

    The executor has only one worker, so tasks never overlap and are started
    in the enqueue order.
    """

    def __init__(self, name='fidpromise'):
        """
        Args:
            name (str): prefix of the worker thread's name.
        """
        self._name = name
        self._executor = ThreadPoolExecutor(max_workers=1,
                                            thread_name_prefix=name)
        self._worker_ident = None

    def enqueue(self, callback, *args):
        self._executor.submit(self._run, callback, args)

    def _run(self, callback, args):
        self._worker_ident = threading.current_thread().ident
        self._run_task(callback, args)

    def is_worker_thread(self):
        return threading.current_thread().ident == self._worker_ident

    def shutdown(self, wait=True):
        """Stop the worker thread once all pending tasks are done.

        Args:
            wait (boolean): if True, block until the queue is empty.
        """
        _logger.debug('Stop task queue %s', self._name)
        self._executor.shutdown(wait=wait)

    def __repr__(self):
        return 'ThreadTaskQueue(%s)' % self._name


class ManualTaskQueue(TaskQueue):
    """Queue storing the tasks until the host runs them explicitly."""

    def __init__(self):
        self._tasks = deque()
        self._lock = threading.Lock()
        self._running_ident = None

    def enqueue(self, callback, *args):
        with self._lock:
            self._tasks.append((callback, args))

    def __len__(self):
        with self._lock:
            return len(self._tasks)

    def is_worker_thread(self):
        return threading.current_thread().ident == self._running_ident

    def run_once(self):
        """Execute the oldest task.

        Returns:
            boolean: True if a task has been executed; False if the queue was
                empty.
        """
        with self._lock:
            if not self._tasks:
                return False
            callback, args = self._tasks.popleft()

        previous_ident = self._running_ident
        self._running_ident = threading.current_thread().ident
        try:
            self._run_task(callback, args)
        finally:
            self._running_ident = previous_ident
        return True

    def run_all(self, limit=None):
        """Execute tasks until the queue is empty.

        Tasks enqueued by the executed tasks are also executed.

        Args:
            limit (int, optional): maximum number of tasks to run.
        Returns:
            int: number of tasks executed.
        """
        count = 0
        while limit is None or count < limit:
            if not self.run_once():
                break
            count += 1
        return count


_default_queue = None
_default_lock = threading.Lock()


def get_default():
    """Returns the process-wide task queue, creating it if needed."""
    global _default_queue

    with _default_lock:
        if _default_queue is None:
            _default_queue = ThreadTaskQueue()
        return _default_queue


def set_default(queue):
    """Replace the process-wide task queue.

    Promises already created keep the queue they were created with.

    Args:
        queue (TaskQueue): new default queue. If None, a new ThreadTaskQueue
            will be created at the next use.
    Returns:
        TaskQueue: the previous default queue, or None.
    """
    global _default_queue

    with _default_lock:
        previous = _default_queue
        _default_queue = queue
    return previous
