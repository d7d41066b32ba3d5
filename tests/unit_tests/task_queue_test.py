# -*- coding: utf-8 -*-

import logging
import threading

from fidpromise import ManualTaskQueue, Promise, ThreadTaskQueue, TimeoutError
from fidpromise import task_queue

TIMEOUT = 1


class TestManualTaskQueue(object):

    def test_enqueue_does_not_run_task(self):
        calls = []
        queue = ManualTaskQueue()
        queue.enqueue(calls.append, 1)
        assert calls == []
        assert len(queue) == 1

    def test_run_once(self):
        calls = []
        queue = ManualTaskQueue()
        queue.enqueue(calls.append, 1)
        queue.enqueue(calls.append, 2)

        assert queue.run_once()
        assert calls == [1]
        assert queue.run_once()
        assert calls == [1, 2]
        assert not queue.run_once()

    def test_run_all_executes_new_tasks(self):
        calls = []
        queue = ManualTaskQueue()

        def task(value):
            calls.append(value)
            if value < 3:
                queue.enqueue(task, value + 1)

        queue.enqueue(task, 0)
        assert queue.run_all() == 4
        assert calls == [0, 1, 2, 3]
        assert len(queue) == 0

    def test_run_all_with_limit(self):
        queue = ManualTaskQueue()
        for i in range(5):
            queue.enqueue(lambda: None)
        assert queue.run_all(limit=2) == 2
        assert len(queue) == 3

    def test_failing_task(self, caplog):
        calls = []

        def failing():
            raise ValueError('task error')

        queue = ManualTaskQueue()
        queue.enqueue(failing)
        queue.enqueue(calls.append, 'next')

        with caplog.at_level(logging.ERROR):
            queue.run_all()

        assert calls == ['next']
        assert 'task error' in caplog.text

    def test_is_worker_thread(self):
        queue = ManualTaskQueue()
        inside = []
        queue.enqueue(lambda: inside.append(queue.is_worker_thread()))
        assert not queue.is_worker_thread()
        queue.run_all()
        assert inside == [True]

    def test_is_worker_thread_from_another_thread(self):
        queue = ManualTaskQueue()
        from_other_thread = []

        def task():
            thread = threading.Thread(
                target=lambda: from_other_thread.append(
                    queue.is_worker_thread()))
            thread.start()
            thread.join()

        queue.enqueue(task)
        queue.run_all()
        assert from_other_thread == [False]

    def test_result_from_another_thread_while_running(self):
        queue = ManualTaskQueue()
        p = Promise(task_queue=queue)
        errors = []

        def wait_promise():
            try:
                p.exception(0)
            except Exception as error:
                errors.append(error)

        def task():
            thread = threading.Thread(target=wait_promise)
            thread.start()
            thread.join()

        queue.enqueue(task)
        queue.run_all()
        # The other thread has waited, then timed out.
        assert len(errors) == 1
        assert isinstance(errors[0], TimeoutError)


class TestThreadTaskQueue(object):

    def test_tasks_keep_order(self):
        calls = []
        done = threading.Event()
        queue = ThreadTaskQueue('test-queue')

        for i in range(100):
            queue.enqueue(calls.append, i)
        queue.enqueue(done.set)

        assert done.wait(TIMEOUT)
        assert calls == list(range(100))
        queue.shutdown()

    def test_tasks_run_in_worker_thread(self):
        results = []
        queue = ThreadTaskQueue('test-queue')

        def task():
            results.append((threading.current_thread().name,
                            queue.is_worker_thread()))

        queue.enqueue(task)
        queue.shutdown(wait=True)

        thread_name, is_worker = results[0]
        assert thread_name.startswith('test-queue')
        assert is_worker
        assert not queue.is_worker_thread()

    def test_failing_task_does_not_stop_queue(self):
        done = threading.Event()
        queue = ThreadTaskQueue()

        def failing():
            raise ValueError()

        queue.enqueue(failing)
        queue.enqueue(done.set)
        assert done.wait(TIMEOUT)
        queue.shutdown()


class TestDefaultQueue(object):

    def test_default_queue(self):
        previous = task_queue.set_default(None)
        try:
            queue = task_queue.get_default()
            assert isinstance(queue, ThreadTaskQueue)
            assert task_queue.get_default() is queue
        finally:
            task_queue.set_default(previous)

    def test_set_default_queue(self):
        queue = ManualTaskQueue()
        previous = task_queue.set_default(queue)
        try:
            assert task_queue.get_default() is queue
        finally:
            assert task_queue.set_default(previous) is queue
