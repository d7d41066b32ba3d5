# -*- coding: utf-8 -*-

from fidpromise import ThreadPoolExecutor

TIMEOUT = 1


class TestThreadPoolExecutor(object):

    def test_small_task(self):
        executor = ThreadPoolExecutor(1)

        def task(arg):
            return 'OK %s' % arg

        f = executor.submit(task, 'ARG')
        assert f.result(TIMEOUT) == 'OK ARG'
        executor.shutdown()

    def test_task_failure(self):
        class MyException(Exception):
            pass

        executor = ThreadPoolExecutor(1)

        def task(arg):
            raise MyException

        f = executor.submit(task, 'ARG')
        assert isinstance(f.exception(TIMEOUT), MyException)
        executor.shutdown()

    def test_chain_task_result(self):
        executor = ThreadPoolExecutor(2)

        p = executor.submit(lambda: 20).then(lambda value: value + 1)
        assert p.result(TIMEOUT) == 21
        executor.shutdown()
