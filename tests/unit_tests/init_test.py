# -*- coding: utf-8 -*-

import pytest

import fidpromise
from fidpromise import Promise, ThreadTaskQueue
from fidpromise import task_queue
from fidpromise.common import config, log


@pytest.fixture
def restore_default_queue(tmp_path):
    previous = task_queue.set_default(None)
    yield
    queue = task_queue.set_default(previous)
    if isinstance(queue, ThreadTaskQueue):
        queue.shutdown()
    config.load(str(tmp_path / 'missing.ini'))


class TestInit(object):

    def test_init_with_config_file(self, tmp_path, restore_default_queue):
        config_path = tmp_path / 'fidpromise.ini'
        config_path.write_text('[config]\n'
                               'debug = true\n'
                               'thread_name = init-queue\n')

        queue = fidpromise.init(str(config_path))

        assert isinstance(queue, ThreadTaskQueue)
        assert task_queue.get_default() is queue
        assert log.get_trace() is True
        assert Promise().task_queue is queue

    def test_init_without_config_file(self, tmp_path, restore_default_queue):
        fidpromise.init(str(tmp_path / 'none.ini'))
        assert log.get_trace() is None
        assert Promise.resolved('ok').result(1) == 'ok'

    def test_init_keeps_previous_queue_running(self, tmp_path,
                                               restore_default_queue):
        seen = []
        p = Promise()
        previous_queue = p.task_queue
        p2 = p.then(seen.append)

        fidpromise.init(str(tmp_path / 'none.ini'))
        p.resolve(1)

        assert p2.result(1) is None
        assert seen == [1]
        assert p.task_queue is previous_queue
        previous_queue.shutdown()
