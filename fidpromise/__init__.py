# -*- coding: utf-8 -*-

from .__version__ import __version__  # noqa

import logging

from .common import config
from .common import log
from .decorators import wrap_promise
from .deferred import Deferred
from .errors import RejectionError, SelfResolutionError, TimeoutError
from .promise import Promise
from .reduce_coroutine import reduce_coroutine
from . import task_queue
from .task_queue import ManualTaskQueue, TaskQueue, ThreadTaskQueue
from .thread_pool import ThreadPoolExecutor
from .util import get_then, is_thenable

__all__ = ['get_then', 'init', 'is_thenable', 'Deferred', 'ManualTaskQueue',
           'Promise', 'RejectionError', 'SelfResolutionError', 'TaskQueue',
           'ThreadPoolExecutor', 'ThreadTaskQueue', 'TimeoutError',
           'reduce_coroutine', 'wrap_promise']


def init(config_path=None):
    """Load the configuration and apply it to the whole process.

    It's optional: without it, traces are disabled and the default task queue
    is created at the first use.

    Args:
        config_path (str, optional): path of the config file. By default, the
            file 'fidpromise.ini' of the user config directory is used.
    Returns:
        TaskQueue: the new default task queue.
    """
    config.load(config_path)
    log.set_trace(config.get('debug'))
    log.set_logs_level(config.get('log_levels'))

    # The previous queue is not stopped: Promises created before keep using
    # it, and its worker thread ends with the interpreter.
    queue = ThreadTaskQueue(config.get('thread_name'))
    task_queue.set_default(queue)

    logging.getLogger(__name__).debug('fidpromise initialized (debug=%s)',
                                      config.get('debug'))
    return queue
