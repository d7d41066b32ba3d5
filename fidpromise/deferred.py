# -*- coding: utf-8 -*-

from .promise import Promise


class Deferred(object):
    """The "creator" side of an async task.

    A Deferred is the "creator" side of an async task, whereas a Promise
    represents the asynchronous value from the "consumer" side. The producer
    keeps the Deferred, and gives only `deferred.promise` to the consumers.

    Attributes:
        promise (Promise): the Promise associated to the Deferred.
        resolve (function): fulfill the promise.
        reject (function): reject the promise.
    """

    def __init__(self, *args, **kwargs):
        """
        Args:
            *args, **kwargs: arguments passed to the Promise constructor,
                except the executor.
        """
        self.promise = Promise(self._executor, *args, **kwargs)

    def _executor(self, resolve, reject):
        self.resolve = resolve
        self.reject = reject
