# -*- coding: utf-8 -*-


class TimeoutError(Exception):
    """An operation could not be executed within the time allowed."""
    pass


class SelfResolutionError(TypeError):
    """A Promise has been resolved with itself as value."""

    def __init__(self, message='Can not resolve a promise with itself'):
        TypeError.__init__(self, message)


class RejectionError(Exception):
    """A Promise has been rejected with a value who is not an exception.

    Python can only raise exceptions, so `Promise.result()` wraps such reasons
    (like the list of reasons of `Promise.after()`) into this error.

    Attributes:
        reason: the raw rejection reason.
    """

    def __init__(self, reason):
        Exception.__init__(self, 'Promise rejected with %r' % (reason,))
        self.reason = reason
