# -*- coding: utf-8 -*-

from collections import namedtuple
from functools import partial
import logging
import threading
import uuid

from . import task_queue as task_queues
from .common import log
from .errors import RejectionError, SelfResolutionError, TimeoutError
from .util import get_then

_logger = logging.getLogger(__name__)


# A callback pair registered by `then()`, and the Promise receiving its result.
_Reaction = namedtuple('_Reaction', ['on_fulfilled', 'on_rejected',
                                     'downstream'])


def _new_id():
    return uuid.uuid4().hex[:10]


def _broken_then(error):
    """Returns a `then()` who raises the error met while probing a value."""
    def then(on_fulfilled, on_rejected):
        raise error
    return then


def _register_on(then, on_fulfilled, on_rejected):
    """Call a `then()` method, converting a raised exception in a rejection."""
    try:
        then(on_fulfilled, on_rejected)
    except Exception as error:
        on_rejected(error)


def _queue_of(promises, task_queue):
    """Returns the task queue an aggregate of `promises` should use."""
    if task_queue is not None:
        return task_queue
    for member in promises:
        if isinstance(member, Promise):
            return member.task_queue
    return None


class _Adoption(object):
    """One attempt of a Promise to follow the outcome of a thenable.

    The two callbacks passed to the thenable share a latch: only the first
    call is honored, the others are ignored.

    As long as the thenable's `then()` is running, an outcome is only
    recorded: the resolution loop of the Promise picks it up when `then()`
    returns. Once `then()` has returned, the outcome is directly forwarded to
    the Promise.
    """

    def __init__(self, promise):
        self._promise = promise
        self._lock = threading.Lock()
        self._called = False
        self._in_then = True
        self._outcome = None
        self._other_id = None

    @property
    def other_id(self):
        with self._promise._condition:
            if self._other_id is None:
                self._other_id = 'other%s' % _new_id()
            return self._other_id

    def __str__(self):
        return self.other_id

    def on_fulfilled(self, value=None):
        self._forward(True, value, 'Resolved')

    def on_rejected(self, reason=None):
        self._forward(False, reason, 'Rejected')

    def _forward(self, fulfilled, value, kind):
        with self._lock:
            if self._called:
                log.trace(self._promise, 'Ignoring another resolution from '
                                         'the other promise: %s', self)
                return
            self._called = True
            if self._in_then:
                self._outcome = (fulfilled, value)
                return

        log.trace(self._promise, '%s by another promise: %s', kind, self)
        if fulfilled:
            self._promise._resolve_loop(value)
        else:
            self._promise._commit(False, value)

    def then_returned(self):
        """Returns the outcome received during `then()`, or None."""
        with self._lock:
            self._in_then = False
            return self._outcome

    def then_raised(self, error):
        """Returns the outcome of a `then()` call who raised `error`."""
        with self._lock:
            self._in_then = False
            if self._called:
                return self._outcome
            self._called = True
        log.trace(self._promise, 'Caught error thrown during then() of %s',
                  self)
        return False, error


class Promise(object):
    """It represents an operation expected to be completed in the future.

    A Promise is used for asynchronous computation. It contains a value not yet
    known when the Promise is created. It allows to set callbacks who will be
    called as soon as the result is known. It's a "promise" of a future value.

    A Promise is settled only once, either fulfilled with a value or rejected
    with a reason. Callbacks are never executed synchronously: they are always
    pushed in the task queue, even if the Promise is already settled when they
    are registered.

    All calls to the methods are thread-safe.

    Attributes:
        debug: if set, trace sink of this Promise. See
            `fidpromise.common.log.trace()`.
    """

    PENDING = 'pending'
    FULFILLED = 'fulfilled'
    REJECTED = 'rejected'

    def __init__(self, executor=None, name=None, task_queue=None, debug=None,
                 _previous=None):
        """Constructor of the Promise.

        If an executor is given, it's called with the two settlement methods
        `resolve` and `reject` of the new Promise. It means the executor will
        be fully executed before the the constructor returns.
        If the executor raises an exception, it's caught and the Promise is
        rejected with this exception.

        Args:
            executor (callable, optional): Takes 2 callable arguments:
                The first one, `resolve()`, should be called when the Promise
                is fulfilled (ie the tasks is done) and must accept the
                result's value as its only argument.
                The second, `reject()`, should be called when an error
                occurs. Its argument should be an instance of `Exception`.
            name (str, optional): name used when converted to text.
            task_queue (TaskQueue, optional): queue running the callbacks. By
                default, the process-wide queue is used.
            debug (optional): trace sink of this Promise: True or a callable.
        """
        self._state = self.PENDING
        self._value = None
        self._claimed = False
        self._condition = threading.Condition()
        self._reactions = []
        self._name = name or getattr(executor, '__name__', '???')
        self._previous = _previous
        if task_queue is None:
            task_queue = task_queues.get_default()
        self._task_queue = task_queue
        self._id = None
        self.debug = debug

        log.trace(self, 'New promise')

        if executor is not None:
            try:
                executor(self.resolve, self.reject)
            except Exception as error:
                self.reject(error)

    @property
    def state(self):
        """str: one of PENDING, FULFILLED or REJECTED."""
        with self._condition:
            return self._state

    @property
    def value(self):
        """Value or reason of the settled Promise. None while pending."""
        with self._condition:
            return self._value

    @property
    def task_queue(self):
        return self._task_queue

    @property
    def id(self):
        """str: identifier used in the traces, generated at first use."""
        with self._condition:
            if self._id is None:
                self._id = _new_id()
            return self._id

    def resolve(self, value=None):
        """Mark the promise as successfully completed.

        If `value` is a thenable (like another Promise), this Promise will
        follow its state: it's settled when the thenable is settled, with the
        same value or reason.

        Only the first call to `resolve()` or `reject()` has an effect. The
        next ones are silently ignored.

        Args:
            value: result of the Promise, passed to the `on_fulfilled`
                callbacks registered with `then()`.
        """
        self._settle(True, value)

    def reject(self, reason=None):
        """Mark the promise as rejected.

        Only the first call to `resolve()` or `reject()` has an effect. The
        next ones are silently ignored.

        Args:
            reason: cause of the failure, passed to the `on_rejected`
                callbacks registered with `then()`. Should be an Exception.
        """
        self._settle(False, reason)

    def _settle(self, fulfilled, value):
        with self._condition:
            if self._claimed:
                log.trace(self, 'Complete called a second time - ignoring')
                return
            self._claimed = True

        if fulfilled:
            self._resolve_loop(value)
        else:
            self._commit(False, value)

    def _resolve_loop(self, value):
        """Unwrap the thenables until a final value is found.

        A thenable calling back synchronously from its `then()` doesn't
        recurse: its value is handled by the next iteration.
        """
        while True:
            if value is self:
                log.trace(self, 'Can not resolve a promise with itself')
                self._commit(False, SelfResolutionError())
                return

            try:
                then = get_then(value)
            except Exception as error:
                log.trace(self, 'Accessing .then threw an error')
                self._commit(False, error)
                return

            if then is None:
                self._commit(True, value)
                return

            adoption = _Adoption(self)
            log.trace(self, 'Attaching to another promise: %s',
                      adoption)
            try:
                then(adoption.on_fulfilled, adoption.on_rejected)
            except Exception as error:
                outcome = adoption.then_raised(error)
            else:
                outcome = adoption.then_returned()

            if outcome is None:
                return  # The adoption will forward the result later.

            fulfilled, value = outcome
            if not fulfilled:
                self._commit(False, value)
                return

    def _commit(self, fulfilled, value):
        if value is self:
            log.trace(self, 'Can not settle a promise with itself')
            fulfilled, value = False, SelfResolutionError()

        with self._condition:
            if self._state != self.PENDING:
                already_settled = True
            else:
                already_settled = False
                self._value = value
                self._state = self.FULFILLED if fulfilled else self.REJECTED

                for reaction in self._reactions:
                    self._schedule(reaction)

                # Free the references
                self._reactions = None
                self._condition.notify_all()

        if already_settled:
            log.trace(self, 'Complete called a second time - ignoring')
        else:
            log.trace(self, 'Complete - state is now %s' % self._state)

    def then(self, on_fulfilled=None, on_rejected=None):
        """Create a new promise from callbacks called when this one is settled.

        If the promise is fulfilled, the `on_fulfilled` callback will be
        called. Otherwise (the promise has been rejected), the `on_rejected`
        callback is called. The callback is always called from the task
        queue, never before `then()` returns.
        In any case, the callback will define the state of the returned
        Promise. If the callback raises an exception, the new Promise is
        rejected. The callback can returns:
        - A value: the new promise will be fulfilled with this value.
        - Another Promise, or any object with a `then` method: when fulfilled
            or rejected, will transfer its status (state and result/error) to
            the Promise returned by this method.

        If a callback is not defined, the state of the "self" promise is
        transferred at the new promise (the state and the value/error).

        Args:
            on_fulfilled (callable, optional):  This callback will receive the
                result of the original promise as argument.
            on_rejected (callable, optional): This callback will receive the
                reason of the original promise's rejection as argument.
        Returns:
            Promise<*>: new promise depending of self.
        """
        if not on_rejected:
            name = '%s' % getattr(on_fulfilled, '__name__', '???')
        elif not on_fulfilled:
            name = '<None, %s>' % getattr(on_rejected, '__name__', '???')
        else:
            name = '<%s, %s>' % (getattr(on_fulfilled, '__name__', '???'),
                                 getattr(on_rejected, '__name__', '???'))

        log.trace(self, '(then) Creating new promise')
        downstream = Promise(name=name, task_queue=self._task_queue,
                             debug=self.debug, _previous=self)
        self._register(_Reaction(on_fulfilled, on_rejected, downstream))
        return downstream

    def success(self, on_fulfilled):
        """Chain a callback called only if the Promise is fulfilled.

        Alias of `self.then(on_fulfilled)`.

        Returns:
            Promise<*>: new Promise chained to `self`.
        """
        return self.then(on_fulfilled)

    def catch(self, on_rejected):
        """Create a new promise with a callback called when an error occurs.

        Alias of `self.then(None, on_rejected)`

        Args:
            on_rejected (callable): Must take an argument instance of Exception
                (or one of its subclass). Will be called if `self` is rejected.
        returns:
            Promise<*>: new Promise chained to `self`. If `self` is fulfilled,
                the promised value will be the same as `self`. Otherwise, the
                value returned by the `on_rejected()` callback.
        """
        return self.then(None, on_rejected)

    error = catch

    def always(self, callback):
        """Chain a callback called when the Promise is settled, in any way.

        The callback receives either the value or the reason.

        Returns:
            Promise<*>: new Promise, settled by the result of `callback`.
        """
        return self.then(callback, callback)

    def _register(self, reaction):
        log.trace(self, 'Adding callbacks')
        with self._condition:
            if self._state == self.PENDING:
                self._reactions.append(reaction)
                return
            state = self._state
            self._schedule(reaction)
        log.trace(self, 'Already resolved, state is %s' % state)

    def _schedule(self, reaction):
        self._task_queue.enqueue(self._dispatch, reaction)

    def _dispatch(self, reaction):
        """Execute the callback of a reaction, from the task queue."""
        fulfilled = self._state == self.FULFILLED
        if fulfilled:
            callback = reaction.on_fulfilled
        else:
            callback = reaction.on_rejected

        if not callable(callback):
            log.trace(self, 'Callback hit non-function - passing to child')
            reaction.downstream._settle(fulfilled, self._value)
            return

        try:
            result = callback(self._value)
        except Exception as error:
            reaction.downstream._settle(False, error)
        else:
            reaction.downstream._settle(True, result)

    def _wait(self, timeout):
        with self._condition:
            if self._state == self.PENDING:
                if self._task_queue.is_worker_thread():
                    raise RuntimeError('Unable to wait for %r from its own '
                                       'task queue.' % self)
                self._condition.wait_for(
                    lambda: self._state != self.PENDING, timeout)

            if self._state == self.PENDING:
                raise TimeoutError()
            return self._state, self._value

    def result(self, timeout=None):
        """Wait for the result and returns it as soon as it's available.

        This method blocks the caller: it's aimed at synchronous code (and
        tests). Asynchronous code should use `then()`.

        Args:
            timeout (int, optional): if set, maximum time to wait the promise
                to be fulfilled. By default, it can wait indefinitely.
        Returns:
            *: value encapsulated, defined by the operation.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
            RejectionError: if the promise is rejected with a reason who is
                not an exception.
            RuntimeError: if called, on a pending promise, from the thread
                running the Promise callbacks.
            *: If the promise is rejected, the rejection cause is raised.
        """
        state, value = self._wait(timeout)
        if state == self.REJECTED:
            if isinstance(value, BaseException):
                raise value
            raise RejectionError(value)
        return value

    def exception(self, timeout=None):
        """Wait for the promise rejection and returns it's error.

        Args:
            timeout (int, optional): if set, maximum time to wait the promise
                to be rejected. By default, it can wait indefinitely.
        Returns:
            *: the reason of the rejection of the Promise.
            None: if the promise is fulfilled.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
        """
        state, value = self._wait(timeout)
        if state == self.REJECTED:
            return value
        return None

    def safeguard(self):
        """Catch all errors and log them with the most details possible.

        This method is aimed to protect the program from uncaught rejected
        Promise. If no error handler has been set (via then() or catch()), the
        default behavior is to do nothing, and thus, errors are silently
        ignored.
        Calling `safeguard()` after all chains are set will catch these errors,
        and log them as ERROR with the maximum of details possible.

        Returns:
            Promise<None>: new Promise, fulfilled once the error is logged.
        """
        def guard(reason):
            if isinstance(reason, BaseException):
                _logger.error('[SAFEGUARD] %s', self, exc_info=(
                    type(reason), reason, reason.__traceback__))
            else:
                _logger.error('[SAFEGUARD] %s rejected with %r', self, reason)

        return self.then(None, guard)

    def with_timeout(self, delay):
        """Create a Promise rejected if this one is not settled in time.

        Args:
            delay (float): maximum time to wait, in seconds.
        Returns:
            Promise<*>: new Promise settled like `self`, or rejected with a
                `TimeoutError` after `delay` seconds.
        """
        expiry = Promise(name='TIMEOUT', task_queue=self._task_queue)
        error = TimeoutError('%r not settled after %ss' % (self, delay))
        timer = threading.Timer(delay, expiry.reject, args=[error])
        timer.daemon = True
        timer.start()

        def cancel_timer(_value):
            timer.cancel()

        self.then(cancel_timer, cancel_timer)
        return Promise.race([self, expiry], task_queue=self._task_queue)

    def __repr__(self):
        return 'Promise(%s)' % self._inner_print()

    def _inner_print(self):
        with self._condition:
            if self._state == self.REJECTED:
                state = 'R'
            elif self._state == self.FULFILLED:
                state = 'F'
            else:
                state = 'P'

        if self._previous:
            return '%s -> %s %s' % (self._previous._inner_print(), self._name,
                                    state)
        return '%s %s' % (self._name, state)

    @classmethod
    def resolved(cls, value=None, task_queue=None):
        """Create a promise who resolves the selected value.

        Args:
            value: result of the promise. If it's a Promise, it's returned as
                is. If it's another thenable, the new Promise follows it.
            task_queue (TaskQueue, optional)
        Returns:
            Promise: new Promise, fulfilled with the value passed in
                parameter.
        """
        if isinstance(value, Promise):
            return value
        promise = cls(name='RESOLVE', task_queue=task_queue)
        promise.resolve(value)
        return promise

    @classmethod
    def rejected(cls, reason=None, task_queue=None):
        """Create a Promise rejected for the reason specified.

        Args:
            reason: Exception set to the Promise
            task_queue (TaskQueue, optional)
        Returns:
            Promise: new Promise already rejected.
        """
        promise = cls(name='REJECT', task_queue=task_queue)
        promise.reject(reason)
        return promise

    @staticmethod
    def _watch(promises):
        """Find the thenable members of a collection.

        Returns:
            list: list of tuples (index, then) for each thenable. A member
                whose probe has failed is returned with a `then()` who raises
                the same error.
        """
        watched = []
        for index, member in enumerate(promises):
            try:
                then = get_then(member)
            except Exception as error:
                then = _broken_then(error)
            if then is not None:
                watched.append((index, then))
        return watched

    @classmethod
    def all(cls, promises, task_queue=None):
        """Create a Promise who wait a list of promises to be all fulfilled.

        The resulting Promise resolve when all of the promises in the list are
        resolved, and returns a list of all the resulting values, keeping the
        order of the promise list. Members who are not thenables are kept
        as is in the list of values.
        If a promise is rejected, then the resulting promise is rejected with
        the same reason, and all results from other promises are ignored.

        Args:
            promises (list of Promise)
            task_queue (TaskQueue, optional)
        Returns:
            Promise<list>: resulting promise, fulfilled when all promises
                are fulfilled, or rejected when one of the promises has been
                rejected.
        """
        promises = list(promises)
        aggregate = cls(name='ALL',
                        task_queue=_queue_of(promises, task_queue))
        results = list(promises)
        watched = cls._watch(promises)
        lock = threading.Lock()
        done_members = set()
        remaining = len(watched)

        def resolve_one_promise(index, value):
            nonlocal remaining
            with lock:
                if index in done_members:
                    return
                done_members.add(index)
                results[index] = value
                remaining -= 1
                left = remaining

            if left:
                log.trace(aggregate, '(when resolved) %s left' % left)
            else:
                log.trace(aggregate, '(when resolved) resolved last '
                                     'dependency')
                aggregate.resolve(results)

        def reject_one_promise(index, reason):
            nonlocal remaining
            with lock:
                if index in done_members:
                    return
                done_members.add(index)
                remaining -= 1
                left = remaining

            log.trace(aggregate, '(when rejected) %s left' % left)
            aggregate.reject(reason)

        if not watched:
            log.trace(aggregate, '(when) Immediately resolved - no '
                                 'dependencies')
            aggregate.resolve(results)

        for index, then in watched:
            log.trace(aggregate, '(when) Adding then')
            _register_on(then, partial(resolve_one_promise, index),
                         partial(reject_one_promise, index))

        return aggregate

    when = all

    @classmethod
    def after(cls, promises, task_queue=None):
        """Create a Promise settled once all promises of a list are settled.

        Like `all()`, but rejections are held back until all promises are
        done. If all promises are fulfilled, the resulting Promise is fulfilled
        with the list of values, in the order of the promise list. Otherwise,
        it's rejected with the list of all rejection reasons, in the order
        they arrived.

        Args:
            promises (list of Promise)
            task_queue (TaskQueue, optional)
        Returns:
            Promise<list>: resulting promise.
        """
        promises = list(promises)
        aggregate = cls(name='AFTER',
                        task_queue=_queue_of(promises, task_queue))
        successes = list(promises)
        failures = []
        watched = cls._watch(promises)
        lock = threading.Lock()
        done_members = set()
        remaining = len(watched)
        end_success = True

        def check_count():
            if end_success:
                aggregate.resolve(successes)
            else:
                log.trace(aggregate, '(after) Final error count %s'
                          % len(failures))
                aggregate.reject(failures)

        def one_promise_done(index, fulfilled, value):
            nonlocal remaining, end_success
            with lock:
                if index in done_members:
                    return
                done_members.add(index)
                remaining -= 1
                if fulfilled:
                    successes[index] = value
                else:
                    failures.append(value)
                    end_success = False
                left = remaining

            log.trace(aggregate, '(after %s) %s left' % (
                'resolved' if fulfilled else 'rejected', left))
            if not left:
                check_count()

        if not watched:
            check_count()

        for index, then in watched:
            log.trace(aggregate, '(after) Adding then')
            _register_on(then, partial(one_promise_done, index, True),
                         partial(one_promise_done, index, False))

        return aggregate

    @classmethod
    def race(cls, promises, task_queue=None):
        """Resolve or reject with the fastest Promise.

        Returns a new Promise settled as soon as one of the given promises is
        settled. Result value or rejection reason of the finished promise are
        transmitted. All other Promise results will be ignored.
        A member who is not a thenable wins immediately.

        Args:
            promises (list): list of promises to watch.
            task_queue (TaskQueue, optional)
        Returns:
            Promise: a promise
        Raises:
            ValueError: If the promise list is empty.
        """
        promises = list(promises)
        if not promises:
            raise ValueError('Empty promise list in Promise.race()')

        aggregate = cls(name='RACE',
                        task_queue=_queue_of(promises, task_queue))
        watched = dict(cls._watch(promises))
        for index, member in enumerate(promises):
            if index in watched:
                _register_on(watched[index], aggregate.resolve,
                             aggregate.reject)
            else:
                aggregate.resolve(member)
        return aggregate
