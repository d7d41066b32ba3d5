# -*- coding: utf-8 -*-

from functools import wraps

from .deferred import Deferred
from .errors import RejectionError
from .util import is_thenable


def reduce_coroutine(safeguard=False):
    """Decorator who converts a coroutine of promises into a single promise.

    The greatest interest is the ability to write a function in an
    synchronous-like style, using many asynchronous Promises.
    Whatever is the number of Promises or async calls used, the result will
    always be an unique Promise wrapping the whole process.

    Each time the generator yields a thenable, it's resumed with the value of
    the thenable, or the rejection reason is thrown into it. The last value
    yielded is the result of the resulting Promise.

    Args:
        safeguard (boolean): if true, use `Promise.safeguard()` on the
            resulting promise.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            """
            Args:
                *args
                **kwargs
            Returns:
                Promise<*>
            """
            df = Deferred(name='COROUTINE %s' % func.__name__)
            if safeguard:
                df.promise.safeguard()

            try:
                # Create generator; Initialization phase
                gen = func(*args, **kwargs)
            except Exception as error:
                df.reject(error)
                return df.promise

            def _call_next_or_set_result(value):
                if is_thenable(value):
                    value.then(iter_next, iter_error)
                else:
                    gen.close()
                    df.resolve(value)

            def iter_next(yielded_value):
                try:
                    next_value = gen.send(yielded_value)
                except StopIteration:
                    return df.resolve(yielded_value)
                except Exception as error:
                    return df.reject(error)
                _call_next_or_set_result(next_value)

            def iter_error(reason):
                try:
                    if isinstance(reason, BaseException):
                        next_value = gen.throw(reason)
                    else:
                        next_value = gen.throw(RejectionError(reason))
                except StopIteration:
                    return df.reject(reason)
                except Exception as error:
                    return df.reject(error)
                _call_next_or_set_result(next_value)

            # Start and resolve loop.
            try:
                f = next(gen)
            except StopIteration:
                df.resolve(None)
                return df.promise
            except Exception as error:
                df.reject(error)
                return df.promise
            _call_next_or_set_result(f)

            return df.promise

        return wrapper
    return decorator
