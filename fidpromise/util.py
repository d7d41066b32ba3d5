# -*- coding: utf-8 -*-


def get_then(value):
    """Find the `then()` method of a value, if it's a thenable.

    Unlike `is_thenable()`, errors raised while reading the attribute are not
    hidden: the resolution procedure converts them into a rejection.

    Returns:
        callable: the bound `then` attribute if it's callable; None otherwise.
    Raises:
        *: any exception raised by the attribute access, except
            AttributeError.
    """
    then = getattr(value, 'then', None)
    if callable(then):
        return then
    return None


def is_thenable(value):
    """Check if an object can be chained, like a Promise, or is a "result".

    The promise module uses this function to differentiate "chainable" objects
    and direct return values, when using a callback who can returns both.

    Returns:
        boolean: True if the value has an attribute 'then' who is callable.
            False if not.
    """
    return hasattr(getattr(value, 'then', None), '__call__')
