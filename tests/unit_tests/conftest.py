# -*- coding: utf-8 -*-

import pytest

from fidpromise import ManualTaskQueue
from fidpromise.common import log


@pytest.fixture
def queue():
    """Task queue who runs the Promise callbacks only when asked.

    Returns:
        ManualTaskQueue: call ``queue.run_all()`` to execute the callbacks.
    """
    return ManualTaskQueue()


@pytest.fixture(autouse=True)
def reset_trace():
    """Disable the process-wide Promise traces after each test."""
    yield
    log.set_trace(None)
