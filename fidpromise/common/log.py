# -*- coding: utf-8 -*-

"""Configuration module of the logs, and Promise traces.

This module configures the python ``logging`` module, in order to have useful
and easy to activate logs. Log entries are displayed on the console (colorized
if the output supports it), and optionally written in a file.

It also handles the trace of the Promises: when enabled, each Promise reports
its transitions (creation, callback registration, settlement, ...) as short
text lines "<id>: <message>". Traces are disabled by default. They can be
enabled for all Promises with ``set_trace()``, or for one Promise with its
``debug`` constructor argument.
"""

import logging
import os.path
import sys

from . import path as fidpromise_path

_logger = logging.getLogger(__name__)
_trace_logger = logging.getLogger('fidpromise.trace')

# Process-wide trace sink: None, True or a callable.
_trace_sink = None


def _support_color_output():
    """Try to guess if the standard output supports color term code.

    Returns:
        boolean: True if we are sure the output supports color; False otherwise
    """
    if hasattr(sys.stdout, 'isatty') and sys.stdout.isatty():
        if not sys.platform.startswith('win'):
            return True
    return False


class ColoredFormatter(logging.Formatter):
    """Formatter who display colored messages using ANSI escape codes."""

    _colors = {
        'RESET': '\033[0m',
        'DEBUG': '\033[34m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[31m',
        'NAME': '\033[36m',
        'DATE': '\033[30;1m',
        'EXCEPTION_NAME': '\033[31;1m',
        'EXCEPTION_STR': '\033[37;1m'
    }

    def _colorize(self, msg, color):
        return self._colors.get(color, '') + msg + self._colors.get('RESET')

    def formatTime(self, record, datefmt=None):
        result = logging.Formatter.formatTime(self, record, datefmt)
        return self._colorize(result, 'DATE')

    def formatException(self, ei):
        msg = logging.Formatter.formatException(self, ei)
        msg_lines = msg.split('\n')
        last_line = msg_lines[-1]
        result = '\n'.join(msg_lines[:-1]) + '\n'
        result += self._colorize(last_line.split(':')[0], 'EXCEPTION_NAME')
        result += ':' + self._colorize(':'.join(last_line.split(':')[1:]),
                                       'EXCEPTION_STR')
        return result

    def format(self, record):
        # The record is shared between handlers: colors must not leak in the
        # log file.
        name, levelname = record.name, record.levelname
        record.name = self._colorize(record.name, 'NAME')
        record.levelname = self._colorize(record.levelname, record.levelname)
        try:
            return logging.Formatter.format(self, record)
        finally:
            record.name, record.levelname = name, levelname


class Context(object):
    """Context class used to open and close log handlers."""

    date_format = '%Y-%m-%d %H:%M:%S'
    string_format = '%(asctime)s %(levelname)-7s %(name)s - %(message)s'

    def __init__(self, filename=None, stream=None):
        """Prepare a new log context.

        Args:
            filename (str, optional): name of the log file. A relative name is
                placed in the user log directory. If None, logs are only
                displayed on the console.
            stream (file, optional): console stream. Default to stderr.
        """
        self._filename = filename
        self._stream = stream
        self._handlers = []
        self._previous_level = None

    def __enter__(self):
        """Open the log file and prepare the logging module."""
        root_logger = logging.getLogger()
        self._previous_level = root_logger.level

        formatter = logging.Formatter(fmt=self.string_format,
                                      datefmt=self.date_format)

        console_handler = logging.StreamHandler(self._stream)
        if self._stream is None and _support_color_output():
            console_handler.setFormatter(
                ColoredFormatter(fmt=self.string_format,
                                 datefmt=self.date_format))
        else:
            console_handler.setFormatter(formatter)
        self._handlers.append(console_handler)

        if self._filename:
            file_handler = _get_file_handler(self._filename)
            if file_handler:
                file_handler.setFormatter(formatter)
                self._handlers.append(file_handler)

        for handler in self._handlers:
            root_logger.addHandler(handler)

        # Before any configuration, all messages should be displayed.
        set_debug_mode(True)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Release resources (log files, ...)"""
        _logger.debug('Stop logger ...')
        root_logger = logging.getLogger()
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers = []
        root_logger.setLevel(self._previous_level)


def _get_file_handler(filename):
    """Open a new file for using as a log output.

    Args:
        filename (str): name of the log file. Ex: 'fidpromise.log'
    Returns:
        FileHandler: a valid fileHandler using the log file, or None if the
            file creation has failed.
    """
    try:
        if not os.path.isabs(filename):
            filename = os.path.join(fidpromise_path.get_log_dir(), filename)
        return logging.FileHandler(filename, mode='a', encoding='utf-8')
    except (OSError, IOError):
        _logger.warning('Unable to create the log file', exc_info=True)
        return None


def set_logs_level(levels):
    """Configure a fine-grained log levels for the different modules.

    Args:
        levels (dict): A list of tuple associating a module name and a log
            level. A log level can be a number or a str representing one of the
            logging levels (DEBUG, WARNING, ...). The level name will be
            converted to uppercase.
            Invalids values will be ignored.

    Example:

        >>> # Accept DEBUG logs only for the task queues.
        >>> set_logs_level({'fidpromise': 'info',
        ...                 'fidpromise.task_queue': 'debug'})
    """
    for (module, level) in levels.items():
        try:
            if isinstance(level, str):
                level = level.upper()
                if level.isdigit():
                    level = int(level)
            logging.getLogger(module).setLevel(level)
        except (TypeError, ValueError):
            _logger.warning('Invalid log level "%s" for logger "%s". '
                            'Will be ignored.', level, module)


def set_debug_mode(debug):
    """Set, or unset the debug log level.

    Note: modules others than fidpromise.* are not set to DEBUG, even in DEBUG
    mode. If needed, their level can be set by ``set_logs_level()``.

    Args:
        debug (boolean): if True, the fidpromise log level will be set to
            DEBUG. If False, it will be set to INFO.
    """
    if debug:
        logging.getLogger().setLevel(logging.INFO)
        logging.getLogger('fidpromise').setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.WARNING)
        logging.getLogger('fidpromise').setLevel(logging.INFO)


def reset():
    """Reset the root logger (remove handlers and filters)."""
    logger = logging.getLogger()

    for h in logger.handlers[:]:
        logger.removeHandler(h)
    for f in logger.filters[:]:
        logger.removeFilter(f)


def set_trace(sink):
    """Enable or disable the traces of all Promises.

    Args:
        sink: False or None disable the traces. True sends them to the
            'fidpromise.trace' logger, at DEBUG level, and lowers the level of
            this logger to DEBUG. The lines are displayed by the handlers of
            the logging module, like the one installed by `Context`. A
            callable receives each trace line as its only argument.
    """
    global _trace_sink
    _trace_sink = sink or None
    if _trace_sink is True:
        _trace_logger.setLevel(logging.DEBUG)
    else:
        _trace_logger.setLevel(logging.NOTSET)


def get_trace():
    """Returns the process-wide trace sink (None if disabled)."""
    return _trace_sink


def trace(promise, message, *args):
    """Send a trace line about a Promise, if traces are enabled.

    The process-wide sink has priority over the Promise's own sink. A sink
    raising an exception is logged then ignored.

    Args:
        promise (Promise): the Promise concerned. Its ``debug`` attribute is
            used when no process-wide sink is set.
        message (str): description of the event. It's formatted with `args`
            only if the trace is sent.
        *args: arguments of the message.
    """
    sink = _trace_sink or promise.debug
    if not sink:
        return

    if args:
        message = message % args
    full_message = '%s: %s' % (promise.id, message)
    if callable(sink):
        try:
            sink(full_message)
        except Exception:
            _logger.warning('Trace sink %r failed', sink, exc_info=True)
    else:
        _trace_logger.debug(full_message)
