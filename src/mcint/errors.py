""" Errors raised by the integration routines and the failure channel.

Failures during an integration come from two places: the integrand supplied
by the caller and the numeric routines themselves. Both are collected in a
FailureSlot that belongs to a single call of integrate; the dispatcher
re-raises whatever the slot holds once sampling has wound down.

The numeric routines report their errors through report_error, which hands
them to the installed error handler. The default handler forwards into the
slot that is active in the current thread, or raises directly if the
routines are used outside of integrate.
"""

import inspect
import logging
import os
import threading

logger = logging.getLogger(__name__)


# error codes, numbered as in the GNU Scientific Library
EDOM = 1
ERANGE = 2
EFAULT = 3
EINVAL = 4
EFAILED = 5
EFACTOR = 6
ESANITY = 7
ENOMEM = 8
EBADFUNC = 9
ERUNAWAY = 10
EMAXITER = 11
EZERODIV = 12


class McintError(Exception):
    identifier = 'MCI:Error'


class BadArgument(McintError, ValueError):
    """ Invalid arguments passed to integrate, detected before sampling. """
    identifier = 'MCI:BadArgument'


class GSLError(McintError, RuntimeError):

    def __init__(self, errno, reason, location):
        """ Internal error reported by one of the numeric routines.

        :param errno: Numeric error code (see the E* constants).
        :param reason: Description of what went wrong.
        :param location: "file:line" of the code reporting the error.
        """
        self.errno = errno
        self.reason = reason
        self.location = location
        super().__init__("%s at %s" % (reason, location))

    @property
    def identifier(self):
        return 'MCI:GSLErrno%d' % self.errno


class ChisqInconsistent(RuntimeWarning):
    identifier = 'MCI:ChisqInconsistent'


class FailureSlot(object):
    """ Holds the first failure encountered during one integration call.

    Example:
        >>> slot = FailureSlot()
        >>> slot.record(ValueError("first"))
        True
        >>> slot.record(ValueError("second"))
        False
        >>> slot.drain()
        ValueError('first')
        >>> slot.failed
        False
    """

    def __init__(self):
        self._failure = None

    @property
    def failed(self):
        return self._failure is not None

    @property
    def failure(self):
        return self._failure

    def record(self, failure):
        """ Store failure unless one is already pending.

        :return: True if failure was stored, False if it was dropped.
        """
        if self._failure is not None:
            logger.debug("dropping failure %r, %r already pending",
                         failure, self._failure)
            return False
        logger.debug("recording failure %r", failure)
        self._failure = failure
        return True

    def drain(self):
        """ Return the pending failure (or None) and clear the slot. """
        failure, self._failure = self._failure, None
        return failure

    def clear(self):
        self._failure = None


_local = threading.local()


def _slot_stack():
    try:
        return _local.slots
    except AttributeError:
        _local.slots = []
        return _local.slots


def active_slot():
    """ Failure slot of the innermost running integration in this thread. """
    stack = _slot_stack()
    return stack[-1] if stack else None


class failure_context(object):
    """ Make slot the active failure slot of the current thread.

    Contexts nest, so an integrand that itself calls integrate gets a
    separate slot for the inner call.
    """

    def __init__(self, slot):
        self.slot = slot

    def __enter__(self):
        _slot_stack().append(self.slot)
        return self.slot

    def __exit__(self, exc_type, exc_value, tb):
        _slot_stack().pop()
        return False


def forward_to_active_slot(reason, location, errno):
    """ Default error handler: record a GSLError in the active slot.

    Outside of any failure context the error is raised immediately.
    """
    error = GSLError(errno, reason, location)
    slot = active_slot()
    if slot is None:
        raise error
    slot.record(error)


_handler = None


def set_error_handler(handler):
    """ Install handler(reason, location, errno) and return the previous one.

    Passing None restores the default forwarding behavior.
    """
    global _handler
    previous, _handler = _handler, handler
    return previous


def install_error_handler():
    """ Install forward_to_active_slot unless a handler is already set. """
    if _handler is None:
        set_error_handler(forward_to_active_slot)


def report_error(reason, errno, location=None):
    """ Report an internal error of the numeric routines.

    The caller is expected to return a neutral result after reporting.

    :param reason: Description of the error.
    :param errno: Error code.
    :param location: Origin of the error, by default the file and line
        number of the calling code.
    """
    if location is None:
        frame = inspect.currentframe().f_back
        location = "%s:%d" % (os.path.basename(frame.f_code.co_filename),
                              frame.f_lineno)
    handler = _handler if _handler is not None else forward_to_active_slot
    handler(reason, location, errno)
