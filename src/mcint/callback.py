import logging

import numpy as np

logger = logging.getLogger(__name__)

# value handed back to the sampling loops in place of a failed evaluation
NEUTRAL_VALUE = 0.0


class IntegrandBridge(object):
    """ Calls the integrand for single sample points.

    If a failure slot is given, an exception raised by the integrand is
    recorded in the slot instead of propagating, and from then on the
    integrand is no longer called: every evaluation returns NEUTRAL_VALUE.
    This lets the sampling loop finish its current pass without touching
    a function that is known to fail. The sampling methods check `failed`
    after every evaluation to stop early.

    Without a slot the bridge only counts evaluations and exceptions
    propagate as usual.

    Example:
        >>> bridge = IntegrandBridge(lambda x: x[0] * x[1])
        >>> bridge(np.array([2., 3.]))
        6.0
        >>> bridge.count
        1
    """

    def __init__(self, fn, slot=None):
        self.fn = fn
        self.slot = slot
        self.count = 0

    @property
    def failed(self):
        return self.slot is not None and self.slot.failed

    def __call__(self, x):
        if self.slot is None:
            self.count += 1
            return float(self.fn(x))

        if self.slot.failed:
            return NEUTRAL_VALUE

        self.count += 1
        try:
            return float(self.fn(x))
        except Exception as exc:
            logger.debug("integrand failed at %s after %d evaluations: %r",
                         np.array2string(np.asarray(x)), self.count, exc)
            self.slot.record(exc)
            return NEUTRAL_VALUE

    @classmethod
    def make(cls, fn):
        """ Use fn as is if it already is a bridge, otherwise wrap it. """
        if isinstance(fn, IntegrandBridge):
            return fn
        return cls(fn)
