import logging
import numbers
import warnings

import numpy as np

from .callback import IntegrandBridge
from .errors import (BadArgument, ChisqInconsistent, FailureSlot,
                     failure_context, install_error_handler)
from .integration import PlainMC, MiserMC, VegasMC

logger = logging.getLogger(__name__)

# tolerated deviation of the VEGAS chi^2 per degree of freedom from 1
CHISQ_TOLERANCE = 0.5

METHODS = {
    'plain': PlainMC,
    'miser': MiserMC,
    'vegas': VegasMC,
}


def _is_count(value):
    return (isinstance(value, numbers.Integral) and
            not isinstance(value, bool) and value >= 0)


def _bounds(values, dim, name):
    try:
        bounds = np.array(values, dtype=float)
    except (TypeError, ValueError):
        bounds = None
    if bounds is None or bounds.ndim != 1 or bounds.size != dim:
        raise BadArgument("%s must be a vector of length dim specifying the "
                          "%s bounds of each component of x" % (name, name))
    return bounds


def _overrides(params):
    if hasattr(params, 'items'):
        params = list(params.items())
    try:
        params = [tuple(entry) for entry in params]
    except TypeError:
        raise BadArgument("params must be a sequence of (name, value) pairs")
    for entry in params:
        if len(entry) != 2 or not isinstance(entry[0], str):
            raise BadArgument("params must be a sequence of (name, value) "
                              "pairs, got %r" % (entry,))
    return params


def integrate(algorithm, dim, lower, upper, integrand, calls, params=(),
              rng=None, chisq_tolerance=CHISQ_TOLERANCE):
    """ Monte Carlo estimate of the integral of integrand over a box.

    The box is {x : lower[i] <= x[i] <= upper[i]}. An exception raised by
    the integrand stops the sampling and is re-raised unchanged; errors of
    the numeric routines are raised as GSLError.

    Example:
        >>> result = integrate('vegas', 1, [0], [1], lambda x: x[0] ** 2,
        ...                    10000, [('iterations', 10)], rng=0)
        >>> round(result.estimate, 2)
        0.33

    :param algorithm: One of 'plain', 'miser' or 'vegas'.
    :param dim: Number of dimensions (nonnegative integer).
    :param lower: Lower bounds, sequence of length dim.
    :param upper: Upper bounds, sequence of length dim.
    :param integrand: Callable taking a numpy array of length dim and
        returning a number.
    :param calls: Number of function evaluations (per iteration for VEGAS).
    :param params: Sequence of (name, value) pairs overriding the defaults
        of the algorithm, or a mapping.
    :param rng: numpy Generator, integer seed or None.
    :param chisq_tolerance: Warn with ChisqInconsistent if the VEGAS
        chi^2 per degree of freedom differs from 1 by more than this.
    :return: IntegrationSample with estimate, abserr and, for VEGAS, chisq.
    """
    if not isinstance(algorithm, str):
        raise BadArgument("algorithm must be a string; use one of "
                          "{plain,miser,vegas}")
    if not _is_count(dim):
        raise BadArgument("dim must be a nonnegative integer")
    lower = _bounds(lower, dim, "lower")
    upper = _bounds(upper, dim, "upper")
    if not callable(integrand):
        raise BadArgument("integrand must be callable")
    if not _is_count(calls):
        raise BadArgument("calls must be a nonnegative integer")
    overrides = _overrides(params)

    try:
        method_class = METHODS[algorithm]
    except KeyError:
        raise BadArgument("unknown algorithm: %s" % algorithm) from None
    config = method_class.params_class.defaults(dim).with_overrides(overrides)

    logger.debug("integrating with %s in %d dimensions, %d calls, %s",
                 algorithm, dim, calls, config)

    install_error_handler()
    rng = np.random.default_rng(rng)
    slot = FailureSlot()
    bridge = IntegrandBridge(integrand, slot)

    state = method_class(dim)
    try:
        state.set_params(config)
        with failure_context(slot):
            result = state(bridge, lower, upper, calls, rng)
    finally:
        state.free()

    failure = slot.drain()
    if failure is not None:
        logger.debug("integration with %s failed after %d evaluations: %r",
                     algorithm, bridge.count, failure)
        raise failure

    logger.debug("%s result %r after %d evaluations", algorithm, result,
                 bridge.count)

    if (result.chisq is not None and result.iterations > 1 and
            abs(1 - result.chisq) > chisq_tolerance):
        warnings.warn("Chi-squared statistic is %f, which may be too far "
                      "from 1.  Results may be inaccurate." % result.chisq,
                      ChisqInconsistent)

    return result
