""" Parameters of the integration algorithms.

Each algorithm has a parameter class listing its fields explicitly. Named
overrides are applied to a copy of a configuration, and only after every
name and value has been checked, so a configuration is either updated as
a whole or not at all.

Example:
    >>> params = VegasParams.defaults(2)
    >>> params = params.with_overrides([('iterations', 10), ('alpha', 1.)])
    >>> params.iterations, params.alpha
    (10, 1.0)
"""

import math
import numbers
from copy import copy

from .errors import BadArgument


def _as_float(name, value):
    return float(value)


def _as_count(name, value):
    if value < 0:
        raise BadArgument("parameter %s must be nonnegative" % name)
    return int(value)


def _choice(*allowed):
    def convert(name, value):
        value = int(value)
        if value not in allowed:
            raise BadArgument("parameter %s must be one of %s" % (
                name, ", ".join(str(a) for a in allowed)))
        return value
    return convert


class AlgorithmParams(object):
    # sequence of (name, converter) pairs, defined by subclasses
    fields = ()

    @classmethod
    def field_names(cls):
        return [name for name, _ in cls.fields]

    @classmethod
    def defaults(cls, ndim):
        return cls()

    def as_dict(self):
        return {name: getattr(self, name) for name in self.field_names()}

    def with_overrides(self, overrides):
        """ Return a copy of self with the named overrides applied.

        :param overrides: Sequence of (name, value) pairs, or a mapping.
            Later entries win if a name appears more than once.
        :return: New parameter object; self is left unchanged.
        """
        if hasattr(overrides, 'items'):
            overrides = list(overrides.items())
        converters = dict(self.fields)

        for name, _ in overrides:
            if name not in converters:
                raise BadArgument("unknown parameter: %s" % name)

        values = []
        for name, value in overrides:
            if (isinstance(value, bool) or
                    not isinstance(value, numbers.Real)):
                raise BadArgument("value of parameter %s must be a number, "
                                  "got %r" % (name, value))
            if not math.isfinite(value):
                raise BadArgument("value of parameter %s must be finite, "
                                  "got %r" % (name, value))
            values.append((name, converters[name](name, value)))

        params = copy(self)
        for name, value in values:
            setattr(params, name, value)
        return params

    def __eq__(self, other):
        return type(self) is type(other) and self.as_dict() == other.as_dict()

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, ", ".join(
            "%s=%r" % (name, getattr(self, name))
            for name in self.field_names()))


class PlainParams(AlgorithmParams):
    """ Plain Monte Carlo has no parameters. """
    fields = ()


class MiserParams(AlgorithmParams):
    fields = (
        ('estimate_frac', _as_float),
        ('min_calls', _as_count),
        ('min_calls_per_bisection', _as_count),
        ('alpha', _as_float),
        ('dither', _as_float),
    )

    def __init__(self, estimate_frac=0.1, min_calls=16,
                 min_calls_per_bisection=512, alpha=2., dither=0.):
        """ Parameters of the MISER algorithm.

        :param estimate_frac: Fraction of the calls of a region spent on
            estimating the variances used to choose the bisection.
        :param min_calls: Minimum number of calls to estimate the variance
            of a region; also the minimum given to each half.
        :param min_calls_per_bisection: Regions with fewer calls are not
            bisected further but sampled uniformly.
        :param alpha: Controls how the variances of the two halves are
            combined when distributing calls among them.
        :param dither: Random offset of the bisection point, as a fraction
            of the region (e.g. 0.1).
        """
        self.estimate_frac = estimate_frac
        self.min_calls = min_calls
        self.min_calls_per_bisection = min_calls_per_bisection
        self.alpha = alpha
        self.dither = dither

    @classmethod
    def defaults(cls, ndim):
        min_calls = 16 * ndim
        return cls(min_calls=min_calls,
                   min_calls_per_bisection=32 * min_calls)


class VegasParams(AlgorithmParams):
    fields = (
        ('alpha', _as_float),
        ('iterations', _as_count),
        ('stage', _choice(0, 1, 2, 3)),
        ('mode', _choice(-1, 0, 1)),
        ('verbose', _choice(-1, 0, 1, 2)),
    )

    def __init__(self, alpha=1.5, iterations=5, stage=0, mode=1, verbose=-1):
        """ Parameters of the VEGAS algorithm.

        :param alpha: Stiffness of the grid refinement; 0 keeps the grid
            fixed, larger values adapt more aggressively.
        :param iterations: Number of iterations per call.
        :param stage: 0 starts with a fresh grid, 1 keeps the grid but
            discards earlier results, 2 also keeps the grid size and
            3 keeps everything and only adds iterations.
        :param mode: 1 (importance) chooses between importance and stratified
            sampling depending on the number of calls, 0 forces pure
            importance sampling; -1 (stratified) is resolved like 1.
        :param verbose: -1 for no diagnostics, 0 for summaries, 1 adds
            the final grid and 2 the grid of every iteration.
        """
        self.alpha = alpha
        self.iterations = iterations
        self.stage = stage
        self.mode = mode
        self.verbose = verbose
