import numpy as np


def uniform_pos(rng, size=None):
    """ Uniform random numbers on the open interval (0, 1).

    numpy's Generator.random samples [0, 1); exact zeros are redrawn so that
    sample points never land on the lower boundary of a region.

    Example:
        >>> rng = np.random.default_rng(42)
        >>> u = uniform_pos(rng, (1000, 2))
        >>> bool(np.all((0 < u) & (u < 1)))
        True

    :param rng: numpy.random.Generator to draw from.
    :param size: Output shape, None for a single float.
    """
    values = rng.random(size)
    if size is None:
        while values == 0:
            values = rng.random()
        return values
    zeros = values == 0
    while np.any(zeros):
        values[zeros] = rng.random(np.count_nonzero(zeros))
        zeros = values == 0
    return values


class RunningMean(object):
    """ Recurrence for the mean and the sum of squared deviations.

    Example:
        >>> stats = RunningMean()
        >>> for value in [1., 2., 3.]:
        ...     stats.add(value)
        >>> stats.mean, stats.sum_sq
        (2.0, 2.0)
    """

    def __init__(self):
        self.count = 0
        self.mean = 0.
        self.sum_sq = 0.

    def add(self, value):
        d = value - self.mean
        self.mean += d / (self.count + 1.)
        self.sum_sq += d * d * (self.count / (self.count + 1.))
        self.count += 1

    def error_of_mean(self):
        """ Standard error of the mean; infinite for fewer than 2 values. """
        if self.count < 2:
            return np.inf
        return np.sqrt(self.sum_sq / (self.count * (self.count - 1.)))


def region_volume(xl, xu):
    return float(np.prod(np.asarray(xu) - np.asarray(xl)))


class Counted(object):
    """ Wrap fn and count how often it has been called. """

    def __init__(self, fn):
        self.fn = fn
        self.count = 0

    def __call__(self, xs, *args, **kwargs):
        self.count += 1
        return self.fn(xs, *args, **kwargs)

