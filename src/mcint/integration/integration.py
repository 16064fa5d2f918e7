import numpy as np

from ..callback import IntegrandBridge
from ..errors import report_error, EINVAL
from ..params import PlainParams
from ..util import uniform_pos, RunningMean, region_volume


class IntegrationSample(object):

    def __init__(self, **kwargs):
        # computed by the integration methods
        self.estimate = 0.
        self.abserr = 0.
        self.chisq = None

        self.algorithm = None
        self.evaluations = 0

        for key in kwargs:
            setattr(self, key, kwargs[key])

    def __iter__(self):
        # allow est, err = method(...)
        return iter((self.estimate, self.abserr))

    def __repr__(self):
        return "%s(estimate=%r, abserr=%r)" % (
            type(self).__name__, self.estimate, self.abserr)


class MonteCarloMethod(object):
    """ Common driver of the integration methods.

    An instance is the working state of a method for integrals of fixed
    dimensionality. Calling it checks the integration region, handles
    trivial integrals and otherwise defers to _integrate.
    """
    params_class = PlainParams
    sample_class = IntegrationSample

    def __init__(self, ndim=1, name="MC"):
        self.method_name = name
        self.ndim = ndim

    def get_params(self):
        return self.params_class()

    def set_params(self, params):
        pass

    def free(self):
        """ Release the working memory of the method. """
        pass

    def _neutral(self, fn):
        return self.sample_class(algorithm=self.method_name,
                                 evaluations=fn.count)

    def __call__(self, fn, xl, xu, calls, rng=None):
        """ Compute the Monte Carlo estimate of the integral of fn.

        :param fn: Integrand, taking a numpy array of length ndim and
            returning a number. May be an IntegrandBridge, in which case
            sampling stops as soon as it reports a failure.
        :param xl: Lower bounds of the integration region.
        :param xu: Upper bounds of the integration region.
        :param calls: Number of function evaluations.
        :param rng: numpy Generator, seed or None.
        :return: IntegrationSample with the estimate and its error.
        """
        fn = IntegrandBridge.make(fn)
        rng = np.random.default_rng(rng)
        xl = np.array(xl, dtype=float, ndmin=1)
        xu = np.array(xu, dtype=float, ndmin=1)

        if xl.size != self.ndim or xu.size != self.ndim:
            report_error("number of dimensions must match allocated size",
                         EINVAL)
            return self._neutral(fn)
        if np.any(xu < xl):
            report_error("xu must be greater than xl", EINVAL)
            return self._neutral(fn)
        if not np.all(np.isfinite(xu - xl)):
            report_error("Range of integration is too large, please rescale",
                         EINVAL)
            return self._neutral(fn)

        if self.ndim == 0 or calls == 0 or np.any(xu == xl):
            # nothing to sample
            return self._neutral(fn)

        return self._integrate(fn, xl, xu, int(calls), rng)

    def _integrate(self, fn, xl, xu, calls, rng):
        raise NotImplementedError("MonteCarloMethod is abstract.")


def sample_uniform(fn, xl, xu, calls, rng):
    """ Plain Monte Carlo estimate over the box [xl, xu].

    :return: Tuple (estimate, error) or None if fn failed on the way.
    """
    vol = region_volume(xl, xu)
    stats = RunningMean()
    points = xl + uniform_pos(rng, (calls, xl.size)) * (xu - xl)
    for x in points:
        value = fn(x)
        if fn.failed:
            return None
        stats.add(value)

    return vol * stats.mean, vol * stats.error_of_mean()


class PlainMC(MonteCarloMethod):
    """ Plain Monte Carlo integration method.

    Approximate the integral as the volume times the mean of the integrand
    over points sampled uniformly in the integration region.

    Example:
        >>> mc = PlainMC(1)
        >>> est, err = mc(lambda x: x[0], [0], [1], 1000, rng=1)
    """

    def __init__(self, ndim=1, name="plain"):
        super().__init__(ndim, name)

    def _integrate(self, fn, xl, xu, calls, rng):
        result = sample_uniform(fn, xl, xu, calls, rng)
        if result is None:
            return self._neutral(fn)

        estimate, err = result
        return self.sample_class(estimate=estimate, abserr=err,
                                 algorithm=self.method_name,
                                 evaluations=fn.count)
