""" Monte Carlo integration methods.

Each method is a class whose instances hold the working state for integrals
of a fixed dimensionality. An instance is called with the integrand, the
bounds of the integration region, the number of function evaluations and
optionally a random generator (or seed). The result is an IntegrationSample
carrying the estimate and its error.

Example:
    >>> mc = PlainMC(2)
    >>> sample = mc(lambda x: x[0] + x[1], [0, 0], [1, 1], 10000, rng=0)
    >>> est, err = sample

The integrand receives a single point as a numpy array of length ndim and
must return a number.

The adaptive methods have parameters that can be read and replaced as a
whole via get_params and set_params.

Example:
    >>> vegas = VegasMC(1)
    >>> vegas.set_params(vegas.get_params().with_overrides(
    ...     [('iterations', 10)]))
    >>> sample = vegas(lambda x: x[0] ** 2, [0], [1], 2000, rng=0)
    >>> sample.chisq is not None
    True
"""

from .integration import IntegrationSample, MonteCarloMethod, PlainMC
from .miser import MiserMC
from .vegas import VegasMC, VegasSample

__all__ = ['IntegrationSample', 'MonteCarloMethod', 'PlainMC', 'MiserMC',
           'VegasMC', 'VegasSample']
