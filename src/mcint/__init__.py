""" Monte Carlo integration of black-box functions over boxes.

The integral of a function f over {x : lower[i] <= x[i] <= upper[i]} is
estimated with one of three methods: plain Monte Carlo, MISER (recursive
stratified sampling) or VEGAS (adaptive importance sampling).

Example:
    >>> import mcint
    >>> est, err = mcint.integrate('miser', 2, [0, 0], [1, 1],
    ...                            lambda x: x[0] * x[1], 10000, rng=0)

Exceptions raised by f are re-raised by integrate as they are, errors of
the numeric routines as GSLError and invalid arguments as BadArgument. A
VEGAS result whose chi^2 per degree of freedom is far from 1 comes with a
ChisqInconsistent warning.
"""

from . import util
from . import integration

from .errors import (McintError, BadArgument, GSLError, ChisqInconsistent,
                     FailureSlot, failure_context, report_error,
                     set_error_handler, install_error_handler)
from .callback import IntegrandBridge
from .params import PlainParams, MiserParams, VegasParams
from .integration import (IntegrationSample, PlainMC, MiserMC, VegasMC,
                          VegasSample)
from .dispatch import integrate, CHISQ_TOLERANCE

__all__ = ['integrate', 'CHISQ_TOLERANCE', 'McintError', 'BadArgument',
           'GSLError', 'ChisqInconsistent', 'FailureSlot', 'failure_context',
           'report_error', 'set_error_handler', 'install_error_handler',
           'IntegrandBridge', 'PlainParams', 'MiserParams', 'VegasParams',
           'IntegrationSample', 'PlainMC', 'MiserMC', 'VegasMC',
           'VegasSample']
