import warnings

import numpy as np

from .. import *
from ..util import Counted

from unittest import TestCase


ALGORITHMS = ['plain', 'miser', 'vegas']

# accepted distance of chi^2/dof from 1 for a smooth integrand
CHISQ_BAND = 3.


class TestIntegrate(TestCase):

    def test_constant(self):
        for dim in [1, 2, 3]:
            sample = integrate('plain', dim, [0] * dim, [1] * dim,
                               lambda x: 1., 1000, rng=0)
            self.assertAlmostEqual(sample.estimate, 1.0)
            self.assertEqual(sample.algorithm, 'plain')
            self.assertIsNone(sample.chisq)

    def test_error_shrinks(self):
        fn = lambda x: x[0]
        coarse = integrate('plain', 1, [0], [1], fn, 10, rng=1)
        fine = integrate('plain', 1, [0], [1], fn, 10000, rng=1)
        self.assertLess(fine.abserr, coarse.abserr)
        self.assertAlmostEqual(fine.estimate, 0.5, 1)

    def test_all_algorithms(self):
        fn = lambda x: x[0] + x[1]
        for algorithm in ALGORITHMS:
            est, err = integrate(algorithm, 2, [0, 0], [1, 1], fn, 10000,
                                 rng=2)
            self.assertAlmostEqual(est, 1.0, 1)
            self.assertLess(err, 0.1)

    def test_vegas_square(self):
        sample = integrate('vegas', 1, [0], [1], lambda x: x[0] ** 2, 10000,
                           [('iterations', 10)], rng=3)
        self.assertAlmostEqual(sample.estimate, 1 / 3, 2)
        self.assertLess(abs(1 - sample.chisq), CHISQ_BAND)
        # no warning when the tolerance is the same band
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            integrate('vegas', 1, [0], [1], lambda x: x[0] ** 2, 10000,
                      [('iterations', 10)], rng=3, chisq_tolerance=CHISQ_BAND)
        self.assertFalse(any(issubclass(w.category, ChisqInconsistent)
                             for w in caught))

    def test_trivial(self):
        for algorithm in ALGORITHMS:
            fn = Counted(lambda x: 1.)
            sample = integrate(algorithm, 0, [], [], fn, 100)
            self.assertEqual((sample.estimate, sample.abserr), (0., 0.))
            sample = integrate(algorithm, 2, [0, 0], [1, 1], fn, 0)
            self.assertEqual((sample.estimate, sample.abserr), (0., 0.))
            self.assertEqual(fn.count, 0)

    def test_degenerate_bounds(self):
        for algorithm in ALGORITHMS:
            sample = integrate(algorithm, 2, [0, 2], [1, 2],
                               lambda x: 5., 1000)
            self.assertEqual(sample.estimate, 0.)

    def test_params_mapping(self):
        sample = integrate('miser', 1, [0], [1], lambda x: x[0], 2000,
                           {'dither': 0.05, 'estimate_frac': 0.2}, rng=4)
        self.assertAlmostEqual(sample.estimate, 0.5, 1)

    def test_miser_small_bisection_threshold(self):
        # min_calls_per_bisection equal to min_calls
        fn = Counted(lambda x: x[0])
        sample = integrate('miser', 1, [0], [1], fn, 1000,
                           [('min_calls_per_bisection', 16)], rng=0)
        self.assertLessEqual(fn.count, 1000)
        self.assertEqual(sample.evaluations, fn.count)
        self.assertAlmostEqual(sample.estimate, 0.5, 1)

    def test_rng_generator(self):
        fn = lambda x: np.exp(x[0])
        first = integrate('plain', 1, [0], [1], fn, 100,
                          rng=np.random.default_rng(5))
        second = integrate('plain', 1, [0], [1], fn, 100, rng=5)
        self.assertEqual(first.estimate, second.estimate)


class TestBadArgument(TestCase):

    def assertBadArgument(self, *args, **kwargs):
        fn = Counted(lambda x: 1.)
        args = list(args)
        args.insert(4, fn)
        with self.assertRaises(BadArgument) as cm:
            integrate(*args, **kwargs)
        self.assertEqual(cm.exception.identifier, 'MCI:BadArgument')
        self.assertEqual(fn.count, 0)
        return cm.exception

    def test_unknown_algorithm(self):
        error = self.assertBadArgument('bogus', 1, [0], [1], 100)
        self.assertEqual(str(error), "unknown algorithm: bogus")

    def test_algorithm_not_string(self):
        self.assertBadArgument(1, 1, [0], [1], 100)

    def test_bad_dimension(self):
        self.assertBadArgument('plain', -1, [], [], 100)
        self.assertBadArgument('plain', 1.5, [0], [1], 100)

    def test_bounds_length(self):
        self.assertBadArgument('plain', 2, [0], [1, 1], 100)
        self.assertBadArgument('plain', 2, [0, 0], [1], 100)
        self.assertBadArgument('plain', 1, [[0]], [[1]], 100)
        self.assertBadArgument('plain', 1, ['a'], [1], 100)

    def test_negative_calls(self):
        self.assertBadArgument('vegas', 1, [0], [1], -1)

    def test_not_callable(self):
        with self.assertRaises(BadArgument):
            integrate('plain', 1, [0], [1], 'f', 10)

    def test_unknown_parameter(self):
        error = self.assertBadArgument('vegas', 1, [0], [1], 100,
                                       [('foo', 1)])
        self.assertEqual(str(error), "unknown parameter: foo")

    def test_no_partial_parameters(self):
        defaults = VegasParams.defaults(1)
        self.assertBadArgument('vegas', 1, [0], [1], 100,
                               [('iterations', 2), ('foo', 1)])
        self.assertEqual(VegasParams.defaults(1), defaults)

    def test_parameter_of_other_algorithm(self):
        self.assertBadArgument('miser', 1, [0], [1], 100, [('iterations', 2)])
        self.assertBadArgument('plain', 1, [0], [1], 100, [('alpha', 2)])

    def test_malformed_parameters(self):
        self.assertBadArgument('vegas', 1, [0], [1], 100, [('alpha',)])
        self.assertBadArgument('vegas', 1, [0], [1], 100, [(1, 2)])
        self.assertBadArgument('vegas', 1, [0], [1], 100, [('alpha', 'x')])
        self.assertBadArgument('vegas', 1, [0], [1], 100, [('stage', 4)])


class TestIntegrandFailure(TestCase):

    def test_first_call_fails(self):
        for algorithm in ALGORITHMS:
            error = ValueError("integrand failed")

            def fn(x):
                raise error

            fn = Counted(fn)
            with self.assertRaises(ValueError) as cm:
                integrate(algorithm, 2, [0, 0], [1, 1], fn, 5000)
            self.assertIs(cm.exception, error)
            self.assertEqual(fn.count, 1)

    def test_later_call_fails(self):
        for algorithm in ALGORITHMS:
            def fn(x):
                if fn.count == 10:
                    raise KeyError("tenth")
                return 1.

            fn = Counted(fn)
            with self.assertRaises(KeyError):
                integrate(algorithm, 2, [0, 0], [1, 1], fn, 5000)
            self.assertEqual(fn.count, 10)

    def test_non_numeric_result(self):
        with self.assertRaises(TypeError):
            integrate('plain', 1, [0], [1], lambda x: None, 100)

    def test_next_call_unaffected(self):
        def fn(x):
            raise RuntimeError()

        with self.assertRaises(RuntimeError):
            integrate('vegas', 1, [0], [1], fn, 100)
        sample = integrate('vegas', 1, [0], [1], lambda x: 2., 100)
        self.assertAlmostEqual(sample.estimate, 2.0)

    def test_nested_integration(self):
        # a failure of an inner integration stays with the inner call
        def inner(x):
            raise LookupError("inner")

        def outer(x):
            try:
                integrate('plain', 1, [0], [1], inner, 10)
            except LookupError:
                return 1.
            return 0.

        sample = integrate('plain', 1, [0], [1], outer, 20, rng=0)
        self.assertAlmostEqual(sample.estimate, 1.0)


class TestNumericErrors(TestCase):

    def test_reversed_bounds(self):
        fn = Counted(lambda x: 1.)
        with self.assertRaises(GSLError) as cm:
            integrate('plain', 1, [1], [0], fn, 100)
        self.assertEqual(cm.exception.identifier, 'MCI:GSLErrno4')
        self.assertTrue(str(cm.exception).startswith(
            "xu must be greater than xl at integration.py:"))
        self.assertEqual(fn.count, 0)

    def test_infinite_bounds(self):
        with self.assertRaises(GSLError) as cm:
            integrate('vegas', 1, [0], [np.inf], lambda x: 1., 100)
        self.assertEqual(cm.exception.errno, 4)

    def test_miser_single_call(self):
        with self.assertRaises(GSLError) as cm:
            integrate('miser', 1, [0], [1], lambda x: 1., 1)
        self.assertEqual(cm.exception.identifier, 'MCI:GSLErrno5')

    def test_miser_negative_alpha(self):
        with self.assertRaises(GSLError) as cm:
            integrate('miser', 1, [0], [1], lambda x: 1., 1000,
                      [('alpha', -1)])
        self.assertEqual(cm.exception.reason, "alpha must be non-negative")


class TestChisqWarning(TestCase):

    def test_warns(self):
        with self.assertWarns(ChisqInconsistent):
            sample = integrate('vegas', 1, [0], [1], lambda x: x[0] ** 2,
                               1000, rng=6, chisq_tolerance=-1.)
        # the result is still returned
        self.assertAlmostEqual(sample.estimate, 1 / 3, 1)

    def test_within_tolerance(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            integrate('vegas', 1, [0], [1], lambda x: x[0] ** 2, 1000,
                      rng=6, chisq_tolerance=np.inf)
        self.assertFalse(any(issubclass(w.category, ChisqInconsistent)
                             for w in caught))

    def test_single_iteration(self):
        # chi^2 is undefined with a single iteration
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            sample = integrate('vegas', 1, [0], [1], lambda x: x[0], 1000,
                               [('iterations', 1)], rng=7,
                               chisq_tolerance=0.)
        self.assertEqual(sample.chisq, 0.)
        self.assertFalse(any(issubclass(w.category, ChisqInconsistent)
                             for w in caught))
