import numpy as np

from .integration import MonteCarloMethod, sample_uniform
from ..errors import report_error, EINVAL, EFAILED, ESANITY
from ..params import MiserParams
from ..util import uniform_pos, RunningMean, region_volume


class MiserMC(MonteCarloMethod):
    params_class = MiserParams

    def __init__(self, ndim=1, name="miser"):
        """ MISER recursive stratified sampling.

        A region with enough calls is bisected along the dimension where the
        two halves have the smallest combined variance, estimated from a
        fraction of the calls. The remaining calls are distributed among the
        halves according to their variances, and each half is treated the
        same way until the calls of a region drop below
        min_calls_per_bisection, or too few remain after the estimation to
        give each half min_calls; such regions are sampled uniformly. The
        number of function evaluations never exceeds the calls given.

        Regions are processed from an explicit stack, left halves before
        right halves.

        Example:
            >>> miser = MiserMC(2)
            >>> miser.set_params(miser.get_params().with_overrides(
            ...     {'dither': 0.1}))
            >>> est, err = miser(lambda x: x[0] * x[1], [0, 0], [1, 1],
            ...                  10000, rng=0)

        :param ndim: Dimensionality of the integral.
        :param name: Method name.
        """
        super().__init__(ndim, name)
        defaults = MiserParams.defaults(ndim)
        self.estimate_frac = defaults.estimate_frac
        self.min_calls = defaults.min_calls
        self.min_calls_per_bisection = defaults.min_calls_per_bisection
        self.alpha = defaults.alpha
        self.dither = defaults.dither

        self.xmid = np.empty(ndim)
        self.sigma_l = np.empty(ndim)
        self.sigma_r = np.empty(ndim)
        self.hits_l = np.empty(ndim)
        self.hits_r = np.empty(ndim)
        self.fsum_l = np.empty(ndim)
        self.fsum_r = np.empty(ndim)
        self.fsum2_l = np.empty(ndim)
        self.fsum2_r = np.empty(ndim)

    def get_params(self):
        return MiserParams(self.estimate_frac, self.min_calls,
                           self.min_calls_per_bisection, self.alpha,
                           self.dither)

    def set_params(self, params):
        for name, value in params.as_dict().items():
            setattr(self, name, value)

    def free(self):
        self.xmid = self.sigma_l = self.sigma_r = None
        self.hits_l = self.hits_r = None
        self.fsum_l = self.fsum_r = self.fsum2_l = self.fsum2_r = None

    def estimate_variances(self, fn, xl, xu, calls, rng):
        """ Sample the region to estimate the variance of each half.

        Fills sigma_l and sigma_r with the estimated standard deviations of
        the integral over the lower and upper half along every dimension,
        -1 where a half did not get any points.

        :return: False if fn failed, True otherwise.
        """
        ndim = self.ndim
        xmid = self.xmid
        vol = region_volume(xl, xu)
        for arr in (self.hits_l, self.hits_r, self.fsum_l, self.fsum_r,
                    self.fsum2_l, self.fsum2_r):
            arr[:] = 0
        self.sigma_l[:] = -1
        self.sigma_r[:] = -1

        stats = RunningMean()
        zs = uniform_pos(rng, (calls, ndim))
        for n in range(calls):
            x = xl + zs[n] * (xu - xl)
            # alternately restrict one coordinate to the upper/lower half
            j = (n // 2) % ndim
            if n % 2 == 0:
                x[j] = xmid[j] + zs[n, j] * (xu[j] - xmid[j])
            else:
                x[j] = xl[j] + zs[n, j] * (xmid[j] - xl[j])

            value = fn(x)
            if fn.failed:
                return False
            stats.add(value)

            left = x <= xmid
            right = ~left
            self.fsum_l[left] += value
            self.fsum2_l[left] += value * value
            self.hits_l[left] += 1
            self.fsum_r[right] += value
            self.fsum2_r[right] += value * value
            self.hits_r[right] += 1

        fraction_l = (xmid - xl) / (xu - xl)
        halves = ((self.hits_l, self.fsum_l, self.fsum2_l, self.sigma_l,
                   fraction_l),
                  (self.hits_r, self.fsum_r, self.fsum2_r, self.sigma_r,
                   1 - fraction_l))
        for hits, fsum, fsum2, sigma, fraction in halves:
            hit = hits > 0
            spread = fsum2[hit] - fsum[hit] ** 2 / hits[hit]
            sigma[hit] = (np.sqrt(np.maximum(spread, 0)) *
                          fraction[hit] * vol / hits[hit])
        return True

    def _bisection(self, rng):
        """ Choose the dimension to bisect and the weights of the halves.

        :return: Tuple (dimension, weight_l, weight_r), None on error.
        """
        sigma_l, sigma_r = self.sigma_l, self.sigma_r
        beta = 2. / (1. + self.alpha)
        best_var = np.inf
        best = None
        weight_l = weight_r = 1.

        for i in range(self.ndim):
            if sigma_l[i] < 0:
                report_error("no points in left-half space!", ESANITY)
                return None
            if sigma_r[i] < 0:
                report_error("no points in right-half space!", ESANITY)
                return None

            var = sigma_l[i] ** beta + sigma_r[i] ** beta
            if var <= best_var:
                best_var = var
                best = i
                weight_l = sigma_l[i] ** beta
                weight_r = sigma_r[i] ** beta
                if weight_l == 0 and weight_r == 0:
                    weight_l = weight_r = 1.

        if best is None:
            # no usable variance estimate, bisect at random
            best = int(rng.integers(self.ndim))
        return best, weight_l, weight_r

    def _integrate(self, fn, xl, xu, calls, rng):
        if self.alpha < 0:
            report_error("alpha must be non-negative", EINVAL)
            return self._neutral(fn)

        min_calls = self.min_calls
        estimate = 0.
        variance = 0.

        regions = [(xl, xu, calls)]
        while regions:
            xl, xu, calls = regions.pop()

            estimate_calls = max(min_calls, int(calls * self.estimate_frac))
            # both halves need min_calls from what estimation leaves over
            if (calls < self.min_calls_per_bisection or calls < min_calls or
                    calls - estimate_calls < 2 * min_calls):
                if calls < 2:
                    report_error("insufficient calls for subvolume", EFAILED)
                    return self._neutral(fn)
                result = sample_uniform(fn, xl, xu, calls, rng)
                if result is None:
                    return self._neutral(fn)
                estimate += result[0]
                variance += result[1] ** 2
                continue

            if estimate_calls < 4 * self.ndim:
                report_error("insufficient calls to sample all halfspaces",
                             ESANITY)
                return self._neutral(fn)

            # flip coins to bisect the region with some fuzz
            for i in range(self.ndim):
                s = self.dither if rng.random() >= 0.5 else -self.dither
                self.xmid[i] = (0.5 + s) * xl[i] + (0.5 - s) * xu[i]

            if not self.estimate_variances(fn, xl, xu, estimate_calls, rng):
                return self._neutral(fn)
            calls -= estimate_calls

            bisection = self._bisection(rng)
            if bisection is None:
                return self._neutral(fn)
            i_bisect, weight_l, weight_r = bisection
            x_mid = self.xmid[i_bisect]

            fraction_l = abs((x_mid - xl[i_bisect]) /
                             (xu[i_bisect] - xl[i_bisect]))
            a = fraction_l * weight_l
            b = (1 - fraction_l) * weight_r
            spare = max(calls - 2 * min_calls, 0)
            calls_l = min_calls + int(spare * a / (a + b))
            calls_r = min_calls + int(spare * b / (a + b))

            xu_l = xu.copy()
            xu_l[i_bisect] = x_mid
            xl_r = xl.copy()
            xl_r[i_bisect] = x_mid
            # the left half is popped (and sampled) first
            regions.append((xl_r, xu, calls_r))
            regions.append((xl, xu_l, calls_l))

        return self.sample_class(estimate=estimate, abserr=np.sqrt(variance),
                                 algorithm=self.method_name,
                                 evaluations=fn.count)
