import logging

import numpy as np
from scipy.stats import chi2
from matplotlib import pyplot as plt

from .integration import MonteCarloMethod, IntegrationSample
from ..params import VegasParams
from ..util import uniform_pos, RunningMean

logger = logging.getLogger(__name__)

MODE_IMPORTANCE = 1
MODE_IMPORTANCE_ONLY = 0
MODE_STRATIFIED = -1


class VegasSample(IntegrationSample):

    def __init__(self, **kwargs):
        # number of iterations that entered the weighted estimate
        self.iterations = 0
        super().__init__(**kwargs)

    @property
    def chisq_pvalue(self):
        """ Probability of a chi^2/dof at least as large as the observed. """
        if self.chisq is None or self.iterations < 2:
            return None
        dof = self.iterations - 1
        return chi2.sf(self.chisq * dof, dof)


class VegasMC(MonteCarloMethod):
    params_class = VegasParams
    sample_class = VegasSample

    # maximal number of bins along each axis
    bins_max = 50

    def __init__(self, ndim=1, name="vegas"):
        """ VEGAS Monte Carlo integration algorithm.

        Points are sampled from a separable grid whose bins are adapted over
        several iterations so that each bin contributes equally to the
        integral (importance sampling). With enough calls the volume is in
        addition divided into boxes that are sampled separately (stratified
        sampling). Each call runs `iterations` iterations of `calls`
        function evaluations each; the estimates of the iterations are
        combined weighted by their inverse variances.

        The state persists between calls: after a call the stage is 1, so a
        further call continues refining the same grid with fresh results.

        Example:
            >>> vegas = VegasMC(1)
            >>> sample = vegas(lambda x: x[0] ** 2, [0], [1], 1000, rng=0)
            >>> vegas.stage
            1

        :param ndim: Dimensionality of the integral.
        :param name: Method name.
        """
        super().__init__(ndim, name)
        defaults = VegasParams.defaults(ndim)
        self.alpha = defaults.alpha
        self.iterations = defaults.iterations
        self.stage = defaults.stage
        self.mode = defaults.mode
        self.verbose = defaults.verbose

        # grid coordinates in units of the region, shape (bins + 1, ndim)
        self.xi = np.zeros((self.bins_max + 1, ndim))
        # accumulated function values in each bin
        self.distribution = np.zeros((self.bins_max, ndim))
        self.delx = np.zeros(ndim)
        self.vol = None
        self.bins = self.bins_max
        self.boxes = 1
        self.calls_per_box = 2
        self.jac = 0.
        self.sampling_mode = MODE_IMPORTANCE

        # accumulated results
        self.wtd_int_sum = 0.
        self.sum_wgts = 0.
        self.chi_sum = 0.
        self.chisq = 0.
        self.samples = 0
        self.it_num = 1
        self.it_start = 1
        self.result = 0.
        self.sigma = 0.

    def get_params(self):
        return VegasParams(self.alpha, self.iterations, self.stage,
                           self.mode, self.verbose)

    def set_params(self, params):
        for name, value in params.as_dict().items():
            setattr(self, name, value)

    def free(self):
        self.xi = self.distribution = self.delx = None

    # GRID
    def init_grid(self, xl, xu):
        """ Single bin along each axis spanning the region [xl, xu]. """
        self.delx = xu - xl
        self.vol = float(np.prod(self.delx))
        self.bins = 1
        self.xi[0] = 0.
        self.xi[1] = 1.

    def resize_grid(self, bins):
        """ Change the number of bins, keeping the density of the grid. """
        old = np.arange(self.bins + 1)
        new = np.arange(1, bins) * (self.bins / bins)
        for j in range(self.ndim):
            coords = np.interp(new, old, self.xi[:self.bins + 1, j])
            self.xi[1:bins, j] = coords
            self.xi[bins, j] = 1.
        self.bins = bins

    def refine_grid(self):
        """ Move the bin boundaries towards the accumulated distribution. """
        bins = self.bins
        if bins < 2:
            return
        for j in range(self.ndim):
            values = self.distribution[:bins, j]
            smoothed = np.empty(bins)
            smoothed[0] = (values[0] + values[1]) / 2
            smoothed[1:-1] = (values[:-2] + values[1:-1] + values[2:]) / 3
            smoothed[-1] = (values[-2] + values[-1]) / 2
            self.distribution[:bins, j] = smoothed
            grid_tot = np.sum(smoothed)

            weights = np.zeros(bins)
            for i in np.flatnonzero(smoothed > 0):
                r = grid_tot / smoothed[i]
                if r == 1:
                    weights[i] = 1.
                else:
                    # damped change
                    weights[i] = ((r - 1) / r / np.log(r)) ** self.alpha

            tot_weight = np.sum(weights)
            if tot_weight == 0:
                continue

            # place new boundaries at equal steps of the cumulative weight
            cumulative = np.concatenate(([0.], np.cumsum(weights)))
            targets = np.arange(1, bins) * (tot_weight / bins)
            self.xi[1:bins, j] = np.interp(targets, cumulative,
                                           self.xi[:bins + 1, j])
            self.xi[bins, j] = 1.

    def random_points(self, box, count, xl, rng):
        """ Sample count points uniformly in box, through the grid.

        :return: Tuple (points, bin indices, bin volumes) with shapes
            (count, ndim), (count, ndim) and (count,).
        """
        cols = np.arange(self.ndim)
        # position in units of boxes and bins
        z = (np.asarray(box) + uniform_pos(rng, (count, self.ndim)))
        z *= self.bins / self.boxes
        k = np.minimum(z.astype(int), self.bins - 1)
        lower = self.xi[k, cols]
        width = self.xi[k + 1, cols] - lower
        points = xl + (lower + (z - k) * width) * self.delx
        return points, k, np.prod(width, axis=1)

    # INTEGRATION
    def _setup_boxes(self, calls):
        bins = self.bins_max
        boxes = 1

        self.sampling_mode = self.mode
        if self.mode != MODE_IMPORTANCE_ONLY:
            # shooting for 2 calls per box
            boxes = max(1, int(np.floor((calls / 2.) ** (1. / self.ndim))))
            self.sampling_mode = MODE_IMPORTANCE

            if 2 * boxes >= self.bins_max:
                # fewer than 2 bins per box
                box_per_bin = max(boxes // self.bins_max, 1)
                bins = min(boxes // box_per_bin, self.bins_max)
                boxes = box_per_bin * bins
                self.sampling_mode = MODE_STRATIFIED

        tot_boxes = float(boxes) ** self.ndim
        self.calls_per_box = max(int(calls / tot_boxes), 2)
        calls = self.calls_per_box * tot_boxes

        # total volume of x-space / (average number of calls per bin)
        self.jac = self.vol * float(bins) ** self.ndim / calls
        self.boxes = boxes

        if bins != self.bins:
            self.resize_grid(bins)
            if self.verbose > 1:
                self._log_grid()

        if self.verbose >= 0:
            logger.info("num_dim=%d, calls=%d, it_num=%d, max_it_num=%d, "
                        "verb=%d, alph=%.2f, mode=%d, boxes=%d, bins=%d",
                        self.ndim, calls, self.it_num, self.iterations,
                        self.verbose, self.alpha, self.sampling_mode,
                        self.boxes, self.bins)

    def _iterate(self, fn, xl, rng):
        """ One pass over all boxes.

        :return: Tuple (integral, total sum of squares), None if fn failed.
        """
        cols = np.arange(self.ndim)
        calls_per_box = self.calls_per_box
        stratified = self.sampling_mode == MODE_STRATIFIED
        self.distribution[:self.bins] = 0
        intgrl = 0.
        tss = 0.

        for box in np.ndindex(*((self.boxes,) * self.ndim)):
            points, bins, bin_vols = self.random_points(
                box, calls_per_box, xl, rng)
            fvals = np.empty(calls_per_box)
            box_stats = RunningMean()
            for k in range(calls_per_box):
                value = fn(points[k])
                if fn.failed:
                    return None
                fvals[k] = self.jac * bin_vols[k] * value
                box_stats.add(fvals[k])

            intgrl += box_stats.mean * calls_per_box
            f_sq_sum = box_stats.sum_sq * calls_per_box
            tss += f_sq_sum

            if stratified:
                # at most one bin per box
                self.distribution[bins[-1], cols] += f_sq_sum
            else:
                np.add.at(self.distribution, (bins, cols), fvals[:, None] ** 2)

        return intgrl, tss

    def _integrate(self, fn, xl, xu, calls, rng):
        stage = self.stage if self.vol is not None else 0

        if stage == 0:
            self.init_grid(xl, xu)
            if self.verbose >= 0:
                self._log_limits(xl, xu)

        if stage <= 1:
            self.wtd_int_sum = 0.
            self.sum_wgts = 0.
            self.chi_sum = 0.
            self.it_num = 1
            self.samples = 0
            self.chisq = 0.

        if stage <= 2:
            self._setup_boxes(calls)

        self.it_start = self.it_num
        cum_int = 0.
        cum_sig = 0.

        for it in range(self.iterations):
            self.it_num = self.it_start + it

            result = self._iterate(fn, xl, rng)
            if result is None:
                return self._neutral(fn)
            intgrl, tss = result

            var = tss / (self.calls_per_box - 1.)
            if var > 0:
                wgt = 1. / var
            elif self.sum_wgts > 0:
                wgt = self.sum_wgts / self.samples
            else:
                wgt = 0.

            self.result = intgrl
            self.sigma = np.sqrt(var)

            if wgt > 0:
                sum_wgts = self.sum_wgts
                m = self.wtd_int_sum / sum_wgts if sum_wgts > 0 else 0.
                q = intgrl - m

                self.samples += 1
                self.sum_wgts += wgt
                self.wtd_int_sum += intgrl * wgt
                self.chi_sum += intgrl * intgrl * wgt

                cum_int = self.wtd_int_sum / self.sum_wgts
                cum_sig = np.sqrt(1. / self.sum_wgts)

                # incremental chi^2 per degree of freedom
                if self.samples == 1:
                    self.chisq = 0.
                else:
                    self.chisq *= self.samples - 2.
                    self.chisq += wgt / (1. + wgt / sum_wgts) * q * q
                    self.chisq /= self.samples - 1.
            else:
                cum_int += (intgrl - cum_int) / (it + 1.)
                cum_sig = 0.

            if self.verbose >= 0:
                logger.info("iteration %d: integral = %.8e +/- %.2e, "
                            "accumulated = %.8e +/- %.2e, chi^2/dof = %.2f",
                            self.it_num, intgrl, self.sigma, cum_int, cum_sig,
                            self.chisq)
            if it + 1 == self.iterations and self.verbose > 0:
                self._log_grid()
            if self.verbose > 1:
                self._log_distribution()

            self.refine_grid()

            if self.verbose > 1:
                self._log_grid()

        # further calls start with fresh estimates on the same grid
        self.stage = 1

        return self.sample_class(estimate=cum_int, abserr=cum_sig,
                                 chisq=self.chisq, iterations=self.samples,
                                 algorithm=self.method_name,
                                 evaluations=fn.count)

    # DIAGNOSTICS
    def _log_limits(self, xl, xu):
        for j in range(self.ndim):
            logger.info("x[%d] limits: %12.6g %12.6g", j, xl[j], xu[j])

    def _log_grid(self):
        for j in range(self.ndim):
            logger.info("grid axis %d: %s", j, np.array2string(
                self.xi[:self.bins + 1, j], precision=4))

    def _log_distribution(self):
        for j in range(self.ndim):
            logger.info("distribution axis %d: %s", j, np.array2string(
                self.distribution[:self.bins, j], precision=4))

    def plot_grid(self, dim=0, label="sampling density"):
        """ Plot the sampling density of the grid along one axis.

        The density is in units of the integration region, i.e. on [0, 1].
        """
        edges = self.xi[:self.bins + 1, dim]
        width = np.diff(edges)
        height = 1. / self.bins / width
        return plt.bar(edges[:-1], height, width, align='edge', alpha=.4,
                       label=label)
