import logging
import math
from functools import lru_cache

import numpy as np
from scipy.optimize import minimize

from config import (BOHR_RADIUS, VIBRATION_AMPLITUDE, VIBRATION_FREQ, NUM_POINTS,
                    MAX_ATTEMPTS_PER_POINT, BATCH_SIZE, BOUND_MARGIN, BOUND_GRID)

logger = logging.getLogger(__name__)


class OrbitalError(ValueError):
    pass


class InvalidQuantumNumbers(OrbitalError):
    def __init__(self, n, l, m):
        super().__init__(
            f"Invalid quantum numbers n={n}, l={l}, m={m}. "
            "Need n >= 1, 0 <= l < n and -l <= m <= l."
        )
        self.n, self.l, self.m = n, l, m


class UnsupportedOrbital(OrbitalError):
    def __init__(self, n, l, m):
        super().__init__(
            f"No closed form for n={n}, l={l}, m={m}. "
            f"Supported radial n: {sorted(RADIAL)}, angular (l, m): {sorted(ANGULAR)}."
        )
        self.n, self.l, self.m = n, l, m


class SamplingError(RuntimeError):
    def __init__(self, message, accepted, attempts):
        super().__init__(message)
        self.accepted = accepted
        self.attempts = attempts


class SamplingBudgetExceeded(SamplingError):
    def __init__(self, accepted, attempts, wanted):
        super().__init__(
            f"Sampling budget exceeded: {accepted}/{wanted} points accepted "
            f"after {attempts} candidates.",
            accepted, attempts,
        )
        self.wanted = wanted


class SamplingCancelled(SamplingError):
    def __init__(self, accepted, attempts):
        super().__init__(f"Sampling cancelled after {attempts} candidates.", accepted, attempts)


# ---------------- Closed forms ---------------- #

def _asFloat(x):
    return np.asarray(x, dtype=float)


def _radial1(r):
    a0 = BOHR_RADIUS
    return 2.0 * np.exp(-r / a0) / a0 ** 1.5


def _radial2(r):
    a0 = BOHR_RADIUS
    return (1.0 / (2.0 * math.sqrt(2.0))) * (1.0 - r / (2.0 * a0)) * np.exp(-r / (2.0 * a0)) / a0 ** 1.5


def _s(th, ph):
    return 0.5 * math.sqrt(1.0 / math.pi) + 0.0 * _asFloat(th)


def _pz(th, ph):
    return math.sqrt(3.0 / (4.0 * math.pi)) * np.cos(th)


def _px(th, ph):
    return -math.sqrt(3.0 / (4.0 * math.pi)) * np.sin(th) * np.cos(ph)


def _py(th, ph):
    return -math.sqrt(3.0 / (4.0 * math.pi)) * np.sin(th) * np.sin(ph)


# n -> R_n(r); both n = 2 states share the 2s radial shape
RADIAL = {
    1: _radial1,
    2: _radial2,
}

# (l, m) -> real Y_lm(theta, phi)
ANGULAR = {
    (0, 0): _s,
    (1, 0): _pz,
    (1, 1): _px,
    (1, -1): _py,
}


def isSupported(n: int, l: int, m: int) -> bool:
    return n in RADIAL and (l, m) in ANGULAR and 0 <= l < n


def radialAmplitude(n, r):
    fn = RADIAL.get(n)
    if fn is None:
        return 0.0 * _asFloat(r)
    return fn(_asFloat(r))


def angularAmplitude(l, m, th, ph):
    fn = ANGULAR.get((l, m))
    if fn is None:
        return 0.0 * _asFloat(th) * _asFloat(ph)
    return fn(_asFloat(th), _asFloat(ph))


def vibration(t):
    """Cosmetic breathing factor, strictly positive since the amplitude is below 1."""
    return 1.0 + VIBRATION_AMPLITUDE * np.sin(VIBRATION_FREQ * _asFloat(t))


def density(orbital, r, th, ph, t=0.0):
    """Unnormalized |psi|^2 at (r, theta, phi) and time t. Works on scalars and arrays."""
    psi = radialAmplitude(orbital.n, r) * angularAmplitude(orbital.l, orbital.m, th, ph)
    return psi ** 2 * vibration(t)


def extent4n(n, base_extent=4.0):
    """
    Sampling radius for a principal quantum number n, in Bohr radii.
    """
    table = {1: 5.0, 2: 8.0}
    return table.get(n, base_extent * n) * BOHR_RADIUS


# ---------------- Rejection bound ---------------- #

@lru_cache(maxsize=None)
def _peakDensity(n, l, m, rMax):
    def psi2(x):
        r, th, ph = x
        return float((radialAmplitude(n, r) * angularAmplitude(l, m, th, ph)) ** 2)

    nr, nth, nph = BOUND_GRID
    rs = np.linspace(0.0, rMax, nr)
    ths = np.linspace(0.0, np.pi, nth)
    phs = np.linspace(0.0, 2 * np.pi, nph, endpoint=False)
    R, TH, PH = np.meshgrid(rs, ths, phs, indexing='ij')
    grid = (radialAmplitude(n, R) * angularAmplitude(l, m, TH, PH)) ** 2
    idx = np.unravel_index(np.argmax(grid), grid.shape)
    gridPeak = float(grid[idx])
    if gridPeak <= 0.0:
        raise UnsupportedOrbital(n, l, m)

    x0 = np.array([R[idx], TH[idx], PH[idx]])
    res = minimize(lambda x: -psi2(x), x0, method='L-BFGS-B',
                   bounds=[(0.0, rMax), (0.0, np.pi), (0.0, 2 * np.pi)])
    peak = max(gridPeak, -float(res.fun))
    logger.debug("Peak |psi|^2 for n=%d l=%d m=%d within r<=%.1f: %.4e (grid %.4e)",
                 n, l, m, rMax, peak, gridPeak)
    return peak


def densityBound(orbital, rMax=None):
    """
    Upper bound on density(orbital, ...) over the sampling ball and all t:
    numerical peak of |psi|^2 times the largest vibration factor.
    """
    n, l, m = orbital.n, orbital.l, orbital.m
    if not isSupported(n, l, m):
        raise UnsupportedOrbital(n, l, m)
    rMax = float(extent4n(n) if rMax is None else rMax)
    if not rMax > 0:
        raise ValueError(f"Sampling radius must be positive, got {rMax}")
    return _peakDensity(n, l, m, rMax) * (1.0 + VIBRATION_AMPLITUDE) * BOUND_MARGIN


# ---------------- Sampler ---------------- #

_rng = None


def defaultRng():
    """Process-wide generator, seeded once on first use."""
    global _rng
    if _rng is None:
        _rng = np.random.default_rng()
    return _rng


def sampleOrbital(orbital, t, numPoints=NUM_POINTS, rng=None, rMax=None, bound=None,
                  maxAttempts=None, batchSize=BATCH_SIZE, shouldStop=None):
    """
    Rejection-sample numPoints Cartesian points distributed like density(orbital, ..., t).

    Candidates are uniform over the ball of radius rMax and accepted when u < density / bound.
    Raises UnsupportedOrbital, SamplingBudgetExceeded after maxAttempts candidates,
    or SamplingCancelled when shouldStop() turns true between batches.
    """
    n, l, m = orbital.n, orbital.l, orbital.m
    if not isSupported(n, l, m):
        raise UnsupportedOrbital(n, l, m)
    if rng is None:
        rng = defaultRng()
    if rMax is None:
        rMax = extent4n(n)
    if bound is None:
        bound = densityBound(orbital, rMax)
    if not rMax > 0 or not bound > 0:
        raise ValueError(f"Sampling needs a positive radius and bound, got rMax={rMax}, bound={bound}")
    if maxAttempts is None:
        maxAttempts = MAX_ATTEMPTS_PER_POINT * numPoints

    points = np.empty((numPoints, 3))
    accepted = 0
    attempts = 0
    warned = False

    while accepted < numPoints:
        if shouldStop is not None and shouldStop():
            raise SamplingCancelled(accepted, attempts)
        if attempts >= maxAttempts:
            raise SamplingBudgetExceeded(accepted, attempts, numPoints)

        size = min(batchSize, maxAttempts - attempts)
        r = rMax * np.cbrt(rng.random(size))
        th = np.arccos(1.0 - 2.0 * rng.random(size))
        ph = 2.0 * np.pi * rng.random(size)
        u = rng.random(size)
        attempts += size

        p = density(orbital, r, th, ph, t) / bound
        if not warned and p.max() > 1.0:
            warned = True
            logger.warning("Density exceeds rejection bound by x%.3f for %s; sample is biased.",
                           p.max(), getattr(orbital, 'name', (n, l, m)))

        keep = np.flatnonzero(u < p)[:numPoints - accepted]
        r, th, ph = r[keep], th[keep], ph[keep]
        sinTh = np.sin(th)
        chunk = np.column_stack((r * sinTh * np.cos(ph), r * sinTh * np.sin(ph), r * np.cos(th)))
        points[accepted:accepted + len(keep)] = chunk
        accepted += len(keep)

    logger.debug("Sampled %d points in %d candidates (t=%.2f)", numPoints, attempts, t)
    return points
