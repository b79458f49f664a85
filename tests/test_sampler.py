import logging
from types import SimpleNamespace

import numpy as np
import pytest
from scipy import stats

from handler import (SamplingBudgetExceeded, SamplingCancelled, UnsupportedOrbital, defaultRng, densityBound,
                     extent4n, sampleOrbital)
from orbitals import CATALOGUE, DEFAULT_ORBITAL, makeOrbital


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.mark.parametrize("orbital", CATALOGUE + (makeOrbital(2, 0, 0),), ids=lambda o: o.name)
@pytest.mark.parametrize("t", [0.0, 7.5])
def test_exact_point_count_inside_ball(orbital, t, rng):
    points = sampleOrbital(orbital, t, numPoints=500, rng=rng)
    assert points.shape == (500, 3)
    assert np.all(np.isfinite(points))
    assert np.all(np.linalg.norm(points, axis=1) <= extent4n(orbital.n) + 1e-9)


def test_small_batches_still_fill_exactly(rng):
    points = sampleOrbital(DEFAULT_ORBITAL, 0.0, numPoints=37, rng=rng, batchSize=100)
    assert points.shape == (37, 3)


def test_zero_points(rng):
    assert sampleOrbital(DEFAULT_ORBITAL, 0.0, numPoints=0, rng=rng).shape == (0, 3)


def test_fresh_set_every_call(rng):
    a = sampleOrbital(DEFAULT_ORBITAL, 0.0, numPoints=200, rng=rng)
    b = sampleOrbital(DEFAULT_ORBITAL, 0.0, numPoints=200, rng=rng)
    assert a is not b
    assert not np.array_equal(a, b)


def test_default_rng_is_shared():
    assert defaultRng() is defaultRng()
    assert sampleOrbital(DEFAULT_ORBITAL, 0.0, numPoints=10).shape == (10, 3)


def test_1s_scenario_concentrated_near_bohr_radius(rng):
    points = sampleOrbital(DEFAULT_ORBITAL, 0.0, numPoints=1000, rng=rng)
    r = np.linalg.norm(points, axis=1)
    assert np.all(r <= 5.0 + 1e-9)
    assert np.mean(r < 3.0) > 0.85
    # radial probability r^2 |R|^2 peaks at a0
    counts, edges = np.histogram(r, bins=10, range=(0.0, 5.0))
    mode = 0.5 * (edges[np.argmax(counts)] + edges[np.argmax(counts) + 1])
    assert 0.5 <= mode <= 1.5


def test_1s_radial_distribution_ks(rng):
    rMax = extent4n(1)
    points = sampleOrbital(DEFAULT_ORBITAL, 3.0, numPoints=3000, rng=rng)
    r = np.linalg.norm(points, axis=1)
    # r^2 exp(-2r) is a gamma(3, scale=1/2) density, truncated at rMax
    radial = stats.gamma(a=3, scale=0.5)
    result = stats.kstest(r, lambda x: radial.cdf(x) / radial.cdf(rMax))
    assert result.pvalue > 0.001


def test_2pz_angular_shape(rng):
    pz = CATALOGUE[3]
    points = sampleOrbital(pz, 0.0, numPoints=4000, rng=rng)
    cos2 = points[:, 2] ** 2 / np.sum(points ** 2, axis=1)
    # E[cos^2] under a cos^2 weight on the sphere is 3/5, against 1/3 for a uniform one
    assert cos2.mean() == pytest.approx(0.6, abs=0.03)


def test_2px_lobes_along_x(rng):
    px = CATALOGUE[1]
    points = sampleOrbital(px, 0.0, numPoints=4000, rng=rng)
    sq = points ** 2
    assert sq[:, 0].mean() > 2 * sq[:, 1].mean()
    assert sq[:, 0].mean() > 2 * sq[:, 2].mean()


def test_unsupported_orbital_raises_before_sampling(rng):
    with pytest.raises(UnsupportedOrbital):
        sampleOrbital(SimpleNamespace(n=3, l=0, m=0, name="3s"), 0.0, numPoints=10, rng=rng)


def test_budget_exhaustion_is_reported(rng):
    with pytest.raises(SamplingBudgetExceeded) as info:
        sampleOrbital(DEFAULT_ORBITAL, 0.0, numPoints=1000, rng=rng, maxAttempts=100)
    assert info.value.attempts == 100
    assert info.value.accepted < 1000
    assert info.value.wanted == 1000


def test_stop_request_cancels(rng):
    with pytest.raises(SamplingCancelled):
        sampleOrbital(DEFAULT_ORBITAL, 0.0, numPoints=100, rng=rng, shouldStop=lambda: True)


def test_bound_too_small_is_logged(rng, caplog):
    with caplog.at_level(logging.WARNING, logger="handler"):
        points = sampleOrbital(DEFAULT_ORBITAL, 0.0, numPoints=50, rng=rng, bound=1e-6)
    assert points.shape == (50, 3)
    assert "exceeds rejection bound" in caplog.text
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1


@pytest.mark.parametrize("kw", [{"bound": 0.0}, {"rMax": 0}, {"bound": -1.0}])
def test_explicit_non_positive_domain_rejected(kw, rng):
    with pytest.raises(ValueError):
        sampleOrbital(DEFAULT_ORBITAL, 0.0, numPoints=10, rng=rng, **kw)


def test_bound_rejects_zero_radius():
    with pytest.raises(ValueError):
        densityBound(DEFAULT_ORBITAL, rMax=0.0)
