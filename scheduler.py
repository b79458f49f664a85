"""
Regeneration scheduling for the displayed point cloud.

The point set is refreshed at most once per REGEN_INTERVAL; switching
orbital forces a refresh on the next tick. GenerationState is an explicit
value so the logic can be exercised without a window.
"""
import logging
import queue
import threading
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from config import REGEN_INTERVAL
from handler import SamplingBudgetExceeded, SamplingCancelled, SamplingError, sampleOrbital
from orbitals import CATALOGUE

logger = logging.getLogger(__name__)

NEVER = float('-inf')


@dataclass(frozen=True, eq=False)
class GenerationState:
    index: int = 0
    lastGenTime: float = NEVER
    points: Optional[np.ndarray] = None


def isStale(state: GenerationState, now: float, interval: float = REGEN_INTERVAL) -> bool:
    return now - state.lastGenTime > interval


def tick(state, catalogue, now, sampler=sampleOrbital, interval=REGEN_INTERVAL) -> GenerationState:
    """Returns the same state while fresh, else a state with a newly sampled point set."""
    if not isStale(state, now, interval):
        return state
    orbital = catalogue[state.index]
    try:
        points = sampler(orbital, now)
    except SamplingBudgetExceeded as e:
        logger.warning("Keeping previous points for %s: %s", orbital.name, e)
        return replace(state, lastGenTime=now)
    return replace(state, points=points, lastGenTime=now)


def switchOrbital(state, index, catalogue) -> GenerationState:
    if not 0 <= index < len(catalogue):
        logger.debug("Ignoring orbital selection %s (catalogue has %d)", index, len(catalogue))
        return state
    logger.info("Switched to orbital: %s", catalogue[index].name)
    return replace(state, index=index, lastGenTime=NEVER)


class Scheduler:
    """Owns the GenerationState for a presentation loop; samples on the calling thread."""

    def __init__(self, catalogue=CATALOGUE, index=0, sampler=None, interval=REGEN_INTERVAL):
        if not catalogue:
            raise ValueError("Scheduler needs at least one orbital")
        self.catalogue = tuple(catalogue)
        self.sampler = sampler or sampleOrbital
        self.interval = interval
        self.state = GenerationState(index=index)

    @property
    def orbital(self):
        return self.catalogue[self.state.index]

    @property
    def points(self):
        return self.state.points

    def tick(self, now) -> bool:
        """Advances to `now`; True when a new point set was published."""
        before = self.state
        self.state = tick(before, self.catalogue, now, self.sampler, self.interval)
        return self.state.points is not before.points

    def switch(self, index) -> bool:
        before = self.state
        self.state = switchOrbital(before, index, self.catalogue)
        return self.state is not before

    def close(self):
        """Hook for BackgroundScheduler; nothing runs off-thread here."""


class SamplerWorker(threading.Thread):
    """Runs one sampler call off the presentation thread and posts (worker, points) to `results`."""

    def __init__(self, orbital, t, sampler, results):
        super().__init__(daemon=True)
        self.orbital = orbital
        self.t = t
        self.sampler = sampler
        self.results = results
        self.is_running = True
        self.error = None

    def run(self):
        try:
            points = self.sampler(self.orbital, self.t, shouldStop=self.stopped)
        except SamplingCancelled:
            logger.debug("Sampling of %s cancelled", self.orbital.name)
            return
        except Exception as e:
            logger.debug("Error in SamplerWorker: %s", e)
            self.error = e
            return
        if self.is_running:
            self.results.put((self, points))

    def stopped(self) -> bool:
        return not self.is_running

    def stop(self) -> None:
        self.is_running = False


class BackgroundScheduler(Scheduler):
    """
    Same interface as Scheduler, but sampling happens on a SamplerWorker.

    At most one worker is in flight. Results travel through a queue that only
    the worker writes and only tick() reads; results from a worker that is no
    longer current (orbital switched meanwhile) are dropped.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._results = queue.Queue()
        self._worker = None

    @property
    def busy(self) -> bool:
        return self._worker is not None

    def tick(self, now) -> bool:
        changed = self._collect()
        if self._worker is None and isStale(self.state, now, self.interval):
            self._worker = SamplerWorker(self.orbital, now, self.sampler, self._results)
            self._worker.start()
        return changed

    def _collect(self) -> bool:
        worker = self._worker
        # checked before draining so a result posted just before exit is not missed
        finished = worker is not None and not worker.is_alive()
        changed = False
        while True:
            try:
                source, points = self._results.get_nowait()
            except queue.Empty:
                break
            if source is not self._worker:
                continue
            self.state = replace(self.state, points=points, lastGenTime=source.t)
            self._worker = None
            changed = True

        if finished and self._worker is worker:
            self._worker = None
            if isinstance(worker.error, SamplingError):
                logger.warning("Keeping previous points for %s: %s", worker.orbital.name, worker.error)
                self.state = replace(self.state, lastGenTime=worker.t)
            elif worker.error is not None:
                raise worker.error
        return changed

    def switch(self, index) -> bool:
        switched = super().switch(index)
        if switched and self._worker is not None:
            self._worker.stop()
            self._worker = None
        return switched

    def wait(self, timeout=None) -> None:
        """Blocks until the in-flight worker, if any, has finished."""
        if self._worker is not None:
            self._worker.join(timeout)

    def close(self):
        if self._worker is not None:
            self._worker.stop()
            self._worker.join(timeout=1.0)
            self._worker = None
