"""Single fixed orbital, regenerated every REGEN_INTERVAL. Edit n, l, m below."""
import logging

from config import LOG_LEVEL
from logConfig import setupLogging
from orbitals import makeOrbital
from viewer import run_viewer

logger = logging.getLogger(__name__)

n, l, m = 1, 0, 0
scale = 2.0
color = (1.0, 0.0, 0.0)


def main():
    setupLogging(LOG_LEVEL)
    orbital = makeOrbital(n, l, m, scale=scale, color=color)
    logger.info("Showing %s", orbital.name)
    run_viewer((orbital,), title=f"Probability Density of Hydrogen {orbital.name} - AtomCloud")


if __name__ == "__main__":
    main()
