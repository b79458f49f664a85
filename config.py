"""
Global constants for the orbital cloud viewer.

Everything tunable lives here so the physics, the sampler and the viewer
read the same numbers.
"""
import os

# Physics (atomic units, a0 = 1)
BOHR_RADIUS = 1.0
VIBRATION_AMPLITUDE = 0.1
VIBRATION_FREQ = 0.1

# Sampling
NUM_POINTS = 10000
REGEN_INTERVAL = 0.5           # seconds between point set refreshes
MAX_ATTEMPTS_PER_POINT = 1000  # candidate budget per requested point
BATCH_SIZE = 65536             # candidates drawn per vectorized pass
BOUND_MARGIN = 1.02            # head room on the numerical density maximum
BOUND_GRID = (64, 33, 64)      # r, theta, phi samples for the bound search

# Viewer
WINDOW_SIZE = (800, 600)
POINT_SIZE = 2.0
POINT_OPACITY = 0.5
ROTATION_SPEED = 0.01          # radians per frame
FRAME_INTERVAL = 16            # ms, ~60 fps
CAMERA_DISTANCE = 10.0

LOG_LEVEL = os.environ.get("ATOMCLOUD_LOG_LEVEL", "INFO").upper()
