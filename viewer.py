import argparse
import logging
import math
import time
from functools import partial

import numpy as np
import pyvista as pv

from config import (CAMERA_DISTANCE, FRAME_INTERVAL, LOG_LEVEL, NUM_POINTS, POINT_OPACITY,
                    POINT_SIZE, ROTATION_SPEED, WINDOW_SIZE)
from handler import sampleOrbital
from logConfig import setupLogging
from orbitals import CATALOGUE
from scheduler import BackgroundScheduler, Scheduler

logger = logging.getLogger(__name__)

MAX_FRAMES = 10 ** 9  # timer steps; effectively until the window closes


def camera_position(angle, distance=CAMERA_DISTANCE):
    """Eye circling the origin in the xz plane, y up."""
    eye = (distance * math.sin(angle), 0.0, distance * math.cos(angle))
    return [eye, (0.0, 0.0, 0.0), (0.0, 1.0, 0.0)]


def scaled_points(points, scale):
    return np.asarray(points, dtype=float) * scale


def key_bindings(catalogue):
    # number keys 1..9 select catalogue entries
    return {str(i + 1): i for i in range(min(len(catalogue), 9))}


def hud_text(orbital, catalogue, rotating=True):
    keys = "  ".join(f"{k}={catalogue[i].name}" for k, i in key_bindings(catalogue).items())
    lines = [f"Orbital: {orbital.name}  (n={orbital.n}, l={orbital.l}, m={orbital.m})"]
    if len(catalogue) > 1:
        lines.append(keys)
    lines.append("SPACE = " + ("Pause" if rotating else "Resume") + " Orbit")
    return "\n".join(lines)


def run_viewer(catalogue=CATALOGUE, background=False, numPoints=NUM_POINTS, title="Hydrogen Orbital Viewer"):
    sampler = partial(sampleOrbital, numPoints=numPoints)
    scheduler = (BackgroundScheduler if background else Scheduler)(catalogue, sampler=sampler)

    pl = pv.Plotter(window_size=WINDOW_SIZE)
    pl.set_background('black')

    render_state = {
        'angle': 0.0,
        'rotate': True,
        'start': time.perf_counter(),
    }

    def update_cloud():
        if scheduler.points is None:
            return
        orbital = scheduler.orbital
        cloud = pv.PolyData(scaled_points(scheduler.points, orbital.scale))
        pl.add_mesh(
            cloud,
            color=orbital.color,
            opacity=POINT_OPACITY,
            point_size=POINT_SIZE,
            style='points',
            name='cloud',
            reset_camera=False,
        )

    def update_hud():
        pl.add_text(hud_text(scheduler.orbital, scheduler.catalogue, render_state['rotate']),
                    position='upper_left', font_size=11, color='white', name='hud')

    def select(index):
        if scheduler.switch(index):
            update_hud()

    def toggle_rotation():
        render_state['rotate'] = not render_state['rotate']
        update_hud()

    def tick(_=None):
        now = time.perf_counter() - render_state['start']
        if scheduler.tick(now):
            update_cloud()
        if render_state['rotate']:
            render_state['angle'] += ROTATION_SPEED
            pl.camera_position = camera_position(render_state['angle'])

    for key, index in key_bindings(scheduler.catalogue).items():
        pl.add_key_event(key, partial(select, index))
    pl.add_key_event('space', toggle_rotation)

    scheduler.tick(0.0)
    update_cloud()
    update_hud()
    pl.camera_position = camera_position(render_state['angle'])

    if hasattr(pl, "add_timer_event"):
        pl.add_timer_event(max_steps=MAX_FRAMES, duration=FRAME_INTERVAL, callback=tick)
    elif hasattr(pl, "add_on_render_callback"):
        pl.add_on_render_callback(tick)
    else:
        logger.error("No animation callback possible with this PyVista version.")

    try:
        pl.show(title=title)
    finally:
        scheduler.close()


def build_parser():
    parser = argparse.ArgumentParser(description="Point-cloud viewer for hydrogen-like orbitals.")
    parser.add_argument("--points", type=int, default=NUM_POINTS, help="Points per cloud.")
    parser.add_argument("--background", action="store_true",
                        help="Sample on a worker thread instead of the render loop.")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--log-file", default=None, help="Also write the log to this file.")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setupLogging(args.log_level.upper(), args.log_file)
    logger.info("Orbitals: %s", ", ".join(o.name for o in CATALOGUE))
    run_viewer(CATALOGUE, background=args.background, numPoints=args.points)


if __name__ == "__main__":
    main()
