"""Smoke tests for the pygame UI.

These tests verify that the application's main loop can initialise and
execute a handful of frames without crashing when the SDL dummy video
driver is used. They do not check rendering, only that the menu, the drill
screen and pygame fit together in a headless environment.
"""

from __future__ import annotations

import os

# Use the dummy drivers before importing pygame or the application
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")


def test_app_runs_headless() -> None:
    from neurodrill.app import run

    exit_code = run(max_frames=3)
    assert exit_code == 0


def test_menu_lists_every_drill_type() -> None:
    from neurodrill.app import MENU_EXERCISES
    from neurodrill.registry import DrillType, drill_type_for_exercise

    routed = {drill_type_for_exercise(eid) for _, eid in MENU_EXERCISES}
    assert routed == set(DrillType)
