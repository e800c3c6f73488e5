"""Pygame UI shell for neurodrill.

Every drill is driven from the frame loop: input events are delivered to the
engine first, then ``update()`` polls its timers, then the snapshot is drawn.
Deterministic timing/scoring/RNG/state lives in the engine modules.
"""

from __future__ import annotations

import logging
import os
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .clock import RealClock
from .core import DrillSnapshot, InputMode, Phase
from .dot_target import DOT_RGB
from .engine import TrialSequencer
from .mental_rotation import RotationPayload
from .open_reflection import OpenReflectionDrill
from .registry import DrillType
from .session import DrillSession, InMemoryResultSink, ResultSink
from .spawner import SpawningDrill, Stimulus
from .visual_search import VisualSearchPayload

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "NEURODRILL_LOG_LEVEL"
WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

BG = (3, 9, 78)
PANEL_BG = (8, 18, 104)
BORDER = (226, 236, 255)
TEXT_MAIN = (238, 245, 255)
TEXT_MUTED = (186, 200, 224)
ACTIVE_BG = (244, 248, 255)
ACTIVE_TEXT = (14, 26, 74)
GOOD = (34, 197, 94)
BAD = (239, 68, 68)

# Exercise IDs that route to each drill, so the menu runs through the router.
MENU_EXERCISES: tuple[tuple[str, str], ...] = (
    ("Dot Target", "N001"),
    ("Odd One Out", "FA_FAST_006"),
    ("Shape Match", "FA_FAST_011"),
    ("Visual Search", "FA_FAST_016"),
    ("Go / No-Go", "FA_FAST_021"),
    ("Stroop", "FA_FAST_026"),
    ("Location Match", "FA_FAST_031"),
    ("Category Switch", "FA_FAST_036"),
    ("Rule Switch", "FA_S2_001"),
    ("2-Back", "FA_S2_021"),
    ("Digit Span", "MC_001"),
    ("Memory Matrix", "MC_011"),
    ("Pattern Sequence", "CR_FAST_021"),
    ("Mental Rotation", "ROTATION_01"),
    ("Sequence Logic", "CR_FAST_001"),
    ("Analogy Match", "CR_FAST_011"),
    ("Word Association", "CH_016"),
    ("Visual Vibe", "CH_FAST_001"),
    ("Rapid Association", "CH_FAST_011"),
    ("Color Harmony", "CH_FAST_021"),
    ("Gestalt Completion", "CH_FAST_031"),
    ("Open Reflection", "CR_SLOW_001"),
)


def configure_logging() -> None:
    """Root logging from ``NEURODRILL_LOG_LEVEL`` (default WARNING)."""

    name = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper() or "WARNING"
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def update(self) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # The root screen handles its own quit.
        if len(self._screens) > 1:
            self._screens.pop()

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if self._screens:
            self._screens[-1].handle_event(event)

    def update(self) -> None:
        if self._screens:
            self._screens[-1].update()

    def render(self) -> None:
        if self._screens:
            self._screens[-1].render(self._surface)


class MenuScreen:
    def __init__(self, app: App, title: str, items: list[MenuItem], *, is_root: bool = False) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._is_root = is_root
        self._title_font = pygame.font.Font(None, 42)
        self._item_font = pygame.font.Font(None, 28)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_UP, pygame.K_w):
            self._move(-1)
        elif event.key in (pygame.K_DOWN, pygame.K_s):
            self._move(1)
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            if self._items:
                self._items[self._selected].action()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            if self._is_root:
                self._app.quit()
            else:
                self._app.pop()

    def update(self) -> None:
        return None

    def _move(self, delta: int) -> None:
        if self._items:
            self._selected = (self._selected + delta) % len(self._items)

    def render(self, surface: pygame.Surface) -> None:
        w, h = surface.get_size()
        surface.fill(BG)
        title = self._title_font.render(self._title, True, TEXT_MAIN)
        surface.blit(title, title.get_rect(center=(w // 2, 36)))

        row_h = 30
        visible = max(1, (h - 90) // row_h)
        first = min(max(0, self._selected - visible // 2), max(0, len(self._items) - visible))
        y = 70
        for idx in range(first, min(len(self._items), first + visible)):
            row = pygame.Rect(40, y, w - 80, row_h - 4)
            selected = idx == self._selected
            pygame.draw.rect(surface, ACTIVE_BG if selected else PANEL_BG, row)
            text = self._item_font.render(self._items[idx].label, True, ACTIVE_TEXT if selected else TEXT_MAIN)
            surface.blit(text, (row.x + 10, row.y + (row.h - text.get_height()) // 2))
            y += row_h


class DrillScreen:
    """Runs one drill session. Esc leaves and tears the drill down."""

    def __init__(self, app: App, *, session: DrillSession) -> None:
        self._app = app
        self._session = session
        self._typed = ""
        self._cells: list[int] = []
        self._dot_hitboxes: dict[int, pygame.Rect] = {}
        self._option_hitboxes: dict[int, pygame.Rect] = {}

        self._big_font = pygame.font.Font(None, 64)
        self._mid_font = pygame.font.Font(None, 36)
        self._small_font = pygame.font.Font(None, 24)

        self._session.start()

    def handle_event(self, event: pygame.event.Event) -> None:
        engine = self._session.engine
        if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            self._session.close()
            self._app.pop()
            return

        if isinstance(engine, SpawningDrill):
            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                for sid, rect in self._dot_hitboxes.items():
                    if rect.collidepoint(event.pos):
                        engine.tap(sid)
                        break
            return

        if isinstance(engine, OpenReflectionDrill):
            if event.type == pygame.TEXTINPUT:
                engine.set_text(engine.text + event.text)
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_BACKSPACE:
                    engine.set_text(engine.text[:-1])
                elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER) and event.mod & pygame.KMOD_CTRL:
                    engine.submit()
                elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                    engine.set_text(engine.text + "\n")
            return

        if isinstance(engine, TrialSequencer):
            self._handle_trial_event(engine, event)

    def _handle_trial_event(self, engine: TrialSequencer, event: pygame.event.Event) -> None:
        snap = engine.snapshot()
        if snap.phase is not Phase.AWAITING_RESPONSE:
            return
        mode = snap.input_mode

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and mode is InputMode.CHOICE:
            for idx, rect in self._option_hitboxes.items():
                if rect.collidepoint(event.pos):
                    engine.respond(idx)
                    return

        if event.type == pygame.TEXTINPUT and mode is InputMode.TEXT:
            self._typed += "".join(ch for ch in event.text if ch.isdigit())
            return

        if event.type != pygame.KEYDOWN:
            return
        key = event.key
        enter = key in (pygame.K_RETURN, pygame.K_KP_ENTER)

        if mode is InputMode.CHOICE:
            idx = _digit_key(key)
            if idx is not None and 1 <= idx <= len(snap.options):
                engine.respond(idx - 1)
        elif mode is InputMode.YES_NO:
            if key in (pygame.K_y, pygame.K_LEFT):
                engine.respond(True)
            elif key in (pygame.K_n, pygame.K_RIGHT):
                engine.respond(False)
        elif mode is InputMode.TAP:
            if key == pygame.K_SPACE:
                engine.respond(True)
        elif mode is InputMode.TEXT:
            if key == pygame.K_BACKSPACE:
                self._typed = self._typed[:-1]
            elif enter and engine.respond(self._typed):
                self._typed = ""
        elif mode is InputMode.CELLS:
            idx = _digit_key(key)
            if idx is not None and idx >= 1:
                self._cells.append(idx - 1)
            elif key == pygame.K_BACKSPACE and self._cells:
                self._cells.pop()
            elif enter and engine.respond(tuple(self._cells)):
                self._cells = []

    def update(self) -> None:
        self._session.update()

    def render(self, surface: pygame.Surface) -> None:
        engine = self._session.engine
        snap = engine.snapshot()
        surface.fill(BG)
        w, h = surface.get_size()

        header = self._small_font.render(
            f"{snap.title}   score {snap.score}   correct {snap.correct}   {snap.time_left_s}s",
            True,
            TEXT_MUTED,
        )
        surface.blit(header, (20, 14))

        if isinstance(engine, SpawningDrill) and snap.phase is Phase.AWAITING_RESPONSE:
            self._render_dots(surface, snap)
            return

        self._render_lines(surface, snap.prompt, top=h // 4, font=self._mid_font)

        if snap.phase is Phase.AWAITING_RESPONSE or snap.phase is Phase.FEEDBACK:
            if snap.input_mode is InputMode.CHOICE:
                if isinstance(snap.payload, RotationPayload):
                    self._render_rotation(surface, snap.payload)
                if isinstance(snap.payload, VisualSearchPayload):
                    self._render_search_grid(surface, snap.payload)
                else:
                    self._render_options(surface, snap)
            elif snap.input_mode is InputMode.YES_NO:
                self._render_hint(surface, f"Y = {snap.options[0]}   N = {snap.options[1]}")
            elif snap.input_mode is InputMode.TAP:
                self._render_hint(surface, "SPACE to tap, or wait")
            elif snap.input_mode is InputMode.TEXT and isinstance(engine, OpenReflectionDrill):
                self._render_lines(surface, engine.text[-400:] or "_", top=h // 2, font=self._small_font)
                self._render_hint(surface, "Ctrl+Enter to submit")
            elif snap.input_mode is InputMode.TEXT:
                self._render_hint(surface, f"> {self._typed}_")
            elif snap.input_mode is InputMode.CELLS:
                self._render_hint(surface, "cells 1-9: " + " ".join(str(c + 1) for c in self._cells))

        if snap.feedback is not None:
            mark = self._big_font.render("Correct" if snap.feedback else "Wrong", True, GOOD if snap.feedback else BAD)
            surface.blit(mark, mark.get_rect(center=(w // 2, h - 60)))
        if snap.phase is Phase.COMPLETE:
            self._render_hint(surface, "Esc to return")

    def _render_lines(self, surface: pygame.Surface, text: str, *, top: int, font: pygame.font.Font) -> None:
        w = surface.get_width()
        y = top
        for line in text.splitlines() or [""]:
            img = font.render(line, True, TEXT_MAIN)
            surface.blit(img, img.get_rect(midtop=(w // 2, y)))
            y += img.get_height() + 6

    def _render_hint(self, surface: pygame.Surface, text: str) -> None:
        w, h = surface.get_size()
        img = self._mid_font.render(text, True, TEXT_MUTED)
        surface.blit(img, img.get_rect(center=(w // 2, h - 120)))

    def _render_options(self, surface: pygame.Surface, snap: DrillSnapshot) -> None:
        w, h = surface.get_size()
        self._option_hitboxes = {}
        count = max(1, len(snap.options))
        col_w = min(200, (w - 40) // count)
        x = (w - col_w * count) // 2
        for idx, label in enumerate(snap.options):
            rect = pygame.Rect(x + idx * col_w + 4, h // 2 + 40, col_w - 8, 44)
            pygame.draw.rect(surface, PANEL_BG, rect)
            pygame.draw.rect(surface, BORDER, rect, 1)
            img = self._small_font.render(f"{idx + 1}. {label}", True, TEXT_MAIN)
            surface.blit(img, img.get_rect(center=rect.center))
            self._option_hitboxes[idx] = rect

    def _render_rotation(self, surface: pygame.Surface, payload: RotationPayload) -> None:
        w, h = surface.get_size()
        reference = self._big_font.render(payload.glyph, True, TEXT_MAIN)
        turned = reference
        if payload.mirrored:
            turned = pygame.transform.flip(turned, True, False)
        turned = pygame.transform.rotate(turned, payload.rotation_deg)
        surface.blit(reference, reference.get_rect(center=(w // 2 - 90, h // 2 - 10)))
        surface.blit(turned, turned.get_rect(center=(w // 2 + 90, h // 2 - 10)))

    def _render_search_grid(self, surface: pygame.Surface, payload: VisualSearchPayload) -> None:
        w, h = surface.get_size()
        self._option_hitboxes = {}
        cell = min(56, (h // 2 - 20) // payload.grid_size)
        left = (w - cell * payload.grid_size) // 2
        top = h // 4 + 48
        for idx, c in enumerate(payload.cells):
            row, col = divmod(idx, payload.grid_size)
            rect = pygame.Rect(left + col * cell + 2, top + row * cell + 2, cell - 4, cell - 4)
            pygame.draw.rect(surface, PANEL_BG, rect)
            img = pygame.transform.rotate(self._mid_font.render(c.glyph, True, TEXT_MAIN), c.rotation_deg)
            surface.blit(img, img.get_rect(center=rect.center))
            self._option_hitboxes[idx] = rect

    def _render_dots(self, surface: pygame.Surface, snap: DrillSnapshot) -> None:
        w, h = surface.get_size()
        area = pygame.Rect(20, 44, w - 40, h - 64)
        pygame.draw.rect(surface, PANEL_BG, area)
        self._dot_hitboxes = {}
        stimuli: tuple[Stimulus, ...] = snap.payload if isinstance(snap.payload, tuple) else ()
        radius = 26
        for stim in stimuli:
            cx = area.x + int(stim.x * area.w)
            cy = area.y + int(stim.y * area.h)
            pygame.draw.circle(surface, DOT_RGB.get(stim.kind, TEXT_MAIN), (cx, cy), radius)
            self._dot_hitboxes[stim.stimulus_id] = pygame.Rect(cx - radius, cy - radius, radius * 2, radius * 2)


def _digit_key(key: int) -> int | None:
    if pygame.K_0 <= key <= pygame.K_9:
        return key - pygame.K_0
    if pygame.K_KP1 <= key <= pygame.K_KP9:
        return key - pygame.K_KP1 + 1
    return None


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    sink: ResultSink | None = None,
) -> int:
    configure_logging()
    pygame.init()

    pygame.display.set_caption("neurodrill")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)
    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)
    real_clock = RealClock()
    results = sink if sink is not None else InMemoryResultSink()

    def opener(exercise_id: str) -> Callable[[], None]:
        def open_drill() -> None:
            session = DrillSession(exercise_id, clock=real_clock, seed=_new_seed(), sink=results)
            app.push(DrillScreen(app, session=session))

        return open_drill

    items = [MenuItem(label, opener(eid)) for label, eid in MENU_EXERCISES]
    items.append(MenuItem("Quit", app.quit))
    app.push(MenuScreen(app, f"Drills ({len(DrillType)})", items, is_root=True))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.update()
            app.render()
            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0
