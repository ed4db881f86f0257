"""Control panel window.

Renders the status lines, the button grid and the tail of the log with
pygame. The window runs in its own thread so the asyncio loop that talks
to the Host stays responsive; clicks are handed to that loop with
``asyncio.run_coroutine_threadsafe``.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Awaitable, Callable

from duocontrol.domain.models import Severity, brightness_percent
from duocontrol.panel.controller import LEVEL_NAMES, ControlCenter

logger = logging.getLogger(__name__)

BACKGROUND = (10, 10, 10)
ACCENT = (255, 102, 0)
TEXT = (220, 220, 220)
BUTTON = (34, 34, 34)
BUTTON_HOVER = (60, 40, 25)
SEVERITY_COLORS = {
    Severity.INFO: (150, 150, 150),
    Severity.SUCCESS: (80, 200, 120),
    Severity.ERROR: (235, 80, 80),
}
ICONS = {Severity.INFO: "•", Severity.SUCCESS: "✓", Severity.ERROR: "✗"}

BRIGHTNESS_PRESETS = (0, 59, 117, 176, 235)
RGB_MODES = ("static", "breathing", "rainbow")
COLOR_PRESETS = (("Orange", "#FF6600"), ("White", "#FFFFFF"), ("Blue", "#0066FF"))
PROFILE_NAME = "profile.json"

Action = Callable[[], Awaitable[object]]


@dataclass(frozen=True)
class Button:
    section: str
    label: str
    action: Action
    rect: tuple[int, int, int, int]

    def contains(self, x: int, y: int) -> bool:
        left, top, width, height = self.rect
        return left <= x < left + width and top <= y < top + height


def button_rows(controller: ControlCenter) -> list[tuple[str, list[tuple[str, Action]]]]:
    """Section title and (label, action) pairs for every button row."""

    def call(method, *args) -> Action:
        return lambda: method(*args)

    return [
        ("Keyboard", [
            (name, call(controller.set_keyboard_level, level))
            for level, name in enumerate(LEVEL_NAMES)
        ]),
        ("Keyboard RGB", [
            (mode.capitalize(), call(controller.set_rgb_mode, mode))
            for mode in RGB_MODES
        ] + [
            (name, call(controller.set_custom_color, color))
            for name, color in COLOR_PRESETS
        ]),
        ("ScreenPad", [
            (f"{brightness_percent(value)}%", call(controller.set_brightness, value))
            for value in BRIGHTNESS_PRESETS
        ] + [
            ("Toggle", call(controller.toggle_screenpad)),
            ("Info", call(controller.show_display_info)),
        ]),
        ("Touch", [
            ("Reset", call(controller.reset_touch)),
            ("Fix", call(controller.fix_touch)),
            ("Test", call(controller.test_touch)),
            ("Info", call(controller.show_touch_info)),
            ("Browser", call(controller.launch_browser)),
        ]),
        ("System", [
            ("Refresh", call(controller.refresh_status)),
            ("Diagnostics", call(controller.run_diagnostics)),
            ("Reload drivers", call(controller.reload_drivers)),
            ("Terminal", call(controller.open_terminal)),
            ("Clear log", call(_async_clear, controller)),
            ("Save profile", call(controller.save_profile, PROFILE_NAME)),
            ("Load profile", call(controller.load_profile, PROFILE_NAME)),
        ]),
    ]


async def _async_clear(controller: ControlCenter) -> None:
    controller.clear_logs()


def layout_buttons(
    controller: ControlCenter,
    origin: tuple[int, int] = (30, 150),
    size: tuple[int, int] = (130, 40),
    gap: int = 10,
    label_width: int = 120,
) -> list[Button]:
    """Place the buttons in rows, one row per section."""
    x0, y = origin
    width, height = size
    buttons = []
    for section, entries in button_rows(controller):
        x = x0 + label_width
        for label, action in entries:
            buttons.append(Button(section, label, action, (x, y, width, height)))
            x += width + gap
        y += height + gap
    return buttons


class ControlPanel:
    """The control center window.

    Reads the controller's immutable snapshot and a copy of its log on
    every frame; never mutates controller state from the render thread.
    """

    def __init__(
        self,
        controller: ControlCenter,
        loop: asyncio.AbstractEventLoop,
        width: int = 1200,
        height: int = 900,
        font_size: int = 18,
        window_title: str = "ASUS Zephyrus Duo Control Center",
    ) -> None:
        self._controller = controller
        self._loop = loop
        self._width = width
        self._height = height
        self._font_size = font_size
        self._window_title = window_title
        self._buttons = layout_buttons(controller)
        self._running = False
        self._thread: threading.Thread | None = None

    @property
    def is_active(self) -> bool:
        return self._running

    @property
    def buttons(self) -> list[Button]:
        return self._buttons

    def start(self) -> None:
        """Open the window in a background thread."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._render_loop, daemon=True, name="control-panel"
        )
        self._thread.start()
        logger.info("Control panel started")

    def stop(self) -> None:
        """Close the window."""
        if not self._running:
            return
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=3.0)
            self._thread = None
        logger.info("Control panel stopped")

    def click(self, x: int, y: int) -> asyncio.Future | None:
        """Submit the action of the button under (x, y), if any."""
        for button in self._buttons:
            if button.contains(x, y):
                logger.debug("Clicked %s", button.label)
                return asyncio.run_coroutine_threadsafe(button.action(), self._loop)
        return None

    def _render_loop(self) -> None:
        """Main pygame loop running in its own thread."""
        import pygame

        pygame.init()
        screen = pygame.display.set_mode((self._width, self._height))
        pygame.display.set_caption(self._window_title)
        font = self._find_font(pygame, self._font_size)
        title_font = self._find_font(pygame, self._font_size + 8)
        line_height = int(font.get_linesize() * 1.1)
        clock = pygame.time.Clock()

        while self._running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self._running = False
                    break
                if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    self._running = False
                    break
                if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    self.click(*event.pos)

            screen.fill(BACKGROUND)
            self._draw_status(pygame, screen, title_font, font, line_height)
            self._draw_buttons(pygame, screen, font)
            self._draw_log(screen, font, line_height)
            pygame.display.flip()
            clock.tick(30)

        pygame.quit()

    def _draw_status(self, pygame, screen, title_font, font, line_height: int) -> None:
        controller = self._controller
        snapshot = controller.snapshot
        screen.blit(title_font.render(self._window_title, True, ACCENT), (30, 20))
        lines = [
            f"Status: {controller.keyboard_status}",
            f"Status: {controller.screenpad_status} ({snapshot.screenpad_brightness}/235)",
            f"Status: {controller.touch_status}",
            f"Updated: {snapshot.taken_at:%H:%M:%S}",
        ]
        for i, line in enumerate(lines):
            screen.blit(font.render(line, True, TEXT), (30, 60 + i * line_height))
        pygame.draw.line(screen, ACCENT, (30, 140), (self._width - 30, 140))

    def _draw_buttons(self, pygame, screen, font) -> None:
        mouse = pygame.mouse.get_pos()
        section = None
        for button in self._buttons:
            if button.section != section:
                section = button.section
                screen.blit(font.render(section, True, ACCENT), (30, button.rect[1] + 10))
            rect = pygame.Rect(button.rect)
            color = BUTTON_HOVER if button.contains(*mouse) else BUTTON
            pygame.draw.rect(screen, color, rect, border_radius=4)
            pygame.draw.rect(screen, ACCENT, rect, width=1, border_radius=4)
            label = font.render(button.label, True, TEXT)
            screen.blit(label, label.get_rect(center=rect.center))

    def _draw_log(self, screen, font, line_height: int) -> None:
        top = max(button.rect[1] + button.rect[3] for button in self._buttons) + 30
        visible = max((self._height - top - 20) // line_height, 0)
        entries = self._controller.log.entries()[-visible:] if visible else []
        for i, entry in enumerate(entries):
            text = f"[{entry.timestamp:%H:%M:%S}] {ICONS[entry.severity]} {entry.message}"
            surface = font.render(text, True, SEVERITY_COLORS[entry.severity])
            screen.blit(surface, (30, top + i * line_height))

    @staticmethod
    def _find_font(pygame, size: int):
        """Find a readable font at the given size."""
        for name in ["dejavusans", "liberationsans", "notosans", "arial"]:
            path = pygame.font.match_font(name)
            if path:
                return pygame.font.Font(path, size)
        return pygame.font.SysFont(None, size)
