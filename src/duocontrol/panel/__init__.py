"""Display Layer for duocontrol.

Public API:
    ControlCenter -- Gesture handling and status/log state
    LogBuffer -- Bounded in-memory log
    ControlPanel -- pygame window (imported lazily)
"""

from duocontrol.panel.controller import ControlCenter
from duocontrol.panel.log import LogBuffer

__all__ = ["ControlCenter", "LogBuffer", "ControlPanel"]


def __getattr__(name: str) -> type:
    """Lazy import for the window, which needs a display."""
    if name == "ControlPanel":
        from duocontrol.panel.window import ControlPanel
        return ControlPanel
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
