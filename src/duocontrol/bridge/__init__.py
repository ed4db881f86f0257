"""Bridge module for duocontrol.

The only conduit between the Display Layer and the privileged Host.

Public API:
    Bridge -- Abstract capability interface (six operations)
    BridgeError -- Raised when the Host cannot be reached
    HttpBridge -- HTTP backend talking to the Host server
"""

from duocontrol.bridge.base import Bridge, BridgeError

__all__ = ["Bridge", "BridgeError", "HttpBridge"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "HttpBridge":
        from duocontrol.bridge.http_backend import HttpBridge
        return HttpBridge
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
