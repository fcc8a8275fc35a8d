from .tracker import (
    WINDOW_MS,
    EngagementWindowTracker,
    WindowTouch,
    now_ms,
    window_ends_at_ms,
)

__all__ = [
    "WINDOW_MS",
    "EngagementWindowTracker",
    "WindowTouch",
    "now_ms",
    "window_ends_at_ms",
]
