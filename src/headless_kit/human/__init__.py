"""human: human-like behavioral patterns for browser automation."""
from .behavior import (  # noqa: F401
    human_sleep,
    bezier_move,
    bezier_path,
    inertial_wheel,
    human_scroll,
    human_click,
    human_type,
    human_dismiss_modal,
    scroll_count,
)
