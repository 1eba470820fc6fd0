"""Public API for the progressive Mandelbrot explorer."""

from .renderer import (
    ESCAPE_RADIUS_SQUARED,
    INITIAL_BLOCK_SIZE,
    MAX_ITERATIONS_LIMIT,
    Phase,
    RenderProgress,
    Step,
    ViewportParameters,
    advance,
    advance_bound,
    brightness,
    drain,
    escape_time,
    new_buffer,
    pixel_to_complex,
)
from .navigation import InputIntents, apply_input, apply_zoom, clamp_iterations, pan, resize, scale_iterations
from .scheduler import FRAME_BUDGET, FrameContext, FrameReport, FrameScheduler

__all__ = [
    "ESCAPE_RADIUS_SQUARED",
    "FRAME_BUDGET",
    "FrameContext",
    "FrameReport",
    "FrameScheduler",
    "INITIAL_BLOCK_SIZE",
    "InputIntents",
    "MAX_ITERATIONS_LIMIT",
    "Phase",
    "RenderProgress",
    "Step",
    "ViewportParameters",
    "advance",
    "advance_bound",
    "apply_input",
    "apply_zoom",
    "brightness",
    "clamp_iterations",
    "drain",
    "escape_time",
    "new_buffer",
    "pan",
    "pixel_to_complex",
    "resize",
    "scale_iterations",
]
