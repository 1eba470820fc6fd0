"""Utilities for turning user intents into the next Mandelbrot view."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .renderer import MAX_ITERATIONS_LIMIT, ViewportParameters

PAN_FRACTION = 0.02
ZOOM_STEP = 0.95


@dataclass(frozen=True)
class InputIntents:
    """Everything the input collector gathered during one frame.

    Directional and zoom flags describe keys held down this frame; the
    iteration counters count discrete key presses.
    """

    pan_up: bool = False
    pan_down: bool = False
    pan_left: bool = False
    pan_right: bool = False
    zoom_in: bool = False
    zoom_out: bool = False
    iter_up: int = 0
    iter_down: int = 0
    export_requested: bool = False
    resize: Optional[tuple[int, int]] = None


def clamp_iterations(max_iter: int) -> int:
    return max(1, min(int(max_iter), MAX_ITERATIONS_LIMIT))


def scale_iterations(params: ViewportParameters, doublings: int, halvings: int) -> ViewportParameters:
    max_iter = params.max_iter
    for _ in range(halvings):
        max_iter = clamp_iterations(max_iter // 2)
    for _ in range(doublings):
        max_iter = clamp_iterations(max_iter * 2)
    return replace(params, max_iter=max_iter)


def pan(params: ViewportParameters, dx: int, dy: int) -> ViewportParameters:
    """Shift the center by ``dx``/``dy`` steps of ``PAN_FRACTION`` of the real domain."""

    step = PAN_FRACTION * params.real_domain
    center_re = params.center_re
    center_im = params.center_im
    if dx:
        center_re += dx * step
    if dy:
        center_im += dy * step
    return replace(params, center_re=center_re, center_im=center_im)


def apply_zoom(params: ViewportParameters, zoom_in: bool, zoom_out: bool) -> ViewportParameters:
    real_domain = params.real_domain
    if zoom_in:
        real_domain *= ZOOM_STEP
    if zoom_out:
        real_domain /= ZOOM_STEP
    return replace(params, real_domain=real_domain)


def resize(params: ViewportParameters, size: Optional[tuple[int, int]]) -> ViewportParameters:
    if size is None:
        return params
    width, height = size
    if width < 1 or height < 1:
        return params
    return replace(params, width=int(width), height=int(height))


def apply_input(params: ViewportParameters, intents: InputIntents) -> ViewportParameters:
    """Build the candidate view for this frame from the current one and ``intents``."""

    params = resize(params, intents.resize)
    params = scale_iterations(params, intents.iter_up, intents.iter_down)
    # Both pan steps are sized from the real domain before this frame's zoom.
    params = pan(
        params,
        int(intents.pan_right) - int(intents.pan_left),
        int(intents.pan_down) - int(intents.pan_up),
    )
    return apply_zoom(params, intents.zoom_in, intents.zoom_out)
