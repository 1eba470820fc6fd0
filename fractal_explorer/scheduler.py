"""Time-sliced frame loop driving the progressive renderer."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from .diagnostics import log
from .navigation import InputIntents, apply_input
from .renderer import RenderProgress, ViewportParameters, advance, new_buffer

FRAME_BUDGET = 0.016

Presenter = Callable[[np.ndarray], None]
Exporter = Callable[[np.ndarray, int, int], None]


@dataclass
class FrameContext:
    """All state the frame loop owns: the view, the render position and the pixels."""

    params: ViewportParameters
    progress: RenderProgress = field(default_factory=RenderProgress)
    buffer: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        if self.buffer is None:
            self.buffer = new_buffer(self.params.width, self.params.height)

    def replace_params(self, params: ViewportParameters) -> None:
        if (params.width, params.height) != (self.params.width, self.params.height):
            self.buffer = new_buffer(params.width, params.height)
        self.params = params
        self.progress.reset()


@dataclass(frozen=True)
class FrameReport:
    changed: bool
    steps: int
    rendered: bool
    slept: float
    exported: bool


class FrameScheduler:
    """Run one presentation frame at a time within a wall-clock budget.

    Each frame applies the collected input to the view, restarts the render if
    the view changed, then calls :func:`advance` until the render is complete
    or ``budget`` seconds have passed since the frame started. A completed
    render is not presented again; the frame sleeps out its budget instead.
    """

    def __init__(
        self,
        context: FrameContext,
        *,
        budget: float = FRAME_BUDGET,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
        presenter: Optional[Presenter] = None,
        exporter: Optional[Exporter] = None,
    ) -> None:
        if budget <= 0:
            raise ValueError("budget must be positive.")
        self.context = context
        self.budget = budget
        self.clock = clock
        self.sleep = sleep
        self.presenter = presenter
        self.exporter = exporter
        self.frames = 0

    def frame(self, intents: InputIntents = InputIntents()) -> FrameReport:
        start = self.clock()
        context = self.context

        exported = False
        if intents.export_requested and self.exporter is not None:
            params = context.params
            self.exporter(context.buffer.copy(), params.width, params.height)
            exported = True

        candidate = apply_input(context.params, intents)
        changed = candidate != context.params
        if changed:
            context.replace_params(candidate)
            log("view changed: center=({0:.6g}, {1:.6g}) domain={2:.6g} iterations={3} size={4}x{5}".format(
                candidate.center_re,
                candidate.center_im,
                candidate.real_domain,
                candidate.max_iter,
                candidate.width,
                candidate.height,
            ))

        self.frames += 1
        steps = 0
        if not context.progress.done:
            while not context.progress.done and self.clock() - start < self.budget:
                advance(context.buffer, context.params, context.progress)
                steps += 1
            if context.progress.done:
                log("render complete after frame %d" % self.frames)
            if self.presenter is not None:
                self.presenter(context.buffer)
            return FrameReport(changed=changed, steps=steps, rendered=True, slept=0.0, exported=exported)

        remaining = self.budget - (self.clock() - start)
        slept = 0.0
        if remaining > 0:
            self.sleep(remaining)
            slept = remaining
        return FrameReport(changed=changed, steps=0, rendered=False, slept=slept, exported=exported)

    def run(self, source: Callable[[], Optional[InputIntents]], frames: Optional[int] = None) -> int:
        """Drive frames with intents pulled from ``source`` until it returns ``None``.

        Returns the number of frames run.
        """

        count = 0
        while frames is None or count < frames:
            intents = source()
            if intents is None:
                break
            self.frame(intents)
            count += 1
        return count
