"""Progressive rendering primitives for Mandelbrot views."""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np

ESCAPE_RADIUS_SQUARED = 4.0
INITIAL_BLOCK_SIZE = 128
MAX_ITERATIONS_LIMIT = 1 << 20


@dataclass(frozen=True)
class ViewportParameters:
    """The view being rendered: plane center, target size, zoom and detail."""

    center_re: float
    center_im: float
    width: int
    height: int
    real_domain: float
    max_iter: int

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(f"render target must have a non-zero area, got {self.width}x{self.height}.")
        if not self.real_domain > 0:
            raise ValueError(f"real_domain must be positive, got {self.real_domain}.")
        if not 1 <= self.max_iter <= MAX_ITERATIONS_LIMIT:
            raise ValueError(f"max_iter must lie in [1, {MAX_ITERATIONS_LIMIT}], got {self.max_iter}.")

    @property
    def center(self) -> complex:
        return complex(self.center_re, self.center_im)

    @property
    def imag_domain(self) -> float:
        """Height of the visible plane, aspect-corrected from the real domain."""

        return self.real_domain * self.height / self.width


class Phase(enum.Enum):
    SCANNING = "scanning"
    DONE = "done"


class Step(enum.Enum):
    """What a single :func:`advance` call did."""

    WRAP_ROW = "wrap_row"
    HALVE = "halve"
    FINISH = "finish"
    PAINT = "paint"
    IDLE = "idle"


@dataclass
class RenderProgress:
    """Resumable position of the coarse-to-fine block traversal."""

    index_x: int = 0
    index_y: int = 0
    block_size: int = INITIAL_BLOCK_SIZE
    phase: Phase = Phase.SCANNING

    @property
    def done(self) -> bool:
        return self.phase is Phase.DONE

    def reset(self) -> None:
        self.index_x = 0
        self.index_y = 0
        self.block_size = INITIAL_BLOCK_SIZE
        self.phase = Phase.SCANNING


def new_buffer(width: int, height: int) -> np.ndarray:
    """Allocate a black RGB frame buffer of ``height`` rows by ``width`` columns."""

    return np.zeros((height, width, 3), dtype=np.uint8)


def pixel_to_complex(params: ViewportParameters, x: float, y: float) -> complex:
    """Map the pixel at column ``x`` and row ``y`` to the point of the plane it shows."""

    w = float(params.width)
    h = float(params.height)
    re = params.center_re + params.real_domain * (x - w / 2.0) / w
    im = params.center_im + params.imag_domain * (y - h / 2.0) / h
    return complex(re, im)


def escape_time(z0: complex, max_iter: int) -> int:
    """Count iterations of ``z -> z*z + z0`` until ``|z|^2`` reaches the escape radius."""

    z = z0
    n = 0
    while n < max_iter and z.real * z.real + z.imag * z.imag < ESCAPE_RADIUS_SQUARED:
        z = z * z + z0
        n += 1
    return n


def brightness(n: int, max_iter: int) -> int:
    return (255 * n) // max_iter


def advance(buffer: np.ndarray, params: ViewportParameters, progress: RenderProgress) -> Step:
    """Perform one unit of progressive rendering and move ``progress`` forward.

    Each call either paints one solid block, sampled at its center, or makes a
    single bookkeeping transition: wrapping to the next row of blocks, halving
    the block size once the grid is exhausted, or finishing. The boundary
    comparisons are strict, so the column and row whose top-left corner lies
    exactly on the right or bottom edge are still visited.
    """

    if progress.done:
        return Step.IDLE

    block = progress.block_size
    tl_x = progress.index_x * block
    tl_y = progress.index_y * block

    if tl_x > params.width:
        progress.index_x = 0
        progress.index_y += 1
        return Step.WRAP_ROW

    if tl_y > params.height:
        progress.index_y = 0
        progress.block_size = block // 2
        return Step.HALVE

    if block < 1:
        progress.phase = Phase.DONE
        return Step.FINISH

    z0 = pixel_to_complex(params, tl_x + block // 2, tl_y + block // 2)
    value = brightness(escape_time(z0, params.max_iter), params.max_iter)
    buffer[tl_y:tl_y + block, tl_x:tl_x + block] = value

    progress.index_x += 1
    return Step.PAINT


def drain(buffer: np.ndarray, params: ViewportParameters, progress: RenderProgress) -> int:
    """Run :func:`advance` until the render is complete and return the number of calls."""

    calls = 0
    while not progress.done:
        advance(buffer, params, progress)
        calls += 1
    return calls


def advance_bound(width: int, height: int, block_size: int = INITIAL_BLOCK_SIZE) -> int:
    """Number of :func:`advance` calls a full drain takes from a fresh state.

    Every level paints ``height // b + 1`` rows of ``width // b + 1`` blocks,
    spends one wrap per row and one halving at the end; a final call finishes.
    """

    total = 1
    b = block_size
    while b >= 1:
        total += (height // b + 1) * (width // b + 2) + 1
        b //= 2
    return total
