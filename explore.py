import os
import sys
from dataclasses import dataclass
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])

if not _cli_verbose:
    os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import numpy as np
import PIL.Image
import pygame
import pygame.surfarray

from fractal_explorer import (
    FRAME_BUDGET,
    MAX_ITERATIONS_LIMIT,
    FrameContext,
    FrameScheduler,
    InputIntents,
    ViewportParameters,
    drain,
    resize,
)
from fractal_explorer.diagnostics import log, set_verbose

from argparse import ArgumentParser

WINDOW_TITLE = "fractal-explorer"

MOVE_UP_KEYS = frozenset({pygame.K_w, pygame.K_UP})
MOVE_LEFT_KEYS = frozenset({pygame.K_a, pygame.K_LEFT})
MOVE_DOWN_KEYS = frozenset({pygame.K_s, pygame.K_DOWN})
MOVE_RIGHT_KEYS = frozenset({pygame.K_d, pygame.K_RIGHT})
ZOOM_IN_KEYS = frozenset({pygame.K_i})
ZOOM_OUT_KEYS = frozenset({pygame.K_o})
ITER_UP_KEYS = frozenset({pygame.K_e})
ITER_DOWN_KEYS = frozenset({pygame.K_q})
EXPORT_KEYS = frozenset({pygame.K_r})
QUIT_KEYS = frozenset({pygame.K_ESCAPE})


@dataclass
class ExplorerConfig:
    params: ViewportParameters
    budget: float
    output_path: Path
    image_format: str
    headless: bool
    verbose: bool


def build_parser():
    parser = ArgumentParser(description="Explore the Mandelbrot set with progressive, time-sliced rendering.")

    parser.add_argument('--width', type=int,
                        dest='width', help='width of the render target in pixels',
                        metavar='WIDTH', default=800)

    parser.add_argument('--height', type=int,
                        dest='height', help='height of the render target in pixels',
                        metavar='HEIGHT', default=600)

    parser.add_argument('--center-re', type=float,
                        dest='center_re', help='real part of the point shown at the center of the screen',
                        metavar='CENTER_RE', default=0.0)

    parser.add_argument('--center-im', type=float,
                        dest='center_im', help='imaginary part of the point shown at the center of the screen',
                        metavar='CENTER_IM', default=0.0)

    parser.add_argument('--real-domain', type=float,
                        dest='real_domain', help='width of the visible window along the real axis',
                        metavar='REAL_DOMAIN', default=4.0)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='escape-time iteration cap (1 to %d)' % MAX_ITERATIONS_LIMIT,
                        metavar='MAX_ITERATIONS', default=64)

    parser.add_argument('--frame-budget-ms', type=float,
                        dest='frame_budget_ms', help='time spent rendering per frame, in milliseconds',
                        metavar='MS', default=FRAME_BUDGET * 1000.0)

    parser.add_argument('--output', type=str,
                        dest='output', help='file written when an export is requested (R key, or --headless)',
                        metavar='OUTPUT', default='out.png')

    parser.add_argument('--format', type=str,
                        dest='format', help='image format for exports. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--headless', action='store_true',
                        help='Render the view to completion without opening a window and export it.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging of view changes, render progress and exports.')

    return parser


def resolve_explorer_config(opt, parser: ArgumentParser) -> ExplorerConfig:
    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")
    if not opt.real_domain > 0:
        parser.error("--real-domain must be positive.")
    if not 1 <= opt.max_iterations <= MAX_ITERATIONS_LIMIT:
        parser.error(f"--max-iterations must lie between 1 and {MAX_ITERATIONS_LIMIT}.")
    if not opt.frame_budget_ms > 0:
        parser.error("--frame-budget-ms must be positive.")

    image_format = (getattr(opt, "format", "png") or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"

    output_arg = getattr(opt, "output", None)
    if not output_arg:
        parser.error("--output must not be empty.")
    output_path = Path(output_arg).expanduser()
    if output_path.exists() and output_path.is_dir():
        parser.error("--output must point to a file, not a directory.")
    if not output_path.suffix:
        output_path = output_path.with_suffix(f".{image_format}")

    params = ViewportParameters(
        center_re=opt.center_re,
        center_im=opt.center_im,
        width=opt.width,
        height=opt.height,
        real_domain=opt.real_domain,
        max_iter=opt.max_iterations,
    )

    return ExplorerConfig(
        params=params,
        budget=opt.frame_budget_ms / 1000.0,
        output_path=output_path.resolve(),
        image_format=image_format,
        headless=bool(opt.headless),
        verbose=bool(opt.verbose),
    )


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


class FileExporter:
    """Write buffer snapshots to a fixed path."""

    def __init__(self, output_path: Path, image_format: str) -> None:
        self.output_path = output_path
        self.image_format = image_format
        self.count = 0

    def __call__(self, snapshot: np.ndarray, width: int, height: int) -> None:
        log("rendering to file %s" % self.output_path)
        image = PIL.Image.fromarray(np.ascontiguousarray(snapshot[:height, :width]))
        write_single_image(image, self.output_path, self.image_format)
        self.count += 1


def _any_pressed(pressed, keys) -> bool:
    return any(pressed[key] for key in keys)


def collect_intents(events, pressed):
    """Fold one frame of pygame events and held keys into :class:`InputIntents`.

    Returns ``None`` when the user asked to quit.
    """

    iter_up = 0
    iter_down = 0
    export_requested = False
    new_size = None

    for event in events:
        if event.type == pygame.QUIT:
            return None
        if event.type == pygame.VIDEORESIZE:
            new_size = (event.w, event.h)
        elif event.type == pygame.KEYDOWN:
            if event.key in QUIT_KEYS:
                return None
            if event.key in ITER_DOWN_KEYS:
                iter_down += 1
            elif event.key in ITER_UP_KEYS:
                iter_up += 1
            if event.key in EXPORT_KEYS:
                export_requested = True

    return InputIntents(
        pan_up=_any_pressed(pressed, MOVE_UP_KEYS),
        pan_down=_any_pressed(pressed, MOVE_DOWN_KEYS),
        pan_left=_any_pressed(pressed, MOVE_LEFT_KEYS),
        pan_right=_any_pressed(pressed, MOVE_RIGHT_KEYS),
        zoom_in=_any_pressed(pressed, ZOOM_IN_KEYS),
        zoom_out=_any_pressed(pressed, ZOOM_OUT_KEYS),
        iter_up=iter_up,
        iter_down=iter_down,
        export_requested=export_requested,
        resize=new_size,
    )


class ExplorerWindow:
    """Resizable pygame window that shows the frame buffer."""

    def __init__(self, width, height):
        pygame.init()
        self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        pygame.display.set_caption(WINDOW_TITLE)
        self.screen.fill((0, 0, 0))
        pygame.display.flip()

    def resize(self, width, height):
        self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)

    def poll(self):
        intents = collect_intents(pygame.event.get(), pygame.key.get_pressed())
        if intents is not None and intents.resize is not None:
            self.resize(*intents.resize)
        return intents

    def present(self, buffer: np.ndarray) -> None:
        surface = pygame.surfarray.make_surface(np.transpose(buffer, (1, 0, 2)))
        self.screen.blit(surface, (0, 0))
        pygame.display.flip()

    def close(self):
        pygame.quit()


def run_headless(config: ExplorerConfig) -> Path:
    context = FrameContext(config.params)
    calls = drain(context.buffer, context.params, context.progress)
    log("render complete after %d steps" % calls)
    exporter = FileExporter(config.output_path, config.image_format)
    exporter(context.buffer, config.params.width, config.params.height)
    return config.output_path


def run_interactive(config: ExplorerConfig) -> int:
    window = ExplorerWindow(config.params.width, config.params.height)
    try:
        width, height = window.screen.get_size()
        params = config.params
        if (width, height) != (params.width, params.height):
            log("window opened at %dx%d" % (width, height))
            params = resize(params, (width, height))
        scheduler = FrameScheduler(
            FrameContext(params),
            budget=config.budget,
            presenter=window.present,
            exporter=FileExporter(config.output_path, config.image_format),
        )
        return scheduler.run(window.poll)
    finally:
        window.close()


def main():
    parser = build_parser()
    opt = parser.parse_args()

    config = resolve_explorer_config(opt, parser)
    set_verbose(config.verbose)

    log("pygame version: %s" % pygame.version.ver)

    if config.headless:
        path = run_headless(config)
        print("wrote {0}".format(path))
        return

    frames = run_interactive(config)
    log("exited after %d frames" % frames)


if __name__ == '__main__':
    main()
