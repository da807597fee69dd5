"""
Command-line entry point for rendering scenes.
"""

import argparse
import sys
import time
from fractions import Fraction
from pathlib import Path
from typing import List, Optional

import numpy as np

from .logging_config import setup_logging
from .renderer import Renderer, RenderSettings, RenderError, ImageWriteError
from .scene_parser import SceneParseError, load_scene
from .scenes import random_scene

STDOUT_OUTPUT = '-'


def parse_aspect_ratio(text: str) -> float:
    """Accept ``16/9`` as well as ``1.7778``."""
    try:
        value = float(Fraction(text))
    except (ValueError, ZeroDivisionError):
        raise argparse.ArgumentTypeError(f"invalid aspect ratio: {text!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"aspect ratio must be positive: {text!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='spheretrace',
        description='spheretrace - render a scene of spheres by path tracing',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  spheretrace scene.yaml --output render.png
  spheretrace scene.yaml --width 1200 --aspect-ratio 3/2 --samples 500 -o final.png
  cat scene.yaml | spheretrace - --output - > render.ppm
  spheretrace --seed 7 --samples 10 -o demo.png
        '''
    )

    parser.add_argument('scene', nargs='?', default=None,
                        help="Scene file (YAML or JSON), '-' for stdin; omit for the built-in demo scene")
    parser.add_argument('-o', '--output', type=str, default='output/render.png',
                        help="Output image; '.ppm' writes plain-text PPM, '-' streams PPM to stdout "
                             "(default: output/render.png)")
    parser.add_argument('--aspect-ratio', type=parse_aspect_ratio, default=16.0 / 9.0,
                        help='Image aspect ratio, e.g. 16/9 or 1.5 (default: 16/9)')
    parser.add_argument('--width', type=int, default=400, help='Image width (default: 400)')
    parser.add_argument('--samples', type=int, default=100, help='Samples per pixel (default: 100)')
    parser.add_argument('--depth', type=int, default=50, help='Max ray bounces (default: 50)')
    parser.add_argument('--vfov', type=float, default=20.0,
                        help='Vertical field of view in degrees (default: 20)')
    parser.add_argument('--aperture', type=float, default=0.1, help='Lens aperture (default: 0.1)')
    parser.add_argument('--focus-dist', type=float, default=10.0,
                        help='Distance to the focus plane (default: 10)')
    parser.add_argument('--workers', type=int, default=0, help='Number of worker threads (0=auto)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible renders')
    parser.add_argument('--quiet', action='store_true', help='Hide the progress bar')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Logging verbosity (default: WARNING)')
    parser.add_argument('--log-file', type=Path, default=None,
                        help='Also write log records to this file')
    return parser


def _progress_printer():
    last_progress = [-1]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', file=sys.stderr, flush=True)

    return progress_callback


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logger = setup_logging(args.log_level, args.log_file)

    try:
        settings = RenderSettings(
            aspect_ratio=args.aspect_ratio,
            image_width=args.width,
            samples_per_pixel=args.samples,
            max_depth=args.depth,
            vfov=args.vfov,
            aperture=args.aperture,
            focus_dist=args.focus_dist,
            num_workers=args.workers,
            seed=args.seed,
        )
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    # The whole scene is loaded before any rendering starts
    try:
        if args.scene is None:
            world = random_scene(np.random.default_rng(args.seed))
        else:
            world = load_scene(args.scene)
    except SceneParseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    renderer = Renderer(settings)
    if not args.quiet:
        renderer.set_progress_callback(_progress_printer())

    start_time = time.time()
    try:
        image = renderer.render(world, settings.create_camera())
    except RenderError as e:
        print(f"\nerror: {e}", file=sys.stderr)
        return 1
    if not args.quiet:
        print(f"\nRender completed in {time.time() - start_time:.2f} seconds", file=sys.stderr)

    if args.output == STDOUT_OUTPUT:
        renderer.write_ppm(image, sys.stdout)
        sys.stdout.flush()
        return 0

    output_path = Path(args.output)
    existed = output_path.exists()
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        renderer.save_image(image, str(output_path))
    except (ImageWriteError, OSError) as e:
        # No partial output
        if not existed and output_path.is_file():
            output_path.unlink()
        logger.debug("Image write failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
