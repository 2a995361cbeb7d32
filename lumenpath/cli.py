"""
Command-line front end: builds a scene, renders it and writes the image.
"""

from __future__ import annotations
import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from .renderer import Renderer, RenderSettings, BACKENDS
from .scenes import SCENES

logger = logging.getLogger(__name__)


def parse_aspect(value: str) -> float:
    """Parse an aspect ratio given as '16:9', '16/9' or '1.78'."""
    for sep in (':', '/'):
        if sep in value:
            num, den = value.split(sep, 1)
            try:
                return float(num) / float(den)
            except (ValueError, ZeroDivisionError):
                raise argparse.ArgumentTypeError(f"invalid aspect ratio: {value}")
    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid aspect ratio: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='lumenpath',
        description='LumenPath - a Python path tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --output render.png
  python main.py --width 400 --samples 50 --threads 4 --output quick.png
  python main.py --scene cover --backend process --output cover.png
        '''
    )

    parser.add_argument('--width', type=int, default=800, help='Image width (default: 800)')
    parser.add_argument('--aspect', type=parse_aspect, default=16.0 / 9.0,
                        help='Aspect ratio, e.g. 16:9 (default: 16:9)')
    parser.add_argument('--samples', type=int, default=500, help='Samples per pixel (default: 500)')
    parser.add_argument('--depth', type=int, default=50, help='Max bounce depth (default: 50)')
    parser.add_argument('--threads', type=int, default=0, help='Number of workers (0=auto)')
    parser.add_argument('--seed', type=int, default=None, help='Seed for a reproducible render')
    parser.add_argument('--backend', choices=BACKENDS, default='thread',
                        help='Worker pool type (default: thread)')
    parser.add_argument('--scene', choices=sorted(SCENES), default='default',
                        help='Scene to render (default: default)')
    parser.add_argument('--output', type=str, default='output.png',
                        help='Output filename; .png or .ppm (default: output.png)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        settings = RenderSettings(
            image_width=args.width,
            aspect_ratio=args.aspect,
            samples_per_pixel=args.samples,
            max_depth=args.depth,
            num_threads=args.threads,
            seed=args.seed,
            backend=args.backend,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(f"Detected {os.cpu_count()} cores, using {settings.num_threads} workers.", file=sys.stderr)

    make_world, make_camera = SCENES[args.scene]
    if args.scene == 'cover' and args.seed is not None:
        world = make_world(np.random.default_rng(args.seed))
    else:
        world = make_world()
    camera = make_camera(settings.aspect_ratio)
    logger.debug("Scene %r with %d objects", args.scene, len(world))

    renderer = Renderer(settings)

    def report(remaining: int) -> None:
        print(f"\rScanlines remaining: {remaining} ", end='', file=sys.stderr, flush=True)

    renderer.set_progress_callback(report)

    start_time = time.time()
    image = renderer.render(world, camera)
    elapsed = time.time() - start_time
    print(file=sys.stderr)
    logger.info("Render completed in %.2f seconds", elapsed)

    output_path = Path(args.output)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        renderer.save_image(image, str(output_path))
    except OSError as exc:
        logger.error("Cannot write %s: %s", output_path, exc)
        return 1

    print("Done.", file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
