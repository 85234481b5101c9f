#!/usr/bin/env python3
"""
Slideshow to Video Renderer

Renders a JSON slideshow description (images, durations, transitions and
Ken Burns pan/zoom) to an MP4 or WebM video.

Usage:
    python render_slides_to_video.py slideshow.json                  # -> slideshow.mp4
    python render_slides_to_video.py slideshow.json -o out.webm --format webm
    python render_slides_to_video.py slideshow.json --still 3.5      # Single PNG frame
    python render_slides_to_video.py slideshow.json --preview        # Show live preview

Config file format:
    {
      "slides": [
        {"src": "a.jpg", "duration": 3,
         "transition": {"type": "fade", "duration": 1, "easing": "ease-in-out"},
         "kenBurns": {"startScale": 1.0, "endScale": 1.2,
                      "startPosition": {"x": 0, "y": 0}, "endPosition": {"x": 40, "y": 0}}},
        {"src": "b.png", "duration": 3}
      ],
      "output": {"width": 1920, "height": 1080, "fps": 30, "format": "mp4", "quality": "high"},
      "backgroundColor": "#000000"
    }
"""

import argparse
import dataclasses
import json
import signal
import threading
from functools import partial
from pathlib import Path
from typing import Optional

import cv2  # type: ignore

from slide_types import (
    SlideshowRequest,
    RenderOutcome,
    RenderPhase,
    RenderProgress,
    InvalidInputError,
    ImageLoadError,
    RenderSurfaceUnavailableError,
    OUTPUT_FORMATS,
    QUALITY_LEVELS,
    parse_color,
    parse_slideshow_request,
    slide_from_config,
    validate_render_config
)
from render_video_core import rgb_array_to_pil, rgb_to_bgr
from slideshow_renderer import (
    FFmpegEncoder,
    load_slide_images,
    render_still,
    run_render_job
)


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130

PREVIEW_EVERY = 10
PREVIEW_WIDTH = 960


# ============================================================================
# Request Loading
# ============================================================================

def load_request_file(config_path: str) -> SlideshowRequest:
    """Read and validate a slideshow JSON file

    Relative image paths are resolved against the config file's directory.

    Raises:
        InvalidInputError: If the file is missing, not JSON, or invalid
    """
    path = Path(config_path)
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise InvalidInputError(f"Config file not found: {config_path}")
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Config file is not valid JSON: {e}")

    return parse_slideshow_request(data, base_dir=path.parent)


def apply_overrides(request: SlideshowRequest, args: argparse.Namespace) -> SlideshowRequest:
    """Return a copy of request with command-line overrides applied"""
    config_changes = {}
    if args.width is not None:
        config_changes['width'] = args.width
    if args.height is not None:
        config_changes['height'] = args.height
    if args.fps is not None:
        config_changes['fps'] = args.fps
    if args.background is not None:
        config_changes['background_color'] = parse_color(args.background)
    if args.max_blur is not None:
        config_changes['max_blur_radius'] = args.max_blur

    config = dataclasses.replace(request.config, **config_changes)
    validate_render_config(config)

    return dataclasses.replace(
        request,
        config=config,
        output_format=args.format or request.output_format,
        quality=args.quality or request.quality
    )


def default_output_path(config_path: str, output_format: str) -> Path:
    return Path(config_path).with_suffix(f'.{output_format}')


# ============================================================================
# Progress Reporting
# ============================================================================

class ProgressPrinter:
    """Prints job progress in status-line form

    Loading is reported once per image; rendering every `every` frames.
    """

    def __init__(self, every: int = 50):
        self.every = every
        self.last_phase: Optional[RenderPhase] = None

    def __call__(self, event: RenderProgress) -> None:
        if event.phase != self.last_phase:
            self.last_phase = event.phase
            print(f"Status Update: {event.phase.value.capitalize()}")

        if event.phase == RenderPhase.RENDERING:
            frame = event.current_frame or 0
            if frame % self.every == 0 or frame == event.total_frames:
                print(f"Progress: {event.progress * 100:.1f}%")
        elif 0.0 < event.progress < 1.0:
            print(f"  Loaded {event.progress * 100:.0f}% of images")


# ============================================================================
# Rendering Entry Points
# ============================================================================

def show_preview(pixels, cancel_event: threading.Event) -> None:
    """Show a downscaled frame; pressing q requests cancellation"""
    height, width = pixels.shape[:2]
    preview_height = max(1, round(height * PREVIEW_WIDTH / width))
    cv2.imshow('Preview', cv2.resize(rgb_to_bgr(pixels), (PREVIEW_WIDTH, preview_height)))
    if cv2.waitKey(1) & 0xFF == ord('q'):
        cancel_event.set()


def render_request_to_video(
    request: SlideshowRequest,
    output_path: str,
    cancel_event: threading.Event,
    preview: bool = False,
    max_workers: int = 4,
    verbose: bool = True
) -> RenderOutcome:
    """Run a render job and pipe every frame into FFmpeg

    The output file is only finalized on success; on failure or
    cancellation FFmpeg is killed.

    Raises:
        RuntimeError: If FFmpeg is missing or fails while encoding
    """
    config = request.config
    encoder = FFmpegEncoder(
        output_path=output_path,
        width=config.width,
        height=config.height,
        fps=config.fps,
        output_format=request.output_format,
        quality=request.quality,
        verbose=verbose
    )

    def frame_sink(frame_index, pixels):
        encoder.write_frame(pixels)
        if preview and frame_index % PREVIEW_EVERY == 0:
            show_preview(pixels, cancel_event)

    encoder.start()
    try:
        outcome = run_render_job(
            request,
            frame_sink,
            on_progress=ProgressPrinter() if verbose else None,
            cancel_event=cancel_event,
            image_loader=partial(load_slide_images, max_workers=max_workers)
        )
    except BaseException:
        encoder.abort()
        raise
    finally:
        if preview:
            cv2.destroyAllWindows()

    if not outcome.success:
        encoder.abort()
        return outcome

    success, stderr = encoder.finish()
    if not success:
        raise RuntimeError(f"FFmpeg encoding failed:\n{stderr[-500:]}")
    return outcome


def render_request_still(
    request: SlideshowRequest,
    time: float,
    output_path: str,
    max_workers: int = 4
) -> None:
    """Render the frame visible at `time` seconds and save it as an image

    Raises:
        InvalidInputError, ImageLoadError, RenderSurfaceUnavailableError
    """
    images = load_slide_images([slide.source for slide in request.slides], max_workers=max_workers)
    slides = [slide_from_config(cfg, image) for cfg, image in zip(request.slides, images)]
    pixels = render_still(slides, request.config, time)
    rgb_array_to_pil(pixels).save(output_path)


# ============================================================================
# Command Line
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Render a JSON slideshow description to video',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python render_slides_to_video.py show.json                     # Render show.mp4
  python render_slides_to_video.py show.json --format webm       # VP9 WebM output
  python render_slides_to_video.py show.json --fps 60 --width 1280 --height 720
  python render_slides_to_video.py show.json --still 3.5 -o frame.png
  python render_slides_to_video.py show.json --preview           # Show live preview (q cancels)
        """
    )
    parser.add_argument('config', help='Slideshow JSON file')
    parser.add_argument('-o', '--output', default=None,
                        help='Output path (default: config name with format extension)')
    parser.add_argument('--width', type=int, default=None,
                        help='Video width (overrides config)')
    parser.add_argument('--height', type=int, default=None,
                        help='Video height (overrides config)')
    parser.add_argument('--fps', type=int, default=None,
                        help='Frames per second (overrides config)')
    parser.add_argument('--format', choices=OUTPUT_FORMATS, default=None,
                        help='Container format (overrides config)')
    parser.add_argument('--quality', choices=QUALITY_LEVELS, default=None,
                        help='Encoding quality (overrides config)')
    parser.add_argument('--background', default=None,
                        help='Background colour, e.g. "#202020" or "navy"')
    parser.add_argument('--max-blur', type=float, default=None,
                        help='Peak blur radius of the blur transition in pixels (default: 20)')
    parser.add_argument('--workers', type=int, default=4,
                        help='Image loading threads (default: 4)')
    parser.add_argument('--still', type=float, default=None, metavar='SECONDS',
                        help='Write a single PNG of the frame at SECONDS instead of a video')
    parser.add_argument('--preview', action='store_true',
                        help='Show live preview while rendering')
    parser.add_argument('--quiet', action='store_true',
                        help='Only print errors and the final result')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        request = apply_overrides(load_request_file(args.config), args)
    except InvalidInputError as e:
        print(f"ERROR: {e}")
        return EXIT_FAILED

    config = request.config
    verbose = not args.quiet

    if args.still is not None:
        output_path = args.output or str(Path(args.config).with_suffix('.png'))
        try:
            render_request_still(request, args.still, output_path, max_workers=args.workers)
        except (InvalidInputError, ImageLoadError, RenderSurfaceUnavailableError) as e:
            print(f"ERROR: {e}")
            return EXIT_FAILED
        print(f"✅ Frame at {args.still:.2f}s saved to: {output_path}")
        return EXIT_OK

    output_path = args.output or str(default_output_path(args.config, request.output_format))

    if verbose:
        print(f"\n{'='*60}")
        print("Status Update: Rendering Slideshow")
        print(f"{'='*60}")
        print(f"Slides: {len(request.slides)}")
        print(f"Settings: {config.width}x{config.height} @ {config.fps}fps, "
              f"{request.output_format} ({request.quality})")
        print(f"Output: {output_path}")
        if args.preview:
            print("Preview mode enabled (press q to cancel)")
        print()

    cancel_event = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())
    try:
        outcome = render_request_to_video(
            request,
            output_path,
            cancel_event,
            preview=args.preview,
            max_workers=args.workers,
            verbose=verbose
        )
    except RuntimeError as e:
        print(f"ERROR: {e}")
        return EXIT_FAILED
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if outcome.cancelled:
        print(f"\nCancelled after {outcome.frames_rendered} of {outcome.total_frames} frames")
        return EXIT_CANCELLED

    if not outcome.success:
        kind = outcome.error_kind.value if outcome.error_kind else 'error'
        print(f"ERROR ({kind}): {outcome.message}")
        return EXIT_FAILED

    print(f"\n{'='*60}")
    print(f"✅ Video saved to: {output_path}")
    print(f"   {outcome.total_frames} frames, {outcome.total_duration:.2f}s")
    print(f"{'='*60}\n")
    return EXIT_OK


if __name__ == '__main__':
    exit(main())
