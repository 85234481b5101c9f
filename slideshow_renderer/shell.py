"""
Slideshow Renderer - Imperative Shell

Owns the drawing surface and drives the render loop.
Uses pure functions from core.py, timeline.py and effects.py for everything
that decides what a frame looks like.

Follows functional core, imperative shell pattern:
- core.py / timeline.py / effects.py: Pure calculations and canvas drawing
- This module: Surface ownership, frame iteration, progress, cancellation

Frame-to-time contract: frame i is rendered at time i / fps.
"""

from typing import Callable, Iterator, List, Optional, Sequence

import numpy as np  # type: ignore

from slide_types import (
    Slide,
    RenderConfig,
    RenderPhase,
    RenderProgress,
    RenderOutcome,
    SlideshowRequest,
    Timeline,
    InvalidInputError,
    ImageLoadError,
    RenderSurfaceUnavailableError,
    RenderCancelledError,
    slide_from_config,
    validate_render_config
)
from render_video_core import create_canvas, fill_canvas, canvas_to_rgb, rgb_array_to_pil
from .core import evaluate_ken_burns, pan_zoom_matrix
from .effects import draw_cover, render_transition_frame
from .timeline import (
    build_timeline,
    total_frames_from_duration,
    frame_time_from_number,
    resolve_frame,
    SteadyInstruction,
    RenderInstruction
)
from .image_loader import load_slide_images


ProgressCallback = Callable[[RenderProgress], None]
FrameSink = Callable[[int, np.ndarray], None]


# ============================================================================
# Drawing Surface
# ============================================================================

class FrameSurface:
    """Exclusively-owned float32 RGB drawing buffer

    Holds exactly one frame's pixels and is overwritten by every render.
    Never share one surface between concurrent renders.

    Side effects:
    - Allocates height x width x 3 float32 pixels
    """

    def __init__(self, width: int, height: int, background_color=(0, 0, 0)):
        """
        Raises:
            InvalidInputError: If dimensions are not positive
            RenderSurfaceUnavailableError: If the buffer cannot be allocated
        """
        if width <= 0 or height <= 0:
            raise InvalidInputError(f"Surface dimensions must be positive, got {width}x{height}")

        self.width = width
        self.height = height
        self.background_color = tuple(background_color)

        try:
            self.canvas = create_canvas(width, height, self.background_color)
        except (MemoryError, ValueError) as e:
            raise RenderSurfaceUnavailableError(
                f"Could not allocate {width}x{height} drawing surface: {e}"
            )

    def clear(self) -> None:
        """Fill the whole surface with the background colour"""
        fill_canvas(self.canvas, self.background_color)

    def read_pixels(self) -> np.ndarray:
        """Copy the current frame out as a uint8 RGB array (height, width, 3)"""
        return canvas_to_rgb(self.canvas)


def save_frame(surface: FrameSurface, filepath: str) -> None:
    """Save current surface contents to an image file

    Side effects:
    - Writes to filesystem
    """
    rgb_array_to_pil(surface.read_pixels()).save(filepath)


# ============================================================================
# Frame Rendering
# ============================================================================

def render_steady_frame(
    surface: FrameSurface,
    slide: Slide,
    progress: float
) -> None:
    """Draw one slide with its pan/zoom evaluated at in-slide progress"""
    surface.clear()
    transform = pan_zoom_matrix(
        evaluate_ken_burns(slide.ken_burns, progress),
        surface.width,
        surface.height
    )
    draw_cover(surface.canvas, slide.image, surface.width, surface.height, transform=transform)


def render_instruction(
    surface: FrameSurface,
    instruction: RenderInstruction,
    slides: Sequence[Slide],
    config: RenderConfig
) -> None:
    """Execute a resolved instruction against the surface (modifies it in-place)"""
    if isinstance(instruction, SteadyInstruction):
        render_steady_frame(surface, slides[instruction.slide_index], instruction.progress)
        return

    render_transition_frame(
        surface.canvas,
        slides[instruction.from_index].image,
        slides[instruction.to_index].image,
        instruction.progress,
        instruction.kind,
        surface.width,
        surface.height,
        background_color=surface.background_color,
        max_blur_radius=config.max_blur_radius
    )


def render_frame_at_time(
    surface: FrameSurface,
    time: float,
    timeline: Timeline,
    slides: Sequence[Slide],
    config: RenderConfig
) -> RenderInstruction:
    """Resolve a time value and render it onto the surface

    Returns:
        The instruction that was rendered
    """
    instruction = resolve_frame(time, timeline)
    render_instruction(surface, instruction, slides, config)
    return instruction


# ============================================================================
# Render Loop
# ============================================================================

class SlideshowRenderLoop:
    """Pull-based frame renderer over one shared surface

    Shared-surface mode: render_frame(i) leaves `surface` holding frame i.
    Indices must be strictly increasing; calling out of order or repeating
    an index is unsupported and trips an assertion (stripped under -O).

    Lazy mode: frame_producers() returns one closure per frame, each
    rendering into its own surface, so they may run in any order.

    Attributes:
        slides: Loaded slides
        config: Output configuration
        timeline: Immutable timeline built once
        total_duration: Timeline length in seconds
        total_frames: ceil(total_duration * fps)
        surface: The shared FrameSurface
    """

    def __init__(
        self,
        slides: Sequence[Slide],
        config: RenderConfig,
        surface: Optional[FrameSurface] = None
    ):
        validate_render_config(config)

        self.slides = list(slides)
        self.config = config
        self.timeline = build_timeline(self.slides)
        self.total_duration = self.timeline.total_duration
        self.total_frames = total_frames_from_duration(self.total_duration, config.fps)
        if surface is None:
            surface = FrameSurface(config.width, config.height, config.background_color)
        self.surface = surface
        self._last_frame = -1

    def frame_time(self, frame_index: int) -> float:
        return frame_time_from_number(frame_index, self.config.fps)

    def _check_index(self, frame_index: int) -> None:
        if not 0 <= frame_index < self.total_frames:
            raise IndexError(
                f"Frame {frame_index} out of range [0, {self.total_frames})"
            )

    def render_frame(self, frame_index: int) -> RenderInstruction:
        """Render frame_index onto the shared surface

        Raises:
            IndexError: If frame_index is outside [0, total_frames)
        """
        self._check_index(frame_index)
        assert frame_index > self._last_frame, (
            f"Frames must be rendered in increasing order: "
            f"got {frame_index} after {self._last_frame}"
        )
        self._last_frame = frame_index

        return render_frame_at_time(
            self.surface,
            self.frame_time(frame_index),
            self.timeline,
            self.slides,
            self.config
        )

    def render_frame_pixels(self, frame_index: int) -> np.ndarray:
        """Render frame_index into a fresh surface and return its pixels

        Does not touch the shared surface, so calls may come in any order
        (or from several threads).
        """
        self._check_index(frame_index)
        surface = FrameSurface(self.config.width, self.config.height, self.config.background_color)
        render_frame_at_time(
            surface,
            self.frame_time(frame_index),
            self.timeline,
            self.slides,
            self.config
        )
        return surface.read_pixels()

    def frame_producers(self) -> List[Callable[[], np.ndarray]]:
        """One zero-argument closure per frame, rendering on demand"""
        def producer(frame_index: int) -> Callable[[], np.ndarray]:
            return lambda: self.render_frame_pixels(frame_index)

        return [producer(i) for i in range(self.total_frames)]


def create_render_loop(
    slides: Sequence[Slide],
    config: RenderConfig,
    surface: Optional[FrameSurface] = None
) -> SlideshowRenderLoop:
    """Build the timeline and allocate the shared surface (unless one is given)

    Raises:
        InvalidInputError: Empty slide list, non-positive durations or config
        RenderSurfaceUnavailableError: Surface allocation failed
    """
    return SlideshowRenderLoop(slides, config, surface)


def render_slideshow_frames(slides: Sequence[Slide], config: RenderConfig) -> Iterator[np.ndarray]:
    """Generator yielding every frame as an independent uint8 RGB array

    Example:
        >>> for frame in render_slideshow_frames(slides, RenderConfig(width=640, height=360)):
        ...     encoder.write_frame(frame)
    """
    loop = create_render_loop(slides, config)
    for frame_index in range(loop.total_frames):
        loop.render_frame(frame_index)
        yield loop.surface.read_pixels()


def render_still(slides: Sequence[Slide], config: RenderConfig, time: float) -> np.ndarray:
    """Render the single frame visible at an absolute time"""
    loop = create_render_loop(slides, config)
    render_frame_at_time(loop.surface, time, loop.timeline, loop.slides, config)
    return loop.surface.read_pixels()


# ============================================================================
# Render Job
# ============================================================================

def run_render_job(
    request: SlideshowRequest,
    frame_sink: FrameSink,
    on_progress: Optional[ProgressCallback] = None,
    cancel_event=None,
    image_loader: Callable = load_slide_images
) -> RenderOutcome:
    """Load images, build the timeline and render every frame

    Phases: loading (0, then one event per image, the last at 1.0) then
    rendering (one event per frame). The surface is allocated before any
    image is loaded. Errors from the compositor never escape: they
    come back as a failed or cancelled RenderOutcome.

    Side effects:
    - Reads image files through image_loader
    - Calls frame_sink(frame_index, pixels) once per frame, in order
    - Calls on_progress with RenderProgress events

    Args:
        request: Validated slideshow request
        frame_sink: Receives each finished frame (uint8 RGB copy)
        on_progress: Optional progress callback
        cancel_event: Object with is_set() (e.g. threading.Event), polled
            before each frame
        image_loader: Callable(sources, on_loaded=...) returning images

    Returns:
        RenderOutcome (success, failed with error_kind, or cancelled)
    """
    def report(phase: RenderPhase, progress: float, current: Optional[int] = None,
               total: Optional[int] = None) -> None:
        if on_progress is not None:
            on_progress(RenderProgress(phase, progress, current, total))

    loop = None
    try:
        if not request.slides:
            raise InvalidInputError("At least one slide is required")
        config = request.config
        validate_render_config(config)

        # Allocate before loading so an unavailable surface fails the job up front
        surface = FrameSurface(config.width, config.height, config.background_color)

        report(RenderPhase.LOADING, 0.0)
        sources = [slide.source for slide in request.slides]
        images = image_loader(
            sources,
            on_loaded=lambda loaded, total: report(RenderPhase.LOADING, loaded / total)
        )

        slides = [slide_from_config(cfg, image) for cfg, image in zip(request.slides, images)]
        loop = create_render_loop(slides, config, surface)

        total = loop.total_frames
        for frame_index in range(total):
            if cancel_event is not None and cancel_event.is_set():
                raise RenderCancelledError(frame_index)

            loop.render_frame(frame_index)
            frame_sink(frame_index, loop.surface.read_pixels())
            report(RenderPhase.RENDERING, (frame_index + 1) / total, frame_index + 1, total)

    except RenderCancelledError as e:
        return RenderOutcome.cancelled_after(e.frames_rendered, loop.total_duration, loop.total_frames)
    except (InvalidInputError, ImageLoadError, RenderSurfaceUnavailableError) as e:
        return RenderOutcome.failed(e)

    return RenderOutcome.succeeded(loop.total_duration, loop.total_frames)
