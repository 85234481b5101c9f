"""
Slideshow Data Types - Shared Contract

Defines the data contract between slideshow configuration, image loading,
timeline building and frame rendering. Also holds the error taxonomy and the
discriminated outcome returned by a render job.

Type Hierarchy:
    SlideConfig (request form) → carries an image source reference
    Slide (loaded form) → carries the decoded pixel array
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np  # type: ignore
from PIL import ImageColor  # type: ignore


# ============================================================================
# Enumerations
# ============================================================================

class TransitionKind(Enum):
    """Closed catalog of transition effects (values are wire names)"""
    NONE = "none"
    FADE = "fade"
    DISSOLVE = "dissolve"
    SLIDE_LEFT = "slide-left"
    SLIDE_RIGHT = "slide-right"
    SLIDE_UP = "slide-up"
    SLIDE_DOWN = "slide-down"
    WIPE_LEFT = "wipe-left"
    WIPE_RIGHT = "wipe-right"
    WIPE_UP = "wipe-up"
    WIPE_DOWN = "wipe-down"
    ZOOM_IN = "zoom-in"
    ZOOM_OUT = "zoom-out"
    BLUR = "blur"
    ROTATE = "rotate"
    FLIP = "flip"


class EasingKind(Enum):
    """Progress reparameterizations for transitions"""
    LINEAR = "linear"
    EASE_IN = "ease-in"
    EASE_OUT = "ease-out"
    EASE_IN_OUT = "ease-in-out"


class RenderPhase(Enum):
    LOADING = "loading"
    RENDERING = "rendering"
    ENCODING = "encoding"


class ErrorKind(Enum):
    INVALID_INPUT = "invalid_input"
    IMAGE_LOAD_FAILURE = "image_load_failure"
    RENDER_SURFACE_UNAVAILABLE = "render_surface_unavailable"


class OutcomeStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


# ============================================================================
# Error Taxonomy
# ============================================================================

class InvalidInputError(ValueError):
    """Empty slide list, non-positive duration/fps/dimensions, bad request field"""
    kind = ErrorKind.INVALID_INPUT


class ImageLoadError(IOError):
    """An image source could not be decoded

    Attributes:
        source: The offending source reference (path or data URI)
        reason: Human-readable cause
    """
    kind = ErrorKind.IMAGE_LOAD_FAILURE

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load image {_shorten(source)}: {reason}")


class RenderSurfaceUnavailableError(RuntimeError):
    """The drawable surface could not be created"""
    kind = ErrorKind.RENDER_SURFACE_UNAVAILABLE


class RenderCancelledError(Exception):
    """Raised inside a render job when the cancel token is observed"""

    def __init__(self, frames_rendered: int):
        self.frames_rendered = frames_rendered
        super().__init__(f"Render cancelled after {frames_rendered} frames")


def _shorten(source: str, limit: int = 80) -> str:
    # data URIs can be megabytes long
    if len(source) <= limit:
        return source
    return source[:limit - 3] + "..."


# ============================================================================
# Slide Data
# ============================================================================

@dataclass(frozen=True)
class TransitionSpec:
    """Effect used to blend a slide into the next one

    Attributes:
        kind: Effect kind
        duration: Transition length in seconds (> 0)
        easing: Easing applied to the raw transition progress
    """
    kind: TransitionKind
    duration: float
    easing: EasingKind = EasingKind.EASE_IN_OUT


@dataclass(frozen=True)
class KenBurnsSpec:
    """Linear pan/zoom over a slide's steady-display interval

    Offsets are in output pixels, relative to the centred cover-fit position.
    """
    start_scale: float = 1.0
    end_scale: float = 1.2
    start_offset: Tuple[float, float] = (0.0, 0.0)
    end_offset: Tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True)
class SlideConfig:
    """Request form of a slide: image source plus timing metadata"""
    source: str
    duration: float
    transition_out: Optional[TransitionSpec] = None
    ken_burns: Optional[KenBurnsSpec] = None


@dataclass(frozen=True, eq=False)
class Slide:
    """Slide with its decoded image

    Attributes:
        image: Decoded pixels, uint8 array (height, width, 3) RGB or (height, width, 4) RGBA
        duration: Steady-display duration in seconds
        transition_out: Transition into the next slide (ignored on the last slide)
        ken_burns: Optional pan/zoom motion
        source: Source reference the image was loaded from
    """
    image: np.ndarray
    duration: float
    transition_out: Optional[TransitionSpec] = None
    ken_burns: Optional[KenBurnsSpec] = None
    source: str = ""

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])


# ============================================================================
# Timeline Data
# ============================================================================

@dataclass(frozen=True)
class TimelineEntry:
    """Absolute time intervals owned by one slide

    The display interval is [display_start, display_end). When the slide has
    an applied outgoing transition, the transition interval
    [transition_start, transition_end) immediately follows it.
    """
    slide_index: int
    display_start: float
    display_end: float
    transition: Optional[TransitionSpec] = None
    transition_start: Optional[float] = None
    transition_end: Optional[float] = None

    @property
    def display_duration(self) -> float:
        return self.display_end - self.display_start

    @property
    def has_transition(self) -> bool:
        return self.transition is not None

    @property
    def transition_duration(self) -> float:
        if self.transition is None:
            return 0.0
        return self.transition_end - self.transition_start

    @property
    def end(self) -> float:
        """End of the last interval owned by this entry"""
        return self.transition_end if self.transition is not None else self.display_end


@dataclass(frozen=True)
class Timeline:
    """Immutable mapping from absolute time to slide/transition intervals"""
    entries: Tuple[TimelineEntry, ...]
    total_duration: float

    def __len__(self) -> int:
        return len(self.entries)


# ============================================================================
# Configuration
# ============================================================================

@dataclass(frozen=True)
class RenderConfig:
    """Output raster configuration

    Attributes:
        width: Frame width in pixels
        height: Frame height in pixels
        fps: Frames per second
        background_color: RGB fill shown where no image covers the canvas
        max_blur_radius: Peak Gaussian sigma (pixels) of the blur transition
    """
    width: int = 1920
    height: int = 1080
    fps: int = 30
    background_color: Tuple[int, int, int] = (0, 0, 0)
    max_blur_radius: float = 20.0


OUTPUT_FORMATS = ("mp4", "webm")
QUALITY_LEVELS = ("low", "medium", "high", "very_high")


@dataclass(frozen=True)
class SlideshowRequest:
    """Complete, validated slideshow render request"""
    slides: Tuple[SlideConfig, ...]
    config: RenderConfig = RenderConfig()
    output_format: str = "mp4"
    quality: str = "high"


# ============================================================================
# Progress and Outcome
# ============================================================================

@dataclass(frozen=True)
class RenderProgress:
    """Side-channel progress event

    Attributes:
        phase: Current job phase
        progress: Fraction of the phase completed (0.0 to 1.0)
        current_frame: Frames rendered so far (rendering phase only)
        total_frames: Total frames in the job (rendering phase only)
    """
    phase: RenderPhase
    progress: float
    current_frame: Optional[int] = None
    total_frames: Optional[int] = None


@dataclass(frozen=True)
class RenderOutcome:
    """Discriminated result of a render job

    Exactly one of success, failure (with error_kind) or cancellation.
    """
    status: OutcomeStatus
    message: str = ""
    error_kind: Optional[ErrorKind] = None
    total_duration: float = 0.0
    total_frames: int = 0
    frames_rendered: int = 0

    @property
    def success(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def cancelled(self) -> bool:
        return self.status == OutcomeStatus.CANCELLED

    @classmethod
    def succeeded(cls, total_duration: float, total_frames: int) -> "RenderOutcome":
        return cls(
            status=OutcomeStatus.SUCCESS,
            total_duration=total_duration,
            total_frames=total_frames,
            frames_rendered=total_frames
        )

    @classmethod
    def failed(cls, error: Exception) -> "RenderOutcome":
        return cls(
            status=OutcomeStatus.FAILED,
            message=str(error),
            error_kind=getattr(error, 'kind', None)
        )

    @classmethod
    def cancelled_after(
        cls,
        frames_rendered: int,
        total_duration: float = 0.0,
        total_frames: int = 0
    ) -> "RenderOutcome":
        return cls(
            status=OutcomeStatus.CANCELLED,
            message="Cancelled",
            total_duration=total_duration,
            total_frames=total_frames,
            frames_rendered=frames_rendered
        )


# ============================================================================
# Conversion Functions
# ============================================================================

def slide_from_config(config: SlideConfig, image: np.ndarray) -> Slide:
    """Attach a decoded image to a request slide

    Args:
        config: Request form of the slide
        image: Decoded pixel array for config.source

    Returns:
        Slide ready for timeline building and rendering
    """
    return Slide(
        image=image,
        duration=config.duration,
        transition_out=config.transition_out,
        ken_burns=config.ken_burns,
        source=config.source
    )


def parse_color(value: Any) -> Tuple[int, int, int]:
    """Parse a CSS colour string or RGB sequence into an RGB tuple

    Raises:
        InvalidInputError: If the colour cannot be parsed
    """
    if isinstance(value, str):
        try:
            rgb = ImageColor.getrgb(value)
        except ValueError as e:
            raise InvalidInputError(f"Invalid colour {value!r}: {e}")
        return tuple(int(c) for c in rgb[:3])

    try:
        rgb = tuple(int(c) for c in value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid colour {value!r}")
    if len(rgb) != 3 or not all(0 <= c <= 255 for c in rgb):
        raise InvalidInputError(f"Colour must be an RGB triple in [0, 255], got {value!r}")
    return rgb


# ============================================================================
# Validation Functions
# ============================================================================

def validate_render_config(config: RenderConfig) -> bool:
    """Validate output configuration

    Returns:
        True if valid, raises InvalidInputError if invalid
    """
    if config.width <= 0 or config.height <= 0:
        raise InvalidInputError(
            f"Frame dimensions must be positive, got {config.width}x{config.height}"
        )

    if not config.fps > 0:
        raise InvalidInputError(f"FPS must be positive, got {config.fps}")

    if config.max_blur_radius < 0:
        raise InvalidInputError(
            f"Max blur radius must be non-negative, got {config.max_blur_radius}"
        )

    return True


def validate_transition_spec(spec: TransitionSpec) -> bool:
    """Validate transition fields

    Returns:
        True if valid, raises InvalidInputError if invalid
    """
    if not isinstance(spec.kind, TransitionKind):
        raise InvalidInputError(f"Unknown transition kind {spec.kind!r}")

    if not isinstance(spec.easing, EasingKind):
        raise InvalidInputError(f"Unknown easing {spec.easing!r}")

    if not spec.duration > 0:
        raise InvalidInputError(f"Transition duration {spec.duration} must be positive")

    return True


def validate_ken_burns_spec(spec: KenBurnsSpec) -> bool:
    """Validate pan/zoom fields

    Returns:
        True if valid, raises InvalidInputError if invalid
    """
    if not (spec.start_scale > 0 and spec.end_scale > 0):
        raise InvalidInputError(
            f"Ken Burns scales must be positive, got {spec.start_scale} -> {spec.end_scale}"
        )

    for offset in (spec.start_offset, spec.end_offset):
        if len(offset) != 2:
            raise InvalidInputError(f"Ken Burns offset must be (x, y), got {offset!r}")

    return True


# ============================================================================
# Request Parsing
# ============================================================================

# Accepted ranges of the slideshow request (min, max)
MAX_SLIDES = 100
SLIDE_DURATION_RANGE = (0.1, 60.0)
TRANSITION_DURATION_RANGE = (0.1, 5.0)
KEN_BURNS_SCALE_RANGE = (0.5, 3.0)
WIDTH_RANGE = (64, 3840)
HEIGHT_RANGE = (64, 2160)
FPS_RANGE = (1, 60)


def _number_in_range(data: Dict[str, Any], key: str, value_range, default=None, path: str = "") -> float:
    value = data.get(key, default)
    if value is None:
        raise InvalidInputError(f"{path}{key} is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{path}{key} must be a number, got {value!r}")
    low, high = value_range
    if not (low <= value <= high):
        raise InvalidInputError(f"{path}{key} must be in [{low}, {high}], got {value}")
    return value


def _int_in_range(data: Dict[str, Any], key: str, value_range, default, path: str = "") -> int:
    value = _number_in_range(data, key, value_range, default, path)
    if int(value) != value:
        raise InvalidInputError(f"{path}{key} must be an integer, got {value}")
    return int(value)


def _choice(value: Any, enum_type, path: str):
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise InvalidInputError(f"{path} must be one of: {allowed}; got {value!r}")


def _parse_point(data: Any, path: str) -> Tuple[float, float]:
    if data is None:
        return (0.0, 0.0)
    if not isinstance(data, dict):
        raise InvalidInputError(f"{path} must be an object with x and y")
    x = data.get('x', 0.0)
    y = data.get('y', 0.0)
    for name, value in (('x', x), ('y', y)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInputError(f"{path}.{name} must be a number, got {value!r}")
    return (float(x), float(y))


def parse_transition(data: Dict[str, Any], path: str = "transition") -> TransitionSpec:
    """Parse a request transition object ({type, duration, easing})"""
    if not isinstance(data, dict):
        raise InvalidInputError(f"{path} must be an object")
    kind = _choice(data.get('type'), TransitionKind, f"{path}.type")
    duration = _number_in_range(data, 'duration', TRANSITION_DURATION_RANGE, path=f"{path}.")
    easing = _choice(data.get('easing', EasingKind.EASE_IN_OUT.value), EasingKind, f"{path}.easing")
    return TransitionSpec(kind=kind, duration=float(duration), easing=easing)


def parse_ken_burns(data: Dict[str, Any], path: str = "kenBurns") -> KenBurnsSpec:
    """Parse a request Ken Burns object, applying request defaults"""
    if not isinstance(data, dict):
        raise InvalidInputError(f"{path} must be an object")
    return KenBurnsSpec(
        start_scale=float(_number_in_range(data, 'startScale', KEN_BURNS_SCALE_RANGE, 1.0, f"{path}.")),
        end_scale=float(_number_in_range(data, 'endScale', KEN_BURNS_SCALE_RANGE, 1.2, f"{path}.")),
        start_offset=_parse_point(data.get('startPosition'), f"{path}.startPosition"),
        end_offset=_parse_point(data.get('endPosition'), f"{path}.endPosition")
    )


def _resolve_source(source: Any, base_dir: Optional[Path], path: str) -> str:
    if not isinstance(source, str) or not source:
        raise InvalidInputError(f"{path}.src is required")
    if source.startswith("data:"):
        if not source.startswith("data:image/"):
            raise InvalidInputError(f"{path}.src data URI must be an image")
        return source
    if base_dir is not None and not Path(source).is_absolute():
        return str(Path(base_dir) / source)
    return source


def parse_slide(data: Dict[str, Any], index: int = 0, base_dir: Optional[Path] = None) -> SlideConfig:
    """Parse one request slide ({src, duration, transition?, kenBurns?})"""
    path = f"slides[{index}]"
    if not isinstance(data, dict):
        raise InvalidInputError(f"{path} must be an object")

    transition = None
    if data.get('transition') is not None:
        transition = parse_transition(data['transition'], f"{path}.transition")

    ken_burns = None
    if data.get('kenBurns') is not None:
        ken_burns = parse_ken_burns(data['kenBurns'], f"{path}.kenBurns")

    return SlideConfig(
        source=_resolve_source(data.get('src'), base_dir, path),
        duration=float(_number_in_range(data, 'duration', SLIDE_DURATION_RANGE, path=f"{path}.")),
        transition_out=transition,
        ken_burns=ken_burns
    )


def parse_slideshow_request(data: Dict[str, Any], base_dir: Optional[Path] = None) -> SlideshowRequest:
    """Parse and range-check a slideshow request dictionary

    Args:
        data: Decoded JSON request (slides, output, backgroundColor)
        base_dir: Directory relative file sources are resolved against

    Returns:
        Validated SlideshowRequest

    Raises:
        InvalidInputError: If any field is missing or out of range
    """
    if not isinstance(data, dict):
        raise InvalidInputError("Request must be an object")

    slides = data.get('slides')
    if not isinstance(slides, list) or not slides:
        raise InvalidInputError("At least one slide is required")
    if len(slides) > MAX_SLIDES:
        raise InvalidInputError(f"Maximum {MAX_SLIDES} slides allowed, got {len(slides)}")

    output = data.get('output') or {}
    if not isinstance(output, dict):
        raise InvalidInputError("output must be an object")

    config = RenderConfig(
        width=_int_in_range(output, 'width', WIDTH_RANGE, 1920, "output."),
        height=_int_in_range(output, 'height', HEIGHT_RANGE, 1080, "output."),
        fps=_int_in_range(output, 'fps', FPS_RANGE, 30, "output."),
        background_color=parse_color(data.get('backgroundColor') or "#000000")
    )

    output_format = output.get('format', 'mp4')
    if output_format not in OUTPUT_FORMATS:
        raise InvalidInputError(f"output.format must be one of {OUTPUT_FORMATS}, got {output_format!r}")

    quality = output.get('quality', 'high')
    if quality not in QUALITY_LEVELS:
        raise InvalidInputError(f"output.quality must be one of {QUALITY_LEVELS}, got {quality!r}")

    return SlideshowRequest(
        slides=tuple(parse_slide(slide, i, base_dir) for i, slide in enumerate(slides)),
        config=config,
        output_format=output_format,
        quality=quality
    )
