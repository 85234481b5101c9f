"""
Timeline Core - Functional Core

Pure functions for time-based calculations: building the absolute time axis
of a slideshow and resolving a time value to exactly one visual state.
No side effects, no pixel operations.

Used by shell.py to drive the render loop.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Union

from slide_types import (
    TransitionKind,
    TimelineEntry,
    Timeline,
    InvalidInputError
)
from .easing import apply_easing


# ============================================================================
# Time Calculations
# ============================================================================

def frame_time_from_number(frame_number: int, fps: float) -> float:
    """Calculate time in seconds for a given frame number

    Args:
        frame_number: Frame index (0-based)
        fps: Frames per second

    Returns:
        Time in seconds
    """
    return frame_number / fps


def total_frames_from_duration(duration_seconds: float, fps: float) -> int:
    """Calculate total number of frames for duration

    Rounds up, so a partial final frame still gets rendered. Float noise in
    the product can add one frame past the end (0.1 * 30 = 3.0000000000000004
    gives 4); the resolver freezes on the last slide for it.

    Args:
        duration_seconds: Duration in seconds
        fps: Frames per second

    Returns:
        Total frame count

    Raises:
        InvalidInputError: If fps is not positive
    """
    if not fps > 0:
        raise InvalidInputError(f"FPS must be positive, got {fps}")
    return int(math.ceil(duration_seconds * fps))


# ============================================================================
# Timeline Building
# ============================================================================

def applied_transition(slide, is_last: bool):
    """Outgoing transition that actually takes time on the timeline

    The last slide's transition and `none` transitions are ignored.
    """
    transition = getattr(slide, 'transition_out', None)
    if is_last or transition is None:
        return None
    if transition.kind == TransitionKind.NONE:
        return None
    return transition


def build_timeline(slides: Sequence) -> Timeline:
    """Compute absolute display and transition intervals for each slide

    Walks the slides with a running cursor starting at 0. Each slide owns
    [cursor, cursor + duration); an applied outgoing transition owns the
    interval right after it. Entries partition [0, total_duration).

    Args:
        slides: Ordered slides; anything with `duration` and
            `transition_out` attributes (Slide or SlideConfig)

    Returns:
        Immutable Timeline

    Raises:
        InvalidInputError: If slides is empty, or a slide or applied
            transition duration is not positive

    Examples:
        >>> fade = TransitionSpec(TransitionKind.FADE, 1.0)
        >>> slides = [SlideConfig('a', 3.0, fade), SlideConfig('b', 3.0, fade), SlideConfig('c', 3.0)]
        >>> build_timeline(slides).total_duration
        11.0
    """
    if not slides:
        raise InvalidInputError("At least one slide is required")

    entries: List[TimelineEntry] = []
    cursor = 0.0
    last_index = len(slides) - 1

    for index, slide in enumerate(slides):
        duration = slide.duration
        if not duration > 0:
            raise InvalidInputError(f"Slide {index} duration {duration} must be positive")

        display_start = cursor
        display_end = cursor + duration
        cursor = display_end

        transition = applied_transition(slide, index == last_index)
        if transition is None:
            entries.append(TimelineEntry(
                slide_index=index,
                display_start=display_start,
                display_end=display_end
            ))
            continue

        if not transition.duration > 0:
            raise InvalidInputError(
                f"Slide {index} transition duration {transition.duration} must be positive"
            )

        transition_end = cursor + transition.duration
        entries.append(TimelineEntry(
            slide_index=index,
            display_start=display_start,
            display_end=display_end,
            transition=transition,
            transition_start=cursor,
            transition_end=transition_end
        ))
        cursor = transition_end

    return Timeline(entries=tuple(entries), total_duration=cursor)


# ============================================================================
# Frame Resolution
# ============================================================================

@dataclass(frozen=True)
class SteadyInstruction:
    """Render one slide (with its pan/zoom) at in-slide progress"""
    slide_index: int
    progress: float


@dataclass(frozen=True)
class TransitionInstruction:
    """Render a blend between two adjacent slides

    Attributes:
        from_index: Outgoing slide
        to_index: Incoming slide
        raw_progress: Linear progress through the transition interval
        progress: Eased progress passed to the effect renderer
        kind: Effect kind
    """
    from_index: int
    to_index: int
    raw_progress: float
    progress: float
    kind: TransitionKind


RenderInstruction = Union[SteadyInstruction, TransitionInstruction]


def resolve_frame(time: float, timeline: Timeline) -> RenderInstruction:
    """Determine the single visual state at an absolute time

    Display intervals are checked first, then transition intervals (both
    half-open). Times at or past the end freeze on the last slide at
    progress 1; negative times show the first slide at progress 0.

    Args:
        time: Absolute time in seconds
        timeline: Built timeline

    Returns:
        Exactly one SteadyInstruction or TransitionInstruction

    Examples:
        >>> resolve_frame(3.5, timeline)  # slide 0 fades into slide 1 over [3, 4)
        TransitionInstruction(from_index=0, to_index=1, raw_progress=0.5, progress=0.5, ...)
    """
    entries = timeline.entries

    for entry in entries:
        if entry.display_start <= time < entry.display_end:
            progress = (time - entry.display_start) / entry.display_duration
            return SteadyInstruction(slide_index=entry.slide_index, progress=progress)

    for position, entry in enumerate(entries):
        if entry.transition is None:
            continue
        if entry.transition_start <= time < entry.transition_end:
            raw_progress = (time - entry.transition_start) / entry.transition_duration
            return TransitionInstruction(
                from_index=entry.slide_index,
                to_index=entries[position + 1].slide_index,
                raw_progress=raw_progress,
                progress=apply_easing(raw_progress, entry.transition.easing),
                kind=entry.transition.kind
            )

    if time < 0:
        return SteadyInstruction(slide_index=entries[0].slide_index, progress=0.0)

    return SteadyInstruction(slide_index=entries[-1].slide_index, progress=1.0)


def resolve_frame_number(frame_number: int, timeline: Timeline, fps: float) -> RenderInstruction:
    """Resolve a frame index using the frame-to-time contract (index / fps)"""
    return resolve_frame(frame_time_from_number(frame_number, fps), timeline)
