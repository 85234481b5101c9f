"""
Slideshow Renderer Package

Timeline-driven slideshow compositor using functional core, imperative shell pattern.

Modules:
- easing: Progress easing curves
- core: Cover-fit, pan/zoom and effect geometry (pure)
- effects: Transition draw routines and dispatch
- timeline: Timeline building and frame resolution (pure)
- shell: Drawing surface, render loop and render job
- image_loader: Image decoding (I/O)
- ffmpeg_encoder: Video encoding via FFmpeg (I/O)
"""

from .easing import (
    apply_easing,
    ease_linear,
    ease_in_cubic,
    ease_out_cubic,
    ease_in_out_cubic,
)

from .core import (
    # Placement
    cover_fit_rect,
    cover_fit_matrix,

    # Pan/zoom
    PanZoomTransform,
    evaluate_ken_burns,
    pan_zoom_matrix,
)

from .effects import (
    EFFECT_RENDERERS,
    render_transition_frame,
    resolve_transition_kind,
)

from .timeline import (
    # Time calculations
    frame_time_from_number,
    total_frames_from_duration,

    # Timeline
    build_timeline,

    # Frame resolution
    SteadyInstruction,
    TransitionInstruction,
    resolve_frame,
    resolve_frame_number,
)

from .shell import (
    FrameSurface,
    SlideshowRenderLoop,
    create_render_loop,
    render_slideshow_frames,
    render_still,
    run_render_job,
    save_frame,
)

from .image_loader import (
    load_image,
    load_slide_images,
)

from .ffmpeg_encoder import (
    FFmpegEncoder,
    encode_frames_to_video,
)

__all__ = [
    # Easing
    'apply_easing',
    'ease_linear',
    'ease_in_cubic',
    'ease_out_cubic',
    'ease_in_out_cubic',

    # Core
    'cover_fit_rect',
    'cover_fit_matrix',
    'PanZoomTransform',
    'evaluate_ken_burns',
    'pan_zoom_matrix',

    # Effects
    'EFFECT_RENDERERS',
    'render_transition_frame',
    'resolve_transition_kind',

    # Timeline
    'frame_time_from_number',
    'total_frames_from_duration',
    'build_timeline',
    'SteadyInstruction',
    'TransitionInstruction',
    'resolve_frame',
    'resolve_frame_number',

    # Shell
    'FrameSurface',
    'SlideshowRenderLoop',
    'create_render_loop',
    'render_slideshow_frames',
    'render_still',
    'run_render_job',
    'save_frame',

    # I/O
    'load_image',
    'load_slide_images',
    'FFmpegEncoder',
    'encode_frames_to_video',
]
